"""Shared Rich display functions for scans and deletions.

Provides the table builders, summary printers and report writer used
by the scan and clean commands.
"""

from collections.abc import Sequence
from pathlib import Path

import typer
from rich.table import Table

from vacctl.cleaner.models import DeletionMode, DeletionReport, DryRunResult
from vacctl.report import ScanReport
from vacctl.scanner.engine import ScanCollection
from vacctl.scanner.models import CleanableEntry
from vacctl.utils.formatting import (
    console,
    format_size,
    format_time,
    print_error,
    print_info,
    print_success,
    print_warning,
    size_style,
)

# Errors listed individually before collapsing into a count
_MAX_LISTED_ERRORS = 10


def create_entries_table(entries: Sequence[CleanableEntry], title: str) -> Table:
    """Create a Rich table listing scanned entries.

    Args:
        entries: Entries in display order.
        title: Table title.

    Returns:
        Rich Table with Name, Category, Size, Modified and Path columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Category")
    table.add_column("Size", justify="right", width=10)
    table.add_column("Modified", width=10)
    table.add_column("Path", style="muted")

    for entry in entries:
        name_style = "directory" if entry.is_dir else "file"
        name = f"{entry.name}/" if entry.is_dir else entry.name
        table.add_row(
            f"[{name_style}]{name}[/{name_style}]",
            entry.category.label if entry.category else "-",
            f"[{size_style(entry.size_bytes)}]{format_size(entry.size_bytes)}[/]",
            format_time(entry.modified_at),
            str(entry.path),
        )

    return table


def create_results_table(report: DeletionReport) -> Table:
    """Create a Rich table with one row per deletion outcome."""
    title = "Results (Dry Run)" if report.mode == DeletionMode.DRY_RUN else "Results"
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Path", no_wrap=True)
    table.add_column("Freed", justify="right", width=10)
    table.add_column("Message")

    for outcome in report.outcomes:
        if outcome.covered_by is not None:
            status = "[success]OK[/success]"
            message = f"removed with {outcome.covered_by}"
        elif outcome.success:
            status = "[success]OK[/success]"
            message = f"{outcome.files_removed} files, {outcome.dirs_removed} dirs"
            if outcome.kept:
                message += f", kept {outcome.kept} protected"
        else:
            status = "[error]FAIL[/error]"
            message = outcome.reason or "Unknown error"

        table.add_row(
            status,
            str(outcome.path),
            format_size(outcome.bytes_freed),
            f"[muted]{message}[/muted]",
        )

    return table


def print_scan_summary(collection: ScanCollection) -> None:
    """Print entry count, total size and scan errors."""
    console.print(
        f"\n[dim]Found {len(collection.entries)} entries "
        f"({format_size(collection.total_bytes)} total)[/dim]"
    )
    if not collection.completed:
        print_warning("Scan did not complete; sizes may be missing.")
    print_scan_errors(collection)


def print_scan_errors(collection: ScanCollection) -> None:
    if not collection.errors:
        return
    for err in collection.errors[:_MAX_LISTED_ERRORS]:
        print_warning(f"{err.path}: {err.reason}")
    hidden = len(collection.errors) - _MAX_LISTED_ERRORS
    if hidden > 0:
        print_warning(f"... and {hidden} more unreadable paths")


def print_dry_run_summary(result: DryRunResult) -> None:
    console.print(
        f"\n[info]Dry run:[/info] would free {format_size(result.total_bytes)} "
        f"({result.total_files} files, {result.total_dirs} dirs)"
    )
    skipped = [item for item in result.items if item.skipped]
    for item in skipped:
        print_warning(f"Would skip {item.path}: {item.skipped}")
    for item in result.items:
        if item.covered_by is not None:
            console.print(f"[muted]{item.path} is removed with {item.covered_by}[/muted]")
        if item.kept:
            console.print(f"[muted]Would keep {item.kept} protected paths in {item.path}[/muted]")


def print_clean_summary(report: DeletionReport) -> None:
    summary = report.summary
    freed = format_size(summary.bytes_freed)
    if report.has_failures:
        print_warning(
            f"{summary.succeeded} of {summary.total} items cleaned ({freed}), "
            f"{summary.failed} failed"
        )
    else:
        print_success(f"Cleaned {summary.succeeded} items, freed {freed}")


def write_report(report: ScanReport, output: Path) -> None:
    """Write a report as JSON, exiting on failure."""
    output = output.resolve()
    if output.is_dir():
        print_error(f"Output path is a directory: {output}")
        raise typer.Exit(code=1)

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report.to_json())
        print_info(f"Report written to {output}")
    except OSError as e:
        print_error(f"Failed to write report: {e}")
        raise typer.Exit(code=1) from e
