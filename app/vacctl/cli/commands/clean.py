"""Clean command implementation.

Scans a target and disposes of every entry found, permanently or via
the trash, after confirmation.
"""

from pathlib import Path
from typing import Annotated

import typer

from vacctl.cleaner.models import DeletionMode, SelectedEntry
from vacctl.cli.display import (
    create_entries_table,
    create_results_table,
    print_clean_summary,
    print_scan_errors,
    write_report,
)
from vacctl.cli.types import build_engine, build_executor, get_config, parse_target, run_scan
from vacctl.report import ScanReport, sort_entries
from vacctl.scanner.models import ItemCategory
from vacctl.utils.formatting import console, format_size, print_info


def clean(
    target: Annotated[
        str,
        typer.Argument(help="What to clean: 'preset', 'home' or a directory path."),
    ] = "preset",
    categories: Annotated[
        list[ItemCategory] | None,
        typer.Option(
            "--category",
            "-c",
            help="Limit the preset target to a category (repeatable).",
            case_sensitive=False,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted."),
    ] = False,
    trash: Annotated[
        bool | None,
        typer.Option(
            "--trash/--permanent",
            help="Move items to the trash instead of deleting them. Overrides the config.",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the JSON report to a file."),
    ] = None,
) -> None:
    """Delete everything a scan of TARGET finds."""
    config = get_config()
    scan_target = parse_target(target, categories)

    collection = run_scan(build_engine(config), scan_target)
    print_scan_errors(collection)

    if not collection.entries:
        print_info(f"Nothing to clean in {scan_target.describe()}.")
        return

    move_to_trash = config.safety.move_to_trash if trash is None else trash
    if dry_run:
        mode = DeletionMode.DRY_RUN
    elif move_to_trash:
        mode = DeletionMode.TRASH
    else:
        mode = DeletionMode.PERMANENT

    entries = sort_entries(collection.entries, "size")
    title = "Planned Deletions (dry-run)" if dry_run else "Planned Deletions"
    console.print(create_entries_table(entries, title=title))

    if not dry_run and not yes:
        verb = "move to trash" if mode == DeletionMode.TRASH else "permanently delete"
        confirmed = typer.confirm(
            f"\nProceed to {verb} {len(entries)} item(s) "
            f"({format_size(collection.total_bytes)})?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    executor = build_executor(config, scan_target)
    report = executor.execute([SelectedEntry.from_entry(e) for e in entries], mode)

    console.print(create_results_table(report))
    print_clean_summary(report)

    if output is not None:
        write_report(
            ScanReport.create(collection, scan_target.describe(), "size", clean=report), output
        )

    if report.has_failures:
        raise typer.Exit(code=1)
