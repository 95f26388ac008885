"""Scan command implementation.

Lists cleanable entries of the well-known locations, the home
directory or an arbitrary path.
"""

from pathlib import Path
from typing import Annotated

import typer

from vacctl.cleaner.models import SelectedEntry
from vacctl.cli.display import (
    create_entries_table,
    print_dry_run_summary,
    print_scan_summary,
    write_report,
)
from vacctl.cli.types import (
    OutputFormat,
    SortChoice,
    build_engine,
    build_executor,
    get_config,
    parse_target,
    resolve_sort,
    run_scan,
)
from vacctl.report import ScanReport, sort_entries
from vacctl.scanner.models import ItemCategory
from vacctl.utils.formatting import console, print_info


def scan(
    target: Annotated[
        str,
        typer.Argument(help="What to scan: 'preset', 'home' or a directory path."),
    ] = "preset",
    categories: Annotated[
        list[ItemCategory] | None,
        typer.Option(
            "--category",
            "-c",
            help="Limit the preset scan to a category (repeatable).",
            case_sensitive=False,
        ),
    ] = None,
    sort: Annotated[
        SortChoice | None,
        typer.Option("--sort", "-s", help="Sort order: name, size or time.", case_sensitive=False),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the JSON report to a file."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Also compute what cleaning would free."),
    ] = False,
) -> None:
    """Scan a target and list what can be cleaned."""
    config = get_config()
    scan_target = parse_target(target, categories)
    sort_key = resolve_sort(sort, config)

    collection = run_scan(build_engine(config), scan_target)

    dry_run_result = None
    if dry_run:
        selection = [SelectedEntry.from_entry(e) for e in collection.entries]
        dry_run_result = build_executor(config, scan_target).dry_run(selection)

    report = ScanReport.create(
        collection, scan_target.describe(), sort_key, dry_run=dry_run_result
    )

    if output is not None:
        write_report(report, output)

    if output_format == OutputFormat.JSON:
        console.print_json(report.to_json())
        return

    if not collection.entries:
        print_info(f"Nothing to clean in {scan_target.describe()}.")
        print_scan_summary(collection)
        return

    entries = sort_entries(collection.entries, sort_key)
    console.print(create_entries_table(entries, title=f"Scan: {scan_target.describe()}"))
    print_scan_summary(collection)
    if dry_run_result is not None:
        print_dry_run_summary(dry_run_result)

