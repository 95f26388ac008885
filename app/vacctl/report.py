"""Serializable scan and clean reports.

This module defines the structure written by ``--output`` and printed
by ``--format json``. Reports are plain pydantic models so they can be
dumped to JSON and validated back.
"""

import socket
from collections.abc import Sequence
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from vacctl import __version__
from vacctl.cleaner.models import DeletionReport, DryRunResult
from vacctl.config import SortKey
from vacctl.scanner.engine import ScanCollection
from vacctl.scanner.models import CleanableEntry
from vacctl.utils.formatting import format_size, format_time


def sort_entries(entries: Sequence[CleanableEntry], order: SortKey) -> list[CleanableEntry]:
    """Return ``entries`` sorted for display.

    Args:
        entries: Entries to sort.
        order: ``name`` (case-insensitive), ``size`` (largest first,
            unknown last) or ``time`` (newest first, unknown last).

    Returns:
        New sorted list.
    """
    if order == "name":
        return sorted(entries, key=lambda e: e.name.lower())
    if order == "size":
        return sorted(entries, key=lambda e: (e.size_bytes is None, -(e.size_bytes or 0)))
    return sorted(
        entries,
        key=lambda e: (e.modified_at is None, -e.modified_at.timestamp() if e.modified_at else 0),
    )


class ReportMetadata(BaseModel):
    timestamp: str
    hostname: str
    vacctl_version: str

    @classmethod
    def create(cls) -> "ReportMetadata":
        return cls(
            timestamp=datetime.now(UTC).isoformat(),
            hostname=socket.gethostname(),
            vacctl_version=__version__,
        )


class ReportEntry(BaseModel):
    """One scanned entry."""

    path: str
    name: str
    kind: str
    category: str | None = None
    size_bytes: int | None = None
    size_display: str
    modified: str | None = None

    @classmethod
    def from_entry(cls, entry: CleanableEntry) -> "ReportEntry":
        return cls(
            path=str(entry.path),
            name=entry.name,
            kind=entry.kind.value,
            category=entry.category.value if entry.category else None,
            size_bytes=entry.size_bytes,
            size_display=format_size(entry.size_bytes),
            modified=format_time(entry.modified_at, include_time=True)
            if entry.modified_at
            else None,
        )


class DryRunReportItem(BaseModel):
    path: str
    files: int
    dirs: int
    bytes: int
    whole: bool
    skipped: str | None = None
    kept: int = 0
    covered_by: str | None = None


class DryRunReport(BaseModel):
    """What a deletion of the scanned entries would free."""

    total_files: int
    total_dirs: int
    total_bytes: int
    total_display: str
    items: list[DryRunReportItem] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: DryRunResult) -> "DryRunReport":
        return cls(
            total_files=result.total_files,
            total_dirs=result.total_dirs,
            total_bytes=result.total_bytes,
            total_display=format_size(result.total_bytes),
            items=[
                DryRunReportItem(
                    path=str(item.path),
                    files=item.files,
                    dirs=item.dirs,
                    bytes=item.bytes,
                    whole=item.whole,
                    skipped=item.skipped,
                    kept=item.kept,
                    covered_by=str(item.covered_by) if item.covered_by else None,
                )
                for item in result.items
            ],
        )


class CleanOutcome(BaseModel):
    path: str
    success: bool
    failure: str | None = None
    reason: str | None = None
    bytes_freed: int = 0
    files_removed: int = 0
    dirs_removed: int = 0
    kept: int = 0
    covered_by: str | None = None


class CleanReport(BaseModel):
    """Per-item result of a deletion run."""

    mode: str
    succeeded: int
    failed: int
    bytes_freed: int
    freed_display: str
    outcomes: list[CleanOutcome] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: DeletionReport) -> "CleanReport":
        return cls(
            mode=report.mode.value,
            succeeded=report.summary.succeeded,
            failed=report.summary.failed,
            bytes_freed=report.summary.bytes_freed,
            freed_display=format_size(report.summary.bytes_freed),
            outcomes=[CleanOutcome.model_validate(o.to_dict()) for o in report.outcomes],
        )


class ScanReport(BaseModel):
    """Complete report of one scan, optionally with a dry-run or clean section."""

    metadata: ReportMetadata
    target: str
    sort: SortKey
    completed: bool
    total_entries: int
    total_bytes: int
    total_display: str
    errors: list[str] = Field(default_factory=list)
    entries: list[ReportEntry] = Field(default_factory=list)
    dry_run: DryRunReport | None = None
    clean: CleanReport | None = None

    @classmethod
    def create(
        cls,
        collection: ScanCollection,
        target: str,
        sort: SortKey = "size",
        *,
        dry_run: DryRunResult | None = None,
        clean: DeletionReport | None = None,
    ) -> "ScanReport":
        """Build a report from a collected scan.

        Args:
            collection: Result of ``collect_scan``.
            target: Description of the scanned target.
            sort: Order of ``entries``.
            dry_run: Optional dry-run result to embed.
            clean: Optional deletion report to embed.

        Returns:
            The assembled report.
        """
        return cls(
            metadata=ReportMetadata.create(),
            target=target,
            sort=sort,
            completed=collection.completed,
            total_entries=len(collection.entries),
            total_bytes=collection.total_bytes,
            total_display=format_size(collection.total_bytes),
            errors=[f"{err.path}: {err.reason}" for err in collection.errors],
            entries=[ReportEntry.from_entry(e) for e in sort_entries(collection.entries, sort)],
            dry_run=DryRunReport.from_result(dry_run) if dry_run is not None else None,
            clean=CleanReport.from_report(clean) if clean is not None else None,
        )

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)
