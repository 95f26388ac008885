"""Deletion domain models.

This module defines the snapshot a caller hands to the executor, the
per-item outcome of a deletion and the aggregate reports built from
those outcomes.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from vacctl.scanner.models import CleanableEntry, EntryKind, ItemCategory


class DeletionMode(str, Enum):
    """How selected items are disposed of.

    Attributes:
        PERMANENT: Unlink files and remove directories.
        TRASH: Move items to the platform trash.
        DRY_RUN: Account for what would be removed without touching disk.
    """

    PERMANENT = "permanent"
    TRASH = "trash"
    DRY_RUN = "dry_run"


class FailureKind(str, Enum):
    """Why a single item could not be deleted."""

    NOT_FOUND = "not_found"
    UNSAFE_PATH = "unsafe_path"
    IO_ERROR = "io_error"


@dataclass(frozen=True, slots=True)
class SelectedEntry:
    """Immutable snapshot of an entry chosen for deletion.

    Taken at selection time so later rescans cannot change what is deleted.

    Attributes:
        path: Path as it was scanned.
        kind: File or directory at selection time.
        size_bytes: Size at selection time, informational only.
        category: Cleanup category, drives the directory removal policy.
    """

    path: Path
    kind: EntryKind
    size_bytes: int | None = None
    category: ItemCategory | None = None

    @classmethod
    def from_entry(cls, entry: CleanableEntry) -> "SelectedEntry":
        """Snapshot a scanned entry."""
        return cls(
            path=entry.path,
            kind=entry.kind,
            size_bytes=entry.size_bytes,
            category=entry.category,
        )


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    """Result of disposing of a single selected item.

    Attributes:
        path: Path of the selected item.
        mode: Mode the item was processed with.
        success: Whether the item was fully processed.
        failure: Failure classification, None on success.
        reason: Human-readable failure reason, None on success.
        bytes_freed: Bytes of regular files removed (or that would be).
        files_removed: Files removed (or that would be).
        dirs_removed: Directories removed (or that would be).
        kept: Protected paths below the item that were left in place.
        covered_by: Selected ancestor (or earlier duplicate) that already
            accounts for this item. Such an item is not processed itself.
    """

    path: Path
    mode: DeletionMode
    success: bool
    failure: FailureKind | None = None
    reason: str | None = None
    bytes_freed: int = 0
    files_removed: int = 0
    dirs_removed: int = 0
    kept: int = 0
    covered_by: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "path": str(self.path),
            "mode": self.mode.value,
            "success": self.success,
            "failure": self.failure.value if self.failure else None,
            "reason": self.reason,
            "bytes_freed": self.bytes_freed,
            "files_removed": self.files_removed,
            "dirs_removed": self.dirs_removed,
            "kept": self.kept,
            "covered_by": str(self.covered_by) if self.covered_by else None,
        }


@dataclass(frozen=True, slots=True)
class DeletionSummary:
    """Totals over all outcomes of one execution."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    bytes_freed: int = 0
    files_removed: int = 0
    dirs_removed: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[DeletionOutcome]) -> "DeletionSummary":
        succeeded = sum(1 for o in outcomes if o.success)
        return cls(
            total=len(outcomes),
            succeeded=succeeded,
            failed=len(outcomes) - succeeded,
            bytes_freed=sum(o.bytes_freed for o in outcomes),
            files_removed=sum(o.files_removed for o in outcomes),
            dirs_removed=sum(o.dirs_removed for o in outcomes),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "bytes_freed": self.bytes_freed,
            "files_removed": self.files_removed,
            "dirs_removed": self.dirs_removed,
        }


@dataclass(frozen=True, slots=True)
class DeletionReport:
    """Per-item outcomes of one execution plus their summary."""

    mode: DeletionMode
    outcomes: tuple[DeletionOutcome, ...] = field(default_factory=tuple)
    summary: DeletionSummary = field(default_factory=DeletionSummary)

    @property
    def has_failures(self) -> bool:
        return self.summary.failed > 0

    @property
    def failures(self) -> list[DeletionOutcome]:
        return [o for o in self.outcomes if not o.success]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "mode": self.mode.value,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class DryRunItem:
    """What deleting one selected item would remove.

    Attributes:
        path: Path of the selected item.
        files: Files that would be removed.
        dirs: Directories that would be removed.
        bytes: Bytes that would be freed.
        whole: True if a directory would be removed together with its contents.
        skipped: Reason the item would be skipped, None if it would be processed.
        kept: Protected paths below the item that would be left in place.
        covered_by: Selected ancestor whose removal already includes this item.
    """

    path: Path
    files: int = 0
    dirs: int = 0
    bytes: int = 0
    whole: bool = False
    skipped: str | None = None
    kept: int = 0
    covered_by: Path | None = None


@dataclass(frozen=True, slots=True)
class DryRunResult:
    """Totals a deletion of the selection would produce."""

    total_files: int = 0
    total_dirs: int = 0
    total_bytes: int = 0
    items: tuple[DryRunItem, ...] = field(default_factory=tuple)
