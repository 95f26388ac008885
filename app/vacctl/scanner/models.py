"""Scanner domain models.

This module defines the scan targets a caller can request, the entries a
scan produces, and the closed set of messages a scan emits on its
stream. Every message carries the generation of the session that
produced it so receivers can drop superseded output.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class EntryKind(str, Enum):
    """Type of a cleanable entry.

    Attributes:
        FILE: Regular file.
        DIRECTORY: Directory (symlinks are never reported as directories).
    """

    FILE = "file"
    DIRECTORY = "directory"


class ItemCategory(str, Enum):
    """Well-known cleanup categories.

    The value is the stable identifier used in configuration files and
    reports; ``label`` and ``description`` are for display.
    """

    SYSTEM_CACHE = "system_cache"
    LOGS = "logs"
    TEMP = "temp"
    DOWNLOADS = "downloads"
    TRASH = "trash"
    XCODE_DERIVED_DATA = "xcode_derived_data"
    HOMEBREW_CACHE = "homebrew_cache"
    COCOAPODS = "cocoapods"
    NPM_CACHE = "npm_cache"
    PIP_CACHE = "pip_cache"
    DOCKER_DATA = "docker_data"
    CARGO_CACHE = "cargo_cache"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        """Short human-readable name."""
        return _CATEGORY_LABELS[self][0]

    @property
    def description(self) -> str:
        """One-line description of what the category holds."""
        return _CATEGORY_LABELS[self][1]


_CATEGORY_LABELS: dict[ItemCategory, tuple[str, str]] = {
    ItemCategory.SYSTEM_CACHE: ("System cache", "Per-user application and system caches"),
    ItemCategory.LOGS: ("Logs", "System and application log files"),
    ItemCategory.TEMP: ("Temporary files", "Temporary files and directories"),
    ItemCategory.DOWNLOADS: ("Downloads", "Files in the downloads folder"),
    ItemCategory.TRASH: ("Trash", "Files already moved to the trash"),
    ItemCategory.XCODE_DERIVED_DATA: ("Xcode DerivedData", "Xcode build products and indexes"),
    ItemCategory.HOMEBREW_CACHE: ("Homebrew cache", "Homebrew download cache"),
    ItemCategory.COCOAPODS: ("CocoaPods cache", "CocoaPods spec and pod cache"),
    ItemCategory.NPM_CACHE: ("npm cache", "npm package download cache"),
    ItemCategory.PIP_CACHE: ("pip cache", "pip wheel and HTTP cache"),
    ItemCategory.DOCKER_DATA: ("Docker data", "Docker Desktop containers and images"),
    ItemCategory.CARGO_CACHE: ("Cargo cache", "Cargo registry download cache"),
    ItemCategory.CUSTOM: ("Custom target", "Extra target from configuration"),
}


class ScanKind(str, Enum):
    """Traversal mode of a scan."""

    ROOT = "root"
    LIST_DIR = "list_dir"
    DISK_SCAN = "disk_scan"


@dataclass(frozen=True, slots=True)
class RootTarget:
    """Scan the well-known cleanup locations.

    Attributes:
        categories: Restrict the scan to these categories. None scans all.
    """

    categories: frozenset[ItemCategory] | None = None

    @property
    def kind(self) -> ScanKind:
        return ScanKind.ROOT

    def describe(self) -> str:
        """Short description for progress and reports."""
        if self.categories is None:
            return "preset"
        return "preset:" + ",".join(sorted(c.value for c in self.categories))


@dataclass(frozen=True, slots=True)
class ListDirTarget:
    """List the immediate children of a directory."""

    path: Path

    @property
    def kind(self) -> ScanKind:
        return ScanKind.LIST_DIR

    def describe(self) -> str:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class DiskScanTarget:
    """Scan the top level of an arbitrary caller-supplied path."""

    path: Path

    @property
    def kind(self) -> ScanKind:
        return ScanKind.DISK_SCAN

    def describe(self) -> str:
        return str(self.path)


ScanTarget = RootTarget | ListDirTarget | DiskScanTarget


@dataclass(slots=True)
class CleanableEntry:
    """A file or directory discovered by a scan.

    Only ``size_bytes`` and ``modified_at`` are ever filled in after
    creation; directory sizes arrive later through ``DirEntrySize``.

    Attributes:
        path: Absolute path of the entry.
        name: Display name (the final path component, or a category label).
        kind: File or directory.
        size_bytes: Size in bytes, None until computed.
        modified_at: Last modification time, None if unavailable.
        category: Cleanup category the entry belongs to, if any.
    """

    path: Path
    name: str
    kind: EntryKind
    size_bytes: int | None = None
    modified_at: datetime | None = None
    category: ItemCategory | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "path": str(self.path),
            "name": self.name,
            "kind": self.kind.value,
            "size_bytes": self.size_bytes,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
            "category": self.category.value if self.category else None,
        }


@dataclass(frozen=True, slots=True)
class ScanSummary:
    """Counts carried by the terminal ``Done`` message.

    Attributes:
        kind: Traversal mode that produced the summary.
        target: Description of the scanned target.
        entries: Number of entries emitted.
        files: Number of file entries emitted.
        directories: Number of directory entries emitted.
        total_bytes: Sum of all sizes reported for this generation.
        errors: Number of ``Error`` messages emitted.
        elapsed_seconds: Wall-clock duration of the scan.
    """

    kind: ScanKind
    target: str
    entries: int = 0
    files: int = 0
    directories: int = 0
    total_bytes: int = 0
    errors: int = 0
    elapsed_seconds: float = 0.0


@dataclass(frozen=True, slots=True)
class Progress:
    """The scan moved on to ``path``; ``count`` entries were seen so far."""

    generation: int
    path: Path
    count: int


@dataclass(frozen=True, slots=True)
class RootItem:
    """A top-level entry of a root or disk scan."""

    generation: int
    entry: CleanableEntry


@dataclass(frozen=True, slots=True)
class DirEntry:
    """A child entry of a directory listing."""

    generation: int
    entry: CleanableEntry


@dataclass(frozen=True, slots=True)
class DirEntrySize:
    """Backfilled size for the entry whose path equals ``path``."""

    generation: int
    path: Path
    size_bytes: int


@dataclass(frozen=True, slots=True)
class Done:
    """Terminal message of a generation."""

    generation: int
    summary: ScanSummary


@dataclass(frozen=True, slots=True)
class Error:
    """A path could not be read; the scan continues."""

    generation: int
    path: Path
    reason: str


ScanMessage = Progress | RootItem | DirEntry | DirEntrySize | Done | Error


@dataclass(frozen=True, slots=True)
class ScanError:
    """A path that could not be read while sizing a subtree."""

    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class SizeResult:
    """Aggregated size of a subtree.

    Attributes:
        path: Root of the measured subtree.
        total_bytes: Sum of regular file sizes below ``path``.
        file_count: Number of regular files counted.
        errors: Unreadable paths that contributed zero bytes.
    """

    path: Path
    total_bytes: int = 0
    file_count: int = 0
    errors: tuple[ScanError, ...] = field(default_factory=tuple)
