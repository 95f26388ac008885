"""Deletion executor.

Disposes of a selection of entries item by item. Every item is
re-validated right before it is touched and failures are isolated to
the item that caused them. Permanent deletion, trash and dry-run share
one traversal so a dry-run reports exactly what a real run frees.

An item that lies inside another selected directory is accounted for by
that directory and not processed again. Protected paths below a selected
directory are left in place together with the directories holding them.
"""

import logging
import os
import stat
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import send2trash

from vacctl.cleaner.models import (
    DeletionMode,
    DeletionOutcome,
    DeletionReport,
    DeletionSummary,
    DryRunItem,
    DryRunResult,
    FailureKind,
    SelectedEntry,
)
from vacctl.cleaner.safety import RejectionReason, SafetyValidator
from vacctl.scanner.models import ItemCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RemovalPolicy:
    """Whether selected directories are removed whole or only emptied.

    Attributes:
        whole_categories: Categories whose directories are removed whole.
        default_whole: Applies to every other category and to entries
            without one.
    """

    whole_categories: frozenset[ItemCategory] = frozenset()
    default_whole: bool = False

    def removes_whole(self, category: ItemCategory | None) -> bool:
        if category is not None and category in self.whole_categories:
            return True
        return self.default_whole

    @classmethod
    def from_config(
        cls, whole: Iterable[ItemCategory], default: str = "contents"
    ) -> "RemovalPolicy":
        """Build a policy from the ``[removal]`` config table."""
        return cls(whole_categories=frozenset(whole), default_whole=default == "whole")


@dataclass(slots=True)
class _Tally:
    files: int = 0
    dirs: int = 0
    bytes: int = 0
    kept: int = 0

    def merge(self, other: "_Tally") -> None:
        self.files += other.files
        self.dirs += other.dirs
        self.bytes += other.bytes
        self.kept += other.kept


def _send_to_trash(path: Path) -> None:
    send2trash.send2trash(str(path))


def _location(path: Path) -> Path:
    """Canonical location of ``path`` itself, without following a final symlink."""
    absolute = Path(os.path.abspath(path))
    return absolute.parent.resolve() / absolute.name


def _is_real_dir(path: Path) -> bool:
    try:
        return stat.S_ISDIR(path.lstat().st_mode)
    except OSError:
        return False


class DeletionExecutor:
    """Deletes, trashes or dry-runs a selection of entries.

    Args:
        validator: Safety policy applied to every item before acting.
        policy: Directory removal policy.
        trash: Callable moving a path to the trash.
    """

    def __init__(
        self,
        validator: SafetyValidator | None = None,
        policy: RemovalPolicy | None = None,
        trash: Callable[[Path], None] = _send_to_trash,
    ) -> None:
        self._validator = validator or SafetyValidator()
        self._policy = policy or RemovalPolicy()
        self._trash = trash

    @property
    def policy(self) -> RemovalPolicy:
        return self._policy

    def execute(self, selection: Sequence[SelectedEntry], mode: DeletionMode) -> DeletionReport:
        """Process every selected item and report per-item outcomes.

        The call never raises for a single item; failures are recorded
        in that item's outcome and processing continues.

        Args:
            selection: Snapshot of the entries to dispose of.
            mode: Permanent deletion, trash or dry-run.

        Returns:
            Report with one outcome per selected item.
        """
        covers = self._plan(selection)
        outcomes = tuple(
            self._process(item, mode, covered_by)[0]
            for item, covered_by in zip(selection, covers)
        )
        report = DeletionReport(
            mode=mode, outcomes=outcomes, summary=DeletionSummary.from_outcomes(outcomes)
        )
        logger.info(
            "%s: %d/%d items, %d bytes",
            mode.value,
            report.summary.succeeded,
            report.summary.total,
            report.summary.bytes_freed,
        )
        return report

    def dry_run(self, selection: Sequence[SelectedEntry]) -> DryRunResult:
        """Compute what deleting ``selection`` would remove.

        Items that a real run would reject or not find contribute
        nothing and carry the reason in ``skipped``. Items inside another
        selected directory contribute nothing and name it in ``covered_by``.
        """
        covers = self._plan(selection)
        items: list[DryRunItem] = []
        for item, covered_by in zip(selection, covers):
            outcome, whole = self._process(item, DeletionMode.DRY_RUN, covered_by)
            items.append(
                DryRunItem(
                    path=item.path,
                    files=outcome.files_removed,
                    dirs=outcome.dirs_removed,
                    bytes=outcome.bytes_freed,
                    whole=whole,
                    skipped=outcome.reason,
                    kept=outcome.kept,
                    covered_by=outcome.covered_by,
                )
            )

        return DryRunResult(
            total_files=sum(i.files for i in items),
            total_dirs=sum(i.dirs for i in items),
            total_bytes=sum(i.bytes for i in items),
            items=tuple(items),
        )

    def _shape(self, item: SelectedEntry) -> tuple[bool, bool]:
        """Return (removed whole, only contents removed) for one item."""
        path = item.path
        is_real_dir = path.is_dir() and not path.is_symlink()
        whole = is_real_dir and self._policy.removes_whole(item.category)
        return whole, is_real_dir and not whole

    def _plan(self, selection: Sequence[SelectedEntry]) -> list[Path | None]:
        """Find, per item, the selected path that already accounts for it.

        An item is covered by a safe selected ancestor, or by an earlier
        selection of the same location. Unsafe items never cover others.
        """
        locations: list[Path | None] = []
        for item in selection:
            _, contents_only = self._shape(item)
            if self._validator.check(item.path, contents_only=contents_only).safe:
                locations.append(_location(item.path))
            else:
                locations.append(None)

        covers: list[Path | None] = []
        for index, location in enumerate(locations):
            cover = None
            if location is not None:
                for other_index, other in enumerate(locations):
                    if other is None or other_index == index:
                        continue
                    if other in location.parents or (other == location and other_index < index):
                        cover = selection[other_index].path
                        break
            covers.append(cover)
        return covers

    def _process(
        self, item: SelectedEntry, mode: DeletionMode, covered_by: Path | None = None
    ) -> tuple[DeletionOutcome, bool]:
        """Validate and dispose of one item.

        Returns:
            The outcome and whether a directory was treated as a whole.
        """
        path = item.path
        whole, contents_only = self._shape(item)

        if covered_by is not None:
            logger.info("%s is removed with %s", path, covered_by)
            return DeletionOutcome(path=path, mode=mode, success=True, covered_by=covered_by), whole

        verdict = self._validator.check(path, contents_only=contents_only)
        if verdict.reason is RejectionReason.NOT_FOUND:
            logger.warning("Skipping %s: no longer exists", path)
            return self._failed(path, mode, FailureKind.NOT_FOUND, "path not found"), whole
        if verdict.reason is not None:
            logger.warning("Refusing to delete %s: %s", path, verdict.detail)
            return (
                self._failed(path, mode, FailureKind.UNSAFE_PATH, f"unsafe path: {verdict.detail}"),
                whole,
            )

        tally = _Tally()
        try:
            for unit in self._units(_location(path), contents_only):
                self._dispose(unit, mode, tally)
        except OSError as e:
            logger.warning("Failed to delete %s: %s", path, e)
            return (
                DeletionOutcome(
                    path=path,
                    mode=mode,
                    success=False,
                    failure=FailureKind.IO_ERROR,
                    reason=e.strerror or str(e),
                    bytes_freed=tally.bytes,
                    files_removed=tally.files,
                    dirs_removed=tally.dirs,
                    kept=tally.kept,
                ),
                whole,
            )

        if mode == DeletionMode.DRY_RUN:
            logger.info(
                "Dry-run: would remove %s (%d files, %d bytes)", path, tally.files, tally.bytes
            )
        return (
            DeletionOutcome(
                path=path,
                mode=mode,
                success=True,
                bytes_freed=tally.bytes,
                files_removed=tally.files,
                dirs_removed=tally.dirs,
                kept=tally.kept,
            ),
            whole,
        )

    @staticmethod
    def _failed(path: Path, mode: DeletionMode, kind: FailureKind, reason: str) -> DeletionOutcome:
        return DeletionOutcome(path=path, mode=mode, success=False, failure=kind, reason=reason)

    @staticmethod
    def _units(path: Path, contents_only: bool) -> list[Path]:
        """Top-level paths to dispose of for one item."""
        if not contents_only:
            return [path]
        with os.scandir(path) as it:
            return sorted(Path(child.path) for child in it)

    def _dispose(self, unit: Path, mode: DeletionMode, tally: _Tally) -> None:
        """Remove (or account for) one top-level unit."""
        if self._validator.is_protected(unit):
            logger.warning("Keeping protected path %s", unit)
            tally.kept += 1
            return

        if _is_real_dir(unit) and self._validator.shelters_protected(unit):
            # The directory stays; everything beside the protected entries goes
            for child in self._units(unit, contents_only=True):
                self._dispose(child, mode, tally)
            return

        if mode == DeletionMode.TRASH:
            measured = _Tally()
            _walk(unit, measured, act=False)
            self._trash(unit)
            tally.merge(measured)
        else:
            _walk(unit, tally, act=mode == DeletionMode.PERMANENT)


def _walk(path: Path, tally: _Tally, *, act: bool) -> None:
    """Count, and with ``act`` remove, ``path`` and everything below it.

    Symlinks are removed as links and never followed. Children that
    vanish during the walk are skipped.
    """
    try:
        info = path.lstat()
    except FileNotFoundError:
        logger.debug("Vanished before removal: %s", path)
        return

    if not stat.S_ISDIR(info.st_mode):
        if act:
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug("Vanished before removal: %s", path)
                return
        tally.files += 1
        if stat.S_ISREG(info.st_mode):
            tally.bytes += info.st_size
        return

    try:
        with os.scandir(path) as it:
            children = [Path(child.path) for child in it]
    except FileNotFoundError:
        logger.debug("Vanished before removal: %s", path)
        return

    for child in children:
        _walk(child, tally, act=act)

    if act:
        path.rmdir()
    tally.dirs += 1
