"""Parallel, cancellable subtree size computation.

Work is split at the first level of children: ``submit`` queues a
listing of the root on a bounded worker pool. The listing sums the
root's direct files and names its child directories; ``results`` then
hands each child directory to the pool as its own task. Each worker
walks its subtree single-threaded. ``results`` reduces the partial sums
on the calling thread and yields one ``SizeResult`` per root as soon as
all of that root's subtrees are done.

The pool lives only as long as the aggregator context. Leaving the
context cancels queued subtrees and joins the running ones.
"""

import logging
import os
from collections.abc import Collection, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from vacctl.scanner.models import ScanError, SizeResult
from vacctl.scanner.session import ScanSession

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = min(8, os.cpu_count() or 1)


@dataclass(slots=True)
class _Partial:
    """Running totals for one submitted root (coordinator thread only)."""

    path: Path
    exclude: frozenset[str] = frozenset()
    total_bytes: int = 0
    file_count: int = 0
    outstanding: int = 0
    errors: list[ScanError] = field(default_factory=list)

    def add(self, result: SizeResult) -> None:
        self.total_bytes += result.total_bytes
        self.file_count += result.file_count
        self.errors.extend(result.errors)

    def freeze(self) -> SizeResult:
        return SizeResult(
            path=self.path,
            total_bytes=self.total_bytes,
            file_count=self.file_count,
            errors=tuple(self.errors),
        )


@dataclass(frozen=True, slots=True)
class _Listing:
    """First-level view of a root: its direct files and child directories."""

    files: SizeResult
    subdirs: tuple[Path, ...] = ()


def walk_subtree(
    root: Path,
    session: ScanSession | None = None,
    exclude: Collection[str] = frozenset(),
) -> SizeResult:
    """Sum regular file sizes below ``root`` without following symlinks.

    Unreadable directories and entries contribute zero and are recorded
    as errors. The session is checked before each directory is opened.

    Args:
        root: Directory to walk.
        session: Session whose cancellation stops the walk.
        exclude: Directory paths (as strings) whose subtrees are skipped.

    Returns:
        Aggregated size of the subtree.

    Raises:
        ScanCancelled: If the session is superseded during the walk.
    """
    total = 0
    count = 0
    errors: list[ScanError] = []
    stack: list[str] = [str(root)]

    while stack:
        if session is not None:
            session.checkpoint()
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            if entry.path not in exclude:
                                stack.append(entry.path)
                        elif entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                            count += 1
                    except OSError as e:
                        errors.append(ScanError(Path(entry.path), e.strerror or str(e)))
        except OSError as e:
            errors.append(ScanError(Path(current), e.strerror or str(e)))

    return SizeResult(path=root, total_bytes=total, file_count=count, errors=tuple(errors))


def _list_root(
    root: Path, session: ScanSession | None, exclude: Collection[str]
) -> _Listing:
    """Size the direct files of ``root`` and name its child directories.

    A root that is a plain file is sized directly.
    """
    if session is not None:
        session.checkpoint()
    total = 0
    count = 0
    errors: list[ScanError] = []
    subdirs: list[Path] = []

    try:
        with os.scandir(root) as it:
            children = list(it)
    except NotADirectoryError:
        children = []
        try:
            total = root.lstat().st_size
            count = 1
        except OSError as e:
            errors.append(ScanError(root, e.strerror or str(e)))
    except OSError as e:
        children = []
        errors.append(ScanError(root, e.strerror or str(e)))

    for child in children:
        try:
            if child.is_dir(follow_symlinks=False):
                if child.path not in exclude:
                    subdirs.append(Path(child.path))
            elif child.is_file(follow_symlinks=False):
                total += child.stat(follow_symlinks=False).st_size
                count += 1
        except OSError as e:
            errors.append(ScanError(Path(child.path), e.strerror or str(e)))

    files = SizeResult(path=root, total_bytes=total, file_count=count, errors=tuple(errors))
    return _Listing(files=files, subdirs=tuple(subdirs))


class SizeAggregator:
    """Computes subtree sizes on a bounded, per-computation worker pool.

    Must be used as a context manager::

        with SizeAggregator(session) as aggregator:
            aggregator.submit(path)
            for result in aggregator.results():
                ...

    Args:
        session: Session whose cancellation stops all workers.
        max_workers: Upper bound on pool threads.
    """

    def __init__(
        self,
        session: ScanSession | None = None,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._session = session
        self._max_workers = max(1, max_workers or DEFAULT_MAX_WORKERS)
        self._executor: ThreadPoolExecutor | None = None
        self._partials: dict[Path, _Partial] = {}
        # Listing futures map to (root, True), subtree walks to (root, False)
        self._pending: dict[Future, tuple[Path, bool]] = {}

    def __enter__(self) -> "SizeAggregator":
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="vacctl-size",
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Cancel queued subtrees and join running workers."""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        self._pending.clear()

    def _require_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            msg = "SizeAggregator.submit() called outside of its context"
            raise RuntimeError(msg)
        return self._executor

    def submit(self, root: Path, exclude: Collection[Path] = ()) -> None:
        """Start computing the size of ``root``.

        The first-level listing runs on the pool, so submitting never
        touches the filesystem on the calling thread.

        Args:
            root: Directory (or file) to measure.
            exclude: Directories below ``root`` whose subtrees are left out,
                such as other roots sized separately.

        Raises:
            RuntimeError: If called outside the aggregator context.
        """
        executor = self._require_executor()
        if root in self._partials:
            logger.debug("Size of %s already requested", root)
            return

        partial = _Partial(path=root, exclude=frozenset(str(p) for p in exclude))
        self._partials[root] = partial
        future = executor.submit(_list_root, root, self._session, partial.exclude)
        self._pending[future] = (root, True)
        partial.outstanding += 1

    def results(self) -> Iterator[SizeResult]:
        """Yield one result per submitted root as each completes.

        Raises:
            ScanCancelled: If the session is superseded while waiting.
        """
        while self._pending:
            done, _ = wait(list(self._pending), return_when=FIRST_COMPLETED)
            for future in done:
                root, is_listing = self._pending.pop(future)
                partial = self._partials[root]
                partial.outstanding -= 1

                if is_listing:
                    listing: _Listing = future.result()
                    partial.add(listing.files)
                    executor = self._require_executor()
                    for subdir in listing.subdirs:
                        walk = executor.submit(
                            walk_subtree, subdir, self._session, partial.exclude
                        )
                        self._pending[walk] = (root, False)
                        partial.outstanding += 1
                else:
                    partial.add(future.result())

                if partial.outstanding == 0:
                    yield partial.freeze()


def compute_size(
    root: Path,
    session: ScanSession | None = None,
    *,
    max_workers: int | None = None,
) -> SizeResult:
    """Compute the total size of ``root`` on a pool scoped to this call.

    Args:
        root: Directory (or file) to measure.
        session: Session whose cancellation stops the computation.
        max_workers: Upper bound on pool threads.

    Returns:
        Aggregated size of the subtree.

    Raises:
        ScanCancelled: If the session is superseded during the computation.
    """
    with SizeAggregator(session, max_workers=max_workers) as aggregator:
        aggregator.submit(root)
        for result in aggregator.results():
            if result.path == root:
                return result
    return SizeResult(path=root)
