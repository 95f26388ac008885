"""Scan orchestration.

``ScanEngine.start_scan`` runs a traversal on a background thread and
returns a ``ScanStream`` the caller polls without blocking. Each scan
is tied to a ``ScanSession``; starting another scan or calling
``cancel`` supersedes it. Producers check the session before every
emission and stop silently once superseded, and the stream drops any
message that is no longer current.

Per generation the stream guarantees:
- an entry message for a path precedes the ``DirEntrySize`` for it,
- at most one ``Done``, and nothing after it.
"""

import logging
import os
import queue
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from vacctl.errors import ScanCancelled
from vacctl.scanner.aggregator import SizeAggregator
from vacctl.scanner.classifier import PathClassifier, ResolvedTarget
from vacctl.scanner.models import (
    CleanableEntry,
    DirEntry,
    DirEntrySize,
    DiskScanTarget,
    Done,
    EntryKind,
    Error,
    ListDirTarget,
    Progress,
    RootItem,
    RootTarget,
    ScanError,
    ScanKind,
    ScanMessage,
    ScanSummary,
    ScanTarget,
)
from vacctl.scanner.session import GenerationCounter, ScanSession

logger = logging.getLogger(__name__)


class _Closed:
    """Sentinel queued when a producer thread exits."""


_CLOSED = _Closed()


class ScanStream:
    """Receiving end of one scan.

    Messages from superseded generations are discarded here. Once the
    session is cancelled, or ``Done`` has been received, the stream is
    finished and every receive returns None.

    Args:
        session: Session whose messages this stream delivers.
    """

    def __init__(self, session: ScanSession) -> None:
        self._session = session
        self._queue: queue.Queue[ScanMessage | _Closed] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._finished = False

    @property
    def session(self) -> ScanSession:
        return self._session

    @property
    def finished(self) -> bool:
        """True once no further messages will be delivered."""
        if self._session.cancelled:
            self._finished = True
        return self._finished

    def try_receive(self) -> ScanMessage | None:
        """Return the next current message without blocking, or None."""
        while not self.finished:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return None
            message = self._accept(item)
            if message is not None:
                return message
        return None

    def receive(self, timeout: float | None = None) -> ScanMessage | None:
        """Block until the next current message arrives.

        Args:
            timeout: Seconds to wait. None waits until the stream finishes.

        Returns:
            The next message, or None on timeout or when the stream finished.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self.finished:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                # Bounded waits so a cancel is observed even if the producer is slow.
                item = self._queue.get(timeout=0.1 if remaining is None else min(remaining, 0.1))
            except queue.Empty:
                if deadline is not None and time.monotonic() >= deadline:
                    return None
                continue
            message = self._accept(item)
            if message is not None:
                return message
        return None

    def __iter__(self) -> Iterator[ScanMessage]:
        while True:
            message = self.receive()
            if message is None:
                return
            yield message

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the producer thread to exit.

        Returns:
            True if the producer has exited.
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _attach(self, thread: threading.Thread) -> None:
        self._thread = thread

    def _put(self, item: ScanMessage | _Closed) -> None:
        self._queue.put(item)

    def _accept(self, item: ScanMessage | _Closed) -> ScanMessage | None:
        if isinstance(item, _Closed):
            self._finished = True
            return None
        if item.generation != self._session.generation or self._session.cancelled:
            logger.debug("Dropping stale message of generation %d", item.generation)
            return None
        if isinstance(item, Done):
            self._finished = True
        return item


class _Emitter:
    """Producer side of a stream: checks the session and keeps the tallies.

    Only the scan thread emits, so the counters need no locking.
    """

    def __init__(self, session: ScanSession, stream: ScanStream) -> None:
        self._session = session
        self._stream = stream
        self._started = time.monotonic()
        self.entries = 0
        self.files = 0
        self.directories = 0
        self.total_bytes = 0
        self.errors = 0

    @property
    def session(self) -> ScanSession:
        return self._session

    @property
    def generation(self) -> int:
        return self._session.generation

    def _emit(self, message: ScanMessage) -> None:
        self._session.checkpoint()
        self._stream._put(message)

    def progress(self, path: Path, count: int) -> None:
        self._emit(Progress(self.generation, path, count))

    def entry(self, entry: CleanableEntry, *, root: bool) -> None:
        message: ScanMessage = (
            RootItem(self.generation, entry) if root else DirEntry(self.generation, entry)
        )
        self._emit(message)
        self.entries += 1
        if entry.kind == EntryKind.DIRECTORY:
            self.directories += 1
        else:
            self.files += 1
        if entry.size_bytes is not None:
            self.total_bytes += entry.size_bytes

    def size(self, path: Path, size_bytes: int) -> None:
        self._emit(DirEntrySize(self.generation, path, size_bytes))
        self.total_bytes += size_bytes

    def error(self, path: Path, reason: str) -> None:
        self._emit(Error(self.generation, path, reason))
        self.errors += 1

    def scan_errors(self, errors: Sequence[ScanError]) -> None:
        for err in errors:
            self.error(err.path, err.reason)

    def close(self) -> None:
        """Tell the receiver no further messages will follow."""
        self._stream._put(_CLOSED)

    def done(self, kind: ScanKind, target: str) -> None:
        summary = ScanSummary(
            kind=kind,
            target=target,
            entries=self.entries,
            files=self.files,
            directories=self.directories,
            total_bytes=self.total_bytes,
            errors=self.errors,
            elapsed_seconds=time.monotonic() - self._started,
        )
        self._emit(Done(self.generation, summary))


class ScanEngine:
    """Runs scans off the caller's thread and owns generation bookkeeping.

    Args:
        classifier: Resolver for root targets and entry categories.
        max_workers: Upper bound on size-aggregation threads per scan.
    """

    def __init__(
        self,
        classifier: PathClassifier | None = None,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._classifier = classifier or PathClassifier()
        self._max_workers = max_workers
        self._counter = GenerationCounter()

    @property
    def classifier(self) -> PathClassifier:
        return self._classifier

    @property
    def current_generation(self) -> int:
        return self._counter.current

    def new_session(self) -> ScanSession:
        """Create a session, superseding whichever one is current."""
        return ScanSession(generation=self._counter.advance(), counter=self._counter)

    def cancel(self, session: ScanSession) -> bool:
        """Supersede ``session`` if it is still the current one.

        Returns:
            True if the session was current and is now cancelled.
        """
        cancelled = self._counter.advance_if(session.generation)
        if cancelled:
            logger.debug("Cancelled scan generation %d", session.generation)
        return cancelled

    def start_scan(self, target: ScanTarget, session: ScanSession | None = None) -> ScanStream:
        """Start scanning ``target`` on a background thread.

        Args:
            target: What to scan.
            session: Session to run under. A new one is created when omitted.

        Returns:
            Stream delivering the scan's messages.
        """
        if session is None:
            session = self.new_session()
        stream = ScanStream(session)
        thread = threading.Thread(
            target=self._run,
            args=(target, _Emitter(session, stream)),
            name=f"vacctl-scan-{session.generation}",
            daemon=True,
        )
        stream._attach(thread)
        thread.start()
        return stream

    def _run(self, target: ScanTarget, emitter: _Emitter) -> None:
        """Thread body: dispatch on the target variant."""
        try:
            if isinstance(target, RootTarget):
                self._scan_root(target, emitter)
            elif isinstance(target, ListDirTarget):
                self._scan_listing(target.path, emitter, kind=ScanKind.LIST_DIR)
            elif isinstance(target, DiskScanTarget):
                self._scan_disk(target.path, emitter)
            else:
                msg = f"Unsupported scan target: {target!r}"
                raise TypeError(msg)
        except ScanCancelled:
            logger.debug("Scan generation %d stopped after cancellation", emitter.generation)
        except Exception as e:
            logger.exception("Scan generation %d failed", emitter.generation)
            self._report_failure(target, emitter, e)
        finally:
            emitter.close()

    @staticmethod
    def _report_failure(target: ScanTarget, emitter: _Emitter, error: Exception) -> None:
        """Tell the receiver the scan aborted; no ``Done`` follows."""
        path = Path(target.describe()) if isinstance(target, RootTarget) else target.path
        try:
            emitter.error(path, f"scan failed: {error}")
        except ScanCancelled:
            logger.debug("Scan generation %d cancelled before failure report", emitter.generation)

    # === Root mode ===

    def _scan_root(self, target: RootTarget, emitter: _Emitter) -> None:
        """Enumerate the policy roots in order, sizing them in the background."""
        emitter.session.checkpoint()
        roots = self._classifier.resolve(target.categories)
        root_paths = {root.path for root in roots}
        seen: set[Path] = set()

        with SizeAggregator(emitter.session, max_workers=self._max_workers) as aggregator:
            for index, root in enumerate(roots):
                emitter.progress(root.path, index)
                if root.path in seen:
                    continue
                seen.add(root.path)

                entry = self._root_entry(root, emitter)
                if entry is None:
                    continue
                emitter.entry(entry, root=True)
                if entry.kind == EntryKind.DIRECTORY:
                    # Nested roots are sized on their own
                    nested = [p for p in root_paths if entry.path in p.parents]
                    aggregator.submit(entry.path, exclude=nested)

            for result in aggregator.results():
                emitter.scan_errors(result.errors)
                emitter.size(result.path, result.total_bytes)

        emitter.done(ScanKind.ROOT, target.describe())

    def _root_entry(self, root: ResolvedTarget, emitter: _Emitter) -> CleanableEntry | None:
        """Build the entry for a policy root, or None if it must be skipped."""
        try:
            stat = root.path.stat()
        except FileNotFoundError:
            if root.extra:
                logger.warning("Configured scan target does not exist: %s", root.path)
                emitter.error(root.path, "configured target does not exist")
            else:
                logger.debug("Skipping missing location: %s", root.path)
            return None
        except OSError as e:
            logger.warning("Cannot access scan target %s: %s", root.path, e)
            emitter.error(root.path, e.strerror or str(e))
            return None

        is_dir = root.path.is_dir()
        if is_dir and not os.access(root.path, os.R_OK | os.X_OK):
            logger.warning("Scan target is not readable: %s", root.path)
            emitter.error(root.path, "permission denied")
            return None

        return CleanableEntry(
            path=root.path,
            name=root.path.name if root.extra else root.category.label,
            kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
            size_bytes=None if is_dir else stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            category=root.category,
        )

    # === Listing modes ===

    def _scan_disk(self, path: Path, emitter: _Emitter) -> None:
        """Validate an arbitrary path, then list it as a new root."""
        emitter.session.checkpoint()
        problem: str | None = None
        if not path.exists():
            problem = "path does not exist"
        elif not path.is_dir():
            problem = "not a directory"
        elif not os.access(path, os.R_OK | os.X_OK):
            problem = "permission denied"

        if problem is not None:
            logger.warning("Cannot scan %s: %s", path, problem)
            emitter.error(path, problem)
            emitter.done(ScanKind.DISK_SCAN, str(path))
            return

        emitter.progress(path, 0)
        self._scan_listing(path, emitter, kind=ScanKind.DISK_SCAN)

    def _scan_listing(self, directory: Path, emitter: _Emitter, *, kind: ScanKind) -> None:
        """List the immediate children of ``directory``.

        Files carry their size; directories are sized in the background.
        Disk scans report children as root items and emit per-entry progress.
        """
        emitter.session.checkpoint()
        as_root = kind == ScanKind.DISK_SCAN
        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda child: child.name)
        except OSError as e:
            logger.warning("Cannot read directory %s: %s", directory, e)
            emitter.error(directory, e.strerror or str(e))
            emitter.done(kind, str(directory))
            return

        roots = self._classifier.resolve()

        with SizeAggregator(emitter.session, max_workers=self._max_workers) as aggregator:
            for index, child in enumerate(children):
                child_path = Path(child.path)
                if as_root:
                    emitter.progress(child_path, index)
                entry = self._child_entry(child, roots, emitter)
                if entry is None:
                    continue
                emitter.entry(entry, root=as_root)
                if entry.kind == EntryKind.DIRECTORY:
                    aggregator.submit(entry.path)

            for result in aggregator.results():
                emitter.scan_errors(result.errors)
                emitter.size(result.path, result.total_bytes)

        emitter.done(kind, str(directory))

    def _child_entry(
        self,
        child: os.DirEntry[str],
        roots: Sequence[ResolvedTarget],
        emitter: _Emitter,
    ) -> CleanableEntry | None:
        """Build the entry for a listed child, or None if it is skipped."""
        path = Path(child.path)
        try:
            if child.is_symlink():
                logger.debug("Not following symlink: %s", path)
                return None
            if child.is_dir(follow_symlinks=False):
                kind = EntryKind.DIRECTORY
            elif child.is_file(follow_symlinks=False):
                kind = EntryKind.FILE
            else:
                return None
            stat = child.stat(follow_symlinks=False)
        except OSError as e:
            emitter.error(path, e.strerror or str(e))
            return None

        return CleanableEntry(
            path=path,
            name=child.name,
            kind=kind,
            size_bytes=stat.st_size if kind == EntryKind.FILE else None,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            category=self._classifier.classify(path, roots),
        )


@dataclass(slots=True)
class ScanCollection:
    """Everything a blocking caller gathered from one stream.

    Attributes:
        entries: Entries in emission order, sizes backfilled.
        errors: Error messages received.
        summary: Summary from ``Done``, None if the scan did not complete.
    """

    entries: list[CleanableEntry] = field(default_factory=list)
    errors: list[Error] = field(default_factory=list)
    summary: ScanSummary | None = None

    @property
    def completed(self) -> bool:
        return self.summary is not None

    @property
    def total_bytes(self) -> int:
        return sum(e.size_bytes or 0 for e in self.entries)


def collect_scan(
    stream: ScanStream,
    on_progress: Callable[[Progress], None] | None = None,
) -> ScanCollection:
    """Drain a stream, backfilling directory sizes by exact path.

    Args:
        stream: Stream to drain.
        on_progress: Optional callable receiving each ``Progress`` message.

    Returns:
        The collected entries, errors and summary.
    """
    collection = ScanCollection()
    by_path: dict[Path, CleanableEntry] = {}

    for message in stream:
        if isinstance(message, RootItem | DirEntry):
            collection.entries.append(message.entry)
            by_path[message.entry.path] = message.entry
        elif isinstance(message, DirEntrySize):
            target = by_path.get(message.path)
            if target is not None:
                target.size_bytes = message.size_bytes
        elif isinstance(message, Error):
            collection.errors.append(message)
        elif isinstance(message, Progress):
            if on_progress is not None:
                on_progress(message)
        elif isinstance(message, Done):
            collection.summary = message.summary

    stream.wait()
    return collection
