"""Unit tests for the scan engine and its message stream."""

# pyright: reportPrivateUsage=false

from pathlib import Path
from unittest.mock import patch

import pytest
from vacctl.scanner.classifier import CategoryLocation, PathClassifier
from vacctl.scanner.engine import ScanEngine, ScanStream, collect_scan
from vacctl.scanner.models import (
    DirEntry,
    DirEntrySize,
    DiskScanTarget,
    Done,
    EntryKind,
    Error,
    ItemCategory,
    ListDirTarget,
    Progress,
    RootItem,
    RootTarget,
    ScanKind,
    ScanMessage,
    ScanSummary,
)
from vacctl.scanner.session import GenerationCounter, ScanSession


@pytest.fixture
def engine(home_dir: Path) -> ScanEngine:
    """Engine whose classifier knows a single cache root under the fake home."""
    classifier = PathClassifier(
        home=home_dir,
        locations=[CategoryLocation(ItemCategory.SYSTEM_CACHE, ".cache")],
    )
    return ScanEngine(classifier, max_workers=2)


def _drain(stream: ScanStream) -> list[ScanMessage]:
    messages = list(stream)
    assert stream.wait(timeout=10)
    return messages


class TestListDir:
    """Tests for directory listing scans."""

    def test_lists_immediate_children_only(self, engine: ScanEngine, sample_tree: Path) -> None:
        """Three files and one subdirectory are reported, nothing deeper."""
        collection = collect_scan(engine.start_scan(ListDirTarget(sample_tree)))

        names = [e.name for e in collection.entries]
        assert names == ["a.txt", "b.log", "c.bin", "sub"]
        assert {e.kind for e in collection.entries} == {EntryKind.FILE, EntryKind.DIRECTORY}
        assert [e.name for e in collection.entries if e.is_dir] == ["sub"]

    def test_subtree_total_is_65_bytes(self, engine: ScanEngine, sample_tree: Path) -> None:
        """File sizes arrive directly and the directory size is backfilled."""
        collection = collect_scan(engine.start_scan(ListDirTarget(sample_tree)))

        sizes = {e.name: e.size_bytes for e in collection.entries}
        assert sizes == {"a.txt": 10, "b.log": 20, "c.bin": 30, "sub": 5}
        assert collection.total_bytes == 65
        assert collection.summary is not None
        assert collection.summary.total_bytes == 65

    def test_directory_size_is_deferred(self, engine: ScanEngine, sample_tree: Path) -> None:
        """Directory entries are emitted without a size, then sized separately."""
        messages = _drain(engine.start_scan(ListDirTarget(sample_tree)))

        entries = [m for m in messages if isinstance(m, DirEntry)]
        sub = next(m.entry for m in entries if m.entry.name == "sub")
        assert sub.size_bytes is None
        sizes = [m for m in messages if isinstance(m, DirEntrySize)]
        assert [(m.path, m.size_bytes) for m in sizes] == [(sample_tree / "sub", 5)]

    def test_summary_counts(self, engine: ScanEngine, sample_tree: Path) -> None:
        """Done carries entry, file and directory counts."""
        summary = collect_scan(engine.start_scan(ListDirTarget(sample_tree))).summary

        assert summary is not None
        assert summary.kind == ScanKind.LIST_DIR
        assert summary.target == str(sample_tree)
        assert (summary.entries, summary.files, summary.directories) == (4, 3, 1)
        assert summary.errors == 0

    def test_symlinks_are_skipped(self, engine: ScanEngine, tmp_path: Path) -> None:
        """Symlinked children are not reported."""
        root = tmp_path / "root"
        root.mkdir()
        (root / "real.txt").write_bytes(b"x")
        (root / "link.txt").symlink_to(root / "real.txt")

        collection = collect_scan(engine.start_scan(ListDirTarget(root)))

        assert [e.name for e in collection.entries] == ["real.txt"]

    def test_entries_are_classified(self, engine: ScanEngine, home_dir: Path) -> None:
        """Children inside a policy root carry its category."""
        (home_dir / ".cache").mkdir()
        (home_dir / "notes.txt").write_text("hi")

        collection = collect_scan(engine.start_scan(ListDirTarget(home_dir)))

        categories = {e.name: e.category for e in collection.entries}
        assert categories == {".cache": ItemCategory.SYSTEM_CACHE, "notes.txt": None}

    def test_missing_directory_reports_error_then_done(
        self, engine: ScanEngine, tmp_path: Path
    ) -> None:
        """An unreadable target produces an Error followed by an empty Done."""
        missing = tmp_path / "missing"

        messages = _drain(engine.start_scan(ListDirTarget(missing)))

        assert isinstance(messages[0], Error)
        assert messages[0].path == missing
        assert isinstance(messages[-1], Done)
        assert messages[-1].summary.entries == 0
        assert messages[-1].summary.errors == 1


class TestStreamOrdering:
    """Tests for message ordering guarantees."""

    def test_entry_precedes_its_size_and_done_is_last(
        self, engine: ScanEngine, deep_tree: Path
    ) -> None:
        """Every size update follows its entry and Done is emitted exactly once, last."""
        messages = _drain(engine.start_scan(ListDirTarget(deep_tree)))

        seen: set[Path] = set()
        for message in messages:
            if isinstance(message, DirEntry | RootItem):
                seen.add(message.entry.path)
            elif isinstance(message, DirEntrySize):
                assert message.path in seen

        done = [m for m in messages if isinstance(m, Done)]
        assert len(done) == 1
        assert messages[-1] is done[0]

    def test_total_equals_direct_sizes_plus_updates(
        self, engine: ScanEngine, deep_tree: Path
    ) -> None:
        """The summary total is the sum of direct sizes and size updates."""
        messages = _drain(engine.start_scan(ListDirTarget(deep_tree)))

        direct = sum(
            m.entry.size_bytes or 0 for m in messages if isinstance(m, DirEntry | RootItem)
        )
        updates = sum(m.size_bytes for m in messages if isinstance(m, DirEntrySize))
        summary = next(m.summary for m in messages if isinstance(m, Done))

        assert summary.total_bytes == direct + updates == 1000

    def test_messages_carry_session_generation(self, engine: ScanEngine, sample_tree: Path) -> None:
        """All messages are tagged with the scan's generation."""
        stream = engine.start_scan(ListDirTarget(sample_tree))
        messages = _drain(stream)

        assert messages
        assert {m.generation for m in messages} == {stream.session.generation}


class TestDiskScan:
    """Tests for arbitrary-path scans."""

    def test_children_reported_as_root_items(self, engine: ScanEngine, sample_tree: Path) -> None:
        """A disk scan treats the path as a new root."""
        messages = _drain(engine.start_scan(DiskScanTarget(sample_tree)))

        roots = [m for m in messages if isinstance(m, RootItem)]
        assert [m.entry.name for m in roots] == ["a.txt", "b.log", "c.bin", "sub"]
        assert not any(isinstance(m, DirEntry) for m in messages)

    def test_progress_reported(self, engine: ScanEngine, sample_tree: Path) -> None:
        """Progress messages name the path being examined."""
        messages = _drain(engine.start_scan(DiskScanTarget(sample_tree)))

        progress = [m for m in messages if isinstance(m, Progress)]
        assert progress[0].path == sample_tree
        assert {m.path for m in progress[1:]} == {
            sample_tree / n for n in ("a.txt", "b.log", "c.bin", "sub")
        }

    def test_disk_scan_total(self, engine: ScanEngine, sample_tree: Path) -> None:
        """Disk scans size their directories like listings."""
        collection = collect_scan(engine.start_scan(DiskScanTarget(sample_tree)))

        assert collection.summary is not None
        assert collection.summary.kind == ScanKind.DISK_SCAN
        assert collection.summary.total_bytes == 65

    @pytest.mark.parametrize(
        ("name", "reason"),
        [("missing", "path does not exist"), ("a.txt", "not a directory")],
    )
    def test_invalid_path(
        self, engine: ScanEngine, sample_tree: Path, name: str, reason: str
    ) -> None:
        """Invalid paths yield an Error and an empty Done."""
        target = sample_tree / name

        messages = _drain(engine.start_scan(DiskScanTarget(target)))

        assert len(messages) == 2
        assert isinstance(messages[0], Error)
        assert messages[0].reason == reason
        assert isinstance(messages[1], Done)
        assert messages[1].summary.entries == 0


class TestRootScan:
    """Tests for preset root scans."""

    def test_root_item_then_size(self, home_dir: Path) -> None:
        """Roots are emitted immediately and sized afterwards."""
        cache = home_dir / ".cache"
        (cache / "app").mkdir(parents=True)
        (cache / "app" / "blob").write_bytes(b"x" * 123)
        engine = ScanEngine(
            PathClassifier(
                home=home_dir, locations=[CategoryLocation(ItemCategory.SYSTEM_CACHE, ".cache")]
            )
        )

        messages = _drain(engine.start_scan(RootTarget()))

        roots = [m for m in messages if isinstance(m, RootItem)]
        assert len(roots) == 1
        assert roots[0].entry.path == cache
        assert roots[0].entry.name == ItemCategory.SYSTEM_CACHE.label
        assert roots[0].entry.category == ItemCategory.SYSTEM_CACHE
        assert roots[0].entry.size_bytes is None
        sizes = [m for m in messages if isinstance(m, DirEntrySize)]
        assert [(m.path, m.size_bytes) for m in sizes] == [(cache, 123)]
        assert messages.index(roots[0]) < messages.index(sizes[0])

    def test_missing_builtin_location_skipped_silently(self, home_dir: Path) -> None:
        """Absent built-in locations produce neither entries nor errors."""
        engine = ScanEngine(
            PathClassifier(
                home=home_dir, locations=[CategoryLocation(ItemCategory.DOWNLOADS, "Downloads")]
            )
        )

        collection = collect_scan(engine.start_scan(RootTarget()))

        assert collection.entries == []
        assert collection.errors == []
        assert collection.completed

    def test_missing_extra_target_reported(self, home_dir: Path, tmp_path: Path) -> None:
        """A configured target that does not exist is reported and skipped."""
        present = tmp_path / "present"
        present.mkdir()
        (present / "f").write_bytes(b"x" * 9)
        missing = tmp_path / "missing"
        engine = ScanEngine(
            PathClassifier(home=home_dir, extra_targets=[missing, present], locations=[])
        )

        collection = collect_scan(engine.start_scan(RootTarget()))

        assert [e.path for e in collection.entries] == [present]
        assert collection.entries[0].category == ItemCategory.CUSTOM
        assert collection.entries[0].size_bytes == 9
        assert [e.path for e in collection.errors] == [missing]
        assert collection.errors[0].reason == "configured target does not exist"

    def test_category_filter(self, home_dir: Path) -> None:
        """Only roots of the requested categories are scanned."""
        (home_dir / ".cache").mkdir()
        (home_dir / "Downloads").mkdir()
        engine = ScanEngine(
            PathClassifier(
                home=home_dir,
                locations=[
                    CategoryLocation(ItemCategory.SYSTEM_CACHE, ".cache"),
                    CategoryLocation(ItemCategory.DOWNLOADS, "Downloads"),
                ],
            )
        )

        collection = collect_scan(
            engine.start_scan(RootTarget(frozenset({ItemCategory.DOWNLOADS})))
        )

        assert [e.category for e in collection.entries] == [ItemCategory.DOWNLOADS]

    def test_duplicate_roots_reported_once(self, home_dir: Path) -> None:
        """A path listed twice is scanned once."""
        (home_dir / ".cache").mkdir()
        engine = ScanEngine(
            PathClassifier(
                home=home_dir,
                extra_targets=[home_dir / ".cache"],
                locations=[CategoryLocation(ItemCategory.SYSTEM_CACHE, ".cache")],
            )
        )

        collection = collect_scan(engine.start_scan(RootTarget()))

        assert len(collection.entries) == 1

    def test_nested_roots_not_double_counted(self, home_dir: Path) -> None:
        """A root inside another root is sized only once, as itself."""
        cache = home_dir / ".cache"
        (cache / "pip").mkdir(parents=True)
        (cache / "a").write_bytes(b"x" * 10)
        (cache / "pip" / "w.whl").write_bytes(b"x" * 100)
        engine = ScanEngine(
            PathClassifier(
                home=home_dir,
                locations=[
                    CategoryLocation(ItemCategory.SYSTEM_CACHE, ".cache"),
                    CategoryLocation(ItemCategory.PIP_CACHE, ".cache/pip", conditional=True),
                ],
            )
        )

        collection = collect_scan(engine.start_scan(RootTarget()))

        sizes = {e.path: e.size_bytes for e in collection.entries}
        assert sizes == {cache: 10, cache / "pip": 100}
        assert collection.summary is not None
        assert collection.summary.total_bytes == 110

    def test_unexpected_failure_reported_before_close(self, engine: ScanEngine) -> None:
        """A crash in the scan thread surfaces as an Error and no Done follows."""
        with patch.object(PathClassifier, "resolve", side_effect=RuntimeError("boom")):
            collection = collect_scan(engine.start_scan(RootTarget()))

        assert len(collection.errors) == 1
        assert collection.errors[0].reason == "scan failed: boom"
        assert collection.completed is False


class TestCancellation:
    """Tests for generation-based cancellation."""

    def test_new_session_supersedes_previous(self, engine: ScanEngine) -> None:
        """Each new session advances the generation."""
        first = engine.new_session()
        second = engine.new_session()

        assert first.cancelled is True
        assert second.cancelled is False
        assert engine.current_generation == second.generation

    def test_cancel_only_affects_current_session(self, engine: ScanEngine) -> None:
        """Cancelling a stale session is a no-op."""
        first = engine.new_session()
        second = engine.new_session()

        assert engine.cancel(first) is False
        assert second.cancelled is False
        assert engine.cancel(second) is True
        assert second.cancelled is True

    def test_cancelled_before_start_emits_nothing(
        self, engine: ScanEngine, sample_tree: Path
    ) -> None:
        """A session cancelled up front never delivers a message."""
        session = engine.new_session()
        engine.cancel(session)

        stream = engine.start_scan(ListDirTarget(sample_tree), session)

        assert _drain(stream) == []
        assert stream.finished

    def test_no_messages_after_cancel(self, engine: ScanEngine, deep_tree: Path) -> None:
        """Once cancelled, the stream delivers nothing further and never a Done."""
        stream = engine.start_scan(ListDirTarget(deep_tree))
        engine.cancel(stream.session)

        assert stream.try_receive() is None
        assert stream.receive(timeout=0.5) is None
        assert list(stream) == []
        assert stream.wait(timeout=10)

    def test_starting_new_scan_silences_old_stream(
        self, engine: ScanEngine, sample_tree: Path, deep_tree: Path
    ) -> None:
        """A newer scan supersedes the older one."""
        old = engine.start_scan(ListDirTarget(deep_tree))
        new = engine.start_scan(ListDirTarget(sample_tree))

        assert _drain(old) == []
        collection = collect_scan(new)
        assert collection.completed
        assert collection.total_bytes == 65


class TestScanStream:
    """Tests for ScanStream receiving behavior."""

    def _stream(self) -> tuple[ScanStream, GenerationCounter]:
        counter = GenerationCounter()
        return ScanStream(ScanSession(counter.advance(), counter)), counter

    def test_try_receive_empty(self) -> None:
        """try_receive does not block on an empty queue."""
        stream, _ = self._stream()
        assert stream.try_receive() is None

    def test_stale_generation_dropped(self, tmp_path: Path) -> None:
        """Messages from another generation are discarded."""
        stream, _ = self._stream()
        stream._put(Progress(99, tmp_path, 0))
        stream._put(Progress(1, tmp_path, 1))

        message = stream.try_receive()

        assert isinstance(message, Progress)
        assert message.count == 1

    def test_done_finishes_stream(self, tmp_path: Path) -> None:
        """Nothing is delivered after Done."""
        stream, _ = self._stream()
        stream._put(Done(1, ScanSummary(kind=ScanKind.LIST_DIR, target="x")))
        stream._put(Progress(1, tmp_path, 0))

        assert isinstance(stream.receive(timeout=1), Done)
        assert stream.finished
        assert stream.try_receive() is None

    def test_receive_times_out(self) -> None:
        """receive returns None when nothing arrives in time."""
        stream, _ = self._stream()
        assert stream.receive(timeout=0.05) is None
        assert not stream.finished

    def test_cancel_finishes_stream(self, tmp_path: Path) -> None:
        """Queued messages are discarded once the session is cancelled."""
        stream, counter = self._stream()
        stream._put(Progress(1, tmp_path, 0))
        counter.advance()

        assert stream.try_receive() is None
        assert stream.finished

    def test_wait_without_thread(self) -> None:
        """A stream without a producer is trivially finished waiting."""
        stream, _ = self._stream()
        assert stream.wait() is True


class TestCollectScan:
    """Tests for collect_scan."""

    def test_progress_callback(self, engine: ScanEngine, sample_tree: Path) -> None:
        """Progress messages are forwarded to the callback."""
        seen: list[Progress] = []

        collect_scan(engine.start_scan(DiskScanTarget(sample_tree)), on_progress=seen.append)

        assert len(seen) == 5

    def test_incomplete_scan_has_no_summary(self, engine: ScanEngine, sample_tree: Path) -> None:
        """A cancelled scan collects without a summary."""
        session = engine.new_session()
        engine.cancel(session)

        collection = collect_scan(engine.start_scan(ListDirTarget(sample_tree), session))

        assert collection.completed is False
        assert collection.entries == []
