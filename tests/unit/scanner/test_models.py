"""Unit tests for scanner domain models."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from vacctl.scanner.models import (
    CleanableEntry,
    DiskScanTarget,
    EntryKind,
    ItemCategory,
    ListDirTarget,
    RootTarget,
    ScanKind,
)


class TestItemCategory:
    """Tests for ItemCategory."""

    @pytest.mark.parametrize("category", list(ItemCategory))
    def test_every_category_has_label_and_description(self, category: ItemCategory) -> None:
        """Every category renders for display."""
        assert category.label
        assert category.description

    def test_values_are_stable_identifiers(self) -> None:
        """Values are the identifiers used in config files."""
        assert ItemCategory("pip_cache") is ItemCategory.PIP_CACHE
        assert ItemCategory.SYSTEM_CACHE.value == "system_cache"


class TestScanTargets:
    """Tests for the scan target variants."""

    def test_root_target_kind_and_description(self) -> None:
        """RootTarget describes itself as the preset."""
        assert RootTarget().kind == ScanKind.ROOT
        assert RootTarget().describe() == "preset"

    def test_root_target_with_categories(self) -> None:
        """Category filters appear sorted in the description."""
        target = RootTarget(frozenset({ItemCategory.TRASH, ItemCategory.LOGS}))
        assert target.describe() == "preset:logs,trash"

    def test_path_targets(self, tmp_path: Path) -> None:
        """Path targets describe themselves by path."""
        assert ListDirTarget(tmp_path).kind == ScanKind.LIST_DIR
        assert DiskScanTarget(tmp_path).kind == ScanKind.DISK_SCAN
        assert DiskScanTarget(tmp_path).describe() == str(tmp_path)

    def test_targets_are_hashable(self, tmp_path: Path) -> None:
        """Targets can be used as dict keys."""
        assert len({ListDirTarget(tmp_path), ListDirTarget(tmp_path)}) == 1


class TestCleanableEntry:
    """Tests for CleanableEntry."""

    def test_is_dir(self, tmp_path: Path) -> None:
        """is_dir reflects the entry kind."""
        assert CleanableEntry(tmp_path, "x", EntryKind.DIRECTORY).is_dir is True
        assert CleanableEntry(tmp_path, "x", EntryKind.FILE).is_dir is False

    def test_size_defaults_to_unknown(self, tmp_path: Path) -> None:
        """Size is None until computed."""
        assert CleanableEntry(tmp_path, "x", EntryKind.DIRECTORY).size_bytes is None

    def test_to_dict(self) -> None:
        """to_dict serializes enums and timestamps."""
        entry = CleanableEntry(
            path=Path("/tmp/cache"),
            name="cache",
            kind=EntryKind.DIRECTORY,
            size_bytes=42,
            modified_at=datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
            category=ItemCategory.TEMP,
        )

        data = entry.to_dict()

        assert data == {
            "path": "/tmp/cache",
            "name": "cache",
            "kind": "directory",
            "size_bytes": 42,
            "modified_at": "2024-01-15T10:00:00+00:00",
            "category": "temp",
        }

    def test_to_dict_with_missing_fields(self) -> None:
        """Unknown size, time and category serialize as None."""
        data = CleanableEntry(Path("/tmp/x"), "x", EntryKind.FILE).to_dict()

        assert data["size_bytes"] is None
        assert data["modified_at"] is None
        assert data["category"] is None
