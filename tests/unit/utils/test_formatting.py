"""Unit tests for size and time formatting."""

from datetime import datetime

import pytest
from vacctl.utils.formatting import format_size, format_time, size_style


class TestFormatSize:
    """Tests for format_size function."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 B"),
            (512, "512 B"),
            (1023, "1023 B"),
            (1024, "1.0 KiB"),
            (1536, "1.5 KiB"),
            (5 * 1024**2, "5.0 MiB"),
            (3 * 1024**3 // 2, "1.5 GiB"),
        ],
    )
    def test_formats(self, size: int, expected: str) -> None:
        assert format_size(size) == expected

    def test_unknown_size(self) -> None:
        assert format_size(None) == "-"

    def test_huge_size_uses_largest_unit(self) -> None:
        assert format_size(2 * 1024**6).endswith("PiB")


class TestFormatTime:
    """Tests for format_time function."""

    def test_date_only(self) -> None:
        assert format_time(datetime(2024, 3, 5, 14, 7, 9)) == "2024-03-05"

    def test_with_time(self) -> None:
        moment = datetime(2024, 3, 5, 14, 7, 9)
        assert format_time(moment, include_time=True) == "2024-03-05 14:07:09"

    def test_unknown_time(self) -> None:
        assert format_time(None) == "-"


class TestSizeStyle:
    """Tests for size_style function."""

    @pytest.mark.parametrize(
        ("size", "style"),
        [
            (None, "muted"),
            (10, "size.small"),
            (200 * 1024**2, "size.medium"),
            (2 * 1024**3, "size.large"),
        ],
    )
    def test_thresholds(self, size: int | None, style: str) -> None:
        assert size_style(size) == style
