"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich, plus the
human-readable size and time renderings shared by reports and tables.
"""

import sys
from datetime import datetime

from rich.console import Console

from vacctl.core.theme import get_theme

_SIZE_UNITS: tuple[str, ...] = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")

# Thresholds for size coloring in tables
_LARGE_BYTES = 1024**3
_MEDIUM_BYTES = 100 * 1024**2


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int | None) -> str:
    """Format a byte count using binary units.

    Args:
        size_bytes: Number of bytes, or None when unknown.

    Returns:
        Strings such as "0 B", "512 B", "1.5 KiB" or "-" for unknown sizes.
    """
    if size_bytes is None:
        return "-"
    value = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if abs(value) < 1024:
            return f"{int(value)} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_SIZE_UNITS[-1]}"


def format_time(moment: datetime | None, include_time: bool = False) -> str:
    """Format a timestamp for display.

    Args:
        moment: Timestamp to format, or None when unknown.
        include_time: Append the wall-clock time to the date.

    Returns:
        ``YYYY-MM-DD`` or ``YYYY-MM-DD HH:MM:SS``, or "-" for unknown times.
    """
    if moment is None:
        return "-"
    if include_time:
        return moment.strftime("%Y-%m-%d %H:%M:%S")
    return moment.strftime("%Y-%m-%d")


def size_style(size_bytes: int | None) -> str:
    """Pick a theme style for a byte count."""
    if size_bytes is None:
        return "muted"
    if size_bytes >= _LARGE_BYTES:
        return "size.large"
    if size_bytes >= _MEDIUM_BYTES:
        return "size.medium"
    return "size.small"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
