"""Utility modules for vacctl.

This module exports commonly used utility functions.
"""

from vacctl.utils.formatting import (
    console,
    err_console,
    format_size,
    format_time,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "err_console",
    "format_size",
    "format_time",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
