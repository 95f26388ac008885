"""CLI commands for vacctl.

This package contains all subcommand implementations.
"""

from vacctl.cli.commands import clean, config, scan

__all__ = ["clean", "config", "scan"]
