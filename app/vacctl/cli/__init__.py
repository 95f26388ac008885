"""CLI package for vacctl.

This package contains the Typer application and all subcommands.
"""

from vacctl.cli.main import app

__all__ = ["app"]
