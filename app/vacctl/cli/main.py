"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from vacctl import __version__
from vacctl.cli.commands import clean, config, scan
from vacctl.utils.formatting import err_console

app = typer.Typer(
    name="vacctl",
    help="Find and clean caches, logs and other reclaimable files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"vacctl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route vacctl's loggers to stderr through Rich.

    Args:
        verbose: Log at DEBUG level.
        quiet: Only log errors. Ignored when ``verbose`` is set.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger("vacctl")
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates across invocations
    if logger.handlers:
        logger.handlers.clear()

    handler = RichHandler(console=err_console, show_time=False, show_path=verbose)
    handler.setLevel(level)
    logger.addHandler(handler)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log errors.",
        ),
    ] = False,
) -> None:
    """vacctl - Find and clean caches, logs and other reclaimable files.

    Scan the well-known cleanup locations or any directory, review what
    they hold, and clear them safely.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


# Register commands
app.command(name="scan")(scan.scan)
app.command(name="clean")(clean.clean)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
