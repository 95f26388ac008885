"""Configuration commands.

Shows, initializes and locates the vacctl configuration file.
"""

from typing import Annotated

import tomli_w
import typer

from vacctl.cli.types import get_config
from vacctl.config import AppConfig, save_config
from vacctl.core.paths import get_config_path
from vacctl.errors import ConfigError
from vacctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and manage the vacctl configuration.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    config = get_config()
    config_path = get_config_path()
    source = str(config_path) if config_path.exists() else "defaults"
    console.print(f"[muted]# source: {source}[/muted]")
    console.print(
        tomli_w.dumps(config.model_dump(mode="json", exclude_none=True)),
        markup=False,
        highlight=False,
    )


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with the default settings."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_info(f"Config already exists: {config_path} (use --force to overwrite)")
        return

    try:
        saved = save_config(AppConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")


@app.command()
def path() -> None:
    """Print the config file location."""
    typer.echo(str(get_config_path()))
