"""User configuration.

Configuration is stored in ~/.config/vacctl/config.toml::

    [scan]
    extra_targets = ["~/Projects/build-cache"]
    max_workers = 4

    [safety]
    move_to_trash = false
    extra_allowed_roots = []

    [removal]
    whole = ["trash"]
    default = "contents"

    [ui]
    default_sort = "size"

A missing file is not an error; every setting has a default.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vacctl.core.paths import expand_tilde, get_config_path
from vacctl.errors import ConfigError, ConfigParseError
from vacctl.scanner.models import ItemCategory

logger = logging.getLogger(__name__)

SortKey = Literal["name", "size", "time"]
RemovalDefault = Literal["contents", "whole"]


class ScanConfig(BaseModel):
    """Settings for the scan engine.

    Attributes:
        extra_targets: Additional root targets, ``~`` is expanded.
        max_workers: Size-aggregation threads per scan. None picks a default.
    """

    model_config = ConfigDict(extra="forbid")

    extra_targets: list[str] = Field(default_factory=list)
    max_workers: Annotated[
        int | None,
        Field(ge=1, le=64, description="Worker threads per scan (1-64)"),
    ] = None


class SafetyConfig(BaseModel):
    """Settings for the deletion safety policy."""

    model_config = ConfigDict(extra="forbid")

    move_to_trash: bool = False
    extra_allowed_roots: list[str] = Field(default_factory=list)


class RemovalConfig(BaseModel):
    """Directory removal policy.

    Attributes:
        whole: Categories whose directories are removed together with
            their contents.
        default: Policy for every other category.
    """

    model_config = ConfigDict(extra="forbid")

    whole: list[ItemCategory] = Field(default_factory=list)
    default: RemovalDefault = "contents"


class UiConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_sort: SortKey | None = None


class AppConfig(BaseModel):
    """Complete vacctl configuration."""

    model_config = ConfigDict(extra="forbid")

    scan: ScanConfig = Field(default_factory=ScanConfig)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    removal: RemovalConfig = Field(default_factory=RemovalConfig)
    ui: UiConfig = Field(default_factory=UiConfig)

    def expanded_extra_targets(self, home: Path | None = None) -> list[Path]:
        """Return ``scan.extra_targets`` with ``~`` expanded."""
        return [expand_tilde(raw, home) for raw in self.scan.extra_targets]

    def expanded_allowed_roots(self, home: Path | None = None) -> list[Path]:
        """Return ``safety.extra_allowed_roots`` with ``~`` expanded."""
        return [expand_tilde(raw, home) for raw in self.safety.extra_allowed_roots]


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated AppConfig. Defaults if the file does not exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML syntax in {config_path}: {e}"
        raise ConfigParseError(msg) from e
    except OSError as e:
        msg = f"Failed to read config: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config content in {config_path}: {e}"
        raise ConfigError(msg) from e


def save_config(config: AppConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace().

    Args:
        config: The AppConfig to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = config.model_dump(mode="json", exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        msg = f"Failed to write config: {e}"
        raise ConfigError(msg) from e

    return config_path
