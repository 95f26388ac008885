"""XDG-compliant path management for vacctl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration storage, plus the user home
resolver shared by the scanner and the safety validator.

XDG defaults:
- Config: ~/.config/vacctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "vacctl"


def get_home_dir() -> Path:
    """Get the current user's home directory.

    Returns:
        Absolute path to the home directory.
    """
    return Path.home()


def expand_tilde(raw_path: str, home: Path | None = None) -> Path:
    """Expand a leading ``~`` to the user's home directory.

    Only a bare ``~`` or a ``~/`` prefix is expanded; ``~user`` forms are
    left untouched.

    Args:
        raw_path: Path string as written by the user.
        home: Home directory to expand to. Defaults to the current user's.

    Returns:
        The expanded path.
    """
    if raw_path == "~" or raw_path.startswith("~/"):
        base = home if home is not None else get_home_dir()
        return base / raw_path[2:] if raw_path != "~" else base
    return Path(raw_path)


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return get_home_dir() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/vacctl/ (or XDG_CONFIG_HOME/vacctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/vacctl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/vacctl/theme.toml.
    """
    return get_config_dir() / "theme.toml"
