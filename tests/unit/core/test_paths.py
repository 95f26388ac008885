"""Unit tests for XDG path management."""

import os
from pathlib import Path
from unittest.mock import patch

from vacctl.core.paths import (
    APP_NAME,
    expand_tilde,
    get_config_dir,
    get_config_path,
    get_home_dir,
    get_theme_path,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()

        assert result == tmp_path / APP_NAME

    def test_empty_xdg_value_ignored(self) -> None:
        """An empty XDG_CONFIG_HOME falls back to the default."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": ""}):
            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME


class TestFilePaths:
    """Tests for file path helpers."""

    def test_config_path(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            assert get_config_path() == tmp_path / APP_NAME / "config.toml"

    def test_theme_path(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            assert get_theme_path() == tmp_path / APP_NAME / "theme.toml"

    def test_home_dir(self) -> None:
        assert get_home_dir() == Path.home()


class TestExpandTilde:
    """Tests for expand_tilde function."""

    def test_bare_tilde(self, tmp_path: Path) -> None:
        assert expand_tilde("~", tmp_path) == tmp_path

    def test_tilde_prefix(self, tmp_path: Path) -> None:
        assert expand_tilde("~/Projects/build", tmp_path) == tmp_path / "Projects" / "build"

    def test_absolute_path_untouched(self, tmp_path: Path) -> None:
        assert expand_tilde("/var/tmp", tmp_path) == Path("/var/tmp")

    def test_user_form_untouched(self, tmp_path: Path) -> None:
        """~user forms are not expanded."""
        assert expand_tilde("~other/cache", tmp_path) == Path("~other/cache")

    def test_defaults_to_current_home(self) -> None:
        assert expand_tilde("~/x") == Path.home() / "x"
