"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest


def _write(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Directory with three files (10, 20, 30 bytes) and a subdirectory holding 5 bytes."""
    root = tmp_path / "sample"
    _write(root / "a.txt", 10)
    _write(root / "b.log", 20)
    _write(root / "c.bin", 30)
    _write(root / "sub" / "d.txt", 5)
    return root


@pytest.fixture
def deep_tree(tmp_path: Path) -> Path:
    """Directory with several nested subtrees totalling 1000 bytes."""
    root = tmp_path / "deep"
    _write(root / "top.dat", 100)
    for i in range(3):
        _write(root / f"branch{i}" / "leaf.dat", 100)
        _write(root / f"branch{i}" / "nested" / "more" / "leaf.dat", 200)
    return root


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Empty stand-in for the user's home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home
