"""Shared types and helpers for CLI commands.

This module provides the option enums and the wiring from configuration
to engine, validator and executor used by more than one command.
"""

from enum import Enum
from pathlib import Path
from typing import cast

import typer

from vacctl.cleaner.executor import DeletionExecutor, RemovalPolicy
from vacctl.cleaner.safety import SafetyValidator
from vacctl.config import AppConfig, SortKey, load_config
from vacctl.core.paths import expand_tilde, get_home_dir
from vacctl.errors import ConfigError
from vacctl.scanner.classifier import PathClassifier
from vacctl.scanner.engine import ScanCollection, ScanEngine, collect_scan
from vacctl.scanner.models import DiskScanTarget, ItemCategory, Progress, RootTarget, ScanTarget
from vacctl.utils.formatting import err_console, print_error

PRESET_TARGET = "preset"
HOME_TARGET = "home"


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


class SortChoice(str, Enum):
    """Sort order options for entry listings."""

    NAME = "name"
    SIZE = "size"
    TIME = "time"


def resolve_sort(choice: SortChoice | None, config: AppConfig) -> SortKey:
    """Pick the sort order: explicit option, then config, then size."""
    if choice is not None:
        return cast(SortKey, choice.value)
    return config.ui.default_sort or "size"


def get_config() -> AppConfig:
    """Load the user configuration, exiting with an error if it is invalid."""
    try:
        return load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def parse_target(raw: str, categories: list[ItemCategory] | None = None) -> ScanTarget:
    """Turn a TARGET argument into a scan target.

    Args:
        raw: ``preset``, ``home`` or a path (``~`` is expanded).
        categories: Category filter for the preset target.

    Returns:
        The scan target.
    """
    if raw == PRESET_TARGET:
        return RootTarget(frozenset(categories) if categories else None)
    if raw == HOME_TARGET:
        return DiskScanTarget(get_home_dir())
    return DiskScanTarget(expand_tilde(raw).absolute())


def build_engine(config: AppConfig) -> ScanEngine:
    classifier = PathClassifier(extra_targets=config.expanded_extra_targets())
    return ScanEngine(classifier, max_workers=config.scan.max_workers)


def build_executor(config: AppConfig, target: ScanTarget) -> DeletionExecutor:
    """Create an executor whose allowed roots cover the scanned target.

    Args:
        config: User configuration.
        target: Target the selection was scanned from.

    Returns:
        Executor applying the configured removal policy.
    """
    extra_roots: list[Path] = [
        *config.expanded_allowed_roots(),
        *config.expanded_extra_targets(),
    ]
    if isinstance(target, DiskScanTarget):
        extra_roots.append(target.path)

    return DeletionExecutor(
        validator=SafetyValidator(extra_roots=extra_roots),
        policy=RemovalPolicy.from_config(config.removal.whole, config.removal.default),
    )


def run_scan(engine: ScanEngine, target: ScanTarget) -> ScanCollection:
    """Run a scan to completion while showing a status line on stderr."""
    with err_console.status(f"Scanning {target.describe()}...") as status:

        def on_progress(message: Progress) -> None:
            status.update(f"Scanning {message.path}")

        return collect_scan(engine.start_scan(target), on_progress=on_progress)
