"""Resolution of abstract scan targets into concrete root paths.

The policy table below lists the well-known cleanup locations per
platform in display order. Locations flagged ``conditional`` are only
offered when they exist (optional tooling such as Xcode or Cargo); the
others are always offered and left to the scanner to skip when missing.
"""

import logging
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from vacctl.core.paths import get_home_dir
from vacctl.scanner.models import ItemCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CategoryLocation:
    """One entry of the cleanup policy table.

    Attributes:
        category: Category label for the location.
        path: Absolute path, or a path relative to the home directory.
        conditional: Only offer the location when it exists.
    """

    category: ItemCategory
    path: str
    conditional: bool = False


@dataclass(frozen=True, slots=True)
class ResolvedTarget:
    """A concrete root path to scan.

    Attributes:
        category: Category label for the root.
        path: Absolute path of the root.
        extra: True for targets supplied by configuration.
    """

    category: ItemCategory
    path: Path
    extra: bool = False


_DARWIN_LOCATIONS: tuple[CategoryLocation, ...] = (
    CategoryLocation(ItemCategory.SYSTEM_CACHE, "Library/Caches"),
    CategoryLocation(ItemCategory.LOGS, "Library/Logs"),
    CategoryLocation(ItemCategory.TEMP, "/tmp"),
    CategoryLocation(ItemCategory.TEMP, "/var/tmp"),
    CategoryLocation(ItemCategory.DOWNLOADS, "Downloads"),
    CategoryLocation(ItemCategory.TRASH, ".Trash"),
    CategoryLocation(
        ItemCategory.XCODE_DERIVED_DATA, "Library/Developer/Xcode/DerivedData", conditional=True
    ),
    CategoryLocation(ItemCategory.HOMEBREW_CACHE, "Library/Caches/Homebrew", conditional=True),
    CategoryLocation(ItemCategory.COCOAPODS, "Library/Caches/CocoaPods", conditional=True),
    CategoryLocation(ItemCategory.NPM_CACHE, ".npm/_cacache", conditional=True),
    CategoryLocation(ItemCategory.PIP_CACHE, "Library/Caches/pip", conditional=True),
    CategoryLocation(
        ItemCategory.DOCKER_DATA, "Library/Containers/com.docker.docker/Data", conditional=True
    ),
    CategoryLocation(ItemCategory.CARGO_CACHE, ".cargo/registry/cache", conditional=True),
)

_LINUX_LOCATIONS: tuple[CategoryLocation, ...] = (
    CategoryLocation(ItemCategory.SYSTEM_CACHE, ".cache"),
    CategoryLocation(ItemCategory.LOGS, ".local/share/xorg", conditional=True),
    CategoryLocation(ItemCategory.TEMP, "/tmp"),
    CategoryLocation(ItemCategory.TEMP, "/var/tmp"),
    CategoryLocation(ItemCategory.DOWNLOADS, "Downloads"),
    CategoryLocation(ItemCategory.TRASH, ".local/share/Trash"),
    CategoryLocation(ItemCategory.HOMEBREW_CACHE, ".cache/Homebrew", conditional=True),
    CategoryLocation(ItemCategory.NPM_CACHE, ".npm/_cacache", conditional=True),
    CategoryLocation(ItemCategory.PIP_CACHE, ".cache/pip", conditional=True),
    CategoryLocation(ItemCategory.CARGO_CACHE, ".cargo/registry/cache", conditional=True),
)


def locations_for_platform(platform: str) -> tuple[CategoryLocation, ...]:
    """Return the cleanup policy table for a ``sys.platform`` value."""
    if platform == "darwin":
        return _DARWIN_LOCATIONS
    return _LINUX_LOCATIONS


class PathClassifier:
    """Resolves scan targets into ordered ``(category, path)`` roots.

    Args:
        home: User home directory. Defaults to the current user's.
        extra_targets: Additional roots from configuration, already expanded.
        platform: Platform name selecting the policy table.
        locations: Explicit policy table, overriding the platform's.
    """

    def __init__(
        self,
        *,
        home: Path | None = None,
        extra_targets: Sequence[Path] = (),
        platform: str = sys.platform,
        locations: Sequence[CategoryLocation] | None = None,
    ) -> None:
        self._home = home if home is not None else get_home_dir()
        self._extra_targets = tuple(extra_targets)
        self._locations = tuple(locations) if locations is not None else locations_for_platform(
            platform
        )

    @property
    def home(self) -> Path:
        return self._home

    @property
    def extra_targets(self) -> tuple[Path, ...]:
        return self._extra_targets

    def resolve(self, categories: Iterable[ItemCategory] | None = None) -> list[ResolvedTarget]:
        """Resolve the policy table into concrete roots.

        Order follows the policy table, with extra targets appended last.
        Conditional locations that do not exist are dropped; extra targets
        are always returned so the scanner can report missing ones.

        Args:
            categories: Only return roots in these categories. None returns all.

        Returns:
            Ordered list of resolved targets.
        """
        wanted = frozenset(categories) if categories is not None else None
        targets: list[ResolvedTarget] = []

        for location in self._locations:
            if wanted is not None and location.category not in wanted:
                continue
            path = self._absolute(location.path)
            if location.conditional and not path.exists():
                logger.debug("Skipping absent optional location: %s", path)
                continue
            targets.append(ResolvedTarget(category=location.category, path=path))

        if wanted is None or ItemCategory.CUSTOM in wanted:
            targets.extend(
                ResolvedTarget(category=ItemCategory.CUSTOM, path=path, extra=True)
                for path in self._extra_targets
            )

        return targets

    def classify(
        self, path: Path, roots: Sequence[ResolvedTarget] | None = None
    ) -> ItemCategory | None:
        """Return the category of the innermost root containing ``path``.

        Args:
            path: Absolute path of an entry.
            roots: Previously resolved roots, to avoid re-resolving per entry.

        Returns:
            The category, or None if no root contains the path.
        """
        best: ResolvedTarget | None = None
        for target in roots if roots is not None else self.resolve():
            if path == target.path or target.path in path.parents:
                if best is None or len(target.path.parts) > len(best.path.parts):
                    best = target
        return best.category if best else None

    def _absolute(self, raw: str) -> Path:
        """Anchor a policy path at the home directory unless already absolute."""
        candidate = Path(raw)
        if candidate.is_absolute():
            return candidate
        return self._home / candidate
