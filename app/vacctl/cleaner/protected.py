"""Protected paths that must never be deleted.

This module defines path patterns for credentials, keyrings and
vacctl's own configuration. A selected path matching any pattern is
rejected even when it lies inside an allowed root, and a directory
holding one is never removed as a whole.
"""

import fnmatch
from pathlib import Path

# Glob-style patterns. A leading ~ is expanded to the home directory
# before matching.
PROTECTED_PATH_PATTERNS: tuple[str, ...] = (
    # Security
    "~/.ssh",
    "~/.ssh/*",
    "~/.gnupg",
    "~/.gnupg/*",
    "~/.password-store",
    "~/.password-store/*",
    "~/.local/share/keyrings",
    "~/.local/share/keyrings/*",
    "~/Library/Keychains",
    "~/Library/Keychains/*",
    # Cloud and tooling credentials
    "~/.aws",
    "~/.aws/*",
    "~/.kube",
    "~/.kube/*",
    "~/.docker/config.json",
    # vacctl itself
    "~/.config/vacctl",
    "~/.config/vacctl/*",
)


def is_protected_path(path: str | Path, home: Path | None = None) -> bool:
    """Check whether a path matches a protected pattern.

    Args:
        path: Absolute, already resolved path to check.
        home: Home directory used to expand ``~``. Defaults to the current user's.

    Returns:
        True if the path matches any protected pattern.
    """
    home_str = str(home if home is not None else Path.home())
    candidate = str(path)

    for pattern in PROTECTED_PATH_PATTERNS:
        expanded = home_str + pattern[1:] if pattern.startswith("~") else pattern

        if fnmatch.fnmatch(candidate, expanded):
            return True

    return False


def protected_locations(home: Path | None = None) -> tuple[Path, ...]:
    """Return the concrete locations the patterns protect.

    ``~/.ssh`` and ``~/.ssh/*`` both yield ``~/.ssh``. Patterns with other
    wildcards name no single location and are left out.
    """
    home_path = home if home is not None else Path.home()
    locations: list[Path] = []
    for pattern in PROTECTED_PATH_PATTERNS:
        base = pattern.removesuffix("/*")
        if any(ch in base for ch in "*?["):
            continue
        location = home_path / base[2:] if base.startswith("~/") else Path(base)
        if location not in locations:
            locations.append(location)
    return tuple(locations)


def shelters_protected_path(path: str | Path, home: Path | None = None) -> bool:
    """Check whether a protected location lies strictly below ``path``.

    Removing such a directory as a whole would take protected data with it.

    Args:
        path: Absolute, already resolved path to check.
        home: Home directory used to expand ``~``. Defaults to the current user's.
    """
    candidate = Path(path)
    return any(candidate in location.parents for location in protected_locations(home))
