"""Deletion safety policy.

Every path is resolved to its real location before any check so a
symlink cannot alias a forbidden target. A path is safe only when it
survives, in order:

1. resolution (it must exist and resolve),
2. the deny-list (it must not equal, or contain, a critical location),
3. the protected patterns (credentials, keyrings, vacctl's own config),
4. default-deny (it must lie strictly inside an allowed root).
"""

import logging
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from vacctl.cleaner.protected import is_protected_path, shelters_protected_path
from vacctl.core.paths import get_home_dir
from vacctl.errors import PolicyViolationError

logger = logging.getLogger(__name__)

# Critical locations on Linux and macOS. A path equal to one of these,
# or an ancestor of one, is never deleted.
FORBIDDEN_PATHS: tuple[str, ...] = (
    "/",
    "/System",
    "/System/Library",
    "/Library",
    "/Applications",
    "/Users",
    "/bin",
    "/sbin",
    "/usr",
    "/usr/lib",
    "/var",
    "/etc",
    "/private",
    "/lib",
    "/lib64",
    "/boot",
    "/dev",
    "/proc",
    "/sys",
    "/opt",
    "/home",
    "/root",
)

TEMP_ROOTS: tuple[str, ...] = ("/tmp", "/private/tmp", "/var/tmp")


class RejectionReason(str, Enum):
    """Why a path failed the safety policy."""

    NOT_FOUND = "not_found"
    UNRESOLVABLE = "unresolvable"
    FORBIDDEN = "forbidden"
    PROTECTED = "protected"
    OUTSIDE_ALLOWED_ROOTS = "outside_allowed_roots"


@dataclass(frozen=True, slots=True)
class SafetyVerdict:
    """Result of checking one path.

    Attributes:
        path: Path as given.
        resolved: Canonical location, None if it could not be resolved.
        reason: Rejection reason, None if the path is safe.
        detail: Human-readable explanation of a rejection.
    """

    path: Path
    resolved: Path | None = None
    reason: RejectionReason | None = None
    detail: str = ""

    @property
    def safe(self) -> bool:
        return self.reason is None


@dataclass(frozen=True, slots=True)
class Rejection:
    """A path removed by ``SafetyValidator.filter``."""

    path: Path
    reason: RejectionReason
    detail: str


def _resolve_all(raw_paths: Iterable[str | Path]) -> frozenset[Path]:
    """Return each path both as written and as resolved, where resolvable."""
    resolved: set[Path] = set()
    for raw in raw_paths:
        path = Path(raw)
        resolved.add(path)
        try:
            resolved.add(path.resolve())
        except (OSError, RuntimeError):
            continue
    return frozenset(resolved)


class SafetyValidator:
    """Decides whether a path may be deleted.

    Args:
        home: User home directory. Defaults to the current user's.
        extra_roots: Additional allowed roots, such as explicit scan targets.
        forbidden: Deny-list override.
    """

    def __init__(
        self,
        home: Path | None = None,
        extra_roots: Sequence[Path] = (),
        *,
        forbidden: Sequence[str] | None = None,
    ) -> None:
        self._home = (home if home is not None else get_home_dir()).resolve()
        self._forbidden = _resolve_all(
            [*(forbidden if forbidden is not None else FORBIDDEN_PATHS), self._home]
        )
        self._allowed_roots = _resolve_all(
            [self._home, *TEMP_ROOTS, tempfile.gettempdir(), *extra_roots]
        )

    @property
    def home(self) -> Path:
        return self._home

    @property
    def allowed_roots(self) -> frozenset[Path]:
        return self._allowed_roots

    def check(self, path: Path, *, contents_only: bool = False) -> SafetyVerdict:
        """Run the full policy against ``path``.

        Args:
            path: Path to check.
            contents_only: Only the children of ``path`` will be removed,
                so ``path`` may itself be an allowed root.

        Returns:
            Verdict carrying the resolved path or the rejection reason.
        """
        try:
            resolved = Path(path).resolve(strict=True)
        except FileNotFoundError:
            return SafetyVerdict(path, None, RejectionReason.NOT_FOUND, "path does not exist")
        except (OSError, RuntimeError) as e:
            return SafetyVerdict(
                path, None, RejectionReason.UNRESOLVABLE, f"cannot resolve path: {e}"
            )

        for forbidden in self._forbidden:
            if resolved == forbidden or resolved in forbidden.parents:
                return SafetyVerdict(
                    path,
                    resolved,
                    RejectionReason.FORBIDDEN,
                    f"{resolved} is a protected system location",
                )

        if is_protected_path(resolved, self._home):
            return SafetyVerdict(
                path, resolved, RejectionReason.PROTECTED, f"{resolved} matches a protected pattern"
            )

        for root in self._allowed_roots:
            if root in resolved.parents or (contents_only and resolved == root):
                return SafetyVerdict(path, resolved)

        return SafetyVerdict(
            path,
            resolved,
            RejectionReason.OUTSIDE_ALLOWED_ROOTS,
            f"{resolved} is outside the allowed cleanup locations",
        )

    def is_protected(self, path: Path) -> bool:
        """Return True if the canonical ``path`` matches a protected pattern."""
        return is_protected_path(path, self._home)

    def shelters_protected(self, path: Path) -> bool:
        """Return True if a protected location lies below the canonical ``path``."""
        return shelters_protected_path(path, self._home)

    def is_safe_to_delete(self, path: Path) -> bool:
        """Return True if ``path`` passes the policy."""
        return self.check(path).safe

    def require_safe(self, path: Path, *, contents_only: bool = False) -> Path:
        """Return the resolved path, or raise if it fails the policy.

        Raises:
            PolicyViolationError: If the path is rejected.
        """
        verdict = self.check(path, contents_only=contents_only)
        if verdict.reason is not None or verdict.resolved is None:
            reason = verdict.reason.value if verdict.reason else "unresolvable"
            raise PolicyViolationError(Path(path), reason, verdict.detail)
        return verdict.resolved

    def filter(self, paths: Iterable[Path]) -> tuple[list[Path], list[Rejection]]:
        """Split ``paths`` into allowed ones and rejections.

        Returns:
            Tuple of (allowed paths as given, rejections with reasons).
        """
        allowed: list[Path] = []
        rejected: list[Rejection] = []

        for path in paths:
            verdict = self.check(path)
            if verdict.reason is None:
                allowed.append(path)
            else:
                logger.warning("Rejected %s: %s", path, verdict.detail)
                rejected.append(Rejection(path, verdict.reason, verdict.detail))

        return allowed, rejected


def validate(
    paths: Iterable[Path], validator: SafetyValidator | None = None
) -> tuple[list[Path], list[Rejection]]:
    """Filter ``paths`` through a validator built for the current user.

    Args:
        paths: Paths to validate.
        validator: Validator to use instead of a default one.

    Returns:
        Tuple of (allowed paths, rejections).
    """
    return (validator or SafetyValidator()).filter(paths)
