"""Exception hierarchy for vacctl.

Per-item failures during scanning and deletion are reported as data
(``Error`` messages, failed ``DeletionOutcome``s). Exceptions defined
here cross module boundaries only where a caller is expected to act on
them.
"""

from pathlib import Path


class VacctlError(Exception):
    """Base exception for all vacctl errors."""


class ScanCancelled(VacctlError):
    """Raised inside a scan producer when its session has been superseded.

    This is a normal termination signal, not a failure. It never escapes
    the scan thread.
    """

    def __init__(self, generation: int) -> None:
        self.generation = generation
        super().__init__(f"Scan generation {generation} was superseded")


class PolicyViolationError(VacctlError):
    """Raised when a path is rejected by the deletion safety policy.

    Attributes:
        path: The path as supplied by the caller.
        reason: Machine-readable rejection reason.
        detail: Human-readable explanation.
    """

    def __init__(self, path: Path, reason: str, detail: str) -> None:
        self.path = path
        self.reason = reason
        self.detail = detail
        super().__init__(f"{path}: {detail}")


class ConfigError(VacctlError):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when a configuration file is required but missing."""


class ConfigParseError(ConfigError):
    """Raised when a configuration file is not valid TOML."""
