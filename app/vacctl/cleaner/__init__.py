"""Safety-checked deletion of scanned entries.

This module exports the safety validator, the deletion executor and
the models describing a deletion's outcome.
"""

from vacctl.cleaner.executor import DeletionExecutor, RemovalPolicy
from vacctl.cleaner.models import (
    DeletionMode,
    DeletionOutcome,
    DeletionReport,
    DeletionSummary,
    DryRunItem,
    DryRunResult,
    FailureKind,
    SelectedEntry,
)
from vacctl.cleaner.protected import PROTECTED_PATH_PATTERNS, is_protected_path
from vacctl.cleaner.safety import (
    FORBIDDEN_PATHS,
    Rejection,
    RejectionReason,
    SafetyValidator,
    SafetyVerdict,
    validate,
)

__all__ = [
    "FORBIDDEN_PATHS",
    "PROTECTED_PATH_PATTERNS",
    "DeletionExecutor",
    "DeletionMode",
    "DeletionOutcome",
    "DeletionReport",
    "DeletionSummary",
    "DryRunItem",
    "DryRunResult",
    "FailureKind",
    "Rejection",
    "RejectionReason",
    "RemovalPolicy",
    "SafetyValidator",
    "SafetyVerdict",
    "SelectedEntry",
    "is_protected_path",
    "validate",
]
