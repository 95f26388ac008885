"""Concurrent filesystem scanning.

This module exports the scan engine, its targets and the messages a
scan emits on its stream.
"""

from vacctl.scanner.aggregator import SizeAggregator, compute_size
from vacctl.scanner.classifier import PathClassifier, ResolvedTarget
from vacctl.scanner.engine import ScanCollection, ScanEngine, ScanStream, collect_scan
from vacctl.scanner.models import (
    CleanableEntry,
    DirEntry,
    DirEntrySize,
    DiskScanTarget,
    Done,
    EntryKind,
    Error,
    ItemCategory,
    ListDirTarget,
    Progress,
    RootItem,
    RootTarget,
    ScanKind,
    ScanMessage,
    ScanSummary,
    ScanTarget,
    SizeResult,
)
from vacctl.scanner.session import GenerationCounter, ScanSession

__all__ = [
    "CleanableEntry",
    "DirEntry",
    "DirEntrySize",
    "DiskScanTarget",
    "Done",
    "EntryKind",
    "Error",
    "GenerationCounter",
    "ItemCategory",
    "ListDirTarget",
    "PathClassifier",
    "Progress",
    "ResolvedTarget",
    "RootItem",
    "RootTarget",
    "ScanCollection",
    "ScanEngine",
    "ScanKind",
    "ScanMessage",
    "ScanSession",
    "ScanStream",
    "ScanSummary",
    "ScanTarget",
    "SizeAggregator",
    "SizeResult",
    "collect_scan",
    "compute_size",
]
