"""Directory snapshots and drift detection.

This module provides per-directory snapshot repositories and a scanner
that reports drift across a directory hierarchy.
"""

from enshrine.snapshot.scanner import DriftScanner, iter_repository_roots
from enshrine.snapshot.store import (
    REPOSITORY_MARKER,
    Found,
    NotYetInitialized,
    RepositoryLookup,
    SnapshotRepository,
    SnapshotStore,
)

__all__ = [
    "REPOSITORY_MARKER",
    "DriftScanner",
    "Found",
    "NotYetInitialized",
    "RepositoryLookup",
    "SnapshotRepository",
    "SnapshotStore",
    "iter_repository_roots",
]
