"""Drift scanning across a directory hierarchy.

Finds every snapshot repository below a root directory and collects the
drift of each into a single report.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from enshrine.core.errors import DriftDetected, MissingPrerequisiteError, RepositoryError
from enshrine.models.drift import DriftReport
from enshrine.snapshot.store import REPOSITORY_MARKER, SnapshotStore
from enshrine.utils.tree import FileTree

logger = logging.getLogger(__name__)


def _log_unreadable(error: OSError) -> None:
    logger.warning("Skipping unreadable directory %s: %s", error.filename, error.strerror)


def iter_repository_roots(root: Path) -> Iterator[Path]:
    """Yield every repository root at or below root, depth-first.

    Repository metadata directories are never descended into, but the
    working trees are, so nested repositories are found at any depth.
    """
    root = Path(root)
    if (root / REPOSITORY_MARKER).is_dir():
        yield root
    tree = FileTree(root, exclude=frozenset({REPOSITORY_MARKER}), on_error=_log_unreadable)
    for node in tree.directories():
        if (node.path / REPOSITORY_MARKER).is_dir():
            yield node.path


class DriftScanner:
    """Aggregates snapshot status for all repositories under a root.

    Args:
        store: Store used to compute each repository's status.
        strict: If True, an unreadable repository fails the scan.
            Otherwise it is skipped and the scan continues.
    """

    def __init__(self, store: SnapshotStore, strict: bool = False) -> None:
        self._store = store
        self._strict = strict

    def scan(self, root: Path) -> DriftReport:
        """Scan root for drift in every managed directory below it.

        Returns:
            Combined DriftReport. Repositories that could be read are listed
            in ``repositories`` in discovery order.

        Raises:
            MissingPrerequisiteError: If root is not a directory.
            RepositoryError: If strict and a repository cannot be read.
        """
        root = Path(root)
        if not root.is_dir():
            raise MissingPrerequisiteError(str(root), "Scan root does not exist")

        logger.info("Scanning %s for changes", root)
        reports: list[DriftReport] = []
        for repository in iter_repository_roots(root):
            try:
                reports.append(self._store.status(repository))
            except RepositoryError as e:
                if self._strict:
                    raise
                logger.warning("Skipping unreadable repository %s: %s", repository, e)

        report = DriftReport.combine(reports)
        logger.info(
            "Found %d change(s) across %d repositories",
            report.count,
            len(report.repositories),
        )
        return report

    def verify(self, root: Path) -> DriftReport:
        """Scan root and fail if anything has drifted.

        Returns:
            The clean DriftReport.

        Raises:
            DriftDetected: If any change is found. The report is attached.
            MissingPrerequisiteError: If root is not a directory.
            RepositoryError: If strict and a repository cannot be read.
        """
        report = self.scan(root)
        if not report.clean:
            raise DriftDetected(report.count, str(root), report)
        return report
