"""Exception hierarchy for enshrine.

Stage-level errors (repository, reap, archive, filesystem) are recorded
per target directory. Configuration and prerequisite errors abort a run
before anything on disk is touched.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from enshrine.models.drift import DriftReport


class EnshrineError(Exception):
    """Base exception for all enshrine errors."""


class RepositoryError(EnshrineError):
    """Raised when a snapshot repository cannot be opened, committed or read."""


class DriftDetected(EnshrineError):
    """Raised when a scan finds changes since the last finalised snapshot.

    Attributes:
        report: The drift report that triggered the error, when available.
    """

    def __init__(self, count: int, root: str, report: "DriftReport | None" = None) -> None:
        self.count = count
        self.root = root
        self.report = report
        super().__init__(f"{count} changes have been detected in: {root}")


class ReapError(EnshrineError):
    """Raised when a service or process could not be stopped or removed."""


class ArchiveError(EnshrineError):
    """Raised when a backup archive cannot be written."""


class FilesystemError(EnshrineError):
    """Raised when a target directory cannot be deleted or copied into."""


class ConfigurationError(EnshrineError):
    """Raised for an invalid combination of requested modes or paths."""


class MissingPrerequisiteError(EnshrineError):
    """Raised when a requested operation needs a path that does not exist."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"{reason}: {path}")


class TemplateError(EnshrineError):
    """Raised when a template references a tag that is not defined."""


class ConfigError(EnshrineError):
    """Raised when the configuration file cannot be read or is invalid."""
