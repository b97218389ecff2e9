"""Drift models for snapshot status reporting.

This module defines the records produced when a managed directory is
compared against its last finalised snapshot.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class DriftKind(str, Enum):
    """Kind of difference between a directory and its last snapshot.

    Attributes:
        MODIFIED: Tracked file changed in the working tree.
        CHANGED: Tracked file changed and already staged.
        ADDED: New file staged but never committed.
        MISSING: Tracked file no longer present on disk.
        UNTRACKED: File present on disk but never recorded.
    """

    MODIFIED = "modified"
    CHANGED = "changed"
    ADDED = "added"
    MISSING = "missing"
    UNTRACKED = "untracked"


# Order in which kinds are reported within one repository.
DRIFT_KIND_ORDER: tuple[DriftKind, ...] = (
    DriftKind.MODIFIED,
    DriftKind.CHANGED,
    DriftKind.ADDED,
    DriftKind.MISSING,
    DriftKind.UNTRACKED,
)


@dataclass(frozen=True, slots=True)
class DriftRecord:
    """A single drifted file.

    Attributes:
        kind: Kind of drift.
        repository: Absolute path of the managed directory.
        file: Path of the file relative to the repository, using "/".
    """

    kind: DriftKind
    repository: str
    file: str

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.file:
            msg = "Drift record file cannot be empty"
            raise ValueError(msg)

    @property
    def full_path(self) -> str:
        """Absolute path of the drifted file."""
        return str(Path(self.repository) / self.file)


@dataclass(frozen=True, slots=True)
class DriftReport:
    """Ordered drift records for one or more repositories.

    Attributes:
        records: Drift records in report order.
        repositories: Managed directories inspected to build the report.
    """

    records: tuple[DriftRecord, ...] = ()
    repositories: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        """Number of drift records."""
        return len(self.records)

    @property
    def clean(self) -> bool:
        """True when no drift was found."""
        return not self.records

    def by_kind(self, kind: DriftKind) -> list[DriftRecord]:
        """Return the records of a single kind, in report order."""
        return [r for r in self.records if r.kind == kind]

    @classmethod
    def combine(cls, reports: Iterable["DriftReport"]) -> "DriftReport":
        """Concatenate reports, preserving their order."""
        records: list[DriftRecord] = []
        repositories: list[str] = []
        for report in reports:
            records.extend(report.records)
            repositories.extend(report.repositories)
        return cls(records=tuple(records), repositories=tuple(repositories))
