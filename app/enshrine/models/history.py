"""History entry model for recording deployment runs.

This module defines data structures for recording orchestrated runs in
a history file, giving operators an audit trail across deployments.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from enshrine.models.outcome import DeploymentOutcome


@dataclass(frozen=True, slots=True)
class HistoryTarget:
    """Outcome of one target directory within a recorded run.

    Attributes:
        path: Target directory.
        success: Whether every attempted stage succeeded.
        stages: Names of the stages that succeeded.
        error: Joined error messages, if any.
    """

    path: str
    success: bool
    stages: tuple[str, ...] = ()
    error: str | None = None

    def __post_init__(self) -> None:
        """Validate target data after initialization."""
        if not self.path:
            msg = "Target path cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "path": self.path,
            "success": self.success,
            "stages": list(self.stages),
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryTarget":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            path=data["path"],
            success=data["success"],
            stages=tuple(data.get("stages", ())),
            error=data.get("error"),
        )

    @classmethod
    def from_outcome(cls, outcome: DeploymentOutcome) -> "HistoryTarget":
        """Build a history target from a deployment outcome."""
        return cls(
            path=outcome.path,
            success=outcome.success,
            stages=tuple(stage.value for stage in outcome.succeeded),
            error=outcome.error,
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single orchestrated run.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 format with timezone).
        operations: Requested operations (e.g. ``("replace", "finalise")``).
        targets: Per-target outcomes.
        success: Whether the run as a whole succeeded.
        metadata: Additional context (command, source, etc.).
    """

    id: str
    timestamp: str
    operations: tuple[str, ...]
    targets: tuple[HistoryTarget, ...]
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    @property
    def finished_at(self) -> datetime:
        """Timestamp parsed as an aware datetime."""
        return datetime.fromisoformat(self.timestamp)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "operations": list(self.operations),
            "targets": [target.to_dict() for target in self.targets],
            "success": self.success,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If target data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            operations=tuple(data["operations"]),
            targets=tuple(HistoryTarget.from_dict(t) for t in data.get("targets", [])),
            success=data.get("success", True),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "HistoryEntry":
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_history_entry(
    operations: list[str],
    outcomes: list[DeploymentOutcome],
    success: bool,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Factory function to create a new HistoryEntry.

    Automatically generates a unique ID and current timestamp.

    Args:
        operations: Operations requested for the run.
        outcomes: Per-target outcomes of the run.
        success: Overall success of the run.
        metadata: Optional additional context.

    Returns:
        New HistoryEntry with auto-generated ID and timestamp.

    Raises:
        ValueError: If no operations are given.
    """
    if not operations:
        msg = "Cannot create history entry with no operations"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        operations=tuple(operations),
        targets=tuple(HistoryTarget.from_outcome(o) for o in outcomes),
        success=success,
        metadata=metadata or {},
    )
