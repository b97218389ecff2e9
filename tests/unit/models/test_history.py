"""Unit tests for history models."""

import json
from datetime import UTC, datetime

import pytest
from enshrine.models.history import HistoryEntry, HistoryTarget, create_history_entry
from enshrine.models.outcome import DeploymentOutcome, Stage


def _outcome(path: str, *, fail: bool = False) -> DeploymentOutcome:
    outcome = DeploymentOutcome(path=path)
    outcome.begin(Stage.COPY)
    if fail:
        outcome.fail(Stage.COPY, "disk full")
    else:
        outcome.complete(Stage.COPY)
    return outcome


class TestHistoryTarget:
    """Tests for HistoryTarget."""

    def test_from_outcome(self) -> None:
        """Successful stages and errors are carried over."""
        target = HistoryTarget.from_outcome(_outcome("/app/b", fail=True))

        assert target.path == "/app/b"
        assert target.success is False
        assert target.stages == ()
        assert target.error == "copy: disk full"

    def test_error_omitted_when_none(self) -> None:
        """to_dict leaves out a missing error."""
        target = HistoryTarget.from_outcome(_outcome("/app/a"))

        assert target.to_dict() == {"path": "/app/a", "success": True, "stages": ["copy"]}

    def test_empty_path_rejected(self) -> None:
        with pytest.raises(ValueError):
            HistoryTarget(path="", success=True)


class TestHistoryEntry:
    """Tests for HistoryEntry serialization."""

    def test_json_line_round_trip(self) -> None:
        """An entry survives a JSONL round trip."""
        entry = create_history_entry(
            operations=["replace", "finalise"],
            outcomes=[_outcome("/app/a"), _outcome("/app/b", fail=True)],
            success=False,
            metadata={"command": "enshrine deploy"},
        )

        restored = HistoryEntry.from_json_line(entry.to_json_line())

        assert restored == entry

    def test_json_line_is_single_line(self) -> None:
        """JSON lines contain no newlines."""
        entry = create_history_entry(["finalise"], [_outcome("/app/a")], success=True)

        line = entry.to_json_line()

        assert "\n" not in line
        assert json.loads(line)["operations"] == ["finalise"]

    def test_factory_generates_id_and_timestamp(self) -> None:
        """create_history_entry fills in id and timestamp."""
        entry = create_history_entry(["copy"], [], success=True)

        assert len(entry.id) == 12
        assert entry.timestamp.endswith("+00:00")

    def test_factory_requires_operations(self) -> None:
        """A run without operations cannot be recorded."""
        with pytest.raises(ValueError, match="no operations"):
            create_history_entry([], [], success=True)

    def test_from_dict_missing_field(self) -> None:
        """Missing required fields raise KeyError."""
        with pytest.raises(KeyError):
            HistoryEntry.from_dict({"id": "abc", "timestamp": "2026-01-01T00:00:00+00:00"})


class TestFinishedAt:
    def test_parses_aware_timestamp(self) -> None:
        entry = HistoryEntry(
            id="abc123456789",
            timestamp="2026-03-01T08:15:00+00:00",
            operations=("finalise",),
            targets=(),
        )

        assert entry.finished_at == datetime(2026, 3, 1, 8, 15, tzinfo=UTC)
