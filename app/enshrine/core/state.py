"""Deployment history storage.

Every deploy and finalise run is appended to a JSON Lines file, one
HistoryEntry per line, so the file can be tailed or grepped by operators
and is never rewritten in place.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

from enshrine.core.errors import FilesystemError
from enshrine.core.paths import get_history_path
from enshrine.models.history import HistoryEntry

logger = logging.getLogger(__name__)


class StateManager:
    """Reads and appends the deployment history file.

    Args:
        history_path: History file to use. Defaults to
            ~/.local/state/enshrine/history.jsonl.
    """

    def __init__(self, history_path: Path | None = None) -> None:
        self._history_path = history_path if history_path is not None else get_history_path()

    @property
    def history_path(self) -> Path:
        return self._history_path

    def record_run(self, entry: HistoryEntry) -> None:
        """Append a run, creating the file and its directory if needed.

        Raises:
            FilesystemError: If the history file cannot be written.
        """
        try:
            self._history_path.parent.mkdir(parents=True, exist_ok=True)
            with self._history_path.open(mode="a", encoding="utf-8") as f:
                f.write(entry.to_json_line() + "\n")
        except OSError as e:
            raise FilesystemError(f"Cannot write history file {self._history_path}: {e}") from e

    def iter_entries(self) -> Iterator[HistoryEntry]:
        """Yield recorded runs oldest first, skipping corrupt lines."""
        if not self._history_path.exists():
            return

        with self._history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    yield HistoryEntry.from_json_line(line)
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, e)

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Return recorded runs newest first.

        Args:
            limit: Maximum number of entries to return. None returns all.
        """
        entries = list(self.iter_entries())
        entries.reverse()
        return entries if limit is None else entries[:limit]
