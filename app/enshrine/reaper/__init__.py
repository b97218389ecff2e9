"""Service and process teardown for deployment directories."""

from enshrine.reaper.base import (
    Reaper,
    ReapResult,
    process_path_matches,
    service_path_matches,
)
from enshrine.reaper.system import SystemReaper

__all__ = [
    "ReapResult",
    "Reaper",
    "SystemReaper",
    "process_path_matches",
    "service_path_matches",
]
