"""Data models for enshrine.

This module exports the core data structures used throughout the application.
"""

from enshrine.models.bindings import ProcessBinding, ServiceBinding
from enshrine.models.drift import DRIFT_KIND_ORDER, DriftKind, DriftRecord, DriftReport
from enshrine.models.history import HistoryEntry, HistoryTarget, create_history_entry
from enshrine.models.outcome import DeploymentOutcome, ExitCode, RunResult, Stage

__all__ = [
    "DRIFT_KIND_ORDER",
    "DeploymentOutcome",
    "DriftKind",
    "DriftRecord",
    "DriftReport",
    "ExitCode",
    "HistoryEntry",
    "HistoryTarget",
    "ProcessBinding",
    "RunResult",
    "ServiceBinding",
    "Stage",
    "create_history_entry",
]
