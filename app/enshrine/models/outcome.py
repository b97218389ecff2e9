"""Deployment outcome models.

This module defines the per-target stage bookkeeping and the aggregated
result of one orchestrated run.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from enshrine.models.drift import DriftReport


class Stage(str, Enum):
    """Stage of the per-directory deployment pipeline."""

    BACKUP = "backup"
    REAP_SERVICES = "reap_services"
    REAP_PROCESSES = "reap_processes"
    DELETE = "delete"
    COPY = "copy"
    FINALISE = "finalise"


class ExitCode(IntEnum):
    """Process exit codes.

    Attributes:
        SUCCESS: Every requested stage succeeded.
        FAILURE: At least one stage failed for at least one target.
        CONFIGURATION: Invalid options or a missing prerequisite.
        DRIFT: A scan found changes since the last finalise.
    """

    SUCCESS = 0
    FAILURE = 1
    CONFIGURATION = 2
    DRIFT = 3


@dataclass(slots=True)
class DeploymentOutcome:
    """Result of the pipeline for a single target directory.

    Attributes:
        path: Target directory.
        attempted: Stages started, in order.
        succeeded: Stages that completed.
        errors: Error messages, one per failed stage.
    """

    path: str
    attempted: list[Stage] = field(default_factory=list)
    succeeded: list[Stage] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when every attempted stage succeeded."""
        return not self.errors

    @property
    def error(self) -> str | None:
        """All error messages joined, or None."""
        return "; ".join(self.errors) if self.errors else None

    @property
    def failed_stages(self) -> list[Stage]:
        """Stages that were attempted but did not succeed."""
        return [s for s in self.attempted if s not in self.succeeded]

    def begin(self, stage: Stage) -> None:
        """Record that a stage has started."""
        self.attempted.append(stage)

    def complete(self, stage: Stage) -> None:
        """Record that a stage finished successfully."""
        self.succeeded.append(stage)

    def fail(self, stage: Stage, error: Exception | str) -> None:
        """Record that a stage failed."""
        self.errors.append(f"{stage.value}: {error}")


@dataclass(slots=True)
class RunResult:
    """Aggregated result of one orchestrated run.

    Attributes:
        drift: Drift report when a scan was requested.
        outcomes: Per-target outcomes, in target order.
        rendered_templates: Template files rendered before deployment.
    """

    drift: DriftReport | None = None
    outcomes: list[DeploymentOutcome] = field(default_factory=list)
    rendered_templates: list[str] = field(default_factory=list)

    @property
    def drift_detected(self) -> bool:
        """True when a scan ran and found drift."""
        return self.drift is not None and not self.drift.clean

    @property
    def success(self) -> bool:
        """True when no drift was found and every target succeeded."""
        return not self.drift_detected and all(o.success for o in self.outcomes)

    @property
    def exit_code(self) -> ExitCode:
        """Exit code for the process."""
        if self.drift_detected:
            return ExitCode.DRIFT
        if not self.success:
            return ExitCode.FAILURE
        return ExitCode.SUCCESS

    def outcome_for(self, path: str) -> DeploymentOutcome:
        """Return the outcome for path, creating it on first use."""
        for outcome in self.outcomes:
            if outcome.path == path:
                return outcome
        outcome = DeploymentOutcome(path=path)
        self.outcomes.append(outcome)
        return outcome
