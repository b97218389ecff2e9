"""Deployment orchestration across target directories.

Runs, in order: drift scan, template rendering, replace or copy for each
target, and finalise for each target. Options are validated before
anything on disk is touched. Targets are independent: a failure in one
never stops the others.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from enshrine.core.errors import (
    ConfigurationError,
    DriftDetected,
    FilesystemError,
    MissingPrerequisiteError,
    RepositoryError,
    TemplateError,
)
from enshrine.core.state import StateManager
from enshrine.core.tags import TemplateRenderer, render_template_files
from enshrine.deploy.replacer import DirectoryReplacer
from enshrine.models.history import create_history_entry
from enshrine.models.outcome import RunResult, Stage
from enshrine.snapshot.scanner import DriftScanner
from enshrine.snapshot.store import SnapshotStore

logger = logging.getLogger(__name__)

TARGET_SEPARATOR = ";"


@dataclass(frozen=True, slots=True)
class DeploymentRequest:
    """Operations requested for one run.

    Attributes:
        targets: Target directories, already expanded.
        source: Directory to deploy from (replace, copy, template filter).
        replace: Back up, reap, delete and repopulate each target.
        copy: Copy the source into each target without clearing it.
        finalise: Record a snapshot of each target after deployment.
        scan_root: Root to scan for drift before anything else.
        template_filter: Glob of source files to render in place.
    """

    targets: tuple[Path, ...] = ()
    source: Path | None = None
    replace: bool = False
    copy: bool = False
    finalise: bool = False
    scan_root: Path | None = None
    template_filter: str | None = None

    @property
    def deploys(self) -> bool:
        """True when files are copied into the targets."""
        return self.replace or self.copy

    @property
    def operations(self) -> list[str]:
        """Names of the requested operations, in execution order."""
        names: list[str] = []
        if self.scan_root is not None:
            names.append("scan")
        if self.template_filter:
            names.append("templates")
        if self.replace:
            names.append("replace")
        if self.copy:
            names.append("copy")
        if self.finalise:
            names.append("finalise")
        return names


def expand_targets(raw_targets: Iterable[str], renderer: TemplateRenderer) -> tuple[Path, ...]:
    """Render target strings, split them on ";" and make each one absolute.

    Raises:
        ConfigurationError: If a target string cannot be rendered.
    """
    targets: list[Path] = []
    for raw in raw_targets:
        try:
            rendered = renderer.render(raw)
        except TemplateError as e:
            raise ConfigurationError(f"Cannot expand target '{raw}': {e}") from e
        parts = (part.strip() for part in rendered.split(TARGET_SEPARATOR))
        targets.extend(Path(os.path.abspath(part)) for part in parts if part)
    return tuple(targets)


class DeploymentOrchestrator:
    """Sequences scan, replace/copy and finalise across target directories.

    Args:
        store: Snapshot store used for finalise.
        scanner: Drift scanner used for scan.
        replacer: Per-directory replace/copy pipeline.
        renderer: Renderer used for template files.
    """

    def __init__(
        self,
        store: SnapshotStore,
        scanner: DriftScanner,
        replacer: DirectoryReplacer,
        renderer: TemplateRenderer,
    ) -> None:
        self._store = store
        self._scanner = scanner
        self._replacer = replacer
        self._renderer = renderer

    def validate(self, request: DeploymentRequest) -> None:
        """Check the request before anything is changed.

        Raises:
            ConfigurationError: If the combination of options is invalid.
            MissingPrerequisiteError: If a required path does not exist.
        """
        if not request.operations:
            raise ConfigurationError("No operation requested")

        if request.replace and request.copy:
            raise ConfigurationError("You cannot specify both the replace and copy options")

        if request.deploys:
            if not request.targets:
                raise ConfigurationError(
                    "You must specify at least one target directory to use replace or copy"
                )
            if request.source is None or not request.source.is_dir():
                raise MissingPrerequisiteError(
                    str(request.source), "Deploy source directory does not exist"
                )

        if request.template_filter and (request.source is None or not request.source.is_dir()):
            raise ConfigurationError(
                f"You cannot use a template filter without a valid source directory: "
                f"{request.source}"
            )

        if request.finalise:
            if not request.targets:
                raise ConfigurationError(
                    "You must specify at least one target directory to finalise"
                )
            if not request.deploys:
                for target in request.targets:
                    if not target.is_dir():
                        raise MissingPrerequisiteError(
                            str(target), "Cannot finalise a directory that does not exist"
                        )

        if request.scan_root is not None and not request.scan_root.is_dir():
            raise MissingPrerequisiteError(str(request.scan_root), "Scan root does not exist")

    def run(self, request: DeploymentRequest) -> RunResult:
        """Validate and execute the request.

        Returns:
            RunResult with the drift report and per-target outcomes. When
            drift is found, nothing else runs.

        Raises:
            ConfigurationError: If validation fails.
            MissingPrerequisiteError: If validation fails.
            TemplateError: If a template file references an unknown tag.
            FilesystemError: If a template file cannot be read or written.
            RepositoryError: If the scan is strict and a repository is unreadable.
        """
        self.validate(request)
        result = RunResult()

        if request.scan_root is not None:
            try:
                result.drift = self._scanner.verify(request.scan_root)
            except DriftDetected as e:
                logger.warning("%s, aborting", e)
                result.drift = e.report
                return result

        if request.template_filter and request.source is not None:
            try:
                rendered = render_template_files(
                    request.source, request.template_filter, self._renderer
                )
            except (OSError, UnicodeDecodeError) as e:
                msg = f"Failed to render templates in {request.source}: {e}"
                raise FilesystemError(msg) from e
            result.rendered_templates.extend(str(p) for p in rendered)

        targets = tuple(Path(os.path.abspath(t)) for t in request.targets)

        if request.deploys and request.source is not None:
            for target in targets:
                if request.replace:
                    outcome = self._replacer.replace(target, request.source)
                else:
                    outcome = self._replacer.copy(target, request.source)
                result.outcomes.append(outcome)

        if request.finalise:
            for target in targets:
                self._finalise(result, target)

        return result

    def _finalise(self, result: RunResult, target: Path) -> None:
        outcome = result.outcome_for(str(target))
        if not outcome.success:
            logger.warning("Not finalising %s because its deployment failed", target)
            return

        outcome.begin(Stage.FINALISE)
        if not target.is_dir():
            missing = MissingPrerequisiteError(
                str(target), "Cannot finalise a directory that does not exist"
            )
            outcome.fail(Stage.FINALISE, missing)
            return

        logger.info("Finalising %s", target)
        try:
            self._store.commit(target)
        except RepositoryError as e:
            outcome.fail(Stage.FINALISE, e)
            return
        outcome.complete(Stage.FINALISE)


def record_run_to_history(
    request: DeploymentRequest,
    result: RunResult,
    command: str,
    state: StateManager | None = None,
) -> None:
    """Append a finished run to the history file.

    Errors during history recording are logged but do not change the
    outcome of the run.
    """
    try:
        entry = create_history_entry(
            operations=request.operations,
            outcomes=result.outcomes,
            success=result.success,
            metadata={
                "command": command,
                "source": str(request.source) if request.source else None,
                "drift": result.drift.count if result.drift is not None else None,
            },
        )
        (state or StateManager()).record_run(entry)
        logger.debug("Recorded run %s to history", entry.id)
    except (FilesystemError, ValueError) as e:
        logger.warning("Failed to record run to history: %s", str(e))
