"""Process-wide runtime objects shared by CLI commands.

The configuration and tag dictionary are built once per process and
passed explicitly into every component that needs them.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from enshrine.core.config import EnshrineConfig, load_config
from enshrine.core.errors import (
    ConfigError,
    ConfigurationError,
    EnshrineError,
    MissingPrerequisiteError,
)
from enshrine.core.tags import TemplateRenderer, build_tag_dictionary
from enshrine.deploy.archiver import BackupArchiver
from enshrine.deploy.orchestrator import (
    DeploymentOrchestrator,
    DeploymentRequest,
    record_run_to_history,
)
from enshrine.deploy.replacer import DirectoryReplacer
from enshrine.models.outcome import ExitCode, RunResult
from enshrine.reaper.system import SystemReaper
from enshrine.snapshot.scanner import DriftScanner
from enshrine.snapshot.store import SnapshotStore
from enshrine.utils.formatting import print_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Runtime:
    """Configuration and renderer for one enshrine process."""

    config: EnshrineConfig
    renderer: TemplateRenderer

    def store(self) -> SnapshotStore:
        return SnapshotStore(
            renderer=self.renderer,
            author_name=self.config.author_name,
            author_email=self.config.author_email,
        )

    def scanner(self) -> DriftScanner:
        return DriftScanner(self.store(), strict=self.config.strict_scan)

    def orchestrator(self, backup: bool | None = None) -> DeploymentOrchestrator:
        """Build an orchestrator wired to the real OS reaper.

        Args:
            backup: Override the configured backup setting.
        """
        enabled = self.config.backup if backup is None else backup
        replacer = DirectoryReplacer(BackupArchiver(enabled=enabled), SystemReaper())
        return DeploymentOrchestrator(
            store=self.store(),
            scanner=self.scanner(),
            replacer=replacer,
            renderer=self.renderer,
        )


def get_config(ctx: typer.Context) -> EnshrineConfig:
    """Load the configuration once and keep it on the context."""
    ctx.ensure_object(dict)
    config = ctx.obj.get("config")
    if config is None:
        config_path: Path | None = ctx.obj.get("config_path")
        try:
            config = load_config(config_path)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=ExitCode.CONFIGURATION) from e
        ctx.obj["config"] = config
    return config


def get_runtime(ctx: typer.Context) -> Runtime:
    """Build the runtime once and keep it on the context."""
    ctx.ensure_object(dict)
    runtime = ctx.obj.get("runtime")
    if runtime is None:
        config = get_config(ctx)
        try:
            tags = build_tag_dictionary(config)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=ExitCode.CONFIGURATION) from e
        runtime = Runtime(config=config, renderer=TemplateRenderer(tags))
        ctx.obj["runtime"] = runtime
    return runtime


def execute_request(
    runtime: Runtime,
    request: DeploymentRequest,
    command: str,
    backup: bool | None = None,
) -> RunResult:
    """Run a request, mapping setup errors to exit codes.

    Raises:
        typer.Exit: With CONFIGURATION for invalid requests and FAILURE
            for errors that abort the whole run.
    """
    try:
        result = runtime.orchestrator(backup=backup).run(request)
    except (ConfigurationError, MissingPrerequisiteError) as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.CONFIGURATION) from e
    except EnshrineError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILURE) from e

    if runtime.config.record_history:
        record_run_to_history(request, result, command=command)
    return result
