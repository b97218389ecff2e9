"""Deployment pipeline: backup, replace, copy and orchestration."""

from enshrine.deploy.archiver import BACKUP_SUFFIX, BackupArchiver, backup_path_for
from enshrine.deploy.orchestrator import (
    DeploymentOrchestrator,
    DeploymentRequest,
    expand_targets,
    record_run_to_history,
)
from enshrine.deploy.replacer import DirectoryReplacer, copy_directory, delete_directory

__all__ = [
    "BACKUP_SUFFIX",
    "BackupArchiver",
    "DeploymentOrchestrator",
    "DeploymentRequest",
    "DirectoryReplacer",
    "backup_path_for",
    "copy_directory",
    "delete_directory",
    "expand_targets",
    "record_run_to_history",
]
