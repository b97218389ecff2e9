"""Per-directory replace and copy pipelines.

Replace runs Backup, Reap(services), Reap(processes), Delete and Copy in
that order. A failed backup, delete or copy ends the pipeline for the
directory. A failed reap is recorded but deletion is still attempted, so
that locked files surface as a delete failure.
"""

import logging
import os
import shutil
import stat
from collections.abc import Callable
from pathlib import Path

from enshrine.core.errors import ArchiveError, FilesystemError, ReapError
from enshrine.deploy.archiver import BackupArchiver
from enshrine.models.outcome import DeploymentOutcome, Stage
from enshrine.reaper.base import Reaper, ReapResult
from enshrine.utils.tree import FileTree

logger = logging.getLogger(__name__)


def _make_writable(path: Path) -> None:
    mode = os.lstat(path).st_mode
    wanted = stat.S_IRUSR | stat.S_IWUSR
    if stat.S_ISDIR(mode):
        wanted |= stat.S_IXUSR
    if mode & wanted != wanted:
        os.chmod(path, stat.S_IMODE(mode) | wanted)


def delete_directory(directory: Path) -> bool:
    """Recursively delete directory, clearing read-only permissions first.

    Returns:
        True if something was deleted, False if directory did not exist.

    Raises:
        FilesystemError: If any entry cannot be made writable or removed.
    """
    directory = Path(directory)
    if not directory.exists() and not directory.is_symlink():
        return False

    logger.info("Deleting %s", directory)
    try:
        if directory.is_symlink() or not directory.is_dir():
            directory.unlink()
            return True
        _make_writable(directory)
        for node in FileTree(directory):
            if not node.path.is_symlink():
                _make_writable(node.path)
        shutil.rmtree(directory)
    except OSError as e:
        raise FilesystemError(f"Failed to delete {directory}: {e}") from e
    return True


def _overwrite_copy(src: str, dst: str) -> str:
    if os.path.lexists(dst) and not os.path.islink(dst) and not os.access(dst, os.W_OK):
        _make_writable(Path(dst))
    return shutil.copy2(src, dst)


def copy_directory(source: Path, target: Path) -> None:
    """Copy every file from source into target, overwriting same-named files.

    Raises:
        FilesystemError: If the copy fails.
    """
    logger.info("Copying from %s to %s", source, target)
    try:
        shutil.copytree(
            source,
            target,
            symlinks=True,
            dirs_exist_ok=True,
            copy_function=_overwrite_copy,
        )
    except (shutil.Error, OSError) as e:
        raise FilesystemError(f"Failed to copy {source} to {target}: {e}") from e


class DirectoryReplacer:
    """Runs the destructive replace pipeline or a plain copy for one target.

    Args:
        archiver: Archiver used for the backup stage.
        reaper: Reaper used to tear down services and processes.
    """

    def __init__(self, archiver: BackupArchiver, reaper: Reaper) -> None:
        self._archiver = archiver
        self._reaper = reaper

    def replace(self, target: Path, source: Path) -> DeploymentOutcome:
        """Back up, reap, delete and repopulate target from source."""
        target = Path(os.path.abspath(target))
        outcome = DeploymentOutcome(path=str(target))

        outcome.begin(Stage.BACKUP)
        try:
            self._archiver.backup(target)
        except ArchiveError as e:
            outcome.fail(Stage.BACKUP, e)
            return outcome
        outcome.complete(Stage.BACKUP)

        self._reap(outcome, Stage.REAP_SERVICES, lambda: self._reaper.reap_services(target))
        self._reap(outcome, Stage.REAP_PROCESSES, lambda: self._reaper.reap_processes(target))

        outcome.begin(Stage.DELETE)
        try:
            delete_directory(target)
        except FilesystemError as e:
            outcome.fail(Stage.DELETE, e)
            return outcome
        outcome.complete(Stage.DELETE)

        self._copy(outcome, source, target)
        return outcome

    def copy(self, target: Path, source: Path) -> DeploymentOutcome:
        """Copy source into target without clearing it first."""
        target = Path(os.path.abspath(target))
        outcome = DeploymentOutcome(path=str(target))
        self._copy(outcome, source, target)
        return outcome

    def _reap(
        self,
        outcome: DeploymentOutcome,
        stage: Stage,
        action: Callable[[], list[ReapResult]],
    ) -> None:
        outcome.begin(stage)
        try:
            results = action()
        except ReapError as e:
            outcome.fail(stage, e)
            return

        failures = [r for r in results if not r.success]
        if failures:
            outcome.fail(stage, ", ".join(f"{r.target}: {r.error}" for r in failures))
            return
        outcome.complete(stage)

    def _copy(self, outcome: DeploymentOutcome, source: Path, target: Path) -> None:
        outcome.begin(Stage.COPY)
        try:
            copy_directory(Path(source), target)
        except FilesystemError as e:
            outcome.fail(Stage.COPY, e)
            return
        outcome.complete(Stage.COPY)
