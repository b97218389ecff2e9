"""Backup archiving of a directory before it is replaced.

The backup is a single zip file named ``<dir>.old.zip`` placed next to
the directory. Every file is stored under its path relative to the
directory, with its modification time and size.
"""

import logging
import os
import shutil
import zipfile
from pathlib import Path

from enshrine.core.errors import ArchiveError
from enshrine.utils.tree import FileTree

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".old.zip"

# Copy buffer for streaming file content into the archive
_CHUNK_SIZE = 64 * 1024


def backup_path_for(directory: Path) -> Path:
    """Return the archive path used when backing up directory.

    The path is made absolute first, so "." or "release/.." still name the
    directory itself and the archive never lands inside it.
    """
    directory = Path(os.path.abspath(directory))
    return directory.parent / f"{directory.name}{BACKUP_SUFFIX}"


class BackupArchiver:
    """Compresses a directory into a sibling zip archive.

    Args:
        enabled: If False, backup() is a successful no-op.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def backup(self, directory: Path) -> Path | None:
        """Archive every file under directory.

        Args:
            directory: Directory to archive.

        Returns:
            Path of the written archive, or None when backups are disabled
            or the directory does not exist.

        Raises:
            ArchiveError: If any file cannot be read or the archive written.
                A partially written archive is removed.
        """
        if not self._enabled:
            logger.debug("Backups disabled, skipping %s", directory)
            return None

        directory = Path(os.path.abspath(directory))
        if not directory.is_dir():
            logger.debug("Nothing to back up at %s", directory)
            return None

        archive_path = backup_path_for(directory)
        logger.info("Backing up %s to %s", directory, archive_path)

        try:
            with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                count = 0
                for node in FileTree(directory).files():
                    if node.path.is_dir():
                        logger.debug("Skipping directory symlink %s", node.path)
                        continue
                    info = zipfile.ZipInfo.from_file(
                        node.path, arcname=node.relative, strict_timestamps=False
                    )
                    info.compress_type = zipfile.ZIP_DEFLATED
                    with open(node.path, "rb") as src, archive.open(info, "w") as dst:
                        shutil.copyfileobj(src, dst, _CHUNK_SIZE)
                    count += 1
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            # ValueError covers names zip cannot encode, e.g. non-UTF-8 bytes
            archive_path.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to back up {directory}: {e}") from e

        logger.info("Archived %d file(s) from %s", count, directory)
        return archive_path
