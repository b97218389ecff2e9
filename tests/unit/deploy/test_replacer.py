"""Unit tests for directory replace and copy pipelines."""

import stat
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from enshrine.core.errors import ArchiveError, FilesystemError
from enshrine.deploy.archiver import BackupArchiver
from enshrine.deploy.replacer import DirectoryReplacer, copy_directory, delete_directory
from enshrine.models.bindings import ProcessBinding, ServiceBinding
from enshrine.models.outcome import Stage

ALL_STAGES = [
    Stage.BACKUP,
    Stage.REAP_SERVICES,
    Stage.REAP_PROCESSES,
    Stage.DELETE,
    Stage.COPY,
]


class TestDeleteDirectory:
    """Tests for delete_directory."""

    def test_removes_read_only_tree(self, release_dir: Path) -> None:
        """Read-only files and directories are still deleted."""
        (release_dir / "app.config").chmod(stat.S_IRUSR)
        (release_dir / "bin" / "app").chmod(stat.S_IRUSR)
        (release_dir / "bin").chmod(stat.S_IRUSR | stat.S_IXUSR)

        assert delete_directory(release_dir) is True
        assert not release_dir.exists()

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Deleting nothing reports False."""
        assert delete_directory(tmp_path / "missing") is False

    def test_failure_raises(self, release_dir: Path) -> None:
        """Removal errors surface as FilesystemError."""
        with (
            patch("enshrine.deploy.replacer.shutil.rmtree", side_effect=OSError("busy")),
            pytest.raises(FilesystemError, match="busy"),
        ):
            delete_directory(release_dir)


class TestCopyDirectory:
    """Tests for copy_directory."""

    def test_creates_target(self, source_dir: Path, tmp_path: Path) -> None:
        """A missing target is created."""
        target = tmp_path / "new"

        copy_directory(source_dir, target)

        assert (target / "bin" / "app").read_bytes() == b"\x7fELF-binary-v2"

    def test_overwrites_and_keeps_others(self, source_dir: Path, release_dir: Path) -> None:
        """Same-named files are overwritten, others are left in place."""
        (release_dir / "app.config").chmod(stat.S_IRUSR)

        copy_directory(source_dir, release_dir)

        assert (release_dir / "app.config").read_text() == "mode=production\nversion=2\n"
        assert (release_dir / "README").exists()

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(FilesystemError):
            copy_directory(tmp_path / "missing", tmp_path / "target")


class TestReplace:
    """Tests for DirectoryReplacer.replace."""

    def test_full_pipeline(
        self, make_reaper: Any, release_dir: Path, source_dir: Path, tmp_path: Path
    ) -> None:
        """Backup, reap, delete and copy all succeed for a bound directory."""
        reaper = make_reaper(
            services=[
                ServiceBinding(
                    name="svc-app",
                    display_name="svc-app",
                    executable_path=str(release_dir / "bin" / "app"),
                    active=True,
                )
            ],
            processes=[ProcessBinding(pid=4242, executable_path=str(release_dir / "bin" / "app"))],
        )
        (release_dir / "README").unlink()
        replacer = DirectoryReplacer(BackupArchiver(), reaper)

        outcome = replacer.replace(release_dir, source_dir)

        assert outcome.success, outcome.error
        assert outcome.succeeded == ALL_STAGES
        assert reaper.stopped == ["svc-app"]
        assert reaper.removed == ["svc-app"]
        assert reaper.terminated == [4242]
        with zipfile.ZipFile(tmp_path / "app" / "release.old.zip") as zf:
            assert sorted(zf.namelist()) == ["app.config", "bin/app"]
        assert (release_dir / "bin" / "app").read_bytes() == b"\x7fELF-binary-v2"
        assert not (release_dir / "README").exists()

    def test_missing_target_is_fresh_deploy(
        self, fake_reaper: Any, source_dir: Path, tmp_path: Path
    ) -> None:
        """A target that does not exist yet is simply populated."""
        target = tmp_path / "app" / "fresh"

        outcome = DirectoryReplacer(BackupArchiver(), fake_reaper).replace(target, source_dir)

        assert outcome.succeeded == ALL_STAGES
        assert (target / "app.config").exists()
        assert not (tmp_path / "app" / "fresh.old.zip").exists()

    def test_backup_failure_keeps_directory(
        self, fake_reaper: Any, release_dir: Path, source_dir: Path
    ) -> None:
        """A failed backup stops the pipeline before anything is deleted."""
        archiver = BackupArchiver()
        with patch.object(archiver, "backup", side_effect=ArchiveError("disk full")):
            outcome = DirectoryReplacer(archiver, fake_reaper).replace(release_dir, source_dir)

        assert outcome.attempted == [Stage.BACKUP]
        assert outcome.error == "backup: disk full"
        assert (release_dir / "README").exists()

    def test_reap_failure_still_deletes(
        self, make_reaper: Any, release_dir: Path, source_dir: Path
    ) -> None:
        """A service that will not stop is reported but deletion is attempted."""
        reaper = make_reaper(
            services=[
                ServiceBinding(
                    name="svc-app",
                    display_name="svc-app",
                    executable_path=str(release_dir / "bin" / "app"),
                    active=True,
                )
            ]
        )
        reaper.fail_stop.add("svc-app")

        outcome = DirectoryReplacer(BackupArchiver(), reaper).replace(release_dir, source_dir)

        assert outcome.success is False
        assert outcome.failed_stages == [Stage.REAP_SERVICES]
        assert Stage.DELETE in outcome.succeeded
        assert Stage.COPY in outcome.succeeded

    def test_delete_failure_skips_copy(
        self, fake_reaper: Any, release_dir: Path, source_dir: Path
    ) -> None:
        """A failed delete ends the pipeline for the directory."""
        with patch(
            "enshrine.deploy.replacer.delete_directory",
            side_effect=FilesystemError("Failed to delete: locked"),
        ):
            outcome = DirectoryReplacer(BackupArchiver(enabled=False), fake_reaper).replace(
                release_dir, source_dir
            )

        assert Stage.COPY not in outcome.attempted
        assert outcome.failed_stages == [Stage.DELETE]

    def test_current_directory_backup_survives(
        self,
        fake_reaper: Any,
        release_dir: Path,
        source_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Replacing "." keeps its backup beside the directory, outside the delete."""
        monkeypatch.chdir(release_dir)
        absolute = Path.cwd()

        outcome = DirectoryReplacer(BackupArchiver(), fake_reaper).replace(Path("."), source_dir)

        assert outcome.succeeded == ALL_STAGES
        assert outcome.path == str(absolute)
        with zipfile.ZipFile(absolute.parent / "release.old.zip") as zf:
            assert sorted(zf.namelist()) == ["README", "app.config", "bin/app"]
        assert (absolute / "app.config").read_text() == "mode=production\nversion=2\n"

    def test_unencodable_name_fails_backup_only(
        self,
        fake_reaper: Any,
        release_dir: Path,
        source_dir: Path,
        write_undecodable: Callable[[Path], Path],
    ) -> None:
        """A file zip cannot name fails the backup stage and leaves the directory."""
        write_undecodable(release_dir)

        outcome = DirectoryReplacer(BackupArchiver(), fake_reaper).replace(release_dir, source_dir)

        assert outcome.attempted == [Stage.BACKUP]
        assert outcome.failed_stages == [Stage.BACKUP]
        assert (release_dir / "README").exists()
        assert not (release_dir.parent / "release.old.zip").exists()


class TestCopy:
    """Tests for DirectoryReplacer.copy."""

    def test_copy_only(self, fake_reaper: Any, release_dir: Path, source_dir: Path) -> None:
        """Copy mode skips every destructive stage."""
        outcome = DirectoryReplacer(BackupArchiver(), fake_reaper).copy(release_dir, source_dir)

        assert outcome.attempted == [Stage.COPY]
        assert outcome.success
        assert (release_dir / "README").exists()
        assert not (release_dir.parent / "release.old.zip").exists()

    def test_relative_target_reported_absolute(
        self,
        fake_reaper: Any,
        source_dir: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Outcomes name the absolute target directory."""
        monkeypatch.chdir(tmp_path)

        outcome = DirectoryReplacer(BackupArchiver(), fake_reaper).copy(Path("out"), source_dir)

        assert outcome.path == str(Path.cwd() / "out")
        assert (tmp_path / "out" / "bin" / "app").exists()
