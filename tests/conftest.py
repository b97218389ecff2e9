"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
import shutil
from collections.abc import Callable
from pathlib import Path

# Wide console so Rich does not fold paths in captured CLI output.
# Must be set before enshrine creates its shared consoles.
os.environ["COLUMNS"] = "240"

import pytest  # noqa: E402
from enshrine.core.errors import ReapError  # noqa: E402
from enshrine.models.bindings import ProcessBinding, ServiceBinding  # noqa: E402
from enshrine.reaper.base import (  # noqa: E402
    Reaper,
    process_path_matches,
    service_path_matches,
)


class FakeReaper(Reaper):
    """In-memory reaper that never touches real OS state.

    Services and processes are registered up front; stop, remove and
    terminate mutate the in-memory registry and record the call.
    """

    def __init__(
        self,
        services: list[ServiceBinding] | None = None,
        processes: list[ProcessBinding] | None = None,
    ) -> None:
        self.services = {s.name: s for s in services or []}
        self.processes = {p.pid: p for p in processes or []}
        self.stopped: list[str] = []
        self.removed: list[str] = []
        self.terminated: list[int] = []
        self.fail_stop: set[str] = set()
        self.fail_terminate: set[int] = set()

    def is_available(self) -> bool:
        return True

    def find_services_under(self, directory: Path) -> list[ServiceBinding]:
        return [
            s
            for s in self.services.values()
            if service_path_matches(s.executable_path, directory)
        ]

    def find_processes_under(self, directory: Path) -> list[ProcessBinding]:
        return [
            p
            for p in self.processes.values()
            if process_path_matches(p.executable_path, directory)
        ]

    def stop_service(self, service: ServiceBinding) -> None:
        if service.name in self.fail_stop:
            raise ReapError(f"Failed to stop {service.name}")
        self.stopped.append(service.name)

    def remove_service(self, service: ServiceBinding) -> None:
        self.services.pop(service.name, None)
        self.removed.append(service.name)

    def terminate(self, process: ProcessBinding) -> None:
        if process.pid in self.fail_terminate:
            raise ReapError(f"Not permitted to terminate process {process.pid}")
        self.processes.pop(process.pid, None)
        self.terminated.append(process.pid)


@pytest.fixture(autouse=True)
def isolated_xdg(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point config and state directories at a temporary home."""
    home = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / "state"))
    return home


@pytest.fixture
def fake_reaper() -> FakeReaper:
    """Empty FakeReaper."""
    return FakeReaper()


@pytest.fixture
def make_reaper() -> type[FakeReaper]:
    """FakeReaper class, for tests that register services or processes."""
    return FakeReaper


@pytest.fixture
def git_available() -> None:
    """Skip the test when the git executable is not installed."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")


@pytest.fixture
def release_dir(tmp_path: Path) -> Path:
    """A deployed directory with three files."""
    release = tmp_path / "app" / "release"
    (release / "bin").mkdir(parents=True)
    (release / "app.config").write_text("mode=production\n")
    (release / "bin" / "app").write_bytes(b"\x7fELF-binary")
    (release / "README").write_text("release notes\n")
    return release


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A deployment source with new content."""
    source = tmp_path / "build"
    (source / "bin").mkdir(parents=True)
    (source / "bin" / "app").write_bytes(b"\x7fELF-binary-v2")
    (source / "app.config").write_text("mode=production\nversion=2\n")
    return source


@pytest.fixture
def undecodable_name() -> str:
    """A file name whose bytes are not valid UTF-8 (b"bad\\xff.txt")."""
    return os.fsdecode(b"bad\xff.txt")


@pytest.fixture
def write_undecodable(undecodable_name: str) -> Callable[[Path], Path]:
    """Create a file with a non-UTF-8 name in a directory.

    Skips the test on filesystems that reject such names.
    """

    def _write(directory: Path) -> Path:
        path = directory / undecodable_name
        try:
            path.write_text("not utf-8 named\n")
        except (OSError, UnicodeEncodeError):
            pytest.skip("filesystem rejects non-UTF-8 file names")
        return path

    return _write
