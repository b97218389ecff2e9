"""Reaper implementation for systemd services and Linux processes.

Services are discovered through systemctl; processes through /proc.
Stop and terminate calls wait for the OS to confirm without a timeout.
"""

import logging
import os
import re
import signal
import subprocess
import time
from pathlib import Path

from enshrine.core.errors import ReapError
from enshrine.models.bindings import ProcessBinding, ServiceBinding
from enshrine.reaper.base import Reaper, process_path_matches, service_path_matches
from enshrine.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

_EXEC_PATH_PATTERN = re.compile(r"path=([^;]+?)\s*;")
_DELETED_SUFFIX = " (deleted)"
_SHOW_PROPERTIES = "Id,Description,ExecStart,ActiveState,LoadState,FragmentPath"
_INACTIVE_STATES = frozenset({"inactive", "failed"})


class SystemReaper(Reaper):
    """Reaper for systemd units and processes listed in /proc.

    Args:
        proc_root: Mount point of the proc filesystem.
        poll_interval: Seconds between checks while waiting for a process to exit.
    """

    # Units passed to a single `systemctl show` call
    _SHOW_BATCH: int = 100

    def __init__(self, proc_root: Path = Path("/proc"), poll_interval: float = 0.05) -> None:
        self._proc_root = proc_root
        self._poll_interval = poll_interval

    def is_available(self) -> bool:
        """Check if systemctl is available."""
        return command_exists("systemctl")

    # -- services -----------------------------------------------------------

    def find_services_under(self, directory: Path) -> list[ServiceBinding]:
        if not self.is_available():
            logger.debug("systemctl not available, no services to inspect")
            return []

        bindings: list[ServiceBinding] = []
        for properties in self._describe_units(self._list_service_units()):
            paths = _EXEC_PATH_PATTERN.findall(properties.get("ExecStart", ""))
            matching = [p for p in paths if service_path_matches(p, directory)]
            if not matching or properties.get("LoadState") == "not-found":
                continue
            bindings.append(
                ServiceBinding(
                    name=properties["Id"],
                    display_name=properties.get("Description") or properties["Id"],
                    executable_path=matching[0],
                    active=properties.get("ActiveState", "inactive") not in _INACTIVE_STATES,
                    unit_path=properties.get("FragmentPath") or None,
                )
            )
        return bindings

    def stop_service(self, service: ServiceBinding) -> None:
        result = self._systemctl(["stop", service.name], timeout=None)
        if result.success:
            return
        if self._load_state(service.name) == "not-found":
            logger.debug("Service %s vanished before it could be stopped", service.name)
            return
        raise ReapError(f"Failed to stop {service.name}: {result.detail}")

    def remove_service(self, service: ServiceBinding) -> None:
        if self._load_state(service.name) == "not-found":
            logger.debug("Service %s is already removed", service.name)
            return

        disabled = self._systemctl(["disable", service.name])
        if not disabled.success:
            logger.debug("systemctl disable %s: %s", service.name, disabled.detail)

        if service.unit_path:
            try:
                Path(service.unit_path).unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise ReapError(f"Cannot delete unit file {service.unit_path}: {e}") from e

        reloaded = self._systemctl(["daemon-reload"])
        if not reloaded.success:
            raise ReapError(f"systemctl daemon-reload failed: {reloaded.detail}")

        self._systemctl(["reset-failed", service.name])

    def _list_service_units(self) -> list[str]:
        units: set[str] = set()
        listed = self._systemctl(
            ["list-units", "--type=service", "--all", "--no-legend", "--plain"]
        )
        unit_files = self._systemctl(["list-unit-files", "--type=service", "--no-legend"])
        for result in (listed, unit_files):
            if not result.success:
                raise ReapError(f"Cannot list services: {result.detail}")
            for line in result.stdout.splitlines():
                fields = line.replace("●", " ").split()
                if not fields:
                    continue
                name = fields[0]
                # Template units cannot be stopped or inspected directly
                if name.endswith(".service") and not name.endswith("@.service"):
                    units.add(name)
        return sorted(units)

    def _describe_units(self, units: list[str]) -> list[dict[str, str]]:
        described: list[dict[str, str]] = []
        for start in range(0, len(units), self._SHOW_BATCH):
            batch = units[start : start + self._SHOW_BATCH]
            result = self._systemctl(["show", f"--property={_SHOW_PROPERTIES}", *batch])
            if not result.success:
                raise ReapError(f"Cannot describe services: {result.detail}")
            described.extend(parse_show_output(result.stdout))
        return described

    def _load_state(self, name: str) -> str:
        result = self._systemctl(["show", "--property=LoadState", "--value", name])
        return result.stdout.strip() if result.success else "not-found"

    def _systemctl(self, args: list[str], timeout: float | None = 60.0) -> CommandResult:
        try:
            return run_command(["systemctl", "--no-pager", *args], timeout=timeout)
        except OSError as e:
            raise ReapError(f"Failed to run systemctl: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise ReapError(f"systemctl {args[0]} timed out after {e.timeout:g}s") from e

    # -- processes ----------------------------------------------------------

    def find_processes_under(self, directory: Path) -> list[ProcessBinding]:
        own_pid = os.getpid()
        bindings: list[ProcessBinding] = []
        try:
            entries = list(self._proc_root.iterdir())
        except OSError as e:
            raise ReapError(f"Cannot enumerate processes in {self._proc_root}: {e}") from e

        for entry in entries:
            if not entry.name.isdigit() or int(entry.name) == own_pid:
                continue
            executable = self._executable_of(entry)
            if executable and process_path_matches(executable, directory):
                bindings.append(ProcessBinding(pid=int(entry.name), executable_path=executable))

        return sorted(bindings, key=lambda b: b.pid)

    def terminate(self, process: ProcessBinding) -> None:
        try:
            os.kill(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug("Process %d already exited", process.pid)
            return
        except PermissionError as e:
            raise ReapError(f"Not permitted to terminate process {process.pid}") from e

        while self._is_running(process.pid):
            time.sleep(self._poll_interval)

    def _executable_of(self, proc_entry: Path) -> str | None:
        try:
            target = os.readlink(proc_entry / "exe")
        except OSError:
            # Kernel threads and processes owned by other users
            return None
        if target.endswith(_DELETED_SUFFIX):
            target = target[: -len(_DELETED_SUFFIX)]
        return target or None

    def _is_running(self, pid: int) -> bool:
        try:
            stat = (self._proc_root / str(pid) / "stat").read_text()
        except (FileNotFoundError, ProcessLookupError):
            return False
        except OSError:
            # stat unreadable (e.g. EACCES), ask the kernel instead
            return _pid_exists(pid)
        # Process name is parenthesised and may contain spaces
        state = stat[stat.rfind(")") + 1 :].split()[:1]
        return bool(state) and state[0] not in ("Z", "X")


def _pid_exists(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Owned by another user
        return True
    return True


def parse_show_output(output: str) -> list[dict[str, str]]:
    """Parse `systemctl show` output into one property dict per unit."""
    units: list[dict[str, str]] = []
    current: dict[str, str] = {}
    for line in output.splitlines():
        if not line.strip():
            if current:
                units.append(current)
                current = {}
            continue
        key, sep, value = line.partition("=")
        if sep:
            current[key] = value
    if current:
        units.append(current)
    return [unit for unit in units if unit.get("Id")]
