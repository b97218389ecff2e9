"""Abstract base class for service and process reapers.

This module defines the Reaper interface used to tear down OS services
and processes bound to a directory before that directory is deleted.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from enshrine.core.errors import ReapError
from enshrine.models.bindings import ProcessBinding, ServiceBinding

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReapResult:
    """Result of tearing down a single service or process.

    Attributes:
        target: Service name or process id that was operated on.
        success: Whether the teardown completed.
        error: Error message if the teardown failed, None otherwise.
    """

    target: str
    success: bool
    error: str | None = None


def service_path_matches(executable_path: str, directory: Path) -> bool:
    """Check whether a service executable path mentions directory.

    Matching is a case-insensitive substring test so that differences in
    path normalization between the service manager and the caller do not
    hide a bound service. The directory is made absolute first, so a
    relative name only matches under the current directory.
    """
    needle = os.path.abspath(directory).casefold()
    return needle in executable_path.casefold()


def process_path_matches(executable_path: str, directory: Path) -> bool:
    """Check whether a fully-qualified executable lives under directory."""
    executable = Path(os.path.realpath(executable_path))
    root = Path(os.path.realpath(directory))
    return executable.is_relative_to(root)


class Reaper(ABC):
    """Abstract base class for all reapers.

    Reapers discover services and processes from live OS state on every
    call and tear them down. Services are always handled before processes
    so that a service gets the chance to exit through its managed stop
    path before any remaining process is killed.

    Example:
        >>> reaper = SystemReaper()
        >>> for result in reaper.reap_services(Path("/srv/app/release")):
        ...     print(f"{result.target}: {result.success}")
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the service manager can be queried on this system."""

    @abstractmethod
    def find_services_under(self, directory: Path) -> list[ServiceBinding]:
        """Return services whose executable path mentions directory.

        Raises:
            ReapError: If services cannot be enumerated.
        """

    @abstractmethod
    def find_processes_under(self, directory: Path) -> list[ProcessBinding]:
        """Return running processes whose executable lives under directory.

        Raises:
            ReapError: If processes cannot be enumerated.
        """

    @abstractmethod
    def stop_service(self, service: ServiceBinding) -> None:
        """Stop a service and wait until the stop has completed.

        Raises:
            ReapError: If the service could not be stopped.
        """

    @abstractmethod
    def remove_service(self, service: ServiceBinding) -> None:
        """Permanently remove a service registration.

        A service that no longer exists is treated as removed.

        Raises:
            ReapError: If the registration could not be removed.
        """

    @abstractmethod
    def terminate(self, process: ProcessBinding) -> None:
        """Forcibly terminate a process and wait for it to exit.

        A process that has already exited is treated as terminated.

        Raises:
            ReapError: If the process could not be signalled.
        """

    def stop_and_remove(self, service: ServiceBinding) -> None:
        """Stop a running service, then remove its registration.

        Raises:
            ReapError: If either step fails.
        """
        if service.active:
            logger.info("Stopping service %s", service.display_name or service.name)
            self.stop_service(service)
        logger.info("Uninstalling service %s", service.display_name or service.name)
        self.remove_service(service)

    def reap_services(self, directory: Path) -> list[ReapResult]:
        """Stop and remove every service bound to directory.

        Failures are isolated per service.

        Raises:
            ReapError: If services cannot be enumerated.
        """
        results: list[ReapResult] = []
        for service in self.find_services_under(directory):
            try:
                self.stop_and_remove(service)
            except ReapError as e:
                logger.warning("Failed to remove service %s: %s", service.name, e)
                results.append(ReapResult(target=service.name, success=False, error=str(e)))
                continue
            results.append(ReapResult(target=service.name, success=True))
        return results

    def reap_processes(self, directory: Path) -> list[ReapResult]:
        """Terminate every process running from directory.

        Failures are isolated per process.

        Raises:
            ReapError: If processes cannot be enumerated.
        """
        logger.info("Stopping processes in directory: %s", directory)
        results: list[ReapResult] = []
        for process in self.find_processes_under(directory):
            logger.info("Terminating process %d (%s)", process.pid, process.executable_path)
            try:
                self.terminate(process)
            except ReapError as e:
                logger.warning("Failed to terminate process %d: %s", process.pid, e)
                results.append(ReapResult(target=str(process.pid), success=False, error=str(e)))
                continue
            results.append(ReapResult(target=str(process.pid), success=True))
        return results
