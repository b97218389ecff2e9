"""OS entities bound to a deployment directory.

Bindings are discovered from live OS state every time they are needed
and are never cached.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ServiceBinding:
    """An OS service whose executable lives under a target directory.

    Attributes:
        name: Service unit name (e.g. ``svc-app.service``).
        display_name: Human-readable description of the service.
        executable_path: Configured executable path of the service.
        active: Whether the service was running when discovered.
        unit_path: Path of the unit definition file, if known.
    """

    name: str
    display_name: str
    executable_path: str
    active: bool = False
    unit_path: str | None = None

    def __post_init__(self) -> None:
        """Validate binding data after initialization."""
        if not self.name:
            msg = "Service name cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ProcessBinding:
    """A running process whose executable lives under a target directory.

    Attributes:
        pid: Process identifier.
        executable_path: Fully-qualified executable path.
    """

    pid: int
    executable_path: str

    def __post_init__(self) -> None:
        """Validate binding data after initialization."""
        if self.pid <= 0:
            msg = f"Process id must be positive, got {self.pid}"
            raise ValueError(msg)
