"""Abstract base class for container runtime adapters.

This module defines the interface that all container runtime implementations
(Docker, Podman) must implement.
"""

from abc import ABC, abstractmethod
from typing import Any

from docker_attach_mcp.containers.models import PidQueryResult
from docker_attach_mcp.models.attach import ContainerRuntime


class ContainerError(Exception):
    """Base exception for container operations."""

    def __init__(
        self,
        message: str,
        code: str = "CONTAINER_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ContainerExecutionError(ContainerError):
    """The runtime CLI could not be started or did not complete."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"Failed to run '{command}': {reason}",
            code="CONTAINER_EXECUTION_ERROR",
            details={"command": command, "reason": reason},
        )


class ContainerRuntimeAdapter(ABC):
    """Abstract base class for container runtime adapters.

    Each runtime must implement this interface to provide container and
    process discovery for attaching a debugger.
    """

    @property
    @abstractmethod
    def runtime_type(self) -> ContainerRuntime:
        """The container runtime type this adapter handles."""
        ...

    @property
    @abstractmethod
    def cli_command(self) -> str:
        """The CLI command for this runtime (e.g., 'docker', 'podman')."""
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the runtime CLI is available on the system.

        Returns:
            True if the CLI is installed and accessible
        """
        ...

    @abstractmethod
    async def execute(self, command_line: str) -> str:
        """Run a single runtime CLI command and return its standard output.

        Args:
            command_line: Arguments for the runtime CLI, e.g. ``ps -q``

        Returns:
            Captured standard output, untrimmed

        Raises:
            ContainerExecutionError: If the CLI cannot be started
        """
        ...

    @abstractmethod
    async def list_containers(self) -> list[str]:
        """List the names of running containers.

        Returns:
            Container names sorted by ordinal comparison, duplicates kept
        """
        ...

    @abstractmethod
    async def resolve_pids(self, container: str, process_name: str) -> PidQueryResult:
        """Find the PIDs of a named process inside a container.

        Args:
            container: Running container name
            process_name: Executable name to look up

        Returns:
            PidQueryResult classifying the lookup
        """
        ...
