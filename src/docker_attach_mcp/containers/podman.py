"""Podman container runtime adapter.

Podman is Docker CLI-compatible, so this adapter extends DockerRuntime
with the CLI command changed to 'podman'.
"""

from docker_attach_mcp.containers.docker import DockerRuntime
from docker_attach_mcp.models.attach import ContainerRuntime


class PodmanRuntime(DockerRuntime):
    """Podman container runtime adapter.

    ``podman ps --format`` and ``podman exec`` accept the same arguments
    as Docker, so container listing and PID lookup are inherited unchanged.
    """

    def __init__(self) -> None:
        """Initialize the Podman runtime."""
        super().__init__(cli_override="podman")

    @property
    def runtime_type(self) -> ContainerRuntime:
        """The container runtime type."""
        return ContainerRuntime.PODMAN
