"""Container runtime factory.

This module provides factory functions for creating container runtime
adapters based on the runtime type (Docker, Podman).
"""

from docker_attach_mcp.containers.base import ContainerError, ContainerRuntimeAdapter
from docker_attach_mcp.containers.docker import DockerRuntime
from docker_attach_mcp.containers.podman import PodmanRuntime
from docker_attach_mcp.models.attach import ContainerRuntime


class UnsupportedRuntimeError(ContainerError):
    """Raised when a container runtime is not supported."""

    def __init__(self, runtime: str):
        super().__init__(
            f"Container runtime '{runtime}' is not supported",
            code="UNSUPPORTED_RUNTIME",
            details={
                "runtime": runtime,
                "supported": [r.value for r in ContainerRuntime],
            },
        )


# Registry of runtime adapters
_RUNTIME_REGISTRY: dict[ContainerRuntime, type[ContainerRuntimeAdapter]] = {
    ContainerRuntime.DOCKER: DockerRuntime,
    ContainerRuntime.PODMAN: PodmanRuntime,
}


def create_runtime(runtime: str | ContainerRuntime) -> ContainerRuntimeAdapter:
    """Create a container runtime adapter.

    Args:
        runtime: Runtime type (docker, podman)

    Returns:
        Container runtime adapter instance

    Raises:
        UnsupportedRuntimeError: If runtime is not supported
    """
    # Normalize to enum
    if isinstance(runtime, str):
        try:
            runtime_enum = ContainerRuntime(runtime.lower())
        except ValueError:
            raise UnsupportedRuntimeError(runtime)
    else:
        runtime_enum = runtime

    adapter_class = _RUNTIME_REGISTRY.get(runtime_enum)
    if adapter_class is None:
        raise UnsupportedRuntimeError(runtime_enum.value)

    return adapter_class()


def get_supported_runtimes() -> list[str]:
    """Get list of supported runtime identifiers.

    Returns:
        List of runtime strings that have registered adapters
    """
    return [rt.value for rt in _RUNTIME_REGISTRY]


def is_runtime_supported(runtime: str) -> bool:
    """Check if a runtime is supported.

    Args:
        runtime: Runtime identifier

    Returns:
        True if an adapter is registered for the runtime
    """
    try:
        runtime_enum = ContainerRuntime(runtime.lower())
        return runtime_enum in _RUNTIME_REGISTRY
    except ValueError:
        return False
