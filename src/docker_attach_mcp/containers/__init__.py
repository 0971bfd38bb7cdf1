"""Container runtime support.

This package provides container runtime adapters used to list running
containers and look up process IDs inside them.

Supported runtimes:
- Docker
- Podman
"""

from docker_attach_mcp.containers.base import (
    ContainerError,
    ContainerExecutionError,
    ContainerRuntimeAdapter,
)
from docker_attach_mcp.containers.factory import create_runtime, get_supported_runtimes
from docker_attach_mcp.containers.models import PidQueryResult, PidQueryStatus

__all__ = [
    "ContainerError",
    "ContainerExecutionError",
    "ContainerRuntimeAdapter",
    "PidQueryResult",
    "PidQueryStatus",
    "create_runtime",
    "get_supported_runtimes",
]
