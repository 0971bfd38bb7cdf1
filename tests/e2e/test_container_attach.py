"""E2E tests for container and PID discovery.

These tests run the attach workflow against a real Docker daemon. They
require Docker to be installed and running.

Requirements:
    - Docker must be installed and running
    - Run with: pytest tests/e2e/test_container_attach.py -v

The tests start a small Alpine container running ``sleep`` processes that
stand in for the debuggable process.
"""

import asyncio
import json
import os
import shutil
import subprocess

import pytest

from docker_attach_mcp.containers.factory import create_runtime
from docker_attach_mcp.containers.models import PidQueryStatus
from docker_attach_mcp.core.session import AttachSession
from docker_attach_mcp.launcher import VsDbgLauncher
from docker_attach_mcp.models.attach import ContainerRuntime
from docker_attach_mcp.settings import JsonSettingsStore


def docker_available() -> bool:
    """Check if Docker is available."""
    if not shutil.which("docker"):
        return False
    try:
        result = subprocess.run(
            ["docker", "version", "--format", "{{.Server.Version}}"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


# Skip all tests if Docker is not available
pytestmark = [
    pytest.mark.skipif(
        not docker_available(),
        reason="Docker not available",
    ),
    pytest.mark.slow,
    pytest.mark.e2e,
    pytest.mark.container,
]


class DockerContainer:
    """Context manager for running a Docker container."""

    def __init__(
        self,
        image: str = "alpine:3.19",
        name: str | None = None,
        command: str = "sleep 3600 & sleep 3600 & wait",
    ):
        self.image = image
        self.name = name or f"docker-attach-test-{os.getpid()}"
        self.command = command
        self.container_id: str | None = None

    async def __aenter__(self) -> "DockerContainer":
        """Start the container."""
        # Remove any existing container with the same name
        subprocess.run(["docker", "rm", "-f", self.name], capture_output=True)

        cmd = ["docker", "run", "-d", "--name", self.name, self.image, "sh", "-c", self.command]
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise RuntimeError(f"Failed to start container: {result.stderr}")

        self.container_id = result.stdout.strip()

        # Wait for container to be running
        for _ in range(10):
            result = subprocess.run(
                ["docker", "inspect", "-f", "{{.State.Running}}", self.container_id],
                capture_output=True,
                text=True,
            )
            if result.stdout.strip() == "true":
                break
            await asyncio.sleep(0.5)
        else:
            raise RuntimeError("Container did not start in time")

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Stop and remove the container."""
        if self.container_id:
            subprocess.run(["docker", "rm", "-f", self.container_id], capture_output=True)


class TestDockerDiscovery:
    """Container listing and PID lookup against a real daemon."""

    @pytest.mark.asyncio
    async def test_docker_runtime_available(self):
        """Test that Docker runtime can be created and is available."""
        runtime = create_runtime("docker")
        assert runtime.runtime_type == ContainerRuntime.DOCKER
        assert await runtime.is_available()

    @pytest.mark.asyncio
    @pytest.mark.timeout(120)
    async def test_list_containers_includes_running_container(self):
        """Test that a started container is listed."""
        async with DockerContainer() as container:
            names = await create_runtime("docker").list_containers()
            assert container.name in names
            assert names == sorted(names)

    @pytest.mark.asyncio
    @pytest.mark.timeout(120)
    async def test_resolve_pids(self):
        """Test finding both sleep processes and missing processes."""
        async with DockerContainer() as container:
            runtime = create_runtime("docker")

            result = await runtime.resolve_pids(container.name, "sleep")
            assert result.status == PidQueryStatus.FOUND
            assert len(result.pids) == 2

            missing = await runtime.resolve_pids(container.name, "dotnet")
            assert missing.status == PidQueryStatus.NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.timeout(120)
    async def test_session_submit(self, tmp_path):
        """Test a full session against the container."""
        (tmp_path / "container-debug-config.json").write_text(
            json.dumps({"DebuggableProcessNames": ["sleep"]})
        )
        async with DockerContainer() as container:
            store = JsonSettingsStore(tmp_path / "settings.json")
            session = AttachSession(
                runtime=create_runtime("docker"),
                settings_store=store,
                launcher=VsDbgLauncher(tmp_path / "launch"),
                solution_root=tmp_path,
            )
            await session.open()
            await session.set_container(container.name)
            assert session.pid_selection_enabled

            target = await session.submit_attach()
            assert target.container == container.name
            assert store.read().container == container.name
            assert (tmp_path / "launch" / f"launch-{container.name}-{target.pid}.json").exists()
