"""Shared fixtures for unit tests."""

import json

import pytest

from docker_attach_mcp.containers.base import ContainerExecutionError
from docker_attach_mcp.containers.docker import DockerRuntime
from docker_attach_mcp.models.attach import AttachTarget
from docker_attach_mcp.settings import InMemorySettingsStore

LIST_COMMAND = 'ps --format "{{.Names}}"'


def pidof_command(container: str, process_name: str) -> str:
    return f"exec {container} pidof {process_name}"


class FakeDockerRuntime(DockerRuntime):
    """DockerRuntime whose CLI invocations return canned output."""

    def __init__(self, outputs: dict[str, str] | None = None, fail: bool = False):
        super().__init__()
        self.outputs = outputs or {}
        self.fail = fail
        self.calls: list[str] = []
        self.available = True

    async def is_available(self) -> bool:
        return self.available

    async def execute(self, command_line: str) -> str:
        self.calls.append(command_line)
        if self.fail:
            raise ContainerExecutionError(command_line, "No such file or directory")
        return self.outputs.get(command_line, "")


class RecordingLauncher:
    """Launcher that records the targets it was given."""

    def __init__(self) -> None:
        self.targets: list[AttachTarget] = []

    async def launch(self, target: AttachTarget) -> str:
        self.targets.append(target)
        return f"launched {target.pid}"


@pytest.fixture
def fake_runtime():
    """Runtime with three containers and two dotnet PIDs in 'api'."""
    return FakeDockerRuntime(
        {
            LIST_COMMAND: "web\napi\ndb\n",
            pidof_command("api", "dotnet"): "1234 5678\n",
            pidof_command("web", "dotnet"): "42\n",
            pidof_command("db", "dotnet"): "",
            pidof_command("api", "worker"): "1234 abc\n",
        }
    )


@pytest.fixture
def settings_store():
    return InMemorySettingsStore()


@pytest.fixture
def launcher():
    return RecordingLauncher()


@pytest.fixture
def solution_root(tmp_path):
    """Solution directory with dotnet and worker configured."""
    (tmp_path / "container-debug-config.json").write_text(
        json.dumps({"DebuggableProcessNames": ["dotnet", "worker"]})
    )
    return tmp_path


@pytest.fixture
def make_runtime():
    """Factory for runtimes with custom canned output."""
    return FakeDockerRuntime
