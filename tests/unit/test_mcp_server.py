"""Tests for the MCP tool surface."""

import json

import pytest

from docker_attach_mcp import mcp_server
from docker_attach_mcp.config import ServerConfig
from docker_attach_mcp.core.session import AttachSessionManager


@pytest.fixture
def server(monkeypatch, tmp_path, fake_runtime):
    """Initialize server globals with a fake runtime and temp paths."""
    config = ServerConfig(
        settings_path=tmp_path / "settings.json",
        launch_dir=tmp_path / "launch",
    )
    monkeypatch.setattr(mcp_server, "_server_config", config)
    monkeypatch.setattr(mcp_server, "_session_manager", AttachSessionManager())
    monkeypatch.setattr(mcp_server, "create_runtime", lambda runtime: fake_runtime)
    return config


class TestDiscoveryTools:
    """Tests for the stateless discovery tools."""

    @pytest.mark.asyncio
    async def test_list_runtimes(self):
        """Test listing supported runtimes."""
        result = await mcp_server.attach_list_runtimes()
        assert result["runtimes"] == ["docker", "podman"]

    @pytest.mark.asyncio
    async def test_list_containers(self, server):
        """Test listing containers."""
        result = await mcp_server.attach_list_containers()
        assert result["containers"] == ["api", "db", "web"]
        assert result["total"] == 3

    @pytest.mark.asyncio
    async def test_list_containers_unavailable(self, server, fake_runtime):
        """Test the error when the CLI is missing."""
        fake_runtime.available = False
        result = await mcp_server.attach_list_containers()
        assert result["code"] == "RUNTIME_NOT_AVAILABLE"

    @pytest.mark.asyncio
    async def test_unsupported_runtime(self, server):
        """Test the error for an unknown runtime."""
        result = await mcp_server.attach_list_containers(runtime="lxc")
        assert result["code"] == "UNSUPPORTED_RUNTIME"
        assert "docker" in result["supported"]

    @pytest.mark.asyncio
    async def test_find_pids(self, server):
        """Test a direct PID lookup."""
        result = await mcp_server.attach_find_pids("api", "dotnet")
        assert result["status"] == "found"
        assert result["pids"] == [1234, 5678]

    @pytest.mark.asyncio
    async def test_load_config(self, solution_root):
        """Test loading configuration through the tool."""
        result = await mcp_server.attach_load_config(str(solution_root))
        assert result["ok"] is True
        assert result["debuggable_process_names"] == ["dotnet", "worker"]


class TestSessionTools:
    """Tests for the session workflow tools."""

    @pytest.mark.asyncio
    async def test_full_workflow(self, server, solution_root):
        """Test open, select, submit."""
        opened = await mcp_server.attach_open_session(str(solution_root))
        session_id = opened["session_id"]
        assert opened["container"] == "api"
        assert opened["can_attach"] is True

        selected = await mcp_server.attach_select(session_id, pid=5678)
        assert selected["selected_pid"] == 5678

        submitted = await mcp_server.attach_submit(session_id)
        assert submitted["status"] == "attached"
        assert submitted["pid"] == 5678
        launch = json.loads((server.launch_dir / "launch-api-5678.json").read_text())
        assert launch["configurations"][0]["processId"] == 5678

        settings = json.loads(server.settings_path.read_text())
        assert settings["AttachToDockerContainerDialog"]["container"] == "api"

        # Submitted sessions are closed
        missing = await mcp_server.attach_get_session(session_id)
        assert missing["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_select_invalid_container(self, server, solution_root):
        """Test the error for a container that is not listed."""
        opened = await mcp_server.attach_open_session(str(solution_root))
        result = await mcp_server.attach_select(opened["session_id"], container="nope")
        assert result["code"] == "INVALID_SELECTION"

    @pytest.mark.asyncio
    async def test_select_rejection_changes_nothing(self, server, solution_root):
        """Test that a valid container is not applied when the process name is rejected."""
        opened = await mcp_server.attach_open_session(str(solution_root))
        session_id = opened["session_id"]

        result = await mcp_server.attach_select(session_id, container="web", process_name="java")
        assert result["code"] == "INVALID_SELECTION"

        current = await mcp_server.attach_get_session(session_id)
        assert current["container"] == "api"
        assert current["process_name"] == "dotnet"
        assert current["pids"] == ["1234", "5678"]
        assert current["selected_pid"] == 1234

    @pytest.mark.asyncio
    async def test_submit_without_target(self, server, solution_root):
        """Test that submitting without a PID is refused."""
        opened = await mcp_server.attach_open_session(str(solution_root))
        selected = await mcp_server.attach_select(opened["session_id"], container="db")
        assert selected["pids"] == ["Cannot find target process!"]

        result = await mcp_server.attach_submit(opened["session_id"])
        assert result["code"] == "INVALID_STATE"

    @pytest.mark.asyncio
    async def test_refresh_and_close(self, server, solution_root):
        """Test refreshing and discarding a session."""
        opened = await mcp_server.attach_open_session(str(solution_root))
        session_id = opened["session_id"]

        refreshed = await mcp_server.attach_refresh(session_id)
        assert refreshed["pid_status"] == "found"

        listed = await mcp_server.attach_list_sessions()
        assert listed["total"] == 1

        closed = await mcp_server.attach_close_session(session_id)
        assert closed["status"] == "closed"
        assert (await mcp_server.attach_close_session(session_id))["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_open_without_config(self, server, tmp_path):
        """Test that a missing config still opens with a failure status."""
        opened = await mcp_server.attach_open_session(str(tmp_path / "empty"))
        assert opened["config_status"]["ok"] is False
        assert opened["process_selection_enabled"] is False
        assert opened["can_attach"] is False
