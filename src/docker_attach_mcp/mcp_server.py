"""MCP Server for attaching vsdbg to processes in containers.

This module exposes the container attach workflow as MCP (Model Context
Protocol) tools. An IDE or AI agent opens a session for a solution, picks a
container and a debuggable process name, and submits the attach once a
target PID has been found.

Usage:
    # Run as stdio server (for IDE / AI host integration)
    python -m docker_attach_mcp.mcp_server

    # Or via entry point
    docker-attach-mcp
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP

from docker_attach_mcp.config import ServerConfig, load_attach_config
from docker_attach_mcp.containers.base import ContainerError
from docker_attach_mcp.containers.factory import (
    create_runtime,
    get_supported_runtimes,
    is_runtime_supported,
)
from docker_attach_mcp.core.exceptions import (
    AttachSessionError,
    InvalidSelectionError,
    InvalidSessionStateError,
    SessionLimitError,
    SessionNotFoundError,
)
from docker_attach_mcp.core.session import AttachSession, AttachSessionManager
from docker_attach_mcp.launcher import VsDbgLauncher
from docker_attach_mcp.settings import JsonSettingsStore

logger = logging.getLogger(__name__)

# Global state (initialized in lifespan)
_session_manager: AttachSessionManager | None = None
_server_config: ServerConfig | None = None


@asynccontextmanager
async def lifespan(app: FastMCP):  # type: ignore[no-untyped-def]
    """Manage the lifecycle of the session manager."""
    global _session_manager, _server_config
    _server_config = ServerConfig.from_env()
    _session_manager = AttachSessionManager(max_sessions=_server_config.max_sessions)
    logger.info("Docker attach MCP server started")
    try:
        yield {"session_manager": _session_manager}
    finally:
        closed = _session_manager.clear()
        logger.info(f"Docker attach MCP server stopped ({closed} sessions discarded)")


# Create the MCP server
mcp = FastMCP(
    name="docker-attach",
    instructions="""Attach the vsdbg .NET debugger to a process inside a Docker or Podman container. Workflow: attach_open_session(solution_root) -> attach_select(container/process_name/pid/debugger_path) -> attach_submit. The solution root must hold container-debug-config.json listing DebuggableProcessNames.""",
    lifespan=lifespan,
)


def _get_manager() -> AttachSessionManager:
    """Get the session manager, raising if not initialized."""
    if _session_manager is None:
        raise RuntimeError("Session manager not initialized")
    return _session_manager


def _get_config() -> ServerConfig:
    """Get the server config, raising if not initialized."""
    if _server_config is None:
        raise RuntimeError("Server config not initialized")
    return _server_config


def _unsupported_runtime(runtime: str) -> dict[str, Any]:
    return {
        "error": f"Unsupported runtime: {runtime}",
        "code": "UNSUPPORTED_RUNTIME",
        "supported": get_supported_runtimes(),
    }


def _session_error(e: AttachSessionError) -> dict[str, Any]:
    return {"error": e.message, "code": e.code, "details": e.details}


# =============================================================================
# Discovery Tools
# =============================================================================


@mcp.tool()
async def attach_list_runtimes() -> dict[str, Any]:
    """List supported container runtimes."""
    return {
        "runtimes": get_supported_runtimes(),
        "default": "docker",
    }


@mcp.tool()
async def attach_list_containers(runtime: str = "docker") -> dict[str, Any]:
    """List running container names, sorted.

    Args:
        runtime: Container runtime - "docker" or "podman"
    """
    if not is_runtime_supported(runtime):
        return _unsupported_runtime(runtime)

    adapter = create_runtime(runtime)
    if not await adapter.is_available():
        return {
            "error": f"{runtime} CLI not available",
            "code": "RUNTIME_NOT_AVAILABLE",
            "hint": f"Ensure {adapter.cli_command} is installed and the daemon is running",
        }

    containers = await adapter.list_containers()
    return {"runtime": runtime, "containers": containers, "total": len(containers)}


@mcp.tool()
async def attach_find_pids(
    container: str,
    process_name: str,
    runtime: str = "docker",
) -> dict[str, Any]:
    """Find PIDs of a named process inside a container.

    Args:
        container: Container name
        process_name: Process name to look up with pidof (e.g., "dotnet")
        runtime: Container runtime - "docker" or "podman"
    """
    if not is_runtime_supported(runtime):
        return _unsupported_runtime(runtime)

    adapter = create_runtime(runtime)
    result = await adapter.resolve_pids(container, process_name)
    return {
        "container": container,
        "process_name": process_name,
        "status": result.status.value,
        "pids": list(result.pids),
    }


@mcp.tool()
async def attach_load_config(solution_root: str) -> dict[str, Any]:
    """Load container-debug-config.json from a solution root.

    Args:
        solution_root: Solution directory (or the config file path)
    """
    loaded = load_attach_config(solution_root)
    return {
        "ok": loaded.status.ok,
        "message": loaded.status.text,
        "debuggable_process_names": loaded.config.debuggable_process_names,
    }


# =============================================================================
# Session Tools
# =============================================================================


@mcp.tool()
async def attach_open_session(solution_root: str, runtime: str = "docker") -> dict[str, Any]:
    """Open an attach session. Returns session_id and the initial selections.

    Args:
        solution_root: Solution directory holding container-debug-config.json
        runtime: Container runtime - "docker" or "podman"
    """
    if not is_runtime_supported(runtime):
        return _unsupported_runtime(runtime)

    manager = _get_manager()
    config = _get_config()
    adapter = create_runtime(runtime)

    session = AttachSession(
        runtime=adapter,
        settings_store=JsonSettingsStore(config.settings_path),
        launcher=VsDbgLauncher(
            launch_dir=config.launch_dir,
            cli_command=adapter.cli_command,
            host_command=config.host_command,
        ),
        solution_root=solution_root,
    )
    try:
        manager.add(session)
    except SessionLimitError as e:
        return _session_error(e)

    try:
        await session.open()
    except ContainerError as e:
        manager.remove(session.id)
        return {"error": e.message, "code": e.code, "details": e.details}

    return session.snapshot()


@mcp.tool()
async def attach_get_session(session_id: str) -> dict[str, Any]:
    """Get the current selections of a session.

    Args:
        session_id: Session ID from attach_open_session
    """
    try:
        return _get_manager().get(session_id).snapshot()
    except SessionNotFoundError as e:
        return _session_error(e)


@mcp.tool()
async def attach_list_sessions() -> dict[str, Any]:
    """List open attach sessions."""
    sessions = _get_manager().list_sessions()
    return {
        "sessions": [
            {
                "session_id": s.id,
                "solution_root": str(s.solution_root),
                "state": s.state.value,
                "container": s.container,
                "process_name": s.process_name,
                "created_at": s.created_at.isoformat(),
            }
            for s in sessions
        ],
        "total": len(sessions),
    }


@mcp.tool()
async def attach_select(
    session_id: str,
    container: str | None = None,
    process_name: str | None = None,
    debugger_path: str | None = None,
    pid: int | None = None,
) -> dict[str, Any]:
    """Change selections of a session. Omitted arguments are left unchanged.

    Changing the container or process name re-queries the PIDs. A PID can
    only be chosen when several were found. If any value is rejected, no
    selection is changed.

    Args:
        session_id: Session ID from attach_open_session
        container: Container name from the session's container list
        process_name: One of the configured debuggable process names
        debugger_path: Path of vsdbg inside the container
        pid: PID to attach to, among the found PIDs
    """
    try:
        session = _get_manager().get(session_id)
        await session.select(
            container=container,
            process_name=process_name,
            debugger_path=debugger_path,
            pid=pid,
        )
        return session.snapshot()
    except (SessionNotFoundError, InvalidSessionStateError, InvalidSelectionError) as e:
        return _session_error(e)


@mcp.tool()
async def attach_refresh(session_id: str) -> dict[str, Any]:
    """Re-query PIDs for the current container and process name.

    Args:
        session_id: Session ID from attach_open_session
    """
    try:
        session = _get_manager().get(session_id)
        await session.recompute_pids()
        return session.snapshot()
    except (SessionNotFoundError, InvalidSessionStateError) as e:
        return _session_error(e)


@mcp.tool()
async def attach_submit(session_id: str) -> dict[str, Any]:
    """Attach the debugger to the selected PID and close the session.

    The selections are saved as defaults for the next session.

    Args:
        session_id: Session ID from attach_open_session
    """
    manager = _get_manager()
    try:
        session = manager.get(session_id)
        target = await session.submit_attach()
    except (SessionNotFoundError, InvalidSessionStateError) as e:
        return _session_error(e)
    except OSError as e:
        logger.exception("Attach launch failed")
        return {"error": str(e), "code": "ATTACH_FAILED"}

    manager.remove(session_id)
    return {
        "status": "attached",
        "session_id": session_id,
        "container": target.container,
        "debugger_path": target.debugger_path,
        "pid": target.pid,
        "launch_file": str(session.launch_result) if session.launch_result else None,
    }


@mcp.tool()
async def attach_close_session(session_id: str) -> dict[str, Any]:
    """Discard a session without attaching.

    Args:
        session_id: Session ID from attach_open_session
    """
    try:
        _get_manager().remove(session_id)
    except SessionNotFoundError as e:
        return _session_error(e)
    return {"status": "closed", "session_id": session_id}


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run the MCP server via stdio transport."""
    import sys

    config = ServerConfig.from_env()

    # Configure logging to stderr (stdout is for MCP protocol)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    # Run with stdio transport
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
