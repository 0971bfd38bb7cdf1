"""Attach session: the container / process / PID selection workflow.

A session is opened against a solution root. Opening loads the debuggable
process names, lists running containers and restores the last-used
selections. Every change of container or process name re-queries the
container for matching PIDs; attaching is only possible once at least one
PID has been found.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from docker_attach_mcp.config import load_attach_config
from docker_attach_mcp.containers.base import ContainerRuntimeAdapter
from docker_attach_mcp.containers.models import PID_NOT_FOUND_MESSAGE, PidQueryResult
from docker_attach_mcp.core.exceptions import (
    InvalidSelectionError,
    InvalidSessionStateError,
    SessionLimitError,
    SessionNotFoundError,
)
from docker_attach_mcp.launcher import AttachLauncher
from docker_attach_mcp.models.attach import (
    DEFAULT_DEBUGGER_PATH,
    AttachConfig,
    AttachTarget,
    PersistedSettings,
    StatusMessage,
)
from docker_attach_mcp.settings import SettingsStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle of an attach session."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SUBMITTED = "submitted"


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class AttachSession:
    """Selection state for attaching a debugger to a container process.

    The settings store and launcher are supplied by the owner; the session
    reads settings once in ``open()`` and writes them once in
    ``submit_attach()``.
    """

    def __init__(
        self,
        runtime: ContainerRuntimeAdapter,
        settings_store: SettingsStore,
        launcher: AttachLauncher,
        solution_root: str | Path,
        session_id: str | None = None,
    ):
        self.id = session_id or uuid.uuid4().hex[:12]
        self.runtime = runtime
        self.settings_store = settings_store
        self.launcher = launcher
        self.solution_root = Path(solution_root)
        self.created_at = datetime.now(timezone.utc)

        self.state = SessionState.UNINITIALIZED
        self.config = AttachConfig()
        self.status = StatusMessage(ok=False, text="")
        self.containers: list[str] = []

        self.container: str | None = None
        self.process_name: str | None = None
        self.debugger_path = DEFAULT_DEBUGGER_PATH
        self.pid_result = PidQueryResult.not_found()
        self.selected_pid: int | None = None

        self.attach_target: AttachTarget | None = None
        self.launch_result: Any = None

        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def process_names(self) -> list[str]:
        return list(self.config.debuggable_process_names)

    @property
    def process_selection_enabled(self) -> bool:
        return bool(self.config.debuggable_process_names)

    @property
    def can_attach(self) -> bool:
        """Attach is allowed iff the lookup found at least one PID."""
        return self.state == SessionState.READY and self.pid_result.is_found

    @property
    def pid_selection_enabled(self) -> bool:
        """A PID choice is only offered when more than one PID was found."""
        return self.can_attach and len(self.pid_result.pids) > 1

    @property
    def pid_display(self) -> list[str]:
        if not self.pid_result.is_found:
            return [PID_NOT_FOUND_MESSAGE]
        return [str(pid) for pid in self.pid_result.pids]

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _require_ready(self, operation: str) -> None:
        if self.state != SessionState.READY:
            raise InvalidSessionStateError(
                f"Cannot {operation} while session is {self.state.value}",
                details={"state": self.state.value, "operation": operation},
            )

    async def open(self) -> None:
        """Load candidates and previous selections, then resolve PIDs."""
        async with self._lock:
            if self.state != SessionState.UNINITIALIZED:
                raise InvalidSessionStateError(
                    f"Session {self.id} is already open",
                    details={"state": self.state.value},
                )

            loaded = load_attach_config(self.solution_root)
            self.config = loaded.config
            self.status = loaded.status

            self.containers = await self.runtime.list_containers()
            previous = self.settings_store.read()
            self._restore(previous)

            self.state = SessionState.READY
            await self._recompute()
            logger.info(
                f"Opened attach session {self.id}: {len(self.containers)} containers, "
                f"{len(self.process_names)} process names"
            )

    def _restore(self, previous: PersistedSettings) -> None:
        if previous.container and previous.container in self.containers:
            self.container = previous.container
        else:
            self.container = self.containers[0] if self.containers else None

        self.debugger_path = previous.vsdbg or DEFAULT_DEBUGGER_PATH

        names = self.process_names
        if previous.processname and previous.processname in names:
            self.process_name = previous.processname
        else:
            self.process_name = names[0] if names else None

    async def _query(self, container: str | None, process_name: str | None) -> PidQueryResult:
        if not container or not container.strip():
            return PidQueryResult.not_found()
        if not process_name or not process_name.strip():
            return PidQueryResult.not_found()
        return await self.runtime.resolve_pids(container, process_name)

    async def _recompute(self) -> PidQueryResult:
        self.pid_result = await self._query(self.container, self.process_name)
        self.selected_pid = self.pid_result.pids[0] if self.pid_result.is_found else None
        return self.pid_result

    async def recompute_pids(self) -> PidQueryResult:
        """Re-query the selected container for the selected process."""
        async with self._lock:
            self._require_ready("recompute PIDs")
            return await self._recompute()

    async def set_container(self, container: str | None) -> PidQueryResult:
        """Select a container (None or blank clears it) and recompute PIDs.

        Raises:
            InvalidSelectionError: If the container was not listed
        """
        async with self._lock:
            self._require_ready("select a container")
            if not _is_blank(container) and container not in self.containers:
                raise InvalidSelectionError("container", container, self.containers)
            self.container = container
            return await self._recompute()

    async def set_process_name(self, process_name: str | None) -> PidQueryResult:
        """Select a process name (None or blank clears it) and recompute PIDs.

        Raises:
            InvalidSelectionError: If the name is not a debuggable process name
        """
        async with self._lock:
            self._require_ready("select a process name")
            if not _is_blank(process_name) and process_name not in self.process_names:
                raise InvalidSelectionError("process name", process_name, self.process_names)
            self.process_name = process_name
            return await self._recompute()

    def set_debugger_path(self, debugger_path: str) -> None:
        self._require_ready("set the debugger path")
        self.debugger_path = debugger_path

    def select_pid(self, pid: int) -> None:
        """Choose among several found PIDs.

        Raises:
            InvalidSelectionError: If the PID was not found or there is no choice
        """
        self._require_ready("select a PID")
        if not self.pid_selection_enabled or pid not in self.pid_result.pids:
            raise InvalidSelectionError("PID", pid, list(self.pid_result.pids))
        self.selected_pid = pid

    async def select(
        self,
        container: str | None = None,
        process_name: str | None = None,
        debugger_path: str | None = None,
        pid: int | None = None,
    ) -> PidQueryResult:
        """Apply several selections at once. None leaves a selection unchanged.

        Every value is checked before any is applied, so a rejected value
        leaves the session as it was. A new container or process name is
        queried once; ``pid`` is then checked against that lookup.

        Raises:
            InvalidSelectionError: If any value is not among its choices
        """
        async with self._lock:
            self._require_ready("change selections")
            if container is not None and not _is_blank(container):
                if container not in self.containers:
                    raise InvalidSelectionError("container", container, self.containers)
            if process_name is not None and not _is_blank(process_name):
                if process_name not in self.process_names:
                    raise InvalidSelectionError("process name", process_name, self.process_names)

            new_container = self.container if container is None else container
            new_process_name = self.process_name if process_name is None else process_name
            requery = container is not None or process_name is not None
            if requery:
                result = await self._query(new_container, new_process_name)
                selected_pid = result.pids[0] if result.is_found else None
            else:
                result = self.pid_result
                selected_pid = self.selected_pid

            if pid is not None:
                if len(result.pids) < 2 or pid not in result.pids:
                    raise InvalidSelectionError("PID", pid, list(result.pids))
                selected_pid = pid

            self.container = new_container
            self.process_name = new_process_name
            if debugger_path is not None:
                self.debugger_path = debugger_path
            self.pid_result = result
            self.selected_pid = selected_pid
            return result

    async def submit_attach(self) -> AttachTarget:
        """Persist the selections and hand the attach target to the launcher.

        Returns:
            The AttachTarget that was launched

        Raises:
            InvalidSessionStateError: If no PID is available to attach to
        """
        async with self._lock:
            self._require_ready("attach")
            container = self.container
            pid = self.selected_pid
            if not self.can_attach or container is None or pid is None:
                raise InvalidSessionStateError(
                    "Cannot attach: no target process found",
                    details={"pid_status": self.pid_result.status.value},
                )

            target = AttachTarget(
                container=container,
                debugger_path=self.debugger_path,
                pid=pid,
            )
            self.settings_store.write(
                PersistedSettings(
                    container=container,
                    vsdbg=self.debugger_path,
                    processname=self.process_name,
                )
            )
            self.launch_result = await self.launcher.launch(target)

            self.attach_target = target
            self.state = SessionState.SUBMITTED
            logger.info(f"Session {self.id} attached to PID {target.pid} in {target.container}")
            return target

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the session."""
        return {
            "session_id": self.id,
            "state": self.state.value,
            "solution_root": str(self.solution_root),
            "config_status": self.status.model_dump(),
            "containers": list(self.containers),
            "container": self.container,
            "process_names": self.process_names,
            "process_name": self.process_name,
            "process_selection_enabled": self.process_selection_enabled,
            "debugger_path": self.debugger_path,
            "pid_status": self.pid_result.status.value,
            "pids": self.pid_display,
            "selected_pid": self.selected_pid,
            "pid_selection_enabled": self.pid_selection_enabled,
            "can_attach": self.can_attach,
        }


class AttachSessionManager:
    """Holds the open attach sessions of a server process."""

    def __init__(self, max_sessions: int = 20):
        self.max_sessions = max_sessions
        self._sessions: dict[str, AttachSession] = {}

    def add(self, session: AttachSession) -> AttachSession:
        if len(self._sessions) >= self.max_sessions:
            raise SessionLimitError(self.max_sessions)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> AttachSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def remove(self, session_id: str) -> AttachSession:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> list[AttachSession]:
        return list(self._sessions.values())

    def clear(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        return count
