"""Docker container runtime adapter.

This module provides the Docker implementation of the container runtime
adapter used to discover containers and debuggable processes.
"""

import asyncio
import logging
import re
import shlex
import shutil

from docker_attach_mcp.containers.base import (
    ContainerExecutionError,
    ContainerRuntimeAdapter,
)
from docker_attach_mcp.containers.models import ExecResult, PidQueryResult
from docker_attach_mcp.models.attach import ContainerRuntime

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def parse_container_names(output: str) -> list[str]:
    """Parse one-name-per-line output into a sorted list of names.

    Lines may end in any of ``\\r\\n``, ``\\r`` or ``\\n``. Empty lines are
    dropped; duplicates are kept.
    """
    names = [line for line in _LINE_BREAK.split(output) if line]
    return sorted(names)


class DockerRuntime(ContainerRuntimeAdapter):
    """Docker container runtime adapter.

    Uses the Docker CLI to interact with containers. This implementation
    works with both Docker and Podman (which provides Docker CLI compatibility).
    """

    def __init__(self, cli_override: str | None = None):
        """Initialize the Docker runtime.

        Args:
            cli_override: Override the CLI command (useful for Podman)
        """
        self._cli_override = cli_override

    @property
    def runtime_type(self) -> ContainerRuntime:
        """The container runtime type."""
        return ContainerRuntime.DOCKER

    @property
    def cli_command(self) -> str:
        """The CLI command for Docker."""
        if self._cli_override:
            return self._cli_override
        return "docker"

    async def is_available(self) -> bool:
        """Check if Docker CLI is available."""
        cmd = shutil.which(self.cli_command)
        if not cmd:
            return False

        try:
            proc = await asyncio.create_subprocess_exec(
                self.cli_command,
                "version",
                "--format",
                "{{.Server.Version}}",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            await asyncio.wait_for(proc.wait(), timeout=5.0)
            return proc.returncode == 0
        except (asyncio.TimeoutError, OSError):
            return False

    async def _run_cli(
        self,
        *args: str,
        timeout: float | None = None,
    ) -> ExecResult:
        """Run a Docker CLI command.

        Args:
            *args: Command arguments
            timeout: Command timeout, None waits for the process to exit

        Returns:
            ExecResult with stdout, stderr, exit code

        Raises:
            ContainerExecutionError: If the CLI could not be started
        """
        cmd = [self.cli_command, *args]
        command_text = " ".join(cmd)
        logger.debug(f"Running: {command_text}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ContainerExecutionError(command_text, str(e)) from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return ExecResult(
                exit_code=-1,
                stdout="",
                stderr="Command timed out",
                timed_out=True,
            )

        result = ExecResult(
            exit_code=proc.returncode or 0,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )
        if not result.success:
            logger.debug(
                f"'{command_text}' exited with {result.exit_code}: {result.stderr.strip()[:200]}"
            )
        return result

    async def execute(self, command_line: str) -> str:
        """Run a Docker CLI command line and return its stdout verbatim."""
        try:
            args = shlex.split(command_line)
        except ValueError as e:
            raise ContainerExecutionError(command_line, str(e)) from e

        result = await self._run_cli(*args)
        return result.stdout

    async def list_containers(self) -> list[str]:
        """List running container names, sorted."""
        try:
            output = await self.execute('ps --format "{{.Names}}"')
        except ContainerExecutionError as e:
            logger.warning(f"Listing containers failed: {e.message}")
            output = ""
        return parse_container_names(output)

    async def resolve_pids(self, container: str, process_name: str) -> PidQueryResult:
        """Find PIDs of a process inside a container using ``pidof``."""
        if not container or not container.strip():
            return PidQueryResult.not_found()
        if not process_name or not process_name.strip():
            return PidQueryResult.not_found()

        command_line = f"exec {shlex.quote(container)} pidof {shlex.quote(process_name)}"
        try:
            output = await self.execute(command_line)
        except ContainerExecutionError as e:
            # Indistinguishable from an empty lookup for callers
            logger.warning(f"PID lookup in {container} failed: {e.message}")
            output = ""

        result = PidQueryResult.from_output(output)
        logger.debug(
            f"pidof {process_name} in {container}: {result.status.value} {list(result.pids)}"
        )
        return result
