"""Debugger launch for a resolved attach target.

The launcher turns an AttachTarget into a debug-adapter launch document that
pipes the adapter protocol through ``<cli> exec -i <container> <vsdbg>
--interpreter=vscode`` and requests a ``coreclr`` attach to the PID. The
document is written to the launch directory and, when a host command is
configured (for example an IDE's debug-adapter-host command), handed to it.
"""

import asyncio
import json
import logging
import re
import shlex
from pathlib import Path
from typing import Any, Protocol

from docker_attach_mcp.models.attach import AttachTarget

logger = logging.getLogger(__name__)

CSHARP_LANGUAGE_ID = "3F5162F8-07C6-11D3-9053-00C04FA302A1"
CLR_EXCEPTION_CATEGORY = "449EC4CC-30D2-4032-9256-EE18EB41B62B"
MDA_EXCEPTION_CATEGORY = "6ECE07A9-0EDE-45C4-8296-818D8FC401D4"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class AttachLauncher(Protocol):
    """Performs the debugger attach for a resolved target."""

    async def launch(self, target: AttachTarget) -> Any: ...


class VsDbgLauncher:
    """Launches vsdbg inside a container through the runtime CLI."""

    def __init__(
        self,
        launch_dir: str | Path,
        cli_command: str = "docker",
        host_command: list[str] | None = None,
    ):
        """Initialize the launcher.

        Args:
            launch_dir: Directory receiving the generated launch documents
            cli_command: Runtime CLI used as the adapter pipe (docker, podman)
            host_command: Command that receives the launch document path as
                its last argument; the document is only written when None

        The most recently started host command is kept in ``last_process``.
        """
        self.launch_dir = Path(launch_dir).expanduser()
        self.cli_command = cli_command
        self.host_command = host_command
        self.last_process: asyncio.subprocess.Process | None = None

    def build_launch_document(self, target: AttachTarget) -> dict[str, Any]:
        """Build the debug-adapter launch document for a target."""
        adapter_args = shlex.join(
            ["exec", "-i", target.container, target.debugger_path, "--interpreter=vscode"]
        )
        return {
            "version": "0.2.0",
            "adapter": self.cli_command,
            "adapterArgs": adapter_args,
            "languageMappings": {
                "C#": {
                    "languageId": CSHARP_LANGUAGE_ID,
                    "extensions": ["*"],
                },
            },
            "exceptionCategoryMappings": {
                "CLR": CLR_EXCEPTION_CATEGORY,
                "MDA": MDA_EXCEPTION_CATEGORY,
            },
            "configurations": [
                {
                    "name": ".NET Core Docker Attach",
                    "type": "coreclr",
                    "request": "attach",
                    "processId": target.pid,
                }
            ],
        }

    def launch_file_for(self, target: AttachTarget) -> Path:
        """Path of the launch document written for a target."""
        container = _UNSAFE_FILENAME_CHARS.sub("_", target.container)
        return self.launch_dir / f"launch-{container}-{target.pid}.json"

    async def launch(self, target: AttachTarget) -> Path:
        """Write the launch document and start the host command, if any.

        The host command is not waited on.

        Returns:
            Path of the written launch document

        Raises:
            OSError: If the document cannot be written or the command started
        """
        path = self.launch_file_for(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.build_launch_document(target), indent=2), encoding="utf-8")
        logger.info(f"Wrote launch document for PID {target.pid} in {target.container} to {path}")

        if self.host_command:
            proc = await asyncio.create_subprocess_exec(
                *self.host_command,
                str(path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
            self.last_process = proc
            logger.info(f"Started {self.host_command[0]} (pid {proc.pid}) with {path}")

        return path
