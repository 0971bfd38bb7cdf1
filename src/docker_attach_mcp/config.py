"""Loading of the per-solution attach configuration.

The configuration lives in ``container-debug-config.json`` at the solution
root and names the processes that may be offered as attach targets::

    {"DebuggableProcessNames": ["dotnet", "MyService"]}

Loading never raises. Any failure yields an empty AttachConfig together with
a failed StatusMessage that names the attempted path and the cause.
"""

import json
import logging
import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from docker_attach_mcp.models.attach import AttachConfig, StatusMessage

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "container-debug-config.json"
CONFIG_LOADED_MESSAGE = "Configuration successfully loaded."


class ConfigLoadError(Exception):
    """The configuration document could not be used."""


@dataclass(frozen=True)
class ConfigLoadResult:
    """An AttachConfig paired with the status to display for it."""

    config: AttachConfig
    status: StatusMessage


def resolve_config_path(solution_root: str | Path) -> Path:
    """Return the configuration file location for a solution root.

    A path that already names a ``.json`` file is used as is.
    """
    root = Path(solution_root).expanduser()
    if root.suffix.lower() == ".json":
        return root
    return root / CONFIG_FILE_NAME


def _parse_config(text: str) -> AttachConfig:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigLoadError("Expected a JSON object.")

    try:
        config = AttachConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigLoadError(f"Invalid configuration: {errors}") from e

    if not config.debuggable_process_names:
        raise ConfigLoadError("Missing or empty DebuggableProcessNames.")
    return config


def load_attach_config(solution_root: str | Path) -> ConfigLoadResult:
    """Load the attach configuration for a solution.

    Args:
        solution_root: Solution directory, or the configuration file itself

    Returns:
        ConfigLoadResult; on failure the config is empty and status.ok is False
    """
    path = resolve_config_path(solution_root)
    try:
        try:
            text = path.read_text(encoding="utf-8-sig")
        except OSError as e:
            raise ConfigLoadError(e.strerror or str(e)) from e
        except UnicodeDecodeError as e:
            raise ConfigLoadError(f"Not UTF-8 text: {e.reason}") from e
        config = _parse_config(text)
    except ConfigLoadError as e:
        logger.warning(f"Problem loading {path}: {e}")
        return ConfigLoadResult(
            config=AttachConfig(),
            status=StatusMessage(ok=False, text=f"Problem loading {path}: {e}"),
        )

    logger.info(
        f"Loaded {len(config.debuggable_process_names)} debuggable process names from {path}"
    )
    return ConfigLoadResult(
        config=config,
        status=StatusMessage(ok=True, text=CONFIG_LOADED_MESSAGE),
    )


class ServerConfig(BaseModel):
    """Settings of the MCP server process, read from the environment."""

    settings_path: Path = Field(
        default=Path("~/.docker-attach/settings.json"),
        description="File holding the last-used selections",
    )
    launch_dir: Path = Field(
        default=Path("~/.docker-attach/launch"),
        description="Directory receiving generated launch documents",
    )
    host_command: list[str] | None = Field(
        default=None,
        description="Command started with the launch document path",
    )
    log_level: str = Field(default="INFO", description="Logging level name")
    max_sessions: int = Field(default=20, gt=0, description="Maximum open sessions")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServerConfig":
        """Build the config from ``DOCKER_ATTACH_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if env.get("DOCKER_ATTACH_SETTINGS"):
            values["settings_path"] = Path(env["DOCKER_ATTACH_SETTINGS"])
        if env.get("DOCKER_ATTACH_LAUNCH_DIR"):
            values["launch_dir"] = Path(env["DOCKER_ATTACH_LAUNCH_DIR"])
        if env.get("DOCKER_ATTACH_HOST_COMMAND"):
            values["host_command"] = shlex.split(env["DOCKER_ATTACH_HOST_COMMAND"])
        if env.get("DOCKER_ATTACH_LOG_LEVEL"):
            values["log_level"] = env["DOCKER_ATTACH_LOG_LEVEL"].upper()
        if env.get("DOCKER_ATTACH_MAX_SESSIONS"):
            values["max_sessions"] = env["DOCKER_ATTACH_MAX_SESSIONS"]
        return cls.model_validate(values)
