"""Attach workflow models.

This module defines the models exchanged between the configuration file,
the settings store, the selection session and the debugger launcher.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DEBUGGER_PATH = "/vsdbg/vsdbg"


class ContainerRuntime(str, Enum):
    """Supported container runtimes."""

    DOCKER = "docker"
    PODMAN = "podman"


class AttachConfig(BaseModel):
    """Contents of ``container-debug-config.json``.

    Lists the process names that may be offered as attach candidates.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    debuggable_process_names: list[str] = Field(
        default_factory=list,
        alias="DebuggableProcessNames",
        description="Process names eligible as attach targets (e.g., 'dotnet')",
    )


class StatusMessage(BaseModel):
    """User-facing outcome of loading the configuration."""

    model_config = ConfigDict(frozen=True)

    ok: bool = Field(description="Whether the configuration loaded successfully")
    text: str = Field(description="Message to display")


class AttachTarget(BaseModel):
    """A fully resolved debugger attach request."""

    model_config = ConfigDict(frozen=True)

    container: str = Field(description="Container name")
    debugger_path: str = Field(description="Path of vsdbg inside the container")
    pid: int = Field(gt=0, description="PID of the process inside the container")


class PersistedSettings(BaseModel):
    """Last-used selections, kept across sessions by a settings store.

    Field names match the keys of the stored settings collection.
    """

    container: str | None = Field(default=None, description="Last attached container")
    vsdbg: str | None = Field(default=None, description="Last used vsdbg path")
    processname: str | None = Field(default=None, description="Last used process name")
