"""Persistence of the last-used attach selections.

Selections are kept in a named settings collection with the string fields
``container``, ``vsdbg`` and ``processname``. Reading a collection that does
not exist yields empty values.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from docker_attach_mcp.models.attach import PersistedSettings

logger = logging.getLogger(__name__)

SETTINGS_COLLECTION = "AttachToDockerContainerDialog"


class SettingsStore(Protocol):
    """Reads and writes the last-used attach selections."""

    def read(self) -> PersistedSettings: ...

    def write(self, settings: PersistedSettings) -> None: ...


class InMemorySettingsStore:
    """Settings store that keeps collections in a dict."""

    def __init__(self, collections: dict[str, dict[str, str]] | None = None):
        self.collections: dict[str, dict[str, str]] = collections or {}

    def read(self) -> PersistedSettings:
        return PersistedSettings.model_validate(self.collections.get(SETTINGS_COLLECTION, {}))

    def write(self, settings: PersistedSettings) -> None:
        collection = self.collections.setdefault(SETTINGS_COLLECTION, {})
        collection.update(settings.model_dump(exclude_none=True))


class JsonSettingsStore:
    """Settings store backed by a JSON file of collections.

    The file holds ``{collection: {field: value}}``. Other collections in the
    same file are preserved on write. An unreadable file is kept as a
    ``.bak`` copy before it is rewritten.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read_file(self) -> dict[str, Any]:
        """Parse the settings file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not a JSON object
        """
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        return data

    def _load(self) -> dict[str, Any]:
        try:
            return self._read_file()
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}

    @property
    def backup_path(self) -> Path:
        """Where an unreadable settings file is moved before it is rewritten."""
        return self.path.with_name(self.path.name + ".bak")

    def read(self) -> PersistedSettings:
        """Read the last-used selections; missing values come back as None."""
        collection = self._load().get(SETTINGS_COLLECTION)
        if not isinstance(collection, dict):
            return PersistedSettings()

        return PersistedSettings(
            **{
                name: value
                for name, value in collection.items()
                if name in PersistedSettings.model_fields and isinstance(value, str)
            }
        )

    def write(self, settings: PersistedSettings) -> None:
        """Store the selections, creating the file and collection as needed.

        An unreadable settings file is moved to ``backup_path`` first so the
        collections it held are not lost.

        Raises:
            OSError: If the file cannot be written
        """
        try:
            data = self._read_file()
        except (OSError, ValueError) as e:
            backup = self.backup_path
            logger.warning(
                f"Settings file {self.path} is unreadable ({e}); moving it to {backup}"
            )
            self.path.replace(backup)
            data = {}
        collection = data.get(SETTINGS_COLLECTION)
        if not isinstance(collection, dict):
            collection = {}
            data[SETTINGS_COLLECTION] = collection
        collection.update(settings.model_dump(exclude_none=True))

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug(f"Saved attach settings to {self.path}")
