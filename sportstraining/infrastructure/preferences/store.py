"""
Persistent key/value storage for the session cookie and preferences.

A JSON object in a single file, rewritten atomically on every change.
The data is tiny (a cookie and a handful of flags) and written rarely,
so there is no need for anything heavier.

Mock mode keeps everything in memory, enabling API testing without
touching the file system.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class PreferenceStoreError(Exception):
    """Raised when the preference file can't be read or written."""
    pass


class InMemoryPreferenceStore:
    """
    Preference store backed by a dict.

    Used in mock mode and tests. Values vanish with the process.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)


class JsonFilePreferenceStore:
    """
    Preference store backed by a JSON file.

    The file is read once on first access and cached. Every write
    replaces the whole file through a temporary file and os.replace,
    so a crash mid-write never leaves a truncated file behind.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._values: Optional[dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._values is not None:
            return self._values

        if not self._path.exists():
            self._values = {}
            return self._values

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                "Failed to read preferences",
                extra={"path": str(self._path), "error": str(e)}
            )
            raise PreferenceStoreError(f"Cannot read preferences from {self._path}: {e}")

        if not isinstance(raw, dict):
            raise PreferenceStoreError(f"Preferences file {self._path} must hold a JSON object")

        self._values = {str(k): str(v) for k, v in raw.items() if v is not None}
        return self._values

    def _flush(self) -> None:
        values = self._load()
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".prefs-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(
                "Failed to write preferences",
                extra={"path": str(self._path), "error": str(e)}
            )
            raise PreferenceStoreError(f"Cannot write preferences to {self._path}: {e}")

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._load().get(key, default)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        values = self._load()
        if key in values:
            del values[key]
            self._flush()


def create_preference_store(
    path: Optional[Union[str, Path]] = None,
    mock_mode: bool = False,
) -> Union[InMemoryPreferenceStore, JsonFilePreferenceStore]:
    """
    Factory function to create the configured preference store.

    Returns an in-memory store in mock mode, a JSON file store otherwise.
    """
    if mock_mode:
        logger.info("Using in-memory preference store (mock mode)")
        return InMemoryPreferenceStore()

    if not path:
        raise ValueError("A preferences path is required unless mock_mode is set")

    logger.info("Using JSON preference store", extra={"path": str(path)})
    return JsonFilePreferenceStore(path)
