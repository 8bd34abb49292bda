"""Persisted key-value storage for the host registry.

The registry keeps two string values (the JSON host map and the active
url) and the UI keeps a few preference flags.  Both go through the small
:class:`KeyValueStore` interface so the registry can be tested against
:class:`MemoryStore` and run against :class:`JsonFileStore`.
"""

from __future__ import annotations

import abc
import json
import logging
import os
import tempfile
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)

_CONFIG_DIR = os.path.join(
    os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")),
    "hostkeeper",
)
DEFAULT_STORAGE_FILE = os.path.join(_CONFIG_DIR, "storage.json")
DEFAULT_PREFERENCES_FILE = os.path.join(_CONFIG_DIR, "preferences.json")


class KeyValueStore(abc.ABC):
    """String-to-string storage with direct-overwrite semantics."""

    @abc.abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or ``None``."""

    @abc.abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abc.abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete *key*; missing keys are ignored."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Delete every key."""

    @abc.abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""


class MemoryStore(KeyValueStore):
    """In-process store, mainly for tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def __repr__(self) -> str:
        return f"MemoryStore(keys={sorted(self._data)})"


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON object file.

    Every write re-reads the file, applies the change and replaces the
    file atomically, so two processes sharing the file get last-writer-wins
    semantics per write rather than a torn file.

    Parameters
    ----------
    path:
        Location of the JSON file.  Parent directories are created on
        first write.
    """

    def __init__(self, path: str = DEFAULT_STORAGE_FILE) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear(self) -> None:
        self._write({})

    def keys(self) -> Iterator[str]:
        return iter(list(self._read()))

    def delete_file(self) -> None:
        """Remove the backing file entirely."""
        try:
            os.unlink(self._path)
        except FileNotFoundError:
            pass

    # ── internals ───────────────────────────────────────────────────

    def _read(self) -> Dict[str, str]:
        try:
            with open(self._path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Corrupt storage file %s, treating as empty: %s", self._path, exc)
            return {}

        if not isinstance(data, dict):
            logger.warning("Storage file %s is not a JSON object, treating as empty", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Storage written: %s (%d keys)", self._path, len(data))

    def __repr__(self) -> str:
        return f"JsonFileStore(path={self._path!r})"
