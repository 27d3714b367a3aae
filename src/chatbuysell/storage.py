"""
Client-local key-value stores.

Values are strings, the way a browser's localStorage holds them. JsonFileStore
keeps every key in one JSON document on disk.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_STORE_FILE = Path.home() / ".chatbuysell" / "store.json"


class LocalStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore:
    def __init__(self, path: Path = DEFAULT_STORE_FILE):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self._path.read_text())
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Store file %s is unreadable, starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Readers see the old or the new document, never a partial one
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".store-")
        with os.fdopen(fd, "w") as fh:
            json.dump(data, fh, indent=2)
        os.replace(tmp, self._path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)
