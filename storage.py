"""Durable key/value text storage for history and preferences."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from constants import STORE_FILE

__all__ = ["KeyValueStore", "JsonFileStore"]

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class JsonFileStore:
    """Store string values under fixed keys in a single JSON file.

    The whole file is rewritten on every ``set``, through a temporary file
    swapped in with ``os.replace``. Read-modify-write runs under a lock so
    concurrent writers to different keys do not drop each other's value.
    A missing, unreadable or corrupt file reads as empty; a failed write is
    logged and dropped.
    """

    def __init__(self, path: Path = STORE_FILE) -> None:
        self.path = Path(path)
        self.writes = 0
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring store %s: top level is not an object", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self.writes += 1
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(
                    json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
                )
                os.replace(tmp_path, self.path)
            except OSError as exc:
                logger.warning("Could not persist %r to %s: %s", key, self.path, exc)
