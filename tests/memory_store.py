"""In-memory key/value store shared by the test modules."""

from __future__ import annotations

from typing import Dict, Optional


class MemoryStore:
    """Dict-backed stand-in for JsonFileStore that counts writes."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1
