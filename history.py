"""Bounded, newest-first ledger of recent scans."""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, List, Optional

from constants import HISTORY_KEY, HISTORY_LIMIT
from models import HistoryEntry
from storage import KeyValueStore

__all__ = ["HistoryLedger", "make_entry", "format_timestamp"]

logger = logging.getLogger(__name__)


def format_timestamp(when: datetime.datetime) -> str:
    """Render a timestamp like an en-US browser locale: 1/5/2026, 9:30:00 AM."""
    hour = when.hour % 12 or 12
    meridiem = "AM" if when.hour < 12 else "PM"
    return (
        f"{when.month}/{when.day}/{when.year}, "
        f"{hour}:{when.minute:02d}:{when.second:02d} {meridiem}"
    )


def make_entry(
    url: str, status: str, when: Optional[datetime.datetime] = None
) -> HistoryEntry:
    """Build a history entry stamped with the local time."""
    moment = when or datetime.datetime.now()
    return {"url": url, "status": status, "time": format_timestamp(moment)}


def _coerce_entry(raw: Any) -> Optional[HistoryEntry]:
    if not isinstance(raw, dict):
        return None
    url, status, time = raw.get("url"), raw.get("status"), raw.get("time")
    if not all(isinstance(v, str) for v in (url, status, time)):
        return None
    return {"url": url, "status": status, "time": time}


class HistoryLedger:
    """Owns the persisted list of recent scans.

    Entries are only ever prepended; anything past ``limit`` is evicted and
    the whole list is written back on each record.
    """

    def __init__(self, store: KeyValueStore, limit: int = HISTORY_LIMIT) -> None:
        self._store = store
        self._limit = limit
        self._entries: List[HistoryEntry] = []

    @property
    def entries(self) -> List[HistoryEntry]:
        return [dict(e) for e in self._entries]  # type: ignore[misc]

    def load(self) -> List[HistoryEntry]:
        """Read the ledger from storage; malformed data reads as empty."""
        self._entries = self._decode(self._store.get(HISTORY_KEY))
        return self.entries

    def _decode(self, payload: Optional[str]) -> List[HistoryEntry]:
        if payload is None:
            return []
        try:
            raw = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable scan history")
            return []
        if not isinstance(raw, list):
            logger.warning("Discarding scan history: expected a list")
            return []
        entries: List[HistoryEntry] = []
        for item in raw:
            entry = _coerce_entry(item)
            if entry is None:
                logger.warning("Dropping malformed history entry: %r", item)
                continue
            entries.append(entry)
        return entries[: self._limit]

    def record(self, entry: HistoryEntry) -> List[HistoryEntry]:
        """Prepend ``entry``, evict beyond the limit, persist, return the list."""
        updated = [dict(entry)] + self._entries
        self._entries = updated[: self._limit]  # type: ignore[assignment]
        self._store.set(HISTORY_KEY, json.dumps(self._entries, ensure_ascii=False))
        return self.entries
