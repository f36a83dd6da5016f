"""Tests for the scan history ledger and its backing stores."""

from __future__ import annotations

import datetime
import json
import logging
from pathlib import Path

import pytest

from constants import HISTORY_KEY
from history import HistoryLedger, format_timestamp, make_entry
from memory_store import MemoryStore
from storage import JsonFileStore


def _entry(n: int):
    return make_entry(f"https://site{n}.test", "safe", datetime.datetime(2026, 1, 1, 12, 0, n))


def test_record_prepends_and_persists_full_list() -> None:
    """Newest entry comes first and the whole list is written each time."""
    store = MemoryStore()
    ledger = HistoryLedger(store)
    ledger.load()

    ledger.record(_entry(1))
    result = ledger.record(_entry(2))

    assert [e["url"] for e in result] == ["https://site2.test", "https://site1.test"]
    assert store.writes == 2
    assert json.loads(store.get(HISTORY_KEY) or "[]") == result


def test_ledger_length_is_capped_at_five() -> None:
    """Recording six scans evicts the oldest one."""
    ledger = HistoryLedger(MemoryStore())
    for n in range(1, 7):
        entries = ledger.record(_entry(n))
        assert len(entries) == min(n, 5)
        assert entries[0]["url"] == f"https://site{n}.test"

    assert [e["url"] for e in ledger.entries] == [f"https://site{n}.test" for n in (6, 5, 4, 3, 2)]


def test_load_is_stable_without_writes() -> None:
    store = MemoryStore()
    writer = HistoryLedger(store)
    for n in range(3):
        writer.record(_entry(n))

    reader = HistoryLedger(store)
    assert reader.load() == reader.load() == writer.entries


def test_load_treats_malformed_payloads_as_empty() -> None:
    for payload in ("{not json", json.dumps({"url": "x"}), json.dumps("text")):
        ledger = HistoryLedger(MemoryStore({HISTORY_KEY: payload}))
        assert ledger.load() == []


def test_load_drops_invalid_entries_but_keeps_valid_ones() -> None:
    payload = json.dumps([
        {"url": "https://ok.test", "status": "safe", "time": "t1"},
        {"url": 5, "status": "safe", "time": "t2"},
        "garbage",
    ])
    ledger = HistoryLedger(MemoryStore({HISTORY_KEY: payload}))

    assert ledger.load() == [{"url": "https://ok.test", "status": "safe", "time": "t1"}]


def test_entries_returns_a_copy() -> None:
    ledger = HistoryLedger(MemoryStore())
    ledger.record(_entry(1))
    ledger.entries[0]["status"] = "tampered"
    assert ledger.entries[0]["status"] == "safe"


def test_make_entry_formats_local_time() -> None:
    entry = make_entry("https://a.test", "warning", datetime.datetime(2026, 10, 19, 13, 5, 9))
    assert entry == {"url": "https://a.test", "status": "warning", "time": "10/19/2026, 1:05:09 PM"}


def test_json_file_store_survives_restart(tmp_path: Path) -> None:
    """History written through one store instance is read back by another."""
    path = tmp_path / "nested" / "store.json"
    HistoryLedger(JsonFileStore(path)).record(_entry(1))

    reloaded = HistoryLedger(JsonFileStore(path)).load()

    assert reloaded[0]["url"] == "https://site1.test"


def test_json_file_store_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("]]", encoding="utf-8")
    store = JsonFileStore(path)

    assert store.get(HISTORY_KEY) is None
    store.set("theme", "dark")
    assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "dark"}


def test_json_file_store_keeps_other_keys(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "store.json")
    store.set("theme", "dark")
    store.set(HISTORY_KEY, "[]")

    assert store.get("theme") == "dark"
    assert store.get(HISTORY_KEY) == "[]"
    assert store.writes == 2


def test_format_timestamp_does_not_zero_pad() -> None:
    assert format_timestamp(datetime.datetime(2026, 1, 5, 9, 3, 4)) == "1/5/2026, 9:03:04 AM"
    assert format_timestamp(datetime.datetime(2026, 1, 5, 0, 0, 0)) == "1/5/2026, 12:00:00 AM"
    assert format_timestamp(datetime.datetime(2026, 1, 5, 12, 0, 0)) == "1/5/2026, 12:00:00 PM"


def test_json_file_store_writes_atomically(tmp_path: Path) -> None:
    """No temporary file is left behind after a successful write."""
    path = tmp_path / "store.json"
    JsonFileStore(path).set("theme", "dark")

    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


def test_failed_write_is_logged_and_ledger_keeps_going(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """Persistence is best-effort: an OSError never reaches the caller."""

    def _refuse(src: object, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("storage.os.replace", _refuse)
    path = tmp_path / "store.json"
    ledger = HistoryLedger(JsonFileStore(path))

    with caplog.at_level(logging.WARNING, logger="storage"):
        entries = ledger.record(_entry(1))

    assert [e["url"] for e in entries] == ["https://site1.test"]
    assert ledger.entries == entries
    assert not path.exists()
    assert "disk full" in caplog.text
