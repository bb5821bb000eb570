from __future__ import annotations

from pathlib import Path

import pytest

from termshell.core.exceptions import HistoryStoreError
from termshell.history.ledger import UsageLedger
from termshell.history.store import HistoryStore, InMemoryHistoryStore, JsonFileHistoryStore


def test_stores_satisfy_protocol(tmp_path: Path) -> None:
    assert isinstance(InMemoryHistoryStore(), HistoryStore)
    assert isinstance(JsonFileHistoryStore(tmp_path / "history.json"), HistoryStore)


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    assert JsonFileHistoryStore(tmp_path / "missing.json").load() == []


def test_save_creates_parent_directories_without_leftovers(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "history.json"
    store = JsonFileHistoryStore(path)

    store.save([{"id": "a", "command": "help", "timestamp": "2024-05-15T12:00:00Z"}])

    assert store.load() == [{"id": "a", "command": "help", "timestamp": "2024-05-15T12:00:00Z"}]
    assert [p.name for p in path.parent.iterdir()] == ["history.json"]


def test_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(HistoryStoreError, match="not valid JSON"):
        JsonFileHistoryStore(path).load()


def test_non_array_payload_raises(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text('{"command": "help"}', encoding="utf-8")

    with pytest.raises(HistoryStoreError, match="unexpected shape"):
        JsonFileHistoryStore(path).load()


def test_write_failure_raises_store_error(tmp_path: Path) -> None:
    target = tmp_path / "occupied"
    target.mkdir()

    with pytest.raises(HistoryStoreError):
        JsonFileHistoryStore(target).save([])

    assert [p.name for p in tmp_path.iterdir()] == ["occupied"]


def test_ledger_survives_restart_with_file_store(tmp_path: Path, clock) -> None:
    path = tmp_path / "history.json"
    first = UsageLedger(store=JsonFileHistoryStore(path), clock=clock)
    first.record("help")
    first.record("help")
    first.toggle_favorite("help")

    second = UsageLedger(store=JsonFileHistoryStore(path), clock=clock)

    assert [entry.command for entry in second.entries] == ["help"]
    assert second.entries[0].frequency == 2
    assert second.entries[0].favorite is True
    assert second.entries[0].timestamp == clock()


def test_ledger_with_unreadable_file_starts_empty(tmp_path: Path, clock) -> None:
    path = tmp_path / "history.json"
    path.write_text("garbage", encoding="utf-8")

    ledger = UsageLedger(store=JsonFileHistoryStore(path), clock=clock)

    assert len(ledger) == 0
