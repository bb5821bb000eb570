from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest

from termshell.config import HistorySettings
from termshell.core.exceptions import HistoryStoreError
from termshell.history.ledger import UsageLedger
from termshell.history.store import InMemoryHistoryStore


class BrokenStore:
    def __init__(self, *, load_error: bool = False, save_error: bool = False) -> None:
        self.load_error = load_error
        self.save_error = save_error

    def load(self) -> list[dict[str, Any]]:
        if self.load_error:
            raise HistoryStoreError("boom")
        return []

    def save(self, entries) -> None:
        if self.save_error:
            raise HistoryStoreError("disk full")


def test_recording_same_command_increments_frequency(ledger: UsageLedger) -> None:
    for _ in range(5):
        ledger.record("help")

    assert len(ledger) == 1
    assert ledger.entries[0].frequency == 5
    assert ledger.frequency_of("help") == 5
    assert ledger.frequency_of("clear") == 0


def test_record_normalizes_whitespace(ledger: UsageLedger) -> None:
    ledger.record("  theme    dracula ")
    ledger.record("theme dracula")

    assert [entry.command for entry in ledger.entries] == ["theme dracula"]
    assert ledger.entries[0].frequency == 2


def test_record_rejects_blank_input(ledger: UsageLedger) -> None:
    with pytest.raises(ValueError):
        ledger.record("   ")


def test_repeat_moves_entry_to_head_and_refreshes_timestamp(ledger: UsageLedger, clock) -> None:
    ledger.record("help")
    clock.advance(minutes=1)
    ledger.record("clear")
    clock.advance(minutes=1)
    first_id = ledger.find("help").id
    entry = ledger.record("help", success=False, execution_time_ms=12.5)

    assert [e.command for e in ledger.entries] == ["help", "clear"]
    assert entry.id == first_id
    assert entry.timestamp == clock()
    assert entry.success is False
    assert entry.execution_time_ms == 12.5


def test_ledger_is_bounded_and_evicts_favorites_too(clock) -> None:
    ledger = UsageLedger(HistorySettings(max_history_size=3), clock=clock)
    ledger.record("first")
    ledger.toggle_favorite("first")

    for index in range(4):
        clock.advance(seconds=1)
        ledger.record(f"cmd{index}")

    assert len(ledger) == 3
    assert [entry.command for entry in ledger.entries] == ["cmd3", "cmd2", "cmd1"]
    assert ledger.find("first") is None


def test_category_is_derived_from_the_verb(ledger: UsageLedger) -> None:
    assert ledger.record("theme dracula").category == "customization"
    assert ledger.record("help").category == "system"
    assert ledger.record("skills").category == "portfolio"
    assert ledger.record("whatever").category == "general"
    assert ledger.record("thm", category="unresolved").category == "unresolved"


def test_static_categories_apply_without_registry(clock) -> None:
    ledger = UsageLedger(clock=clock)

    assert ledger.record("skills list").category == "portfolio"
    assert ledger.record("roadmap").category == "development"
    assert ledger.record("whatever").category == "general"


def test_accumulators_track_timing_and_failures(ledger: UsageLedger) -> None:
    ledger.record("help", execution_time_ms=10)
    ledger.record("help", success=False, execution_time_ms=30)
    entry = ledger.record("help")

    assert entry.total_execution_time_ms == 40
    assert entry.timed_runs == 2
    assert entry.failure_count == 1
    assert entry.execution_time_ms is None


def test_toggle_favorite_by_id_or_command(ledger: UsageLedger) -> None:
    entry = ledger.record("help")

    assert ledger.toggle_favorite(entry.id).favorite is True
    assert ledger.toggle_favorite("help").favorite is False
    assert ledger.toggle_favorite("missing") is None
    assert ledger.favorites() == []


def test_remove_and_clear(ledger: UsageLedger) -> None:
    help_entry = ledger.record("help")
    ledger.record("clear")

    assert ledger.remove(help_entry.id) is True
    assert ledger.remove(help_entry.id) is False
    assert [entry.command for entry in ledger.entries] == ["clear"]

    ledger.clear()
    assert len(ledger) == 0


def test_categories_are_sorted_and_unique(ledger: UsageLedger) -> None:
    ledger.record("help")
    ledger.record("theme")
    ledger.record("clear")

    assert ledger.categories() == ["customization", "system"]


def test_subscribers_are_notified_on_every_mutation(ledger: UsageLedger) -> None:
    calls: list[int] = []
    unsubscribe = ledger.subscribe(lambda: calls.append(1))

    entry = ledger.record("help")
    ledger.toggle_favorite(entry.id)
    ledger.remove(entry.id)
    ledger.clear()
    assert len(calls) == 4

    unsubscribe()
    ledger.record("help")
    assert len(calls) == 4


def test_every_mutation_is_saved(clock) -> None:
    store = InMemoryHistoryStore()
    ledger = UsageLedger(store=store, clock=clock)

    entry = ledger.record("help")
    ledger.toggle_favorite(entry.id)

    assert store.save_count == 2
    assert store.load()[0]["favorite"] is True


def test_load_discards_incomplete_and_duplicate_records(clock) -> None:
    now = clock()
    store = InMemoryHistoryStore(
        [
            {"id": "a", "command": "help", "timestamp": (now - timedelta(hours=2)).isoformat()},
            {"id": "b", "command": "clear", "timestamp": now.isoformat()},
            {"id": "c", "command": "help", "timestamp": now.isoformat()},
            {"id": "d", "timestamp": now.isoformat()},
            {"id": "e", "command": "theme"},
            {"command": "font", "timestamp": now.isoformat()},
            {"id": "f", "command": "bad", "timestamp": "not a date"},
        ]
    )

    ledger = UsageLedger(store=store, clock=clock)

    assert [entry.id for entry in ledger.entries] == ["b", "a"]


def test_load_failure_starts_empty(clock) -> None:
    ledger = UsageLedger(store=BrokenStore(load_error=True), clock=clock)

    assert len(ledger) == 0
    ledger.record("help")
    assert len(ledger) == 1


def test_save_failure_keeps_ledger_in_memory(clock) -> None:
    ledger = UsageLedger(store=BrokenStore(save_error=True), clock=clock)

    ledger.record("help")
    ledger.record("help")

    assert ledger.frequency_of("help") == 2
