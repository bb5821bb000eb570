from __future__ import annotations

from termshell.config import HistorySettings
from termshell.history.ledger import UsageLedger


def test_export_is_json_ready_and_reimportable(ledger: UsageLedger, clock) -> None:
    ledger.record("help", execution_time_ms=4)
    clock.advance(minutes=1)
    ledger.record("theme dracula")
    ledger.toggle_favorite("help")
    exported = ledger.export()

    target = UsageLedger(clock=clock)
    report = target.import_entries(exported)

    assert isinstance(exported[0]["timestamp"], str)
    assert report.imported == 2
    assert report.skipped == 0
    assert [entry.command for entry in target.entries] == ["theme dracula", "help"]
    assert target.find("help").favorite is True
    assert target.find("help").id == ledger.find("help").id


def test_import_synthesizes_missing_fields(ledger: UsageLedger) -> None:
    report = ledger.import_entries(
        [{"command": "theme dark", "timestamp": "2024-05-14T10:00:00+00:00"}]
    )

    entry = ledger.find("theme dark")
    assert report.imported == 1
    assert entry is not None
    assert entry.id
    assert entry.category == "customization"
    assert entry.frequency == 1


def test_import_skips_malformed_records_individually(ledger: UsageLedger) -> None:
    report = ledger.import_entries(
        [
            {"command": "help", "timestamp": "2024-05-14T10:00:00+00:00"},
            {"timestamp": "2024-05-14T10:00:00+00:00"},
            {"command": "clear"},
            {"command": "clear", "timestamp": "2024-05-14T10:00:00"},
            {"command": "clear", "timestamp": "2024-05-14T10:00:00Z", "frequency": 0},
            "not a record",
        ]
    )

    assert report.imported == 1
    assert report.skipped == 5
    assert len(report.errors) == 5
    assert [entry.command for entry in ledger.entries] == ["help"]


def test_import_merges_existing_commands(ledger: UsageLedger, clock) -> None:
    ledger.record("help")
    ledger.record("help")

    ledger.import_entries(
        [
            {
                "id": "older",
                "command": "help",
                "timestamp": "2024-01-01T00:00:00+00:00",
                "frequency": 3,
                "favorite": True,
            }
        ]
    )

    entry = ledger.find("help")
    assert len(ledger) == 1
    assert entry.frequency == 5
    assert entry.favorite is True
    assert entry.timestamp == clock()


def test_import_notifies_once_and_respects_size_limit(clock) -> None:
    ledger = UsageLedger(HistorySettings(max_history_size=2), clock=clock)
    calls: list[int] = []
    ledger.subscribe(lambda: calls.append(1))

    ledger.import_entries(
        [
            {"command": f"cmd{day}", "timestamp": f"2024-05-1{day}T00:00:00+00:00"}
            for day in range(1, 5)
        ]
    )

    assert calls == [1]
    assert [entry.command for entry in ledger.entries] == ["cmd4", "cmd3"]


def test_import_of_nothing_valid_is_not_a_mutation(ledger: UsageLedger) -> None:
    calls: list[int] = []
    ledger.subscribe(lambda: calls.append(1))

    report = ledger.import_entries([{"command": ""}])

    assert report.skipped == 1
    assert calls == []
