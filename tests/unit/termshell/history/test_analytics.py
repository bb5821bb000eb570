from __future__ import annotations

from datetime import date, timedelta

from termshell.config import HistorySettings
from termshell.history.ledger import UsageLedger


def test_empty_ledger_profile(ledger: UsageLedger) -> None:
    profile = ledger.analytics()

    assert profile.total_commands == 0
    assert profile.unique_commands == 0
    assert profile.success_rate == 100.0
    assert profile.top_commands == []
    assert [day.count for day in profile.daily_activity] == [0] * 7
    assert profile.daily_activity[-1].day == date(2024, 5, 15)


def test_top_commands_ranked_by_frequency(ledger: UsageLedger) -> None:
    for _ in range(5):
        ledger.record("help")
    ledger.record("clear")

    profile = ledger.analytics()

    assert profile.top_commands[0].command == "help"
    assert profile.top_commands[0].count == 5
    assert profile.total_commands == 6
    assert profile.unique_commands == 2


def test_success_rate_and_execution_time(ledger: UsageLedger) -> None:
    ledger.record("help", execution_time_ms=10)
    ledger.record("clear", success=False, execution_time_ms=30)

    profile = ledger.analytics()

    assert profile.success_rate == 50.0
    assert profile.average_execution_time_ms == 20.0
    by_command = {usage.command: usage for usage in profile.top_commands}
    assert by_command["help"].average_execution_time_ms == 10.0
    assert by_command["clear"].average_execution_time_ms == 30.0


def test_commands_by_category_counts_invocations(ledger: UsageLedger) -> None:
    ledger.record("help")
    ledger.record("help")
    ledger.record("theme dracula")

    assert ledger.analytics().commands_by_category == {"system": 2, "customization": 1}


def test_daily_activity_covers_last_seven_days(ledger: UsageLedger, clock) -> None:
    today = clock()
    clock.set(today - timedelta(days=8))
    ledger.record("ancient")
    clock.set(today - timedelta(days=6))
    ledger.record("six-days-ago")
    clock.set(today - timedelta(days=1))
    ledger.record("yesterday")
    clock.set(today)
    ledger.record("now")
    ledger.record("again")

    activity = ledger.analytics().daily_activity

    assert [day.day for day in activity] == [
        today.date() - timedelta(days=offset) for offset in range(6, -1, -1)
    ]
    assert [day.count for day in activity] == [1, 0, 0, 0, 0, 1, 2]


def test_error_frequency_ranks_failures(ledger: UsageLedger) -> None:
    ledger.record("thm", success=False)
    ledger.record("thm", success=False)
    ledger.record("hlep", success=False)
    ledger.record("help")

    errors = ledger.analytics().error_frequency

    assert [(item.command, item.failures) for item in errors] == [("thm", 2), ("hlep", 1)]


def test_top_n_limits_rankings(clock) -> None:
    ledger = UsageLedger(HistorySettings(analytics_top_n=2), clock=clock)
    for command in ("a", "b", "c"):
        ledger.record(command)

    assert len(ledger.analytics().top_commands) == 2
    assert len(ledger.analytics(top_n=3).top_commands) == 3


def test_profile_is_cached_until_next_mutation(ledger: UsageLedger) -> None:
    ledger.record("help")
    first = ledger.analytics()

    assert ledger.analytics() is first

    ledger.record("help")
    second = ledger.analytics()

    assert second is not first
    assert second.total_commands == 2
