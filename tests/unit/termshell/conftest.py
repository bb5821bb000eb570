from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from termshell.commands.registry import Command, CommandRegistry
from termshell.config import HistorySettings
from termshell.history.categories import RegistryCategorizer
from termshell.history.ledger import UsageLedger

# Wednesday
START = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)

    def set(self, value: datetime) -> None:
        self.current = value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register_all(
        [
            Command(name="help", description="Show help", category="system"),
            Command(name="theme", description="Switch theme", aliases=("th",), category="customization"),
            Command(name="clear", description="Clear screen", category="system"),
            Command(name="history", description="Show history", aliases=("hist",), category="system"),
        ]
    )
    return registry


@pytest.fixture
def ledger(registry: CommandRegistry, clock: FakeClock) -> UsageLedger:
    return UsageLedger(
        HistorySettings(),
        clock=clock,
        categorizer=RegistryCategorizer(registry),
    )
