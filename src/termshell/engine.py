"""
Session object tying the registry, ledger, suggestions and dispatcher together.

One ``ShellEngine`` holds all mutable state for a single shell session::

    engine = ShellEngine.from_settings(get_settings())
    engine.register(Command(name="theme", aliases=("th",), handler=set_theme))
    outcome = await engine.dispatch("th dracula")
    items = engine.suggest("the")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from termshell.commands.builtins import builtin_commands
from termshell.commands.matcher import EditDistanceMatcher
from termshell.commands.registry import Command, CommandRegistry
from termshell.config import Settings
from termshell.core.logging.logger import get_logger
from termshell.dispatch.dispatcher import CommandDispatcher
from termshell.history.categories import RegistryCategorizer
from termshell.history.ledger import Clock, UsageLedger
from termshell.history.store import JsonFileHistoryStore
from termshell.suggestions.debounce import DebouncedSuggester, Scheduler, SuggestionListener
from termshell.suggestions.engine import SuggestionEngine

if TYPE_CHECKING:
    from collections.abc import Iterable

    from termshell.dispatch.results import DispatchOutcome
    from termshell.history.store import HistoryStore
    from termshell.suggestions.models import SuggestionItem

logger = get_logger(__name__)


class ShellEngine:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        commands: Iterable[Command] = (),
        store: HistoryStore | None = None,
        clock: Clock | None = None,
        include_builtins: bool = False,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = CommandRegistry(strict=self.settings.registry.strict_registration)
        self.matcher = EditDistanceMatcher()
        self.ledger = UsageLedger(
            self.settings.history,
            store=store,
            clock=clock,
            categorizer=RegistryCategorizer(self.registry),
        )
        self.suggestions = SuggestionEngine(
            self.registry,
            self.ledger,
            self.settings.suggestions,
            matcher=self.matcher,
        )
        self.dispatcher = CommandDispatcher(self.registry, self.ledger, matcher=self.matcher)

        if include_builtins:
            self.registry.register_all(builtin_commands(self.registry, self.ledger))
        self.registry.register_all(commands)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        commands: Iterable[Command] = (),
        clock: Clock | None = None,
    ) -> ShellEngine:
        """Build an engine with built-ins and the configured history file, if any."""
        store = None
        if settings.history.path is not None:
            store = JsonFileHistoryStore(settings.history.path)
            logger.debug("Using history file", path=str(settings.history.path))
        return cls(settings, commands=commands, store=store, clock=clock, include_builtins=True)

    def register(self, command: Command) -> Command:
        return self.registry.register(command)

    async def dispatch(self, raw_input: str) -> DispatchOutcome:
        return await self.dispatcher.dispatch(raw_input)

    def suggest(self, query: str) -> list[SuggestionItem]:
        return self.suggestions.suggest(query)

    def debouncer(
        self,
        scheduler: Scheduler,
        listener: SuggestionListener | None = None,
    ) -> DebouncedSuggester:
        return DebouncedSuggester(
            self.suggestions,
            scheduler,
            delay_ms=self.settings.suggestions.debounce_ms,
            listener=listener,
        )

    def close(self) -> None:
        self.suggestions.close()
