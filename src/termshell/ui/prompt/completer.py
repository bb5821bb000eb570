"""prompt_toolkit completer backed by the suggestion engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit.completion import Completer, Completion

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prompt_toolkit.completion import CompleteEvent
    from prompt_toolkit.document import Document

    from termshell.suggestions.engine import SuggestionEngine


class SuggestionCompleter(Completer):
    """Completes the command verb; arguments are left to the command."""

    def __init__(self, engine: SuggestionEngine) -> None:
        self.engine = engine

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Iterable[Completion]:
        text = document.text_before_cursor.lstrip()
        if any(char.isspace() for char in text):
            return

        for item in self.engine.suggest(text):
            yield Completion(
                item.command,
                start_position=-len(text),
                display=item.command,
                display_meta=f"{item.match_type.value} {item.score}",
            )
