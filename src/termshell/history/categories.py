"""Derive a category tag for a recorded command string."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping

    from termshell.commands.registry import CommandRegistry

DEFAULT_CATEGORY: Final[str] = "general"

VERB_CATEGORIES: Final[dict[str, str]] = {
    "theme": "customization",
    "font": "customization",
    "customize": "customization",
    "skills": "portfolio",
    "projects": "portfolio",
    "about": "portfolio",
    "experience": "portfolio",
    "education": "portfolio",
    "help": "system",
    "clear": "system",
    "status": "system",
    "alias": "system",
    "roadmap": "development",
    "progress": "development",
}


class Categorizer(Protocol):
    def __call__(self, command_text: str) -> str: ...


def _verb(command_text: str) -> str:
    parts = command_text.split(maxsplit=1)
    return parts[0].lower() if parts else ""


class StaticCategorizer:
    """Looks the verb up in a fixed table."""

    def __init__(
        self,
        table: Mapping[str, str] | None = None,
        default: str = DEFAULT_CATEGORY,
    ) -> None:
        self._table = {key.lower(): value for key, value in (table or VERB_CATEGORIES).items()}
        self._default = default

    def __call__(self, command_text: str) -> str:
        return self._table.get(_verb(command_text), self._default)


class RegistryCategorizer:
    """Uses the category of the registered command, falling back to another categorizer."""

    def __init__(self, registry: CommandRegistry, fallback: Categorizer | None = None) -> None:
        self._registry = registry
        self._fallback = fallback or StaticCategorizer()

    def __call__(self, command_text: str) -> str:
        command = self._registry.resolve(_verb(command_text))
        if command is not None:
            return command.category
        return self._fallback(command_text)
