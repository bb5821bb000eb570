"""Metadata for the commands every termshell session ships with."""

from __future__ import annotations

from typing import Final

from termshell.commands.registry import Command

BUILTIN_COMMANDS: Final[tuple[Command, ...]] = (
    Command(
        name="help",
        description="Command map and per-command help",
        aliases=("h", "?"),
        category="system",
        usage="help [<command>] [--json]",
        examples=("help", "help history", "help --json"),
    ),
    Command(
        name="history",
        description="Show, search or clear command history",
        aliases=("hist",),
        category="system",
        usage="history [<text>] [-f|--favorites] [-s|--stats] [-e|--export] [-c|--clear]",
        examples=("history", "history theme", "history --stats"),
    ),
    Command(
        name="clear",
        description="Clear the screen",
        aliases=("cls",),
        category="system",
        usage="clear",
        examples=("clear",),
    ),
    Command(
        name="status",
        description="Show session status",
        category="system",
        usage="status",
        examples=("status",),
    ),
    Command(
        name="theme",
        description="Switch the color theme",
        aliases=("th",),
        category="customization",
        usage="theme [<name>] [-l|--list]",
        examples=("theme", "theme dracula", "theme --list"),
    ),
    Command(
        name="font",
        description="Switch the terminal font",
        aliases=("fonts",),
        category="customization",
        usage="font [<name>] [-l|--list]",
        examples=("font", "font fira-code"),
    ),
)


_BUILTINS_BY_NAME: Final[dict[str, Command]] = {
    command.name: command for command in BUILTIN_COMMANDS
}


def get_builtin(command_name: str) -> Command | None:
    """Return catalog metadata for a built-in command."""

    return _BUILTINS_BY_NAME.get(command_name.strip().lower())


def builtin_names() -> tuple[str, ...]:
    return tuple(command.name for command in BUILTIN_COMMANDS)
