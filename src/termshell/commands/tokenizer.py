"""Split raw shell input into a verb, flags and positional arguments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class ParsedArgs:
    """Tokenized form of one input line."""

    command: str
    subcommand: str | None = None
    flags: tuple[str, ...] = ()
    long_flags: tuple[str, ...] = ()
    positional: tuple[str, ...] = ()
    args: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.command


@dataclass(frozen=True, slots=True)
class FlagOption:
    """A short flag with an optional long spelling, e.g. ``-l`` / ``--list``."""

    short: str
    long: str | None = None


def tokenize(raw: str) -> ParsedArgs:
    """Tokenize ``raw`` into a ``ParsedArgs``.

    ``-la`` expands to the short flags ``l`` and ``a``; ``--all`` is the long
    flag ``all``. The first non-flag token directly after the command is the
    subcommand; any later non-flag token is positional.
    """
    tokens = raw.split()
    if not tokens:
        return ParsedArgs(command="")

    command, rest = tokens[0], tokens[1:]
    subcommand: str | None = None
    flags: list[str] = []
    long_flags: list[str] = []
    positional: list[str] = []

    for position, token in enumerate(rest, start=1):
        if token.startswith("--"):
            long_flags.append(token[2:])
            continue
        if token.startswith("-") and len(token) > 1:
            flags.extend(token[1:])
            continue
        if position == 1:
            subcommand = token
        else:
            positional.append(token)

    return ParsedArgs(
        command=command,
        subcommand=subcommand,
        flags=tuple(flags),
        long_flags=tuple(long_flags),
        positional=tuple(positional),
        args=tuple(rest),
    )


def has_flag(parsed: ParsedArgs, short: str, long: str | None = None) -> bool:
    """Return True when ``-short`` (or ``--long`` if given) was passed."""
    if short in parsed.flags:
        return True
    return long is not None and long in parsed.long_flags


def has_any_flag(parsed: ParsedArgs, options: Iterable[FlagOption]) -> bool:
    return any(has_flag(parsed, option.short, option.long) for option in options)
