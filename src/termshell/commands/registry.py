"""Registry of shell commands reachable by name or alias."""

from __future__ import annotations

import hashlib
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, TypeAlias

from termshell.core.exceptions import RegistrationConflictError
from termshell.core.logging.logger import get_logger

logger = get_logger(__name__)

CommandHandler: TypeAlias = Callable[[list[str], str], Any | Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class Command:
    """A canonical shell command.

    ``handler`` receives the tokens after the verb and the raw input line.
    """

    name: str
    description: str = ""
    aliases: tuple[str, ...] = ()
    category: str = "general"
    usage: str | None = None
    examples: tuple[str, ...] = ()
    handler: CommandHandler | None = None

    def lookup_keys(self) -> tuple[str, ...]:
        """Lower-cased name followed by lower-cased aliases."""
        keys = [self.name.lower()]
        for alias in self.aliases:
            lowered = alias.lower()
            if lowered not in keys:
                keys.append(lowered)
        return tuple(keys)


@dataclass(frozen=True, slots=True)
class RegistrationConflict:
    """A lookup key claimed by more than one command."""

    key: str
    existing: str
    incoming: str


def find_registration_conflicts(commands: Iterable[Command]) -> list[RegistrationConflict]:
    """Return every key that a later command would take over from an earlier one."""
    owners: dict[str, str] = {}
    conflicts: list[RegistrationConflict] = []
    for command in commands:
        canonical = command.name.lower()
        for key in command.lookup_keys():
            existing = owners.get(key)
            if existing is not None and existing != canonical:
                conflicts.append(
                    RegistrationConflict(key=key, existing=existing, incoming=canonical)
                )
            owners[key] = canonical
    return conflicts


class CommandRegistry:
    """Case-insensitive map from names and aliases to canonical commands.

    Registering a key that already belongs to another command replaces the
    old mapping (last write wins) and logs a warning. With ``strict=True`` the
    registration is rejected with ``RegistrationConflictError`` instead.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict
        self._lookup: dict[str, Command] = {}
        self._revision = 0
        self._fingerprint: tuple[int, str] | None = None

    def register(self, command: Command) -> Command:
        if not command.name.strip():
            raise ValueError("Command name must not be empty")

        canonical = command.name.lower()
        conflicts = [
            RegistrationConflict(key=key, existing=owner.name.lower(), incoming=canonical)
            for key in command.lookup_keys()
            if (owner := self._lookup.get(key)) is not None and owner.name.lower() != canonical
        ]

        if conflicts and self.strict:
            detail = ", ".join(f"'{c.key}' (owned by '{c.existing}')" for c in conflicts)
            raise RegistrationConflictError(
                f"Cannot register command '{command.name}'",
                f"Keys already registered: {detail}",
            )

        for conflict in conflicts:
            logger.warning(
                "Command key reassigned",
                key=conflict.key,
                previous=conflict.existing,
                command=conflict.incoming,
            )

        previous = self._lookup.get(canonical)
        if previous is not None and previous.name.lower() == canonical:
            for key in [k for k, owner in self._lookup.items() if owner is previous]:
                del self._lookup[key]

        for key in command.lookup_keys():
            self._lookup[key] = command
        self._revision += 1

        logger.debug("Registered command", command=command.name, aliases=list(command.aliases))
        return command

    def register_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.register(command)

    def resolve(self, token: str) -> Command | None:
        """Look up a command by name or alias, ignoring case."""
        return self._lookup.get(token.strip().lower())

    def list(self) -> list[Command]:
        """Return each canonical command once, in registration order."""
        unique: dict[str, Command] = {}
        for command in self._lookup.values():
            unique.setdefault(command.name.lower(), command)
        return list(unique.values())

    def keys(self) -> list[str]:
        """Every lookup key: canonical names and aliases."""
        return list(self._lookup)

    def fingerprint(self) -> str:
        """Digest of the current key to canonical-name mapping."""
        if self._fingerprint is not None and self._fingerprint[0] == self._revision:
            return self._fingerprint[1]

        digest = hashlib.sha1(usedforsecurity=False)
        for key in sorted(self._lookup):
            digest.update(f"{key}={self._lookup[key].name.lower()}\n".encode("utf-8"))
        value = digest.hexdigest()
        self._fingerprint = (self._revision, value)
        return value

    def __len__(self) -> int:
        return len(self.list())

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self.resolve(token) is not None

    def __iter__(self) -> Iterator[Command]:
        return iter(self.list())
