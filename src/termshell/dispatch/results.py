"""Typed outcomes returned by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from termshell.commands.registry import Command


class DispatchErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    UNRESOLVED_COMMAND = "unresolved_command"
    HANDLER_FAILURE = "handler_failure"
    HANDLER_PANIC = "handler_panic"


@dataclass(frozen=True, slots=True)
class DispatchError:
    kind: DispatchErrorKind
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class HandlerResult:
    """What a command handler reports back.

    Handlers may also return any other value, which is treated as a
    successful payload.
    """

    success: bool = True
    payload: Any = None
    message: str | None = None

    @classmethod
    def ok(cls, payload: Any = None, message: str | None = None) -> HandlerResult:
        return cls(success=True, payload=payload, message=message)

    @classmethod
    def fail(cls, message: str, payload: Any = None) -> HandlerResult:
        return cls(success=False, payload=payload, message=message)


@dataclass(frozen=True, slots=True)
class Dispatched:
    """A registered command ran; ``error`` is set when it failed or raised."""

    command: Command
    args: tuple[str, ...]
    result: HandlerResult
    error: DispatchError | None = None
    execution_time_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class NotFound:
    """No command matched the verb; ``hint`` names the closest one, if any."""

    verb: str
    hint: str | None
    error: DispatchError = field(
        default_factory=lambda: DispatchError(
            DispatchErrorKind.UNRESOLVED_COMMAND, "Command not found"
        )
    )

    @property
    def success(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Rejected:
    """The input was blank."""

    error: DispatchError

    @property
    def success(self) -> bool:
        return False


DispatchOutcome: TypeAlias = Dispatched | NotFound | Rejected
