"""Resolve an input line to a command and run its handler."""

from __future__ import annotations

import inspect
import time
from typing import TYPE_CHECKING, Any

from termshell.commands.matcher import EditDistanceMatcher
from termshell.commands.tokenizer import tokenize
from termshell.core.logging.logger import get_logger
from termshell.dispatch.results import (
    DispatchError,
    DispatchErrorKind,
    Dispatched,
    DispatchOutcome,
    HandlerResult,
    NotFound,
    Rejected,
)
from termshell.history.models import UNRESOLVED_CATEGORY

if TYPE_CHECKING:
    from termshell.commands.registry import Command, CommandRegistry
    from termshell.history.ledger import UsageLedger

logger = get_logger(__name__)


class CommandDispatcher:
    """Dispatches raw input lines.

    Every outcome is returned as a value; handler exceptions are converted to
    ``HANDLER_PANIC`` errors. Each non-blank invocation is recorded in the
    ledger, unresolved ones as failures in the ``unresolved`` category.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        ledger: UsageLedger,
        *,
        matcher: EditDistanceMatcher | None = None,
    ) -> None:
        self.registry = registry
        self.ledger = ledger
        self.matcher = matcher or EditDistanceMatcher()

    def correction_hint(self, verb: str) -> str | None:
        """Canonical name of the closest registered key to ``verb``, if any is close enough."""
        best_key = self.matcher.best_match(verb, self.registry.keys(), self._key_frequency)
        if best_key is None:
            return None
        command = self.registry.resolve(best_key)
        return command.name if command is not None else None

    def _key_frequency(self, key: str) -> int:
        command = self.registry.resolve(key)
        if command is None:
            return 0
        return sum(
            entry.frequency
            for entry in self.ledger.entries
            if self.registry.resolve(entry.verb) is command
        )

    async def dispatch(self, raw_input: str) -> DispatchOutcome:
        parsed = tokenize(raw_input)
        if parsed.is_empty:
            return Rejected(DispatchError(DispatchErrorKind.EMPTY_INPUT, "No command entered"))

        command = self.registry.resolve(parsed.command)
        if command is None:
            return self._not_found(parsed.command, raw_input)

        return await self._run(command, parsed.args, raw_input)

    def _not_found(self, verb: str, raw_input: str) -> NotFound:
        hint = self.correction_hint(verb)
        message = f"Command not found: {verb}"
        if hint is not None:
            message = f"{message}. Did you mean '{hint}'?"

        self.ledger.record(raw_input, success=False, category=UNRESOLVED_CATEGORY)
        logger.debug("Unresolved command", verb=verb, hint=hint)
        return NotFound(
            verb=verb,
            hint=hint,
            error=DispatchError(DispatchErrorKind.UNRESOLVED_COMMAND, message, hint),
        )

    async def _run(self, command: Command, args: tuple[str, ...], raw_input: str) -> Dispatched:
        started = time.perf_counter()
        error: DispatchError | None = None

        if command.handler is None:
            result = HandlerResult.fail(f"Command '{command.name}' has no handler")
        else:
            try:
                returned: Any = command.handler(list(args), raw_input)
                if inspect.isawaitable(returned):
                    returned = await returned
                result = returned if isinstance(returned, HandlerResult) else HandlerResult.ok(returned)
            except Exception as exc:
                logger.exception("Command handler raised", command=command.name)
                message = f"Error executing command: {exc}"
                result = HandlerResult.fail(message)
                error = DispatchError(DispatchErrorKind.HANDLER_PANIC, message)

        elapsed_ms = (time.perf_counter() - started) * 1000
        if error is None and not result.success:
            error = DispatchError(
                DispatchErrorKind.HANDLER_FAILURE,
                result.message or f"Command '{command.name}' failed",
            )

        self.ledger.record(raw_input, success=error is None, execution_time_ms=elapsed_ms)
        return Dispatched(
            command=command,
            args=args,
            result=result,
            error=error,
            execution_time_ms=elapsed_ms,
        )
