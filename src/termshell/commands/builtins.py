"""Handlers for the ``help`` and ``history`` commands."""

from __future__ import annotations

import dataclasses
import json
from typing import TYPE_CHECKING

from termshell.commands.catalog import BUILTIN_COMMANDS
from termshell.commands.discovery import (
    parse_discovery_arguments,
    render_command_detail_markdown,
    render_commands_index_markdown,
    render_commands_json,
)
from termshell.commands.tokenizer import FlagOption, has_any_flag, has_flag, tokenize
from termshell.dispatch.results import HandlerResult
from termshell.history.models import HistoryQuery

if TYPE_CHECKING:
    from termshell.commands.registry import Command, CommandHandler, CommandRegistry
    from termshell.history.ledger import UsageLedger
    from termshell.history.models import HistoryEntry, UsageProfile

RECENT_HISTORY_LIMIT = 20

_CLEAR = FlagOption("c", "clear")
_STATS = FlagOption("s", "stats")
_EXPORT = FlagOption("e", "export")
_FAVORITES = FlagOption("f", "favorites")


def make_help_handler(registry: CommandRegistry) -> CommandHandler:
    def handle_help(args: list[str], raw_input: str) -> HandlerResult:
        try:
            request = parse_discovery_arguments(args)
        except ValueError as exc:
            return HandlerResult.fail(str(exc))

        if request.as_json:
            return HandlerResult.ok(render_commands_json(registry, command_name=request.command_name))
        if request.command_name is None:
            return HandlerResult.ok(render_commands_index_markdown(registry))

        detail = render_command_detail_markdown(registry, request.command_name)
        if detail is None:
            return HandlerResult.fail(f"Unknown command: {request.command_name}")
        return HandlerResult.ok(detail)

    return handle_help


def render_usage_profile_markdown(profile: UsageProfile) -> str:
    lines = [
        "# Command analytics",
        "",
        f"- Total commands: {profile.total_commands}",
        f"- Unique commands: {profile.unique_commands}",
        f"- Success rate: {profile.success_rate:.1f}%",
        f"- Average execution time: {profile.average_execution_time_ms:.1f} ms",
    ]
    if profile.top_commands:
        lines.extend(["", "## Top commands"])
        lines.extend(
            f"{index}. `{usage.command}` ({usage.count} times)"
            for index, usage in enumerate(profile.top_commands, start=1)
        )
    if profile.commands_by_category:
        lines.extend(["", "## By category"])
        lines.extend(
            f"- {category}: {count}"
            for category, count in sorted(profile.commands_by_category.items())
        )
    if profile.error_frequency:
        lines.extend(["", "## Failures"])
        lines.extend(f"- `{item.command}`: {item.failures}" for item in profile.error_frequency)
    return "\n".join(lines)


def _render_entries(title: str, entries: list[HistoryEntry]) -> str:
    lines = [f"# {title}", ""]
    for index, entry in enumerate(entries, start=1):
        status = "ok" if entry.success else "failed"
        star = " *" if entry.favorite else ""
        lines.append(
            f"{index}. `{entry.command}` ({status}, {entry.timestamp:%H:%M:%S}, x{entry.frequency}){star}"
        )
    lines.extend(
        [
            "",
            "Tips:",
            "- `history --stats` shows analytics",
            "- `history --clear` clears history",
        ]
    )
    return "\n".join(lines)


def make_history_handler(ledger: UsageLedger) -> CommandHandler:
    def handle_history(args: list[str], raw_input: str) -> HandlerResult:
        parsed = tokenize(raw_input)

        if has_flag(parsed, _CLEAR.short, _CLEAR.long):
            ledger.clear()
            return HandlerResult.ok(message="History cleared")
        if has_flag(parsed, _STATS.short, _STATS.long):
            profile = ledger.analytics()
            return HandlerResult.ok(render_usage_profile_markdown(profile))
        if has_flag(parsed, _EXPORT.short, _EXPORT.long):
            return HandlerResult.ok(json.dumps(ledger.export(), indent=2))

        terms = [term for term in (parsed.subcommand, *parsed.positional) if term]
        query = HistoryQuery(
            text=" ".join(terms) or None,
            favorites_only=has_any_flag(parsed, [_FAVORITES]),
            limit=RECENT_HISTORY_LIMIT,
        )
        entries = ledger.query(query)
        if not entries:
            return HandlerResult.ok(
                message="No command history found. Start typing commands to build your history!"
            )
        return HandlerResult.ok(_render_entries("Recent command history", entries))

    return handle_history


def builtin_commands(registry: CommandRegistry, ledger: UsageLedger) -> list[Command]:
    """Catalog commands with handlers attached where this package provides one."""

    handlers: dict[str, CommandHandler] = {
        "help": make_help_handler(registry),
        "history": make_history_handler(ledger),
    }
    return [
        dataclasses.replace(command, handler=handlers[command.name])
        if command.name in handlers
        else command
        for command in BUILTIN_COMMANDS
    ]
