"""Help rendering for the commands held by a registry."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from termshell.commands.registry import Command, CommandRegistry

SCHEMA_VERSION = "1"


@dataclass(frozen=True, slots=True)
class DiscoveryRequest:
    """Parsed request for help rendering."""

    command_name: str | None
    as_json: bool


def parse_discovery_arguments(args: Sequence[str]) -> DiscoveryRequest:
    """Parse ``help`` arguments into a request object."""

    command_name: str | None = None
    as_json = False

    for token in args:
        lowered = token.lower().strip()
        if lowered == "--json":
            as_json = True
            continue
        if lowered.startswith("-"):
            raise ValueError(f"Unknown help option: {token}")
        if command_name is not None:
            raise ValueError("Usage: help [<command>] [--json]")
        command_name = lowered

    return DiscoveryRequest(command_name=command_name, as_json=as_json)


def _command_entry(command: Command) -> dict[str, object]:
    return {
        "name": command.name,
        "summary": command.description,
        "usage": command.usage or command.name,
        "aliases": list(command.aliases),
        "category": command.category,
        "examples": list(command.examples),
    }


def _sorted_commands(registry: CommandRegistry) -> list[Command]:
    return sorted(registry.list(), key=lambda command: command.name.lower())


def render_commands_index_markdown(registry: CommandRegistry) -> str:
    """Render markdown listing every command grouped by category."""

    by_category: dict[str, list[Command]] = {}
    for command in _sorted_commands(registry):
        by_category.setdefault(command.category, []).append(command)

    lines = ["# commands", ""]
    for category in sorted(by_category):
        lines.append(f"## {category}")
        for command in by_category[category]:
            alias_text = f" (aliases: {', '.join(command.aliases)})" if command.aliases else ""
            if command.description:
                lines.append(f"- `{command.name}`: {command.description}{alias_text}")
            else:
                lines.append(f"- `{command.name}`{alias_text}")
        lines.append("")

    lines.extend(
        [
            "Next:",
            "- `help <name>` for detailed help",
            "- `help --json` for machine-readable map",
        ]
    )
    return "\n".join(lines)


def render_command_detail_markdown(registry: CommandRegistry, command_name: str) -> str | None:
    """Render markdown for one command, looked up by name or alias."""

    command = registry.resolve(command_name)
    if command is None:
        return None

    lines = [f"# {command.name}", ""]
    if command.description:
        lines.extend([command.description, ""])
    lines.append(f"Usage: `{command.usage or command.name}`")
    lines.append(f"Category: {command.category}")

    if command.aliases:
        lines.extend(["", "Aliases:"])
        lines.extend(f"- `{alias}`" for alias in command.aliases)

    if command.examples:
        lines.extend(["", "Examples:"])
        lines.extend(f"- `{example}`" for example in command.examples)

    lines.append("")
    lines.append(f"JSON: `help {command.name} --json`")
    return "\n".join(lines)


def render_commands_json(registry: CommandRegistry, *, command_name: str | None = None) -> str:
    """Render the JSON payload for the command index or a single command."""

    if command_name is None:
        payload: dict[str, object] = {
            "schema_version": SCHEMA_VERSION,
            "kind": "command_index",
            "commands": [_command_entry(command) for command in _sorted_commands(registry)],
        }
        return json.dumps(payload, indent=2, sort_keys=True)

    command = registry.resolve(command_name)
    if command is None:
        payload = {
            "schema_version": SCHEMA_VERSION,
            "kind": "error",
            "error": f"Unknown command: {command_name}",
            "suggestions": [entry.name for entry in _sorted_commands(registry)],
        }
        return json.dumps(payload, indent=2, sort_keys=True)

    payload = {
        "schema_version": SCHEMA_VERSION,
        "kind": "command_detail",
        "command": _command_entry(command),
    }
    return json.dumps(payload, indent=2, sort_keys=True)
