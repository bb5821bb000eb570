from __future__ import annotations

import typer
from rich import print

from termshell.commands.catalog import BUILTIN_COMMANDS
from termshell.commands.registry import find_registration_conflicts
from termshell.core.exceptions import RegistrationConflictError, TermShellError


def validate_command_catalog() -> list[str]:
    """Ensure no built-in name or alias is claimed twice; return every lookup key."""
    conflicts = find_registration_conflicts(BUILTIN_COMMANDS)
    if conflicts:
        detail = "; ".join(
            f"'{conflict.key}' claimed by '{conflict.existing}' and '{conflict.incoming}'"
            for conflict in conflicts
        )
        raise RegistrationConflictError("Built-in command catalog has collisions", detail)

    keys: list[str] = []
    for command in BUILTIN_COMMANDS:
        if not command.description.strip():
            raise TermShellError(
                "Built-in command has no description",
                f"Command: {command.name}",
            )
        keys.extend(command.lookup_keys())
    return keys


def main(verbose: bool = False) -> None:
    try:
        keys = validate_command_catalog()
    except TermShellError as exc:
        print(f"[red]Command catalog validation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    print(f"[green]Command catalog valid:[/green] {len(BUILTIN_COMMANDS)} commands, {len(keys)} keys")
    if verbose:
        for key in keys:
            print(f"  - {key}")

    raise typer.Exit(code=0)


if __name__ == "__main__":
    typer.run(main)
