"""termshell command line entry point."""

from __future__ import annotations

import asyncio
import dataclasses
import json
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import typer
from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from termshell.commands.catalog import get_builtin
from termshell.commands.tokenizer import FlagOption, has_any_flag, tokenize
from termshell.config import Settings, get_settings
from termshell.core.exceptions import ConfigError
from termshell.core.logging.logger import LoggingConfig
from termshell.dispatch.results import Dispatched, HandlerResult, NotFound
from termshell.engine import ShellEngine
from termshell.suggestions.debounce import AsyncioScheduler
from termshell.ui.prompt.completer import SuggestionCompleter
from termshell.ui.prompt.history import LedgerHistory
from termshell.ui.prompt.keybindings import create_keybindings

if TYPE_CHECKING:
    from collections.abc import Iterator

    from termshell.commands.registry import Command, CommandHandler
    from termshell.dispatch.results import DispatchOutcome
    from termshell.suggestions.models import SuggestionItem

app = typer.Typer(
    help="Interactive command shell with typo-tolerant suggestions.",
    no_args_is_help=True,
)
history_app = typer.Typer(help="Inspect, export and import command history.", no_args_is_help=True)
app.add_typer(history_app, name="history")

console = Console()

EXIT_WORDS = frozenset({"exit", "quit"})
THEMES = ("default", "dracula", "solarized", "matrix")
FONTS = ("fira-code", "jetbrains-mono", "ibm-plex-mono")
_LIST = FlagOption("l", "list")


def _load_settings(config: Path | None, history_file: Path | None) -> Settings:
    try:
        settings = get_settings(config)
    except ConfigError as exc:
        console.print(f"[red]{exc.message}[/red]")
        if exc.details:
            console.print(exc.details, markup=False)
        raise typer.Exit(code=1) from exc

    if history_file is not None:
        settings.history.path = history_file
    LoggingConfig.configure(settings.logger)
    return settings


@dataclasses.dataclass(slots=True)
class _SessionState:
    theme: str = THEMES[0]
    font: str = FONTS[0]


def _choice_handler(
    label: str, options: tuple[str, ...], state: _SessionState, attribute: str
) -> CommandHandler:
    def handle(args: list[str], raw_input: str) -> HandlerResult:
        parsed = tokenize(raw_input)
        if has_any_flag(parsed, [_LIST]) or not parsed.subcommand:
            current = getattr(state, attribute)
            listing = "\n".join(
                f"- `{option}`{' (current)' if option == current else ''}" for option in options
            )
            return HandlerResult.ok(f"Available {label}s:\n\n{listing}")

        choice = parsed.subcommand.lower()
        if choice not in options:
            return HandlerResult.fail(f"Unknown {label}: {choice}")
        setattr(state, attribute, choice)
        return HandlerResult.ok(message=f"{label.capitalize()} set to {choice}")

    return handle


def session_commands(engine: ShellEngine, state: _SessionState) -> list[Command]:
    """Handlers for catalog commands that act on the terminal session."""

    def handle_clear(args: list[str], raw_input: str) -> HandlerResult:
        console.clear()
        return HandlerResult.ok()

    def handle_status(args: list[str], raw_input: str) -> HandlerResult:
        profile = engine.ledger.analytics()
        return HandlerResult.ok(
            f"- Theme: `{state.theme}`\n"
            f"- Font: `{state.font}`\n"
            f"- Commands registered: {len(engine.registry)}\n"
            f"- History entries: {profile.unique_commands}"
        )

    handlers = {
        "clear": handle_clear,
        "status": handle_status,
        "theme": _choice_handler("theme", THEMES, state, "theme"),
        "font": _choice_handler("font", FONTS, state, "font"),
    }
    commands: list[Command] = []
    for name, handler in handlers.items():
        command = get_builtin(name)
        if command is not None:
            commands.append(dataclasses.replace(command, handler=handler))
    return commands


def render_outcome(outcome: DispatchOutcome, target: Console | None = None) -> None:
    out = target or console
    if isinstance(outcome, NotFound):
        out.print(outcome.error.message, style="red", markup=False)
        return
    if not isinstance(outcome, Dispatched):
        return

    if outcome.error is not None:
        out.print(outcome.error.message, style="red", markup=False)
        return

    result = outcome.result
    if isinstance(result.payload, str) and result.payload:
        out.print(Markdown(result.payload))
    elif result.payload is not None:
        out.print(result.payload)
    if result.message:
        out.print(result.message, style="green", markup=False)


def _toolbar_text(items: list[SuggestionItem]) -> str:
    return "  ".join(item.command for item in items)


async def _run_shell(engine: ShellEngine) -> None:
    toolbar = {"text": ""}
    session: PromptSession[str] = PromptSession(
        completer=SuggestionCompleter(engine.suggestions),
        history=LedgerHistory(engine.ledger),
        key_bindings=create_keybindings(),
        complete_while_typing=True,
        bottom_toolbar=lambda: toolbar["text"],
    )

    def on_suggestions(text: str, items: list[SuggestionItem]) -> None:
        toolbar["text"] = _toolbar_text(items)
        if session.app.is_running:
            session.app.invalidate()

    debouncer = engine.debouncer(AsyncioScheduler(), on_suggestions)
    session.default_buffer.on_text_changed += lambda buffer: debouncer.input_changed(buffer.text)

    console.print("Type [bold]help[/bold] for commands, [bold]exit[/bold] to leave.")
    while True:
        try:
            line = await session.prompt_async("termshell> ")
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        finally:
            debouncer.cancel()

        if line.strip().lower() in EXIT_WORDS:
            break
        outcome = await engine.dispatch(line)
        render_outcome(outcome)


@app.command()
def shell(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to termshell.config.yaml"),
    history_file: Optional[Path] = typer.Option(None, "--history", help="JSON file to keep history in"),
) -> None:
    """Start the interactive shell."""
    settings = _load_settings(config, history_file)
    engine = ShellEngine.from_settings(settings)
    engine.registry.register_all(session_commands(engine, _SessionState()))
    try:
        asyncio.run(_run_shell(engine))
    finally:
        engine.close()
        LoggingConfig.shutdown()


@contextmanager
def _history_engine(config: Path | None, history_file: Path | None) -> Iterator[ShellEngine]:
    """Open the configured history file; exits when none is configured."""
    settings = _load_settings(config, history_file)
    if settings.history.path is None:
        LoggingConfig.shutdown()
        console.print(
            "[red]No history file configured.[/red] Pass --history or set history.path in the config."
        )
        raise typer.Exit(code=1)

    engine = ShellEngine.from_settings(settings)
    try:
        yield engine
    finally:
        engine.close()
        LoggingConfig.shutdown()


@history_app.command("stats")
def history_stats(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to termshell.config.yaml"),
    history_file: Optional[Path] = typer.Option(None, "--history", help="JSON history file"),
    top: int = typer.Option(10, "--top", min=1, help="Number of top commands to show"),
) -> None:
    """Show usage analytics."""
    with _history_engine(config, history_file) as engine:
        profile = engine.ledger.analytics(top)

    summary = Table(title="Command analytics", show_header=False)
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Total commands", str(profile.total_commands))
    summary.add_row("Unique commands", str(profile.unique_commands))
    summary.add_row("Success rate", f"{profile.success_rate:.1f}%")
    summary.add_row("Average execution time", f"{profile.average_execution_time_ms:.1f} ms")
    console.print(summary)

    if profile.top_commands:
        top_table = Table(title="Top commands")
        top_table.add_column("Command")
        top_table.add_column("Count", justify="right")
        top_table.add_column("Avg ms", justify="right")
        for usage in profile.top_commands:
            average = usage.average_execution_time_ms
            top_table.add_row(
                usage.command,
                str(usage.count),
                f"{average:.1f}" if average is not None else "-",
            )
        console.print(top_table)

    if profile.commands_by_category:
        category_table = Table(title="By category")
        category_table.add_column("Category")
        category_table.add_column("Commands", justify="right")
        for category, count in sorted(profile.commands_by_category.items()):
            category_table.add_row(category, str(count))
        console.print(category_table)


@history_app.command("export")
def history_export(
    path: Path = typer.Argument(..., help="Destination JSON file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to termshell.config.yaml"),
    history_file: Optional[Path] = typer.Option(None, "--history", help="JSON history file"),
) -> None:
    """Write the full history to a JSON file."""
    with _history_engine(config, history_file) as engine:
        records = engine.ledger.export()
    path.write_text(json.dumps(records, indent=2), encoding="utf-8")
    console.print(f"[green]Exported {len(records)} entries to[/green] {path}")


@history_app.command("import")
def history_import(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file to import"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to termshell.config.yaml"),
    history_file: Optional[Path] = typer.Option(None, "--history", help="JSON history file"),
) -> None:
    """Merge entries from a JSON export into the history."""
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not isinstance(payload, list):
        console.print("[red]Expected a JSON array of history entries[/red]")
        raise typer.Exit(code=1)

    with _history_engine(config, history_file) as engine:
        report = engine.ledger.import_entries(payload)
    console.print(f"[green]Imported {report.imported} entries[/green], skipped {report.skipped}")


if __name__ == "__main__":
    app()
