"""Key bindings for the interactive shell prompt."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings

if TYPE_CHECKING:
    from prompt_toolkit.buffer import Buffer, CompletionState


def _open_menu(buffer: Buffer) -> CompletionState | None:
    state = buffer.complete_state
    if state is None or not state.completions:
        return None
    return state


def _move_selection(buffer: Buffer, step: int) -> bool:
    """Select the suggestion ``step`` places away, wrapping around the menu.

    With nothing selected yet, a forward step lands on the first suggestion and
    a backward step on the last. Returns ``False`` when no menu is open.
    """
    state = _open_menu(buffer)
    if state is None:
        return False

    count = len(state.completions)
    origin = state.complete_index
    if origin is None:
        origin = -1 if step > 0 else count
    buffer.go_to_completion((origin + step) % count)
    return True


def _commit_selection(buffer: Buffer) -> bool:
    state = _open_menu(buffer)
    if state is None:
        return False

    buffer.go_to_completion(state.complete_index or 0)
    buffer.complete_state = None
    return True


def _menu_open() -> bool:
    from prompt_toolkit.application.current import get_app

    return _open_menu(get_app().current_buffer) is not None


def create_keybindings() -> KeyBindings:
    kb = KeyBindings()
    menu_open = Condition(_menu_open)

    @kb.add("c-space")
    def _(event) -> None:
        event.current_buffer.start_completion()

    @kb.add("tab")
    def _(event) -> None:
        if not _move_selection(event.current_buffer, 1):
            event.current_buffer.start_completion(insert_common_part=True)

    @kb.add("s-tab")
    def _(event) -> None:
        if not _move_selection(event.current_buffer, -1):
            event.current_buffer.start_completion(select_last=True)

    @kb.add("enter", filter=menu_open, eager=True)
    def _(event) -> None:
        _commit_selection(event.current_buffer)

    @kb.add("c-u")
    def _(event) -> None:
        """Ctrl+U: clear the input line."""
        event.current_buffer.text = ""

    @kb.add("c-l")
    def _(event) -> None:
        """Ctrl+L: clear and redraw the screen."""
        event.app.renderer.clear()
        event.app.invalidate()

    return kb
