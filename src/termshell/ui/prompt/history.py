"""prompt_toolkit history view over the usage ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit.history import History

if TYPE_CHECKING:
    from collections.abc import Iterable

    from termshell.history.ledger import UsageLedger


class LedgerHistory(History):
    """Up/down arrow history sourced from the ledger, newest first.

    The dispatcher records every submitted line, so ``store_string`` does not
    write anything itself.
    """

    def __init__(self, ledger: UsageLedger) -> None:
        super().__init__()
        self.ledger = ledger

    def load_history_strings(self) -> Iterable[str]:
        for entry in self.ledger.entries:
            yield entry.command

    def store_string(self, string: str) -> None:
        pass
