"""Persistence backends for the usage ledger."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from termshell.core.exceptions import HistoryStoreError

if TYPE_CHECKING:
    from collections.abc import Sequence


@runtime_checkable
class HistoryStore(Protocol):
    """Loads and saves ledger entries as JSON-ready dicts."""

    def load(self) -> list[dict[str, Any]]: ...

    def save(self, entries: Sequence[dict[str, Any]]) -> None: ...


class InMemoryHistoryStore:
    """Keeps the last saved snapshot in memory."""

    def __init__(self, entries: Sequence[dict[str, Any]] | None = None) -> None:
        self._entries: list[dict[str, Any]] = [dict(entry) for entry in entries or ()]
        self.save_count = 0

    def load(self) -> list[dict[str, Any]]:
        return [dict(entry) for entry in self._entries]

    def save(self, entries: Sequence[dict[str, Any]]) -> None:
        self._entries = [dict(entry) for entry in entries]
        self.save_count += 1


class JsonFileHistoryStore:
    """Stores the ledger as a JSON array, replacing the file atomically on save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise HistoryStoreError("Unable to read history file", f"{self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise HistoryStoreError("History file is not valid JSON", f"{self.path}: {exc}") from exc

        if not isinstance(payload, list):
            raise HistoryStoreError(
                "History file has an unexpected shape",
                f"{self.path} must contain a JSON array.",
            )
        return [record for record in payload if isinstance(record, dict)]

    def save(self, entries: Sequence[dict[str, Any]]) -> None:
        data = json.dumps(list(entries), indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(data)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise HistoryStoreError("Unable to write history file", f"{self.path}: {exc}") from exc
