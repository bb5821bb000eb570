"""
Bounded, queryable record of command invocations.

Entries are kept newest first. Recording a command string that is already
present replaces its entry: the frequency is incremented, the timestamp is
refreshed and the entry moves to the head. When the ledger grows past
``max_history_size`` the oldest entries are evicted, favorites included.

Every mutation drops the cached analytics, saves through the configured
store and notifies subscribers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError

from termshell.config import HistorySettings
from termshell.core.exceptions import HistoryStoreError
from termshell.core.logging.logger import get_logger
from termshell.history.categories import Categorizer, StaticCategorizer
from termshell.history.models import (
    CommandFailures,
    CommandUsage,
    DailyActivity,
    HistoryEntry,
    HistoryQuery,
    ImportReport,
    SortOrder,
    TimeRange,
    UsageProfile,
)

if TYPE_CHECKING:
    from termshell.history.store import HistoryStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]
LedgerListener = Callable[[], None]

_REQUIRED_FIELDS = ("id", "command", "timestamp")
_ACTIVITY_DAYS = 7


def local_now() -> datetime:
    return datetime.now().astimezone()


def _normalize(command_text: str) -> str:
    return " ".join(command_text.split())


class UsageLedger:
    """Usage history that feeds suggestion scoring and analytics."""

    def __init__(
        self,
        settings: HistorySettings | None = None,
        *,
        store: HistoryStore | None = None,
        clock: Clock | None = None,
        categorizer: Categorizer | None = None,
    ) -> None:
        self.settings = settings or HistorySettings()
        self._store = store
        self._clock = clock or local_now
        self._categorizer: Categorizer = categorizer or StaticCategorizer()
        self._entries: list[HistoryEntry] = []
        self._listeners: list[LedgerListener] = []
        self._analytics_cache: dict[tuple[int, date], UsageProfile] = {}
        self._load()

    # ------------------------------------------------------------------
    # Reading

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        """All entries, newest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def now(self) -> datetime:
        return self._clock()

    def get(self, entry_id: str) -> HistoryEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def find(self, command_text: str) -> HistoryEntry | None:
        normalized = _normalize(command_text)
        for entry in self._entries:
            if entry.command == normalized:
                return entry
        return None

    def frequency_of(self, command_text: str) -> int:
        entry = self.find(command_text)
        return entry.frequency if entry is not None else 0

    def favorites(self) -> list[HistoryEntry]:
        return [entry for entry in self._entries if entry.favorite]

    def categories(self) -> list[str]:
        return sorted({entry.category for entry in self._entries})

    def query(self, query: HistoryQuery | None = None) -> list[HistoryEntry]:
        """Filter and sort entries.

        Time ranges are measured against the ledger clock: ``today`` starts
        at local midnight, ``week`` on Monday and ``month`` on the first.
        """
        query = query or HistoryQuery()
        results = list(self._entries)

        if query.text:
            needle = query.text.lower()
            results = [
                entry
                for entry in results
                if needle in entry.command.lower() or needle in entry.category.lower()
            ]
        if query.category:
            results = [entry for entry in results if entry.category == query.category]
        if query.favorites_only:
            results = [entry for entry in results if entry.favorite]
        if query.success is not None:
            results = [entry for entry in results if entry.success == query.success]

        start = self._range_start(query.time_range)
        if start is not None:
            results = [entry for entry in results if entry.timestamp >= start]

        results = self._sorted(results, query.sort_by)
        if query.limit is not None:
            results = results[: query.limit]
        return results

    def _range_start(self, time_range: TimeRange) -> datetime | None:
        if time_range is TimeRange.ALL:
            return None
        midnight = self._clock().replace(hour=0, minute=0, second=0, microsecond=0)
        if time_range is TimeRange.TODAY:
            return midnight
        if time_range is TimeRange.WEEK:
            return midnight - timedelta(days=midnight.weekday())
        return midnight.replace(day=1)

    @staticmethod
    def _sorted(entries: list[HistoryEntry], sort_by: SortOrder) -> list[HistoryEntry]:
        by_recent = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)
        if sort_by is SortOrder.FREQUENCY:
            return sorted(by_recent, key=lambda entry: -entry.frequency)
        if sort_by is SortOrder.ALPHABETICAL:
            return sorted(by_recent, key=lambda entry: entry.command.lower())
        if sort_by is SortOrder.EXECUTION_TIME:
            return sorted(
                by_recent,
                key=lambda entry: (
                    entry.execution_time_ms is None,
                    -(entry.execution_time_ms or 0.0),
                ),
            )
        return by_recent

    # ------------------------------------------------------------------
    # Analytics

    def analytics(self, top_n: int | None = None) -> UsageProfile:
        """Aggregate usage view, cached until the next mutation or day change."""
        limit = top_n or self.settings.analytics_top_n
        today = self._clock().date()
        key = (limit, today)
        cached = self._analytics_cache.get(key)
        if cached is not None:
            return cached

        profile = self._compute_analytics(limit, today)
        self._analytics_cache[key] = profile
        return profile

    def _compute_analytics(self, limit: int, today: date) -> UsageProfile:
        entries = self._entries
        if not entries:
            return UsageProfile(
                daily_activity=[
                    DailyActivity(day=today - timedelta(days=offset), count=0)
                    for offset in range(_ACTIVITY_DAYS - 1, -1, -1)
                ]
            )

        successes = sum(1 for entry in entries if entry.success)
        timed_runs = sum(entry.timed_runs for entry in entries)
        total_time = sum(entry.total_execution_time_ms for entry in entries)

        ranked = sorted(
            entries,
            key=lambda entry: (-entry.frequency, -entry.timestamp.timestamp(), entry.command),
        )
        top_commands = [
            CommandUsage(
                command=entry.command,
                count=entry.frequency,
                average_execution_time_ms=(
                    entry.total_execution_time_ms / entry.timed_runs if entry.timed_runs else None
                ),
            )
            for entry in ranked[:limit]
        ]

        by_category: dict[str, int] = {}
        for entry in entries:
            by_category[entry.category] = by_category.get(entry.category, 0) + entry.frequency

        tz = self._clock().tzinfo
        per_day: dict[date, int] = {}
        for entry in entries:
            day = entry.timestamp.astimezone(tz).date()
            per_day[day] = per_day.get(day, 0) + 1
        daily_activity = [
            DailyActivity(day=day, count=per_day.get(day, 0))
            for day in (today - timedelta(days=offset) for offset in range(_ACTIVITY_DAYS - 1, -1, -1))
        ]

        failing = sorted(
            (entry for entry in entries if entry.failure_count),
            key=lambda entry: (-entry.failure_count, entry.command),
        )
        error_frequency = [
            CommandFailures(command=entry.command, failures=entry.failure_count)
            for entry in failing[:limit]
        ]

        return UsageProfile(
            total_commands=sum(entry.frequency for entry in entries),
            unique_commands=len(entries),
            success_rate=round(successes / len(entries) * 100, 2),
            average_execution_time_ms=round(total_time / timed_runs, 3) if timed_runs else 0.0,
            top_commands=top_commands,
            commands_by_category=by_category,
            daily_activity=daily_activity,
            error_frequency=error_frequency,
        )

    # ------------------------------------------------------------------
    # Mutation

    def record(
        self,
        command_text: str,
        *,
        success: bool = True,
        execution_time_ms: float | None = None,
        context: str | None = None,
        category: str | None = None,
    ) -> HistoryEntry:
        """Record one invocation and return the resulting entry."""
        normalized = _normalize(command_text)
        if not normalized:
            raise ValueError("Cannot record an empty command")

        now = self._clock()
        resolved_category = category or self._categorizer(normalized)
        timed = execution_time_ms is not None

        existing = self.find(normalized)
        if existing is not None:
            self._entries.remove(existing)
            entry = existing.model_copy(
                update={
                    "timestamp": now,
                    "success": success,
                    "execution_time_ms": execution_time_ms,
                    "category": resolved_category,
                    "frequency": existing.frequency + 1,
                    "context": context,
                    "total_execution_time_ms": existing.total_execution_time_ms
                    + (execution_time_ms or 0.0),
                    "timed_runs": existing.timed_runs + int(timed),
                    "failure_count": existing.failure_count + int(not success),
                }
            )
        else:
            entry = HistoryEntry(
                id=uuid4().hex,
                command=normalized,
                timestamp=now,
                success=success,
                execution_time_ms=execution_time_ms,
                category=resolved_category,
                context=context,
                total_execution_time_ms=execution_time_ms or 0.0,
                timed_runs=int(timed),
                failure_count=int(not success),
            )

        self._entries.insert(0, entry)
        self._evict()
        self._changed()
        return entry

    def toggle_favorite(self, id_or_command: str) -> HistoryEntry | None:
        """Flip the favorite flag of an entry found by id or command string."""
        entry = self.get(id_or_command) or self.find(id_or_command)
        if entry is None:
            return None

        updated = entry.model_copy(update={"favorite": not entry.favorite})
        self._entries[self._entries.index(entry)] = updated
        self._changed()
        return updated

    def remove(self, entry_id: str) -> bool:
        entry = self.get(entry_id)
        if entry is None:
            return False
        self._entries.remove(entry)
        self._changed()
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._changed()

    def export(self) -> list[dict[str, Any]]:
        """Every entry as a JSON-ready dict, newest first."""
        return [entry.model_dump(mode="json") for entry in self._entries]

    def import_entries(self, records: Iterable[Any]) -> ImportReport:
        """Merge exported records into the ledger.

        Records without a command or timestamp are skipped; a missing id,
        category or frequency is filled in. A record for a command already
        present is merged: frequencies add up and the newer use wins.
        """
        report = ImportReport()
        for index, record in enumerate(records):
            entry, error = self._parse_import(record)
            if entry is None:
                report.skipped += 1
                report.errors.append(f"record {index}: {error}")
                continue
            self._merge(entry)
            report.imported += 1

        if report.skipped:
            logger.info(
                "Skipped history records during import",
                skipped=report.skipped,
                imported=report.imported,
            )

        if report.imported:
            self._entries.sort(key=lambda entry: entry.timestamp, reverse=True)
            self._evict()
            self._changed()
        return report

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """Call ``listener`` after every mutation; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internals

    def _parse_import(self, record: Any) -> tuple[HistoryEntry | None, str]:
        if not isinstance(record, Mapping):
            return None, "not an object"
        command = record.get("command")
        if not isinstance(command, str) or not command.strip():
            return None, "missing command"
        if not record.get("timestamp"):
            return None, "missing timestamp"

        data = dict(record)
        if not data.get("id") or (
            (owner := self.get(str(data["id"]))) is not None
            and owner.command != _normalize(command)
        ):
            data["id"] = uuid4().hex
        data.setdefault("category", None)
        if not data["category"]:
            data["category"] = self._categorizer(command)
        if data.get("frequency") is None:
            data["frequency"] = 1

        try:
            return HistoryEntry.model_validate(data), ""
        except ValidationError as exc:
            return None, f"{exc.error_count()} validation error(s)"

    def _merge(self, incoming: HistoryEntry) -> None:
        existing = self.find(incoming.command)
        if existing is None:
            self._entries.append(incoming)
            return

        newer, older = (
            (incoming, existing) if incoming.timestamp > existing.timestamp else (existing, incoming)
        )
        merged = newer.model_copy(
            update={
                "id": existing.id,
                "frequency": existing.frequency + incoming.frequency,
                "favorite": existing.favorite or incoming.favorite,
                "total_execution_time_ms": existing.total_execution_time_ms
                + incoming.total_execution_time_ms,
                "timed_runs": existing.timed_runs + incoming.timed_runs,
                "failure_count": existing.failure_count + incoming.failure_count,
                "context": newer.context if newer.context is not None else older.context,
            }
        )
        self._entries[self._entries.index(existing)] = merged

    def _evict(self) -> None:
        limit = self.settings.max_history_size
        if len(self._entries) <= limit:
            return
        evicted = self._entries[limit:]
        del self._entries[limit:]
        logger.debug(
            "Evicted history entries",
            count=len(evicted),
            favorites=sum(1 for entry in evicted if entry.favorite),
        )

    def _changed(self) -> None:
        self._analytics_cache.clear()
        self._save()
        for listener in list(self._listeners):
            listener()

    def _save(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self.export())
        except (HistoryStoreError, OSError) as exc:
            logger.warning("Failed to save history; continuing in memory", error=str(exc))

    def _load(self) -> None:
        if self._store is None:
            return
        try:
            records = self._store.load()
        except (HistoryStoreError, OSError) as exc:
            logger.warning("Failed to load history; starting empty", error=str(exc))
            return

        loaded: list[HistoryEntry] = []
        seen: set[str] = set()
        discarded = 0
        for record in records:
            if not isinstance(record, Mapping) or any(
                not record.get(field) for field in _REQUIRED_FIELDS
            ):
                discarded += 1
                continue
            try:
                entry = HistoryEntry.model_validate(dict(record))
            except ValidationError:
                discarded += 1
                continue
            if entry.command in seen:
                discarded += 1
                continue
            seen.add(entry.command)
            loaded.append(entry)

        if discarded:
            logger.info("Discarded malformed history records", discarded=discarded)

        loaded.sort(key=lambda entry: entry.timestamp, reverse=True)
        self._entries = loaded[: self.settings.max_history_size]
        logger.debug("Loaded history", entries=len(self._entries))
