"""
Scored command suggestions for partially typed input.

Each registered command is scored once against the query using the
strongest strategy that applies to its name or aliases:

- exact match: 100
- prefix match: ``80 * len(query) / len(candidate)``, at least 40
- fuzzy match within the edit-distance threshold: ``60 - 10 * distance``,
  at least 10
- recent use (no text match): 50 for the newest entry, decaying linearly to
  20 at the end of the recent window
- popular (no text match, not recent): 35

A command sharing its category with the last successful invocation gets a
further +15, and when learning is enabled its usage frequency adds up to 20.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from termshell.commands.matcher import EditDistanceMatcher
from termshell.config import SuggestionSettings
from termshell.core.logging.logger import get_logger
from termshell.suggestions.models import CacheInfo, MatchType, SuggestionItem

if TYPE_CHECKING:
    from termshell.commands.registry import Command, CommandRegistry
    from termshell.history.ledger import UsageLedger

logger = get_logger(__name__)

EXACT_SCORE = 100
PREFIX_SCALE = 80
PREFIX_FLOOR = 40
FUZZY_BASE = 60
FUZZY_STEP = 10
FUZZY_FLOOR = 10
CONTEXTUAL_BONUS = 15
RECENT_NEWEST = 50
RECENT_OLDEST = 20
POPULAR_SCORE = 35
FREQUENCY_STEP = 2
FREQUENCY_CAP = 20


@dataclass(slots=True)
class _Usage:
    frequency: int = 0
    last_used_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class _LedgerSnapshot:
    usage: dict[str, _Usage]
    recent_ranks: dict[str, int]
    popular: frozenset[str]
    context_category: str | None


class SuggestionEngine:
    """Ranks registered commands against the current input."""

    def __init__(
        self,
        registry: CommandRegistry,
        ledger: UsageLedger,
        settings: SuggestionSettings | None = None,
        *,
        matcher: EditDistanceMatcher | None = None,
    ) -> None:
        self.registry = registry
        self.ledger = ledger
        self.settings = settings or SuggestionSettings()
        self.matcher = matcher or EditDistanceMatcher()
        self._cache: OrderedDict[tuple[str, str], tuple[SuggestionItem, ...]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._unsubscribe = ledger.subscribe(self.clear_cache)

    def suggest(self, query: str) -> list[SuggestionItem]:
        normalized = " ".join(query.split()).lower()
        if normalized and len(normalized) < self.settings.min_query_length:
            return []
        if not normalized and not self.settings.show_on_empty:
            return []

        if not self.settings.enable_cache:
            return list(self._compute(normalized))

        key = (normalized, self.registry.fingerprint())
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            self._hits += 1
            return list(cached)

        self._misses += 1
        items = self._compute(normalized)
        self._cache[key] = items
        if len(self._cache) > self.settings.cache_size:
            self._cache.popitem(last=False)
        return list(items)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_info(self) -> CacheInfo:
        return CacheInfo(hits=self._hits, misses=self._misses, size=len(self._cache))

    def close(self) -> None:
        """Stop listening to ledger changes."""
        self._unsubscribe()
        self._cache.clear()

    def _snapshot(self) -> _LedgerSnapshot:
        usage: dict[str, _Usage] = {}
        recent_ranks: dict[str, int] = {}
        context_category: str | None = None
        window = self.settings.recent_window

        for position, entry in enumerate(self.ledger.entries):
            if context_category is None and entry.success:
                context_category = entry.category

            command = self.registry.resolve(entry.verb)
            if command is None:
                continue
            name = command.name.lower()

            stats = usage.setdefault(name, _Usage())
            stats.frequency += entry.frequency
            if stats.last_used_at is None or entry.timestamp > stats.last_used_at:
                stats.last_used_at = entry.timestamp

            if position < window and name not in recent_ranks:
                recent_ranks[name] = position

        ranked = sorted(
            (name for name, stats in usage.items() if stats.frequency > 0),
            key=lambda name: (-usage[name].frequency, name),
        )
        return _LedgerSnapshot(
            usage=usage,
            recent_ranks=recent_ranks,
            popular=frozenset(ranked[: self.settings.popular_top_n]),
            context_category=context_category,
        )

    def _text_match(self, query: str, command: Command) -> tuple[MatchType, float] | None:
        # aliases taken over by a later registration belong to the new owner
        keys = [key for key in command.lookup_keys() if self.registry.resolve(key) is command]
        if not keys:
            return None
        if query in keys:
            return MatchType.EXACT, EXACT_SCORE

        prefix_scores = [
            max(PREFIX_FLOOR, PREFIX_SCALE * len(query) / len(key))
            for key in keys
            if key.startswith(query)
        ]
        if prefix_scores:
            return MatchType.PREFIX, max(prefix_scores)

        fuzzy = self.matcher.matches(query, keys)
        if fuzzy:
            distance = fuzzy[0][1]
            return MatchType.FUZZY, max(FUZZY_FLOOR, FUZZY_BASE - FUZZY_STEP * distance)
        return None

    def _recent_score(self, rank: int) -> float:
        window = self.settings.recent_window
        if window <= 1:
            return RECENT_NEWEST
        return RECENT_NEWEST - (RECENT_NEWEST - RECENT_OLDEST) * rank / (window - 1)

    def _compute(self, query: str) -> tuple[SuggestionItem, ...]:
        snapshot = self._snapshot()
        scored: list[tuple[tuple[object, ...], SuggestionItem]] = []

        for command in self.registry.list():
            name = command.name.lower()
            usage = snapshot.usage.get(name, _Usage())
            contextual = (
                snapshot.context_category is not None
                and command.category == snapshot.context_category
            )

            match = self._text_match(query, command) if query else None
            if match is not None:
                match_type, base = match
            elif name in snapshot.recent_ranks:
                match_type, base = MatchType.RECENT, self._recent_score(snapshot.recent_ranks[name])
            elif name in snapshot.popular:
                match_type, base = MatchType.POPULAR, POPULAR_SCORE
            elif contextual:
                match_type, base = MatchType.CONTEXTUAL, 0
            else:
                continue

            if contextual and match_type.weight < MatchType.CONTEXTUAL.weight:
                match_type = MatchType.CONTEXTUAL

            score = base + (CONTEXTUAL_BONUS if contextual else 0)
            if self.settings.enable_learning:
                score += min(FREQUENCY_CAP, usage.frequency * FREQUENCY_STEP)
            score = int(round(min(100, max(0, score))))

            item = SuggestionItem(
                command=command.name,
                match_type=match_type,
                score=score,
                category=command.category,
                frequency=usage.frequency,
                last_used_at=usage.last_used_at,
                description=command.description,
                usage=command.usage,
            )
            last_used = usage.last_used_at.timestamp() if usage.last_used_at else float("-inf")
            sort_key = (-score, -match_type.weight, -usage.frequency, -last_used, name)
            scored.append((sort_key, item))

        scored.sort(key=lambda pair: pair[0])
        items = tuple(item for _key, item in scored[: self.settings.max_suggestions])
        logger.debug("Computed suggestions", query=query, count=len(items))
        return items
