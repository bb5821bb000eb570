"""Suggestion result types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MatchType(str, Enum):
    """Strategy that produced a suggestion, strongest first."""

    EXACT = "exact"
    PREFIX = "prefix"
    FUZZY = "fuzzy"
    CONTEXTUAL = "contextual"
    RECENT = "recent"
    POPULAR = "popular"

    @property
    def weight(self) -> int:
        return _WEIGHTS[self]


_WEIGHTS: dict[MatchType, int] = {
    MatchType.EXACT: 6,
    MatchType.PREFIX: 5,
    MatchType.FUZZY: 4,
    MatchType.CONTEXTUAL: 3,
    MatchType.RECENT: 2,
    MatchType.POPULAR: 1,
}


@dataclass(frozen=True, slots=True)
class SuggestionItem:
    """One ranked completion candidate for the current input."""

    command: str
    match_type: MatchType
    score: int
    category: str
    frequency: int = 0
    last_used_at: datetime | None = None
    description: str = ""
    usage: str | None = None


@dataclass(frozen=True, slots=True)
class CacheInfo:
    hits: int
    misses: int
    size: int
