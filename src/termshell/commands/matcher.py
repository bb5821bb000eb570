"""Typo-tolerant matching of command names using Levenshtein distance."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Final

MAX_CORRECTION_DISTANCE: Final[int] = 3

FrequencyLookup = Mapping[str, int] | Callable[[str], int]


def levenshtein(a: str, b: str, max_distance: int | None = None) -> int:
    """Return the edit distance between ``a`` and ``b``.

    With ``max_distance`` set, the computation stops once the distance is
    known to exceed the bound and ``max_distance + 1`` is returned.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if max_distance is not None and len(a) - len(b) > max_distance:
        return max_distance + 1
    if not b:
        return len(a)

    previous_row = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current_row = [i]
        for j, char_b in enumerate(b, start=1):
            insertions = previous_row[j] + 1
            deletions = current_row[j - 1] + 1
            substitutions = previous_row[j - 1] + (char_a != char_b)
            current_row.append(min(insertions, deletions, substitutions))
        if max_distance is not None and min(current_row) > max_distance:
            return max_distance + 1
        previous_row = current_row

    distance = previous_row[-1]
    if max_distance is not None and distance > max_distance:
        return max_distance + 1
    return distance


def correction_threshold(query: str) -> int:
    """Maximum accepted distance for a query: one edit per three characters, 1..3."""
    return min(MAX_CORRECTION_DISTANCE, max(1, len(query) // 3))


def _frequency_getter(frequency: FrequencyLookup | None) -> Callable[[str], int]:
    if frequency is None:
        return lambda _candidate: 0
    if isinstance(frequency, Mapping):
        return lambda candidate: int(frequency.get(candidate, 0))
    return frequency


class EditDistanceMatcher:
    """Finds registered names within a query-length dependent edit distance."""

    def matches(self, query: str, candidates: Iterable[str]) -> list[tuple[str, int]]:
        """Return every candidate within threshold as ``(candidate, distance)``.

        Results are ordered by distance, then alphabetically.
        """
        normalized = query.strip().lower()
        if not normalized:
            return []

        threshold = correction_threshold(normalized)
        found: dict[str, int] = {}
        for candidate in candidates:
            lowered = candidate.lower()
            if lowered in found:
                continue
            distance = levenshtein(normalized, lowered, threshold)
            if distance <= threshold:
                found[lowered] = distance

        return sorted(found.items(), key=lambda item: (item[1], item[0]))

    def best_match(
        self,
        query: str,
        candidates: Iterable[str],
        frequency: FrequencyLookup | None = None,
    ) -> str | None:
        """Return the closest candidate within threshold, or ``None``.

        Equal distances prefer the candidate with the higher usage frequency,
        then the alphabetically first one.
        """
        found = self.matches(query, candidates)
        if not found:
            return None

        lookup = _frequency_getter(frequency)
        best_candidate, _distance = min(
            found,
            key=lambda item: (item[1], -lookup(item[0]), item[0]),
        )
        return best_candidate
