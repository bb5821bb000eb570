from __future__ import annotations

import pytest

from termshell.commands.matcher import EditDistanceMatcher, correction_threshold, levenshtein


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("theme", "theme", 0),
        ("thm", "th", 1),
        ("thm", "theme", 2),
    ],
)
def test_levenshtein(a: str, b: str, expected: int) -> None:
    assert levenshtein(a, b) == expected
    assert levenshtein(b, a) == expected


def test_levenshtein_stops_at_bound() -> None:
    assert levenshtein("abcdef", "uvwxyz", 2) == 3
    assert levenshtein("a", "abcdef", 1) == 2
    assert levenshtein("thm", "th", 1) == 1


@pytest.mark.parametrize(
    ("query", "expected"),
    [("", 1), ("th", 1), ("thm", 1), ("themes", 2), ("a" * 20, 3)],
)
def test_correction_threshold(query: str, expected: int) -> None:
    assert correction_threshold(query) == expected


def test_best_match_prefers_smallest_distance() -> None:
    matcher = EditDistanceMatcher()

    assert matcher.best_match("thm", ["help", "theme", "th", "clear"]) == "th"
    assert matcher.matches("thm", ["help", "theme", "th", "clear"]) == [("th", 1)]


def test_best_match_is_case_insensitive() -> None:
    assert EditDistanceMatcher().best_match("THM", ["Th"]) == "th"


def test_best_match_returns_none_outside_threshold() -> None:
    assert EditDistanceMatcher().best_match("zzzz", ["help", "clear"]) is None
    assert EditDistanceMatcher().best_match("", ["help"]) is None


def test_ties_break_by_frequency_then_name() -> None:
    matcher = EditDistanceMatcher()

    assert matcher.best_match("cab", ["cat", "car"]) == "car"
    assert matcher.best_match("cab", ["cat", "car"], {"cat": 5}) == "cat"
    assert matcher.best_match("cab", ["cat", "car"], lambda name: 2 if name == "cat" else 1) == "cat"


def test_matches_lists_every_candidate_sorted() -> None:
    found = EditDistanceMatcher().matches("cab", ["cat", "car", "cab", "dog"])

    assert found == [("cab", 0), ("car", 1), ("cat", 1)]
