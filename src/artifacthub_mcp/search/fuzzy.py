"""Approximate string matching over record fields."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from rapidfuzz import fuzz

DEFAULT_THRESHOLD = 0.4

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class FuzzyHit(Generic[T]):
    """One matched record; score 0.0 is a perfect match."""

    item: T
    score: float
    key: str
    index: int


def field_text(value: object) -> str | None:
    """Stringify a searchable field value; None is not searchable."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def score_text(
    query: str,
    text: str,
    threshold: float = DEFAULT_THRESHOLD,
    min_match_chars: int = 1,
) -> float | None:
    """Score one text against a query, or None when it does not match.

    The query is aligned against its best window in the text. A text shorter
    than the query is compared whole, so short fields do not match every query
    that happens to contain them. The window must also cover the share of the
    query the threshold allows, so a partial overlap at the edge of the text
    does not count as a match.
    """
    pattern = query.lower()
    candidate = text.lower()
    if not pattern or not candidate:
        return None
    if len(candidate) < len(pattern):
        similarity = fuzz.ratio(pattern, candidate)
        matched_chars = len(candidate)
    else:
        alignment = fuzz.partial_ratio_alignment(pattern, candidate)
        if alignment is None:
            return None
        similarity = alignment.score
        matched_chars = alignment.dest_end - alignment.dest_start
        if matched_chars < _min_window(len(pattern), threshold):
            return None
    score = round(1.0 - similarity / 100.0, 6)
    if score > threshold or matched_chars < min_match_chars:
        return None
    return score


def _min_window(pattern_length: int, threshold: float) -> int:
    return math.ceil(round(pattern_length * (1.0 - threshold), 6))


def fuzzy_search(
    records: Sequence[T],
    keys: Sequence[str],
    query: str,
    threshold: float = DEFAULT_THRESHOLD,
    min_match_chars: int = 1,
) -> list[FuzzyHit[T]]:
    """Rank records by their best matching key; ties keep input order."""
    if not query or not records:
        return []

    hits: list[FuzzyHit[T]] = []
    for index, record in enumerate(records):
        best: tuple[float, str] | None = None
        for key in keys:
            text = field_text(getattr(record, key, None))
            if text is None:
                continue
            score = score_text(query, text, threshold, min_match_chars)
            if score is None:
                continue
            if best is None or score < best[0]:
                best = (score, key)
        if best is not None:
            hits.append(FuzzyHit(item=record, score=best[0], key=best[1], index=index))

    hits.sort(key=lambda hit: (hit.score, hit.index))
    return hits
