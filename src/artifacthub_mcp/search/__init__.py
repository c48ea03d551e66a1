"""Ephemeral fuzzy search over values properties and template lines."""

from .fuzzy import DEFAULT_THRESHOLD, FuzzyHit, field_text, fuzzy_search, score_text
from .lines import (
    DEFAULT_CONTEXT_LINES,
    ContextLine,
    LineIndex,
    LineRecord,
    context_lines,
    index_lines,
)

__all__ = [
    "ContextLine",
    "DEFAULT_CONTEXT_LINES",
    "DEFAULT_THRESHOLD",
    "FuzzyHit",
    "LineIndex",
    "LineRecord",
    "context_lines",
    "field_text",
    "fuzzy_search",
    "index_lines",
    "score_text",
]
