"""Relevance ranking for free-text search results.

RAWG's own search order is noisy (popular games with a loosely matching
description often outrank exact title matches), so results are re-ranked:

1. Exact name match: 1000
2. Name starts with the query: 500
3. Name contains the query: 100
4. Otherwise: 10 per query word found in the name
5. Plus 2 x rating and metacritic / 10 (missing or non-finite counts as 0)

Matching is case-insensitive on the trimmed query. Ties keep RAWG's order.
The score is used for sorting only and never returned to clients.
"""

import math
from typing import Any

EXACT_MATCH_SCORE = 1000
PREFIX_MATCH_SCORE = 500
SUBSTRING_MATCH_SCORE = 100
WORD_MATCH_SCORE = 10
RATING_WEIGHT = 2
METACRITIC_DIVISOR = 10


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    # nan and inf count as missing
    return number if math.isfinite(number) else 0.0


def score_candidate(query: str, item: dict[str, Any]) -> float:
    """Score one search result against the query."""
    normalized_query = query.strip().lower()
    name = str(item.get("name") or "").lower()

    if name == normalized_query:
        score: float = EXACT_MATCH_SCORE
    elif name.startswith(normalized_query):
        score = PREFIX_MATCH_SCORE
    elif normalized_query in name:
        score = SUBSTRING_MATCH_SCORE
    else:
        words = normalized_query.split()
        score = WORD_MATCH_SCORE * sum(1 for word in words if word in name)

    score += RATING_WEIGHT * _number(item.get("rating"))
    score += _number(item.get("metacritic")) / METACRITIC_DIVISOR
    return score


def rank_by_relevance(query: str, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return items sorted by descending relevance (stable on ties)."""
    scored = [(score_candidate(query, item), item) for item in items]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in scored]
