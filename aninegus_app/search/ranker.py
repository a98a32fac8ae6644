"""Relevance ranking for canonical results."""

from typing import Iterable, List, Tuple

from ..models import CanonicalResult


def relevance_key(result: CanonicalResult, query: str) -> Tuple[int, int, int, int]:
    """
    Sort key, smaller sorts first:
      exact title match, then title prefix, then substring, then popularity.
    """
    title = result.title.lower()
    return (
        0 if title == query else 1,
        0 if title.startswith(query) else 1,
        0 if query in title else 1,
        -result.popularity,
    )


def rank(items: Iterable[CanonicalResult], query: str) -> List[CanonicalResult]:
    """
    Order results by relevance to `query`, then by descending popularity.

    The sort is stable, so items tied on every key keep their input order.
    Re-ranking a ranked list with the same query returns the same order.
    """
    normalized = query.strip().lower()
    return sorted(items, key=lambda result: relevance_key(result, normalized))
