"""Sorting and top-K selection of search results.

Sort modes:
- newest: Descending timestamp
- oldest: Ascending timestamp
- relevance: Descending score, then descending timestamp (falls back to
  newest when the query is empty)

Ties always keep the input order. ``top_k_search_results`` returns exactly
the prefix ``sort_search_results`` would, without sorting everything.
"""

from __future__ import annotations

import heapq
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from .query import NormalizedQuery

T = TypeVar("T")

SORT_MODES = ("relevance", "newest", "oldest")


def _default_timestamp(item: Any) -> int:
    return item.timestamp


def _sort_key_factory(
    sort_by: str,
    query: NormalizedQuery,
    score_of: Callable[[T], float],
    timestamp_of: Callable[[T], int],
) -> Callable[[T], tuple]:
    """Build an ascending sort key; smaller keys come first."""
    if sort_by == "oldest":
        return lambda item: (timestamp_of(item),)
    if sort_by == "relevance" and query.normalized:
        return lambda item: (-score_of(item), -timestamp_of(item))
    # newest, and relevance without a query
    return lambda item: (-timestamp_of(item),)


def sort_search_results(
    items: Sequence[T],
    sort_by: str,
    query: NormalizedQuery,
    score_of: Callable[[T], float],
    timestamp_of: Callable[[T], int] = _default_timestamp,
) -> list[T]:
    """Sort results by relevance or recency.

    Args:
        items: Candidate results (not modified).
        sort_by: 'relevance', 'newest' or 'oldest'.
        query: The normalized query used for relevance.
        score_of: Returns the relevance score of an item.
        timestamp_of: Returns the epoch-ms timestamp of an item.

    Returns:
        New sorted list; equal items keep their input order.
    """
    key = _sort_key_factory(sort_by, query, score_of, timestamp_of)
    # Python's sort is stable, and each key is computed once per item
    return sorted(items, key=key)


def top_k_search_results(
    items: Sequence[T],
    sort_by: str,
    query: NormalizedQuery,
    limit: int,
    score_of: Callable[[T], float],
    timestamp_of: Callable[[T], int] = _default_timestamp,
) -> list[T]:
    """Return the first ``limit`` results of ``sort_search_results``.

    Uses a bounded heap when ``limit`` is smaller than the input. The input
    index is part of the heap key, which reproduces the stable tie order.

    Args:
        items: Candidate results (not modified).
        sort_by: 'relevance', 'newest' or 'oldest'.
        query: The normalized query used for relevance.
        limit: Maximum number of results.
        score_of: Returns the relevance score of an item.
        timestamp_of: Returns the epoch-ms timestamp of an item.

    Returns:
        At most ``limit`` items in sorted order.
    """
    if limit <= 0 or not items:
        return []
    if limit >= len(items):
        return sort_search_results(items, sort_by, query, score_of, timestamp_of)

    key = _sort_key_factory(sort_by, query, score_of, timestamp_of)
    decorated = ((key(item), index, item) for index, item in enumerate(items))
    best = heapq.nsmallest(limit, decorated, key=lambda row: (row[0], row[1]))
    return [item for _, _, item in best]
