"""Unified search over threads, spaces, collections, files and tasks.

This module provides:
- SearchDataset: The decoded records a search runs over
- SearchEngine: Parses a query, filters each entity kind, ranks and limits
- Result types: SearchHit, SearchResults, UnifiedSearchResults
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import SearchConfig
from .decoders import (
    decode_collections,
    decode_files,
    decode_notes,
    decode_recent_queries,
    decode_space_tags,
    decode_spaces,
    decode_tasks,
    decode_threads,
    decode_verbatim_flag,
    load_stored_json,
)
from .filters import (
    SearchEntry,
    ThreadEntry,
    build_collection_entry,
    build_file_entry,
    build_space_entries,
    build_task_entry,
    build_thread_entries,
    filter_collection_entries,
    filter_file_entries,
    filter_space_entries,
    filter_task_entries,
    filter_thread_entries,
)
from .models import ENTITY_KINDS, Collection, LibraryFile, Space, Task, Thread
from .query import ParsedQuery, parse_unified_search_query
from .ranking import top_k_search_results
from .saved_searches import SavedSearch, decode_saved_search_storage
from .scoring import compute_relevance_score_from_lowered, compute_thread_match_badges
from .storage_keys import (
    SIGNAL_COLLECTIONS_KEY,
    SIGNAL_FILES_KEY,
    SIGNAL_HISTORY_KEY,
    SIGNAL_NOTES_KEY,
    SIGNAL_SPACE_TAGS_KEY,
    SIGNAL_SPACES_KEY,
    SIGNAL_TASKS_KEY,
    SIGNAL_UNIFIED_RECENT_SEARCH_KEY,
    SIGNAL_UNIFIED_SAVED_SEARCH_KEY,
    SIGNAL_UNIFIED_SAVED_SEARCH_LEGACY_KEYS,
    SIGNAL_UNIFIED_VERBATIM_KEY,
    UNIFIED_SEARCH_STORAGE_KEYS,
)
from .timestamps import now_ms as current_ms
from .timestamps import to_iso_string

logger = logging.getLogger(__name__)

# UI filter names → entity kind
FILTER_TO_KIND: dict[str, str | None] = {
    "all": None,
    "threads": "thread",
    "spaces": "space",
    "collections": "collection",
    "files": "file",
    "tasks": "task",
}


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------


def _stored_value(blobs: Mapping[str, Any], key: str) -> Any:
    """Read a storage value that may still be JSON text."""
    value = blobs.get(key)
    if isinstance(value, (str, bytes)):
        return load_stored_json(value, None)
    return value


@dataclass
class SearchDataset:
    """Records available to a search. Owned by the caller."""

    threads: list[Thread] = field(default_factory=list)
    spaces: list[Space] = field(default_factory=list)
    collections: list[Collection] = field(default_factory=list)
    files: list[LibraryFile] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    notes: dict[str, str] = field(default_factory=dict)
    space_tags: dict[str, list[str]] = field(default_factory=dict)
    recent_queries: list[str] = field(default_factory=list)
    saved_searches: list[SavedSearch] = field(default_factory=list)
    verbatim: bool = False

    @classmethod
    def from_storage(
        cls, blobs: Mapping[str, Any], now_iso: str | None = None
    ) -> SearchDataset:
        """Decode a storage export keyed by storage identifiers.

        Values may be parsed JSON or JSON text. Missing or corrupt values
        decode to empty collections.

        Args:
            blobs: Mapping of storage key → stored value.
            now_iso: Fallback timestamp for saved searches without dates.

        Returns:
            Decoded dataset.
        """
        if now_iso is None:
            now_iso = to_iso_string(current_ms())

        unknown = sorted(set(blobs) - set(UNIFIED_SEARCH_STORAGE_KEYS))
        if unknown:
            logger.debug("Ignoring storage keys: %s", ", ".join(map(str, unknown)))

        saved_raw = _stored_value(blobs, SIGNAL_UNIFIED_SAVED_SEARCH_KEY)
        if saved_raw is None:
            for legacy_key in SIGNAL_UNIFIED_SAVED_SEARCH_LEGACY_KEYS:
                saved_raw = _stored_value(blobs, legacy_key)
                if saved_raw is not None:
                    break

        dataset = cls(
            threads=decode_threads(_stored_value(blobs, SIGNAL_HISTORY_KEY)),
            spaces=decode_spaces(_stored_value(blobs, SIGNAL_SPACES_KEY)),
            collections=decode_collections(_stored_value(blobs, SIGNAL_COLLECTIONS_KEY)),
            files=decode_files(_stored_value(blobs, SIGNAL_FILES_KEY)),
            tasks=decode_tasks(_stored_value(blobs, SIGNAL_TASKS_KEY)),
            notes=decode_notes(_stored_value(blobs, SIGNAL_NOTES_KEY)),
            space_tags=decode_space_tags(_stored_value(blobs, SIGNAL_SPACE_TAGS_KEY)),
            recent_queries=decode_recent_queries(
                _stored_value(blobs, SIGNAL_UNIFIED_RECENT_SEARCH_KEY)
            ),
            saved_searches=decode_saved_search_storage(saved_raw, now_iso),
            verbatim=decode_verbatim_flag(_stored_value(blobs, SIGNAL_UNIFIED_VERBATIM_KEY)),
        )
        logger.debug(
            "Decoded dataset: %d threads, %d spaces, %d collections, %d files, %d tasks",
            len(dataset.threads),
            len(dataset.spaces),
            len(dataset.collections),
            len(dataset.files),
            len(dataset.tasks),
        )
        return dataset


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class SearchHit:
    """One ranked result."""

    kind: str
    record: Any
    score: float
    created_at: str
    badges: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.record.id


@dataclass
class SearchResults:
    """Ranked results for one entity kind."""

    kind: str
    total: int
    hits: list[SearchHit] = field(default_factory=list)


@dataclass
class UnifiedSearchResults:
    """Results of a unified search across every entity kind."""

    parsed: ParsedQuery
    sort_by: str
    timeline_window: str
    limit: int
    scope: str | None = None
    groups: dict[str, SearchResults] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(group.total for group in self.groups.values())

    def group(self, kind: str) -> SearchResults:
        return self.groups.get(kind) or SearchResults(kind=kind, total=0)

    def preview(self, kind: str, count: int) -> list[SearchHit]:
        """Return the first hits of one kind for an overview listing."""
        return self.group(kind).hits[: max(count, 0)]


# ---------------------------------------------------------------------------
# SearchEngine
# ---------------------------------------------------------------------------


class SearchEngine:
    """Runs unified searches over a SearchDataset.

    The engine holds only configuration; every search is computed from the
    dataset passed in.
    """

    def __init__(self, config: SearchConfig | None = None) -> None:
        """Initialize the search engine.

        Args:
            config: Default search settings.
        """
        self.config = config or SearchConfig()

    def parse_query(self, text: str, verbatim: bool | None = None) -> ParsedQuery:
        """Parse a query using the configured verbatim default."""
        return parse_unified_search_query(
            text, self.config.verbatim if verbatim is None else verbatim
        )

    def search(
        self,
        dataset: SearchDataset,
        raw_query: str,
        *,
        filter_type: str = "all",
        sort_by: str | None = None,
        timeline_window: str | None = None,
        limit: int | None = None,
        verbatim: bool | None = None,
        now_ms: int | None = None,
    ) -> UnifiedSearchResults:
        """Search every entity kind in the dataset.

        A ``type:`` operator in the query overrides ``filter_type``.

        Args:
            dataset: Records to search.
            raw_query: The query as typed.
            filter_type: 'all', 'threads', 'spaces', 'collections', 'files'
                or 'tasks'.
            sort_by: 'relevance', 'newest' or 'oldest'.
            timeline_window: 'all', '24h', '7d' or '30d'.
            limit: Maximum hits per kind.
            verbatim: Phrase-only default (dataset setting if None).
            now_ms: Current time in epoch milliseconds.

        Returns:
            UnifiedSearchResults with one group per entity kind.
        """
        sort_by = sort_by or self.config.default_sort
        timeline_window = timeline_window or self.config.default_timeline
        limit = self.config.result_limit if limit is None else limit
        now = current_ms() if now_ms is None else now_ms
        if verbatim is None:
            verbatim = dataset.verbatim or self.config.verbatim

        parsed = parse_unified_search_query(raw_query, verbatim)
        scope = parsed.operators.type or FILTER_TO_KIND.get(filter_type)

        results = UnifiedSearchResults(
            parsed=parsed,
            sort_by=sort_by,
            timeline_window=timeline_window,
            limit=limit,
            scope=scope,
        )

        def in_scope(kind: str) -> bool:
            return scope is None or scope == kind

        candidates: dict[str, list[Any]] = {kind: [] for kind in ENTITY_KINDS}
        if in_scope("thread"):
            candidates["thread"] = filter_thread_entries(
                build_thread_entries(dataset.threads, dataset.notes),
                parsed,
                timeline_window,
                now,
            )
        if in_scope("space"):
            candidates["space"] = filter_space_entries(
                build_space_entries(dataset.spaces, dataset.space_tags),
                parsed,
                timeline_window,
                now,
            )
        if in_scope("collection"):
            candidates["collection"] = filter_collection_entries(
                [build_collection_entry(c) for c in dataset.collections],
                parsed,
                timeline_window,
                now,
            )
        if in_scope("file"):
            candidates["file"] = filter_file_entries(
                [build_file_entry(f) for f in dataset.files],
                parsed,
                timeline_window,
                now,
            )
        if in_scope("task"):
            candidates["task"] = filter_task_entries(
                [build_task_entry(t) for t in dataset.tasks],
                parsed,
                timeline_window,
                now,
            )

        for kind in ENTITY_KINDS:
            results.groups[kind] = self._rank(
                kind, candidates[kind], parsed, sort_by, limit
            )

        logger.debug(
            "Search %r (scope=%s, sort=%s, window=%s): %d matches",
            raw_query,
            scope or "all",
            sort_by,
            timeline_window,
            results.total,
        )
        return results

    def _rank(
        self,
        kind: str,
        entries: Sequence[SearchEntry],
        parsed: ParsedQuery,
        sort_by: str,
        limit: int,
    ) -> SearchResults:
        """Score, sort and limit the filtered entries of one kind."""
        scores = {
            id(entry): compute_relevance_score_from_lowered(
                entry.relevance_fields, parsed.query
            )
            for entry in entries
        }

        def score_of(entry: SearchEntry) -> float:
            return scores[id(entry)]

        top = top_k_search_results(entries, sort_by, parsed.query, limit, score_of)

        hits = []
        for entry in top:
            badges = []
            if isinstance(entry, ThreadEntry):
                badges = compute_thread_match_badges(entry.match_inputs, parsed.query)
            hits.append(
                SearchHit(
                    kind=kind,
                    record=_record_of(entry),
                    score=scores[id(entry)],
                    created_at=entry.created_at,
                    badges=badges,
                )
            )
        return SearchResults(kind=kind, total=len(entries), hits=hits)


def _record_of(entry: SearchEntry) -> Any:
    for attr in ("thread", "space", "collection", "file", "task"):
        record = getattr(entry, attr, None)
        if record is not None:
            return record
    return None
