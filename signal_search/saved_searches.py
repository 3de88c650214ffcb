"""Saved unified searches.

Saved searches are stored in a versioned envelope
``{"version": 2, "searches": [...]}``; a bare list is read as the legacy
format. All list helpers return new lists, or the input list itself when
nothing changed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any

from .filters import TIMELINE_WINDOWS
from .ranking import SORT_MODES
from .timestamps import normalize_iso, parse_timestamp_ms

logger = logging.getLogger(__name__)

SAVED_SEARCH_STORAGE_VERSION = 2

SEARCH_FILTERS = ("all", "threads", "spaces", "collections", "files", "tasks")
RESULT_LIMITS = (10, 20, 50)
DEFAULT_RESULT_LIMIT = 20

_NAME_MAX_LENGTH = 60


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class SavedSearch:
    """A named, re-runnable unified search."""

    id: str
    name: str
    query: str = ""
    filter: str = "all"
    sort_by: str = "relevance"
    timeline_window: str = "all"
    result_limit: int = DEFAULT_RESULT_LIMIT
    verbatim: bool = False
    pinned: bool = False
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        """Serialize to the stored JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "query": self.query,
            "filter": self.filter,
            "sortBy": self.sort_by,
            "timelineWindow": self.timeline_window,
            "resultLimit": self.result_limit,
            "verbatim": self.verbatim,
            "pinned": self.pinned,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_filter(value: Any) -> str:
    return value if isinstance(value, str) and value in SEARCH_FILTERS else "all"


def normalize_sort(value: Any) -> str:
    return value if isinstance(value, str) and value in SORT_MODES else "relevance"


def normalize_timeline(value: Any) -> str:
    return value if isinstance(value, str) and value in TIMELINE_WINDOWS else "all"


def normalize_result_limit(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_RESULT_LIMIT
    return value if value in RESULT_LIMITS else DEFAULT_RESULT_LIMIT


def normalize_saved_search_name(raw: str) -> str:
    """Trim and collapse whitespace in a saved search name."""
    return " ".join(raw.split())


def default_saved_search_name(
    query: str,
    filter: str = "all",
    sort_by: str = "relevance",
    timeline_window: str = "all",
    verbatim: bool = False,
) -> str:
    """Derive a name from the query, or from the non-default settings."""
    query = query.strip()
    if query:
        if len(query) > _NAME_MAX_LENGTH:
            return f"{query[:57]}..."
        return query

    parts: list[str] = []
    if filter != "all":
        parts.append(filter)
    if timeline_window != "all":
        parts.append(timeline_window)
    if sort_by != "relevance":
        parts.append(sort_by)
    if verbatim:
        parts.append("verbatim")
    return " · ".join(parts) if parts else "Saved search"


def _decode_saved_search(raw: Any, now_iso: str) -> SavedSearch | None:
    if not isinstance(raw, dict):
        return None
    search_id = raw.get("id")
    search_id = search_id.strip() if isinstance(search_id, str) else ""
    if not search_id:
        return None

    query = raw.get("query")
    query = query.strip() if isinstance(query, str) else ""
    filter_value = normalize_filter(raw.get("filter"))
    sort_by = normalize_sort(raw.get("sortBy"))
    timeline_window = normalize_timeline(raw.get("timelineWindow"))
    verbatim = bool(raw.get("verbatim"))

    name = raw.get("name")
    if isinstance(name, str) and name.strip():
        name = normalize_saved_search_name(name)
    else:
        name = default_saved_search_name(
            query, filter_value, sort_by, timeline_window, verbatim
        )

    created_at = normalize_iso(
        raw.get("createdAt"), normalize_iso(raw.get("updatedAt"), now_iso)
    )
    return SavedSearch(
        id=search_id,
        name=name,
        query=query,
        filter=filter_value,
        sort_by=sort_by,
        timeline_window=timeline_window,
        result_limit=normalize_result_limit(raw.get("resultLimit")),
        verbatim=verbatim,
        pinned=bool(raw.get("pinned")),
        created_at=created_at,
        updated_at=normalize_iso(raw.get("updatedAt"), created_at),
    )


# ---------------------------------------------------------------------------
# Storage envelope
# ---------------------------------------------------------------------------


def decode_saved_search_storage(raw: Any, now_iso: str) -> list[SavedSearch]:
    """Decode stored saved searches.

    Args:
        raw: A legacy list or a versioned envelope (any JSON value).
        now_iso: Timestamp used when an entry has no valid dates.

    Returns:
        Decoded searches; duplicate ids keep the first occurrence.
    """
    if isinstance(raw, list):
        candidates = raw
    elif isinstance(raw, dict):
        if raw.get("version") != SAVED_SEARCH_STORAGE_VERSION:
            logger.debug("Ignoring saved searches with version %r", raw.get("version"))
            return []
        searches = raw.get("searches")
        candidates = searches if isinstance(searches, list) else []
    else:
        return []

    seen: set[str] = set()
    decoded: list[SavedSearch] = []
    for candidate in candidates:
        saved = _decode_saved_search(candidate, now_iso)
        if saved is None or saved.id in seen:
            continue
        seen.add(saved.id)
        decoded.append(saved)
    return decoded


def encode_saved_search_storage(searches: list[SavedSearch]) -> dict:
    """Wrap saved searches in the current storage envelope."""
    return {
        "version": SAVED_SEARCH_STORAGE_VERSION,
        "searches": [s.to_dict() for s in searches],
    }


# ---------------------------------------------------------------------------
# Duplicate detection and ordering
# ---------------------------------------------------------------------------


def fingerprint_saved_search(search: SavedSearch) -> str:
    """Identity of the search settings, ignoring name, pin and dates."""
    return json.dumps(
        {
            "query": search.query.strip(),
            "filter": search.filter,
            "sortBy": search.sort_by,
            "timelineWindow": search.timeline_window,
            "resultLimit": search.result_limit,
            "verbatim": bool(search.verbatim),
        },
        sort_keys=True,
    )


def find_duplicate_saved_search(
    searches: list[SavedSearch], candidate: SavedSearch
) -> SavedSearch | None:
    needle = fingerprint_saved_search(candidate)
    for search in searches:
        if fingerprint_saved_search(search) == needle:
            return search
    return None


def sort_saved_searches(searches: list[SavedSearch]) -> list[SavedSearch]:
    """Order pinned first, then most recently updated, then by name."""

    def key(search: SavedSearch) -> tuple:
        updated = parse_timestamp_ms(search.updated_at)
        # Unparseable dates sort after valid ones within the same pin group
        return (
            not search.pinned,
            updated is None,
            -(updated or 0),
            search.name.casefold(),
        )

    return sorted(searches, key=key)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def _index_of(searches: list[SavedSearch], search_id: str) -> int:
    for index, search in enumerate(searches):
        if search.id == search_id:
            return index
    return -1


def upsert_saved_search(
    searches: list[SavedSearch], saved: SavedSearch
) -> list[SavedSearch]:
    """Replace the search with the same id, or prepend a new one."""
    index = _index_of(searches, saved.id)
    if index == -1:
        return [saved, *searches]
    updated = list(searches)
    updated[index] = saved
    return updated


def rename_saved_search(
    searches: list[SavedSearch], search_id: str, new_name: str, now_iso: str
) -> list[SavedSearch]:
    normalized = normalize_saved_search_name(new_name)
    if not normalized:
        return searches
    index = _index_of(searches, search_id)
    if index == -1 or searches[index].name == normalized:
        return searches
    updated = list(searches)
    updated[index] = replace(searches[index], name=normalized, updated_at=now_iso)
    return updated


def toggle_pin_saved_search(
    searches: list[SavedSearch], search_id: str, now_iso: str
) -> list[SavedSearch]:
    index = _index_of(searches, search_id)
    if index == -1:
        return searches
    current = searches[index]
    updated = list(searches)
    updated[index] = replace(current, pinned=not current.pinned, updated_at=now_iso)
    return updated


def delete_saved_search(
    searches: list[SavedSearch], search_id: str
) -> list[SavedSearch]:
    remaining = [s for s in searches if s.id != search_id]
    return searches if len(remaining) == len(searches) else remaining
