"""Defensive decoding of persisted search data.

Persisted blobs come from outside the engine and may be corrupt, stale or
hand-edited. Every decoder accepts any parsed-JSON value and never raises:
- Entries that are not objects, or lack a non-blank string id, are dropped
- Later entries with an already-seen id are dropped
- Mistyped fields fall back to safe defaults
- Unknown keys are ignored
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from .models import (
    ANSWER_MODES,
    SOURCE_MODES,
    SPACE_SOURCE_POLICIES,
    TASK_CADENCES,
    Citation,
    Collection,
    LibraryFile,
    Space,
    Task,
    Thread,
)
from .selection import RECENT_QUERY_LIMIT
from .timestamps import EPOCH_ISO, normalize_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Raw JSON loading
# ---------------------------------------------------------------------------


def load_stored_json(raw: str | bytes | None, fallback: Any) -> Any:
    """Parse a persisted JSON blob.

    Args:
        raw: The stored text (None or empty when nothing is stored).
        fallback: Value returned when there is nothing to parse.

    Returns:
        The parsed value, or ``fallback`` if the blob is missing or corrupt.
    """
    if not raw:
        return fallback
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Stored JSON is corrupt, using fallback: %s", exc)
        return fallback


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------


def _as_record(value: Any) -> dict | None:
    return value if isinstance(value, dict) else None


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _as_optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _as_bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _as_int(value: Any, default: int = 0, minimum: int | None = None) -> int:
    # bool is an int subclass; treat it as mistyped
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and value != value:
        return default
    try:
        number = int(value)
    except (OverflowError, ValueError):
        return default
    if minimum is not None and number < minimum:
        return default
    return number


def _as_optional_int(value: Any, low: int, high: int) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if low <= value <= high else None


def _as_choice(value: Any, choices: tuple[str, ...], default: str) -> str:
    return value if isinstance(value, str) and value in choices else default


def _as_name(value: Any, kind: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return f"Untitled {kind}"


def _as_string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: set[str] = set()
    result: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        trimmed = item.strip()
        if not trimmed or trimmed in seen:
            continue
        seen.add(trimmed)
        result.append(trimmed)
    return result


def _record_identity(record: dict) -> str | None:
    value = record.get("id")
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _decode_list(
    raw: Any, kind: str, decode_one: Callable[[dict, str], T]
) -> list[T]:
    """Decode a list of records, dropping entries without a usable id."""
    if not isinstance(raw, list):
        if raw is not None:
            logger.debug("Expected a list of %s records, got %s", kind, type(raw).__name__)
        return []

    seen: set[str] = set()
    decoded: list[T] = []
    for index, candidate in enumerate(raw):
        record = _as_record(candidate)
        if record is None:
            logger.debug("Dropping %s entry %d: not an object", kind, index)
            continue
        record_id = _record_identity(record)
        if record_id is None:
            logger.debug("Dropping %s entry %d: missing id", kind, index)
            continue
        if record_id in seen:
            logger.debug("Dropping %s entry %d: duplicate id %s", kind, index, record_id)
            continue
        seen.add(record_id)
        decoded.append(decode_one(record, record_id))
    return decoded


# ---------------------------------------------------------------------------
# Entity decoders
# ---------------------------------------------------------------------------


def _decode_citations(value: Any) -> list[Citation]:
    if not isinstance(value, list):
        return []
    citations: list[Citation] = []
    for item in value:
        record = _as_record(item)
        if record is None:
            continue
        url = _as_str(record.get("url")).strip()
        if not url:
            continue
        title = _as_str(record.get("title")).strip() or url
        citations.append(Citation(title=title, url=url))
    return citations


def _decode_thread(record: dict, record_id: str) -> Thread:
    question = record.get("question")
    return Thread(
        id=record_id,
        question=question if isinstance(question, str) else "Untitled thread",
        answer=_as_str(record.get("answer")),
        mode=_as_choice(record.get("mode"), ANSWER_MODES, "quick"),
        sources=_as_choice(record.get("sources"), SOURCE_MODES, "none"),
        created_at=normalize_iso(record.get("createdAt"), EPOCH_ISO),
        citations=_decode_citations(record.get("citations")),
        title=_as_optional_str(record.get("title")),
        tags=_as_string_list(record.get("tags")),
        space_id=_as_optional_str(record.get("spaceId")),
        space_name=_as_optional_str(record.get("spaceName")),
        pinned=_as_bool(record.get("pinned")),
        favorite=_as_bool(record.get("favorite")),
        archived=_as_bool(record.get("archived")),
        provider=_as_str(record.get("provider")),
        latency_ms=_as_int(record.get("latencyMs"), minimum=0),
    )


def _decode_space(record: dict, record_id: str) -> Space:
    return Space(
        id=record_id,
        name=_as_name(record.get("name"), "space"),
        instructions=_as_str(record.get("instructions")),
        preferred_model=_as_optional_str(record.get("preferredModel")),
        source_policy=_as_choice(
            record.get("sourcePolicy"), SPACE_SOURCE_POLICIES, "flex"
        ),
        created_at=normalize_iso(record.get("createdAt"), EPOCH_ISO),
    )


def _decode_collection(record: dict, record_id: str) -> Collection:
    return Collection(
        id=record_id,
        name=_as_name(record.get("name"), "collection"),
        created_at=normalize_iso(record.get("createdAt"), EPOCH_ISO),
    )


def _decode_file(record: dict, record_id: str) -> LibraryFile:
    return LibraryFile(
        id=record_id,
        name=_as_name(record.get("name"), "file"),
        size=_as_int(record.get("size"), minimum=0),
        type=_as_str(record.get("type")),
        text=_as_str(record.get("text")),
        added_at=normalize_iso(record.get("addedAt"), EPOCH_ISO),
    )


def _as_clock_time(value: Any) -> str:
    if isinstance(value, str):
        hours, sep, minutes = value.strip().partition(":")
        if (
            sep
            and hours.isdigit()
            and minutes.isdigit()
            and len(minutes) == 2
            and 0 <= int(hours) <= 23
            and 0 <= int(minutes) <= 59
        ):
            return f"{int(hours):02d}:{minutes}"
    return "09:00"


def _decode_task(record: dict, record_id: str) -> Task:
    created_at = normalize_iso(record.get("createdAt"), EPOCH_ISO)
    last_run = record.get("lastRun")
    return Task(
        id=record_id,
        name=_as_name(record.get("name"), "task"),
        prompt=_as_str(record.get("prompt")),
        cadence=_as_choice(record.get("cadence"), TASK_CADENCES, "daily"),
        time=_as_clock_time(record.get("time")),
        mode=_as_choice(record.get("mode"), ANSWER_MODES, "quick"),
        sources=_as_choice(record.get("sources"), SOURCE_MODES, "none"),
        created_at=created_at,
        next_run=normalize_iso(record.get("nextRun"), created_at),
        last_run=normalize_iso(last_run, EPOCH_ISO) if last_run is not None else None,
        last_thread_id=_as_optional_str(record.get("lastThreadId")),
        day_of_week=_as_optional_int(record.get("dayOfWeek"), 0, 7),
        day_of_month=_as_optional_int(record.get("dayOfMonth"), 1, 31),
        month_of_year=_as_optional_int(record.get("monthOfYear"), 1, 12),
        space_id=_as_optional_str(record.get("spaceId")),
        space_name=_as_optional_str(record.get("spaceName")),
    )


def decode_threads(raw: Any) -> list[Thread]:
    """Decode persisted threads."""
    return _decode_list(raw, "thread", _decode_thread)


def decode_spaces(raw: Any) -> list[Space]:
    """Decode persisted spaces."""
    return _decode_list(raw, "space", _decode_space)


def decode_collections(raw: Any) -> list[Collection]:
    """Decode persisted collections."""
    return _decode_list(raw, "collection", _decode_collection)


def decode_files(raw: Any) -> list[LibraryFile]:
    """Decode persisted library files."""
    return _decode_list(raw, "file", _decode_file)


def decode_tasks(raw: Any) -> list[Task]:
    """Decode persisted scheduled tasks."""
    return _decode_list(raw, "task", _decode_task)


# ---------------------------------------------------------------------------
# Keyed maps and id lists
# ---------------------------------------------------------------------------


def decode_notes(raw: Any) -> dict[str, str]:
    """Decode the thread id → note map, dropping blank notes."""
    record = _as_record(raw)
    if record is None:
        return {}
    notes: dict[str, str] = {}
    for key, value in record.items():
        if not isinstance(key, str) or not key.strip():
            continue
        if isinstance(value, str) and value.strip():
            notes[key.strip()] = value
    return notes


def decode_space_tags(raw: Any) -> dict[str, list[str]]:
    """Decode the space id → tags map."""
    record = _as_record(raw)
    if record is None:
        return {}
    tags: dict[str, list[str]] = {}
    for key, value in record.items():
        if not isinstance(key, str) or not key.strip():
            continue
        tags[key.strip()] = _as_string_list(value)
    return tags


def decode_recent_queries(raw: Any, limit: int = RECENT_QUERY_LIMIT) -> list[str]:
    """Decode recent queries: trimmed, de-duplicated, most recent first."""
    return _as_string_list(raw)[:limit]


def decode_selected_thread_ids(raw: Any) -> list[str]:
    """Decode a list of selected thread ids: trimmed and de-duplicated."""
    return _as_string_list(raw)


def decode_verbatim_flag(raw: Any) -> bool:
    """Decode the stored phrase-only toggle."""
    return _as_bool(raw)
