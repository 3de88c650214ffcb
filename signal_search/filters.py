"""Per-entity filter predicates and the timeline window.

Each entity kind accepts only the operators that make sense for it. An
operator that does not apply to a kind (``has:note`` on a space, ``tag:`` on
a task, ``is:pinned`` on a file) rejects the record instead of being
ignored, so a mis-scoped query returns nothing for that kind.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .models import Collection, LibraryFile, Space, Task, Thread
from .query import ParsedQuery, SearchOperators
from .scoring import (
    BODY_WEIGHT,
    META_WEIGHT,
    NAME_WEIGHT,
    NOTE_WEIGHT,
    QUESTION_WEIGHT,
    SPACE_WEIGHT,
    TAG_WEIGHT,
    TITLE_WEIGHT,
    ThreadMatchInputs,
    WeightedField,
    WeightedLoweredField,
    citation_text,
    combine_lowered,
    lower_fields,
    matches_lowered_query,
)
from .timestamps import now_ms as current_ms
from .timestamps import parse_timestamp_ms

# ---------------------------------------------------------------------------
# Timeline window
# ---------------------------------------------------------------------------

TIMELINE_WINDOWS = ("all", "24h", "7d", "30d")

_HOUR_MS = 60 * 60 * 1000
WINDOW_TO_MS: dict[str, int] = {
    "24h": 24 * _HOUR_MS,
    "7d": 7 * 24 * _HOUR_MS,
    "30d": 30 * 24 * _HOUR_MS,
}


def _within_window(parsed_ms: int | None, window: str, now_ms: int) -> bool:
    window_ms = WINDOW_TO_MS.get(window)
    if window_ms is None:
        return True
    if parsed_ms is None:
        return False
    return now_ms - parsed_ms <= window_ms


def apply_timeline_window(
    value: str | None, window: str, now_ms: int | None = None
) -> bool:
    """Check whether a timestamp falls inside a relative window.

    Uses absolute millisecond deltas, so a value exactly 24 hours old passes
    ``24h`` even across a daylight-saving change.

    Args:
        value: ISO timestamp of the record.
        window: One of 'all', '24h', '7d', '30d'.
        now_ms: Current time in epoch milliseconds. Defaults to now.

    Returns:
        True if the record is kept. Unparseable values fail bounded windows.
    """
    if window not in WINDOW_TO_MS:
        return True
    if now_ms is None:
        now_ms = current_ms()
    return _within_window(parse_timestamp_ms(value), window, now_ms)


# ---------------------------------------------------------------------------
# Search entries
# ---------------------------------------------------------------------------


@dataclass
class SearchEntry:
    """A record prepared for filtering and scoring."""

    id: str
    created_at: str
    created_ms: int | None
    combined_lower: str
    relevance_fields: list[WeightedLoweredField] = field(default_factory=list)

    @property
    def timestamp(self) -> int:
        """Sort timestamp; unparseable dates sort as the epoch."""
        return self.created_ms if self.created_ms is not None else 0


@dataclass
class ThreadEntry(SearchEntry):
    thread: Thread | None = None
    space_name_lower: str = ""
    space_id_lower: str = ""
    tag_set_lower: frozenset[str] = frozenset()
    note_trimmed: str = ""
    has_citation: bool = False
    match_inputs: ThreadMatchInputs = field(default_factory=ThreadMatchInputs)


@dataclass
class SpaceEntry(SearchEntry):
    space: Space | None = None
    space_name_lower: str = ""
    space_id_lower: str = ""
    tag_set_lower: frozenset[str] = frozenset()


@dataclass
class CollectionEntry(SearchEntry):
    collection: Collection | None = None


@dataclass
class FileEntry(SearchEntry):
    file: LibraryFile | None = None


@dataclass
class TaskEntry(SearchEntry):
    task: Task | None = None
    space_name_lower: str = ""
    space_id_lower: str = ""


def _lower_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())


def build_thread_entry(thread: Thread, note: str | None = None) -> ThreadEntry:
    """Prepare a thread (and its note, if any) for searching."""
    note_trimmed = (note or "").strip()
    cited = citation_text(thread.citations)
    tags_text = " ".join(thread.tags)
    fields = [
        WeightedField(thread.title or "", TITLE_WEIGHT),
        WeightedField(thread.question, QUESTION_WEIGHT),
        WeightedField(tags_text, TAG_WEIGHT),
        WeightedField(thread.space_name or "", SPACE_WEIGHT),
        WeightedField(note_trimmed, NOTE_WEIGHT),
        WeightedField(cited, BODY_WEIGHT),
        WeightedField(thread.answer, BODY_WEIGHT),
    ]
    return ThreadEntry(
        id=thread.id,
        created_at=thread.created_at,
        created_ms=parse_timestamp_ms(thread.created_at),
        combined_lower=combine_lowered(
            [
                thread.title,
                thread.question,
                thread.answer,
                tags_text,
                thread.space_name,
                note_trimmed,
                cited,
            ]
        ),
        relevance_fields=lower_fields(fields),
        thread=thread,
        space_name_lower=(thread.space_name or "").lower(),
        space_id_lower=(thread.space_id or "").lower(),
        tag_set_lower=_lower_set(thread.tags),
        note_trimmed=note_trimmed,
        has_citation=bool(thread.citations),
        match_inputs=ThreadMatchInputs(
            title=thread.title,
            question=thread.question,
            answer=thread.answer,
            tags=list(thread.tags),
            space_name=thread.space_name,
            note=note_trimmed or None,
            citation_text=cited,
        ),
    )


def build_space_entry(space: Space, tags: Iterable[str] = ()) -> SpaceEntry:
    """Prepare a space and its space-level tags for searching."""
    tag_list = [t for t in tags if t]
    tags_text = " ".join(tag_list)
    fields = [
        WeightedField(space.name, NAME_WEIGHT),
        WeightedField(tags_text, TAG_WEIGHT),
        WeightedField(space.instructions, BODY_WEIGHT),
    ]
    return SpaceEntry(
        id=space.id,
        created_at=space.created_at,
        created_ms=parse_timestamp_ms(space.created_at),
        combined_lower=combine_lowered([space.name, space.instructions, tags_text]),
        relevance_fields=lower_fields(fields),
        space=space,
        space_name_lower=space.name.lower(),
        space_id_lower=space.id.lower(),
        tag_set_lower=_lower_set(tag_list),
    )


def build_collection_entry(collection: Collection) -> CollectionEntry:
    return CollectionEntry(
        id=collection.id,
        created_at=collection.created_at,
        created_ms=parse_timestamp_ms(collection.created_at),
        combined_lower=combine_lowered([collection.name]),
        relevance_fields=lower_fields([WeightedField(collection.name, NAME_WEIGHT)]),
        collection=collection,
    )


def build_file_entry(file: LibraryFile) -> FileEntry:
    return FileEntry(
        id=file.id,
        created_at=file.added_at,
        created_ms=parse_timestamp_ms(file.added_at),
        combined_lower=combine_lowered([file.name, file.text]),
        relevance_fields=lower_fields(
            [
                WeightedField(file.name, NAME_WEIGHT),
                WeightedField(file.text, BODY_WEIGHT),
            ]
        ),
        file=file,
    )


def build_task_entry(task: Task) -> TaskEntry:
    fields = [
        WeightedField(task.name, NAME_WEIGHT),
        WeightedField(task.space_name or "", SPACE_WEIGHT),
        WeightedField(task.prompt, BODY_WEIGHT),
        WeightedField(task.mode, META_WEIGHT),
        WeightedField(task.cadence, META_WEIGHT),
    ]
    return TaskEntry(
        id=task.id,
        created_at=task.created_at,
        created_ms=parse_timestamp_ms(task.created_at),
        combined_lower=combine_lowered(
            [task.name, task.prompt, task.space_name, task.mode, task.cadence]
        ),
        relevance_fields=lower_fields(fields),
        task=task,
        space_name_lower=(task.space_name or "").lower(),
        space_id_lower=(task.space_id or "").lower(),
    )


def build_thread_entries(
    threads: Iterable[Thread], notes: Mapping[str, str] | None = None
) -> list[ThreadEntry]:
    notes = notes or {}
    return [build_thread_entry(t, notes.get(t.id)) for t in threads]


def build_space_entries(
    spaces: Iterable[Space], space_tags: Mapping[str, list[str]] | None = None
) -> list[SpaceEntry]:
    space_tags = space_tags or {}
    return [build_space_entry(s, space_tags.get(s.id, ())) for s in spaces]


# ---------------------------------------------------------------------------
# Shared operator checks
# ---------------------------------------------------------------------------


def _passes_common(
    entry: SearchEntry, kind: str, parsed: ParsedQuery, window: str, now_ms: int
) -> bool:
    operators = parsed.operators
    if operators.type is not None and operators.type != kind:
        return False
    if not _within_window(entry.created_ms, window, now_ms):
        return False
    return matches_lowered_query(entry.combined_lower, parsed.query)


def _matches_space(
    operators: SearchOperators, space_name_lower: str, space_id_lower: str
) -> bool:
    """Name substring or exact id; either one is enough."""
    if not operators.uses_space:
        return True
    if operators.space is not None and space_name_lower:
        if operators.space.strip().lower() in space_name_lower:
            return True
    if operators.space_id is not None and space_id_lower:
        if operators.space_id.strip().lower() == space_id_lower:
            return True
    return False


def _matches_tags(operators: SearchOperators, tag_set: frozenset[str]) -> bool:
    if any(tag not in tag_set for tag in operators.tags):
        return False
    return not any(tag in tag_set for tag in operators.not_tags)


# ---------------------------------------------------------------------------
# Entity predicates
# ---------------------------------------------------------------------------


def thread_entry_matches(
    entry: ThreadEntry, parsed: ParsedQuery, window: str, now_ms: int
) -> bool:
    """Check a thread against the query, operators and timeline window."""
    if not _passes_common(entry, "thread", parsed, window, now_ms):
        return False

    operators = parsed.operators
    if not _matches_space(operators, entry.space_name_lower, entry.space_id_lower):
        return False
    if not _matches_tags(operators, entry.tag_set_lower):
        return False

    has_note = bool(entry.note_trimmed)
    if operators.has_note and not has_note:
        return False
    if operators.not_has_note and has_note:
        return False
    if operators.has_citation and not entry.has_citation:
        return False
    if operators.not_has_citation and entry.has_citation:
        return False

    thread = entry.thread
    for state in operators.states:
        if not getattr(thread, state, False):
            return False
    for state in operators.not_states:
        if getattr(thread, state, False):
            return False
    return True


def space_entry_matches(
    entry: SpaceEntry, parsed: ParsedQuery, window: str, now_ms: int
) -> bool:
    """Check a space; ``has:`` and ``is:`` never apply to spaces."""
    operators = parsed.operators
    if operators.uses_has or operators.uses_states:
        return False
    if not _passes_common(entry, "space", parsed, window, now_ms):
        return False
    if not _matches_space(operators, entry.space_name_lower, entry.space_id_lower):
        return False
    return _matches_tags(operators, entry.tag_set_lower)


def collection_entry_matches(
    entry: CollectionEntry, parsed: ParsedQuery, window: str, now_ms: int
) -> bool:
    """Check a collection; only free text and the window apply."""
    operators = parsed.operators
    if (
        operators.uses_has
        or operators.uses_tags
        or operators.uses_space
        or operators.uses_states
    ):
        return False
    return _passes_common(entry, "collection", parsed, window, now_ms)


def file_entry_matches(
    entry: FileEntry, parsed: ParsedQuery, window: str, now_ms: int
) -> bool:
    """Check a file; only free text and the window apply."""
    operators = parsed.operators
    # Files belong to no space, so space: rejects them as well as spaceid:
    if (
        operators.uses_has
        or operators.uses_tags
        or operators.uses_space
        or operators.uses_states
    ):
        return False
    return _passes_common(entry, "file", parsed, window, now_ms)


def task_entry_matches(
    entry: TaskEntry, parsed: ParsedQuery, window: str, now_ms: int
) -> bool:
    """Check a task; only the space operators apply besides free text."""
    operators = parsed.operators
    if operators.uses_has or operators.uses_tags or operators.uses_states:
        return False
    if not _passes_common(entry, "task", parsed, window, now_ms):
        return False
    return _matches_space(operators, entry.space_name_lower, entry.space_id_lower)


def filter_thread_entries(
    entries: Iterable[ThreadEntry],
    parsed: ParsedQuery,
    window: str = "all",
    now_ms: int | None = None,
) -> list[ThreadEntry]:
    now = current_ms() if now_ms is None else now_ms
    return [e for e in entries if thread_entry_matches(e, parsed, window, now)]


def filter_space_entries(
    entries: Iterable[SpaceEntry],
    parsed: ParsedQuery,
    window: str = "all",
    now_ms: int | None = None,
) -> list[SpaceEntry]:
    now = current_ms() if now_ms is None else now_ms
    return [e for e in entries if space_entry_matches(e, parsed, window, now)]


def filter_collection_entries(
    entries: Iterable[CollectionEntry],
    parsed: ParsedQuery,
    window: str = "all",
    now_ms: int | None = None,
) -> list[CollectionEntry]:
    now = current_ms() if now_ms is None else now_ms
    return [e for e in entries if collection_entry_matches(e, parsed, window, now)]


def filter_file_entries(
    entries: Iterable[FileEntry],
    parsed: ParsedQuery,
    window: str = "all",
    now_ms: int | None = None,
) -> list[FileEntry]:
    now = current_ms() if now_ms is None else now_ms
    return [e for e in entries if file_entry_matches(e, parsed, window, now)]


def filter_task_entries(
    entries: Iterable[TaskEntry],
    parsed: ParsedQuery,
    window: str = "all",
    now_ms: int | None = None,
) -> list[TaskEntry]:
    now = current_ms() if now_ms is None else now_ms
    return [e for e in entries if task_entry_matches(e, parsed, window, now)]
