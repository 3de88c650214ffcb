"""Shared test fixtures for Signal Search."""

import pytest

from signal_search.engine import SearchDataset
from signal_search.storage_keys import (
    SIGNAL_COLLECTIONS_KEY,
    SIGNAL_FILES_KEY,
    SIGNAL_HISTORY_KEY,
    SIGNAL_NOTES_KEY,
    SIGNAL_SPACE_TAGS_KEY,
    SIGNAL_SPACES_KEY,
    SIGNAL_TASKS_KEY,
    SIGNAL_UNIFIED_RECENT_SEARCH_KEY,
    SIGNAL_UNIFIED_SAVED_SEARCH_KEY,
    SIGNAL_UNIFIED_VERBATIM_KEY,
)
from signal_search.timestamps import parse_timestamp_ms

NOW_ISO = "2026-02-08T12:00:00.000Z"


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


@pytest.fixture
def now_iso() -> str:
    return NOW_ISO


@pytest.fixture
def now_ms() -> int:
    return parse_timestamp_ms(NOW_ISO)


# ---------------------------------------------------------------------------
# Stored records (camelCase, as persisted)
# ---------------------------------------------------------------------------


@pytest.fixture
def stored_threads() -> list:
    return [
        {
            "id": "t-roadmap",
            "question": "What is the Q3 roadmap?",
            "answer": "Ship search first.",
            "mode": "research",
            "sources": "web",
            "createdAt": "2026-02-08T10:00:00.000Z",
            "citations": [{"title": "Plan doc", "url": "https://example.com/plan"}],
            "title": "Roadmap review",
            "tags": ["planning", "q3"],
            "spaceId": "s-deep",
            "spaceName": "Deep Work",
            "pinned": True,
        },
        {
            "id": "t-archive",
            "question": "Old roadmap notes",
            "answer": "Archived discussion",
            "createdAt": "2026-01-20T09:00:00.000Z",
            "tags": ["archived"],
            "spaceId": "s-deep",
            "spaceName": "Deep Work",
            "archived": True,
        },
        {
            "id": "t-bread",
            "question": "How do I bake bread?",
            "answer": "Use flour, water and salt.",
            "createdAt": "2026-02-05T08:00:00.000Z",
            "tags": ["cooking"],
            "favorite": True,
        },
    ]


@pytest.fixture
def stored_spaces() -> list:
    return [
        {
            "id": "s-deep",
            "name": "Deep Work",
            "instructions": "Focus on the roadmap",
            "sourcePolicy": "web",
            "createdAt": "2026-01-01T00:00:00.000Z",
        },
        {
            "id": "s-home",
            "name": "Home",
            "instructions": "Recipes and chores",
            "createdAt": "2026-02-07T12:00:00.000Z",
        },
    ]


@pytest.fixture
def stored_collections() -> list:
    return [
        {"id": "c-research", "name": "Roadmap research", "createdAt": "2026-02-01T00:00:00.000Z"},
        {"id": "c-reading", "name": "Reading list", "createdAt": "2026-02-07T00:00:00.000Z"},
    ]


@pytest.fixture
def stored_files() -> list:
    return [
        {
            "id": "f-roadmap",
            "name": "roadmap.md",
            "size": 2048,
            "type": "text/markdown",
            "text": "Q3 roadmap draft",
            "addedAt": "2026-02-06T00:00:00.000Z",
        },
        {
            "id": "f-bread",
            "name": "bread.txt",
            "size": 128,
            "type": "text/plain",
            "text": "Sourdough starter",
            "addedAt": "2026-02-08T11:00:00.000Z",
        },
    ]


@pytest.fixture
def stored_tasks() -> list:
    return [
        {
            "id": "task-digest",
            "name": "Weekly roadmap digest",
            "prompt": "Summarize roadmap progress",
            "cadence": "weekly",
            "time": "08:30",
            "dayOfWeek": 1,
            "createdAt": "2026-02-02T00:00:00.000Z",
            "nextRun": "2026-02-09T08:30:00.000Z",
            "spaceId": "s-deep",
            "spaceName": "Deep Work",
        },
        {
            "id": "task-news",
            "name": "Daily news",
            "prompt": "Top headlines",
            "cadence": "daily",
            "createdAt": "2026-02-08T06:00:00.000Z",
        },
    ]


@pytest.fixture
def stored_saved_searches() -> dict:
    return {
        "version": 2,
        "searches": [
            {
                "id": "ss-roadmap",
                "name": "Roadmap threads",
                "query": "roadmap",
                "filter": "threads",
                "sortBy": "newest",
                "timelineWindow": "7d",
                "resultLimit": 10,
                "verbatim": False,
                "pinned": True,
                "createdAt": "2026-02-01T00:00:00.000Z",
                "updatedAt": "2026-02-02T00:00:00.000Z",
            }
        ],
    }


@pytest.fixture
def storage_export(
    stored_threads: list,
    stored_spaces: list,
    stored_collections: list,
    stored_files: list,
    stored_tasks: list,
    stored_saved_searches: dict,
) -> dict:
    """A storage export: storage key → parsed JSON value."""
    return {
        SIGNAL_HISTORY_KEY: stored_threads,
        SIGNAL_SPACES_KEY: stored_spaces,
        SIGNAL_SPACE_TAGS_KEY: {"s-deep": ["focus"]},
        SIGNAL_COLLECTIONS_KEY: stored_collections,
        SIGNAL_FILES_KEY: stored_files,
        SIGNAL_TASKS_KEY: stored_tasks,
        SIGNAL_NOTES_KEY: {"t-roadmap": "Follow up with design"},
        SIGNAL_UNIFIED_RECENT_SEARCH_KEY: ["roadmap", "bread"],
        SIGNAL_UNIFIED_SAVED_SEARCH_KEY: stored_saved_searches,
        SIGNAL_UNIFIED_VERBATIM_KEY: False,
    }


@pytest.fixture
def dataset(storage_export: dict, now_iso: str) -> SearchDataset:
    return SearchDataset.from_storage(storage_export, now_iso=now_iso)
