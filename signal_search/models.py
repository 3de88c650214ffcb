"""Record types for the searchable corpus.

The caller owns every record; the engine only reads them. Enumerated fields
are plain strings validated by the storage decoders.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

ANSWER_MODES = ("quick", "research", "learn")
SOURCE_MODES = ("web", "none")
SPACE_SOURCE_POLICIES = ("web", "flex", "offline")
TASK_CADENCES = ("daily", "weekly", "weekday", "monthly", "yearly")
THREAD_STATES = ("pinned", "favorite", "archived")

# Entity kinds, in the order results are presented
ENTITY_KINDS = ("thread", "space", "collection", "file", "task")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class Citation:
    """A source cited by an answer."""

    title: str
    url: str


@dataclass
class Thread:
    """A question/answer thread from the conversation history."""

    id: str
    question: str
    answer: str = ""
    mode: str = "quick"
    sources: str = "none"
    created_at: str = ""
    citations: list[Citation] = field(default_factory=list)
    title: str | None = None
    tags: list[str] = field(default_factory=list)
    space_id: str | None = None
    space_name: str | None = None
    pinned: bool = False
    favorite: bool = False
    archived: bool = False
    provider: str = ""
    latency_ms: int = 0

    @property
    def display_title(self) -> str:
        """Title shown in result lists (falls back to the question)."""
        return self.title or self.question


@dataclass
class Space:
    """A workspace grouping threads and tasks."""

    id: str
    name: str
    instructions: str = ""
    preferred_model: str | None = None
    source_policy: str = "flex"
    created_at: str = ""


@dataclass
class Collection:
    """A named collection of threads."""

    id: str
    name: str
    created_at: str = ""


@dataclass
class LibraryFile:
    """An uploaded file with its extracted text."""

    id: str
    name: str
    size: int = 0
    type: str = ""
    text: str = ""
    added_at: str = ""


@dataclass
class Task:
    """A scheduled prompt."""

    id: str
    name: str
    prompt: str = ""
    cadence: str = "daily"
    time: str = "09:00"
    mode: str = "quick"
    sources: str = "none"
    created_at: str = ""
    next_run: str = ""
    last_run: str | None = None
    last_thread_id: str | None = None
    day_of_week: int | None = None
    day_of_month: int | None = None
    month_of_year: int | None = None
    space_id: str | None = None
    space_name: str | None = None
