"""Text matching, relevance scoring and match badges.

Scoring tiers per field (highest applicable tier only):
- Exact match of the whole query: 20
- Field starts with the query: 12
- Field contains the query: 8

Each query token found in the field adds 1. Every contribution is
multiplied by the field weight.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .query import NormalizedQuery

EXACT_MATCH_SCORE = 20
PREFIX_MATCH_SCORE = 12
SUBSTRING_MATCH_SCORE = 8
TOKEN_MATCH_SCORE = 1

# Field weights: title-like fields outrank tags, which outrank body text
TITLE_WEIGHT = 4.0
NAME_WEIGHT = 4.0
QUESTION_WEIGHT = 3.0
TAG_WEIGHT = 2.0
SPACE_WEIGHT = 2.0
NOTE_WEIGHT = 1.5
BODY_WEIGHT = 1.0
META_WEIGHT = 0.5


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeightedField:
    """A text field and its importance multiplier."""

    text: str
    weight: float


@dataclass(frozen=True)
class WeightedLoweredField:
    """A pre-lowercased text field and its importance multiplier."""

    lowered: str
    weight: float


@dataclass
class ThreadMatchInputs:
    """Searchable facets of a thread used for match badges."""

    title: str | None = None
    question: str = ""
    answer: str = ""
    tags: list[str] = field(default_factory=list)
    space_name: str | None = None
    note: str | None = None
    citation_text: str = ""


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def combine_lowered(parts: Iterable[str | None]) -> str:
    """Join the non-empty parts with newlines and lowercase the result."""
    return "\n".join(part for part in parts if part).lower()


def matches_lowered_query(combined_lower: str, query: NormalizedQuery) -> bool:
    """Check a pre-lowercased haystack against a normalized query.

    The whole phrase matching is enough. Otherwise every token must appear.
    A phrase-only query has no tokens, so it needs the phrase itself.
    """
    if query.normalized in combined_lower:
        return True
    if query.tokens:
        return all(token in combined_lower for token in query.tokens)
    return False


def matches_query(parts: Iterable[str | None], query: NormalizedQuery) -> bool:
    """Check whether text parts match a normalized query.

    Args:
        parts: Text fields of a record; empty and None parts are skipped.
        query: The normalized query.

    Returns:
        True if the record text matches.
    """
    return matches_lowered_query(combine_lowered(parts), query)


# ---------------------------------------------------------------------------
# Relevance scoring
# ---------------------------------------------------------------------------


def _score_lowered(lowered: str, weight: float, query: NormalizedQuery) -> float:
    if not lowered:
        return 0.0

    normalized = query.normalized
    score = 0.0
    if lowered == normalized:
        score += EXACT_MATCH_SCORE
    elif lowered.startswith(normalized):
        score += PREFIX_MATCH_SCORE
    elif normalized in lowered:
        score += SUBSTRING_MATCH_SCORE

    for token in query.tokens:
        if token in lowered:
            score += TOKEN_MATCH_SCORE
    return score * weight


def compute_relevance_score_from_lowered(
    fields: Iterable[WeightedLoweredField], query: NormalizedQuery
) -> float:
    """Score pre-lowercased fields against a normalized query."""
    if not query.normalized:
        return 0.0
    return sum(_score_lowered(f.lowered, f.weight, query) for f in fields)


def compute_relevance_score(
    fields: Iterable[WeightedField], query: NormalizedQuery
) -> float:
    """Score weighted text fields against a normalized query.

    Args:
        fields: Fields with their weights.
        query: The normalized query.

    Returns:
        Relevance score; 0 for an empty query.
    """
    if not query.normalized:
        return 0.0
    return sum(_score_lowered(f.text.lower(), f.weight, query) for f in fields)


def lower_fields(fields: Iterable[WeightedField]) -> list[WeightedLoweredField]:
    """Lowercase weighted fields once so they can be scored repeatedly."""
    return [WeightedLoweredField(f.text.lower(), f.weight) for f in fields if f.text]


# ---------------------------------------------------------------------------
# Match badges
# ---------------------------------------------------------------------------


def _facet_hit(text: str | None, query: NormalizedQuery) -> bool:
    if not text:
        return False
    lowered = text.lower()
    if query.normalized and query.normalized in lowered:
        return True
    return any(token in lowered for token in query.tokens)


def compute_thread_match_badges(
    inputs: ThreadMatchInputs, query: NormalizedQuery
) -> list[str]:
    """Report which facets of a thread matched the query.

    Badges come out in a fixed order: title (or question when the thread has
    no title), tag, space, note, citation, answer.

    Args:
        inputs: The thread's searchable facets.
        query: The normalized query.

    Returns:
        Badge names; empty for an empty query.
    """
    if query.is_empty:
        return []

    badges: list[str] = []
    if _facet_hit(inputs.title, query):
        badges.append("title")
    elif not inputs.title and _facet_hit(inputs.question, query):
        badges.append("question")
    if any(_facet_hit(tag, query) for tag in inputs.tags):
        badges.append("tag")
    if _facet_hit(inputs.space_name, query):
        badges.append("space")
    if _facet_hit(inputs.note, query):
        badges.append("note")
    if _facet_hit(inputs.citation_text, query):
        badges.append("citation")
    if _facet_hit(inputs.answer, query):
        badges.append("answer")
    return badges


def citation_text(citations: Sequence[object]) -> str:
    """Flatten citation titles and urls into one searchable string."""
    parts: list[str] = []
    for citation in citations:
        title = getattr(citation, "title", "")
        url = getattr(citation, "url", "")
        if title:
            parts.append(title)
        if url:
            parts.append(url)
    return "\n".join(parts)
