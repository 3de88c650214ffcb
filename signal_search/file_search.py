"""Keyword search over uploaded library files.

This module provides:
- search_library_files: rank files by keyword hits in their name and text
- FileSearchResult: a matched file with its score and a text snippet

Unlike the unified engine, this search ignores operators and the timeline
and only counts keyword occurrences.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .models import LibraryFile

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_FILE_RESULT_LIMIT = 3

# Name hits count double
NAME_WEIGHT = 2

MIN_TOKEN_LENGTH = 3
SNIPPET_BEFORE = 40
SNIPPET_AFTER = 120
SNIPPET_FALLBACK_LENGTH = 160

_SPLIT_RE = re.compile(r"[^a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class FileSearchResult:
    """A library file that matched a keyword search."""

    file: LibraryFile
    score: int
    snippet: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _keywords(query: str) -> list[str]:
    return [
        token
        for token in _SPLIT_RE.split(query.lower())
        if len(token) >= MIN_TOKEN_LENGTH
    ]


def _count_hits(text: str, keywords: list[str]) -> int:
    """Count non-overlapping occurrences of every keyword."""
    lowered = text.lower()
    return sum(lowered.count(keyword) for keyword in keywords)


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _snippet(text: str, keywords: list[str]) -> str:
    """Cut a window around the first keyword found, else the opening text."""
    if not text:
        return ""
    lowered = text.lower()
    for keyword in keywords:
        index = lowered.find(keyword)
        if index != -1:
            start = max(0, index - SNIPPET_BEFORE)
            return _collapse(text[start : index + SNIPPET_AFTER])
    return _collapse(text[:SNIPPET_FALLBACK_LENGTH])


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def search_library_files(
    files: Sequence[LibraryFile],
    query: str,
    limit: int = DEFAULT_FILE_RESULT_LIMIT,
) -> list[FileSearchResult]:
    """Rank library files by keyword hits.

    The query is lowercased and split on anything that is not an ASCII
    letter or digit; pieces shorter than three characters are ignored.
    Each file scores twice its name hits plus its text hits. Files that
    score zero are dropped and ties keep input order.

    Args:
        files: Files to search.
        query: Free text as typed.
        limit: Maximum number of results.

    Returns:
        Up to ``limit`` results, best score first. Empty when the query
        has no usable keywords.
    """
    keywords = _keywords(query)
    if not keywords:
        return []

    results = []
    for file in files:
        score = _count_hits(file.name, keywords) * NAME_WEIGHT + _count_hits(
            file.text, keywords
        )
        if score > 0:
            results.append(
                FileSearchResult(
                    file=file, score=score, snippet=_snippet(file.text, keywords)
                )
            )

    results.sort(key=lambda result: result.score, reverse=True)
    return results[: max(limit, 0)]
