"""Split result text into plain and highlighted parts."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class HighlightPart:
    text: str
    highlighted: bool


def _find_ranges(haystack_lower: str, needle_lower: str) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    if not needle_lower:
        return ranges
    start = haystack_lower.find(needle_lower)
    while start != -1:
        end = start + len(needle_lower)
        ranges.append((start, end))
        start = haystack_lower.find(needle_lower, end)
    return ranges


def _merge_ranges(ranges: list[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[list[int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(start, end) for start, end in merged]


def _build_patterns(normalized_query: str, tokens: list[str]) -> list[str]:
    patterns = [normalized_query] if normalized_query else []
    # Single-character tokens are noise unless they are the whole query
    if len(normalized_query) >= 2:
        patterns.extend(token for token in tokens if len(token) >= 2)
    unique = list(dict.fromkeys(p for p in patterns if p))
    return sorted(unique, key=len, reverse=True)


def build_highlight_parts(
    text: str, query: str, tokens: Iterable[str]
) -> list[HighlightPart]:
    """Mark the occurrences of a query and its tokens in ``text``.

    Args:
        text: Text to display.
        query: The query phrase.
        tokens: Individual query tokens.

    Returns:
        Consecutive non-empty parts covering ``text``.
    """
    if not text:
        return []
    normalized_query = query.strip().lower()
    if not normalized_query:
        return [HighlightPart(text, False)]

    normalized_tokens = [t.strip().lower() for t in tokens if t and t.strip()]
    patterns = _build_patterns(normalized_query, normalized_tokens)

    # Case folding can change string length; highlight only when it does not
    haystack_lower = text.lower()
    if len(haystack_lower) != len(text):
        return [HighlightPart(text, False)]

    ranges = _merge_ranges(
        [r for pattern in patterns for r in _find_ranges(haystack_lower, pattern)]
    )
    if not ranges:
        return [HighlightPart(text, False)]

    parts: list[HighlightPart] = []
    cursor = 0
    for start, end in ranges:
        if start > cursor:
            parts.append(HighlightPart(text[cursor:start], False))
        parts.append(HighlightPart(text[start:end], True))
        cursor = end
    if cursor < len(text):
        parts.append(HighlightPart(text[cursor:], False))
    return parts
