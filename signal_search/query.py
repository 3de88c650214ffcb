"""Query parsing for unified search.

This module provides:
- tokenize_query: Splits a raw query on whitespace, honoring quoted phrases
- parse_unified_search_query: Extracts key:value operators from free text
- normalize_query: Lowercases, collapses and de-duplicates free text
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NormalizedQuery:
    """Free text prepared for matching and scoring.

    ``normalized`` is the trimmed, lowercased, whitespace-collapsed text.
    ``tokens`` holds its distinct words in first-seen order, and is empty for
    phrase-only (verbatim) queries.
    """

    normalized: str = ""
    tokens: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.normalized and not self.tokens


@dataclass
class SearchOperators:
    """Structured filters extracted from a query."""

    type: str | None = None
    space: str | None = None
    space_id: str | None = None
    tags: list[str] = field(default_factory=list)
    not_tags: list[str] = field(default_factory=list)
    states: list[str] = field(default_factory=list)
    not_states: list[str] = field(default_factory=list)
    has_note: bool = False
    not_has_note: bool = False
    has_citation: bool = False
    not_has_citation: bool = False
    verbatim: bool | None = None

    @property
    def uses_tags(self) -> bool:
        return bool(self.tags or self.not_tags)

    @property
    def uses_states(self) -> bool:
        return bool(self.states or self.not_states)

    @property
    def uses_has(self) -> bool:
        return (
            self.has_note
            or self.not_has_note
            or self.has_citation
            or self.not_has_citation
        )

    @property
    def uses_space(self) -> bool:
        return self.space is not None or self.space_id is not None


@dataclass
class ParsedQuery:
    """A query split into free text and operators."""

    text: str
    query: NormalizedQuery
    operators: SearchOperators = field(default_factory=SearchOperators)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_query(raw: str) -> NormalizedQuery:
    """Normalize free text into a phrase and a de-duplicated token list.

    Args:
        raw: Free text (operators already removed).

    Returns:
        NormalizedQuery; both fields empty when the text is blank.
    """
    words = raw.lower().split()
    if not words:
        return NormalizedQuery()
    # dict preserves insertion order
    tokens = tuple(dict.fromkeys(words))
    return NormalizedQuery(normalized=" ".join(words), tokens=tokens)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def _count_unescaped_quotes(text: str) -> int:
    count = 0
    for i, char in enumerate(text):
        if char == '"' and (i == 0 or text[i - 1] != "\\"):
            count += 1
    return count


def tokenize_query(raw: str) -> list[str]:
    """Split a raw query into tokens.

    Whitespace inside double quotes does not split, and the quotes
    themselves are dropped. ``\\"`` produces a literal quote. If the query
    has an odd number of unescaped quotes, it is split on plain whitespace
    instead so one stray quote cannot swallow the rest of the query.

    Args:
        raw: The raw query string.

    Returns:
        Non-empty tokens in order.
    """
    if _count_unescaped_quotes(raw) % 2 == 1:
        return raw.split()

    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\\" and i + 1 < len(raw) and raw[i + 1] == '"':
            current.append('"')
            i += 2
            continue
        if char == '"':
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
        i += 1

    if current:
        tokens.append("".join(current))
    return tokens


# ---------------------------------------------------------------------------
# Operator value normalization
# ---------------------------------------------------------------------------

_TYPE_VALUES: dict[str, str] = {
    "thread": "thread",
    "threads": "thread",
    "space": "space",
    "spaces": "space",
    "collection": "collection",
    "collections": "collection",
    "file": "file",
    "files": "file",
    "task": "task",
    "tasks": "task",
}

_HAS_VALUES: dict[str, str] = {
    "note": "note",
    "notes": "note",
    "citation": "citation",
    "citations": "citation",
    "source": "citation",
    "sources": "citation",
    "cite": "citation",
}

_STATE_VALUES = frozenset({"pinned", "favorite", "archived"})

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

_KEY_ALIASES: dict[str, str] = {
    "type": "type",
    "in": "type",
    "space": "space",
    "spaceid": "spaceid",
    "space_id": "spaceid",
    "tag": "tag",
    "has": "has",
    "is": "is",
    "verbatim": "verbatim",
    "exact": "verbatim",
}

# Keys without a negated form
_POSITIVE_ONLY_KEYS = frozenset({"type", "space", "spaceid"})


def _parse_bool(value: str) -> bool | None:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def _apply_operator(
    operators: SearchOperators, key: str, value: str, negated: bool
) -> bool:
    """Apply one operator; return False if it was not understood."""
    if negated and key in _POSITIVE_ONLY_KEYS:
        return False

    if key == "type":
        entity_type = _TYPE_VALUES.get(value.lower())
        if entity_type is None:
            return False
        operators.type = entity_type
    elif key == "space":
        operators.space = value
    elif key == "spaceid":
        operators.space_id = value
    elif key == "tag":
        target = operators.not_tags if negated else operators.tags
        target.append(value.lower())
    elif key == "has":
        facet = _HAS_VALUES.get(value.lower())
        if facet is None:
            return False
        if facet == "note":
            if negated:
                operators.not_has_note = True
            else:
                operators.has_note = True
        elif negated:
            operators.not_has_citation = True
        else:
            operators.has_citation = True
    elif key == "is":
        state = value.lower()
        if state not in _STATE_VALUES:
            return False
        target = operators.not_states if negated else operators.states
        target.append(state)
    elif key == "verbatim":
        flag = _parse_bool(value)
        if flag is None:
            return False
        operators.verbatim = not flag if negated else flag
    else:
        return False
    return True


# ---------------------------------------------------------------------------
# Query parsing
# ---------------------------------------------------------------------------


def parse_unified_search_query(raw: str, verbatim: bool = False) -> ParsedQuery:
    """Parse a unified search query into free text and operators.

    Supports:
    - Free text: 'roadmap review' → text='roadmap review'
    - Quoted values: 'space:"Deep Work"' → space='Deep Work'
    - Negation: '-tag:archived' → not_tags=['archived']
    - Aliases: 'in:tasks', 'space_id:abc', 'exact:on'

    Tokens that look like operators but cannot be applied are kept as free
    text.

    Args:
        raw: The raw query string.
        verbatim: Default phrase-only mode, overridden by a verbatim operator.

    Returns:
        Parsed query.
    """
    operators = SearchOperators()
    free_text: list[str] = []

    for token in tokenize_query(raw):
        colon = token.find(":")
        if colon <= 0:
            free_text.append(token)
            continue

        raw_key = token[:colon]
        value = token[colon + 1 :].strip().strip('"').strip()
        negated = raw_key.startswith("-")
        key = _KEY_ALIASES.get((raw_key[1:] if negated else raw_key).lower())

        if key is None or not value or not _apply_operator(
            operators, key, value, negated
        ):
            free_text.append(token)

    text = " ".join(free_text)
    query = normalize_query(text)

    effective_verbatim = verbatim if operators.verbatim is None else operators.verbatim
    if effective_verbatim:
        query = NormalizedQuery(normalized=query.normalized, tokens=())

    return ParsedQuery(text=text, query=query, operators=operators)
