"""Tests for build_highlight_parts."""

from __future__ import annotations

from signal_search.highlight import HighlightPart, build_highlight_parts


def parts_to_debug(parts: list[HighlightPart]) -> str:
    return "".join(f"[{p.text}]" if p.highlighted else p.text for p in parts)


class TestBuildHighlightParts:
    """Tests for build_highlight_parts function."""

    def test_empty_query(self) -> None:
        """An empty query returns the text as one plain part."""
        assert build_highlight_parts("Hello world", "", []) == [
            HighlightPart("Hello world", False)
        ]

    def test_empty_text(self) -> None:
        """Empty text has no parts."""
        assert build_highlight_parts("", "hello", ["hello"]) == []

    def test_case_insensitive_match(self) -> None:
        """Matches ignore case and keep the original text."""
        parts = build_highlight_parts("Hello World", "world", ["world"])
        assert parts_to_debug(parts) == "Hello [World]"

    def test_phrase_covers_tokens(self) -> None:
        """A full phrase match is one highlighted part."""
        parts = build_highlight_parts("alpha beta gamma", "beta gamma", ["beta", "gamma"])
        assert parts_to_debug(parts) == "alpha [beta gamma]"

    def test_overlapping_ranges_merge(self) -> None:
        """Overlapping matches merge into one part."""
        parts = build_highlight_parts("foobar", "foo", ["foo", "oob"])
        assert parts_to_debug(parts) == "[foob]ar"

    def test_every_occurrence(self) -> None:
        """Repeated matches are all highlighted."""
        parts = build_highlight_parts("Roadmap review for roadmap", "roadmap", ["roadmap"])
        assert parts_to_debug(parts) == "[Roadmap] review for [roadmap]"

    def test_short_tokens_ignored(self) -> None:
        """One-character tokens are skipped when the query is longer."""
        parts = build_highlight_parts("a b c", "alpha", ["a", "b", "c"])
        assert parts_to_debug(parts) == "a b c"

    def test_single_character_query(self) -> None:
        """A one-character query is still highlighted."""
        parts = build_highlight_parts("a b c", "b", ["b"])
        assert parts_to_debug(parts) == "a [b] c"

    def test_length_changing_case_fold(self) -> None:
        """Text whose lowercase form changes length is left plain."""
        text = "İstanbul trip"
        assert build_highlight_parts(text, "trip", ["trip"]) == [HighlightPart(text, False)]

    def test_parts_cover_text(self) -> None:
        """Joined parts reproduce the input."""
        text = "Deep Work and deep focus"
        parts = build_highlight_parts(text, "deep", ["deep"])
        assert "".join(p.text for p in parts) == text
        assert all(p.text for p in parts)
