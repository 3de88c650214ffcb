"""Tests for keyword search over library files."""

from __future__ import annotations

import pytest

from signal_search.file_search import FileSearchResult, search_library_files
from signal_search.models import LibraryFile


@pytest.fixture
def library() -> list[LibraryFile]:
    return [
        LibraryFile(
            id="1",
            name="alpha-notes.txt",
            size=12,
            type="text/plain",
            text="Alpha beta gamma delta.",
        ),
        LibraryFile(
            id="2",
            name="project-plan.md",
            size=12,
            type="text/markdown",
            text="We plan to ship the beta release next week.",
        ),
    ]


def _ids(results: list[FileSearchResult]) -> list[str]:
    return [result.file.id for result in results]


class TestSearchLibraryFiles:
    """Tests for search_library_files function."""

    def test_finds_and_scores_matches(self, library: list[LibraryFile]) -> None:
        """The file with more hits ranks first."""
        results = search_library_files(library, "beta release")
        assert _ids(results) == ["2", "1"]
        assert [r.score for r in results] == [2, 1]

    def test_empty_query(self, library: list[LibraryFile]) -> None:
        """An empty query finds nothing."""
        assert search_library_files(library, "") == []

    def test_short_keywords_ignored(self, library: list[LibraryFile]) -> None:
        """Keywords under three characters are dropped."""
        assert search_library_files(library, "we to a") == []

    def test_punctuation_splits_keywords(self, library: list[LibraryFile]) -> None:
        """Anything but letters and digits separates keywords."""
        results = search_library_files(library, "GAMMA,delta!")
        assert _ids(results) == ["1"]
        assert results[0].score == 2

    def test_name_hits_count_double(self, library: list[LibraryFile]) -> None:
        """A name hit outweighs a body hit."""
        results = search_library_files(library, "alpha")
        assert results[0].score == 3

    def test_repeated_hits_counted(self) -> None:
        """Every non-overlapping occurrence scores."""
        file = LibraryFile(id="x", name="log.txt", text="aaaa roadmap roadmap")
        assert search_library_files([file], "roadmap")[0].score == 2
        assert search_library_files([file], "aaa")[0].score == 1

    def test_no_match_dropped(self, library: list[LibraryFile]) -> None:
        """Files without hits are not returned."""
        assert search_library_files(library, "zebra") == []

    def test_limit(self) -> None:
        """Only the best results up to the limit are kept."""
        files = [
            LibraryFile(id=str(i), name=f"file{i}.txt", text="roadmap " * i)
            for i in range(1, 6)
        ]
        assert _ids(search_library_files(files, "roadmap")) == ["5", "4", "3"]
        assert _ids(search_library_files(files, "roadmap", limit=1)) == ["5"]
        assert search_library_files(files, "roadmap", limit=0) == []

    def test_ties_keep_input_order(self) -> None:
        """Equal scores keep the order files were given in."""
        files = [
            LibraryFile(id="a", name="a.txt", text="roadmap"),
            LibraryFile(id="b", name="b.txt", text="roadmap"),
        ]
        assert _ids(search_library_files(files, "roadmap")) == ["a", "b"]

    def test_snippet_window(self) -> None:
        """The snippet spans 40 characters before to 120 after the first hit."""
        text = "x" * 50 + " roadmap " + "y" * 200
        file = LibraryFile(id="s", name="s.txt", text=text)
        [result] = search_library_files([file], "roadmap")
        index = text.index("roadmap")
        assert result.snippet == text[index - 40 : index + 120].strip()

    def test_snippet_collapses_whitespace(self) -> None:
        """Runs of whitespace in the snippet become single spaces."""
        file = LibraryFile(id="w", name="w.txt", text="  Plan\n\n the   roadmap\tnow ")
        [result] = search_library_files([file], "roadmap")
        assert result.snippet == "Plan the roadmap now"

    def test_snippet_without_body_hit(self) -> None:
        """A name-only match shows the opening text."""
        file = LibraryFile(id="n", name="roadmap.md", text="z" * 200)
        [result] = search_library_files([file], "roadmap")
        assert result.snippet == "z" * 160

    def test_snippet_of_empty_text(self) -> None:
        """A file without text has an empty snippet."""
        file = LibraryFile(id="e", name="roadmap.md")
        assert search_library_files([file], "roadmap")[0].snippet == ""
