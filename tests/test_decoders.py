"""Tests for defensive storage decoders."""

from __future__ import annotations

import logging

import pytest

from signal_search.decoders import (
    decode_collections,
    decode_files,
    decode_notes,
    decode_recent_queries,
    decode_selected_thread_ids,
    decode_space_tags,
    decode_spaces,
    decode_tasks,
    decode_threads,
    decode_verbatim_flag,
    load_stored_json,
)
from signal_search.models import Citation
from signal_search.timestamps import EPOCH_ISO, normalize_iso

# Valid ISO strings whose UTC instant falls outside years 1-9999
OUT_OF_RANGE_STAMPS = ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00"]

# ---------------------------------------------------------------------------
# Raw JSON loading
# ---------------------------------------------------------------------------


class TestLoadStoredJson:
    """Tests for load_stored_json."""

    def test_parses_valid_json(self) -> None:
        """Valid JSON text is parsed."""
        assert load_stored_json('[{"id": "a"}]', []) == [{"id": "a"}]

    def test_missing_returns_fallback(self) -> None:
        """None and empty text return the fallback."""
        assert load_stored_json(None, []) == []
        assert load_stored_json("", {}) == {}

    def test_corrupt_returns_fallback_and_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Corrupt JSON logs a warning and returns the fallback."""
        with caplog.at_level(logging.WARNING, logger="signal_search.decoders"):
            assert load_stored_json("{not json", "fallback") == "fallback"
        assert "corrupt" in caplog.text


# ---------------------------------------------------------------------------
# Thread decoding
# ---------------------------------------------------------------------------


class TestDecodeThreads:
    """Tests for decode_threads."""

    def test_one_good_three_bad(self) -> None:
        """Only the record with a usable id survives."""
        raw = [
            {"id": "t1", "question": "What is new?", "createdAt": "2026-02-08T10:00:00Z"},
            {"question": "No id"},
            {"id": 123, "question": 5, "tags": "x"},
            None,
        ]
        threads = decode_threads(raw)
        assert len(threads) == 1
        thread = threads[0]
        assert thread.id == "t1"
        assert thread.question == "What is new?"
        assert thread.answer == ""
        assert thread.mode == "quick"
        assert thread.sources == "none"
        assert thread.created_at == "2026-02-08T10:00:00.000Z"
        assert thread.citations == []
        assert thread.tags == []
        assert thread.title is None
        assert thread.pinned is False

    def test_wrong_field_types_default(self) -> None:
        """Mistyped fields fall back without dropping the record."""
        raw = [
            {
                "id": " t2 ",
                "question": 42,
                "answer": ["no"],
                "mode": "turbo",
                "sources": "library",
                "createdAt": "not a date",
                "tags": "planning",
                "pinned": "yes",
                "favorite": 1,
                "latencyMs": -5,
                "spaceId": "",
                "citations": [{"url": "https://a.example"}, {"title": "no url"}, "junk"],
            }
        ]
        [thread] = decode_threads(raw)
        assert thread.id == "t2"
        assert thread.question == "Untitled thread"
        assert thread.answer == ""
        assert thread.mode == "quick"
        assert thread.sources == "none"
        assert thread.created_at == EPOCH_ISO
        assert thread.tags == []
        assert thread.pinned is False
        assert thread.favorite is False
        assert thread.latency_ms == 0
        assert thread.space_id is None
        assert thread.citations == [Citation(title="https://a.example", url="https://a.example")]

    def test_full_record(self) -> None:
        """Well-formed records keep every field."""
        raw = [
            {
                "id": "t3",
                "question": "Q",
                "answer": "A",
                "mode": "learn",
                "sources": "web",
                "createdAt": "2026-01-01T00:00:00.000Z",
                "title": "Title",
                "tags": [" alpha ", "beta", "alpha", ""],
                "spaceId": "s1",
                "spaceName": "Space",
                "pinned": True,
                "favorite": True,
                "archived": True,
                "provider": "mock",
                "latencyMs": 120,
                "unknownKey": "ignored",
            }
        ]
        [thread] = decode_threads(raw)
        assert thread.mode == "learn"
        assert thread.sources == "web"
        assert thread.title == "Title"
        assert thread.tags == ["alpha", "beta"]
        assert (thread.space_id, thread.space_name) == ("s1", "Space")
        assert thread.pinned and thread.favorite and thread.archived
        assert thread.provider == "mock"
        assert thread.latency_ms == 120

    def test_duplicate_ids_keep_first(self) -> None:
        """Later records with a seen id are dropped."""
        threads = decode_threads(
            [{"id": "t1", "question": "first"}, {"id": "t1", "question": "second"}]
        )
        assert [t.question for t in threads] == ["first"]

    @pytest.mark.parametrize("raw", [None, {}, "text", 42, True])
    def test_non_list_input(self, raw: object) -> None:
        """Anything but a list decodes to an empty list."""
        assert decode_threads(raw) == []

    @pytest.mark.parametrize("stamp", OUT_OF_RANGE_STAMPS)
    def test_out_of_range_timestamp_falls_back(self, stamp: str) -> None:
        """Offsets that leave the UTC year range use the epoch fallback."""
        [thread] = decode_threads([{"id": "a", "question": "q", "createdAt": stamp}])
        assert thread.created_at == EPOCH_ISO


# ---------------------------------------------------------------------------
# Other entity decoders
# ---------------------------------------------------------------------------


class TestDecodeEntities:
    """Tests for space, collection, file and task decoders."""

    def test_spaces(self) -> None:
        """Unknown policies and blank names default."""
        spaces = decode_spaces(
            [
                {"id": "s1", "name": "  Deep Work ", "sourcePolicy": "offline", "preferredModel": "m"},
                {"id": "s2", "name": 7, "sourcePolicy": "anything", "createdAt": 5},
                {"name": "no id"},
            ]
        )
        assert [s.id for s in spaces] == ["s1", "s2"]
        assert spaces[0].name == "Deep Work"
        assert spaces[0].source_policy == "offline"
        assert spaces[0].preferred_model == "m"
        assert spaces[1].name == "Untitled space"
        assert spaces[1].source_policy == "flex"
        assert spaces[1].created_at == EPOCH_ISO

    def test_collections(self) -> None:
        """Collections need only an id."""
        [collection] = decode_collections([{"id": "c1"}, []])
        assert collection.name == "Untitled collection"
        assert collection.created_at == EPOCH_ISO

    def test_files(self) -> None:
        """Sizes must be non-negative integers."""
        files = decode_files(
            [
                {"id": "f1", "name": "a.txt", "size": 10, "text": "hello", "addedAt": "2026-02-01T00:00:00Z"},
                {"id": "f2", "size": -1, "text": None},
                {"id": "f3", "size": True},
            ]
        )
        assert [f.size for f in files] == [10, 0, 0]
        assert files[0].added_at == "2026-02-01T00:00:00.000Z"
        assert files[1].name == "Untitled file"
        assert files[1].text == ""

    def test_tasks(self) -> None:
        """Cadence, time and schedule fields are validated."""
        tasks = decode_tasks(
            [
                {
                    "id": "task1",
                    "name": "Digest",
                    "cadence": "weekly",
                    "time": "7:05",
                    "dayOfWeek": 3,
                    "createdAt": "2026-02-01T00:00:00.000Z",
                    "nextRun": "2026-02-04T07:05:00.000Z",
                    "lastRun": "2026-02-03T07:05:00.000Z",
                },
                {
                    "id": "task2",
                    "cadence": "hourly",
                    "time": "25:00",
                    "dayOfWeek": 9,
                    "dayOfMonth": 0,
                    "monthOfYear": 12,
                    "createdAt": "2026-02-01T00:00:00.000Z",
                    "nextRun": "soon",
                    "lastRun": "bad",
                },
            ]
        )
        first, second = tasks
        assert first.cadence == "weekly"
        assert first.time == "07:05"
        assert first.day_of_week == 3
        assert first.last_run == "2026-02-03T07:05:00.000Z"
        assert second.name == "Untitled task"
        assert second.cadence == "daily"
        assert second.time == "09:00"
        assert second.day_of_week is None
        assert second.day_of_month is None
        assert second.month_of_year == 12
        assert second.next_run == "2026-02-01T00:00:00.000Z"
        assert second.last_run == EPOCH_ISO

    @pytest.mark.parametrize("stamp", OUT_OF_RANGE_STAMPS)
    def test_out_of_range_timestamps(self, stamp: str) -> None:
        """Every entity decoder survives timestamps it cannot format."""
        assert decode_spaces([{"id": "s", "createdAt": stamp}])[0].created_at == EPOCH_ISO
        assert decode_collections([{"id": "c", "createdAt": stamp}])[0].created_at == EPOCH_ISO
        assert decode_files([{"id": "f", "addedAt": stamp}])[0].added_at == EPOCH_ISO
        [task] = decode_tasks(
            [{"id": "t", "createdAt": stamp, "nextRun": stamp, "lastRun": stamp}]
        )
        assert task.created_at == EPOCH_ISO
        assert task.next_run == EPOCH_ISO
        assert task.last_run == EPOCH_ISO

    def test_normalize_iso_in_range(self) -> None:
        """Offsets inside the range are converted to UTC."""
        assert normalize_iso("2026-02-08T13:00:00+01:00", EPOCH_ISO) == "2026-02-08T12:00:00.000Z"
        assert normalize_iso("0001-01-01T01:00:00+01:00", EPOCH_ISO) == "0001-01-01T00:00:00.000Z"


# ---------------------------------------------------------------------------
# Keyed maps and id lists
# ---------------------------------------------------------------------------


class TestDecodeMaps:
    """Tests for note, tag, recent-query and selection decoders."""

    def test_notes(self) -> None:
        """Blank notes and non-string values are dropped."""
        notes = decode_notes({"t1": "keep", "t2": "   ", "t3": 5, "": "no key"})
        assert notes == {"t1": "keep"}
        assert decode_notes(["t1"]) == {}

    def test_space_tags(self) -> None:
        """Tag lists are cleaned per space."""
        tags = decode_space_tags({"s1": [" a ", "a", 3, "b"], "s2": "x"})
        assert tags == {"s1": ["a", "b"], "s2": []}

    def test_recent_queries(self) -> None:
        """Recent queries are trimmed, de-duplicated and capped."""
        raw = [" one ", "two", "one", "", 3, "three", "four", "five", "six"]
        assert decode_recent_queries(raw) == ["one", "two", "three", "four", "five"]
        assert decode_recent_queries(raw, limit=2) == ["one", "two"]
        assert decode_recent_queries({"a": 1}) == []

    def test_selected_thread_ids(self) -> None:
        """Selected ids are trimmed strings without repeats."""
        assert decode_selected_thread_ids(["t1", " t2", "t1", None]) == ["t1", "t2"]

    def test_verbatim_flag(self) -> None:
        """Only a real boolean true enables verbatim."""
        assert decode_verbatim_flag(True) is True
        assert decode_verbatim_flag("true") is False
        assert decode_verbatim_flag(1) is False
        assert decode_verbatim_flag(None) is False
