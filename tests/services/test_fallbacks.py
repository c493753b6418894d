"""Unit tests for deterministic fallback responses."""

from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from api.services.fallbacks import (
    COMMON_TAGS,
    EDITING_DEFAULT,
    EDITING_RESPONSES,
    READING_DEFAULT,
    READING_RESPONSES,
    count_words,
    fallback_insights,
    fallback_response,
    fallback_search,
    fallback_suggestions,
    fallback_tags,
    fallback_youtube_summary,
)


def note(title="", content="", tags=(), summary=None):
    return SimpleNamespace(title=title, content=content, tags=list(tags), summary=summary)


class TestFallbackResponse:
    @pytest.mark.parametrize(
        "prompt,index",
        [
            ("Can you IMPROVE this?", 0),
            ("make it better", 0),
            ("rephrase the intro", 1),
            ("please elaborate", 2),
            ("organize my thoughts", 3),
            ("fix the grammar", 4),
        ],
    )
    def test_editing_keywords(self, prompt, index):
        assert fallback_response(prompt, is_editing=True) == EDITING_RESPONSES[index][1]

    @pytest.mark.parametrize(
        "prompt,index",
        [
            ("give me the main points", 1),
            ("explain this", 2),
            ("quiz me", 3),
        ],
    )
    def test_reading_keywords(self, prompt, index):
        assert fallback_response(prompt, is_editing=False) == READING_RESPONSES[index][1]

    def test_first_matching_row_wins(self):
        # "enhance" (row 0) and "rewrite" (row 1) both match
        assert fallback_response("rewrite and enhance", True) == EDITING_RESPONSES[0][1]

    def test_summary_includes_word_count(self):
        reply = fallback_response("summary please", False, context="a b  c\nd")

        assert "This note contains 4 words" in reply

    def test_defaults(self):
        assert fallback_response("hello", True) == EDITING_DEFAULT
        assert fallback_response("hello", False) == READING_DEFAULT

    def test_mode_selects_table(self):
        # "explain" only appears in the reading table
        assert fallback_response("explain", True) == EDITING_DEFAULT

    def test_is_deterministic(self):
        assert fallback_response("improve", True) == fallback_response("improve", True)


def test_count_words():
    assert count_words("") == 0
    assert count_words("  one\ttwo\nthree ") == 3


def test_youtube_summary_embeds_url_id_and_date():
    now = datetime(2024, 5, 6, tzinfo=UTC)

    summary = fallback_youtube_summary("https://youtu.be/abcdefghijk", "abcdefghijk", now)

    assert summary["title"] == "YouTube Summary: abcdefghijk"
    assert "https://youtu.be/abcdefghijk" in summary["content"]
    assert "**Date:** 2024-05-06" in summary["note_content"]


def test_search_matches_every_field_case_insensitively():
    notes = [
        note(title="Python"),
        note(content="about PYTHON"),
        note(tags=["python-tips"]),
        note(summary="python summary"),
        note(title="Rust"),
    ]

    assert fallback_search("python", notes) == notes[:4]


def test_insights_use_note_count_and_seed():
    now = datetime.now(UTC)

    insights = fallback_insights(7, now, id_seed=100)

    assert [i["id"] for i in insights] == ["100", "101"]
    assert "You have 7 notes" in insights[0]["content"]
    assert all(i["timestamp"] == now for i in insights)


def test_suggestions_are_fixed():
    assert [s["action"] for s in fallback_suggestions(1)] == [
        "tag_notes",
        "star_notes",
        "study_session",
    ]


class TestFallbackTags:
    def test_whole_words_only(self):
        # "keyboard" contains "key" but is not the word "key"
        assert fallback_tags("keyboard shortcuts") == list(COMMON_TAGS[:4])

    def test_multiple_tags_in_table_order(self):
        assert fallback_tags("important concept to learn") == ["learning", "ideas", "important"]
