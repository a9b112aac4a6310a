"""Tests for title sanitizing and response decoding helpers in utils.py."""
from __future__ import annotations

import pytest

from models import SegmentContent
from utils import (
    extract_json_array,
    new_id,
    sanitize_content,
    sanitize_title,
    strip_markdown_fences,
)


# ─────────────────────────────────────────────────────────
# sanitize_title
# ─────────────────────────────────────────────────────────


class TestSanitizeTitle:
    def test_phrase_removed_and_spaces_collapsed(self):
        assert sanitize_title("Q3 Stage   Layout Plan") == "Q3 Plan"

    def test_case_insensitive(self):
        assert sanitize_title("STAGE LAYOUT") == ""
        assert sanitize_title("Main stage layout") == "Main"

    def test_newline_between_words(self):
        assert sanitize_title("Stage\nLayout for Sunday") == "for Sunday"

    def test_every_occurrence_removed(self):
        assert sanitize_title("stage layout A stage layout B") == "A B"

    def test_nested_occurrence(self):
        assert sanitize_title("stage stage layout layout") == ""

    def test_trims(self):
        assert sanitize_title("  Opening  ") == "Opening"

    def test_untouched_without_phrase(self):
        assert sanitize_title("Stage Diagram") == "Stage Diagram"

    @pytest.mark.parametrize("title", [
        "Q3 Stage   Layout Plan",
        "stage stage layout layout",
        "  Stage Layout  stage layout ",
        "Plain title",
    ])
    def test_idempotent(self, title):
        once = sanitize_title(title)
        assert sanitize_title(once) == once


class TestSanitizeContent:
    def test_only_title_changes(self):
        c = SegmentContent(title="Stage Layout Morning", text="stage layout stays")
        cleaned = sanitize_content(c)
        assert cleaned.title == "Morning"
        assert cleaned.text == "stage layout stays"

    def test_clean_content_returned_as_is(self):
        c = SegmentContent(title="Morning")
        assert sanitize_content(c) is c

    def test_no_title(self):
        c = SegmentContent(text="x")
        assert sanitize_content(c) is c


# ─────────────────────────────────────────────────────────
# Fences and JSON arrays
# ─────────────────────────────────────────────────────────


class TestStripMarkdownFences:
    def test_json_fence(self):
        assert strip_markdown_fences('```json\n[1, 2]\n```') == "[1, 2]"

    def test_bare_fence(self):
        assert strip_markdown_fences('```\n[]\n```') == "[]"

    def test_no_fence(self):
        assert strip_markdown_fences('  [1]  ') == "[1]"

    def test_none(self):
        assert strip_markdown_fences(None) == ""


class TestExtractJsonArray:
    def test_fenced_array(self):
        assert extract_json_array('```json\n[{"type": "NOTE"}]\n```') == [{"type": "NOTE"}]

    def test_object_rejected(self):
        assert extract_json_array('{"type": "NOTE"}') is None

    def test_invalid_json(self):
        assert extract_json_array("[not json") is None

    def test_empty(self):
        assert extract_json_array("") is None


def test_new_id_unique():
    ids = {new_id() for _ in range(100)}
    assert len(ids) == 100
