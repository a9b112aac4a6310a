"""Tests for the operator command surface in session.py.

The session is a QObject; signals are observed through direct
connections, so no event loop is needed.
"""
from __future__ import annotations

import json
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from document.model import RunSheet
from document.store import DocumentStore, MemoryBlobStore
from errors import MalformedInput, ParseError, UnsupportedInputKind
from models import SegmentContent, SegmentType
from session import INTERCHANGE, SCAN, RunSheetSession, classify_input
from stage.gesture import StageGesture


@pytest.fixture
def blobs():
    return MemoryBlobStore()


@pytest.fixture
def session(blobs, sample_segments, clock):
    store = DocumentStore(blobs)
    store.save(RunSheet.from_segments(sample_segments))
    s = RunSheetSession(store, gesture=StageGesture(double_click_s=0.3, clock=clock))
    s.changes = []
    s.document_changed.connect(s.changes.append)
    return s


def _stored(blobs):
    return json.loads(blobs.get("runSheetData"))


# ─────────────────────────────────────────────────────────
# Input dispatch
# ─────────────────────────────────────────────────────────


class TestClassifyInput:
    def test_json(self):
        assert classify_input("sheet.JSON") == INTERCHANGE

    def test_pdf_and_images(self):
        for name in ("scan.pdf", "scan.png", "scan.jpg", "scan.jpeg", "scan.webp"):
            assert classify_input(name) == SCAN

    def test_unsupported(self):
        with pytest.raises(UnsupportedInputKind):
            classify_input("notes.docx")


# ─────────────────────────────────────────────────────────
# Segment commands
# ─────────────────────────────────────────────────────────


class TestSegmentCommands:
    def test_loads_stored_document(self, session, sample_segments):
        assert list(session.document) == sample_segments

    def test_add_persists_and_emits(self, session, blobs):
        assert session.add_segment(SegmentType.NOTE)
        assert len(session.changes) == 1
        assert session.changes[0] is session.document
        assert _stored(blobs)[-1]["type"] == "NOTE"

    def test_noop_emits_nothing(self, session, blobs):
        before = blobs.get("runSheetData")
        assert not session.remove_segment("missing")
        assert not session.move_segment("h", "up")
        assert not session.insert_after("missing", SegmentType.NOTE)
        assert session.changes == []
        assert blobs.get("runSheetData") == before

    def test_update_sanitizes(self, session):
        session.update_segment("h", {"title": "Stage Layout Morning"})
        assert session.document.get("h").content.title == "Morning"

    def test_patch(self, session):
        session.patch_segment("t", text="Song")
        assert session.document.get("t").content == SegmentContent(time="9:30", text="Song")

    def test_move(self, session):
        session.move_segment("d", "up")
        assert session.document.ids() == ("h", "t", "d", "c")

    def test_reset_and_clear(self, session, blobs):
        session.clear_all()
        assert len(session.document) == 0
        assert _stored(blobs) == []
        session.add_segment(SegmentType.NOTE)
        session.reset_to_default()
        assert len(session.document) == 0

    def test_load_template_fresh_ids(self, session):
        session.load_template("circuit-assembly-2025")
        assert session.document.segments[0].type is SegmentType.HEADER
        assert "ca-header" not in session.document.ids()

    def test_unknown_template(self, session):
        with pytest.raises(KeyError):
            session.load_template("nope")
        assert session.changes == []


# ─────────────────────────────────────────────────────────
# Export / import
# ─────────────────────────────────────────────────────────


class TestExportImport:
    def test_export_to_file(self, session, tmp_path):
        path = session.export_to_file(tmp_path, date(2025, 3, 1))
        assert path.name == "run-sheet-2025-03-01.json"
        assert len(json.loads(path.read_text())) == 4

    def test_import_json(self, session, tmp_path):
        path = tmp_path / "in.json"
        path.write_text(json.dumps([{"id": "x", "type": "NOTE", "content": {"text": "hi"}}]))
        assert session.import_file(path)
        assert session.document.ids() == ("x",)

    def test_malformed_import_leaves_document(self, session, tmp_path, sample_segments):
        path = tmp_path / "in.json"
        path.write_text('{"not": "a list"}')
        with pytest.raises(MalformedInput):
            session.import_file(path)
        assert list(session.document) == sample_segments
        assert session.changes == []

    def test_unsupported_kind_reads_nothing(self, session, tmp_path):
        with pytest.raises(UnsupportedInputKind):
            session.import_file(tmp_path / "absent.docx")

    def test_scan_import(self, session, tmp_path):
        path = tmp_path / "scan.pdf"
        path.write_bytes(b"%PDF-1.4")
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(
            text='[{"type": "HEADER", "content": {"title": "A"}}, {"type": "NOTE", "content": {"text": "Evening"}}]',
            usage_metadata=None,
        )
        session.import_file(path, client=client)
        assert [s.type for s in session.document] == [SegmentType.HEADER, SegmentType.HEADER]
        assert session.document.segments[1].content.subtitle == "EVENING"

    def test_scan_parse_failure_leaves_document(self, session, tmp_path, sample_segments):
        path = tmp_path / "scan.pdf"
        path.write_bytes(b"%PDF-1.4")
        client = MagicMock()
        client.models.generate_content.return_value = SimpleNamespace(text="nope", usage_metadata=None)
        with pytest.raises(ParseError):
            session.import_file(path, client=client)
        assert list(session.document) == sample_segments

    def test_background_result_publishes(self, session):
        seg_list = [RunSheet().add(SegmentType.NOTE).segments[0]]
        counts = []
        session.import_finished.connect(counts.append)
        session._on_import_finished(seg_list)
        assert list(session.document) == seg_list
        assert counts == [1]

    def test_edits_ignored_while_importing(self, session):
        session._worker = object()
        assert not session.add_segment(SegmentType.NOTE)
        session._on_import_failed(ParseError("x"))
        assert not session.is_importing
        assert session.add_segment(SegmentType.NOTE)


# ─────────────────────────────────────────────────────────
# Stage diagram commands
# ─────────────────────────────────────────────────────────


class TestStageCommands:
    def _items(self, session):
        return session.document.get("d").content.stage_items

    def test_add_item_at_centre(self, session):
        assert session.add_stage_item("d", "lectern-blue")
        item = self._items(session)[0]
        assert (item.kind, item.x, item.y) == ("lectern-blue", 50.0, 50.0)

    def test_add_to_non_diagram_is_noop(self, session):
        assert not session.add_stage_item("t", "chair")
        assert not session.add_stage_item("missing", "chair")

    def test_place_and_remove(self, session):
        session.add_stage_item("d", "chair")
        item_id = self._items(session)[0].id
        session.place_stage_item("d", item_id, 120.0, 5.0)
        assert (self._items(session)[0].x, self._items(session)[0].y) == (100.0, 5.0)
        session.remove_stage_item("d", item_id)
        assert self._items(session) == ()

    def test_drag_gesture(self, session):
        session.add_stage_item("d", "mic-blue")
        item_id = self._items(session)[0].id
        assert not session.press_stage_item("d", item_id)
        assert session.drag_stage_item(10.0, 20.0)
        session.release_stage()
        item = self._items(session)[0]
        assert (item.x, item.y) == (10.0, 20.0)
        assert not session.drag_stage_item(30.0, 30.0)

    def test_press_on_unknown_item_keeps_active_diagram(self, session):
        session.add_stage_item("d", "chair")
        item_id = self._items(session)[0].id
        session.add_segment(SegmentType.DIAGRAM)
        other = session.document.segments[-1].id
        session.press_stage_item("d", item_id)
        assert not session.press_stage_item(other, "missing")
        assert session.drag_stage_item(70.0, 30.0)
        item = self._items(session)[0]
        assert (item.x, item.y) == (70.0, 30.0)
        assert session.document.get(other).content.stage_items == ()

    def test_double_press_deletes(self, session, clock):
        session.add_stage_item("d", "table")
        item_id = self._items(session)[0].id
        session.press_stage_item("d", item_id)
        session.release_stage()
        clock.advance(0.1)
        assert session.press_stage_item("d", item_id)
        assert self._items(session) == ()

    def test_other_segments_untouched(self, session, sample_segments):
        session.add_stage_item("d", "chair")
        assert list(session.document)[:3] == sample_segments[:3]
