"""Tests for stage diagram item operations, the gesture state machine and
coordinate mapping (stage/diagram.py, stage/gesture.py, stage/mapping.py).
"""
from __future__ import annotations

import pytest
from PyQt6.QtCore import QPointF, QRectF

from models import Segment, SegmentContent, SegmentType, StageItem, StageItemKind
from stage.diagram import add_item, items_of, place_item, remove_item
from stage.gesture import GestureState, StageGesture
from stage.mapping import STAGE_VIEWBOX, logical_from_scene, scene_from_logical


@pytest.fixture
def items():
    return (
        StageItem("a", "lectern-blue", 50.0, 20.0),
        StageItem("b", "mic-red", 10.0, 90.0),
    )


# ─────────────────────────────────────────────────────────
# Item list operations
# ─────────────────────────────────────────────────────────


class TestDiagramItems:
    def test_add_at_centre(self, make_id):
        out = add_item((), StageItemKind.CHAIR, make_id)
        assert out == (StageItem("id-1", "chair", 50.0, 50.0),)

    def test_add_accepts_string_kind(self, items, make_id):
        out = add_item(items, "mic-yellow", make_id)
        assert out[:2] == items
        assert out[2].kind == "mic-yellow"

    def test_add_unknown_kind(self):
        with pytest.raises(ValueError):
            add_item((), "piano")

    def test_add_skips_taken_id(self, items):
        ids = iter(["a", "b", "c"])
        out = add_item(items, "table", lambda: next(ids))
        assert out[-1].id == "c"

    def test_add_uses_configured_position(self, isolated_settings, make_id):
        isolated_settings.settings.stage.default_x = 25.0
        out = add_item((), "table", make_id)
        assert (out[0].x, out[0].y) == (25.0, 50.0)

    def test_place_clamps(self, items):
        out = place_item(items, "a", 150.0, -10.0)
        assert (out[0].x, out[0].y) == (100.0, 0.0)
        assert out[1] == items[1]

    def test_place_unknown_is_noop(self, items):
        assert place_item(items, "zz", 1, 1) is items

    def test_remove(self, items):
        assert remove_item(items, "a") == (items[1],)

    def test_remove_unknown_is_noop(self, items):
        assert remove_item(items, "zz") is items

    def test_items_of(self):
        assert items_of(Segment("n", SegmentType.NOTE)) == ()
        seg = Segment("d", SegmentType.DIAGRAM, SegmentContent(stage_items=(StageItem("a", "chair"),)))
        assert items_of(seg)[0].id == "a"


# ─────────────────────────────────────────────────────────
# Gesture state machine
# ─────────────────────────────────────────────────────────


class TestStageGesture:
    @pytest.fixture
    def gesture(self, clock):
        return StageGesture(double_click_s=0.3, clock=clock)

    def test_press_enters_pressed(self, gesture, items):
        assert gesture.press(items, "a") is items
        assert gesture.state is GestureState.PRESSED
        assert gesture.active_id == "a"

    def test_drag_moves_item(self, gesture, items):
        gesture.press(items, "a")
        out = gesture.move(items, 30.0, 40.0)
        assert gesture.state is GestureState.DRAGGING
        assert (out[0].x, out[0].y) == (30.0, 40.0)

    def test_drag_clamps(self, gesture, items):
        gesture.press(items, "b")
        out = gesture.move(items, -20.0, 140.0)
        assert (out[1].x, out[1].y) == (0.0, 100.0)

    def test_release_returns_to_idle(self, gesture, items):
        gesture.press(items, "a")
        gesture.move(items, 30.0, 40.0)
        gesture.release()
        assert gesture.state is GestureState.IDLE
        assert gesture.active_id is None

    def test_move_without_press_is_ignored(self, gesture, items):
        assert gesture.move(items, 1.0, 1.0) is items

    def test_inert_single_press(self, gesture, items):
        gesture.press(items, "a")
        gesture.release()
        assert gesture.state is GestureState.IDLE

    def test_leave_ends_drag(self, gesture, items):
        gesture.press(items, "a")
        gesture.move(items, 10.0, 10.0)
        gesture.leave()
        assert gesture.move(items, 99.0, 99.0) is items

    def test_double_press_deletes(self, gesture, items, clock):
        gesture.press(items, "a")
        gesture.release()
        clock.advance(0.1)
        out = gesture.press(items, "a")
        assert [i.id for i in out] == ["b"]
        assert gesture.state is GestureState.IDLE

    def test_slow_second_press_does_not_delete(self, gesture, items, clock):
        gesture.press(items, "a")
        gesture.release()
        clock.advance(0.5)
        assert gesture.press(items, "a") is items
        assert gesture.state is GestureState.PRESSED

    def test_just_past_threshold(self, gesture, items, clock):
        gesture.press(items, "a")
        gesture.release()
        clock.advance(0.31)
        assert gesture.press(items, "a") is items

    def test_threshold_is_global_across_items(self, gesture, items, clock):
        gesture.press(items, "a")
        gesture.release()
        clock.advance(0.1)
        out = gesture.press(items, "b")
        assert [i.id for i in out] == ["a"]

    def test_press_after_delete_starts_fresh(self, gesture, items, clock):
        gesture.press(items, "a")
        clock.advance(0.1)
        out = gesture.press(items, "a")
        clock.advance(0.1)
        assert gesture.press(out, "b") is out
        assert gesture.state is GestureState.PRESSED

    def test_press_unknown_item(self, gesture, items):
        assert gesture.press(items, "zz") is items
        assert gesture.state is GestureState.IDLE

    def test_read_only_ignores_everything(self, items, clock):
        gesture = StageGesture(double_click_s=0.3, clock=clock, read_only=True)
        assert gesture.press(items, "a") is items
        clock.advance(0.1)
        assert gesture.press(items, "a") is items
        assert gesture.move(items, 1.0, 1.0) is items
        assert gesture.state is GestureState.IDLE

    def test_threshold_from_settings(self, isolated_settings, clock):
        isolated_settings.settings.stage.double_click_ms = 500
        assert StageGesture(clock=clock).double_click_s == 0.5

    def test_item_vanished_mid_drag(self, gesture, items):
        gesture.press(items, "a")
        remaining = (items[1],)
        assert gesture.move(remaining, 5.0, 5.0) is remaining
        assert gesture.state is GestureState.IDLE


# ─────────────────────────────────────────────────────────
# Coordinate mapping
# ─────────────────────────────────────────────────────────


class TestMapping:
    def test_viewbox(self):
        assert (STAGE_VIEWBOX.width(), STAGE_VIEWBOX.height()) == (400.0, 120.0)

    def test_centre(self):
        assert logical_from_scene(QPointF(200, 60), STAGE_VIEWBOX) == (50.0, 50.0)

    def test_offset_bounds(self):
        bounds = QRectF(100, 100, 200, 50)
        assert logical_from_scene(QPointF(150, 125), bounds) == (25.0, 50.0)

    def test_outside_not_clamped(self):
        x, y = logical_from_scene(QPointF(-40, 180), STAGE_VIEWBOX)
        assert x == -10.0
        assert y == 150.0

    def test_empty_bounds(self):
        with pytest.raises(ValueError):
            logical_from_scene(QPointF(0, 0), QRectF(0, 0, 0, 10))

    def test_inverse(self):
        p = scene_from_logical(25.0, 75.0)
        assert (p.x(), p.y()) == (100.0, 90.0)
        assert logical_from_scene(p, STAGE_VIEWBOX) == (25.0, 75.0)
