"""Shared fixtures for run sheet builder tests."""
from __future__ import annotations

import itertools

import pytest

import settings
from models import Segment, SegmentContent, SegmentType
from settings import SettingsManager


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings singleton at an empty directory so defaults apply."""
    manager = SettingsManager(settings_dir=tmp_path / "config")
    monkeypatch.setattr(settings, "_settings_manager", manager)
    return manager


@pytest.fixture
def make_id():
    """Deterministic id factory: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


class FakeClock:
    """Manually advanced monotonic clock, in seconds."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_segments():
    """A small run sheet: header, time box, cue, diagram."""
    return [
        Segment("h", SegmentType.HEADER, SegmentContent(title="CIRCUIT ASSEMBLY")),
        Segment("t", SegmentType.TIME_BOX, SegmentContent(time="9:30", text="Music")),
        Segment("c", SegmentType.CUE, SegmentContent(cue_label="Camera 1", is_media=False)),
        Segment("d", SegmentType.DIAGRAM, SegmentContent(stage_items=())),
    ]
