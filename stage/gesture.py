"""
stage/gesture.py

Pointer gesture state machine for a stage diagram.

    IDLE --press--> PRESSED --move--> DRAGGING --release/leave--> IDLE
                       \\--release/leave--> IDLE (inert single press)

A press that follows the previous press on *any* item within the
double-click threshold deletes the pressed item and leaves the machine
in IDLE. The threshold is global rather than per-item, so a quick press
on item A then item B deletes B.

The machine works purely in logical 0-100 stage coordinates; mapping
from pixels is the rendering side's job (see stage.mapping).
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from settings import get_settings
from stage.diagram import StageItems, place_item, remove_item

log = logging.getLogger(__name__)


class GestureState(str, Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    DRAGGING = "dragging"


class StageGesture:
    """
    Tracks one pointer session over one diagram.

    Each event method takes the current item tuple and returns the item
    tuple to publish, which is the same object when nothing changed.

    Args:
        double_click_s: Threshold between presses, in seconds. Defaults
            to the configured ``stage.double_click_ms``.
        clock: Monotonic time source in seconds.
        read_only: Ignore every gesture.
    """

    def __init__(self, double_click_s: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic,
                 read_only: bool = False):
        if double_click_s is None:
            double_click_s = get_settings().settings.stage.double_click_ms / 1000.0
        self.double_click_s = double_click_s
        self.clock = clock
        self.read_only = read_only
        self.state = GestureState.IDLE
        self.active_id: Optional[str] = None
        self.moved = False
        self._last_press: Optional[float] = None

    def press(self, items: StageItems, item_id: str) -> StageItems:
        """Pointer down on *item_id*."""
        if self.read_only or not any(i.id == item_id for i in items):
            return items

        now = self.clock()
        if self._last_press is not None and now - self._last_press < self.double_click_s:
            log.debug("Double press on %s, removing", item_id)
            self._last_press = None
            self._to_idle()
            return remove_item(items, item_id)

        self._last_press = now
        self.state = GestureState.PRESSED
        self.active_id = item_id
        self.moved = False
        return items

    def move(self, items: StageItems, x: float, y: float) -> StageItems:
        """Pointer moved to logical (x, y); drags the pressed item."""
        if self.read_only or self.state is GestureState.IDLE or self.active_id is None:
            return items
        if not any(i.id == self.active_id for i in items):
            # item vanished under the pointer
            self._to_idle()
            return items
        self.state = GestureState.DRAGGING
        self.moved = True
        return place_item(items, self.active_id, x, y)

    def release(self) -> None:
        """Pointer up, or pointer left the diagram bounds."""
        if self.state is GestureState.PRESSED and not self.moved:
            log.debug("Inert press on %s", self.active_id)
        self._to_idle()

    leave = release

    def _to_idle(self) -> None:
        self.state = GestureState.IDLE
        self.active_id = None
        self.moved = False
