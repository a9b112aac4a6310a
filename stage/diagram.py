"""
stage/diagram.py

Operations on a diagram's item list. Item lists are tuples; every
operation returns a new tuple and leaves its input alone.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple, Union

from models import Segment, StageItem, StageItemKind
from settings import get_settings
from utils import new_id

StageItems = Tuple[StageItem, ...]


def items_of(segment: Segment) -> StageItems:
    """The segment's stage items, empty when it has none."""
    return segment.content.stage_items or ()


def add_item(
    items: StageItems,
    kind: Union[StageItemKind, str],
    make_id: Callable[[], str] = new_id,
    x: Optional[float] = None,
    y: Optional[float] = None,
) -> StageItems:
    """
    Append a new prop at the default drop position.

    Args:
        items: Current items.
        kind: One of the StageItemKind values.
        make_id: Id factory; ids must stay unique within the diagram.
        x, y: Drop position; defaults to the configured position (centre).

    Raises:
        ValueError: *kind* is not a known prop kind.
    """
    kind = StageItemKind(kind)
    stage = get_settings().settings.stage
    item_id = make_id()
    while any(i.id == item_id for i in items):
        item_id = make_id()
    item = StageItem(id=item_id, kind=kind.value).moved_to(
        stage.default_x if x is None else x,
        stage.default_y if y is None else y,
    )
    return items + (item,)


def place_item(items: StageItems, item_id: str, x: float, y: float) -> StageItems:
    """Move *item_id* to (x, y), clamped to the stage. Unknown ids are a no-op."""
    if not any(i.id == item_id for i in items):
        return items
    return tuple(i.moved_to(x, y) if i.id == item_id else i for i in items)


def remove_item(items: StageItems, item_id: str) -> StageItems:
    """Drop *item_id*. Unknown ids are a no-op."""
    if not any(i.id == item_id for i in items):
        return items
    return tuple(i for i in items if i.id != item_id)
