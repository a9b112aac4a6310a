"""
stage package

Stage diagram item operations, the pointer gesture state machine, and
the pixel to logical coordinate mapping.
"""

from stage.diagram import add_item, items_of, place_item, remove_item
from stage.gesture import GestureState, StageGesture
from stage.mapping import STAGE_VIEWBOX, logical_from_scene, scene_from_logical

__all__ = [
    "add_item",
    "items_of",
    "place_item",
    "remove_item",
    "GestureState",
    "StageGesture",
    "STAGE_VIEWBOX",
    "logical_from_scene",
    "scene_from_logical",
]
