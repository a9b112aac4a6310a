"""
stage/mapping.py

Conversion between rendering coordinates and the logical 0-100 stage
space. The stage silhouette has a fixed 400x120 aspect; any rendering
surface maps its own rectangle onto the logical square.
"""

from __future__ import annotations

from typing import Tuple

from PyQt6.QtCore import QPointF, QRectF

# Reference drawing area of the stage silhouette
STAGE_VIEWBOX = QRectF(0, 0, 400, 120)


def logical_from_scene(pos: QPointF, bounds: QRectF) -> Tuple[float, float]:
    """
    Express *pos* as percentages of *bounds*' width and height.

    The result is not clamped: positions outside *bounds* give values
    outside 0-100, and the diagram operations clamp them.

    Raises:
        ValueError: *bounds* has no area.
    """
    if bounds.width() <= 0 or bounds.height() <= 0:
        raise ValueError("diagram bounds have no area")
    x = (pos.x() - bounds.left()) / bounds.width() * 100.0
    y = (pos.y() - bounds.top()) / bounds.height() * 100.0
    return x, y


def scene_from_logical(x: float, y: float, bounds: QRectF = STAGE_VIEWBOX) -> QPointF:
    """Inverse of :func:`logical_from_scene`."""
    return QPointF(
        bounds.left() + x / 100.0 * bounds.width(),
        bounds.top() + y / 100.0 * bounds.height(),
    )
