"""
models.py

Data models and constants for the Run Sheet Builder.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


# ----------------------------
# Segment types
# ----------------------------

class SegmentType(str, Enum):
    """Closed set of segment type tags, valued by their wire names."""
    HEADER = "HEADER"
    NOTE = "NOTE"
    TIME_BOX = "TIME_BOX"
    CUE = "CUE"
    SPEAKER = "SPEAKER"
    DIAGRAM = "DIAGRAM"
    PAGE_BREAK = "PAGE_BREAK"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> Union["SegmentType", str]:
        """Return the matching member, or the raw value as an unrecognized tag.

        Only exact wire names match. Anything else is kept as a plain
        string so it can round-trip untouched.
        """
        if isinstance(value, cls):
            return value
        text = "" if value is None else str(value)
        try:
            return cls(text)
        except ValueError:
            return text


# A segment type is either a known member or an unrecognized raw tag
SegmentTag = Union[SegmentType, str]


def is_known_type(tag: SegmentTag) -> bool:
    """True if *tag* is one of the closed set of segment types."""
    return isinstance(tag, SegmentType)


# ----------------------------
# Stage items
# ----------------------------

class StageItemKind(str, Enum):
    """Prop icons that can be placed on a stage diagram."""
    LECTERN_BLUE = "lectern-blue"
    STAND_BLUE = "stand-blue"
    MIC_GREY = "mic-grey"
    MIC_YELLOW = "mic-yellow"
    MIC_RED = "mic-red"
    MIC_BLUE = "mic-blue"
    CHAIR = "chair"
    TABLE = "table"

    def __str__(self) -> str:
        return self.value


STAGE_MIN = 0.0
STAGE_MAX = 100.0


@dataclass(frozen=True)
class StageItem:
    """A prop placed on a diagram, in the 0-100 logical stage space."""
    id: str
    kind: str
    x: float = 50.0
    y: float = 50.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Optional["StageItem"]:
        """Build a StageItem from its wire dict ``{id, type, x, y}``.

        Returns ``None`` for records that are not dicts. A record without
        an id gets a fresh one. Coordinates that are missing or not
        numeric fall back to the stage centre; all coordinates are
        clamped into range.
        """
        if not isinstance(d, dict):
            return None
        item_id = d.get("id") or uuid.uuid4().hex
        kind = d.get("type", d.get("kind", ""))
        return cls(
            id=str(item_id),
            kind=str(kind),
            x=clamp_coordinate(_to_float(d.get("x"), 50.0)),
            y=clamp_coordinate(_to_float(d.get("y"), 50.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.kind, "x": self.x, "y": self.y}

    def moved_to(self, x: float, y: float) -> "StageItem":
        """Return a copy placed at (x, y), clamped to the stage."""
        return replace(self, x=clamp_coordinate(x), y=clamp_coordinate(y))


def clamp_coordinate(v: float) -> float:
    """Clamp a logical stage coordinate into [0, 100]."""
    return max(STAGE_MIN, min(STAGE_MAX, v))


def _to_float(v: Any, default: float) -> float:
    if isinstance(v, bool):
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _parse_stage_items(records: list) -> Tuple[StageItem, ...]:
    """Parse wire stage items, skipping non-objects. Repeated ids get a fresh one."""
    items = []
    seen = set()
    for rec in records:
        item = StageItem.from_dict(rec)
        if item is None:
            continue
        if item.id in seen:
            item = replace(item, id=uuid.uuid4().hex)
        seen.add(item.id)
        items.append(item)
    return tuple(items)


# ----------------------------
# Segment content
# ----------------------------

# python attribute name -> wire key
_CONTENT_KEYS: Tuple[Tuple[str, str], ...] = (
    ("title", "title"),
    ("subtitle", "subtitle"),
    ("date", "date"),
    ("text", "text"),
    ("time", "time"),
    ("cue_label", "cueLabel"),
    ("cue_id", "cueId"),
    ("cue_desc", "cueDesc"),
    ("is_media", "isMedia"),
)


@dataclass(frozen=True)
class SegmentContent:
    """Variant payload of a segment.

    Every field is optional; ``None`` means the field is absent. Fields
    that do not apply to the owning segment's type are kept as-is, so a
    re-typed segment may carry stale values. Keys the model does not know
    are preserved in ``extras`` so they survive an export round-trip.
    """
    # Header
    title: Optional[str] = None
    subtitle: Optional[str] = None
    date: Optional[str] = None
    # Note / Speaker / TimeBox
    text: Optional[str] = None
    # TimeBox
    time: Optional[str] = None
    # Cue
    cue_label: Optional[str] = None
    cue_id: Optional[str] = None
    cue_desc: Optional[str] = None
    is_media: Optional[bool] = None
    # Diagram
    stage_items: Optional[Tuple[StageItem, ...]] = None
    extras: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, d: Any) -> "SegmentContent":
        """Create content from a wire dict, keeping unknown keys in ``extras``.

        Args:
            d: Content dict; anything that is not a dict yields empty content.

        Returns:
            A ``SegmentContent`` instance.
        """
        if not isinstance(d, dict):
            return cls()
        wire_to_attr = {wire: attr for attr, wire in _CONTENT_KEYS}
        known: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}
        for k, v in d.items():
            if k in wire_to_attr:
                known[wire_to_attr[k]] = v
            elif k == "stageItems":
                if isinstance(v, list):
                    known["stage_items"] = _parse_stage_items(v)
                else:
                    extras[k] = v
            else:
                extras[k] = v
        return cls(**known, extras=extras)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize present fields to a wire dict, merging extras back in."""
        d: Dict[str, Any] = {}
        for attr, wire in _CONTENT_KEYS:
            value = getattr(self, attr)
            if value is not None:
                d[wire] = value
        if self.stage_items is not None:
            d["stageItems"] = [i.to_dict() for i in self.stage_items]
        d.update(self.extras)
        return d


def empty_content(tag: SegmentTag) -> SegmentContent:
    """Type-appropriate empty content for a new segment.

    ``isMedia`` defaults on only for cues; only diagrams start with an
    empty item list.
    """
    if tag == SegmentType.CUE:
        return SegmentContent(is_media=True)
    if tag == SegmentType.DIAGRAM:
        return SegmentContent(stage_items=())
    return SegmentContent()


# ----------------------------
# Segment
# ----------------------------

@dataclass(frozen=True)
class Segment:
    """One ordered unit of a run sheet."""
    id: str
    type: SegmentTag
    content: SegmentContent = field(default_factory=SegmentContent)

    @property
    def is_recognized(self) -> bool:
        return is_known_type(self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": str(self.type), "content": self.content.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any], new_id: Optional[str] = None) -> "Segment":
        """Build a Segment from a trusted wire record ``{id, type, content}``.

        Args:
            d: Record dict.
            new_id: Id to use instead of the record's own.
        """
        return cls(
            id=new_id if new_id is not None else str(d.get("id", "")),
            type=SegmentType.parse(d.get("type")),
            content=SegmentContent.from_dict(d.get("content")),
        )


# ----------------------------
# Move direction
# ----------------------------

class Direction(str, Enum):
    """Direction for moving a segment: up is earlier, down is later."""
    UP = "up"
    DOWN = "down"
