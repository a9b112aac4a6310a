"""
document/model.py

The run sheet document: an ordered, immutable sequence of segments.

Every operation returns a new ``RunSheet`` and never mutates the one it
was called on. Operations that reference an unknown segment id return
the receiver itself, unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from models import Direction, Segment, SegmentContent, SegmentTag, SegmentType, empty_content
from utils import new_id, sanitize_content


ContentLike = Union[SegmentContent, Mapping[str, Any]]

# Built-in default document, loaded on reset and when nothing is stored
DEFAULT_SEGMENTS: Tuple[Segment, ...] = ()


def _as_content(content: ContentLike) -> SegmentContent:
    if isinstance(content, SegmentContent):
        return content
    return SegmentContent.from_dict(dict(content))


def _as_type(tag: SegmentTag) -> SegmentTag:
    return SegmentType.parse(tag)


@dataclass(frozen=True)
class RunSheet:
    """
    Immutable run sheet document.

    Attributes:
        segments: Segments in print order.
        version: Incremented on every operation that changes the
            document. Not part of equality: two sheets with the same
            segments are equal whatever their history.
    """
    segments: Tuple[Segment, ...] = ()
    version: int = field(default=0, compare=False)
    make_id: Callable[[], str] = field(default=new_id, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    # ----------------------------
    # Queries
    # ----------------------------

    def index_of(self, segment_id: str) -> int:
        """Position of *segment_id*, or -1 when absent."""
        for i, seg in enumerate(self.segments):
            if seg.id == segment_id:
                return i
        return -1

    def get(self, segment_id: str) -> Optional[Segment]:
        i = self.index_of(segment_id)
        return self.segments[i] if i >= 0 else None

    def ids(self) -> Tuple[str, ...]:
        return tuple(s.id for s in self.segments)

    def to_list(self) -> list:
        """Wire representation: a list of ``{id, type, content}`` dicts."""
        return [s.to_dict() for s in self.segments]

    # ----------------------------
    # Operations
    # ----------------------------

    def _with(self, segments: Iterable[Segment]) -> "RunSheet":
        return replace(self, segments=tuple(segments), version=self.version + 1)

    def _new_segment(self, tag: SegmentTag) -> Segment:
        tag = _as_type(tag)
        return Segment(id=self.make_id(), type=tag, content=empty_content(tag))

    def add(self, tag: SegmentTag) -> "RunSheet":
        """Append an empty segment of type *tag*."""
        return self._with(self.segments + (self._new_segment(tag),))

    def insert_after(self, segment_id: str, tag: SegmentTag) -> "RunSheet":
        """Insert an empty segment of type *tag* right after *segment_id*.

        An unknown id is a no-op; it never falls through to a prepend.
        """
        i = self.index_of(segment_id)
        if i < 0:
            return self
        segs = list(self.segments)
        segs.insert(i + 1, self._new_segment(tag))
        return self._with(segs)

    def update(self, segment_id: str, content: ContentLike) -> "RunSheet":
        """Replace a segment's content wholesale with a sanitized copy.

        Fields are not merged; callers that want a partial update must
        carry the prior fields over themselves (see :meth:`patch`).
        """
        i = self.index_of(segment_id)
        if i < 0:
            return self
        cleaned = sanitize_content(_as_content(content))
        segs = list(self.segments)
        segs[i] = replace(segs[i], content=cleaned)
        return self._with(segs)

    def patch(self, segment_id: str, **fields: Any) -> "RunSheet":
        """Update a segment from its current content with *fields* overridden.

        Convenience over :meth:`update` for callers editing one field at
        a time. Field names are ``SegmentContent`` attribute names.
        """
        seg = self.get(segment_id)
        if seg is None:
            return self
        return self.update(segment_id, replace(seg.content, **fields))

    def remove(self, segment_id: str) -> "RunSheet":
        """Delete the segment with *segment_id*."""
        if self.index_of(segment_id) < 0:
            return self
        return self._with(s for s in self.segments if s.id != segment_id)

    def move(self, segment_id: str, direction: Union[Direction, str]) -> "RunSheet":
        """Swap a segment with its neighbour; up is earlier, down is later.

        No-op at the boundary in that direction or for an unknown id.
        """
        direction = Direction(direction)
        i = self.index_of(segment_id)
        if i < 0:
            return self
        j = i - 1 if direction is Direction.UP else i + 1
        if j < 0 or j >= len(self.segments):
            return self
        segs = list(self.segments)
        segs[i], segs[j] = segs[j], segs[i]
        return self._with(segs)

    def replace_all(self, segments: Iterable[Segment]) -> "RunSheet":
        """Wholesale replacement, used by import, templates and clearing."""
        return self._with(segments)

    def reset(self) -> "RunSheet":
        """Replace with the built-in default document."""
        return self._with(DEFAULT_SEGMENTS)

    def clear(self) -> "RunSheet":
        """Replace with an empty document."""
        return self._with(())

    @classmethod
    def from_segments(cls, segments: Iterable[Segment], **kwargs: Any) -> "RunSheet":
        return cls(segments=tuple(segments), **kwargs)


def describe(sheet: RunSheet) -> Dict[str, int]:
    """Count segments per type tag, for status lines and logging."""
    counts: Dict[str, int] = {}
    for seg in sheet.segments:
        key = str(seg.type) or "UNKNOWN"
        counts[key] = counts.get(key, 0) + 1
    return counts
