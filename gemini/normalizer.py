"""
gemini/normalizer.py

Repairs the untrusted segment list returned by the AI layout reader into
a well-formed document.

The reader is noisy in two known ways: it repeats the header row on every
page, and it emits session breaks and stage-diagram callouts as plain
notes. Both are fixed deterministically here rather than re-prompting.

Pipeline, in order:
    1. decode      strip markdown fences, require a JSON array
    2. convert     fresh ids, type kept as given, titles sanitized
    3. dedupe      keep the first HEADER, drop every later one
    4. reclassify  stage-diagram notes -> DIAGRAM, session-label notes -> HEADER
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Callable, Iterable, List, Optional, Tuple

from errors import ParseError
from models import Segment, SegmentContent, SegmentType
from schemas import validate_document
from utils import extract_json_array, new_id, sanitize_content

log = logging.getLogger(__name__)

STAGE_DIAGRAM_RE = re.compile(r"stage\s+diagram", re.IGNORECASE)
SESSION_LABEL_RE = re.compile(r"^(morning|afternoon|evening|session\s+\d+)$", re.IGNORECASE)


def decode_response(text: Optional[str]) -> List[Any]:
    """
    Decode the raw model response into a list of records.

    Raises:
        ParseError: The response is empty, not JSON, or not a JSON array.
    """
    if not text or not text.strip():
        raise ParseError("No response from AI.")
    records = extract_json_array(text)
    if records is None:
        raise ParseError("AI did not return a JSON array.")
    log.debug("Decoded %d records from %d chars of response", len(records), len(text))
    return records


def record_to_segment(record: Any, make_id: Callable[[], str] = new_id) -> Optional[Segment]:
    """Convert one untrusted record, or return None if it is not an object.

    Any id in the record is ignored. The type is kept as given: only exact
    wire names are recognized, anything else stays an unrecognized tag.
    Missing or non-object content becomes empty.
    """
    if not isinstance(record, dict):
        return None
    return Segment(
        id=make_id(),
        type=SegmentType.parse(record.get("type")),
        content=sanitize_content(SegmentContent.from_dict(record.get("content"))),
    )


def dedupe_headers(segments: Iterable[Segment]) -> List[Segment]:
    """Keep the first HEADER segment and drop every later one."""
    out: List[Segment] = []
    seen_header = False
    for seg in segments:
        if seg.type == SegmentType.HEADER:
            if seen_header:
                log.info("Dropped duplicate header %r", seg.content.title)
                continue
            seen_header = True
        out.append(seg)
    return out


def reclassify(seg: Segment) -> Segment:
    """
    Retype a NOTE whose text marks a stage diagram or a session break.

    - text mentioning "stage diagram" -> empty DIAGRAM
    - text that is exactly "morning", "afternoon", "evening" or
      "session <n>" (after trimming) -> HEADER with that text upper-cased
      as its subtitle

    The note's original text is discarded in both cases. Anything else is
    returned unchanged.
    """
    if seg.type != SegmentType.NOTE or not isinstance(seg.content.text, str):
        return seg

    text = seg.content.text
    if STAGE_DIAGRAM_RE.search(text):
        log.info("Reclassified note %r as diagram", text)
        return replace(seg, type=SegmentType.DIAGRAM, content=SegmentContent(stage_items=()))

    label = text.strip()
    if SESSION_LABEL_RE.match(label):
        log.info("Reclassified note %r as session header", label)
        return replace(seg, type=SegmentType.HEADER, content=SegmentContent(subtitle=label.upper()))

    return seg


def normalize_records(records: Iterable[Any], make_id: Callable[[], str] = new_id) -> Tuple[List[Segment], List[str]]:
    """
    Run conversion, header dedup and reclassification over decoded records.

    Returns:
        (segments, warnings) where warnings lists records that were dropped
        for not being objects.
    """
    warnings: List[str] = []
    converted: List[Segment] = []
    for i, rec in enumerate(records):
        seg = record_to_segment(rec, make_id)
        if seg is None:
            warnings.append(f"Record {i}: not an object, skipping")
            continue
        converted.append(seg)

    return [reclassify(s) for s in dedupe_headers(converted)], warnings


def normalize_response(text: Optional[str], make_id: Callable[[], str] = new_id) -> List[Segment]:
    """
    Full pipeline from raw response text to document segments.

    Raises:
        ParseError: The response could not be decoded as a JSON array.
    """
    records = decode_response(text)

    ok, deviations = validate_document(records, use_gemini_schema=True)
    if not ok:
        log.debug("Response deviates from extraction schema: %s", deviations)

    segments, warnings = normalize_records(records, make_id)
    for w in warnings:
        log.warning(w)
    log.info("Normalized %d records into %d segments", len(records), len(segments))
    return segments
