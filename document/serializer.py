"""
document/serializer.py

Interchange format: the full document as a JSON array of
``{id, type, content}`` objects.

Import trusts its own prior output. It checks structure only (an array
of records that carry both ``type`` and ``content``) and never
sanitizes, deduplicates or reclassifies.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional, Set

from errors import MalformedInput
from models import Segment
from schemas import validate_interchange
from settings import get_settings
from utils import new_id
from document.model import RunSheet

log = logging.getLogger(__name__)


def export_document(sheet: RunSheet) -> str:
    """Serialize every segment verbatim, pretty-printed."""
    return json.dumps(sheet.to_list(), indent=2)


def import_document(text: str) -> List[Segment]:
    """
    Decode an exported document.

    Args:
        text: Interchange JSON text.

    Returns:
        The segments in file order. Records without an id, or whose id
        repeats an earlier record's, get a fresh id so ids stay unique.

    Raises:
        MalformedInput: The text is not JSON, not an array, or a record
            lacks ``type`` or ``content``.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedInput("Please ensure it is a valid JSON file.") from e

    if not isinstance(data, list):
        raise MalformedInput("The file must contain a list of segments.")

    ok, errors = validate_interchange(data)
    if not ok:
        raise MalformedInput("; ".join(errors))

    seen: Set[str] = set()
    segments: List[Segment] = []
    for rec in data:
        rec_id = rec.get("id")
        fresh: Optional[str] = None
        if not isinstance(rec_id, str) or not rec_id or rec_id in seen:
            fresh = new_id()
            log.warning("Record with id %r given fresh id %s", rec_id, fresh)
        seg = Segment.from_dict(rec, new_id=fresh)
        seen.add(seg.id)
        segments.append(seg)
    return segments


def export_filename(today: Optional[date] = None, prefix: Optional[str] = None) -> str:
    """Default export file name, e.g. ``run-sheet-2025-03-01.json``."""
    today = today or date.today()
    if prefix is None:
        prefix = get_settings().settings.export.filename_prefix
    return f"{prefix}-{today.isoformat()}.json"


def write_export(sheet: RunSheet, directory: Path, today: Optional[date] = None) -> Path:
    """Write the document into *directory* under its default export name.

    Returns:
        Path of the written file.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(today)
    path.write_text(export_document(sheet), encoding="utf-8")
    log.info("Exported %d segments to %s", len(sheet), path)
    return path


def read_import(path: Path) -> List[Segment]:
    """Read and decode an interchange file.

    Raises:
        MalformedInput: The file is unreadable or not a valid document.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedInput(f"Error reading file: {e}") from e
    return import_document(text)
