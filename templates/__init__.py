"""
templates/__init__.py

Built-in run sheet templates.

Each template is an interchange JSON file in this folder; the file stem
is the template name (e.g. ``circuit-assembly-2025``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import Callable, Dict, Iterable, List

from errors import MalformedInput
from models import Segment
from utils import new_id
from document.serializer import read_import

log = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.dirname(os.path.abspath(__file__))


def scan_templates() -> Dict[str, List[Segment]]:
    """Load every ``*.json`` template in the package folder.

    Files that fail to decode are skipped with a warning.

    Returns:
        Mapping of template name to its segments, sorted by name.
    """
    templates: Dict[str, List[Segment]] = {}
    for entry in sorted(os.listdir(TEMPLATE_DIR)):
        name, ext = os.path.splitext(entry)
        if ext != ".json":
            continue
        try:
            templates[name] = read_import(os.path.join(TEMPLATE_DIR, entry))
        except MalformedInput as e:
            log.warning("Skipping template %s: %s", entry, e)
    return templates


def fresh_copy(segments: Iterable[Segment], make_id: Callable[[], str] = new_id) -> List[Segment]:
    """Copy *segments* with every id replaced by a fresh one."""
    return [replace(s, id=make_id()) for s in segments]
