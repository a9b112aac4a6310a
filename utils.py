"""
utils.py

Utility functions for the Run Sheet Builder.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import replace
from typing import Any, Optional

from models import SegmentContent


# "stage layout" with any run of whitespace between the words, plus the
# whitespace around it so the remainder collapses to single spaces.
_STAGE_LAYOUT_RE = re.compile(r"\s*stage\s+layout\s*", re.IGNORECASE)


def new_id() -> str:
    """Return a fresh opaque identifier. Ids are never reused."""
    return uuid.uuid4().hex


def sanitize_title(title: str) -> str:
    """
    Remove every "stage layout" phrase from a title and trim it.

    The match is case-insensitive and allows any whitespace between the
    two words. Removal repeats until no phrase remains, so nested
    occurrences like "stage stage layout layout" are gone too and the
    function is idempotent.

    Args:
        title: Free text from a title field

    Returns:
        The cleaned title
    """
    s = title
    while True:
        cleaned = _STAGE_LAYOUT_RE.sub(" ", s)
        if cleaned == s:
            break
        s = cleaned
    return s.strip()


def sanitize_content(content: SegmentContent) -> SegmentContent:
    """Return *content* with its title sanitized; other fields are untouched."""
    if not isinstance(content.title, str):
        return content
    cleaned = sanitize_title(content.title)
    if cleaned == content.title:
        return content
    return replace(content, title=cleaned)


def strip_markdown_fences(s: str) -> str:
    """
    Strip markdown code fences from a string.

    Handles formats like:
    - ```json ... ```
    - ``` ... ```

    Args:
        s: The string potentially wrapped in markdown fences

    Returns:
        The string with markdown fences removed
    """
    ss = (s or "").strip()

    # Pattern matches: ```<optional language>\n<content>\n```
    pattern = r'^```(?:\w+)?\s*\n?(.*?)\n?```\s*$'
    match = re.match(pattern, ss, re.DOTALL)
    if match:
        return match.group(1).strip()

    return ss


def extract_json_array(s: str) -> Optional[list]:
    """
    Decode a JSON array from a model response.

    Markdown fences are stripped first. Returns ``None`` when the text is
    empty, not valid JSON, or decodes to anything other than an array.
    """
    ss = strip_markdown_fences(s)
    if not ss:
        return None
    try:
        parsed: Any = json.loads(ss)
    except ValueError:
        return None
    if not isinstance(parsed, list):
        return None
    return parsed
