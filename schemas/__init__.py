"""
schemas/__init__.py

JSON Schema definitions and validation utilities for run sheet documents.
Covers the interchange file format and the AI extraction response.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
INTERCHANGE_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "runsheet_schema.json")
GEMINI_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "gemini_extraction_schema.json")

# Cached schemas
_interchange_schema: Optional[Dict] = None
_gemini_schema: Optional[Dict] = None


def get_interchange_schema() -> Dict:
    """Load and return the interchange document schema."""
    global _interchange_schema
    if _interchange_schema is None:
        with open(INTERCHANGE_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _interchange_schema = json.load(f)
    return _interchange_schema


def get_gemini_schema() -> Dict:
    """Load and return the AI extraction response schema."""
    global _gemini_schema
    if _gemini_schema is None:
        with open(GEMINI_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _gemini_schema = json.load(f)
    return _gemini_schema


def _format_errors(validator: Draft202012Validator, data: Any) -> List[str]:
    messages = []
    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path]):
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        messages.append(f"{path}: {error.message}")
    return messages


# Interchange import checks structure only; value constraints such as
# coordinate ranges are reported by validate_document but never block.
STRUCTURAL_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["type", "content"],
    },
}


def validate_interchange(data: Any) -> Tuple[bool, List[str]]:
    """
    Structural check of an interchange document.

    The only requirements are a top-level array whose records are objects
    carrying both ``type`` and ``content``. A ``content`` that is not an
    object imports as empty content.

    Args:
        data: Decoded JSON

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = _format_errors(Draft202012Validator(STRUCTURAL_SCHEMA), data)
    return (not errors), errors


def validate_document(data: Any, use_gemini_schema: bool = False) -> Tuple[bool, List[str]]:
    """
    Full validation against the appropriate schema.

    Args:
        data: The JSON data to validate
        use_gemini_schema: If True, use the AI extraction schema

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    schema = get_gemini_schema() if use_gemini_schema else get_interchange_schema()
    errors = _format_errors(Draft202012Validator(schema), data)
    return (not errors), errors
