"""
errors.py

Error taxonomy for run sheet operations.

Referencing an unknown segment id is not an error: every document
operation treats it as a silent no-op. The exceptions below cover the
failures an operator is told about. None of them leave a partially
modified document behind.
"""

from __future__ import annotations


class RunSheetError(Exception):
    """Base class for errors surfaced to the operator."""

    prefix = "Error"

    @property
    def user_message(self) -> str:
        detail = str(self)
        return f"{self.prefix}: {detail}" if detail else self.prefix


class MalformedInput(RunSheetError):
    """An interchange file or AI payload could not be decoded or is not an array."""

    prefix = "Invalid file format"


class ParseError(MalformedInput):
    """The AI service response is not a JSON array."""

    prefix = "Failed to process document layout"


class ServiceUnavailable(RunSheetError):
    """The AI service could not be reached or no credential is configured."""

    prefix = "AI service unavailable"


class UnsupportedInputKind(RunSheetError):
    """No import path handles the given file extension."""

    prefix = "Unsupported file type"
