"""
gemini/worker.py

Background worker for Gemini AI run sheet extraction.

The service gets the scanned document's bytes and a fixed prompt, and
answers with text expected to decode as a JSON array of segment records.
That answer is untrusted and goes through gemini.normalizer before it
can become a document.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from PIL import Image, UnidentifiedImageError

from google import genai
from google.genai import types

from errors import MalformedInput, RunSheetError, ServiceUnavailable
from models import Segment
from settings import get_settings
from gemini.normalizer import normalize_response

log = logging.getLogger(__name__)


PDF_MIME_TYPE = "application/pdf"
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp")

STAGE_DIAGRAM_PLACEHOLDER = "[Stage Diagram detected - Please add manually]"

EXTRACTION_PROMPT = f"""You are a Run Sheet Parser. I will provide a PDF image/document of a stage run sheet.
Convert the visible content into a JSON array of "Segments" matching this structure:

type SegmentType = 'HEADER' | 'NOTE' | 'TIME_BOX' | 'CUE' | 'SPEAKER' | 'DIAGRAM';

interface Segment {{
  type: SegmentType;
  content: {{
    // For HEADER (Top of page, titles)
    title?: string;
    subtitle?: string;
    date?: string;

    // For NOTE (General instructions) or SPEAKER (Spoken text) or TIME_BOX (Events with time)
    text?: string;

    // For TIME_BOX
    time?: string; // e.g. "9:30"

    // For CUE (Rows with Camera, Media, Track info)
    cueLabel?: string; // e.g., "Camera 1", "Media"
    cueId?: string;    // e.g., "Main Speaker", "Track 001"
    cueDesc?: string;  // e.g., "Invites audience", "Theme Video"
    isMedia?: boolean; // true if it is a Media/Video/Track cue, false for Camera/Lighting

    // For DIAGRAM
    // Always return an empty array for stageItems.
    stageItems?: [];
  }}
}}

Parsing Rules:
1. Identify the main Convention Title/Theme at the top as a HEADER.
2. Identify items starting with a time (e.g. "9:30") as TIME_BOX. The description goes in 'text'.
3. Identify tabular rows with "Camera", "Media", "Track", "Preset" as CUE segments.
   - 'cueLabel' is the first column (e.g. "Camera 1 Preset 1").
   - 'cueId' is the middle column (e.g. "Main Speaker").
   - 'cueDesc' is the right column (e.g. "Invites audience").
4. Identify blocks of text instructions as NOTE.
5. Identify specific script lines or "SPEAKER" blocks as SPEAKER.
6. If you see a diagram/image of a stage, insert a NOTE segment with text "{STAGE_DIAGRAM_PLACEHOLDER}".
7. Return ONLY the JSON array. Do not wrap in markdown code blocks.
"""


@dataclass
class ExtractionResult:
    """Outcome of one successful extraction request."""
    segments: List[Segment] = field(default_factory=list)
    raw_text: str = ""
    total_tokens: int = 0


def input_mime_type(path: Path) -> str:
    """
    Declared MIME type for a scanned input file.

    PDFs are sent as-is; images are opened with Pillow so the declared
    type matches the actual encoding rather than the file name.

    Raises:
        MalformedInput: The image cannot be identified.
    """
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        return PDF_MIME_TYPE
    try:
        with Image.open(path) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise MalformedInput(f"Could not read image {path.name}: {e}") from e
    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise MalformedInput(f"Unrecognized image format in {path.name}")
    return mime


def make_client(api_key_env: Optional[str] = None) -> "genai.Client":
    """
    Create a Gemini client from the configured credential variable.

    Raises:
        ServiceUnavailable: The credential is not set.
    """
    env_name = api_key_env or get_settings().settings.gemini.api_key_env
    api_key = os.environ.get(env_name, "").strip()
    if not api_key:
        raise ServiceUnavailable(f"{env_name} is not set.")
    return genai.Client(api_key=api_key)


def extract_segments(
    data: bytes,
    mime_type: str,
    model: Optional[str] = None,
    client: Any = None,
) -> ExtractionResult:
    """
    Send a document to the AI service and normalize what comes back.

    Args:
        data: Raw bytes of the scanned document.
        mime_type: Declared MIME type of *data*.
        model: Model name; defaults to the configured model.
        client: Gemini client; one is created from the environment when
            omitted.

    Returns:
        ExtractionResult with the normalized segments.

    Raises:
        ServiceUnavailable: No credential, or the request itself failed.
        ParseError: The response is not a JSON array.
    """
    model = model or get_settings().settings.gemini.model
    if client is None:
        client = make_client()

    log.info("Requesting extraction: %d bytes of %s from %s", len(data), mime_type, model)
    try:
        response = client.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=data, mime_type=mime_type),
                EXTRACTION_PROMPT,
            ],
            config=types.GenerateContentConfig(response_mime_type="application/json"),
        )
    except Exception as e:
        log.error("Extraction request failed: %s", e)
        raise ServiceUnavailable(str(e)) from e

    text = getattr(response, "text", None) or ""

    total = 0
    usage = getattr(response, "usage_metadata", None)
    if usage:
        total = getattr(usage, "total_token_count", 0) or 0

    segments = normalize_response(text)
    return ExtractionResult(segments=segments, raw_text=text, total_tokens=total)


class ImportWorker(QObject):
    """
    Background worker that turns a scanned run sheet into segments.

    Move it to a QThread and connect ``run`` to the thread's ``started``.
    Exactly one of ``finished`` or ``failed`` is emitted per run; there is
    no cancellation and no partial progress.

    Signals:
        finished(list): Normalized segments on success
        failed(object): The RunSheetError describing the failure
        raw_text(str): Raw API response text
        tokens_used(int): Total tokens reported by the service
    """

    finished = pyqtSignal(list)
    failed = pyqtSignal(object)
    raw_text = pyqtSignal(str)
    tokens_used = pyqtSignal(int)

    def __init__(self, path: str, model: Optional[str] = None,
                 client_factory: Optional[Callable[[], Any]] = None):
        super().__init__()
        self.path = Path(path)
        self.model = model
        self.client_factory = client_factory or make_client

    def run(self):
        """Execute the extraction request."""
        try:
            mime_type = input_mime_type(self.path)
            try:
                data = self.path.read_bytes()
            except OSError as e:
                raise MalformedInput(f"Error reading file: {e}") from e

            result = extract_segments(data, mime_type, self.model, self.client_factory())

            self.raw_text.emit(result.raw_text)
            if result.total_tokens > 0:
                self.tokens_used.emit(result.total_tokens)
            self.finished.emit(result.segments)

        except RunSheetError as e:
            log.error("Import of %s failed: %s", self.path.name, e)
            self.failed.emit(e)

        except Exception as e:
            log.exception("Unexpected error importing %s", self.path.name)
            self.failed.emit(ServiceUnavailable(str(e)))
