"""
document/store.py

Persistent local state: the current document kept as one named blob.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from errors import MalformedInput
from models import Segment
from settings import get_settings
from document.model import DEFAULT_SEGMENTS, RunSheet
from document.serializer import export_document, import_document

log = logging.getLogger(__name__)


class BlobStore:
    """Minimal key-value store of text blobs."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryBlobStore(BlobStore):
    """Blob store held in a dict; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._blobs: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value


class FileBlobStore(BlobStore):
    """One file per key inside *directory*.

    Writes go to a temporary sibling first and are then renamed over the
    target, so a crash mid-write never leaves a truncated blob.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)


class DocumentStore:
    """
    Loads and saves the current document under a single blob key.

    Args:
        blobs: Backing blob store.
        key: Blob key; defaults to the configured storage key.
        default: Segments to fall back on when nothing usable is stored.
    """

    def __init__(self, blobs: BlobStore, key: Optional[str] = None,
                 default: Tuple[Segment, ...] = DEFAULT_SEGMENTS):
        self.blobs = blobs
        self.key = key or get_settings().settings.storage.blob_key
        self.default = default

    def load(self) -> RunSheet:
        """Load the stored document, or the default on absence or decode failure."""
        raw = self.blobs.get(self.key)
        if raw is None:
            return RunSheet.from_segments(self.default)
        try:
            segments = import_document(raw)
        except MalformedInput as e:
            log.warning("Stored document %r unreadable, using default: %s", self.key, e)
            return RunSheet.from_segments(self.default)
        return RunSheet.from_segments(segments)

    def save(self, sheet: RunSheet) -> None:
        self.blobs.set(self.key, export_document(sheet))
        log.debug("Saved %d segments (version %d)", len(sheet), sheet.version)


def open_default_store() -> DocumentStore:
    """Document store in the configured data directory."""
    return DocumentStore(FileBlobStore(get_settings().get_data_dir()))
