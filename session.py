"""
session.py

Operator-facing command surface for one run sheet.

The session owns the current document version. Every command computes a
new version from the current one; when it differs, the new version is
persisted and ``document_changed`` is emitted. Commands that change
nothing (unknown ids, boundary moves) persist nothing and emit nothing.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Union

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from errors import MalformedInput, UnsupportedInputKind
from models import Direction, Segment, SegmentTag, SegmentType, StageItemKind
from document.model import ContentLike, RunSheet
from document.serializer import export_document, read_import, write_export
from document.store import DocumentStore
from gemini.worker import IMAGE_SUFFIXES, ImportWorker, extract_segments, input_mime_type
from stage.diagram import StageItems, add_item, items_of, place_item, remove_item
from stage.gesture import GestureState, StageGesture
from templates import fresh_copy, scan_templates

log = logging.getLogger(__name__)

INTERCHANGE = "interchange"
SCAN = "scan"


def classify_input(path: Union[str, Path]) -> str:
    """
    Decide which import path handles *path*, from its extension alone.

    Returns:
        ``INTERCHANGE`` for ``.json``; ``SCAN`` for PDFs and images.

    Raises:
        UnsupportedInputKind: Any other extension.
    """
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return INTERCHANGE
    if suffix == ".pdf" or suffix in IMAGE_SUFFIXES:
        return SCAN
    raise UnsupportedInputKind(
        "Please upload a .json (Run Sheet) or .pdf (for AI processing)."
    )


class RunSheetSession(QObject):
    """
    Holds the current run sheet and applies operator commands to it.

    Signals:
        document_changed(object): New RunSheet version, after it is saved
        import_started(str): Background AI import began for a file
        import_finished(int): Background AI import replaced the document
        import_failed(object): RunSheetError from a background AI import

    While a background import is pending, editing commands are ignored.
    """

    document_changed = pyqtSignal(object)
    import_started = pyqtSignal(str)
    import_finished = pyqtSignal(int)
    import_failed = pyqtSignal(object)

    def __init__(self, store: DocumentStore, gesture: Optional[StageGesture] = None,
                 model: Optional[str] = None, parent=None):
        super().__init__(parent)
        self.store = store
        self.document: RunSheet = store.load()
        self.gesture = gesture or StageGesture()
        self.model = model
        self._gesture_segment: Optional[str] = None
        self._thread: Optional[QThread] = None
        self._worker: Optional[ImportWorker] = None

    # ----------------------------
    # Publication
    # ----------------------------

    @property
    def is_importing(self) -> bool:
        return self._worker is not None

    def _publish(self, new: RunSheet) -> bool:
        if new is self.document:
            return False
        self.document = new
        self.store.save(new)
        self.document_changed.emit(new)
        return True

    def _apply(self, new: RunSheet) -> bool:
        if self.is_importing:
            log.warning("Import in progress; edit ignored")
            return False
        return self._publish(new)

    # ----------------------------
    # Segment commands
    # ----------------------------

    def add_segment(self, tag: SegmentTag) -> bool:
        return self._apply(self.document.add(tag))

    def insert_after(self, segment_id: str, tag: SegmentTag) -> bool:
        return self._apply(self.document.insert_after(segment_id, tag))

    def update_segment(self, segment_id: str, content: ContentLike) -> bool:
        return self._apply(self.document.update(segment_id, content))

    def patch_segment(self, segment_id: str, **fields: Any) -> bool:
        return self._apply(self.document.patch(segment_id, **fields))

    def remove_segment(self, segment_id: str) -> bool:
        return self._apply(self.document.remove(segment_id))

    def move_segment(self, segment_id: str, direction: Union[Direction, str]) -> bool:
        return self._apply(self.document.move(segment_id, direction))

    def reset_to_default(self) -> bool:
        return self._apply(self.document.reset())

    def clear_all(self) -> bool:
        return self._apply(self.document.clear())

    def load_template(self, name: str) -> bool:
        """
        Replace the document with a fresh-id copy of a built-in template.

        Raises:
            KeyError: No template has that name.
        """
        templates = scan_templates()
        if name not in templates:
            raise KeyError(f"Unknown template {name!r}; available: {', '.join(templates) or 'none'}")
        return self._apply(self.document.replace_all(fresh_copy(templates[name], self.document.make_id)))

    # ----------------------------
    # Export / import
    # ----------------------------

    def export_document(self) -> str:
        return export_document(self.document)

    def export_to_file(self, directory: Union[str, Path], today: Optional[date] = None) -> Path:
        return write_export(self.document, Path(directory), today)

    def import_file(self, path: Union[str, Path], client: Any = None) -> bool:
        """
        Import a document file synchronously, replacing the current one.

        JSON files are taken verbatim. Scans go through the AI service and
        the import normalizer. The current document is replaced only
        after the whole import succeeded.

        Raises:
            UnsupportedInputKind: The extension matches no import path.
            MalformedInput: The file or the AI response is not a valid document.
            ServiceUnavailable: The AI service could not be used.
        """
        path = Path(path)
        kind = classify_input(path)
        if kind == INTERCHANGE:
            segments = read_import(path)
        else:
            mime_type = input_mime_type(path)
            try:
                data = path.read_bytes()
            except OSError as e:
                raise MalformedInput(f"Error reading file: {e}") from e
            segments = extract_segments(data, mime_type, self.model, client).segments
        log.info("Imported %d segments from %s", len(segments), path.name)
        return self._apply(self.document.replace_all(segments))

    def start_import(self, path: Union[str, Path]) -> None:
        """
        Import a file without blocking the caller.

        JSON files are imported immediately. Scans run on a QThread;
        completion arrives through ``import_finished`` or ``import_failed``.

        Raises:
            UnsupportedInputKind: Raised before anything is read.
            RuntimeError: An import is already pending.
        """
        if self.is_importing:
            raise RuntimeError("An import is already in progress.")
        path = Path(path)
        if classify_input(path) == INTERCHANGE:
            self.import_file(path)
            return

        self._thread = QThread()
        self._worker = ImportWorker(str(path), self.model)
        self._worker.moveToThread(self._thread)

        self._thread.started.connect(self._worker.run)
        self._worker.finished.connect(self._on_import_finished)
        self._worker.failed.connect(self._on_import_failed)

        self._worker.finished.connect(self._thread.quit)
        self._worker.failed.connect(self._thread.quit)

        self.import_started.emit(str(path))
        self._thread.start()

    def _on_import_finished(self, segments: List[Segment]) -> None:
        self._worker = None
        self._publish(self.document.replace_all(segments))
        self.import_finished.emit(len(segments))

    def _on_import_failed(self, error: Exception) -> None:
        self._worker = None
        self.import_failed.emit(error)

    # ----------------------------
    # Stage diagram commands
    # ----------------------------

    def _diagram(self, segment_id: str) -> Optional[Segment]:
        seg = self.document.get(segment_id)
        if seg is None or seg.type != SegmentType.DIAGRAM:
            return None
        return seg

    def _set_items(self, seg: Segment, before: StageItems, after: StageItems) -> bool:
        if after is before:
            return False
        return self._apply(self.document.update(seg.id, replace(seg.content, stage_items=after)))

    def add_stage_item(self, segment_id: str, kind: Union[StageItemKind, str]) -> bool:
        """Drop a new prop at the default position on a diagram."""
        seg = self._diagram(segment_id)
        if seg is None:
            return False
        items = items_of(seg)
        return self._set_items(seg, items, add_item(items, kind))

    def place_stage_item(self, segment_id: str, item_id: str, x: float, y: float) -> bool:
        """Put a diagram item at logical (x, y), clamped to the stage."""
        seg = self._diagram(segment_id)
        if seg is None:
            return False
        items = items_of(seg)
        return self._set_items(seg, items, place_item(items, item_id, x, y))

    def remove_stage_item(self, segment_id: str, item_id: str) -> bool:
        seg = self._diagram(segment_id)
        if seg is None:
            return False
        items = items_of(seg)
        return self._set_items(seg, items, remove_item(items, item_id))

    def press_stage_item(self, segment_id: str, item_id: str) -> bool:
        """Pointer down on a diagram item; a quick second press deletes it."""
        seg = self._diagram(segment_id)
        if seg is None:
            return False
        items = items_of(seg)
        known = any(i.id == item_id for i in items)
        after = self.gesture.press(items, item_id)
        # a press on an unknown item leaves any active gesture where it was
        if known:
            pressed = self.gesture.state is GestureState.PRESSED
            self._gesture_segment = segment_id if pressed else None
        return self._set_items(seg, items, after)

    def drag_stage_item(self, x: float, y: float) -> bool:
        """Pointer moved to logical (x, y) while an item is pressed."""
        if self._gesture_segment is None:
            return False
        seg = self._diagram(self._gesture_segment)
        if seg is None:
            self.release_stage()
            return False
        items = items_of(seg)
        return self._set_items(seg, items, self.gesture.move(items, x, y))

    def release_stage(self) -> None:
        """Pointer up or left the diagram."""
        self.gesture.release()
        self._gesture_segment = None
