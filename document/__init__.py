"""
document package

The run sheet document model, its interchange serializer, and local
persistence.
"""

from document.model import DEFAULT_SEGMENTS, RunSheet
from document.serializer import export_document, import_document
from document.store import BlobStore, DocumentStore, FileBlobStore, MemoryBlobStore

__all__ = [
    "DEFAULT_SEGMENTS",
    "RunSheet",
    "export_document",
    "import_document",
    "BlobStore",
    "DocumentStore",
    "FileBlobStore",
    "MemoryBlobStore",
]
