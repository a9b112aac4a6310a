"""
gemini package

Gemini AI integration for bootstrapping a run sheet from a scanned document.
"""

from gemini.normalizer import normalize_response
from gemini.worker import ImportWorker, extract_segments

__all__ = ["ImportWorker", "extract_segments", "normalize_response"]
