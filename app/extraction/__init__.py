"""
Document text and field extraction.
"""

from app.extraction.field_extractor import FieldExtractor
from app.extraction.text import DocumentTextExtractor

__all__ = ["DocumentTextExtractor", "FieldExtractor"]
