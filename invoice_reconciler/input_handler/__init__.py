"""
Input Handler Module for the Invoice Reconciliation Engine.

This module provides functionality for:
    - Building validated RawDocument objects from files or uploads
    - Preprocessing scanned images for OCR (printed/handwritten profiles)
    - Reading text from PDF, DOCX and plain-text documents

Supported formats:
    - Images: PNG, JPEG, GIF, BMP, TIFF, WEBP
    - PDF (digital and scanned)
    - DOCX, TXT

Author: ML Engineering Team
"""

from .document import RawDocument, guess_mime_type, SUPPORTED_MIME_TYPES
from .handler import DocumentLoader
from .image_processor import ImagePreprocessor, PreprocessingProfile
from .text_readers import PDFTextReader, WordTextReader, PlainTextReader

__all__ = [
    'RawDocument',
    'guess_mime_type',
    'SUPPORTED_MIME_TYPES',
    'DocumentLoader',
    'ImagePreprocessor',
    'PreprocessingProfile',
    'PDFTextReader',
    'WordTextReader',
    'PlainTextReader',
]
