"""
Raw Document Model.

A RawDocument is the immutable unit of work handed to the pipeline: the
uploaded bytes, their MIME type and the handwriting hint. It is created at
the ingestion boundary and consumed once.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from invoice_reconciler.utils.helpers import get_file_extension

IMAGE_MIME_TYPES = frozenset({
    'image/png', 'image/jpeg', 'image/gif', 'image/bmp', 'image/tiff', 'image/webp',
})
PDF_MIME_TYPE = 'application/pdf'
WORD_MIME_TYPES = frozenset({
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
})
TEXT_MIME_TYPE = 'text/plain'

SUPPORTED_MIME_TYPES = sorted(
    IMAGE_MIME_TYPES | WORD_MIME_TYPES | {PDF_MIME_TYPE, TEXT_MIME_TYPE}
)

# mimetypes does not know every platform's mapping for these
_EXTENSION_MIME_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.tif': 'image/tiff',
    '.tiff': 'image/tiff',
    '.webp': 'image/webp',
    '.pdf': PDF_MIME_TYPE,
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.doc': 'application/msword',
    '.txt': TEXT_MIME_TYPE,
}


def guess_mime_type(filename: Union[str, Path]) -> str:
    """
    Guess a MIME type from a file name.

    Example:
        >>> guess_mime_type("invoice.JPG")
        'image/jpeg'
    """
    extension = get_file_extension(filename)
    if extension in _EXTENSION_MIME_TYPES:
        return _EXTENSION_MIME_TYPES[extension]
    guessed, _ = mimetypes.guess_type(str(filename))
    return guessed or 'application/octet-stream'


@dataclass(frozen=True)
class RawDocument:
    """
    Immutable uploaded document.

    Attributes:
        data: Document bytes.
        mime_type: MIME type, e.g. "image/png" or "application/pdf".
        is_handwritten: Use the handwritten preprocessing profile.
        filename: Original file name, if known.
    """
    data: bytes
    mime_type: str
    is_handwritten: bool = False
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], is_handwritten: bool = False) -> 'RawDocument':
        """Read a file from disk, guessing its MIME type from the extension."""
        path = Path(path)
        return cls(
            data=path.read_bytes(),
            mime_type=guess_mime_type(path),
            is_handwritten=is_handwritten,
            filename=path.name,
        )

    @property
    def is_image(self) -> bool:
        return self.mime_type in IMAGE_MIME_TYPES

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    @property
    def is_word(self) -> bool:
        return self.mime_type in WORD_MIME_TYPES

    @property
    def is_text(self) -> bool:
        return self.mime_type == TEXT_MIME_TYPE

    @property
    def display_name(self) -> str:
        return self.filename or f"<{self.mime_type}>"

    def __repr__(self) -> str:
        return (
            f"RawDocument(filename={self.filename!r}, mime_type={self.mime_type!r}, "
            f"size={len(self.data)}, is_handwritten={self.is_handwritten})"
        )
