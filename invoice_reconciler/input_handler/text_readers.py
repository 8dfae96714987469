"""
Text Readers Module.

Text acquisition for documents that are not images:
    - PDF: embedded text via pdfplumber; scanned PDFs (almost no embedded
      text) are rendered to page images with pdf2image so the OCR
      escalation controller can read them
    - DOCX: paragraph and table text via python-docx
    - Plain text: UTF-8 with replacement of undecodable bytes

Author: ML Engineering Team
"""

import io
from dataclasses import dataclass
from typing import List

import docx
import pdfplumber
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image

from config import get_config
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import CorruptedDocumentError, OCREngineNotAvailableError

from .document import RawDocument

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class PDFContent:
    """
    What a PDF yielded.

    Attributes:
        text: Embedded text of the processed pages.
        page_count: Total pages in the file.
        is_scanned: True when the embedded text is too short to trust.
    """
    text: str
    page_count: int
    is_scanned: bool


class PDFTextReader:
    """
    Reader for PDF invoices.

    Attributes:
        dpi: Resolution for rendering scanned pages.
        min_text_chars: Embedded-text length below which a PDF counts as scanned.
        max_pages: Maximum pages read or rendered.

    Example:
        >>> reader = PDFTextReader()
        >>> content = reader.read(document)
        >>> if content.is_scanned:
        ...     pages = reader.render_pages(document)
    """

    def __init__(self) -> None:
        """Initialize the PDF reader with configuration."""
        self.dpi = get_config("input.pdf.dpi", 300)
        self.min_text_chars = get_config("input.pdf.min_text_chars", 50)
        self.max_pages = get_config("input.pdf.max_pages", 3)

        logger.debug(f"PDFTextReader initialized (DPI={self.dpi}, max_pages={self.max_pages})")

    def read(self, document: RawDocument) -> PDFContent:
        """
        Extract embedded text from a PDF.

        Raises:
            CorruptedDocumentError: If pdfplumber cannot open the file.
        """
        try:
            with pdfplumber.open(io.BytesIO(document.data)) as pdf:
                page_count = len(pdf.pages)
                pages = [
                    page.extract_text() or ""
                    for page in pdf.pages[:self.max_pages]
                ]
        except Exception as e:
            raise CorruptedDocumentError(document.display_name, str(e))

        text = "\n".join(page.strip() for page in pages if page.strip())
        is_scanned = len(text.strip()) < self.min_text_chars

        if page_count > self.max_pages:
            logger.warning(
                f"PDF has {page_count} pages, reading the first {self.max_pages}"
            )

        logger.debug(
            f"PDF {document.display_name}: {page_count} page(s), "
            f"{len(text)} embedded chars ({'scanned' if is_scanned else 'digital'})"
        )
        return PDFContent(text=text, page_count=page_count, is_scanned=is_scanned)

    def render_pages(self, document: RawDocument) -> List[Image.Image]:
        """
        Render PDF pages to RGB images for OCR.

        Raises:
            OCREngineNotAvailableError: If Poppler is not installed.
            CorruptedDocumentError: If the PDF cannot be rendered.
        """
        try:
            images = convert_from_bytes(
                document.data,
                dpi=self.dpi,
                first_page=1,
                last_page=self.max_pages,
                fmt='png'
            )
        except PDFInfoNotInstalledError:
            raise OCREngineNotAvailableError("poppler (pdf2image)")
        except (PDFPageCountError, PDFSyntaxError) as e:
            raise CorruptedDocumentError(document.display_name, str(e))

        logger.info(f"Rendered {len(images)} PDF page(s) at {self.dpi} DPI")
        return [img.convert('RGB') if img.mode != 'RGB' else img for img in images]


class WordTextReader:
    """Reader for DOCX invoices (paragraphs, then table rows)."""

    def read(self, document: RawDocument) -> str:
        try:
            word_document = docx.Document(io.BytesIO(document.data))
        except Exception as e:
            raise CorruptedDocumentError(document.display_name, str(e))

        lines = [p.text for p in word_document.paragraphs if p.text.strip()]

        for table in word_document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append("  ".join(cells))

        text = "\n".join(lines)
        logger.debug(f"DOCX {document.display_name}: {len(lines)} line(s)")
        return text


class PlainTextReader:
    """Reader for plain-text invoices."""

    def read(self, document: RawDocument) -> str:
        return document.data.decode('utf-8', errors='replace')
