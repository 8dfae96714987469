"""
Tesseract OCR Backend.

This module provides OCR functionality using Tesseract (pytesseract).

Features:
    - Word-level confidence scores
    - Line grouping by Tesseract block/paragraph/line numbers
    - Configurable language, page segmentation and engine modes

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package

Author: ML Engineering Team
"""

import time
from pathlib import Path
from typing import Dict, List, Tuple, Union

import pytesseract
from PIL import Image

from config import get_config
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError
from .ocr_result import OCRLine, OCRResult, OCRWord

# Initialize module logger
logger = get_logger(__name__)

ImageSource = Union[str, Path, Image.Image]


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Tesseract must be installed on the system; its presence is checked the
    first time the backend is used.

    Attributes:
        language: Tesseract language code (e.g., "eng")
        psm: Page Segmentation Mode (3 = fully automatic)
        oem: OCR Engine Mode (0-3)
        extra_config: Additional Tesseract flags

    Example:
        >>> backend = TesseractBackend()
        >>> result = backend.extract("scan.png")
        >>> print(f"{result.word_count} words at {result.confidence:.0f}%")
    """

    name = "tesseract"

    def __init__(self) -> None:
        """Initialize the Tesseract backend with configuration."""
        self.language = get_config("ocr.tesseract.lang", "eng")
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "-c preserve_interword_spaces=1")
        self._version = None

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def ensure_available(self) -> None:
        """
        Check that the Tesseract binary can be run.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        if self._version is not None:
            return

        try:
            self._version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OCREngineNotAvailableError(f"Tesseract OCR (not installed or not in PATH): {e}")

        logger.info(f"Tesseract version: {self._version}")

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def extract(self, image: ImageSource) -> OCRResult:
        """
        Extract text and word confidences from an image.

        Args:
            image: PIL Image or path to an image file.

        Returns:
            OCRResult with lines of words.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
            OCRProcessingError: If OCR processing fails.
        """
        self.ensure_available()
        start_time = time.time()

        source = str(image) if isinstance(image, (str, Path)) else "image"
        if isinstance(image, Path):
            image = str(image)

        config = self._build_config()
        logger.debug(f"Running Tesseract OCR (config: {config})")

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=config,
                output_type=pytesseract.Output.DICT
            )
        except (pytesseract.TesseractError, OSError, RuntimeError) as e:
            logger.error(f"OCR processing failed: {e}")
            raise OCRProcessingError(source, str(e))

        lines = self._group_into_lines(data)
        processing_time = time.time() - start_time

        result = OCRResult(lines=lines, engine=self.name, processing_time=processing_time)
        logger.info(
            f"OCR completed: {result.word_count} words, {len(lines)} lines, "
            f"avg confidence: {result.confidence:.1f}% ({processing_time:.2f}s)"
        )
        return result

    @staticmethod
    def _group_into_lines(data: Dict[str, List]) -> List[OCRLine]:
        """
        Group Tesseract words into lines.

        Words are keyed by (block, paragraph, line) so that lines from
        different blocks never merge. Empty tokens and the -1 confidence
        Tesseract reports for layout elements are skipped.
        """
        groups: Dict[Tuple[int, int, int], List[OCRWord]] = {}

        for i, text in enumerate(data.get('text', [])):
            if not text or not text.strip():
                continue

            conf = float(data['conf'][i])
            if conf < 0:
                continue

            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            groups.setdefault(key, []).append(OCRWord(text=text.strip(), confidence=conf))

        lines = []
        for line_index, key in enumerate(sorted(groups)):
            words = groups[key]
            for word in words:
                word.line_index = line_index
            lines.append(OCRLine(words=words, line_index=line_index))

        return lines
