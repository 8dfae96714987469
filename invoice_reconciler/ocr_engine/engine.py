"""
Main OCR Engine Module.

This module provides the OCREngine class, the unified interface the
escalation controller uses for local OCR. The engine wraps a backend
(Tesseract by default) and accepts either a PIL image or an image path,
which is how the preprocessed temporary artifact is handed over.

Usage:
    from invoice_reconciler.ocr_engine import OCREngine

    engine = OCREngine()
    result = engine.extract_text("preprocessed.png")
    print(result.text, result.confidence)

Author: ML Engineering Team
"""

from pathlib import Path
from typing import Union

from PIL import Image

from config import get_config
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import OCRProcessingError
from .ocr_result import OCRResult
from .tesseract_backend import TesseractBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    Local OCR engine.

    Attributes:
        backend: Object exposing extract(image) -> OCRResult.

    Example:
        >>> engine = OCREngine()
        >>> result = engine.extract_text(image)
        >>> print(f"Average confidence: {result.confidence:.1f}%")
    """

    SUPPORTED_BACKENDS = ['tesseract']

    def __init__(self, backend=None) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: Backend instance. If None, the configured backend
                    (Tesseract) is created.
        """
        if backend is None:
            backend_name = get_config("ocr.engine", "tesseract")
            if backend_name not in self.SUPPORTED_BACKENDS:
                logger.warning(f"Unknown backend '{backend_name}', falling back to tesseract")
            backend = TesseractBackend()

        self.backend = backend
        logger.debug(f"OCR Engine initialized with backend: {getattr(backend, 'name', type(backend).__name__)}")

    def extract_text(self, image: Union[Image.Image, str, Path]) -> OCRResult:
        """
        Run OCR on one image.

        Args:
            image: PIL Image or path to an image file.

        Returns:
            OCRResult with text (line breaks preserved) and confidence.

        Raises:
            OCREngineNotAvailableError: If the backend is not installed.
            OCRProcessingError: If OCR fails.
        """
        if not isinstance(image, (Image.Image, str, Path)):
            raise OCRProcessingError("unknown", "Invalid image input")

        return self.backend.extract(image)

