"""
Vision Fallback Extractor.

When local OCR is not confident enough, the original (unpreprocessed) image
is sent to a vision-capable language model for a verbatim transcription.

Classes:
    VisionTextExtractor: Abstract capability (image bytes -> text)
    OpenAIVisionExtractor: OpenAI chat-completions implementation

Author: ML Engineering Team
"""

import base64
import threading
from abc import ABC, abstractmethod
from typing import Optional

from openai import OpenAI, OpenAIError

from config import get_config
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import VisionFallbackError
from invoice_reconciler.utils.openai_client import create_openai_client

# Initialize module logger
logger = get_logger(__name__)

TRANSCRIPTION_PROMPT = (
    "Transcribe ALL text in this invoice image exactly as written. "
    "Preserve line breaks and layout order. Copy every number, date, amount, "
    "currency symbol, person name, property name and handwritten annotation "
    "verbatim. Do not summarise, correct, translate or add commentary. "
    "Output plain text only."
)


class VisionTextExtractor(ABC):
    """
    Capability: turn image bytes into text.

    Implementations report `available == False` when they cannot be used
    (for example, missing credentials) so callers can skip them without
    raising.
    """

    name = "vision"

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the extractor can be called."""

    @abstractmethod
    def extract_text(self, image_bytes: bytes, mime_type: str) -> str:
        """
        Transcribe the image.

        Raises:
            VisionFallbackError: If the transcription fails.
        """


class OpenAIVisionExtractor(VisionTextExtractor):
    """
    Vision fallback backed by an OpenAI vision model.

    Concurrent calls are bounded by a semaphore sized to
    `vision.max_concurrent`, shared by every instance in the process.

    Attributes:
        model: Vision model name.
        client: OpenAI client, or None when no API key is configured.

    Example:
        >>> vision = OpenAIVisionExtractor()
        >>> if vision.available:
        ...     text = vision.extract_text(png_bytes, "image/png")
    """

    name = "openai-vision"

    _semaphore: Optional[threading.Semaphore] = None
    _semaphore_lock = threading.Lock()

    def __init__(self, client: Optional[OpenAI] = None) -> None:
        """
        Initialize the vision extractor.

        Args:
            client: Pre-built OpenAI client. If None, one is created from
                   the environment.
        """
        self.enabled = get_config("vision.enabled", True)
        self.model = get_config("vision.model", "gpt-4o")
        self.max_concurrent = max(1, int(get_config("vision.max_concurrent", 2)))
        self.client = client if client is not None else create_openai_client()

        if self.enabled and self.client is None:
            logger.warning("No OpenAI API key configured; vision fallback disabled")

        logger.debug(f"OpenAIVisionExtractor initialized (model={self.model})")

    @property
    def available(self) -> bool:
        return bool(self.enabled) and self.client is not None

    @classmethod
    def _rate_limiter(cls, size: int) -> threading.Semaphore:
        with cls._semaphore_lock:
            if cls._semaphore is None:
                cls._semaphore = threading.BoundedSemaphore(size)
            return cls._semaphore

    def extract_text(self, image_bytes: bytes, mime_type: str) -> str:
        """
        Send the image as a base64 data URL and return the transcription.

        Args:
            image_bytes: Original image bytes.
            mime_type: MIME type of the image.

        Returns:
            Transcribed text (may be empty).

        Raises:
            VisionFallbackError: If the extractor is unavailable or the call fails.
        """
        if not self.available:
            raise VisionFallbackError(self.name, "no API key configured or vision disabled")

        data_url = f"data:{mime_type};base64," + base64.b64encode(image_bytes).decode("ascii")
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": TRANSCRIPTION_PROMPT},
                    {"type": "image_url", "image_url": {"url": data_url, "detail": "high"}},
                ],
            }
        ]

        with self._rate_limiter(self.max_concurrent):
            logger.info(f"Requesting vision transcription from {self.model}")
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    temperature=0.0,
                    messages=messages,
                )
            except OpenAIError as e:
                logger.error(f"Vision API call failed: {e}")
                raise VisionFallbackError(self.name, str(e))

        if not response.choices:
            raise VisionFallbackError(self.name, "empty response")

        text = (response.choices[0].message.content or "").strip()
        logger.debug(f"Vision transcription returned {len(text)} chars")
        return text
