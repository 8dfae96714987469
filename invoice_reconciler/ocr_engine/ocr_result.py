"""
OCR Result Data Classes.

This module defines the data structures for OCR output: recognised words
with their confidences, grouped into lines, and the page-level result whose
aggregate confidence drives the escalation decision.

Classes:
    OCRWord: Individual recognised word
    OCRLine: Line of text containing multiple words
    OCRResult: Complete OCR output for an image
    ExtractionMethod: How the document text was obtained

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass
class OCRWord:
    """
    A single word recognised by OCR.

    Attributes:
        text: The recognised text.
        confidence: OCR confidence score (0-100).
        line_index: Index of the line this word belongs to.

    Example:
        >>> OCRWord(text="Invoice", confidence=95.5)
        OCRWord('Invoice', conf=95.5)
    """
    text: str
    confidence: float = 0.0
    line_index: int = 0

    def __repr__(self) -> str:
        return f"OCRWord('{self.text}', conf={self.confidence:.1f})"


@dataclass
class OCRLine:
    """
    A line of text containing multiple words.

    Example:
        >>> line = OCRLine(words=[OCRWord("Total:"), OCRWord("$150.00")])
        >>> line.text
        'Total: $150.00'
    """
    words: List[OCRWord] = field(default_factory=list)
    line_index: int = 0

    @property
    def text(self) -> str:
        return ' '.join(word.text for word in self.words)

    @property
    def average_confidence(self) -> float:
        if not self.words:
            return 0.0
        return sum(w.confidence for w in self.words) / len(self.words)


@dataclass
class OCRResult:
    """
    Complete OCR result for a single image.

    The text keeps one line per recognised line. The aggregate confidence
    is the mean of the word confidences unless an explicit value is given
    (vision transcriptions carry a fixed confidence and no words).

    Attributes:
        lines: Recognised lines of words.
        engine: Name of the engine that produced the result.
        processing_time: Time taken for OCR in seconds.
        explicit_text: Text to report instead of joining the lines.
        explicit_confidence: Confidence to report instead of the word mean.

    Example:
        >>> result = engine.extract_text(image)
        >>> print(f"{result.confidence:.0f}% -> {result.text!r}")
    """
    lines: List[OCRLine] = field(default_factory=list)
    engine: str = "unknown"
    processing_time: float = 0.0
    explicit_text: Optional[str] = None
    explicit_confidence: Optional[float] = None

    @classmethod
    def from_text(cls, text: str, confidence: float, engine: str = "unknown") -> 'OCRResult':
        """Build a result for text that has no word-level breakdown."""
        return cls(engine=engine, explicit_text=text, explicit_confidence=confidence)

    @classmethod
    def empty(cls, engine: str = "unknown") -> 'OCRResult':
        return cls.from_text("", 0.0, engine=engine)

    @property
    def words(self) -> List[OCRWord]:
        return [word for line in self.lines for word in line.words]

    @property
    def text(self) -> str:
        if self.explicit_text is not None:
            return self.explicit_text
        return '\n'.join(line.text for line in self.lines)

    @property
    def confidence(self) -> float:
        """Aggregate confidence, 0-100."""
        if self.explicit_confidence is not None:
            return self.explicit_confidence
        words = self.words
        if not words:
            return 0.0
        return sum(w.confidence for w in words) / len(words)

    @property
    def word_count(self) -> int:
        return len(self.words)

    def is_empty(self) -> bool:
        return not self.text.strip()

    def __repr__(self) -> str:
        return (
            f"OCRResult(engine={self.engine!r}, words={self.word_count}, "
            f"confidence={self.confidence:.1f}%)"
        )


class ExtractionMethod(str, Enum):
    """How the document text was obtained."""
    DIRECT_TEXT = "direct_text"
    LOCAL_OCR = "local_ocr"
    VISION_FALLBACK = "vision_fallback"
    LOCAL_OCR_DEGRADED = "local_ocr_degraded"
