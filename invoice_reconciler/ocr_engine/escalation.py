"""
OCR Escalation Controller.

Decides, per image, whether local OCR output is good enough or whether the
image must be escalated to the vision model.

States:
    PREPROCESS -> LOCAL_OCR -> ACCEPT -> DONE
                            -> VISION_FALLBACK -> DONE

    - ACCEPT when the local confidence reaches the threshold (default 60).
    - VISION_FALLBACK sends the ORIGINAL bytes, not the preprocessed ones.
      Non-empty text wins with a fixed confidence (default 95); a failure,
      an unavailable extractor or empty text keeps the local result and
      marks it as degraded.
    - A local OCR failure escalates with an empty local result.

The preprocessed temporary artifact never outlives the LOCAL_OCR step.

Usage:
    controller = OCREscalationController()
    outcome = controller.run(image_bytes, "image/jpeg", is_handwritten=False)
    print(outcome.method.value, outcome.confidence)

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from PIL import Image

from config import get_config
from invoice_reconciler.input_handler.image_processor import ImagePreprocessor, image_to_png_bytes
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import (
    CorruptedDocumentError,
    OCRError,
    VisionFallbackError,
)
from .engine import OCREngine
from .ocr_result import ExtractionMethod, OCRResult
from .vision import OpenAIVisionExtractor, VisionTextExtractor

# Initialize module logger
logger = get_logger(__name__)


class EscalationState(str, Enum):
    PREPROCESS = "preprocess"
    LOCAL_OCR = "local_ocr"
    ACCEPT = "accept"
    VISION_FALLBACK = "vision_fallback"
    DONE = "done"


@dataclass(frozen=True)
class Accepted:
    """Local OCR is confident enough."""
    text: str
    confidence: float


@dataclass(frozen=True)
class Escalate:
    """Local OCR is not trusted; try the vision model."""
    reason: str


EscalationDecision = Union[Accepted, Escalate]


def decide_escalation(ocr_result: OCRResult, threshold: float = 60) -> EscalationDecision:
    """
    Accept local OCR at or above the threshold, escalate below it.

    Example:
        >>> decide_escalation(OCRResult.from_text("Total $150", 72.0))
        Accepted(text='Total $150', confidence=72.0)
        >>> decide_escalation(OCRResult.from_text("T0ta1", 45.0))
        Escalate(reason='local confidence 45.0 below threshold 60')
    """
    confidence = ocr_result.confidence
    if confidence >= threshold:
        return Accepted(text=ocr_result.text, confidence=confidence)
    return Escalate(reason=f"local confidence {confidence:.1f} below threshold {threshold:g}")


@dataclass
class OCROutcome:
    """
    Final text of one OCR invocation and how it was reached.

    Attributes:
        text: Final raw text.
        confidence: Final source confidence (0-100).
        method: Which path produced the text.
        local_confidence: Confidence of the local OCR attempt.
        reason: Why escalation happened, if it did.
        states: States visited, in order.
        vision_error: Why the vision fallback did not help, if it failed.
    """
    text: str
    confidence: float
    method: ExtractionMethod
    local_confidence: float = 0.0
    reason: Optional[str] = None
    states: List[EscalationState] = field(default_factory=list)
    vision_error: Optional[str] = None

    @property
    def escalated(self) -> bool:
        return EscalationState.VISION_FALLBACK in self.states

    def to_dict(self) -> Dict[str, Any]:
        return {
            'confidence': round(self.confidence, 2),
            'method': self.method.value,
            'local_confidence': round(self.local_confidence, 2),
            'reason': self.reason,
            'states': [state.value for state in self.states],
            'vision_error': self.vision_error,
        }


class OCREscalationController:
    """
    Confidence-gated local OCR with vision fallback.

    Attributes:
        engine: Local OCR engine.
        vision: Vision fallback extractor.
        preprocessor: Image preprocessor producing the OCR artifact.
        threshold: Minimum local confidence to accept.
        vision_confidence: Confidence assigned to vision transcriptions.

    Example:
        >>> controller = OCREscalationController(engine=fake_engine, vision=fake_vision)
        >>> outcome = controller.run(png_bytes, "image/png")
        >>> outcome.method
        <ExtractionMethod.VISION_FALLBACK: 'vision_fallback'>
    """

    def __init__(
        self,
        engine: Optional[OCREngine] = None,
        vision: Optional[VisionTextExtractor] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        threshold: Optional[float] = None,
        vision_confidence: Optional[float] = None
    ) -> None:
        self.engine = engine or OCREngine()
        self.vision = vision or OpenAIVisionExtractor()
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.threshold = float(
            threshold if threshold is not None
            else get_config("ocr.escalation.threshold", 60)
        )
        self.vision_confidence = float(
            vision_confidence if vision_confidence is not None
            else get_config("ocr.escalation.vision_confidence", 95)
        )

        logger.debug(
            f"OCREscalationController initialized (threshold={self.threshold:g}, "
            f"vision={getattr(self.vision, 'name', 'vision')})"
        )

    def run(self, image_bytes: bytes, mime_type: str, is_handwritten: bool = False) -> OCROutcome:
        """
        Obtain text for one image.

        Args:
            image_bytes: Original image bytes.
            mime_type: MIME type of the image.
            is_handwritten: Use the handwritten preprocessing profile.

        Returns:
            OCROutcome. This method does not raise for OCR or vision failures.
        """
        states = [EscalationState.PREPROCESS]
        local = OCRResult.empty()

        try:
            with self.preprocessor.preprocessed_artifact(image_bytes, is_handwritten) as path:
                states.append(EscalationState.LOCAL_OCR)
                local = self.engine.extract_text(path)
            decision = decide_escalation(local, self.threshold)
        except (OCRError, CorruptedDocumentError, OSError) as e:
            logger.warning(f"Local OCR failed, escalating to vision: {e}")
            if EscalationState.LOCAL_OCR not in states:
                states.append(EscalationState.LOCAL_OCR)
            decision = Escalate(reason=f"local OCR failed: {e}")

        if isinstance(decision, Accepted):
            states.extend([EscalationState.ACCEPT, EscalationState.DONE])
            logger.info(f"Local OCR accepted (confidence {decision.confidence:.1f}%)")
            return OCROutcome(
                text=decision.text,
                confidence=decision.confidence,
                method=ExtractionMethod.LOCAL_OCR,
                local_confidence=decision.confidence,
                states=states,
            )

        states.append(EscalationState.VISION_FALLBACK)
        logger.info(f"Escalating to vision fallback: {decision.reason}")

        vision_text, vision_error = self._try_vision(image_bytes, mime_type)
        states.append(EscalationState.DONE)

        if vision_text:
            logger.info(
                f"Vision fallback succeeded (confidence {self.vision_confidence:g}%, "
                f"local was {local.confidence:.1f}%)"
            )
            return OCROutcome(
                text=vision_text,
                confidence=self.vision_confidence,
                method=ExtractionMethod.VISION_FALLBACK,
                local_confidence=local.confidence,
                reason=decision.reason,
                states=states,
            )

        logger.warning(
            f"Vision fallback unusable ({vision_error}); keeping degraded local OCR "
            f"result (confidence {local.confidence:.1f}%)"
        )
        return OCROutcome(
            text=local.text,
            confidence=local.confidence,
            method=ExtractionMethod.LOCAL_OCR_DEGRADED,
            local_confidence=local.confidence,
            reason=decision.reason,
            states=states,
            vision_error=vision_error,
        )

    def _try_vision(self, image_bytes: bytes, mime_type: str):
        """Return (text, error); text is None when the fallback did not help."""
        if not self.vision.available:
            return None, "vision extractor unavailable"

        try:
            text = self.vision.extract_text(image_bytes, mime_type)
        except VisionFallbackError as e:
            return None, str(e)

        if not text or not text.strip():
            return None, "vision returned empty text"
        return text, None

    def run_pages(self, pages: List[Image.Image], is_handwritten: bool = False) -> OCROutcome:
        """
        Obtain text for a multi-page scan, one escalation per page.

        Page texts are joined with blank lines and confidences averaged.
        The merged method is the weakest page method (degraded over
        vision over local).
        """
        if not pages:
            return OCROutcome(text="", confidence=0.0, method=ExtractionMethod.LOCAL_OCR_DEGRADED,
                              reason="no pages to read")

        outcomes = [
            self.run(image_to_png_bytes(page), "image/png", is_handwritten)
            for page in pages
        ]
        if len(outcomes) == 1:
            return outcomes[0]

        methods = {outcome.method for outcome in outcomes}
        for method in (ExtractionMethod.LOCAL_OCR_DEGRADED, ExtractionMethod.VISION_FALLBACK):
            if method in methods:
                break
        else:
            method = ExtractionMethod.LOCAL_OCR

        reasons = [o.reason for o in outcomes if o.reason]
        return OCROutcome(
            text="\n\n".join(o.text for o in outcomes if o.text.strip()),
            confidence=sum(o.confidence for o in outcomes) / len(outcomes),
            method=method,
            local_confidence=sum(o.local_confidence for o in outcomes) / len(outcomes),
            reason="; ".join(reasons) or None,
            states=[state for o in outcomes for state in o.states],
            vision_error="; ".join(o.vision_error for o in outcomes if o.vision_error) or None,
        )
