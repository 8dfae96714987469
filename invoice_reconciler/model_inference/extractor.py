"""
AI Field Extractor Module.

This module provides the optional AI cross-validation step of the
extraction aggregator. Each backend reads the corrected invoice text and
returns the four best-guess fields: staff name, total amount, date and
property name.

Backends:
    - openai: JSON-mode chat completion (default, needs OPENAI_API_KEY)
    - qa: local Hugging Face question-answering pipeline, one question
      per field (deepset/roberta-base-squad2 by default)
    - none: regex-only mode

Author: ML Engineering Team
"""

import importlib.util
import json
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError

from config import get_config
from invoice_reconciler.postprocessor.normalizers import AmountNormalizer, DateNormalizer
from invoice_reconciler.postprocessor.validators import AmountValidator, DateValidator
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import InferenceError, ModelLoadError
from invoice_reconciler.utils.openai_client import create_openai_client

# Initialize module logger
logger = get_logger(__name__)

FIELD_PROMPT = (
    "You extract fields from cleaning-service invoices. Read the invoice text "
    "and answer with a JSON object with exactly these keys: "
    '"staffName" (the person who did the work), '
    '"totalAmount" (the invoice total as a number), '
    '"date" (the service or invoice date as YYYY-MM-DD), '
    '"propertyName" (the property, site or address serviced). '
    "Use null for any field you cannot find. Do not guess."
)

_NULL_ANSWERS = {"", "null", "none", "n/a", "unknown"}

# "-150", "- $150", ".50"
_SIGNED_NUMBER = re.compile(r'^[-.]\s*[$€£]?\d')

_date_normalizer = DateNormalizer()
_amount_normalizer = AmountNormalizer()
_amount_validator = AmountValidator()


def _validated_date(date_text: Optional[str]) -> Optional[str]:
    """ISO date for a complete, in-range answer; None otherwise."""
    iso_date = _date_normalizer.normalize(date_text) if date_text else None
    if iso_date is None:
        return None

    year, month, day = (int(part) for part in iso_date.split('-'))
    valid, message = DateValidator().validate(day, month, year)
    if not valid:
        logger.debug(f"Discarding AI date '{date_text}': {message}")
        return None
    return iso_date


def _validated_amount(amount: Any) -> Optional[float]:
    """Float for a positive, plausible answer; None otherwise."""
    value = _amount_normalizer.to_float(amount) if amount is not None else None
    if value is None:
        return None

    valid, message = _amount_validator.validate(value)
    if not valid:
        logger.debug(f"Discarding AI amount {amount!r}: {message}")
        return None
    return value


@dataclass(frozen=True)
class AIFields:
    """
    Fields returned by an AI backend, already normalized.

    Attributes:
        staff_name: Staff name, or None.
        total_amount: Total as float, or None.
        date: ISO date string, or None.
        property_name: Property name, or None.
        backend: Name of the backend that produced the fields.
    """
    staff_name: Optional[str] = None
    total_amount: Optional[float] = None
    date: Optional[str] = None
    property_name: Optional[str] = None
    backend: str = "none"

    @classmethod
    def from_answers(cls, answers: Dict[str, Any], backend: str) -> 'AIFields':
        """
        Normalize raw answers keyed staffName/totalAmount/date/propertyName.

        Values that cannot be normalized or fail validation are dropped to
        None: dates without an explicit day, month and year, dates outside
        the accepted years, and amounts that are not positive.
        """
        amount = answers.get("totalAmount")
        if isinstance(amount, str):
            amount = _clean_answer(amount)

        return cls(
            staff_name=_clean_answer(answers.get("staffName")),
            total_amount=_validated_amount(amount),
            date=_validated_date(_clean_answer(answers.get("date"))),
            property_name=_clean_answer(answers.get("propertyName")),
            backend=backend,
        )

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.staff_name, self.total_amount, self.date, self.property_name)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'staff_name': self.staff_name,
            'total_amount': self.total_amount,
            'date': self.date,
            'property_name': self.property_name,
            'backend': self.backend,
        }


def _clean_answer(answer: Any) -> Optional[str]:
    """
    Clean an extracted answer.

    Strips whitespace and stray punctuation at either end, keeping a sign
    or decimal point that leads a number; null-like answers become None.
    """
    if answer is None:
        return None

    answer = str(answer).strip()

    strip_chars = [':', '-', '.', ',']
    while answer and answer[0] in strip_chars and not _SIGNED_NUMBER.match(answer):
        answer = answer[1:].strip()
    while answer and answer[-1] in strip_chars:
        answer = answer[:-1].strip()

    if answer.lower() in _NULL_ANSWERS:
        return None
    return answer


class FieldExtractor(ABC):
    """
    Capability: corrected invoice text -> AIFields.

    Implementations report `available == False` when they cannot run
    (missing credentials or libraries) so the aggregator can skip them.
    """

    name = "base"

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the backend can be called."""

    @abstractmethod
    def extract_fields(self, text: str, hints: Optional[Dict[str, Any]] = None) -> AIFields:
        """
        Extract the four fields from the text.

        Args:
            text: Corrected invoice text.
            hints: Heuristic best guesses, keyed like AIFields.to_dict().

        Raises:
            InferenceError: If the backend call fails.
            ModelLoadError: If a local model cannot be loaded.
        """


class NullFieldExtractor(FieldExtractor):
    """Regex-only mode: never available, never called."""

    name = "none"

    @property
    def available(self) -> bool:
        return False

    def extract_fields(self, text: str, hints: Optional[Dict[str, Any]] = None) -> AIFields:
        return AIFields(backend=self.name)


class OpenAIFieldExtractor(FieldExtractor):
    """
    Field extraction with an OpenAI chat model in JSON mode.

    The heuristic best guesses are sent along as hints; the model is told
    to confirm or correct them from the text.

    Example:
        >>> extractor = OpenAIFieldExtractor()
        >>> fields = extractor.extract_fields(text, hints={'staff_name': 'Mike Rodriguez'})
        >>> fields.total_amount
        150.0
    """

    name = "openai"

    def __init__(self, client: Optional[OpenAI] = None) -> None:
        self.model = get_config("ai.model", "gpt-4o-mini")
        self.temperature = float(get_config("ai.temperature", 0.0))
        self.max_chars = int(get_config("ai.max_input_chars", 12000))
        self.client = client if client is not None else create_openai_client()

        logger.debug(f"OpenAIFieldExtractor initialized (model={self.model})")

    @property
    def available(self) -> bool:
        return self.client is not None

    def extract_fields(self, text: str, hints: Optional[Dict[str, Any]] = None) -> AIFields:
        if not self.available:
            raise InferenceError("no OpenAI API key configured")

        user_content = f"Invoice text:\n{text[:self.max_chars]}"
        if hints:
            known = {k: v for k, v in hints.items() if v is not None}
            if known:
                user_content += (
                    "\n\nA pattern matcher suggested these values; confirm or "
                    f"correct them from the text: {json.dumps(known)}"
                )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": FIELD_PROMPT},
                    {"role": "user", "content": user_content},
                ],
            )
        except OpenAIError as e:
            raise InferenceError(f"OpenAI field extraction failed: {e}")

        if not response.choices:
            raise InferenceError("OpenAI field extraction returned no choices")

        content = response.choices[0].message.content or ""
        try:
            answers = json.loads(content)
        except json.JSONDecodeError as e:
            raise InferenceError(f"OpenAI returned invalid JSON: {e}")

        if not isinstance(answers, dict):
            raise InferenceError("OpenAI returned JSON that is not an object")

        fields = AIFields.from_answers(answers, backend=self.name)
        logger.debug(f"OpenAI fields: {fields.to_dict()}")
        return fields


class QAFieldExtractor(FieldExtractor):
    """
    Field extraction with a local extractive question-answering model.

    One question is asked per field over the corrected text. Answers whose
    score falls below `ai.qa_min_score` are discarded. The model is loaded
    on first use and shared by every thread of the instance.

    Attributes:
        model_name: Hugging Face model id.
        device: Inference device ('cpu' or a CUDA index).
        field_questions: Mapping of answer keys to questions.
    """

    name = "qa"

    DEFAULT_MODEL = "deepset/roberta-base-squad2"

    FIELD_QUESTIONS = {
        'staffName': 'Who is the staff member or cleaner that did the work?',
        'totalAmount': 'What is the total amount?',
        'date': 'What is the date of the invoice or service?',
        'propertyName': 'What is the property or address that was serviced?',
    }

    def __init__(self, model_name: Optional[str] = None, device: Optional[str] = None) -> None:
        self.model_name = model_name or get_config("ai.qa_model", self.DEFAULT_MODEL)
        self.device = device or get_config("ai.device", "cpu")
        self.min_score = float(get_config("ai.qa_min_score", 0.1))
        self.field_questions = dict(self.FIELD_QUESTIONS)
        self.field_questions.update(get_config("ai.qa_questions", {}) or {})

        self._pipeline = None
        self._lock = threading.Lock()

        logger.debug(f"QAFieldExtractor initialized (model={self.model_name})")

    @property
    def available(self) -> bool:
        return importlib.util.find_spec("transformers") is not None

    def _get_pipeline(self):
        """
        Load the question-answering pipeline once.

        Raises:
            ModelLoadError: If the model cannot be loaded.
        """
        with self._lock:
            if self._pipeline is not None:
                return self._pipeline

            from transformers import pipeline

            logger.info(f"Loading QA model: {self.model_name}")
            device = -1 if self.device == "cpu" else self.device
            try:
                self._pipeline = pipeline(
                    "question-answering",
                    model=self.model_name,
                    tokenizer=self.model_name,
                    device=device,
                )
            except (OSError, ValueError, RuntimeError) as e:
                raise ModelLoadError(self.model_name, str(e))

            logger.info("QA model loaded")
            return self._pipeline

    def extract_fields(self, text: str, hints: Optional[Dict[str, Any]] = None) -> AIFields:
        if not text.strip():
            return AIFields(backend=self.name)

        qa = self._get_pipeline()
        answers: Dict[str, Any] = {}

        for key, question in self.field_questions.items():
            try:
                output = qa(question=question, context=text)
            except (RuntimeError, ValueError) as e:
                raise InferenceError(f"QA inference failed for {key}: {e}")

            if isinstance(output, list):
                output = output[0] if output else {}

            score = float(output.get('score', 0.0))
            if score >= self.min_score:
                answers[key] = output.get('answer')
            logger.debug(f"QA {key}: {output.get('answer')!r} (score {score:.3f})")

        return AIFields.from_answers(answers, backend=self.name)


def create_field_extractor(backend: Optional[str] = None,
                           enabled: Optional[bool] = None) -> FieldExtractor:
    """
    Build the field extractor selected by `ai.backend` and `ai.enabled`.

    Args:
        backend: 'openai', 'qa' or 'none'. If None, uses config.
        enabled: Overrides `ai.enabled`.

    Returns:
        A FieldExtractor; NullFieldExtractor when AI is disabled.
    """
    if enabled is None:
        enabled = get_config("ai.enabled", True)
    backend = (backend or get_config("ai.backend", "openai") or "none").lower()

    if not enabled or backend == "none":
        return NullFieldExtractor()
    if backend == "openai":
        return OpenAIFieldExtractor()
    if backend == "qa":
        return QAFieldExtractor()

    logger.warning(f"Unknown AI backend '{backend}'; using regex-only extraction")
    return NullFieldExtractor()
