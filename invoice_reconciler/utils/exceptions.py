"""
Custom Exceptions Module.

This module defines the exceptions used throughout the invoice
reconciliation engine. Most failures inside the engine are recoverable and
are logged rather than raised; the exceptions below mark the points where
a component genuinely cannot continue and a caller must decide what to do.

Exception Hierarchy:
    InvoiceReconcilerError (base)
    ├── ConfigurationError
    ├── InputError
    │   ├── UnsupportedFileTypeError
    │   ├── EmptyDocumentError
    │   └── CorruptedDocumentError
    ├── OCRError
    │   ├── OCREngineNotAvailableError
    │   ├── OCRProcessingError
    │   └── VisionFallbackError
    └── ModelError
        ├── ModelLoadError
        └── InferenceError
"""


class InvoiceReconcilerError(Exception):
    """
    Base exception for all reconciliation engine errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(InvoiceReconcilerError):
    """Raised when the configuration file is missing or malformed."""

    def __init__(self, path: str, reason: str = None):
        message = f"Invalid configuration: {path}"
        details = {"path": path, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceReconcilerError):
    """Base exception for ingestion-boundary errors."""
    pass


class UnsupportedFileTypeError(InputError):
    """
    Raised when a document's MIME type has no text acquisition route.

    Example:
        >>> raise UnsupportedFileTypeError("video/mp4", ["application/pdf"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class EmptyDocumentError(InputError):
    """Raised when a document carries no bytes."""

    def __init__(self, source: str):
        message = f"Document is empty: {source}"
        details = {"source": source}
        super().__init__(message, details)


class CorruptedDocumentError(InputError):
    """Raised when a document cannot be decoded by its reader."""

    def __init__(self, source: str, reason: str = None):
        message = f"Corrupted or unreadable document: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# OCR ERRORS
# =============================================================================

class OCRError(InvoiceReconcilerError):
    """Base exception for text recognition errors."""
    pass


class OCREngineNotAvailableError(OCRError):
    """Raised when the local OCR engine is not installed."""

    def __init__(self, engine_name: str):
        message = f"OCR engine not available: {engine_name}"
        details = {"engine": engine_name}
        super().__init__(message, details)


class OCRProcessingError(OCRError):
    """Raised when local OCR fails on an image."""

    def __init__(self, source: str, reason: str = None):
        message = f"OCR processing failed for: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


class VisionFallbackError(OCRError):
    """Raised when the vision model cannot transcribe an image."""

    def __init__(self, provider: str, reason: str = None):
        message = f"Vision fallback failed: {provider}"
        details = {"provider": provider, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# MODEL ERRORS
# =============================================================================

class ModelError(InvoiceReconcilerError):
    """Base exception for language-model errors."""
    pass


class ModelLoadError(ModelError):
    """Raised when a model or its client cannot be created."""

    def __init__(self, model_name: str, reason: str = None):
        message = f"Failed to load model: {model_name}"
        details = {"model": model_name, "reason": reason}
        super().__init__(message, details)


class InferenceError(ModelError):
    """Raised when a model call fails or returns unusable output."""

    def __init__(self, reason: str = None):
        message = "Model inference failed"
        details = {"reason": reason}
        super().__init__(message, details)


__all__ = [
    'InvoiceReconcilerError',
    'ConfigurationError',
    'InputError',
    'UnsupportedFileTypeError',
    'EmptyDocumentError',
    'CorruptedDocumentError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRProcessingError',
    'VisionFallbackError',
    'ModelError',
    'ModelLoadError',
    'InferenceError',
]
