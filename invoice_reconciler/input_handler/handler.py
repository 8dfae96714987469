"""
Document Loader Module.

This module is the ingestion boundary of the engine. It turns files on disk
(or uploaded bytes) into validated RawDocument objects. Caller errors are
raised here and nowhere later:
    - empty payloads             -> EmptyDocumentError
    - unsupported MIME types     -> UnsupportedFileTypeError
    - payloads over the size cap -> InputError

Usage:
    from invoice_reconciler.input_handler import DocumentLoader

    loader = DocumentLoader()
    document = loader.load("invoice.jpg", is_handwritten=True)

    # Every supported file in a folder
    documents = loader.load_batch("./invoices/")
"""

from pathlib import Path
from typing import List, Union

from config import get_config
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.helpers import format_file_size, validate_file_exists
from invoice_reconciler.utils.exceptions import (
    EmptyDocumentError,
    InputError,
    UnsupportedFileTypeError,
)

from .document import SUPPORTED_MIME_TYPES, RawDocument, guess_mime_type

# Initialize module logger
logger = get_logger(__name__)


class DocumentLoader:
    """
    Validating loader for invoice documents.

    Attributes:
        max_file_size: Largest accepted payload in bytes.

    Example:
        >>> loader = DocumentLoader()
        >>> doc = loader.load("invoice.pdf")
        >>> doc.is_pdf
        True
    """

    def __init__(self) -> None:
        """Initialize the loader with the configured size cap."""
        max_mb = get_config("input.max_file_size_mb", 25)
        self.max_file_size = int(max_mb * 1024 * 1024)

        logger.debug(f"DocumentLoader initialized (max size: {format_file_size(self.max_file_size)})")

    def validate(self, document: RawDocument) -> RawDocument:
        """
        Validate an already-built document.

        Args:
            document: Document to check.

        Returns:
            The same document.

        Raises:
            EmptyDocumentError: If the document has no bytes.
            UnsupportedFileTypeError: If the MIME type is not supported.
            InputError: If the document exceeds the size cap.
        """
        if not document.data:
            raise EmptyDocumentError(document.display_name)

        if document.mime_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedFileTypeError(document.mime_type, SUPPORTED_MIME_TYPES)

        if len(document.data) > self.max_file_size:
            raise InputError(
                f"Document too large: {document.display_name}",
                {
                    "size": format_file_size(len(document.data)),
                    "limit": format_file_size(self.max_file_size),
                }
            )

        return document

    def from_bytes(
        self,
        data: bytes,
        mime_type: str,
        is_handwritten: bool = False,
        filename: str = None
    ) -> RawDocument:
        """Build and validate a document from uploaded bytes."""
        document = RawDocument(
            data=data,
            mime_type=mime_type,
            is_handwritten=is_handwritten,
            filename=filename,
        )
        return self.validate(document)

    def load(self, filepath: Union[str, Path], is_handwritten: bool = False) -> RawDocument:
        """
        Load and validate a document from disk.

        Args:
            filepath: Path to the invoice file.
            is_handwritten: Use the handwritten preprocessing profile.

        Returns:
            Validated RawDocument.

        Raises:
            InputError: If the path is not a readable file.
        """
        path = Path(filepath)
        if not validate_file_exists(path):
            raise InputError(f"File not found: {filepath}", {"path": str(filepath)})

        mime_type = guess_mime_type(path)
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedFileTypeError(mime_type, SUPPORTED_MIME_TYPES)

        document = self.validate(RawDocument.from_path(path, is_handwritten=is_handwritten))
        logger.info(
            f"Loaded {path.name} ({document.mime_type}, {format_file_size(len(document.data))})"
        )
        return document

    def collect(self, directory: Union[str, Path], recursive: bool = False) -> List[Path]:
        """
        List every supported file in a directory, sorted by path.

        Raises:
            InputError: If the directory does not exist.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise InputError(f"Path is not a directory: {directory}", {"path": str(directory)})

        pattern = "**/*" if recursive else "*"
        files = sorted(
            path for path in directory.glob(pattern)
            if path.is_file() and guess_mime_type(path) in SUPPORTED_MIME_TYPES
        )

        logger.info(f"Found {len(files)} supported file(s) in {directory}")
        return files

    def load_batch(
        self,
        directory: Union[str, Path],
        is_handwritten: bool = False,
        recursive: bool = False
    ) -> List[RawDocument]:
        """
        Load every supported, non-empty file in a directory.

        Files that fail validation are logged and skipped.
        """
        documents = []
        for path in self.collect(directory, recursive=recursive):
            try:
                documents.append(self.load(path, is_handwritten=is_handwritten))
            except InputError as e:
                logger.warning(f"Skipping {path.name}: {e}")

        return documents
