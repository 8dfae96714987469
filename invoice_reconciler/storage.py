"""
Document Store and Reconciliation Service.

Uploaded documents are kept in a DocumentStore together with their latest
extraction and verdict. A new upload starts as `pending`; processing or
reprocessing replaces the record, never mutates it.

Usage:
    service = ReconciliationService(pipeline, InMemoryDocumentStore())
    record = service.upload(data, "image/jpeg", filename="invoice.jpg")
    record = service.process(record.id, ledger)

Author: ML Engineering Team
"""

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from invoice_reconciler.input_handler import RawDocument
from invoice_reconciler.model_inference import ExtractionResult
from invoice_reconciler.reconciliation import LedgerEntry, MatchVerdict
from invoice_reconciler.utils.logger import get_logger
from invoice_reconciler.utils.exceptions import InputError

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredDocument:
    """
    An uploaded document and its latest reconciliation state.

    Attributes:
        id: Store identifier.
        document: The uploaded document.
        uploaded_at: ISO timestamp of the upload.
        extraction: Latest extraction, or None before processing.
        verdict: Latest verdict; pending until processed.
        error: Failure detail of the latest processing attempt.
    """
    id: str
    document: RawDocument
    uploaded_at: str = field(default_factory=lambda: datetime.now().isoformat())
    extraction: Optional[ExtractionResult] = None
    verdict: MatchVerdict = field(default_factory=MatchVerdict.pending)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'filename': self.document.display_name,
            'mime_type': self.document.mime_type,
            'size': len(self.document.data),
            'uploaded_at': self.uploaded_at,
            'extraction': self.extraction.to_dict() if self.extraction else None,
            'match_status': self.verdict.status.value,
            'matched_staff_name': self.verdict.matched_staff_name,
            'match_details': self.verdict.details,
            'error': self.error,
        }


class DocumentStore(ABC):
    """Storage of StoredDocument records by id."""

    @abstractmethod
    def put(self, record: StoredDocument) -> None:
        """Insert or replace a record."""

    @abstractmethod
    def get(self, doc_id: str) -> Optional[StoredDocument]:
        """Return the record, or None."""

    @abstractmethod
    def delete(self, doc_id: str) -> bool:
        """Remove a record; True when it existed."""

    @abstractmethod
    def list(self) -> List[StoredDocument]:
        """All records, oldest upload first."""


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe dictionary-backed store."""

    def __init__(self) -> None:
        self._records: Dict[str, StoredDocument] = {}
        self._lock = threading.Lock()

    def put(self, record: StoredDocument) -> None:
        with self._lock:
            self._records[record.id] = record

    def get(self, doc_id: str) -> Optional[StoredDocument]:
        with self._lock:
            return self._records.get(doc_id)

    def delete(self, doc_id: str) -> bool:
        with self._lock:
            return self._records.pop(doc_id, None) is not None

    def list(self) -> List[StoredDocument]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.uploaded_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class ReconciliationService:
    """
    Upload, process and reprocess documents against a ledger.

    Attributes:
        pipeline: InvoicePipeline used for processing.
        store: Injected document store.
    """

    def __init__(self, pipeline, store: Optional[DocumentStore] = None) -> None:
        self.pipeline = pipeline
        self.store = store if store is not None else InMemoryDocumentStore()

        logger.debug(f"ReconciliationService initialized ({type(self.store).__name__})")

    def upload(
        self,
        data: bytes,
        mime_type: str,
        filename: Optional[str] = None,
        is_handwritten: bool = False
    ) -> StoredDocument:
        """
        Validate and store a new upload as pending.

        Raises:
            InputError: If the upload fails validation.
        """
        document = self.pipeline.loader.from_bytes(
            data, mime_type, is_handwritten=is_handwritten, filename=filename
        )
        record = StoredDocument(id=uuid.uuid4().hex, document=document)
        self.store.put(record)

        logger.info(f"Stored upload {record.id} ({document.display_name})")
        return record

    def _require(self, doc_id: str) -> StoredDocument:
        record = self.store.get(doc_id)
        if record is None:
            raise InputError(f"Unknown document id: {doc_id}", {'id': doc_id})
        return record

    def process(self, doc_id: str, ledger: Sequence[LedgerEntry]) -> StoredDocument:
        """
        Run the pipeline on a stored document and save the outcome.

        Reprocessing the same document against the same ledger yields the
        same verdict. Processing failures are stored as no_match.

        Raises:
            InputError: If the id is unknown.
        """
        record = self._require(doc_id)
        outcome = self.pipeline.process_safely(record.document, ledger)

        updated = replace(
            record,
            extraction=outcome.extraction,
            verdict=outcome.verdict,
            error=outcome.error,
        )
        self.store.put(updated)
        return updated

    reprocess = process

    def upload_and_process(
        self,
        data: bytes,
        mime_type: str,
        ledger: Sequence[LedgerEntry],
        filename: Optional[str] = None,
        is_handwritten: bool = False
    ) -> StoredDocument:
        record = self.upload(data, mime_type, filename=filename, is_handwritten=is_handwritten)
        return self.process(record.id, ledger)

    def get(self, doc_id: str) -> Optional[StoredDocument]:
        return self.store.get(doc_id)

    def delete(self, doc_id: str) -> bool:
        deleted = self.store.delete(doc_id)
        if deleted:
            logger.info(f"Deleted document {doc_id}")
        return deleted

    def list(self) -> List[StoredDocument]:
        return self.store.list()
