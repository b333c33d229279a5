"""
Document Service

The application seam between a transport layer (HTTP, CLI, worker) and the
extraction core:

  ingest()   .docx bytes → ParsedDocument → store
  extract()  stored document → ExtractionPipeline → store (only on success)

Ownership: every read is scoped to `uploaded_by`. A document owned by
someone else is reported exactly like a missing one (DocumentNotFoundError),
so ids of other users' documents cannot be discovered.

The LLM credential is passed straight through to the pipeline; it is never
logged and never part of anything this service stores.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from biograph.core.exceptions import (
    DocumentFormatError,
    DocumentNotFoundError,
    EmptyDocumentError,
    InvalidSubjectNamesError,
)
from biograph.models.documents import DocumentSummary, ParsedDocument
from biograph.models.extraction import BiographicalExtraction
from biograph.processing.extractor import ParagraphExtractor
from biograph.processing.pipeline import CancelSignal, ExtractionPipeline
from biograph.storage.base import ExtractionStore

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".docx",)


def parse_subject_names(raw: str | Iterable[str]) -> list[str]:
    """
    "Anna, Piotr ,, " → ["Anna", "Piotr"]

    Accepts a comma-separated string or an iterable of names (each of which
    may itself contain commas). Raises InvalidSubjectNamesError when no
    non-blank name remains.
    """
    parts = [raw] if isinstance(raw, str) else list(raw)
    names = [
        name.strip()
        for part in parts
        for name in str(part).split(",")
        if name.strip()
    ]
    if not names:
        raise InvalidSubjectNamesError("At least one subject name is required.")
    return names


class DocumentService:
    """
    Usage:
        service = DocumentService(get_extraction_store(), ExtractionPipeline())
        summary = await service.ingest(data, "memoir.docx", "Anna", uploaded_by="u-1")
        record  = await service.extract(summary.id, "u-1", credential=token)
    """

    def __init__(
        self,
        store:     ExtractionStore,
        pipeline:  ExtractionPipeline | None = None,
        extractor: ParagraphExtractor | None = None,
    ) -> None:
        self._store     = store
        self._pipeline  = pipeline or ExtractionPipeline()
        self._extractor = extractor or ParagraphExtractor()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def ingest(
        self,
        data:          bytes,
        file_name:     str,
        subject_names: str | Iterable[str],
        uploaded_by:   str,
    ) -> DocumentSummary:
        """
        Validate, parse and store an upload.

        Raises:
            DocumentFormatError:      not a .docx name, or unreadable bytes.
            EmptyDocumentError:       the document has no non-blank paragraph.
            InvalidSubjectNamesError: no usable subject name.
        """
        if not file_name or not file_name.lower().endswith(ALLOWED_EXTENSIONS):
            raise DocumentFormatError("Only .docx files are accepted.")
        names = parse_subject_names(subject_names)

        # blocking parse, runs in a worker thread
        paragraphs = await asyncio.to_thread(self._extractor.extract, data)
        if not paragraphs:
            raise EmptyDocumentError("The document contains no text paragraphs.")

        doc = ParsedDocument(
            file_name=file_name,
            subject_names=names,
            uploaded_by=uploaded_by,
            paragraphs=paragraphs,
            total_paragraphs=len(paragraphs),
        )

        await self._store.save_uploaded_file(doc.id, data, file_name)
        await self._store.save_document(doc)

        logger.info(
            "DocumentService | ingested doc=%s file=%s paragraphs=%d subjects=%d user=%s",
            doc.id, file_name, doc.total_paragraphs, len(names), uploaded_by,
        )
        return DocumentSummary.from_document(doc)

    async def get_document(self, document_id: str, uploaded_by: str) -> ParsedDocument:
        doc = await self._store.get_document(document_id)
        if doc is None or doc.uploaded_by != uploaded_by:
            raise DocumentNotFoundError(document_id)
        return doc

    async def list_documents(self, uploaded_by: str) -> list[DocumentSummary]:
        return await self._store.list_documents(uploaded_by)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    async def extract(
        self,
        document_id:  str,
        uploaded_by:  str,
        credential:   str,
        model:        str | None = None,
        base_url:     str | None = None,
        cancel_event: CancelSignal | None = None,
    ) -> BiographicalExtraction:
        """
        Run the pipeline over a stored document and persist the record.

        Nothing is written unless the whole run succeeds: a transport / API
        error or a cancellation leaves any previous record untouched. A
        successful re-run replaces the previous record entirely.
        """
        doc = await self.get_document(document_id, uploaded_by)

        record = await self._pipeline.run(
            doc,
            credential=credential,
            model=model,
            base_url=base_url,
            cancel_event=cancel_event,
        )

        await self._store.save_extraction(record)
        logger.info(
            "DocumentService | saved extraction doc=%s entities=%d",
            document_id, record.categories.total(),
        )
        return record

    async def get_extraction(self, document_id: str, uploaded_by: str) -> BiographicalExtraction:
        await self.get_document(document_id, uploaded_by)
        record = await self._store.get_extraction(document_id)
        if record is None:
            raise DocumentNotFoundError(document_id, "No extraction found for this document.")
        return record
