"""
Extraction Store — Abstract Base

The pipeline itself never touches storage; the application service hands it
a ParsedDocument and persists the returned BiographicalExtraction. Every
concrete backend (local JSON files, S3) implements this interface, so
backends are swappable without changing the service.

Key-value model, keyed by document id:
  uploads/<id><ext>         original file bytes
  parsed/<id>.json          ParsedDocument
  extractions/<id>.json     BiographicalExtraction (upsert, full replacement)

Ownership checks are NOT done here: callers pass document ids that are
already scoped to the right owner.
"""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from enum import Enum

from biograph.models.documents import DocumentSummary, ParsedDocument
from biograph.models.extraction import BiographicalExtraction


class ResourceType(str, Enum):
    UPLOAD     = "uploads"       # raw uploaded .docx files
    PARSED     = "parsed"        # ParsedDocument JSON
    EXTRACTION = "extractions"   # BiographicalExtraction JSON


def safe_object_name(document_id: str, suffix: str = "") -> str:
    """
    Build a storage object name from a document id.
    Directory components are stripped so an id can never escape its partition.
    """
    name = posixpath.basename(str(document_id).replace("\\", "/"))
    name = name.replace("..", "_")
    if not name:
        raise ValueError(f"Invalid document id: {document_id!r}")
    return f"{name}{suffix}"


def upload_suffix(file_name: str) -> str:
    """Lower-cased extension of the original file name ('' when absent)."""
    return posixpath.splitext(file_name.replace("\\", "/"))[1].lower()


class ExtractionStore(ABC):
    """Async key-value store for parsed documents and extraction records."""

    @abstractmethod
    async def save_uploaded_file(self, document_id: str, data: bytes, file_name: str) -> None:
        """Keep the original upload bytes next to the parsed document."""

    @abstractmethod
    async def save_document(self, doc: ParsedDocument) -> ParsedDocument:
        """Insert or replace a parsed document."""

    @abstractmethod
    async def get_document(self, document_id: str) -> ParsedDocument | None:
        """Return the parsed document, or None when unknown."""

    @abstractmethod
    async def list_documents(self, uploaded_by: str | None = None) -> list[DocumentSummary]:
        """
        Summaries of stored documents, newest first.
        Filtered by uploader when `uploaded_by` is non-empty. Entries that
        cannot be read are skipped (and logged), never fatal.
        """

    @abstractmethod
    async def save_extraction(self, record: BiographicalExtraction) -> None:
        """Upsert the extraction record for record.document_id (full replacement)."""

    @abstractmethod
    async def get_extraction(self, document_id: str) -> BiographicalExtraction | None:
        """Return the stored extraction record, or None."""

    @abstractmethod
    async def extraction_exists(self, document_id: str) -> bool:
        """True if an extraction record is stored for this document."""
