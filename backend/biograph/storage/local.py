"""
Local flat-file backend — one JSON file per record under a storage root.

  <root>/uploads/<id>.docx
  <root>/parsed/<id>.json
  <root>/extractions/<id>.json

File I/O runs in a worker thread (asyncio.to_thread) so it never blocks the
event loop. Writes go to a temp file first and are moved into place, so a
reader never sees a half-written record.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from biograph.models.documents import DocumentSummary, ParsedDocument
from biograph.models.extraction import BiographicalExtraction
from biograph.storage.base import ExtractionStore, ResourceType, safe_object_name, upload_suffix

logger = logging.getLogger(__name__)


def _atomic_write(path: Path, data: bytes) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class LocalExtractionStore(ExtractionStore):
    """
    Flat-file JSON store. Suitable for single-host deployments and tests.

    Usage:
        store = LocalExtractionStore("./storage")
        await store.save_extraction(record)
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root).resolve()
        for resource in ResourceType:
            (self._root / resource.value).mkdir(parents=True, exist_ok=True)
        logger.info("LocalExtractionStore | root=%s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, resource: ResourceType, name: str) -> Path:
        return self._root / resource.value / name

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def save_uploaded_file(self, document_id: str, data: bytes, file_name: str) -> None:
        path = self._path(ResourceType.UPLOAD, safe_object_name(document_id, upload_suffix(file_name)))
        await asyncio.to_thread(_atomic_write, path, data)
        logger.info("LocalExtractionStore | saved upload doc=%s size=%d", document_id, len(data))

    # ------------------------------------------------------------------
    # Parsed documents
    # ------------------------------------------------------------------

    async def save_document(self, doc: ParsedDocument) -> ParsedDocument:
        path = self._path(ResourceType.PARSED, safe_object_name(doc.id, ".json"))
        await asyncio.to_thread(_atomic_write, path, doc.to_json().encode("utf-8"))
        logger.info("LocalExtractionStore | saved parsed document doc=%s", doc.id)
        return doc

    async def get_document(self, document_id: str) -> ParsedDocument | None:
        path = self._path(ResourceType.PARSED, safe_object_name(document_id, ".json"))
        raw = await asyncio.to_thread(_read_if_exists, path)
        if raw is None:
            return None
        return ParsedDocument.model_validate_json(raw)

    async def list_documents(self, uploaded_by: str | None = None) -> list[DocumentSummary]:
        return await asyncio.to_thread(self._list_documents_sync, uploaded_by)

    def _list_documents_sync(self, uploaded_by: str | None) -> list[DocumentSummary]:
        summaries: list[DocumentSummary] = []
        for path in sorted((self._root / ResourceType.PARSED.value).glob("*.json")):
            try:
                doc = ParsedDocument.model_validate_json(path.read_bytes())
            except (OSError, ValidationError) as exc:
                logger.warning("LocalExtractionStore | skipping unreadable document %s: %s", path.name, exc)
                continue

            if uploaded_by and doc.uploaded_by != uploaded_by:
                continue

            has_extraction = self._path(
                ResourceType.EXTRACTION, safe_object_name(doc.id, ".json"),
            ).exists()
            summaries.append(DocumentSummary.from_document(doc, has_extraction=has_extraction))

        summaries.sort(key=lambda s: s.uploaded_at, reverse=True)
        return summaries

    # ------------------------------------------------------------------
    # Extractions
    # ------------------------------------------------------------------

    async def save_extraction(self, record: BiographicalExtraction) -> None:
        path = self._path(ResourceType.EXTRACTION, safe_object_name(record.document_id, ".json"))
        await asyncio.to_thread(_atomic_write, path, record.to_json().encode("utf-8"))
        logger.info("LocalExtractionStore | saved extraction doc=%s", record.document_id)

    async def get_extraction(self, document_id: str) -> BiographicalExtraction | None:
        path = self._path(ResourceType.EXTRACTION, safe_object_name(document_id, ".json"))
        raw = await asyncio.to_thread(_read_if_exists, path)
        if raw is None:
            return None
        return BiographicalExtraction.model_validate_json(raw)

    async def extraction_exists(self, document_id: str) -> bool:
        path = self._path(ResourceType.EXTRACTION, safe_object_name(document_id, ".json"))
        return await asyncio.to_thread(path.exists)


def _read_if_exists(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
