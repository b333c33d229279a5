"""
S3 Extraction Store

Objects live under a server-built prefix. Ids from callers are sanitised
to a single path segment, so a key can never escape its partition:

    s3://<BUCKET>/<PREFIX>/uploads/<id><ext>
    s3://<BUCKET>/<PREFIX>/parsed/<id>.json
    s3://<BUCKET>/<PREFIX>/extractions/<id>.json

Records are the same indented camelCase JSON the local backend writes, so a
storage root can be synced to a bucket and read back unchanged.

Missing objects ("NoSuchKey" / "404") read as None; every other ClientError
propagates.
"""

from __future__ import annotations

import logging
import mimetypes

import aioboto3
from botocore.exceptions import ClientError
from pydantic import ValidationError

from biograph.core.config import settings
from biograph.models.documents import DocumentSummary, ParsedDocument
from biograph.models.extraction import BiographicalExtraction
from biograph.storage.base import ExtractionStore, ResourceType, safe_object_name, upload_suffix

logger = logging.getLogger(__name__)

_JSON_CONTENT_TYPE = "application/json"
_NOT_FOUND_CODES   = ("NoSuchKey", "404", "NotFound")


def _is_not_found(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3ExtractionStore(ExtractionStore):
    """
    Async S3 backend (aioboto3). A client is opened per operation, so one
    instance is safe to share between concurrent requests.
    """

    def __init__(
        self,
        bucket: str | None = None,
        prefix: str | None = None,
        region: str | None = None,
    ) -> None:
        self._bucket  = bucket or settings.s3_bucket
        self._prefix  = (settings.s3_prefix if prefix is None else prefix).strip("/")
        self._region  = region or settings.aws_region
        self._session = aioboto3.Session()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self):
        """Return a scoped async S3 client context manager."""
        kwargs: dict = {"region_name": self._region}
        # Local dev only; in production credentials come from the task role.
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            kwargs["aws_access_key_id"]     = settings.aws_access_key_id
            kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        return self._session.client("s3", **kwargs)

    def _partition(self, resource: ResourceType) -> str:
        return f"{self._prefix}/{resource.value}/" if self._prefix else f"{resource.value}/"

    def key(self, resource: ResourceType, document_id: str, suffix: str = "") -> str:
        return self._partition(resource) + safe_object_name(document_id, suffix)

    async def _put(self, key: str, body: bytes, content_type: str) -> None:
        async with self._client() as s3:
            await s3.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        logger.info("S3 upload ok | bucket=%s key=%s size=%d", self._bucket, key, len(body))

    async def _get(self, key: str) -> bytes | None:
        async with self._client() as s3:
            try:
                resp = await s3.get_object(Bucket=self._bucket, Key=key)
                return await resp["Body"].read()
            except ClientError as exc:
                if _is_not_found(exc):
                    return None
                raise

    async def _exists(self, key: str) -> bool:
        async with self._client() as s3:
            try:
                await s3.head_object(Bucket=self._bucket, Key=key)
                return True
            except ClientError as exc:
                if _is_not_found(exc):
                    return False
                raise

    async def _list_keys(self, resource: ResourceType) -> list[str]:
        keys: list[str] = []
        params = {"Bucket": self._bucket, "Prefix": self._partition(resource)}
        async with self._client() as s3:
            while True:
                resp = await s3.list_objects_v2(**params)
                keys.extend(obj["Key"] for obj in resp.get("Contents", []))
                if not resp.get("IsTruncated"):
                    break
                params["ContinuationToken"] = resp["NextContinuationToken"]
        return keys

    # ------------------------------------------------------------------
    # ExtractionStore
    # ------------------------------------------------------------------

    async def save_uploaded_file(self, document_id: str, data: bytes, file_name: str) -> None:
        key = self.key(ResourceType.UPLOAD, document_id, upload_suffix(file_name))
        ct  = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        await self._put(key, data, ct)

    async def save_document(self, doc: ParsedDocument) -> ParsedDocument:
        key = self.key(ResourceType.PARSED, doc.id, ".json")
        await self._put(key, doc.to_json().encode("utf-8"), _JSON_CONTENT_TYPE)
        return doc

    async def get_document(self, document_id: str) -> ParsedDocument | None:
        raw = await self._get(self.key(ResourceType.PARSED, document_id, ".json"))
        if raw is None:
            return None
        return ParsedDocument.model_validate_json(raw)

    async def list_documents(self, uploaded_by: str | None = None) -> list[DocumentSummary]:
        parsed_keys = [k for k in await self._list_keys(ResourceType.PARSED) if k.endswith(".json")]
        extracted   = set(await self._list_keys(ResourceType.EXTRACTION))

        summaries: list[DocumentSummary] = []
        for key in parsed_keys:
            raw = await self._get(key)
            if raw is None:
                continue   # deleted between list and get
            try:
                doc = ParsedDocument.model_validate_json(raw)
            except ValidationError as exc:
                logger.warning("S3 list | skipping unreadable document key=%s: %s", key, exc)
                continue

            if uploaded_by and doc.uploaded_by != uploaded_by:
                continue

            has_extraction = self.key(ResourceType.EXTRACTION, doc.id, ".json") in extracted
            summaries.append(DocumentSummary.from_document(doc, has_extraction=has_extraction))

        summaries.sort(key=lambda s: s.uploaded_at, reverse=True)
        return summaries

    async def save_extraction(self, record: BiographicalExtraction) -> None:
        key = self.key(ResourceType.EXTRACTION, record.document_id, ".json")
        await self._put(key, record.to_json().encode("utf-8"), _JSON_CONTENT_TYPE)

    async def get_extraction(self, document_id: str) -> BiographicalExtraction | None:
        raw = await self._get(self.key(ResourceType.EXTRACTION, document_id, ".json"))
        if raw is None:
            return None
        return BiographicalExtraction.model_validate_json(raw)

    async def extraction_exists(self, document_id: str) -> bool:
        return await self._exists(self.key(ResourceType.EXTRACTION, document_id, ".json"))
