"""
Extraction Pipeline  —  Chunked Extraction & Merge
═══════════════════════════════════════════════════

  ParsedDocument.paragraphs
        │
        ▼
  chunk_paragraphs()            ← N windows of ≤ max_paragraphs_per_chunk
        │
        ▼
  per chunk (bounded fan-out):  build_prompt → ExtractionClient.complete
                                → parse_chunk_response
        │
        ▼
  ExtractionAccumulator         ← merged strictly in chunk-index order
        │
        ▼
  BiographicalExtraction        ← summary = aggregate_summaries(...)

Concurrency:
  Chunk requests run as asyncio tasks, at most `max_concurrency` in flight
  (semaphore). Results land in a list indexed by chunk, so merge order is
  chunk order no matter which request finishes first. max_concurrency=1
  processes chunks strictly one at a time.

Failure policy (all-or-nothing at the API level, best-effort at parse level):
  ExtractionTransportError / ExtractionApiError from ANY chunk
      → remaining chunk tasks are cancelled, the error propagates, and no
        record is produced.
  Unparseable / empty chunk answer
      → logged, chunk contributes nothing, run continues.

Cancellation:
  cancel_event is checked before every chunk starts and watched while its
  request is in flight; setting it cancels the outstanding requests. It is
  checked once more before the record is built, so a cancelled run never
  returns one. Cancelling the task that awaits run() has the same effect.
  Both surface as asyncio.CancelledError.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Protocol, TypeVar

from biograph.llm.client import ExtractionClient
from biograph.llm.parser import ParseOutcome, ParseStatus, parse_chunk_response
from biograph.llm.prompts import build_system_prompt, build_user_content
from biograph.models.documents import ParsedDocument
from biograph.models.extraction import BiographicalExtraction
from biograph.observability.tracing import traced
from biograph.processing.chunking import ParagraphChunk, chunk_paragraphs
from biograph.processing.merge import ExtractionAccumulator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CANCEL_POLL_SECONDS = 0.05   # for cancel signals without an awaitable wait()


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


class ExtractionPipeline:
    """
    Runs one document through chunk → prompt → LLM → parse → merge.

    One instance can serve many runs; every run owns its own accumulator,
    so concurrent runs share nothing mutable.

    Usage:
        pipeline = ExtractionPipeline()
        record = await pipeline.run(document, credential="sk-...")
    """

    def __init__(
        self,
        client:                   ExtractionClient | None = None,
        max_paragraphs_per_chunk: int | None = None,
        max_concurrency:          int | None = None,
    ) -> None:
        from biograph.core.config import settings

        self._client     = client or ExtractionClient()
        self._chunk_size = (
            settings.max_paragraphs_per_chunk if max_paragraphs_per_chunk is None
            else max_paragraphs_per_chunk
        )
        self._max_concurrency = (
            settings.max_concurrent_chunks if max_concurrency is None else max_concurrency
        )
        if self._chunk_size < 1:
            raise ValueError(f"max_paragraphs_per_chunk must be >= 1, got {self._chunk_size}")
        if self._max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self._max_concurrency}")

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    @traced("pipeline.extract_document")
    async def run(
        self,
        document:     ParsedDocument,
        credential:   str,
        model:        str | None = None,
        base_url:     str | None = None,
        cancel_event: CancelSignal | None = None,
    ) -> BiographicalExtraction:
        """
        Extract and merge biographical data for a whole document.

        Args:
            document:     Parsed document (paragraphs + subject names).
            credential:   Caller's bearer token for the LLM API. Used per
                          request only; never logged or stored.
            model:        Model id; defaults to settings.llm_model.
            base_url:     OpenAI-compatible base URL; defaults to settings.llm_base_url.
            cancel_event: Optional event checked before each chunk starts.

        Raises:
            ExtractionTransportError, ExtractionApiError: any chunk's call failed.
            asyncio.CancelledError: the run was cancelled.
        """
        from biograph.core.config import settings

        model    = model or settings.llm_model
        base_url = base_url or settings.llm_base_url

        t0     = time.monotonic()
        chunks = chunk_paragraphs(document.paragraphs, self._chunk_size)

        logger.info(
            "ExtractionPipeline | doc=%s paragraphs=%d chunks=%d model=%s concurrency=%d",
            document.id, len(document.paragraphs), len(chunks), model, self._max_concurrency,
        )

        _raise_if_cancelled(cancel_event, document.id)

        outcomes = await self._extract_all(
            chunks, document, credential, model, base_url, cancel_event,
        )
        _raise_if_cancelled(cancel_event, document.id)

        accumulator = ExtractionAccumulator()
        for outcome in outcomes:            # chunk-index order
            accumulator.add(outcome.extraction)

        record = BiographicalExtraction(
            document_id=document.id,
            extracted_at=datetime.now(timezone.utc),
            subject_names=list(document.subject_names),
            categories=accumulator.categories,
            summary=accumulator.summary(),
        )

        failed = sum(1 for o in outcomes if o.status is ParseStatus.FAILED)
        empty  = sum(1 for o in outcomes if o.status is ParseStatus.EMPTY)
        logger.info(
            "ExtractionPipeline done | doc=%s chunks=%d merged=%d empty=%d failed=%d "
            "entities=%d elapsed_ms=%.0f",
            document.id, len(chunks), accumulator.chunks_merged, empty, failed,
            record.categories.total(), (time.monotonic() - t0) * 1000,
        )
        return record

    # ------------------------------------------------------------------
    # Fan-out with ordered collection
    # ------------------------------------------------------------------

    async def _extract_all(
        self,
        chunks:       list[ParagraphChunk],
        document:     ParsedDocument,
        credential:   str,
        model:        str,
        base_url:     str,
        cancel_event: CancelSignal | None,
    ) -> list[ParseOutcome]:
        """
        Run every chunk as a task (bounded by a semaphore) and return the
        outcomes as a list indexed by chunk. The first failure cancels the
        remaining tasks and is re-raised.
        """
        if not chunks:
            return []

        system_prompt = build_system_prompt(document.subject_names)
        semaphore     = asyncio.Semaphore(self._max_concurrency)

        tasks = [
            asyncio.create_task(
                self._extract_chunk(
                    chunk, len(chunks), system_prompt, credential, model, base_url,
                    document.id, semaphore, cancel_event,
                ),
                name=f"extract-{document.id}-chunk-{chunk.chunk_index}",
            )
            for chunk in chunks
        ]

        try:
            pending = set(tasks)
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=tasks.index):
                    if task.cancelled():
                        raise asyncio.CancelledError(f"extraction cancelled for doc={document.id}")
                    exc = task.exception()
                    if exc is not None:
                        raise exc
            return [task.result() for task in tasks]
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _extract_chunk(
        self,
        chunk:         ParagraphChunk,
        chunk_count:   int,
        system_prompt: str,
        credential:    str,
        model:         str,
        base_url:      str,
        document_id:   str,
        semaphore:     asyncio.Semaphore,
        cancel_event:  CancelSignal | None,
    ) -> ParseOutcome:
        async with semaphore:
            _raise_if_cancelled(cancel_event, document_id)

            logger.info(
                "ExtractionPipeline | doc=%s processing chunk %d/%d paragraphs=%d..%d",
                document_id, chunk.chunk_index + 1, chunk_count,
                chunk.first_index, chunk.last_index,
            )
            raw = await _unless_cancelled(
                self._client.complete(
                    system_prompt=system_prompt,
                    user_content=build_user_content(chunk),
                    credential=credential,
                    model=model,
                    base_url=base_url,
                ),
                cancel_event,
                document_id,
            )

        outcome = parse_chunk_response(raw)
        if not outcome.ok:
            logger.warning(
                "ExtractionPipeline | doc=%s chunk=%d produced no data (%s%s)",
                document_id, chunk.chunk_index, outcome.status.value,
                f": {outcome.error}" if outcome.error else "",
            )
        return outcome


def _raise_if_cancelled(cancel_event: CancelSignal | None, document_id: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("ExtractionPipeline | doc=%s cancelled", document_id)
        raise asyncio.CancelledError(f"extraction cancelled for doc={document_id}")


async def _wait_for_cancel(cancel_event: CancelSignal) -> None:
    if isinstance(cancel_event, asyncio.Event):
        await cancel_event.wait()
        return
    while not cancel_event.is_set():
        await asyncio.sleep(_CANCEL_POLL_SECONDS)


async def _unless_cancelled(
    call:         Awaitable[T],
    cancel_event: CancelSignal | None,
    document_id:  str,
) -> T:
    """
    Await `call`, abandoning it as soon as `cancel_event` is set.
    The in-flight request is cancelled, not left to finish.
    """
    if cancel_event is None:
        return await call

    call_task    = asyncio.ensure_future(call)
    watcher_task = asyncio.ensure_future(_wait_for_cancel(cancel_event))
    try:
        await asyncio.wait({call_task, watcher_task}, return_when=asyncio.FIRST_COMPLETED)
        _raise_if_cancelled(cancel_event, document_id)
        return call_task.result()
    finally:
        for task in (call_task, watcher_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(call_task, watcher_task, return_exceptions=True)
