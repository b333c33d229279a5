"""
Paragraph Extractor
═══════════════════

Converts raw .docx bytes into the ordered, indexed paragraph sequence that
the chunker and the LLM prompts are built from.

Rules:
  1. Body paragraphs are visited in document order.
  2. A paragraph is kept only if its stripped text is non-empty.
  3. Indices are assigned over KEPT paragraphs only: 0, 1, 2, … no gaps.
     Blank paragraphs never consume an index.
  4. Style = the paragraph's style id (w:pStyle/@w:val, e.g. "Heading1"),
     or "Normal" when the paragraph does not declare one.

Failure modes:
  - Bytes that are not a Word package  → DocumentFormatError (never retried)
  - A valid package with an empty body → []  (caller decides if that's an error)
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Protocol

import docx
from docx.text.paragraph import Paragraph as DocxParagraph

from biograph.core.exceptions import DocumentFormatError
from biograph.models.documents import DEFAULT_PARAGRAPH_STYLE, Paragraph

logger = logging.getLogger(__name__)


class _CancelSignal(Protocol):
    def is_set(self) -> bool: ...


def _style_id(paragraph: DocxParagraph) -> str:
    # CT_P.style is the raw w:pStyle value (None when absent); going through
    # paragraph.style would resolve to the document default style instead.
    return paragraph._p.style or DEFAULT_PARAGRAPH_STYLE


class ParagraphExtractor:
    """
    Stateless .docx → list[Paragraph] transform.

    Usage:
        paragraphs = ParagraphExtractor().extract(docx_bytes)
    """

    def extract(
        self,
        data:         bytes,
        cancel_event: _CancelSignal | None = None,
    ) -> list[Paragraph]:
        """
        Parse `data` and return the non-blank paragraphs with stable indices.

        Args:
            data:         Raw .docx file bytes.
            cancel_event: Optional event (threading or asyncio); checked once
                          per paragraph.

        Raises:
            DocumentFormatError:    the bytes are not a readable .docx.
            asyncio.CancelledError: cancel_event was set.
        """
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            logger.error("ParagraphExtractor | failed to open .docx: %s", exc)
            raise DocumentFormatError(
                "The uploaded file could not be parsed as a valid .docx document."
            ) from exc

        paragraphs: list[Paragraph] = []
        try:
            for raw in document.paragraphs:
                _raise_if_cancelled(cancel_event)

                text = (raw.text or "").strip()
                if not text:
                    continue

                paragraphs.append(
                    Paragraph(index=len(paragraphs), text=text, style=_style_id(raw))
                )
        except (ValueError, KeyError, AttributeError) as exc:
            logger.error("ParagraphExtractor | malformed document body: %s", exc)
            raise DocumentFormatError(
                "The uploaded file could not be parsed as a valid .docx document."
            ) from exc

        if not paragraphs:
            logger.warning("ParagraphExtractor | document has no non-empty paragraphs")
        else:
            logger.info("ParagraphExtractor | parsed %d non-empty paragraphs", len(paragraphs))
        return paragraphs


def _raise_if_cancelled(cancel_event: _CancelSignal | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("paragraph extraction cancelled")
