"""
Parsed document models.

Paragraph index invariant:
  Blank / whitespace-only paragraphs are dropped BEFORE indices are assigned,
  so Paragraph.index is the position in the filtered sequence (0, 1, 2, …
  with no gaps), not the raw position in the .docx body. Source references
  produced by the LLM point at these indices.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import ConfigDict, Field

from biograph.models.base import CamelModel

DEFAULT_PARAGRAPH_STYLE = "Normal"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Paragraph(CamelModel):
    """One non-blank paragraph of a document. Immutable."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    text:  str = Field(..., min_length=1)
    style: str = DEFAULT_PARAGRAPH_STYLE


class ParsedDocument(CamelModel):
    """A parsed upload, as stored by the storage collaborator."""
    id:               str            = Field(default_factory=lambda: str(uuid.uuid4()))
    file_name:        str            = ""
    subject_names:    list[str]      = Field(default_factory=list)
    uploaded_by:      str            = ""
    uploaded_at:      datetime       = Field(default_factory=_utcnow)
    paragraphs:       list[Paragraph] = Field(default_factory=list)
    total_paragraphs: int            = 0


class DocumentSummary(CamelModel):
    """Listing view of a document, without paragraph bodies."""
    id:               str
    file_name:        str
    subject_names:    list[str] = Field(default_factory=list)
    uploaded_at:      datetime
    total_paragraphs: int  = 0
    has_extraction:   bool = False

    @classmethod
    def from_document(cls, doc: ParsedDocument, has_extraction: bool = False) -> "DocumentSummary":
        return cls(
            id=doc.id,
            file_name=doc.file_name,
            subject_names=list(doc.subject_names),
            uploaded_at=doc.uploaded_at,
            total_paragraphs=doc.total_paragraphs,
            has_extraction=has_extraction,
        )
