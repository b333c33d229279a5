"""
Extraction models — the fixed schema the LLM must answer with, and the
aggregate record built from all chunks of a document.

Five entity variants, each with a generated id, 2–4 semantic string fields
and a list of source references back into the document's paragraphs.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import Field

from biograph.models.base import CamelModel


def _new_id() -> str:
    return str(uuid.uuid4())


class SourceReference(CamelModel):
    """
    Back-pointer to the paragraph an entity was derived from.

    paragraph_index is NOT checked against the document; renderers must
    cope with indices that do not resolve. A missing index binds as 0 so one
    incomplete reference does not cost the whole chunk. snippet is advisory
    (~100 chars).
    """
    paragraph_index: int = 0
    snippet:         str = ""


class ExtractedPerson(CamelModel):
    id:           str = Field(default_factory=_new_id)
    name:         str = ""
    relationship: str = ""
    description:  str = ""
    source_refs:  list[SourceReference] = Field(default_factory=list)


class ExtractedEvent(CamelModel):
    id:          str = Field(default_factory=_new_id)
    title:       str = ""
    date:        str = ""
    description: str = ""
    source_refs: list[SourceReference] = Field(default_factory=list)


class ExtractedPlace(CamelModel):
    id:          str = Field(default_factory=_new_id)
    name:        str = ""
    context:     str = ""
    description: str = ""
    source_refs: list[SourceReference] = Field(default_factory=list)


class ExtractedConversation(CamelModel):
    id:           str = Field(default_factory=_new_id)
    participants: str = ""
    topic:        str = ""
    summary:      str = ""
    source_refs:  list[SourceReference] = Field(default_factory=list)


class ExtractedThought(CamelModel):
    id:          str = Field(default_factory=_new_id)
    topic:       str = ""
    content:     str = ""
    attribution: str = ""
    source_refs: list[SourceReference] = Field(default_factory=list)


class ExtractionCategories(CamelModel):
    """Five parallel lists; order is append order across chunks."""
    people:        list[ExtractedPerson]       = Field(default_factory=list)
    events:        list[ExtractedEvent]        = Field(default_factory=list)
    places:        list[ExtractedPlace]        = Field(default_factory=list)
    conversations: list[ExtractedConversation] = Field(default_factory=list)
    thoughts:      list[ExtractedThought]      = Field(default_factory=list)

    def total(self) -> int:
        return (
            len(self.people) + len(self.events) + len(self.places)
            + len(self.conversations) + len(self.thoughts)
        )


class ChunkExtraction(CamelModel):
    """
    Validated shape of ONE chunk's LLM answer.
    Echoed top-level keys (documentId, extractedAt, subjectNames) are ignored.
    """
    categories: ExtractionCategories = Field(default_factory=ExtractionCategories)
    summary:    str = ""


class BiographicalExtraction(CamelModel):
    """
    Aggregate record for a whole document. A new run produces a new record
    that replaces the previous one entirely.
    """
    document_id:   str
    extracted_at:  datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    subject_names: list[str] = Field(default_factory=list)
    categories:    ExtractionCategories = Field(default_factory=ExtractionCategories)
    summary:       str = ""
