from biograph.models.documents import (
    DEFAULT_PARAGRAPH_STYLE,
    DocumentSummary,
    Paragraph,
    ParsedDocument,
)
from biograph.models.extraction import (
    BiographicalExtraction,
    ChunkExtraction,
    ExtractedConversation,
    ExtractedEvent,
    ExtractedPerson,
    ExtractedPlace,
    ExtractedThought,
    ExtractionCategories,
    SourceReference,
)

__all__ = [
    "DEFAULT_PARAGRAPH_STYLE",
    "DocumentSummary",
    "Paragraph",
    "ParsedDocument",
    "BiographicalExtraction",
    "ChunkExtraction",
    "ExtractedConversation",
    "ExtractedEvent",
    "ExtractedPerson",
    "ExtractedPlace",
    "ExtractedThought",
    "ExtractionCategories",
    "SourceReference",
]
