"""
Error taxonomy for the extraction pipeline.

  DocumentFormatError       bytes are not a readable .docx; fatal, never retried
  ExtractionTransportError  network failure reaching the LLM endpoint
  ExtractionApiError        non-2xx from the LLM endpoint (auth, quota, rate limit)

Transport and API errors abort the whole document run; the caller may retry
the document. A chunk whose response cannot be parsed is NOT an error: it
simply contributes nothing (see biograph.llm.parser).

Cancellation is plain asyncio.CancelledError and is never wrapped.
"""

from __future__ import annotations


class BiographError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Document errors
# ---------------------------------------------------------------------------

class DocumentFormatError(BiographError):
    """The uploaded bytes could not be parsed as a .docx document."""


class EmptyDocumentError(DocumentFormatError):
    """The document parsed, but contains no non-blank paragraphs."""


class InvalidSubjectNamesError(BiographError):
    """No usable subject name was supplied for a document."""


class DocumentNotFoundError(BiographError):
    """Unknown document id, or a document owned by someone else."""

    def __init__(self, document_id: str, message: str = "Document not found.") -> None:
        super().__init__(message)
        self.document_id = document_id


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(BiographError):
    """Base class for run-level extraction failures."""


class ExtractionTransportError(ExtractionError):
    """Connection, DNS, timeout or protocol failure talking to the LLM API."""

    def __init__(self, url: str, cause: Exception) -> None:
        super().__init__(f"Failed to connect to LLM API at {url}: {type(cause).__name__}: {cause}")
        self.url = url


class ExtractionApiError(ExtractionError):
    """
    The LLM API answered with a non-success status.

    body_excerpt is already truncated; the credential is never part of
    the message.
    """

    def __init__(self, status_code: int, body_excerpt: str = "") -> None:
        super().__init__(
            f"LLM API returned {status_code}. Check your API token and settings."
        )
        self.status_code  = status_code
        self.body_excerpt = body_excerpt
