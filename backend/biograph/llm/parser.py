"""
Response Validator / Parser

Turns the model's raw text into a validated ChunkExtraction.

Contract: NEVER raises. Every outcome is a tagged ParseOutcome:

  EXTRACTED  valid JSON object matching the schema (categories may be empty)
  EMPTY      no text at all (None / "" / whitespace)
  FAILED     not JSON, not an object, or schema-violating

A chunk that comes back EMPTY or FAILED contributes nothing to the document;
one bad chunk never aborts the run. Only structure is checked: paragraph
indices in sourceRefs are not verified against the document.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from biograph.models.extraction import ChunkExtraction

logger = logging.getLogger(__name__)


class ParseStatus(str, enum.Enum):
    EXTRACTED = "extracted"
    EMPTY     = "empty"
    FAILED    = "failed"


@dataclass(frozen=True)
class ParseOutcome:
    status:     ParseStatus
    extraction: ChunkExtraction | None = None
    error:      str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.EXTRACTED


def parse_chunk_response(raw: str | None) -> ParseOutcome:
    """Parse one chunk's raw model output. Never raises."""
    if raw is None or not raw.strip():
        return ParseOutcome(ParseStatus.EMPTY)

    try:
        data = json.loads(raw)
    except ValueError as exc:
        return _failed(f"invalid JSON: {exc}")

    if not isinstance(data, dict):
        return _failed(f"expected a JSON object, got {type(data).__name__}")

    try:
        extraction = ChunkExtraction.model_validate(data)
    except ValidationError as exc:
        return _failed(f"schema mismatch: {exc.error_count()} error(s); first: {exc.errors()[0]['msg']}")
    except (ValueError, TypeError) as exc:
        return _failed(f"schema mismatch: {exc}")

    return ParseOutcome(ParseStatus.EXTRACTED, extraction=extraction)


def _failed(reason: str) -> ParseOutcome:
    logger.warning("ResponseParser | failed to parse model response: %s", reason)
    return ParseOutcome(ParseStatus.FAILED, error=reason)
