"""
Paragraph Chunker
═════════════════

Partitions the ordered paragraph sequence into fixed-size windows, one LLM
request per window.

Windows are counted in paragraphs, not characters: a paragraph always
reaches the model whole and with its index, since source references point
back at paragraph indices.

Guarantees:
  - concat(chunk.paragraphs for chunk in chunks) == paragraphs
  - every chunk has ≤ max_size paragraphs; only the last may be shorter
  - identical input → identical partition
  - [] → []  (zero chunks, not one empty chunk)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from biograph.models.documents import Paragraph

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARAGRAPHS_PER_CHUNK = 40


@dataclass(frozen=True)
class ParagraphChunk:
    """A contiguous, ordered slice of a document's paragraphs."""
    chunk_index: int                      # 0-based position among the chunks
    paragraphs:  tuple[Paragraph, ...]

    def __len__(self) -> int:
        return len(self.paragraphs)

    @property
    def first_index(self) -> int:
        return self.paragraphs[0].index

    @property
    def last_index(self) -> int:
        return self.paragraphs[-1].index


def chunk_paragraphs(
    paragraphs: Sequence[Paragraph],
    max_size:   int = DEFAULT_MAX_PARAGRAPHS_PER_CHUNK,
) -> list[ParagraphChunk]:
    """
    Split `paragraphs` into consecutive chunks of at most `max_size`.

    Raises:
        ValueError: max_size is not a positive integer.
    """
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 1:
        raise ValueError(f"max_size must be a positive integer, got {max_size!r}")

    chunks = [
        ParagraphChunk(chunk_index=n, paragraphs=tuple(paragraphs[start : start + max_size]))
        for n, start in enumerate(range(0, len(paragraphs), max_size))
    ]

    logger.debug(
        "Chunker | paragraphs=%d max_size=%d chunks=%d",
        len(paragraphs), max_size, len(chunks),
    )
    return chunks
