"""
Cross-chunk merge + summary aggregation.

Merge semantics are plain list concatenation per category, in the order
chunks are fed in. There is NO entity resolution: "Maria" found in chunk 1
and again in chunk 3 yields two ExtractedPerson entries.

Because concatenation is associative, merging [c1, c2] then [c3] gives the
same lists as merging [c1, c2, c3] in one pass, so the pipeline can merge
incrementally as long as it feeds results in chunk-index order.
"""

from __future__ import annotations

import logging
from typing import Iterable

from biograph.models.extraction import ChunkExtraction, ExtractionCategories

logger = logging.getLogger(__name__)

NO_DATA_SUMMARY = "No biographical data could be extracted from this document."

_CATEGORY_FIELDS = ("people", "events", "places", "conversations", "thoughts")


def merge_categories(
    target: ExtractionCategories,
    source: ExtractionCategories | None,
) -> None:
    """Append every list of `source` onto `target`, in place. None is a no-op."""
    if source is None:
        return
    for name in _CATEGORY_FIELDS:
        getattr(target, name).extend(getattr(source, name))


def aggregate_summaries(parts: Iterable[str]) -> str:
    """
    0 summaries → NO_DATA_SUMMARY
    1 summary   → that summary, verbatim
    N summaries → space-joined, in chunk order
    """
    parts = list(parts)
    if not parts:
        return NO_DATA_SUMMARY
    if len(parts) == 1:
        return parts[0]
    return " ".join(parts)


class ExtractionAccumulator:
    """
    Per-run accumulator. Owned by exactly one pipeline run and never shared
    between documents or between concurrent tasks.
    """

    def __init__(self) -> None:
        self.categories = ExtractionCategories()
        self.summaries: list[str] = []
        self.chunks_merged = 0

    def add(self, result: ChunkExtraction | None) -> None:
        if result is None:
            return
        merge_categories(self.categories, result.categories)
        if result.summary and result.summary.strip():
            self.summaries.append(result.summary)
        self.chunks_merged += 1

    def extend(self, results: Iterable[ChunkExtraction | None]) -> None:
        for result in results:
            self.add(result)

    def summary(self) -> str:
        return aggregate_summaries(self.summaries)
