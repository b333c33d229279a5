"""
Document Processing Package
════════════════════════════

  .docx bytes → Paragraph Extraction → Chunking → per-chunk LLM extraction
              → ordered Merge → Summary → BiographicalExtraction

Modules
───────
  extractor.py  .docx → indexed, non-blank paragraphs (python-docx)
  chunking.py   fixed-size, order-preserving paragraph windows
  merge.py      per-category concatenation + summary aggregation
  pipeline.py   orchestrator: bounded fan-out, ordered merge, cancellation

Design principles
─────────────────
  • Every component except the pipeline is a pure transform.
  • The only suspension point is the per-chunk HTTP call.
  • Every step emits structured log lines; credentials never do.
"""

from biograph.processing.chunking import ParagraphChunk, chunk_paragraphs
from biograph.processing.extractor import ParagraphExtractor
from biograph.processing.merge import (
    NO_DATA_SUMMARY,
    ExtractionAccumulator,
    aggregate_summaries,
    merge_categories,
)
from biograph.processing.pipeline import ExtractionPipeline

__all__ = [
    "ParagraphChunk",
    "chunk_paragraphs",
    "ParagraphExtractor",
    "NO_DATA_SUMMARY",
    "ExtractionAccumulator",
    "aggregate_summaries",
    "merge_categories",
    "ExtractionPipeline",
]
