"""
LLM Package

  prompts.py  system instruction + per-chunk user content
  client.py   OpenAI-compatible chat-completions client (httpx)
  parser.py   schema-aware parse of the model's answer → ParseOutcome

Public API::

    from biograph.llm import ExtractionClient, build_prompt, parse_chunk_response
"""

from biograph.llm.client import ExtractionClient
from biograph.llm.parser import ParseOutcome, ParseStatus, parse_chunk_response
from biograph.llm.prompts import ExtractionPrompt, build_prompt

__all__ = [
    "ExtractionClient",
    "ExtractionPrompt",
    "ParseOutcome",
    "ParseStatus",
    "build_prompt",
    "parse_chunk_response",
]
