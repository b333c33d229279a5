"""
Root conftest.py — Shared fixtures for ALL tests

Fixture hierarchy (all function-scoped):
  make_docx        : build real .docx bytes with python-docx
  make_document    : ParsedDocument with N generated paragraphs
  credential       : a fake bearer token (must never show up in logs)
  chunk_json       : a valid per-chunk LLM answer as a JSON string
  completion       : chat-completions httpx.Response around some content
  llm_client       : ExtractionClient wired to an httpx.MockTransport handler
  local_store      : LocalExtractionStore rooted in tmp_path

Environment strategy:
  - No network: every LLM call goes through httpx.MockTransport.
  - S3 tests patch aioboto3.Session — no AWS account needed.
  - Settings are read from env at import, so env is patched first.

How to run:
  pytest                            # all tests
  pytest -m unit                    # unit tests only
  pytest -m pipeline                # orchestrator tests
  pytest tests/unit/test_parser.py  # single file
"""

from __future__ import annotations

import io
import json
import os
import tempfile
from typing import Any, Callable

import pytest

# ─────────────────────────────────────────────────────────────────────────────
# Patch settings BEFORE any biograph imports so modules read test config
# ─────────────────────────────────────────────────────────────────────────────

os.environ.setdefault("LLM_MODEL",                "test-model")
os.environ.setdefault("LLM_BASE_URL",             "https://llm.test/v1")
os.environ.setdefault("MAX_PARAGRAPHS_PER_CHUNK", "40")
os.environ.setdefault("MAX_CONCURRENT_CHUNKS",    "4")
os.environ.setdefault("STORAGE_BACKEND",          "local")
os.environ.setdefault("STORAGE_ROOT",             tempfile.mkdtemp(prefix="biograph-test-"))
os.environ.setdefault("AWS_REGION",               "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID",        "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY",    "test")
os.environ.setdefault("S3_BUCKET",                "test-bucket")
os.environ.setdefault("S3_PREFIX",                "biograph")
os.environ.setdefault("APP_ENV",                  "development")
os.environ.setdefault("DEBUG",                    "true")

import docx  # noqa: E402
import httpx  # noqa: E402

TEST_CREDENTIAL = "sk-test-secret-credential"


@pytest.fixture
def credential() -> str:
    return TEST_CREDENTIAL


# ─────────────────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def make_docx() -> Callable[..., bytes]:
    """
    Factory: make_docx(["Para 1", "", "Para 3"], styles={0: "Heading 1"})
    Paragraph texts are written verbatim, blanks included.
    """
    def _make(texts: list[str], styles: dict[int, str] | None = None) -> bytes:
        document = docx.Document()
        for i, text in enumerate(texts):
            style = (styles or {}).get(i)
            if style:
                document.add_paragraph(text, style=style)
            else:
                document.add_paragraph(text)
        buf = io.BytesIO()
        document.save(buf)
        return buf.getvalue()

    return _make


@pytest.fixture
def make_document():
    """Factory: make_document(85) → ParsedDocument with paragraphs 0..84."""
    from biograph.models.documents import Paragraph, ParsedDocument

    def _make(
        count: int,
        subject_names: list[str] | None = None,
        uploaded_by: str = "user-1",
        **kwargs: Any,
    ) -> ParsedDocument:
        paragraphs = [Paragraph(index=i, text=f"Paragraph number {i}.") for i in range(count)]
        return ParsedDocument(
            file_name=kwargs.pop("file_name", "memoir.docx"),
            subject_names=subject_names or ["Anna"],
            uploaded_by=uploaded_by,
            paragraphs=paragraphs,
            total_paragraphs=count,
            **kwargs,
        )

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# LLM responses
# ─────────────────────────────────────────────────────────────────────────────

def build_chunk_json(
    people: list[str] | None = None,
    summary: str = "",
    paragraph_index: int = 0,
) -> str:
    """A schema-valid chunk answer with one person per name."""
    return json.dumps({
        "categories": {
            "people": [
                {
                    "id": f"person-{n}",
                    "name": name,
                    "relationship": "friend",
                    "description": "",
                    "sourceRefs": [{"paragraphIndex": paragraph_index, "snippet": name}],
                }
                for n, name in enumerate(people or [], start=1)
            ],
            "events": [],
            "places": [],
            "conversations": [],
            "thoughts": [],
        },
        "summary": summary,
    })


def completion_envelope(content: Any) -> dict[str, Any]:
    """OpenAI chat-completions response body wrapping `content`."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


@pytest.fixture
def chunk_json() -> Callable[..., str]:
    return build_chunk_json


@pytest.fixture
def completion() -> Callable[..., httpx.Response]:
    """Factory: completion(content, status=200) → chat-completions httpx.Response."""
    def _make(content: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, json=completion_envelope(content))

    return _make


@pytest.fixture
def llm_client():
    """
    Factory: llm_client(handler) → ExtractionClient whose HTTP calls are
    answered by `handler(request)` (sync or async) via httpx.MockTransport.
    """
    from biograph.llm.client import ExtractionClient

    def _make(handler, **kwargs: Any) -> ExtractionClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ExtractionClient(http_client=http, **kwargs)

    return _make


@pytest.fixture
def local_store(tmp_path):
    from biograph.storage.local import LocalExtractionStore
    return LocalExtractionStore(tmp_path / "storage")
