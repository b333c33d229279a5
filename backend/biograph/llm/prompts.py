"""
Extraction prompts — system instruction + per-chunk user content.

The system instruction is fixed in structure:
  1. who the document is about (subject names / aliases)
  2. the exact JSON schema the answer must match
  3. the extraction rules (index back-references, short quotes, empty arrays,
     JSON only)

The user message lists the chunk's paragraphs, one per line:

    [Paragraph 12] (Heading1): Early years in Lisbon

Pure rendering: no I/O and no failure modes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Sequence

if TYPE_CHECKING:
    from biograph.processing.chunking import ParagraphChunk

# ---------------------------------------------------------------------------
# Response schema shown to the model (kept in sync with models/extraction.py)
# ---------------------------------------------------------------------------

RESPONSE_SCHEMA: Final[str] = """\
{
  "documentId": "",
  "extractedAt": "",
  "subjectNames": [],
  "categories": {
    "people": [
      {
        "id": "unique-id",
        "name": "person name",
        "relationship": "relationship to subject",
        "description": "brief description of this person's role/relevance",
        "sourceRefs": [{ "paragraphIndex": 0, "snippet": "relevant quote from text" }]
      }
    ],
    "events": [
      {
        "id": "unique-id",
        "title": "event title",
        "date": "date or time period if mentioned",
        "description": "what happened",
        "sourceRefs": [{ "paragraphIndex": 0, "snippet": "relevant quote" }]
      }
    ],
    "places": [
      {
        "id": "unique-id",
        "name": "place name",
        "context": "why this place is mentioned",
        "description": "details about the place",
        "sourceRefs": [{ "paragraphIndex": 0, "snippet": "relevant quote" }]
      }
    ],
    "conversations": [
      {
        "id": "unique-id",
        "participants": "who was involved",
        "topic": "what was discussed",
        "summary": "brief summary of the conversation",
        "sourceRefs": [{ "paragraphIndex": 0, "snippet": "relevant quote" }]
      }
    ],
    "thoughts": [
      {
        "id": "unique-id",
        "topic": "what the thought is about",
        "content": "the thought, opinion, or reflection",
        "attribution": "who expressed this thought",
        "sourceRefs": [{ "paragraphIndex": 0, "snippet": "relevant quote" }]
      }
    ]
  },
  "summary": "A 2-3 sentence summary of the biographical content in this section."
}"""

_SYSTEM_TEMPLATE: Final[str] = """\
You are a biographical data extraction assistant. The document is about or \
written by a person known by these names/aliases: {subject_names}.

Extract structured biographical information and return ONLY valid JSON matching this exact schema:

{schema}

Rules:
- Extract ALL people, events, places, conversations, and thoughts you can identify.
- The paragraphIndex in sourceRefs MUST match the paragraph index numbers provided in the input.
- The snippet should be a short direct quote (max 100 chars) from the source paragraph.
- Generate unique IDs (use simple format like "person-1", "event-1", etc.).
- If a category has no items, return an empty array for it.
- Return ONLY the JSON object. No markdown, no explanation."""

_USER_HEADER: Final[str] = "Extract biographical data from the following document paragraphs:"


@dataclass(frozen=True)
class ExtractionPrompt:
    """A rendered (system, user) pair for one chunk."""
    system: str
    user:   str

    def to_messages(self) -> list[dict[str, str]]:
        """OpenAI chat-completions message list."""
        return [
            {"role": "system", "content": self.system},
            {"role": "user",   "content": self.user},
        ]


def build_system_prompt(subject_names: Sequence[str]) -> str:
    return _SYSTEM_TEMPLATE.format(
        subject_names=", ".join(subject_names),
        schema=RESPONSE_SCHEMA,
    )


def build_user_content(chunk: ParagraphChunk) -> str:
    lines = [_USER_HEADER, ""]
    lines.extend(
        f"[Paragraph {p.index}] ({p.style}): {p.text}"
        for p in chunk.paragraphs
    )
    return "\n".join(lines) + "\n"


def build_prompt(subject_names: Sequence[str], chunk: ParagraphChunk) -> ExtractionPrompt:
    return ExtractionPrompt(
        system=build_system_prompt(subject_names),
        user=build_user_content(chunk),
    )
