"""
Shared pydantic base for every persisted / wire-level model.

  - Serialises with camelCase aliases (paragraphIndex, sourceRefs, …) so the
    stored JSON and the LLM schema use the same field names.
  - Accepts snake_case field names as well as the aliases.
  - Binds keys case-insensitively: "SourceRefs", "PARAGRAPHINDEX" and
    "sourceRefs" all land on the same field. LLMs are not consistent about
    key casing, and a casing slip must not cost us a whole chunk.
  - A JSON null means "use the default": missing and null are the same.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _bind_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data   # let pydantic reject it with a proper error

        lookup: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            lookup[name.lower()] = name
            if field.alias:
                lookup[field.alias.lower()] = name

        bound: dict[Any, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            target = lookup.get(key.lower()) if isinstance(key, str) else None
            bound[target or key] = value
        return bound

    def to_json(self) -> str:
        """Indented camelCase JSON, the on-disk format."""
        return self.model_dump_json(by_alias=True, indent=2)
