"""
Application configuration via environment variables (12-factor).
Pydantic BaseSettings validates and coerces all values at startup.

Every LLM default here (model, base URL, chunk size) is only a default:
callers may override model and base URL per extraction run.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------
    # LLM — OpenAI-compatible chat completions
    # ------------------------------------------------------------------
    llm_model:           str   = "gpt-4o-mini"
    llm_base_url:        str   = "https://api.openai.com/v1"
    llm_temperature:     float = 0.2
    llm_timeout_seconds: float = 120.0
    llm_error_body_limit: int  = 200   # chars of an error body kept for diagnostics

    # ------------------------------------------------------------------
    # Chunking / fan-out
    # ------------------------------------------------------------------
    max_paragraphs_per_chunk: int = Field(40, ge=1)
    max_concurrent_chunks:    int = Field(4, ge=1)   # 1 = strictly one chunk at a time

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    storage_backend: str = "local"        # "local" | "s3"
    storage_root:    str = "./storage"    # local backend only

    s3_bucket:  str = "biograph-documents"
    s3_prefix:  str = "biograph"
    aws_region: str = "us-east-1"

    # Local dev: set these; prod: use the task role (no static keys)
    aws_access_key_id:     str = ""
    aws_secret_access_key: str = ""

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    app_env: str = "development"   # development | staging | production
    debug: bool = False

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
