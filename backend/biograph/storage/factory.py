"""
Extraction Store Factory

Selects the storage backend (local | s3) based on config. The service layer
only imports get_extraction_store(), never the concrete classes.
"""

from __future__ import annotations

from biograph.core.config import settings
from biograph.storage.base import ExtractionStore


def get_extraction_store(backend: str | None = None) -> ExtractionStore:
    """Return a store for the configured (or explicitly named) backend."""
    backend = (backend or settings.storage_backend).lower()

    if backend == "local":
        from biograph.storage.local import LocalExtractionStore
        return LocalExtractionStore(settings.storage_root)

    if backend == "s3":
        from biograph.storage.s3 import S3ExtractionStore
        return S3ExtractionStore()

    raise ValueError(
        f"Unknown storage backend: '{backend}'. "
        f"Valid options: 'local', 's3'"
    )
