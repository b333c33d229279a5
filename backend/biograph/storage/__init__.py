from biograph.storage.base import ExtractionStore, ResourceType
from biograph.storage.factory import get_extraction_store

__all__ = ["ExtractionStore", "ResourceType", "get_extraction_store"]
