"""
biograph — chunked biographical extraction from .docx memoirs.

Public API::

    from biograph.services import DocumentService
    from biograph.storage import get_extraction_store

    service = DocumentService(get_extraction_store())
    summary = await service.ingest(data, "memoir.docx", "Anna, Piotr", uploaded_by="u-1")
    record  = await service.extract(summary.id, "u-1", credential=token)
"""

__version__ = "0.1.0"
