from biograph.services.documents import DocumentService, parse_subject_names

__all__ = ["DocumentService", "parse_subject_names"]
