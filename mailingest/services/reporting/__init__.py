"""Report and document generation"""

from .document_writer import DocumentWriter

__all__ = ["DocumentWriter"]
