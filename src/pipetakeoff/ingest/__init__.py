"""Document ingestion: PDF rendering into page sessions."""

from .pipeline import DocumentIngestor
from .rendering import DEFAULT_MAX_DIMENSION, PageRenderer, PyMuPdfRenderer, RenderedPage, encode_png

__all__ = [
    "DEFAULT_MAX_DIMENSION",
    "DocumentIngestor",
    "PageRenderer",
    "PyMuPdfRenderer",
    "RenderedPage",
    "encode_png",
]
