"""PDF page rendering and PNG encoding."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Iterator, Protocol, runtime_checkable

import fitz  # PyMuPDF
from PIL import Image

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 2048

_MODES_BY_COMPONENTS = {1: "L", 3: "RGB", 4: "RGBA"}


@dataclass(frozen=True, slots=True)
class RenderedPage:
    """Raw pixel buffer for a single rendered page."""

    width: int
    height: int
    pixels: bytes
    mode: str = "RGB"
    stride: int | None = None


@runtime_checkable
class PageRenderer(Protocol):
    """Capability that turns document bytes into per-page pixel buffers."""

    def iter_pages(self, data: bytes) -> Iterator[RenderedPage]:
        """Yield every page of the document in order, parsing the document once."""
        ...


class PyMuPdfRenderer:
    """Render PDF pages with PyMuPDF, scaled to fit a square bounding box."""

    def __init__(self, max_dimension: int = DEFAULT_MAX_DIMENSION) -> None:
        if max_dimension <= 0:
            raise ValueError("max_dimension must be positive")
        self.max_dimension = max_dimension

    def iter_pages(self, data: bytes) -> Iterator[RenderedPage]:
        with self._open(data) as document:
            LOGGER.info("Rendering %d pages", document.page_count)
            for page in document:
                yield self._render_page(page)

    def _render_page(self, page: fitz.Page) -> RenderedPage:
        zoom = self._zoom_for(page.rect.width, page.rect.height)
        pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), colorspace=fitz.csRGB, alpha=False)
        LOGGER.debug("Rendered page %s at zoom %.3f: %sx%s", page.number + 1, zoom, pixmap.width, pixmap.height)
        return RenderedPage(
            width=pixmap.width,
            height=pixmap.height,
            pixels=bytes(pixmap.samples),
            mode=_MODES_BY_COMPONENTS.get(pixmap.n, "RGB"),
            stride=pixmap.stride,
        )

    def _zoom_for(self, width: float, height: float) -> float:
        if width <= 0 or height <= 0:
            return 1.0
        return min(self.max_dimension / width, self.max_dimension / height)

    @staticmethod
    def _open(data: bytes) -> fitz.Document:
        return fitz.open(stream=data, filetype="pdf")


def encode_png(page: RenderedPage) -> bytes:
    """Encode a rendered page as PNG bytes."""

    stride = page.stride or 0
    image = Image.frombytes(page.mode, (page.width, page.height), page.pixels, "raw", page.mode, stride)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = ["DEFAULT_MAX_DIMENSION", "PageRenderer", "PyMuPdfRenderer", "RenderedPage", "encode_png"]
