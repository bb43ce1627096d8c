"""
rasterize.py - PDF page to RGB raster using PyMuPDF.

Fast in-memory rendering. Scale 1.0 is the page's native size at 72 DPI.
"""

import logging
from dataclasses import dataclass

import numpy as np
try:
    import fitz  # pip install pymupdf
except ImportError:
    import pymupdf as fitz  # apt install python3-pymupdf

from .errors import ParseError, RenderError

logger = logging.getLogger(__name__)


@dataclass
class RasterFrame:
    """Rendered page pixels: (height, width, 3) uint8 RGB on opaque white."""
    page_num: int
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


def open_document(source_bytes: bytes) -> "fitz.Document":
    """
    Open a PDF from memory.

    The caller owns the returned document and must close it.

    Raises:
        ParseError: not a PDF, password protected, or no pages
    """
    try:
        doc = fitz.open(stream=source_bytes, filetype="pdf")
    except Exception as e:
        raise ParseError(f"Could not open PDF: {e}") from e

    try:
        if doc.needs_pass:
            raise ParseError("PDF is password protected")
        if doc.page_count == 0:
            raise ParseError("PDF has no pages")
    except ParseError:
        doc.close()
        raise
    except Exception as e:
        doc.close()
        raise ParseError(f"Could not read PDF structure: {e}") from e

    logger.debug(f"Opened PDF: {doc.page_count} pages")
    return doc


def render_page(page: "fitz.Page", scale: float) -> RasterFrame:
    """
    Rasterize a single PDF page to an RGB frame.

    Args:
        page: Source page
        scale: Zoom factor (1.0 = 72 DPI)

    Returns:
        RasterFrame owning a copy of the pixels
    """
    page_num = page.number
    try:
        matrix = fitz.Matrix(scale, scale)

        # alpha=False: MuPDF clears the surface to opaque white before drawing,
        # so transparent areas come out white instead of black.
        pixmap = page.get_pixmap(matrix=matrix, alpha=False, colorspace=fitz.csRGB)

        image = np.frombuffer(pixmap.samples, dtype=np.uint8).reshape(
            pixmap.height, pixmap.width, 3
        ).copy()  # Copy to own the memory
        pixmap = None
    except Exception as e:
        raise RenderError(f"Failed to render page {page_num + 1}: {e}") from e

    if image.size == 0:
        raise RenderError(f"Page {page_num + 1} rendered to an empty raster")

    logger.debug(
        f"Rasterized page {page_num}: {image.shape[1]}x{image.shape[0]} @ scale {scale}"
    )

    return RasterFrame(page_num=page_num, pixels=image)
