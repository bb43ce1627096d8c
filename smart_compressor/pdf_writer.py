"""
pdf_writer.py - PDF assembly from encoded page images.

Each image becomes one page: fixed page width, height from the image's
aspect ratio, image drawn over the whole page (DCTDecode).
"""

import io
import logging
from typing import Optional

import pikepdf
from pikepdf import Pdf, Stream, Dictionary, Name

from .compression import EncodedImage
from .errors import AssemblyError

logger = logging.getLogger(__name__)

A4_WIDTH_MM = 210
POINTS_PER_MM = 72 / 25.4


def mm_to_points(mm: float) -> float:
    return mm * POINTS_PER_MM


class PDFWriter:
    """
    Assembles encoded pages into a PDF.

    One-shot: after finish() (or close()) the writer can no longer be used.
    """

    def __init__(self):
        self.pdf: Optional[Pdf] = Pdf.new()
        self.page_count = 0

    @classmethod
    def begin(cls) -> "PDFWriter":
        """Start a new output document."""
        try:
            return cls()
        except Exception as e:
            raise AssemblyError(f"Could not create output PDF: {e}") from e

    @property
    def finished(self) -> bool:
        return self.pdf is None

    def _require_open(self):
        if self.pdf is None:
            raise AssemblyError("PDF writer already finished")

    def add_page(self, image: EncodedImage, page_width_mm: float = A4_WIDTH_MM):
        """
        Add a page holding ``image`` at full page width.

        Page height is image.height * page_width_mm / image.width.
        """
        self._require_open()
        if image.width <= 0 or image.height <= 0:
            raise AssemblyError(
                f"Page {image.page_num + 1}: invalid image size {image.width}x{image.height}"
            )

        page_height_mm = image.height * page_width_mm / image.width
        width_pts = mm_to_points(page_width_mm)
        height_pts = mm_to_points(page_height_mm)

        try:
            self.pdf.add_blank_page(page_size=(width_pts, height_pts))
            page = self.pdf.pages[-1]

            colorspace = Name.DeviceRGB if image.is_color else Name.DeviceGray
            image_dict = Dictionary({
                '/Type': Name.XObject,
                '/Subtype': Name.Image,
                '/Width': image.width,
                '/Height': image.height,
                '/ColorSpace': colorspace,
                '/BitsPerComponent': 8,
                '/Filter': Name.DCTDecode,
            })
            img_stream = Stream(self.pdf, image.data, image_dict)

            xobjects = Dictionary({})
            xobjects['/Im0'] = self.pdf.make_indirect(img_stream)
            page.Resources = Dictionary({'/XObject': xobjects})

            # Image drawn from the page origin over the full page
            content = f"q {width_pts:.4f} 0 0 {height_pts:.4f} 0 0 cm /Im0 Do Q"
            page.Contents = self.pdf.make_indirect(
                Stream(self.pdf, content.encode("latin-1"))
            )
        except Exception as e:
            raise AssemblyError(f"Could not add page {image.page_num + 1}: {e}") from e

        self.page_count += 1

        mode = "color" if image.is_color else "gray"
        logger.debug(
            f"Added page {image.page_num + 1}: {image.total_size:,} bytes ({mode}), "
            f"{page_width_mm:.0f}x{page_height_mm:.1f} mm"
        )

    def finish(self) -> bytes:
        """Serialize the document. The writer is closed afterwards."""
        self._require_open()
        if self.page_count == 0:
            self.close()
            raise AssemblyError("Cannot write a PDF with no pages")

        buffer = io.BytesIO()
        try:
            self.pdf.save(
                buffer,
                compress_streams=True,
                object_stream_mode=pikepdf.ObjectStreamMode.generate
            )
        except Exception as e:
            raise AssemblyError(f"Could not serialize PDF: {e}") from e
        finally:
            self.close()

        data = buffer.getvalue()
        logger.info(f"Assembled {self.page_count} pages, {len(data):,} bytes")
        return data

    def close(self):
        """Release the document without writing it. Safe to call twice."""
        if self.pdf is not None:
            self.pdf.close()
            self.pdf = None
