import io

import fitz
import numpy as np
import pytest
from PIL import Image


def _make_pdf(page_count=3, width=595, height=842, text=True):
    doc = fitz.open()
    for i in range(page_count):
        page = doc.new_page(width=width, height=height)
        if text:
            page.insert_text((50, 72), f"Hello page {i + 1}", fontsize=18)
            page.draw_rect(fitz.Rect(50, 100, 250, 200), color=(0, 0, 1), fill=(1, 0, 0))
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_factory():
    """Build an in-memory PDF: pdf_factory(page_count, width, height, text)."""
    return _make_pdf


@pytest.fixture
def sample_pdf():
    return _make_pdf(3)


@pytest.fixture
def transparent_pdf():
    """One page covered by an image: left half fully transparent, right half opaque blue."""
    rgba = np.zeros((100, 200, 4), dtype=np.uint8)
    rgba[:, 100:] = (0, 0, 255, 255)
    buffer = io.BytesIO()
    Image.fromarray(rgba).save(buffer, format="PNG")

    doc = fitz.open()
    page = doc.new_page(width=400, height=200)
    page.insert_image(page.rect, stream=buffer.getvalue())
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def noise_frame():
    from smart_compressor.rasterize import RasterFrame

    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=(120, 160, 3), dtype=np.uint8)
    return RasterFrame(page_num=0, pixels=pixels)


@pytest.fixture
def locked_pdf():
    """Two text pages, AES-256 encrypted with a user password."""
    doc = fitz.open(stream=_make_pdf(2), filetype="pdf")
    data = doc.tobytes(
        encryption=fitz.PDF_ENCRYPT_AES_256,
        owner_pw="owner-secret",
        user_pw="user-secret",
    )
    doc.close()
    return data
