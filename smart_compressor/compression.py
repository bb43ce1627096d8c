"""
compression.py - Raster frame to JPEG.

Color pages are encoded as RGB JPEG, effectively gray pages as
single-channel JPEG (smaller at the same quality).
"""

import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image
import cv2

from .errors import EncodeError
from .rasterize import RasterFrame

logger = logging.getLogger(__name__)

# Pillow JPEG quality range used for the 0..1 quality factor
MIN_JPEG_QUALITY = 1
MAX_JPEG_QUALITY = 95  # above this Pillow disables some compression steps

# Saturation threshold for grayscale conversion
# Only convert to grayscale if mean saturation is below this
GRAYSCALE_SATURATION_THRESHOLD = 10  # Out of 255


@dataclass
class EncodedImage:
    """JPEG payload ready for PDF embedding."""
    page_num: int
    data: bytes
    width: int
    height: int
    is_color: bool

    @property
    def total_size(self) -> int:
        return len(self.data)


def jpeg_quality(quality: float) -> int:
    """Map a 0..1 quality factor onto Pillow's JPEG quality scale."""
    return max(MIN_JPEG_QUALITY, min(MAX_JPEG_QUALITY, int(round(quality * 100))))


def is_grayscale_image(image: np.ndarray) -> bool:
    """
    Check if image is effectively grayscale based on saturation.

    Only returns True if the entire page has very low saturation.
    """
    if len(image.shape) != 3 or image.shape[2] != 3:
        return True  # Already grayscale

    hsv = cv2.cvtColor(image, cv2.COLOR_RGB2HSV)
    mean_saturation = np.mean(hsv[:, :, 1])

    is_gray = mean_saturation < GRAYSCALE_SATURATION_THRESHOLD
    logger.debug(f"Mean saturation: {mean_saturation:.1f}, is_grayscale: {is_gray}")

    return is_gray


def encode_jpeg(frame: RasterFrame, quality: float) -> EncodedImage:
    """
    Encode a rendered page as JPEG.

    Args:
        frame: Rendered page (RGB)
        quality: 0..1, higher = bigger and sharper

    Returns:
        EncodedImage with the JPEG bytes and pixel dimensions
    """
    image = frame.pixels
    if image.ndim < 2 or frame.width == 0 or frame.height == 0:
        raise EncodeError(f"Page {frame.page_num + 1}: cannot encode an empty frame")

    q = jpeg_quality(quality)

    try:
        is_color = not is_grayscale_image(image)

        if image.ndim == 2:
            img = Image.fromarray(image)
        elif not is_color:
            # Convert to grayscale since it's effectively gray anyway
            gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
            img = Image.fromarray(gray)
        else:
            img = Image.fromarray(np.ascontiguousarray(image[:, :, :3]))

        buffer = io.BytesIO()
        img.save(
            buffer,
            format="JPEG",
            quality=q,
            optimize=True,
            subsampling=2  # 4:2:0 chroma subsampling
        )
    except Exception as e:
        raise EncodeError(f"Page {frame.page_num + 1}: JPEG encoding failed: {e}") from e

    data = buffer.getvalue()

    logger.info(
        f"Page {frame.page_num + 1}: {len(data):,} bytes | "
        f"{frame.width}x{frame.height} | color={is_color} | q={q}"
    )

    return EncodedImage(
        page_num=frame.page_num,
        data=data,
        width=frame.width,
        height=frame.height,
        is_color=is_color
    )
