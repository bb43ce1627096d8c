"""
pipeline.py - Target-size PDF compression pipeline.

Pipeline:
1. Open the source PDF
2. Plan scale/quality once from the byte budget
3. For each page: rasterize -> JPEG -> append to output PDF
4. Serialize

Pages are processed one at a time, in order. Any stage failure aborts the
run with a CompressionError; nothing partial is returned or written.
"""

import logging
import math
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .compression import encode_jpeg
from .errors import CompressionCancelled, CompressionError, SmartCompressorError
from .pdf_writer import A4_WIDTH_MM, PDFWriter
from .planner import CompressionPlan, plan
from .rasterize import open_document, render_page

logger = logging.getLogger(__name__)

# Default target when the caller gives none: 70% of the input size
DEFAULT_TARGET_RATIO = 0.7

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class CompressionResult:
    """Result of compressing a PDF."""
    data: bytes
    size: int
    page_count: int = 0
    plan: Optional[CompressionPlan] = None
    input_size: int = 0
    total_time: float = 0.0

    @property
    def compression_ratio(self) -> float:
        if self.input_size == 0:
            return 0
        return self.size / self.input_size

    @property
    def reduction_pct(self) -> float:
        if self.input_size == 0:
            return 0
        return (1 - self.compression_ratio) * 100

    def summary(self) -> str:
        lines = [
            f"Input:  {self.input_size:,} bytes",
            f"Output: {self.size:,} bytes",
            f"Reduction: {self.reduction_pct:.1f}%",
            f"Pages: {self.page_count}",
        ]
        if self.plan is not None:
            lines.append(f"Scale: {self.plan.scale}, quality: {self.plan.quality}")
        lines.append(f"Time: {self.total_time:.1f}s")
        return "\n".join(lines)


def progress_percent(done: int, total: int) -> int:
    """Percentage rounded half up, like JavaScript's Math.round."""
    return int(math.floor(done / total * 100 + 0.5))


def default_target_bytes(input_size: int, ratio: float = DEFAULT_TARGET_RATIO) -> float:
    return input_size * ratio


def compress(
    source_bytes: bytes,
    target_size_bytes: float,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None
) -> CompressionResult:
    """
    Rebuild a PDF as full-page JPEGs sized for a target byte count.

    Args:
        source_bytes: Complete input PDF
        target_size_bytes: Desired output size (approximate, not a ceiling)
        on_progress: Optional callback(percent), 0..100, called page_count + 1 times
        cancel_event: Optional event checked between pages

    Returns:
        CompressionResult; size is the real output size

    Raises:
        CompressionError: wrapping the first failure (ParseError, RenderError,
            EncodeError or AssemblyError)
    """
    start_time = time.time()
    writer = None

    try:
        with open_document(source_bytes) as doc:
            page_count = doc.page_count
            compression_plan = plan(page_count, target_size_bytes)

            logger.info(
                f"Processing {page_count} pages, {len(source_bytes):,} bytes in, "
                f"target {target_size_bytes:,.0f} bytes"
            )

            writer = PDFWriter.begin()

            for i in range(1, page_count + 1):
                if cancel_event is not None and cancel_event.is_set():
                    raise CompressionCancelled(f"Cancelled before page {i}/{page_count}")

                if on_progress:
                    on_progress(progress_percent(i - 1, page_count))

                frame = render_page(doc[i - 1], compression_plan.scale)
                image = encode_jpeg(frame, compression_plan.quality)
                frame = None
                writer.add_page(image, page_width_mm=A4_WIDTH_MM)

        if on_progress:
            on_progress(100)

        data = writer.finish()

    except CompressionError:
        raise
    except SmartCompressorError as e:
        logger.error(f"Compression failed: {e}")
        raise CompressionError(str(e), cause=e) from e
    except Exception as e:
        logger.error(f"Compression failed unexpectedly: {e}")
        raise CompressionError(f"Unexpected failure: {e}", cause=e) from e
    finally:
        if writer is not None:
            writer.close()

    result = CompressionResult(
        data=data,
        size=len(data),
        page_count=page_count,
        plan=compression_plan,
        input_size=len(source_bytes),
        total_time=time.time() - start_time
    )

    if result.size > target_size_bytes:
        logger.info(
            f"Output {result.size:,} bytes is above the {target_size_bytes:,.0f} byte target"
        )

    return result


def compress_file(
    input_path: Path,
    output_path: Path,
    target_size_bytes: Optional[float] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None
) -> CompressionResult:
    """
    Compress a PDF file to another file.

    Args:
        input_path: Input PDF
        output_path: Output PDF, only written when the run succeeds
        target_size_bytes: Target size (default: 70% of the input size)
        on_progress: Optional callback(percent)
        cancel_event: Optional event checked between pages

    Returns:
        CompressionResult
    """
    input_path = Path(input_path)
    output_path = Path(output_path)

    source_bytes = input_path.read_bytes()
    if target_size_bytes is None:
        target_size_bytes = default_target_bytes(len(source_bytes))

    result = compress(source_bytes, target_size_bytes, on_progress, cancel_event)

    # Write next to the destination, then swap in
    tmp_path = output_path.with_name(output_path.name + ".part")
    try:
        tmp_path.write_bytes(result.data)
        os.replace(tmp_path, output_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info(f"Saved {input_path.name} -> {output_path.name}\n{result.summary()}")
    return result
