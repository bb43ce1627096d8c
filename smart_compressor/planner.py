"""
planner.py - Byte budget to (scale, quality) planning.

One plan per document, applied to every page:
1. Subtract estimated PDF structure overhead from the target size
2. Split what is left evenly across pages
3. Pick scale/quality from a fixed policy table

Rasterized JPEG size cannot be known ahead of time, so the table maps a
per-page budget to settings that usually land inside it.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

logger = logging.getLogger(__name__)

# Structure overhead estimate (document + per page)
BASE_OVERHEAD = 5000
PAGE_OVERHEAD = 2000

# Legibility floors - we overshoot the target rather than go below these
MIN_SCALE = 0.4
MIN_QUALITY = 0.1

# (budget per page threshold in bytes, scale, quality), most generous first.
# Thresholds are strict: budget must be greater than the threshold.
# 1.0 scale on A4 is ~595x842 px; at quality 0.6 a text page is ~50-100 KB.
POLICY_TABLE: Tuple[Tuple[int, float, float], ...] = (
    (300 * 1024, 1.2, 0.8),  # generous
    (100 * 1024, 1.0, 0.6),  # moderate
    (50 * 1024, 0.8, 0.5),   # tight
)
FALLBACK_SETTINGS = (0.6, 0.4)  # very tight


@dataclass(frozen=True)
class CompressionPlan:
    """Scale and JPEG quality used for every page of one run."""
    scale: float
    quality: float
    budget_per_page: float = 0.0


def mb_to_bytes(size_mb: float) -> float:
    """Convert megabytes (1024 * 1024) to bytes."""
    return size_mb * 1024 * 1024


def estimate_budget(page_count: int, target_size_bytes: float) -> Tuple[int, float, float]:
    """
    Split a target size into overhead and image budget.

    Returns:
        (overhead, available_for_images, budget_per_page)
    """
    if page_count < 1:
        raise ValueError(f"page_count must be at least 1, got {page_count}")

    overhead = BASE_OVERHEAD + page_count * PAGE_OVERHEAD
    available = max(0, target_size_bytes - overhead)
    return overhead, available, available / page_count


def select_settings(budget_per_page: float) -> Tuple[float, float]:
    """Look up (scale, quality) for a per-page byte budget."""
    for threshold, scale, quality in POLICY_TABLE:
        if budget_per_page > threshold:
            return scale, quality
    return FALLBACK_SETTINGS


def plan(page_count: int, target_size_bytes: float) -> CompressionPlan:
    """
    Compute the compression plan for a document.

    Args:
        page_count: Number of pages (>= 1)
        target_size_bytes: Desired output size in bytes

    Returns:
        CompressionPlan with scale and quality clamped to the floors
    """
    _, _, budget_per_page = estimate_budget(page_count, target_size_bytes)

    scale, quality = select_settings(budget_per_page)
    scale = max(scale, MIN_SCALE)
    quality = max(quality, MIN_QUALITY)

    logger.info(
        f"Compression plan: target={target_size_bytes / (1024 * 1024):.2f} MB, "
        f"pages={page_count}, budget/page={round(budget_per_page / 1024)} KB "
        f"-> scale={scale}, quality={quality}"
    )

    return CompressionPlan(scale=scale, quality=quality, budget_per_page=budget_per_page)
