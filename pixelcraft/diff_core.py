"""Shared helpers of image comparison: colour conversion, validation and post-processing."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from pixelcraft.image import RGB, Image, ImageFormat
from pixelcraft.strategies import ComparisonResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CIELAB:
    """A colour as lightness and two opponent axes."""

    l: float
    a: float
    b: float


def rgb_to_lab(rgb: RGB) -> CIELAB:
    """Approximate Lab coordinates: Rec. 709 luma and two colour differences."""
    r, g, b = rgb.r, rgb.g, rgb.b
    return CIELAB(0.2126 * r + 0.7152 * g + 0.0722 * b, float(r - g), float(g - b))


def validate_images(img1: Image, img2: Image) -> bool:
    """True when both images are non-null and of equal size."""
    if img1.is_null or img2.is_null:
        logger.error("One or both images are null")
        return False
    if (img1.width, img1.height) != (img2.width, img2.height):
        logger.error(
            "Image sizes don't match: %dx%d vs %dx%d",
            img1.width,
            img1.height,
            img2.width,
            img2.height,
        )
        return False
    optimal = (ImageFormat.ARGB32, ImageFormat.RGB32)
    if img1.format not in optimal:
        logger.warning("First image format is not optimal: %s", img1.format.name)
    if img2.format not in optimal:
        logger.warning("Second image format is not optimal: %s", img2.format.name)
    return True


def post_process_result(result: ComparisonResult) -> None:
    """Stretch the bytes of the difference image in place to the full 0..255 range."""
    image = result.difference_image
    if image.is_null:
        logger.warning("Difference image is null, skipping post-processing")
        return
    bits = image.bits
    low = int(bits.min())
    high = int(bits.max())
    if low == high:
        logger.warning("No variance in difference image")
        return
    scale = np.float32(255.0 / (high - low))
    stretched = (bits.astype(np.float32) - np.float32(low)) * scale
    bits[...] = stretched.astype(np.uint8)
    logger.debug("Post-process stats - Min: %d, Max: %d, Scale: %.4f", low, high, scale)


def process_rows(
    img: Image, height: int, fn: Optional[Callable[[int], None]]
) -> None:
    """Call fn for every row index below height, spread over worker threads."""
    if img is None or img.is_null or height <= 0 or fn is None:
        raise ValueError("Invalid parameters in process_rows")
    workers = min(os.cpu_count() or 1, height)

    def run(start: int) -> None:
        for row in range(start, height, workers):
            fn(row)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(run, start) for start in range(workers)]
        for future in futures:
            future.result()