"""Wavelet-style denoising: a multi-level low/high split and a block-wise variant."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
from scipy import ndimage

from pixelcraft.denoise_types import DenoiseParameters

logger = logging.getLogger(__name__)

_HAAR_SCALE = np.float32(0.707106781)


def _as_array(src: np.ndarray) -> np.ndarray:
    array = np.asarray(src)
    if array.size == 0:
        raise ValueError("input image is empty")
    if array.ndim not in (2, 3):
        raise ValueError("unsupported image layout")
    return array


def _restore(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    return values.astype(dtype)


def _to_zero(values: np.ndarray, threshold: float) -> np.ndarray:
    """Keep values above threshold, set the rest to zero."""
    return np.where(values > threshold, values, np.zeros_like(values))


def _linear_coords(dst: int, src: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    pos = (np.arange(dst) + 0.5) * (src / dst) - 0.5
    i0 = np.floor(pos).astype(np.int64)
    frac = pos - i0
    below = i0 < 0
    frac[below] = 0.0
    i0[below] = 0
    above = i0 >= src - 1
    frac[above] = 0.0
    i0[above] = src - 1
    i1 = np.minimum(i0 + 1, src - 1)
    return i0, i1, frac


def _resize_linear(plane: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    rows, cols = shape
    r0, r1, fr = _linear_coords(rows, plane.shape[0])
    out = plane[r0] * (1.0 - fr[:, None]) + plane[r1] * fr[:, None]
    c0, c1, fc = _linear_coords(cols, plane.shape[1])
    out = out[:, c0] * (1.0 - fc[None, :]) + out[:, c1] * fc[None, :]
    return out.astype(np.float32)


def _decompose_one_level(coeffs: np.ndarray) -> np.ndarray:
    """Stack a 3x3 box-blurred low band above the residual high band."""
    low = ndimage.uniform_filter(coeffs, size=3, mode="mirror")
    high = coeffs - low
    return np.vstack([low, high])


def _recompose_one_level(coeffs: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    """Add the stacked bands back together and fit the result to shape."""
    half = coeffs.shape[0] // 2
    combined = coeffs[:half] + coeffs[half : 2 * half]
    if combined.shape != tuple(shape):
        combined = _resize_linear(combined, shape)
    return combined


def _process_single_channel(plane: np.ndarray, levels: int, threshold: float) -> np.ndarray:
    source = plane.astype(np.float32)
    coeffs = source.copy()
    for level in range(levels):
        coeffs = _decompose_one_level(coeffs)
        logger.debug("Decomposed level %d", level + 1)
    coeffs = _to_zero(coeffs, threshold)
    for level in range(levels):
        coeffs = _recompose_one_level(coeffs, source.shape)
        logger.debug("Recomposed level %d", level + 1)
    return _restore(coeffs, plane.dtype)


def denoise_levels(src: np.ndarray, levels: int, threshold: float) -> np.ndarray:
    """Split into bands over several levels, zero small coefficients and recombine.

    Of a multi-channel image only the first channel is processed.
    """
    array = _as_array(src)
    logger.debug("Starting wavelet denoise with levels: %d, threshold: %s", levels, threshold)
    if array.ndim == 2:
        return _process_single_channel(array, levels, threshold)
    result = array.copy()
    result[:, :, 0] = _process_single_channel(array[:, :, 0], levels, threshold)
    return result


def _adaptive_threshold(block: np.ndarray, noise_estimate: float) -> np.float32:
    magnitudes = np.sort(np.abs(block).ravel())
    median = float(magnitudes[magnitudes.size // 2])
    return np.float32(median * noise_estimate)


def _process_block(block: np.ndarray, params: DenoiseParameters) -> np.ndarray:
    for _ in range(params.wavelet_level):
        block = block * _HAAR_SCALE
        block = block * _HAAR_SCALE
    if params.use_adaptive_threshold:
        threshold = _adaptive_threshold(block, params.noise_estimate)
    else:
        threshold = np.float32(params.wavelet_threshold)
    return _to_zero(block, threshold)


def denoise_blocks(src: np.ndarray, params: DenoiseParameters) -> np.ndarray:
    """Scale each block by the forward Haar factors per level, then threshold it."""
    array = _as_array(src)
    if params.block_size <= 0:
        raise ValueError("block size must be positive")
    logger.info("Starting wavelet denoise with parameters")
    working = array.astype(np.float32)
    rows, cols = working.shape[:2]
    step = params.block_size
    for y in range(0, rows, step):
        for x in range(0, cols, step):
            region = (slice(y, min(y + step, rows)), slice(x, min(x + step, cols)))
            working[region] = _process_block(working[region].copy(), params)
    logger.info("Wavelet denoise completed")
    return _restore(working, array.dtype)