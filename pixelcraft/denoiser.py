"""Image denoising with a selectable filter."""

from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np
from scipy import ndimage

from pixelcraft.denoise_types import DenoiseMethod, DenoiseParameters, NoiseAnalysis
from pixelcraft.noise_analyzer import analyze_noise, recommend_method
from pixelcraft.sharpen_algorithms import _bilateral, _optimal_dft_size
from pixelcraft.wavelet import denoise_blocks

logger = logging.getLogger(__name__)

_METHOD_NAMES = {
    DenoiseMethod.MEDIAN: "Median",
    DenoiseMethod.GAUSSIAN: "Gaussian",
    DenoiseMethod.BILATERAL: "Bilateral",
    DenoiseMethod.NLM: "Non-Local Means",
    DenoiseMethod.WAVELET: "Wavelet",
}

_RGB_TO_XYZ = np.array(
    [
        [0.412453, 0.357580, 0.180423],
        [0.212671, 0.715160, 0.072169],
        [0.019334, 0.119193, 0.950227],
    ]
)
_XYZ_TO_RGB = np.array(
    [
        [3.240479, -1.53715, -0.498535],
        [-0.969256, 1.875991, 0.041556],
        [0.055648, -0.204043, 1.057311],
    ]
)
_WHITE_X = 0.950456
_WHITE_Z = 1.088754


def _method_name(method: DenoiseMethod) -> str:
    return _METHOD_NAMES.get(method, "Unknown")


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _bgr_to_lab(image: np.ndarray) -> np.ndarray:
    rgb = image[:, :, ::-1].astype(np.float64) / 255.0
    linear = np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)
    xyz = linear @ _RGB_TO_XYZ.T
    x = xyz[:, :, 0] / _WHITE_X
    y = xyz[:, :, 1]
    z = xyz[:, :, 2] / _WHITE_Z

    def f(t):
        return np.where(t > 0.008856, np.cbrt(t), 7.787 * t + 16.0 / 116.0)

    fx, fy, fz = f(x), f(y), f(z)
    lightness = np.where(y > 0.008856, 116.0 * np.cbrt(y) - 16.0, 903.3 * y)
    lab = np.stack(
        [lightness * 255.0 / 100.0, 500.0 * (fx - fy) + 128.0, 200.0 * (fy - fz) + 128.0],
        axis=2,
    )
    return _to_uint8(lab)


def _lab_to_bgr(lab8: np.ndarray) -> np.ndarray:
    lab = lab8.astype(np.float64)
    lightness = lab[:, :, 0] * 100.0 / 255.0
    a = lab[:, :, 1] - 128.0
    b = lab[:, :, 2] - 128.0
    y = np.where(lightness > 7.9996, ((lightness + 16.0) / 116.0) ** 3, lightness / 903.3)
    fy = np.where(lightness > 7.9996, (lightness + 16.0) / 116.0, 7.787 * y + 16.0 / 116.0)
    fx = fy + a / 500.0
    fz = fy - b / 200.0

    def inverse(t):
        return np.where(t > 0.206893, t**3, (t - 16.0 / 116.0) / 7.787)

    xyz = np.stack([inverse(fx) * _WHITE_X, y, inverse(fz) * _WHITE_Z], axis=2)
    linear = np.clip(xyz @ _XYZ_TO_RGB.T, 0.0, 1.0)
    rgb = np.where(
        linear <= 0.0031308, 12.92 * linear, 1.055 * linear ** (1.0 / 2.4) - 0.055
    )
    return _to_uint8(rgb[:, :, ::-1] * 255.0)


def _gaussian_kernel(size: int, sigma: float) -> np.ndarray:
    if sigma <= 0:
        sigma = 0.3 * ((size - 1) * 0.5 - 1) + 0.8
    offsets = np.arange(size) - (size - 1) / 2.0
    kernel = np.exp(-(offsets**2) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def _gaussian_blur(
    image: np.ndarray, ksize: Tuple[int, int], sigma_x: float, sigma_y: float
) -> np.ndarray:
    width, height = ksize
    if sigma_y <= 0:
        sigma_y = sigma_x
    src = image.astype(np.float64)
    out = ndimage.correlate1d(src, _gaussian_kernel(width, sigma_x), axis=1, mode="mirror")
    out = ndimage.correlate1d(out, _gaussian_kernel(height, sigma_y), axis=0, mode="mirror")
    return _to_uint8(out)


def _nlm(image: np.ndarray, h: float, template_size: int, search_size: int) -> np.ndarray:
    """Non-local means over an (H, W, C) float image."""
    height, width, channels = image.shape
    radius = max(search_size // 2, 0)
    template = max(template_size, 1)
    h2 = max(h, 1e-6) ** 2
    padded = np.pad(image, ((radius, radius), (radius, radius), (0, 0)), mode="reflect")
    total = np.zeros_like(image)
    weights = np.zeros((height, width))
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            shifted = padded[radius + dy : radius + dy + height, radius + dx : radius + dx + width]
            distance = ((image - shifted) ** 2).sum(axis=2) / channels
            distance = ndimage.uniform_filter(distance, size=template, mode="mirror")
            weight = np.exp(-distance / h2)
            total += weight[:, :, None] * shifted
            weights += weight
    return total / weights[:, :, None]


def _frequency_domain_filter(channel: np.ndarray) -> np.ndarray:
    """Suppress low frequencies of a channel with a Gaussian band-stop filter."""
    rows, cols = channel.shape
    padded = np.zeros((_optimal_dft_size(rows), _optimal_dft_size(cols)), dtype=np.float64)
    padded[:rows, :cols] = channel
    spectrum = np.fft.fft2(padded)
    cy, cx = padded.shape[0] // 2, padded.shape[1] // 2
    d2 = (np.arange(padded.shape[0])[:, None] - cy) ** 2 + (
        np.arange(padded.shape[1])[None, :] - cx
    ) ** 2
    cutoff = 30.0 * 10
    spectrum *= 1.0 - np.exp(-d2 / (2.0 * cutoff * cutoff))
    spatial = np.fft.ifft2(spectrum).real
    low, high = spatial.min(), spatial.max()
    scaled = (spatial - low) * 255.0 / (high - low) if high > low else np.zeros_like(spatial)
    return _to_uint8(scaled)[:rows, :cols]


class ImageDenoiser:
    """Removes noise from 8-bit gray or BGR images."""

    def denoise(self, image: np.ndarray, params: DenoiseParameters) -> np.ndarray:
        """Return a denoised copy of image using the method chosen in params."""
        logger.info("Starting image denoise")
        array = np.asarray(image)
        if array.size == 0:
            raise ValueError("Empty input image")
        channels = 1 if array.ndim == 2 else (array.shape[2] if array.ndim == 3 else 0)
        if array.dtype != np.uint8 or channels not in (1, 3):
            raise ValueError("Unsupported image format")

        method = recommend_method(array) if params.method is DenoiseMethod.AUTO else params.method
        logger.debug("Using denoise method: %s", _method_name(method))
        if method is DenoiseMethod.MEDIAN:
            self._validate_median(params)
            result = self._median(array, params)
        elif method is DenoiseMethod.GAUSSIAN:
            self._validate_gaussian(params)
            result = _gaussian_blur(array, params.gaussian_kernel, params.sigma_x, params.sigma_y)
        elif method is DenoiseMethod.BILATERAL:
            self._validate_bilateral(params)
            result = self._bilateral(array, params)
        elif method is DenoiseMethod.NLM:
            result = self._nlm(array, params)
        elif method is DenoiseMethod.WAVELET:
            result = denoise_blocks(array, params)
        else:
            raise RuntimeError("Unsupported denoising method")
        logger.info("Denoising completed using %s", _method_name(method))
        return result

    def analyze_noise(self, image: np.ndarray) -> NoiseAnalysis:
        """Analyse the noise in image."""
        return analyze_noise(image)

    @staticmethod
    def _validate_median(params: DenoiseParameters) -> None:
        if params.median_kernel % 2 == 0 or params.median_kernel < 3:
            raise ValueError("Median kernel size must be odd and >= 3")

    @staticmethod
    def _validate_gaussian(params: DenoiseParameters) -> None:
        width, height = params.gaussian_kernel
        if width <= 0 or height <= 0 or width % 2 == 0 or height % 2 == 0:
            raise ValueError("Gaussian kernel size must be odd")

    @staticmethod
    def _validate_bilateral(params: DenoiseParameters) -> None:
        if params.bilateral_d <= 0:
            raise ValueError("Bilateral d must be positive")

    @staticmethod
    def _median(image: np.ndarray, params: DenoiseParameters) -> np.ndarray:
        k = params.median_kernel
        size = (k, k) if image.ndim == 2 else (k, k, 1)
        return ndimage.median_filter(image, size=size, mode="nearest")

    @staticmethod
    def _bilateral(image: np.ndarray, params: DenoiseParameters) -> np.ndarray:
        if image.ndim == 3:
            lab = _bgr_to_lab(image)
            lab[:, :, 0] = _bilateral(
                lab[:, :, 0], params.bilateral_d, params.sigma_color, params.sigma_space
            )
            return _lab_to_bgr(lab)
        return _bilateral(image, params.bilateral_d, params.sigma_color, params.sigma_space)

    @staticmethod
    def _nlm(image: np.ndarray, params: DenoiseParameters) -> np.ndarray:
        template, search = params.nlm_template_size, params.nlm_search_size
        if image.ndim == 3:
            lab = _bgr_to_lab(image).astype(np.float64)
            lightness = _nlm(lab[:, :, :1], params.nlm_h, template, search)
            colour = _nlm(lab[:, :, 1:], params.nlm_h, template, search)
            return _lab_to_bgr(_to_uint8(np.concatenate([lightness, colour], axis=2)))
        plane = image.astype(np.float64)[:, :, None]
        return _to_uint8(_nlm(plane, params.nlm_h, template, search)[:, :, 0])