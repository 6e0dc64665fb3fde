"""Statistical analysis of image noise and choice of a denoising method."""

from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np
from scipy import ndimage

from pixelcraft.denoise_types import DenoiseMethod, NoiseAnalysis, NoiseType

logger = logging.getLogger(__name__)

_OUTLIER_DELTA = 30.0
_SSIM_C1 = 6.5025
_SSIM_C2 = 58.5225


def _to_gray(image: np.ndarray) -> np.ndarray:
    array = np.asarray(image)
    if array.size == 0:
        raise ValueError("input image is empty")
    if array.ndim == 2:
        return array.astype(np.float64)
    if array.ndim == 3:
        channels = array.shape[2]
        if channels == 1:
            return array[:, :, 0].astype(np.float64)
        if channels in (3, 4):
            src = array.astype(np.float64)
            gray = 0.114 * src[:, :, 0] + 0.587 * src[:, :, 1] + 0.299 * src[:, :, 2]
            return np.clip(np.rint(gray), 0, 255)
    raise ValueError("unsupported image layout")


def _gaussian_blur(plane: np.ndarray, ksize: int, sigma: float) -> np.ndarray:
    offsets = np.arange(ksize) - (ksize - 1) / 2.0
    kernel = np.exp(-(offsets**2) / (2.0 * sigma * sigma))
    kernel /= kernel.sum()
    out = ndimage.correlate1d(plane, kernel, axis=1, mode="mirror")
    return ndimage.correlate1d(out, kernel, axis=0, mode="mirror")


def _median3(gray: np.ndarray) -> np.ndarray:
    return ndimage.median_filter(gray, size=3, mode="mirror")


def _image_statistics(gray: np.ndarray) -> Tuple[float, float, float, float]:
    """Mean, variance, skewness and kurtosis of the pixel values."""
    mean = float(gray.mean())
    centered = gray - mean
    variance = float((centered**2).mean())
    if variance <= 0.0:
        return mean, 0.0, 0.0, 0.0
    skewness = float((centered**3).mean()) / variance**1.5
    kurtosis = float((centered**4).mean()) / variance**2
    return mean, variance, skewness, kurtosis


def _estimate_noise_level(gray: np.ndarray) -> float:
    """Noise sigma from a Laplacian-difference mask, scaled to [0, 1]."""
    height, width = gray.shape
    if height < 3 or width < 3:
        return 0.0
    mask = np.array([[1, -2, 1], [-2, 4, -2], [1, -2, 1]], dtype=np.float64)
    response = ndimage.correlate(gray, mask, mode="mirror")[1:-1, 1:-1]
    sigma = math.sqrt(math.pi / 2.0) * float(np.abs(response).sum())
    sigma /= 6.0 * (width - 2) * (height - 2)
    return min(sigma / 255.0, 1.0)


def _detect_salt_pepper(gray: np.ndarray) -> float:
    """Fraction of pixels that are extreme and stand out from their neighbourhood."""
    extreme = (gray <= 0) | (gray >= 255)
    outlier = np.abs(gray - _median3(gray)) > _OUTLIER_DELTA
    return float((extreme & outlier).mean())


def _detect_gaussian(gray: np.ndarray) -> float:
    """Likelihood that the high-frequency residual is normally distributed."""
    residual = gray - np.rint(_gaussian_blur(gray, 5, 1.5))
    variance = float(residual.var())
    if variance < 1e-12:
        return 0.0
    centered = residual - residual.mean()
    kurtosis = float((centered**4).mean()) / variance**2
    return math.exp(-abs(kurtosis - 3.0) / 2.0)


def _estimate_periodic_noise(gray: np.ndarray) -> float:
    """Share of the non-low-frequency power held by the strongest frequency pair."""
    height, width = gray.shape
    power = np.abs(np.fft.fft2(gray - gray.mean())) ** 2
    fy = np.fft.fftfreq(height) * height
    fx = np.fft.fftfreq(width) * width
    distance = np.hypot(fy[:, None], fx[None, :])
    cutoff = max(1, min(height, width) // 16)
    high = power[distance >= cutoff]
    total = float(high.sum())
    if high.size == 0 or total <= 1e-12:
        return 0.0
    return min(1.0, 2.0 * float(high.max()) / total)


def _noise_distribution(gray: np.ndarray) -> np.ndarray:
    """Mask of 255 where a pixel departs from its 3x3 median, 0 elsewhere."""
    outlier = np.abs(gray - _median3(gray)) > _OUTLIER_DELTA
    return np.where(outlier, 255, 0).astype(np.uint8)


def analyze_noise(image: np.ndarray) -> NoiseAnalysis:
    """Estimate noise strength, SNR, a noise mask and the likely kind of noise."""
    logger.info("Starting comprehensive noise analysis")
    gray = _to_gray(image)
    mean, variance, _skewness, kurtosis = _image_statistics(gray)

    intensity = _estimate_noise_level(gray)
    stddev = math.sqrt(variance)
    if stddev > 0.0:
        snr = mean / stddev
    else:
        snr = math.inf if mean > 0.0 else 0.0

    probabilities = {
        NoiseType.GAUSSIAN: math.exp(-abs(kurtosis - 3.0) / 2.0),
        NoiseType.SALT_AND_PEPPER: _detect_salt_pepper(gray),
        NoiseType.SPECKLE: min(variance / (mean * mean), 1.0) if mean > 0.0 else 0.0,
        NoiseType.PERIODIC: _estimate_periodic_noise(gray),
    }
    strongest = max(probabilities, key=probabilities.__getitem__)
    noise_type = strongest if probabilities[strongest] > 0.5 else NoiseType.MIXED

    analysis = NoiseAnalysis(
        noise_type=noise_type,
        intensity=intensity,
        snr=snr,
        noise_mask=_noise_distribution(gray),
        probabilities=probabilities,
    )
    logger.info(
        "Noise analysis completed. Type: %s, Intensity: %.2f, SNR: %.2f",
        noise_type.name,
        intensity,
        snr,
    )
    return analysis


def _ssim_with_blur(gray: np.ndarray) -> float:
    img1 = gray
    img2 = np.rint(_gaussian_blur(gray, 5, 1.5))
    mu1 = _gaussian_blur(img1, 11, 1.5)
    mu2 = _gaussian_blur(img2, 11, 1.5)
    mu1_2 = mu1 * mu1
    mu2_2 = mu2 * mu2
    mu1_mu2 = mu1 * mu2
    sigma1_2 = _gaussian_blur(img1 * img1, 11, 1.5) - mu1_2
    sigma2_2 = _gaussian_blur(img2 * img2, 11, 1.5) - mu2_2
    sigma12 = _gaussian_blur(img1 * img2, 11, 1.5) - mu1_mu2
    numerator = (2 * mu1_mu2 + _SSIM_C1) * (2 * sigma12 + _SSIM_C2)
    denominator = (mu1_2 + mu2_2 + _SSIM_C1) * (sigma1_2 + sigma2_2 + _SSIM_C2)
    return float((numerator / denominator).mean())


def recommend_method(image: np.ndarray) -> DenoiseMethod:
    """Pick a denoising method suited to the noise found in image."""
    logger.info("Starting noise analysis for method recommendation")
    gray = _to_gray(image)

    salt_pepper = _detect_salt_pepper(gray)
    gaussian = _detect_gaussian(gray)
    logger.debug("Salt and pepper ratio: %s, Gaussian likelihood: %s", salt_pepper, gaussian)
    if salt_pepper > 0.1:
        logger.info("Detected salt and pepper noise, using Median filter")
        return DenoiseMethod.MEDIAN
    if gaussian > 0.7:
        logger.info("Detected Gaussian noise, using Gaussian filter")
        return DenoiseMethod.GAUSSIAN
    if _estimate_periodic_noise(gray) > 0.5:
        logger.info("Detected periodic noise, using Wavelet filter")
        return DenoiseMethod.WAVELET

    ssim = _ssim_with_blur(gray)
    logger.debug("SSIM result: %.4f", ssim)
    return DenoiseMethod.NLM if ssim > 0.8 else DenoiseMethod.BILATERAL