"""Image sharpening algorithms working on numpy arrays of shape (H, W) or (H, W, C)."""

from __future__ import annotations

import abc
import math
from typing import List, Optional

import numpy as np
from scipy import ndimage

from pixelcraft.sharpen_params import (
    AdaptiveUnsharpParams,
    BilateralSharpParams,
    CustomKernelParams,
    EdgeFilter,
    EdgePreservingParams,
    FrequencyDomainParams,
    HighBoostParams,
    LaplaceParams,
    LaplacianOfGaussianParams,
    UnsharpMaskParams,
)


def _saturate(values: np.ndarray, dtype) -> np.ndarray:
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    return np.asarray(values).astype(dtype)


def _channel_count(image: np.ndarray) -> int:
    return 1 if image.ndim == 2 else image.shape[2]


def _split(image: np.ndarray) -> List[np.ndarray]:
    if image.ndim == 2:
        return [image]
    return [image[:, :, c] for c in range(image.shape[2])]


def _merge(planes: List[np.ndarray], ndim: int) -> np.ndarray:
    return planes[0] if ndim == 2 else np.stack(planes, axis=2)


def _add_weighted(a: np.ndarray, alpha: float, b: np.ndarray, beta: float, gamma: float = 0.0):
    values = a.astype(np.float64) * alpha + b.astype(np.float64) * beta + gamma
    return _saturate(values, a.dtype)


def _subtract(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return _saturate(a.astype(np.float64) - b.astype(np.float64), a.dtype)


def _sep_filter(src: np.ndarray, kx, ky) -> np.ndarray:
    out = ndimage.correlate1d(src, np.asarray(kx, dtype=np.float64), axis=1, mode="mirror")
    return ndimage.correlate1d(out, np.asarray(ky, dtype=np.float64), axis=0, mode="mirror")


def _filter2d(src: np.ndarray, kernel) -> np.ndarray:
    weights = np.asarray(kernel, dtype=np.float64)
    if src.ndim == 3:
        weights = weights[:, :, None]
    return ndimage.correlate(src, weights, mode="mirror")


def _gaussian_blur(image: np.ndarray, ksize: int, sigma: float) -> np.ndarray:
    if ksize <= 0:
        factor = 3 if image.dtype == np.uint8 else 4
        ksize = int(round(sigma * factor * 2 + 1)) | 1
    if sigma <= 0:
        sigma = 0.3 * ((ksize - 1) * 0.5 - 1) + 0.8
    offsets = np.arange(ksize) - (ksize - 1) / 2.0
    kernel = np.exp(-(offsets**2) / (2.0 * sigma * sigma))
    kernel /= kernel.sum()
    return _saturate(_sep_filter(image.astype(np.float64), kernel, kernel), image.dtype)


def _deriv_kernel(ksize: int, order: int) -> np.ndarray:
    kernel = np.array([1.0])
    for _ in range(ksize - order - 1):
        kernel = np.convolve(kernel, [1.0, 1.0])
    for _ in range(order):
        kernel = np.convolve(kernel, [-1.0, 1.0])
    return kernel


def _laplacian(image: np.ndarray, ddepth, ksize: int, scale: float, delta: float) -> np.ndarray:
    if ksize <= 0 or ksize % 2 == 0 or ksize > 31:
        raise ValueError("Laplacian kernel size must be odd and between 1 and 31")
    src = image.astype(np.float64)
    if ksize == 1:
        lap = _filter2d(src, [[0, 1, 0], [1, -4, 1], [0, 1, 0]])
    elif ksize == 3:
        lap = _filter2d(src, [[2, 0, 2], [0, -8, 0], [2, 0, 2]])
    else:
        second = _deriv_kernel(ksize, 2)
        smooth = _deriv_kernel(ksize, 0)
        lap = _sep_filter(src, second, smooth) + _sep_filter(src, smooth, second)
    return _saturate(lap * scale + delta, ddepth)


def _to_gray(image: np.ndarray) -> np.ndarray:
    channels = _channel_count(image)
    if channels == 1:
        return image if image.ndim == 2 else image[:, :, 0]
    if channels < 3:
        raise ValueError("cannot convert a two-channel image to gray")
    src = image.astype(np.float64)
    gray = 0.114 * src[:, :, 0] + 0.587 * src[:, :, 1] + 0.299 * src[:, :, 2]
    return _saturate(gray, image.dtype)


def _bilateral(image: np.ndarray, diameter: int, sigma_color: float, sigma_space: float):
    sigma_color = sigma_color if sigma_color > 0 else 1.0
    sigma_space = sigma_space if sigma_space > 0 else 1.0
    radius = int(round(sigma_space * 1.5)) if diameter <= 0 else diameter // 2
    radius = max(radius, 1)
    src = image.astype(np.float64)
    if src.ndim == 2:
        src = src[:, :, None]
    height, width, _ = src.shape
    padded = np.pad(src, ((radius, radius), (radius, radius), (0, 0)), mode="reflect")
    numerator = np.zeros_like(src)
    denominator = np.zeros((height, width))
    space_coeff = -0.5 / (sigma_space * sigma_space)
    color_coeff = -0.5 / (sigma_color * sigma_color)
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            dist2 = dx * dx + dy * dy
            if dist2 > radius * radius:
                continue
            shifted = padded[radius + dy : radius + dy + height, radius + dx : radius + dx + width]
            diff = np.abs(shifted - src).sum(axis=2)
            weight = math.exp(dist2 * space_coeff) * np.exp(diff * diff * color_coeff)
            numerator += weight[:, :, None] * shifted
            denominator += weight
    result = numerator / denominator[:, :, None]
    if image.ndim == 2:
        result = result[:, :, 0]
    return _saturate(result, image.dtype)


def _recursive_pass(data: np.ndarray, derivative: np.ndarray, sigma: float) -> None:
    feedback = math.exp(-math.sqrt(2.0) / sigma)
    weights = feedback**derivative
    columns = data.shape[1]
    for x in range(1, columns):
        data[:, x] += weights[:, x - 1, None] * (data[:, x - 1] - data[:, x])
    for x in range(columns - 2, -1, -1):
        data[:, x] += weights[:, x, None] * (data[:, x + 1] - data[:, x])


def _normalized_pass(data: np.ndarray, transform: np.ndarray, box_radius: float) -> np.ndarray:
    result = np.empty_like(data)
    for row in range(data.shape[0]):
        coords = transform[row]
        lower = np.searchsorted(coords, coords - box_radius, side="left")
        upper = np.searchsorted(coords, coords + box_radius, side="right")
        prefix = np.concatenate(
            [np.zeros((1, data.shape[2])), np.cumsum(data[row], axis=0)], axis=0
        )
        counts = (upper - lower)[:, None]
        result[row] = (prefix[upper] - prefix[lower]) / counts
    return result


def _domain_transform(derivative: np.ndarray) -> np.ndarray:
    transform = np.zeros((derivative.shape[0], derivative.shape[1] + 1))
    transform[:, 1:] = np.cumsum(derivative, axis=1)
    return transform


def _edge_preserving(image: np.ndarray, flags, sigma_s: float, sigma_r: float) -> np.ndarray:
    mode = EdgeFilter(flags)
    if sigma_r <= 0:
        raise ValueError("sigma_r must be positive")
    src = image.astype(np.float64) / 255.0
    if src.ndim == 2:
        src = src[:, :, None]
    ratio = sigma_s / sigma_r
    horizontal = 1.0 + ratio * np.abs(np.diff(src, axis=1)).sum(axis=2)
    vertical = (1.0 + ratio * np.abs(np.diff(src, axis=0)).sum(axis=2)).T
    data = src.copy()
    iterations = 3
    for i in range(iterations):
        sigma_h = sigma_s * math.sqrt(3.0) * 2 ** (iterations - i - 1) / math.sqrt(
            4**iterations - 1
        )
        if mode is EdgeFilter.RECURS_FILTER:
            _recursive_pass(data, horizontal, sigma_h)
            transposed = np.ascontiguousarray(data.transpose(1, 0, 2))
            _recursive_pass(transposed, vertical, sigma_h)
            data = transposed.transpose(1, 0, 2).copy()
        else:
            box_radius = sigma_h * math.sqrt(3.0)
            data = _normalized_pass(data, _domain_transform(horizontal), box_radius)
            transposed = _normalized_pass(
                data.transpose(1, 0, 2), _domain_transform(vertical), box_radius
            )
            data = transposed.transpose(1, 0, 2).copy()
    if image.ndim == 2:
        data = data[:, :, 0]
    return _saturate(data * 255.0, image.dtype)


def _optimal_dft_size(n: int) -> int:
    size = max(n, 1)
    while True:
        rest = size
        for factor in (2, 3, 5):
            while rest % factor == 0:
                rest //= factor
        if rest == 1:
            return size
        size += 1


def _swap_quadrants(spectrum: np.ndarray) -> None:
    cy, cx = spectrum.shape[0] // 2, spectrum.shape[1] // 2
    top_left = spectrum[:cy, :cx].copy()
    spectrum[:cy, :cx] = spectrum[cy : 2 * cy, cx : 2 * cx]
    spectrum[cy : 2 * cy, cx : 2 * cx] = top_left
    top_right = spectrum[:cy, cx : 2 * cx].copy()
    spectrum[:cy, cx : 2 * cx] = spectrum[cy : 2 * cy, :cx]
    spectrum[cy : 2 * cy, :cx] = top_right


class SharpenerAlgorithm(abc.ABC):
    """Base of all sharpening algorithms."""

    @abc.abstractmethod
    def process(self, image: np.ndarray) -> np.ndarray:
        """Return a sharpened copy of the image."""

    def validate_input(self, image: np.ndarray) -> None:
        """Raise ValueError for an empty image or one with more than four channels."""
        if image is None or image.size == 0:
            raise ValueError("input image is empty")
        if image.ndim not in (2, 3) or _channel_count(image) > 4:
            raise ValueError("unsupported number of channels")


class LaplaceSharpener(SharpenerAlgorithm):
    """Adds the Laplacian response to the image."""

    def __init__(self, params: Optional[LaplaceParams] = None) -> None:
        self.params = params or LaplaceParams()

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        laplace = _laplacian(image, p.ddepth, p.kernel_size, p.scale, p.delta)
        return _add_weighted(image, 1.0, _saturate(laplace, image.dtype), 1.0)


class UnsharpMaskSharpener(SharpenerAlgorithm):
    """Classic unsharp masking with a Gaussian blur."""

    def __init__(self, params: Optional[UnsharpMaskParams] = None) -> None:
        self.params = params or UnsharpMaskParams()
        if self.params.radius % 2 == 0:
            raise ValueError("unsharp mask radius must be odd")
        if self.params.sigma <= 0:
            raise ValueError("unsharp mask sigma must be positive")

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        blurred = _gaussian_blur(image, p.radius, p.sigma)
        mask = _subtract(image, blurred)
        return _add_weighted(image, 1.0 + p.amount, mask, p.amount)


class HighBoostSharpener(SharpenerAlgorithm):
    """High-boost filtering: the image amplified minus its blur."""

    def __init__(self, params: Optional[HighBoostParams] = None) -> None:
        self.params = params or HighBoostParams()
        if self.params.radius % 2 == 0:
            raise ValueError("high boost radius must be odd")
        if self.params.sigma <= 0:
            raise ValueError("high boost sigma must be positive")
        if self.params.boost_factor < 1.0:
            raise ValueError("boost factor must be at least 1.0")

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        blurred = _gaussian_blur(image, p.radius, p.sigma)
        return _add_weighted(image, p.boost_factor, blurred, 1.0 - p.boost_factor)


class LaplacianOfGaussianSharpener(SharpenerAlgorithm):
    """Adds a weighted Laplacian-of-Gaussian response to the image."""

    def __init__(self, params: Optional[LaplacianOfGaussianParams] = None) -> None:
        self.params = params or LaplacianOfGaussianParams()
        if self.params.kernel_size % 2 == 0:
            raise ValueError("LoG kernel size must be odd")
        if self.params.sigma <= 0:
            raise ValueError("LoG sigma must be positive")

    def create_log_kernel(self, size: int, sigma: float) -> np.ndarray:
        """Zero-sum Laplacian-of-Gaussian kernel of size x size."""
        center = size // 2
        offsets = np.arange(size) - center
        dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
        r2 = (dx * dx + dy * dy).astype(np.float64)
        sigma2 = sigma * sigma
        values = (
            -1.0
            / (math.pi * sigma2 * sigma2)
            * (1.0 - r2 / (2.0 * sigma2))
            * np.exp(-r2 / (2.0 * sigma2))
        )
        kernel = values.astype(np.float32)
        return (kernel - np.float32(kernel.sum(dtype=np.float64) / (size * size))).astype(
            np.float32
        )

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        kernel = self.create_log_kernel(p.kernel_size, p.sigma)
        filtered = _saturate(_filter2d(image.astype(np.float64), kernel), image.dtype)
        return _add_weighted(image, 1.0, filtered, p.weight)


class BilateralSharpener(SharpenerAlgorithm):
    """Enhances the detail left over after bilateral smoothing."""

    def __init__(self, params: Optional[BilateralSharpParams] = None) -> None:
        self.params = params or BilateralSharpParams()

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        smoothed = _bilateral(image, p.diameter, p.sigma_color, p.sigma_space)
        detail = _subtract(image, smoothed)
        return _add_weighted(image, 1.0, detail, p.amount)


class FrequencyDomainSharpener(SharpenerAlgorithm):
    """Scales frequencies with a Butterworth or Gaussian high-emphasis mask."""

    def __init__(self, params: Optional[FrequencyDomainParams] = None) -> None:
        self.params = params or FrequencyDomainParams()

    def create_filter_mask(self, rows: int, cols: int) -> np.ndarray:
        """Gain per centred frequency, from low_freq_gain at the centre towards high_freq_gain."""
        p = self.params
        dy = np.arange(rows)[:, None] - rows // 2
        dx = np.arange(cols)[None, :] - cols // 2
        distance = np.sqrt(dx * dx + dy * dy).astype(np.float64)
        if p.butterworth:
            response = 1.0 / (1.0 + (p.radius / (distance + 1e-5)) ** (2 * p.butterworth_order))
        else:
            response = 1.0 - np.exp(-(distance * distance) / (2.0 * p.radius * p.radius))
        gains = p.low_freq_gain + (p.high_freq_gain - p.low_freq_gain) * response
        return gains.astype(np.float32)

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        planes = []
        for channel in _split(image):
            rows, cols = channel.shape
            padded = np.zeros((_optimal_dft_size(rows), _optimal_dft_size(cols)))
            padded[:rows, :cols] = channel
            spectrum = np.fft.fft2(padded)
            _swap_quadrants(spectrum)
            spectrum *= self.create_filter_mask(*spectrum.shape)
            _swap_quadrants(spectrum)
            spatial = np.fft.ifft2(spectrum).real
            low, high = spatial.min(), spatial.max()
            if high > low:
                normalized = (spatial - low) / (high - low)
            else:
                normalized = np.zeros_like(spatial)
            planes.append(_saturate(normalized[:rows, :cols] * 255.0, channel.dtype))
        return _merge(planes, image.ndim)


class AdaptiveUnsharpSharpener(SharpenerAlgorithm):
    """Unsharp masking with a smaller blur on edges than on flat areas."""

    def __init__(self, params: Optional[AdaptiveUnsharpParams] = None) -> None:
        self.params = params or AdaptiveUnsharpParams()

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        gray = _to_gray(image).astype(np.float64)
        grad_x = _sep_filter(gray, [-1.0, 0.0, 1.0], [1.0, 2.0, 1.0])
        grad_y = _sep_filter(gray, [1.0, 2.0, 1.0], [-1.0, 0.0, 1.0])
        magnitude = np.hypot(grad_x, grad_y)
        low, high = magnitude.min(), magnitude.max()
        if high > low:
            magnitude = (magnitude - low) / (high - low)
        else:
            magnitude = np.zeros_like(magnitude)
        edge_mask = magnitude > p.edge_threshold
        if image.ndim == 3:
            edge_mask = edge_mask[:, :, None]

        blurred_edge = _gaussian_blur(image, 0, p.edge_sigma)
        blurred_flat = _gaussian_blur(image, 0, p.flat_sigma)
        blurred = np.where(edge_mask, blurred_edge, blurred_flat)
        mask = _subtract(image, blurred)
        return _add_weighted(image, 1.0 + p.amount, mask, p.amount)


class EdgePreservingSharpener(SharpenerAlgorithm):
    """Enhances the detail removed by an edge-preserving domain-transform filter."""

    def __init__(self, params: Optional[EdgePreservingParams] = None) -> None:
        self.params = params or EdgePreservingParams()

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        p = self.params
        filtered = _edge_preserving(image, p.flags, p.sigma_s, p.sigma_r)
        detail = _subtract(image, filtered)
        return _add_weighted(image, 1.0, detail, p.amount)


class CustomKernelSharpener(SharpenerAlgorithm):
    """Correlates the image with a user-supplied odd-sized kernel."""

    def __init__(self, params: Optional[CustomKernelParams] = None) -> None:
        self.params = params or CustomKernelParams()
        kernel = np.asarray(self.params.kernel)
        if kernel.size == 0:
            raise ValueError("kernel is empty")
        if kernel.ndim != 2 or kernel.shape[0] % 2 == 0 or kernel.shape[1] % 2 == 0:
            raise ValueError("kernel dimensions must be odd")

    def process(self, image: np.ndarray) -> np.ndarray:
        self.validate_input(image)
        filtered = _filter2d(image.astype(np.float64), self.params.kernel) + self.params.delta
        return _saturate(filtered, image.dtype)