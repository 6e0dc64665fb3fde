"""Strategies for measuring how similar two images are."""

from __future__ import annotations

import abc
import itertools
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
from scipy import ndimage

from pixelcraft.image import RGB, Image, ImageFormat, Rectangle
from pixelcraft.promise import Promise

_REGION_THRESHOLD = 32
_MERGE_DISTANCE = 10
_UINT64_MASK = (1 << 64) - 1


@dataclass
class ComparisonResult:
    """Outcome of comparing two images."""

    difference_image: Image
    similarity: float
    difference_regions: List[Rectangle] = field(default_factory=list)


class DisjointSet:
    """Union-find over the integers 0..size-1 with path compression and union by rank."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("DisjointSet size must be positive")
        self._parent = list(range(size))
        self._rank = [0] * size

    def __len__(self) -> int:
        return len(self._parent)

    def _check(self, x: int) -> None:
        if not 0 <= x < len(self._parent):
            raise IndexError(f"index {x} out of range")

    def find(self, x: int) -> int:
        """Representative of the set holding x."""
        self._check(x)
        parent = self._parent
        root = x
        while parent[root] != root:
            root = parent[root]
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return root

    def unite(self, x: int, y: int) -> None:
        """Merge the sets holding x and y."""
        self._check(x)
        self._check(y)
        x = self.find(x)
        y = self.find(y)
        if x == y:
            return
        if self._rank[x] < self._rank[y]:
            x, y = y, x
        self._parent[y] = x
        if self._rank[x] == self._rank[y]:
            self._rank[x] += 1


def _gray_plane(img: Image) -> np.ndarray:
    return img.convert_to_format(ImageFormat.GRAYSCALE8).bits[..., 0]


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


class ComparisonStrategy(abc.ABC):
    """Common helpers of the comparison strategies."""

    SUBSAMPLE_FACTOR = 2

    def __init__(self, subsample_factor: Optional[int] = None) -> None:
        self.subsample_factor = (
            self.SUBSAMPLE_FACTOR if subsample_factor is None else subsample_factor
        )

    def preprocess_image(self, img: Image) -> Image:
        """Subsample the image by the strategy's factor."""
        if img.is_null:
            raise ValueError("cannot preprocess null image")
        factor = self.subsample_factor
        if factor > 1:
            return img.scaled(img.width // factor, img.height // factor)
        return img

    def compare_block(self, block1: np.ndarray, block2: np.ndarray) -> np.ndarray:
        """Per-byte absolute difference of two equally shaped byte blocks."""
        a = np.asarray(block1, dtype=np.uint8)
        b = np.asarray(block2, dtype=np.uint8)
        if a.shape != b.shape or a.size == 0:
            raise ValueError("blocks must be non-empty and of equal size")
        return np.abs(a.astype(np.int16) - b.astype(np.int16)).astype(np.uint8)

    def find_difference_regions(self, diff_img: Image) -> List[Rectangle]:
        """Bounding boxes of connected areas that differ, merging nearby boxes."""
        if diff_img.is_null:
            return []
        mask = _gray_plane(diff_img) > _REGION_THRESHOLD
        labels, _ = ndimage.label(mask)
        regions = [
            Rectangle(
                rows_cols[1].start,
                rows_cols[0].start,
                rows_cols[1].stop - rows_cols[1].start,
                rows_cols[0].stop - rows_cols[0].start,
            )
            for rows_cols in ndimage.find_objects(labels)
            if rows_cols is not None
        ]
        merged = True
        while merged and len(regions) > 1:
            merged = False
            for i, j in itertools.combinations(range(len(regions)), 2):
                expanded = regions[i].adjusted(
                    -_MERGE_DISTANCE, -_MERGE_DISTANCE, _MERGE_DISTANCE, _MERGE_DISTANCE
                )
                if expanded.intersects(regions[j]):
                    regions[i] = regions[i].united(regions[j])
                    del regions[j]
                    merged = True
                    break
        return regions

    @abc.abstractmethod
    def compare(
        self, img1: Image, img2: Image, promise: Optional[Promise] = None
    ) -> ComparisonResult:
        """Compare two images, reporting progress through promise."""


class PixelDifferenceStrategy(ComparisonStrategy):
    """Similarity from the mean absolute byte difference."""

    BLOCK_SIZE = 16

    def __init__(
        self, subsample_factor: Optional[int] = None, block_size: Optional[int] = None
    ) -> None:
        super().__init__(subsample_factor)
        self.block_size = self.BLOCK_SIZE if block_size is None else block_size

    def compare(
        self, img1: Image, img2: Image, promise: Optional[Promise] = None
    ) -> ComparisonResult:
        promise = Promise() if promise is None else promise
        try:
            first = self.preprocess_image(img1).convert_to_format(ImageFormat.ARGB32)
            second = self.preprocess_image(img2).convert_to_format(ImageFormat.ARGB32)
            width, height = first.width, first.height
            if width <= 0 or height <= 0:
                raise ValueError("invalid image dimensions after preprocessing")
            if (second.width, second.height) != (width, height):
                raise ValueError("image sizes do not match")

            diff_img = Image(width, height, ImageFormat.ARGB32)
            step = max(self.block_size, 32)
            total_diff = 0
            for y in range(0, height, step):
                y_end = min(y + step, height)
                for x in range(0, width, step):
                    if promise.is_canceled():
                        continue
                    x_end = min(x + step, width)
                    block = self.compare_block(
                        first.bits[y:y_end, x:x_end], second.bits[y:y_end, x:x_end]
                    )
                    diff_img.bits[y:y_end, x:x_end] = block
                    total_diff += int(block.sum(dtype=np.uint64))
                promise.set_progress_value(int(y_end * 100.0 / height))

            mse = total_diff / (width * height * 4)
            similarity = 100.0 * (1.0 - math.sqrt(mse) / 255.0)
            return ComparisonResult(diff_img, similarity, self.find_difference_regions(diff_img))
        except BaseException:
            promise.cancel()
            raise


class SSIMStrategy(ComparisonStrategy):
    """Similarity from the structural similarity of fixed windows."""

    WINDOW_SIZE = 8
    K1 = 0.01
    K2 = 0.03

    def compare(
        self, img1: Image, img2: Image, promise: Optional[Promise] = None
    ) -> ComparisonResult:
        promise = Promise() if promise is None else promise
        try:
            first = self.preprocess_image(img1)
            second = self.preprocess_image(img2)
            width, height = first.width, first.height
            window = self.WINDOW_SIZE
            if width < window or height < window:
                raise ValueError("images too small for SSIM comparison")

            gray1 = _gray_plane(first).astype(np.float64)
            gray2 = _gray_plane(second).astype(np.float64)
            diff_img = Image(width, height, ImageFormat.ARGB32)
            diff_img.fill(RGB(255, 255, 255))
            total_windows = ((width - window) // window) * ((height - window) // window)
            report_every = max(1, total_windows // 20)
            total_ssim = 0.0
            processed = 0

            for y in range(0, height - window + 1, window):
                for x in range(0, width - window + 1, window):
                    if promise.is_canceled():
                        continue
                    ssim = self._window_ssim(gray1, gray2, x, y)
                    total_ssim += ssim
                    shade = min(max(int((1.0 - ssim) * 255), 0), 255)
                    diff_img.fill_rect(
                        Rectangle(x, y, window, window), RGB(shade, shade, shade)
                    )
                    processed += 1
                    if total_windows > 0 and processed % report_every == 0:
                        promise.set_progress_value(int(processed / total_windows * 100))

            num_windows = total_windows if total_windows > 0 else 1
            similarity = min(max(total_ssim * 100.0 / num_windows, 0.0), 100.0)
            return ComparisonResult(diff_img, similarity, self.find_difference_regions(diff_img))
        except BaseException:
            promise.cancel()
            raise

    def compute_ssim(self, img1: Image, img2: Image, x: int, y: int) -> float:
        """SSIM of the window at (x, y); 0.0 when the window does not fit."""
        window = self.WINDOW_SIZE
        if (
            img1.is_null
            or img2.is_null
            or x < 0
            or y < 0
            or x + window > min(img1.width, img2.width)
            or y + window > min(img1.height, img2.height)
        ):
            return 0.0
        return self._window_ssim(
            _gray_plane(img1).astype(np.float64), _gray_plane(img2).astype(np.float64), x, y
        )

    def _window_ssim(self, gray1: np.ndarray, gray2: np.ndarray, x: int, y: int) -> float:
        window = self.WINDOW_SIZE
        values1 = gray1[y : y + window, x : x + window].ravel()
        values2 = gray2[y : y + window, x : x + window].ravel()
        count = values1.size
        mean1 = values1.mean()
        mean2 = values2.mean()
        diff1 = values1 - mean1
        diff2 = values2 - mean2
        variance1 = float(np.dot(diff1, diff1)) / (count - 1)
        variance2 = float(np.dot(diff2, diff2)) / (count - 1)
        covariance = float(np.dot(diff1, diff2)) / (count - 1)
        c1 = (self.K1 * 255) ** 2
        c2 = (self.K2 * 255) ** 2
        numerator = (2 * mean1 * mean2 + c1) * (2 * covariance + c2)
        denominator = (mean1 * mean1 + mean2 * mean2 + c1) * (variance1 + variance2 + c2)
        if denominator < 1e-10:
            return 0.0
        return float(min(max(numerator / denominator, 0.0), 1.0))


class PerceptualHashStrategy(ComparisonStrategy):
    """Similarity from the Hamming distance of 64-bit average hashes."""

    HASH_SIZE = 64

    def compare(
        self, img1: Image, img2: Image, promise: Optional[Promise] = None
    ) -> ComparisonResult:
        promise = Promise() if promise is None else promise
        try:
            promise.set_progress_value(10)
            hash1 = self.compute_hash(img1)
            promise.set_progress_value(50)
            hash2 = self.compute_hash(img2)
            promise.set_progress_value(70)

            distance = self.hamming_distance(hash1, hash2)
            similarity = 100.0 * (1.0 - distance / self.HASH_SIZE)

            diff_img = Image(
                max(img1.width, img2.width), max(img1.height, img2.height), ImageFormat.ARGB32
            )
            diff_img.fill(RGB(255, 255, 255))
            regions: List[Rectangle] = []
            if distance > 0:
                block_width = diff_img.width // 8
                block_height = diff_img.height // 8
                changed = hash1 ^ hash2
                for bit in range(64):
                    if changed >> bit & 1:
                        diff_img.fill_rect(
                            Rectangle(
                                (bit % 8) * block_width,
                                (bit // 8) * block_height,
                                block_width,
                                block_height,
                            ),
                            RGB(255, 0, 0, 127),
                        )
                region_size = 50
                num_regions = min(5, 1 + distance // 10)
                y = _trunc_div(diff_img.height - region_size, 2)
                for i in range(num_regions):
                    x = _trunc_div((diff_img.width - region_size) * (i + 1), num_regions + 1)
                    regions.append(Rectangle(x, y, region_size, region_size))

            promise.set_progress_value(90)
            promise.set_progress_value(100)
            return ComparisonResult(diff_img, similarity, regions)
        except BaseException:
            promise.cancel()
            raise

    def compute_hash(self, img: Image) -> int:
        """Average hash of the image shrunk to 8x8 gray pixels, first pixel in the top bit."""
        if img.is_null:
            raise ValueError("cannot compute hash of null image")
        pixels = [int(v) for v in _gray_plane(img.scaled(8, 8)).ravel()]
        average = sum(pixels) // 64
        result = 0
        for value in pixels:
            result = (result << 1) | (1 if value >= average else 0)
        return result

    def hamming_distance(self, hash1: int, hash2: int) -> int:
        """Number of differing bits in two 64-bit hashes."""
        return bin((hash1 ^ hash2) & _UINT64_MASK).count("1")


class HistogramStrategy(ComparisonStrategy):
    """Similarity from the correlation of gray-level histograms."""

    HIST_BINS = 256

    def compare(
        self, img1: Image, img2: Image, promise: Optional[Promise] = None
    ) -> ComparisonResult:
        promise = Promise() if promise is None else promise
        try:
            promise.set_progress_value(10)
            hist1 = self.compute_histogram(img1)
            promise.set_progress_value(40)
            hist2 = self.compute_histogram(img2)
            promise.set_progress_value(70)
            similarity = self.compare_histograms(hist1, hist2)

            diff_img = Image(
                max(img1.width, img2.width), max(img1.height, img2.height), ImageFormat.ARGB32
            )
            diff_img.fill(RGB(255, 255, 255))
            width, height = diff_img.width, diff_img.height
            for i in range(4):
                line_y = height * i // 4
                diff_img.draw_line(0, line_y, width, line_y, RGB(200, 200, 200))

            peak = max(max(hist1), max(hist2))
            norm = height / (peak * 1.1) if peak > 0 else 0.0
            for hist, colour in ((hist1, RGB(0, 0, 255, 200)), (hist2, RGB(255, 0, 0, 200))):
                for i in range(self.HIST_BINS - 1):
                    diff_img.draw_line(
                        i * width // self.HIST_BINS,
                        height - int(hist[i] * norm),
                        (i + 1) * width // self.HIST_BINS,
                        height - int(hist[i + 1] * norm),
                        colour,
                        2,
                    )

            legend = Rectangle(10, 10, 200, 40)
            diff_img.fill_rect(legend, RGB(255, 255, 255, 200))
            diff_img.draw_rect(legend, RGB(0, 0, 0))
            diff_img.draw_text(20, 30, "Image 1", RGB(0, 0, 255))
            diff_img.fill_rect(Rectangle(100, 22, 20, 10), RGB(0, 0, 255, 200))
            diff_img.draw_text(130, 30, "Image 2", RGB(255, 0, 0))
            diff_img.fill_rect(Rectangle(190, 22, 20, 10), RGB(255, 0, 0, 200))

            promise.set_progress_value(100)
            return ComparisonResult(diff_img, similarity * 100.0, [])
        except BaseException:
            promise.cancel()
            raise

    def compute_histogram(self, img: Image) -> List[int]:
        """Counts of each gray level in the image."""
        if img.is_null:
            raise ValueError("cannot compute histogram of null image")
        counts = np.bincount(_gray_plane(img).ravel(), minlength=self.HIST_BINS)
        return [int(c) for c in counts[: self.HIST_BINS]]

    def compare_histograms(self, hist1: Sequence[int], hist2: Sequence[int]) -> float:
        """Normalised correlation of two histograms; 0.0 when not comparable."""
        if len(hist1) != len(hist2) or len(hist1) == 0:
            return 0.0
        a = np.asarray(hist1, dtype=np.float64)
        b = np.asarray(hist2, dtype=np.float64)
        norm1 = float(np.dot(a, a))
        norm2 = float(np.dot(b, b))
        if norm1 < 1e-10 or norm2 < 1e-10:
            return 0.0
        return float(np.dot(a, b)) / (math.sqrt(norm1) * math.sqrt(norm2))