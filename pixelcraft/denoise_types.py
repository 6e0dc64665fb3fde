"""Denoising methods, noise kinds, parameters and analysis results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np


class DenoiseMethod(enum.Enum):
    AUTO = enum.auto()
    MEDIAN = enum.auto()
    GAUSSIAN = enum.auto()
    BILATERAL = enum.auto()
    NLM = enum.auto()
    WAVELET = enum.auto()


class WaveletType(enum.Enum):
    HAAR = enum.auto()
    DAUBECHIES4 = enum.auto()
    COIFLET = enum.auto()
    BIORTHOGONAL = enum.auto()


class NoiseType(enum.IntEnum):
    UNKNOWN = 0
    GAUSSIAN = 1
    SALT_AND_PEPPER = 2
    SPECKLE = 3
    POISSON = 4
    PERIODIC = 5
    MIXED = 6


@dataclass
class DenoiseParameters:
    """Settings of every denoising method."""

    method: DenoiseMethod = DenoiseMethod.AUTO
    threads: int = 4

    median_kernel: int = 5

    gaussian_kernel: Tuple[int, int] = (5, 5)
    sigma_x: float = 1.5
    sigma_y: float = 1.5

    bilateral_d: int = 9
    sigma_color: float = 75.0
    sigma_space: float = 75.0

    nlm_h: float = 3.0
    nlm_template_size: int = 7
    nlm_search_size: int = 21

    wavelet_level: int = 3
    wavelet_threshold: float = 15.0
    wavelet_type: WaveletType = WaveletType.HAAR
    use_adaptive_threshold: bool = True
    noise_estimate: float = 0.0
    block_size: int = 32

    use_simd: bool = True
    use_opencl: bool = False
    tile_size: int = 256
    use_stream: bool = True


@dataclass
class NoiseAnalysis:
    """Result of analysing the noise in an image."""

    noise_type: NoiseType = NoiseType.UNKNOWN
    intensity: float = 0.0
    snr: float = 0.0
    noise_mask: Optional[np.ndarray] = None
    probabilities: Dict[NoiseType, float] = field(default_factory=dict)