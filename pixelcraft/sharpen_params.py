"""Parameter sets of the sharpening algorithms."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np


class EdgeFilter(enum.IntEnum):
    """Kind of domain-transform filter used for edge-preserving smoothing."""

    RECURS_FILTER = 1
    NORMCONV_FILTER = 2


def _default_sharpen_kernel() -> np.ndarray:
    return np.array(
        [[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]], dtype=np.float32
    )


@dataclass
class LaplaceParams:
    scale: float = 1.0
    delta: float = 0.0
    ddepth: type = np.int16
    kernel_size: int = 3


@dataclass
class UnsharpMaskParams:
    sigma: float = 1.0
    amount: float = 1.0
    radius: int = 5


@dataclass
class HighBoostParams:
    sigma: float = 1.0
    boost_factor: float = 1.5
    radius: int = 5


@dataclass
class LaplacianOfGaussianParams:
    sigma: float = 1.5
    kernel_size: int = 9
    weight: float = 1.0


@dataclass
class BilateralSharpParams:
    diameter: int = 9
    sigma_color: float = 75.0
    sigma_space: float = 75.0
    amount: float = 1.0


@dataclass
class FrequencyDomainParams:
    high_freq_gain: float = 1.5
    low_freq_gain: float = 1.0
    radius: float = 30.0
    butterworth: bool = True
    butterworth_order: int = 2


@dataclass
class AdaptiveUnsharpParams:
    global_sigma: float = 1.0
    local_block_size: float = 16.0
    edge_threshold: float = 30.0
    edge_sigma: float = 0.5
    flat_sigma: float = 1.5
    amount: float = 1.2


@dataclass
class EdgePreservingParams:
    flags: EdgeFilter = EdgeFilter.NORMCONV_FILTER
    sigma_s: float = 60.0
    sigma_r: float = 0.4
    amount: float = 1.0


@dataclass
class CustomKernelParams:
    kernel: np.ndarray = field(default_factory=_default_sharpen_kernel)
    delta: float = 0.0