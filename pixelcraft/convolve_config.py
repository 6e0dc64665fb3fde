"""Configuration and error types of convolution and deconvolution."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List


class BorderMode(enum.Enum):
    ZERO_PADDING = enum.auto()
    MIRROR_REFLECT = enum.auto()
    REPLICATE = enum.auto()
    CIRCULAR = enum.auto()


class DeconvMethod(enum.Enum):
    RICHARDSON_LUCY = enum.auto()
    WIENER = enum.auto()
    TIKHONOV = enum.auto()


@dataclass
class ConvolutionConfig:
    """Settings of a convolution."""

    kernel: List[float] = field(default_factory=list)
    kernel_size: int = 0
    border_mode: BorderMode = BorderMode.REPLICATE
    normalize_kernel: bool = True
    parallel_execution: bool = True
    per_channel: bool = False
    use_simd: bool = True
    use_memory_pool: bool = True
    tile_size: int = 256
    use_fft: bool = False
    thread_count: int = 0
    use_avx: bool = True
    block_size: int = 32

    def __post_init__(self) -> None:
        self.kernel = [float(value) for value in self.kernel]


@dataclass
class DeconvolutionConfig:
    """Settings of a deconvolution."""

    method: DeconvMethod = DeconvMethod.RICHARDSON_LUCY
    iterations: int = 30
    noise_power: float = 0.0
    regularization: float = 1e-6
    border_mode: BorderMode = BorderMode.REPLICATE
    per_channel: bool = False
    use_simd: bool = True
    use_memory_pool: bool = True
    tile_size: int = 256
    use_fft: bool = True
    thread_count: int = 0
    use_avx: bool = True
    block_size: int = 32


class ErrorCode(enum.Enum):
    INVALID_INPUT = enum.auto()
    INVALID_CONFIG = enum.auto()
    PROCESSING_FAILED = enum.auto()
    OUT_OF_MEMORY = enum.auto()
    UNSUPPORTED_OPERATION = enum.auto()


class ProcessError(Exception):
    """A processing failure with a code and a description."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.name}: {self.message}"