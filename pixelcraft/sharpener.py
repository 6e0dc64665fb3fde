"""Front end that applies one of the sharpening algorithms by name."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np

from pixelcraft.sharpen_algorithms import (
    AdaptiveUnsharpSharpener,
    BilateralSharpener,
    CustomKernelSharpener,
    EdgePreservingSharpener,
    FrequencyDomainSharpener,
    HighBoostSharpener,
    LaplaceSharpener,
    LaplacianOfGaussianSharpener,
    SharpenerAlgorithm,
    UnsharpMaskSharpener,
)
from pixelcraft.sharpen_params import (
    AdaptiveUnsharpParams,
    BilateralSharpParams,
    CustomKernelParams,
    EdgePreservingParams,
    FrequencyDomainParams,
    HighBoostParams,
    LaplaceParams,
    LaplacianOfGaussianParams,
    UnsharpMaskParams,
)

SharpenParams = Union[
    LaplaceParams,
    UnsharpMaskParams,
    HighBoostParams,
    LaplacianOfGaussianParams,
    BilateralSharpParams,
    FrequencyDomainParams,
    AdaptiveUnsharpParams,
    EdgePreservingParams,
    CustomKernelParams,
]


class SharpenMethod(enum.Enum):
    LAPLACE = enum.auto()
    UNSHARP_MASK = enum.auto()
    HIGH_BOOST = enum.auto()
    LAPLACIAN_OF_GAUSSIAN = enum.auto()
    BILATERAL_SHARP = enum.auto()
    FREQUENCY_DOMAIN = enum.auto()
    ADAPTIVE_UNSHARP = enum.auto()
    EDGE_PRESERVING = enum.auto()
    CUSTOM_KERNEL = enum.auto()


@dataclass(frozen=True)
class _MethodSpec:
    params_type: type
    algorithm: Callable[..., SharpenerAlgorithm]
    name: str


_SPECS: Dict[SharpenMethod, _MethodSpec] = {
    SharpenMethod.LAPLACE: _MethodSpec(LaplaceParams, LaplaceSharpener, "拉普拉斯锐化"),
    SharpenMethod.UNSHARP_MASK: _MethodSpec(UnsharpMaskParams, UnsharpMaskSharpener, "USM锐化"),
    SharpenMethod.HIGH_BOOST: _MethodSpec(HighBoostParams, HighBoostSharpener, "高增益锐化"),
    SharpenMethod.LAPLACIAN_OF_GAUSSIAN: _MethodSpec(
        LaplacianOfGaussianParams, LaplacianOfGaussianSharpener, "高斯拉普拉斯锐化"
    ),
    SharpenMethod.BILATERAL_SHARP: _MethodSpec(
        BilateralSharpParams, BilateralSharpener, "双边滤波锐化"
    ),
    SharpenMethod.FREQUENCY_DOMAIN: _MethodSpec(
        FrequencyDomainParams, FrequencyDomainSharpener, "频域锐化"
    ),
    SharpenMethod.ADAPTIVE_UNSHARP: _MethodSpec(
        AdaptiveUnsharpParams, AdaptiveUnsharpSharpener, "自适应USM锐化"
    ),
    SharpenMethod.EDGE_PRESERVING: _MethodSpec(
        EdgePreservingParams, EdgePreservingSharpener, "边缘保留锐化"
    ),
    SharpenMethod.CUSTOM_KERNEL: _MethodSpec(
        CustomKernelParams, CustomKernelSharpener, "自定义核锐化"
    ),
}

_PARAM_TYPES: Tuple[type, ...] = tuple(spec.params_type for spec in _SPECS.values())


class ImageSharpener:
    """Sharpens images with a selectable method and parameter set."""

    def __init__(self, method: SharpenMethod = SharpenMethod.UNSHARP_MASK) -> None:
        self._method = method
        self._params: SharpenParams = _SPECS[method].params_type()
        self._algorithm: Optional[SharpenerAlgorithm] = self._create_algorithm(method)

    @property
    def method(self) -> SharpenMethod:
        return self._method

    @method.setter
    def method(self, method: SharpenMethod) -> None:
        """Switch method; the stored parameters must suit the new method."""
        algorithm = self._create_algorithm(method)
        self._method = method
        self._algorithm = algorithm

    @property
    def params(self) -> SharpenParams:
        return self._params

    @property
    def method_name(self) -> str:
        """Display name of the current method."""
        spec = _SPECS.get(self._method)
        return spec.name if spec is not None else "未知方法"

    def set_parameters(self, params: SharpenParams) -> None:
        """Store new parameters; they take effect at the next sharpen call."""
        if not isinstance(params, _PARAM_TYPES):
            raise TypeError(f"unsupported parameter type: {type(params).__name__}")
        self._params = params
        self._algorithm = None

    def sharpen(self, image: np.ndarray) -> np.ndarray:
        """Return a sharpened copy of image."""
        if self._algorithm is None:
            self._algorithm = self._create_algorithm(self._method)
        return self._algorithm.process(image)

    def _create_algorithm(self, method: SharpenMethod) -> SharpenerAlgorithm:
        spec = _SPECS[method]
        if not isinstance(self._params, spec.params_type):
            raise TypeError(
                f"parameters of type {type(self._params).__name__} "
                f"do not suit method {method.name}"
            )
        return spec.algorithm(self._params)