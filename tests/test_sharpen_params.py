import numpy as np

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


def test_laplace_defaults():
    params = LaplaceParams()
    assert (params.scale, params.delta, params.kernel_size) == (1.0, 0.0, 3)
    assert np.dtype(params.ddepth) == np.dtype(np.int16)


def test_blur_based_defaults():
    assert (UnsharpMaskParams().sigma, UnsharpMaskParams().amount, UnsharpMaskParams().radius) == (
        1.0,
        1.0,
        5,
    )
    assert HighBoostParams().boost_factor == 1.5
    assert HighBoostParams().radius % 2 == 1
    log = LaplacianOfGaussianParams()
    assert (log.sigma, log.kernel_size, log.weight) == (1.5, 9, 1.0)


def test_bilateral_and_frequency_defaults():
    bilateral = BilateralSharpParams()
    assert (bilateral.diameter, bilateral.sigma_color, bilateral.sigma_space) == (9, 75.0, 75.0)
    freq = FrequencyDomainParams()
    assert freq.butterworth is True
    assert (freq.high_freq_gain, freq.low_freq_gain, freq.radius, freq.butterworth_order) == (
        1.5,
        1.0,
        30.0,
        2,
    )


def test_adaptive_and_edge_preserving_defaults():
    adaptive = AdaptiveUnsharpParams()
    assert (adaptive.edge_threshold, adaptive.edge_sigma, adaptive.flat_sigma) == (30.0, 0.5, 1.5)
    assert adaptive.amount == 1.2
    edge = EdgePreservingParams()
    assert edge.flags is EdgeFilter.NORMCONV_FILTER
    assert (edge.sigma_s, edge.sigma_r) == (60.0, 0.4)


def test_custom_kernel_default_is_sharpening_kernel():
    kernel = CustomKernelParams().kernel
    assert kernel.shape == (3, 3)
    assert kernel[1, 1] == 9
    assert float(kernel.sum()) == 1.0


def test_custom_kernel_defaults_are_independent():
    first = CustomKernelParams()
    second = CustomKernelParams()
    first.kernel[0, 0] = 5
    assert second.kernel[0, 0] == -1