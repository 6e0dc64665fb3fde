import numpy as np
import pytest

from pixelcraft.sharpen_algorithms import (
    AdaptiveUnsharpSharpener,
    BilateralSharpener,
    CustomKernelSharpener,
    EdgePreservingSharpener,
    FrequencyDomainSharpener,
    HighBoostSharpener,
    LaplaceSharpener,
    LaplacianOfGaussianSharpener,
    UnsharpMaskSharpener,
)
from pixelcraft.sharpen_params import (
    AdaptiveUnsharpParams,
    CustomKernelParams,
    EdgeFilter,
    EdgePreservingParams,
    FrequencyDomainParams,
    HighBoostParams,
    LaplacianOfGaussianParams,
    UnsharpMaskParams,
)


def _constant(value=128, shape=(12, 12, 3)):
    return np.full(shape, value, dtype=np.uint8)


def _random(shape=(16, 16), seed=0):
    return np.random.default_rng(seed).integers(0, 256, size=shape, dtype=np.uint8)


def test_validate_input_rejects_empty():
    with pytest.raises(ValueError):
        LaplaceSharpener().process(np.zeros((0, 0), dtype=np.uint8))


def test_validate_input_rejects_too_many_channels():
    with pytest.raises(ValueError):
        LaplaceSharpener().validate_input(np.zeros((4, 4, 5), dtype=np.uint8))


def test_laplace_never_darkens():
    image = _random((20, 20, 3))
    result = LaplaceSharpener().process(image)
    assert result.shape == image.shape
    assert result.dtype == np.uint8
    assert np.all(result >= image)


def test_laplace_keeps_constant_image():
    image = _constant()
    assert np.array_equal(LaplaceSharpener().process(image), image)


@pytest.mark.parametrize(
    "params", [UnsharpMaskParams(radius=4), UnsharpMaskParams(sigma=0.0)]
)
def test_unsharp_rejects_bad_params(params):
    with pytest.raises(ValueError):
        UnsharpMaskSharpener(params)


def test_unsharp_keeps_shape_and_dtype():
    image = _random((10, 14))
    result = UnsharpMaskSharpener().process(image)
    assert result.shape == image.shape
    assert result.dtype == image.dtype


def test_high_boost_rejects_small_factor():
    with pytest.raises(ValueError):
        HighBoostSharpener(HighBoostParams(boost_factor=0.5))


def test_high_boost_keeps_constant_image():
    image = _constant(90)
    assert np.array_equal(HighBoostSharpener().process(image), image)


def test_log_rejects_even_kernel():
    with pytest.raises(ValueError):
        LaplacianOfGaussianSharpener(LaplacianOfGaussianParams(kernel_size=8))


def test_log_kernel_is_zero_sum_and_symmetric():
    kernel = LaplacianOfGaussianSharpener().create_log_kernel(9, 1.5)
    assert kernel.shape == (9, 9)
    assert abs(float(kernel.sum())) < 1e-4
    assert np.allclose(kernel, kernel.T)
    assert np.allclose(kernel, kernel[::-1, ::-1])
    assert kernel[4, 4] == kernel.min()


def test_log_keeps_constant_image():
    image = _constant(200, (15, 15))
    assert np.array_equal(LaplacianOfGaussianSharpener().process(image), image)


def test_bilateral_keeps_constant_image():
    image = _constant(60)
    assert np.array_equal(BilateralSharpener().process(image), image)


def test_frequency_mask_gains():
    sharpener = FrequencyDomainSharpener(FrequencyDomainParams(butterworth=False))
    mask = sharpener.create_filter_mask(64, 64)
    assert mask.shape == (64, 64)
    assert mask[32, 32] == pytest.approx(1.0)
    assert np.all(mask >= 1.0 - 1e-6)
    assert np.all(mask <= 1.5 + 1e-6)


def test_frequency_butterworth_mask_rises_from_centre():
    mask = FrequencyDomainSharpener().create_filter_mask(40, 40)
    assert mask[20, 20] == pytest.approx(1.0)
    assert mask[0, 0] > mask[20, 30] > mask[20, 20]


def test_frequency_output_spans_full_range():
    image = _random((16, 16, 3), seed=3)
    result = FrequencyDomainSharpener().process(image)
    assert result.shape == image.shape
    for c in range(3):
        assert int(result[:, :, c].min()) == 0
        assert int(result[:, :, c].max()) == 255


def test_adaptive_with_zero_amount_is_identity():
    image = _random((12, 12, 3), seed=5)
    result = AdaptiveUnsharpSharpener(AdaptiveUnsharpParams(amount=0.0)).process(image)
    assert np.array_equal(result, image)


def test_adaptive_keeps_shape():
    image = _random((12, 9), seed=6)
    assert AdaptiveUnsharpSharpener().process(image).shape == image.shape


@pytest.mark.parametrize("flags", [EdgeFilter.NORMCONV_FILTER, EdgeFilter.RECURS_FILTER])
def test_edge_preserving_keeps_constant_image(flags):
    image = _constant(128, (10, 10, 3))
    result = EdgePreservingSharpener(EdgePreservingParams(flags=flags)).process(image)
    assert np.array_equal(result, image)


def test_edge_preserving_keeps_shape_on_noise():
    image = _random((9, 11, 3), seed=7)
    result = EdgePreservingSharpener().process(image)
    assert result.shape == image.shape
    assert np.all(result >= image)


def test_custom_kernel_default_keeps_constant_image():
    image = _constant(100)
    assert np.array_equal(CustomKernelSharpener().process(image), image)


def test_custom_kernel_identity_with_delta():
    image = _random((8, 8), seed=9)
    params = CustomKernelParams(kernel=np.array([[1.0]]), delta=10.0)
    result = CustomKernelSharpener(params).process(image)
    assert np.array_equal(result, np.clip(image.astype(int) + 10, 0, 255).astype(np.uint8))


@pytest.mark.parametrize(
    "kernel", [np.zeros((0, 0)), np.ones((2, 3)), np.ones((3, 4))]
)
def test_custom_kernel_rejects_bad_kernels(kernel):
    with pytest.raises(ValueError):
        CustomKernelSharpener(CustomKernelParams(kernel=kernel))