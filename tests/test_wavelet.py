import numpy as np
import pytest

from pixelcraft.denoise_types import DenoiseParameters
from pixelcraft.wavelet import denoise_blocks, denoise_levels


@pytest.fixture
def gray_image():
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(20, 24), dtype=np.uint8)


def test_zero_levels_only_thresholds(gray_image):
    result = denoise_levels(gray_image, 0, 100.0)
    assert np.array_equal(result, np.where(gray_image > 100, gray_image, 0))


def test_one_level_without_thresholding_is_identity(gray_image):
    result = denoise_levels(gray_image, 1, -1000.0)
    assert np.array_equal(result, gray_image)


def test_dtype_and_shape_preserved(gray_image):
    result = denoise_levels(gray_image, 2, 5.0)
    assert result.dtype == np.uint8
    assert result.shape == gray_image.shape


def test_float_input_stays_float():
    image = np.linspace(0.0, 1.0, 64, dtype=np.float32).reshape(8, 8)
    result = denoise_levels(image, 1, -10.0)
    assert result.dtype == np.float32
    assert np.allclose(result, image, atol=1e-5)


def test_multichannel_only_first_channel_changes():
    rng = np.random.default_rng(3)
    image = rng.integers(0, 256, size=(12, 12, 3), dtype=np.uint8)
    result = denoise_levels(image, 0, 255.0)
    assert np.array_equal(result[:, :, 1:], image[:, :, 1:])
    assert np.all(result[:, :, 0] == 0)


def test_empty_input_rejected():
    with pytest.raises(ValueError):
        denoise_levels(np.zeros((0, 0), dtype=np.uint8), 1, 1.0)


def test_blocks_scale_by_half_per_level(gray_image):
    params = DenoiseParameters(
        wavelet_level=1, use_adaptive_threshold=False, wavelet_threshold=-1.0
    )
    result = denoise_blocks(gray_image, params).astype(np.int32)
    expected_half = gray_image.astype(np.float64) * 0.5
    assert np.all(np.abs(result - expected_half) <= 1.0)


def test_blocks_large_threshold_clears_everything(gray_image):
    params = DenoiseParameters(use_adaptive_threshold=False, wavelet_threshold=1e6)
    result = denoise_blocks(gray_image, params)
    assert not result.any()


def test_adaptive_zero_estimate_matches_zero_threshold(gray_image):
    adaptive = DenoiseParameters(use_adaptive_threshold=True, noise_estimate=0.0)
    fixed = DenoiseParameters(use_adaptive_threshold=False, wavelet_threshold=0.0)
    assert np.array_equal(denoise_blocks(gray_image, adaptive), denoise_blocks(gray_image, fixed))


def test_blocks_invalid_block_size(gray_image):
    with pytest.raises(ValueError):
        denoise_blocks(gray_image, DenoiseParameters(block_size=0))


def test_block_size_does_not_matter_without_adaptive_threshold(gray_image):
    small = DenoiseParameters(block_size=5, use_adaptive_threshold=False, wavelet_threshold=3.0)
    large = DenoiseParameters(block_size=64, use_adaptive_threshold=False, wavelet_threshold=3.0)
    assert np.array_equal(denoise_blocks(gray_image, small), denoise_blocks(gray_image, large))