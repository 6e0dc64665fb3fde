import numpy as np
import pytest

from pixelcraft.denoise_types import DenoiseMethod, DenoiseParameters
from pixelcraft.denoiser import ImageDenoiser
from pixelcraft.noise_analyzer import analyze_noise
from pixelcraft.wavelet import denoise_blocks


@pytest.fixture
def denoiser():
    return ImageDenoiser()


@pytest.fixture
def salt_pepper_image():
    rng = np.random.default_rng(11)
    image = np.full((32, 32), 128, dtype=np.uint8)
    mask = rng.random(image.shape) < 0.2
    image[mask] = rng.choice(np.array([0, 255], dtype=np.uint8), size=int(mask.sum()))
    return image


def test_empty_image_rejected(denoiser):
    with pytest.raises(ValueError):
        denoiser.denoise(np.zeros((0, 0), dtype=np.uint8), DenoiseParameters())


def test_float_image_rejected(denoiser):
    with pytest.raises(ValueError):
        denoiser.denoise(np.zeros((8, 8), dtype=np.float32), DenoiseParameters())


def test_two_channel_image_rejected(denoiser):
    with pytest.raises(ValueError):
        denoiser.denoise(np.zeros((8, 8, 2), dtype=np.uint8), DenoiseParameters())


def test_even_median_kernel_rejected(denoiser):
    params = DenoiseParameters(method=DenoiseMethod.MEDIAN, median_kernel=4)
    with pytest.raises(ValueError):
        denoiser.denoise(np.zeros((8, 8), dtype=np.uint8), params)


def test_even_gaussian_kernel_rejected(denoiser):
    params = DenoiseParameters(method=DenoiseMethod.GAUSSIAN, gaussian_kernel=(4, 5))
    with pytest.raises(ValueError):
        denoiser.denoise(np.zeros((8, 8), dtype=np.uint8), params)


def test_nonpositive_bilateral_diameter_rejected(denoiser):
    params = DenoiseParameters(method=DenoiseMethod.BILATERAL, bilateral_d=0)
    with pytest.raises(ValueError):
        denoiser.denoise(np.zeros((8, 8), dtype=np.uint8), params)


def test_median_removes_isolated_salt(denoiser):
    image = np.full((12, 12), 100, dtype=np.uint8)
    image[5, 5] = 255
    params = DenoiseParameters(method=DenoiseMethod.MEDIAN, median_kernel=3)
    result = denoiser.denoise(image, params)
    expected = np.full((12, 12), 100, dtype=np.uint8)
    assert np.array_equal(result, expected)


@pytest.mark.parametrize(
    "method", [DenoiseMethod.GAUSSIAN, DenoiseMethod.BILATERAL, DenoiseMethod.NLM]
)
def test_constant_gray_image_unchanged(denoiser, method):
    image = np.full((14, 14), 77, dtype=np.uint8)
    params = DenoiseParameters(method=method, nlm_template_size=3, nlm_search_size=5)
    result = denoiser.denoise(image, params)
    assert np.array_equal(result, image)


def test_color_bilateral_keeps_constant_image(denoiser):
    image = np.full((10, 10, 3), 128, dtype=np.uint8)
    params = DenoiseParameters(method=DenoiseMethod.BILATERAL, bilateral_d=3)
    result = denoiser.denoise(image, params)
    assert result.shape == image.shape
    assert np.max(np.abs(result.astype(int) - image.astype(int))) <= 2


def test_nlm_reduces_noise(denoiser):
    rng = np.random.default_rng(5)
    noisy = np.clip(128 + rng.normal(0, 10, size=(16, 16)), 0, 255).astype(np.uint8)
    params = DenoiseParameters(
        method=DenoiseMethod.NLM, nlm_h=10.0, nlm_template_size=3, nlm_search_size=7
    )
    result = denoiser.denoise(noisy, params)
    assert result.std() < noisy.std()


def test_wavelet_method_uses_block_denoise(denoiser):
    rng = np.random.default_rng(2)
    image = rng.integers(0, 256, size=(16, 16), dtype=np.uint8)
    params = DenoiseParameters(
        method=DenoiseMethod.WAVELET, use_adaptive_threshold=False, wavelet_threshold=20.0
    )
    assert np.array_equal(denoiser.denoise(image, params), denoise_blocks(image, params))


def test_auto_picks_median_for_salt_and_pepper(denoiser, salt_pepper_image):
    auto = denoiser.denoise(salt_pepper_image, DenoiseParameters(method=DenoiseMethod.AUTO))
    median = denoiser.denoise(salt_pepper_image, DenoiseParameters(method=DenoiseMethod.MEDIAN))
    assert np.array_equal(auto, median)


def test_analyze_noise_matches_analyzer(denoiser, salt_pepper_image):
    analysis = denoiser.analyze_noise(salt_pepper_image)
    reference = analyze_noise(salt_pepper_image)
    assert analysis.noise_mask.shape == salt_pepper_image.shape
    assert analysis.intensity == pytest.approx(reference.intensity)
    assert analysis.noise_type == reference.noise_type