import numpy as np
import pytest

from pixelcraft.sharpen_algorithms import LaplaceSharpener, UnsharpMaskSharpener
from pixelcraft.sharpen_params import LaplaceParams, UnsharpMaskParams
from pixelcraft.sharpener import ImageSharpener, SharpenMethod


@pytest.fixture
def image():
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(16, 16, 3), dtype=np.uint8)


def test_default_method_and_name():
    sharpener = ImageSharpener()
    assert sharpener.method is SharpenMethod.UNSHARP_MASK
    assert sharpener.method_name == "USM锐化"
    assert isinstance(sharpener.params, UnsharpMaskParams)


def test_laplace_name():
    assert ImageSharpener(SharpenMethod.LAPLACE).method_name == "拉普拉斯锐化"


def test_default_sharpen_matches_algorithm(image):
    expected = UnsharpMaskSharpener(UnsharpMaskParams()).process(image)
    assert np.array_equal(ImageSharpener().sharpen(image), expected)


@pytest.mark.parametrize("method", list(SharpenMethod))
def test_every_method_keeps_shape_and_dtype(method, image):
    result = ImageSharpener(method).sharpen(image)
    assert result.shape == image.shape
    assert result.dtype == image.dtype


def test_unsupported_parameter_type_rejected():
    with pytest.raises(TypeError):
        ImageSharpener().set_parameters({"sigma": 1.0})


def test_invalid_parameters_raise_on_sharpen(image):
    sharpener = ImageSharpener()
    sharpener.set_parameters(UnsharpMaskParams(radius=4))
    with pytest.raises(ValueError):
        sharpener.sharpen(image)


def test_switching_method_with_mismatched_params_fails():
    sharpener = ImageSharpener()
    with pytest.raises(TypeError):
        sharpener.method = SharpenMethod.LAPLACE
    assert sharpener.method is SharpenMethod.UNSHARP_MASK


def test_new_parameters_used_after_switch(image):
    params = LaplaceParams(kernel_size=5)
    sharpener = ImageSharpener()
    sharpener.set_parameters(params)
    sharpener.method = SharpenMethod.LAPLACE
    expected = LaplaceSharpener(LaplaceParams(kernel_size=5)).process(image)
    assert np.array_equal(sharpener.sharpen(image), expected)


def test_mismatched_params_raise_on_sharpen(image):
    sharpener = ImageSharpener()
    sharpener.set_parameters(LaplaceParams())
    with pytest.raises(TypeError):
        sharpener.sharpen(image)


def test_empty_image_rejected():
    with pytest.raises(ValueError):
        ImageSharpener().sharpen(np.zeros((0, 0), dtype=np.uint8))