import dataclasses

from pixelcraft.denoise_types import (
    DenoiseMethod,
    DenoiseParameters,
    NoiseAnalysis,
    NoiseType,
    WaveletType,
)


def test_parameter_defaults_follow_source():
    params = DenoiseParameters()
    assert params.method is DenoiseMethod.AUTO
    assert params.median_kernel == 5
    assert params.gaussian_kernel == (5, 5)
    assert params.nlm_search_size == 21
    assert params.wavelet_type is WaveletType.HAAR
    assert params.block_size == 32


def test_replace_changes_only_named_field():
    params = DenoiseParameters()
    changed = dataclasses.replace(params, median_kernel=7)
    assert changed.median_kernel == 7
    assert dataclasses.replace(changed, median_kernel=params.median_kernel) == params


def test_analysis_probabilities_not_shared():
    first = NoiseAnalysis()
    second = NoiseAnalysis()
    first.probabilities[NoiseType.GAUSSIAN] = 0.5
    assert second.probabilities == {}


def test_analysis_defaults():
    analysis = NoiseAnalysis()
    assert analysis.noise_type is NoiseType.UNKNOWN
    assert analysis.noise_mask is None