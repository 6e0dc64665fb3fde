"""Image comparison, sharpening, denoising and caching utilities."""

__version__ = "0.1.0"

__all__ = [
    "convolve_config",
    "denoise_types",
    "denoiser",
    "diff_core",
    "image",
    "image_cache",
    "noise_analyzer",
    "promise",
    "sharpen_algorithms",
    "sharpen_params",
    "sharpener",
    "strategies",
    "wavelet",
]