[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pixelcraft"
version = "0.1.0"
description = "Image comparison, sharpening, denoising and caching utilities built on NumPy, SciPy and Pillow"
requires-python = ">=3.10"
keywords = ["image", "diff", "ssim", "sharpen", "denoise", "wavelet", "phash", "cache"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pixelcraft"]

[tool.pytest.ini_options]
addopts = "-ra"
