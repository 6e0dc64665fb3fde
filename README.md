# pixelcraft

Image processing helpers built on NumPy, SciPy and Pillow:

- **Image comparison** (`pixelcraft.strategies`): pixel difference, SSIM,
  perceptual (average) hash and histogram strategies. Each returns a
  `ComparisonResult` holding a difference image, a similarity percentage and
  a list of difference regions.
- **Sharpening** (`pixelcraft.sharpener`, `pixelcraft.sharpen_algorithms`):
  Laplace, unsharp mask, high boost, Laplacian of Gaussian, bilateral,
  frequency domain, adaptive unsharp, edge preserving and custom kernel
  sharpeners, selectable through `ImageSharpener`.
- **Denoising** (`pixelcraft.denoiser`, `pixelcraft.wavelet`): median,
  Gaussian, bilateral, non-local means and block-wise wavelet denoising, with
  automatic method selection from a noise analysis
  (`pixelcraft.noise_analyzer`).
- **Caching** (`pixelcraft.image_cache`): a thread-safe cache keyed on the
  content of NumPy arrays, with LRU, LFU and FIFO eviction.

## Installation

```
pip install pixelcraft
```

To run the test suite:

```
pip install "pixelcraft[test]"
pytest
```

## Images

`pixelcraft.image.Image` is a small raster image stored as a
`(height, width, channels)` byte array (`Image.bits`). Formats are
`ImageFormat.ARGB32` and `ImageFormat.RGB32` (four bytes per pixel, in
R, G, B, A order) and `ImageFormat.GRAYSCALE8`.

```python
from pixelcraft.image import Image, ImageFormat, RGB, Rectangle

img = Image(64, 48, ImageFormat.ARGB32)
img.fill(RGB(255, 255, 255))
img.fill_rect(Rectangle(10, 10, 20, 8), RGB(255, 0, 0))
img.draw_line(0, 0, 63, 47, RGB(0, 0, 0))
print(img.pixel_at(12, 12))
img.save("out.png")            # format chosen by the file extension
again = Image.load("out.png")  # raises OSError if the file cannot be read
```

`scaled(width, height)` resizes bilinearly, `convert_to_format(fmt)` changes
the pixel format, and `draw_text` draws each character as a plain 6x10 block
(there is no font rendering).

## Comparing images

```python
from pixelcraft.image import Image
from pixelcraft.promise import Promise
from pixelcraft.strategies import SSIMStrategy

a = Image.load("before.png")
b = Image.load("after.png")

promise = Promise()
promise.set_progress_callback(lambda percent: print(f"{percent}%"))
result = SSIMStrategy().compare(a, b, promise)
print(result.similarity)
for region in result.difference_regions:
    print(region)
result.difference_image.save("diff.png")
```

`PixelDifferenceStrategy`, `PerceptualHashStrategy` and `HistogramStrategy`
share the `compare(img1, img2, promise=None)` interface. The pixel and SSIM
strategies first subsample both images by `subsample_factor` (2 by default).
If a comparison raises, the promise is cancelled.

`pixelcraft.diff_core` adds `validate_images` (both non-null and the same
size), `post_process_result` (stretches the difference image in place to the
full 0..255 range), `rgb_to_lab` and `process_rows` (calls a function for
every row index on worker threads).

## Sharpening

Sharpeners work on NumPy arrays of shape `(H, W)` or `(H, W, C)` with at most
four channels.

```python
import numpy as np
from pixelcraft.sharpener import ImageSharpener, SharpenMethod
from pixelcraft.sharpen_params import UnsharpMaskParams

image = np.random.default_rng(0).integers(0, 256, (64, 64, 3), dtype=np.uint8)

sharpener = ImageSharpener(SharpenMethod.UNSHARP_MASK)
sharpener.set_parameters(UnsharpMaskParams(sigma=1.2, amount=0.8, radius=5))
output = sharpener.sharpen(image)
print(sharpener.method_name)
```

New parameters take effect at the next `sharpen` call. Setting
`sharpener.method` requires that the stored parameters suit the new method;
otherwise `TypeError` is raised. Invalid parameters (for example an even
radius) raise `ValueError`.

## Denoising

`ImageDenoiser.denoise` accepts 8-bit arrays with one channel or three
channels in B, G, R order.

```python
from pixelcraft.denoiser import ImageDenoiser
from pixelcraft.denoise_types import DenoiseMethod, DenoiseParameters

denoiser = ImageDenoiser()
clean = denoiser.denoise(noisy, DenoiseParameters(method=DenoiseMethod.MEDIAN))
analysis = denoiser.analyze_noise(noisy)
print(analysis.noise_type, analysis.intensity, analysis.snr)
```

With `DenoiseMethod.AUTO` the method is chosen by
`pixelcraft.noise_analyzer.recommend_method`. `pixelcraft.wavelet` also
offers `denoise_levels(src, levels, threshold)`, a multi-level band split
that processes only the first channel of a multi-channel image.

## Caching

```python
from pixelcraft.image_cache import ImageCache, EvictionPolicy, get_global_cache

cache = ImageCache(64, EvictionPolicy.LFU)   # capacity in megabytes
cache.put(source_array, processed_array)
hit = cache.get(source_array)                # None on a miss
print(cache.hit_rate, cache.current_size, cache.max_size)
cache.resize(32)

shared = get_global_cache(100)
```

## What the package does not do

- There is no command-line tool; everything is used as a library.
- `pixelcraft.convolve_config` holds only the settings and error types of
  convolution and deconvolution (`ConvolutionConfig`, `DeconvolutionConfig`,
  `BorderMode`, `DeconvMethod`, `ProcessError`, `ErrorCode`); the package has
  no convolution or deconvolution routines that use them.