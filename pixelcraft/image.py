"""A small in-memory raster image with pixel access and simple drawing."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from PIL import Image as PILImage


class ImageFormat(enum.Enum):
    INVALID = 0
    ARGB32 = 1
    RGB32 = 2
    GRAYSCALE8 = 3


_CHANNELS = {
    ImageFormat.INVALID: 0,
    ImageFormat.ARGB32: 4,
    ImageFormat.RGB32: 4,
    ImageFormat.GRAYSCALE8: 1,
}


@dataclass(frozen=True)
class RGB:
    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 255


def gray(color: RGB) -> int:
    """Luminance of a colour on the 0..255 scale."""
    return (color.r * 11 + color.g * 16 + color.b * 5) // 32


def _gray_array(rgba: np.ndarray) -> np.ndarray:
    channels = rgba.astype(np.uint32)
    result = (channels[..., 0] * 11 + channels[..., 1] * 16 + channels[..., 2] * 5) // 32
    return result.astype(np.uint8)


@dataclass(frozen=True)
class Rectangle:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def is_null(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def right(self) -> int:
        """One past the last column."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """One past the last row."""
        return self.y + self.height

    def united(self, other: "Rectangle") -> "Rectangle":
        """Bounding rectangle of both rectangles."""
        if self.is_null:
            return other
        if other.is_null:
            return self
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        return Rectangle(
            left, top, max(self.right, other.right) - left, max(self.bottom, other.bottom) - top
        )

    def adjusted(self, dx1: int, dy1: int, dx2: int, dy2: int) -> "Rectangle":
        """Rectangle with its edges moved by the given offsets."""
        return Rectangle(
            self.x + dx1, self.y + dy1, self.width + dx2 - dx1, self.height + dy2 - dy1
        )

    def intersects(self, other: "Rectangle") -> bool:
        if self.is_null or other.is_null:
            return False
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


def _resize_bilinear(data: np.ndarray, new_width: int, new_height: int) -> np.ndarray:
    height, width, _ = data.shape

    def axis(new_size: int, size: int):
        coords = (np.arange(new_size) + 0.5) * (size / new_size) - 0.5
        coords = np.clip(coords, 0, size - 1)
        low = np.floor(coords).astype(np.intp)
        high = np.minimum(low + 1, size - 1)
        return low, high, coords - low

    y0, y1, fy = axis(new_height, height)
    x0, x1, fx = axis(new_width, width)
    src = data.astype(np.float64)
    fx = fx[None, :, None]
    top = src[y0][:, x0] * (1 - fx) + src[y0][:, x1] * fx
    bottom = src[y1][:, x0] * (1 - fx) + src[y1][:, x1] * fx
    fy = fy[:, None, None]
    result = top * (1 - fy) + bottom * fy
    return np.clip(np.rint(result), 0, 255).astype(np.uint8)


class Image:
    """Raster image stored as rows of RGBA or grayscale bytes."""

    def __init__(
        self, width: int = 0, height: int = 0, fmt: ImageFormat = ImageFormat.INVALID
    ) -> None:
        self._format = fmt
        self._width = max(width, 0)
        self._height = max(height, 0)
        self._data = np.zeros((self._height, self._width, _CHANNELS[fmt]), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def format(self) -> ImageFormat:
        return self._format

    @property
    def channels(self) -> int:
        return _CHANNELS[self._format]

    @property
    def is_null(self) -> bool:
        return (
            self._width <= 0
            or self._height <= 0
            or self._format is ImageFormat.INVALID
            or self._data.size == 0
        )

    @property
    def size_in_bytes(self) -> int:
        return self._data.size

    @property
    def bits(self) -> np.ndarray:
        """Pixel bytes as a (height, width, channels) array, shared with the image."""
        return self._data

    @property
    def rect(self) -> Rectangle:
        return Rectangle(0, 0, self._width, self._height)

    def copy(self) -> "Image":
        result = Image(self._width, self._height, self._format)
        result._data[...] = self._data
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return self._format is other._format and np.array_equal(self._data, other._data)

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def _from_array(cls, data: np.ndarray, fmt: ImageFormat) -> "Image":
        image = cls(data.shape[1], data.shape[0], fmt)
        image._data[...] = data
        return image

    @classmethod
    def load(cls, filename: Union[str, os.PathLike]) -> "Image":
        """Read an image file; raises OSError when it cannot be read."""
        with PILImage.open(filename) as pil:
            pil.load()
            if pil.mode == "L":
                array = np.asarray(pil, dtype=np.uint8)[:, :, None]
                return cls._from_array(array, ImageFormat.GRAYSCALE8)
            has_alpha = pil.mode in ("RGBA", "LA", "PA") or (
                pil.mode == "P" and "transparency" in pil.info
            )
            if has_alpha:
                array = np.asarray(pil.convert("RGBA"), dtype=np.uint8)
                return cls._from_array(array, ImageFormat.ARGB32)
            rgb = np.asarray(pil.convert("RGB"), dtype=np.uint8)
        alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
        return cls._from_array(np.concatenate([rgb, alpha], axis=2), ImageFormat.RGB32)

    def save(self, filename: Union[str, os.PathLike]) -> None:
        """Write the image; the format follows the file extension."""
        if self.is_null:
            raise ValueError("cannot save a null image")
        name = os.fspath(filename)
        _, ext = os.path.splitext(name)
        if not ext:
            raise ValueError(f"no file extension in {name!r}")
        ext = ext[1:].lower()
        if self._format is ImageFormat.GRAYSCALE8:
            pil = PILImage.fromarray(self._data[:, :, 0], mode="L")
        elif self._format is ImageFormat.ARGB32 and ext not in ("jpg", "jpeg"):
            pil = PILImage.fromarray(self._data, mode="RGBA")
        else:
            pil = PILImage.fromarray(np.ascontiguousarray(self._data[:, :, :3]), mode="RGB")
        options = {}
        if ext in ("jpg", "jpeg"):
            options["quality"] = 90
        elif ext == "png":
            options["compress_level"] = 9
        pil.save(name, **options)

    def scaled(self, width: int, height: int) -> "Image":
        """Bilinearly resized copy; a null image when the size is not positive."""
        if self.is_null or width <= 0 or height <= 0:
            return Image()
        return Image._from_array(_resize_bilinear(self._data, width, height), self._format)

    def convert_to_format(self, fmt: ImageFormat) -> "Image":
        if self.is_null or self._format is fmt:
            return self.copy()
        result = Image(self._width, self._height, fmt)
        if fmt is ImageFormat.INVALID:
            return result
        if self._format is ImageFormat.GRAYSCALE8:
            rgba = np.empty((self._height, self._width, 4), dtype=np.uint8)
            rgba[..., :3] = self._data
            rgba[..., 3] = 255
        else:
            rgba = self._data
        if fmt is ImageFormat.GRAYSCALE8:
            result._data[..., 0] = _gray_array(rgba)
        else:
            result._data[...] = rgba
        return result

    def _contains(self, x: int, y: int) -> bool:
        return not self.is_null and 0 <= x < self._width and 0 <= y < self._height

    def pixel_at(self, x: int, y: int) -> RGB:
        """Colour at (x, y), or the default colour outside the image."""
        if not self._contains(x, y):
            return RGB()
        pixel = self._data[y, x]
        if self._format is ImageFormat.GRAYSCALE8:
            value = int(pixel[0])
            return RGB(value, value, value)
        return RGB(int(pixel[0]), int(pixel[1]), int(pixel[2]), int(pixel[3]))

    def set_pixel_at(self, x: int, y: int, color: RGB) -> None:
        """Set the colour at (x, y); positions outside the image are ignored."""
        if not self._contains(x, y):
            return
        if self._format is ImageFormat.GRAYSCALE8:
            self._data[y, x, 0] = gray(color)
        else:
            self._data[y, x] = (color.r, color.g, color.b, color.a)

    def scan_line(self, y: int) -> Optional[np.ndarray]:
        """Bytes of row y as a writable flat view, or None outside the image."""
        if self.is_null or not 0 <= y < self._height:
            return None
        return self._data[y].reshape(-1)

    def fill(self, color: RGB) -> None:
        if self.is_null:
            return
        if self._format is ImageFormat.GRAYSCALE8:
            self._data[...] = gray(color)
        else:
            self._data[...] = (color.r, color.g, color.b, color.a)

    def draw_line(
        self, x1: int, y1: int, x2: int, y2: int, color: RGB, width: int = 1
    ) -> None:
        """Draw a one-pixel line with Bresenham's algorithm."""
        dx = abs(x2 - x1)
        dy = abs(y2 - y1)
        sx = 1 if x1 < x2 else -1
        sy = 1 if y1 < y2 else -1
        err = dx - dy
        while True:
            self.set_pixel_at(x1, y1, color)
            if x1 == x2 and y1 == y2:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x1 += sx
            if e2 < dx:
                err += dx
                y1 += sy

    def draw_rect(self, rect: Rectangle, color: RGB) -> None:
        left, top, right, bottom = rect.x, rect.y, rect.right, rect.bottom
        self.draw_line(left, top, right, top, color)
        self.draw_line(right, top, right, bottom, color)
        self.draw_line(right, bottom, left, bottom, color)
        self.draw_line(left, bottom, left, top, color)

    def fill_rect(self, rect: Rectangle, color: RGB) -> None:
        """Fill the part of rect that lies inside the image."""
        if self.is_null:
            return
        x0, y0 = max(rect.x, 0), max(rect.y, 0)
        x1, y1 = min(rect.right, self._width), min(rect.bottom, self._height)
        if x0 >= x1 or y0 >= y1:
            return
        if self._format is ImageFormat.GRAYSCALE8:
            self._data[y0:y1, x0:x1] = gray(color)
        else:
            self._data[y0:y1, x0:x1] = (color.r, color.g, color.b, color.a)

    def draw_text(self, x: int, y: int, text: str, color: RGB) -> None:
        """Draw each character as a 6x10 block on an 8-pixel advance."""
        for index, _ in enumerate(text):
            self.fill_rect(Rectangle(x + index * 8, y, 6, 10), color)