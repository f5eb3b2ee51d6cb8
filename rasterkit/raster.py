from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

from rasterkit.errors import InvalidDimensions


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """RGBA8 pixels, row-major and top-down, stored as an HxWx4 uint8 array.

    Buffers are treated as immutable: operations read ``pixels`` and build a
    new buffer instead of writing into it.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        arr = self.pixels
        if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError("pixels must be HxWx4 uint8")
        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise InvalidDimensions(f"invalid raster size {arr.shape[1]}x{arr.shape[0]}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def blank(cls, width: int, height: int, rgba: tuple[int, int, int, int] = (0, 0, 0, 0)) -> "RasterBuffer":
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"invalid raster size {width}x{height}")
        arr = np.empty((int(height), int(width), 4), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(arr)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "RasterBuffer":
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"invalid raster size {width}x{height}")
        if len(data) != width * height * 4:
            raise ValueError(f"expected {width * height * 4} bytes, got {len(data)}")
        arr = np.frombuffer(data, dtype=np.uint8).reshape((height, width, 4)).copy()
        return cls(arr)

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.pixels.copy())

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return r, g, b, a

    def same_pixels(self, other: "RasterBuffer") -> bool:
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))


def pil_to_raster(img: Image.Image) -> RasterBuffer:
    arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError("Expected RGBA image")
    return RasterBuffer(arr)


def raster_to_pil(buf: RasterBuffer) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(buf.pixels))
