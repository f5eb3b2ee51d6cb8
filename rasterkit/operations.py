"""
Edit operations as immutable values, and the single dispatcher that runs
one against a RasterBuffer.

Every operation is a frozen dataclass. ``apply_operation`` checks the
variants one by one and raises TypeError for anything it does not know, so a
new variant has to be wired in there before it can be used.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from rasterkit import formats
from rasterkit.adjustments import GRAYSCALE_ALGORITHMS, adjust_color, grayscale
from rasterkit.cutout import cutout_color, remove_black_background
from rasterkit.geometry import DEFAULT_CROP_MIN_SIZE, crop_center, fit_size, flip, resize, rotate
from rasterkit.raster import RasterBuffer

FLIP_AXES = ("horizontal", "vertical")


@dataclass(frozen=True)
class Rotate:
    angle: float

    kind = "rotate"

    def __post_init__(self) -> None:
        if not math.isfinite(float(self.angle)):
            raise ValueError(f"angle must be a finite number, got {self.angle!r}")


@dataclass(frozen=True)
class Flip:
    axis: str = "horizontal"

    kind = "flip"

    def __post_init__(self) -> None:
        if self.axis not in FLIP_AXES:
            raise ValueError(f"axis must be one of {FLIP_AXES}, got {self.axis!r}")


@dataclass(frozen=True)
class Resize:
    width: int
    height: int
    maintain_aspect: bool = False

    kind = "resize"

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError(f"resize target must be positive, got {self.width}x{self.height}")


@dataclass(frozen=True)
class CropCenter:
    ratio: float

    kind = "crop"

    def __post_init__(self) -> None:
        if not float(self.ratio) > 0:
            raise ValueError(f"ratio must be > 0, got {self.ratio!r}")


@dataclass(frozen=True)
class Grayscale:
    algorithm: str = "weighted"

    kind = "grayscale"

    def __post_init__(self) -> None:
        if self.algorithm not in GRAYSCALE_ALGORITHMS:
            raise ValueError(f"algorithm must be one of {GRAYSCALE_ALGORITHMS}, got {self.algorithm!r}")


@dataclass(frozen=True)
class Convert:
    format: str = formats.PNG
    quality: float = 0.92

    kind = "convert"

    def __post_init__(self) -> None:
        if not formats.is_encodable(self.format):
            raise ValueError(f"cannot convert to {self.format!r}")
        if not 0.0 <= float(self.quality) <= 1.0:
            raise ValueError(f"quality must be within [0, 1], got {self.quality!r}")


@dataclass(frozen=True)
class ColorAdjust:
    hue: float = 0.0
    saturation: float = 100.0
    brightness: float = 100.0

    kind = "color-adjust"

    def __post_init__(self) -> None:
        if float(self.saturation) < 0 or float(self.brightness) < 0:
            raise ValueError("saturation and brightness must be >= 0")


@dataclass(frozen=True)
class CutoutColor:
    color: str = "#ffffff"
    tolerance: float = 0.0
    softness: float = 0.0

    kind = "cutout-color"

    def __post_init__(self) -> None:
        if float(self.tolerance) < 0 or float(self.softness) < 0:
            raise ValueError("tolerance and softness must be >= 0")


@dataclass(frozen=True)
class RemoveBlackBackground:
    kind = "remove-bg-black"


Operation = Union[
    Rotate,
    Flip,
    Resize,
    CropCenter,
    Grayscale,
    Convert,
    ColorAdjust,
    CutoutColor,
    RemoveBlackBackground,
]


def apply_operation(
    buf: RasterBuffer,
    op: Operation,
    crop_min_size: int = DEFAULT_CROP_MIN_SIZE,
) -> RasterBuffer:
    """Run ``op`` on ``buf`` and return the new buffer. ``buf`` is left as it was."""
    if isinstance(op, Rotate):
        return rotate(buf, op.angle)
    if isinstance(op, Flip):
        return flip(buf, op.axis)
    if isinstance(op, Resize):
        if op.maintain_aspect:
            return resize(buf, *fit_size(buf.width, buf.height, int(op.width), int(op.height)))
        return resize(buf, op.width, op.height)
    if isinstance(op, CropCenter):
        return crop_center(buf, op.ratio, min_size=crop_min_size)
    if isinstance(op, Grayscale):
        return grayscale(buf, op.algorithm)
    if isinstance(op, Convert):
        # Pixels are unchanged; the format change happens at encode time.
        return buf.copy()
    if isinstance(op, ColorAdjust):
        return adjust_color(buf, op.hue, op.saturation, op.brightness)
    if isinstance(op, CutoutColor):
        return cutout_color(buf, op.color, op.tolerance, op.softness)
    if isinstance(op, RemoveBlackBackground):
        return remove_black_background(buf)
    raise TypeError(f"Unsupported operation: {op!r}")
