from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from PIL import Image

from rasterkit.errors import InvalidDimensions
from rasterkit.raster import RasterBuffer, pil_to_raster, raster_to_pil

DEFAULT_CROP_MIN_SIZE = 20

# Bounding-box sizes within this distance below an integer snap up to it,
# so 90/180 degree sums that land on 99.99999 still give 100.
_SIZE_EPS = 1e-6


def rotated_canvas_size(width: int, height: int, angle_deg: float) -> Tuple[int, int]:
    rad = math.radians(float(angle_deg))
    c = abs(math.cos(rad))
    s = abs(math.sin(rad))
    new_w = int(width * c + height * s + _SIZE_EPS)
    new_h = int(width * s + height * c + _SIZE_EPS)
    return max(1, new_w), max(1, new_h)


def rotate90(buf: RasterBuffer, direction: str = "right") -> RasterBuffer:
    d = (direction or "").strip().lower()
    if d == "right":
        k = -1
    elif d == "left":
        k = 1
    else:
        raise ValueError(f"Unknown rotation direction: {direction!r}")
    return RasterBuffer(np.ascontiguousarray(np.rot90(buf.pixels, k=k)))


def rotate(buf: RasterBuffer, angle_deg: float) -> RasterBuffer:
    """
    Rotate clockwise by ``angle_deg`` around the image center.

    The canvas grows to the rotated bounding box so no source pixel is
    clipped; everything outside the source is transparent. Multiples of 90
    degrees are exact pixel permutations.
    """
    angle = float(angle_deg)
    quarter = angle / 90.0
    if quarter == int(quarter):
        k = int(quarter) % 4
        if k == 0:
            return buf.copy()
        return RasterBuffer(np.ascontiguousarray(np.rot90(buf.pixels, k=-k)))

    w, h = buf.size
    new_w, new_h = rotated_canvas_size(w, h, angle)
    rad = math.radians(angle)
    c = math.cos(rad)
    s = math.sin(rad)

    # Affine map from output pixel to source pixel (inverse rotation about
    # the two centers).
    ox, oy = new_w / 2.0, new_h / 2.0
    cx, cy = w / 2.0, h / 2.0
    matrix = (
        c,
        s,
        cx - c * ox - s * oy,
        -s,
        c,
        cy + s * ox - c * oy,
    )

    src = raster_to_pil(buf).convert("RGBa")
    out = src.transform(
        (new_w, new_h),
        Image.Transform.AFFINE,
        matrix,
        resample=Image.Resampling.BICUBIC,
        fillcolor=(0, 0, 0, 0),
    )
    return pil_to_raster(out.convert("RGBA"))


def flip(buf: RasterBuffer, axis: str = "horizontal") -> RasterBuffer:
    a = (axis or "").strip().lower()
    if a == "horizontal":
        return RasterBuffer(buf.pixels[:, ::-1].copy())
    if a == "vertical":
        return RasterBuffer(buf.pixels[::-1].copy())
    raise ValueError(f"Unknown flip axis: {axis!r}")


def clamp_crop_rect(
    width: int,
    height: int,
    x: float,
    y: float,
    crop_w: float,
    crop_h: float,
    min_size: int = DEFAULT_CROP_MIN_SIZE,
) -> Tuple[int, int, int, int]:
    min_w = min(int(min_size), width)
    min_h = min(int(min_size), height)
    cw = max(min_w, min(int(round(crop_w)), width))
    ch = max(min_h, min(int(round(crop_h)), height))
    x0 = max(0, min(int(round(x)), width - cw))
    y0 = max(0, min(int(round(y)), height - ch))
    return x0, y0, cw, ch


def crop(
    buf: RasterBuffer,
    x: float,
    y: float,
    crop_w: float,
    crop_h: float,
    min_size: int = DEFAULT_CROP_MIN_SIZE,
) -> RasterBuffer:
    x0, y0, cw, ch = clamp_crop_rect(buf.width, buf.height, x, y, crop_w, crop_h, min_size)
    return RasterBuffer(buf.pixels[y0:y0 + ch, x0:x0 + cw].copy())


def center_crop_rect(width: int, height: int, ratio: float) -> Tuple[int, int, int, int]:
    """Largest rectangle of aspect ``ratio`` (width / height) centered in the image."""
    r = float(ratio)
    if not r > 0 or math.isinf(r):
        raise ValueError(f"Crop ratio must be a positive number, got {ratio!r}")
    if width / height > r:
        crop_w = max(1, min(width, int(height * r)))
        crop_h = height
    else:
        crop_w = width
        crop_h = max(1, min(height, int(width / r)))
    return (width - crop_w) // 2, (height - crop_h) // 2, crop_w, crop_h


def crop_center(buf: RasterBuffer, ratio: float, min_size: int = DEFAULT_CROP_MIN_SIZE) -> RasterBuffer:
    x, y, cw, ch = center_crop_rect(buf.width, buf.height, ratio)
    return crop(buf, x, y, cw, ch, min_size=min_size)


def resize(buf: RasterBuffer, width: int, height: int) -> RasterBuffer:
    w = int(width)
    h = int(height)
    if w <= 0 or h <= 0:
        raise InvalidDimensions(f"Invalid resize target {width}x{height}")
    if (w, h) == buf.size:
        return buf.copy()
    img = raster_to_pil(buf).resize((w, h), resample=Image.Resampling.LANCZOS)
    return pil_to_raster(img)


def fit_size(width: int, height: int, box_w: int, box_h: int) -> Tuple[int, int]:
    """Largest size with the aspect ratio of ``width x height`` inside the box."""
    if box_w <= 0 or box_h <= 0:
        raise InvalidDimensions(f"Invalid resize target {box_w}x{box_h}")
    scale = min(box_w / width, box_h / height)
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))
