from __future__ import annotations

import logging
import string
from typing import Tuple

import numpy as np

from rasterkit.errors import ColorParseFailure
from rasterkit.raster import RasterBuffer

LOGGER = logging.getLogger(__name__)

WHITE = (255, 255, 255)


def parse_hex_color(value: str) -> Tuple[int, int, int]:
    """Parse ``#rrggbb`` (leading ``#`` optional). Raises ColorParseFailure."""
    hex_str = (value or "").strip()
    if hex_str.startswith("#"):
        hex_str = hex_str[1:]
    if len(hex_str) != 6 or any(c not in string.hexdigits for c in hex_str):
        raise ColorParseFailure(f"Invalid hex color {value!r}")
    return int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16)


def target_color_or_white(value: str) -> Tuple[int, int, int]:
    try:
        return parse_hex_color(value)
    except ColorParseFailure as exc:
        LOGGER.warning("%s; using #ffffff", exc)
        return WHITE


def color_distance(rgba: np.ndarray, target: Tuple[int, int, int]) -> np.ndarray:
    rgb = rgba[..., :3].astype(np.float64)
    dr = rgb[..., 0] - float(target[0])
    dg = rgb[..., 1] - float(target[1])
    db = rgb[..., 2] - float(target[2])
    return np.sqrt(dr * dr + dg * dg + db * db)


def cutout_color(
    buf: RasterBuffer,
    color: str | Tuple[int, int, int],
    tolerance: float,
    softness: float = 0.0,
) -> RasterBuffer:
    """
    buf: RGBA raster
    Returns: new buffer where pixels within ``tolerance`` of ``color`` are
    fully transparent and pixels in the ``softness`` band beyond it fade in
    linearly. Alpha only ever goes down.
    Distance: Euclidean in RGB
    """
    tol = float(tolerance)
    soft = float(softness)
    if tol < 0 or soft < 0:
        raise ValueError("tolerance and softness must be >= 0")

    target = target_color_or_white(color) if isinstance(color, str) else tuple(int(v) for v in color)
    dist = color_distance(buf.pixels, target)

    alpha = buf.pixels[..., 3].copy()
    alpha[dist <= tol] = 0

    if soft > 0:
        band = (dist > tol) & (dist <= tol + soft)
        faded = np.floor((dist - tol) / soft * 255.0)
        lower = band & (faded < alpha)
        alpha[lower] = faded[lower].astype(np.uint8)

    out = buf.pixels.copy()
    out[..., 3] = alpha
    return RasterBuffer(out)


def remove_black_background(buf: RasterBuffer) -> RasterBuffer:
    """
    Recover color and alpha from content composited over black: alpha is the
    brightest channel and the channels are scaled back up by it.
    """
    rgb = buf.pixels[..., :3].astype(np.float64)
    m = rgb.max(axis=2)
    visible = m > 0

    out = buf.pixels.copy()
    out[..., 3] = np.where(visible, m, 0).astype(np.uint8)

    scaled = np.zeros_like(rgb)
    scaled[visible] = rgb[visible] / m[visible][:, None] * 255.0
    out[visible, :3] = np.clip(np.rint(scaled[visible]), 0, 255).astype(np.uint8)
    return RasterBuffer(out)
