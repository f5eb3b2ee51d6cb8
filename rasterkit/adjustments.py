from __future__ import annotations

import math

import numpy as np

from rasterkit.raster import RasterBuffer

GRAYSCALE_ALGORITHMS = ("max", "average", "weighted")


def _to_u8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def grayscale(buf: RasterBuffer, algorithm: str = "weighted") -> RasterBuffer:
    algo = (algorithm or "").strip().lower()
    if algo not in GRAYSCALE_ALGORITHMS:
        raise ValueError(f"Unknown grayscale algorithm: {algorithm!r}")

    rgb = buf.pixels[..., :3].astype(np.float32)
    if algo == "max":
        gray = rgb.max(axis=2)
    elif algo == "average":
        gray = rgb.sum(axis=2) / 3.0
    else:
        gray = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114

    out = buf.pixels.copy()
    g = _to_u8(gray)
    out[..., 0] = g
    out[..., 1] = g
    out[..., 2] = g
    return RasterBuffer(out)


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    rad = math.radians(float(degrees) % 360.0)
    c = math.cos(rad)
    s = math.sin(rad)
    return np.array(
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ],
        dtype=np.float64,
    )


def saturate_matrix(amount: float) -> np.ndarray:
    s = max(0.0, float(amount))
    return np.array(
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ],
        dtype=np.float64,
    )


def adjust_color(
    buf: RasterBuffer,
    hue: float = 0.0,
    saturation: float = 100.0,
    brightness: float = 100.0,
) -> RasterBuffer:
    """
    Hue rotation (degrees), then saturation and brightness (percent).

    Follows the ``hue-rotate()``, ``saturate()`` and ``brightness()`` filter
    functions applied in that order, each result clamped to [0, 1] before the
    next one. ``hue=0, saturation=100, brightness=100`` leaves pixels as-is.
    Alpha is not touched.
    """
    rgb = buf.pixels[..., :3].astype(np.float64) / 255.0

    if float(hue) % 360.0 != 0.0:
        rgb = np.clip(rgb @ hue_rotate_matrix(hue).T, 0.0, 1.0)
    if float(saturation) != 100.0:
        rgb = np.clip(rgb @ saturate_matrix(float(saturation) / 100.0).T, 0.0, 1.0)
    if float(brightness) != 100.0:
        rgb = np.clip(rgb * max(0.0, float(brightness) / 100.0), 0.0, 1.0)

    out = buf.pixels.copy()
    out[..., :3] = _to_u8(rgb * 255.0)
    return RasterBuffer(out)
