from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from rasterkit.raster import RasterBuffer, pil_to_raster, raster_to_pil

LAYOUTS = ("horizontal", "vertical", "grid")


def collage_grid(layout: str, count: int, cols: int = 1, rows: int = 1) -> Tuple[int, int]:
    if layout == "horizontal":
        return max(1, count), 1
    if layout == "vertical":
        return 1, max(1, count)
    if layout == "grid":
        return max(1, int(cols)), max(1, int(rows))
    raise ValueError(f"layout must be one of {LAYOUTS}, got {layout!r}")


def collage_canvas_size(cols: int, rows: int, thumb_w: int, thumb_h: int, gap: int) -> Tuple[int, int]:
    return cols * thumb_w + (cols - 1) * gap, rows * thumb_h + (rows - 1) * gap


def build_collage(
    images: Sequence[RasterBuffer],
    layout: str = "grid",
    cols: int = 2,
    rows: int = 2,
    thumb_size: Tuple[int, int] = (200, 200),
    gap: int = 10,
    background: Optional[Tuple[int, int, int, int]] = None,
) -> RasterBuffer:
    """
    Lay ``images`` out on a grid of equal cells.

    Each image is scaled to fit its cell without changing its aspect ratio and
    centered in it. Images that do not fit in ``cols * rows`` cells are left
    out. The background is transparent unless ``background`` is given.
    """
    if not images:
        raise ValueError("A collage needs at least one image")
    thumb_w, thumb_h = (int(v) for v in thumb_size)
    if thumb_w <= 0 or thumb_h <= 0 or gap < 0:
        raise ValueError("thumb size must be positive and gap >= 0")

    n_cols, n_rows = collage_grid(layout, len(images), cols, rows)
    canvas_w, canvas_h = collage_canvas_size(n_cols, n_rows, thumb_w, thumb_h, int(gap))
    canvas = Image.fromarray(np.zeros((canvas_h, canvas_w, 4), dtype=np.uint8))
    if background is not None:
        canvas.paste(tuple(int(v) for v in background), (0, 0, canvas_w, canvas_h))

    for index, buf in enumerate(images[: n_cols * n_rows]):
        row, col = divmod(index, n_cols)
        cell_x = col * (thumb_w + gap)
        cell_y = row * (thumb_h + gap)

        scale = min(thumb_w / buf.width, thumb_h / buf.height)
        scaled_w = max(1, int(round(buf.width * scale)))
        scaled_h = max(1, int(round(buf.height * scale)))
        thumb = raster_to_pil(buf).resize((scaled_w, scaled_h), resample=Image.Resampling.LANCZOS)

        x = cell_x + (thumb_w - scaled_w) // 2
        y = cell_y + (thumb_h - scaled_h) // 2
        canvas.alpha_composite(thumb, (x, y))

    return pil_to_raster(canvas)
