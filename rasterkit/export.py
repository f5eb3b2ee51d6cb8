from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable

from rasterkit import formats
from rasterkit.codecs import decode_image, encode_raster
from rasterkit.gallery import GalleryItem

LOGGER = logging.getLogger(__name__)

EXPORT_SUFFIX = "_edited"


def download_name(name: str, fmt: str) -> str:
    """Working name with its extension swapped for the canonical one of ``fmt``."""
    stem = formats.strip_extension(name) or "edited-image"
    return f"{stem}.{formats.extension_for(fmt)}"


def export_name(item: GalleryItem, suffix: str = EXPORT_SUFFIX) -> str:
    stem = formats.strip_extension(item.name)
    return f"{stem}{suffix}.{formats.extension_for(item.current_format)}"


def export_bytes(item: GalleryItem, quality: float = 0.92) -> bytes:
    """
    Bytes of the item's latest version in its current format. Intermediate
    batch results are kept as PNG and re-encoded here when the item is
    labelled with another format.
    """
    target = item.current_format if formats.is_encodable(item.current_format) else formats.PNG
    if item.current_bytes_format == target:
        return item.current_bytes
    buf = decode_image(item.current_bytes, item.current_bytes_format)
    return encode_raster(buf, target, quality).data


def batch_export(
    items: Iterable[GalleryItem],
    suffix: str = EXPORT_SUFFIX,
    quality: float = 0.92,
) -> Dict[str, bytes]:
    """``name -> bytes`` mapping for the archiver, one entry per item."""
    out: Dict[str, bytes] = {}
    for item in items:
        name = export_name(item, suffix)
        if name in out:
            LOGGER.warning("Duplicate export name %s; later item %s overwrites it", name, item.id)
        out[name] = export_bytes(item, quality)
    return out


def write_export(mapping: Dict[str, bytes], output_dir: str | Path) -> int:
    out_root = Path(output_dir)
    out_root.mkdir(parents=True, exist_ok=True)

    count = 0
    for name, data in mapping.items():
        (out_root / name).write_bytes(data)
        count += 1
    return count
