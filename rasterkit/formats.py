from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

PNG = "image/png"
JPEG = "image/jpeg"
WEBP = "image/webp"
BMP = "image/bmp"
ICO = "image/x-icon"
TIFF = "image/tiff"
SVG = "image/svg+xml"
AVIF = "image/avif"
TGA = "image/x-tga"


@dataclass(frozen=True)
class FormatInfo:
    mime: str
    ext: str
    pil_format: Optional[str]
    lossy: bool = False
    # Legacy inputs are decoded on import and never written back.
    encodable: bool = True


FORMATS: dict[str, FormatInfo] = {
    PNG: FormatInfo(PNG, "png", "PNG"),
    JPEG: FormatInfo(JPEG, "jpg", "JPEG", lossy=True),
    WEBP: FormatInfo(WEBP, "webp", "WEBP", lossy=True),
    BMP: FormatInfo(BMP, "bmp", None),
    ICO: FormatInfo(ICO, "ico", None),
    TIFF: FormatInfo(TIFF, "tiff", "TIFF"),
    SVG: FormatInfo(SVG, "svg", None),
    AVIF: FormatInfo(AVIF, "avif", "AVIF", lossy=True),
    TGA: FormatInfo(TGA, "tga", None, encodable=False),
}

_EXT_TO_MIME = {
    "png": PNG,
    "jpg": JPEG,
    "jpeg": JPEG,
    "jfif": JPEG,
    "webp": WEBP,
    "bmp": BMP,
    "ico": ICO,
    "tif": TIFF,
    "tiff": TIFF,
    "svg": SVG,
    "avif": AVIF,
    "tga": TGA,
}


def format_info(mime: str) -> FormatInfo:
    info = FORMATS.get((mime or "").strip().lower())
    if info is None:
        raise KeyError(f"unknown image format: {mime!r}")
    return info


def is_encodable(mime: str) -> bool:
    info = FORMATS.get((mime or "").strip().lower())
    return info is not None and info.encodable


def extension_for(mime: str, default: str = "png") -> str:
    """Canonical extension for ``mime``; ``default`` for unknown or read-only formats."""
    info = FORMATS.get((mime or "").strip().lower())
    if info is None or not info.encodable:
        return default
    return info.ext


def mime_from_name(name: str, default: str = PNG) -> str:
    suffix = PurePath(name).suffix.lower().lstrip(".")
    return _EXT_TO_MIME.get(suffix, default)


def strip_extension(name: str) -> str:
    """Base name of ``name`` without its trailing ``.ext``."""
    base = PurePath(name).name
    dot = base.rfind(".")
    if 0 < dot < len(base) - 1:
        return base[:dot]
    return base
