"""
Encoders and decoders between RasterBuffer and file bytes.

BMP, ICO and the SVG wrapper are written by hand so their byte layout is
fixed; the remaining formats go through Pillow.
"""
from __future__ import annotations

import base64
import io
import logging
import re
import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from rasterkit import formats
from rasterkit.errors import DecodeFailure, InvalidDimensions, UnsupportedFormat
from rasterkit.raster import RasterBuffer, pil_to_raster, raster_to_pil
from rasterkit.tga import decode_tga

LOGGER = logging.getLogger(__name__)

BMP_HEADER_SIZE = 54
BMP_DIB_HEADER_SIZE = 40
ICO_HEADER_SIZE = 6
ICO_ENTRY_SIZE = 16

_SVG_IMAGE_RE = re.compile(rb'(?:xlink:)?href\s*=\s*"data:image/png;base64,([A-Za-z0-9+/=\s]+)"')


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    format: str


# ---- encoders ----

def encode_bmp(buf: RasterBuffer) -> bytes:
    pixel_bytes = buf.width * buf.height * 4
    file_size = BMP_HEADER_SIZE + pixel_bytes
    header = struct.pack(
        "<2sIHHI",
        b"BM",
        file_size,
        0,
        0,
        BMP_HEADER_SIZE,
    )
    dib = struct.pack(
        "<IiiHHIIiiII",
        BMP_DIB_HEADER_SIZE,
        buf.width,
        -buf.height,  # negative height: rows are top-down
        1,
        32,
        0,  # BI_RGB
        pixel_bytes,
        0,
        0,
        0,
        0,
    )
    bgra = np.ascontiguousarray(buf.pixels[..., [2, 1, 0, 3]])
    return header + dib + bgra.tobytes()


def encode_png(buf: RasterBuffer) -> bytes:
    out = io.BytesIO()
    raster_to_pil(buf).save(out, format="PNG")
    return out.getvalue()


def encode_ico(buf: RasterBuffer) -> bytes:
    png = encode_png(buf)
    header = struct.pack("<HHH", 0, 1, 1)
    entry = struct.pack(
        "<BBBBHHII",
        0 if buf.width >= 256 else buf.width,
        0 if buf.height >= 256 else buf.height,
        0,
        0,
        1,
        32,
        len(png),
        ICO_HEADER_SIZE + ICO_ENTRY_SIZE,
    )
    return header + entry + png


def encode_svg(buf: RasterBuffer) -> bytes:
    data_url = "data:image/png;base64," + base64.b64encode(encode_png(buf)).decode("ascii")
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{buf.width}" height="{buf.height}">\n'
        f'    <image href="{data_url}" width="{buf.width}" height="{buf.height}" />\n'
        f"</svg>"
    )
    return svg.encode("utf-8")


def _flatten_on_black(buf: RasterBuffer) -> Image.Image:
    rgba = buf.pixels.astype(np.float32)
    rgb = rgba[..., :3] * (rgba[..., 3:4] / 255.0)
    return Image.fromarray(np.clip(np.rint(rgb), 0, 255).astype(np.uint8))


def _pil_quality(quality: float) -> int:
    return int(max(1, min(100, round(float(quality) * 100))))


def _encode_with_pillow(buf: RasterBuffer, info: formats.FormatInfo, quality: float) -> bytes:
    if info.mime == formats.JPEG:
        img = _flatten_on_black(buf)
    else:
        img = raster_to_pil(buf)

    params = {}
    if info.lossy:
        params["quality"] = _pil_quality(quality)
    out = io.BytesIO()
    img.save(out, format=info.pil_format, **params)
    return out.getvalue()


def encode_raster(buf: RasterBuffer, fmt: str = formats.PNG, quality: float = 1.0) -> EncodedImage:
    """
    Serialize ``buf`` into the container named by ``fmt`` (a MIME id).

    ``quality`` in [0, 1] only matters for lossy formats. When Pillow has no
    writer for a format (AVIF on older builds) the buffer is written as PNG
    and the returned ``format`` says so.
    """
    try:
        info = formats.format_info(fmt)
    except KeyError as exc:
        raise UnsupportedFormat(f"Cannot encode to {fmt!r}") from exc
    if not info.encodable:
        raise UnsupportedFormat(f"Cannot encode to {fmt!r}")

    if info.mime == formats.BMP:
        return EncodedImage(encode_bmp(buf), info.mime)
    if info.mime == formats.ICO:
        return EncodedImage(encode_ico(buf), info.mime)
    if info.mime == formats.SVG:
        return EncodedImage(encode_svg(buf), info.mime)
    if info.mime == formats.PNG:
        return EncodedImage(encode_png(buf), info.mime)

    try:
        return EncodedImage(_encode_with_pillow(buf, info, quality), info.mime)
    except (KeyError, OSError) as exc:
        LOGGER.warning("No %s writer available (%s); falling back to PNG", info.pil_format, exc)
        return EncodedImage(encode_png(buf), formats.PNG)


# ---- decoders ----

def decode_bmp(data: bytes) -> RasterBuffer:
    """
    Read a BMP. 32-bit uncompressed files are read directly so their alpha
    byte survives; every other variant is handed to Pillow.
    """
    if len(data) < BMP_HEADER_SIZE or data[:2] != b"BM":
        raise DecodeFailure("Not a BMP file")
    pixel_offset, dib_size = struct.unpack_from("<II", data, 10)
    width, height, _planes, bpp, compression = struct.unpack_from("<iiHHI", data, 18)
    if bpp != 32 or compression != 0:
        return _decode_with_pillow(data)
    if width <= 0 or height == 0:
        raise InvalidDimensions(f"Invalid BMP dimensions {width}x{height}")

    rows = abs(height)
    needed = width * rows * 4
    if len(data) < pixel_offset + needed:
        raise DecodeFailure("BMP pixel data truncated")
    bgra = np.frombuffer(data, dtype=np.uint8, count=needed, offset=pixel_offset).reshape((rows, width, 4))
    out = bgra[..., [2, 1, 0, 3]].copy()
    if height > 0:
        out = out[::-1].copy()
    # Writers that treat the fourth byte as padding leave it zeroed. The
    # top-down 40-byte layout from encode_bmp always carries real alpha.
    written_here = dib_size == BMP_DIB_HEADER_SIZE and height < 0
    if not written_here and not np.any(out[..., 3]):
        out[..., 3] = 255
    return RasterBuffer(out)


def decode_svg_wrapper(data: bytes) -> RasterBuffer:
    match = _SVG_IMAGE_RE.search(data)
    if match is None:
        raise UnsupportedFormat("Only SVG files wrapping an embedded PNG can be decoded")
    try:
        png = base64.b64decode(b"".join(match.group(1).split()), validate=True)
    except ValueError as exc:
        raise DecodeFailure(f"Invalid base64 payload in SVG: {exc}") from exc
    return _decode_with_pillow(png)


def _decode_with_pillow(data: bytes) -> RasterBuffer:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return pil_to_raster(img)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise DecodeFailure(f"Failed to decode image: {exc}") from exc


def _looks_like_svg(data: bytes) -> bool:
    head = data[:512].lstrip()
    return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in data[:4096])


def decode_image(data: bytes, fmt: Optional[str] = None) -> RasterBuffer:
    """
    Decode file bytes into a RasterBuffer.

    TGA has no magic number, so it is only recognized through ``fmt``. Other
    containers are sniffed from their leading bytes.
    """
    if not data:
        raise DecodeFailure("Empty image data")
    if fmt == formats.TGA:
        return decode_tga(data)
    if data[:2] == b"BM":
        return decode_bmp(data)
    if _looks_like_svg(data):
        return decode_svg_wrapper(data)
    return _decode_with_pillow(data)
