"""
Reader for uncompressed true-color Truevision TGA files.

Only image type 2 at 24 or 32 bits per pixel is understood. Color-mapped,
grayscale and RLE-compressed files (types 1, 3, 9, 10, 11) are rejected
rather than misread.
"""
from __future__ import annotations

import struct

import numpy as np

from rasterkit.errors import DecodeFailure, InvalidDimensions, UnsupportedFormat
from rasterkit.raster import RasterBuffer

HEADER_SIZE = 18
TYPE_TRUECOLOR = 2
DESCRIPTOR_TOP_DOWN = 0x20


def read_tga_header(data: bytes) -> dict:
    if len(data) < HEADER_SIZE:
        raise DecodeFailure(f"TGA header truncated: {len(data)} bytes")
    (
        id_length,
        _color_map_type,
        data_type,
        _cm_first,
        _cm_length,
        _cm_depth,
        _x_origin,
        _y_origin,
        width,
        height,
        pixel_depth,
        descriptor,
    ) = struct.unpack_from("<BBBHHBHHHHBB", data, 0)
    return {
        "id_length": id_length,
        "data_type": data_type,
        "width": width,
        "height": height,
        "pixel_depth": pixel_depth,
        "descriptor": descriptor,
    }


def decode_tga(data: bytes) -> RasterBuffer:
    hdr = read_tga_header(data)
    width = hdr["width"]
    height = hdr["height"]
    depth = hdr["pixel_depth"]

    if width <= 0 or height <= 0:
        raise InvalidDimensions("Invalid TGA dimensions")
    if hdr["data_type"] != TYPE_TRUECOLOR:
        raise UnsupportedFormat(
            f"Unsupported TGA type: {hdr['data_type']}. Only uncompressed RGB/RGBA (type 2) is supported."
        )
    if depth not in (24, 32):
        raise UnsupportedFormat(f"Unsupported TGA pixel depth: {depth}. Only 24-bit and 32-bit are supported.")

    # No color map for true-color images.
    offset = HEADER_SIZE + hdr["id_length"]
    bpp = depth // 8
    needed = width * height * bpp
    if len(data) < offset + needed:
        raise DecodeFailure(f"TGA pixel data truncated: need {needed} bytes, have {max(0, len(data) - offset)}")

    src = np.frombuffer(data, dtype=np.uint8, count=needed, offset=offset).reshape((height, width, bpp))
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., 0] = src[..., 2]
    out[..., 1] = src[..., 1]
    out[..., 2] = src[..., 0]
    out[..., 3] = src[..., 3] if bpp == 4 else 255

    if not hdr["descriptor"] & DESCRIPTOR_TOP_DOWN:
        out = out[::-1].copy()
    return RasterBuffer(out)


def encode_tga(buf: RasterBuffer, top_down: bool = False) -> bytes:
    """Write ``buf`` as a 32-bit type 2 TGA."""
    hdr = struct.pack(
        "<BBBHHBHHHHBB",
        0,
        0,
        TYPE_TRUECOLOR,
        0,
        0,
        0,
        0,
        0,
        buf.width,
        buf.height,
        32,
        8 | (DESCRIPTOR_TOP_DOWN if top_down else 0),
    )
    px = buf.pixels[..., [2, 1, 0, 3]]
    if not top_down:
        px = px[::-1]
    return hdr + np.ascontiguousarray(px).tobytes()
