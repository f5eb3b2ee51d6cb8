"""
RasterKit: raster transformation, codec and batch engine for an image editor.

Modules
-------
raster       RasterBuffer, the RGBA8 image passed between all operations
tga / codecs file decoders and encoders (TGA in; BMP, ICO, SVG, Pillow formats out)
adjustments  grayscale and hue/saturation/brightness
cutout       chroma-key cutout and black-background unmultiply
geometry     rotation, flips, crops and resizing
operations   edit operations as values, and their dispatcher
gallery      gallery items and import
batch        applies one operation to many gallery items
history      undo timeline for the single-image editor
editor       single-image editing session
collage      multi-image layouts
export       export and download naming
"""
from __future__ import annotations

import logging

from rasterkit.batch import BatchEngine, BatchReport
from rasterkit.codecs import EncodedImage, decode_image, encode_raster
from rasterkit.editor import EditorSession
from rasterkit.errors import (
    BatchItemFailure,
    ColorParseFailure,
    DecodeFailure,
    InvalidDimensions,
    ItemBusy,
    RasterError,
    UnsupportedFormat,
)
from rasterkit.gallery import Gallery, GalleryItem, import_image
from rasterkit.history import EditHistory
from rasterkit.operations import (
    ColorAdjust,
    Convert,
    CropCenter,
    CutoutColor,
    Flip,
    Grayscale,
    Operation,
    RemoveBlackBackground,
    Resize,
    Rotate,
    apply_operation,
)
from rasterkit.raster import RasterBuffer

__version__ = "0.3.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BatchEngine",
    "BatchItemFailure",
    "BatchReport",
    "ColorAdjust",
    "ColorParseFailure",
    "Convert",
    "CropCenter",
    "CutoutColor",
    "DecodeFailure",
    "EditHistory",
    "EditorSession",
    "EncodedImage",
    "Flip",
    "Gallery",
    "GalleryItem",
    "Grayscale",
    "InvalidDimensions",
    "ItemBusy",
    "Operation",
    "RasterBuffer",
    "RasterError",
    "RemoveBlackBackground",
    "Resize",
    "Rotate",
    "UnsupportedFormat",
    "apply_operation",
    "decode_image",
    "encode_raster",
    "import_image",
]
