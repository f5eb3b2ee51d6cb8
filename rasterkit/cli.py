from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rasterkit import formats
from rasterkit.batch import BatchEngine
from rasterkit.codecs import decode_image, encode_raster
from rasterkit.collage import LAYOUTS, build_collage
from rasterkit.errors import RasterError
from rasterkit.export import batch_export, write_export
from rasterkit.gallery import Gallery, import_paths
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
)
from rasterkit.settings import EngineSettings, load_settings

LOGGER_NAME = "rasterkit"
LOGGER = logging.getLogger(__name__)

_FORMAT_CHOICES = {info.ext: mime for mime, info in formats.FORMATS.items() if info.encodable}
_FORMAT_CHOICES["jpeg"] = formats.JPEG


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stderr handler to the package logger. Safe to call twice."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def _ratio(value: str) -> float:
    """Accept ``16:9``, ``16/9`` or a plain number."""
    for sep in (":", "/"):
        if sep in value:
            w, h = value.split(sep, 1)
            try:
                return float(w) / float(h)
            except (ValueError, ZeroDivisionError) as exc:
                raise argparse.ArgumentTypeError(f"invalid ratio {value!r}") from exc
    try:
        return float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ratio {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("inputs", nargs="+", type=Path, help="Image files to process")
    common.add_argument("-o", "--out", type=Path, default=Path("edited"), help="Output directory")
    common.add_argument("--config", type=Path, help="JSON settings file")
    common.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")

    parser = argparse.ArgumentParser(
        prog="rasterkit",
        description="Batch image edits, format conversion and collages.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("rotate", parents=[common], help="Rotate clockwise by an angle in degrees")
    p.add_argument("--angle", type=float, required=True)

    p = sub.add_parser("flip", parents=[common], help="Mirror the images")
    p.add_argument("--axis", choices=("horizontal", "vertical"), default="horizontal")

    p = sub.add_parser("resize", parents=[common], help="Resize to an exact size or to fit a box")
    p.add_argument("--width", type=int, required=True)
    p.add_argument("--height", type=int, required=True)
    p.add_argument("--keep-aspect", action="store_true", help="Fit inside width x height keeping the aspect ratio")

    p = sub.add_parser("crop", parents=[common], help="Center crop to an aspect ratio")
    p.add_argument("--ratio", type=_ratio, required=True, help="e.g. 1:1, 16:9 or 1.5")

    p = sub.add_parser("grayscale", parents=[common], help="Convert to grayscale")
    p.add_argument("--algorithm", choices=("max", "average", "weighted"), default="weighted")

    p = sub.add_parser("convert", parents=[common], help="Re-encode to another format")
    p.add_argument("--format", choices=sorted(_FORMAT_CHOICES), required=True)
    p.add_argument("--quality", type=float, default=None, help="0..1, lossy formats only")

    p = sub.add_parser("color-adjust", parents=[common], help="Hue, saturation and brightness")
    p.add_argument("--hue", type=float, default=0.0, help="Degrees")
    p.add_argument("--saturation", type=float, default=100.0, help="Percent")
    p.add_argument("--brightness", type=float, default=100.0, help="Percent")

    p = sub.add_parser("cutout", parents=[common], help="Make a color transparent")
    p.add_argument("--color", default="#ffffff")
    p.add_argument("--tolerance", type=float, default=30.0)
    p.add_argument("--softness", type=float, default=0.0)

    sub.add_parser("remove-black", parents=[common], help="Turn a black background into transparency")

    p = sub.add_parser("collage", parents=[common], help="Combine the images into one collage")
    p.add_argument("--layout", choices=LAYOUTS, default="grid")
    p.add_argument("--cols", type=int, default=2)
    p.add_argument("--rows", type=int, default=2)
    p.add_argument("--name", default="collage.png", help="Output file name")
    return parser


def operation_from_args(args: argparse.Namespace, settings: EngineSettings) -> Operation:
    cmd = args.command
    if cmd == "rotate":
        return Rotate(args.angle)
    if cmd == "flip":
        return Flip(args.axis)
    if cmd == "resize":
        return Resize(args.width, args.height, maintain_aspect=args.keep_aspect)
    if cmd == "crop":
        return CropCenter(args.ratio)
    if cmd == "grayscale":
        return Grayscale(args.algorithm)
    if cmd == "convert":
        quality = settings.default_quality if args.quality is None else args.quality
        return Convert(_FORMAT_CHOICES[args.format], quality)
    if cmd == "color-adjust":
        return ColorAdjust(args.hue, args.saturation, args.brightness)
    if cmd == "cutout":
        return CutoutColor(args.color, args.tolerance, args.softness)
    if cmd == "remove-black":
        return RemoveBlackBackground()
    raise ValueError(f"Unknown command: {cmd}")


def run_collage(args: argparse.Namespace, settings: EngineSettings) -> int:
    images = []
    for path in args.inputs:
        try:
            images.append(decode_image(path.read_bytes(), formats.mime_from_name(path.name)))
        except (OSError, RasterError) as exc:
            LOGGER.warning("Failed to load image %s: %s", path, exc)
    if not images:
        LOGGER.error("No images could be loaded")
        return 1

    collage = build_collage(
        images,
        layout=args.layout,
        cols=args.cols,
        rows=args.rows,
        thumb_size=(settings.collage_thumb_width, settings.collage_thumb_height),
        gap=settings.collage_gap,
    )
    fmt = formats.mime_from_name(args.name)
    encoded = encode_raster(collage, fmt, settings.default_quality)
    name = f"{formats.strip_extension(args.name)}.{formats.extension_for(encoded.format)}"
    write_export({name: encoded.data}, args.out)
    LOGGER.info("Wrote %s (%dx%d)", Path(args.out) / name, collage.width, collage.height)
    return 0


def run_batch(args: argparse.Namespace, settings: EngineSettings) -> int:
    op = operation_from_args(args, settings)
    gallery = Gallery(import_paths(args.inputs))
    if not len(gallery):
        LOGGER.error("No images could be loaded")
        return 1

    report = BatchEngine(gallery, crop_min_size=settings.crop_min_size).run(op)
    done = [gallery.get(i) for i in report.done]
    for item_id in report.failed:
        item = gallery.get(item_id)
        LOGGER.error("%s: %s", item.name, item.error)

    mapping = batch_export(done, suffix=settings.export_suffix, quality=settings.default_quality)
    count = write_export(mapping, args.out)
    LOGGER.info("Wrote %d file(s) to %s", count, args.out)
    return 0 if report.ok else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config) if args.config else EngineSettings()
    except (OSError, ValueError) as exc:
        print(f"rasterkit: cannot read settings: {exc}", file=sys.stderr)
        return 2
    configure_logging(args.log_level or settings.log_level)

    try:
        if args.command == "collage":
            return run_collage(args, settings)
        return run_batch(args, settings)
    except (ValueError, RasterError) as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
