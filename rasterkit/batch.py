"""
Batch execution: one operation applied to many gallery items.

Items are handled strictly one after another. Each item is decoded from its
latest output (or its import preview), transformed, re-encoded and written
back to the gallery on its own; a failing item is marked as errored and the
loop moves on to the next one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from rasterkit import formats
from rasterkit.codecs import decode_image, encode_raster
from rasterkit.errors import BatchItemFailure, ItemBusy
from rasterkit.gallery import Gallery, GalleryItem
from rasterkit.geometry import DEFAULT_CROP_MIN_SIZE
from rasterkit.operations import Convert, Operation, apply_operation

LOGGER = logging.getLogger(__name__)


@dataclass
class BatchReport:
    operation: str
    done: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def process_item(
    item: GalleryItem,
    op: Operation,
    crop_min_size: int = DEFAULT_CROP_MIN_SIZE,
) -> GalleryItem:
    """Run ``op`` on one item and return the item in its ``done`` state."""
    src = decode_image(item.current_bytes, item.current_bytes_format)
    out = apply_operation(src, op, crop_min_size=crop_min_size)

    if isinstance(op, Convert):
        encoded = encode_raster(out, op.format, op.quality)
        fmt = encoded.format
    else:
        # Intermediate results are stored as PNG; the item keeps the format
        # it will be exported as.
        encoded = encode_raster(out, formats.PNG)
        fmt = item.current_format
    return item.done(encoded.data, encoded.format, out.width, out.height, fmt)


class BatchEngine:
    def __init__(self, gallery: Gallery, crop_min_size: int = DEFAULT_CROP_MIN_SIZE) -> None:
        self.gallery = gallery
        self.crop_min_size = crop_min_size

    def run(self, op: Operation, item_ids: Optional[Iterable[str]] = None) -> BatchReport:
        """
        Apply ``op`` to each selected item (all items when ``item_ids`` is
        None), in gallery order. Never raises for a single item's failure.
        """
        selected = set(item_ids) if item_ids is not None else None
        targets = [i for i in self.gallery.ids() if selected is None or i in selected]
        report = BatchReport(operation=getattr(op, "kind", type(op).__name__))

        for item_id in targets:
            try:
                with self.gallery.claim(item_id) as item:
                    self._run_one(item, op, report)
            except ItemBusy:
                LOGGER.warning("Skipping %s: an operation is already running on it", item_id)
                report.skipped.append(item_id)
            except KeyError:
                # Removed from the gallery while the batch was running.
                report.skipped.append(item_id)

        LOGGER.info(
            "Batch %s complete: %d done, %d failed, %d skipped",
            report.operation,
            len(report.done),
            len(report.failed),
            len(report.skipped),
        )
        return report

    def _run_one(self, item: GalleryItem, op: Operation, report: BatchReport) -> None:
        self.gallery.replace(item.processing())
        try:
            result = process_item(item, op, crop_min_size=self.crop_min_size)
        except Exception as exc:
            failure = BatchItemFailure(item.id, str(exc) or type(exc).__name__)
            LOGGER.exception("Batch %s failed for %s (%s)", report.operation, item.id, item.name)
            self.gallery.replace(item.failed(failure.message))
            report.failed.append(item.id)
            return
        self.gallery.replace(result)
        report.done.append(item.id)
