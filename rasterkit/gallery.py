from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from rasterkit import formats
from rasterkit.codecs import decode_image, encode_png
from rasterkit.errors import ItemBusy, RasterError
from rasterkit.tga import decode_tga

LOGGER = logging.getLogger(__name__)

IDLE = "idle"
PROCESSING = "processing"
DONE = "done"
ERROR = "error"


def new_item_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True)
class GalleryItem:
    id: str
    name: str
    # Decodable bytes for the imported file (TGA files are stored as PNG).
    preview: bytes
    original_width: int
    original_height: int
    current_width: int
    current_height: int
    current_format: str
    preview_format: str = formats.PNG
    status: str = IDLE
    processed: Optional[bytes] = None
    processed_format: Optional[str] = None
    error: Optional[str] = None

    @property
    def current_bytes(self) -> bytes:
        return self.processed if self.processed is not None else self.preview

    @property
    def current_bytes_format(self) -> str:
        if self.processed is not None and self.processed_format:
            return self.processed_format
        return self.preview_format

    def processing(self) -> "GalleryItem":
        return replace(self, status=PROCESSING, error=None)

    def done(self, data: bytes, data_format: str, width: int, height: int, fmt: str) -> "GalleryItem":
        return replace(
            self,
            status=DONE,
            processed=data,
            processed_format=data_format,
            current_width=int(width),
            current_height=int(height),
            current_format=fmt,
            error=None,
        )

    def failed(self, message: str) -> "GalleryItem":
        return replace(self, status=ERROR, error=message)


def import_image(name: str, data: bytes) -> GalleryItem:
    """Build an idle gallery item from a file name and its bytes."""
    mime = formats.mime_from_name(name, default="")
    if mime == formats.TGA:
        buf = decode_tga(data)
        preview = encode_png(buf)
        preview_format = formats.PNG
    elif not mime:
        # Pillow can read it but the format table has no entry; keep a PNG
        # copy so the stored bytes match their label.
        buf = decode_image(data)
        preview = encode_png(buf)
        mime = preview_format = formats.PNG
    else:
        buf = decode_image(data, mime)
        preview = data
        preview_format = mime
    return GalleryItem(
        id=new_item_id(),
        name=Path(name).name,
        preview=preview,
        original_width=buf.width,
        original_height=buf.height,
        current_width=buf.width,
        current_height=buf.height,
        current_format=mime,
        preview_format=preview_format,
    )


def import_images(files: Iterable[Tuple[str, bytes]]) -> List[GalleryItem]:
    items: List[GalleryItem] = []
    for name, data in files:
        try:
            items.append(import_image(name, data))
        except RasterError as exc:
            LOGGER.warning("Failed to load image %s: %s", name, exc)
    return items


def import_paths(paths: Iterable[str | Path]) -> List[GalleryItem]:
    files: List[Tuple[str, bytes]] = []
    for p in paths:
        path = Path(p)
        try:
            files.append((path.name, path.read_bytes()))
        except OSError as exc:
            LOGGER.warning("Failed to read %s: %s", path, exc)
    return import_images(files)


class Gallery:
    """
    Ordered collection of gallery items.

    Items are replaced whole, never edited in place. ``claim`` hands out the
    single in-flight slot an item has; a second claim on the same item
    raises ItemBusy until the first one is released.
    """

    def __init__(self, items: Optional[Iterable[GalleryItem]] = None) -> None:
        self._items: Dict[str, GalleryItem] = {}
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()
        for item in items or ():
            self.add(item)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[GalleryItem]:
        return iter(self.items())

    def items(self) -> List[GalleryItem]:
        with self._lock:
            return list(self._items.values())

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._items.keys())

    def get(self, item_id: str) -> GalleryItem:
        with self._lock:
            return self._items[item_id]

    def add(self, item: GalleryItem) -> None:
        with self._lock:
            if item.id in self._items:
                raise ValueError(f"duplicate gallery item id {item.id}")
            self._items[item.id] = item

    def remove(self, item_id: str) -> None:
        with self._lock:
            self._items.pop(item_id, None)

    def replace(self, item: GalleryItem) -> None:
        with self._lock:
            if item.id not in self._items:
                raise KeyError(item.id)
            self._items[item.id] = item

    def is_in_flight(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._in_flight

    @contextmanager
    def claim(self, item_id: str) -> Iterator[GalleryItem]:
        with self._lock:
            if item_id not in self._items:
                raise KeyError(item_id)
            if item_id in self._in_flight:
                raise ItemBusy(item_id)
            self._in_flight.add(item_id)
            item = self._items[item_id]
        try:
            yield item
        finally:
            with self._lock:
                self._in_flight.discard(item_id)
