from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from rasterkit import formats
from rasterkit.codecs import decode_image, encode_raster
from rasterkit.collage import build_collage
from rasterkit.export import download_name
from rasterkit.geometry import crop, rotate90
from rasterkit.history import EditHistory
from rasterkit.operations import Convert, Operation, apply_operation
from rasterkit.raster import RasterBuffer
from rasterkit.settings import EngineSettings

LOGGER = logging.getLogger(__name__)


class EditorSession:
    """
    Single-image editing: every applied edit becomes a history snapshot.

    Errors are not caught here; a failed decode or edit reaches the caller
    and the history is left as it was.
    """

    def __init__(self, name: str, image: RasterBuffer, settings: Optional[EngineSettings] = None) -> None:
        self.settings = settings or EngineSettings()
        self.name = name
        self.history: EditHistory[RasterBuffer] = EditHistory(limit=self.settings.history_limit)
        self.history.load(image)
        self.export_format = formats.PNG
        self.export_quality = self.settings.default_quality

    @classmethod
    def open(cls, name: str, data: bytes, settings: Optional[EngineSettings] = None) -> "EditorSession":
        image = decode_image(data, formats.mime_from_name(name))
        return cls(name, image, settings)

    @classmethod
    def open_collage(
        cls,
        images: Sequence[RasterBuffer],
        layout: str = "grid",
        cols: int = 2,
        rows: int = 2,
        settings: Optional[EngineSettings] = None,
    ) -> "EditorSession":
        s = settings or EngineSettings()
        image = build_collage(
            images,
            layout=layout,
            cols=cols,
            rows=rows,
            thumb_size=(s.collage_thumb_width, s.collage_thumb_height),
            gap=s.collage_gap,
        )
        return cls("collage.png", image, s)

    @property
    def current(self) -> RasterBuffer:
        img = self.history.current
        assert img is not None
        return img

    @property
    def size(self) -> Tuple[int, int]:
        return self.current.size

    def commit(self, image: RasterBuffer) -> RasterBuffer:
        self.history.commit(image)
        return image

    def apply(self, op: Operation) -> RasterBuffer:
        if isinstance(op, Convert):
            self.export_format = op.format
            self.export_quality = op.quality
            return self.current
        out = apply_operation(self.current, op, crop_min_size=self.settings.crop_min_size)
        return self.commit(out)

    def rotate90(self, direction: str) -> RasterBuffer:
        return self.commit(rotate90(self.current, direction))

    def crop(self, x: float, y: float, width: float, height: float) -> RasterBuffer:
        return self.commit(crop(self.current, x, y, width, height, min_size=self.settings.crop_min_size))

    def undo(self) -> RasterBuffer:
        self.history.undo()
        return self.current

    def download(self, fmt: Optional[str] = None, quality: Optional[float] = None) -> Tuple[str, bytes]:
        target = fmt or self.export_format
        q = self.export_quality if quality is None else quality
        encoded = encode_raster(self.current, target, q)
        if encoded.format != target:
            LOGGER.warning("Saved %s as %s", self.name, encoded.format)
        return download_name(self.name, encoded.format), encoded.data
