from __future__ import annotations


class RasterError(Exception):
    """Base class for every error raised by the raster engine."""


class UnsupportedFormat(RasterError):
    pass


class InvalidDimensions(RasterError):
    pass


class DecodeFailure(RasterError):
    pass


class ColorParseFailure(RasterError):
    pass


class ItemBusy(RasterError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"item {item_id} already has an operation in flight")
        self.item_id = item_id


class BatchItemFailure(RasterError):
    def __init__(self, item_id: str, message: str) -> None:
        super().__init__(f"{item_id}: {message}")
        self.item_id = item_id
        self.message = message
