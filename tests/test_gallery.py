from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from rasterkit import formats
from rasterkit.codecs import encode_png
from rasterkit.errors import ItemBusy
from rasterkit.gallery import Gallery, import_image, import_images, import_paths
from rasterkit.raster import RasterBuffer
from rasterkit.tga import encode_tga


class ImportTests(unittest.TestCase):
    def test_png_import(self) -> None:
        data = encode_png(RasterBuffer.blank(5, 4, (1, 2, 3, 255)))
        item = import_image("dir/pic.png", data)
        self.assertEqual(item.name, "pic.png")
        self.assertEqual(item.current_format, formats.PNG)
        self.assertEqual((item.original_width, item.original_height), (5, 4))
        self.assertEqual(item.preview, data)
        self.assertEqual(len(item.id), 9)

    def test_tga_import_keeps_label_with_png_preview(self) -> None:
        item = import_image("shot.tga", encode_tga(RasterBuffer.blank(3, 2, (9, 8, 7, 255))))
        self.assertEqual(item.current_format, formats.TGA)
        self.assertEqual(item.preview_format, formats.PNG)
        self.assertTrue(item.preview.startswith(b"\x89PNG"))

    def test_bad_files_are_skipped(self) -> None:
        good = encode_png(RasterBuffer.blank(2, 2))
        with self.assertLogs("rasterkit.gallery", level="WARNING"):
            items = import_images([("a.png", good), ("b.png", b"nope"), ("c.tga", b"\x00" * 4)])
        self.assertEqual([i.name for i in items], ["a.png"])

    def test_import_paths(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "x.png"
            path.write_bytes(encode_png(RasterBuffer.blank(2, 2)))
            with self.assertLogs("rasterkit.gallery", level="WARNING"):
                items = import_paths([path, Path(tmp) / "missing.png"])
        self.assertEqual(len(items), 1)


class GalleryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.item = import_image("a.png", encode_png(RasterBuffer.blank(2, 2)))
        self.gallery = Gallery([self.item])

    def test_claim_is_exclusive(self) -> None:
        with self.gallery.claim(self.item.id):
            self.assertTrue(self.gallery.is_in_flight(self.item.id))
            with self.assertRaises(ItemBusy):
                with self.gallery.claim(self.item.id):
                    pass
        self.assertFalse(self.gallery.is_in_flight(self.item.id))

    def test_claim_released_on_error(self) -> None:
        with self.assertRaises(RuntimeError):
            with self.gallery.claim(self.item.id):
                raise RuntimeError("boom")
        self.assertFalse(self.gallery.is_in_flight(self.item.id))

    def test_add_replace_remove(self) -> None:
        with self.assertRaises(ValueError):
            self.gallery.add(self.item)
        self.gallery.replace(self.item.failed("x"))
        self.assertEqual(self.gallery.get(self.item.id).error, "x")
        self.gallery.remove(self.item.id)
        self.assertEqual(len(self.gallery), 0)
        with self.assertRaises(KeyError):
            self.gallery.replace(self.item)
        with self.assertRaises(KeyError):
            with self.gallery.claim(self.item.id):
                pass


if __name__ == "__main__":
    unittest.main()
