from __future__ import annotations

import io
import struct
import unittest

import numpy as np
from PIL import Image

from rasterkit import formats
from rasterkit.codecs import decode_image, encode_bmp, encode_ico, encode_raster, encode_svg
from rasterkit.errors import DecodeFailure, UnsupportedFormat
from rasterkit.raster import RasterBuffer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _gradient(w: int, h: int) -> RasterBuffer:
    arr = np.zeros((h, w, 4), dtype=np.uint8)
    arr[..., 0] = (np.arange(w)[None, :] * 20) % 256
    arr[..., 1] = (np.arange(h)[:, None] * 30) % 256
    arr[..., 2] = 90
    arr[..., 3] = 200
    return RasterBuffer(arr)


class BmpEncoderTests(unittest.TestCase):
    def test_red_2x2_layout(self) -> None:
        data = encode_bmp(RasterBuffer.blank(2, 2, (255, 0, 0, 255)))

        self.assertEqual(len(data), 70)
        self.assertEqual(data[0:2], b"\x42\x4d")
        self.assertEqual(struct.unpack_from("<I", data, 2)[0], 70)
        self.assertEqual(struct.unpack_from("<I", data, 10)[0], 54)
        self.assertEqual(struct.unpack_from("<I", data, 14)[0], 40)
        self.assertEqual(struct.unpack_from("<ii", data, 18), (2, -2))
        self.assertEqual(struct.unpack_from("<HHII", data, 26), (1, 32, 0, 16))
        self.assertEqual(data[54:58], bytes((0, 0, 255, 255)))

    def test_decode_keeps_alpha(self) -> None:
        buf = _gradient(4, 3)
        back = decode_image(encode_bmp(buf))
        self.assertTrue(back.same_pixels(buf))


class IcoEncoderTests(unittest.TestCase):
    def test_header_and_entry(self) -> None:
        data = encode_ico(_gradient(16, 8))

        self.assertEqual(struct.unpack_from("<HHH", data, 0), (0, 1, 1))
        w, h, colors, reserved, planes, bpp, size, offset = struct.unpack_from("<BBBBHHII", data, 6)
        self.assertEqual((w, h, colors, reserved, planes, bpp), (16, 8, 0, 0, 1, 32))
        self.assertEqual(size, len(data) - 22)
        self.assertEqual(offset, 22)
        self.assertEqual(data[22:30], PNG_SIGNATURE)

    def test_large_sizes_are_written_as_zero(self) -> None:
        data = encode_ico(RasterBuffer.blank(300, 10, (0, 0, 0, 255)))
        self.assertEqual(data[6], 0)
        self.assertEqual(data[7], 10)


class SvgWrapperTests(unittest.TestCase):
    def test_wraps_png_and_decodes_back(self) -> None:
        buf = _gradient(3, 5)
        data = encode_svg(buf)

        self.assertTrue(data.startswith(b"<svg"))
        self.assertIn(b'width="3" height="5"', data)
        self.assertIn(b"data:image/png;base64,", data)
        self.assertTrue(decode_image(data).same_pixels(buf))

    def test_vector_svg_is_not_decoded(self) -> None:
        svg = b'<svg xmlns="http://www.w3.org/2000/svg"><rect width="4" height="4"/></svg>'
        with self.assertRaises(UnsupportedFormat):
            decode_image(svg)


class EncodeRasterTests(unittest.TestCase):
    def test_png_is_lossless(self) -> None:
        buf = _gradient(6, 4)
        encoded = encode_raster(buf, formats.PNG)
        self.assertEqual(encoded.format, formats.PNG)
        self.assertTrue(encoded.data.startswith(PNG_SIGNATURE))
        self.assertTrue(decode_image(encoded.data).same_pixels(buf))

    def test_jpeg_is_flattened_on_black(self) -> None:
        buf = RasterBuffer.blank(8, 8, (255, 255, 255, 0))
        encoded = encode_raster(buf, formats.JPEG, 0.9)

        self.assertEqual(encoded.format, formats.JPEG)
        self.assertTrue(encoded.data.startswith(b"\xff\xd8"))
        with Image.open(io.BytesIO(encoded.data)) as img:
            self.assertEqual(img.mode, "RGB")
            r, g, b = img.getpixel((4, 4))
        self.assertLess(max(r, g, b), 5)

    def test_tiff_and_webp(self) -> None:
        buf = _gradient(5, 5)
        for fmt, pil_name in ((formats.TIFF, "TIFF"), (formats.WEBP, "WEBP")):
            encoded = encode_raster(buf, fmt, 0.8)
            with Image.open(io.BytesIO(encoded.data)) as img:
                self.assertEqual(img.format, pil_name)
                self.assertEqual(img.size, (5, 5))

    def test_dedicated_containers(self) -> None:
        buf = _gradient(2, 2)
        self.assertEqual(encode_raster(buf, formats.BMP).data[:2], b"BM")
        self.assertEqual(encode_raster(buf, formats.ICO).data[:4], b"\x00\x00\x01\x00")
        self.assertTrue(encode_raster(buf, formats.SVG).data.startswith(b"<svg"))

    def test_tga_and_unknown_targets_are_rejected(self) -> None:
        buf = _gradient(2, 2)
        with self.assertRaises(UnsupportedFormat):
            encode_raster(buf, formats.TGA)
        with self.assertRaises(UnsupportedFormat):
            encode_raster(buf, "image/x-unknown")


class DecodeImageTests(unittest.TestCase):
    def test_garbage_is_a_decode_failure(self) -> None:
        with self.assertRaises(DecodeFailure):
            decode_image(b"definitely not an image")

    def test_empty_input(self) -> None:
        with self.assertRaises(DecodeFailure):
            decode_image(b"")

    def test_bottom_up_bmp_with_zero_alpha_byte_is_opaque(self) -> None:
        data = bytearray(encode_bmp(RasterBuffer.blank(2, 1, (10, 20, 30, 255))))
        struct.pack_into("<i", data, 22, 1)
        data[57] = 0
        data[61] = 0
        self.assertEqual(decode_image(bytes(data)).pixel(1, 0), (10, 20, 30, 255))

    def test_transparent_bmp_keeps_zero_alpha(self) -> None:
        data = encode_bmp(RasterBuffer.blank(3, 2, (0, 0, 0, 0)))
        out = decode_image(data)
        self.assertFalse(np.any(out.pixels[..., 3]))


if __name__ == "__main__":
    unittest.main()
