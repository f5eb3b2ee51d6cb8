from __future__ import annotations

import unittest

import numpy as np

from rasterkit.errors import InvalidDimensions
from rasterkit.geometry import (
    center_crop_rect,
    clamp_crop_rect,
    crop,
    crop_center,
    fit_size,
    flip,
    resize,
    rotate,
    rotate90,
    rotated_canvas_size,
)
from rasterkit.raster import RasterBuffer


def _numbered(w: int, h: int) -> RasterBuffer:
    """Each pixel carries its own index in the red channel."""
    arr = np.zeros((h, w, 4), dtype=np.uint8)
    arr[..., 0] = (np.arange(w * h) % 256).reshape(h, w)
    arr[..., 3] = 255
    return RasterBuffer(arr)


class RotateTests(unittest.TestCase):
    def test_canvas_size(self) -> None:
        self.assertEqual(rotated_canvas_size(100, 50, 90), (50, 100))
        self.assertEqual(rotated_canvas_size(100, 50, 180), (100, 50))
        self.assertEqual(rotated_canvas_size(100, 100, 45), (141, 141))

    def test_quarter_turn_is_exact(self) -> None:
        src = _numbered(3, 2)
        out = rotate(src, 90)
        self.assertEqual(out.size, (2, 3))
        self.assertEqual(out.pixel(1, 0), src.pixel(0, 0))
        self.assertEqual(out.pixel(0, 0), src.pixel(0, 1))

    def test_full_turn_and_half_turn(self) -> None:
        src = _numbered(3, 2)
        self.assertTrue(rotate(src, 360).same_pixels(src))
        self.assertTrue(rotate(rotate(src, 180), 180).same_pixels(src))
        self.assertTrue(rotate(src, -90).same_pixels(rotate90(src, "left")))

    def test_rotate90_directions(self) -> None:
        src = _numbered(3, 2)
        right = rotate90(src, "right")
        left = rotate90(src, "left")
        self.assertEqual(right.pixel(1, 0), src.pixel(0, 0))
        self.assertEqual(left.pixel(0, 2), src.pixel(0, 0))
        self.assertTrue(rotate90(right, "left").same_pixels(src))
        with self.assertRaises(ValueError):
            rotate90(src, "up")

    def test_arbitrary_angle_grows_canvas_with_transparent_corners(self) -> None:
        src = RasterBuffer.blank(100, 100, (255, 0, 0, 255))
        out = rotate(src, 45)
        self.assertEqual(out.size, (141, 141))
        for x, y in ((0, 0), (140, 0), (0, 140), (140, 140)):
            self.assertEqual(out.pixel(x, y)[3], 0)
        r, g, b, a = out.pixel(70, 70)
        self.assertGreater(a, 250)
        self.assertGreater(r, 250)
        self.assertLess(g, 5)


class FlipTests(unittest.TestCase):
    def test_flip_axes(self) -> None:
        src = _numbered(3, 2)
        self.assertEqual(flip(src, "horizontal").pixel(0, 0), src.pixel(2, 0))
        self.assertEqual(flip(src, "vertical").pixel(0, 0), src.pixel(0, 1))
        self.assertTrue(flip(flip(src, "horizontal"), "horizontal").same_pixels(src))

    def test_unknown_axis(self) -> None:
        with self.assertRaises(ValueError):
            flip(_numbered(2, 2), "diagonal")


class CropTests(unittest.TestCase):
    def test_clamped_to_image_and_min_size(self) -> None:
        self.assertEqual(clamp_crop_rect(100, 80, 90, 70, 5, 5), (80, 60, 20, 20))
        self.assertEqual(clamp_crop_rect(100, 80, -10, -10, 500, 500), (0, 0, 100, 80))

    def test_min_size_is_capped_by_small_images(self) -> None:
        self.assertEqual(clamp_crop_rect(10, 12, 0, 0, 1, 1), (0, 0, 10, 12))

    def test_crop_pixels(self) -> None:
        src = _numbered(30, 30)
        out = crop(src, 5, 6, 20, 20)
        self.assertEqual(out.size, (20, 20))
        self.assertEqual(out.pixel(0, 0), src.pixel(5, 6))

    def test_center_crop_rect(self) -> None:
        self.assertEqual(center_crop_rect(100, 100, 16 / 9), (0, 22, 100, 56))
        self.assertEqual(center_crop_rect(200, 100, 1.0), (50, 0, 100, 100))
        with self.assertRaises(ValueError):
            center_crop_rect(100, 100, 0)

    def test_crop_center(self) -> None:
        out = crop_center(RasterBuffer.blank(100, 100, (1, 2, 3, 255)), 16 / 9)
        self.assertEqual(out.size, (100, 56))


class ResizeTests(unittest.TestCase):
    def test_resize(self) -> None:
        out = resize(RasterBuffer.blank(4, 2, (0, 0, 255, 255)), 8, 4)
        self.assertEqual(out.size, (8, 4))
        self.assertEqual(out.pixel(3, 2), (0, 0, 255, 255))

    def test_invalid_target(self) -> None:
        with self.assertRaises(InvalidDimensions):
            resize(RasterBuffer.blank(4, 2), 0, 4)

    def test_fit_size(self) -> None:
        self.assertEqual(fit_size(40, 20, 10, 10), (10, 5))
        self.assertEqual(fit_size(20, 40, 100, 100), (50, 100))
        with self.assertRaises(InvalidDimensions):
            fit_size(4, 2, 0, 10)


if __name__ == "__main__":
    unittest.main()
