import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from outfit_compositor.core.errors import ImageDecodeFailure, ImageNotFound, ItemLoadFailure
from outfit_compositor.services.image_loader import load_rgba, sample_factor


class TestSampleFactor(unittest.TestCase):
    def test_no_downsampling_within_bound(self):
        self.assertEqual(sample_factor(100, 80, 2048), 1)
        self.assertEqual(sample_factor(2048, 2048, 2048), 1)

    def test_rounds_down_to_power_of_two(self):
        self.assertEqual(sample_factor(4096, 100, 2048), 2)
        self.assertEqual(sample_factor(100, 5000, 1024), 4)
        # 7000 // 1024 == 6 -> 4
        self.assertEqual(sample_factor(7000, 10, 1024), 4)
        # 3000 // 2048 == 1
        self.assertEqual(sample_factor(3000, 10, 2048), 1)


class TestLoadRgba(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_png_is_reduced_by_power_of_two(self):
        path = self.tmp / "wide.png"
        Image.new("RGB", (4096, 64), (10, 20, 30)).save(path)

        img = load_rgba(path, 2048)
        self.assertEqual(img.mode, "RGBA")
        self.assertEqual(img.size, (2048, 32))
        self.assertEqual(img.getpixel((5, 5)), (10, 20, 30, 255))

    def test_jpeg_respects_bound(self):
        path = self.tmp / "wide.jpg"
        Image.new("RGB", (4096, 64), (200, 200, 200)).save(path, format="JPEG")

        img = load_rgba(path, 2048)
        self.assertEqual(img.mode, "RGBA")
        self.assertLessEqual(max(img.size), 2048)

    def test_bound_enforced_when_factor_rounds_to_one(self):
        path = self.tmp / "odd.png"
        Image.new("RGB", (300, 30), (0, 0, 0)).save(path)

        img = load_rgba(path, 200)
        self.assertEqual(img.size, (200, 20))

    def test_small_image_untouched(self):
        path = self.tmp / "small.png"
        Image.new("RGBA", (12, 7), (1, 2, 3, 4)).save(path)

        img = load_rgba(path, 2048)
        self.assertEqual(img.size, (12, 7))
        self.assertEqual(img.getpixel((0, 0)), (1, 2, 3, 4))

    def test_palette_png_is_reduced(self):
        path = self.tmp / "palette.png"
        indices = np.zeros((100, 4200), dtype=np.uint8)
        indices[:, 2100:] = 1
        pal = Image.fromarray(indices, "P")
        pal.putpalette([255, 0, 0, 0, 0, 255] + [0, 0, 0] * 254)
        pal.save(path)

        img = load_rgba(path, 2048)
        self.assertEqual(img.mode, "RGBA")
        self.assertEqual(img.size, (2100, 50))
        self.assertEqual(img.getpixel((10, 10)), (255, 0, 0, 255))
        self.assertEqual(img.getpixel((2000, 10)), (0, 0, 255, 255))

    def test_16bit_greyscale_is_reduced(self):
        path = self.tmp / "grey16.png"
        Image.new("I;16", (4200, 50), 0x8000).save(path)

        img = load_rgba(path, 2048)
        self.assertEqual(img.mode, "RGBA")
        self.assertLessEqual(max(img.size), 2048)
        r, g, b, a = img.getpixel((5, 5))
        self.assertEqual((r, g, b, a), (128, 128, 128, 255))

    def test_missing_path_raises_not_found(self):
        with self.assertRaises(ImageNotFound):
            load_rgba(self.tmp / "nope.png", 2048)

    def test_garbage_raises_decode_failure(self):
        path = self.tmp / "broken.png"
        path.write_bytes(b"definitely not an image")
        with self.assertRaises(ImageDecodeFailure) as ctx:
            load_rgba(path, 2048)
        self.assertIsInstance(ctx.exception, ItemLoadFailure)


if __name__ == "__main__":
    unittest.main()
