import unittest

import numpy as np
from PIL import Image, ImageDraw

from outfit_compositor.services.crop import content_bbox, crop_to_content


class TestContentBbox(unittest.TestCase):
    def test_bbox_of_nonzero_alpha(self):
        img = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        ImageDraw.Draw(img).rectangle([4, 3, 5, 7], fill=(1, 2, 3, 1))
        self.assertEqual(content_bbox(img), (4, 3, 6, 8))

    def test_empty_is_none(self):
        self.assertIsNone(content_bbox(Image.new("RGBA", (5, 5), (255, 255, 255, 0))))


class TestCropToContent(unittest.TestCase):
    def test_small_content_scaled_and_centered(self):
        img = Image.new("RGBA", (100, 100), (0, 0, 0, 0))
        ImageDraw.Draw(img).rectangle([10, 20, 19, 39], fill=(50, 60, 70, 255))  # 10x20

        res = crop_to_content(img, (100, 100))
        self.assertEqual(res.bbox, (10, 20, 20, 40))
        self.assertAlmostEqual(res.scale, 5.0)
        self.assertEqual(res.image.size, (100, 100))
        # 50x100 content centered horizontally
        self.assertEqual(content_bbox(res.image), (25, 0, 75, 100))
        self.assertEqual(res.image.getpixel((50, 50)), (50, 60, 70, 255))

    def test_canvas_filling_image_is_unchanged(self):
        rng = np.random.default_rng(3)
        arr = rng.integers(0, 256, size=(32, 32, 4), dtype=np.uint8)
        arr[..., 3] = 255
        img = Image.fromarray(arr)

        res = crop_to_content(img, (32, 32))
        self.assertEqual(res.bbox, (0, 0, 32, 32))
        self.assertEqual(res.scale, 1.0)
        self.assertTrue(np.array_equal(np.asarray(res.image), arr))

    def test_no_content_returns_input(self):
        img = Image.new("RGBA", (16, 16), (0, 0, 0, 0))
        res = crop_to_content(img, (16, 16))
        self.assertFalse(res.has_content)
        self.assertIs(res.image, img)


if __name__ == "__main__":
    unittest.main()
