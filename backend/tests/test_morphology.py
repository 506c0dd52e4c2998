import unittest

import numpy as np
from PIL import Image, ImageDraw

from outfit_compositor.services.morphology import close_alpha, dilate_disk, disk_kernel, erode_disk, merge_silhouette


def _brute_force(alpha: np.ndarray, radius: int, reduce_fn) -> np.ndarray:
    h, w = alpha.shape
    out = np.zeros_like(alpha)
    for y in range(h):
        for x in range(w):
            vals = []
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < w and 0 <= ny < h and dx * dx + dy * dy <= radius * radius:
                        vals.append(alpha[ny, nx])
            out[y, x] = reduce_fn(vals)
    return out


class TestDiskFilters(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(1234)
        self.alpha = (rng.random((17, 23)) > 0.8).astype(np.uint8) * rng.integers(1, 256, size=(17, 23), dtype=np.uint8)

    def test_dilate_matches_brute_force_circular_kernel(self):
        for radius in (1, 2, 4):
            expected = _brute_force(self.alpha, radius, max)
            self.assertTrue(np.array_equal(dilate_disk(self.alpha, radius), expected), radius)

    def test_erode_matches_brute_force_circular_kernel(self):
        for radius in (1, 3):
            expected = _brute_force(self.alpha, radius, min)
            self.assertTrue(np.array_equal(erode_disk(self.alpha, radius), expected), radius)

    def test_disk_kernel_is_exact_circle(self):
        kernel = disk_kernel(2)
        self.assertEqual(kernel.shape, (5, 5))
        self.assertEqual(int(kernel.sum()), 13)
        self.assertEqual(kernel[0, 2], 1)
        self.assertEqual(kernel[0, 1], 0)

    def test_close_matches_brute_force_dilate_then_erode(self):
        for radius in (1, 3):
            dilated = _brute_force(self.alpha, radius, max)
            expected = _brute_force(dilated, radius, min)
            self.assertTrue(np.array_equal(close_alpha(self.alpha, radius), expected), radius)

    def test_zero_radius_is_identity(self):
        self.assertTrue(np.array_equal(dilate_disk(self.alpha, 0), self.alpha))
        self.assertTrue(np.array_equal(erode_disk(self.alpha, 0), self.alpha))


class TestClosing(unittest.TestCase):
    def _two_blocks(self, gap: int) -> np.ndarray:
        alpha = np.zeros((60, 40), dtype=np.uint8)
        alpha[5:25, 10:30] = 255
        alpha[25 + gap : 50, 10:30] = 255
        return alpha

    def test_bridges_gap_smaller_than_kernel(self):
        closed = close_alpha(self._two_blocks(gap=4), radius=4)
        # waistline gap filled in the middle columns
        self.assertTrue((closed[25:29, 15:25] == 255).all())

    def test_keeps_gap_wider_than_kernel(self):
        closed = close_alpha(self._two_blocks(gap=12), radius=3)
        self.assertTrue((closed[28:34, :] == 0).all())

    def test_does_not_grow_the_shape(self):
        alpha = self._two_blocks(gap=4)
        closed = close_alpha(alpha, radius=4)
        self.assertTrue((closed[:, :10] == 0).all())
        self.assertTrue((closed[:, 30:] == 0).all())

    def test_idempotent(self):
        rng = np.random.default_rng(99)
        alpha = (rng.random((40, 40)) > 0.6).astype(np.uint8) * 255
        once = close_alpha(alpha, radius=3)
        twice = close_alpha(once, radius=3)
        self.assertLessEqual(int(np.abs(once.astype(int) - twice.astype(int)).max()), 1)


class TestMergeSilhouette(unittest.TestCase):
    def test_rgb_unchanged_alpha_closed(self):
        canvas = Image.new("RGBA", (40, 60), (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)
        draw.rectangle([10, 5, 29, 24], fill=(200, 10, 10, 255))
        draw.rectangle([10, 28, 29, 49], fill=(10, 10, 200, 255))

        merged = merge_silhouette(canvas, radius=4)
        before = np.asarray(canvas)
        after = np.asarray(merged)

        self.assertIsNot(merged, canvas)
        self.assertTrue(np.array_equal(after[..., :3], before[..., :3]))
        self.assertEqual(after[26, 20, 3], 255)
        self.assertEqual(before[26, 20, 3], 0)


if __name__ == "__main__":
    unittest.main()
