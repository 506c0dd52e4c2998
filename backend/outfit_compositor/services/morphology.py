from __future__ import annotations

import cv2
import numpy as np
from PIL import Image


def disk_kernel(radius: int) -> np.ndarray:
    """Exact circular structuring element, dx^2 + dy^2 <= r^2.

    cv2.MORPH_ELLIPSE rasterizes a slightly different shape at some radii, so
    the disk is built directly.
    """
    yy, xx = np.mgrid[-radius : radius + 1, -radius : radius + 1]
    return ((xx * xx + yy * yy) <= radius * radius).astype(np.uint8)


# cv2's default constant border is -inf for dilate and +inf for erode, so
# samples outside the image never win.
def dilate_disk(alpha: np.ndarray, radius: int) -> np.ndarray:
    if radius <= 0:
        return alpha.copy()
    return cv2.dilate(alpha, disk_kernel(radius))


def erode_disk(alpha: np.ndarray, radius: int) -> np.ndarray:
    if radius <= 0:
        return alpha.copy()
    return cv2.erode(alpha, disk_kernel(radius))


def close_alpha(alpha: np.ndarray, radius: int) -> np.ndarray:
    """Morphological closing: dilate then erode with the same disk."""
    if radius <= 0:
        return alpha.copy()
    return cv2.morphologyEx(alpha, cv2.MORPH_CLOSE, disk_kernel(radius))


def merge_silhouette(canvas: Image.Image, radius: int = 20) -> Image.Image:
    """Bridge small transparent gaps between garments into one silhouette.

    The 3D reconstruction step treats disconnected opaque islands as separate
    objects, so e.g. the waistline gap between a shirt and trousers is closed.
    RGB is left untouched; only alpha changes.
    """
    rgba = np.array(canvas.convert("RGBA") if canvas.mode != "RGBA" else canvas, dtype=np.uint8)
    rgba[..., 3] = close_alpha(np.ascontiguousarray(rgba[..., 3]), radius)
    return Image.fromarray(rgba)
