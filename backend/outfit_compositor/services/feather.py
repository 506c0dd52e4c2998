from __future__ import annotations

import numpy as np
from PIL import Image


def _box_blur_1d(arr: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """Mean over [i - radius, i + radius] along ``axis``, in-bounds samples only."""
    n = arr.shape[axis]
    csum = np.cumsum(arr, axis=axis, dtype=np.int64)
    pad = [(0, 0)] * arr.ndim
    pad[axis] = (1, 0)
    csum = np.pad(csum, pad)

    idx = np.arange(n)
    lo = np.clip(idx - radius, 0, n)
    hi = np.clip(idx + radius + 1, 0, n)
    sums = np.take(csum, hi, axis=axis) - np.take(csum, lo, axis=axis)

    shape = [1] * arr.ndim
    shape[axis] = n
    counts = (hi - lo).reshape(shape)
    return sums // counts


def box_blur_alpha(alpha: np.ndarray, radius: int) -> np.ndarray:
    """Separable box blur: horizontal pass, then vertical pass on its output.

    Near the edges the divisor shrinks to the in-bounds sample count, so an
    opaque region touching the border does not fade out.
    """
    if radius <= 0:
        return alpha.copy()
    horizontal = _box_blur_1d(alpha, radius, axis=1)
    vertical = _box_blur_1d(horizontal, radius, axis=0)
    return vertical.astype(np.uint8)


def feather_alpha_edges(image: Image.Image, radius: int = 10) -> Image.Image:
    """Soften hard cutout edges into an alpha gradient; RGB is copied exactly."""
    rgba = np.array(image.convert("RGBA") if image.mode != "RGBA" else image, dtype=np.uint8)
    rgba[..., 3] = box_blur_alpha(rgba[..., 3], radius)
    return Image.fromarray(rgba)
