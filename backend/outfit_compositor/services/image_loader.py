from __future__ import annotations

from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from outfit_compositor.core.errors import ImageDecodeFailure, ImageNotFound
from outfit_compositor.core.logger import logger


def sample_factor(width: int, height: int, max_dimension: int) -> int:
    """Power-of-two downsampling factor, rounded down, minimum 1."""
    largest = max(width, height)
    if max_dimension <= 0 or largest <= max_dimension:
        return 1
    ratio = largest // max_dimension
    return max(1, 1 << (ratio.bit_length() - 1))


# Modes Image.reduce() accepts without a conversion.
_REDUCIBLE_MODES = ("L", "LA", "RGB", "RGBA")


def _to_reducible(img: Image.Image) -> Image.Image:
    """Palette, 1-bit, 16-bit and other modes as an 8-bit image reduce() takes."""
    if img.mode in _REDUCIBLE_MODES:
        return img
    if img.mode == "I" or img.mode.startswith("I;16"):
        # 16-bit PNGs open as I;16 or I; keep the top byte rather than clipping at 255.
        return img.convert("I").point(lambda v: v * (1 / 256)).convert("L")
    if img.mode == "F":
        return img.convert("L")
    return img.convert("RGBA")


def load_rgba(path: Union[str, Path], max_dimension: int) -> Image.Image:
    """Decode ``path`` as RGBA with its larger side at most ``max_dimension``.

    JPEG sources are scaled during decode (draft mode) so a full-resolution
    bitmap is never materialized; other formats are decoded once and reduced.
    """
    p = Path(path)
    if not p.is_file():
        raise ImageNotFound(f"Image file not found: {p}")

    try:
        with Image.open(p) as src:
            width, height = src.size
            factor = sample_factor(width, height, max_dimension)
            if factor > 1 and src.format == "JPEG":
                src.draft(src.mode, (width // factor, height // factor))
            src.load()
            # draft() scales by at most 1/8; reduce whatever it left over.
            remaining = factor // max(1, round(width / src.size[0]))
            base = _to_reducible(src)
            img = base.reduce(remaining) if remaining > 1 else base
            rgba = img.convert("RGBA")
            if img is not base:
                img.close()
            if base is not src:
                base.close()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeFailure(f"Failed to decode image: {p}: {exc}") from exc

    # The power of two rounds down, so e.g. 3000px against 2048 is left at factor 1.
    if max_dimension > 0 and max(rgba.size) > max_dimension:
        w, h = rgba.size
        largest = max(w, h)
        size = (max(1, w * max_dimension // largest), max(1, h * max_dimension // largest))
        resized = rgba.resize(size, Image.Resampling.LANCZOS)
        rgba.close()
        rgba = resized

    logger.debug(f"Loaded image {rgba.size[0]}x{rgba.size[1]} from {p} (sample: {factor})")
    return rgba
