from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image


@dataclass
class CropResult:
    image: Image.Image
    bbox: Optional[Tuple[int, int, int, int]]
    scale: float

    @property
    def has_content(self) -> bool:
        return self.bbox is not None


def content_bbox(image: Image.Image) -> Optional[Tuple[int, int, int, int]]:
    """Return bbox=(x0,y0,x1,y1) (end-exclusive) of pixels with alpha > 0."""
    alpha = np.asarray(image.getchannel("A"))
    rows = np.flatnonzero(alpha.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(alpha.any(axis=0))
    return (int(cols[0]), int(rows[0]), int(cols[-1]) + 1, int(rows[-1]) + 1)


def crop_to_content(image: Image.Image, canvas_size: Tuple[int, int]) -> CropResult:
    """Crop transparent margins, scale the content to fit, and center it.

    With no opaque pixel at all the input is handed back unchanged.
    """
    bbox = content_bbox(image)
    if bbox is None:
        return CropResult(image=image, bbox=None, scale=1.0)

    cw, ch = canvas_size
    x0, y0, x1, y1 = bbox
    bw, bh = x1 - x0, y1 - y0
    scale = min(cw / bw, ch / bh)
    # Integer math so the limiting side lands exactly on the canvas edge.
    if cw * bh <= ch * bw:
        sw, sh = cw, max(1, bh * cw // bw)
    else:
        sw, sh = max(1, bw * ch // bh), ch

    cropped = image.crop(bbox)
    if (sw, sh) != (bw, bh):
        scaled = cropped.resize((sw, sh), Image.Resampling.LANCZOS)
        cropped.close()
    else:
        scaled = cropped

    final = Image.new("RGBA", (cw, ch), (0, 0, 0, 0))
    final.paste(scaled, ((cw - sw) // 2, (ch - sh) // 2))
    scaled.close()
    return CropResult(image=final, bbox=bbox, scale=scale)
