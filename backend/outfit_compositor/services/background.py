from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from outfit_compositor.core.config import CompositorConfig
from outfit_compositor.core.logger import TaskLogger


@dataclass
class BackgroundRemoval:
    """Result of background removal.

    ``removed`` is False when the original image was handed back untouched
    (nothing matched, or the cutout would have erased the garment), in which
    case there is nothing to feather.
    """

    image: Image.Image
    removed: bool
    coverage: float
    low_coverage: bool
    background_rgb: Tuple[int, int, int]


def sample_background_color(rgb: np.ndarray, sample_size: int = 10) -> Tuple[int, int, int]:
    """Average the RGB of four square corner patches.

    rgb: HxWx3 uint8. Patch side is min(sample_size, w // 10, h // 10); images
    under 10px on either side have no patch and are assumed to sit on white.
    """
    h, w = rgb.shape[:2]
    size = min(sample_size, w // 10, h // 10)
    if size <= 0:
        return (255, 255, 255)
    patches = [
        rgb[0:size, 0:size],
        rgb[0:size, w - size : w],
        rgb[h - size : h, 0:size],
        rgb[h - size : h, w - size : w],
    ]
    total = np.zeros(3, dtype=np.int64)
    count = 0
    for patch in patches:
        flat = patch.reshape(-1, 3)
        total += flat.sum(axis=0, dtype=np.int64)
        count += flat.shape[0]
    r, g, b = (int(v) // count for v in total)
    return (r, g, b)


def candidate_mask(
    rgb: np.ndarray,
    background: Tuple[int, int, int],
    *,
    distance_threshold: int,
    brightness_threshold: int,
) -> np.ndarray:
    """Pixels close to the background colour AND bright. HxW bool."""
    px = rgb.astype(np.int32)
    bg = np.array(background, dtype=np.int32)
    diff = px - bg
    distance_sq = (diff * diff).sum(axis=2)
    brightness = px.sum(axis=2) // 3
    return (distance_sq < distance_threshold) & (brightness > brightness_threshold)


def flood_fill_from_border(candidates: np.ndarray) -> np.ndarray:
    """BFS through 4-connected candidates, seeded from every border candidate.

    Returns an HxW bool mask of reached pixels. Candidate islands that do not
    touch the border are never reached.
    """
    h, w = candidates.shape
    reached = np.zeros((h, w), dtype=bool)
    if h == 0 or w == 0:
        return reached

    data = candidates.reshape(-1).tolist()
    visited = bytearray(h * w)
    q: deque[int] = deque()

    border = set(range(w))
    border.update(range((h - 1) * w, h * w))
    border.update(y * w for y in range(h))
    border.update(y * w + w - 1 for y in range(h))
    for i in sorted(border):
        if data[i]:
            visited[i] = 1
            q.append(i)

    while q:
        u = q.popleft()
        x = u % w
        if x > 0:
            n = u - 1
            if data[n] and not visited[n]:
                visited[n] = 1
                q.append(n)
        if x + 1 < w:
            n = u + 1
            if data[n] and not visited[n]:
                visited[n] = 1
                q.append(n)
        if u >= w:
            n = u - w
            if data[n] and not visited[n]:
                visited[n] = 1
                q.append(n)
        n = u + w
        if n < h * w and data[n] and not visited[n]:
            visited[n] = 1
            q.append(n)

    return np.frombuffer(bytes(visited), dtype=np.uint8).reshape(h, w).astype(bool)


def remove_background(
    image: Image.Image,
    config: Optional[CompositorConfig] = None,
    log: Optional[TaskLogger] = None,
) -> BackgroundRemoval:
    """Make border-connected background pixels fully transparent.

    The background colour is estimated from the corners. Background-coloured
    regions enclosed by the garment (e.g. a white button) stay opaque.
    """
    config = config or CompositorConfig()
    log = log or TaskLogger()
    rgba = np.asarray(image.convert("RGBA") if image.mode != "RGBA" else image, dtype=np.uint8)
    h, w = rgba.shape[:2]
    rgb = rgba[..., :3]

    bg = sample_background_color(rgb, config.corner_sample_size)
    candidates = candidate_mask(
        rgb,
        bg,
        distance_threshold=config.color_distance_threshold,
        brightness_threshold=config.brightness_threshold,
    )
    background = flood_fill_from_border(candidates)
    del candidates

    total = max(1, h * w)
    removed_count = int(background.sum())
    coverage = (total - removed_count) / total
    log.debug(
        "Background removal",
        background_rgb=list(bg),
        transparent_pct=round(100.0 * removed_count / total, 2),
        coverage=round(coverage, 4),
    )

    if removed_count == 0:
        return BackgroundRemoval(image=image, removed=False, coverage=1.0, low_coverage=False, background_rgb=bg)

    if coverage < config.absolute_min_foreground:
        log.warning(
            "Background removal too aggressive, reverting to original",
            coverage=round(coverage, 4),
            floor=config.absolute_min_foreground,
        )
        return BackgroundRemoval(image=image, removed=False, coverage=coverage, low_coverage=True, background_rgb=bg)

    low = coverage < config.min_foreground_coverage
    if low:
        log.warning(
            "Low foreground coverage, keeping cutout anyway",
            coverage=round(coverage, 4),
            soft_floor=config.min_foreground_coverage,
        )

    out = rgba.copy()
    out[background] = 0
    return BackgroundRemoval(
        image=Image.fromarray(out),
        removed=True,
        coverage=coverage,
        low_coverage=low,
        background_rgb=bg,
    )

