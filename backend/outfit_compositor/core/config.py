from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from outfit_compositor.core.logger import logger

DEFAULT_CACHE_MAX_AGE_SECONDS = 7 * 24 * 60 * 60


def _default_cache_root() -> Path:
    return Path(tempfile.gettempdir()) / "outfit-compositor"


@dataclass(frozen=True)
class CompositorConfig:
    """Tuning constants for the compositing pipeline.

    Defaults are what the 3D generation client was tuned against: a roughly
    square, tightly cropped, silhouette-merged 1024x1024 image.
    """

    canvas_width: int = 1024
    canvas_height: int = 1024
    # Sources are downsampled on decode so their larger side stays within this.
    max_source_dimension: int = 2048
    # Squared Euclidean RGB distance.
    color_distance_threshold: int = 55 * 55
    # Mean of r, g, b (0-255).
    brightness_threshold: int = 215
    corner_sample_size: int = 10
    # Below this the cutout is kept but flagged.
    min_foreground_coverage: float = 0.20
    # Below this the cutout is discarded and the original image is used.
    absolute_min_foreground: float = 0.08
    feather_radius: int = 10
    morph_radius: int = 20
    cache_root: Path = field(default_factory=_default_cache_root)
    cache_max_age_seconds: float = DEFAULT_CACHE_MAX_AGE_SECONDS

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self.canvas_width, self.canvas_height)

    @classmethod
    def from_env(cls) -> "CompositorConfig":
        """Build a config from COMPOSITOR_* environment variables.

        Unset or malformed values keep their defaults.
        """
        defaults = cls()
        canvas = _env_int("COMPOSITOR_CANVAS_SIZE", defaults.canvas_width)
        distance = _env_int("COMPOSITOR_COLOR_DISTANCE", 55)
        cache_dir = (os.getenv("COMPOSITOR_CACHE_DIR") or "").strip()
        return cls(
            canvas_width=canvas,
            canvas_height=canvas,
            max_source_dimension=_env_int("COMPOSITOR_MAX_SOURCE_DIMENSION", defaults.max_source_dimension),
            color_distance_threshold=distance * distance,
            brightness_threshold=_env_int("COMPOSITOR_BRIGHTNESS_THRESHOLD", defaults.brightness_threshold),
            corner_sample_size=_env_int("COMPOSITOR_CORNER_SAMPLE_SIZE", defaults.corner_sample_size),
            min_foreground_coverage=_env_float("COMPOSITOR_MIN_COVERAGE", defaults.min_foreground_coverage),
            absolute_min_foreground=_env_float(
                "COMPOSITOR_ABSOLUTE_MIN_COVERAGE", defaults.absolute_min_foreground
            ),
            feather_radius=_env_int("COMPOSITOR_FEATHER_RADIUS", defaults.feather_radius),
            morph_radius=_env_int("COMPOSITOR_MORPH_RADIUS", defaults.morph_radius),
            cache_root=Path(cache_dir) if cache_dir else defaults.cache_root,
            cache_max_age_seconds=_env_float("COMPOSITOR_CACHE_MAX_AGE", defaults.cache_max_age_seconds),
        )


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
