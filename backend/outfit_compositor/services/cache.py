from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from outfit_compositor.core.config import DEFAULT_CACHE_MAX_AGE_SECONDS
from outfit_compositor.core.errors import SaveFailure
from outfit_compositor.core.logger import logger

COMPOSITE_CACHE_DIR = "outfit_composites"


@dataclass
class EvictionStats:
    scanned: int = 0
    deleted: int = 0
    freed_bytes: int = 0
    errors: int = 0


class CompositeCache:
    """PNG composites in a dedicated cache subdirectory, evicted by age."""

    def __init__(self, root_dir: Union[str, Path], subdir: str = COMPOSITE_CACHE_DIR):
        self.directory = Path(root_dir) / subdir

    def save(self, image: Image.Image) -> Path:
        path = self.directory / f"outfit_{uuid.uuid4()}.png"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            image.save(path, format="PNG")
        except (OSError, ValueError) as exc:
            logger.error(f"Failed to save composite to {path}: {exc}")
            if path.is_file():
                # Partially written PNG.
                path.unlink()
            raise SaveFailure(f"Failed to save composite image: {exc}") from exc

        logger.info(f"Saved composite to: {path} ({path.stat().st_size // 1024} KB)")
        return path

    def evict_older_than(self, max_age_seconds: Optional[float] = None) -> EvictionStats:
        """Delete cached files older than ``max_age_seconds``; zero deletes all. Never raises."""
        if max_age_seconds is None:
            max_age_seconds = DEFAULT_CACHE_MAX_AGE_SECONDS
        stats = EvictionStats()
        if not self.directory.is_dir():
            return stats

        now = time.time()
        try:
            entries = list(self.directory.iterdir())
        except OSError as exc:
            logger.warning(f"Failed to list composite cache {self.directory}: {exc}")
            stats.errors += 1
            return stats

        for entry in entries:
            stats.scanned += 1
            try:
                st = entry.stat()
                if not entry.is_file():
                    continue
                # Zero age evicts everything, even files stamped a tick in the future.
                if max_age_seconds > 0 and now - st.st_mtime <= max_age_seconds:
                    continue
                entry.unlink()
            except FileNotFoundError:
                # Removed concurrently by another eviction.
                continue
            except OSError as exc:
                stats.errors += 1
                logger.warning(f"Failed to evict cached composite {entry}: {exc}")
                continue
            stats.deleted += 1
            stats.freed_bytes += st.st_size

        if stats.deleted > 0:
            logger.info(
                f"Cleaned up {stats.deleted} old composites (freed {stats.freed_bytes // 1024} KB)"
            )
        return stats
