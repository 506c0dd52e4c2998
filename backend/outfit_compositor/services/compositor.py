from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from outfit_compositor.core.config import CompositorConfig
from outfit_compositor.core.errors import CompositeOutOfMemory, CompositorError, NoItemsProvided
from outfit_compositor.core.logger import TaskLogger
from outfit_compositor.domain.layout import ClothingCategory, SourceItem
from outfit_compositor.services.cache import CompositeCache, EvictionStats
from outfit_compositor.services.crop import crop_to_content
from outfit_compositor.services.morphology import merge_silhouette
from outfit_compositor.services.placement import ItemFailure, draw_items

ItemMap = Mapping[Union[str, ClothingCategory], Union[str, Path, None]]


@dataclass
class CompositeResult:
    path: Path
    drawn: int
    trace_id: str
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.failures)


def _source_items(items: ItemMap) -> Tuple[List[SourceItem], List[ItemFailure]]:
    sources: List[SourceItem] = []
    failures: List[ItemFailure] = []
    for key, path in items.items():
        if path is None or str(path).strip() == "":
            continue
        try:
            category = ClothingCategory.parse(key)
        except CompositorError as exc:
            failures.append(ItemFailure(str(key), str(path), str(exc)))
            continue
        sources.append(SourceItem(category=category, image_path=Path(path)))
    return sources, failures


class OutfitCompositor:
    """Composites per-category clothing photos into one outfit silhouette PNG.

    Pipeline: draw (load, cut out, feather, position) -> merge silhouette
    -> crop to content -> save. Every call owns its own images, so one
    instance may serve concurrent requests from worker threads.
    """

    def __init__(self, config: Optional[CompositorConfig] = None, cache: Optional[CompositeCache] = None):
        self.config = config or CompositorConfig()
        self.cache = cache or CompositeCache(self.config.cache_root)

    def compose(self, items: ItemMap, trace_id: Optional[str] = None) -> CompositeResult:
        log = TaskLogger(trace_id=trace_id)
        sources, failures = _source_items(items or {})
        if not sources and not failures:
            raise NoItemsProvided("No items selected for compositing")

        started = time.perf_counter()
        log.info("Starting outfit composite", items=len(sources) + len(failures))

        canvas = merged = cropped = None
        try:
            placement = draw_items(sources, self.config, log, failures=failures)
            canvas = placement.canvas

            merged = merge_silhouette(canvas, self.config.morph_radius)
            canvas.close()
            canvas = None

            crop = crop_to_content(merged, self.config.canvas_size)
            if not crop.has_content:
                log.warning("No non-transparent content found, keeping merged canvas")
            cropped = crop.image
            if cropped is not merged:
                merged.close()
            merged = None

            path = self.cache.save(cropped)
        except MemoryError as exc:
            log.error("Out of memory during compositing")
            raise CompositeOutOfMemory("Insufficient memory for compositing") from exc
        finally:
            for img in (canvas, merged, cropped):
                if img is not None:
                    img.close()

        log.info(
            "Composite finished",
            path=str(path),
            drawn=placement.drawn,
            skipped=placement.skipped,
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )
        return CompositeResult(path=path, drawn=placement.drawn, trace_id=log.trace_id, failures=placement.failures)

    def evict_cache(self, max_age_seconds: Optional[float] = None) -> EvictionStats:
        if max_age_seconds is None:
            max_age_seconds = self.config.cache_max_age_seconds
        return self.cache.evict_older_than(max_age_seconds)
