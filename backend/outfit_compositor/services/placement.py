from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from PIL import Image

from outfit_compositor.core.config import CompositorConfig
from outfit_compositor.core.errors import AllItemsFailed
from outfit_compositor.core.logger import TaskLogger
from outfit_compositor.domain.layout import ClothingCategory, SourceItem, band_rows
from outfit_compositor.services.background import remove_background
from outfit_compositor.services.feather import feather_alpha_edges
from outfit_compositor.services.image_loader import load_rgba

Rect = Tuple[int, int, int, int]


@dataclass(frozen=True)
class ItemFailure:
    category: str
    path: str
    reason: str


@dataclass
class Placement:
    canvas: Image.Image
    drawn: int = 0
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.failures)


def positioned_rect(
    image_size: Tuple[int, int],
    category: ClothingCategory,
    canvas_size: Tuple[int, int],
) -> Rect:
    """Destination (left, top, right, bottom) for an item on the canvas.

    Height fills the category band; if that makes it wider than the canvas
    it is fitted by width instead. Centered horizontally on the canvas and
    vertically on the band.
    """
    cw, ch = canvas_size
    band_top, band_bottom = band_rows(category, ch)
    max_height = band_bottom - band_top

    iw, ih = image_size
    aspect = iw / ih

    scaled_h = max_height
    scaled_w = int(max_height * aspect)
    if scaled_w > cw:
        scaled_w = cw
        scaled_h = int(cw / aspect)
        if scaled_h > max_height:
            scaled_h = max_height
            scaled_w = int(max_height * aspect)
    scaled_w = max(1, scaled_w)
    scaled_h = max(1, scaled_h)

    left = (cw - scaled_w) // 2
    center = (band_top + band_bottom) // 2
    top = center - scaled_h // 2
    return (left, top, left + scaled_w, top + scaled_h)


def prepare_item(
    item: SourceItem,
    config: CompositorConfig,
    log: TaskLogger,
    loader: Callable[..., Image.Image] = load_rgba,
) -> Image.Image:
    """Load, cut out and feather one item. Intermediate images are closed as they are superseded."""
    raw = loader(item.image_path, config.max_source_dimension)
    removal = remove_background(raw, config, log)
    if not removal.removed:
        # Nothing was cut out; the original is drawn as-is.
        return raw

    raw.close()
    feathered = feather_alpha_edges(removal.image, config.feather_radius)
    removal.image.close()
    return feathered


def draw_items(
    items: Iterable[SourceItem],
    config: CompositorConfig,
    log: Optional[TaskLogger] = None,
    *,
    failures: Optional[List[ItemFailure]] = None,
    loader: Callable[..., Image.Image] = load_rgba,
) -> Placement:
    """Draw items back-to-front by category rank onto a fresh transparent canvas.

    A failing item is logged and skipped. Raises AllItemsFailed when nothing
    could be drawn.
    """
    log = log or TaskLogger()
    canvas = Image.new("RGBA", config.canvas_size, (0, 0, 0, 0))
    placement = Placement(canvas=canvas, failures=list(failures or []))

    ordered = sorted(items, key=lambda it: it.rank)
    log.info("Drawing items", order=[it.category.value for it in ordered])

    for item in ordered:
        try:
            processed = prepare_item(item, config, log, loader=loader)
            rect = positioned_rect(processed.size, item.category, config.canvas_size)
            left, top, right, bottom = rect
            resized = processed.resize((right - left, bottom - top), Image.Resampling.LANCZOS)
            processed.close()
            canvas.alpha_composite(resized, dest=(left, top))
            resized.close()
        except MemoryError:
            raise
        except Exception as exc:
            log.warning(
                "Failed to load/draw item, skipping",
                category=item.category.value,
                path=str(item.image_path),
                error=str(exc),
            )
            placement.failures.append(ItemFailure(item.category.value, str(item.image_path), str(exc)))
            continue

        placement.drawn += 1
        log.debug("Drew item", category=item.category.value, rect=list(rect))

    if placement.drawn == 0:
        canvas.close()
        raise AllItemsFailed(f"Failed to load any outfit items ({placement.skipped} skipped)")

    log.info("Items drawn", drawn=placement.drawn, skipped=placement.skipped)
    return placement
