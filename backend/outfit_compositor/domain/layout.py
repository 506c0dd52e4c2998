from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple, Union

from outfit_compositor.core.errors import UnknownCategory


class ClothingCategory(str, Enum):
    SHOES = "shoes"
    BOTTOM = "bottom"
    DRESS = "dress"
    TOP = "top"
    OUTERWEAR = "outerwear"
    ACCESSORIES = "accessories"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Union[str, "ClothingCategory"]) -> "ClothingCategory":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        try:
            return cls(key)
        except ValueError as exc:
            raise UnknownCategory(f"Unknown clothing category: {value!r}") from exc


@dataclass(frozen=True)
class CategoryLayout:
    """Draw-order rank plus vertical band as fractions of canvas height."""

    rank: int
    top_fraction: float
    bottom_fraction: float


# Lower rank is drawn first, so outerwear paints over tops, tops over bottoms.
# TOP and BOTTOM overlap around the waist so the garments touch once composited.
CATEGORY_LAYOUT: Dict[ClothingCategory, CategoryLayout] = {
    ClothingCategory.SHOES: CategoryLayout(0, 0.85, 1.00),
    ClothingCategory.BOTTOM: CategoryLayout(1, 0.45, 0.95),
    ClothingCategory.DRESS: CategoryLayout(2, 0.05, 0.95),
    ClothingCategory.TOP: CategoryLayout(3, 0.05, 0.55),
    ClothingCategory.OUTERWEAR: CategoryLayout(4, 0.05, 0.70),
    ClothingCategory.ACCESSORIES: CategoryLayout(5, 0.00, 0.20),
    ClothingCategory.OTHER: CategoryLayout(6, 0.25, 0.75),
}


def band_rows(category: ClothingCategory, canvas_height: int) -> Tuple[int, int]:
    """Absolute (top, bottom) canvas rows of a category's band."""
    layout = CATEGORY_LAYOUT[category]
    return int(layout.top_fraction * canvas_height), int(layout.bottom_fraction * canvas_height)


@dataclass(frozen=True)
class SourceItem:
    category: ClothingCategory
    image_path: Path

    @property
    def rank(self) -> int:
        return CATEGORY_LAYOUT[self.category].rank
