"""
Page geometry for photo ledgers.

All measurements are millimetres on an A4 portrait page with the origin at
the top-left corner. The renderer converts to its own coordinate system.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from sitephoto.core.errors import ValidationError

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MARGIN_MM = 10.0
HEADER_HEIGHT_MM = 20.0
FOOTER_HEIGHT_MM = 10.0
IMAGE_INSET_MM = 2.0
CAPTION_STRIP_MM = 15.0

CAPTION_MAX_LENGTH = 30
DEFAULT_CAPTION = "No caption"

# photos per page -> (columns, rows)
GRID_LAYOUTS: Dict[int, Tuple[int, int]] = {
    1: (1, 1),
    2: (1, 2),
    4: (2, 2),
    6: (2, 3),
}

T = TypeVar("T")


class FitMode(Enum):
    """How a photo fills its image area."""
    FIT = "fit"
    STRETCH = "stretch"


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in page millimetres."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class LedgerConfig:
    """Layout options for one ledger export."""
    photos_per_page: int = 4
    company_name: str = ""
    project_name: str = ""
    show_date: bool = True
    show_page_number: bool = True
    fit_mode: FitMode = FitMode.FIT

    def __post_init__(self) -> None:
        if self.photos_per_page not in GRID_LAYOUTS:
            raise ValidationError(
                f"Unsupported layout {self.photos_per_page}; "
                f"choose one of {sorted(GRID_LAYOUTS)}"
            )
        if not isinstance(self.fit_mode, FitMode):
            try:
                object.__setattr__(self, "fit_mode", FitMode(self.fit_mode))
            except ValueError:
                raise ValidationError(f"Unknown fit mode: {self.fit_mode}") from None

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "LedgerConfig":
        """
        Build a config from UI options.

        Keys: layout, companyName, projectName, showDate, showPageNumber and
        optionally fitMode.
        """
        try:
            layout = int(options.get("layout", 4))
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid layout: {options.get('layout')!r}") from None

        return cls(
            photos_per_page=layout,
            company_name=(options.get("companyName") or "").strip(),
            project_name=(options.get("projectName") or "").strip(),
            show_date=bool(options.get("showDate", True)),
            show_page_number=bool(options.get("showPageNumber", True)),
            fit_mode=options.get("fitMode", FitMode.FIT.value),
        )

    @property
    def columns(self) -> int:
        return GRID_LAYOUTS[self.photos_per_page][0]

    @property
    def rows(self) -> int:
        return GRID_LAYOUTS[self.photos_per_page][1]

    @property
    def show_header(self) -> bool:
        return bool(self.company_name or self.project_name)

    @property
    def show_footer(self) -> bool:
        return self.show_date or self.show_page_number

    @property
    def header_height(self) -> float:
        return HEADER_HEIGHT_MM if self.show_header else 0.0

    @property
    def footer_height(self) -> float:
        return FOOTER_HEIGHT_MM if self.show_footer else 0.0


def paginate(items: Sequence[T], per_page: int) -> List[List[T]]:
    """Split items into consecutive pages, order preserved."""
    if per_page < 1:
        raise ValueError("per_page must be positive")
    return [list(items[i:i + per_page]) for i in range(0, len(items), per_page)]


def page_count(item_count: int, per_page: int) -> int:
    return math.ceil(item_count / per_page)


def content_area(config: LedgerConfig) -> Rect:
    """Page area left for photo cells."""
    return Rect(
        MARGIN_MM,
        MARGIN_MM + config.header_height,
        PAGE_WIDTH_MM - MARGIN_MM * 2,
        PAGE_HEIGHT_MM - MARGIN_MM * 2 - config.header_height - config.footer_height,
    )


def cell_rect(config: LedgerConfig, slot: int) -> Rect:
    """Cell for slot index on a page; slots fill rows left to right."""
    if not 0 <= slot < config.photos_per_page:
        raise IndexError(f"Slot {slot} out of range for layout {config.photos_per_page}")

    area = content_area(config)
    cell_w = area.width / config.columns
    cell_h = area.height / config.rows
    row, col = divmod(slot, config.columns)
    return Rect(area.x + col * cell_w, area.y + row * cell_h, cell_w, cell_h)


def image_area(cell: Rect) -> Rect:
    """Part of a cell available to the photo, above the caption strip."""
    return Rect(
        cell.x + IMAGE_INSET_MM,
        cell.y + IMAGE_INSET_MM,
        cell.width - IMAGE_INSET_MM * 2,
        cell.height - IMAGE_INSET_MM * 2 - CAPTION_STRIP_MM,
    )


def fit_image(area: Rect, image_width: float, image_height: float, mode: FitMode = FitMode.FIT) -> Rect:
    """
    Placement of an image inside area.

    FIT keeps the aspect ratio and centres the image; STRETCH fills the area.
    """
    if mode == FitMode.STRETCH or image_width <= 0 or image_height <= 0:
        return area

    scale = min(area.width / image_width, area.height / image_height)
    width = image_width * scale
    height = image_height * scale
    return Rect(
        area.x + (area.width - width) / 2,
        area.y + (area.height - height) / 2,
        width,
        height,
    )


def truncate_text(text: str, max_length: int = CAPTION_MAX_LENGTH) -> str:
    """Shorten text to max_length characters, ending in '...' when cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def caption_text(caption: Optional[str]) -> str:
    return truncate_text(caption or DEFAULT_CAPTION)
