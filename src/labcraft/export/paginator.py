"""Slice one tall bitmap across fixed-size pages.

The bitmap is never cut. Every page places the *same* image, shifted upward
so the next band lines up with the top of the page; the page clips the rest.

Page 1 places the image at ``margin_top``. Each following page places it at
``heightLeft - scaledH`` where ``heightLeft`` starts at
``scaledH - (H - 2 * margin_top)`` and drops by the same content height per
page, so the loop ends after ``ceil(scaledH / content_height)`` pages.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

FIT_PAGE = "page"
FIT_WIDTH = "width"
FITS: tuple[str, ...] = (FIT_PAGE, FIT_WIDTH)

# Float slack when a placed height lands on a whole number of pages.
PAGE_EPSILON = 1e-6


@dataclass(frozen=True)
class PageGeometry:
    """Page size and top margin in document units (A4 millimetres by default)."""

    width: float = 210.0
    height: float = 297.0
    margin_top: float = 10.0

    @property
    def content_height(self) -> float:
        return self.height - 2 * self.margin_top

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("page width and height must be positive")
        if self.content_height <= 0:
            raise ValueError("margin_top leaves no content height on the page")


@dataclass(frozen=True)
class Layout:
    """Placed size of the bitmap on the page."""

    ratio: float
    width: float
    height: float
    offset_x: float


@dataclass(frozen=True)
class Placement:
    """Where the bitmap goes on one page (1-based *page*)."""

    page: int
    x: float
    y: float
    width: float
    height: float


def compute_layout(
    img_width: int,
    img_height: int,
    geometry: PageGeometry,
    fit: str = FIT_PAGE,
) -> Layout:
    """Scale an ``img_width × img_height`` bitmap onto the page.

    ``fit="page"`` (the default) uses ``min(W / imgW, H / imgH)`` so the whole
    bitmap fits one page. ``fit="width"`` uses ``W / imgW`` so tall content
    keeps full page width and flows onto further pages.
    """
    if img_width <= 0 or img_height <= 0:
        raise ValueError("bitmap dimensions must be positive")
    if fit == FIT_PAGE:
        ratio = min(geometry.width / img_width, geometry.height / img_height)
    elif fit == FIT_WIDTH:
        ratio = geometry.width / img_width
    else:
        raise ValueError(f"Unknown fit '{fit}'. Choose one of: {', '.join(FITS)}")

    scaled_w = img_width * ratio
    scaled_h = img_height * ratio
    return Layout(
        ratio=ratio,
        width=scaled_w,
        height=scaled_h,
        offset_x=(geometry.width - scaled_w) / 2,
    )


def paginate(layout: Layout, geometry: PageGeometry) -> list[Placement]:
    """Return one placement per output page for *layout*."""
    placements = [
        Placement(1, layout.offset_x, geometry.margin_top, layout.width, layout.height)
    ]
    step = geometry.content_height
    height_left = layout.height - step

    while height_left > PAGE_EPSILON:
        position = height_left - layout.height
        placements.append(
            Placement(len(placements) + 1, layout.offset_x, position, layout.width, layout.height)
        )
        height_left -= step

    return placements


def page_count(scaled_height: float, geometry: PageGeometry) -> int:
    """Closed form of ``len(paginate(...))`` for a placed height."""
    return max(1, math.ceil((scaled_height - PAGE_EPSILON) / geometry.content_height))
