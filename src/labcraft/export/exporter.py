"""PDF export and print for rendered regions.

The exporter rasterizes a region once, lays the bitmap out on the writer's
page size and places the same bitmap on every page at shifted offsets (see
``labcraft.export.paginator``). Every public operation reports failure as
``False``; nothing propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from html import escape
from pathlib import Path

from labcraft.db.models import Collection, Entry
from labcraft.draft.scheduler import Scheduler
from labcraft.export.capabilities import DocumentWriter, Printer, Rasterizer, Region
from labcraft.export.naming import collection_filename, entry_filename
from labcraft.export.paginator import FIT_PAGE, PageGeometry, Placement, compute_layout, paginate
from labcraft.render.bitmap import ImageLookup, render_collection, render_entry
from labcraft.render.markup import PRINT_STYLES

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 2.0
DEFAULT_MARGIN_TOP = 10.0
DEFAULT_SETTLE_SECONDS = 0.5

_PRINT_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <title>{title}</title>
    <style>{styles}</style>
    <style>
      @media print {{
        body {{ margin: 0; padding: 20px; }}
        .no-print {{ display: none !important; }}
      }}
    </style>
  </head>
  <body>
    {body}
  </body>
</html>
"""


class ExportError(RuntimeError):
    """Internal failure inside an export; converted to ``False`` at the boundary."""


class PdfExporter:
    """Exports regions to PDF and hands markup to a printer.

    Args:
        rasterizer: Region → bitmap capability. ``None`` makes every export fail.
        writer_factory: Builds a fresh ``DocumentWriter`` per export.
            ``None`` makes every export fail.
        output_dir: Directory PDFs are written into.
        margin_top: Top margin in page units.
        scale: Oversampling factor passed to the rasterizer.
        fit: ``"page"`` (default) or ``"width"`` (see ``compute_layout``).
        printer: Print capability for ``print_element``.
        scheduler: Runs the delayed print; without one it prints immediately.
        settle_seconds: Delay before printing.
        stylesheets: CSS copied into the print document.
    """

    def __init__(
        self,
        rasterizer: Rasterizer | None,
        writer_factory: Callable[[], DocumentWriter] | None,
        *,
        output_dir: Path | str = ".",
        margin_top: float = DEFAULT_MARGIN_TOP,
        scale: float = DEFAULT_SCALE,
        fit: str = FIT_PAGE,
        printer: Printer | None = None,
        scheduler: Scheduler | None = None,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        stylesheets: Iterable[str] = (PRINT_STYLES,),
    ) -> None:
        self.rasterizer = rasterizer
        self.writer_factory = writer_factory
        self.output_dir = Path(output_dir)
        self.margin_top = margin_top
        self.scale = scale
        self.fit = fit
        self.printer = printer
        self.scheduler = scheduler
        self.settle_seconds = settle_seconds
        self.stylesheets = list(stylesheets)

        self.last_placements: list[Placement] = []
        self.last_path: Path | None = None

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def export_to_pdf(self, region: Region | None, filename: str) -> bool:
        """Write *region* to ``<output_dir>/<filename>.pdf``. Returns success."""
        try:
            self.last_path = self._export(region, filename)
            return True
        except Exception:
            logger.exception("PDF export of '%s' failed", filename)
            return False

    def export_entry(self, entry: Entry, collection: Collection, images: ImageLookup | None = None) -> bool:
        """Render *entry* and export it under its derived file name."""
        try:
            region = render_entry(entry, collection, images)
        except Exception:
            logger.exception("Rendering entry %s failed", entry.id)
            return False
        return self.export_to_pdf(region, entry_filename(entry, collection))

    def export_collection(
        self,
        collection: Collection,
        entries: list[Entry],
        images: ImageLookup | None = None,
    ) -> bool:
        """Render a whole collection into one PDF."""
        try:
            region = render_collection(collection, entries, images)
        except Exception:
            logger.exception("Rendering collection %s failed", collection.id)
            return False
        return self.export_to_pdf(region, collection_filename(collection))

    def _export(self, region: Region | None, filename: str) -> Path:
        if region is None:
            raise ExportError("Nothing to export: region not found")
        if self.rasterizer is None:
            raise ExportError("No rasterizer available")
        if self.writer_factory is None:
            raise ExportError("No document writer available")

        bitmap = self.rasterizer.rasterize(region, self.scale)
        writer = self.writer_factory()
        page_w, page_h = writer.page_size()
        geometry = PageGeometry(width=page_w, height=page_h, margin_top=self.margin_top)

        layout = compute_layout(bitmap.width, bitmap.height, geometry, self.fit)
        placements = paginate(layout, geometry)
        for placement in placements:
            if placement.page > 1:
                writer.add_page()
            writer.add_image(bitmap, placement.x, placement.y, placement.width, placement.height)

        path = self.output_dir / f"{filename}.pdf"
        writer.save(path)
        self.last_placements = placements
        logger.info("Exported %s (%d page(s))", path, len(placements))
        return path

    # ------------------------------------------------------------------
    # Print
    # ------------------------------------------------------------------

    def print_element(self, markup: str | None, title: str = "Print") -> bool:
        """Wrap *markup* in a standalone document and print it after the settle delay.

        Returns False if there is nothing to print or no printer; failures of
        the delayed print itself are only logged.
        """
        try:
            if markup is None:
                return False
            if self.printer is None:
                return False
            html = _PRINT_TEMPLATE.format(
                title=escape(title),
                styles="\n".join(self.stylesheets),
                body=markup,
            )
            if self.scheduler is None:
                self._print(html, title)
            else:
                self.scheduler.call_later(self.settle_seconds, lambda: self._print(html, title))
            return True
        except Exception:
            logger.exception("Print failed")
            return False

    def _print(self, html: str, title: str) -> None:
        try:
            self.printer.print_document(html, title)
        except Exception:
            logger.exception("Printer rejected the document")
