"""Rasterize-and-paginate PDF export."""

from labcraft.export.capabilities import (
    DocumentWriter,
    HtmlFilePrinter,
    PillowRasterizer,
    Printer,
    Rasterizer,
    ReportLabDocumentWriter,
)
from labcraft.export.exporter import PdfExporter
from labcraft.export.paginator import PageGeometry, Placement, compute_layout, paginate

__all__ = [
    "DocumentWriter",
    "HtmlFilePrinter",
    "PageGeometry",
    "PdfExporter",
    "PillowRasterizer",
    "Placement",
    "Printer",
    "Rasterizer",
    "ReportLabDocumentWriter",
    "compute_layout",
    "paginate",
]
