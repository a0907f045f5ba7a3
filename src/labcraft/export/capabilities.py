"""External capabilities used by the exporter: rasterizer, document writer, printer.

The exporter only talks to the abstract interfaces. The concrete classes
here back them with Pillow (rasterization) and ReportLab (PDF writing).
"""

from __future__ import annotations

import webbrowser
from abc import ABC, abstractmethod
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

Region = Union[Image.Image, Path, str, bytes]

_BACKGROUND = (255, 255, 255)


class Rasterizer(ABC):
    @abstractmethod
    def rasterize(self, region: Region, scale: float) -> Image.Image:
        """Render *region* into one RGB bitmap oversampled by *scale*."""


class DocumentWriter(ABC):
    """Paged document sink. Coordinates are in page units, origin top-left."""

    @abstractmethod
    def page_size(self) -> tuple[float, float]:
        """Return ``(width, height)`` of a page."""

    @abstractmethod
    def add_image(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        """Place *image* on the current page; parts outside the page are clipped."""

    @abstractmethod
    def add_page(self) -> None:
        """Start a new page and make it current."""

    @abstractmethod
    def save(self, path: Path) -> None:
        """Write the finished document to *path*."""


class Printer(ABC):
    @abstractmethod
    def print_document(self, html: str, title: str = "Print") -> None:
        """Send a standalone HTML document to the print surface."""


class PillowRasterizer(Rasterizer):
    """Rasterizes pre-rendered regions: a Pillow image, an image file path, or raw bytes."""

    def rasterize(self, region: Region, scale: float) -> Image.Image:
        if scale <= 0:
            raise ValueError("scale must be positive")
        if isinstance(region, Image.Image):
            img = region
        elif isinstance(region, bytes):
            img = Image.open(BytesIO(region))
        else:
            img = Image.open(Path(region))
        img.load()

        rgba = img.convert("RGBA")
        flat = Image.new("RGB", rgba.size, _BACKGROUND)
        flat.paste(rgba, mask=rgba.getchannel("A"))
        if scale != 1:
            size = (max(1, round(flat.width * scale)), max(1, round(flat.height * scale)))
            flat = flat.resize(size, Image.Resampling.LANCZOS)
        return flat


class ReportLabDocumentWriter(DocumentWriter):
    """PDF writer on a ReportLab canvas, in millimetres (A4 portrait by default)."""

    def __init__(self, page_width: float = 210.0, page_height: float = 297.0) -> None:
        self._width = page_width
        self._height = page_height
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=(page_width * mm, page_height * mm))

    def page_size(self) -> tuple[float, float]:
        return self._width, self._height

    def add_image(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        # ReportLab's origin is bottom-left.
        bottom = self._height - y - height
        self._canvas.drawImage(
            ImageReader(image),
            x * mm,
            bottom * mm,
            width=width * mm,
            height=height * mm,
        )

    def add_page(self) -> None:
        self._canvas.showPage()

    def save(self, path: Path) -> None:
        self._canvas.save()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._buffer.getvalue())


class HtmlFilePrinter(Printer):
    """Writes the print document to an HTML file and optionally opens it in a browser."""

    def __init__(self, output_dir: Path | str = ".", *, open_browser: bool = False) -> None:
        self.output_dir = Path(output_dir)
        self.open_browser = open_browser
        self.last_path: Path | None = None

    def print_document(self, html: str, title: str = "Print") -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = self.output_dir / f"print-{stamp}.html"
        path.write_text(html, encoding="utf-8")
        self.last_path = path
        if self.open_browser:
            webbrowser.open(path.resolve().as_uri())
