"""Tests for the Pillow, ReportLab and HTML printer capabilities."""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image
from pypdf import PdfReader

from labcraft.export.capabilities import HtmlFilePrinter, PillowRasterizer, ReportLabDocumentWriter


# ------------------------------------------------------------------
# PillowRasterizer
# ------------------------------------------------------------------

def test_rasterize_image_with_scale():
    out = PillowRasterizer().rasterize(Image.new("RGB", (50, 80)), 2.0)
    assert out.size == (100, 160)
    assert out.mode == "RGB"


def test_rasterize_flattens_transparency_to_white():
    out = PillowRasterizer().rasterize(Image.new("RGBA", (4, 4), (0, 0, 0, 0)), 1.0)
    assert out.getpixel((1, 1)) == (255, 255, 255)


def test_rasterize_bytes_and_path(tmp_path):
    path = tmp_path / "region.png"
    Image.new("RGB", (12, 7), (1, 2, 3)).save(path)
    rasterizer = PillowRasterizer()
    assert rasterizer.rasterize(path, 1.0).size == (12, 7)
    assert rasterizer.rasterize(str(path), 1.0).size == (12, 7)

    buf = BytesIO()
    Image.new("RGB", (5, 9)).save(buf, format="PNG")
    assert rasterizer.rasterize(buf.getvalue(), 1.0).size == (5, 9)


def test_rasterize_rejects_bad_scale():
    with pytest.raises(ValueError):
        PillowRasterizer().rasterize(Image.new("RGB", (1, 1)), 0)


# ------------------------------------------------------------------
# ReportLabDocumentWriter
# ------------------------------------------------------------------

def test_writer_page_size_default_a4():
    assert ReportLabDocumentWriter().page_size() == (210.0, 297.0)


def test_writer_saves_pages(tmp_path):
    writer = ReportLabDocumentWriter()
    img = Image.new("RGB", (20, 20), (0, 128, 0))
    writer.add_image(img, 10, 10, 50, 50)
    writer.add_page()
    writer.add_image(img, 10, -20, 50, 50)
    target = tmp_path / "out" / "doc.pdf"
    writer.save(target)

    assert target.read_bytes().startswith(b"%PDF")
    assert len(PdfReader(target).pages) == 2


def test_writer_custom_page_size(tmp_path):
    writer = ReportLabDocumentWriter(100, 100)
    writer.add_image(Image.new("RGB", (2, 2)), 0, 0, 100, 100)
    writer.save(tmp_path / "square.pdf")
    box = PdfReader(tmp_path / "square.pdf").pages[0].mediabox
    assert float(box.width) == pytest.approx(float(box.height))


# ------------------------------------------------------------------
# HtmlFilePrinter
# ------------------------------------------------------------------

def test_printer_writes_html(tmp_path):
    printer = HtmlFilePrinter(tmp_path / "prints")
    printer.print_document("<html>hi</html>", "Title")
    assert printer.last_path.parent == tmp_path / "prints"
    assert printer.last_path.suffix == ".html"
    assert printer.last_path.read_text(encoding="utf-8") == "<html>hi</html>"


def test_printer_opens_browser(tmp_path, monkeypatch):
    opened: list[str] = []
    monkeypatch.setattr("labcraft.export.capabilities.webbrowser.open", opened.append)
    printer = HtmlFilePrinter(tmp_path, open_browser=True)
    printer.print_document("<html></html>")
    assert opened == [printer.last_path.resolve().as_uri()]


def test_printer_does_not_open_browser_by_default(tmp_path, monkeypatch):
    opened: list[str] = []
    monkeypatch.setattr("labcraft.export.capabilities.webbrowser.open", opened.append)
    HtmlFilePrinter(tmp_path).print_document("<html></html>")
    assert opened == []
