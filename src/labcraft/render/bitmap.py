"""Render entries into a single tall bitmap for PDF export.

Layout is plain: one column, the Pillow default font, section
headings underlined, code indented, attachments scaled to the column width.
"""

from __future__ import annotations

import logging
import textwrap
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from labcraft.assets.compress import decode_data_url
from labcraft.db.models import Collection, Entry

logger = logging.getLogger(__name__)

PAGE_WIDTH_PX = 794  # A4 width at 96 dpi
_MARGIN = 40
_LINE_SPACING = 4
_SECTION_GAP = 18
_CODE_INDENT = 16
_WRAP_CHARS = 100

_TEXT = (17, 24, 39)
_MUTED = (75, 85, 99)
_CODE_BG = (243, 244, 246)

ImageLookup = Callable[[str], Optional[str]]


@dataclass
class _Block:
    kind: str  # heading | text | code | image | gap
    text: str = ""
    image: Image.Image | None = None
    height: int = 0


def render_entry(
    entry: Entry,
    collection: Collection,
    images: ImageLookup | None = None,
) -> Image.Image:
    """Render one entry as a white RGB bitmap ``PAGE_WIDTH_PX`` wide."""
    blocks = [_Block("heading", f"{collection.subject} - Entry {entry.ordinal}: {entry.title}")]
    blocks += _entry_sections(entry, images)
    return _draw(blocks)


def render_collection(
    collection: Collection,
    entries: list[Entry],
    images: ImageLookup | None = None,
) -> Image.Image:
    """Render a collection cover followed by every entry in order."""
    blocks = [_Block("heading", collection.title), _Block("text", collection.subject)]
    if collection.description:
        blocks.append(_Block("text", collection.description))
    for entry in entries:
        blocks.append(_Block("gap", height=_SECTION_GAP * 2))
        blocks.append(_Block("heading", f"Entry {entry.ordinal}: {entry.title}"))
        blocks += _entry_sections(entry, images)
    return _draw(blocks)


def _entry_sections(entry: Entry, images: ImageLookup | None) -> list[_Block]:
    blocks: list[_Block] = []
    for label, body in (("Aim", entry.aim), ("Theory", entry.theory), ("Steps", entry.steps)):
        if body.strip():
            blocks += [_Block("gap", height=_SECTION_GAP), _Block("heading", label), _Block("text", body)]
    if entry.code.strip():
        blocks += [
            _Block("gap", height=_SECTION_GAP),
            _Block("heading", f"Code ({entry.language})"),
            _Block("code", entry.code),
        ]
    attached = _load_attachments(entry.attachments, images)
    if attached:
        blocks += [_Block("gap", height=_SECTION_GAP), _Block("heading", "Output")]
        blocks += [_Block("image", image=img) for img in attached]
    if entry.conclusion.strip():
        blocks += [
            _Block("gap", height=_SECTION_GAP),
            _Block("heading", "Conclusion"),
            _Block("text", entry.conclusion),
        ]
    return blocks


def _load_attachments(ids: list[str], images: ImageLookup | None) -> list[Image.Image]:
    if images is None:
        return []
    loaded: list[Image.Image] = []
    for asset_id in ids:
        data = images(asset_id)
        if data is None:
            logger.debug("Attachment %s not found, skipped", asset_id)
            continue
        try:
            loaded.append(decode_data_url(data).convert("RGB"))
        except (OSError, ValueError):
            logger.warning("Attachment %s could not be decoded, skipped", asset_id)
    return loaded


def _wrap(text: str, width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        lines.extend(textwrap.wrap(paragraph, width) or [""])
    return lines


def _printable(text: str, font: ImageFont.ImageFont | ImageFont.FreeTypeFont) -> str:
    """The bitmap fallback font only covers Latin-1."""
    if isinstance(font, ImageFont.FreeTypeFont):
        return text
    return text.encode("latin-1", "replace").decode("latin-1")


def _draw(blocks: list[_Block]) -> Image.Image:
    font = ImageFont.load_default()
    left, top, right, bottom = font.getbbox("Ag")
    line_h = (bottom - top) + _LINE_SPACING
    column = PAGE_WIDTH_PX - 2 * _MARGIN

    # First pass: measure.
    for block in blocks:
        if block.kind in ("heading", "text"):
            block.height = line_h * len(_wrap(block.text, _WRAP_CHARS)) + (
                _LINE_SPACING if block.kind == "heading" else 0
            )
        elif block.kind == "code":
            block.height = line_h * len(block.text.splitlines() or [""]) + 2 * _LINE_SPACING
        elif block.kind == "image" and block.image is not None:
            if block.image.width > column:
                ratio = column / block.image.width
                block.image = block.image.resize(
                    (column, max(1, round(block.image.height * ratio))),
                    Image.Resampling.LANCZOS,
                )
            block.height = block.image.height + _LINE_SPACING

    total = 2 * _MARGIN + sum(b.height for b in blocks)
    canvas = Image.new("RGB", (PAGE_WIDTH_PX, max(total, 1)), (255, 255, 255))
    draw = ImageDraw.Draw(canvas)

    # Second pass: paint.
    y = _MARGIN
    for block in blocks:
        if block.kind == "heading":
            for line in _wrap(block.text, _WRAP_CHARS):
                draw.text((_MARGIN, y), _printable(line, font), fill=_TEXT, font=font)
                y += line_h
            draw.line((_MARGIN, y, PAGE_WIDTH_PX - _MARGIN, y), fill=_MUTED)
            y += _LINE_SPACING
        elif block.kind == "text":
            for line in _wrap(block.text, _WRAP_CHARS):
                draw.text((_MARGIN, y), _printable(line, font), fill=_MUTED, font=font)
                y += line_h
        elif block.kind == "code":
            draw.rectangle((_MARGIN, y, PAGE_WIDTH_PX - _MARGIN, y + block.height), fill=_CODE_BG)
            y += _LINE_SPACING
            for line in block.text.splitlines() or [""]:
                draw.text((_MARGIN + _CODE_INDENT, y), _printable(line, font), fill=_TEXT, font=font)
                y += line_h
            y += _LINE_SPACING
        elif block.kind == "image" and block.image is not None:
            canvas.paste(block.image, (_MARGIN, y))
            y += block.height
        else:
            y += block.height
    return canvas
