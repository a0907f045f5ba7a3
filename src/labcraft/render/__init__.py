"""Turn stored entries into the regions the exporter consumes."""

from labcraft.render.bitmap import render_collection, render_entry
from labcraft.render.markup import PRINT_STYLES, entry_markup

__all__ = ["PRINT_STYLES", "entry_markup", "render_collection", "render_entry"]
