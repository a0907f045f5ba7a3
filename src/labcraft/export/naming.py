"""Export file names."""

from __future__ import annotations

import re

from labcraft.db.models import Collection, Entry

_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


def sanitize(text: str) -> str:
    """Replace every non-alphanumeric ASCII character with ``_``."""
    return _UNSAFE.sub("_", text)


def entry_filename(entry: Entry, collection: Collection) -> str:
    """``<subject>_Entry_<ordinal>_<title>`` without extension."""
    return f"{sanitize(collection.subject)}_Entry_{entry.ordinal}_{sanitize(entry.title)}"


def collection_filename(collection: Collection) -> str:
    return f"{sanitize(collection.subject)}_Complete_Collection"
