"""Ordinal assignment for entries within a collection."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from labcraft.db.models import Entry


def next_ordinal(existing: Iterable[int]) -> int:
    """Return ``max(existing) + 1``, or 1 when *existing* is empty.

    Gaps are not filled: ordinals {1, 2, 5} yield 6.
    """
    return max(existing, default=0) + 1


def renumber(entries: list[Entry], ordered_ids: list[str]) -> list[Entry]:
    """Return copies of *entries* renumbered by their position in *ordered_ids*.

    The id at 1-based position i gets ordinal i. Ids that do not belong to
    *entries* are skipped but still consume their position. Entries not named
    in *ordered_ids* are left out of the result.
    """
    by_id = {e.id: e for e in entries}
    result: list[Entry] = []
    for position, entry_id in enumerate(ordered_ids, start=1):
        entry = by_id.get(entry_id)
        if entry is None:
            continue
        result.append(replace(entry, ordinal=position))
    return result
