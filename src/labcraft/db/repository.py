"""Repository for collections and entries on top of the key-value substrate.

Each namespace is read, modified and written back whole on every mutation.
Multi-step operations (cascading delete, reorder) are sequences of such
writes with no rollback: a crash part-way leaves partial state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from labcraft.db import kv
from labcraft.db.kv import KeyValueStore
from labcraft.db.models import SUPPORTED_LANGUAGES, Collection, Entry, new_id, now_iso
from labcraft.db.ordinal import next_ordinal, renumber

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "current_user"

_ENTRY_CONTENT_FIELDS = frozenset(
    ["title", "aim", "theory", "steps", "code", "language", "attachments", "conclusion"]
)
_COLLECTION_CONTENT_FIELDS = frozenset(["title", "subject", "description"])


class CollectionNotFoundError(LookupError):
    """Raised when an entry is created for a collection that does not exist."""


class Repository:
    """Data access layer for collections and entries.

    Wraps a ``KeyValueStore`` owned by the caller. *clock* returns the
    timestamp string stamped on records; *default_owner* is used when a
    create call passes no explicit owner.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Callable[[], str] = now_iso,
        default_owner: str = DEFAULT_OWNER,
    ) -> None:
        self._store = store
        self._clock = clock
        self.default_owner = default_owner

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def list_collections(self) -> list[Collection]:
        """Return all collections in insertion order with ``entry_count`` filled."""
        collections = self._load_collections()
        counts: dict[str, int] = {}
        for entry in self._load_entries():
            counts[entry.collection_id] = counts.get(entry.collection_id, 0) + 1
        for c in collections:
            c.entry_count = counts.get(c.id, 0)
        return collections

    def get_collection(self, collection_id: str) -> Collection | None:
        return next((c for c in self.list_collections() if c.id == collection_id), None)

    def create_collection(
        self,
        title: str,
        subject: str,
        description: str | None = None,
        *,
        owner: str | None = None,
    ) -> Collection:
        """Create and persist a new collection with a fresh id and timestamps."""
        stamp = self._clock()
        collection = Collection(
            id=new_id("collection"),
            title=title,
            subject=subject,
            description=description,
            created_at=stamp,
            updated_at=stamp,
            owner=owner or self.default_owner,
        )
        saved = self.save_collection(collection)
        saved.entry_count = 0
        return saved

    def update_collection(self, collection_id: str, **changes: Any) -> Collection | None:
        """Apply *changes* to an existing collection. Returns None if it does not exist."""
        _reject_unknown(changes, _COLLECTION_CONTENT_FIELDS)
        existing = next((c for c in self._load_collections() if c.id == collection_id), None)
        if existing is None:
            return None
        return self.save_collection(replace(existing, **changes))

    def save_collection(self, collection: Collection) -> Collection:
        """Insert *collection*, or overwrite the record with the same id.

        Overwrites stamp ``updated_at`` with the current time. Returns the
        record as stored.
        """
        collections = self._load_collections()
        stored = replace(collection, entry_count=None)
        for i, existing in enumerate(collections):
            if existing.id == collection.id:
                stored.updated_at = self._clock()
                collections[i] = stored
                break
        else:
            collections.append(stored)
        self._store.set(kv.COLLECTIONS, [c.to_dict() for c in collections])
        return stored

    def delete_collection(self, collection_id: str) -> None:
        """Delete a collection and every entry that belongs to it.

        Two sequential writes; assets of the collection are left in place.
        """
        collections = [c for c in self._load_collections() if c.id != collection_id]
        self._store.set(kv.COLLECTIONS, [c.to_dict() for c in collections])

        entries = [e for e in self._load_entries() if e.collection_id != collection_id]
        self._store.set(kv.ENTRIES, [e.to_dict() for e in entries])
        logger.debug("Deleted collection %s and its entries", collection_id)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def list_entries(self) -> list[Entry]:
        return self._load_entries()

    def list_entries_by_collection(self, collection_id: str) -> list[Entry]:
        """Return the entries of *collection_id* sorted by ascending ordinal."""
        entries = [e for e in self._load_entries() if e.collection_id == collection_id]
        return sorted(entries, key=lambda e: e.ordinal)

    def get_entry(self, entry_id: str) -> Entry | None:
        return next((e for e in self._load_entries() if e.id == entry_id), None)

    def create_entry(
        self,
        collection_id: str,
        title: str,
        *,
        owner: str | None = None,
        **content: Any,
    ) -> Entry:
        """Create an entry in *collection_id* with the next free ordinal.

        Args:
            collection_id: Parent collection; must exist.
            title: Entry title.
            owner: Owner identity; defaults to the repository's default owner.
            **content: Optional content fields (aim, theory, steps, code,
                language, attachments, conclusion).

        Raises:
            CollectionNotFoundError: If *collection_id* does not exist.
            ValueError: On unknown content fields or unsupported language.
        """
        _reject_unknown(content, _ENTRY_CONTENT_FIELDS)
        _check_language(content.get("language", "plaintext"))
        if not any(c.id == collection_id for c in self._load_collections()):
            raise CollectionNotFoundError(f"Collection '{collection_id}' does not exist")

        existing = self.list_entries_by_collection(collection_id)
        stamp = self._clock()
        entry = Entry(
            id=new_id("entry"),
            collection_id=collection_id,
            ordinal=next_ordinal(e.ordinal for e in existing),
            title=title,
            created_at=stamp,
            updated_at=stamp,
            owner=owner or self.default_owner,
            **content,
        )
        return self.save_entry(entry)

    def update_entry(self, entry_id: str, **changes: Any) -> Entry | None:
        """Apply content *changes* to an existing entry. Returns None if it does not exist."""
        _reject_unknown(changes, _ENTRY_CONTENT_FIELDS)
        if "language" in changes:
            _check_language(changes["language"])
        existing = self.get_entry(entry_id)
        if existing is None:
            return None
        return self.save_entry(replace(existing, **changes))

    def save_entry(self, entry: Entry) -> Entry:
        """Insert *entry*, or overwrite the record with the same id (stamping ``updated_at``)."""
        entries = self._load_entries()
        stored = replace(entry)
        for i, existing in enumerate(entries):
            if existing.id == entry.id:
                stored.updated_at = self._clock()
                entries[i] = stored
                break
        else:
            entries.append(stored)
        self._store.set(kv.ENTRIES, [e.to_dict() for e in entries])
        return stored

    def delete_entry(self, entry_id: str) -> None:
        entries = [e for e in self._load_entries() if e.id != entry_id]
        self._store.set(kv.ENTRIES, [e.to_dict() for e in entries])

    def reorder_entries(self, collection_id: str, ordered_ids: list[str]) -> list[Entry]:
        """Renumber entries of *collection_id* by their position in *ordered_ids*.

        Each renumbered entry is saved separately; ids outside the collection
        are skipped. Returns the renumbered entries in the given order.
        """
        reordered = renumber(self.list_entries_by_collection(collection_id), ordered_ids)
        return [self.save_entry(e) for e in reordered]

    def search_entries(self, collection_id: str, query: str) -> list[Entry]:
        """Case-insensitive substring search over title, aim and theory.

        A blank query returns every entry of the collection.
        """
        entries = self.list_entries_by_collection(collection_id)
        needle = query.strip().lower()
        if not needle:
            return entries
        return [
            e
            for e in entries
            if needle in e.title.lower() or needle in e.aim.lower() or needle in e.theory.lower()
        ]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_collections(self) -> list[Collection]:
        return _parse_records(self._store.get(kv.COLLECTIONS), Collection.from_dict, kv.COLLECTIONS)

    def _load_entries(self) -> list[Entry]:
        return _parse_records(self._store.get(kv.ENTRIES), Entry.from_dict, kv.ENTRIES)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _parse_records(raw: list[Any], parse: Callable[[dict[str, Any]], Any], namespace: str) -> list:
    """Parse stored dicts, skipping (and logging) records that do not fit the model."""
    records = []
    for item in raw:
        try:
            records.append(parse(item))
        except (TypeError, KeyError, ValueError, AttributeError):
            logger.warning("Skipping malformed record in '%s': %r", namespace, item)
    return records


def _reject_unknown(changes: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(unknown)}")


def _check_language(language: str) -> None:
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language '{language}'. "
            f"Choose one of: {', '.join(SUPPORTED_LANGUAGES)}"
        )
