"""Draft autosave: coalesce rapid edits into one persisted snapshot.

State machine::

    IDLE --save_draft()--> PENDING --quiet period--> SAVED
      ^                      |  ^                      |
      |                      +--+ save_draft()         |
      +------------------- clear_draft() --------------+

Every ``save_draft()`` cancels the pending timer and arms a new one, so at
most one write happens per quiet period and it holds the last edit.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from enum import Enum
from typing import Any

from labcraft.db import kv
from labcraft.db.kv import KeyValueStore
from labcraft.db.models import Draft, now_iso
from labcraft.draft.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0


class DraftState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVED = "saved"


class DraftAutosave:
    """Owns the single pending-timer handle and the persisted draft record."""

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: Scheduler,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], str] = now_iso,
        on_saved: Callable[[Draft], None] | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._debounce = debounce_seconds
        self._clock = clock
        self._on_saved = on_saved
        self._lock = threading.RLock()
        self._handle: TimerHandle | None = None
        self._pending: Draft | None = None
        self._generation = 0

        self.state = DraftState.IDLE
        self.draft: Draft | None = None
        self.last_saved: str | None = None

    @property
    def has_draft(self) -> bool:
        return self.draft is not None

    @property
    def is_saving(self) -> bool:
        return self.state is DraftState.PENDING

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_draft(self, data: Draft | Mapping[str, Any]) -> None:
        """Buffer *data* and (re)arm the debounce timer."""
        draft = data if isinstance(data, Draft) else Draft.from_dict(dict(data))
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            self._pending = draft
            self.state = DraftState.PENDING
            self._handle = self._scheduler.call_later(
                self._debounce, lambda: self._fire(generation)
            )

    def flush(self) -> bool:
        """Write a pending draft now. Returns False if nothing was pending."""
        with self._lock:
            pending = self._pending
            if pending is None:
                return False
            self._cancel_pending()
            self._write(pending)
            return True

    def clear_draft(self) -> None:
        """Drop any pending edit and remove the stored draft."""
        with self._lock:
            self._cancel_pending()
            self._store.remove(kv.DRAFT)
            self.draft = None
            self.last_saved = None
            self.state = DraftState.IDLE

    def close(self) -> None:
        """Cancel a pending save without writing it."""
        with self._lock:
            self._cancel_pending()
            if self.state is DraftState.PENDING:
                self.state = DraftState.SAVED if self.draft else DraftState.IDLE

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_draft(self) -> Draft | None:
        """Return the stored draft verbatim, or None if absent or unreadable.

        Never modifies storage.
        """
        value = self._store.get_value(kv.DRAFT)
        if value is None:
            return None
        try:
            return Draft.from_dict(value)
        except (TypeError, AttributeError):
            return None

    def load_for_collection(self, collection_id: str | None = None) -> Draft | None:
        """Load the stored draft into this session if it belongs to *collection_id*.

        With no *collection_id* any draft matches. Unreadable data is removed
        from storage and reported as absent.
        """
        raw = self._store.get_raw(kv.DRAFT)
        if raw is None:
            return None
        try:
            draft = Draft.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError):
            logger.warning("Removing unreadable draft record")
            self._store.remove(kv.DRAFT)
            return None

        if collection_id and draft.collection_id != collection_id:
            return None

        with self._lock:
            self.draft = draft
            self.last_saved = draft.saved_at
            if self.state is DraftState.IDLE:
                self.state = DraftState.SAVED
        return draft

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A newer save_draft() superseded this timer.
            if generation != self._generation or self._pending is None:
                return
            self._handle = None
            self._write(self._pending)

    def _write(self, pending: Draft) -> None:
        draft = replace(pending, saved_at=self._clock())
        self._store.set_value(kv.DRAFT, draft.to_dict())
        self._pending = None
        self.draft = draft
        self.last_saved = draft.saved_at
        self.state = DraftState.SAVED
        logger.debug("Draft saved at %s", draft.saved_at)
        if self._on_saved is not None:
            self._on_saved(draft)

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None
        self._generation += 1
