"""Persisted session identity and theme preference.

Credential checks happen outside this package; this module only remembers
who is signed in and which theme they picked.
"""

from __future__ import annotations

import logging

from labcraft.db import kv
from labcraft.db.kv import KeyValueStore
from labcraft.db.models import ROLES, THEMES, Session

logger = logging.getLogger(__name__)

DEFAULT_THEME = "system"


class SessionStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def current(self) -> Session | None:
        """Return the signed-in session, or None (also for unreadable data)."""
        value = self._store.get_value(kv.SESSION)
        if value is None:
            return None
        try:
            session = Session.from_dict(value)
        except (TypeError, AttributeError):
            logger.warning("Ignoring unreadable session record")
            return None
        if session.role not in ROLES:
            logger.warning("Ignoring session with unknown role '%s'", session.role)
            return None
        return session

    def sign_in(self, email: str, role: str = "admin") -> Session:
        if role not in ROLES:
            raise ValueError(f"Unknown role '{role}'. Choose one of: {', '.join(ROLES)}")
        session = Session(email=email, role=role)
        self._store.set_value(kv.SESSION, session.to_dict())
        return session

    def sign_out(self) -> None:
        self._store.remove(kv.SESSION)

    def owner(self, fallback: str) -> str:
        """Owner identity for new records: the session email, else *fallback*."""
        session = self.current()
        return session.email if session else fallback

    def get_theme(self) -> str:
        theme = self._store.get_value(kv.THEME)
        return theme if theme in THEMES else DEFAULT_THEME

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}'. Choose one of: {', '.join(THEMES)}")
        self._store.set_value(kv.THEME, theme)
        return theme
