"""Domain models for the labcraft store."""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "python",
    "java",
    "javascript",
    "css",
    "sql",
    "c",
    "cpp",
    "plaintext",
)

THEMES: tuple[str, ...] = ("light", "dark", "system")

ROLES: tuple[str, ...] = ("admin", "viewer")


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch ms>_<9 random hex chars>``.

    Collisions are improbable, not impossible.
    """
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _pick(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    """Keep only keys that are fields of dataclass *cls*."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class Collection:
    id: str
    title: str
    subject: str
    created_at: str
    updated_at: str
    owner: str
    description: str | None = None
    entry_count: int | None = None  # derived at read time, never persisted

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("entry_count")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Collection:
        picked = _pick(cls, data)
        picked.pop("entry_count", None)
        return cls(**picked)


@dataclass
class Entry:
    id: str
    collection_id: str
    ordinal: int
    title: str
    created_at: str
    updated_at: str
    owner: str
    aim: str = ""
    theory: str = ""
    steps: str = ""
    code: str = ""
    language: str = "plaintext"
    attachments: list[str] = field(default_factory=list)
    conclusion: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entry:
        picked = _pick(cls, data)
        picked["ordinal"] = int(picked["ordinal"])
        picked["attachments"] = list(picked.get("attachments") or [])
        return cls(**picked)


@dataclass
class Draft:
    """Unsaved entry edit. Carries every content field except id and ordinal."""

    collection_id: str | None = None
    title: str = ""
    aim: str = ""
    theory: str = ""
    steps: str = ""
    code: str = ""
    language: str = "plaintext"
    attachments: list[str] = field(default_factory=list)
    conclusion: str = ""
    saved_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Draft:
        picked = _pick(cls, data)
        picked["attachments"] = list(picked.get("attachments") or [])
        return cls(**picked)


@dataclass
class Asset:
    id: str
    collection_id: str
    data: str  # data URL of the compressed image
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        return cls(**_pick(cls, data))


@dataclass
class Session:
    email: str
    role: str = "admin"

    @property
    def can_edit(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        return cls(**_pick(cls, data))
