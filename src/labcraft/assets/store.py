"""Asset store: compressed images kept in the ``images`` namespace."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from labcraft.assets.compress import DEFAULT_MAX_WIDTH, DEFAULT_QUALITY, compress_image
from labcraft.db import kv
from labcraft.db.kv import KeyValueStore
from labcraft.db.models import Asset, new_id, now_iso

logger = logging.getLogger(__name__)


class AssetTypeError(ValueError):
    """Raised when an upload does not declare an image content type."""


class AssetDecodeError(ValueError):
    """Raised when an upload claims to be an image but cannot be decoded."""


@dataclass
class UploadFile:
    """A file handed to the store for upload."""

    name: str
    content_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path | str) -> UploadFile:
        """Read *path* and guess its content type from the extension."""
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or "application/octet-stream",
            data=path.read_bytes(),
        )


class AssetStore:
    """Owns asset records. Entries reference assets by id only."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        max_width: int = DEFAULT_MAX_WIDTH,
        quality: float = DEFAULT_QUALITY,
        clock: Callable[[], str] = now_iso,
    ) -> None:
        self._store = store
        self.max_width = max_width
        self.quality = quality
        self._clock = clock

    def upload(self, collection_id: str, file: UploadFile) -> Asset:
        """Compress and persist one image.

        Raises:
            AssetTypeError: If ``file.content_type`` is not ``image/*``.
            AssetDecodeError: If the bytes are not a readable image.
        """
        if not file.content_type.startswith("image/"):
            raise AssetTypeError(f"Only image files are allowed: '{file.name}' is {file.content_type}")

        try:
            encoded = compress_image(file.data, self.max_width, self.quality)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise AssetDecodeError(f"Could not decode image '{file.name}': {exc}") from exc

        asset = Asset(
            id=new_id(collection_id),
            collection_id=collection_id,
            data=encoded,
            created_at=self._clock(),
        )
        records = self._store.get(kv.IMAGES)
        records.append(asset.to_dict())
        self._store.set(kv.IMAGES, records)
        logger.debug("Stored asset %s (%d bytes encoded)", asset.id, len(encoded))
        return asset

    def upload_many(self, collection_id: str, files: Iterable[UploadFile]) -> list[Asset]:
        """Upload *files* one at a time, in order.

        A failing file is logged and skipped; the rest still run. The result
        holds only successful uploads, in input order.
        """
        results: list[Asset] = []
        for file in files:
            try:
                results.append(self.upload(collection_id, file))
            except (ValueError, OSError) as exc:
                logger.warning("Failed to upload %s: %s", file.name, exc)
        return results

    def get(self, asset_id: str) -> str | None:
        """Return the encoded data of *asset_id*, or None."""
        for record in self._store.get(kv.IMAGES):
            if isinstance(record, dict) and record.get("id") == asset_id:
                return record.get("data")
        return None

    def list_by_collection(self, collection_id: str) -> list[Asset]:
        assets: list[Asset] = []
        for record in self._store.get(kv.IMAGES):
            try:
                asset = Asset.from_dict(record)
            except (TypeError, AttributeError):
                continue
            if asset.collection_id == collection_id:
                assets.append(asset)
        return assets

    def delete(self, asset_id: str) -> bool:
        """Remove *asset_id*. Returns False instead of raising on storage errors."""
        try:
            records = [
                r for r in self._store.get(kv.IMAGES)
                if not (isinstance(r, dict) and r.get("id") == asset_id)
            ]
            self._store.set(kv.IMAGES, records)
            return True
        except Exception:
            logger.exception("Failed to delete asset %s", asset_id)
            return False

    def purge_collection_assets(self, collection_id: str) -> int:
        """Delete every asset of *collection_id*. Returns the number removed.

        Deleting a collection does not call this; it is an explicit cleanup.
        """
        records = self._store.get(kv.IMAGES)
        kept = [
            r for r in records
            if not (isinstance(r, dict) and r.get("collection_id") == collection_id)
        ]
        self._store.set(kv.IMAGES, kept)
        return len(records) - len(kept)
