"""Compressed image attachments."""

from labcraft.assets.compress import compress_image
from labcraft.assets.store import AssetDecodeError, AssetStore, AssetTypeError, UploadFile

__all__ = ["AssetDecodeError", "AssetStore", "AssetTypeError", "UploadFile", "compress_image"]
