"""Client-side style image compression via Pillow."""

from __future__ import annotations

import base64
from io import BytesIO

from PIL import Image

DEFAULT_MAX_WIDTH = 1200
DEFAULT_QUALITY = 0.8

_DATA_URL_PREFIX = "data:image/jpeg;base64,"


def compress_image(
    data: bytes,
    max_width: int = DEFAULT_MAX_WIDTH,
    quality: float = DEFAULT_QUALITY,
) -> str:
    """Downsize *data* to at most *max_width* pixels wide and re-encode as JPEG.

    Height is scaled to preserve the aspect ratio; images already narrower
    than *max_width* keep their size.

    Args:
        data: Encoded source image (any format Pillow can read).
        max_width: Maximum output width in pixels.
        quality: JPEG quality factor in (0, 1].

    Returns:
        ``data:image/jpeg;base64,...`` string.

    Raises:
        PIL.UnidentifiedImageError: If *data* is not a decodable image.
    """
    if max_width < 1:
        raise ValueError("max_width must be >= 1")
    if not 0.0 < quality <= 1.0:
        raise ValueError("quality must be in (0.0, 1.0]")

    with Image.open(BytesIO(data)) as img:
        img.load()
        width, height = img.size
        if width > max_width:
            height = max(1, round(height * max_width / width))
            width = max_width
            img = img.resize((width, height), Image.Resampling.LANCZOS)
        rgb = _flatten(img)

    out = BytesIO()
    rgb.save(out, format="JPEG", quality=round(quality * 100))
    return _DATA_URL_PREFIX + base64.b64encode(out.getvalue()).decode("ascii")


def decode_data_url(data_url: str) -> Image.Image:
    """Decode a ``data:<mime>;base64,...`` string back into a Pillow image."""
    payload = data_url.split(",", 1)[-1]
    img = Image.open(BytesIO(base64.b64decode(payload)))
    img.load()
    return img


def _flatten(img: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any transparency onto white."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")
