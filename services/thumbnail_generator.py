"""Thumbnail generator service.

Small Pillow wrapper that turns a generated image (base64 payload from the
image provider) into a PNG thumbnail stored alongside the game image. The
thumbnail fits within ``max_size`` and keeps the aspect ratio.

Example:
    tg = ThumbnailGenerator(max_size=(256, 256))
    png_bytes = tg.thumbnail_png(b64_payload)
"""
from __future__ import annotations

import base64
import binascii
import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError


class ThumbnailGenerator:
    """Generate PNG thumbnails from base64-encoded images.

    Args:
        max_size: Maximum width and height for the thumbnail. Defaults to (256, 256).
        background: Color used to flatten transparent images. Defaults to white.
    """

    def __init__(self, max_size: Tuple[int, int] = (256, 256), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def thumbnail_png(self, data: str | bytes) -> bytes:
        """Return raw PNG thumbnail bytes for base64 image data.

        Raises:
            ValueError: If the data is not base64 or not a supported image.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        if data.startswith(b"data:"):
            data = data.split(b",", 1)[-1]

        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Invalid base64 data provided") from exc

        try:
            src = Image.open(io.BytesIO(raw))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Decoded bytes are not a supported image format") from exc

        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        flattened = Image.new("RGB", src.size, self.background)
        flattened.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        flattened.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
