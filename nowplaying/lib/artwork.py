# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Inline image payloads for the UI.

Both artwork sources (player DB and Cover Art Archive) hand their raw bytes
to ``encode_image`` so the UI gets the same ``data:`` URI shape regardless
of where the picture came from.
"""

import base64
import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

log = logging.getLogger(__name__)

DEFAULT_MIME = "image/jpeg"


def sniff_mime(image_bytes: bytes) -> str:
    """Best-effort MIME type from the image header, ``image/jpeg`` if unknown."""
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            mime = Image.MIME.get(image.format or "")
    except (UnidentifiedImageError, OSError) as e:
        log.debug("Could not identify image (%d bytes): %s", len(image_bytes), e)
        return DEFAULT_MIME
    return mime or DEFAULT_MIME


def encode_image(image_bytes: bytes, content_type: str | None = None) -> str:
    """Encode raw bytes as ``data:<mime>;base64,<payload>``.

    An ``image/*`` *content_type* from the source is trusted as-is; anything
    else is sniffed with Pillow.
    """
    mime = None
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if not mime.startswith("image/"):
            mime = None
    if mime is None:
        mime = sniff_mime(image_bytes)
    payload = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime};base64,{payload}"
