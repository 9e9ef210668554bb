"""
Asset loader.

Decodes the uploaded photo/logo bytes and the generated base64 background into
Pillow images. Decodes run concurrently in worker threads and are joined
fail-fast: the first bad payload aborts the whole render.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from domain.errors import DecodeError

logger = logging.getLogger(__name__)

_DATA_URL_MARKER = ";base64,"


@dataclass(frozen=True)
class CardAssets:
    """Decoded images for one render. Optional assets are None when absent."""
    background: Image.Image
    photo: Optional[Image.Image] = None
    logo: Optional[Image.Image] = None


def decode_image(data: bytes, label: str = "image") -> Image.Image:
    """
    Decode raw image bytes into an RGBA image with EXIF orientation applied.

    Raises:
        DecodeError: if the bytes are empty or not a readable image.
    """
    if not data:
        raise DecodeError(f"{label}: empty image payload", user_message=_user_message(label))
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("[assets] failed to decode %s (%d bytes): %s", label, len(data), exc)
        raise DecodeError(f"{label}: {exc}", user_message=_user_message(label)) from exc


def decode_base64_image(payload: str | bytes, label: str = "background") -> Image.Image:
    """Decode a base64 payload (optionally a data: URL) into an RGBA image."""
    if isinstance(payload, bytes):
        payload = payload.decode("ascii", errors="replace")
    if _DATA_URL_MARKER in payload[:100]:
        payload = payload.split(_DATA_URL_MARKER, 1)[1]
    try:
        raw = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"{label}: invalid base64 payload", user_message=_user_message(label)) from exc
    return decode_image(raw, label)


def _user_message(label: str) -> str:
    names = {
        "photo": "la foto",
        "logo": "el logo",
        "background": "el fondo generado",
    }
    return f"No se pudo leer {names.get(label, 'la imagen')}. Usa un archivo PNG o JPEG válido."


async def _decode_optional(data: Optional[bytes], label: str) -> Optional[Image.Image]:
    if data is None:
        return None
    return await asyncio.to_thread(decode_image, data, label)


async def load_card_assets(
    background_b64: str | bytes,
    photo: Optional[bytes] = None,
    logo: Optional[bytes] = None,
) -> CardAssets:
    """
    Decode the background, photo and logo concurrently.

    All decodes must succeed; the first DecodeError propagates and no partial
    set of assets is returned.
    """
    background_img, photo_img, logo_img = await asyncio.gather(
        asyncio.to_thread(decode_base64_image, background_b64, "background"),
        _decode_optional(photo, "photo"),
        _decode_optional(logo, "logo"),
    )
    logger.debug(
        "[assets] decoded background=%s photo=%s logo=%s",
        background_img.size,
        photo_img.size if photo_img else None,
        logo_img.size if logo_img else None,
    )
    return CardAssets(background=background_img, photo=photo_img, logo=logo_img)
