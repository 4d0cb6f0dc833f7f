from __future__ import annotations

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError

from ..core.enums import BiometricErrorKind
from ..core.exceptions import BiometricError
from .config import ImageRules

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


def prepare_image_base64(payload: str, rules: ImageRules) -> str:
    """Validate a captured frame locally and return clean base64.

    Rejects empty/undecodable data, oversized images and formats outside
    ``rules.allowed_formats`` before any network round-trip.
    """

    cleaned = _DATA_URL_PREFIX.sub("", (payload or "").strip())
    if not cleaned:
        raise BiometricError.of(BiometricErrorKind.IMAGE_LOAD_ERROR, "imagen vacía")

    try:
        raw = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError):
        raise BiometricError.of(BiometricErrorKind.IMAGE_LOAD_ERROR, "base64 inválido")

    if len(raw) > rules.max_bytes:
        raise BiometricError.of(
            BiometricErrorKind.IMAGE_LOAD_ERROR,
            f"la imagen supera {rules.max_size_mb:g} MB",
        )

    try:
        with Image.open(io.BytesIO(raw)) as img:
            fmt = (img.format or "").lower()
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise BiometricError.of(BiometricErrorKind.IMAGE_LOAD_ERROR, "formato de imagen no reconocido")

    if fmt not in rules.allowed_formats:
        raise BiometricError.of(BiometricErrorKind.IMAGE_LOAD_ERROR, f"formato no permitido ({fmt})")

    return cleaned
