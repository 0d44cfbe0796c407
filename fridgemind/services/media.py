"""
FridgeMind API — Base64 Media Decoding
========================================

What:  Turns the base64 strings clients send (raw or `data:` URLs) into bytes
       plus a MIME type.
Why:   Scan, eating-out and receipt uploads all arrive as JSON strings; the
       model needs inline bytes and the storage helper needs a file body.
How:   Strip an optional data-URL prefix, drop whitespace, strict-decode,
       enforce the configured size cap.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fridgemind.config import settings
from fridgemind.exceptions import ValidationError

_DATA_URL_PREFIX = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,")


@dataclass(frozen=True)
class InlineMedia:
    """Decoded upload ready to send to the model as an inline part."""
    mime_type: str
    data: bytes

    def as_part(self) -> Dict[str, Any]:
        return {"mime_type": self.mime_type, "data": self.data}


def strip_data_url(payload: str) -> str:
    """Remove a leading `data:<mime>;base64,` prefix if present."""
    return _DATA_URL_PREFIX.sub("", payload, count=1)


def decode_base64_media(
    payload: str,
    default_mime: str = "image/jpeg",
    field: str = "image",
    max_bytes: Optional[int] = None,
) -> InlineMedia:
    """
    Decode a client-supplied base64 payload.

    The data-URL MIME type wins over `default_mime` when present.

    Raises:
        ValidationError: Not valid base64, empty, or larger than the cap.
    """
    mime_type = default_mime
    match = _DATA_URL_PREFIX.match(payload)
    if match:
        mime_type = match.group("mime")
        payload = payload[match.end():]

    compact = "".join(payload.split())
    try:
        data = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            message=f"Invalid {field} data",
            field=field,
            context={"reason": str(e)},
        ) from e

    if not data:
        raise ValidationError(message=f"Invalid {field} data", field=field)

    limit = max_bytes or settings.max_image_bytes
    if len(data) > limit:
        raise ValidationError(
            message=f"{field.capitalize()} too large (max {limit // (1024 * 1024)}MB)",
            field=field,
            context={"size": len(data), "max": limit},
        )

    return InlineMedia(mime_type=mime_type, data=data)
