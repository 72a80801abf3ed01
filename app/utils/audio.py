"""Audio payload utilities for transcription requests.

Audio arrives base64-encoded inside JSON, optionally as a ``data:`` URL.
Decoding is strict and the decoded size is capped before anything is
forwarded to the inference provider.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re

from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:[^;,]+(;[^;,]+)*;base64,", re.IGNORECASE)

# Content types whose subtype is not a usable file extension
_EXTENSION_OVERRIDES = {
    "audio/mpeg": "mp3",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/x-m4a": "m4a",
    "audio/mp4": "m4a",
}


def decode_audio_base64(data: str, *, max_bytes: int) -> bytes:
    """Decode a base64 audio payload, enforcing the size limit.

    Args:
        data: Base64 text, optionally prefixed with ``data:<type>;base64,``.
        max_bytes: Maximum decoded size.

    Returns:
        Decoded audio bytes.

    Raises:
        ValidationAppError: If the payload is not valid base64, is empty or
            exceeds ``max_bytes``.
    """
    payload = _DATA_URL_RE.sub("", data.strip(), count=1)
    payload = "".join(payload.split())

    # Reject early without decoding: 4 base64 chars carry 3 bytes
    if len(payload) // 4 * 3 > max_bytes + 2:
        logger.warning(
            "audio.rejected_by_length",
            extra={"encoded_chars": len(payload), "max_bytes": max_bytes},
        )
        raise ValidationAppError(
            code="audio_too_large",
            message=f"Audio too large. Maximum size: {max_bytes} bytes",
            details={"max_bytes": max_bytes},
        )

    try:
        audio = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationAppError(
            code="invalid_audio_encoding",
            message="audio_base64 is not valid base64",
        ) from exc

    if not audio:
        raise ValidationAppError(code="empty_audio", message="Audio payload is empty")

    if len(audio) > max_bytes:
        logger.warning(
            "audio.rejected_by_size",
            extra={"actual_bytes": len(audio), "max_bytes": max_bytes},
        )
        raise ValidationAppError(
            code="audio_too_large",
            message=f"Audio too large. Maximum size: {max_bytes} bytes",
            details={"max_bytes": max_bytes, "actual_bytes": len(audio)},
        )

    return audio


def extension_for_content_type(content_type: str, default: str = "webm") -> str:
    """Map an audio MIME type to a file extension.

    Examples:
        >>> extension_for_content_type("audio/webm;codecs=opus")
        'webm'
        >>> extension_for_content_type("audio/mpeg")
        'mp3'
    """
    mime = content_type.split(";")[0].strip().lower()
    if mime in _EXTENSION_OVERRIDES:
        return _EXTENSION_OVERRIDES[mime]
    _, _, subtype = mime.partition("/")
    return subtype or default
