"""Tests for base64 audio decoding."""

import base64

import pytest

from app.core.errors import ValidationAppError
from app.utils.audio import decode_audio_base64, extension_for_content_type

AUDIO = b"RIFF$\x00\x00\x00WAVEfmt "


def test_decodes_plain_base64():
    assert decode_audio_base64(base64.b64encode(AUDIO).decode(), max_bytes=1024) == AUDIO


def test_strips_data_url_prefix():
    payload = "data:audio/webm;codecs=opus;base64," + base64.b64encode(AUDIO).decode()

    assert decode_audio_base64(payload, max_bytes=1024) == AUDIO


def test_ignores_embedded_whitespace():
    encoded = base64.b64encode(AUDIO).decode()
    wrapped = "\n".join(encoded[i : i + 4] for i in range(0, len(encoded), 4))

    assert decode_audio_base64(wrapped, max_bytes=1024) == AUDIO


@pytest.mark.parametrize("payload", ["not base64!!", "abc", "data:audio/wav;base64,%%%%"])
def test_invalid_encoding(payload: str):
    with pytest.raises(ValidationAppError) as exc_info:
        decode_audio_base64(payload, max_bytes=1024)
    assert exc_info.value.code == "invalid_audio_encoding"


def test_empty_audio():
    with pytest.raises(ValidationAppError) as exc_info:
        decode_audio_base64("data:audio/wav;base64,", max_bytes=1024)
    assert exc_info.value.code == "empty_audio"


def test_size_limit_on_decoded_bytes():
    payload = base64.b64encode(b"\x00" * 11).decode()

    assert len(decode_audio_base64(payload, max_bytes=11)) == 11
    with pytest.raises(ValidationAppError) as exc_info:
        decode_audio_base64(payload, max_bytes=10)

    assert exc_info.value.code == "audio_too_large"
    assert exc_info.value.details["actual_bytes"] == 11


def test_oversized_payload_rejected_before_decoding():
    payload = "A" * 4000

    with pytest.raises(ValidationAppError) as exc_info:
        decode_audio_base64(payload, max_bytes=100)

    assert exc_info.value.code == "audio_too_large"
    assert "actual_bytes" not in exc_info.value.details


@pytest.mark.parametrize(
    ("content_type", "extension"),
    [
        ("audio/webm;codecs=opus", "webm"),
        ("audio/mpeg", "mp3"),
        ("audio/x-wav", "wav"),
        ("AUDIO/OGG", "ogg"),
        ("audio/mp4", "m4a"),
        ("audio", "webm"),
    ],
)
def test_extension_for_content_type(content_type: str, extension: str):
    assert extension_for_content_type(content_type) == extension
