"""Text sanitization applied before input is forwarded or persisted."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_JS_URI_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
# C0 controls except tab, newline and carriage return, plus DEL
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class SanitizeOptions:
    """Toggles for each sanitization stage.

    Attributes:
        max_length: Hard cap applied last; 0 disables truncation.
        remove_html: Strip ``<...>`` spans.
        remove_scripts: Remove ``javascript:`` URIs and ``on*=`` handler attributes.
        remove_control_chars: Remove C0 control characters and DEL.
        normalize_whitespace: Collapse whitespace runs to a single space.
        trim: Strip leading and trailing whitespace.
    """

    max_length: int = 10_000
    remove_html: bool = True
    remove_scripts: bool = True
    remove_control_chars: bool = True
    normalize_whitespace: bool = True
    trim: bool = True


DEFAULT_OPTIONS = SanitizeOptions()


def _strip_markup(text: str, options: SanitizeOptions) -> str:
    if options.remove_html:
        text = _HTML_TAG_RE.sub("", text)
    if options.remove_scripts:
        text = _JS_URI_RE.sub("", text)
        text = _EVENT_HANDLER_RE.sub("", text)
    if options.remove_control_chars:
        text = _CONTROL_CHARS_RE.sub("", text)
    return text


def sanitize(text: Any, options: SanitizeOptions = DEFAULT_OPTIONS) -> Any:
    """Sanitize a string; non-string values are returned unchanged.

    Stages run in a fixed order: tag stripping, script neutralization,
    control-character removal, whitespace collapsing, trimming, truncation.
    The first three are repeated until the text stops changing, since a
    removal can splice fragments into a new match (``"javajavascript:script:"``).
    Truncation runs last so the length cap always holds.

    Tag stripping is a regex, not an HTML parser: malformed or nested markup
    is removed on a best-effort basis only.

    Examples:
        >>> sanitize("<script>alert(1)</script>Hello  world")
        'alert(1)Hello world'
    """
    if not isinstance(text, str):
        return text

    previous = None
    sanitized = text
    while sanitized != previous:
        previous = sanitized
        sanitized = _strip_markup(sanitized, options)

    if options.normalize_whitespace:
        sanitized = _WHITESPACE_RE.sub(" ", sanitized)

    if options.trim:
        sanitized = sanitized.strip()

    if options.max_length > 0 and len(sanitized) > options.max_length:
        sanitized = sanitized[: options.max_length]
        if options.trim:
            # A cut can land right after a space
            sanitized = sanitized.rstrip()

    return sanitized
