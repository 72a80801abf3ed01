"""Named regular expressions available to pattern rules.

The table is compiled once at import and never mutated. Patterns are
applied with full-match semantics.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from app.core.errors import ValidationConfigError

PATTERNS: Mapping[str, re.Pattern[str]] = MappingProxyType(
    {
        # Printable ASCII punctuation, letters, digits and whitespace
        "safe_text": re.compile(r"[a-zA-Z0-9\s.,!?@#$%^&*()_\-+=\[\]{}|;:'\"<>/\\`~]+"),
        "email": re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+"),
        # Identity-provider user ids
        "uid": re.compile(r"[a-zA-Z0-9\-_]{20,28}"),
        # Hub model ids: "name" or "owner/name", e.g. "black-forest-labs/FLUX.1-dev"
        "model_name": re.compile(r"[a-zA-Z0-9][a-zA-Z0-9._\-]*(/[a-zA-Z0-9][a-zA-Z0-9._\-]*)?"),
        "filename": re.compile(r"[a-zA-Z0-9\-_.]+"),
        # type/subtype with optional parameters, e.g. "audio/webm;codecs=opus"
        "mime_type": re.compile(r"[a-zA-Z0-9.+\-]+/[a-zA-Z0-9.+\-]+(;\s*[a-zA-Z0-9.+\-]+=[a-zA-Z0-9.+\-\"]+)*"),
    }
)


def get_pattern(name: str) -> re.Pattern[str]:
    """Look up a compiled pattern by name.

    Raises:
        ValidationConfigError: If no pattern is registered under ``name``.
    """
    try:
        return PATTERNS[name]
    except KeyError:
        raise ValidationConfigError(
            code="unknown_pattern",
            message=f"Unknown pattern: {name}",
            details={"hint": f"Known patterns: {', '.join(sorted(PATTERNS))}"},
        ) from None


def matches(name: str, value: str) -> bool:
    return get_pattern(name).fullmatch(value) is not None
