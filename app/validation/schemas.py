"""Schema registry and the request schemas for each inference feature."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Sequence

from app.core.errors import ValidationConfigError
from app.validation.rules import (
    ArrayRule,
    CustomResult,
    CustomRule,
    NumberRule,
    ObjectRule,
    PatternRule,
    Required,
    Rule,
    SanitizeRule,
    StringRule,
)
from app.validation.sanitizer import SanitizeOptions

Schema = Mapping[str, tuple[Rule, ...]]

CHAT_ROLES = ("user", "assistant", "system")


class SchemaRegistry:
    """Named schemas, read-only once frozen.

    Schemas are registered at import time, then the registry is frozen; any
    later registration is a programming error.
    """

    def __init__(self) -> None:
        self._schemas: dict[str, Schema] = {}
        self._frozen = False

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def register(self, name: str, fields: Mapping[str, Sequence[Rule]]) -> None:
        if self._frozen:
            raise ValidationConfigError(
                code="schema_registry_frozen",
                message=f"Cannot register schema '{name}' after startup",
            )
        if name in self._schemas:
            raise ValidationConfigError(
                code="duplicate_schema",
                message=f"Schema already registered: {name}",
            )
        self._schemas[name] = MappingProxyType(
            {field_name: tuple(rules) for field_name, rules in fields.items()}
        )

    def freeze(self) -> None:
        self._frozen = True

    def get(self, name: str) -> Schema:
        try:
            return self._schemas[name]
        except KeyError:
            raise ValidationConfigError(
                code="unknown_schema",
                message=f"Unknown schema: {name}",
                details={"schema": name},
            ) from None


def _model_rules(name: str = "model") -> tuple[Rule, ...]:
    return (
        StringRule(max_length=100, name=name),
        PatternRule(pattern="model_name", name=name),
    )


def _valid_chat_messages(messages: Any) -> CustomResult:
    if not isinstance(messages, (list, tuple)):
        # Shape errors are reported by the array rule
        return CustomResult(True)
    for index, message in enumerate(messages):
        if not isinstance(message, Mapping):
            return CustomResult(False, f"messages[{index}] must be an object")
        if not isinstance(message.get("role"), str) or not isinstance(message.get("content"), str):
            return CustomResult(False, "Messages must have role and content fields")
        if message["role"] not in CHAT_ROLES:
            return CustomResult(
                False, f"messages[{index}].role must be one of: {', '.join(CHAT_ROLES)}"
            )
    return CustomResult(True)


def _is_audio_type(content_type: Any) -> bool:
    return isinstance(content_type, str) and content_type.lower().startswith("audio/")


def _build_default_registry() -> SchemaRegistry:
    registry = SchemaRegistry()

    registry.register(
        "image_generation",
        {
            "prompt": [
                Required(name="prompt"),
                StringRule(max_length=1000, name="prompt"),
                SanitizeRule(options=SanitizeOptions(max_length=1000)),
            ],
            "model": _model_rules(),
            "parameters": [ObjectRule(name="parameters")],
        },
    )

    registry.register(
        "voice_to_text",
        {
            "audio_base64": [
                Required(name="audio_base64"),
                StringRule(max_length=7_000_000, name="audio_base64"),
            ],
            "content_type": [
                Required(name="content_type"),
                StringRule(max_length=50, name="content_type"),
                PatternRule(pattern="mime_type", name="content_type"),
                CustomRule(
                    validator=_is_audio_type,
                    name="content_type",
                    message="content_type must be an audio/* MIME type",
                ),
            ],
            "model": _model_rules(),
        },
    )

    registry.register(
        "chat",
        {
            "messages": [
                Required(name="messages"),
                ArrayRule(min_items=1, max_items=10, name="messages"),
                CustomRule(validator=_valid_chat_messages, name="messages"),
            ],
            "model": _model_rules(),
            "temperature": [NumberRule(minimum=0, maximum=2, name="temperature")],
            "max_new_tokens": [NumberRule(minimum=1, maximum=1024, name="max_new_tokens")],
        },
    )

    registry.register(
        "summarization",
        {
            "text": [
                Required(name="text"),
                StringRule(min_length=50, max_length=10_000, name="text"),
                SanitizeRule(options=SanitizeOptions(max_length=10_000)),
            ],
            "model": _model_rules(),
        },
    )

    registry.freeze()
    return registry


default_registry = _build_default_registry()
