"""Validation rule variants.

Each rule kind is its own frozen dataclass and ``Rule`` is the closed union
of all of them. The validator dispatches over this union exhaustively, so
adding a kind means adding a class here and a branch in the validator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Union

from app.core.errors import ValidationConfigError
from app.validation.patterns import get_pattern
from app.validation.sanitizer import DEFAULT_OPTIONS, SanitizeOptions


@dataclass(frozen=True)
class CustomResult:
    """Rich return value for custom validators."""

    valid: bool
    message: str | None = None


CustomValidator = Callable[[Any], "bool | CustomResult"]


@dataclass(frozen=True)
class Required:
    name: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class StringRule:
    min_length: int | None = None
    max_length: int | None = None
    name: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class NumberRule:
    """Coerces the value to a number; the number replaces the working value."""

    minimum: float | None = None
    maximum: float | None = None
    name: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class ArrayRule:
    min_items: int | None = None
    max_items: int | None = None
    name: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class PatternRule:
    pattern: str = ""
    name: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        # Fail at schema definition time rather than on the first request
        get_pattern(self.pattern)


@dataclass(frozen=True)
class EnumRule:
    values: tuple[Any, ...] = ()
    name: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if not self.values:
            raise ValidationConfigError(
                code="invalid_rule",
                message="Enum rule must list at least one value",
            )


@dataclass(frozen=True)
class ObjectRule:
    name: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class SanitizeRule:
    """Replaces the working value with its sanitized form."""

    options: SanitizeOptions = field(default=DEFAULT_OPTIONS)
    name: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class CustomRule:
    """Runs a schema-author predicate against the current working value."""

    validator: CustomValidator | None = None
    name: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.validator):
            raise ValidationConfigError(
                code="invalid_rule",
                message="Custom rule must provide a validator function",
            )


Rule = Union[
    Required,
    StringRule,
    NumberRule,
    ArrayRule,
    PatternRule,
    EnumRule,
    ObjectRule,
    SanitizeRule,
    CustomRule,
]
