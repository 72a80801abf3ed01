"""Schema-driven validation and sanitization of untyped request input.

Field validation errors are data: every rule of a field runs, errors are
accumulated in declaration order, and nothing is raised for bad input.
Configuration problems (unknown schema, unknown pattern) are programming
errors and raise ``ValidationConfigError``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Sequence, assert_never

from app.validation.patterns import matches
from app.validation.rules import (
    ArrayRule,
    CustomResult,
    CustomRule,
    EnumRule,
    NumberRule,
    ObjectRule,
    PatternRule,
    Required,
    Rule,
    SanitizeRule,
    StringRule,
)
from app.validation.sanitizer import sanitize
from app.validation.schemas import SchemaRegistry, default_registry

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class FieldResult:
    valid: bool
    value: Any
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SchemaResult:
    """Outcome of validating a payload against a named schema.

    Attributes:
        valid: True when no field produced an error.
        data: Only the schema's fields that passed, with transformed values.
        errors: Field name to ordered error messages, for failing fields only.
    """

    valid: bool
    data: dict[str, Any]
    errors: dict[str, list[str]]


@dataclass(frozen=True)
class _Outcome:
    error: str | None = None
    value: Any = _MISSING


def _label(rule: Rule) -> str:
    return rule.name or "field"


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number: int | float = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            number = int(stripped)
        except ValueError:
            try:
                number = float(stripped)
            except ValueError:
                return None
    else:
        return None
    if isinstance(number, float) and math.isnan(number):
        return None
    return number


def _apply_rule(value: Any, rule: Rule) -> _Outcome:
    label = _label(rule)

    if isinstance(rule, Required):
        if value is None or (isinstance(value, str) and not value.strip()):
            return _Outcome(error=rule.message or f"{label} is required")

    elif isinstance(rule, StringRule):
        if not isinstance(value, str):
            return _Outcome(error=rule.message or f"{label} must be a string")
        if rule.max_length is not None and len(value) > rule.max_length:
            return _Outcome(
                error=rule.message or f"{label} exceeds maximum length of {rule.max_length}"
            )
        if rule.min_length is not None and len(value) < rule.min_length:
            return _Outcome(
                error=rule.message or f"{label} must be at least {rule.min_length} characters"
            )

    elif isinstance(rule, NumberRule):
        number = _to_number(value)
        if number is None:
            return _Outcome(error=rule.message or f"{label} must be a number")
        if rule.minimum is not None and number < rule.minimum:
            return _Outcome(error=rule.message or f"{label} must be at least {rule.minimum}")
        if rule.maximum is not None and number > rule.maximum:
            return _Outcome(error=rule.message or f"{label} must be at most {rule.maximum}")
        return _Outcome(value=number)

    elif isinstance(rule, ArrayRule):
        if not isinstance(value, (list, tuple)):
            return _Outcome(error=rule.message or f"{label} must be an array")
        if rule.max_items is not None and len(value) > rule.max_items:
            return _Outcome(
                error=rule.message or f"{label} exceeds maximum of {rule.max_items} items"
            )
        if rule.min_items is not None and len(value) < rule.min_items:
            return _Outcome(
                error=rule.message or f"{label} must have at least {rule.min_items} items"
            )

    elif isinstance(rule, PatternRule):
        # Unknown pattern names raise here, outside any error accumulation
        if not isinstance(value, str) or not matches(rule.pattern, value):
            return _Outcome(error=rule.message or f"{label} format is invalid")

    elif isinstance(rule, EnumRule):
        if value not in rule.values:
            allowed = ", ".join(str(v) for v in rule.values)
            return _Outcome(error=rule.message or f"{label} must be one of: {allowed}")

    elif isinstance(rule, ObjectRule):
        if not isinstance(value, Mapping):
            return _Outcome(error=rule.message or f"{label} must be an object")

    elif isinstance(rule, SanitizeRule):
        return _Outcome(value=sanitize(value, rule.options))

    elif isinstance(rule, CustomRule):
        assert rule.validator is not None
        try:
            verdict = rule.validator(value)
        except Exception as exc:
            return _Outcome(error=f"{rule.name or 'validation'}: {exc}")
        if isinstance(verdict, CustomResult):
            if not verdict.valid:
                return _Outcome(
                    error=rule.message or verdict.message or f"{label} validation failed"
                )
        elif not verdict:
            return _Outcome(error=rule.message or f"{label} validation failed")

    else:
        assert_never(rule)

    return _Outcome()


def validate(value: Any, rules: Sequence[Rule]) -> FieldResult:
    """Run every rule against a value, accumulating errors.

    Number and sanitize rules replace the working value seen by later rules
    and returned in the result; other rules only pass or fail.

    Args:
        value: Untyped input value.
        rules: Rules evaluated in order.

    Returns:
        FieldResult with ``valid`` true only when no rule produced an error.

    Raises:
        ValidationConfigError: If a rule references an unknown pattern.
    """
    errors: list[str] = []
    current = value

    for rule in rules:
        outcome = _apply_rule(current, rule)
        if outcome.error is not None:
            errors.append(outcome.error)
        elif outcome.value is not _MISSING:
            current = outcome.value

    return FieldResult(valid=not errors, value=current, errors=errors)


def validate_schema(
    data: Mapping[str, Any] | None,
    schema_name: str,
    *,
    registry: SchemaRegistry | None = None,
) -> SchemaResult:
    """Validate a payload against a registered schema.

    Only fields declared by the schema are considered; anything else in
    ``data`` is ignored. A field that is absent (missing or ``None``) and has
    no ``Required`` rule is optional and skipped entirely.

    Args:
        data: Decoded request body.
        schema_name: Registered schema name.
        registry: Schema registry, defaults to the process-wide one.

    Returns:
        SchemaResult with passing fields in ``data`` and failures in ``errors``.

    Raises:
        ValidationConfigError: If the schema (or a pattern it uses) is unknown.
    """
    schema = (registry or default_registry).get(schema_name)
    payload: Mapping[str, Any] = data if isinstance(data, Mapping) else {}

    sanitized: dict[str, Any] = {}
    errors: dict[str, list[str]] = {}

    for field_name, rules in schema.items():
        value = payload.get(field_name)
        if value is None and not any(isinstance(rule, Required) for rule in rules):
            continue

        result = validate(value, rules)
        if result.valid:
            sanitized[field_name] = result.value
        else:
            errors[field_name] = result.errors

    if errors:
        logger.info(
            "validation.failed",
            extra={"schema": schema_name, "invalid_fields": sorted(errors)},
        )

    return SchemaResult(valid=not errors, data=sanitized, errors=errors)
