"""Request validation and sanitization engine."""

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
from app.validation.sanitizer import SanitizeOptions, sanitize
from app.validation.schemas import SchemaRegistry, default_registry
from app.validation.validator import FieldResult, SchemaResult, validate, validate_schema

__all__ = [
    "ArrayRule",
    "CustomResult",
    "CustomRule",
    "EnumRule",
    "FieldResult",
    "NumberRule",
    "ObjectRule",
    "PatternRule",
    "Required",
    "Rule",
    "SanitizeOptions",
    "SanitizeRule",
    "SchemaRegistry",
    "SchemaResult",
    "StringRule",
    "default_registry",
    "sanitize",
    "validate",
    "validate_schema",
]
