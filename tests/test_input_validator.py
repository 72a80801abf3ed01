"""Tests for rule evaluation and schema validation."""

import pytest

from app.core.errors import ValidationConfigError
from app.validation.patterns import PATTERNS, get_pattern, matches
from app.validation.rules import (
    ArrayRule,
    CustomResult,
    CustomRule,
    EnumRule,
    NumberRule,
    ObjectRule,
    PatternRule,
    Required,
    SanitizeRule,
    StringRule,
)
from app.validation.sanitizer import SanitizeOptions
from app.validation.schemas import SchemaRegistry
from app.validation.validator import validate, validate_schema


class TestValidate:
    def test_errors_accumulate_in_rule_order(self) -> None:
        result = validate(
            "",
            [
                Required(name="title"),
                StringRule(min_length=3, name="title"),
                PatternRule(pattern="filename", name="title"),
            ],
        )

        assert result.valid is False
        assert result.errors == [
            "title is required",
            "title must be at least 3 characters",
            "title format is invalid",
        ]

    def test_valid_when_no_rule_fails(self) -> None:
        result = validate("report.pdf", [Required(), StringRule(max_length=20), PatternRule(pattern="filename")])

        assert result.valid is True
        assert result.errors == []
        assert result.value == "report.pdf"

    def test_custom_message_overrides_default(self) -> None:
        result = validate(None, [Required(name="x", message="Please provide x")])
        assert result.errors == ["Please provide x"]

    def test_required_rejects_blank_strings_only(self) -> None:
        assert validate("   ", [Required()]).valid is False
        assert validate(None, [Required()]).valid is False
        assert validate(0, [Required()]).valid is True
        assert validate([], [Required()]).valid is True
        assert validate(False, [Required()]).valid is True

    def test_string_bounds(self) -> None:
        rules = [StringRule(min_length=2, max_length=4, name="code")]

        assert validate("abc", rules).valid is True
        assert validate("a", rules).errors == ["code must be at least 2 characters"]
        assert validate("abcde", rules).errors == ["code exceeds maximum length of 4"]
        assert validate(12, rules).errors == ["code must be a string"]

    def test_number_rule_coerces_and_replaces_value(self) -> None:
        result = validate("1.5", [NumberRule(minimum=0, maximum=2, name="temperature")])

        assert result.valid is True
        assert result.value == 1.5

        assert validate("7", [NumberRule()]).value == 7
        assert isinstance(validate("7", [NumberRule()]).value, int)

    @pytest.mark.parametrize("value", ["abc", "", None, True, [1], float("nan")])
    def test_number_rule_rejects_non_numbers(self, value) -> None:
        result = validate(value, [NumberRule(name="n")])

        assert result.errors == ["n must be a number"]
        assert result.value is value

    def test_number_bounds(self) -> None:
        rules = [NumberRule(minimum=1, maximum=1024, name="max_new_tokens")]

        assert validate(0, rules).errors == ["max_new_tokens must be at least 1"]
        assert validate(2048, rules).errors == ["max_new_tokens must be at most 1024"]
        assert validate(1024, rules).valid is True

    def test_later_rules_see_number_value(self) -> None:
        seen = []

        def record(value):
            seen.append(value)
            return True

        validate("3", [NumberRule(), CustomRule(validator=record)])
        assert seen == [3]

    def test_array_bounds(self) -> None:
        rules = [ArrayRule(min_items=1, max_items=2, name="items")]

        assert validate([1], rules).valid is True
        assert validate([], rules).errors == ["items must have at least 1 items"]
        assert validate([1, 2, 3], rules).errors == ["items exceeds maximum of 2 items"]
        assert validate("abc", rules).errors == ["items must be an array"]

    def test_enum(self) -> None:
        rules = [EnumRule(values=("low", "high"), name="level")]

        assert validate("low", rules).valid is True
        assert validate("mid", rules).errors == ["level must be one of: low, high"]

    def test_object(self) -> None:
        assert validate({"a": 1}, [ObjectRule()]).valid is True
        assert validate([("a", 1)], [ObjectRule(name="parameters")]).errors == [
            "parameters must be an object"
        ]

    def test_sanitize_replaces_value_for_later_rules(self) -> None:
        result = validate(
            "<b>hi</b>   there",
            [SanitizeRule(options=SanitizeOptions(max_length=100)), StringRule(max_length=8, name="t")],
        )

        assert result.valid is True
        assert result.value == "hi there"

    def test_rules_run_after_earlier_failure(self) -> None:
        # The string rule fails but sanitize still transforms the value
        result = validate("  <i>x</i>  ", [StringRule(min_length=20, name="t"), SanitizeRule()])

        assert result.valid is False
        assert result.value == "x"

    def test_custom_rule_bool_and_result(self) -> None:
        assert validate(4, [CustomRule(validator=lambda v: v % 2 == 0)]).valid is True
        assert validate(3, [CustomRule(validator=lambda v: v % 2 == 0, name="n")]).errors == [
            "n validation failed"
        ]
        assert validate(3, [CustomRule(validator=lambda v: CustomResult(False, "must be even"))]).errors == [
            "must be even"
        ]

    def test_custom_rule_exception_becomes_error(self) -> None:
        def explode(value):
            raise ValueError("cannot parse")

        result = validate("x", [CustomRule(validator=explode, name="payload")])

        assert result.valid is False
        assert result.errors == ["payload: cannot parse"]


class TestRuleConfiguration:
    def test_unknown_pattern_is_configuration_error(self) -> None:
        with pytest.raises(ValidationConfigError) as exc_info:
            PatternRule(pattern="zip_code")
        assert exc_info.value.code == "unknown_pattern"

        with pytest.raises(ValidationConfigError):
            matches("zip_code", "12345")

    def test_empty_enum_is_configuration_error(self) -> None:
        with pytest.raises(ValidationConfigError):
            EnumRule(values=())

    def test_custom_rule_requires_callable(self) -> None:
        with pytest.raises(ValidationConfigError):
            CustomRule(validator=None)

    def test_pattern_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PATTERNS["new"] = get_pattern("uid")  # type: ignore[index]


class TestPatterns:
    @pytest.mark.parametrize(
        ("pattern", "value", "expected"),
        [
            ("email", "user@example.com", True),
            ("email", "user@example", False),
            ("email", "a b@example.com", False),
            ("uid", "aB3dE5gH7jK9mN1pQ3sT", True),
            ("uid", "short", False),
            ("model_name", "facebook/bart-large-cnn", True),
            ("model_name", "black-forest-labs/FLUX.1-dev", True),
            ("model_name", "gpt2", True),
            ("model_name", "../etc/passwd", False),
            ("model_name", "a/b/c", False),
            ("filename", "audio_01.webm", True),
            ("filename", "bad name.txt", False),
            ("mime_type", "audio/webm", True),
            ("mime_type", "audio/webm;codecs=opus", True),
            ("mime_type", "audio", False),
            ("safe_text", "Hello, world!", True),
            ("safe_text", "café", False),
        ],
    )
    def test_full_match(self, pattern: str, value: str, expected: bool) -> None:
        assert matches(pattern, value) is expected


class TestValidateSchema:
    @pytest.fixture
    def registry(self) -> SchemaRegistry:
        registry = SchemaRegistry()
        registry.register(
            "profile",
            {
                "name": [Required(name="name"), StringRule(max_length=10, name="name"), SanitizeRule()],
                "age": [NumberRule(minimum=0, name="age")],
                "email": [PatternRule(pattern="email", name="email")],
            },
        )
        registry.freeze()
        return registry

    def test_only_schema_fields_are_returned(self, registry: SchemaRegistry) -> None:
        result = validate_schema(
            {"name": "<b>Ada</b>", "age": "36", "admin": True},
            "profile",
            registry=registry,
        )

        assert result.valid is True
        assert result.data == {"name": "Ada", "age": 36}
        assert result.errors == {}

    def test_failing_fields_are_omitted_from_data(self, registry: SchemaRegistry) -> None:
        result = validate_schema(
            {"name": "Ada", "age": -1, "email": "nope"},
            "profile",
            registry=registry,
        )

        assert result.valid is False
        assert result.data == {"name": "Ada"}
        assert result.errors == {
            "age": ["age must be at least 0"],
            "email": ["email format is invalid"],
        }

    def test_absent_optional_fields_are_skipped(self, registry: SchemaRegistry) -> None:
        result = validate_schema({"name": "Ada", "email": None}, "profile", registry=registry)

        assert result.valid is True
        assert result.data == {"name": "Ada"}

    def test_missing_required_field(self, registry: SchemaRegistry) -> None:
        result = validate_schema({}, "profile", registry=registry)

        assert result.valid is False
        assert result.errors["name"][0] == "name is required"

    def test_non_mapping_payload_is_treated_as_empty(self, registry: SchemaRegistry) -> None:
        result = validate_schema(["not", "an", "object"], "profile", registry=registry)  # type: ignore[arg-type]

        assert result.valid is False
        assert list(result.errors) == ["name"]

    def test_unknown_schema_raises_before_processing(self, registry: SchemaRegistry) -> None:
        with pytest.raises(ValidationConfigError) as exc_info:
            validate_schema({"name": "Ada"}, "missing", registry=registry)

        assert exc_info.value.code == "unknown_schema"

    def test_summarization_scenario(self) -> None:
        result = validate_schema({"text": "hi"}, "summarization")

        assert result.valid is False
        assert any("at least 50 characters" in message for message in result.errors["text"])
        assert "text" not in result.data
