"""Unit tests for the validation engine.

Tests cover:
- Required checks for strings, whitespace and checkboxes
- Optional empty fields skipping every other rule
- Email format, length limits, patterns and custom rules
- First-failure-wins rule order
- Field set validation keeping only failures
"""

import pytest

from formwidget.errors import FieldError
from formwidget.schema import FieldSpec, ValidationRules
from formwidget.types import FieldErrorCode
from formwidget.validation import check_field, check_set, is_empty, validate, validate_set


class TestIsEmpty:
    """Test what counts as an empty value."""

    @pytest.mark.parametrize("value", [None, False, "", "   ", "\t\n"])
    def test_empty_values(self, value):
        """Should treat None, False and blank strings as empty."""
        assert is_empty(value) is True

    @pytest.mark.parametrize("value", ["a", " a ", True, 0, 5, 0.0])
    def test_non_empty_values(self, value):
        """Should treat text, True and any number as provided."""
        assert is_empty(value) is False


class TestRequired:
    """Test the required rule."""

    def test_empty_string(self):
        """Should report '<label> is required' for an empty required field."""
        spec = FieldSpec(name="name", label="Full Name", required=True)
        assert validate(spec, "") == "Full Name is required"

    def test_whitespace_only(self):
        """Should treat whitespace as empty."""
        spec = FieldSpec(name="name", label="Name", required=True)
        assert validate(spec, "   ") == "Name is required"

    def test_missing_value(self):
        """Should treat None as empty."""
        spec = FieldSpec(name="name", label="Name", required=True)
        assert validate(spec, None) == "Name is required"

    def test_unchecked_checkbox(self):
        """Should reject an unchecked required checkbox."""
        spec = FieldSpec(name="terms", label="Terms", kind="checkbox", required=True)
        assert validate(spec, False) == "Terms is required"
        assert validate(spec, True) is None

    def test_value_clears_required(self):
        """Should accept any non-blank value."""
        spec = FieldSpec(name="name", label="Name", required=True)
        assert validate(spec, "Ada") is None

    def test_zero_is_a_value(self):
        """Should accept zero for a required number field."""
        spec = FieldSpec(name="count", label="Count", kind="number", required=True)
        assert validate(spec, 0) is None

    def test_required_code(self):
        """Should tag the failure with the REQUIRED code."""
        spec = FieldSpec(name="name", label="Name", required=True)
        error = check_field(spec, "")
        assert error == FieldError(name="name", code=FieldErrorCode.REQUIRED, message="Name is required")


class TestOptionalEmpty:
    """Test that empty optional fields skip all other rules."""

    def test_empty_optional_email(self):
        """Should not check the email format of an empty optional field."""
        spec = FieldSpec(name="email", label="Email", kind="email")
        assert validate(spec, "") is None

    def test_empty_optional_with_rules(self):
        """Should not run length, pattern or custom rules on an empty optional field."""
        calls = []
        spec = FieldSpec(
            name="code",
            label="Code",
            validation_rules=ValidationRules(
                min_length=3,
                pattern=r"^\d+$",
                custom=lambda value: calls.append(value) or "never",
            ),
        )
        assert validate(spec, "  ") is None
        assert calls == []


class TestEmail:
    """Test the email format rule."""

    @pytest.mark.parametrize("value", ["a@b.com", "first.last@example.co.uk", "x+tag@d.io"])
    def test_valid_addresses(self, value):
        """Should accept addresses with a local part, a domain and a dot."""
        spec = FieldSpec(name="email", label="Email", kind="email")
        assert validate(spec, value) is None

    @pytest.mark.parametrize("value", ["bad", "a@b", "a b@c.com", "@b.com", "a@@b.com", "a@b.com\n"])
    def test_invalid_addresses(self, value):
        """Should reject malformed addresses with the fixed message."""
        spec = FieldSpec(name="email", label="Email", kind="email")
        assert validate(spec, value) == "Please enter a valid email address"

    def test_format_code(self):
        """Should tag the failure with INVALID_FORMAT and keep the value."""
        spec = FieldSpec(name="email", label="Email", kind="email")
        error = check_field(spec, "bad")
        assert error.code == FieldErrorCode.INVALID_FORMAT
        assert error.received == "bad"

    def test_other_kinds_not_checked(self):
        """Should not apply the email rule to text fields."""
        spec = FieldSpec(name="handle", label="Handle", kind="text")
        assert validate(spec, "bad") is None


class TestLengthRules:
    """Test min_length and max_length."""

    def test_too_short(self):
        """Should report the minimum length."""
        spec = FieldSpec(name="username", label="Username",
                         validation_rules=ValidationRules(min_length=3))
        assert validate(spec, "ab") == "Username must be at least 3 characters long"
        assert check_field(spec, "ab").code == FieldErrorCode.TOO_SHORT

    def test_too_long(self):
        """Should report the maximum length."""
        spec = FieldSpec(name="username", label="Username",
                         validation_rules=ValidationRules(max_length=5))
        assert validate(spec, "abcdef") == "Username must be no more than 5 characters long"
        assert check_field(spec, "abcdef").code == FieldErrorCode.TOO_LONG

    def test_boundaries_are_inclusive(self):
        """Should accept values exactly at either limit."""
        spec = FieldSpec(name="pin", label="PIN",
                         validation_rules=ValidationRules(min_length=4, max_length=4))
        assert validate(spec, "1234") is None

    def test_numbers_skip_length_rules(self):
        """Should not apply length limits to numeric values."""
        spec = FieldSpec(name="age", label="Age", kind="number",
                         validation_rules=ValidationRules(min_length=3))
        assert validate(spec, 7) is None


class TestPatternRule:
    """Test the pattern rule."""

    def test_mismatch(self):
        """Should report '<label> format is invalid'."""
        spec = FieldSpec(name="zip", label="ZIP", validation_rules=ValidationRules(pattern=r"^\d{5}$"))
        assert validate(spec, "12ab5") == "ZIP format is invalid"
        assert check_field(spec, "12ab5").code == FieldErrorCode.PATTERN_MISMATCH

    def test_match(self):
        """Should accept a matching value."""
        spec = FieldSpec(name="zip", label="ZIP", validation_rules=ValidationRules(pattern=r"^\d{5}$"))
        assert validate(spec, "12345") is None

    def test_search_semantics(self):
        """Should match anywhere in the value unless the pattern is anchored."""
        spec = FieldSpec(name="ref", label="Ref", validation_rules=ValidationRules(pattern=r"\d"))
        assert validate(spec, "abc1") is None

    def test_numbers_are_matched_as_text(self):
        """Should match numeric values against their text form."""
        spec = FieldSpec(name="qty", label="Qty", kind="number",
                         validation_rules=ValidationRules(pattern=r"^\d+$"))
        assert validate(spec, 42) is None


class TestCustomRule:
    """Test custom validation callables."""

    def test_custom_message(self):
        """Should return the custom rule's message."""
        spec = FieldSpec(name="username", label="Username", validation_rules=ValidationRules(
            custom=lambda value: "That name is taken" if value == "admin" else None,
        ))
        assert validate(spec, "admin") == "That name is taken"
        assert check_field(spec, "admin").code == FieldErrorCode.CUSTOM
        assert validate(spec, "ada") is None

    def test_empty_string_means_valid(self):
        """Should treat an empty message from the custom rule as no error."""
        spec = FieldSpec(name="x", label="X", validation_rules=ValidationRules(custom=lambda value: ""))
        assert validate(spec, "anything") is None


class TestRuleOrder:
    """Test that the first failing rule wins."""

    def test_required_before_everything(self):
        """Should report required before any other rule."""
        spec = FieldSpec(name="email", label="Email", kind="email", required=True,
                         validation_rules=ValidationRules(min_length=5))
        assert validate(spec, "") == "Email is required"

    def test_email_before_length(self):
        """Should report the email format before the length limit."""
        spec = FieldSpec(name="email", label="Email", kind="email",
                         validation_rules=ValidationRules(min_length=10))
        assert validate(spec, "bad") == "Please enter a valid email address"

    def test_min_before_pattern(self):
        """Should report min_length before the pattern."""
        spec = FieldSpec(name="code", label="Code",
                         validation_rules=ValidationRules(min_length=5, pattern=r"^\d+$"))
        assert validate(spec, "ab") == "Code must be at least 5 characters long"

    def test_pattern_before_custom(self):
        """Should not call the custom rule once the pattern failed."""
        calls = []

        def custom(value):
            calls.append(value)
            return "custom failure"

        spec = FieldSpec(name="code", label="Code",
                         validation_rules=ValidationRules(pattern=r"^\d+$", custom=custom))
        assert validate(spec, "abc") == "Code format is invalid"
        assert calls == []

    def test_custom_runs_last(self):
        """Should call the custom rule when every other rule passed."""
        spec = FieldSpec(name="code", label="Code",
                         validation_rules=ValidationRules(pattern=r"^\d+$",
                                                          custom=lambda value: "odd" if int(value) % 2 else None))
        assert validate(spec, "13") == "odd"
        assert validate(spec, "12") is None


class TestValidateSet:
    """Test validation over a field set."""

    def test_only_failures_are_kept(self):
        """Should map just the invalid fields to their messages."""
        fields = [
            FieldSpec(name="name", label="Name", required=True),
            FieldSpec(name="email", label="Email", kind="email", required=True),
            FieldSpec(name="bio", label="Bio"),
        ]
        values = {"name": "Ada", "email": "nope", "bio": ""}
        assert validate_set(fields, values) == {"email": "Please enter a valid email address"}

    def test_all_valid(self):
        """Should return an empty mapping when every field passes."""
        fields = [FieldSpec(name="name", label="Name", required=True)]
        assert validate_set(fields, {"name": "Ada"}) == {}

    def test_missing_values_are_empty(self):
        """Should treat a value missing from the map as empty."""
        fields = [FieldSpec(name="name", label="Name", required=True)]
        assert validate_set(fields, {}) == {"name": "Name is required"}

    def test_check_set_keeps_field_order(self):
        """Should return structured failures in field order."""
        fields = [
            FieldSpec(name="b", label="B", required=True),
            FieldSpec(name="a", label="A", required=True),
        ]
        errors = check_set(fields, {"a": "", "b": ""})
        assert [error.name for error in errors] == ["b", "a"]
        assert all(error.code == FieldErrorCode.REQUIRED for error in errors)


class TestFieldErrorSerialization:
    """Test FieldError dict conversion."""

    def test_to_dict_and_back(self):
        """Should serialize the code as its string value and restore it."""
        error = FieldError(name="email", code=FieldErrorCode.INVALID_FORMAT,
                           message="Please enter a valid email address", received="bad")
        data = error.to_dict()
        assert data == {
            "name": "email",
            "code": "invalid_format",
            "message": "Please enter a valid email address",
            "received": "bad",
        }
        assert FieldError.from_dict(data) == error

    def test_received_omitted_when_absent(self):
        """Should leave out 'received' when there is no value."""
        error = FieldError(name="name", code=FieldErrorCode.REQUIRED, message="Name is required")
        assert "received" not in error.to_dict()
