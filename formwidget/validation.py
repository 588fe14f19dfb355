"""Validation engine for form fields.

Pure functions that derive a validation error (or none) for a field's value.
Rules run in a fixed order and the first failing rule wins; later rules are
never consulted once one has failed:

1. required and empty             -> "<label> is required"
2. empty and optional             -> no error, nothing else runs
3. email kind, bad address        -> "Please enter a valid email address"
4. min_length                     -> "<label> must be at least <n> characters long"
5. max_length                     -> "<label> must be no more than <n> characters long"
6. pattern                        -> "<label> format is invalid"
7. custom                         -> whatever non-empty message it returns

The order is part of the observable contract: callers and tests rely on which
message wins when several rules would fail.
"""

import re
from typing import Dict, List, Mapping, Optional, Sequence

from formwidget.errors import FieldError
from formwidget.schema import FieldSpec
from formwidget.types import FieldErrorCode, FieldKind, FieldValue


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+\Z")


def is_empty(value: FieldValue) -> bool:
    """Whether a value counts as "not provided".

    None, False and blank strings are empty. Zero is a real number, not an
    empty value.

    Examples:
        >>> is_empty("   ")
        True
        >>> is_empty(False)
        True
        >>> is_empty(0)
        False
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def check_field(field: FieldSpec, value: FieldValue) -> Optional[FieldError]:
    """Run the rule chain for one field and return the first failure.

    Args:
        field: The field being validated
        value: Its current value

    Returns:
        A FieldError for the first failing rule, or None if the value is valid

    Examples:
        >>> spec = FieldSpec(name="email", label="Email", kind="email", required=True)
        >>> check_field(spec, "").code
        <FieldErrorCode.REQUIRED: 'required'>
        >>> check_field(spec, "a@b.com") is None
        True
    """
    if is_empty(value):
        if field.required:
            return FieldError(
                name=field.name,
                code=FieldErrorCode.REQUIRED,
                message=f"{field.label} is required",
            )
        return None

    if field.kind == FieldKind.EMAIL and not EMAIL_PATTERN.search(str(value)):
        return FieldError(
            name=field.name,
            code=FieldErrorCode.INVALID_FORMAT,
            message="Please enter a valid email address",
            received=value,
        )

    rules = field.validation_rules
    if rules is None:
        return None

    # Length limits only make sense for text
    if isinstance(value, str):
        if rules.min_length is not None and len(value) < rules.min_length:
            return FieldError(
                name=field.name,
                code=FieldErrorCode.TOO_SHORT,
                message=f"{field.label} must be at least {rules.min_length} characters long",
                received=value,
            )
        if rules.max_length is not None and len(value) > rules.max_length:
            return FieldError(
                name=field.name,
                code=FieldErrorCode.TOO_LONG,
                message=f"{field.label} must be no more than {rules.max_length} characters long",
                received=value,
            )

    pattern = rules.compiled_pattern()
    if pattern is not None and not pattern.search(str(value)):
        return FieldError(
            name=field.name,
            code=FieldErrorCode.PATTERN_MISMATCH,
            message=f"{field.label} format is invalid",
            received=value,
        )

    if rules.custom is not None:
        message = rules.custom(value)
        if message:
            return FieldError(
                name=field.name,
                code=FieldErrorCode.CUSTOM,
                message=message,
                received=value,
            )

    return None


def validate(field: FieldSpec, value: FieldValue) -> Optional[str]:
    """Return the error message for ``value``, or None if it is valid."""
    error = check_field(field, value)
    return error.message if error is not None else None


def check_set(fields: Sequence[FieldSpec], values: Mapping[str, FieldValue]) -> List[FieldError]:
    """Validate a field set and return the failures in field order."""
    errors: List[FieldError] = []
    for spec in fields:
        error = check_field(spec, values.get(spec.name))
        if error is not None:
            errors.append(error)
    return errors


def validate_set(fields: Sequence[FieldSpec], values: Mapping[str, FieldValue]) -> Dict[str, str]:
    """Map field name to error message for every invalid field in ``fields``.

    Valid fields are absent from the result, so an empty dict means the whole
    set passed.

    Examples:
        >>> fields = [FieldSpec(name="name", label="Name", required=True),
        ...           FieldSpec(name="nickname", label="Nickname")]
        >>> validate_set(fields, {"name": "", "nickname": ""})
        {'name': 'Name is required'}
    """
    return {error.name: error.message for error in check_set(fields, values)}


__all__ = [
    "EMAIL_PATTERN",
    "is_empty",
    "check_field",
    "validate",
    "check_set",
    "validate_set",
]
