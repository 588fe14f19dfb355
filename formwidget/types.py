"""Core type definitions for the form widget engine.

This module defines the fundamental types shared by the schema model, the
validation engine and the form state machine:
- FieldKind: Abstract input kinds that drive default-value and validation policy
- FieldErrorCode: Which validation rule produced a field error
- FormEventType: Lifecycle event types for the form event stream
- SubmissionOutcome: Result of a submit() call as seen by the caller

Kinds are deliberately abstract. Mapping a kind to a concrete input control is
left to whatever renders the form.
"""

from enum import Enum
from typing import Any, Dict

from typing_extensions import TypeAlias


FieldValue: TypeAlias = Any
"""A single field's value: bool for checkboxes, otherwise str or number."""

FormValues: TypeAlias = Dict[str, FieldValue]
"""Flat mapping of field name to current value across every step."""


class FieldKind(str, Enum):
    """Abstract field kinds.

    Only CHECKBOX and EMAIL carry engine semantics (boolean empty value and
    the email format check). The rest are opaque to validation.
    """
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    DATE = "date"


class FieldErrorCode(str, Enum):
    """Validation rule that rejected a value.

    Listed in the order the rules are evaluated; the first failing rule wins.
    """
    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    PATTERN_MISMATCH = "pattern_mismatch"
    CUSTOM = "custom"


class FormEventType(str, Enum):
    """Event types emitted by a running form."""
    FORM_INITIALIZED = "form.initialized"
    FIELD_CHANGED = "field.changed"
    FIELD_BLURRED = "field.blurred"
    VALIDATION_FAILED = "validation.failed"
    STEP_CHANGED = "step.changed"
    SUBMISSION_ATTEMPTED = "submission.attempted"
    SUBMISSION_SUCCEEDED = "submission.succeeded"
    SUBMISSION_FAILED = "submission.failed"
    FORM_RESET = "form.reset"


class SubmissionOutcome(str, Enum):
    """What happened when the caller pressed submit.

    ADVANCED and INVALID come from the validation gate; the rest describe
    the external submit callback.
    """
    ADVANCED = "advanced"
    INVALID = "invalid"
    SUBMITTED = "submitted"
    PENDING = "pending"
    FAILED = "failed"


__all__ = [
    "FieldValue",
    "FormValues",
    "FieldKind",
    "FieldErrorCode",
    "FormEventType",
    "SubmissionOutcome",
]
