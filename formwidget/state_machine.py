"""Form state machine shared by flat forms and multi-step wizards.

The state machine owns one FormState (values, errors, touched, current step)
and exposes the transitions a user can trigger: change, blur, next, previous
and reset. Submission is layered on top by the runtime, which uses
``validate_current_step`` as its gate.

A flat form is a single implicit step, so every transition is written once
against ``schema.fields_for_step(current_step)`` and never branches on the
schema shape.

Usage:
    >>> from formwidget.schema import FieldSpec, FlatSchema
    >>> sm = FormStateMachine(FlatSchema(fields=[
    ...     FieldSpec(name="email", label="Email", kind="email", required=True)
    ... ]))
    >>> sm.change("email", "bad")
    >>> sm.state.errors
    {}
    >>> sm.blur("email")
    'Please enter a valid email address'
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Set
import logging

from formwidget.schema import FormSchema, default_values
from formwidget.types import FieldValue, FormValues
from formwidget.validation import validate, validate_set


logger = logging.getLogger(__name__)


@dataclass
class FormState:
    """Mutable state of one form instance.

    Attributes:
        values: Current value of every field across all steps
        errors: Error message per currently invalid field
        touched: Names of fields the user blurred or a failed gate marked
        current_step: Active step index, always 0 for flat forms
    """
    values: FormValues = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    touched: Set[str] = field(default_factory=set)
    current_step: int = 0


@dataclass(frozen=True)
class FormSnapshot:
    """Read-only view of a form's state, handed to the render layer.

    ``visible_errors`` holds only the errors of touched fields; an untouched
    field keeps its error hidden until the user leaves it or a gate fails.
    """
    values: Mapping[str, FieldValue]
    errors: Mapping[str, str]
    touched: FrozenSet[str]
    current_step: int
    total_steps: int

    @property
    def is_first_step(self) -> bool:
        return self.current_step == 0

    @property
    def is_last_step(self) -> bool:
        return self.current_step >= self.total_steps - 1

    @property
    def visible_errors(self) -> Dict[str, str]:
        return {name: message for name, message in self.errors.items() if name in self.touched}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "values": dict(self.values),
            "errors": dict(self.errors),
            "touched": sorted(self.touched),
            "currentStep": self.current_step,
            "totalSteps": self.total_steps,
        }


class FormStateMachine:
    """Transitions over a FormState for a flat or stepped schema.

    The state is initialized from the schema exactly once, in the
    constructor; ``initial_values`` only apply there. ``reset`` rebuilds the
    values from field defaults alone.

    Attributes:
        schema: The immutable form schema
        state: The live FormState; mutate it only through the transitions

    Examples:
        >>> from formwidget.schema import FieldSpec, StepSpec, SteppedSchema
        >>> sm = FormStateMachine(SteppedSchema(steps=[
        ...     StepSpec(title="Name", fields=[FieldSpec(name="name", label="Name", required=True)]),
        ...     StepSpec(title="Done", fields=[]),
        ... ]))
        >>> sm.next()
        False
        >>> sm.state.current_step, sm.state.errors
        (0, {'name': 'Name is required'})
        >>> sm.change("name", "Ada")
        >>> sm.next()
        True
        >>> sm.state.current_step
        1
    """

    def __init__(
        self,
        schema: FormSchema,
        initial_values: Optional[Mapping[str, FieldValue]] = None,
    ):
        self.schema = schema
        self.state = FormState(values=default_values(schema, initial_values))

    @property
    def total_steps(self) -> int:
        return self.schema.total_steps

    @property
    def is_last_step(self) -> bool:
        return self.state.current_step >= self.total_steps - 1

    def current_fields(self):
        """Fields visible at the active step."""
        return self.schema.fields_for_step(self.state.current_step)

    def change(self, name: str, value: FieldValue) -> None:
        """Store a new value and drop the field's error. Never validates."""
        self.state.values[name] = value
        self.state.errors.pop(name, None)

    def blur(self, name: str) -> Optional[str]:
        """Mark a field touched and validate it against the full schema.

        Fields from any step are found, not just the visible ones. An unknown
        name is marked touched and left unvalidated.

        Returns:
            The field's error message, or None if it is valid or unknown
        """
        self.state.touched.add(name)
        spec = self.schema.find_field(name)
        if spec is None:
            logger.debug("Blur on unknown field %r; nothing to validate", name)
            return None
        error = validate(spec, self.state.values.get(name))
        if error:
            self.state.errors[name] = error
        else:
            self.state.errors.pop(name, None)
        return error

    def validate_current_step(self) -> Dict[str, str]:
        """Validate only the visible step's fields.

        ``errors`` is replaced by the result, so it ends up holding exactly
        the failures of this step. On failure every field of the step is
        marked touched so its error is shown.

        Returns:
            The failures, empty when the step is valid
        """
        fields = self.current_fields()
        errors = validate_set(fields, self.state.values)
        self.state.errors = dict(errors)
        if errors:
            self.state.touched.update(spec.name for spec in fields)
            logger.debug(
                "Step %d failed validation: %s", self.state.current_step, sorted(errors)
            )
        return errors

    def next(self) -> bool:
        """Advance one step if the visible step is valid.

        The index is clamped to the last step, so calling this on the final
        step (or on a flat form) only validates.

        Returns:
            True if validation passed, False if the step stayed put on errors
        """
        if self.validate_current_step():
            return False
        self.state.current_step = min(self.state.current_step + 1, self.total_steps - 1)
        return True

    def previous(self) -> bool:
        """Go back one step without validating; ``errors`` is left alone.

        Returns:
            True if the step index changed
        """
        old_step = self.state.current_step
        self.state.current_step = max(old_step - 1, 0)
        return self.state.current_step != old_step

    def reset(self) -> None:
        """Rebuild values from field defaults and clear errors, touched and step."""
        self.state.values = default_values(self.schema)
        self.state.errors = {}
        self.state.touched = set()
        self.state.current_step = 0

    def snapshot(self) -> FormSnapshot:
        """Return a read-only copy of the current state."""
        return FormSnapshot(
            values=MappingProxyType(dict(self.state.values)),
            errors=MappingProxyType(dict(self.state.errors)),
            touched=frozenset(self.state.touched),
            current_step=self.state.current_step,
            total_steps=self.total_steps,
        )


__all__ = [
    "FormState",
    "FormSnapshot",
    "FormStateMachine",
]
