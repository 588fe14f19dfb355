"""Schema model for flat and multi-step forms.

A form is described either by a flat list of fields or by an ordered list of
steps, each holding its own fields. Both shapes are modeled as a tagged
variant (FlatSchema | SteppedSchema) chosen once, and everything downstream
works against the same two accessors:

- ``fields_for_step(index)``: the ordered field set visible at a step
- ``all_fields()``: every field of the form, used for initialization and reset

Values are stored in one flat map keyed by field name, so names must be unique
across the whole schema, not just within a step. The engine does not enforce
this; ``schema_from_dict`` does, for schemas built from plain mappings.

Usage:
    >>> from formwidget.schema import FieldSpec, FlatSchema, default_values
    >>> schema = FlatSchema(fields=[
    ...     FieldSpec(name="email", label="Email", kind="email", required=True),
    ...     FieldSpec(name="terms", label="Accept terms", kind="checkbox"),
    ... ])
    >>> default_values(schema)
    {'email': '', 'terms': False}
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from jsonschema import Draft7Validator

from formwidget.errors import SchemaDefinitionError, UnknownStepError
from formwidget.types import FieldKind, FieldValue, FormValues


CustomRule = Callable[[FieldValue], Optional[str]]
"""Pure function returning an error message, or None/"" when the value is fine."""


@dataclass(frozen=True)
class FieldOption:
    """One choice of a select field."""
    value: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class ValidationRules:
    """Optional per-field rules, applied after the required/email checks.

    Attributes:
        min_length: Minimum string length
        max_length: Maximum string length
        pattern: Regular expression (string or compiled); matched with search semantics
        custom: Callable returning an error message or None
    """
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Union[str, re.Pattern[str]]] = None
    custom: Optional[CustomRule] = None

    def compiled_pattern(self) -> Optional[re.Pattern[str]]:
        if self.pattern is None:
            return None
        if isinstance(self.pattern, str):
            return re.compile(self.pattern)
        return self.pattern


@dataclass(frozen=True)
class FieldSpec:
    """Description of one form field.

    Attributes:
        name: Key of the field in the form's value map
        label: Display text, also used in error messages
        kind: Abstract kind; accepts a FieldKind or its string value
        required: Whether an empty value is an error
        options: Choices for select fields, as FieldOption or (value, label) pairs
        validation_rules: Optional ValidationRules
        default_value: Optional default; bool for checkboxes, else str or number
        placeholder: Optional display hint, opaque to the engine

    Examples:
        >>> spec = FieldSpec(name="theme", label="Theme", kind="select",
        ...                  options=[("light", "Light"), ("dark", "Dark")])
        >>> spec.kind
        <FieldKind.SELECT: 'select'>
        >>> spec.options[1].label
        'Dark'
    """
    name: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    options: Tuple[FieldOption, ...] = ()
    validation_rules: Optional[ValidationRules] = None
    default_value: Optional[FieldValue] = None
    placeholder: Optional[str] = None

    def __post_init__(self):
        """Normalize kind and options."""
        if isinstance(self.kind, str) and not isinstance(self.kind, FieldKind):
            object.__setattr__(self, "kind", FieldKind(self.kind))
        object.__setattr__(
            self,
            "options",
            tuple(
                option if isinstance(option, FieldOption) else FieldOption(*option)
                for option in self.options
            ),
        )


@dataclass(frozen=True)
class StepSpec:
    """One page of a multi-step form."""
    title: str
    fields: Tuple[FieldSpec, ...] = ()
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class FlatSchema:
    """Single-page form: one implicit step holding every field."""
    fields: Tuple[FieldSpec, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))

    @property
    def is_stepped(self) -> bool:
        return False

    @property
    def total_steps(self) -> int:
        return 1

    def fields_for_step(self, index: int = 0) -> Tuple[FieldSpec, ...]:
        """Return every field; a flat form has only the one implicit step."""
        return self.fields

    def all_fields(self) -> Tuple[FieldSpec, ...]:
        return self.fields

    def find_field(self, name: str) -> Optional[FieldSpec]:
        return _find(self.fields, name)


@dataclass(frozen=True)
class SteppedSchema:
    """Multi-step form: an ordered list of steps sharing one value map."""
    steps: Tuple[StepSpec, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "steps", tuple(self.steps))

    @property
    def is_stepped(self) -> bool:
        return True

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def fields_for_step(self, index: int = 0) -> Tuple[FieldSpec, ...]:
        """Return the fields of step ``index``.

        Raises:
            UnknownStepError: If ``index`` is outside ``[0, total_steps)``
        """
        if index < 0 or index >= len(self.steps):
            raise UnknownStepError(index, len(self.steps))
        return self.steps[index].fields

    def all_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(spec for step in self.steps for spec in step.fields)

    def find_field(self, name: str) -> Optional[FieldSpec]:
        return _find(self.all_fields(), name)


FormSchema = Union[FlatSchema, SteppedSchema]


def _find(fields: Sequence[FieldSpec], name: str) -> Optional[FieldSpec]:
    for spec in fields:
        if spec.name == name:
            return spec
    return None


def empty_value_for(kind: FieldKind) -> FieldValue:
    """Value a field holds when nothing else provides one.

    Examples:
        >>> empty_value_for(FieldKind.CHECKBOX)
        False
        >>> empty_value_for(FieldKind.NUMBER)
        ''
    """
    return False if kind == FieldKind.CHECKBOX else ""


def default_values(
    schema: FormSchema,
    initial_values: Optional[Mapping[str, FieldValue]] = None,
) -> FormValues:
    """Compute the value map for every field of the schema.

    Precedence per field: ``initial_values`` entry, then the field's
    ``default_value``, then ``empty_value_for(kind)``. A None entry counts as
    absent.
    """
    values: FormValues = {}
    for spec in schema.all_fields():
        if initial_values is not None and initial_values.get(spec.name) is not None:
            values[spec.name] = initial_values[spec.name]
        elif spec.default_value is not None:
            values[spec.name] = spec.default_value
        else:
            values[spec.name] = empty_value_for(spec.kind)
    return values


_FIELD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "label": {"type": "string"},
        "kind": {"enum": [kind.value for kind in FieldKind]},
        "required": {"type": "boolean"},
        "placeholder": {"type": "string"},
        "options": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "value": {"type": "string"},
                    "label": {"type": "string"},
                },
                "required": ["value", "label"],
            },
        },
        "validationRules": {
            "type": "object",
            "properties": {
                "minLength": {"type": "integer", "minimum": 0},
                "maxLength": {"type": "integer", "minimum": 0},
                "pattern": {"type": "string"},
            },
        },
        "defaultValue": {"type": ["string", "number", "boolean"]},
    },
    "required": ["name", "label", "kind"],
    "if": {"properties": {"kind": {"const": "select"}}, "required": ["kind"]},
    "then": {"required": ["options"]},
}

FORM_SCHEMA_DEFINITION: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "fields": {"type": "array", "items": _FIELD_SCHEMA},
        "steps": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "fields": {"type": "array", "items": _FIELD_SCHEMA},
                },
                "required": ["title", "fields"],
            },
        },
    },
}
"""JSON Schema describing the mapping accepted by ``schema_from_dict``."""

_definition_validator = Draft7Validator(FORM_SCHEMA_DEFINITION)


def schema_from_dict(data: Mapping[str, Any]) -> FormSchema:
    """Build a FlatSchema or SteppedSchema from a camelCase mapping.

    The mapping holds either ``fields`` or ``steps``. Field entries use the
    keys ``name``, ``label``, ``kind``, ``required``, ``options``,
    ``validationRules`` (``minLength``, ``maxLength``, ``pattern``,
    ``custom``), ``defaultValue`` and ``placeholder``.

    Raises:
        SchemaDefinitionError: If the mapping is malformed, both or neither
            shape is present, a pattern does not compile, a custom rule is not
            callable, or a field name is used twice

    Examples:
        >>> schema = schema_from_dict({"steps": [
        ...     {"title": "Account", "fields": [
        ...         {"name": "username", "label": "Username", "kind": "text", "required": True}
        ...     ]},
        ... ]})
        >>> schema.total_steps
        1
    """
    problems = [
        f"{_format_path(error.absolute_path)}: {error.message}"
        for error in sorted(
            _definition_validator.iter_errors(data),
            key=lambda error: _format_path(error.absolute_path),
        )
    ]
    has_fields = "fields" in data
    has_steps = "steps" in data
    if has_fields == has_steps:
        problems.append("<root>: exactly one of 'fields' or 'steps' is required")
    if problems:
        raise SchemaDefinitionError(problems)

    if has_steps:
        schema: FormSchema = SteppedSchema(steps=[
            StepSpec(
                title=step["title"],
                description=step.get("description"),
                fields=[_field_from_dict(entry, problems, f"steps.{i}.fields.{j}")
                        for j, entry in enumerate(step["fields"])],
            )
            for i, step in enumerate(data["steps"])
        ])
    else:
        schema = FlatSchema(fields=[
            _field_from_dict(entry, problems, f"fields.{j}")
            for j, entry in enumerate(data["fields"])
        ])

    seen: Dict[str, int] = {}
    for spec in schema.all_fields():
        seen[spec.name] = seen.get(spec.name, 0) + 1
    problems.extend(
        f"{name}: field name is used {count} times" for name, count in seen.items() if count > 1
    )
    if problems:
        raise SchemaDefinitionError(problems)
    return schema


def _field_from_dict(data: Mapping[str, Any], problems: List[str], path: str) -> FieldSpec:
    rules = None
    raw_rules = data.get("validationRules")
    if raw_rules is not None:
        pattern = raw_rules.get("pattern")
        if pattern is not None:
            try:
                pattern = re.compile(pattern)
            except re.error as exc:
                problems.append(f"{path}.validationRules.pattern: {exc}")
                pattern = None
        custom = raw_rules.get("custom")
        if custom is not None and not callable(custom):
            problems.append(f"{path}.validationRules.custom: must be callable")
            custom = None
        rules = ValidationRules(
            min_length=raw_rules.get("minLength"),
            max_length=raw_rules.get("maxLength"),
            pattern=pattern,
            custom=custom,
        )
    return FieldSpec(
        name=data["name"],
        label=data["label"],
        kind=FieldKind(data["kind"]),
        required=data.get("required", False),
        options=[(option["value"], option["label"]) for option in data.get("options", [])],
        validation_rules=rules,
        default_value=data.get("defaultValue"),
        placeholder=data.get("placeholder"),
    )


def _format_path(path: Sequence[Any]) -> str:
    return ".".join(str(part) for part in path) if path else "<root>"


__all__ = [
    "CustomRule",
    "FieldOption",
    "ValidationRules",
    "FieldSpec",
    "StepSpec",
    "FlatSchema",
    "SteppedSchema",
    "FormSchema",
    "FORM_SCHEMA_DEFINITION",
    "empty_value_for",
    "default_values",
    "schema_from_dict",
]
