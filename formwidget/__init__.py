"""Form widget state engine.

One engine drives both a flat, single-page form and a multi-step wizard:
- Schema model: flat field lists or ordered steps sharing one value map
- Validation engine: ordered, first-failure-wins field rules
- Form state machine: values, errors, touched fields and the active step
- Submission controller: hands validated values to the caller's callback
- Event stream and a framework-neutral view model for render layers

Basic usage:
    >>> from formwidget import FormRuntime
    >>> form = FormRuntime.from_dict({
    ...     "fields": [{"name": "email", "label": "Email", "kind": "email", "required": True}],
    ...     "onSubmit": lambda values: None,
    ... })
    >>> form.change("email", "bad")
    >>> form.blur("email")
    'Please enter a valid email address'
"""

__version__ = "0.1.0"
__author__ = "formwidget contributors"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formwidget.config import FormOptions
from formwidget.runtime import FormRuntime
from formwidget.schema import FieldSpec, FlatSchema, StepSpec, SteppedSchema, ValidationRules

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormOptions",
    "FormRuntime",
    "FieldSpec",
    "FlatSchema",
    "StepSpec",
    "SteppedSchema",
    "ValidationRules",
]
