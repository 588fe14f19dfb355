"""Error types for the form widget engine.

Two very different things live here:

- FieldError is data. A field failing validation is an expected, recoverable
  condition; the state machine stores its message in ``errors`` until the
  field is edited again.
- FormWidgetError and its subclasses are exceptions for programming errors
  made by the caller (a malformed schema mapping, an out-of-range step).
  Nothing the end user types can raise them.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from formwidget.types import FieldErrorCode


@dataclass(frozen=True)
class FieldError:
    """A single field validation failure.

    Attributes:
        name: Name of the field that failed
        code: Which validation rule rejected the value
        message: Human-readable message shown next to the field
        received: Optional - the rejected value

    Examples:
        >>> err = FieldError(
        ...     name="email",
        ...     code=FieldErrorCode.INVALID_FORMAT,
        ...     message="Please enter a valid email address",
        ...     received="not-an-email"
        ... )
        >>> err.name
        'email'
    """
    name: str
    code: FieldErrorCode
    message: str
    received: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "name": self.name,
            "code": self.code.value if isinstance(self.code, FieldErrorCode) else self.code,
            "message": self.message,
        }
        if self.received is not None:
            result["received"] = self.received
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldError":
        """Create FieldError from dict."""
        code = data["code"]
        if isinstance(code, str):
            code = FieldErrorCode(code)
        return cls(
            name=data["name"],
            code=code,
            message=data["message"],
            received=data.get("received"),
        )


class FormWidgetError(Exception):
    """Base class for caller programming errors raised by the engine."""


class SchemaDefinitionError(FormWidgetError):
    """Raised when a schema mapping does not describe a usable form.

    Attributes:
        problems: One entry per offending location, as "path: message"
    """

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        summary = "; ".join(self.problems) if self.problems else "unknown problem"
        super().__init__(f"Invalid form schema: {summary}")


class UnknownStepError(FormWidgetError):
    """Raised when a step index outside the schema is requested.

    Attributes:
        index: The requested step index
        total_steps: Number of steps the schema actually has
    """

    def __init__(self, index: int, total_steps: int):
        self.index = index
        self.total_steps = total_steps
        super().__init__(
            f"Step {index} does not exist; valid steps are 0 to {total_steps - 1}"
        )


__all__ = [
    "FieldError",
    "FormWidgetError",
    "SchemaDefinitionError",
    "UnknownStepError",
]
