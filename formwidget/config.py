"""Caller-supplied configuration for a form instance.

FormOptions gathers the collaborators and display settings a caller passes
when mounting a form. The engine only acts on the callbacks and on
``initial_values``; ``loading``, the labels and the ``show_*`` flags are
carried through unchanged for the render layer.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from formwidget.types import FieldValue, FormValues


SubmitCallback = Callable[[FormValues], Union[None, Awaitable[None]]]
ResetCallback = Callable[[], None]
StepChangeCallback = Callable[[int, int, FormValues], Any]


@dataclass(frozen=True)
class FormOptions:
    """Collaborators and display settings for one form instance.

    Attributes:
        on_submit: Called with a copy of all values once validation passes;
            may return an awaitable
        on_reset: Optional - called after the state has been cleared
        on_step_change: Optional - stepped forms only, called with
            (step, total_steps, values) after the step index changes
        initial_values: Optional - applied once at mount, overriding field defaults
        loading: Caller-owned flag telling the render layer to disable controls
        submit_label: Display text for the submit button
        reset_label: Display text for the reset button
        next_label: Display text for the next button
        previous_label: Display text for the previous button
        show_reset: Whether the render layer offers a reset button
        show_step_indicator: Whether the render layer shows the step indicator

    Examples:
        >>> options = FormOptions(on_submit=print, submit_label="Finish")
        >>> options.next_label
        'Next'
    """
    on_submit: SubmitCallback
    on_reset: Optional[ResetCallback] = None
    on_step_change: Optional[StepChangeCallback] = None
    initial_values: Optional[Mapping[str, FieldValue]] = None
    loading: bool = False
    submit_label: str = "Submit"
    reset_label: str = "Reset"
    next_label: str = "Next"
    previous_label: str = "Previous"
    show_reset: bool = False
    show_step_indicator: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormOptions":
        """Create FormOptions from a camelCase mapping.

        ``onSubmit`` is required; every other key is optional.
        """
        defaults = cls(on_submit=data["onSubmit"])
        return cls(
            on_submit=data["onSubmit"],
            on_reset=data.get("onReset"),
            on_step_change=data.get("onStepChange"),
            initial_values=data.get("initialValues"),
            loading=bool(data.get("loading", False)),
            submit_label=data.get("submitLabel") or defaults.submit_label,
            reset_label=data.get("resetLabel") or defaults.reset_label,
            next_label=data.get("nextLabel") or defaults.next_label,
            previous_label=data.get("previousLabel") or defaults.previous_label,
            show_reset=bool(data.get("showReset", False)),
            show_step_indicator=bool(data.get("showStepIndicator", False)),
        )


__all__ = [
    "SubmitCallback",
    "ResetCallback",
    "StepChangeCallback",
    "FormOptions",
]
