"""Framework-neutral view model for rendering a form.

``build_view`` turns a runtime's snapshot, schema and options into plain
dicts that any front end can walk: the visible fields, the navigation
buttons, the step indicator and the step counter. It reads state only
through ``FormRuntime.snapshot()`` and never calls a transition, so a render
layer can be swapped without touching the engine.

Choosing a concrete control for each field kind is left to the front end;
the view model carries the abstract ``kind`` as-is.
"""

from typing import Any, Dict, List

from formwidget.runtime import FormRuntime
from formwidget.schema import FieldSpec, empty_value_for
from formwidget.state_machine import FormSnapshot
from formwidget.types import FieldKind, FieldValue


def build_view(runtime: FormRuntime) -> Dict[str, Any]:
    """Build the view model for the runtime's current state.

    Examples:
        >>> from formwidget.config import FormOptions
        >>> from formwidget.schema import FieldSpec, FlatSchema
        >>> form = FormRuntime(
        ...     FlatSchema(fields=[FieldSpec(name="name", label="Name", required=True)]),
        ...     FormOptions(on_submit=lambda values: None),
        ... )
        >>> [button["action"] for button in build_view(form)["buttons"]]
        ['submit']
    """
    snapshot = runtime.snapshot()
    fields = runtime.schema.fields_for_step(snapshot.current_step)
    view: Dict[str, Any] = {
        "formId": runtime.form_id,
        "stepped": runtime.is_stepped,
        "loading": runtime.loading,
        "fields": [_field_view(spec, snapshot, runtime.loading) for spec in fields],
        "buttons": _buttons(runtime, snapshot),
    }
    if runtime.is_stepped:
        step = runtime.schema.steps[snapshot.current_step]
        view["step"] = {"title": step.title, "description": step.description}
        view["stepCounter"] = f"Step {snapshot.current_step + 1} of {snapshot.total_steps}"
        if runtime.options.show_step_indicator:
            view["stepIndicator"] = [
                {
                    "index": index,
                    "title": candidate.title,
                    "active": index == snapshot.current_step,
                    "completed": index < snapshot.current_step,
                }
                for index, candidate in enumerate(runtime.schema.steps)
            ]
    return view


def _field_view(spec: FieldSpec, snapshot: FormSnapshot, disabled: bool) -> Dict[str, Any]:
    value: FieldValue = snapshot.values.get(spec.name)
    if value is None:
        value = empty_value_for(spec.kind)
    if spec.kind == FieldKind.CHECKBOX:
        value = bool(value)
    error = snapshot.errors.get(spec.name) if spec.name in snapshot.touched else None
    view: Dict[str, Any] = {
        "name": spec.name,
        "label": spec.label,
        "kind": spec.kind.value,
        "required": spec.required,
        "value": value,
        "error": error,
        "disabled": disabled,
    }
    if spec.placeholder is not None:
        view["placeholder"] = spec.placeholder
    if spec.kind == FieldKind.SELECT:
        view["options"] = [option.to_dict() for option in spec.options]
        view.setdefault("placeholder", f"Select {spec.label}")
    return view


def _buttons(runtime: FormRuntime, snapshot: FormSnapshot) -> List[Dict[str, Any]]:
    options = runtime.options
    disabled = options.loading
    buttons: List[Dict[str, Any]] = []
    if runtime.is_stepped and not snapshot.is_first_step:
        buttons.append({"action": "previous", "label": options.previous_label, "disabled": disabled})
    if options.show_reset:
        buttons.append({"action": "reset", "label": options.reset_label, "disabled": disabled})
    if runtime.is_stepped and not snapshot.is_last_step:
        buttons.append({"action": "next", "label": options.next_label, "disabled": disabled})
    else:
        # A loading submit button shows no text
        label = "" if disabled else options.submit_label
        buttons.append({"action": "submit", "label": label, "disabled": disabled})
    return buttons


__all__ = [
    "build_view",
]
