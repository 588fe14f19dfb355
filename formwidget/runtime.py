"""FormRuntime: one mounted form instance.

The runtime composes the pieces a caller needs to drive a form:

- FormStateMachine for values, errors, touched fields and the active step
- SubmissionController for the external submit callback
- FormOptions for the caller's collaborators and display settings
- EventEmitter plus a bounded event history for observers

It is the surface a render layer talks to: ``snapshot()`` for reading and the
transition entry points ``change``, ``blur``, ``next``, ``previous``,
``submit`` and ``reset`` for writing. All transitions run synchronously to
completion; the only asynchronous boundary is the submit callback.

Usage:
    >>> from formwidget.runtime import FormRuntime
    >>> submitted = []
    >>> form = FormRuntime.from_dict({
    ...     "fields": [{"name": "name", "label": "Name", "kind": "text", "required": True}],
    ...     "onSubmit": submitted.append,
    ... })
    >>> form.submit()
    <SubmissionOutcome.INVALID: 'invalid'>
    >>> form.change("name", "Ada")
    >>> form.submit()
    <SubmissionOutcome.SUBMITTED: 'submitted'>
    >>> submitted
    [{'name': 'Ada'}]
"""

import asyncio
import inspect
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Set

from formwidget.config import FormOptions
from formwidget.events import EventEmitter, FormEvent
from formwidget.schema import FormSchema, schema_from_dict
from formwidget.state_machine import FormSnapshot, FormStateMachine
from formwidget.submission import SubmissionController
from formwidget.types import FieldValue, FormEventType, SubmissionOutcome


logger = logging.getLogger(__name__)

SCHEMA_KEYS = ("fields", "steps")

MAX_EVENTS = 1000


class FormRuntime:
    """A running form: state, transitions, submission and events.

    State is initialized once, when the runtime is constructed, using
    ``options.initial_values`` over field defaults.

    Attributes:
        form_id: Identifier stamped on every event this form emits
        schema: The immutable form schema
        options: Caller configuration
        emitter: Dispatches this form's events to subscribers
        max_events: Size of the in-memory event history kept for ``get_events``

    Examples:
        >>> from formwidget.schema import FieldSpec, FlatSchema
        >>> form = FormRuntime(
        ...     FlatSchema(fields=[FieldSpec(name="age", label="Age", kind="number")]),
        ...     FormOptions(on_submit=lambda values: None, initial_values={"age": 5}),
        ... )
        >>> form.snapshot().values["age"]
        5
    """

    def __init__(
        self,
        schema: FormSchema,
        options: FormOptions,
        form_id: Optional[str] = None,
        emitter: Optional[EventEmitter] = None,
        max_events: int = MAX_EVENTS,
    ):
        self.form_id = form_id or f"form_{uuid.uuid4().hex[:16]}"
        self.schema = schema
        self.options = options
        self.emitter = emitter if emitter is not None else EventEmitter()
        self._events: Deque[FormEvent] = deque(maxlen=max_events)
        self._background: Set["asyncio.Future[Any]"] = set()
        self._machine = FormStateMachine(schema, options.initial_values)
        self._submission = SubmissionController(options.on_submit, notify=self._emit)
        self._emit(
            FormEventType.FORM_INITIALIZED,
            {
                "fieldCount": len(schema.all_fields()),
                "totalSteps": schema.total_steps,
            },
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], form_id: Optional[str] = None) -> "FormRuntime":
        """Mount a form from one camelCase mapping.

        ``fields`` or ``steps`` describe the schema (see ``schema_from_dict``);
        every other key is read by ``FormOptions.from_dict``.

        Raises:
            SchemaDefinitionError: If the schema part is malformed
        """
        schema = schema_from_dict({key: data[key] for key in SCHEMA_KEYS if key in data})
        options = FormOptions.from_dict(
            {key: value for key, value in data.items() if key not in SCHEMA_KEYS}
        )
        return cls(schema, options, form_id=form_id)

    @property
    def is_stepped(self) -> bool:
        return self.schema.is_stepped

    @property
    def current_step(self) -> int:
        return self._machine.state.current_step

    @property
    def total_steps(self) -> int:
        return self._machine.total_steps

    @property
    def loading(self) -> bool:
        return self.options.loading

    @property
    def pending_submissions(self) -> int:
        """Asynchronous submissions scheduled but not yet finished."""
        return self._submission.pending_count

    def set_loading(self, loading: bool) -> None:
        """Update the caller-owned loading flag passed through to the render layer."""
        self.options = replace(self.options, loading=loading)

    def snapshot(self) -> FormSnapshot:
        """Read-only view of values, errors, touched fields and step."""
        return self._machine.snapshot()

    def change(self, name: str, value: FieldValue) -> None:
        """Record a new value for ``name``; clears its error without validating."""
        self._machine.change(name, value)
        self._emit(FormEventType.FIELD_CHANGED, {"field": name})

    def blur(self, name: str) -> Optional[str]:
        """Mark ``name`` touched and validate it.

        Returns:
            The field's error message, or None if it is valid
        """
        error = self._machine.blur(name)
        self._emit(FormEventType.FIELD_BLURRED, {"field": name, "valid": error is None})
        return error

    def next(self) -> bool:
        """Validate the visible step and advance if it passes.

        Returns:
            True if the step was valid
        """
        old_step = self.current_step
        if not self._machine.next():
            self._validation_failed()
            return False
        if self.current_step != old_step:
            self._step_changed(old_step)
        return True

    def previous(self) -> bool:
        """Step back without validating.

        Returns:
            True if the step index changed
        """
        old_step = self.current_step
        if not self._machine.previous():
            return False
        self._step_changed(old_step)
        return True

    def submit(self) -> SubmissionOutcome:
        """Submit from the final step, or advance from an earlier one.

        On a stepped form that is not on its last step this behaves exactly
        like ``next()``. Otherwise the visible fields are validated and, if
        they pass, ``on_submit`` receives every value. A failing callback is
        logged and reported as FAILED; it never raises out of this method.

        An asynchronous ``on_submit`` is scheduled without waiting when an
        event loop is running (outcome PENDING). With no running loop this
        call blocks until the callback finishes, since nothing else could
        drive it; use ``submit_async()`` from coroutines.

        Returns:
            ADVANCED or INVALID from the validation gate, otherwise the
            submission controller's outcome (SUBMITTED, PENDING or FAILED)
        """
        outcome = self._submission_gate()
        if outcome is not None:
            return outcome
        return self._submission.dispatch(self._machine.state.values)

    async def submit_async(self) -> SubmissionOutcome:
        """Like ``submit()``, but awaits an asynchronous ``on_submit``."""
        outcome = self._submission_gate()
        if outcome is not None:
            return outcome
        return await self._submission.dispatch_async(self._machine.state.values)

    def reset(self) -> None:
        """Restore field defaults, clear errors and touched, return to step 0.

        ``initial_values`` are not reapplied. ``on_reset`` runs afterwards.
        """
        old_step = self.current_step
        self._machine.reset()
        self._emit(FormEventType.FORM_RESET, {"fromStep": old_step})
        if self.options.on_reset is not None:
            self.options.on_reset()

    def get_events(self) -> List[FormEvent]:
        """Most recent events emitted by this form, in chronological order.

        Only the last ``max_events`` events are kept; older ones are dropped.
        """
        return list(self._events)

    def _submission_gate(self) -> Optional[SubmissionOutcome]:
        if self.is_stepped and not self._machine.is_last_step:
            return SubmissionOutcome.ADVANCED if self.next() else SubmissionOutcome.INVALID

        self._emit(FormEventType.SUBMISSION_ATTEMPTED, {})
        if self._machine.validate_current_step():
            self._validation_failed()
            return SubmissionOutcome.INVALID
        logger.debug("Form %s passed validation; submitting", self.form_id)
        return None

    def _validation_failed(self) -> None:
        self._emit(
            FormEventType.VALIDATION_FAILED,
            {"errors": dict(self._machine.state.errors)},
        )

    def _step_changed(self, old_step: int) -> None:
        new_step = self.current_step
        self._emit(FormEventType.STEP_CHANGED, {"fromStep": old_step, "toStep": new_step})
        if not self.is_stepped or self.options.on_step_change is None:
            return
        result = self.options.on_step_change(
            new_step, self.total_steps, dict(self._machine.state.values)
        )
        if inspect.isawaitable(result):
            self._detach(result)

    def _detach(self, awaitable: Any) -> None:
        # on_step_change is never awaited; async work runs on the caller's loop if there is one
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "on_step_change returned an awaitable but no event loop is running; dropping it"
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _emit(self, event_type: FormEventType, payload: Dict[str, Any]) -> None:
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            form_id=self.form_id,
            ts=datetime.now(timezone.utc),
            step=self._machine.state.current_step,
            payload=payload,
        )
        self._events.append(event)
        self.emitter.emit(event)


__all__ = [
    "FormRuntime",
]
