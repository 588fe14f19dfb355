"""Event system for running forms.

Every transition of a form instance that matters to an observer (a field edit,
a blur, a failed validation gate, a step change, a submission attempt and its
outcome, a reset) emits a typed FormEvent. The runtime keeps the events it
emitted in an append-only list and dispatches each one through an
EventEmitter so callers can subscribe without touching the state machine.

Events are notifications only. Nothing a listener does can change the
outcome of the transition that emitted the event.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json
import logging

from dateutil.parser import isoparse

from .types import FormEventType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form instance's lifecycle.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_3f2a...")
        type: Event type from FormEventType
        form_id: ID of the form instance that emitted the event
        ts: UTC timestamp when the event occurred
        step: Active step index after the event
        payload: Optional event-specific data (field name, errors, step change)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=FormEventType.FIELD_BLURRED,
        ...     form_id="form_001",
        ...     ts=datetime.now(timezone.utc),
        ...     step=0,
        ...     payload={"field": "email"}
        ... )
        >>> event.type.value
        'field.blurred'
    """
    event_id: str
    type: FormEventType
    form_id: str
    ts: datetime
    step: int = 0
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Convert string type to FormEventType enum if needed."""
        if isinstance(self.type, str) and not isinstance(self.type, FormEventType):
            object.__setattr__(self, "type", FormEventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Returns:
            Dictionary with all event fields. Timestamp is formatted as ISO 8601.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
            "step": self.step,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single line of JSON.

        Values the json module cannot encode (dates, Decimals) are written
        with ``str``.
        """
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        return cls(
            event_id=data["eventId"],
            type=FormEventType(data["type"]),
            form_id=data["formId"],
            ts=isoparse(data["ts"]),
            step=data.get("step", 0),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted and should return
quickly. An exception raised by a listener is logged and does not reach the
other listeners or the transition that emitted the event.
"""


class EventEmitter:
    """Dispatches form events to subscribed listeners.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (listener exceptions are logged, never propagated)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(FormEventType.FORM_RESET, seen.append)
        >>> emitter.listener_count(FormEventType.FORM_RESET)
        1
    """

    def __init__(self):
        """Initialize event emitter with empty listener registries."""
        self._listeners: Dict[FormEventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: FormEventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: FormEventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from the wildcard subscription. Unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners.

        Type-specific listeners run first, then wildcard listeners, each group
        in registration order.
        """
        for listener in self._listeners.get(event.type, []) + self._any_listeners:
            try:
                listener(event)
            except Exception:
                logger.warning(
                    "Listener %r failed for event %s (%s)",
                    listener,
                    event.event_id,
                    event.type.value,
                    exc_info=True,
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[FormEventType] = None) -> int:
        """Count registered listeners.

        Args:
            event_type: If provided, count listeners for this type only.
                        If None, count all listeners (including wildcard).
        """
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        total = len(self._any_listeners)
        for listeners in self._listeners.values():
            total += len(listeners)
        return total


__all__ = [
    "FormEvent",
    "FormEventType",
    "EventListener",
    "EventEmitter",
]
