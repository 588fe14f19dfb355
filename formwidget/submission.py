"""Submission controller: hands validated values to the caller's callback.

The controller is only reached after the validation gate passed. It calls
``on_submit`` with a copy of the values and absorbs whatever happens next:

- a synchronous callback runs inline; if it raises, the error is logged
- an awaitable result is scheduled on the running event loop and not awaited;
  its failure is logged when the task finishes
- with no running loop, an awaitable result is driven to completion on a
  fresh loop, since nothing else could ever run it

Failures are never retried, never written into the form's field errors and
never block a later attempt. They are logged and, when a notifier is
configured, published as ``submission.failed`` events. The engine does not
own a loading flag, a timeout or cancellation; callers wanting those wrap
the callback.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

from formwidget.config import SubmitCallback
from formwidget.types import FieldValue, FormEventType, SubmissionOutcome


logger = logging.getLogger(__name__)

Notifier = Callable[[FormEventType, Dict[str, Any]], None]


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class SubmissionController:
    """Invokes the external submit callback and contains its failures.

    Attributes:
        on_submit: The caller's submit callback
        notify: Optional - receives SUBMISSION_SUCCEEDED / SUBMISSION_FAILED

    Examples:
        >>> received = []
        >>> controller = SubmissionController(received.append)
        >>> controller.dispatch({"name": "Ada"})
        <SubmissionOutcome.SUBMITTED: 'submitted'>
        >>> received
        [{'name': 'Ada'}]
    """

    def __init__(self, on_submit: SubmitCallback, notify: Optional[Notifier] = None):
        self.on_submit = on_submit
        self.notify = notify
        self._pending: Set["asyncio.Future[Any]"] = set()

    @property
    def pending_count(self) -> int:
        """Number of scheduled asynchronous submissions not yet finished."""
        return len(self._pending)

    def dispatch(self, values: Mapping[str, FieldValue]) -> SubmissionOutcome:
        """Call ``on_submit``, waiting on an asynchronous result only without a loop.

        Inside a running event loop an awaitable result is scheduled as a
        task. With no running loop it is run to completion with
        ``asyncio.run``, so this call blocks until the callback finishes.

        Returns:
            SUBMITTED or FAILED when the outcome is known before returning,
            PENDING when the callback's awaitable was scheduled on the
            running event loop
        """
        try:
            result = self.on_submit(dict(values))
        except Exception as exc:
            return self._failed(exc)

        if not inspect.isawaitable(result):
            return self._succeeded()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(_await(result))
            except Exception as exc:
                return self._failed(exc)
            return self._succeeded()

        task = asyncio.ensure_future(result)
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return SubmissionOutcome.PENDING

    async def dispatch_async(self, values: Mapping[str, FieldValue]) -> SubmissionOutcome:
        """Call ``on_submit`` and await its result if it returns one.

        Returns:
            SUBMITTED or FAILED
        """
        try:
            result = self.on_submit(dict(values))
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            return self._failed(exc)
        return self._succeeded()

    def _task_done(self, task: "asyncio.Future[Any]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Form submission was cancelled before it finished")
            return
        exc = task.exception()
        if exc is not None:
            self._failed(exc)
        else:
            self._succeeded()

    def _succeeded(self) -> SubmissionOutcome:
        if self.notify is not None:
            self.notify(FormEventType.SUBMISSION_SUCCEEDED, {})
        return SubmissionOutcome.SUBMITTED

    def _failed(self, exc: BaseException) -> SubmissionOutcome:
        logger.error("Form submission error: %s", exc, exc_info=exc)
        if self.notify is not None:
            self.notify(
                FormEventType.SUBMISSION_FAILED,
                {"errorType": type(exc).__name__, "message": str(exc)},
            )
        return SubmissionOutcome.FAILED


__all__ = [
    "Notifier",
    "SubmissionController",
]
