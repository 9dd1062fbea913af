import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from contextvars import ContextVar
from typing import Callable

from copctl.model import ProgressEvent, ProgressEventType

log = logging.getLogger(__name__)

Handler = Callable[[ProgressEvent], None]


class EventBus:
    """Fans progress events out to the subscribed reporters.

    Handlers run synchronously in the emitting thread, in subscription order.
    """

    def __init__(self) -> None:
        self._handlers: list[Handler] = []
        self._lock = threading.Lock()

    @property
    def handlers(self) -> tuple[Handler, ...]:
        with self._lock:
            return tuple(self._handlers)

    def subscribe(self, handler: Handler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        with self._lock, suppress(ValueError):
            self._handlers.remove(handler)

    def publish(self, event: ProgressEvent) -> None:
        for handler in self.handlers:
            handler(event)


_default_bus = EventBus()
_active_bus: ContextVar[EventBus] = ContextVar("copctl_progress_bus", default=_default_bus)


def get_bus() -> EventBus:
    """Bus receiving the events emitted in the current context."""
    return _active_bus.get()


@contextmanager
def use_bus(bus: EventBus) -> Iterator[EventBus]:
    """Route the events emitted inside the block to `bus` instead of the default one."""
    token = _active_bus.set(bus)
    try:
        yield bus
    finally:
        _active_bus.reset(token)


def emit_event(event_type: ProgressEventType, task_id: str, **data) -> ProgressEvent:
    """
    Build a progress event and publish it on the current bus.

    Args:
        event_type (ProgressEventType): what happened to the task.
        task_id (str): identifier of the tracked task, one per product download.

    Returns:
        ProgressEvent: the published event.
    """
    event = ProgressEvent(type=event_type, task_id=task_id, data=data)
    log.debug("Progress event %s for %s", event_type.value, task_id)
    get_bus().publish(event)
    return event
