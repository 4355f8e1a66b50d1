"""Synchronous dispatch of payroll domain events.

Handlers are matched by event class, then the catch-all list. A failing
handler is logged and reported back to the emitter's caller; it never undoes
the transition that emitted the event.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Protocol, TypeVar, runtime_checkable

from payroll_core.events.types import DomainEvent

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DomainEvent)


@runtime_checkable
class EventHandler(Protocol):
    def __call__(self, event: DomainEvent) -> None: ...


class EventEmitter:
    """Routes events to registered handlers.

    Usage:
        emitter = EventEmitter()
        emitter.on(PayslipPublished, notify_employee)
        emitter.on_all(audit_log)
        emitter.emit(event)
    """

    def __init__(self) -> None:
        self._by_type: dict[str, list[EventHandler]] = defaultdict(list)
        self._catch_all: list[EventHandler] = []
        self._local = threading.local()

    @property
    def _pending(self) -> list[DomainEvent] | None:
        """Events held by the batch open on the calling thread, if any."""
        return getattr(self._local, "pending", None)

    @_pending.setter
    def _pending(self, held: list[DomainEvent] | None) -> None:
        self._local.pending = held

    def on(self, event_type: type[T] | list[type[T]], handler: EventHandler) -> None:
        """Register ``handler`` for one or more event classes."""
        for cls in event_type if isinstance(event_type, list) else [event_type]:
            self._by_type[cls.__name__].append(handler)

    def on_all(self, handler: EventHandler) -> None:
        self._catch_all.append(handler)

    def handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        return [*self._by_type.get(event.event_type, []), *self._catch_all]

    def emit(self, event: DomainEvent) -> list[Exception]:
        """Deliver ``event`` now, or hold it if a batch is open.

        Returns the exceptions raised by handlers.
        """
        if self._pending is not None:
            self._pending.append(event)
            return []
        return self._deliver(event)

    def _deliver(self, event: DomainEvent) -> list[Exception]:
        failures: list[Exception] = []
        for handler in self.handlers_for(event):
            try:
                handler(event)
            except Exception as e:
                logger.exception("Handler %r failed for %s", handler, event.event_type)
                failures.append(e)
        return failures

    def batch(self) -> EventBatch:
        """Hold events until the block exits; drop them if it raises."""
        return EventBatch(self)


class EventBatch:
    """Context manager returned by ``EventEmitter.batch``.

    A batch opened inside another one defers to the outer batch.
    """

    def __init__(self, emitter: EventEmitter) -> None:
        self._emitter = emitter
        self._nested = False
        self.errors: list[Exception] = []

    def __enter__(self) -> EventBatch:
        self._nested = self._emitter._pending is not None
        if not self._nested:
            self._emitter._pending = []
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._nested:
            return
        held, self._emitter._pending = self._emitter._pending or [], None
        if exc_type is not None:
            logger.info("Discarded %d batched events", len(held))
            return
        for event in held:
            self.errors.extend(self._emitter._deliver(event))

    def add(self, event: DomainEvent) -> None:
        self._emitter.emit(event)
