"""
Synchronous event bus shared by the console services.
"""
from __future__ import annotations

import threading
from typing import Any, Iterable

from procurement_console.core.events.event_sink import EventSink


class EventBus:
    """Dispatches events to registered sinks in registration order.

    The orchestrator emits on the caller's thread, after the inventory
    workers have joined. The lock only matters when several callers share
    one bus; it also keeps register() from racing with emit().
    """

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._lock = threading.Lock()
        self._closed = False

    def register(self, sink: EventSink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def emit(self, event: Any) -> None:
        with self._lock:
            for sink in self._sinks:
                sink.on_event(event)

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True
