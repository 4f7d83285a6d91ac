"""In-process publish/subscribe channel for session events.

Publishing never blocks on delivery: events are queued and a dispatcher
thread hands them to subscribers in emission order. A failing subscriber
is logged and does not affect the others.
"""

import queue
import threading
from collections.abc import Callable
from typing import Any

from piiscan.events.models import Event
from piiscan.logging.logger import Log

Subscriber = Callable[[Any], None]

_STOP = object()


class EventChannel:
    """Typed fan-out of events to independent subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[tuple[type | None, Subscriber]] = []
        self._queue: queue.Queue[object] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def subscribe(self, handler: Subscriber, event_type: type | None = None) -> None:
        """Register *handler* for *event_type* (or for every event if None)."""
        with self._lock:
            self._subscribers.append((event_type, handler))

    def publish(self, event: Event) -> None:
        if self._thread is None:
            self._deliver(event)
            return
        self._queue.put(event)

    def start(self) -> None:
        """Start asynchronous delivery. Before start, publish delivers inline."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._dispatch_loop, name="event-dispatcher", daemon=True
        )
        self._thread.start()

    def close(self, timeout: float | None = 10.0) -> None:
        """Deliver already-queued events, then stop the dispatcher."""
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def _dispatch_loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            self._deliver(item)

    def _deliver(self, event: object) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for event_type, handler in subscribers:
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception as exc:
                Log.warning(
                    f"Event subscriber {getattr(handler, '__qualname__', handler)} "
                    f"failed on {type(event).__name__}: {exc}"
                )
