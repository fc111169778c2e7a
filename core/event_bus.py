"""Thread-safe non-blocking pub/sub bus for cues, frames and lifecycle events."""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from threading import Lock, Semaphore
from typing import Any, Callable


LOGGER = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class EventBus:
    """Minimal non-blocking event bus.

    Callbacks execute in a worker pool so publish() never delays a tick. When
    ``max_pending`` deliveries are in flight new ones are dropped, which suits
    fire-and-forget audio cues.
    """

    def __init__(self, max_workers: int = 4, max_pending: int = 2048) -> None:
        self._subs: dict[str, list[Callback]] = defaultdict(list)
        self._lock = Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="event-bus")
        self._pending = Semaphore(max(1, int(max_pending)))
        self._closed = False

    def subscribe(self, event_type: str, callback: Callback) -> None:
        with self._lock:
            self._subs[event_type].append(callback)

    def unsubscribe(self, event_type: str, callback: Callback) -> None:
        with self._lock:
            if callback in self._subs.get(event_type, []):
                self._subs[event_type].remove(callback)

    def publish(self, event_type: str, payload: Any) -> None:
        with self._lock:
            if self._closed:
                return
            callbacks = list(self._subs.get(event_type, []))
        for callback in callbacks:
            if not self._pending.acquire(blocking=False):
                LOGGER.debug("Dropping '%s' delivery; bus saturated.", event_type)
                continue
            future = self._executor.submit(self._safe_invoke, event_type, callback, payload)
            future.add_done_callback(lambda _f: self._pending.release())

    def close(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    @staticmethod
    def _safe_invoke(event_type: str, callback: Callback, payload: Any) -> None:
        try:
            callback(payload)
        except Exception:
            LOGGER.exception("Subscriber for '%s' failed.", event_type)
