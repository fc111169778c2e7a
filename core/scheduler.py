"""Fixed-cadence tick scheduling on top of pluggable timer hosts.

``TickScheduler`` mirrors a ``setInterval`` that always calls the newest
callback reference and is only rebuilt when the interval itself changes.
Timer hosts decide where callbacks run: ``ManualTimerHost`` drives a virtual
clock for deterministic tests and headless runs, ``ThreadingTimerHost`` runs
every callback on one worker thread so ticks never overlap.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable


LOGGER = logging.getLogger(__name__)

INACTIVE = None

TimerCallback = Callable[[], None]


class TimerHostError(RuntimeError):
    """Raised when a timer host stopped because a callback failed."""


class TimerHost(ABC):
    """Single-threaded source of delayed callbacks."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: TimerCallback) -> Any:
        """Schedule ``callback`` once after ``delay_ms`` and return a handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending handle. Cancelling a fired handle is a no-op."""


class _Timer:
    __slots__ = ("deadline", "seq", "callback", "cancelled")

    def __init__(self, deadline: float, seq: int, callback: TimerCallback) -> None:
        self.deadline = deadline
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def __lt__(self, other: "_Timer") -> bool:
        return (self.deadline, self.seq) < (other.deadline, other.seq)


class ManualTimerHost(TimerHost):
    """Virtual-time host advanced explicitly by the caller."""

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._heap: list[_Timer] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, callback: TimerCallback) -> _Timer:
        timer = _Timer(self.now_ms + max(0.0, float(delay_ms)), next(self._seq), callback)
        heapq.heappush(self._heap, timer)
        return timer

    def cancel(self, handle: _Timer) -> None:
        handle.cancelled = True

    def pending_count(self) -> int:
        return sum(1 for timer in self._heap if not timer.cancelled)

    def _pop_live(self) -> _Timer | None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0] if self._heap else None

    def run_next(self) -> bool:
        """Jump to the earliest pending timer and fire it.

        Returns ``False`` when nothing is scheduled.
        """
        timer = self._pop_live()
        if timer is None:
            return False
        heapq.heappop(self._heap)
        self.now_ms = max(self.now_ms, timer.deadline)
        timer.cancelled = True
        timer.callback()
        return True

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing every timer that comes due.

        Returns the number of callbacks fired. Callback exceptions propagate.
        """
        target = self.now_ms + float(ms)
        fired = 0
        while True:
            timer = self._pop_live()
            if timer is None or timer.deadline > target:
                break
            heapq.heappop(self._heap)
            self.now_ms = timer.deadline
            timer.cancelled = True
            timer.callback()
            fired += 1
        self.now_ms = target
        return fired


class ThreadingTimerHost(TimerHost):
    """Wall-clock host with a single worker thread.

    A failing callback stops the host; the error is re-raised from ``join``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._heap: list[_Timer] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._running = False
        self._failure: BaseException | None = None
        self._thread: threading.Thread | None = None

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(target=self._run, name="tick-host", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        with self._cond:
            self._running = False
            self._cond.notify_all()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        if self._failure is not None:
            raise TimerHostError("Timer callback failed.") from self._failure

    def call_later(self, delay_ms: float, callback: TimerCallback) -> _Timer:
        with self._cond:
            timer = _Timer(self._now_ms() + max(0.0, float(delay_ms)), next(self._seq), callback)
            heapq.heappush(self._heap, timer)
            self._cond.notify_all()
            return timer

    def cancel(self, handle: _Timer) -> None:
        with self._cond:
            handle.cancelled = True
            self._cond.notify_all()

    def _run(self) -> None:
        while True:
            with self._cond:
                timer: _Timer | None = None
                while self._running:
                    while self._heap and self._heap[0].cancelled:
                        heapq.heappop(self._heap)
                    if not self._heap:
                        self._cond.wait()
                        continue
                    wait_ms = self._heap[0].deadline - self._now_ms()
                    if wait_ms > 0:
                        self._cond.wait(timeout=wait_ms / 1000.0)
                        continue
                    timer = heapq.heappop(self._heap)
                    timer.cancelled = True
                    break
                if timer is None:
                    return
            try:
                timer.callback()
            except Exception as exc:
                LOGGER.exception("Timer callback failed; stopping host: %s", exc)
                self._failure = exc
                self.stop()
                return


class TickScheduler:
    """Invoke the latest callback every ``interval_ms`` while active."""

    def __init__(
        self,
        host: TimerHost,
        callback: TimerCallback,
        interval_ms: float | None = INACTIVE,
    ) -> None:
        self._host = host
        self._callback = callback
        self._interval: float | None = INACTIVE
        self._handle: Any = None
        self.set_interval(interval_ms)

    @property
    def callback(self) -> TimerCallback:
        return self._callback

    @callback.setter
    def callback(self, callback: TimerCallback) -> None:
        # Cadence is untouched; the pending timer reads the new reference.
        self._callback = callback

    @property
    def interval_ms(self) -> float | None:
        return self._interval

    @property
    def active(self) -> bool:
        return self._interval is not INACTIVE

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def set_interval(self, interval_ms: float | None) -> None:
        if interval_ms is not INACTIVE and interval_ms <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_ms}.")
        if interval_ms == self._interval:
            return
        self._cancel_pending()
        self._interval = interval_ms
        if interval_ms is not INACTIVE:
            self._schedule()

    def stop(self) -> None:
        self.set_interval(INACTIVE)

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._host.cancel(self._handle)
            self._handle = None

    def _schedule(self) -> None:
        self._handle = self._host.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._interval is INACTIVE:
            return
        self._schedule()
        self._callback()
