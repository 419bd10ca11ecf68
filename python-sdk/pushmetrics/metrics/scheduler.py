"""Recurring timers for push sessions."""

import threading
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Stop future ticks. Must be safe to call more than once."""


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Invoke ``callback`` every ``interval`` seconds until the handle is cancelled."""


class IntervalTimer:
    """Daemon thread that fires a callback on a fixed interval."""

    def __init__(self, interval: float, callback: Callable[[], None], name: Optional[str] = None):
        self.interval = interval
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self):
        self._thread.start()

    def cancel(self):
        # No join: cancel may run on the timer thread or under a caller's lock
        self._stop_event.set()

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def _run(self):
        while not self._stop_event.wait(self.interval):
            self._callback()


class ThreadScheduler:
    """Default scheduler: one ``IntervalTimer`` thread per armed timer."""

    def __init__(self, thread_name: str = "pushmetrics-timer"):
        self.thread_name = thread_name

    def call_every(self, interval: float, callback: Callable[[], None]) -> IntervalTimer:
        timer = IntervalTimer(interval, callback, name=self.thread_name)
        timer.start()
        return timer
