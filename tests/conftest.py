"""Test configuration and shared fixtures."""

from __future__ import annotations

import sys
from concurrent.futures import Executor, Future
from typing import Any, Callable, List, Optional

import pytest
from prometheus_client import CollectorRegistry

from pushmetrics.metrics import hooks
from pushmetrics.metrics.gateway import Endpoint, PushIdentity


class ManualTimer:
    def __init__(self, scheduler: "ManualScheduler", interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.next_due = scheduler.now + interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock: timers only fire when ``advance`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[ManualTimer] = []

    def call_every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self, interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active_timers(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.active_timers if t.next_due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.next_due)
            self.now = timer.next_due
            timer.next_due += timer.interval
            timer.callback()
        self.now = target


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self) -> None:
        self.submitted = 0
        self.shutdown_called = False

    def submit(self, fn, /, *args: Any, **kwargs: Any) -> Future:
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self.shutdown_called = True


class RecordingGateway:
    """Gateway double that records identities and raises queued errors."""

    def __init__(self) -> None:
        self.pushes: List[PushIdentity] = []
        self.deletes: List[PushIdentity] = []
        self.push_errors: List[Optional[Exception]] = []
        self.delete_error: Optional[Exception] = None

    def push_add(self, identity: PushIdentity) -> None:
        self.pushes.append(identity)
        if self.push_errors:
            error = self.push_errors.pop(0)
            if error is not None:
                raise error

    def delete(self, identity: PushIdentity) -> None:
        self.deletes.append(identity)
        if self.delete_error is not None:
            raise self.delete_error


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def executor() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint.parse("http://pushgateway:9091")


@pytest.fixture(autouse=True)
def isolated_fatal_hooks(monkeypatch):
    """Keep sessions from one test out of another test's excepthook chain."""
    monkeypatch.setattr(sys, "excepthook", sys.__excepthook__)
    monkeypatch.setattr(hooks, "_hooks", {})
    monkeypatch.setattr(hooks, "_previous_excepthook", None)
    yield
