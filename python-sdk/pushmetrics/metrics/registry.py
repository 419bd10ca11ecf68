"""Prometheus registry wrapper and default process metrics."""

import threading
import time
import weakref
from typing import Iterable, List, Optional

from prometheus_client import (
    GC_COLLECTOR,
    PLATFORM_COLLECTOR,
    PROCESS_COLLECTOR,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
)
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

# Use default registry
Registry = REGISTRY

# Pushgateway client metrics
pushgateway_requests_total = Counter(
    "pushgateway_requests_total",
    "Total Pushgateway requests",
    ["job", "operation", "status"],
    registry=Registry,
)

pushgateway_request_duration_seconds = Histogram(
    "pushgateway_request_duration_seconds",
    "Pushgateway request duration in seconds",
    ["job", "operation"],
    registry=Registry,
)

pushgateway_sessions_running = Gauge(
    "pushgateway_sessions_running",
    "Push sessions with an armed push timer",
    ["job"],
    registry=Registry,
)

_BUILTIN_COLLECTORS = (PROCESS_COLLECTOR, PLATFORM_COLLECTOR, GC_COLLECTOR)

_lock = threading.Lock()
_installed: "weakref.WeakKeyDictionary[CollectorRegistry, DefaultMetricsCollector]" = weakref.WeakKeyDictionary()


class DefaultMetricsCollector(Collector):
    """Process, platform and GC metrics with a name blacklist and optional sampling interval.

    When ``interval`` is set, a collection is reused until ``interval``
    milliseconds have passed, so pushes faster than the interval report the
    same sample.
    """

    def __init__(
        self,
        blacklist: Iterable[str] = (),
        interval: Optional[int] = None,
        clock=time.monotonic,
    ):
        self.blacklist = frozenset(blacklist)
        self.interval = interval
        self._clock = clock
        self._collectors = [
            ProcessCollector(registry=None),
            PlatformCollector(registry=None),
            # GCCollector always registers itself; give it a private registry
            GCCollector(registry=CollectorRegistry()),
        ]
        self._cache: Optional[List[Metric]] = None
        self._sampled_at = 0.0
        self._lock = threading.Lock()

    def collect(self) -> Iterable[Metric]:
        with self._lock:
            now = self._clock()
            if (
                self._cache is None
                or self.interval is None
                or (now - self._sampled_at) * 1000 >= self.interval
            ):
                self._cache = self._sample()
                self._sampled_at = now
            return list(self._cache)

    def _sample(self) -> List[Metric]:
        families = []
        for collector in self._collectors:
            for family in collector.collect():
                if family.name in self.blacklist:
                    continue
                family.samples = [s for s in family.samples if s.name not in self.blacklist]
                families.append(family)
        return families


def register_default_metrics(
    registry: CollectorRegistry = Registry,
    blacklist: Optional[Iterable[str]] = None,
    interval: Optional[int] = None,
) -> DefaultMetricsCollector:
    """Install default process metrics on ``registry``.

    Calling this again for the same registry replaces the previous
    collector. On the global registry, prometheus_client's own process,
    platform and GC collectors are removed first so metric names do not
    collide.
    """
    collector = DefaultMetricsCollector(blacklist or (), interval)
    with _lock:
        previous = _installed.get(registry)
        if previous is not None:
            registry.unregister(previous)
        elif registry is REGISTRY:
            for builtin in _BUILTIN_COLLECTORS:
                try:
                    registry.unregister(builtin)
                except KeyError:
                    pass  # already removed by the application
        registry.register(collector)
        _installed[registry] = collector
    return collector
