"""Push session: pushes a registry to a Pushgateway on a fixed interval."""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Mapping, Optional

from prometheus_client import CollectorRegistry

from pushmetrics.errors import ConfigurationError, SessionDisposedError
from pushmetrics.logging import get_logger
from pushmetrics.metrics import hooks
from pushmetrics.metrics.gateway import Endpoint, GatewayClient, PushgatewayClient, PushIdentity
from pushmetrics.metrics.registry import Registry, pushgateway_sessions_running
from pushmetrics.metrics.scheduler import Scheduler, ThreadScheduler, TimerHandle


class SessionState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    DISPOSED = "disposed"


class PushSession:
    """Periodically pushes metrics to a Pushgateway under one fixed identity.

    Construction pushes once right away, then arms the push timer. Pushes run
    on the session's executor and are fire-and-forget: a failed push is
    logged and the next tick tries again. ``dispose()`` stops the timer and
    deletes everything this session pushed, returning a future that carries
    the outcome of that delete.

    States are ``running``, ``paused`` and ``disposed``; ``disposed`` is
    terminal and ``pause()``/``resume()`` raise ``SessionDisposedError`` there.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        push_interval: int,
        job_name: str,
        groupings: Optional[Mapping[str, str]] = None,
        *,
        registry: CollectorRegistry = Registry,
        gateway: Optional[GatewayClient] = None,
        scheduler: Optional[Scheduler] = None,
        executor: Optional[Executor] = None,
        timeout: float = 30.0,
    ):
        if isinstance(push_interval, bool) or not isinstance(push_interval, int) or push_interval <= 0:
            raise ConfigurationError(f"push_interval must be a positive integer of milliseconds, got {push_interval!r}")

        self.endpoint = endpoint
        self.push_interval = push_interval
        self.identity = PushIdentity(job_name, groupings or {})
        self.timeout = timeout
        self._gateway = gateway or PushgatewayClient(endpoint, registry=registry, timeout=timeout)
        self._scheduler = scheduler or ThreadScheduler()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(thread_name_prefix="pushmetrics-push")

        self._lock = threading.Lock()
        self._state = SessionState.PAUSED
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._disposal: Optional[Future] = None
        self._log = get_logger(
            "metrics.client",
            endpoint=endpoint.address,
            job=self.identity.job_name,
        )

        self._unregister_fatal_hook = hooks.register_fatal_hook(self._on_fatal_error)

        self._submit_push()
        self.resume()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._timer is not None

    def resume(self) -> None:
        """Arm the push timer. Does nothing if the session is already running."""
        with self._lock:
            self._ensure_not_disposed("resume")
            if self._timer is not None:
                self._log.debug("Push timer already armed")
                return
            self._generation += 1
            generation = self._generation
            self._timer = self._scheduler.call_every(
                self.push_interval / 1000,
                lambda: self._tick(generation),
            )
            self._state = SessionState.RUNNING
            pushgateway_sessions_running.labels(job=self.identity.job_name).inc()

    def pause(self) -> None:
        """Cancel the push timer. In-flight pushes are left to finish."""
        with self._lock:
            self._ensure_not_disposed("pause")
            self._pause_locked()

    def dispose(self) -> Future:
        """Pause and delete this session's group from the gateway.

        Returns a future that resolves to ``None`` once the delete succeeded
        or raises the transport error. Repeated calls return the same future.
        """
        with self._lock:
            if self._disposal is not None:
                return self._disposal
            self._pause_locked()
            self._state = SessionState.DISPOSED
            self._log.info("Disposing Pushgateway metrics", **self.identity.as_log_context())
            self._disposal = self._executor.submit(self._delete)
            if self._owns_executor:
                self._executor.shutdown(wait=False)
        self._unregister_fatal_hook()
        return self._disposal

    def _pause_locked(self):
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        self._state = SessionState.PAUSED
        pushgateway_sessions_running.labels(job=self.identity.job_name).dec()

    def _ensure_not_disposed(self, operation: str):
        if self._state is SessionState.DISPOSED:
            raise SessionDisposedError(f"Cannot {operation} a disposed push session")

    def _tick(self, generation: int):
        with self._lock:
            # Stale tick from a timer cancelled by pause()
            if generation != self._generation or self._timer is None:
                return
            self._submit_push_locked()

    def _submit_push(self):
        with self._lock:
            self._submit_push_locked()

    def _submit_push_locked(self):
        self._log.debug("Pushing metrics to Pushgateway", **self.identity.as_log_context())
        self._executor.submit(self._push)

    def _push(self):
        try:
            self._gateway.push_add(self.identity)
        except Exception as e:
            self._log.error(
                f"An error occurred while pushing metrics to Pushgateway: {e}",
                exc_info=True,
                **self.identity.as_log_context(),
            )
            return
        self._log.info("Successfully pushed metrics to Pushgateway")

    def _delete(self):
        try:
            self._gateway.delete(self.identity)
        except Exception as e:
            self._log.error(
                f"An error occurred while disposing Pushgateway metrics: {e}",
                exc_info=True,
                **self.identity.as_log_context(),
            )
            raise
        self._log.info("Successfully disposed Pushgateway metrics", **self.identity.as_log_context())

    def _on_fatal_error(self, exc_type, exc, tb):
        # Best effort: the interpreter exits right after the excepthook chain
        try:
            self.dispose().result(timeout=self.timeout)
        except Exception as e:
            self._log.warning("Pushgateway cleanup after fatal error did not complete", error=str(e))
