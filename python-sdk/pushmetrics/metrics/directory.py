"""Session directory: owns at most one active push session."""

import getpass
import socket
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Mapping, Optional

from pushmetrics.logging import get_logger
from pushmetrics.metrics.config import MetricsOptions
from pushmetrics.metrics.gateway import PushIdentity
from pushmetrics.metrics.registry import Registry, register_default_metrics
from pushmetrics.metrics.session import PushSession


def default_labels() -> Dict[str, str]:
    """Grouping labels identifying this process: host name and user name."""
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        # No passwd entry for the current UID
        username = "unknown"
    return {
        "hostname": socket.gethostname(),
        "username": username,
    }


def create_session(
    options: MetricsOptions,
    labels: Optional[Mapping[str, str]] = None,
    *,
    registry=Registry,
    **collaborators: Any,
) -> PushSession:
    """Build a new push session that the caller owns.

    Registers default process metrics on ``registry`` and starts pushing
    immediately. ``collaborators`` are passed through to ``PushSession``
    (``gateway``, ``scheduler``, ``executor``).
    """
    register_default_metrics(
        registry,
        blacklist=options.default_blacklist,
        interval=options.default_interval,
    )
    get_logger("metrics").info(
        "Registered default metrics",
        blacklist=list(options.default_blacklist),
        interval=options.default_interval,
    )

    return PushSession(
        options.endpoint,
        options.push_interval,
        options.job_name,
        dict(labels or {}),
        registry=registry,
        timeout=options.timeout,
        **collaborators,
    )


class SessionDirectory:
    """Holds the current push session; starting a new one disposes the old one.

    ``start`` reads, disposes and replaces the current session under a lock.
    With ``MetricsOptions.await_previous_disposal`` unset, the old session's
    delete runs in the background and may finish after the new session's
    first push. Set it to wait for the delete (up to ``options.timeout``)
    before the new session starts.
    """

    def __init__(self, session_factory: Callable[..., PushSession] = create_session):
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self._current: Optional[PushSession] = None

    @property
    def current(self) -> Optional[PushSession]:
        return self._current

    def start(
        self,
        options: MetricsOptions,
        labels: Optional[Mapping[str, str]] = None,
        **collaborators: Any,
    ) -> PushSession:
        """Start a session labelled with ``default_labels()`` plus ``labels``."""
        groupings = {**default_labels(), **(labels or {})}
        # Reject bad labels before the running session is disposed
        PushIdentity(options.job_name, groupings)

        with self._lock:
            previous = self._current
            self._current = None
            if previous is not None:
                disposal = previous.dispose()
                if options.await_previous_disposal:
                    self._wait_for_disposal(disposal, options.timeout)

            self._current = self._session_factory(options, groupings, **collaborators)
            return self._current

    def stop(self) -> Optional[Future]:
        """Dispose the current session, if any, and return its dispose future."""
        with self._lock:
            session, self._current = self._current, None
        if session is None:
            return None
        return session.dispose()

    def _wait_for_disposal(self, disposal: Future, timeout: float):
        try:
            disposal.result(timeout=timeout)
        except Exception as e:
            get_logger("metrics").warning(
                "Previous push session was not cleaned up, starting new session anyway",
                error=str(e),
            )


_directory = SessionDirectory()


def get_default_directory() -> SessionDirectory:
    return _directory


def start_metrics_session(
    options: Optional[MetricsOptions] = None,
    labels: Optional[Mapping[str, str]] = None,
) -> PushSession:
    """Start the process-wide push session.

    Options default to ``MetricsOptions()``, which reads the environment.
    """
    return _directory.start(options or MetricsOptions(), labels)


def stop_metrics_session() -> Optional[Future]:
    """Stop the process-wide push session."""
    return _directory.stop()
