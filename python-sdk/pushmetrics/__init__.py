"""
Pushgateway Metrics SDK for Python

Periodically pushes prometheus_client metrics to a Prometheus Pushgateway
and deletes them again on shutdown.
"""

from pushmetrics.errors import ConfigurationError, MetricsError, SessionDisposedError
from pushmetrics.logging import LogConfig, new_logger
from pushmetrics.metrics import (
    MetricsOptions,
    PushSession,
    Registry,
    SessionDirectory,
    create_session,
    start_metrics_session,
    stop_metrics_session,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "MetricsError",
    "SessionDisposedError",
    # Logging
    "new_logger",
    "LogConfig",
    # Metrics
    "MetricsOptions",
    "PushSession",
    "Registry",
    "SessionDirectory",
    "create_session",
    "start_metrics_session",
    "stop_metrics_session",
]

__version__ = "0.1.0"
