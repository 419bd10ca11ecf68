"""Metrics module initialization."""

from prometheus_client import Counter, Gauge, Histogram, Summary

from pushmetrics.metrics.config import MetricsOptions, new_options
from pushmetrics.metrics.directory import (
    SessionDirectory,
    create_session,
    default_labels,
    get_default_directory,
    start_metrics_session,
    stop_metrics_session,
)
from pushmetrics.metrics.gateway import Endpoint, GatewayClient, PushgatewayClient, PushIdentity
from pushmetrics.metrics.registry import Registry, register_default_metrics
from pushmetrics.metrics.session import PushSession, SessionState

__all__ = [
    "Counter",
    "Endpoint",
    "Gauge",
    "GatewayClient",
    "Histogram",
    "MetricsOptions",
    "PushIdentity",
    "PushSession",
    "PushgatewayClient",
    "Registry",
    "SessionDirectory",
    "SessionState",
    "Summary",
    "create_session",
    "default_labels",
    "get_default_directory",
    "new_options",
    "register_default_metrics",
    "start_metrics_session",
    "stop_metrics_session",
]
