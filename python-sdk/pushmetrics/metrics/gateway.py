"""Pushgateway endpoint, push identity and transport."""

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Protocol
from urllib.parse import urlsplit

from prometheus_client import CollectorRegistry, delete_from_gateway, pushadd_to_gateway
from prometheus_client.exposition import default_handler

from pushmetrics.errors import ConfigurationError
from pushmetrics.metrics.registry import (
    Registry,
    pushgateway_request_duration_seconds,
    pushgateway_requests_total,
)

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class Endpoint:
    """Parsed Pushgateway address."""

    host: str
    port: int
    url: str

    @classmethod
    def parse(cls, url: str) -> "Endpoint":
        """Parse a gateway URL, assuming ``http://`` when no scheme is given."""
        if not isinstance(url, str) or not url.strip():
            raise ConfigurationError("Pushgateway URL must be a non-empty string")

        url = url.strip()
        if "://" not in url:
            url = f"http://{url}"

        parts = urlsplit(url)
        if parts.scheme not in _DEFAULT_PORTS:
            raise ConfigurationError(f"Unsupported Pushgateway URL scheme: {parts.scheme!r}")
        if not parts.hostname:
            raise ConfigurationError(f"Pushgateway URL has no host: {url!r}")
        try:
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid Pushgateway URL port: {url!r}") from e

        return cls(
            host=parts.hostname,
            port=port or _DEFAULT_PORTS[parts.scheme],
            url=url.rstrip("/"),
        )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class PushIdentity:
    """Job name and grouping labels that scope a pushed group on the gateway."""

    job_name: str
    groupings: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.job_name, str) or not self.job_name:
            raise ConfigurationError("Job name must be a non-empty string")
        for key, value in self.groupings.items():
            if not isinstance(key, str) or not key:
                raise ConfigurationError(f"Grouping label names must be non-empty strings, got {key!r}")
            if not isinstance(value, str):
                raise ConfigurationError(f"Grouping label {key!r} must be a string, got {value!r}")
        object.__setattr__(self, "groupings", MappingProxyType(dict(self.groupings)))

    def as_log_context(self) -> dict:
        return {"job": self.job_name, "groupings": dict(self.groupings)}


class GatewayClient(Protocol):
    """Transport used by push sessions."""

    def push_add(self, identity: PushIdentity) -> None:
        """Additively push the registry under ``identity``."""

    def delete(self, identity: PushIdentity) -> None:
        """Delete every series pushed under ``identity``."""


class PushgatewayClient:
    """Talks to a Pushgateway through prometheus_client's exposition helpers.

    ``push_add`` issues a POST, which only replaces series with the same
    names inside the group, and ``delete`` removes the whole group. Both
    raise the underlying transport error (``urllib.error.URLError`` and
    friends, or whatever a custom ``handler`` raises).
    """

    def __init__(
        self,
        endpoint: Endpoint,
        registry: CollectorRegistry = Registry,
        timeout: float = 30.0,
        handler: Callable = default_handler,
    ):
        self.endpoint = endpoint
        self.registry = registry
        self.timeout = timeout
        self.handler = handler

    def push_add(self, identity: PushIdentity) -> None:
        self._request(
            "push_add",
            identity,
            lambda: pushadd_to_gateway(
                self.endpoint.url,
                job=identity.job_name,
                registry=self.registry,
                grouping_key=dict(identity.groupings),
                timeout=self.timeout,
                handler=self.handler,
            ),
        )

    def delete(self, identity: PushIdentity) -> None:
        self._request(
            "delete",
            identity,
            lambda: delete_from_gateway(
                self.endpoint.url,
                job=identity.job_name,
                grouping_key=dict(identity.groupings),
                timeout=self.timeout,
                handler=self.handler,
            ),
        )

    def _request(self, operation: str, identity: PushIdentity, send: Callable[[], None]) -> None:
        start_time = time.perf_counter()
        status = "error"
        try:
            send()
            status = "success"
        finally:
            pushgateway_request_duration_seconds.labels(
                job=identity.job_name,
                operation=operation,
            ).observe(time.perf_counter() - start_time)
            pushgateway_requests_total.labels(
                job=identity.job_name,
                operation=operation,
                status=status,
            ).inc()
