"""Metrics push configuration."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from pushmetrics.errors import ConfigurationError
from pushmetrics.metrics.gateway import Endpoint


@dataclass
class MetricsOptions:
    """Configuration for pushing metrics to a Pushgateway.

    Intervals are in milliseconds, ``timeout`` is in seconds.
    """

    pushgateway_url: str = field(default_factory=lambda: os.getenv("METRICS_PUSHGATEWAY_URL", ""))
    push_interval: int = field(default_factory=lambda: _get_env_int("METRICS_PUSHGATEWAY_PUSH_INTERVAL", 15000))
    job_name: str = field(default_factory=lambda: os.getenv("METRICS_JOB_NAME", ""))
    default_blacklist: List[str] = field(default_factory=lambda: _get_env_list("METRICS_DEFAULT_BLACKLIST"))
    default_interval: Optional[int] = field(default_factory=lambda: _get_env_int("METRICS_INTERVAL", None))
    timeout: float = field(default_factory=lambda: _get_env_float("METRICS_PUSHGATEWAY_TIMEOUT", 30.0))

    # Wait for the previous session's delete when the default session is replaced
    await_previous_disposal: bool = field(
        default_factory=lambda: _get_env_bool("METRICS_AWAIT_PREVIOUS_DISPOSAL", False)
    )

    def __post_init__(self):
        Endpoint.parse(self.pushgateway_url)
        _require_positive_int("push_interval", self.push_interval)
        if self.default_interval is not None:
            _require_positive_int("default_interval", self.default_interval)
        if not isinstance(self.job_name, str) or not self.job_name:
            raise ConfigurationError("job_name must be a non-empty string")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout!r}")

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint.parse(self.pushgateway_url)


def new_options(**overrides) -> MetricsOptions:
    """Create MetricsOptions from environment variables, with explicit overrides."""
    return MetricsOptions(**overrides)


def _require_positive_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer of milliseconds, got {value!r}")


def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return float(value.rstrip("s"))
    except ValueError:
        return default


def _get_env_list(key: str) -> List[str]:
    return [item.strip() for item in os.getenv(key, "").split(",") if item.strip()]


def _get_env_bool(key: str, default: bool = True) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes")
