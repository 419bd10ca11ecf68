"""Errors raised by the metrics push SDK."""


class MetricsError(Exception):
    """Base class for SDK errors."""


class ConfigurationError(MetricsError, ValueError):
    """Raised when options, endpoints or identities are invalid."""


class SessionDisposedError(MetricsError, RuntimeError):
    """Raised when a disposed push session is paused or resumed."""
