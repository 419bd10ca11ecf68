"""Logging module initialization."""

from pushmetrics.logging.config import LogConfig
from pushmetrics.logging.logger import get_logger, new_logger

__all__ = ["LogConfig", "get_logger", "new_logger"]
