"""Shared utilities package."""

from avatar_compositor.shared.logging import setup_logger, get_logger, JobLoggerAdapter
from avatar_compositor.shared.retry import RetryStrategy
from avatar_compositor.shared.metrics import MetricsCollector

__all__ = [
    "setup_logger",
    "get_logger",
    "JobLoggerAdapter",
    "RetryStrategy",
    "MetricsCollector",
]
