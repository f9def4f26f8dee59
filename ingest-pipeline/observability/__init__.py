"""Observability infrastructure for the ingestion pipeline.

Provides structured logging and run metrics.
"""

from .logger import LogContext, get_logger, log_context, setup_logging
from .metrics import MetricsCollector, RunMetrics

__all__ = [
    "LogContext",
    "get_logger",
    "log_context",
    "setup_logging",
    "MetricsCollector",
    "RunMetrics",
]
