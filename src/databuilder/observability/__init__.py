"""
Observability module for databuilder.

Prometheus metrics, structured logging and the listeners that feed them.
"""

from databuilder.observability.listeners import LoggingListener
from databuilder.observability.metrics import MetricsListener
from databuilder.observability.structured_logging import (
    HumanReadableFormatter,
    StructuredFormatter,
    add_correlation_id,
    get_correlation_id,
    set_correlation_id,
    setup_structured_logging,
)

__all__ = [
    # Listeners
    "LoggingListener",
    "MetricsListener",
    # Structured Logging
    "StructuredFormatter",
    "HumanReadableFormatter",
    "setup_structured_logging",
    "add_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]
