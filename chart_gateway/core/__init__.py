"""
Core Module

Foundational components: configuration, logging and exceptions.
"""

from .exceptions import (
    ChartGatewayError,
    ConfigurationError,
    InvalidChartConfigError,
    InvalidTransitionError,
    StreamingError,
    StreamWriteError,
    UpstreamError,
    ValidationError,
)
from .logging import (
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "log_stage",
    "ChartGatewayError",
    "ConfigurationError",
    "ValidationError",
    "InvalidChartConfigError",
    "InvalidTransitionError",
    "StreamingError",
    "StreamWriteError",
    "UpstreamError",
]
