"""Structured logging helpers built on structlog."""

from chart_gateway.core.logging.logger import (
    add_correlation_id,
    add_log_level_name,
    add_timestamp,
    clear_correlation_id,
    correlation_id_ctx,
    get_correlation_id,
    get_logger,
    log_stage,
    redact_secrets,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "add_correlation_id",
    "add_log_level_name",
    "add_timestamp",
    "clear_correlation_id",
    "correlation_id_ctx",
    "get_correlation_id",
    "get_logger",
    "log_stage",
    "redact_secrets",
    "set_correlation_id",
    "setup_logging",
]
