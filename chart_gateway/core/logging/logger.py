#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides production-grade structured logging with:
- Correlation ID propagation for HTTP request tracing
- Stage numbering for execution flow
- JSON formatting for log aggregation
- Automatic secret redaction (Chart-IMG keys never reach the logs)
- Context processors for automatic field injection

Architectural Decision: structlog for production logging
- Context-aware logging with automatic field injection
- JSON output for log aggregation
- contextvars keep the correlation id correct across asyncio tasks

Author: System Architect
Date: 2025-12-05
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from chart_gateway.core.config.settings import get_settings

# Context variable for the correlation id of the current HTTP request
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_SECRET_FIELDS = ("api_key", "x-api-key", "authorization", "CHART_IMG_API_KEY", "API_KEY")


def add_correlation_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add correlation ID to log event from context variable.

    STAGE-L.1: Correlation ID injection
    """
    correlation_id = correlation_id_ctx.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO timestamp to log event.

    STAGE-L.2: Timestamp injection
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact credentials from log entries.

    STAGE-L.3: Secret redaction

    - Known secret-bearing keys are replaced wholesale
    - ``x-api-key: ...`` / ``api_key=...`` fragments inside the message
      are masked
    """
    for key in _SECRET_FIELDS:
        if event_dict.get(key):
            event_dict[key] = "[REDACTED]"

    message = event_dict.get("event", "")
    if isinstance(message, str):
        message = re.sub(
            r"(?i)\b(x-api-key|api[_-]?key)(\s*[:=]\s*)([^\s,;]+)",
            r"\1\2[REDACTED]",
            message,
        )
        event_dict["event"] = message

    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add log level name to event dict.

    STAGE-L.4: Log level injection
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("chart_request_created", request_id=..., stage="2.1")
    """
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str) -> None:
    """
    Set correlation ID in context for the current request.

    STAGE-1.1: Correlation context initialization
    """
    correlation_id_ctx.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    """
    Clear correlation ID from context.

    STAGE-6: Correlation context cleanup
    """
    correlation_id_ctx.set(None)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (e.g., "2.1", "S.3")
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, "4.1", "Render started", request_id="req_1_1")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, stage=stage, **kwargs)
