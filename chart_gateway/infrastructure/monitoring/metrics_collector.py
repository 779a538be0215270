#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides metrics collection with:
- Chart request counters by outcome
- Render latency histograms
- Live SSE session gauge
- Event throughput by kind
- Session write failures

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Histogram buckets for latency percentiles

Author: Senior Solution Architect
Date: 2025-12-05
"""


from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from chart_gateway.core.config.settings import get_settings
from chart_gateway.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Chart request metrics
CHART_REQUESTS = Counter(
    'chart_gateway_requests_total',
    'Chart requests by terminal outcome',
    ['status', 'provider']
)

CHART_REQUESTS_IN_FLIGHT = Gauge(
    'chart_gateway_requests_in_flight',
    'Chart requests currently processing'
)

RENDER_DURATION = Histogram(
    'chart_gateway_render_duration_seconds',
    'Wall-clock time from submission to terminal state',
    ['provider'],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0)
)

VALIDATION_FAILURES = Counter(
    'chart_gateway_validation_failures_total',
    'Chart submissions rejected by validation',
    ['surface']  # rest, mcp
)

# Session metrics
ACTIVE_SESSIONS = Gauge(
    'chart_gateway_active_sessions',
    'Number of open SSE sessions'
)

SESSION_WRITE_FAILURES = Counter(
    'chart_gateway_session_write_failures_total',
    'Frames that could not be written to a session'
)

# Event metrics
EVENTS_EMITTED = Counter(
    'chart_gateway_events_emitted_total',
    'Events emitted by kind',
    ['kind']
)

# MCP metrics
MCP_TOOL_CALLS = Counter(
    'chart_gateway_mcp_tool_calls_total',
    'MCP tool invocations',
    ['tool', 'status']
)

# Error metrics
ERRORS = Counter(
    'chart_gateway_errors_total',
    'Errors surfaced at the HTTP edge',
    ['error_type', 'component']
)

# App info
APP_INFO = Info(
    'chart_gateway_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = get_metrics_collector()
        metrics.record_chart_request("completed", "chart-img")
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Chart Request Metrics
    # =========================================================================

    def record_chart_request(self, status: str, provider: str = "unknown") -> None:
        CHART_REQUESTS.labels(status=status, provider=provider).inc()

    def record_render_duration(self, provider: str, duration_seconds: float) -> None:
        RENDER_DURATION.labels(provider=provider).observe(duration_seconds)

    def increment_in_flight(self) -> None:
        CHART_REQUESTS_IN_FLIGHT.inc()

    def decrement_in_flight(self) -> None:
        CHART_REQUESTS_IN_FLIGHT.dec()

    def record_validation_failure(self, surface: str) -> None:
        VALIDATION_FAILURES.labels(surface=surface).inc()

    # =========================================================================
    # Session Metrics
    # =========================================================================

    def set_active_sessions(self, count: int) -> None:
        ACTIVE_SESSIONS.set(count)

    def record_session_write_failure(self) -> None:
        SESSION_WRITE_FAILURES.inc()

    # =========================================================================
    # Event Metrics
    # =========================================================================

    def record_event(self, kind: str) -> None:
        EVENTS_EMITTED.labels(kind=kind).inc()

    def record_tool_call(self, tool: str, status: str) -> None:
        MCP_TOOL_CALLS.labels(tool=tool, status=status).inc()

    def record_error(self, error_type: str, component: str) -> None:
        ERRORS.labels(error_type=error_type, component=component).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
