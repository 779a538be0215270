#!/usr/bin/env python3
"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the chart gateway: lifecycle states, SSE event kinds, reserved identifiers,
HTTP headers and the Chart-IMG vocabulary (intervals, chart types).

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
- Wire-visible strings defined exactly once

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Chart Request Status
# ============================================================================

class ChartStatus(str, Enum):
    """
    Lifecycle status of a chart request.

    PENDING -> PROCESSING -> COMPLETED | FAILED
    Terminal states (COMPLETED, FAILED) never change again.
    """
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ChartStatus.COMPLETED, ChartStatus.FAILED)


# Allowed lifecycle transitions
ALLOWED_TRANSITIONS: dict[ChartStatus, frozenset[ChartStatus]] = {
    ChartStatus.PENDING: frozenset({ChartStatus.PROCESSING}),
    ChartStatus.PROCESSING: frozenset({ChartStatus.COMPLETED, ChartStatus.FAILED}),
    ChartStatus.COMPLETED: frozenset(),
    ChartStatus.FAILED: frozenset(),
}


# ============================================================================
# SSE Event Kinds
# ============================================================================

class EventKind(str, Enum):
    """
    Kinds of events written to SSE sessions.

    The value is what goes on the ``event:`` line of the frame and into
    the ``type`` field of the JSON body.
    """
    CONNECTION = "connection"
    REQUEST = "request"
    PROGRESS = "progress"
    SUCCESS = "success"
    ERROR = "error"


# Reserved request id for session-level (non request) events
SYSTEM_REQUEST_ID = "system"

# Broadcast target meaning "every open session"
BROADCAST_ALL = "all"

# Heartbeat comment frame and its interval (seconds)
SSE_HEARTBEAT_FRAME = ": heartbeat\n\n"
SSE_HEARTBEAT_INTERVAL = 30

# Per-session outbound buffer (frames)
SSE_SESSION_BUFFER_SIZE = 1000

# ============================================================================
# Chart-IMG Vocabulary
# ============================================================================

class ChartInterval(str, Enum):
    """Candle intervals accepted by Chart-IMG."""
    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H4 = "4h"
    H6 = "6h"
    H12 = "12h"
    D1 = "1D"
    W1 = "1W"
    MO1 = "1M"


class ChartType(str, Enum):
    """Chart styles accepted by the gateway."""
    CANDLESTICK = "candlestick"
    LINE = "line"
    AREA = "area"
    BAR = "bar"
    HEIKIN_ASHI = "heikin_ashi"
    HOLLOW_CANDLE = "hollow_candle"
    BASELINE = "baseline"
    HI_LO = "hi_lo"
    COLUMN = "column"


class ChartTheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class ProviderName(str, Enum):
    """Render providers that can back the gateway."""
    CHART_IMG = "chart-img"
    FAKE = "fake"


# Size limits (pixels)
CHART_MIN_WIDTH = 400
CHART_MAX_WIDTH = 2000
CHART_DEFAULT_WIDTH = 800
CHART_MIN_HEIGHT = 300
CHART_MAX_HEIGHT = 1500
CHART_DEFAULT_HEIGHT = 600
CHART_DEFAULT_TIMEZONE = "America/New_York"

# Symbols returned when the upstream exchange listing is unavailable
FALLBACK_SYMBOLS: tuple[str, ...] = (
    "NASDAQ:AAPL",
    "NASDAQ:MSFT",
    "NASDAQ:GOOGL",
    "NASDAQ:TSLA",
    "NYSE:IBM",
    "NYSE:JPM",
    "NYSE:KO",
    "NYSE:DIS",
    "BINANCE:BTCUSDT",
    "BINANCE:ETHUSDT",
    "BINANCE:ADAUSDT",
    "FOREX:EURUSD",
    "FOREX:GBPUSD",
    "FOREX:USDJPY",
)

# ============================================================================
# Progress Messages
# ============================================================================

MSG_PREPARING = "Preparing chart request..."
MSG_SENDING = "Sending request to Chart-IMG API..."
MSG_PROCESSING = "Processing chart data..."
MSG_CONNECTED = "SSE connection established"

# ============================================================================
# Recent Request Listing
# ============================================================================

RECENT_REQUESTS_DEFAULT_LIMIT = 10
RECENT_REQUESTS_MAX_LIMIT = 50

# ============================================================================
# Retry settings
# ============================================================================

MAX_RETRIES = 3  # Maximum upstream attempts
RETRY_BASE_DELAY = 0.5  # Base delay for exponential backoff (seconds)
RETRY_MAX_DELAY = 8.0  # Maximum delay for exponential backoff (seconds)

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_CORRELATION_ID = "X-Correlation-ID"
HEADER_CLIENT_ID = "x-client-id"
HEADER_LAST_EVENT_ID = "last-event-id"
HEADER_API_KEY = "x-api-key"

# ============================================================================
# MCP Protocol
# ============================================================================

MCP_PROTOCOL_VERSION = "2024-11-05"
MCP_SERVER_NAME = "chart-img-mcp-server"
MCP_SERVER_VERSION = "1.0.0"
JSONRPC_VERSION = "2.0"
JSONRPC_INTERNAL_ERROR = -32603
