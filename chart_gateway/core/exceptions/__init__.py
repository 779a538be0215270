"""
Exception Module

Structured exception hierarchy for the chart gateway, organized by theme.

Module Structure:
-----------------
- **base.py**: ChartGatewayError base class + ConfigurationError
- **validation.py**: Chart config / tool argument validation
- **upstream.py**: Chart-IMG provider failures
- **streaming.py**: SSE session write failures
- **lifecycle.py**: Request ledger state machine violations
- **mcp.py**: MCP tool dispatch failures

Where each family is handled:
-----------------------------
- Validation errors surface synchronously (HTTP 400, JSON-RPC error)
- Upstream errors are caught by the orchestrator and recorded as ``failed``
- Streaming errors are caught by the connection registry (implicit disconnect)
- Lifecycle errors propagate; they indicate a bug

Usage:
------
```python
from chart_gateway.core.exceptions import InvalidChartConfigError, UpstreamError
```

Author: System Architect
Date: 2025-12-08
"""

# Base exception
from chart_gateway.core.exceptions.base import ChartGatewayError, ConfigurationError

# Lifecycle exceptions
from chart_gateway.core.exceptions.lifecycle import (
    InvalidTransitionError,
    LifecycleError,
    RequestNotFoundError,
)

# MCP exceptions
from chart_gateway.core.exceptions.mcp import McpError, ToolExecutionError, UnknownToolError

# Streaming exceptions
from chart_gateway.core.exceptions.streaming import StreamingError, StreamWriteError

# Upstream exceptions
from chart_gateway.core.exceptions.upstream import (
    UpstreamError,
    UpstreamNotConfiguredError,
    UpstreamResponseError,
    UpstreamTimeoutError,
)

# Validation exceptions
from chart_gateway.core.exceptions.validation import (
    InvalidChartConfigError,
    InvalidInputError,
    ValidationError,
)

__all__ = [
    # Base
    "ChartGatewayError",
    "ConfigurationError",
    # Validation
    "ValidationError",
    "InvalidChartConfigError",
    "InvalidInputError",
    # Upstream
    "UpstreamError",
    "UpstreamNotConfiguredError",
    "UpstreamResponseError",
    "UpstreamTimeoutError",
    # Streaming
    "StreamingError",
    "StreamWriteError",
    # Lifecycle
    "LifecycleError",
    "InvalidTransitionError",
    "RequestNotFoundError",
    # MCP
    "McpError",
    "UnknownToolError",
    "ToolExecutionError",
]
