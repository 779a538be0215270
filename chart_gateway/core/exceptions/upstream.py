"""
Upstream Exceptions

Errors raised while talking to the Chart-IMG rendering API. The lifecycle
orchestrator catches every one of these and turns it into a failed request.

Author: System Architect
Date: 2025-12-08
"""

from chart_gateway.core.exceptions.base import ChartGatewayError


class UpstreamError(ChartGatewayError):
    """Base exception for render provider errors."""
    pass


class UpstreamNotConfiguredError(UpstreamError):
    """Raised when no API key is available for Chart-IMG."""
    pass


class UpstreamResponseError(UpstreamError):
    """
    Raised when Chart-IMG answers with a non-success status or with a
    body the gateway cannot interpret.

    Common causes:
    - Invalid or expired API key (401/403)
    - Quota exhausted (429)
    - Unsupported symbol or study (400)
    """

    @property
    def status_code(self) -> int | None:
        return self.details.get("status_code")


class UpstreamTimeoutError(UpstreamError):
    """Raised when a render does not settle in time."""
    pass
