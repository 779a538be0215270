"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions
inherit from, plus ConfigurationError. Specialized exceptions live in their
themed modules.

Author: System Architect
Date: 2025-12-08
"""

from typing import Any


class ChartGatewayError(Exception):
    """
    Base exception for all chart gateway errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling at the HTTP and MCP edges
    - Request ID correlation
    - Structured error logging

    Attributes:
        message: Error message
        request_id: Chart request id for correlation (if available)
        details: Additional error details (dict)

    Example:
        raise UpstreamResponseError(
            "Chart-IMG API error: 429 rate limited",
            request_id="req_1733390000000_1",
            details={"status_code": 429}
        )
    """

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message, request_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "ChartGatewayError":
        """Add a suggestion to help callers fix the error (chainable)."""
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context) -> "ChartGatewayError":
        """Add additional context to the error details (chainable)."""
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details
    ) -> "ChartGatewayError":
        """
        Create an error of this class from another exception.

        Useful for wrapping httpx / pydantic exceptions with request context.

        Example:
            >>> try:
            ...     response = await client.post(url, json=payload)
            ... except httpx.TransportError as e:
            ...     raise UpstreamError.from_exception(e, request_id="req_1_1")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, request_id=request_id, details=error_details)


class ConfigurationError(ChartGatewayError):
    """Raised when configuration is invalid or missing."""
    pass
