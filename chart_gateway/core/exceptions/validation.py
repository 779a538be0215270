"""
Validation Exceptions

Raised synchronously at submission time. A request that fails validation
never reaches the ledger and never produces an event.

Author: System Architect
Date: 2025-12-08
"""

from typing import Any

from chart_gateway.core.exceptions.base import ChartGatewayError


class ValidationError(ChartGatewayError):
    """Base exception for validation errors."""
    pass


class InvalidChartConfigError(ValidationError):
    """
    Raised when a chart configuration fails schema validation.

    ``details["errors"]`` carries one entry per offending field:
    ``{"field": "width", "message": "..."}``.
    """

    @property
    def errors(self) -> list[dict[str, Any]]:
        return self.details.get("errors", [])


class InvalidInputError(ValidationError):
    """Raised for malformed tool arguments or query parameters."""
    pass
