"""
Lifecycle Exceptions

Errors raised by the request ledger. An illegal transition is a programming
error and is raised loudly rather than ignored.

Author: System Architect
Date: 2025-12-08
"""

from chart_gateway.core.exceptions.base import ChartGatewayError


class LifecycleError(ChartGatewayError):
    """Base exception for chart request lifecycle errors."""
    pass


class InvalidTransitionError(LifecycleError):
    """
    Raised when a chart request is moved along an edge the state machine
    does not allow, e.g. completed -> failed or pending -> completed.
    """
    pass


class RequestNotFoundError(LifecycleError):
    """Raised when a mutation targets an unknown request id."""
    pass
