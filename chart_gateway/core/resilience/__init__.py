"""
Resilience Module

Retry policy for calls to the Chart-IMG API.
"""

from .retry import CONNECT_ERRORS, TRANSIENT_ERRORS, create_retry_decorator

__all__ = ["CONNECT_ERRORS", "TRANSIENT_ERRORS", "create_retry_decorator"]
