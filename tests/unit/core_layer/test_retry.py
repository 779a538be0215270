"""
Unit Tests for the Retry Decorator
"""

import httpx
import pytest

from chart_gateway.core.resilience import CONNECT_ERRORS, create_retry_decorator


@pytest.mark.unit
class TestRetryDecorator:
    async def test_transient_errors_are_retried(self):
        # Arrange
        attempts = []

        @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0)
        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise httpx.ConnectError("refused")
            return "ok"

        # Act
        result = await flaky()

        # Assert
        assert result == "ok"
        assert len(attempts) == 3

    async def test_last_error_is_reraised(self):
        @create_retry_decorator(max_attempts=2, base_delay=0, max_delay=0)
        async def down():
            raise httpx.ConnectError("refused")

        with pytest.raises(httpx.ConnectError):
            await down()

    async def test_non_transient_errors_are_not_retried(self):
        attempts = []

        @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0)
        async def broken():
            attempts.append(1)
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            await broken()

        assert len(attempts) == 1

    async def test_connect_only_policy_skips_read_timeouts(self):
        attempts = []

        @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0, retry_exceptions=CONNECT_ERRORS)
        async def slow_upstream():
            attempts.append(1)
            raise httpx.ReadTimeout("timed out")

        with pytest.raises(httpx.ReadTimeout):
            await slow_upstream()

        assert len(attempts) == 1

    async def test_connect_only_policy_retries_connect_failures(self):
        attempts = []

        @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0, retry_exceptions=CONNECT_ERRORS)
        async def unreachable():
            attempts.append(1)
            if len(attempts) < 2:
                raise httpx.ConnectTimeout("connect timed out")
            return "ok"

        assert await unreachable() == "ok"
        assert len(attempts) == 2
