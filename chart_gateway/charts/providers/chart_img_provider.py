#!/usr/bin/env python3
"""
Chart-IMG Render Provider

Renders charts through ``POST {base_url}/v2/tradingview/advanced-chart``.

Response handling:
- ``application/json``  -> ``{"url": ..., "base64": ...}`` passed through
- ``image/png``         -> body encoded as ``data:image/png;base64,...``
- anything else         -> failure "Unexpected response format from Chart-IMG API"
- non-2xx status        -> failure "Chart-IMG API error: <status> <body>"

Transport errors (connect failures, timeouts) are retried with tenacity and
raised as UpstreamError once attempts are exhausted.

Author: Senior Solution Architect
Date: 2025-12-05
"""

import base64
import time

import httpx

from chart_gateway.charts.models import ChartConfig
from chart_gateway.charts.providers.base_provider import (
    ProgressCallback,
    ProviderConfig,
    RenderProvider,
    RenderResult,
)
from chart_gateway.charts.providers.payload import build_payload
from chart_gateway.core.config.constants import (
    FALLBACK_SYMBOLS,
    HEADER_API_KEY,
    MSG_PROCESSING,
    MSG_SENDING,
)
from chart_gateway.core.exceptions import (
    UpstreamError,
    UpstreamNotConfiguredError,
    UpstreamTimeoutError,
)
from chart_gateway.core.logging.logger import get_logger
from chart_gateway.core.resilience import CONNECT_ERRORS, create_retry_decorator

logger = get_logger(__name__)

ADVANCED_CHART_PATH = "/v2/tradingview/advanced-chart"
EXCHANGES_PATH = "/v3/exchanges"
UNEXPECTED_FORMAT = "Unexpected response format from Chart-IMG API"


class ChartImgProvider(RenderProvider):
    """
    Chart-IMG backed provider.

    Usage:
        provider = ChartImgProvider(ProviderConfig.from_settings(settings))
        result = await provider.render(config, on_progress)
        await provider.close()
    """

    def __init__(self, config: ProviderConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )
        # A render POST that reached Chart-IMG is not resent
        self._post = create_retry_decorator(
            max_attempts=config.max_retries, retry_exceptions=CONNECT_ERRORS
        )(self._client.post)
        self._get = create_retry_decorator(max_attempts=config.max_retries)(self._client.get)

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _headers(self) -> dict[str, str]:
        return {HEADER_API_KEY: self.config.api_key or "", "Content-Type": "application/json"}

    async def render(self, config: ChartConfig, on_progress: ProgressCallback) -> RenderResult:
        """
        Render one chart through Chart-IMG.

        STAGE-4.2: Upstream render
        """
        if not self.is_configured:
            raise UpstreamNotConfiguredError("Chart-IMG API key is not configured").with_suggestion(
                "Set CHART_IMG_API_KEY (or API_KEY) in the environment"
            )

        start = time.perf_counter()
        payload = build_payload(config)

        await on_progress(MSG_SENDING)
        try:
            response = await self._post(ADVANCED_CHART_PATH, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError.from_exception(
                e, message=f"Chart-IMG API timed out after {self.config.timeout}s"
            ) from e
        except httpx.TransportError as e:
            raise UpstreamError.from_exception(
                e, message=f"Chart-IMG API unreachable: {e}"
            ) from e

        if not response.is_success:
            logger.warning(
                "chart_img_error_status",
                stage="4.2",
                status_code=response.status_code,
                symbol=config.symbol,
            )
            return RenderResult.failure(
                f"Chart-IMG API error: {response.status_code} {response.text}",
                self._elapsed_ms(start),
            )

        await on_progress(MSG_PROCESSING)
        content_type = response.headers.get("content-type", "")

        if "application/json" in content_type:
            body = response.json()
            if not isinstance(body, dict) or not (body.get("url") or body.get("base64")):
                return RenderResult.failure(UNEXPECTED_FORMAT, self._elapsed_ms(start))
            return RenderResult(
                success=True,
                url=body.get("url"),
                base64=body.get("base64"),
                processing_time_ms=self._elapsed_ms(start),
            )

        if "image/png" in content_type:
            encoded = base64.b64encode(response.content).decode("ascii")
            return RenderResult(
                success=True,
                base64=f"data:image/png;base64,{encoded}",
                processing_time_ms=self._elapsed_ms(start),
            )

        return RenderResult.failure(UNEXPECTED_FORMAT, self._elapsed_ms(start))

    async def list_symbols(self) -> list[str]:
        """
        Exchange listing from Chart-IMG, or a fixed list of common symbols
        when the upstream cannot be reached.
        """
        if not self.is_configured:
            return list(FALLBACK_SYMBOLS)
        try:
            response = await self._get(EXCHANGES_PATH, headers=self._headers())
            response.raise_for_status()
            body = response.json()
            if not isinstance(body, dict):
                raise ValueError("exchange listing is not an object")
            return list(body.get("exchanges") or [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("symbol_listing_failed", stage="4.3", error=str(e))
            return list(FALLBACK_SYMBOLS)

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)
