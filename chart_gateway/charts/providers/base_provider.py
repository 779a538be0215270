#!/usr/bin/env python3
"""
Base Render Provider

Abstract base class for chart render providers. The lifecycle orchestrator
only depends on this interface; Chart-IMG and the in-process fake both
implement it.

Contract:
- ``render`` reports intermediate phases through ``on_progress``
- ``render`` returns a RenderResult for upstream-reported failures and may
  raise for transport failures; the orchestrator treats both the same way

Author: Senior Solution Architect
Date: 2025-12-05
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from chart_gateway.charts.models import ChartConfig
from chart_gateway.core.config.constants import FALLBACK_SYMBOLS, ProviderName
from chart_gateway.core.config.settings import Settings
from chart_gateway.core.logging.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[str], Awaitable[None]]


@dataclass
class RenderResult:
    """
    Outcome of one render call.

    Attributes:
        success: Whether an image was produced
        url: Hosted chart URL (if the upstream returned one)
        base64: Inline ``data:image/png;base64,...`` URI
        error: Failure description when ``success`` is False
        processing_time_ms: Time the provider spent
    """
    success: bool
    url: str | None = None
    base64: str | None = None
    error: str | None = None
    processing_time_ms: int = 0

    @classmethod
    def failure(cls, error: str, processing_time_ms: int = 0) -> "RenderResult":
        return cls(success=False, error=error, processing_time_ms=processing_time_ms)


@dataclass
class ProviderConfig:
    """
    Configuration for a render provider.

    Attributes:
        name: Provider name
        api_key: API key for authentication (None when unconfigured)
        base_url: Base URL for the API
        timeout: Request timeout in seconds
        max_retries: Maximum attempts for transient transport failures
    """
    name: str
    api_key: str | None
    base_url: str
    timeout: float = 30.0
    max_retries: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderConfig":
        chart = settings.chart_service
        return cls(
            name=chart.CHART_PROVIDER,
            api_key=chart.CHART_IMG_API_KEY,
            base_url=chart.CHART_IMG_BASE_URL.rstrip("/"),
            timeout=chart.CHART_IMG_TIMEOUT,
            max_retries=chart.CHART_IMG_MAX_RETRIES,
        )


class RenderProvider(ABC):
    """
    Abstract base class for render providers.

    STAGE-4: Render provider base class

    Subclasses must implement:
    - render(): produce one chart
    - is_configured: whether render can succeed at all
    """

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.name = config.name
        logger.info("Provider initialized", stage="4.0", provider=config.name)

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the provider has what it needs to render."""

    @abstractmethod
    async def render(self, config: ChartConfig, on_progress: ProgressCallback) -> RenderResult:
        """
        Render one chart.

        STAGE-4.1: Provider-specific rendering

        Args:
            config: Validated chart configuration
            on_progress: Awaited with a message at each render phase

        Returns:
            RenderResult
        """

    async def list_symbols(self) -> list[str]:
        """Symbols the provider can chart."""
        return list(FALLBACK_SYMBOLS)

    async def health_check(self) -> dict[str, Any]:
        return {"provider": self.name, "configured": self.is_configured}

    async def close(self) -> None:
        """Release provider resources."""


def create_provider(settings: Settings) -> RenderProvider:
    """
    Build the provider selected by ``CHART_PROVIDER``.

    STAGE-4.F: Provider selection
    """
    from chart_gateway.charts.providers.chart_img_provider import ChartImgProvider
    from chart_gateway.charts.providers.fake_provider import FakeRenderProvider

    config = ProviderConfig.from_settings(settings)
    if config.name == ProviderName.FAKE:
        return FakeRenderProvider(config, latency=settings.chart_service.FAKE_RENDER_LATENCY)
    return ChartImgProvider(config)
