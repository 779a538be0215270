from .base_provider import (
    ProgressCallback,
    ProviderConfig,
    RenderProvider,
    RenderResult,
    create_provider,
)
from .chart_img_provider import ChartImgProvider
from .fake_provider import FakeRenderProvider

__all__ = [
    "ChartImgProvider",
    "FakeRenderProvider",
    "ProgressCallback",
    "ProviderConfig",
    "RenderProvider",
    "RenderResult",
    "create_provider",
]
