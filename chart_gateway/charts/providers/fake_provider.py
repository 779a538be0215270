import asyncio
import base64
import random
import struct
import time
import zlib

from chart_gateway.charts.models import ChartConfig
from chart_gateway.charts.providers.base_provider import (
    ProgressCallback,
    ProviderConfig,
    RenderProvider,
    RenderResult,
)
from chart_gateway.core.config.constants import MSG_PROCESSING, MSG_SENDING, ChartTheme
from chart_gateway.core.logging import get_logger

logger = get_logger(__name__)

_THEME_COLORS = {
    ChartTheme.LIGHT: (255, 255, 255),
    ChartTheme.DARK: (19, 23, 34),
}


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data) & 0xFFFFFFFF)


def placeholder_png(width: int, height: int, rgb: tuple[int, int, int]) -> bytes:
    """Solid-colour RGB PNG of the requested size."""
    row = b"\x00" + bytes(rgb) * width
    raw = row * height
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(raw, 9))
        + _png_chunk(b"IEND", b"")
    )


class FakeRenderProvider(RenderProvider):
    """
    A fake render provider for local runs and demonstrations.
    Walks through the same progress phases as Chart-IMG with simulated
    latency and returns a placeholder PNG sized and coloured like the
    requested chart.
    """

    def __init__(self, config: ProviderConfig, latency: float = 0.05, failure_rate: float = 0.0):
        super().__init__(config)
        self.latency = latency
        self.failure_rate = failure_rate  # Simulated failure rate (0.0 to 1.0)

    @property
    def is_configured(self) -> bool:
        return True

    async def render(self, config: ChartConfig, on_progress: ProgressCallback) -> RenderResult:
        start = time.perf_counter()

        await on_progress(MSG_SENDING)
        await asyncio.sleep(self.latency)

        if self.failure_rate > 0 and random.random() < self.failure_rate:
            return RenderResult.failure(
                "Simulated render failure", int((time.perf_counter() - start) * 1000)
            )

        await on_progress(MSG_PROCESSING)
        png = placeholder_png(config.width, config.height, _THEME_COLORS[config.theme])
        encoded = base64.b64encode(png).decode("ascii")

        return RenderResult(
            success=True,
            base64=f"data:image/png;base64,{encoded}",
            processing_time_ms=int((time.perf_counter() - start) * 1000),
        )

    async def health_check(self) -> dict:
        return {"provider": "fake", "configured": True, "latency_s": self.latency}
