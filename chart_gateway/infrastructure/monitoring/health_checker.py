#!/usr/bin/env python3
"""
Health Checker Module

This module provides health checks for the gateway's components:
- Render provider configuration (Chart-IMG API key present)
- Live SSE session count
- In-flight chart renders

Author: Senior Solution Architect
Date: 2025-12-05
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from chart_gateway.core.config.settings import Settings, get_settings
from chart_gateway.core.logging.logger import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthChecker:
    """
    Health checker for the gateway.

    STAGE-H: Health check orchestration

    Usage:
        checker = HealthChecker(settings)
        checker.initialize(orchestrator)

        status = await checker.check_health()
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._orchestrator = None
        logger.info("Health checker initialized", stage="H.0")

    def initialize(self, orchestrator) -> None:
        """
        Attach the lifecycle orchestrator whose snapshot drives the report.

        Args:
            orchestrator: ChartLifecycleOrchestrator
        """
        self._orchestrator = orchestrator
        logger.info("Health checker dependencies set", stage="H.0.1")

    def _snapshot(self) -> dict[str, Any]:
        if self._orchestrator is None:
            return {"liveSessionCount": 0, "upstreamConfigured": False}
        return self._orchestrator.health_snapshot()

    async def check_health(self) -> dict[str, Any]:
        """
        Quick health check.

        STAGE-H.1: Quick health status

        The gateway is ``healthy`` when renders can reach a provider and
        ``degraded`` when the Chart-IMG key is missing (sessions and status
        queries still work).
        """
        snapshot = self._snapshot()
        status = HealthStatus.HEALTHY if snapshot["upstreamConfigured"] else HealthStatus.DEGRADED

        return {
            "status": status.value,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "version": self.settings.app.APP_VERSION,
            "components": {
                "chart_service": {
                    "status": status.value,
                    "configured": snapshot["upstreamConfigured"],
                    "provider": self.settings.CHART_PROVIDER,
                },
                "sessions": {
                    "status": HealthStatus.HEALTHY.value,
                    "live": snapshot["liveSessionCount"],
                },
                "renders": {
                    "in_flight": getattr(self._orchestrator, "in_flight", 0),
                },
            },
        }

    async def liveness_check(self) -> dict[str, Any]:
        """Process is up and the event loop answers."""
        return {"status": "alive"}

    async def readiness_check(self) -> dict[str, Any]:
        """Ready once the orchestrator has been attached at startup."""
        ready = self._orchestrator is not None
        return {"status": "ready" if ready else "not_ready", "ready": ready}
