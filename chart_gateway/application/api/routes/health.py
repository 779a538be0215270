"""
Health Check Routes
===================

Two families of health endpoints:

1. ``GET /api/health``: the summary the demo UI polls
   ``{success, status, timestamp, chartServiceConfigured, sseClients}``

2. ``GET /health``, ``/health/live``, ``/health/ready``: probes for load
   balancers and orchestration platforms.

KUBERNETES HEALTH PROBES:
-------------------------
- LIVENESS: "Is the process running?" Kept trivial; a failure restarts
  the container.
- READINESS: "Can it serve traffic?" True once the lifespan handler has
  wired the orchestrator; a failure removes the instance from rotation.

A missing Chart-IMG key reports ``degraded`` on ``/health`` but the
instance stays ready: sessions, status queries and the recent list still
work without the upstream.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from chart_gateway.application.api.dependencies import ChartServiceDep, HealthCheckerDep
from chart_gateway.application.api.models.charts import ApiHealthResponse

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Probe response model."""

    status: str  # "healthy" or "degraded"
    timestamp: str
    version: str | None = None
    components: dict | None = None


@router.get("/api/health", response_model=ApiHealthResponse)
async def api_health(charts: ChartServiceDep) -> ApiHealthResponse:
    return charts.health()


@router.get("/health", response_model=HealthResponse)
async def health_check(health_checker: HealthCheckerDep):
    """
    Quick health check for load balancers.

    HTTP Status Codes:
        200: Always; ``degraded`` is reported in the body
    """
    return await health_checker.check_health()


@router.get("/health/live")
async def liveness_probe(health_checker: HealthCheckerDep):
    return await health_checker.liveness_check()


@router.get("/health/ready")
async def readiness_probe(health_checker: HealthCheckerDep):
    """
    Readiness probe.

    HTTP Status Codes:
        200: Ready
        503: Startup has not finished wiring the gateway
    """
    result = await health_checker.readiness_check()
    if not result["ready"]:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=result)
    return result
