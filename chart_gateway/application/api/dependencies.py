"""
FastAPI Dependency Injection Module
===================================

Routes never build gateway components themselves. Everything they need is
created once in the lifespan handler (see ``application/state.py``), stored
on ``app.state.gateway`` and handed to route functions through the
``Annotated`` aliases below.

    @router.get("/chart/status/{request_id}")
    async def chart_status(request_id: str, charts: ChartServiceDep):
        ...

FastAPI resolves each alias by calling the provider function with the
current ``Request``; results are cached for the duration of one request.
"""

from typing import Annotated

from fastapi import Depends, Request

from chart_gateway.application.services.chart_service import ChartService
from chart_gateway.application.services.mcp_service import McpService
from chart_gateway.application.state import GatewayState
from chart_gateway.charts.services.chart_orchestrator import ChartLifecycleOrchestrator
from chart_gateway.core.config.settings import Settings
from chart_gateway.infrastructure.monitoring.health_checker import HealthChecker
from chart_gateway.streaming.connection_registry import ConnectionRegistry

# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_gateway(request: Request) -> GatewayState:
    """
    Retrieve the gateway state built during application startup.

    Raises:
        RuntimeError: If the lifespan handler has not run (e.g. a TestClient
            used without its context manager)
    """
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError(
            "Gateway state not initialized. "
            "This indicates the application lifespan startup didn't complete properly."
        )
    return gateway


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(gateway: Annotated[GatewayState, Depends(get_gateway)]) -> ChartLifecycleOrchestrator:
    return gateway.orchestrator


def get_registry(gateway: Annotated[GatewayState, Depends(get_gateway)]) -> ConnectionRegistry:
    return gateway.registry


def get_health_checker(gateway: Annotated[GatewayState, Depends(get_gateway)]) -> HealthChecker:
    return gateway.health_checker


def get_chart_service(gateway: Annotated[GatewayState, Depends(get_gateway)]) -> ChartService:
    return ChartService(gateway.orchestrator, gateway.settings)


def get_mcp_service(gateway: Annotated[GatewayState, Depends(get_gateway)]) -> McpService:
    return McpService(ChartService(gateway.orchestrator, gateway.settings))


# ============================================================================
# TYPE ALIASES FOR CLEANER ROUTE SIGNATURES
# ============================================================================

GatewayDep = Annotated[GatewayState, Depends(get_gateway)]
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
OrchestratorDep = Annotated[ChartLifecycleOrchestrator, Depends(get_orchestrator)]
RegistryDep = Annotated[ConnectionRegistry, Depends(get_registry)]
HealthCheckerDep = Annotated[HealthChecker, Depends(get_health_checker)]
ChartServiceDep = Annotated[ChartService, Depends(get_chart_service)]
McpServiceDep = Annotated[McpService, Depends(get_mcp_service)]
