"""Health check endpoints for debugging and monitoring."""

from fastapi import APIRouter

from src.api.core.dependencies import (
    EngineSettingsDep,
    OrchestratorDep,
    SerpApiClientDep,
)
from src.modules.health.service import HealthService, OverallHealthStatus
from src.utils.settings.app import AppSettings

# Create separate routers for root and health endpoints
root_router = APIRouter()
router = APIRouter(prefix="/health", tags=["health"])


@root_router.get("/")
async def root():
    return {
        "service": "geospy-api",
        "version": AppSettings().API_VERSION,
        "locate": "/v1/geolocation/locate",
    }


@router.get("/")
async def health_check(
    orchestrator: OrchestratorDep,
    engine_settings: EngineSettingsDep,
    serpapi: SerpApiClientDep,
) -> OverallHealthStatus:
    """Configuration summary of every stage in the fallback chain."""
    health_service = HealthService(
        orchestrator, engine_settings=engine_settings, serpapi=serpapi
    )
    return await health_service.run_all_checks()


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "geospy-api"}
