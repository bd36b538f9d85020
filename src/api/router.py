from fastapi import APIRouter

from src.api.geolocation.router import router as geolocation_router
from src.api.health.router import router as health_router, root_router
from src.api.relay.router import router as relay_router

# V1 API router
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(geolocation_router)

# Main API router
api_router = APIRouter()
api_router.include_router(root_router)
api_router.include_router(health_router)
api_router.include_router(relay_router)
api_router.include_router(v1_router)
