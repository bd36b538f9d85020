"""Health check endpoints tests."""

from unittest.mock import patch

import pytest
from fastapi import status
from httpx import AsyncClient

from src.modules.geolocation.errors import DatasetUnavailable


@pytest.mark.asyncio
async def test_root_endpoint_describes_service(app, public_client: AsyncClient):
    response = await public_client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["service"] == "geospy-api"
    assert response.json()["locate"] == "/v1/geolocation/locate"


@pytest.mark.asyncio
async def test_liveness_check(app, public_client: AsyncClient):
    response = await public_client.get("/health/liveness")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "alive", "service": "geospy-api"}


@pytest.mark.asyncio
async def test_health_check_reports_each_stage(app, public_client: AsyncClient):
    response = await public_client.get("/health/")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] in ["healthy", "degraded", "unhealthy"]
    assert set(data["services"]) == {"remote_engines", "local_dataset", "hint_source"}
    assert data["services"]["remote_engines"]["details"]["order"] == [
        "gemini-3-flash-preview",
        "gemini-2.5-flash",
    ]
    assert data["services"]["local_dataset"]["status"] == "healthy"
    assert data["services"]["local_dataset"]["details"]["entries"] > 0


@pytest.mark.asyncio
async def test_health_check_dataset_unavailable(app, public_client: AsyncClient):
    with patch(
        "src.modules.health.service.load_dataset",
        side_effect=DatasetUnavailable("cannot load dataset"),
    ):
        response = await public_client.get("/health/")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] in ["degraded", "unhealthy"]
    assert data["services"]["local_dataset"]["status"] == "degraded"
    assert data["services"]["local_dataset"]["error"] == "cannot load dataset"


@pytest.mark.asyncio
async def test_security_headers_present(app, public_client: AsyncClient):
    response = await public_client.get("/health/liveness")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-GeoSpy-Version"]


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(app, public_client: AsyncClient):
    response = await public_client.get("/v1/unknown")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_oversized_request_is_rejected_before_routing(
    app, public_client: AsyncClient
):
    response = await public_client.post(
        "/v1/geolocation/locate",
        content=b"x",
        headers={"Content-Length": str(50 * 1024 * 1024)},
    )

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert response.json()["message_code"] == "FILE_TOO_LARGE"
