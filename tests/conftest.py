"""Global test configuration and fixtures for GeoSpy API."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.core.dependencies import get_orchestrator, get_serpapi_client
from src.modules.geolocation.application.use_cases import FallbackOrchestrator
from src.modules.geolocation.models import EngineId
from src.modules.geolocation.sessions import SubmissionRegistry
from tests.utils.stubs import StubEngine, StubHintSource, make_guess, make_image_bytes


class SerpApiStub:
    """Relay backend double; tests set `result` or `error`."""

    def __init__(self):
        self.is_configured = True
        self.result: dict = {"visual_matches": [{"title": "Hanoi Old Quarter"}]}
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def lens_search(self, image_url: str, preference: str = "") -> dict:
        self.calls.append((image_url, preference))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def image_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def stub_orchestrator() -> FallbackOrchestrator:
    """First remote engine answers with a confident guess."""
    return FallbackOrchestrator(
        remote_engines=[
            StubEngine(EngineId.GEMINI_3_FLASH, guess=make_guess()),
            StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess(city="Hue")),
        ],
        local_engine=StubEngine(EngineId.LOCAL, guess=make_guess(confidence=0.2)),
        hint_source=StubHintSource("Hoan Kiem Lake, Hanoi"),
    )


@pytest.fixture
def serpapi_stub() -> SerpApiStub:
    return SerpApiStub()


@pytest_asyncio.fixture
async def app(
    stub_orchestrator: FallbackOrchestrator, serpapi_stub: SerpApiStub
) -> AsyncGenerator[FastAPI, None]:
    """Create FastAPI application with lifespan manager for testing."""
    from src.main import app

    async with LifespanManager(app):
        app.state.submissions = SubmissionRegistry()
        app.dependency_overrides[get_orchestrator] = lambda: stub_orchestrator
        app.dependency_overrides[get_serpapi_client] = lambda: serpapi_stub
        yield app
        app.dependency_overrides.clear()


# HTTP Client Fixtures
@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client for testing public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-geospy-api",
    ) as ac:
        yield ac
