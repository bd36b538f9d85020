from typing import Annotated

from fastapi import Depends, Request

from src.modules.geolocation.application.use_cases import FallbackOrchestrator
from src.modules.geolocation.infrastructure.serpapi_client import SerpApiClient
from src.modules.geolocation.sessions import SubmissionRegistry
from src.utils.settings.engines import EngineSettings


def get_orchestrator(request: Request) -> FallbackOrchestrator:
    """Engine pipeline built once at startup."""
    return request.app.state.orchestrator


def get_submissions(request: Request) -> SubmissionRegistry:
    """Per-session registry of in-flight locate requests."""
    return request.app.state.submissions


def get_engine_settings() -> EngineSettings:
    return EngineSettings()


def get_serpapi_client() -> SerpApiClient:
    return SerpApiClient()


OrchestratorDep = Annotated[FallbackOrchestrator, Depends(get_orchestrator)]
SubmissionRegistryDep = Annotated[SubmissionRegistry, Depends(get_submissions)]
EngineSettingsDep = Annotated[EngineSettings, Depends(get_engine_settings)]
SerpApiClientDep = Annotated[SerpApiClient, Depends(get_serpapi_client)]
