"""Geolocation API schemas."""

from pydantic import BaseModel

from src.api.core.messages import APIResponse
from src.modules.geolocation.application.use_cases import LocationResult


class EngineSummary(BaseModel):
    """One entry of the configured fallback chain."""

    name: str
    source_label: str
    remote: bool


LocateResponse = APIResponse[LocationResult]
EngineChainResponse = APIResponse[list[EngineSummary]]
