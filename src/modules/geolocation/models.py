"""Data model and engine registry for the geolocation pipeline."""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class EngineId(str, Enum):
    """Unique identifiers for each inference engine."""

    GEMINI_3_FLASH = "gemini-3-flash-preview"
    GEMINI_2_5_FLASH = "gemini-2.5-flash"
    GEOCLIP_SERVER = "geoclip-server"
    LOCAL = "local"


class EngineKind(str, Enum):
    GEMINI = "gemini"
    GEOCLIP = "geoclip"
    LOCAL = "local"


class EngineConfig(BaseModel):
    """Static description of an inference engine."""

    id: EngineId
    kind: EngineKind
    source_label: str
    model_name: str | None = None
    remote: bool = True


ENGINES: dict[EngineId, EngineConfig] = {
    EngineId.GEMINI_3_FLASH: EngineConfig(
        id=EngineId.GEMINI_3_FLASH,
        kind=EngineKind.GEMINI,
        source_label="Gemini-3-Flash AI",
        model_name="gemini-3-flash-preview",
    ),
    EngineId.GEMINI_2_5_FLASH: EngineConfig(
        id=EngineId.GEMINI_2_5_FLASH,
        kind=EngineKind.GEMINI,
        source_label="Gemini-2.5-Flash AI",
        model_name="gemini-2.5-flash",
    ),
    EngineId.GEOCLIP_SERVER: EngineConfig(
        id=EngineId.GEOCLIP_SERVER,
        kind=EngineKind.GEOCLIP,
        source_label="GeoCLIP Server",
    ),
    EngineId.LOCAL: EngineConfig(
        id=EngineId.LOCAL,
        kind=EngineKind.LOCAL,
        source_label="Fallback: Local Heuristic",
        remote=False,
    ),
}


def get_engine_config(engine_id: EngineId | str) -> EngineConfig:
    """Get engine configuration by ID."""
    try:
        return ENGINES[EngineId(engine_id)]
    except ValueError:
        raise ValueError(f"Unknown engine ID: {engine_id}")


class LocationGuess(BaseModel):
    """A single engine's answer. Construction enforces structural validity."""

    model_config = ConfigDict(allow_inf_nan=False, frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    city: str = ""
    country: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    visual_analysis_summary: str = ""
    # Stamped by the orchestrator on acceptance
    source: str = ""


def is_structurally_valid(guess: LocationGuess | None) -> bool:
    """Finite in-range coordinates plus a confidence in [0, 1]."""
    if guess is None:
        return False
    values = (guess.latitude, guess.longitude, guess.confidence)
    if any(v is None or not math.isfinite(v) for v in values):
        return False
    return (
        -90.0 <= guess.latitude <= 90.0
        and -180.0 <= guess.longitude <= 180.0
        and 0.0 <= guess.confidence <= 1.0
    )


AttemptOutcome = Literal["accepted", "failed", "invalid", "below_threshold"]


class EngineAttempt(BaseModel):
    engine: str
    outcome: AttemptOutcome
    detail: str = ""


@dataclass
class LocateContext:
    """Per-submission state passed through the orchestrator.

    Holds what the caller supplied (preference) and what the pipeline
    learned along the way (hints, attempt log, winning source).
    """

    preference: str | None = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    hints: str = ""
    attempts: list[EngineAttempt] = field(default_factory=list)
    source: str | None = None

    @property
    def has_preference(self) -> bool:
        return bool(self.preference and self.preference.strip())

    def record(self, engine: str, outcome: AttemptOutcome, detail: str = "") -> None:
        self.attempts.append(EngineAttempt(engine=engine, outcome=outcome, detail=detail))
