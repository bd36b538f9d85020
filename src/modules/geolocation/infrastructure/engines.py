"""Shared inference engine interface, prompt construction and response parsing."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from src.modules.geolocation.errors import (
    EngineError,
    EngineInvalidResponse,
    EngineTransportError,
)
from src.modules.geolocation.models import EngineConfig, LocationGuess
from src.utils.logger import get_logger

logger = get_logger(__name__)

# Field names as requested from the models
GUESS_RESPONSE_FIELDS = (
    "lat",
    "lng",
    "city",
    "country",
    "confidence",
    "reasoning",
    "visualAnalysisSummary",
)

CALIBRATION_INSTRUCTION = (
    "If the image lacks uniquely identifying visual content (landmarks, legible "
    "signage, distinctive architecture or vegetation), report a confidence "
    "between 0.4 and 0.6."
)


def build_prompt(hints: str, preference: str | None) -> str:
    """Instruction text shared by every remote engine."""
    parts = ["Locate this image. Be precise."]
    if preference:
        parts.append(f"prefer {preference}.")
    if hints:
        parts.append(
            "Reverse image search returned the following context. It is advisory "
            f"and may be wrong: {hints}"
        )
    parts.append(CALIBRATION_INSTRUCTION)
    parts.append(
        "Return a JSON object with lat, lng, city, country, confidence "
        "(a number from 0 to 1), reasoning, and visualAnalysisSummary."
    )
    return " ".join(parts)


def _first_present(payload: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def parse_guess(engine: str, payload: Any) -> LocationGuess:
    """Turn an engine's JSON payload into a structurally valid guess.

    Raises:
        EngineInvalidResponse: coordinates or confidence missing, out of
            range or not numeric.
    """
    if not isinstance(payload, dict):
        raise EngineInvalidResponse(engine, "response is not a JSON object")

    latitude = _first_present(payload, "lat", "latitude")
    longitude = _first_present(payload, "lng", "lon", "longitude")
    if latitude is None or longitude is None:
        raise EngineInvalidResponse(engine, "missing latitude or longitude")

    confidence = payload.get("confidence")
    if confidence is None:
        raise EngineInvalidResponse(engine, "missing confidence")

    reasoning = str(payload.get("reasoning") or "").strip()
    if not reasoning:
        reasoning = f"{engine} returned a location without explaining it."

    try:
        return LocationGuess(
            latitude=latitude,
            longitude=longitude,
            city=payload.get("city") or "",
            country=payload.get("country") or "",
            confidence=confidence,
            reasoning=reasoning,
            visual_analysis_summary=_first_present(
                payload, "visualAnalysisSummary", "visual_analysis_summary"
            )
            or "",
        )
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise EngineInvalidResponse(engine, f"invalid guess fields: {fields}") from e


class InferenceEngine(ABC):
    """Anything that can turn an image into a location guess."""

    def __init__(self, config: EngineConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.id.value

    @property
    def source_label(self) -> str:
        return self.config.source_label

    @abstractmethod
    async def infer(
        self, image: bytes, hints: str = "", preference: str | None = None
    ) -> LocationGuess:
        """Produce a guess or raise an EngineError."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class RemoteInferenceEngine(InferenceEngine):
    """Base for network-backed engines.

    Subclasses only implement the request; prompt construction, error
    conversion and response parsing live here.
    """

    @abstractmethod
    async def _request(self, image: bytes, prompt: str) -> Any:
        """Send the request and return the decoded JSON payload."""

    async def infer(
        self, image: bytes, hints: str = "", preference: str | None = None
    ) -> LocationGuess:
        prompt = build_prompt(hints, preference)
        try:
            payload = await self._request(image, prompt)
        except EngineError:
            raise
        except asyncio.TimeoutError as e:
            raise EngineTransportError(self.name, "request timed out") from e
        except Exception as e:
            raise EngineTransportError(self.name, f"{type(e).__name__}: {e}") from e

        guess = parse_guess(self.name, payload)
        logger.debug(
            "engine_response_parsed",
            engine=self.name,
            latitude=guess.latitude,
            longitude=guess.longitude,
            confidence=guess.confidence,
        )
        return guess
