import asyncio
import time
from collections.abc import Sequence
from typing import Protocol

from fastapi import status
from pydantic import BaseModel

from src.api.core.exceptions.base import GeoSpyException
from src.api.core.messages import MessageCode
from src.modules.geolocation.display import DisplayPolicy, build_display_policy
from src.modules.geolocation.errors import (
    AllEnginesExhausted,
    EngineError,
    EngineInvalidResponse,
    SubmissionSuperseded,
)
from src.modules.geolocation.infrastructure.engines import InferenceEngine
from src.modules.geolocation.models import (
    EngineAttempt,
    LocateContext,
    LocationGuess,
    is_structurally_valid,
)
from src.modules.geolocation.sessions import SubmissionRegistry
from src.utils.images import ImageDecodeError, to_jpeg_bytes
from src.utils.logger import get_logger

logger = get_logger(__name__)


class HintSource(Protocol):
    async def fetch_hints(self, image: bytes, preference: str | None) -> str: ...


class FallbackOrchestrator:
    """Runs hints, then remote engines in priority order, then the local engine.

    The first structurally valid remote guess is accepted as-is; there is no
    comparison across engines. The local engine is only reached when every
    remote engine failed, and its guess is always accepted.
    """

    def __init__(
        self,
        remote_engines: Sequence[InferenceEngine],
        local_engine: InferenceEngine,
        hint_source: HintSource | None = None,
        acceptance_min_confidence: float = 0.0,
    ):
        self.remote_engines = list(remote_engines)
        self.local_engine = local_engine
        self.hint_source = hint_source
        self.acceptance_min_confidence = acceptance_min_confidence

    async def locate(self, image: bytes, context: LocateContext) -> LocationGuess:
        """Produce exactly one accepted guess or raise AllEnginesExhausted."""
        log = logger.bind(request_id=context.request_id)

        context.hints = await self._gather_hints(image, context.preference)

        for engine in self.remote_engines:
            guess = await self._attempt(engine, image, context)
            if guess is not None:
                return self._accept(engine, guess, context)

        log.info("remote_engines_exhausted", attempts=len(context.attempts))
        try:
            guess = await self.local_engine.infer(
                image, context.hints, context.preference
            )
        except Exception as e:
            context.record(self.local_engine.name, "failed", f"{type(e).__name__}: {e}")
            log.error(f"Local engine failed: {e}")
            raise AllEnginesExhausted(
                f"all {len(context.attempts)} engines failed"
            ) from e

        if not is_structurally_valid(guess):
            context.record(self.local_engine.name, "invalid", "guess out of range")
            raise AllEnginesExhausted("local engine produced an invalid guess")

        return self._accept(self.local_engine, guess, context)

    async def _gather_hints(self, image: bytes, preference: str | None) -> str:
        if self.hint_source is None:
            return ""
        try:
            return await self.hint_source.fetch_hints(image, preference) or ""
        except Exception as e:
            # Hints are advisory and never block the engines
            logger.warning(f"Hint source raised, continuing without hints: {e}")
            return ""

    async def _attempt(
        self, engine: InferenceEngine, image: bytes, context: LocateContext
    ) -> LocationGuess | None:
        """One remote engine call; None means skip to the next engine."""
        start_time = time.time()
        try:
            guess = await engine.infer(image, context.hints, context.preference)
        except EngineInvalidResponse as e:
            context.record(engine.name, "invalid", e.reason)
            logger.warning(f"Engine {engine.name} returned invalid response: {e.reason}")
            return None
        except EngineError as e:
            context.record(engine.name, "failed", e.reason)
            logger.warning(f"Engine {engine.name} failed: {e.reason}")
            return None
        except Exception as e:
            context.record(engine.name, "failed", f"{type(e).__name__}: {e}")
            logger.error(f"Unexpected error from engine {engine.name}: {e}")
            return None

        if not is_structurally_valid(guess):
            context.record(engine.name, "invalid", "failed structural validation")
            return None

        if guess.confidence < self.acceptance_min_confidence:
            context.record(
                engine.name,
                "below_threshold",
                f"confidence {guess.confidence} < {self.acceptance_min_confidence}",
            )
            return None

        logger.info(
            "engine_succeeded",
            engine=engine.name,
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return guess

    def _accept(
        self, engine: InferenceEngine, guess: LocationGuess, context: LocateContext
    ) -> LocationGuess:
        accepted = guess.model_copy(update={"source": engine.source_label})
        context.record(engine.name, "accepted")
        context.source = engine.source_label
        logger.info(
            "location_accepted",
            request_id=context.request_id,
            source=engine.source_label,
            confidence=accepted.confidence,
        )
        return accepted


class LocationResult(BaseModel):
    """Everything the presentation layer needs for one submission."""

    request_id: str
    guess: LocationGuess
    display: DisplayPolicy
    preference: str | None = None
    hints: str = ""
    attempts: list[EngineAttempt]
    processing_time_ms: int


async def locate_image_from_upload(
    image_data: bytes,
    orchestrator: FallbackOrchestrator,
    preference: str | None = None,
    request_id: str | None = None,
    low_confidence_threshold: float = 0.3,
    submissions: SubmissionRegistry | None = None,
    session_id: str | None = None,
) -> LocationResult:
    """
    Locate an uploaded image and attach the display policy.

    Args:
        image_data: Raw uploaded bytes (any format Pillow can open, HEIC included)
        orchestrator: Configured engine pipeline
        preference: Optional free-text bias forwarded to every engine
        request_id: Correlation id; generated when omitted
        low_confidence_threshold: Below this no marker is placed
        submissions: Registry enforcing one in-flight submission per session
        session_id: Caller session; a newer submission cancels this one

    Returns:
        LocationResult with the accepted guess, display policy and attempt log
    """
    start_time = time.time()

    if not image_data:
        raise GeoSpyException(
            MessageCode.IMAGE_PROCESSING_ERROR,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Empty image data provided"},
        )

    try:
        jpeg = await asyncio.to_thread(to_jpeg_bytes, image_data)
    except ImageDecodeError as e:
        logger.warning(f"Rejected undecodable upload: {e}")
        raise GeoSpyException(
            MessageCode.INVALID_FILE_TYPE,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "File could not be decoded as an image"},
        )

    context = LocateContext(preference=preference)
    if request_id:
        context.request_id = request_id

    try:
        work = orchestrator.locate(jpeg, context)
        if submissions is not None:
            guess = await submissions.run(session_id, work)
        else:
            guess = await work
    except AllEnginesExhausted as e:
        logger.error(f"Location not found: {e}", request_id=context.request_id)
        raise GeoSpyException(
            MessageCode.LOCATION_NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            details={
                "attempts": [a.model_dump() for a in context.attempts],
            },
        )
    except SubmissionSuperseded:
        raise GeoSpyException(
            MessageCode.SUBMISSION_SUPERSEDED,
            status.HTTP_409_CONFLICT,
            details={"session_id": session_id},
        )

    return LocationResult(
        request_id=context.request_id,
        guess=guess,
        display=build_display_policy(guess, preference, low_confidence_threshold),
        preference=preference,
        hints=context.hints,
        attempts=context.attempts,
        processing_time_ms=int((time.time() - start_time) * 1000),
    )
