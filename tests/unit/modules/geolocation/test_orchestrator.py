"""Fallback orchestrator behaviour with deterministic engines."""

import pytest

from src.modules.geolocation.application.use_cases import FallbackOrchestrator
from src.modules.geolocation.errors import (
    AllEnginesExhausted,
    EngineInvalidResponse,
    EngineTransportError,
)
from src.modules.geolocation.infrastructure.local_engine import LocalHeuristicEngine
from src.modules.geolocation.models import EngineId, LocateContext, get_engine_config
from src.utils.settings.local import LocalEngineSettings
from tests.utils.stubs import (
    StubClassifier,
    StubEngine,
    StubHintSource,
    StubTextRecognizer,
    make_guess,
    make_image_bytes,
)


def _transport_error(engine_id: EngineId) -> EngineTransportError:
    return EngineTransportError(engine_id.value, "503 Service Unavailable")


@pytest.mark.asyncio
async def test_first_valid_remote_guess_wins():
    first = StubEngine(EngineId.GEMINI_3_FLASH, guess=make_guess())
    second = StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess(city="Hue"))
    local = StubEngine(EngineId.LOCAL, guess=make_guess(confidence=0.2))
    orchestrator = FallbackOrchestrator([first, second], local)

    context = LocateContext()
    guess = await orchestrator.locate(b"jpeg", context)

    assert guess.city == "Hanoi"
    assert guess.source == "Gemini-3-Flash AI"
    assert context.source == "Gemini-3-Flash AI"
    assert len(first.calls) == 1
    assert second.calls == []
    assert local.calls == []
    assert [a.outcome for a in context.attempts] == ["accepted"]


@pytest.mark.asyncio
async def test_missing_coordinates_skip_to_next_engine():
    first = StubEngine(
        EngineId.GEMINI_3_FLASH,
        error=EngineInvalidResponse(
            EngineId.GEMINI_3_FLASH.value, "missing latitude or longitude"
        ),
    )
    second = StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess(city="Hue"))
    local = StubEngine(EngineId.LOCAL, guess=make_guess(confidence=0.2))
    orchestrator = FallbackOrchestrator([first, second], local)

    context = LocateContext()
    guess = await orchestrator.locate(b"jpeg", context)

    assert guess.city == "Hue"
    assert guess.source == "Gemini-2.5-Flash AI"
    assert local.calls == []
    assert [(a.engine, a.outcome) for a in context.attempts] == [
        ("gemini-3-flash-preview", "invalid"),
        ("gemini-2.5-flash", "accepted"),
    ]


@pytest.mark.asyncio
async def test_unexpected_engine_exception_is_contained():
    first = StubEngine(EngineId.GEMINI_3_FLASH, error=RuntimeError("boom"))
    second = StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess())
    orchestrator = FallbackOrchestrator(
        [first, second], StubEngine(EngineId.LOCAL, guess=make_guess())
    )

    context = LocateContext()
    guess = await orchestrator.locate(b"jpeg", context)

    assert guess.source == "Gemini-2.5-Flash AI"
    assert context.attempts[0].outcome == "failed"
    assert "RuntimeError" in context.attempts[0].detail


@pytest.mark.asyncio
async def test_low_confidence_remote_guess_is_still_accepted_by_default():
    first = StubEngine(EngineId.GEMINI_3_FLASH, guess=make_guess(confidence=0.1))
    second = StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess())
    orchestrator = FallbackOrchestrator(
        [first, second], StubEngine(EngineId.LOCAL, guess=make_guess())
    )

    guess = await orchestrator.locate(b"jpeg", LocateContext())

    assert guess.confidence == 0.1
    assert guess.source == "Gemini-3-Flash AI"
    assert second.calls == []


@pytest.mark.asyncio
async def test_acceptance_threshold_skips_weak_guesses():
    first = StubEngine(EngineId.GEMINI_3_FLASH, guess=make_guess(confidence=0.3))
    second = StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess(confidence=0.9))
    orchestrator = FallbackOrchestrator(
        [first, second],
        StubEngine(EngineId.LOCAL, guess=make_guess()),
        acceptance_min_confidence=0.5,
    )

    context = LocateContext()
    guess = await orchestrator.locate(b"jpeg", context)

    assert guess.confidence == 0.9
    assert context.attempts[0].outcome == "below_threshold"


@pytest.mark.asyncio
async def test_engine_selection_is_repeatable():
    def build() -> FallbackOrchestrator:
        return FallbackOrchestrator(
            [
                StubEngine(
                    EngineId.GEMINI_3_FLASH,
                    error=_transport_error(EngineId.GEMINI_3_FLASH),
                ),
                StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess()),
            ],
            StubEngine(EngineId.LOCAL, guess=make_guess(confidence=0.2)),
        )

    first_run = await build().locate(b"jpeg", LocateContext())
    second_run = await build().locate(b"jpeg", LocateContext())

    assert first_run == second_run
    assert first_run.source == "Gemini-2.5-Flash AI"


@pytest.mark.asyncio
async def test_hints_and_preference_reach_every_engine():
    hint_source = StubHintSource("Hoan Kiem Lake, Hanoi")
    first = StubEngine(
        EngineId.GEMINI_3_FLASH, error=_transport_error(EngineId.GEMINI_3_FLASH)
    )
    second = StubEngine(EngineId.GEMINI_2_5_FLASH, guess=make_guess())
    orchestrator = FallbackOrchestrator(
        [first, second], StubEngine(EngineId.LOCAL), hint_source=hint_source
    )

    context = LocateContext(preference="Vietnam")
    await orchestrator.locate(b"jpeg", context)

    assert hint_source.calls == ["Vietnam"]
    assert first.calls == [("Hoan Kiem Lake, Hanoi", "Vietnam")]
    assert second.calls == [("Hoan Kiem Lake, Hanoi", "Vietnam")]
    assert context.hints == "Hoan Kiem Lake, Hanoi"


@pytest.mark.asyncio
async def test_failing_hint_source_does_not_block_engines():
    hint_source = StubHintSource(error=RuntimeError("relay down"))
    engine = StubEngine(EngineId.GEMINI_3_FLASH, guess=make_guess())
    orchestrator = FallbackOrchestrator(
        [engine], StubEngine(EngineId.LOCAL), hint_source=hint_source
    )

    context = LocateContext()
    guess = await orchestrator.locate(b"jpeg", context)

    assert guess.source == "Gemini-3-Flash AI"
    assert engine.calls == [("", None)]
    assert context.hints == ""


@pytest.mark.asyncio
async def test_rickshaw_photo_falls_back_to_local_dataset():
    remote = [
        StubEngine(engine_id, error=_transport_error(engine_id))
        for engine_id in (
            EngineId.GEMINI_3_FLASH,
            EngineId.GEMINI_2_5_FLASH,
            EngineId.GEOCLIP_SERVER,
        )
    ]
    local = LocalHeuristicEngine(
        get_engine_config(EngineId.LOCAL),
        classifier=StubClassifier(["rickshaw", "street"]),
        text_recognizer=StubTextRecognizer(""),
        settings=LocalEngineSettings(),
    )
    orchestrator = FallbackOrchestrator(remote, local)

    context = LocateContext()
    guess = await orchestrator.locate(make_image_bytes("JPEG"), context)

    assert guess.source.startswith("Fallback:")
    assert guess.confidence == 0.4
    assert (guess.latitude, guess.longitude) == (23.8103, 90.4125)
    assert guess.city == "Dhaka"
    assert [a.outcome for a in context.attempts] == [
        "failed",
        "failed",
        "failed",
        "accepted",
    ]


@pytest.mark.asyncio
async def test_local_engine_failure_exhausts_pipeline():
    orchestrator = FallbackOrchestrator(
        [
            StubEngine(
                EngineId.GEMINI_3_FLASH,
                error=_transport_error(EngineId.GEMINI_3_FLASH),
            )
        ],
        StubEngine(EngineId.LOCAL, error=RuntimeError("tesseract is not installed")),
    )

    context = LocateContext()
    with pytest.raises(AllEnginesExhausted):
        await orchestrator.locate(b"jpeg", context)

    assert context.source is None
    assert [(a.engine, a.outcome) for a in context.attempts] == [
        ("gemini-3-flash-preview", "failed"),
        ("local", "failed"),
    ]


@pytest.mark.asyncio
async def test_no_remote_engines_goes_straight_to_local():
    local = StubEngine(EngineId.LOCAL, guess=make_guess(confidence=0.2))
    orchestrator = FallbackOrchestrator([], local)

    guess = await orchestrator.locate(b"jpeg", LocateContext())

    assert guess.source == "Fallback: Local Heuristic"
    assert len(local.calls) == 1
