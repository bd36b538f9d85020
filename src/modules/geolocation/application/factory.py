"""Assemble the engine pipeline from settings."""

from src.modules.geolocation.application.use_cases import FallbackOrchestrator
from src.modules.geolocation.infrastructure.engines import InferenceEngine
from src.modules.geolocation.infrastructure.gemini_client import GeminiEngine
from src.modules.geolocation.infrastructure.geoclip_client import GeoClipServerEngine
from src.modules.geolocation.infrastructure.hint_source import HintSourceAdapter
from src.modules.geolocation.infrastructure.local_engine import LocalHeuristicEngine
from src.modules.geolocation.infrastructure.recognizers import (
    TesseractTextRecognizer,
    YoloObjectClassifier,
)
from src.modules.geolocation.models import (
    EngineId,
    EngineKind,
    get_engine_config,
)
from src.utils.logger import get_logger
from src.utils.r2_client import R2Client
from src.utils.settings.engines import EngineSettings
from src.utils.settings.hints import HintSettings
from src.utils.settings.local import LocalEngineSettings
from src.utils.settings.storage import StorageSettings

logger = get_logger(__name__)


def build_remote_engines(settings: EngineSettings) -> list[InferenceEngine]:
    """Instantiate remote engines in REMOTE_ENGINE_ORDER, skipping unusable ones."""
    engines: list[InferenceEngine] = []
    for engine_id in settings.REMOTE_ENGINE_ORDER:
        config = get_engine_config(engine_id)
        if not config.remote:
            raise ValueError(f"{engine_id} is not a remote engine")

        if config.kind == EngineKind.GEMINI:
            engines.append(
                GeminiEngine(
                    config,
                    api_key=settings.GEMINI_API_KEY.get_secret_value(),
                    timeout_seconds=settings.GEMINI_TIMEOUT_SECONDS,
                )
            )
        elif config.kind == EngineKind.GEOCLIP:
            if not settings.GEOCLIP_SERVER_URL:
                logger.info("GeoCLIP server URL not set, engine disabled")
                continue
            engines.append(GeoClipServerEngine(config, settings))

    return engines


def build_local_engine(settings: LocalEngineSettings) -> LocalHeuristicEngine:
    return LocalHeuristicEngine(
        get_engine_config(EngineId.LOCAL),
        classifier=YoloObjectClassifier(settings.YOLO_WEIGHTS, settings.YOLO_CONFIDENCE),
        text_recognizer=TesseractTextRecognizer(settings.OCR_LANGUAGES),
        settings=settings,
    )


def build_orchestrator(
    engine_settings: EngineSettings | None = None,
    hint_settings: HintSettings | None = None,
    local_settings: LocalEngineSettings | None = None,
    storage_settings: StorageSettings | None = None,
) -> FallbackOrchestrator:
    engine_settings = engine_settings or EngineSettings()
    hint_settings = hint_settings or HintSettings()

    remote_engines = build_remote_engines(engine_settings)
    if not engine_settings.GEMINI_API_KEY.get_secret_value():
        logger.warning("GEMINI_API_KEY is not set; Gemini engines will fail over")

    orchestrator = FallbackOrchestrator(
        remote_engines=remote_engines,
        local_engine=build_local_engine(local_settings or LocalEngineSettings()),
        hint_source=HintSourceAdapter(R2Client(storage_settings), hint_settings),
        acceptance_min_confidence=engine_settings.ACCEPTANCE_MIN_CONFIDENCE,
    )
    logger.info(
        "orchestrator_built",
        remote_engines=[engine.name for engine in remote_engines],
    )
    return orchestrator
