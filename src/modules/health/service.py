import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from src.modules.geolocation.application.use_cases import FallbackOrchestrator
from src.modules.geolocation.errors import DatasetUnavailable
from src.modules.geolocation.infrastructure.dataset import load_dataset
from src.modules.geolocation.infrastructure.hint_source import HintSourceAdapter
from src.modules.geolocation.infrastructure.serpapi_client import SerpApiClient
from src.utils.logger import get_logger
from src.utils.settings.engines import EngineSettings
from src.utils.settings.local import LocalEngineSettings

logger = get_logger(__name__)

Status = Literal["healthy", "degraded", "unhealthy"]


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Status
    configured: bool
    details: dict
    error: str | None = None


@dataclass
class OverallHealthStatus:
    """Overall health status with individual service results."""

    status: Status
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService:
    """Reports whether each stage of the fallback chain can run.

    Nothing here calls a paid API; remote engines are judged by their
    configuration only. The local dataset is actually loaded.
    """

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        engine_settings: EngineSettings | None = None,
        local_settings: LocalEngineSettings | None = None,
        serpapi: SerpApiClient | None = None,
    ):
        self.orchestrator = orchestrator
        self.engine_settings = engine_settings or EngineSettings()
        self.local_settings = local_settings or LocalEngineSettings()
        self.serpapi = serpapi or SerpApiClient()

    async def check_remote_engines(self) -> HealthCheckResult:
        engines = [engine.name for engine in self.orchestrator.remote_engines]
        has_key = bool(self.engine_settings.GEMINI_API_KEY.get_secret_value())
        # Without remote engines every request lands on the local fallback
        return HealthCheckResult(
            service="remote_engines",
            status="healthy" if engines and has_key else "degraded",
            configured=has_key,
            details={"order": engines, "gemini_api_key_set": has_key},
        )

    async def check_local_dataset(self) -> HealthCheckResult:
        location = self.local_settings.DATASET_LOCATION
        try:
            dataset = await load_dataset(
                location, timeout=self.local_settings.DATASET_TIMEOUT
            )
        except DatasetUnavailable as e:
            logger.error(f"Dataset health check error: {e}")
            return HealthCheckResult(
                service="local_dataset",
                status="degraded",
                configured=True,
                details={"location": location},
                error=str(e),
            )

        return HealthCheckResult(
            service="local_dataset",
            status="healthy" if dataset else "degraded",
            configured=True,
            details={"location": location, "entries": len(dataset)},
        )

    async def check_hint_source(self) -> HealthCheckResult:
        hint_source = self.orchestrator.hint_source
        enabled = isinstance(hint_source, HintSourceAdapter) and hint_source.enabled
        image_host = enabled and hint_source.image_host.is_configured
        ready = bool(enabled and image_host and self.serpapi.is_configured)
        return HealthCheckResult(
            service="hint_source",
            status="healthy" if ready else "degraded",
            configured=ready,
            details={
                "enabled": enabled,
                "image_host_configured": bool(image_host),
                "relay_configured": self.serpapi.is_configured,
            },
        )

    async def run_all_checks(self) -> OverallHealthStatus:
        """Run all health checks in parallel and return overall status."""
        results = await asyncio.gather(
            self.check_remote_engines(),
            self.check_local_dataset(),
            self.check_hint_source(),
            return_exceptions=True,
        )

        services: dict[str, HealthCheckResult] = {}
        overall_status: Status = "healthy"

        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Health check raised: {result}")
                result = HealthCheckResult(
                    service=result.__class__.__name__,
                    status="unhealthy",
                    configured=False,
                    details={},
                    error=str(result),
                )

            if result.status == "unhealthy":
                overall_status = "unhealthy"
            elif result.status == "degraded" and overall_status == "healthy":
                overall_status = "degraded"

            services[result.service] = result

        return OverallHealthStatus(
            status=overall_status,
            services=services,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
