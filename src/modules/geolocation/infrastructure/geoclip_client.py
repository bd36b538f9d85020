"""Client for a remote GeoCLIP inference server, used as a lower-priority engine."""

import asyncio
from typing import Any

import aiohttp
import reverse_geocoder as rg  # type: ignore

from src.modules.geolocation.errors import EngineInvalidResponse
from src.modules.geolocation.infrastructure.engines import RemoteInferenceEngine
from src.modules.geolocation.models import EngineConfig
from src.utils.logger import get_logger
from src.utils.settings.engines import EngineSettings


logger = get_logger(__name__)


def get_place_names(latitude: float, longitude: float) -> tuple[str, str]:
    """Offline reverse geocoding to (city, country code); empty strings on failure."""
    try:
        result = rg.search((latitude, longitude))
        if result:
            place = result[0]
            return place.get("name", ""), place.get("cc", "")
    except Exception as e:
        logger.warning(f"Reverse geocoding failed for ({latitude}, {longitude}): {e}")
    return "", ""


class GeoClipServerEngine(RemoteInferenceEngine):
    """GeoCLIP only sees pixels: hints and preference are not forwarded."""

    def __init__(self, config: EngineConfig, settings: EngineSettings):
        super().__init__(config)
        self.url = settings.GEOCLIP_SERVER_URL.rstrip("/")
        self.timeout = settings.GEOCLIP_SERVER_TIMEOUT
        self.auth = (
            aiohttp.BasicAuth(
                settings.GEOCLIP_SERVER_USERNAME,
                settings.GEOCLIP_SERVER_PASSWORD.get_secret_value(),
            )
            if settings.GEOCLIP_SERVER_USERNAME
            else None
        )

    async def _request(self, image: bytes, prompt: str) -> Any:
        return await self._to_guess_payload(await self._post(image))

    async def _post(self, image: bytes) -> Any:
        async with aiohttp.ClientSession() as session:
            form_data = aiohttp.FormData()
            form_data.add_field(
                "file", image, filename="image.jpg", content_type="image/jpeg"
            )

            async with session.post(
                f"{self.url}/predict",
                data=form_data,
                params={"top_k": 1},
                auth=self.auth,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                response.raise_for_status()
                return await response.json()

    async def _to_guess_payload(self, data: Any) -> dict[str, Any]:
        """Map the server's ranked predictions onto the shared guess fields."""
        predictions = data.get("predictions") if isinstance(data, dict) else None
        if not predictions:
            raise EngineInvalidResponse(self.name, "no predictions returned")

        top = predictions[0]
        latitude, longitude = top.get("latitude"), top.get("longitude")
        if latitude is None or longitude is None:
            raise EngineInvalidResponse(self.name, "missing latitude or longitude")

        location = top.get("location") or {}
        city = location.get("name", "")
        country = location.get("country_code", "")
        if not city:
            city, country = await asyncio.to_thread(get_place_names, latitude, longitude)

        return {
            "lat": latitude,
            "lng": longitude,
            "city": city,
            "country": country,
            "confidence": top.get("confidence"),
            "reasoning": (
                "GeoCLIP matched the image embedding against its GPS gallery; "
                f"top-ranked cell is near {city or 'an unnamed place'}."
            ),
            "visualAnalysisSummary": "",
        }
