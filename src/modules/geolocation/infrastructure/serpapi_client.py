"""SerpApi Google Lens client backing the /search.json relay."""

import asyncio
from typing import Any

import aiohttp

from src.utils.logger import get_logger
from src.utils.settings.hints import HintSettings

logger = get_logger(__name__)


class SerpApiClient:
    """Two-stage lookup: Google Lens first, then the AI overview when a token is present."""

    def __init__(self, settings: HintSettings | None = None):
        self.settings = settings or HintSettings()

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.SERPAPI_API_KEY.get_secret_value())

    async def lens_search(self, image_url: str, preference: str = "") -> dict[str, Any]:
        """Run the whole lookup within RELAY_TIMEOUT_SECONDS."""
        return await asyncio.wait_for(
            self._lens_search(image_url, preference),
            timeout=self.settings.RELAY_TIMEOUT_SECONDS,
        )

    async def _lens_search(self, image_url: str, preference: str) -> dict[str, Any]:
        api_key = self.settings.SERPAPI_API_KEY.get_secret_value()
        async with aiohttp.ClientSession() as session:
            lens = await self._get(
                session,
                {
                    "engine": "google_lens",
                    "q": f"where's this location,preference={preference}",
                    "url": image_url,
                    "api_key": api_key,
                    # Cached responses do not carry a usable page token
                    "no_cache": "true",
                },
            )

            overview = lens.get("ai_overview")
            page_token = overview.get("page_token") if isinstance(overview, dict) else None
            if not page_token:
                return lens

            try:
                follow_up = await self._get(
                    session,
                    {
                        "engine": "google_ai_overview",
                        "page_token": page_token,
                        "api_key": api_key,
                    },
                )
            except aiohttp.ClientError as e:
                logger.warning(f"AI overview fetch failed, returning lens results: {e}")
                return lens

            if follow_up.get("ai_overview"):
                lens["ai_overview"] = follow_up["ai_overview"]
            return lens

    async def _get(
        self, session: aiohttp.ClientSession, params: dict[str, str]
    ) -> dict[str, Any]:
        async with session.get(self.settings.SERPAPI_URL, params=params) as response:
            response.raise_for_status()
            data = await response.json()
        if not isinstance(data, dict):
            raise aiohttp.ContentTypeError(
                response.request_info, response.history, message="Expected a JSON object"
            )
        return data
