"""Reverse-image-search hints: publish the image, ask the relay what it shows."""

import asyncio
from typing import Any

import aiohttp

from src.modules.geolocation.errors import HintUnavailable
from src.utils.logger import get_logger
from src.utils.r2_client import R2Client
from src.utils.settings.hints import HintSettings

logger = get_logger(__name__)


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def extract_hints(data: Any, max_visual_matches: int = 5) -> str:
    """Prefer the AI overview snippets, else join the top visual match titles."""
    if not isinstance(data, dict):
        return ""

    overview = data.get("ai_overview") or {}
    references = overview.get("references") if isinstance(overview, dict) else None
    snippets = [
        ref["snippet"].strip()
        for ref in references or []
        if isinstance(ref, dict) and _has_text(ref.get("snippet"))
    ]
    if snippets:
        return " ".join(snippets)

    titles = [
        match["title"].strip()
        for match in (data.get("visual_matches") or [])[:max_visual_matches]
        if isinstance(match, dict) and _has_text(match.get("title"))
    ]
    return "; ".join(titles)


class HintSourceAdapter:
    """Best-effort hint fetcher. Never raises; returns "" when nothing is available."""

    def __init__(
        self, image_host: R2Client | None = None, settings: HintSettings | None = None
    ):
        self.settings = settings or HintSettings()
        self.image_host = image_host or R2Client()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.HINTS_ENABLED and self.settings.HINT_RELAY_URL)

    async def fetch_hints(self, image: bytes, preference: str | None) -> str:
        if not self.enabled:
            return ""

        try:
            image_url = await self.image_host.upload_search_image(image)
            if not image_url:
                raise HintUnavailable("image could not be published")

            data = await self._search(image_url, preference)
            hints = extract_hints(data, self.settings.HINT_MAX_VISUAL_MATCHES)
            if not hints:
                raise HintUnavailable("search returned no overview or visual matches")

            logger.info("hints_fetched", length=len(hints))
            return hints

        except HintUnavailable as e:
            logger.info(f"No hints available: {e}")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Hint relay request failed: {type(e).__name__}: {e}")
        return ""

    async def _search(self, image_url: str, preference: str | None) -> Any:
        """Single GET against the relay's /search.json endpoint."""
        params = {"url": image_url, "preference": preference or ""}
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{self.settings.HINT_RELAY_URL.rstrip('/')}/search.json",
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.settings.HINT_RELAY_TIMEOUT),
            ) as response:
                response.raise_for_status()
                return await response.json()
