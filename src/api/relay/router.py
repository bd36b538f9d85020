"""Reverse image search relay consumed by the hint source."""

import asyncio
from typing import Any

import aiohttp
from fastapi import APIRouter, Query, status

from src.api.core.constants import MAX_PREFERENCE_LENGTH
from src.api.core.dependencies import SerpApiClientDep
from src.api.core.exceptions.base import GeoSpyException
from src.api.core.messages import MessageCode
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["relay"])


@router.get("/search.json")
async def search(
    serpapi: SerpApiClientDep,
    url: str = Query(..., min_length=1),
    preference: str = Query(default="", max_length=MAX_PREFERENCE_LENGTH),
) -> dict[str, Any]:
    """Proxy a Google Lens lookup, merged with the AI overview when one exists.

    The SerpApi payload is returned unchanged so the hint source can read
    `ai_overview` and `visual_matches` directly.
    """
    if not serpapi.is_configured:
        raise GeoSpyException(
            MessageCode.SERVICE_NOT_CONFIGURED,
            status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"description": "SERPAPI_API_KEY is not set"},
        )

    try:
        return await serpapi.lens_search(url, preference)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.warning(f"Relay lookup failed: {type(e).__name__}: {e}")
        raise GeoSpyException(
            MessageCode.EXTERNAL_SERVICE_ERROR,
            status.HTTP_502_BAD_GATEWAY,
            details={"description": "Reverse image search failed"},
        ) from e
