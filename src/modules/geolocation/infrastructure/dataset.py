"""Static term -> location dataset used by the local heuristic engine."""

import asyncio
import json
from pathlib import Path

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.modules.geolocation.errors import DatasetUnavailable
from src.utils.logger import get_logger

logger = get_logger(__name__)


class DatasetEntry(BaseModel):
    # Entries that could not form a valid guess are rejected at load time
    model_config = ConfigDict(allow_inf_nan=False)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    city: str = ""
    country: str = ""
    reasoning: str = ""


Dataset = dict[str, DatasetEntry]


def parse_dataset(raw: object) -> Dataset:
    """Validate a decoded JSON object; keys are lowercased, bad entries skipped."""
    if not isinstance(raw, dict):
        raise DatasetUnavailable("dataset root must be a JSON object")

    dataset: Dataset = {}
    for key, value in raw.items():
        try:
            dataset[str(key).strip().lower()] = DatasetEntry.model_validate(value)
        except ValidationError:
            logger.warning(f"Skipping malformed dataset entry {key!r}")
    return dataset


async def _fetch_remote(url: str, timeout: int) -> str:
    async with aiohttp.ClientSession() as session:
        async with session.get(
            url,
            headers={"Cache-Control": "no-store"},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            response.raise_for_status()
            return await response.text()


async def _read_local(path: str) -> str:
    return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")


async def load_dataset(location: str, timeout: int = 10) -> Dataset:
    """Fetch the dataset fresh on every call from an http(s) URL or a file path.

    Raises:
        DatasetUnavailable: fetch failed or the content is not a JSON object.
    """
    try:
        if location.startswith(("http://", "https://")):
            text = await _fetch_remote(location, timeout)
        else:
            text = await _read_local(location)
        raw = json.loads(text)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        raise DatasetUnavailable(f"cannot load dataset from {location}: {e}") from e
    except json.JSONDecodeError as e:
        raise DatasetUnavailable(f"dataset at {location} is not valid JSON: {e}") from e

    return parse_dataset(raw)
