"""Dataset loading from URLs and local paths."""

import json
from unittest.mock import patch

import aiohttp
import pytest

from src.modules.geolocation.errors import DatasetUnavailable
from src.modules.geolocation.infrastructure.dataset import load_dataset, parse_dataset
from src.utils.settings.local import DEFAULT_DATASET_PATH


def test_parse_dataset_lowercases_keys_and_skips_bad_entries():
    dataset = parse_dataset(
        {
            " Gondola ": {"lat": 45.4408, "lng": 12.3155, "city": "Venice"},
            "broken": {"lat": "north"},
            "also_broken": "Venice",
        }
    )

    assert list(dataset) == ["gondola"]
    assert dataset["gondola"].city == "Venice"


def test_parse_dataset_skips_out_of_range_and_non_finite_coordinates():
    dataset = parse_dataset(
        {
            "pole": {"lat": 123.0, "lng": 10.0},
            "dateline": {"lat": 10.0, "lng": -181.0},
            "nan": {"lat": float("nan"), "lng": 10.0},
            "inf": {"lat": 10.0, "lng": float("inf")},
            "venice": {"lat": 45.4408, "lng": 12.3155},
        }
    )

    assert list(dataset) == ["venice"]


def test_parse_dataset_rejects_non_object_root():
    with pytest.raises(DatasetUnavailable):
        parse_dataset([{"lat": 1, "lng": 2}])


@pytest.mark.asyncio
async def test_bundled_dataset_loads_from_path():
    dataset = await load_dataset(str(DEFAULT_DATASET_PATH))

    assert "rickshaw" in dataset
    assert "hanoi" in dataset


@pytest.mark.asyncio
async def test_remote_dataset_is_fetched_for_http_locations():
    body = json.dumps({"paris": {"lat": 48.8566, "lng": 2.3522, "city": "Paris"}})

    with patch(
        "src.modules.geolocation.infrastructure.dataset._fetch_remote",
        return_value=body,
    ) as fetch:
        dataset = await load_dataset("https://data.example/dataset.json", timeout=3)

    fetch.assert_awaited_once_with("https://data.example/dataset.json", 3)
    assert dataset["paris"].lat == 48.8566


@pytest.mark.asyncio
async def test_fetch_failure_raises_dataset_unavailable():
    with patch(
        "src.modules.geolocation.infrastructure.dataset._fetch_remote",
        side_effect=aiohttp.ClientConnectionError("connection refused"),
    ):
        with pytest.raises(DatasetUnavailable):
            await load_dataset("http://localhost:9/dataset.json")


@pytest.mark.asyncio
async def test_missing_file_raises_dataset_unavailable(tmp_path):
    with pytest.raises(DatasetUnavailable):
        await load_dataset(str(tmp_path / "missing.json"))


@pytest.mark.asyncio
async def test_invalid_json_raises_dataset_unavailable(tmp_path):
    path = tmp_path / "dataset.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(DatasetUnavailable):
        await load_dataset(str(path))
