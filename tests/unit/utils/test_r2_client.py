"""Search image publishing to R2."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from src.utils.r2_client import R2Client
from src.utils.settings.storage import StorageSettings


def _configured() -> R2Client:
    return R2Client(
        StorageSettings(
            R2_ENDPOINT="https://account.r2.cloudflarestorage.com",
            R2_ACCESS_KEY="access",
            R2_SECRET_KEY="secret",
        )
    )


def _with_s3(client: R2Client, s3: MagicMock) -> None:
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=s3)
    context.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.client.return_value = context
    client._session = session


def test_identical_images_share_a_key():
    client = R2Client(StorageSettings())

    assert client.generate_key(b"same") == client.generate_key(b"same")
    assert client.generate_key(b"same") != client.generate_key(b"other")
    assert client.generate_key(b"same").startswith("search/")


@pytest.mark.asyncio
async def test_unconfigured_storage_skips_upload():
    client = R2Client(StorageSettings(R2_ENDPOINT="", R2_ACCESS_KEY=""))

    assert not client.is_configured
    assert await client.upload_search_image(b"jpeg") is None


@pytest.mark.asyncio
async def test_upload_returns_presigned_url():
    client = _configured()
    s3 = MagicMock()
    s3.put_object = AsyncMock()
    s3.generate_presigned_url = AsyncMock(return_value="https://signed.example/a.jpg")
    _with_s3(client, s3)

    url = await client.upload_search_image(b"jpeg")

    assert url == "https://signed.example/a.jpg"
    put_kwargs = s3.put_object.await_args.kwargs
    assert put_kwargs["Bucket"] == "geospy-uploads"
    assert put_kwargs["ContentType"] == "image/jpeg"
    presign_kwargs = s3.generate_presigned_url.await_args.kwargs
    assert presign_kwargs["ExpiresIn"] == 900


@pytest.mark.asyncio
async def test_upload_errors_return_none():
    client = _configured()
    s3 = MagicMock()
    s3.put_object = AsyncMock(
        side_effect=ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
    )
    _with_s3(client, s3)

    assert await client.upload_search_image(b"jpeg") is None
