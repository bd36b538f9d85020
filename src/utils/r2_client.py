import hashlib
import logging

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.utils.settings.storage import StorageSettings

logger = logging.getLogger(__name__)


class R2Client:
    """Client for publishing images to Cloudflare R2 (S3-compatible storage).

    Reverse image search needs a URL it can fetch, so uploads are stored
    under a content hash and exposed through a short-lived presigned URL.
    """

    def __init__(self, settings: StorageSettings | None = None):
        self.settings = settings or StorageSettings()
        self._session: aioboto3.Session | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.R2_ENDPOINT and self.settings.R2_ACCESS_KEY)

    def _get_session(self) -> aioboto3.Session:
        """Get or create aioboto3 session."""
        if self._session is None:
            self._session = aioboto3.Session(
                aws_access_key_id=self.settings.R2_ACCESS_KEY,
                aws_secret_access_key=self.settings.R2_SECRET_KEY.get_secret_value(),
            )
        return self._session

    def _generate_image_hash(self, image_data: bytes) -> str:
        """Generate a unique hash for the image content."""
        return hashlib.sha256(image_data).hexdigest()[:16]

    def generate_key(self, image_data: bytes) -> str:
        """Object key for a search image; identical bytes share one key."""
        return f"search/{self._generate_image_hash(image_data)}.jpg"

    async def upload_search_image(self, image_data: bytes) -> str | None:
        """Upload JPEG bytes and return a presigned GET URL, or None on failure."""
        if not self.is_configured:
            logger.info("Image hosting not configured, skipping upload")
            return None

        key = self.generate_key(image_data)

        try:
            session = self._get_session()
            # Configure client to use SigV4 (required by R2)
            config = Config(signature_version="s3v4")
            async with session.client(
                "s3",
                endpoint_url=self.settings.R2_ENDPOINT,
                config=config,
            ) as s3_client:
                await s3_client.put_object(
                    Bucket=self.settings.R2_BUCKET,
                    Key=key,
                    Body=image_data,
                    ContentType="image/jpeg",
                )
                return await s3_client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.settings.R2_BUCKET, "Key": key},
                    ExpiresIn=self.settings.R2_URL_EXPIRY_SECONDS,
                )

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload search image to R2: {e}")
            return None
