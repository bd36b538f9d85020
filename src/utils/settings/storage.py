from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr


class StorageSettings(BaseSettings):
    """S3-compatible bucket used to publish images for reverse search."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    R2_ENDPOINT: str = ""
    R2_ACCESS_KEY: str = ""
    R2_SECRET_KEY: SecretStr = SecretStr("")
    R2_BUCKET: str = "geospy-uploads"
    R2_URL_EXPIRY_SECONDS: int = 900
