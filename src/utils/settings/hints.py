"""Reverse-image-search hint settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class HintSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    HINTS_ENABLED: bool = True
    # Base URL of the service exposing /search.json (usually this API)
    HINT_RELAY_URL: str = "http://localhost:8010"
    HINT_RELAY_TIMEOUT: int = 30
    HINT_MAX_VISUAL_MATCHES: int = 5

    # Used by the relay endpoint itself
    SERPAPI_URL: str = "https://serpapi.com/search.json"
    SERPAPI_API_KEY: SecretStr = SecretStr("")
    RELAY_TIMEOUT_SECONDS: int = 25

