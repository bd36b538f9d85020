"""Remote inference engine settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    GEMINI_API_KEY: SecretStr = SecretStr("")
    GEMINI_TIMEOUT_SECONDS: int = 60

    # Priority order, first valid guess wins
    REMOTE_ENGINE_ORDER: list[str] = [
        "gemini-3-flash-preview",
        "gemini-2.5-flash",
        "geoclip-server",
    ]

    # Optional GeoCLIP inference server, skipped when URL is empty
    GEOCLIP_SERVER_URL: str = ""
    GEOCLIP_SERVER_USERNAME: str = ""
    GEOCLIP_SERVER_PASSWORD: SecretStr = SecretStr("")
    GEOCLIP_SERVER_TIMEOUT: int = 60

    # Remote guesses below this are skipped like invalid ones
    ACCEPTANCE_MIN_CONFIDENCE: float = 0.0
    # Accepted guesses below this are shown without a marker
    LOW_CONFIDENCE_THRESHOLD: float = 0.3

