"""Local heuristic engine settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATASET_PATH = (
    Path(__file__).resolve().parents[2] / "modules" / "geolocation" / "data" / "dataset.json"
)


class LocalEngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # http(s) URL or filesystem path of the term -> location dataset
    DATASET_LOCATION: str = str(DEFAULT_DATASET_PATH)
    DATASET_TIMEOUT: int = 10

    YOLO_WEIGHTS: str = "yolov8n.pt"
    YOLO_CONFIDENCE: float = 0.35

    # Tesseract language packs, joined with "+"
    OCR_LANGUAGES: list[str] = ["eng", "hin", "vie", "chi_sim", "jpn", "ara"]

    # Put OCR tokens ahead of classifier labels when matching
    TEXT_TERMS_FIRST: bool = True

