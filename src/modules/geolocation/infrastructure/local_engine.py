"""Local heuristic engine: recognize objects and text, look terms up in the dataset."""

import asyncio
import unicodedata
from dataclasses import dataclass
from itertools import groupby
from typing import Literal

from src.modules.geolocation.errors import DatasetUnavailable
from src.modules.geolocation.infrastructure.dataset import Dataset, load_dataset
from src.modules.geolocation.infrastructure.engines import InferenceEngine
from src.modules.geolocation.infrastructure.recognizers import (
    ObjectClassifier,
    TextRecognizer,
)
from src.modules.geolocation.models import EngineConfig, LocationGuess
from src.utils.images import open_image
from src.utils.logger import get_logger
from src.utils.settings.local import LocalEngineSettings

logger = get_logger(__name__)

TEXT_MATCH_CONFIDENCE = 0.7
LABEL_MATCH_CONFIDENCE = 0.4

# Returned when nothing matches or the dataset is unavailable
DEFAULT_CONFIDENCE = 0.2
DEFAULT_LATITUDE = 48.8566
DEFAULT_LONGITUDE = 2.3522
DEFAULT_REASONING = (
    "No recognized object or text matched the local location dataset; "
    "coordinates are a placeholder."
)

MIN_TEXT_TOKEN_LENGTH = 4


def _is_word_char(char: str) -> bool:
    # Letters plus combining marks, so Indic vowel signs and viramas stay inside words
    return unicodedata.category(char)[0] in ("L", "M")


@dataclass(frozen=True)
class CandidateTerm:
    term: str
    origin: Literal["text", "label"]


def text_tokens(text: str) -> list[str]:
    """Alphabetic tokens longer than 3 characters, lowercased, any script."""
    normalized = unicodedata.normalize("NFC", text or "")
    tokens = []
    for is_word, chars in groupby(normalized, key=_is_word_char):
        if not is_word:
            continue
        token = "".join(chars)
        if len(token) >= MIN_TEXT_TOKEN_LENGTH:
            tokens.append(token.lower())
    return tokens


def build_candidate_terms(
    text: str, labels: list[str], text_first: bool = True
) -> list[CandidateTerm]:
    """Merge OCR tokens and classifier labels, deduplicated in discovery order."""
    from_text = [CandidateTerm(t, "text") for t in text_tokens(text)]
    from_labels = [
        CandidateTerm(label.strip().lower(), "label")
        for label in labels
        if label.strip()
    ]
    ordered = from_text + from_labels if text_first else from_labels + from_text

    seen: set[str] = set()
    candidates: list[CandidateTerm] = []
    for candidate in ordered:
        if candidate.term not in seen:
            seen.add(candidate.term)
            candidates.append(candidate)
    return candidates


def default_guess(labels: list[str] | None = None) -> LocationGuess:
    return LocationGuess(
        latitude=DEFAULT_LATITUDE,
        longitude=DEFAULT_LONGITUDE,
        city="Unknown",
        country="Unknown",
        confidence=DEFAULT_CONFIDENCE,
        reasoning=DEFAULT_REASONING,
        visual_analysis_summary=_summary(labels or []),
    )


def _summary(labels: list[str]) -> str:
    if not labels:
        return ""
    return f"On-device recognition identified: {', '.join(labels)}."


def match_candidates(
    candidates: list[CandidateTerm], dataset: Dataset, labels: list[str] | None = None
) -> LocationGuess:
    """First candidate present in the dataset wins; text matches rank higher."""
    for candidate in candidates:
        entry = dataset.get(candidate.term)
        if entry is None:
            continue

        logger.info("local_match", term=candidate.term, origin=candidate.origin)
        return LocationGuess(
            latitude=entry.lat,
            longitude=entry.lng,
            city=entry.city,
            country=entry.country,
            confidence=(
                TEXT_MATCH_CONFIDENCE
                if candidate.origin == "text"
                else LABEL_MATCH_CONFIDENCE
            ),
            reasoning=(
                f"Local analysis detected '{candidate.term}'. {entry.reasoning}"
            ).strip(),
            visual_analysis_summary=_summary(labels or []),
        )

    logger.info("local_no_match", candidates=len(candidates))
    return default_guess(labels)


class LocalHeuristicEngine(InferenceEngine):
    """Offline fallback. Always yields a valid guess unless a recognizer fails."""

    def __init__(
        self,
        config: EngineConfig,
        classifier: ObjectClassifier,
        text_recognizer: TextRecognizer,
        settings: LocalEngineSettings | None = None,
    ):
        super().__init__(config)
        self.classifier = classifier
        self.text_recognizer = text_recognizer
        self.settings = settings or LocalEngineSettings()

    async def infer(
        self, image: bytes, hints: str = "", preference: str | None = None
    ) -> LocationGuess:
        return await self.analyze_locally(image)

    async def analyze_locally(self, image: bytes) -> LocationGuess:
        picture = open_image(image)
        labels, text = await asyncio.gather(
            self.classifier.classify(picture),
            self.text_recognizer.read_text(picture.copy()),
        )
        candidates = build_candidate_terms(
            text, labels, text_first=self.settings.TEXT_TERMS_FIRST
        )
        logger.info(
            "local_recognition_complete",
            labels=labels,
            text_terms=sum(1 for c in candidates if c.origin == "text"),
        )

        try:
            dataset = await load_dataset(
                self.settings.DATASET_LOCATION, timeout=self.settings.DATASET_TIMEOUT
            )
        except DatasetUnavailable as e:
            logger.warning(f"Local dataset unavailable, using default guess: {e}")
            return default_guess(labels)

        return match_candidates(candidates, dataset, labels)
