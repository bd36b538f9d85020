"""On-device recognizers for the local engine: YOLO object labels and Tesseract OCR."""

import asyncio
import logging
import time
from typing import Protocol

import pytesseract  # type: ignore
from PIL import Image
from ultralytics import YOLO  # type: ignore

from src.utils.logger import get_logger

logger = get_logger(__name__)

# Global model instance - loaded on first local analysis
_yolo_model: YOLO | None = None
_yolo_weights: str | None = None


class ObjectClassifier(Protocol):
    async def classify(self, image: Image.Image) -> list[str]: ...


class TextRecognizer(Protocol):
    async def read_text(self, image: Image.Image) -> str: ...


def load_yolo_model(weights: str) -> YOLO:
    """Load YOLO weights once per process. Errors propagate to the caller."""
    global _yolo_model, _yolo_weights
    if _yolo_model is None or _yolo_weights != weights:
        logging.getLogger("ultralytics").setLevel(logging.WARNING)

        start_time = time.time()
        _yolo_model = YOLO(weights)
        _yolo_weights = weights
        logger.info(f"YOLO model {weights} loaded in {time.time() - start_time:.3f}s")
    return _yolo_model


class YoloObjectClassifier:
    """COCO object detector; returns distinct labels in detection order."""

    def __init__(self, weights: str = "yolov8n.pt", confidence: float = 0.35):
        self.weights = weights
        self.confidence = confidence

    def _detect(self, image: Image.Image) -> list[str]:
        model = load_yolo_model(self.weights)
        labels: list[str] = []
        for result in model(image, conf=self.confidence, verbose=False):
            for box in result.boxes or []:
                label = model.names[int(box.cls)]
                if label not in labels:
                    labels.append(label)
        return labels

    async def classify(self, image: Image.Image) -> list[str]:
        return await asyncio.to_thread(self._detect, image)


class TesseractTextRecognizer:
    """OCR across several scripts; languages without installed data are dropped."""

    def __init__(self, languages: list[str] | None = None):
        self.languages = languages or ["eng"]
        self._lang: str | None = None

    def _resolve_languages(self) -> str:
        if self._lang is None:
            installed = set(pytesseract.get_languages(config=""))
            usable = [lang for lang in self.languages if lang in installed]
            missing = sorted(set(self.languages) - installed)
            if missing:
                logger.warning(f"Tesseract language data not installed: {missing}")
            self._lang = "+".join(usable or ["eng"])
        return self._lang

    def _read(self, image: Image.Image) -> str:
        return pytesseract.image_to_string(image, lang=self._resolve_languages())

    async def read_text(self, image: Image.Image) -> str:
        return await asyncio.to_thread(self._read, image)
