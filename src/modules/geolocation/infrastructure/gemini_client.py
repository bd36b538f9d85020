"""Gemini multimodal models as remote inference engines."""

import json
from typing import Any

from google import genai
from google.genai import types

from src.modules.geolocation.errors import EngineInvalidResponse
from src.modules.geolocation.infrastructure.engines import (
    GUESS_RESPONSE_FIELDS,
    RemoteInferenceEngine,
)
from src.modules.geolocation.models import EngineConfig

# Schema for the expected JSON response; keeps the model output predictable
_NUMBER_FIELDS = {"lat", "lng", "confidence"}

GEMINI_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        name: types.Schema(
            type=types.Type.NUMBER if name in _NUMBER_FIELDS else types.Type.STRING
        )
        for name in GUESS_RESPONSE_FIELDS
    },
    required=list(GUESS_RESPONSE_FIELDS),
)

SYSTEM_PROMPT = (
    "You are a geographic analyst. Identify specific, non-generic details in "
    "the image (street signs, shop names, architecture, road markings, "
    "vegetation, terrain) and use them to estimate where the photo was taken."
)


class GeminiEngine(RemoteInferenceEngine):
    """One Gemini model. Several instances share the same request code."""

    def __init__(
        self,
        config: EngineConfig,
        api_key: str,
        timeout_seconds: int = 60,
        client: genai.Client | None = None,
    ):
        super().__init__(config)
        if not config.model_name:
            raise ValueError(f"Engine {config.id.value} has no model name")
        self.model_name = config.model_name
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client = client

    def _get_client(self) -> genai.Client:
        """Get or create the Gemini client."""
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=self.timeout_seconds * 1000),
            )
        return self._client

    async def _request(self, image: bytes, prompt: str) -> Any:
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=self.model_name,
            contents=[
                types.Part.from_bytes(data=image, mime_type="image/jpeg"),
                prompt,
            ],
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_PROMPT,
                response_mime_type="application/json",
                response_schema=GEMINI_RESPONSE_SCHEMA,
            ),
        )

        text = response.text
        if not text:
            raise EngineInvalidResponse(self.name, "empty response")
        try:
            return json.loads(text.strip())
        except json.JSONDecodeError as e:
            raise EngineInvalidResponse(self.name, f"response is not JSON: {e}") from e
