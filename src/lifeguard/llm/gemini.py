"""Google Gemini inference client."""

import logging
from typing import Any

from google import genai
from google.genai import types

from lifeguard.llm.base import InferenceClient
from lifeguard.llm.types import (
    ContentPart,
    GenerateRequest,
    GenerateResult,
    InlineDataPart,
    TextPart,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"


class GeminiClient(InferenceClient):
    """Gemini provider using the google-genai async client."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self._api_key = api_key
        self._model = model or DEFAULT_MODEL
        self._client: genai.Client | None = None

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return self._model

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _convert_parts(self, parts: list[ContentPart]) -> list[types.Part]:
        result = []
        for part in parts:
            if isinstance(part, TextPart):
                result.append(types.Part.from_text(text=part.text))
            elif isinstance(part, InlineDataPart):
                result.append(
                    types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
                )
        return result

    def _build_config(
        self, request: GenerateRequest
    ) -> types.GenerateContentConfig | None:
        if (
            request.temperature is None
            and request.response_mime_type is None
            and request.response_schema is None
        ):
            return None
        return types.GenerateContentConfig(
            temperature=request.temperature,
            response_mime_type=request.response_mime_type,
            response_schema=request.response_schema,
        )

    def _parse_response(
        self, response: types.GenerateContentResponse, model: str
    ) -> GenerateResult:
        raw: dict[str, Any] = {}
        try:
            raw = response.model_dump(mode="json", exclude_none=True)
        except (TypeError, ValueError):
            logger.debug("Could not serialize Gemini response for raw payload")

        return GenerateResult(
            text=response.text or "",
            model=response.model_version or model,
            raw=raw,
        )

    async def generate(self, request: GenerateRequest) -> GenerateResult:
        model = request.model or self.default_model
        contents = [
            types.Content(role="user", parts=self._convert_parts(request.parts))
        ]

        logger.debug(
            f"Calling {model} ({len(request.parts)} parts, "
            f"{request.inline_bytes} inline bytes)"
        )
        response = await self._get_client().aio.models.generate_content(
            model=model,
            contents=contents,
            config=self._build_config(request),
        )
        result = self._parse_response(response, model)
        logger.debug(f"Gemini call complete: {len(result.text)} chars")
        return result
