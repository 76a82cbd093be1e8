"""Emergency analysis orchestration."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from lifeguard.analysis.errors import categorize_error
from lifeguard.analysis.normalizer import NormalizationPolicy, normalize_response
from lifeguard.analysis.prompt import (
    CONNECTION_CHECK_PROMPT,
    RESPONSE_MIME_TYPE,
    RESPONSE_SCHEMA,
    build_analysis_prompt,
)
from lifeguard.analysis.types import (
    AnalysisOutcome,
    AnalysisRequest,
    ErrorKind,
)
from lifeguard.llm.retry import RetryConfig, with_retry
from lifeguard.llm.types import GenerateRequest, InlineDataPart, TextPart

if TYPE_CHECKING:
    from lifeguard.config import LifeguardConfig
    from lifeguard.llm.base import InferenceClient

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.1


class EmergencyAnalyzer:
    """Runs one frame through the endpoint and the normalizer.

    Stateless between calls: each ``analyze`` owns its retry counter and
    backoff timer, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        client: InferenceClient,
        *,
        retry: RetryConfig | None = None,
        policy: NormalizationPolicy | None = None,
        model: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self._client = client
        self._retry = retry or RetryConfig()
        self._policy = policy or NormalizationPolicy()
        self._model = model
        self._temperature = temperature

    @classmethod
    def from_config(
        cls, config: LifeguardConfig, client: InferenceClient | None = None
    ) -> EmergencyAnalyzer:
        """Build an analyzer, creating a Gemini client when none is given."""
        if client is None:
            from lifeguard.llm.gemini import GeminiClient

            client = GeminiClient(
                api_key=config.resolve_api_key(), model=config.gemini.model
            )
        return cls(
            client,
            retry=config.retry.to_retry_config(),
            policy=config.analysis.to_policy(),
            model=config.gemini.model,
            temperature=config.gemini.temperature,
        )

    @property
    def client(self) -> InferenceClient:
        return self._client

    def build_request(self, request: AnalysisRequest) -> GenerateRequest:
        """Assemble prompt text and inline media for the endpoint."""
        prompt = build_analysis_prompt(
            request.language,
            self._policy.emergency_types,
            has_audio=request.has_audio,
            max_actions=self._policy.max_actions,
        )
        parts: list[TextPart | InlineDataPart] = [
            TextPart(prompt),
            InlineDataPart(request.image, request.image_mime_type),
        ]
        if request.audio:
            parts.append(InlineDataPart(request.audio, request.audio_mime_type))
        return GenerateRequest(
            parts=parts,
            model=self._model,
            temperature=self._temperature,
            response_mime_type=RESPONSE_MIME_TYPE,
            response_schema=RESPONSE_SCHEMA,
        )

    async def analyze(
        self,
        request: AnalysisRequest,
        cancel: asyncio.Event | None = None,
    ) -> AnalysisOutcome:
        """Analyze a frame and return an outcome; never raises.

        Args:
            request: Image, optional audio and target language.
            cancel: Optional event the caller sets to abandon the call.

        Returns:
            Success with the normalized instruction or a categorized failure.
        """
        if not request.image:
            return AnalysisOutcome.fail(
                "Image data is required", "error", ErrorKind.PRECONDITION
            )
        if not self._client.configured:
            return AnalysisOutcome.fail(
                "API key not configured", "error", ErrorKind.CONFIGURATION
            )

        started = time.monotonic()

        try:
            generate_request = self.build_request(request)
            model_name = generate_request.model or self._client.default_model
            logger.debug(
                "analysis_started",
                extra={
                    "model": model_name,
                    "language": request.language.value,
                    "image.bytes": len(request.image),
                    "audio.bytes": len(request.audio or b""),
                },
            )
            result = await with_retry(
                lambda: self._client.generate(generate_request),
                config=self._retry,
                operation_name=f"{self._client.name} {model_name}",
                cancel=cancel,
            )
        except Exception as e:
            error = categorize_error(e)
            if error.kind is ErrorKind.UNKNOWN:
                logger.exception("Analysis failed with uncategorized error")
            else:
                logger.warning(
                    "analysis_failed",
                    extra={
                        "error.kind": error.kind.value,
                        "error.type": type(e).__name__,
                        "error.message": str(e),
                    },
                )
            return AnalysisOutcome.from_error(error)

        outcome = normalize_response(result.text, self._policy)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        if outcome.success and outcome.data is not None:
            logger.info(
                "analysis_complete",
                extra={
                    "type": outcome.data.type,
                    "danger_level": outcome.data.danger_level.value,
                    "duration_ms": elapsed_ms,
                },
            )
        return outcome

    async def check_connection(self, model: str | None = None) -> str:
        """Run a short text-only prompt against the endpoint.

        Raises whatever the client raises; callers map it themselves.
        """
        result = await self._client.generate(
            GenerateRequest(parts=[TextPart(CONNECTION_CHECK_PROMPT)], model=model)
        )
        return result.text
