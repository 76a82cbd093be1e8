"""Configuration models using Pydantic."""

from pydantic import BaseModel, Field, SecretStr, field_validator

from lifeguard.analysis.normalizer import (
    DEFAULT_REASONING,
    MAX_ACTIONS,
    NO_EMERGENCY_MARKER,
    NormalizationPolicy,
)
from lifeguard.analysis.types import EmergencyType
from lifeguard.llm.gemini import DEFAULT_MODEL
from lifeguard.llm.retry import RetryConfig


class ConfigError(Exception):
    """Configuration error."""

    pass


class GeminiConfig(BaseModel):
    """Configuration for the Gemini inference endpoint.

    Temperature is kept low to minimize variance between calls.
    """

    api_key: SecretStr | None = None
    model: str = DEFAULT_MODEL
    check_model: str = "gemini-2.0-flash-001"
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)


class RetrySettings(BaseModel):
    """Backoff settings for transient capacity errors."""

    enabled: bool = True
    max_attempts: int = Field(default=5, ge=1)
    base_delay_ms: int = Field(default=2000, ge=0)
    jitter_ratio: float = Field(default=0.3, ge=0.0, le=1.0)

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            enabled=self.enabled,
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            jitter_ratio=self.jitter_ratio,
        )


class AnalysisConfig(BaseModel):
    """Normalization policy and media settings.

    ``emergency_types`` is the canonical vocabulary offered to the model and
    used to canonicalize its answer.
    """

    emergency_types: list[str] = Field(
        default_factory=lambda: [t.value for t in EmergencyType]
    )
    no_emergency_marker: str = NO_EMERGENCY_MARKER
    default_reasoning: str = DEFAULT_REASONING
    max_actions: int = Field(default=MAX_ACTIONS, ge=0, le=MAX_ACTIONS)
    image_mime_type: str = "image/jpeg"
    audio_mime_type: str = "audio/webm"

    @field_validator("emergency_types")
    @classmethod
    def _require_types(cls, value: list[str]) -> list[str]:
        cleaned = [v.strip() for v in value if v and v.strip()]
        if not cleaned:
            raise ValueError("emergency_types must not be empty")
        return cleaned

    def to_policy(self) -> NormalizationPolicy:
        return NormalizationPolicy(
            emergency_types=tuple(self.emergency_types),
            no_emergency_marker=self.no_emergency_marker,
            default_reasoning=self.default_reasoning,
            max_actions=self.max_actions,
        )


class ServerConfig(BaseModel):
    """Configuration for HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])


class LifeguardConfig(BaseModel):
    """Root configuration model."""

    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    def resolve_api_key(self) -> str | None:
        """Plain API key, or None when unset."""
        if self.gemini.api_key is None:
            return None
        return self.gemini.api_key.get_secret_value() or None
