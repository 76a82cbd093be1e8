"""Inference endpoint abstraction layer."""

from lifeguard.llm.base import InferenceClient
from lifeguard.llm.gemini import GeminiClient
from lifeguard.llm.retry import (
    RetryConfig,
    backoff_delay_ms,
    is_retryable_error,
    with_retry,
)
from lifeguard.llm.types import (
    ContentPart,
    GenerateRequest,
    GenerateResult,
    InlineDataPart,
    TextPart,
)

__all__ = [
    # Base
    "InferenceClient",
    # Clients
    "GeminiClient",
    # Retry
    "RetryConfig",
    "backoff_delay_ms",
    "is_retryable_error",
    "with_retry",
    # Types
    "ContentPart",
    "GenerateRequest",
    "GenerateResult",
    "InlineDataPart",
    "TextPart",
]
