"""Inference request and response types."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TextPart:
    """Text instruction part."""

    text: str


@dataclass
class InlineDataPart:
    """Binary payload sent inline with its MIME type."""

    data: bytes
    mime_type: str


ContentPart = TextPart | InlineDataPart


@dataclass
class GenerateRequest:
    """A single multimodal generation request."""

    parts: list[ContentPart]
    model: str | None = None
    temperature: float | None = None
    response_mime_type: str | None = None
    response_schema: dict[str, Any] | None = None

    @property
    def inline_bytes(self) -> int:
        """Total size of inline binary parts."""
        return sum(len(p.data) for p in self.parts if isinstance(p, InlineDataPart))


@dataclass
class GenerateResult:
    """Raw result returned by the inference endpoint."""

    text: str
    model: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)
