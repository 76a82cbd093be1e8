"""Emergency analysis request, instruction and outcome types."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from lifeguard.errors import PreconditionError

ErrorCategory = Literal["error", "warning"]


class Language(str, Enum):
    """Supported response languages."""

    ENGLISH = "English"
    ARABIC = "Arabic"
    FRENCH = "French"

    @property
    def prompt_name(self) -> str:
        """Name used when instructing the model."""
        return _PROMPT_NAMES[self]

    @property
    def speech_locale(self) -> str:
        """BCP 47 locale for the speech synthesis collaborator."""
        return _SPEECH_LOCALES[self]

    @classmethod
    def parse(cls, value: str | Language | None) -> Language:
        """Parse a language tag case-insensitively.

        Raises:
            PreconditionError: If the value is not a supported language.
        """
        if isinstance(value, Language):
            return value
        if value is None or not str(value).strip():
            return cls.ENGLISH
        wanted = str(value).strip().lower()
        for language in cls:
            if wanted in (language.value.lower(), language.name.lower()):
                return language
        raise PreconditionError(f"Unsupported language: {value}")


_PROMPT_NAMES = {
    Language.ENGLISH: "English",
    Language.ARABIC: "Arabic (العربية)",
    Language.FRENCH: "French (Français)",
}

_SPEECH_LOCALES = {
    Language.ENGLISH: "en-US",
    Language.ARABIC: "ar-SA",
    Language.FRENCH: "fr-FR",
}


class DangerLevel(str, Enum):
    """Severity tiers, most severe first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Ordering key: higher is more severe."""
        return _DANGER_RANKS[self]


_DANGER_RANKS = {
    DangerLevel.CRITICAL: 3,
    DangerLevel.HIGH: 2,
    DangerLevel.MODERATE: 1,
    DangerLevel.LOW: 0,
}


class EmergencyType(str, Enum):
    """Default canonical situation categories."""

    BLEEDING = "Severe Bleeding"
    FIRE = "Fire or Smoke"
    NONE = "Not an Emergency"


class ErrorKind(str, Enum):
    """Internal failure classification carried alongside the category."""

    PRECONDITION = "precondition"
    CONFIGURATION = "configuration"
    CAPACITY = "capacity"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    RESPONSE_FORMAT = "response_format"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


def _decode_base64(value: str, what: str) -> bytes:
    # Accept data URLs as produced by canvas.toDataURL / FileReader
    if value.startswith("data:") and "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PreconditionError(f"{what} data is not valid base64") from e


@dataclass(slots=True)
class AnalysisRequest:
    """Per-call analysis input."""

    image: bytes
    audio: bytes | None = None
    language: Language = Language.ENGLISH
    image_mime_type: str = "image/jpeg"
    audio_mime_type: str = "audio/webm"

    def __post_init__(self) -> None:
        # Accept plain language tags from callers
        self.language = Language.parse(self.language)

    @property
    def has_audio(self) -> bool:
        return bool(self.audio)

    @classmethod
    def from_base64(
        cls,
        image: str | None,
        audio: str | None = None,
        language: str | Language | None = None,
        **kwargs: Any,
    ) -> AnalysisRequest:
        """Build a request from the inbound base64 payloads.

        Raises:
            PreconditionError: If the image is missing, a payload is not
                valid base64, or the language is unsupported.
        """
        if not image:
            raise PreconditionError("Image data is required")
        image_bytes = _decode_base64(image, "Image")
        audio_bytes = _decode_base64(audio, "Audio") if audio else None
        return cls(
            image=image_bytes,
            audio=audio_bytes or None,
            language=Language.parse(language),
            **kwargs,
        )


@dataclass(frozen=True, slots=True)
class EmergencyInstruction:
    """Normalized guidance for one analyzed frame."""

    type: str
    danger_level: DangerLevel
    actions: tuple[str, ...] = ()
    warning: str = ""
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "dangerLevel": self.danger_level.value,
            "actions": list(self.actions),
            "warning": self.warning,
            "reasoning": self.reasoning,
        }

    def narration_text(self) -> str:
        """Text handed to speech synthesis, one sentence per field."""
        sentences = [
            self.type,
            f"Danger level: {self.danger_level.value}",
            *self.actions,
            self.warning,
            self.reasoning,
        ]
        return ". ".join(s.strip() for s in sentences if s and s.strip())


@dataclass(frozen=True, slots=True)
class AnalysisError:
    """Caller-facing failure description."""

    message: str
    category: ErrorCategory = "error"
    kind: ErrorKind = ErrorKind.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errorType": self.category,
            "kind": self.kind.value,
        }


@dataclass(frozen=True, slots=True)
class AnalysisOutcome:
    """Success with an instruction, or failure with a categorized error."""

    success: bool
    data: EmergencyInstruction | None = None
    error: AnalysisError | None = field(default=None)

    @classmethod
    def ok(cls, data: EmergencyInstruction) -> AnalysisOutcome:
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        category: ErrorCategory = "error",
        kind: ErrorKind = ErrorKind.UNKNOWN,
    ) -> AnalysisOutcome:
        return cls(
            success=False,
            error=AnalysisError(message=message, category=category, kind=kind),
        )

    @classmethod
    def from_error(cls, error: AnalysisError) -> AnalysisOutcome:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        if self.success and self.data is not None:
            return {"success": True, "data": self.data.to_dict()}
        assert self.error is not None
        return {"success": False, "error": self.error.to_dict()}
