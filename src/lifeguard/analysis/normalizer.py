"""Turn raw model output into a validated emergency instruction.

The model is asked for strict JSON but routinely wraps it in markdown fences
or prose, omits optional fields, or returns off-vocabulary danger levels.
``normalize_response`` never raises: every input resolves to an
``AnalysisOutcome``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from lifeguard.analysis.errors import categorize_error
from lifeguard.analysis.types import (
    AnalysisOutcome,
    DangerLevel,
    EmergencyInstruction,
    EmergencyType,
)
from lifeguard.errors import ResponseFormatError

logger = logging.getLogger(__name__)

DEFAULT_REASONING = "No specific reasoning provided."
NO_EMERGENCY_MARKER = "not an emergency"
MAX_ACTIONS = 3

_FENCE_PATTERN = re.compile(r"```[A-Za-z]*")


@dataclass(frozen=True)
class NormalizationPolicy:
    """Policy applied on top of the model's answer."""

    emergency_types: tuple[str, ...] = field(
        default_factory=lambda: tuple(t.value for t in EmergencyType)
    )
    no_emergency_marker: str = NO_EMERGENCY_MARKER
    default_reasoning: str = DEFAULT_REASONING
    fallback_level: DangerLevel = DangerLevel.MODERATE
    max_actions: int = MAX_ACTIONS

    def canonical_type(self, value: str) -> str:
        """Canonical spelling for a known type, else the value unchanged."""
        lowered = value.lower()
        for known in self.emergency_types:
            if known.lower() == lowered:
                return known
        return value

    def is_no_emergency(self, value: str) -> bool:
        return self.no_emergency_marker.lower() in value.lower()


def strip_code_fences(text: str) -> str:
    """Remove markdown fence markers (```json, ```) anywhere in the text."""
    return _FENCE_PATTERN.sub("", text).strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the response text into a JSON object.

    Tries the fence-stripped text directly, then the greedy substring from
    the first ``{`` to the last ``}``.

    Raises:
        ResponseFormatError: If no JSON object can be recovered.
    """
    if not text or not text.strip():
        raise ResponseFormatError("Invalid response format: empty response")

    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ResponseFormatError(
                "Invalid response format: no JSON object found"
            ) from None
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise ResponseFormatError(
                "Invalid response format: malformed JSON object"
            ) from e

    if not isinstance(parsed, dict):
        raise ResponseFormatError("Invalid response format: expected a JSON object")
    return parsed


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _validate(payload: dict[str, Any]) -> None:
    if not _text(payload.get("type")).strip():
        raise ResponseFormatError("Invalid response format: missing 'type' field")
    if not _text(payload.get("dangerLevel")).strip():
        raise ResponseFormatError(
            "Invalid response format: missing 'dangerLevel' field"
        )
    if "actions" not in payload:
        raise ResponseFormatError("Invalid response format: missing 'actions' field")
    if not isinstance(payload["actions"], list):
        raise ResponseFormatError("Invalid response format: 'actions' must be an array")


def coerce_danger_level(value: str, fallback: DangerLevel) -> DangerLevel:
    """Upper-case and match against the four tiers, else ``fallback``."""
    try:
        return DangerLevel(value.strip().upper())
    except ValueError:
        return fallback


def build_instruction(
    payload: dict[str, Any], policy: NormalizationPolicy
) -> EmergencyInstruction:
    """Validate a parsed payload and apply the normalization policy.

    Raises:
        ResponseFormatError: If a required field is missing or mistyped.
    """
    _validate(payload)

    emergency_type = policy.canonical_type(_text(payload["type"]).strip())
    raw_level = _text(payload["dangerLevel"])

    if policy.is_no_emergency(emergency_type):
        danger_level = DangerLevel.LOW
    else:
        danger_level = coerce_danger_level(raw_level, policy.fallback_level)
        if danger_level.value != raw_level.strip().upper():
            logger.info(
                "danger_level_coerced",
                extra={"raw_level": raw_level[:40], "level": danger_level.value},
            )

    actions = tuple(
        _text(action) for action in payload["actions"] if action is not None
    )[: policy.max_actions]

    reasoning = _text(payload.get("reasoning")).strip() or policy.default_reasoning

    return EmergencyInstruction(
        type=emergency_type,
        danger_level=danger_level,
        actions=actions,
        warning=_text(payload.get("warning")),
        reasoning=reasoning,
    )


def normalize_response(
    raw_text: str | None, policy: NormalizationPolicy | None = None
) -> AnalysisOutcome:
    """Normalize raw endpoint text into an outcome.

    A payload that already satisfies every rule comes back field for field,
    with ``dangerLevel`` upper-cased. Beyond that the output may differ from
    the input in these ways: a ``type`` equal to a known type ignoring case
    takes its canonical spelling, ``type`` and ``reasoning`` are trimmed,
    and ``actions`` are cut to ``policy.max_actions``.

    Args:
        raw_text: Response text exactly as received.
        policy: Normalization policy; defaults to the built-in policy.

    Returns:
        Success with the instruction, or a categorized failure.
    """
    policy = policy or NormalizationPolicy()
    try:
        payload = extract_json_object(raw_text or "")
        instruction = build_instruction(payload, policy)
    except ResponseFormatError as e:
        logger.warning(
            "response_invalid",
            extra={
                "error.message": str(e),
                "response.length": len(raw_text or ""),
            },
        )
        logger.debug(f"Rejected response prefix: {(raw_text or '')[:200]!r}")
        return AnalysisOutcome.from_error(categorize_error(e))

    return AnalysisOutcome.ok(instruction)
