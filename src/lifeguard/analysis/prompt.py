"""Prompt construction for emergency analysis."""

import json
from collections.abc import Sequence

from lifeguard.analysis.types import DangerLevel, Language

RESPONSE_EXAMPLE = {
    "type": "Severe Bleeding",
    "dangerLevel": "CRITICAL",
    "actions": ["action steps here"],
    "warning": "warning message",
    "reasoning": "brief explanation of analysis",
}

CONNECTION_CHECK_PROMPT = "Explain how AI works in a few words"

RESPONSE_MIME_TYPE = "application/json"

# Structured output schema; the normalizer still validates every field
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "type": {"type": "STRING"},
        "dangerLevel": {"type": "STRING"},
        "actions": {"type": "ARRAY", "items": {"type": "STRING"}},
        "warning": {"type": "STRING"},
        "reasoning": {"type": "STRING"},
    },
    "required": ["type", "dangerLevel", "actions"],
}


def build_analysis_prompt(
    language: Language,
    emergency_types: Sequence[str],
    *,
    has_audio: bool = False,
    max_actions: int = 3,
) -> str:
    """Build the instruction text sent ahead of the inline media parts."""
    lang_name = language.prompt_name
    types_list = ", ".join(f'"{t}"' for t in emergency_types)
    levels_list = ", ".join(f'"{level.value}"' for level in DangerLevel)
    media = "image and audio" if has_audio else "image"
    audio_line = (
        "- Audio: any sounds, voices or audio cues\n" if has_audio else ""
    )

    return (
        "You are an emergency response AI assistant. Your mission is to save lives "
        f"and minimize harm. Analyze the provided {media} to determine if it depicts "
        "an emergency situation.\n\n"
        "ANALYZE:\n"
        "- Image: visual scene analysis\n"
        f"{audio_line}\n"
        "LANGUAGE INSTRUCTION:\n"
        f"Write the values of \"actions\", \"warning\" and \"reasoning\" in {lang_name}.\n"
        "Keep every JSON key in English exactly as shown below.\n\n"
        "RESPOND WITH ONLY THIS EXACT JSON FORMAT:\n"
        f"{json.dumps(RESPONSE_EXAMPLE, indent=2)}\n\n"
        "RULES:\n"
        f"- \"type\": exactly one of {types_list} (always in English)\n"
        f"- \"dangerLevel\": exactly one of {levels_list} (always in English)\n"
        f"- \"actions\": 1-{max_actions} short, commanding life-saving steps. "
        "If it is a real emergency, always include calling emergency services.\n"
        "- \"warning\": urgent warning, or an empty string \"\"\n"
        "- \"reasoning\": one short sentence explaining the assessment\n"
        "- Do not describe the scene beyond what the reasoning needs.\n\n"
        "IMPORTANT: Return ONLY the JSON with no markdown and no additional text."
    )
