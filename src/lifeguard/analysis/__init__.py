"""Emergency analysis: request types, normalization and orchestration."""

from lifeguard.analysis.errors import categorize_error
from lifeguard.analysis.normalizer import NormalizationPolicy, normalize_response
from lifeguard.analysis.service import EmergencyAnalyzer
from lifeguard.analysis.types import (
    AnalysisError,
    AnalysisOutcome,
    AnalysisRequest,
    DangerLevel,
    EmergencyInstruction,
    EmergencyType,
    ErrorKind,
    Language,
)

__all__ = [
    "AnalysisError",
    "AnalysisOutcome",
    "AnalysisRequest",
    "DangerLevel",
    "EmergencyAnalyzer",
    "EmergencyInstruction",
    "EmergencyType",
    "ErrorKind",
    "Language",
    "NormalizationPolicy",
    "categorize_error",
    "normalize_response",
]
