"""Map failures to caller-facing messages and categories.

Matching is done on the lower-cased failure text and is internal to the
core; callers only see the resulting message, category and kind.
"""

import re

from lifeguard.analysis.types import AnalysisError, ErrorKind
from lifeguard.errors import (
    AnalysisCancelledError,
    PreconditionError,
    ResponseFormatError,
    ServiceOverloadedError,
)
from lifeguard.llm.retry import OVERLOADED_MESSAGE

NETWORK_MESSAGE = "Network error - check your internet connection"
AUTH_MESSAGE = "API authentication failed - check configuration"
CANCELLED_MESSAGE = "Analysis cancelled"
FALLBACK_MESSAGE = "Analysis failed"

# Ordered: first match wins
_RULES: list[tuple[re.Pattern[str], ErrorKind]] = [
    (
        re.compile(
            r"overloaded|quota|resource.?exhausted|\b429\b|\b503\b|"
            r"rate.?limit|too many requests|unavailable"
        ),
        ErrorKind.CAPACITY,
    ),
    (
        re.compile(
            r"enotfound|err_network|failed to fetch|network|timeout|timed out|"
            r"connection|name or service not known|name resolution"
        ),
        ErrorKind.NETWORK,
    ),
    (
        re.compile(
            r"\b401\b|\b403\b|unauthenticated|unauthorized|permission.?denied|"
            r"api key not valid|invalid api key"
        ),
        ErrorKind.AUTHENTICATION,
    ),
    (
        re.compile(r"invalid response|json|parse|missing"),
        ErrorKind.RESPONSE_FORMAT,
    ),
]


def categorize_message(text: str) -> AnalysisError:
    """Categorize a raw failure message."""
    lowered = text.lower()
    for pattern, kind in _RULES:
        if not pattern.search(lowered):
            continue
        if kind is ErrorKind.CAPACITY:
            return AnalysisError(OVERLOADED_MESSAGE, "warning", kind)
        if kind is ErrorKind.NETWORK:
            return AnalysisError(NETWORK_MESSAGE, "error", kind)
        if kind is ErrorKind.AUTHENTICATION:
            return AnalysisError(AUTH_MESSAGE, "error", kind)
        return AnalysisError(text, "error", kind)
    return AnalysisError(text or FALLBACK_MESSAGE, "error", ErrorKind.UNKNOWN)


def categorize_error(error: BaseException | str) -> AnalysisError:
    """Categorize an exception raised anywhere in the analysis pipeline."""
    if isinstance(error, str):
        return categorize_message(error)
    if isinstance(error, AnalysisCancelledError):
        return AnalysisError(CANCELLED_MESSAGE, "warning", ErrorKind.CANCELLED)
    if isinstance(error, ServiceOverloadedError):
        return AnalysisError(OVERLOADED_MESSAGE, "warning", ErrorKind.CAPACITY)
    if isinstance(error, PreconditionError):
        return AnalysisError(str(error), "error", ErrorKind.PRECONDITION)
    if isinstance(error, ResponseFormatError):
        return AnalysisError(str(error), "error", ErrorKind.RESPONSE_FORMAT)
    if isinstance(error, TimeoutError) and not str(error):
        return AnalysisError(NETWORK_MESSAGE, "error", ErrorKind.NETWORK)
    return categorize_message(str(error))
