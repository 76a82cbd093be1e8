"""Retry utilities for inference endpoint calls."""

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from lifeguard.errors import AnalysisCancelledError, ServiceOverloadedError

logger = logging.getLogger(__name__)

# Pattern to match transient capacity errors
RETRYABLE_PATTERN = re.compile(
    r"\b429\b|\b503\b|"
    r"resource.?exhausted|quota|overloaded|"
    r"service.?unavailable|rate.?limit|too many requests",
    re.IGNORECASE,
)

RETRYABLE_STATUS_CODES = (429, 503)
RETRYABLE_STATUS_NAMES = ("RESOURCE_EXHAUSTED", "UNAVAILABLE")

# gRPC RESOURCE_EXHAUSTED
GRPC_RESOURCE_EXHAUSTED = 8

OVERLOADED_MESSAGE = (
    "The AI service is currently overloaded. Please try again in a few moments."
)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    enabled: bool = True
    max_attempts: int = 5
    base_delay_ms: int = 2000  # 2 seconds
    jitter_ratio: float = 0.3  # up to 30% added on top


def is_retryable_error(error: Exception) -> bool:
    """Check if an error is a transient capacity error.

    Retryable errors include:
    - Rate limit / quota errors (429, RESOURCE_EXHAUSTED)
    - Overloaded / unavailable errors (503, UNAVAILABLE)

    Authentication, malformed request and connectivity errors are not
    retried.

    Args:
        error: The exception to check.

    Returns:
        True if the error is retryable.
    """
    for attr in ("code", "status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, bool):
            continue
        if isinstance(value, int) and value in RETRYABLE_STATUS_CODES:
            return True
        if isinstance(value, str) and value.upper() in RETRYABLE_STATUS_NAMES:
            return True

    if getattr(error, "code", None) == GRPC_RESOURCE_EXHAUSTED:
        return True

    # Check error message
    if RETRYABLE_PATTERN.search(str(error)):
        return True

    message = getattr(error, "message", None)
    if isinstance(message, str) and RETRYABLE_PATTERN.search(message):
        return True

    return False


def backoff_delay_ms(attempt: int, config: RetryConfig) -> float:
    """Delay before the attempt following ``attempt`` (0-indexed).

    Exponential base delay plus uniform jitter of up to ``jitter_ratio``
    of that delay, added on top.
    """
    exponential = config.base_delay_ms * (2**attempt)
    jitter = random.random() * config.jitter_ratio * exponential
    return exponential + jitter


async def _wait_for_backoff(delay_s: float, cancel: asyncio.Event | None) -> None:
    """Sleep for the backoff delay, waking early if cancelled."""
    if cancel is None:
        await asyncio.sleep(delay_s)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay_s)
    except TimeoutError:
        return
    raise AnalysisCancelledError("Analysis cancelled during retry backoff")


async def _run_attempt[T](
    func: Callable[[], Awaitable[T]], cancel: asyncio.Event | None
) -> T:
    """Run one attempt, abandoning it if ``cancel`` is set first."""
    if cancel is None:
        return await func()

    call = asyncio.ensure_future(func())
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {call, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        waiter.cancel()
        if not call.done():
            call.cancel()

    if call in done:
        return call.result()
    raise AnalysisCancelledError("Analysis cancelled during request")


async def with_retry[T](
    func: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    operation_name: str = "API call",
    cancel: asyncio.Event | None = None,
) -> T:
    """Execute an async function with exponential backoff retry.

    Attempts are strictly sequential. Non-retryable errors propagate
    immediately; once the attempt budget is spent on transient errors a
    single ServiceOverloadedError is raised instead of the last raw error.

    Args:
        func: Async function to execute.
        config: Retry configuration.
        operation_name: Name for logging.
        cancel: Optional event; when set, the in-flight attempt is abandoned
            and no further attempt is issued.

    Returns:
        Result of the function.

    Raises:
        ServiceOverloadedError: If every attempt failed with a transient error.
        AnalysisCancelledError: If ``cancel`` was set before or during an
            attempt or a backoff wait.
    """
    config = config or RetryConfig()

    if not config.enabled:
        return await _run_attempt(func, cancel)

    max_attempts = max(config.max_attempts, 1)

    for attempt in range(max_attempts):
        if cancel is not None and cancel.is_set():
            raise AnalysisCancelledError("Analysis cancelled before attempt")

        try:
            result = await _run_attempt(func, cancel)
        except (AnalysisCancelledError, ServiceOverloadedError):
            raise
        except Exception as e:
            # Don't retry non-retryable errors
            if not is_retryable_error(e):
                logger.debug(
                    "retry_skipped_permanent_error",
                    extra={
                        "operation": operation_name,
                        "attempt": attempt + 1,
                        "error.type": type(e).__name__,
                    },
                )
                raise

            # Don't wait if we've exhausted attempts
            if attempt >= max_attempts - 1:
                logger.warning(
                    "retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": max_attempts,
                        "error.message": str(e),
                        "error.type": type(e).__name__,
                    },
                )
                raise ServiceOverloadedError(OVERLOADED_MESSAGE) from e

            delay_s = backoff_delay_ms(attempt, config) / 1000

            logger.info(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay_s": round(delay_s, 1),
                    "error.message": str(e),
                    "error.type": type(e).__name__,
                },
            )

            await _wait_for_backoff(delay_s, cancel)
        else:
            if attempt > 0:
                logger.info(
                    "retry_succeeded",
                    extra={"operation": operation_name, "attempt": attempt + 1},
                )
            return result

    # Should never reach here, but satisfy type checker
    raise ServiceOverloadedError(OVERLOADED_MESSAGE)
