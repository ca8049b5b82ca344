"""
Bounded retry for carrier calls.

Every attempt ends in a tagged outcome:
- Success: the operation returned a value
- Retryable: wait ``delay_seconds`` and try again
- Fatal: stop and raise ``error``

The classifier decides Retryable vs Fatal; the loop never rethrows to give up.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from carrier_gateway.error_handler import (
    GatewayError,
    InvalidCredentials,
    RateLimited,
    ServiceUnavailable,
)

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({502, 503, 504})
BACKOFF_STEP_SECONDS = 1.0


@dataclass(frozen=True)
class Success:
    value: Any


@dataclass(frozen=True)
class Retryable:
    delay_seconds: float
    error: Exception


@dataclass(frozen=True)
class Fatal:
    error: Exception


_DELTA_SECONDS_RE = re.compile(r"[0-9]+")

Outcome = Union[Success, Retryable, Fatal]
Classifier = Callable[[Exception, int, bool], Union[Retryable, Fatal]]


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a delta-seconds ``Retry-After`` header, or None for anything else."""
    if value is None:
        return None
    text = str(value).strip()
    if not _DELTA_SECONDS_RE.fullmatch(text):
        return None
    return float(text)


def classify_http_failure(exc: Exception, attempt: int, is_last_attempt: bool) -> Union[Retryable, Fatal]:
    if isinstance(exc, GatewayError):
        return Fatal(exc)

    if not isinstance(exc, httpx.HTTPStatusError):
        return Fatal(exc)

    status = exc.response.status_code

    if status == 401:
        return Fatal(InvalidCredentials())

    if status == 429:
        if is_last_attempt:
            return Fatal(RateLimited())
        delay = parse_retry_after(exc.response.headers.get("retry-after"))
        if delay is None:
            delay = attempt * BACKOFF_STEP_SECONDS
        return Retryable(delay, exc)

    if status in TRANSIENT_STATUSES:
        if is_last_attempt:
            return Fatal(ServiceUnavailable())
        return Retryable(attempt * BACKOFF_STEP_SECONDS, exc)

    return Fatal(exc)


class RetryPolicy:
    """
    Run an async operation up to ``max_attempts`` times.

    Rate-limited attempts count against the same cap as transient failures.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        classify: Classifier = classify_http_failure,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.classify = classify
        self.sleep = sleep

    async def attempt(self, operation: Callable[[], Awaitable[Any]], attempt: int, max_attempts: int) -> Outcome:
        try:
            return Success(await operation())
        except Exception as exc:
            return self.classify(exc, attempt, attempt >= max_attempts)

    async def execute(self, operation: Callable[[], Awaitable[Any]], max_attempts: Optional[int] = None) -> Any:
        limit = max_attempts or self.max_attempts
        for attempt in range(1, limit + 1):
            logger.info("Attempt %d of %d...", attempt, limit)
            outcome = await self.attempt(operation, attempt, limit)

            if isinstance(outcome, Success):
                return outcome.value

            if isinstance(outcome, Fatal):
                logger.error("Attempt %d failed, not retrying: %s", attempt, outcome.error)
                raise outcome.error

            logger.warning(
                "Attempt %d failed (%s). Retrying after %.0fms.",
                attempt,
                outcome.error,
                outcome.delay_seconds * 1000,
            )
            await self.sleep(outcome.delay_seconds)

        # Only reachable when a custom classifier returns Retryable on the last attempt.
        raise ServiceUnavailable()
