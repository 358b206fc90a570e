"""Retry decisions and the caller-owned retry loop for outbound calls.

``RetryPolicy.decide`` is a pure function of (category, attempt, hint);
``call_with_retry`` owns the loop and the only suspension point, an
``asyncio.sleep`` that task cancellation aborts.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import TypeVar

from maxgate.errors.classifier import classify_error
from maxgate.errors.formatter import build_error
from maxgate.errors.models import ClassifiedError, ErrorCategory, RetryDecision

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
_BASE_DELAY_MS = 1000
_BACKOFF_CAP_MS = 30_000
_HINT_CAP_MS = 3_600_000

RETRYABLE_CATEGORIES = frozenset({
    ErrorCategory.RATE_LIMIT,
    ErrorCategory.NETWORK,
    ErrorCategory.UNKNOWN,
})


class RetryPolicy:
    """Category-driven backoff: hint first, then capped exponential."""

    def __init__(
        self,
        base_delay_ms: int = _BASE_DELAY_MS,
        max_delay_ms: int = _BACKOFF_CAP_MS,
        max_hint_ms: int = _HINT_CAP_MS,
    ) -> None:
        self._base_delay_ms = base_delay_ms
        self._max_delay_ms = max_delay_ms
        self._max_hint_ms = max_hint_ms

    def delay_for(self, classified: ClassifiedError, attempt: int) -> int:
        hint = classified.retry_after
        if hint is not None and math.isfinite(hint) and hint > 0:
            # Server hints may exceed the backoff cap, but not the hint cap.
            return int(min(hint * 1000, self._max_hint_ms))
        return min(self._base_delay_ms * 2 ** attempt, self._max_delay_ms)

    def decide(self, classified: ClassifiedError, attempt: int, max_attempts: int) -> RetryDecision:
        """Decide whether the failed attempt should be retried.

        Args:
            classified: The classified failure.
            attempt: 0-based index of the attempt that just failed.
            max_attempts: Retry budget; retries continue while attempt < max_attempts.

        Returns:
            RetryDecision with the delay to wait before the next attempt.
        """
        attempt = max(attempt, 0)
        if classified.category not in RETRYABLE_CATEGORIES or attempt >= max_attempts:
            return RetryDecision(should_retry=False, delay_ms=0, attempts_remaining=0)
        return RetryDecision(
            should_retry=True,
            delay_ms=self.delay_for(classified, attempt),
            attempts_remaining=max(max_attempts - attempt - 1, 0),
        )


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    operation_name: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[object]] | None = None,
) -> T:
    """Await ``operation`` until it succeeds or the policy gives up.

    Raises:
        MaxApiError: remote failures, after retries are exhausted or refused.
        MaxOperationError: validation failures, on the first attempt.
    """
    policy = policy or RetryPolicy()
    sleep = sleep or asyncio.sleep
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            classified = classify_error(exc)
            decision = policy.decide(classified, attempt, max_attempts)
            if not decision.should_retry:
                exhausted = classified.category in RETRYABLE_CATEGORIES
                logger.warning(
                    "%s failed with %s error (attempt %d), giving up",
                    operation_name, classified.category.value, attempt + 1,
                )
                raise build_error(
                    classified,
                    operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    exhausted=exhausted,
                ) from exc
            logger.warning(
                "%s failed with %s error, retrying in %d ms (attempt %d/%d)",
                operation_name, classified.category.value, decision.delay_ms,
                attempt + 1, max_attempts,
            )
        await sleep(decision.delay_ms / 1000)
        attempt += 1
