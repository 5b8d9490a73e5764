# src/remote/retry.py — v2
"""Per-operation retry policy with attempt-indexed linear backoff.

Failures are values: the invoker returns either a result or a
ClassifiedError, and this loop decides whether to call it again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ofrenda.core.errors import ClassifiedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for a specific remote operation."""

    base_delay_s: float = 1.0
    max_retries: int = 3
    multiplier: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows ``attempt`` (1-based)."""
        return self.base_delay_s * attempt * self.multiplier


# Generation is heavier server-side, so it backs off twice as slowly.
DEFAULT_RETRY_POLICIES: dict[str, RetryPolicy] = {
    "upload_photo": RetryPolicy(base_delay_s=1.0, max_retries=3, multiplier=1.0),
    "generate_altar": RetryPolicy(base_delay_s=1.0, max_retries=3, multiplier=2.0),
}


def policies_from_settings(settings) -> dict[str, RetryPolicy]:
    """Build the per-operation policies from Settings."""
    return {
        "upload_photo": RetryPolicy(
            base_delay_s=settings.retry_base_delay_s,
            max_retries=settings.retry_max_retries,
            multiplier=settings.retry_upload_multiplier,
        ),
        "generate_altar": RetryPolicy(
            base_delay_s=settings.retry_base_delay_s,
            max_retries=settings.retry_max_retries,
            multiplier=settings.retry_generate_multiplier,
        ),
    }


async def with_retry(
    invoke: Callable[[], Awaitable[T | ClassifiedError]],
    operation: str = "unknown",
    policy: RetryPolicy | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> T | ClassifiedError:
    """Call ``invoke`` until it succeeds, fails non-retryably, or retries run out.

    Returns:
        The successful result, or the last ClassifiedError annotated with
        the total attempt count. Code and retryable flag are preserved.
    """
    policy = policy or DEFAULT_RETRY_POLICIES.get(operation, RetryPolicy())
    attempts = 0

    while True:
        outcome = await invoke()
        attempts += 1

        if not isinstance(outcome, ClassifiedError):
            if attempts > 1:
                logger.info("'%s' succeeded on attempt %d", operation, attempts)
            return outcome

        if not outcome.retryable or attempts > policy.max_retries:
            if attempts > 1:
                logger.error(
                    "'%s' failed after %d attempts: %s", operation, attempts, outcome,
                )
            return outcome.with_attempts(attempts)

        delay = policy.delay_for(attempts)
        logger.warning(
            "'%s' — %s (attempt %d/%d), retrying in %.1fs",
            operation, outcome.code, attempts, policy.max_retries + 1, delay,
        )
        await sleep(delay)
