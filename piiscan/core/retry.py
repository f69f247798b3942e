"""Fixed-interval retry policy for fallible async operations.

:class:`RetryPolicy` is a small value object: how many attempts to make in
total, how long to sleep between them, and which sleep function to use.  It
wraps any zero-argument coroutine factory::

    policy = RetryPolicy(max_attempts=3, delay=1.0)
    body = await policy.run(lambda: client.post(url, json=payload),
                            retry_on=(httpx.HTTPError,))

Attempts that raise one of *retry_on* are retried; anything else propagates
immediately.  The sleep happens only *between* attempts, never after the last
one, so ``max_attempts=3`` means at most two sleeps.  When every attempt fails
:class:`RetryExhaustedError` is raised with the last exception chained.

The ``sleep`` callable can be replaced in tests with a fake that records the
requested delays instead of waiting.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


class RetryExhaustedError(Exception):
    """Raised when every attempt allowed by a :class:`RetryPolicy` failed.

    Attributes:
        attempts: Number of attempts made.
        last_error: Exception raised by the final attempt.
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration.

    Attributes:
        max_attempts: Total number of attempts, including the first.  Must be
            at least 1.
        delay: Seconds to sleep between consecutive attempts.
        sleep: Awaitable sleep function.  ``None`` means :func:`asyncio.sleep`.
    """

    max_attempts: int = 3
    delay: float = 1.0
    sleep: Optional[SleepFn] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        on_failure: Callable[[int, BaseException], None] | None = None,
    ) -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        Args:
            operation: Zero-argument callable returning a fresh awaitable for
                each attempt.
            retry_on: Exception types that count as a failed attempt.
            on_failure: Optional callback ``(attempt, exc)`` invoked after each
                failed attempt (1-indexed), e.g. to increment a metric.

        Returns:
            The result of the first successful attempt.

        Raises:
            RetryExhaustedError: If all attempts failed with *retry_on* errors.
        """
        sleep = self.sleep or asyncio.sleep

        for attempt in range(1, self.max_attempts):
            try:
                return await operation()
            except retry_on as exc:
                if on_failure is not None:
                    on_failure(attempt, exc)
                logger.warning(
                    "Attempt %d/%d failed: %s; retrying in %.2fs",
                    attempt,
                    self.max_attempts,
                    exc,
                    self.delay,
                )
            await sleep(self.delay)

        try:
            return await operation()
        except retry_on as exc:
            if on_failure is not None:
                on_failure(self.max_attempts, exc)
            logger.error(
                "All %d attempt(s) failed. Last error: %s", self.max_attempts, exc
            )
            raise RetryExhaustedError(self.max_attempts, exc) from exc
