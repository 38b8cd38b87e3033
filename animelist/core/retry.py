"""
Retry policy built on tenacity.

A RetryPolicy bundles the attempt ceiling, the backoff function and the sleep
coroutine. The reconciliation engine uses the linear form against a busy
database; the enrichment fetcher uses the exponential form against a
rate-limited API. Tests inject a recording sleep so no real time passes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


class RetryPolicy:
    """
    Fixed-ceiling retry with a pluggable backoff.

    Args:
        max_attempts: Total attempts including the first one
        backoff: Maps the 1-based number of the attempt that just failed to
            the delay in seconds before the next one
        sleep: Awaitable sleep used between attempts
    """

    def __init__(
        self,
        max_attempts: int,
        backoff: Callable[[int], float],
        *,
        sleep: SleepFn = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.sleep = sleep

    @classmethod
    def linear(cls, max_attempts: int, base_delay: float, *, sleep: SleepFn = asyncio.sleep) -> "RetryPolicy":
        """base, 2*base, 3*base, ..."""
        return cls(max_attempts, lambda attempt: base_delay * attempt, sleep=sleep)

    @classmethod
    def exponential(
        cls,
        max_attempts: int,
        base_delay: float,
        max_delay: float = 30.0,
        *,
        sleep: SleepFn = asyncio.sleep,
    ) -> "RetryPolicy":
        """base, 2*base, 4*base, ... capped at max_delay."""
        return cls(
            max_attempts,
            lambda attempt: min(base_delay * 2 ** (attempt - 1), max_delay),
            sleep=sleep,
        )

    def delay_for(self, attempt: int) -> float:
        return self.backoff(attempt)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.backoff(retry_state.attempt_number)

    def retrying(self, retry_on: tuple[type[BaseException], ...]) -> AsyncRetrying:
        """
        Build a tenacity controller that retries the given exception types.

        The last exception is re-raised once the ceiling is reached.
        """
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(retry_on),
            sleep=self.sleep,
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    async def call(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        retry_on: tuple[type[BaseException], ...],
        **kwargs: Any,
    ) -> T:
        """Run fn, retrying on the given exception types."""
        return await self.retrying(retry_on)(fn, *args, **kwargs)
