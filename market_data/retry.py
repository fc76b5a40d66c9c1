"""
Retry Policy - bounded exponential backoff on rate limiting.

Only RateLimitError is retried. Any other exception (and any result)
ends the loop immediately, because those conditions are not transient.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from market_data.exceptions import RateLimitError


logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]


class RetryPolicy:
    """
    Invoke an attempt up to ``max_attempts`` times.

    Delay before attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)``.
    """

    MAX_ATTEMPTS = 3
    BASE_DELAY = 2.0

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep or asyncio.sleep

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def delay_for(self, attempt: int) -> float:
        """Backoff after the given (1-based) failed attempt."""
        return self._base_delay * (2 ** (attempt - 1))

    async def run(
        self,
        attempt: Callable[[], Awaitable[T]],
        label: str = "upstream",
    ) -> T:
        """
        Run ``attempt`` with retries on rate limiting.

        Raises:
            RateLimitError: the last rate limit once attempts are exhausted
            Exception: any other error from ``attempt``, unchanged
        """
        last_error: Optional[RateLimitError] = None

        for attempt_no in range(1, self._max_attempts + 1):
            try:
                return await attempt()
            except RateLimitError as e:
                last_error = e
                if attempt_no == self._max_attempts:
                    break
                wait_time = self.delay_for(attempt_no)
                logger.warning(
                    f"[{label}] Rate limited, waiting {wait_time}s "
                    f"(attempt {attempt_no}/{self._max_attempts})"
                )
                await self._sleep(wait_time)

        logger.warning(f"[{label}] Rate limited on all {self._max_attempts} attempts")
        raise last_error
