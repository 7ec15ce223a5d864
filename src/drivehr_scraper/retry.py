import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3


class RetryPolicy:
    """
    Runs an async operation up to a fixed number of attempts.

    Every failure matching ``retry_on`` is retried until the budget is spent;
    the last error is then re-raised unchanged. ``delay`` is a fixed pause in
    seconds between attempts (0 by default, i.e. retry immediately).
    """

    def __init__(
        self,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = 0.0,
        retry_on: tuple[type[Exception], ...] = (Exception,),
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be a positive integer, got {attempts}")
        self.attempts = attempts
        self.delay = delay
        self.retry_on = retry_on

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        description: str = "operation",
    ) -> T:
        """Call ``operation(attempt)`` with attempt numbers starting at 1."""
        for attempt in range(1, self.attempts + 1):
            try:
                return await operation(attempt)
            except self.retry_on as e:
                if attempt == self.attempts:
                    logger.error(f"{description} failed after {self.attempts} attempts: {e}")
                    raise
                logger.warning(f"{description} attempt {attempt}/{self.attempts} failed: {e}")
                if self.delay > 0:
                    await asyncio.sleep(self.delay)

        raise RuntimeError("All retry attempts exhausted")
