"""
Async retry with exponential backoff and jitter
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..errors import ScholarshipError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Attributes:
        max_attempts: Maximum number of attempts (including the first)
        initial_delay_seconds: Delay before the first retry
        max_delay_seconds: Upper bound for any single delay
        exponential_base: Delay multiplier per attempt
        jitter: Whether to randomize delays
    """
    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    def delay_for(self, attempt: int) -> float:
        delay = min(
            self.initial_delay_seconds * (self.exponential_base ** attempt),
            self.max_delay_seconds,
        )
        if self.jitter:
            delay *= random.uniform(0.5, 1.5)
        return delay


async def retry_async(func: Callable[[], Awaitable[T]], config: RetryConfig) -> T:
    """
    Await func until it succeeds, retrying only errors flagged retryable

    Raises:
        The last error once attempts are exhausted, or immediately for
        errors that are not retryable
    """
    for attempt in range(config.max_attempts):
        try:
            return await func()
        except ScholarshipError as e:
            if not e.retryable or attempt == config.max_attempts - 1:
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_attempts} failed: {e.message}. "
                f"Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    raise RuntimeError("retry_async called with max_attempts < 1")
