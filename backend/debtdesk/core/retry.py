"""
Retry policy for remote reads.

The remote client makes exactly one attempt per call; the repository
facade decides whether a failed read is worth repeating.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from debtdesk.core.exceptions import RemoteUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Retry policy configuration.

    Attributes:
        max_retries: Maximum number of retry attempts after the first call
        base_delay: Base delay in seconds between retries
        max_delay: Maximum delay between retries
        exponential_base: Base for exponential backoff
    """
    max_retries: int = 2
    base_delay: float = 0.2
    max_delay: float = 5.0
    exponential_base: float = 2.0

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a given retry attempt."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(max_retries=0, base_delay=0.0)


async def retry_remote(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "remote call",
) -> T:
    """
    Run ``operation`` and repeat it on RemoteUnavailable.

    Any other exception propagates immediately. When every attempt fails
    the last RemoteUnavailable is raised.
    """
    last_error: RemoteUnavailable | None = None

    for attempt in range(policy.max_retries + 1):
        try:
            return await operation()
        except RemoteUnavailable as e:
            last_error = e
            if attempt < policy.max_retries:
                delay = policy.calculate_delay(attempt)
                logger.warning(
                    f"{description} failed (attempt {attempt + 1}/{policy.max_retries + 1}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
                await asyncio.sleep(delay)

    assert last_error is not None
    raise last_error
