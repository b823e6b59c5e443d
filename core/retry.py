"""
Retry policy and a generic "call with retry" primitive.

The policy is a plain value: the number of attempts and the exponential
backoff curve. ``call_with_retry`` consumes it around any awaitable
factory, so the transport code never carries its own retry loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff policy.

    Attributes:
        max_attempts: Total attempts, including the first one
        base_delay: Delay in seconds after the first failed attempt
        multiplier: Growth factor applied per further failure
        max_delay: Upper bound for any single delay
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 10.0

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        return min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)


async def call_with_retry(
    func: Callable[[], Awaitable[Any]],
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Optional[Sleep] = None,
    description: str = "operation",
    expected: Optional[Callable[[BaseException], bool]] = None,
) -> Any:
    """
    Await ``func()`` until it succeeds or the policy is exhausted.

    Only exceptions matching ``retry_on`` are retried; anything else
    propagates immediately. After the last attempt the final exception is
    re-raised unmodified.

    Failures for which ``expected`` returns True are retried the same way
    but logged at INFO, for callers that treat them as a normal outcome.
    """
    sleep = sleep or asyncio.sleep

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await func()
        except retry_on as e:
            level = logging.INFO if expected is not None and expected(e) else None

            if attempt == policy.max_attempts:
                logger.log(
                    level or logging.ERROR,
                    f"{description} failed after {policy.max_attempts} attempts: {e}"
                )
                raise

            delay = policy.delay_for(attempt)
            logger.log(
                level or logging.WARNING,
                f"{description} attempt {attempt}/{policy.max_attempts} failed: {e}. "
                f"Retrying in {delay:.1f}s"
            )
            await sleep(delay)
