"""
Bounded retry with exponential backoff for fallible external calls.

Built on tenacity. Wraps page navigation, selector waits, store
calls and notification requests:
- ``attempts`` total tries, at least one
- ``base_delay * 2 ** (attempt - 1)`` seconds between tries
- an observer called as ``on_retry(attempt, error, delay)`` before each wait
- the last error re-raised unchanged once attempts run out
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.5  # seconds

RetryObserver = Callable[[int, BaseException, float], None]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for one kind of operation."""

    attempts: int = DEFAULT_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    retry_on: tuple = (Exception,)

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows ``attempt`` (1-based)."""
        return self.base_delay * 2 ** (attempt - 1)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    on_retry: Optional[RetryObserver] = None,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run an async operation with exponential backoff.

    Usage:
        rows = await retry_async(
            lambda: page.goto(url),
            policy=RetryPolicy(attempts=3, base_delay=1.0),
            operation_name="page_goto",
        )

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempts, base delay and retryable exception types
        on_retry: Observer called with (attempt, error, delay) before each wait
        operation_name: Name used in log events
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        Result of the first successful attempt

    Raises:
        Exception: The last error, unmodified, after the final attempt
    """
    policy = policy or RetryPolicy()

    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "operation_retry",
            operation=operation_name,
            attempt=retry_state.attempt_number,
            attempts=policy.attempts,
            delay=delay,
            error=str(error),
        )
        if on_retry is not None:
            on_retry(retry_state.attempt_number, error, delay)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential(multiplier=policy.base_delay, min=0),
        retry=retry_if_exception_type(policy.retry_on),
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=True,
    )

    # tenacity only awaits coroutine functions; a lambda returning a
    # coroutine would be handed back un-awaited.
    async def attempt() -> T:
        return await operation()

    return await retrying(attempt)
