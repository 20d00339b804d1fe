"""Bounded retry with exponential backoff for async operations."""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from .policy import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryHook = Callable[[BaseException, int], Union[None, Awaitable[None]]]
SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class AttemptSuccess(Generic[T]):
    """An attempt that returned a value."""
    value: T
    attempt: int


@dataclass(frozen=True)
class AttemptFailure:
    """An attempt that raised."""
    error: BaseException
    attempt: int


AttemptOutcome = Union[AttemptSuccess, AttemptFailure]


class RetryExhausted(Exception):
    """Raised when every attempt allowed by a policy has failed."""

    def __init__(self, last_error: BaseException, attempts: int, label: str = "") -> None:
        self.last_error = last_error
        self.attempts = attempts
        self.label = label
        prefix = f"{label}: " if label else ""
        super().__init__(f"{prefix}gave up after {attempts} attempt(s): {last_error}")


class RetryExecutor:
    """Runs async operations under a RetryPolicy.

    The executor knows nothing about the operation: navigation, element
    waits, clicks and logins all go through the same loop with different
    policies.
    """

    def __init__(
        self,
        give_up_on: tuple[type[BaseException], ...] = (),
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the executor.

        Args:
            give_up_on: Exception types that are re-raised immediately,
                without retrying.
            sleep: Coroutine used for backoff waits.
        """
        self._give_up_on = give_up_on
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        on_retry: Optional[RetryHook] = None,
        label: str = "",
    ) -> T:
        """Run ``operation`` until it succeeds or the policy is exhausted.

        Args:
            operation: Zero-argument coroutine function to attempt.
            policy: Attempt budget and backoff schedule.
            on_retry: Called with ``(error, attempt)`` after each failed
                attempt except the last, before sleeping. May be async.
            label: Name used in log lines and in RetryExhausted.

        Returns:
            The value of the first successful attempt.

        Raises:
            RetryExhausted: If all ``policy.max_retries + 1`` attempts fail.
        """
        name = label or getattr(operation, "__name__", "operation")

        for attempt in range(1, policy.total_attempts + 1):
            outcome = await self._attempt(operation, policy, attempt)
            if isinstance(outcome, AttemptSuccess):
                if attempt > 1:
                    logger.info(f"{name} succeeded on attempt {attempt}")
                return outcome.value

            if isinstance(outcome.error, self._give_up_on):
                logger.warning(f"{name} failed with non-retryable error: {outcome.error}")
                raise outcome.error

            if attempt == policy.total_attempts:
                logger.error(f"{name} failed after {attempt} attempt(s): {outcome.error}")
                raise RetryExhausted(outcome.error, attempt, name)

            delay = policy.delay_for(attempt)
            logger.warning(
                f"{name} attempt {attempt}/{policy.total_attempts} failed: "
                f"{outcome.error}. Retrying in {delay:.1f}s"
            )
            await self._notify(on_retry, outcome, name)
            await self._sleep(delay)

        raise RuntimeError(f"{name}: retry policy allowed no attempts")

    async def _attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        attempt: int,
    ) -> AttemptOutcome:
        try:
            if policy.attempt_timeout is not None:
                value = await asyncio.wait_for(operation(), timeout=policy.attempt_timeout)
            else:
                value = await operation()
        except asyncio.TimeoutError:
            error = TimeoutError(f"attempt timed out after {policy.attempt_timeout}s")
            return AttemptFailure(error, attempt)
        except Exception as e:
            return AttemptFailure(e, attempt)
        return AttemptSuccess(value, attempt)

    async def _notify(
        self, on_retry: Optional[RetryHook], failure: AttemptFailure, name: str
    ) -> None:
        """Run the retry hook; hook errors are logged, never fatal."""
        if on_retry is None:
            return
        try:
            result = on_retry(failure.error, failure.attempt)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"{name} retry hook failed: {e}")
