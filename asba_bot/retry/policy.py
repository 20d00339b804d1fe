"""Retry policy: attempt budget and exponential backoff schedule."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for one call site.

    Attributes:
        max_retries: Retries after the first try. Total attempts is
            ``max_retries + 1``; ``0`` means a single attempt.
        initial_delay: Seconds to wait before the first retry.
        max_delay: Upper bound in seconds for any single delay.
        backoff_factor: Multiplier applied to the delay after each retry.
        attempt_timeout: Hard limit in seconds for one attempt, or None.
    """

    max_retries: int = 5
    initial_delay: float = 2.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    attempt_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {self.initial_delay}")
        if self.max_delay < 0:
            raise ValueError(f"max_delay must be >= 0, got {self.max_delay}")
        if self.backoff_factor < 1:
            raise ValueError(f"backoff_factor must be >= 1, got {self.backoff_factor}")
        if self.attempt_timeout is not None and self.attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be > 0, got {self.attempt_timeout}")

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Seconds to sleep after failed attempt ``attempt`` (1-based)."""
        if attempt < 1:
            raise ValueError(f"attempt is 1-based, got {attempt}")
        delay = self.initial_delay * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay)

    def delays(self) -> Iterator[float]:
        """Yield every backoff delay this policy can produce, in order."""
        for attempt in range(1, self.total_attempts):
            yield self.delay_for(attempt)
