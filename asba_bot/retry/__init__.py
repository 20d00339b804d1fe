"""Bounded retry with exponential backoff."""
from .executor import (
    AttemptFailure,
    AttemptOutcome,
    AttemptSuccess,
    RetryExecutor,
    RetryExhausted,
)
from .policy import RetryPolicy

__all__ = [
    "RetryPolicy",
    "RetryExecutor",
    "RetryExhausted",
    "AttemptOutcome",
    "AttemptSuccess",
    "AttemptFailure",
]
