"""Retry policy for transient upstream overload.

The policy is consumed by ``InferenceService``, which drives it through
tenacity with a fixed wait and an attempt ceiling.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from exam_relay.domain.errors import UpstreamCallError

OVERLOAD_HTTP_STATUSES = frozenset({429, 503})
OVERLOAD_UPSTREAM_STATUSES = frozenset({"RESOURCE_EXHAUSTED", "UNAVAILABLE"})


def is_transient_overload(exc: UpstreamCallError) -> bool:
    """Return true when the upstream signalled rate limiting or overload."""
    if exc.status_code in OVERLOAD_HTTP_STATUSES:
        return True
    return exc.upstream_status in OVERLOAD_UPSTREAM_STATUSES


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry policy with an attempt ceiling."""

    max_attempts: int = 3
    delay_seconds: float = 2.0
    is_retryable: Callable[[UpstreamCallError], bool] = is_transient_overload
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")


@dataclass
class RetryState:
    """Per-request retry bookkeeping."""

    max_attempts: int
    attempts: int = 0
    last_error: str | None = None

    def record_overload(self, exc: UpstreamCallError) -> None:
        self.attempts += 1
        self.last_error = exc.upstream_status or f"HTTP {exc.status_code}"

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts
