"""Email rate limiting — token buckets per client and per address.

A send costs one token from the client's bucket and one from the bucket of
the address it concerns (the recipient of a shared design, or the customer
behind a contact form). It is refused if either bucket is empty.
"""

import time
from dataclasses import dataclass
from typing import Callable

import structlog

from wardrobe_planner.config import Settings

logger = structlog.get_logger()


@dataclass
class _Bucket:
    tokens: float
    updated: float


class TokenBuckets:
    """Keyed token buckets that refill continuously over a window."""

    def __init__(self, capacity: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if capacity < 1 or window_seconds <= 0:
            raise ValueError("capacity must be >= 1 and window_seconds > 0")
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._per_second = capacity / window_seconds
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}

    def _refilled(self, key: str) -> _Bucket:
        now = self._clock()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = _Bucket(tokens=float(self.capacity), updated=now)
        else:
            bucket.tokens = min(self.capacity, bucket.tokens + (now - bucket.updated) * self._per_second)
            bucket.updated = now
        return bucket

    def wait_time(self, key: str) -> float:
        """Seconds until ``key`` has a whole token (0.0 if it has one now)."""
        missing = 1.0 - self._refilled(key).tokens
        return max(0.0, missing / self._per_second)

    def take(self, key: str) -> None:
        self._refilled(key).tokens -= 1.0

    def remaining(self, key: str) -> int:
        return int(self._refilled(key).tokens)


class EmailRateLimiter:
    """Guards the outgoing email endpoints. In-process only."""

    def __init__(
        self,
        per_client: int,
        per_address: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.clients = TokenBuckets(per_client, window_seconds, clock)
        self.addresses = TokenBuckets(per_address, window_seconds, clock)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailRateLimiter":
        return cls(
            per_client=settings.EMAIL_RATE_LIMIT_MAX,
            per_address=settings.EMAIL_RATE_LIMIT_PER_RECIPIENT,
            window_seconds=settings.EMAIL_RATE_LIMIT_WINDOW_SECONDS,
        )

    def acquire(self, client: str, address: str) -> float:
        """Spend a token for a send from ``client`` concerning ``address``.

        Returns 0.0 when the send may go ahead. Otherwise nothing is spent
        and the return value is the number of seconds to wait.
        """
        address = address.strip().lower()
        wait = max(self.clients.wait_time(client), self.addresses.wait_time(address))
        if wait > 0:
            logger.warning("email_rate_limited", client=client, address=address, retry_after=round(wait, 1))
            return wait

        self.clients.take(client)
        self.addresses.take(address)
        return 0.0
