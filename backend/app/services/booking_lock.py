# backend/app/services/booking_lock.py
"""
Redis lock serializing bookings per professional and day.

Key format: booking:lock:{professional_id}:{date}

Validate-then-insert runs under this lock so two requests for the same
professional cannot both pass validation. The partial unique index on
bookings still rejects a duplicate if the lock expires mid-request.
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from redis import Redis
from redis.exceptions import LockError
from redis.lock import Lock

from ..config import settings

logger = logging.getLogger(__name__)


class LockUnavailable(Exception):
    """The lock could not be acquired within the wait time."""


class BookingLock:
    """Factory for per-professional, per-day booking locks."""

    KEY_PREFIX = "booking:lock"

    def __init__(
        self,
        redis: Redis,
        timeout: float | None = None,
        blocking_timeout: float | None = None,
    ):
        self.redis = redis
        self.timeout = timeout if timeout is not None else settings.booking_lock_timeout_seconds
        self.blocking_timeout = (
            blocking_timeout if blocking_timeout is not None else settings.booking_lock_wait_seconds
        )

    def key(self, professional_id: int, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{professional_id}:{dt.isoformat()}"

    def for_slot(self, professional_id: int, dt: date) -> Lock:
        return self.redis.lock(
            self.key(professional_id, dt),
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )

    @contextmanager
    def hold(self, professional_id: int, dt: date) -> Iterator[None]:
        """
        Hold the day lock for the duration of the block.

        Raises LockUnavailable when not acquired in time. A lock that
        expired before release is logged; the work done under it stands.
        """
        key = self.key(professional_id, dt)
        lock = self.for_slot(professional_id, dt)
        if not lock.acquire():
            raise LockUnavailable(key)
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning(f"Booking lock {key} expired before release")
