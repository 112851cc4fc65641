import math
from datetime import datetime, timezone
from typing import Callable, Optional

from app.core.config import settings

NowFn = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored timestamp is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def duration_seconds(duration_minutes: Optional[int]) -> int:
    minutes = duration_minutes if duration_minutes else settings.DEFAULT_DURATION_MINUTES
    return int(minutes) * 60


def elapsed_seconds(started_at: datetime, now: datetime) -> int:
    delta = (ensure_aware(now) - ensure_aware(started_at)).total_seconds()
    return max(0, math.floor(delta))


def remaining_seconds(started_at: datetime, duration_minutes: Optional[int], now: datetime) -> int:
    return max(0, duration_seconds(duration_minutes) - elapsed_seconds(started_at, now))


def time_spent_seconds(duration_minutes: Optional[int], remaining: int) -> int:
    return max(0, duration_seconds(duration_minutes) - remaining)


class AttemptClock:
    """
    Remaining time for one attempt, always derived from started_at and the
    current wall-clock time. The tick latch reports expiry exactly once.
    """

    def __init__(self, started_at: datetime, duration_minutes: Optional[int], now_fn: NowFn = utcnow):
        self.started_at = ensure_aware(started_at)
        self.duration_minutes = duration_minutes
        self.now_fn = now_fn
        self._expiry_fired = False

    @property
    def duration_seconds(self) -> int:
        return duration_seconds(self.duration_minutes)

    def remaining(self) -> int:
        return remaining_seconds(self.started_at, self.duration_minutes, self.now_fn())

    def is_expired(self) -> bool:
        return self.remaining() == 0

    def time_spent(self, timed_out: bool = False) -> int:
        remaining = 0 if timed_out else self.remaining()
        return time_spent_seconds(self.duration_minutes, remaining)

    def tick(self) -> bool:
        """True on the first call that observes expiry, False otherwise."""
        if self._expiry_fired or not self.is_expired():
            return False
        self._expiry_fired = True
        return True

    def rearm(self):
        self._expiry_fired = False
