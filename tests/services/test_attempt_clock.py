from datetime import datetime, timedelta, timezone

from app.services.attempt_clock import (
    AttemptClock, ensure_aware, remaining_seconds, time_spent_seconds
)
from tests.helpers.fakes import FakeClock

T0 = datetime(2024, 5, 14, 9, 0, tzinfo=timezone.utc)


def test_full_time_at_start():
    assert remaining_seconds(T0, 30, T0) == 1800


def test_remaining_floors_partial_seconds():
    assert remaining_seconds(T0, 30, T0 + timedelta(seconds=10.9)) == 1790


def test_remaining_never_negative():
    assert remaining_seconds(T0, 30, T0 + timedelta(hours=2)) == 0


def test_clock_skew_does_not_extend_time():
    assert remaining_seconds(T0, 30, T0 - timedelta(minutes=5)) == 1800


def test_missing_duration_uses_default():
    assert remaining_seconds(T0, None, T0) == 1800


def test_naive_timestamps_are_treated_as_utc():
    naive = datetime(2024, 5, 14, 9, 0)
    assert ensure_aware(naive) == T0
    assert remaining_seconds(naive, 30, T0 + timedelta(minutes=1)) == 1740


def test_remaining_is_stable_across_reload():
    clock = FakeClock(T0)
    clock.advance(minutes=10)
    first = AttemptClock(T0, 30, clock).remaining()

    clock.advance(milliseconds=400)
    reloaded = AttemptClock(T0, 30, clock).remaining()

    assert first == 1200
    assert abs(first - reloaded) <= 1


def test_time_spent():
    assert time_spent_seconds(30, 300) == 1500
    assert time_spent_seconds(30, 0) == 1800


def test_timeout_forces_full_duration():
    clock = FakeClock(T0)
    clock.advance(minutes=29, seconds=59)
    attempt_clock = AttemptClock(T0, 30, clock)
    assert attempt_clock.time_spent() == 1799
    assert attempt_clock.time_spent(timed_out=True) == 1800


def test_tick_reports_expiry_once():
    clock = FakeClock(T0)
    attempt_clock = AttemptClock(T0, 1, clock)

    assert attempt_clock.tick() is False
    clock.advance(seconds=60)
    assert attempt_clock.tick() is True
    assert attempt_clock.tick() is False
    clock.advance(seconds=5)
    assert attempt_clock.tick() is False


def test_rearm_allows_another_expiry_signal():
    clock = FakeClock(T0 + timedelta(minutes=5))
    attempt_clock = AttemptClock(T0, 1, clock)
    assert attempt_clock.tick() is True
    attempt_clock.rearm()
    assert attempt_clock.tick() is True
