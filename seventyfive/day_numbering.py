from __future__ import annotations

from datetime import datetime

from .clock import Clock, SystemClock
from .models import CHALLENGE_DAYS, ChallengeConfig

_DEFAULT_CLOCK = SystemClock()


def current_day_number(
    now: datetime,
    start_date: datetime,
    day_end_hour: int,
    day_end_minute: int,
    clock: Clock | None = None,
) -> int:
    """Return the challenge day (1-75) that ``now`` falls on.

    Before the day-end cutoff the previous calendar day is still running, so
    ``now`` is shifted back one calendar day. Landing exactly on the cutoff
    already counts as the new day.
    """
    validate_cutoff(day_end_hour, day_end_minute)
    calendar = clock or _DEFAULT_CLOCK

    current_day = calendar.start_of_day(now)
    if calendar.time_of_day(now) < (day_end_hour, day_end_minute):
        current_day = calendar.add_days(current_day, -1)

    start_day = calendar.start_of_day(start_date)
    day_number = calendar.calendar_day_diff(start_day, current_day) + 1
    return max(1, min(day_number, CHALLENGE_DAYS))


def day_number_for_config(now: datetime, config: ChallengeConfig, clock: Clock | None = None) -> int:
    return current_day_number(
        now,
        config.start_date,
        config.day_end_hour,
        config.day_end_minute,
        clock=clock,
    )


def validate_cutoff(hour: int, minute: int) -> None:
    if not 0 <= hour <= 23:
        raise ValueError(f"Day end hour must be between 0 and 23, got {hour}.")
    if not 0 <= minute <= 59:
        raise ValueError(f"Day end minute must be between 0 and 59, got {minute}.")
