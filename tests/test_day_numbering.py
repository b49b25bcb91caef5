from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from seventyfive.clock import Clock, FixedClock, SystemClock
from seventyfive.day_numbering import current_day_number, day_number_for_config
from seventyfive.models import CHALLENGE_DAYS, ChallengeConfig

START = datetime(2024, 1, 1, 0, 0)


class DayNumberingTests(unittest.TestCase):
    def test_before_cutoff_counts_toward_previous_day(self) -> None:
        now = datetime(2024, 1, 3, 0, 30)
        self.assertEqual(current_day_number(now, START, 1, 0), 2)

    def test_exactly_at_cutoff_is_the_new_day(self) -> None:
        now = datetime(2024, 1, 3, 1, 0)
        self.assertEqual(current_day_number(now, START, 1, 0), 3)

    def test_minute_precision_of_cutoff(self) -> None:
        self.assertEqual(current_day_number(datetime(2024, 1, 3, 1, 29), START, 1, 30), 2)
        self.assertEqual(current_day_number(datetime(2024, 1, 3, 1, 30), START, 1, 30), 3)

    def test_midnight_cutoff_never_rolls_back(self) -> None:
        self.assertEqual(current_day_number(datetime(2024, 1, 1, 0, 0), START, 0, 0), 1)
        self.assertEqual(current_day_number(datetime(2024, 1, 2, 0, 0), START, 0, 0), 2)

    def test_start_time_of_day_is_ignored(self) -> None:
        start = datetime(2024, 1, 1, 22, 15)
        self.assertEqual(current_day_number(datetime(2024, 1, 2, 8, 0), start, 0, 0), 2)

    def test_now_before_start_clamps_to_day_one(self) -> None:
        now = datetime(2023, 12, 20, 12, 0)
        self.assertEqual(current_day_number(now, START, 0, 0), 1)

    def test_first_day_before_cutoff_clamps_to_day_one(self) -> None:
        now = datetime(2024, 1, 1, 0, 30)
        self.assertEqual(current_day_number(now, START, 1, 0), 1)

    def test_last_day_and_beyond_clamp_to_75(self) -> None:
        self.assertEqual(current_day_number(START + timedelta(days=74, hours=12), START, 0, 0), 75)
        self.assertEqual(current_day_number(START + timedelta(days=73, hours=12), START, 0, 0), 74)
        self.assertEqual(current_day_number(START + timedelta(days=400), START, 0, 0), 75)

    def test_result_always_within_challenge_range(self) -> None:
        for offset_hours in range(-72, 24 * 80, 7):
            now = START + timedelta(hours=offset_hours, minutes=offset_hours % 60)
            for hour in (0, 1, 5, 12, 23):
                for minute in (0, 15, 59):
                    day = current_day_number(now, START, hour, minute)
                    self.assertGreaterEqual(day, 1)
                    self.assertLessEqual(day, CHALLENGE_DAYS)

    def test_same_inputs_give_same_result(self) -> None:
        now = datetime(2024, 2, 10, 3, 45)
        first = current_day_number(now, START, 4, 0)
        self.assertEqual(first, current_day_number(now, START, 4, 0))

    def test_invalid_cutoff_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            current_day_number(START, START, 24, 0)
        with self.assertRaises(ValueError):
            current_day_number(START, START, 0, 60)
        with self.assertRaises(ValueError):
            current_day_number(START, START, -1, 0)

    def test_aware_timestamps_use_clock_zone(self) -> None:
        eastern = timezone(timedelta(hours=-5))
        clock = FixedClock(datetime(2024, 1, 3, 4, 30, tzinfo=timezone.utc), tz=eastern)
        start = datetime(2024, 1, 1, 9, 0, tzinfo=eastern)
        # 04:30 UTC is 23:30 on Jan 2 in the clock's zone.
        self.assertEqual(current_day_number(clock.now(), start, 0, 0, clock=clock), 2)

    def test_config_wrapper(self) -> None:
        config = ChallengeConfig(start_date=START, day_end_hour=1, day_end_minute=0, onboarding_complete=True)
        self.assertEqual(day_number_for_config(datetime(2024, 1, 3, 0, 30), config), 2)


class ClockTests(unittest.TestCase):
    def test_base_clock_cannot_be_instantiated(self) -> None:
        with self.assertRaises(TypeError):
            Clock()

    def test_system_clock_returns_aware_local_time(self) -> None:
        self.assertIsNotNone(SystemClock().now().tzinfo)

    def test_fixed_clock_advances(self) -> None:
        clock = FixedClock(START)
        self.assertEqual(clock.advance(days=2, hours=1), datetime(2024, 1, 3, 1, 0))
        self.assertEqual(clock.now(), datetime(2024, 1, 3, 1, 0))

if __name__ == "__main__":
    unittest.main()
