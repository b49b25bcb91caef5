from __future__ import annotations

from .models import CHALLENGE_DAYS


class ChallengeError(Exception):
    """Base class for errors raised by the challenge core."""


class InvalidDayNumber(ChallengeError, ValueError):
    def __init__(self, day_number: int):
        super().__init__(f"Day number must be between 1 and {CHALLENGE_DAYS}, got {day_number}.")
        self.day_number = day_number


class PersistenceFailure(ChallengeError):
    pass


class PhotoSaveFailure(ChallengeError):
    pass


class ChallengeNotStarted(ChallengeError):
    def __init__(self) -> None:
        super().__init__("No challenge configured yet. Complete onboarding first.")


class DayNotEditable(ChallengeError):
    def __init__(self, day_number: int, current_day: int):
        super().__init__(f"Only today (Day {current_day}) can be checked off, not Day {day_number}.")
        self.day_number = day_number
        self.current_day = current_day
