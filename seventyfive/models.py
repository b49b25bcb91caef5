from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

CHALLENGE_DAYS = 75
TOTAL_TASKS = 7


class TaskKind(str, Enum):
    WORKOUT = "workout"
    OUTDOOR_WORKOUT = "outdoor_workout"
    PROGRESS_PICTURE = "progress_picture"
    READING = "reading"
    WATER = "water"
    DIET = "diet"
    NO_CHEAT_MEALS = "no_cheat_meals"

    @property
    def label(self) -> str:
        return _TASK_TITLES[self]

    @property
    def column(self) -> str:
        return f"{self.value}_done"


_TASK_TITLES = {
    TaskKind.WORKOUT: "45-Minute Workout",
    TaskKind.OUTDOOR_WORKOUT: "Outdoor Workout",
    TaskKind.PROGRESS_PICTURE: "Progress Picture",
    TaskKind.READING: "Read 10 Pages",
    TaskKind.WATER: "Drink 1 Gallon",
    TaskKind.DIET: "Follow Diet",
    TaskKind.NO_CHEAT_MEALS: "No Cheats or Alcohol",
}


@dataclass(frozen=True)
class ChallengeConfig:
    start_date: datetime
    day_end_hour: int = 0
    day_end_minute: int = 0
    onboarding_complete: bool = False

    def formatted_day_end_time(self) -> str:
        hour = self.day_end_hour % 12 or 12
        period = "AM" if self.day_end_hour < 12 else "PM"
        return f"{hour}:{self.day_end_minute:02d} {period}"


@dataclass(frozen=True)
class DayRecord:
    day_number: int
    date: datetime
    workout: bool = False
    outdoor_workout: bool = False
    progress_picture: bool = False
    reading: bool = False
    water: bool = False
    diet: bool = False
    no_cheat_meals: bool = False
    photo_ref: str | None = None

    def flag(self, task: TaskKind) -> bool:
        return bool(getattr(self, task.value))

    @property
    def completed_count(self) -> int:
        return sum(1 for task in TaskKind if self.flag(task))

    @property
    def is_complete(self) -> bool:
        return all(self.flag(task) for task in TaskKind)


@dataclass(frozen=True)
class ChallengeStats:
    days_completed: int
    total_tasks_completed: int
    progress_photos: int
