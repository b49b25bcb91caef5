from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Sequence, Union

from .models import CHALLENGE_DAYS, ChallengeStats, DayRecord, TaskKind


@dataclass(frozen=True)
class InProgress:
    day: int


@dataclass(frozen=True)
class Failed:
    day: int


ChallengeState = Union[InProgress, Failed]


class DayStatus(str, Enum):
    COMPLETE = "complete"
    CURRENT = "current"
    INCOMPLETE = "incomplete"
    FUTURE = "future"


def find_first_missed_day(
    records: Iterable[DayRecord] | Mapping[int, DayRecord],
    current_day_number: int,
) -> int | None:
    """Return the earliest day before today without a complete record.

    Today is still in progress and is never reported.
    """
    by_day = _index_by_day(records)
    for day_number in range(1, current_day_number):
        record = by_day.get(day_number)
        if record is None or not record.is_complete:
            return day_number
    return None


def evaluate(
    records: Iterable[DayRecord] | Mapping[int, DayRecord],
    current_day_number: int,
) -> ChallengeState:
    missed = find_first_missed_day(records, current_day_number)
    if missed is not None:
        return Failed(missed)
    return InProgress(current_day_number)


def compute_stats(records: Iterable[DayRecord]) -> ChallengeStats:
    rows = list(records)
    return ChallengeStats(
        days_completed=sum(1 for row in rows if row.is_complete),
        total_tasks_completed=sum(row.completed_count for row in rows),
        progress_photos=sum(1 for row in rows if row.flag(TaskKind.PROGRESS_PICTURE)),
    )


def day_statuses(
    records: Iterable[DayRecord] | Mapping[int, DayRecord],
    current_day_number: int,
) -> list[tuple[int, DayStatus]]:
    by_day = _index_by_day(records)
    statuses: list[tuple[int, DayStatus]] = []
    for day_number in range(1, CHALLENGE_DAYS + 1):
        record = by_day.get(day_number)
        if day_number > current_day_number:
            status = DayStatus.FUTURE
        elif record is not None and record.is_complete:
            status = DayStatus.COMPLETE
        elif day_number == current_day_number:
            status = DayStatus.CURRENT
        else:
            status = DayStatus.INCOMPLETE
        statuses.append((day_number, status))
    return statuses


def _index_by_day(
    records: Iterable[DayRecord] | Mapping[int, DayRecord] | Sequence[DayRecord],
) -> Mapping[int, DayRecord]:
    if isinstance(records, Mapping):
        return records
    return {record.day_number: record for record in records}
