from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .clock import Clock, SystemClock
from .database import ChallengeDatabase
from .day_numbering import day_number_for_config, validate_cutoff
from .errors import ChallengeError, ChallengeNotStarted, DayNotEditable, PhotoSaveFailure
from .evaluator import (
    ChallengeState,
    DayStatus,
    Failed,
    compute_stats,
    day_statuses,
    evaluate,
)
from .models import ChallengeConfig, ChallengeStats, DayRecord, TaskKind
from .photos import ImageSource, PhotoStore

logger = logging.getLogger(__name__)

MissedDayCallback = Callable[[int], None]


@dataclass(frozen=True)
class DailyView:
    day_number: int
    today: DayRecord
    state: ChallengeState
    day_end_time: str


class ChallengeService:
    """Entry points the presentation layer calls into.

    The service never restarts on its own: a missed day is reported through
    ``on_missed_day_detected`` and the caller decides when to call
    :meth:`restart`.
    """

    def __init__(
        self,
        db: ChallengeDatabase,
        clock: Clock | None = None,
        photos: PhotoStore | None = None,
        on_missed_day_detected: MissedDayCallback | None = None,
    ):
        self._db = db
        self._clock = clock or SystemClock()
        self._photos = photos
        self._on_missed_day_detected = on_missed_day_detected

    @property
    def clock(self) -> Clock:
        return self._clock

    def config(self) -> ChallengeConfig | None:
        config = self._db.get_config()
        if config is None or not config.onboarding_complete:
            return None
        return config

    def needs_onboarding(self) -> bool:
        return self.config() is None

    def complete_onboarding(
        self,
        start_date: datetime | None = None,
        day_end_hour: int = 0,
        day_end_minute: int = 0,
    ) -> ChallengeConfig:
        start_date = start_date or self._clock.now()
        validate_cutoff(day_end_hour, day_end_minute)
        return self._db.complete_onboarding(start_date, day_end_hour, day_end_minute)

    def update_day_end(self, day_end_hour: int, day_end_minute: int) -> ChallengeConfig:
        validate_cutoff(day_end_hour, day_end_minute)
        self._require_config()
        self._db.update_day_end(day_end_hour, day_end_minute)
        logger.info("Day end moved to %02d:%02d", day_end_hour, day_end_minute)
        return self._require_config()

    def current_day_number(self) -> int:
        return day_number_for_config(self._clock.now(), self._require_config(), clock=self._clock)

    def enter_daily_view(self) -> DailyView:
        """Make sure today's record exists and check the days before it.

        Runs once per visit to the checklist rather than continuously.
        """
        config = self._require_config()
        now = self._clock.now()
        day_number = day_number_for_config(now, config, clock=self._clock)
        today = self._db.get_or_create(day_number, created_at=now)

        state = evaluate(self._db.list_records(), day_number)
        if isinstance(state, Failed):
            logger.info("Missed day %d detected on day %d", state.day, day_number)
            if self._on_missed_day_detected is not None:
                self._on_missed_day_detected(state.day)

        return DailyView(
            day_number=day_number,
            today=today,
            state=state,
            day_end_time=config.formatted_day_end_time(),
        )

    def complete_task(self, task: TaskKind, day_number: int | None = None) -> DayRecord:
        day_number = self._editable_day(day_number)
        return self._db.set_task_flag(day_number, TaskKind(task), True, created_at=self._clock.now())

    def attach_photo(self, source: ImageSource, day_number: int | None = None) -> DayRecord:
        """Store a progress picture and tick the picture task.

        Only today's record is editable. When the photo store fails, the error
        propagates and the record is left untouched, so the picture task stays
        open; a failed database write removes the saved file again.
        """
        if self._photos is None:
            raise PhotoSaveFailure("No photo store configured.")
        day_number = self._editable_day(day_number)
        now = self._clock.now()
        reference = self._photos.save(day_number, source, captured_at=now)
        try:
            return self._db.set_photo_ref(day_number, reference, created_at=now)
        except ChallengeError:
            self._photos.discard(reference)
            raise

    def restart(self) -> DailyView:
        self._db.restart(self._clock.now())
        return self.enter_daily_view()

    def reset_challenge(self) -> None:
        self._db.reset_all()

    def records(self) -> list[DayRecord]:
        return self._db.list_records()

    def stats(self) -> ChallengeStats:
        return compute_stats(self._db.list_records())

    def history(self) -> list[tuple[int, DayStatus]]:
        return day_statuses(self._db.list_records(), self.current_day_number())

    def state(self) -> ChallengeState:
        day_number = self.current_day_number()
        return evaluate(self._db.list_records(), day_number)

    def _editable_day(self, day_number: int | None) -> int:
        current_day = self.current_day_number()
        if day_number is not None and day_number != current_day:
            raise DayNotEditable(day_number, current_day)
        return current_day

    def _require_config(self) -> ChallengeConfig:
        config = self.config()
        if config is None:
            raise ChallengeNotStarted()
        return config

