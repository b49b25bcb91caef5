from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from .errors import ChallengeNotStarted, InvalidDayNumber, PersistenceFailure
from .models import CHALLENGE_DAYS, ChallengeConfig, DayRecord, TaskKind

logger = logging.getLogger(__name__)

_TASK_COLUMNS = ", ".join(task.column for task in TaskKind)
_RECORD_COLUMNS = f"day_number, date, {_TASK_COLUMNS}, photo_ref"


class ChallengeDatabase:
    """SQLite store holding the challenge config slot and the per-day records.

    Every public method returns frozen snapshots. Multi-statement operations
    (onboarding, restart, full reset) run in a single transaction, so a reader
    never observes the records and the start date out of step.
    """

    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._db_file

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                conn = self._connect()
            except sqlite3.Error as exc:
                raise PersistenceFailure(f"Could not open {self._db_file}: {exc}") from exc
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise PersistenceFailure(str(exc)) from exc
            except BaseException:
                conn.rollback()
                raise
            finally:
                conn.close()

    def _init_schema(self) -> None:
        task_columns = "\n".join(
            f"                    {task.column} INTEGER NOT NULL DEFAULT 0," for task in TaskKind
        )
        with self._connection() as conn:
            conn.executescript(
                f"""
                CREATE TABLE IF NOT EXISTS challenge_config (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    start_date TEXT NOT NULL,
                    day_end_hour INTEGER NOT NULL DEFAULT 0,
                    day_end_minute INTEGER NOT NULL DEFAULT 0,
                    onboarding_complete INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS day_records (
                    day_number INTEGER PRIMARY KEY
                        CHECK (day_number BETWEEN 1 AND {CHALLENGE_DAYS}),
                    date TEXT NOT NULL,
{task_columns}
                    photo_ref TEXT
                );
                """
            )

    # Config slot

    def get_config(self) -> ChallengeConfig | None:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT start_date, day_end_hour, day_end_minute, onboarding_complete
                FROM challenge_config
                WHERE id = 1
                """
            ).fetchone()
        if row is None:
            return None
        return ChallengeConfig(
            start_date=_parse_timestamp(row["start_date"]),
            day_end_hour=int(row["day_end_hour"]),
            day_end_minute=int(row["day_end_minute"]),
            onboarding_complete=bool(row["onboarding_complete"]),
        )

    def complete_onboarding(self, start_date: datetime, day_end_hour: int, day_end_minute: int) -> ChallengeConfig:
        with self._connection() as conn:
            conn.execute("DELETE FROM day_records")
            conn.execute(
                """
                INSERT INTO challenge_config(id, start_date, day_end_hour, day_end_minute, onboarding_complete)
                VALUES (1, ?, ?, ?, 1)
                ON CONFLICT(id) DO UPDATE SET
                    start_date = excluded.start_date,
                    day_end_hour = excluded.day_end_hour,
                    day_end_minute = excluded.day_end_minute,
                    onboarding_complete = 1
                """,
                (start_date.isoformat(), int(day_end_hour), int(day_end_minute)),
            )
            self._insert_empty_record(conn, 1, start_date)
        logger.info("Onboarding complete, challenge starts %s", start_date.date().isoformat())
        return ChallengeConfig(
            start_date=start_date,
            day_end_hour=int(day_end_hour),
            day_end_minute=int(day_end_minute),
            onboarding_complete=True,
        )

    def update_day_end(self, day_end_hour: int, day_end_minute: int) -> None:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE challenge_config SET day_end_hour = ?, day_end_minute = ? WHERE id = 1",
                (int(day_end_hour), int(day_end_minute)),
            )
            if cursor.rowcount == 0:
                raise ChallengeNotStarted()

    # Day records

    def get(self, day_number: int) -> DayRecord | None:
        _check_day_number(day_number)
        with self._connection() as conn:
            row = self._select_record(conn, day_number)
        return self._row_to_record(row) if row is not None else None

    def get_or_create(self, day_number: int, created_at: datetime | None = None) -> DayRecord:
        _check_day_number(day_number)
        with self._connection() as conn:
            if self._insert_empty_record(conn, day_number, created_at or _now()):
                logger.debug("Created record for day %d", day_number)
            row = self._select_record(conn, day_number)
        return self._row_to_record(row)

    def set_task_flag(
        self,
        day_number: int,
        task: TaskKind,
        value: bool = True,
        created_at: datetime | None = None,
    ) -> DayRecord:
        """Mark a task done. Flags only ever move from false to true."""
        _check_day_number(day_number)
        task = TaskKind(task)
        with self._connection() as conn:
            self._insert_empty_record(conn, day_number, created_at or _now())
            if value:
                cursor = conn.execute(
                    f"UPDATE day_records SET {task.column} = 1 WHERE day_number = ? AND {task.column} = 0",
                    (day_number,),
                )
                if cursor.rowcount:
                    logger.debug("Day %d: %s done", day_number, task.value)
            else:
                logger.debug("Ignoring request to clear %s on day %d", task.value, day_number)
            row = self._select_record(conn, day_number)
        return self._row_to_record(row)

    def set_photo_ref(self, day_number: int, photo_ref: str, created_at: datetime | None = None) -> DayRecord:
        _check_day_number(day_number)
        with self._connection() as conn:
            self._insert_empty_record(conn, day_number, created_at or _now())
            conn.execute(
                f"""
                UPDATE day_records
                SET photo_ref = ?, {TaskKind.PROGRESS_PICTURE.column} = 1
                WHERE day_number = ?
                """,
                (photo_ref, day_number),
            )
            row = self._select_record(conn, day_number)
        return self._row_to_record(row)

    def list_records(self) -> list[DayRecord]:
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM day_records ORDER BY day_number ASC"
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def delete_all(self) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM day_records")
            removed = int(cursor.rowcount)
        logger.debug("Deleted %d day records", removed)
        return removed

    # Whole-challenge transactions

    def restart(self, now: datetime) -> ChallengeConfig:
        with self._connection() as conn:
            conn.execute("DELETE FROM day_records")
            cursor = conn.execute(
                "UPDATE challenge_config SET start_date = ? WHERE id = 1",
                (now.isoformat(),),
            )
            if cursor.rowcount == 0:
                raise ChallengeNotStarted()
            self._insert_empty_record(conn, 1, now)
            row = conn.execute(
                "SELECT day_end_hour, day_end_minute, onboarding_complete FROM challenge_config WHERE id = 1"
            ).fetchone()
        logger.info("Challenge restarted, new start date %s", now.date().isoformat())
        return ChallengeConfig(
            start_date=now,
            day_end_hour=int(row["day_end_hour"]),
            day_end_minute=int(row["day_end_minute"]),
            onboarding_complete=bool(row["onboarding_complete"]),
        )

    def reset_all(self) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM day_records")
            conn.execute("DELETE FROM challenge_config")
        logger.info("Challenge data cleared, onboarding required")

    @staticmethod
    def _insert_empty_record(conn: sqlite3.Connection, day_number: int, created_at: datetime) -> bool:
        cursor = conn.execute(
            """
            INSERT INTO day_records(day_number, date)
            VALUES (?, ?)
            ON CONFLICT(day_number) DO NOTHING
            """,
            (day_number, created_at.isoformat()),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _select_record(conn: sqlite3.Connection, day_number: int) -> sqlite3.Row | None:
        return conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM day_records WHERE day_number = ?",
            (day_number,),
        ).fetchone()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> DayRecord:
        flags = {task.value: bool(row[task.column]) for task in TaskKind}
        photo_ref = row["photo_ref"]
        return DayRecord(
            day_number=int(row["day_number"]),
            date=_parse_timestamp(row["date"]),
            photo_ref=str(photo_ref) if photo_ref is not None else None,
            **flags,
        )


def _check_day_number(day_number: int) -> None:
    if isinstance(day_number, bool) or not isinstance(day_number, int):
        raise InvalidDayNumber(day_number)
    if not 1 <= day_number <= CHALLENGE_DAYS:
        raise InvalidDayNumber(day_number)


def _now() -> datetime:
    return datetime.now().astimezone()


def _parse_timestamp(value: object) -> datetime:
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise PersistenceFailure(f"Corrupt timestamp in database: {value!r}") from exc
