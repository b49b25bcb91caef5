from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime, time
from pathlib import Path
from typing import Callable

from . import __version__
from .challenge import ChallengeService, DailyView
from .clock import SystemClock
from .database import ChallengeDatabase
from .errors import ChallengeError
from .evaluator import DayStatus, Failed
from .logs import setup_logging
from .models import CHALLENGE_DAYS, TOTAL_TASKS, TaskKind
from .paths import data_directory, database_path, ensure_directories, photos_directory
from .photos import PhotoStore

logger = logging.getLogger(__name__)

EXIT_FAILED_DAY = 2
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_STATUS_MARKS = {
    DayStatus.COMPLETE: "#",
    DayStatus.CURRENT: "@",
    DayStatus.INCOMPLETE: "x",
    DayStatus.FUTURE: ".",
}


def build_service(data_dir: Path | None = None) -> ChallengeService:
    base = data_dir or data_directory()
    ensure_directories(base)
    return ChallengeService(
        db=ChallengeDatabase(database_path(base)),
        clock=SystemClock(),
        photos=PhotoStore(photos_directory(base)),
    )


def _parse_day_end(value: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected HH:MM, got {value!r}") from exc
    return (parsed.hour, parsed.minute)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def _confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in {"y", "yes"}


def _print_daily_view(view: DailyView) -> None:
    print(f"Day {view.day_number} of {CHALLENGE_DAYS}  (day ends at {view.day_end_time})")
    print(f"{view.today.completed_count}/{TOTAL_TASKS} tasks")
    for task in TaskKind:
        mark = "x" if view.today.flag(task) else " "
        print(f"  [{mark}] {task.value:<16} {task.label}")


def _print_failure(failed_day: int) -> None:
    print("Challenge failed.")
    print(f"You didn't complete all tasks on Day {failed_day}.")
    print("Run `seventyfive restart` to start over from Day 1.")


def _cmd_status(service: ChallengeService, args: argparse.Namespace) -> int:
    config = service.config()
    if config is None:
        print("No challenge yet. Run `seventyfive start` to begin.")
        return 0
    print(f"Start date:   {config.start_date.date().isoformat()}")
    print(f"Day ends at:  {config.formatted_day_end_time()}")
    print(f"Current day:  {service.current_day_number()}")
    return 0


def _cmd_start(service: ChallengeService, args: argparse.Namespace) -> int:
    if not service.needs_onboarding() and not _confirm(
        "A challenge is already running. Replace it?", args.yes
    ):
        return 1
    start_date = None
    if args.date is not None:
        start_date = datetime.combine(args.date, time.min).astimezone()
    hour, minute = args.day_end
    config = service.complete_onboarding(start_date, hour, minute)
    print(f"75 Hard starts {config.start_date.date().isoformat()}. Day ends at {config.formatted_day_end_time()}.")
    return 0


def _cmd_today(service: ChallengeService, args: argparse.Namespace) -> int:
    view = service.enter_daily_view()
    _print_daily_view(view)
    if isinstance(view.state, Failed):
        print()
        _print_failure(view.state.day)
        return EXIT_FAILED_DAY
    return 0


def _cmd_done(service: ChallengeService, args: argparse.Namespace) -> int:
    task = TaskKind(args.task)
    if task is TaskKind.PROGRESS_PICTURE:
        print("Use `seventyfive photo <image>` to take the progress picture.")
        return 1
    record = service.complete_task(task)
    print(f"Day {record.day_number}: {task.label} done ({record.completed_count}/{TOTAL_TASKS}).")
    return 0


def _cmd_photo(service: ChallengeService, args: argparse.Namespace) -> int:
    record = service.attach_photo(args.image)
    print(f"Day {record.day_number}: progress picture saved as {record.photo_ref}.")
    return 0


def _cmd_restart(service: ChallengeService, args: argparse.Namespace) -> int:
    if not _confirm("Restart from Day 1? All progress will be deleted.", args.yes):
        return 1
    view = service.restart()
    print("Challenge restarted.")
    _print_daily_view(view)
    return 0


def _cmd_reset(service: ChallengeService, args: argparse.Namespace) -> int:
    if not _confirm("Delete all progress and settings? This cannot be undone.", args.yes):
        return 1
    service.reset_challenge()
    print("Challenge reset. Run `seventyfive start` to begin again.")
    return 0


def _cmd_day_end(service: ChallengeService, args: argparse.Namespace) -> int:
    hour, minute = args.time
    config = service.update_day_end(hour, minute)
    print(f"Day now ends at {config.formatted_day_end_time()}.")
    return 0


def _cmd_history(service: ChallengeService, args: argparse.Namespace) -> int:
    statuses = service.history()
    for row_start in range(0, len(statuses), 7):
        row = statuses[row_start:row_start + 7]
        print(" ".join(f"{day:>2}{_STATUS_MARKS[status]}" for day, status in row))
    print("# complete  @ today  x incomplete  . upcoming")
    return 0


def _cmd_stats(service: ChallengeService, args: argparse.Namespace) -> int:
    stats = service.stats()
    print(f"Days completed:        {stats.days_completed} / {CHALLENGE_DAYS}")
    print(f"Total tasks completed: {stats.total_tasks_completed}")
    print(f"Progress photos:       {stats.progress_photos}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="seventyfive", description="Offline 75 Hard challenge tracker")
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the database and photos")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command")

    status = sub.add_parser("status", help="Show challenge settings and current day")
    status.set_defaults(handler=_cmd_status)

    start = sub.add_parser("start", help="Set up a new challenge")
    start.add_argument("--date", type=_parse_date, default=None, help="Start date (YYYY-MM-DD), default today")
    start.add_argument("--day-end", type=_parse_day_end, default=(0, 0), help="Day end time HH:MM, default 00:00")
    start.add_argument("-y", "--yes", action="store_true", help="Replace a running challenge without asking")
    start.set_defaults(handler=_cmd_start)

    today = sub.add_parser("today", help="Show today's checklist and check for missed days")
    today.set_defaults(handler=_cmd_today)

    done = sub.add_parser("done", help="Mark one of today's tasks done")
    done.add_argument("task", choices=[task.value for task in TaskKind])
    done.set_defaults(handler=_cmd_done)

    photo = sub.add_parser("photo", help="Save today's progress picture")
    photo.add_argument("image", type=Path)
    photo.set_defaults(handler=_cmd_photo)

    restart = sub.add_parser("restart", help="Start over from Day 1")
    restart.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    restart.set_defaults(handler=_cmd_restart)

    reset = sub.add_parser("reset", help="Delete all progress and settings")
    reset.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    reset.set_defaults(handler=_cmd_reset)

    day_end = sub.add_parser("day-end", help="Change when the day ends")
    day_end.add_argument("time", type=_parse_day_end, help="HH:MM")
    day_end.set_defaults(handler=_cmd_day_end)

    history = sub.add_parser("history", help="Show the 75-day calendar")
    history.set_defaults(handler=_cmd_history)

    stats = sub.add_parser("stats", help="Show simple counts")
    stats.set_defaults(handler=_cmd_stats)
    return parser


def main(
    argv: list[str] | None = None,
    service_factory: Callable[[Path | None], ChallengeService] = build_service,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0

    setup_logging(args.log_level, args.log_file)
    handler = getattr(args, "handler", _cmd_status)
    try:
        service = service_factory(args.data_dir)
        return handler(service, args)
    except ChallengeError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
