"""
Busy-interval provider.

Expands a student's calendar (recurring class blocks with rotations, one-off
blocks, exams) into concrete datetime blocks for a date range, skipping
recurring blocks that fall inside a holiday period.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from slot_scheduler.models import Interval, InvalidInput

BlockKind = t.Literal["class", "exam", "study", "event", "task"]
RotationType = t.Literal["none", "weekly", "biweekly", "odd_weeks", "even_weeks", "custom"]

DEFAULT_EXAM_MINUTES = 120


@dataclass(frozen=True)
class CalendarBlock:
    """A concrete busy block on a specific date."""
    id: str
    title: str
    interval: Interval
    kind: BlockKind = "event"


@dataclass(frozen=True)
class RecurringBlock:
    """A weekly block such as a lecture. ``weekday`` follows ``date.weekday()`` (Monday is 0)."""
    id: str
    title: str
    weekday: int
    start_time: time
    end_time: time
    rotation_type: RotationType = "weekly"
    rotation_weeks: tuple[int, ...] = field(default_factory=tuple)
    semester_week_start: int = 1
    kind: BlockKind = "class"

    def occurs_in_week(self, semester_week: int) -> bool:
        """Whether the rotation puts this block in the given semester week (1-based)."""
        if self.rotation_type in ("none", "weekly"):
            return True
        if self.rotation_type == "biweekly":
            return semester_week >= self.semester_week_start and (semester_week - self.semester_week_start) % 2 == 0
        if self.rotation_type == "odd_weeks":
            return semester_week % 2 == 1
        if self.rotation_type == "even_weeks":
            return semester_week % 2 == 0
        if self.rotation_type == "custom":
            return semester_week in self.rotation_weeks
        raise InvalidInput(f"Unknown rotation type: {self.rotation_type}")


@dataclass(frozen=True)
class OneOffBlock:
    """A block on a single date."""
    id: str
    title: str
    day: date
    start_time: time
    end_time: time
    kind: BlockKind = "event"


@dataclass(frozen=True)
class Exam:
    id: str
    title: str
    starts_at: datetime
    duration_minutes: int = DEFAULT_EXAM_MINUTES


@dataclass(frozen=True)
class HolidayPeriod:
    """A break during which recurring classes do not meet. Both dates are inclusive."""
    name: str
    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def semester_week(day: date, semester_start: date) -> int:
    """1-based week number of ``day`` counted from ``semester_start``."""
    return (day - semester_start).days // 7 + 1


def _on(day: date, start_time: time, end_time: time) -> Interval:
    return Interval(datetime.combine(day, start_time), datetime.combine(day, end_time))


def expand_calendar(
        start_date: date,
        end_date: date,
        recurring: t.Iterable[RecurringBlock] = (),
        one_off: t.Iterable[OneOffBlock] = (),
        exams: t.Iterable[Exam] = (),
        holidays: t.Iterable[HolidayPeriod] = (),
        semester_start: t.Optional[date] = None,
) -> list[CalendarBlock]:
    """Flatten calendar state into concrete blocks for an inclusive date range.

    :param start_date: First day of the range.
    :param end_date: Last day of the range.
    :param recurring: Weekly blocks, expanded on every matching weekday.
    :param one_off: Single-date blocks.
    :param exams: Exams, each becoming a block of its own duration.
    :param holidays: Periods on which recurring blocks are skipped.
    :param semester_start: Day on which semester week 1 begins. Defaults to ``start_date``.
    :return: Blocks sorted by start time.
    """
    if end_date < start_date:
        raise InvalidInput(f"Date range is reversed: {start_date} > {end_date}")

    recurring = list(recurring)
    holidays = list(holidays)
    week_origin = semester_start or start_date
    blocks: list[CalendarBlock] = []

    day = start_date
    while day <= end_date:
        if not any(holiday.contains(day) for holiday in holidays):
            week = semester_week(day, week_origin)
            for block in recurring:
                if block.weekday == day.weekday() and block.occurs_in_week(week):
                    blocks.append(CalendarBlock(
                        id=f"{block.id}@{day.isoformat()}",
                        title=block.title,
                        interval=_on(day, block.start_time, block.end_time),
                        kind=block.kind,
                    ))
        day += timedelta(days=1)

    for block in one_off:
        if start_date <= block.day <= end_date:
            blocks.append(CalendarBlock(
                id=block.id,
                title=block.title,
                interval=_on(block.day, block.start_time, block.end_time),
                kind=block.kind,
            ))

    for exam in exams:
        if start_date <= exam.starts_at.date() <= end_date:
            blocks.append(CalendarBlock(
                id=exam.id,
                title=exam.title,
                interval=Interval(exam.starts_at, exam.starts_at + timedelta(minutes=exam.duration_minutes)),
                kind="exam",
            ))

    return sorted(blocks, key=lambda b: (b.interval.start, b.interval.end))


def busy_intervals(blocks: t.Iterable[CalendarBlock]) -> list[Interval]:
    """Strip calendar blocks down to the intervals the scheduler needs."""
    return [block.interval for block in blocks]
