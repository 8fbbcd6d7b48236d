# -*- coding: utf-8 -*-
"""In-memory calendar store: the busy-interval source and the schedule sink."""
from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass, field
from datetime import date, timedelta

from slot_scheduler.busy import (
    CalendarBlock,
    Exam,
    HolidayPeriod,
    OneOffBlock,
    RecurringBlock,
    expand_calendar,
)
from slot_scheduler.models import Interval, Placement

logger = logging.getLogger(__name__)


@dataclass
class ScheduleEntry:
    """A placement that has been written to the student's calendar."""
    task_id: str
    title: str
    interval: Interval


@dataclass
class CalendarState:
    """Everything the store knows about one student's calendar."""
    recurring: list[RecurringBlock] = field(default_factory=list)
    one_off: list[OneOffBlock] = field(default_factory=list)
    exams: list[Exam] = field(default_factory=list)
    holidays: list[HolidayPeriod] = field(default_factory=list)
    entries: list[ScheduleEntry] = field(default_factory=list)
    semester_start: t.Optional[date] = None


# In-memory storage keyed by user id
# In a real application, this would be replaced with a persistent database
_calendars: dict[str, CalendarState] = {}


def get_state(user_id: str) -> CalendarState:
    """Return the calendar state for a student, creating an empty one if needed."""
    return _calendars.setdefault(user_id, CalendarState())


def reset() -> None:
    """Forget every stored calendar."""
    _calendars.clear()


def blocks_between(user_id: str, start_date: date, end_date: date) -> list[CalendarBlock]:
    """Concrete calendar blocks, including saved schedule entries, for an inclusive date range."""
    state = get_state(user_id)
    blocks = expand_calendar(
        start_date,
        end_date,
        recurring=state.recurring,
        one_off=state.one_off,
        exams=state.exams,
        holidays=state.holidays,
        semester_start=state.semester_start,
    )
    for entry in state.entries:
        if entry.interval.start.date() <= end_date and entry.interval.end.date() >= start_date:
            blocks.append(CalendarBlock(id=entry.task_id, title=entry.title, interval=entry.interval, kind="task"))
    return sorted(blocks, key=lambda b: (b.interval.start, b.interval.end))


def busy_between(user_id: str, start_date: date, end_date: date) -> list[Interval]:
    """Busy intervals for a student over an inclusive date range."""
    return [block.interval for block in blocks_between(user_id, start_date, end_date)]


def busy_for_days(user_id: str, start_date: date, days: int) -> list[Interval]:
    return busy_between(user_id, start_date, start_date + timedelta(days=days - 1))


def save_placement(user_id: str, placement: Placement, title: str = "") -> bool:
    """Write a placement as a schedule entry.

    :param user_id: Owner of the calendar.
    :param placement: The placement to persist.
    :param title: Display title. Defaults to the placement's title.
    :return: False, without writing, if the entry would overlap an existing one.
    """
    state = get_state(user_id)
    if any(entry.interval.overlaps(placement.interval) for entry in state.entries):
        logger.warning("Rejected schedule entry %s for %s: overlaps an existing entry", placement.task_id, user_id)
        return False
    state.entries.append(ScheduleEntry(
        task_id=placement.task_id,
        title=title or placement.title,
        interval=placement.interval,
    ))
    return True


def list_entries(user_id: str) -> list[ScheduleEntry]:
    return sorted(get_state(user_id).entries, key=lambda e: e.interval.start)
