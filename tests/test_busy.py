# -*- coding: utf-8 -*-
"""Tests for expanding calendar state into busy intervals."""
from datetime import date, datetime, time

import pytest

from slot_scheduler.busy import (
    Exam,
    HolidayPeriod,
    OneOffBlock,
    RecurringBlock,
    busy_intervals,
    expand_calendar,
    semester_week,
)
from slot_scheduler.models import Interval, InvalidInput

# 2024-01-01 is a Monday
SEMESTER_START = date(2024, 1, 1)
FOUR_WEEKS_END = date(2024, 1, 28)


def monday_lecture(**kwargs) -> RecurringBlock:
    return RecurringBlock(
        id="lec",
        title="Algorithms Lecture",
        weekday=0,
        start_time=time(10, 0),
        end_time=time(11, 0),
        **kwargs,
    )


def expanded_days(block: RecurringBlock, holidays=()) -> list[date]:
    blocks = expand_calendar(
        SEMESTER_START, FOUR_WEEKS_END, recurring=[block], holidays=holidays, semester_start=SEMESTER_START
    )
    return [b.interval.start.date() for b in blocks]


def test_semester_week_numbering() -> None:
    assert semester_week(date(2024, 1, 1), SEMESTER_START) == 1
    assert semester_week(date(2024, 1, 7), SEMESTER_START) == 1
    assert semester_week(date(2024, 1, 8), SEMESTER_START) == 2


def test_weekly_block_expands_on_every_matching_weekday() -> None:
    blocks = expand_calendar(SEMESTER_START, date(2024, 1, 14), recurring=[monday_lecture()])

    assert [b.id for b in blocks] == ["lec@2024-01-01", "lec@2024-01-08"]
    assert blocks[0].interval == Interval(datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 11))
    assert blocks[0].kind == "class"
    assert blocks[0].title == "Algorithms Lecture"


@pytest.mark.parametrize(
    "rotation, extra, expected_days",
    [
        ("none", {}, [1, 8, 15, 22]),
        ("biweekly", {}, [1, 15]),
        ("biweekly", {"semester_week_start": 2}, [8, 22]),
        ("odd_weeks", {}, [1, 15]),
        ("even_weeks", {}, [8, 22]),
        ("custom", {"rotation_weeks": (2, 4)}, [8, 22]),
    ],
)
def test_rotations(rotation: str, extra: dict, expected_days: list[int]) -> None:
    block = monday_lecture(rotation_type=rotation, **extra)
    assert expanded_days(block) == [date(2024, 1, d) for d in expected_days]


def test_unknown_rotation_is_rejected() -> None:
    block = monday_lecture(rotation_type="fortnightly")
    with pytest.raises(InvalidInput):
        expanded_days(block)


def test_holiday_skips_recurring_blocks() -> None:
    holidays = [HolidayPeriod(name="Winter break", start_date=date(2024, 1, 8), end_date=date(2024, 1, 12))]
    assert expanded_days(monday_lecture(), holidays) == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 22)]


def test_one_off_blocks_and_exams_survive_holidays() -> None:
    holidays = [HolidayPeriod(name="Reading week", start_date=date(2024, 1, 1), end_date=date(2024, 1, 7))]
    one_off = [
        OneOffBlock(id="dentist", title="Dentist", day=date(2024, 1, 3), start_time=time(15), end_time=time(16)),
        OneOffBlock(id="later", title="Outside range", day=date(2024, 2, 3), start_time=time(15), end_time=time(16)),
    ]
    exams = [Exam(id="mid", title="Midterm", starts_at=datetime(2024, 1, 3, 9, 0))]

    blocks = expand_calendar(
        date(2024, 1, 1), date(2024, 1, 7),
        recurring=[monday_lecture()], one_off=one_off, exams=exams, holidays=holidays,
    )

    assert [b.id for b in blocks] == ["mid", "dentist"]
    assert blocks[0].interval == Interval(datetime(2024, 1, 3, 9), datetime(2024, 1, 3, 11))
    assert blocks[0].kind == "exam"


def test_expansion_is_sorted_by_start() -> None:
    recurring = [
        monday_lecture(),
        RecurringBlock(id="lab", title="Lab", weekday=0, start_time=time(8), end_time=time(9, 30)),
    ]
    blocks = expand_calendar(date(2024, 1, 1), date(2024, 1, 1), recurring=recurring)
    assert [b.id for b in blocks] == ["lab@2024-01-01", "lec@2024-01-01"]


def test_reversed_range_is_rejected() -> None:
    with pytest.raises(InvalidInput):
        expand_calendar(date(2024, 1, 2), date(2024, 1, 1))


def test_busy_intervals_flattens_blocks() -> None:
    blocks = expand_calendar(date(2024, 1, 1), date(2024, 1, 1), recurring=[monday_lecture()])
    assert busy_intervals(blocks) == [Interval(datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 11))]
