# -*- coding: utf-8 -*-
"""Tests for the half-open interval primitives."""
from datetime import datetime

import pytest

from slot_scheduler.busy import CalendarBlock
from slot_scheduler.models import Interval, InvalidInput
from slot_scheduler.overlap import find_conflicts, intervals_overlap, merge_intervals, overlaps_any


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2024, 1, day, hour, minute)


BUSY = Interval(at(10), at(11))


def test_adjacent_interval_is_not_a_conflict() -> None:
    """An interval starting exactly when another ends does not overlap it."""
    assert not intervals_overlap(BUSY, Interval(at(11), at(12)))
    assert not intervals_overlap(Interval(at(9), at(10)), BUSY)


def test_one_minute_overlap_is_a_conflict() -> None:
    assert intervals_overlap(BUSY, Interval(at(10, 59), at(11, 59)))
    assert intervals_overlap(BUSY, Interval(at(9, 1), at(10, 1)))


def test_containment_in_either_direction_is_a_conflict() -> None:
    assert intervals_overlap(BUSY, Interval(at(10, 15), at(10, 45)))
    assert intervals_overlap(Interval(at(10, 15), at(10, 45)), BUSY)
    assert intervals_overlap(BUSY, Interval(at(9), at(12)))


def test_overlap_method_matches_function() -> None:
    candidate = Interval(at(10, 30), at(11, 30))
    assert candidate.overlaps(BUSY) == intervals_overlap(candidate, BUSY)


def test_overlaps_any() -> None:
    busy = [Interval(at(8), at(9)), BUSY]
    assert overlaps_any(Interval(at(10, 30), at(11)), busy)
    assert not overlaps_any(Interval(at(9), at(10)), busy)
    assert not overlaps_any(Interval(at(9), at(10)), [])


def test_interval_rejects_empty_or_reversed_range() -> None:
    with pytest.raises(InvalidInput):
        Interval(at(10), at(10))
    with pytest.raises(InvalidInput):
        Interval(at(11), at(10))


def test_find_conflicts_skips_excluded_block() -> None:
    blocks = [
        CalendarBlock(id="lecture", title="Lecture", interval=BUSY, kind="class"),
        CalendarBlock(id="study", title="Study", interval=Interval(at(10, 30), at(11, 30)), kind="study"),
        CalendarBlock(id="lunch", title="Lunch", interval=Interval(at(12), at(13))),
    ]
    candidate = Interval(at(10, 45), at(11, 15))

    assert [b.id for b in find_conflicts(candidate, blocks)] == ["lecture", "study"]
    assert [b.id for b in find_conflicts(candidate, blocks, exclude_id="study")] == ["lecture"]


def test_merge_intervals_coalesces_overlapping_and_touching() -> None:
    merged = merge_intervals([
        Interval(at(13), at(14)),
        Interval(at(9), at(10)),
        Interval(at(9, 30), at(10, 30)),
        Interval(at(10, 30), at(11)),
        Interval(at(9, 45), at(10)),
    ])
    assert merged == [Interval(at(9), at(11)), Interval(at(13), at(14))]
