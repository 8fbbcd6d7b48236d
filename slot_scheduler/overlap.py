"""Half-open interval primitives shared by the scheduler and the calendar store."""
from __future__ import annotations

import typing as t

from slot_scheduler.models import Interval

if t.TYPE_CHECKING:
    from slot_scheduler.busy import CalendarBlock


def intervals_overlap(a: Interval, b: Interval) -> bool:
    """Check whether two [start, end) ranges conflict.

    A range ending exactly when the other begins is not a conflict.
    """
    return a.start < b.end and a.end > b.start


def overlaps_any(candidate: Interval, busy: t.Iterable[Interval]) -> bool:
    """True if ``candidate`` conflicts with at least one busy interval."""
    return any(intervals_overlap(candidate, other) for other in busy)


def find_conflicts(
        candidate: Interval,
        blocks: t.Iterable[CalendarBlock],
        exclude_id: t.Optional[str] = None,
) -> list[CalendarBlock]:
    """Return the calendar blocks that overlap ``candidate``.

    :param candidate: The interval being tested.
    :param blocks: Concrete calendar blocks to test against.
    :param exclude_id: Id of a block to ignore, usually the one being moved.
    :return: Conflicting blocks in their original order.
    """
    return [
        block for block in blocks
        if block.id != exclude_id and intervals_overlap(candidate, block.interval)
    ]


def merge_intervals(intervals: t.Iterable[Interval]) -> list[Interval]:
    """Sort and coalesce overlapping or touching intervals."""
    merged: list[Interval] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = Interval(last.start, interval.end)
        else:
            merged.append(interval)
    return merged
