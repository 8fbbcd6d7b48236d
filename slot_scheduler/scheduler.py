"""
Recommended time slot scheduling.

The functions here are pure: every piece of state (the busy set, the search
start, the clock) is passed in by the caller and nothing is remembered
between calls. Reading calendar state and writing the resulting schedule
entries is left to ``slot_scheduler.store`` and the service layers.
"""
from __future__ import annotations

import logging
import math
import typing as t
from datetime import date, datetime, time, timedelta

from slot_scheduler.busy import CalendarBlock
from slot_scheduler.models import (
    Interval,
    InvalidInput,
    MoveBoundaries,
    MoveValidation,
    Placement,
    Task,
    WorkingHours,
)
from slot_scheduler.overlap import find_conflicts, merge_intervals, overlaps_any

logger = logging.getLogger(__name__)

Clock = t.Callable[[], datetime]

MAX_SEARCH_ATTEMPTS = 100
SLOT_GRANULARITY_MINUTES = 30
BUFFER_MINUTES = 15
FALLBACK_HOUR = 9

DEFAULT_HOURS = WorkingHours()


def _at_hour(day: t.Union[date, datetime], hour: int) -> datetime:
    """Midnight of ``day`` plus ``hour`` hours (hour 24 is the next midnight)."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time()) + timedelta(hours=hour)


def _ceil_to_hour(moment: datetime) -> datetime:
    floored = moment.replace(minute=0, second=0, microsecond=0)
    if floored == moment:
        return floored
    return floored + timedelta(hours=1)


def _clamp_to_window(candidate: datetime, duration: timedelta, hours: WorkingHours) -> datetime:
    """Move ``candidate`` into the working window it belongs to, or the next day's."""
    day_start = _at_hour(candidate, hours.start_hour)
    day_end = _at_hour(candidate, hours.end_hour)
    if candidate < day_start:
        return day_start
    if candidate >= day_end or candidate + duration > day_end:
        return _at_hour(candidate + timedelta(days=1), hours.start_hour)
    return candidate


def fallback_slot(clock: Clock = datetime.now) -> datetime:
    """Tomorrow at 09:00, relative to ``clock()``."""
    return _at_hour(clock() + timedelta(days=1), FALLBACK_HOUR)


def find_next_available_slot(
        duration_minutes: int,
        busy: t.Iterable[Interval],
        search_start: t.Optional[datetime] = None,
        hours: WorkingHours = DEFAULT_HOURS,
        clock: Clock = datetime.now,
) -> datetime:
    """Find the start of the next conflict-free slot inside working hours.

    The search walks forward from ``search_start`` in 30 minute steps, snapping
    into the daily working window, for at most ``MAX_SEARCH_ATTEMPTS`` steps.
    When nothing fits it returns tomorrow at 09:00 instead of failing.

    :param duration_minutes: Length of the slot, must be positive.
    :param busy: Intervals that are already committed.
    :param search_start: Where to begin. Defaults to ``clock()`` rounded up to the next full hour.
    :param hours: The daily working window.
    :param clock: Time source used for the default start and the fallback.
    :return: Start of the chosen slot.
    :raises InvalidInput: If ``duration_minutes`` is not positive.
    """
    if duration_minutes <= 0:
        raise InvalidInput(f"Duration must be positive, got {duration_minutes} minutes")

    busy = list(busy)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=SLOT_GRANULARITY_MINUTES)
    candidate = _ceil_to_hour(clock()) if search_start is None else search_start

    for _ in range(MAX_SEARCH_ATTEMPTS):
        candidate = _clamp_to_window(candidate, duration, hours)
        end = candidate + duration
        # Only false when the duration is longer than the whole window.
        fits_window = end <= _at_hour(candidate, hours.end_hour)
        if fits_window and not overlaps_any(Interval(candidate, end), busy):
            return candidate
        candidate += step

    fallback = fallback_slot(clock)
    logger.debug(
        "No %d minute slot found within %d attempts, falling back to %s",
        duration_minutes, MAX_SEARCH_ATTEMPTS, fallback.isoformat(),
    )
    return fallback


def schedule_sequentially(
        tasks: t.Sequence[Task],
        busy: t.Iterable[Interval],
        start: t.Optional[datetime] = None,
        hours: WorkingHours = DEFAULT_HOURS,
        clock: Clock = datetime.now,
) -> list[Placement]:
    """Place tasks one after another, in the order given.

    Each placed interval is added to a private copy of the busy set before the
    next task is searched, and the search cursor moves to the end of the last
    placement plus a 15 minute buffer.

    :param tasks: Tasks in priority order. Not mutated.
    :param busy: Initial busy intervals. Not mutated.
    :param start: Cursor for the first task. Defaults to "now" rounded up to the hour.
    :return: One placement per task, in input order.
    """
    placed_busy = list(busy)
    cursor = start
    placements: list[Placement] = []

    for task in tasks:
        slot_start = find_next_available_slot(task.duration_minutes, placed_busy, cursor, hours, clock)
        interval = Interval(slot_start, slot_start + timedelta(minutes=task.duration_minutes))
        placements.append(Placement(task_id=task.id, interval=interval, title=task.title))
        placed_busy.append(interval)
        cursor = interval.end + timedelta(minutes=BUFFER_MINUTES)
        logger.debug("Placed task %s at %s", task.id, interval.start.isoformat())

    return placements


def find_free_gaps(
        day: date,
        busy: t.Iterable[Interval],
        hours: WorkingHours = DEFAULT_HOURS,
        min_minutes: int = 30,
) -> list[Interval]:
    """List the free stretches inside one day's working window.

    Busy intervals straddling the window edges are clipped to it, and gaps
    shorter than ``min_minutes`` are dropped.
    """
    window_start = _at_hour(day, hours.start_hour)
    window_end = _at_hour(day, hours.end_hour)

    clipped = [
        Interval(max(interval.start, window_start), min(interval.end, window_end))
        for interval in busy
        if interval.start < window_end and interval.end > window_start
    ]

    gaps: list[Interval] = []
    cursor = window_start
    for interval in merge_intervals(clipped):
        if interval.start > cursor:
            gaps.append(Interval(cursor, interval.start))
        cursor = max(cursor, interval.end)
    if cursor < window_end:
        gaps.append(Interval(cursor, window_end))

    return [gap for gap in gaps if gap.duration_minutes >= min_minutes]


def plan_study_sessions(
        title: str,
        total_minutes: int,
        due_by: datetime,
        busy: t.Iterable[Interval],
        start: t.Optional[datetime] = None,
        session_minutes: int = 60,
        hours: WorkingHours = DEFAULT_HOURS,
        clock: Clock = datetime.now,
        id_prefix: t.Optional[str] = None,
) -> list[Placement]:
    """Spread study sessions for an exam or assignment over the days before it.

    Sessions go on the days from ``start`` up to the day before ``due_by``,
    spaced evenly, so two sessions only share a day when there are fewer days
    than sessions. The last session carries any remainder of ``total_minutes``.
    A session that cannot end by ``due_by`` is dropped, so fewer placements
    than requested may come back.

    :param title: Used for the placement titles.
    :param total_minutes: Total study time wanted.
    :param due_by: The exam start or assignment deadline.
    :param busy: Committed intervals. Not mutated.
    :param start: Earliest moment a session may begin. Defaults to ``clock()``.
    :param session_minutes: Length of a full session.
    :param id_prefix: Prefix for generated task ids. Defaults to ``title``.
    :return: The session placements in chronological order of their days.
    """
    if total_minutes <= 0 or session_minutes <= 0:
        raise InvalidInput("Study time and session length must be positive")

    begin = start if start is not None else clock()
    prefix = id_prefix or title
    count = math.ceil(total_minutes / session_minutes)

    first_day = begin.date()
    last_day = due_by.date() - timedelta(days=1)
    if last_day < first_day:
        last_day = max(due_by.date(), first_day)
    days = [first_day + timedelta(days=n) for n in range((last_day - first_day).days + 1)]

    placed_busy = list(busy)
    placements: list[Placement] = []
    remaining = total_minutes
    cursor = begin

    for index in range(count):
        minutes = min(session_minutes, remaining)
        remaining -= minutes
        day = days[index * len(days) // count]
        search_from = max(_at_hour(day, hours.start_hour), cursor)

        slot_start = find_next_available_slot(minutes, placed_busy, search_from, hours, clock)
        interval = Interval(slot_start, slot_start + timedelta(minutes=minutes))
        if interval.end > due_by:
            logger.warning("Dropped study session %d for %s: no slot ends by %s", index + 1, title, due_by.isoformat())
            continue
        placements.append(Placement(
            task_id=f"{prefix}-session-{index + 1}",
            interval=interval,
            title=f"Study: {title}",
        ))
        placed_busy.append(interval)
        cursor = interval.end + timedelta(minutes=BUFFER_MINUTES)

    logger.info("Planned %d study session(s) for %s before %s", len(placements), title, due_by.isoformat())
    return placements


def validate_move(
        block_id: t.Optional[str],
        target: Interval,
        blocks: t.Iterable[CalendarBlock],
        hours: WorkingHours = DEFAULT_HOURS,
        boundaries: MoveBoundaries = MoveBoundaries(),
        clock: Clock = datetime.now,
) -> MoveValidation:
    """Check whether a block can be dropped onto ``target``.

    Failures carry a human readable reason and, where moving elsewhere could
    help, the start of the next available slot for the same duration.

    :param block_id: Id of the block being moved, ignored when testing conflicts.
    :param target: The proposed new interval.
    :param blocks: Every block currently on the calendar.
    """
    blocks = list(blocks)
    others = [block.interval for block in blocks if block.id != block_id]
    duration = target.duration_minutes

    def suggest(search_start: t.Optional[datetime]) -> datetime:
        return find_next_available_slot(duration, others, search_start, hours, clock)

    if not boundaries.allow_past and target.start < clock():
        return MoveValidation(False, "Cannot schedule events in the past", suggest(None))

    if not hours.start_hour <= target.start.hour < hours.end_hour:
        return MoveValidation(
            False,
            f"Events must be between {hours.start_hour}:00 and {hours.end_hour}:00",
            suggest(target.start),
        )

    if target.end > _at_hour(target.start, hours.end_hour):
        return MoveValidation(False, f"Event would extend beyond {hours.end_hour}:00", suggest(target.start))

    if not boundaries.allow_weekends and target.start.weekday() >= 5:
        monday = target.start.date() + timedelta(days=7 - target.start.weekday())
        return MoveValidation(False, "Weekend scheduling is not allowed", suggest(_at_hour(monday, hours.start_hour)))

    if duration < boundaries.min_minutes:
        return MoveValidation(False, f"Event duration must be at least {boundaries.min_minutes} minutes")

    if duration > boundaries.max_minutes:
        return MoveValidation(False, f"Event duration cannot exceed {boundaries.max_minutes / 60:g} hours")

    conflicts = find_conflicts(target, blocks, exclude_id=block_id)
    if conflicts:
        titles = ", ".join(block.title for block in conflicts)
        return MoveValidation(False, f"Conflicts with: {titles}", suggest(target.start))

    return MoveValidation(True)
