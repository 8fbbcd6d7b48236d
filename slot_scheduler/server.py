# -*- coding: utf-8 -*-
import logging
import typing as t
from datetime import date, datetime

from fastmcp import FastMCP

from slot_scheduler import store
from slot_scheduler.models import Interval, Placement, Task, WorkingHours
from slot_scheduler.scheduler import (
    find_free_gaps,
    find_next_available_slot,
    plan_study_sessions,
    schedule_sequentially,
)

logger = logging.getLogger(__name__)

mcp = FastMCP("SlotScheduler")

# How far ahead busy intervals are loaded for a scheduling run
HORIZON_DAYS = 14


def _parse_start(value: str) -> t.Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _find_slot(
        user_id: str,
        duration_minutes: int,
        search_start: str = "",
        work_start_hour: int = 8,
        work_end_hour: int = 21,
) -> str:
    """Finds the next free slot on a student's calendar.

    :param user_id: The student whose calendar is searched.
    :param duration_minutes: Length of the slot.
    :param search_start: ISO datetime to search from (optional, defaults to the next full hour).
    :return: ISO start time of the slot.
    """
    start = _parse_start(search_start)
    first_day = (start or datetime.now()).date()
    busy = store.busy_for_days(user_id, first_day, HORIZON_DAYS)
    slot = find_next_available_slot(
        duration_minutes, busy, start, WorkingHours(work_start_hour, work_end_hour)
    )
    return slot.isoformat()


def _auto_schedule_tasks(user_id: str, tasks: list[Task], start: str = "") -> list[Placement]:
    """Schedules tasks back to back around the student's calendar and saves them.

    :param user_id: The student whose calendar is used.
    :param tasks: Tasks in priority order.
    :param start: ISO datetime for the first task (optional).
    :return: The placements, in task order.
    """
    cursor = _parse_start(start)
    first_day = (cursor or datetime.now()).date()
    busy = store.busy_for_days(user_id, first_day, HORIZON_DAYS)
    placements = schedule_sequentially(tasks, busy, cursor)
    for placement in placements:
        if not store.save_placement(user_id, placement):
            logger.warning("Could not save placement for task %s", placement.task_id)
    return placements


def _plan_study_sessions_for(
        user_id: str,
        exam_id: str,
        total_minutes: int,
        session_minutes: int = 60,
) -> list[Placement]:
    """Plans and saves study sessions before one of the student's exams.

    :param user_id: The student.
    :param exam_id: Id of a stored exam.
    :param total_minutes: Total study time wanted.
    :param session_minutes: Length of each session.
    :return: The session placements that were saved.
    """
    state = store.get_state(user_id)
    exam = next((e for e in state.exams if e.id == exam_id), None)
    if exam is None:
        raise ValueError(f"Unknown exam: {exam_id}")

    today = date.today()
    busy = store.busy_between(user_id, today, max(today, exam.starts_at.date()))
    placements = plan_study_sessions(
        exam.title,
        total_minutes,
        exam.starts_at,
        busy,
        session_minutes=session_minutes,
        id_prefix=exam.id,
    )
    saved = []
    for placement in placements:
        if store.save_placement(user_id, placement):
            saved.append(placement)
        else:
            logger.warning("Could not save study session %s", placement.task_id)
    return saved


def _list_free_gaps(user_id: str, day: str, min_minutes: int = 30) -> list[Interval]:
    """Lists free stretches in a student's working day.

    :param user_id: The student.
    :param day: ISO date (YYYY-MM-DD).
    :param min_minutes: Shortest gap worth reporting.
    """
    target = date.fromisoformat(day)
    busy = store.busy_between(user_id, target, target)
    return find_free_gaps(target, busy, min_minutes=min_minutes)


def _format_datetime(moment: datetime) -> str:
    # Format: 'Mon 1/15 2:30 PM'
    return moment.strftime("%a %-m/%-d %-I:%M %p")


def format_placements(items: t.Sequence[t.Union[Placement, store.ScheduleEntry]]) -> str:
    """Formats placements or saved entries as a clean table.

    :param items: Anything with ``task_id``, ``title`` and ``interval``.
    :return: Formatted table string.
    """
    if not items:
        return "🗓️ Nothing scheduled."

    lines = []
    lines.append("🗓️ SCHEDULE")
    lines.append("=" * 100)
    lines.append(f"{'#':<4} {'Task':<20} {'Title':<35} {'Start':<18} {'End':<18}")
    lines.append("-" * 100)

    for idx, item in enumerate(items, 1):
        task_id = item.task_id[:19] if len(item.task_id) > 19 else item.task_id
        title = item.title[:34] if len(item.title) > 34 else (item.title or "—")
        lines.append(
            f"{idx:<4} {task_id:<20} {title:<35} {_format_datetime(item.interval.start):<18} "
            f"{_format_datetime(item.interval.end):<18}"
        )

    lines.append("=" * 100)
    lines.append(f"Total: {len(items)} item(s)")
    return "\n".join(lines)


@mcp.tool()
def find_slot(
        user_id: str,
        duration_minutes: int,
        search_start: str = "",
        work_start_hour: int = 8,
        work_end_hour: int = 21,
) -> str:
    """Find the next free slot on a student's calendar."""
    return _find_slot(user_id, duration_minutes, search_start, work_start_hour, work_end_hour)


@mcp.tool()
def auto_schedule_tasks(user_id: str, tasks: list[Task], start: str = "") -> list[Placement]:
    """Schedule tasks back to back around the student's calendar and save them."""
    return _auto_schedule_tasks(user_id, tasks, start)


@mcp.tool()
def plan_study_sessions_for(
        user_id: str,
        exam_id: str,
        total_minutes: int,
        session_minutes: int = 60,
) -> list[Placement]:
    """Plan and save study sessions before one of the student's exams."""
    return _plan_study_sessions_for(user_id, exam_id, total_minutes, session_minutes)


@mcp.tool()
def list_free_gaps(user_id: str, day: str, min_minutes: int = 30) -> list[Interval]:
    """List free stretches in a student's working day."""
    return _list_free_gaps(user_id, day, min_minutes)


@mcp.tool()
def show_schedule(user_id: str) -> str:
    """Display a student's saved schedule entries as a formatted table."""
    return format_placements(store.list_entries(user_id))


if __name__ == "__main__":
    mcp.run()
