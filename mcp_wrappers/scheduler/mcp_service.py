"""
MCP wrapper for the scheduler service.

This module keeps MCP tool signatures built on the slot_scheduler dataclasses
but makes HTTP calls to the distributed scheduler service. It handles the
conversion between dataclass and Pydantic models in both directions.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime

import httpx
from fastmcp import FastMCP

# Import dataclass models for the MCP interface
from slot_scheduler.models import Interval, Placement, Task
# Import Pydantic models for HTTP serialization
from services.shared.models import (
    Interval as PydanticInterval,
    Placement as PydanticPlacement,
    Task as PydanticTask,
    AutoScheduleRequest,
    AutoScheduleResponse,
    FindSlotRequest,
    FindSlotResponse,
    ScheduleTasksRequest,
)

logger = logging.getLogger(__name__)

mcp = FastMCP("SchedulerMCPWrapper")

# Service URL - configurable via environment variable
SCHEDULER_SERVICE_URL = os.getenv("SCHEDULER_SERVICE_URL", "http://localhost:8004")

# Timeout settings for fast operations (in seconds)
STANDARD_TIMEOUT = 30.0


def _client() -> httpx.Client:
    return httpx.Client(timeout=STANDARD_TIMEOUT)


def _pydantic_to_dataclass_placement(placement: PydanticPlacement) -> Placement:
    """Convert a Pydantic Placement back to the dataclass used by MCP tools."""
    return Placement(
        task_id=placement.task_id,
        interval=Interval(placement.interval.start, placement.interval.end),
        title=placement.title,
    )


def _to_pydantic_task(task: Task) -> PydanticTask:
    return PydanticTask(
        id=task.id,
        title=task.title,
        duration_minutes=task.duration_minutes,
        due_by=task.due_by,
        priority=task.priority,
    )


def _post(path: str, payload: dict, action: str) -> httpx.Response:
    """POST to the scheduler service, turning transport failures into RuntimeError."""
    try:
        with _client() as client:
            response = client.post(f"{SCHEDULER_SERVICE_URL}{path}", json=payload)
            response.raise_for_status()
        return response

    except httpx.TimeoutException:
        raise RuntimeError(f"{action} timed out after {STANDARD_TIMEOUT} seconds")
    except httpx.HTTPStatusError as e:
        raise RuntimeError(f"HTTP error from scheduler service: {e.response.status_code} {e.response.text}")
    except Exception as e:
        raise RuntimeError(f"Error calling scheduler service: {str(e)}")


def _find_slot(
    duration_minutes: int,
    busy: list[Interval],
    search_start: str = "",
) -> str:
    """
    Find the next available slot.

    Keeps the MCP tool signature but asks the scheduler service over HTTP.
    """
    request = FindSlotRequest(
        duration_minutes=duration_minutes,
        busy=[PydanticInterval.from_domain(interval) for interval in busy],
        search_start=datetime.fromisoformat(search_start) if search_start else None,
    )
    response = _post("/scheduler/slot", request.model_dump(mode="json"), "Slot search")
    return FindSlotResponse(**response.json()).start.isoformat()


def _schedule_tasks(
    tasks: list[Task],
    busy: list[Interval],
    start: str = "",
) -> list[Placement]:
    """
    Place tasks one after another around the given busy intervals.
    """
    request = ScheduleTasksRequest(
        tasks=[_to_pydantic_task(task) for task in tasks],
        busy=[PydanticInterval.from_domain(interval) for interval in busy],
        start=datetime.fromisoformat(start) if start else None,
    )
    response = _post("/scheduler/sequence", request.model_dump(mode="json"), "Task sequencing")
    return [_pydantic_to_dataclass_placement(PydanticPlacement(**item)) for item in response.json()]


def _auto_schedule(
    user_id: str,
    tasks: list[Task],
    start: str = "",
) -> list[Placement]:
    """
    Schedule tasks onto a student's stored calendar and save them.

    Placements the service could not save are logged and left out of the result.
    """
    request = AutoScheduleRequest(
        tasks=[_to_pydantic_task(task) for task in tasks],
        start=datetime.fromisoformat(start) if start else None,
    )
    response = _post(f"/calendar/{user_id}/auto-schedule", request.model_dump(mode="json"), "Auto-schedule")
    result = AutoScheduleResponse(**response.json())
    if result.failed_task_ids:
        logger.warning("Scheduler service could not save: %s", ", ".join(result.failed_task_ids))
    return [
        _pydantic_to_dataclass_placement(p) for p in result.placements
        if p.task_id not in result.failed_task_ids
    ]


@mcp.tool()
def find_slot(duration_minutes: int, busy: list[Interval], search_start: str = "") -> str:
    """Find the next available slot for a duration around busy intervals."""
    return _find_slot(duration_minutes, busy, search_start)


@mcp.tool()
def schedule_tasks(tasks: list[Task], busy: list[Interval], start: str = "") -> list[Placement]:
    """Place tasks one after another around busy intervals."""
    return _schedule_tasks(tasks, busy, start)


@mcp.tool()
def auto_schedule(user_id: str, tasks: list[Task], start: str = "") -> list[Placement]:
    """Schedule tasks onto a student's stored calendar and save them."""
    return _auto_schedule(user_id, tasks, start)


if __name__ == "__main__":
    mcp.run()
