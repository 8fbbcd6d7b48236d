"""
FastAPI service for slot scheduling operations.

This service exposes the pure scheduling functions from slot_scheduler as
REST endpoints, plus calendar endpoints that read busy intervals from the
in-memory store and write the resulting schedule entries back to it.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

from fastapi import FastAPI, HTTPException

from slot_scheduler import store
from slot_scheduler.busy import CalendarBlock as DomainCalendarBlock
from slot_scheduler.models import InvalidInput, MoveBoundaries
from slot_scheduler.scheduler import (
    find_free_gaps,
    find_next_available_slot,
    plan_study_sessions,
    schedule_sequentially,
    validate_move,
)
from services.shared.models import (
    Interval as PydanticInterval,
    Placement as PydanticPlacement,
    AutoScheduleRequest,
    AutoScheduleResponse,
    CalendarStateRequest,
    FindSlotRequest,
    FindSlotResponse,
    FreeGapsRequest,
    ScheduleTasksRequest,
    StudySessionsRequest,
    ValidateMoveRequest,
    ValidateMoveResponse,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SERVICE_PORT = int(os.getenv("SCHEDULER_SERVICE_PORT", "8004"))

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Scheduler service starting")
    yield
    logger.info("Scheduler service shutting down")


app = FastAPI(
    title="Scheduler Service",
    description="REST API for conflict-free slot finding and study session planning",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "scheduler-service"}


@app.post("/scheduler/slot", response_model=FindSlotResponse)
async def find_slot(request: FindSlotRequest) -> FindSlotResponse:
    """
    Find the next conflict-free slot for a duration.

    Falls back to tomorrow at 09:00 when the search bound is exhausted.
    """
    try:
        start = find_next_available_slot(
            request.duration_minutes,
            [interval.to_domain() for interval in request.busy],
            request.search_start,
            request.hours.to_domain(),
        )
        return FindSlotResponse(start=start, end=start + timedelta(minutes=request.duration_minutes))

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error finding slot: {str(e)}")


@app.post("/scheduler/sequence", response_model=list[PydanticPlacement])
async def sequence_tasks(request: ScheduleTasksRequest) -> list[PydanticPlacement]:
    """
    Place tasks one after another in the order given.

    Every task receives a placement; each later task avoids all earlier ones.
    """
    try:
        placements = schedule_sequentially(
            [task.to_domain() for task in request.tasks],
            [interval.to_domain() for interval in request.busy],
            request.start,
            request.hours.to_domain(),
        )
        return [PydanticPlacement.from_domain(p) for p in placements]

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sequencing tasks: {str(e)}")


@app.post("/scheduler/study-sessions", response_model=list[PydanticPlacement])
async def study_sessions(request: StudySessionsRequest) -> list[PydanticPlacement]:
    """
    Spread study sessions across the days before a deadline.
    """
    try:
        placements = plan_study_sessions(
            request.title,
            request.total_minutes,
            request.due_by,
            [interval.to_domain() for interval in request.busy],
            start=request.start,
            session_minutes=request.session_minutes,
            hours=request.hours.to_domain(),
        )
        return [PydanticPlacement.from_domain(p) for p in placements]

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error planning study sessions: {str(e)}")


@app.post("/scheduler/free-gaps", response_model=list[PydanticInterval])
async def free_gaps(request: FreeGapsRequest) -> list[PydanticInterval]:
    """
    List the free stretches inside one day's working window.
    """
    try:
        gaps = find_free_gaps(
            request.day,
            [interval.to_domain() for interval in request.busy],
            request.hours.to_domain(),
            request.min_minutes,
        )
        return [PydanticInterval.from_domain(gap) for gap in gaps]

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listing free gaps: {str(e)}")


@app.post("/scheduler/validate-move", response_model=ValidateMoveResponse)
async def validate_block_move(request: ValidateMoveRequest) -> ValidateMoveResponse:
    """
    Check whether a calendar block can be dropped onto a new time.
    """
    try:
        blocks = [
            DomainCalendarBlock(id=b.id, title=b.title, interval=b.interval.to_domain(), kind=b.kind)
            for b in request.blocks
        ]
        result = validate_move(
            request.block_id,
            request.target.to_domain(),
            blocks,
            request.hours.to_domain(),
            MoveBoundaries(allow_weekends=request.allow_weekends, allow_past=request.allow_past),
        )
        return ValidateMoveResponse(
            is_valid=result.is_valid,
            reason=result.reason,
            suggested_start=result.suggested_start,
        )

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error validating move: {str(e)}")


@app.post("/calendar/{user_id}/state")
async def load_calendar_state(user_id: str, request: CalendarStateRequest):
    """
    Replace a student's recurring blocks, one-off blocks, exams and holidays.

    Saved schedule entries are kept.
    """
    try:
        state = store.get_state(user_id)
        state.recurring = [block.to_domain() for block in request.recurring]
        state.one_off = [block.to_domain() for block in request.one_off]
        state.exams = [exam.to_domain() for exam in request.exams]
        state.holidays = [holiday.to_domain() for holiday in request.holidays]
        state.semester_start = request.semester_start
        return {"status": "ok", "user_id": user_id}

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error loading calendar state: {str(e)}")


@app.post("/calendar/{user_id}/auto-schedule", response_model=AutoScheduleResponse)
async def auto_schedule(user_id: str, request: AutoScheduleRequest) -> AutoScheduleResponse:
    """
    Schedule tasks onto a stored calendar and save each placement.

    Placements the store refuses are reported in ``failed_task_ids``; they are
    not retried.
    """
    try:
        first_day = (request.start or datetime.now()).date()
        busy = store.busy_for_days(user_id, first_day, request.horizon_days)
        placements = schedule_sequentially(
            [task.to_domain() for task in request.tasks],
            busy,
            request.start,
            request.hours.to_domain(),
        )
        failed = [p.task_id for p in placements if not store.save_placement(user_id, p)]
        if failed:
            logger.warning("Store refused %d of %d placement(s) for %s", len(failed), len(placements), user_id)
        return AutoScheduleResponse(
            placements=[PydanticPlacement.from_domain(p) for p in placements],
            failed_task_ids=failed,
        )

    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error auto-scheduling tasks: {str(e)}")


@app.get("/calendar/{user_id}/entries", response_model=list[PydanticPlacement])
async def list_entries(user_id: str) -> list[PydanticPlacement]:
    """
    List a student's saved schedule entries in start order.
    """
    return [
        PydanticPlacement(task_id=e.task_id, title=e.title, interval=PydanticInterval.from_domain(e.interval))
        for e in store.list_entries(user_id)
    ]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=SERVICE_PORT)
