"""
Shared Pydantic models for REST API serialization.

This module contains Pydantic equivalents of the dataclass models in
slot_scheduler, plus the request/response bodies of the scheduler service.
"""
from __future__ import annotations

import os
import typing as t
from datetime import date, datetime, time

from pydantic import BaseModel, Field, NaiveDatetime, model_validator

from slot_scheduler.busy import (
    Exam as DomainExam,
    HolidayPeriod as DomainHolidayPeriod,
    OneOffBlock as DomainOneOffBlock,
    RecurringBlock as DomainRecurringBlock,
)
from slot_scheduler.models import (
    Interval as DomainInterval,
    Placement as DomainPlacement,
    Task as DomainTask,
    WorkingHours as DomainWorkingHours,
)


BlockKind = t.Literal["class", "exam", "study", "event", "task"]
RotationType = t.Literal["none", "weekly", "biweekly", "odd_weeks", "even_weeks", "custom"]

# Default working window, configurable per deployment
WORK_START_HOUR = int(os.getenv("WORK_START_HOUR", "8"))
WORK_END_HOUR = int(os.getenv("WORK_END_HOUR", "21"))


class Interval(BaseModel):
    """A half-open [start, end) range in naive local time."""
    """A half-open [start, end) range."""
    start: NaiveDatetime
    end: NaiveDatetime

    @model_validator(mode="after")
    def _start_before_end(self) -> Interval:
        if self.start >= self.end:
            raise ValueError("start must be before end")
        return self

    def to_domain(self) -> DomainInterval:
        return DomainInterval(self.start, self.end)

    @classmethod
    def from_domain(cls, interval: DomainInterval) -> Interval:
        return cls(start=interval.start, end=interval.end)


class WorkingHours(BaseModel):
    """Daily working window."""
    start_hour: int = Field(default=WORK_START_HOUR, ge=0, le=23)
    end_hour: int = Field(default=WORK_END_HOUR, ge=1, le=24)

    def to_domain(self) -> DomainWorkingHours:
        return DomainWorkingHours(self.start_hour, self.end_hour)


class Task(BaseModel):
    """A task waiting for a slot."""
    id: str
    title: str = ""
    duration_minutes: int = Field(gt=0)
    due_by: t.Optional[NaiveDatetime] = None
    priority: t.Optional[int] = None

    def to_domain(self) -> DomainTask:
        return DomainTask(
            id=self.id,
            title=self.title,
            duration_minutes=self.duration_minutes,
            due_by=self.due_by,
            priority=self.priority,
        )


class Placement(BaseModel):
    """The interval chosen for a task."""
    task_id: str
    title: str = ""
    interval: Interval

    @classmethod
    def from_domain(cls, placement: DomainPlacement) -> Placement:
        return cls(
            task_id=placement.task_id,
            title=placement.title,
            interval=Interval.from_domain(placement.interval),
        )


class RecurringBlock(BaseModel):
    """A weekly block. ``weekday`` is 0 for Monday through 6 for Sunday."""
    id: str
    title: str = ""
    weekday: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    rotation_type: RotationType = "weekly"
    rotation_weeks: list[int] = Field(default_factory=list)
    semester_week_start: int = 1
    kind: BlockKind = "class"

    def to_domain(self) -> DomainRecurringBlock:
        return DomainRecurringBlock(
            id=self.id,
            title=self.title,
            weekday=self.weekday,
            start_time=self.start_time,
            end_time=self.end_time,
            rotation_type=self.rotation_type,
            rotation_weeks=tuple(self.rotation_weeks),
            semester_week_start=self.semester_week_start,
            kind=self.kind,
        )


class OneOffBlock(BaseModel):
    """A block on a single date."""
    id: str
    title: str = ""
    day: date
    start_time: time
    end_time: time
    kind: BlockKind = "event"

    def to_domain(self) -> DomainOneOffBlock:
        return DomainOneOffBlock(
            id=self.id,
            title=self.title,
            day=self.day,
            start_time=self.start_time,
            end_time=self.end_time,
            kind=self.kind,
        )


class Exam(BaseModel):
    id: str
    title: str = ""
    starts_at: NaiveDatetime
    duration_minutes: int = Field(default=120, gt=0)

    def to_domain(self) -> DomainExam:
        return DomainExam(
            id=self.id,
            title=self.title,
            starts_at=self.starts_at,
            duration_minutes=self.duration_minutes,
        )


class HolidayPeriod(BaseModel):
    name: str = ""
    start_date: date
    end_date: date

    def to_domain(self) -> DomainHolidayPeriod:
        return DomainHolidayPeriod(name=self.name, start_date=self.start_date, end_date=self.end_date)


# Request/Response Models for API endpoints
class FindSlotRequest(BaseModel):
    """Request model for finding the next available slot."""
    duration_minutes: int = Field(gt=0)
    busy: list[Interval] = Field(default_factory=list)
    search_start: t.Optional[NaiveDatetime] = None
    hours: WorkingHours = Field(default_factory=WorkingHours)


class FindSlotResponse(BaseModel):
    """Response model for the next available slot."""
    start: datetime
    end: datetime


class ScheduleTasksRequest(BaseModel):
    """Request model for sequential task placement."""
    tasks: list[Task]
    busy: list[Interval] = Field(default_factory=list)
    start: t.Optional[NaiveDatetime] = None
    hours: WorkingHours = Field(default_factory=WorkingHours)


class StudySessionsRequest(BaseModel):
    """Request model for spreading study sessions before a deadline."""
    title: str
    total_minutes: int = Field(gt=0)
    due_by: NaiveDatetime
    busy: list[Interval] = Field(default_factory=list)
    start: t.Optional[NaiveDatetime] = None
    session_minutes: int = Field(default=60, gt=0)
    hours: WorkingHours = Field(default_factory=WorkingHours)


class FreeGapsRequest(BaseModel):
    """Request model for listing the free gaps in a day."""
    day: date
    busy: list[Interval] = Field(default_factory=list)
    min_minutes: int = Field(default=30, ge=0)
    hours: WorkingHours = Field(default_factory=WorkingHours)


class CalendarBlock(BaseModel):
    id: str
    title: str = ""
    interval: Interval
    kind: BlockKind = "event"


class ValidateMoveRequest(BaseModel):
    """Request model for checking a drag-and-drop target."""
    block_id: t.Optional[str] = None
    target: Interval
    blocks: list[CalendarBlock] = Field(default_factory=list)
    hours: WorkingHours = Field(default_factory=WorkingHours)
    allow_weekends: bool = True
    allow_past: bool = False


class ValidateMoveResponse(BaseModel):
    """Response model for drag-and-drop validation."""
    is_valid: bool
    reason: str = ""
    suggested_start: t.Optional[datetime] = None


class CalendarStateRequest(BaseModel):
    """Request model for loading a student's calendar state."""
    recurring: list[RecurringBlock] = Field(default_factory=list)
    one_off: list[OneOffBlock] = Field(default_factory=list)
    exams: list[Exam] = Field(default_factory=list)
    holidays: list[HolidayPeriod] = Field(default_factory=list)
    semester_start: t.Optional[date] = None


class AutoScheduleRequest(BaseModel):
    """Request model for scheduling tasks onto a stored calendar."""
    tasks: list[Task]
    start: t.Optional[NaiveDatetime] = None
    horizon_days: int = Field(default=14, gt=0)
    hours: WorkingHours = Field(default_factory=WorkingHours)


class AutoScheduleResponse(BaseModel):
    """Response model for auto-scheduling: every placement plus the ones the sink refused."""
    placements: list[Placement]
    failed_task_ids: list[str] = Field(default_factory=list)
