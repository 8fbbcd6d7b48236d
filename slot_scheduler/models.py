"""
Data models for the slot scheduler.

This module contains the dataclasses used to represent busy intervals,
tasks waiting to be placed, and the placements the scheduler produces.
All timestamps are naive local datetimes in the student's time zone.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass
from datetime import datetime


class InvalidInput(ValueError):
    """Raised when the caller hands the scheduler malformed input."""


@dataclass(frozen=True)
class Interval:
    """A half-open time range [start, end)."""
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidInput(
                f"Interval start must be before end: {self.start.isoformat()} >= {self.end.isoformat()}"
            )

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: Interval) -> bool:
        """True if the two ranges share any instant. Touching ranges do not."""
        return self.start < other.end and self.end > other.start


@dataclass(frozen=True)
class Task:
    """A piece of work waiting for a slot."""
    id: str
    title: str
    duration_minutes: int
    due_by: t.Optional[datetime] = None
    priority: t.Optional[int] = None


@dataclass(frozen=True)
class Placement:
    """The interval chosen for a task."""
    task_id: str
    interval: Interval
    title: str = ""


@dataclass(frozen=True)
class WorkingHours:
    """Daily window [start_hour, end_hour) during which slots may be proposed."""
    start_hour: int = 8
    end_hour: int = 21

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise InvalidInput(
                f"Working hours must satisfy 0 <= start < end <= 24, got {self.start_hour}-{self.end_hour}"
            )


@dataclass(frozen=True)
class MoveBoundaries:
    """Limits applied when a student drags a block to a new time."""
    allow_weekends: bool = True
    allow_past: bool = False
    min_minutes: int = 15
    max_minutes: int = 8 * 60


@dataclass(frozen=True)
class MoveValidation:
    """Outcome of checking a drag-and-drop target."""
    is_valid: bool
    reason: str = ""
    suggested_start: t.Optional[datetime] = None
