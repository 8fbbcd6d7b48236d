# -*- coding: utf-8 -*-
"""Tests for the scheduler REST service."""
import httpx
import pytest
from fastapi.testclient import TestClient

from services.scheduler_service.app import app
from slot_scheduler import store

client = TestClient(app)


@pytest.fixture(autouse=True)
def clean_store():
    store.reset()
    yield
    store.reset()


def interval(start: str, end: str) -> dict:
    return {"start": start, "end": end}


def test_health_check() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "scheduler-service"}


@pytest.mark.asyncio
async def test_health_check_async() -> None:
    """The app also serves over an ASGI transport, as the MCP wrappers would see it."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        response = await async_client.get("/health")
    assert response.json()["status"] == "healthy"


def test_find_slot_after_conflict() -> None:
    response = client.post("/scheduler/slot", json={
        "duration_minutes": 60,
        "busy": [interval("2024-01-01T09:00:00", "2024-01-01T10:00:00")],
        "search_start": "2024-01-01T08:30:00",
    })
    assert response.status_code == 200
    assert response.json() == {"start": "2024-01-01T10:00:00", "end": "2024-01-01T11:00:00"}


def test_find_slot_rejects_reversed_interval() -> None:
    response = client.post("/scheduler/slot", json={
        "duration_minutes": 60,
        "busy": [interval("2024-01-01T10:00:00", "2024-01-01T09:00:00")],
        "search_start": "2024-01-01T08:30:00",
    })
    assert response.status_code == 422


def test_find_slot_rejects_inverted_working_hours() -> None:
    response = client.post("/scheduler/slot", json={
        "duration_minutes": 60,
        "search_start": "2024-01-01T08:30:00",
        "hours": {"start_hour": 20, "end_hour": 10},
    })
    assert response.status_code == 422
    assert "Working hours" in response.json()["detail"]


def test_find_slot_rejects_zero_duration() -> None:
    response = client.post("/scheduler/slot", json={"duration_minutes": 0})
    assert response.status_code == 422


def test_find_slot_rejects_timezone_aware_start() -> None:
    response = client.post("/scheduler/slot", json={
        "duration_minutes": 60,
        "search_start": "2024-01-01T08:30:00Z",
    })
    assert response.status_code == 422


def test_sequence_rejects_timezone_aware_busy_interval() -> None:
    response = client.post("/scheduler/sequence", json={
        "tasks": [{"id": "t1", "duration_minutes": 60}],
        "busy": [interval("2024-01-01T09:00:00+02:00", "2024-01-01T10:00:00+02:00")],
        "start": "2024-01-01T09:00:00",
    })
    assert response.status_code == 422


def test_sequence_three_tasks() -> None:
    response = client.post("/scheduler/sequence", json={
        "tasks": [{"id": f"t{i}", "title": f"Task {i}", "duration_minutes": 60} for i in range(1, 4)],
        "start": "2024-01-01T09:00:00",
    })
    assert response.status_code == 200
    starts = [p["interval"]["start"] for p in response.json()]
    assert starts == ["2024-01-01T09:00:00", "2024-01-01T10:15:00", "2024-01-01T11:30:00"]


def test_study_sessions() -> None:
    response = client.post("/scheduler/study-sessions", json={
        "title": "Midterm",
        "total_minutes": 120,
        "due_by": "2024-01-03T09:00:00",
        "start": "2024-01-01T08:00:00",
    })
    assert response.status_code == 200
    starts = [p["interval"]["start"] for p in response.json()]
    assert starts == ["2024-01-01T08:00:00", "2024-01-02T08:00:00"]


def test_free_gaps() -> None:
    response = client.post("/scheduler/free-gaps", json={
        "day": "2024-01-01",
        "busy": [interval("2024-01-01T08:00:00", "2024-01-01T12:00:00")],
    })
    assert response.status_code == 200
    assert response.json() == [interval("2024-01-01T12:00:00", "2024-01-01T21:00:00")]


def test_validate_move_reports_conflict() -> None:
    response = client.post("/scheduler/validate-move", json={
        "block_id": "s1",
        "target": interval("2030-01-07T10:30:00", "2030-01-07T11:30:00"),
        "blocks": [
            {"id": "lec", "title": "Lecture", "interval": interval("2030-01-07T10:00:00", "2030-01-07T11:00:00")},
            {"id": "s1", "title": "Study", "interval": interval("2030-01-07T13:00:00", "2030-01-07T14:00:00")},
        ],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is False
    assert body["reason"] == "Conflicts with: Lecture"
    assert body["suggested_start"] == "2030-01-07T11:00:00"


def test_auto_schedule_uses_stored_calendar() -> None:
    state = client.post("/calendar/u1/state", json={
        "recurring": [{"id": "lab", "title": "Lab", "weekday": 0, "start_time": "08:00", "end_time": "10:00"}],
        "holidays": [{"name": "Break", "start_date": "2024-01-08", "end_date": "2024-01-12"}],
        "semester_start": "2024-01-01",
    })
    assert state.status_code == 200

    response = client.post("/calendar/u1/auto-schedule", json={
        "tasks": [{"id": "t1", "title": "Essay", "duration_minutes": 60}],
        "start": "2024-01-01T08:00:00",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["failed_task_ids"] == []
    assert body["placements"][0]["interval"]["start"] == "2024-01-01T10:00:00"

    entries = client.get("/calendar/u1/entries").json()
    assert [e["task_id"] for e in entries] == ["t1"]


def test_auto_schedule_reports_entries_the_store_refuses() -> None:
    first = client.post("/calendar/u1/auto-schedule", json={
        "tasks": [{"id": "t1", "title": "Essay", "duration_minutes": 60}],
        "start": "2024-01-02T08:00:00",
    })
    assert first.json()["failed_task_ids"] == []

    # A one-day horizon does not see Jan 2, so the slot rolls onto the saved entry
    second = client.post("/calendar/u1/auto-schedule", json={
        "tasks": [{"id": "t2", "title": "Reading", "duration_minutes": 60}],
        "start": "2024-01-01T20:30:00",
        "horizon_days": 1,
    })
    assert second.status_code == 200
    assert second.json()["failed_task_ids"] == ["t2"]
    assert [e["task_id"] for e in client.get("/calendar/u1/entries").json()] == ["t1"]
