"""Utility functions for the scheduling CLI."""
import json
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console

from services.shared.models import ScheduleTasksRequest

err_console = Console(stderr=True)


def load_schedule_file(path_str: str) -> ScheduleTasksRequest:
    """Load busy intervals, tasks and an optional start from a JSON file.

    Args:
        path_str: Path to a JSON file shaped like ``{"busy": [...], "tasks": [...], "start": "..."}``

    Returns:
        The validated request, ready to be converted to domain objects

    Raises:
        SystemExit: If the file is missing, is not JSON, or does not validate
    """
    path = Path(path_str)

    if not path.is_file():
        err_console.print(f"[red]Error:[/red] File '{path_str}' does not exist.")
        raise SystemExit(1)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        data.setdefault("tasks", [])
        return ScheduleTasksRequest.model_validate(data)
    except (json.JSONDecodeError, AttributeError) as e:
        err_console.print(f"[red]Error:[/red] '{path_str}' is not a JSON object: {e}")
        raise SystemExit(1)
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] '{path_str}' is not a valid schedule file:\n{e}")
        raise SystemExit(1)
