# -*- coding: utf-8 -*-
import logging
import os
import typing as t
from datetime import datetime, timedelta

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from orchestrator.utils import load_schedule_file
from slot_scheduler.models import InvalidInput, Placement, WorkingHours
from slot_scheduler.scheduler import (
    find_next_available_slot,
    plan_study_sessions,
    schedule_sequentially,
)

console = Console()


def format_datetime_human(moment: datetime) -> str:
    """Format a datetime as 'Mon 01/15 14:30'."""
    return moment.strftime("%a %m/%d %H:%M")


def truncate_title(title: str, max_length: int = 45) -> str:
    """Truncate title to max_length characters, adding ellipsis if needed."""
    if len(title) <= max_length:
        return title
    return title[:max_length-3] + "..."


def create_placement_table(placements: t.Sequence[Placement], title: str = "🗓️ Proposed Schedule") -> Table:
    """Create a summary table for placements."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", width=3)
    table.add_column("Task", style="white")
    table.add_column("Start", style="yellow")
    table.add_column("End", style="yellow")
    table.add_column("Minutes", justify="right")

    for idx, placement in enumerate(placements, 1):
        table.add_row(
            str(idx),
            truncate_title(placement.title or placement.task_id),
            format_datetime_human(placement.interval.start),
            format_datetime_human(placement.interval.end),
            str(placement.interval.duration_minutes),
        )

    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--work-start", default=8, show_default=True, help="First working hour of the day.")
@click.option("--work-end", default=21, show_default=True, help="Hour at which the working day ends.")
@click.option("--verbose", "-v", is_flag=True, help="Log scheduling decisions.")
@click.pass_context
def cli(ctx: click.Context, work_start: int, work_end: int, verbose: bool) -> None:
    """Recommended time slot scheduling for coursework."""
    logging.basicConfig(level=logging.DEBUG if verbose else os.getenv("LOG_LEVEL", "WARNING"))
    try:
        ctx.obj = WorkingHours(work_start, work_end)
    except InvalidInput as e:
        raise click.BadParameter(str(e))


@cli.command()
@click.argument("schedule_file", type=click.Path(exists=True))
@click.option("--duration", "-d", type=click.IntRange(min=1), required=True, help="Slot length in minutes.")
@click.pass_obj
def slot(hours: WorkingHours, schedule_file: str, duration: int) -> None:
    """Find the next free slot around the busy intervals in SCHEDULE_FILE.

    Examples:
        python -m orchestrator.run slot calendar.json --duration 60
    """
    request = load_schedule_file(schedule_file)
    start = find_next_available_slot(
        duration,
        [interval.to_domain() for interval in request.busy],
        request.start,
        hours,
    )
    end = start + timedelta(minutes=duration)
    console.print(Panel(
        f"[bold green]{format_datetime_human(start)}[/bold green] → {format_datetime_human(end)}",
        title="⏰ Next available slot",
        expand=False,
    ))


@cli.command()
@click.argument("schedule_file", type=click.Path(exists=True))
@click.pass_obj
def sequence(hours: WorkingHours, schedule_file: str) -> None:
    """Place every task in SCHEDULE_FILE one after another.

    Tasks are placed in file order with a 15 minute buffer between them.

    Examples:
        python -m orchestrator.run sequence calendar.json
    """
    request = load_schedule_file(schedule_file)
    if not request.tasks:
        console.print("[yellow]No tasks to schedule[/yellow]")
        return

    placements = schedule_sequentially(
        [task.to_domain() for task in request.tasks],
        [interval.to_domain() for interval in request.busy],
        request.start,
        hours,
    )
    console.print(create_placement_table(placements))


@cli.command()
@click.argument("schedule_file", type=click.Path(exists=True))
@click.option("--title", required=True, help="Exam or assignment name.")
@click.option("--total", type=click.IntRange(min=1), required=True, help="Total study minutes.")
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]), required=True,
              help="Exam start or deadline, e.g. 2024-01-10T09:00.")
@click.option("--session", type=click.IntRange(min=1), default=60, show_default=True, help="Minutes per session.")
@click.pass_obj
def study(hours: WorkingHours, schedule_file: str, title: str, total: int, due: datetime, session: int) -> None:
    """Spread study sessions before a deadline around SCHEDULE_FILE's busy intervals.

    Examples:
        python -m orchestrator.run study calendar.json --title "Midterm" --total 240 --due 2024-01-10T09:00
    """
    request = load_schedule_file(schedule_file)
    placements = plan_study_sessions(
        title,
        total,
        due,
        [interval.to_domain() for interval in request.busy],
        start=request.start,
        session_minutes=session,
        hours=hours,
    )
    console.print(create_placement_table(placements, title=f"📚 Study plan: {title}"))


if __name__ == "__main__":
    cli()
