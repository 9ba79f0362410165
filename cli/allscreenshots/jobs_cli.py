from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from .jobs import JobTracker
from .models import Job
from .output import job_table, state_badge, state_label
from .render import sniff_format
from .service import print_outcome
from .state import AppState, cli_errors, get_state
from .utils import truncate

jobs_app = typer.Typer(help="Inspect and manage async screenshot jobs.")


def print_job(state: AppState, job: Job) -> None:
    state.console.print()
    state.console.print(job_table(job))
    state.console.print()


@jobs_app.command("list")
def list_jobs(ctx: typer.Context) -> None:
    """List recent async jobs."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            jobs = client.list_jobs()
    if state.json_output:
        state.emit([job.to_dict() for job in jobs])
        return
    if not jobs:
        state.console.print("No jobs found.")
        return
    table = Table(show_edge=False, box=None)
    table.add_column("", width=1)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("URL", overflow="ellipsis")
    table.add_column("Created", style="dim")
    for job in jobs:
        table.add_row(state_badge(job), job.id, state_label(job), truncate(job.url or "", 50), job.created_at or "")
    state.console.print(table)


@jobs_app.command("get")
def get_job(ctx: typer.Context, job_id: Annotated[str, typer.Argument(help="Job ID.")]) -> None:
    """Show the status of one job."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            job = client.get_job(job_id)
    if state.json_output:
        state.emit(job.to_dict())
        return
    print_job(state, job)


@jobs_app.command("cancel")
def cancel_job(ctx: typer.Context, job_id: Annotated[str, typer.Argument(help="Job ID.")]) -> None:
    """Cancel a queued or running job."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            job = client.cancel_job(job_id)
    if state.json_output:
        state.emit(job.to_dict())
        return
    state.console.print(f"[yellow]⊘[/] Job {escape(job.id)} is now {job.status}")


@jobs_app.command("result")
def job_result(
    ctx: typer.Context,
    job_id: Annotated[str, typer.Argument(help="Job ID.")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path.")] = None,
    display: Annotated[
        bool | None, typer.Option("--display/--no-display", help="Show the image in the terminal.", show_default=False)
    ] = None,
) -> None:
    """Download the result of a completed job."""
    state = get_state(ctx)
    target = output or state.output
    with cli_errors(state):
        with state.client() as client:
            job = client.get_job(job_id)
            data = JobTracker(client).fetch(job)
        outcome = state.delivery().deliver(
            data,
            url=job.url or job.id,
            fmt=sniff_format(data) or state.default_format(),
            output=target,
            display=state.should_display(display, target),
        )
    if state.json_output:
        state.emit({"job": job.to_dict(), **outcome.to_dict()})
        return
    print_outcome(state.console, outcome, title=f"Job {job.id} result")
