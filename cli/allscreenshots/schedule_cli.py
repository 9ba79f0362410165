from __future__ import annotations

from typing import Annotated, Any

import typer
from rich.markup import escape

from .errors import InvalidOptionError
from .models import Schedule, ScheduleHistory, find_device
from .output import spinner
from .state import AppState, cli_errors, get_state
from .utils import format_duration_ms, normalize_url

schedule_app = typer.Typer(help="Manage scheduled screenshots.")

_STATUS_STYLES = {"ACTIVE": "green", "PAUSED": "yellow"}
_EXECUTION_ICONS = {"COMPLETED": "[green]✓[/]", "FAILED": "[red]✗[/]"}

ScheduleId = Annotated[str, typer.Argument(help="Schedule ID.")]


def _counts(schedule: Schedule) -> str:
    return (
        f"{schedule.execution_count or 0} total "
        f"([green]{schedule.success_count or 0} success[/], [red]{schedule.failure_count or 0} failed[/])"
    )


def _print_summary(state: AppState, schedule: Schedule) -> None:
    style = _STATUS_STYLES.get(schedule.status, "white")
    console = state.console
    console.print(f"[{style}]•[/] [bold]{escape(schedule.name)}[/] [dim]({schedule.id})[/]")
    console.print(f"    URL: {escape(schedule.url)}")
    console.print(f"    Schedule: {schedule.schedule} ({schedule.timezone or 'UTC'})")
    if schedule.schedule_description:
        console.print(f"    Description: [dim]{escape(schedule.schedule_description)}[/]")
    console.print(f"    Status: [{style}]{schedule.status}[/]")
    if schedule.next_execution_at:
        console.print(f"    Next run: [cyan]{schedule.next_execution_at}[/]")
    console.print(f"    Executions: {_counts(schedule)}")


def _print_details(state: AppState, schedule: Schedule) -> None:
    console = state.console
    console.print("[bold underline]Schedule Details[/]")
    console.print()
    rows = (
        ("ID", f"[cyan]{schedule.id}[/]"),
        ("Name", f"[bold]{escape(schedule.name)}[/]"),
        ("URL", escape(schedule.url)),
        ("Schedule", schedule.schedule),
        ("Description", escape(schedule.schedule_description) if schedule.schedule_description else None),
        ("Timezone", schedule.timezone or "UTC"),
        ("Status", schedule.status),
        ("Last executed", schedule.last_executed_at),
        ("Next execution", f"[cyan]{schedule.next_execution_at}[/]" if schedule.next_execution_at else None),
        ("Executions", _counts(schedule)),
        ("Retention", f"{schedule.retention_days} days" if schedule.retention_days else None),
        ("Webhook", escape(schedule.webhook_url) if schedule.webhook_url else None),
        ("Created", f"[dim]{schedule.created_at}[/]" if schedule.created_at else None),
    )
    for label, value in rows:
        if value is not None:
            console.print(f"  {label}: {value}")


def _print_history(state: AppState, history: ScheduleHistory) -> None:
    console = state.console
    console.print(f"[bold underline]Execution History[/] [dim]({history.total_executions} total)[/]")
    console.print()
    if not history.executions:
        console.print("[dim]No executions yet.[/]")
        return
    for execution in history.executions:
        icon = _EXECUTION_ICONS.get(execution.status, "[dim]•[/]")
        console.print(f"{icon} {execution.executed_at} - [bold]{execution.status}[/]")
        if execution.result_url:
            console.print(f"    Result: [dim]{escape(execution.result_url)}[/]")
        if execution.error_message:
            console.print(f"    Error: [red]{escape(execution.error_message)}[/]")
        if execution.render_time_ms is not None:
            console.print(f"    Render time: [dim]{format_duration_ms(execution.render_time_ms)}[/]")


@schedule_app.command("list")
def list_schedules(ctx: typer.Context) -> None:
    """List all schedules."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client, spinner(state.console, "Fetching schedules...", enabled=not state.json_output):
            schedules = client.list_schedules()
    if state.json_output:
        state.emit([schedule.to_dict() for schedule in schedules])
        return
    if not schedules:
        state.console.print("[dim]No schedules found.[/]")
        return
    state.console.print("[bold underline]Schedules[/]")
    state.console.print()
    for schedule in schedules:
        _print_summary(state, schedule)
        state.console.print()


@schedule_app.command("create")
def create(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="URL to capture.")],
    name: Annotated[str, typer.Option(help="Schedule name.")],
    cron: Annotated[str, typer.Option(help='Cron expression, e.g. "0 9 * * *" for daily at 9am.')],
    timezone: Annotated[str | None, typer.Option(help='Timezone, e.g. "America/New_York".')] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset.")] = None,
    retention_days: Annotated[int | None, typer.Option(help="Days to keep results (1-365).", min=1, max=365)] = None,
    webhook_url: Annotated[str | None, typer.Option(help="Webhook notified after each run.")] = None,
) -> None:
    """Create a schedule that captures URL on a cron expression."""
    state = get_state(ctx)
    with cli_errors(state):
        body: dict[str, Any] = {"name": name, "url": normalize_url(url), "schedule": cron}
        if timezone:
            body["timezone"] = timezone
        if retention_days is not None:
            body["retentionDays"] = retention_days
        if webhook_url:
            body["webhookUrl"] = webhook_url
        chosen = device or state.device
        if chosen:
            preset = find_device(chosen)
            body["options"] = {"device": preset.name if preset else chosen}
        with state.client() as client, spinner(state.console, "Creating schedule...", enabled=not state.json_output):
            schedule = client.create_schedule(body)
    if state.json_output:
        state.emit(schedule.to_dict())
        return
    console = state.console
    console.print("[bold green]Schedule created![/]")
    console.print(f"  ID: [cyan]{schedule.id}[/]")
    console.print(f"  Name: {escape(schedule.name)}")
    console.print(f"  URL: {escape(schedule.url)}")
    console.print(f"  Schedule: {schedule.schedule}")
    if schedule.next_execution_at:
        console.print(f"  Next execution: [cyan]{schedule.next_execution_at}[/]")


@schedule_app.command("get")
def get(ctx: typer.Context, schedule_id: ScheduleId) -> None:
    """Show one schedule."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            schedule = client.get_schedule(schedule_id)
    if state.json_output:
        state.emit(schedule.to_dict())
        return
    _print_details(state, schedule)


@schedule_app.command("update")
def update(
    ctx: typer.Context,
    schedule_id: ScheduleId,
    name: Annotated[str | None, typer.Option(help="New name.")] = None,
    url: Annotated[str | None, typer.Option(help="New URL.")] = None,
    cron: Annotated[str | None, typer.Option(help="New cron expression.")] = None,
    timezone: Annotated[str | None, typer.Option(help="New timezone.")] = None,
    retention_days: Annotated[int | None, typer.Option(help="New retention in days (1-365).", min=1, max=365)] = None,
) -> None:
    """Change fields of an existing schedule."""
    state = get_state(ctx)
    with cli_errors(state):
        changes = {
            "name": name,
            "url": normalize_url(url) if url else None,
            "schedule": cron,
            "timezone": timezone,
            "retentionDays": retention_days,
        }
        body = {key: value for key, value in changes.items() if value is not None}
        if not body:
            raise InvalidOptionError("Nothing to update. Pass at least one of --name, --url, --cron, --timezone.")
        with state.client() as client:
            schedule = client.update_schedule(schedule_id, body)
    if state.json_output:
        state.emit(schedule.to_dict())
        return
    state.console.print("[bold green]Schedule updated![/]")
    state.console.print(f"  ID: {schedule.id}")
    state.console.print(f"  Name: {escape(schedule.name)}")


@schedule_app.command("delete")
def delete(ctx: typer.Context, schedule_id: ScheduleId) -> None:
    """Delete a schedule."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            client.delete_schedule(schedule_id)
    if state.json_output:
        state.emit({"id": schedule_id, "deleted": True})
        return
    state.console.print(f"[green]✓[/] Schedule {schedule_id} deleted")


@schedule_app.command("pause")
def pause(ctx: typer.Context, schedule_id: ScheduleId) -> None:
    """Pause a schedule."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            schedule = client.pause_schedule(schedule_id)
    if state.json_output:
        state.emit(schedule.to_dict())
        return
    state.console.print(f"[yellow]⏸[/] Schedule [bold]{escape(schedule.name)}[/] paused")


@schedule_app.command("resume")
def resume(ctx: typer.Context, schedule_id: ScheduleId) -> None:
    """Resume a paused schedule."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            schedule = client.resume_schedule(schedule_id)
    if state.json_output:
        state.emit(schedule.to_dict())
        return
    state.console.print(f"[green]▶[/] Schedule [bold]{escape(schedule.name)}[/] resumed")
    if schedule.next_execution_at:
        state.console.print(f"  Next execution: [cyan]{schedule.next_execution_at}[/]")


@schedule_app.command("trigger")
def trigger(ctx: typer.Context, schedule_id: ScheduleId) -> None:
    """Run a schedule immediately."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            schedule = client.trigger_schedule(schedule_id)
    if state.json_output:
        state.emit(schedule.to_dict())
        return
    state.console.print(f"[cyan]⚡[/] Schedule [bold]{escape(schedule.name)}[/] triggered")


@schedule_app.command("history")
def history(
    ctx: typer.Context,
    schedule_id: ScheduleId,
    limit: Annotated[int, typer.Option(help="Maximum number of entries.", min=1)] = 10,
) -> None:
    """Show recent executions of a schedule."""
    state = get_state(ctx)
    with cli_errors(state):
        with state.client() as client:
            result = client.schedule_history(schedule_id, limit=limit)
    if state.json_output:
        state.emit(result.to_dict())
        return
    _print_history(state, result)
