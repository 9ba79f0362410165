"""Console, logging and formatting helpers shared by the commands."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import Any, ContextManager

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from .models import Job, JobState, UsageSnapshot

_STATE_STYLES = {
    JobState.DONE: ("✓", "green"),
    JobState.FAILED: ("✗", "red"),
    JobState.CANCELLED: ("⊘", "yellow"),
    JobState.RUNNING: ("⟳", "cyan"),
    JobState.QUEUED: ("○", "dim"),
}


def make_console(*, no_color: bool = False, stderr: bool = False) -> Console:
    return Console(highlight=False, no_color=no_color or None, stderr=stderr)


def configure_logging(verbose: bool, console: Console) -> None:
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("cli.allscreenshots")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def spinner(console: Console, message: str, *, enabled: bool = True) -> ContextManager[Any]:
    if not enabled or not console.is_terminal:
        return nullcontext()
    return console.status(message, spinner="dots", spinner_style="cyan")


def state_badge(job: Job) -> Text:
    try:
        state = job.state
    except ValueError:
        return Text("?", style="dim")
    icon, style = _STATE_STYLES[state]
    return Text(icon, style=style)


def state_label(job: Job) -> Text:
    try:
        state = job.state
    except ValueError:
        return Text(job.status)
    return Text(job.status.upper(), style=f"bold {_STATE_STYLES[state][1]}")


def job_table(job: Job) -> Table:
    table = Table(show_header=False, show_edge=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value", overflow="fold")
    table.add_row("ID", job.id)
    table.add_row("Status", state_label(job))
    rows = (
        ("URL", job.url),
        ("Created", job.created_at),
        ("Started", job.started_at),
        ("Completed", job.completed_at),
        ("Expires", job.expires_at),
        ("Result URL", job.result_url),
        ("Status URL", job.status_url),
    )
    for label, value in rows:
        if value:
            table.add_row(label, value)
    if job.error_code:
        table.add_row("Error Code", Text(job.error_code, style="red"))
    if job.error_message:
        table.add_row("Error", Text(job.error_message, style="red"))
    return table


def _bar_colour(percent: float) -> str:
    if percent >= 90:
        return "red"
    if percent >= 75:
        return "yellow"
    return "green"


def quota_bar(used: float, limit: float, *, width: int = 40) -> Text:
    percent = used / limit * 100 if limit > 0 else 0.0
    filled = min(width, int(width * used / limit)) if limit > 0 else 0
    bar = Text("[")
    bar.append("█" * filled, style=_bar_colour(percent))
    bar.append("░" * (width - filled), style="dim")
    bar.append(f"] {percent:.0f}%")
    return bar


def render_usage_graph(console: Console, usage: UsageSnapshot) -> None:
    console.print()
    console.print(f"[bold underline]API Usage[/]  [dim]tier:[/] [cyan]{usage.tier}[/]")
    quota = usage.quota
    if quota is not None:
        shots = quota.screenshots
        console.print()
        console.print("[bold]Screenshots[/]")
        console.print(quota_bar(shots.used, shots.limit))
        console.print(f"  {shots.used:,} / {shots.limit:,} used, [green]{shots.remaining:,}[/] remaining")
        if quota.bandwidth is not None:
            bw = quota.bandwidth
            console.print()
            console.print("[bold]Bandwidth[/]")
            console.print(quota_bar(bw.used_bytes, bw.limit_bytes))
            console.print(f"  {bw.used_formatted or bw.used_bytes} / {bw.limit_formatted or bw.limit_bytes}")
    else:
        console.print(f"\n  Screenshots this period: {usage.current_period.screenshots_count:,}")
    if usage.reset_date:
        console.print(f"\n[dim]Resets:[/] {usage.reset_date}")
    console.print()


def render_quota(console: Console, usage: UsageSnapshot) -> None:
    limit = usage.limit
    if limit is None:
        console.print(f"Screenshots used: {usage.used:,} (no quota reported)")
        return
    console.print(quota_bar(usage.used, limit))
    console.print(f"{usage.used:,} / {limit:,} screenshots" + (f", resets {usage.reset_date}" if usage.reset_date else ""))


def usage_table(usage: UsageSnapshot) -> Table:
    table = Table(title="API Usage", show_edge=False, box=None, title_justify="left")
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    period = usage.current_period
    table.add_row("Tier", usage.tier)
    table.add_row("Period start", period.period_start or "-")
    table.add_row("Period end", period.period_end or "-")
    table.add_row("Screenshots", f"{period.screenshots_count:,}")
    table.add_row("Bandwidth", period.bandwidth_formatted or "-")
    if usage.quota is not None:
        shots = usage.quota.screenshots
        table.add_row("Quota", f"{shots.used:,} / {shots.limit:,} ({shots.percent_used:.0f}% used)")
        table.add_row("Remaining", Text(f"{shots.remaining:,}", style="green"))
        if usage.quota.bandwidth is not None:
            bw = usage.quota.bandwidth
            table.add_row("Bandwidth quota", f"{bw.used_formatted} / {bw.limit_formatted} ({bw.percent_used:.0f}% used)")
    if usage.totals is not None:
        table.add_row("All-time screenshots", f"{usage.totals.screenshots_count:,}")
        table.add_row("All-time bandwidth", usage.totals.bandwidth_formatted or "-")
    if usage.reset_date:
        table.add_row("Resets", usage.reset_date)
    return table
