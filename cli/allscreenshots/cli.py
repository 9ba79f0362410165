from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Callable, Sequence

import typer
from rich.markup import escape
from rich.table import Table
from typer.completion import get_completion_script

from . import __version__
from .compose import LAYOUTS, MAX_INPUTS, MIN_INPUTS, ComposeOptions, compose_bytes
from .config import APP_NAME, Config, api_key_source
from .config_cli import config_app
from .errors import CliError, FileAccessError, InvalidOptionError, RenderError
from .jobs import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT, JobTracker, job_state
from .jobs_cli import jobs_app
from .models import DEVICE_PRESETS, CaptureRequest, Job, JobState, parse_format
from .output import configure_logging, make_console, render_quota, render_usage_graph, spinner, usage_table
from .render import image_dimensions
from .schedule_cli import schedule_app
from .service import MAX_BATCH_CONCURRENCY, BatchItemResult, BatchRunner, Watcher, print_outcome
from .state import AppState, cli_errors, get_state, make_renderer
from .utils import (
    auto_filename,
    format_file_size,
    format_interval,
    parse_interval,
    read_urls_from_file,
    save_to_file,
    truncate,
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Capture website screenshots from your terminal.", no_args_is_help=False)
app.add_typer(config_app, name="config")
app.add_typer(jobs_app, name="jobs")
app.add_typer(schedule_app, name="schedule")

MAX_BATCH_URLS = 100
COMPLETE_VAR = "_ALLSCREENSHOTS_COMPLETE"
COMPLETION_SHELLS: tuple[str, ...] = ("bash", "zsh", "fish", "powershell", "pwsh")
GALLERY_SIZES = {"small": (40, 12), "medium": (60, 20)}
WATCH_THUMBNAIL = (60, 20)
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp"}

# Root options that consume the following argument.
_VALUE_OPTIONS = {"--api-key", "-k", "--output", "-o", "--device", "-d"}


def route_shorthand(args: Sequence[str]) -> list[str]:
    """Rewrite ``allscreenshots <URL>`` into ``allscreenshots capture <URL>``."""
    args = list(args)
    commands = _command_names()
    index = 0
    while index < len(args):
        arg = args[index]
        if arg == "--":
            return args
        if arg.startswith("-"):
            index += 2 if arg in _VALUE_OPTIONS else 1
            continue
        if arg in commands:
            return args
        return args[:index] + ["capture"] + args[index:]
    return args


def _command_names() -> set[str]:
    group = typer.main.get_command(app)
    return set(getattr(group, "commands", {}))


def main(argv: Sequence[str] | None = None) -> int:
    args = route_shorthand(list(argv) if argv is not None else sys.argv[1:])
    try:
        app(args=args, prog_name=APP_NAME)
    except SystemExit as exc:
        if exc.code is None or isinstance(exc.code, int):
            return exc.code or 0
        return 1
    return 0


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{APP_NAME} {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    api_key: Annotated[
        str | None, typer.Option("--api-key", "-k", help="API key (overrides env and config).", show_default=False)
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path.")] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset, e.g. 'iPhone 14'.")] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture the full scrollable page.")] = False,
    display: Annotated[
        bool | None, typer.Option("--display/--no-display", help="Show the image in the terminal.", show_default=False)
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Emit machine-readable JSON only.")] = False,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable colored output.")] = False,
    version: Annotated[
        bool, typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit.")
    ] = False,
) -> None:
    console = make_console(no_color=no_color)
    err_console = make_console(no_color=no_color, stderr=True)
    configure_logging(verbose, err_console)
    try:
        config = Config.load()
    except CliError as exc:
        logger.warning("%s Using built-in defaults.", exc.message)
        config = Config()
    state = AppState(
        config=config,
        console=console,
        err_console=err_console,
        api_key=api_key,
        output=output,
        device=device,
        full_page=full_page,
        display=display,
        verbose=verbose,
        json_output=json_output,
    )
    ctx.obj = state
    if ctx.invoked_subcommand is None:
        print_welcome(state)


def print_welcome(state: AppState) -> None:
    console = state.console
    console.print()
    console.print("[bold cyan]allscreenshots[/] [dim]v{}[/]".format(__version__))
    console.print("Capture website screenshots from your terminal.")
    console.print()
    table = Table(show_header=False, show_edge=False, box=None, pad_edge=False)
    table.add_column("Command", style="bold")
    table.add_column("Description", style="dim")
    table.add_row("allscreenshots <url>", "Capture a screenshot")
    table.add_row("allscreenshots async <url>", "Capture through an async job")
    table.add_row("allscreenshots batch -f urls.txt", "Capture many URLs")
    table.add_row("allscreenshots compose <a> <b>", "Combine screenshots into one image")
    table.add_row("allscreenshots watch <url>", "Capture repeatedly on an interval")
    table.add_row("allscreenshots usage", "Show API usage and quota")
    table.add_row("allscreenshots devices", "List device presets")
    table.add_row("allscreenshots --help", "Show every command and option")
    console.print(table)
    console.print()
    source = api_key_source(state.api_key, state.config)
    if source is None:
        console.print("[yellow]No API key configured.[/] Run: allscreenshots config add-authtoken <key>")
    else:
        console.print(f"[green]✓[/] API key loaded from {source}")
    console.print()


@app.command()
def capture(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="URL to capture.")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path.")] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset.")] = None,
    width: Annotated[int | None, typer.Option(help="Viewport width in pixels.")] = None,
    height: Annotated[int | None, typer.Option(help="Viewport height in pixels.")] = None,
    fmt: Annotated[str | None, typer.Option("--format", help="png, jpeg, webp or pdf.")] = None,
    quality: Annotated[int | None, typer.Option(help="Image quality 1-100 (jpeg/webp).")] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture the full scrollable page.")] = False,
    dark_mode: Annotated[bool, typer.Option("--dark-mode", help="Emulate prefers-color-scheme: dark.")] = False,
    delay: Annotated[int | None, typer.Option(help="Delay before capture in milliseconds (0-30000).")] = None,
    wait_until: Annotated[
        str | None, typer.Option(help="load, domcontentloaded, networkidle or commit.")
    ] = None,
    wait_for: Annotated[str | None, typer.Option(help="CSS selector to wait for.")] = None,
    selector: Annotated[str | None, typer.Option(help="Capture only this element.")] = None,
    block_ads: Annotated[bool, typer.Option("--block-ads", help="Block advertisements.")] = False,
    block_cookies: Annotated[bool, typer.Option("--block-cookies", help="Hide cookie banners.")] = False,
    block_level: Annotated[
        str | None, typer.Option(help="none, light, normal, pro, pro_plus or ultimate.")
    ] = None,
    custom_css: Annotated[str | None, typer.Option(help="CSS injected before capture.")] = None,
    display: Annotated[
        bool | None, typer.Option("--display/--no-display", help="Show the image in the terminal.", show_default=False)
    ] = None,
) -> None:
    """Capture a screenshot synchronously."""
    state = get_state(ctx)
    target = output or state.output
    with cli_errors(state):
        request = CaptureRequest.create(
            url,
            format=state.default_format(fmt),
            device=state.pick_device(device, explicit_viewport=width is not None or height is not None),
            width=width,
            height=height,
            quality=quality,
            full_page=full_page or state.full_page,
            dark_mode=dark_mode,
            delay=delay,
            wait_until=wait_until,
            wait_for=wait_for,
            selector=selector,
            block_ads=block_ads,
            block_cookies=block_cookies,
            block_level=block_level,
            custom_css=custom_css,
        )
        with state.client() as client:
            with spinner(state.console, f"Capturing {request.url}...", enabled=not state.json_output):
                data = client.capture(request)
        outcome = state.delivery().deliver(
            data,
            url=request.url,
            fmt=request.format,
            output=target,
            display=state.should_display(display, target),
        )
    if state.json_output:
        state.emit(outcome.to_dict())
        return
    print_outcome(state.console, outcome)


@app.command("async")
def async_capture(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="URL to capture.")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path.")] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset.")] = None,
    fmt: Annotated[str | None, typer.Option("--format", help="png, jpeg, webp or pdf.")] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture the full scrollable page.")] = False,
    poll: Annotated[bool, typer.Option("--poll/--no-poll", help="Wait for the job to finish.")] = True,
    poll_interval: Annotated[
        float, typer.Option(help="Seconds between status checks.", min=0.1)
    ] = DEFAULT_POLL_INTERVAL,
    timeout: Annotated[float, typer.Option(help="Give up waiting after this many seconds.", min=1)] = DEFAULT_TIMEOUT,
    display: Annotated[
        bool | None, typer.Option("--display/--no-display", help="Show the image in the terminal.", show_default=False)
    ] = None,
) -> None:
    """Submit an async capture job and optionally wait for the result."""
    state = get_state(ctx)
    target = output or state.output
    with cli_errors(state):
        request = CaptureRequest.create(
            url,
            format=state.default_format(fmt),
            device=state.pick_device(device, explicit_viewport=False),
            full_page=full_page or state.full_page,
        )
        with state.client() as client:
            tracker = JobTracker(client, interval=poll_interval, timeout=timeout)
            job = tracker.submit(request)
            if not poll:
                if state.json_output:
                    state.emit(job.to_dict())
                else:
                    state.console.print(f"[bold green]Job submitted:[/] {job.id}")
                    state.console.print(f"  Check status with: [cyan]allscreenshots jobs get {job.id}[/]")
                return
            with spinner(state.console, f"Job {job.id}: {job.status}", enabled=not state.json_output) as status:

                def on_update(update: Job) -> None:
                    if status is not None:
                        status.update(f"Job {update.id}: {update.status}")

                if not job_state(job).is_terminal:
                    job = tracker.wait(job.id, on_update=on_update)
                data = tracker.fetch(job)
        outcome = state.delivery().deliver(
            data,
            url=request.url,
            fmt=request.format,
            output=target,
            display=state.should_display(display, target),
        )
    if state.json_output:
        state.emit({"job": job.to_dict(), **outcome.to_dict()})
        return
    print_outcome(state.console, outcome, title=f"Job {job.id} completed!")


@app.command()
def batch(
    ctx: typer.Context,
    urls: Annotated[list[str] | None, typer.Argument(help="URLs to capture.", show_default=False)] = None,
    file: Annotated[Path | None, typer.Option("--file", "-f", help="File with one URL per line.")] = None,
    output_dir: Annotated[Path | None, typer.Option("--output-dir", "-o", help="Directory for the images.")] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset.")] = None,
    fmt: Annotated[str | None, typer.Option("--format", help="png, jpeg, webp or pdf.")] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture the full scrollable page.")] = False,
    concurrency: Annotated[
        int, typer.Option("--concurrency", "-c", help="Parallel captures.", min=1, max=MAX_BATCH_CONCURRENCY)
    ] = 1,
) -> None:
    """Capture many URLs, saving ``NNN_domain.ext`` files."""
    state = get_state(ctx)
    with cli_errors(state):
        targets = list(urls or [])
        if file is not None:
            targets.extend(read_urls_from_file(file))
        if not targets:
            raise InvalidOptionError("No URLs given. Pass URLs or use --file.", option="--file")
        if len(targets) > MAX_BATCH_URLS:
            raise InvalidOptionError(f"At most {MAX_BATCH_URLS} URLs per batch (got {len(targets)}).")
        image_format = parse_format(state.default_format(fmt))
        chosen_device = state.pick_device(device, explicit_viewport=False)
        destination = state.output_dir(output_dir)

        def build(url: str) -> CaptureRequest:
            return CaptureRequest.create(
                url, format=image_format, device=chosen_device, full_page=full_page or state.full_page
            )

        def on_result(item: BatchItemResult) -> None:
            if state.json_output:
                return
            position = f"[dim][{item.index + 1}/{len(targets)}][/]"
            if item.ok:
                state.console.print(f"{position} [green]✓[/] {escape(item.url)} -> {item.path}")
            else:
                state.console.print(f"{position} [red]✗[/] {escape(item.url)}: {escape(item.error or '')}")

        if not state.json_output:
            state.console.print(f"Capturing {len(targets)} URLs into [cyan]{destination}[/]")
        with state.client() as client:
            runner = BatchRunner(client, destination, concurrency=concurrency)
            report = runner.run(targets, build, on_result=on_result)

    if state.json_output:
        state.emit(report.to_dict())
    else:
        state.console.print()
        state.console.print(
            f"[bold]Batch complete:[/] [green]{report.succeeded} succeeded[/], "
            f"[{'red' if report.failed else 'dim'}]{report.failed} failed[/] of {report.total}"
        )
    if report.failed:
        raise typer.Exit(1)


@app.command()
def compose(
    ctx: typer.Context,
    inputs: Annotated[list[str], typer.Argument(help="Image files or URLs to combine.")],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path.")] = None,
    layout: Annotated[str, typer.Option(help=f"One of: {', '.join(LAYOUTS)}.")] = "auto",
    columns: Annotated[int | None, typer.Option(help="Columns for the grid layout.", min=1)] = None,
    spacing: Annotated[int, typer.Option(help="Pixels between images.", min=0)] = 0,
    padding: Annotated[int, typer.Option(help="Pixels around the edge.", min=0)] = 0,
    background: Annotated[str, typer.Option(help="Background colour or 'transparent'.")] = "#ffffff",
    fmt: Annotated[str, typer.Option("--format", help="png, jpeg or webp.")] = "png",
    quality: Annotated[int | None, typer.Option(help="Image quality 1-100 (jpeg/webp).")] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset for URL inputs.")] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture URL inputs as full pages.")] = False,
    display: Annotated[
        bool | None, typer.Option("--display/--no-display", help="Show the image in the terminal.", show_default=False)
    ] = None,
) -> None:
    """Combine local images and freshly captured URLs into one image."""
    state = get_state(ctx)
    target = output or state.output
    with cli_errors(state):
        if not MIN_INPUTS <= len(inputs) <= MAX_INPUTS:
            raise InvalidOptionError(f"Compose needs between {MIN_INPUTS} and {MAX_INPUTS} inputs (got {len(inputs)}).")
        options = ComposeOptions(
            layout=layout.lower(),
            columns=columns,
            spacing=spacing,
            padding=padding,
            background=background,
            format=parse_format(fmt, allowed=("png", "jpeg", "webp")),
            quality=quality,
        )
        blobs = _collect_inputs(state, inputs, device=device, full_page=full_page or state.full_page)
        with spinner(state.console, "Composing...", enabled=not state.json_output):
            data = compose_bytes(blobs, options)
        outcome = state.delivery().deliver(
            data,
            url=f"compose-{len(inputs)}",
            fmt=options.format,
            output=target,
            display=state.should_display(display, target),
        )
    if state.json_output:
        state.emit({"inputs": list(inputs), **outcome.to_dict()})
        return
    print_outcome(state.console, outcome, title=f"Composed {len(inputs)} images!")


def _collect_inputs(state: AppState, inputs: Sequence[str], *, device: str | None, full_page: bool) -> list[bytes]:
    blobs: list[bytes] = []
    pending: list[tuple[int, CaptureRequest]] = []
    for index, item in enumerate(inputs):
        path = Path(item).expanduser()
        if path.is_file():
            try:
                blobs.append(path.read_bytes())
            except OSError as exc:
                raise FileAccessError(f"Failed to read {path}: {exc}") from exc
            continue
        blobs.append(b"")
        request = CaptureRequest.create(
            item, format="png", device=state.pick_device(device, explicit_viewport=False), full_page=full_page
        )
        pending.append((index, request))
    if pending:
        with state.client() as client:
            for index, request in pending:
                with spinner(state.console, f"Capturing {request.url}...", enabled=not state.json_output):
                    blobs[index] = client.capture(request)
    return blobs


@app.command()
def usage(
    ctx: typer.Context,
    view: Annotated[str, typer.Option("--format", help="graph, table or json.")] = "graph",
    quota_only: Annotated[bool, typer.Option("--quota-only", help="Only show the quota bar.")] = False,
) -> None:
    """Show API usage for the current billing period."""
    state = get_state(ctx)
    choice = "json" if state.json_output else view.lower()
    if choice not in ("graph", "table", "json"):
        raise typer.BadParameter("Format must be 'graph', 'table' or 'json'.", param_hint="--format")
    with cli_errors(state):
        with state.client() as client:
            with spinner(state.console, "Fetching usage...", enabled=choice != "json"):
                snapshot = client.get_usage()
    if choice == "json":
        state.emit(snapshot.to_dict())
    elif quota_only:
        render_quota(state.console, snapshot)
    elif choice == "table":
        state.console.print(usage_table(snapshot))
    else:
        render_usage_graph(state.console, snapshot)


@app.command()
def watch(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="URL to capture repeatedly.")],
    interval: Annotated[str, typer.Option("--interval", "-i", help="Time between captures, e.g. 500ms, 5s, 1m.")] = "5s",
    output_dir: Annotated[Path | None, typer.Option("--output-dir", "-o", help="Save every capture here.")] = None,
    device: Annotated[str | None, typer.Option("--device", "-d", help="Device preset.")] = None,
    fmt: Annotated[str | None, typer.Option("--format", help="png, jpeg, webp or pdf.")] = None,
    full_page: Annotated[bool, typer.Option("--full-page", help="Capture the full scrollable page.")] = False,
    max_captures: Annotated[int, typer.Option(help="Stop after this many captures (0 = forever).", min=0)] = 0,
    display: Annotated[
        bool | None, typer.Option("--display/--no-display", help="Show each capture in the terminal.", show_default=False)
    ] = None,
) -> None:
    """Capture a URL on an interval until interrupted."""
    state = get_state(ctx)
    console = state.console
    with cli_errors(state):
        seconds = parse_interval(interval)
        request = CaptureRequest.create(
            url,
            format=state.default_format(fmt),
            device=state.pick_device(device, explicit_viewport=False),
            full_page=full_page or state.full_page,
        )
        show = state.should_display(display, output_dir or state.output)
        delivery = state.delivery(size=WATCH_THUMBNAIL)

        def frame_path(attempt: int, *, fallback: bool) -> Path | None:
            if state.output is not None and output_dir is None:
                return state.output.with_name(f"{state.output.stem}_{attempt:03d}{state.output.suffix}")
            if output_dir is None and not fallback:
                return None
            name = Path(auto_filename(request.url, request.format))
            return state.output_dir(output_dir) / f"{name.stem}_{attempt:03d}{name.suffix}"

        def on_capture(attempt: int, data: bytes) -> None:
            stamp = datetime.now().strftime("%H:%M:%S")
            path = frame_path(attempt, fallback=not show)
            saved = f" -> {save_to_file(path, data)}" if path is not None else ""
            dims = image_dimensions(data)
            size = f"{dims[0]}x{dims[1]}, " if dims else ""
            if not state.json_output:
                console.print(f"[green]✓[/] #{attempt} {stamp} ({size}{format_file_size(len(data))}){saved}")
            if show and not delivery.show(data) and path is None:
                fallback = save_to_file(frame_path(attempt, fallback=True), data)
                console.print(f"  Saved to: [cyan]{fallback}[/]")

        def on_error(attempt: int, exc: CliError) -> None:
            if not state.json_output:
                console.print(f"[red]✗[/] #{attempt} {escape(str(exc))}")

        if not state.json_output:
            console.print(
                f"Watching [cyan]{escape(request.url)}[/] every {format_interval(seconds)}. Press Ctrl+C to stop."
            )
        with state.client() as client:
            report = Watcher(client, request, interval=seconds, max_captures=max_captures).run(on_capture, on_error)

    if state.json_output:
        state.emit(report.to_dict())
    else:
        console.print()
        console.print(f"[bold]Watch finished:[/] {report.captures} captures, {report.failures} failures")
    if report.failures:
        raise typer.Exit(1)


@app.command()
def gallery(
    ctx: typer.Context,
    directory: Annotated[Path | None, typer.Option("--dir", help="Show images from this directory.")] = None,
    limit: Annotated[int, typer.Option(help="Maximum images to show.", min=1)] = 10,
    size: Annotated[str, typer.Option(help="Thumbnail size: small or medium.")] = "small",
) -> None:
    """Show recent screenshots as terminal thumbnails."""
    state = get_state(ctx)
    if size not in GALLERY_SIZES:
        raise typer.BadParameter("Size must be 'small' or 'medium'.", param_hint="--size")
    show = state.display is not False and not state.json_output
    renderer = make_renderer(state, GALLERY_SIZES[size]) if show else None
    console = state.console
    with cli_errors(state):
        if directory is not None:
            if not directory.is_dir():
                raise FileAccessError(f"Not a directory: {directory}")
            files = sorted(
                (path for path in directory.iterdir() if path.suffix.lower() in IMAGE_SUFFIXES),
                key=lambda path: path.stat().st_mtime,
                reverse=True,
            )[:limit]
            if not files:
                console.print(f"No images found in {directory}")
                return
            for path in files:
                console.print(f"[bold]{path.name}[/] [dim]{format_file_size(path.stat().st_size)}[/]")
                if renderer is not None:
                    _show_thumbnail(state, lambda: renderer.render_file(path))
            return

        with state.client() as client:
            jobs = [job for job in client.list_jobs() if _is_done(job)][:limit]
            if not jobs:
                console.print("No completed jobs found.")
                return
            for job in jobs:
                console.print(f"[bold]{job.id}[/] [dim]{escape(truncate(job.url or '', 60))}[/]")
                if renderer is None:
                    continue
                try:
                    data = client.get_job_result(job.id)
                except CliError as exc:
                    console.print(f"  [yellow]![/] {escape(str(exc))}")
                    continue
                _show_thumbnail(state, lambda: renderer.render_bytes(data))
    if show and renderer is None:
        console.print("[dim]No terminal graphics support detected; listing only.[/]")


def _is_done(job: Job) -> bool:
    try:
        return job.state is JobState.DONE
    except ValueError:
        return False


def _show_thumbnail(state: AppState, draw: Callable[[], None]) -> None:
    try:
        draw()
    except RenderError as exc:
        state.console.print(f"  [yellow]![/] {exc.message}")


@app.command()
def devices(ctx: typer.Context) -> None:
    """List the available device presets."""
    state = get_state(ctx)
    if state.json_output:
        state.emit(
            [
                {"name": preset.name, "width": preset.width, "height": preset.height, "category": preset.category}
                for preset in DEVICE_PRESETS
            ]
        )
        return
    for category in ("Desktop", "Tablet", "Mobile"):
        table = Table(title=category, show_edge=False, box=None, title_justify="left", title_style="bold")
        table.add_column("Device", style="cyan")
        table.add_column("Resolution", justify="right")
        for preset in DEVICE_PRESETS:
            if preset.category == category:
                table.add_row(preset.name, preset.resolution)
        state.console.print(table)
        state.console.print()
    state.console.print('[dim]Use with: allscreenshots capture <url> --device "iPhone 14"[/]')


_INSTRUCTIONS = {
    "bash": "Add to ~/.bashrc:\n  eval \"$(allscreenshots completions bash)\"",
    "zsh": "Add to ~/.zshrc:\n  eval \"$(allscreenshots completions zsh)\"",
    "fish": "Run:\n  allscreenshots completions fish > ~/.config/fish/completions/allscreenshots.fish",
    "powershell": "Add to your $PROFILE:\n  allscreenshots completions powershell | Out-String | Invoke-Expression",
}


@app.command()
def completions(
    shell: Annotated[str, typer.Argument(help="bash, zsh, fish, powershell or pwsh.")],
    instructions: Annotated[bool, typer.Option("--instructions", help="Explain how to install the script.")] = False,
) -> None:
    """Print a shell completion script."""
    choice = shell.lower()
    if choice not in COMPLETION_SHELLS:
        raise typer.BadParameter(f"Shell must be one of: {', '.join(COMPLETION_SHELLS)}.", param_hint="SHELL")
    if instructions:
        typer.echo(_INSTRUCTIONS["powershell" if choice == "pwsh" else choice])
        return
    typer.echo(
        get_completion_script(prog_name=APP_NAME, complete_var=COMPLETE_VAR, shell=choice)
    )
