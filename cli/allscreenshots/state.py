from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import typer
from rich.console import Console

from .client import AllscreenshotsClient
from .config import Config, require_api_key
from .errors import CliError
from .output import make_console
from .render import TerminalRenderer
from .service import ImageDelivery

logger = logging.getLogger(__name__)


def make_client(api_key: str) -> AllscreenshotsClient:
    return AllscreenshotsClient(api_key)


def make_renderer(state: AppState, size: tuple[int, int] | None = None) -> TerminalRenderer | None:
    return TerminalRenderer.from_config(state.config.display, state.console, size=size)


@dataclass(slots=True)
class AppState:
    """Per-invocation settings threaded from the root callback into every command."""

    config: Config = field(default_factory=Config)
    console: Console = field(default_factory=make_console)
    err_console: Console = field(default_factory=lambda: make_console(stderr=True))
    api_key: str | None = None
    output: Path | None = None
    device: str | None = None
    full_page: bool = False
    display: bool | None = None
    verbose: bool = False
    json_output: bool = False

    def client(self) -> AllscreenshotsClient:
        return make_client(require_api_key(self.api_key, self.config))

    def output_dir(self, override: Path | None = None) -> Path:
        return override or Path(self.config.defaults.output_dir or "./screenshots")

    def default_format(self, override: str | None = None) -> str:
        return override or self.config.defaults.format or "png"

    def pick_device(self, override: str | None, *, explicit_viewport: bool) -> str | None:
        if override or self.device:
            return override or self.device
        # An explicit viewport replaces the configured default device.
        if explicit_viewport:
            return None
        return self.config.defaults.device

    def should_display(self, flag: bool | None, output: Path | None) -> bool:
        if self.json_output:
            return False
        choice = flag if flag is not None else self.display
        if choice is not None:
            return choice
        if output is not None:
            return False
        return self.config.defaults.display is not False

    def delivery(self, size: tuple[int, int] | None = None, output_dir: Path | None = None) -> ImageDelivery:
        return ImageDelivery(self.console, lambda: make_renderer(self, size), self.output_dir(output_dir))

    def emit(self, payload: Any) -> None:
        typer.echo(json.dumps(payload, indent=2, default=str))


def get_state(ctx: typer.Context) -> AppState:
    state = ctx.find_object(AppState)
    if state is None:
        state = AppState()
        ctx.obj = state
    return state


@contextmanager
def cli_errors(state: AppState) -> Iterator[None]:
    """Print :class:`CliError` as a friendly message and exit with status 1."""
    try:
        yield
    except CliError as exc:
        logger.debug("command failed", exc_info=state.verbose)
        state.err_console.print()
        state.err_console.print(exc.friendly())
        state.err_console.print()
        raise typer.Exit(1) from exc
