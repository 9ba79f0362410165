"""``allscreenshots config ...``: manage the local TOML configuration."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from .config import SETTABLE_KEYS, Config, api_key_source, config_path, mask_api_key
from .errors import InvalidOptionError
from .state import cli_errors, get_state

config_app = typer.Typer(help="Manage the local configuration file.")


@config_app.command("add-authtoken")
def add_authtoken(ctx: typer.Context, token: Annotated[str, typer.Argument(help="Your API key.")]) -> None:
    """Store the API key in the config file."""
    state = get_state(ctx)
    with cli_errors(state):
        key = token.strip()
        if not key:
            raise InvalidOptionError("The API key must not be empty.", option="token")
        config = Config.load()
        config.auth.api_key = key
        path = config.save()
    state.config = config
    if state.json_output:
        state.emit({"path": str(path), "api_key": mask_api_key(key)})
        return
    state.console.print(f"[green]✓[/] API key saved to [cyan]{path}[/]")
    state.console.print(f"  Key: {mask_api_key(key)}")


@config_app.command("remove-authtoken")
def remove_authtoken(ctx: typer.Context) -> None:
    """Delete the stored API key."""
    state = get_state(ctx)
    with cli_errors(state):
        config = Config.load()
        had_key = config.auth.api_key is not None
        config.auth.api_key = None
        path = config.save()
    state.config = config
    if state.json_output:
        state.emit({"path": str(path), "removed": had_key})
    elif had_key:
        state.console.print(f"[green]✓[/] API key removed from [cyan]{path}[/]")
    else:
        state.console.print("No API key was stored.")


@config_app.command("show")
def show(ctx: typer.Context) -> None:
    """Print the effective configuration."""
    state = get_state(ctx)
    with cli_errors(state):
        config = Config.load()
    source = api_key_source(state.api_key, config)
    if state.json_output:
        payload = config.to_dict()
        if config.auth.api_key:
            payload["auth"]["api_key"] = mask_api_key(config.auth.api_key)
        state.emit({"path": str(config_path()), "api_key_source": source, "config": payload})
        return
    table = Table(title=str(config_path()), show_edge=False, box=None, title_justify="left", title_style="dim")
    table.add_column("Key", style="bold cyan")
    table.add_column("Value")
    for key in ("auth.api_key",) + SETTABLE_KEYS:
        value = config.get_value(key)
        table.add_row(key, value if value is not None else "[dim]unset[/]")
    state.console.print(table)
    state.console.print()
    state.console.print(f"API key source: {source or '[yellow]none[/]'}")


@config_app.command("path")
def path() -> None:
    """Print the config file location."""
    typer.echo(str(config_path()))


@config_app.command("set")
def set_value(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help=f"One of: {', '.join(SETTABLE_KEYS)}.")],
    value: Annotated[str, typer.Argument(help="New value.")],
) -> None:
    """Change a configuration value."""
    state = get_state(ctx)
    with cli_errors(state):
        config = Config.load()
        config.set_value(key, value)
        config.save()
    state.config = config
    if state.json_output:
        state.emit({"key": key, "value": config.get_value(key)})
        return
    state.console.print(f"[green]✓[/] {key} = {config.get_value(key)}")


@config_app.command("get")
def get_value(ctx: typer.Context, key: Annotated[str, typer.Argument(help="Config key, e.g. defaults.device.")]) -> None:
    """Print one configuration value."""
    state = get_state(ctx)
    with cli_errors(state):
        value = Config.load().get_value(key)
    if state.json_output:
        state.emit({"key": key, "value": value})
        return
    typer.echo(value if value is not None else "")
