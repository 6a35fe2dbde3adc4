"""Typer CLI for joinwindow."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import NoReturn

import typer
import uvicorn
from pydantic import ValidationError

from .config import (
    get_settings,
    load_settings,
    settings_as_dict,
    update_config_file,
)
from .countdown import Countdown
from .models import CountdownPhase
from .seed import fake_snapshots
from .snapshot import EventSnapshotPayload, load_snapshot_file, snapshot_report
from .ticker import SchedulerTicker

app = typer.Typer(help="joinwindow command-line interface")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Show help when no subcommand is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _fail(message: str) -> NoReturn:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _load(path: Path, now: str | None = None) -> EventSnapshotPayload:
    try:
        payload = load_snapshot_file(path)
    except FileNotFoundError:
        _fail(f"Snapshot file not found: {path}")
    except (ValueError, ValidationError) as exc:
        _fail(f"Invalid snapshot {path}: {exc}")
    if now:
        payload = payload.model_copy(update={"now": now})
    return payload


@app.command("evaluate")
def evaluate_snapshot(
    snapshot: Path = typer.Argument(..., help="Event snapshot (.toml or .json)"),
    now: str | None = typer.Option(
        None, "--now", help="ISO datetime to evaluate at (defaults to the current time)"
    ),
) -> None:
    """Print the join decision, status, countdown and capacity as JSON."""
    payload = _load(snapshot, now)
    try:
        report = snapshot_report(payload)
    except ValueError as exc:
        _fail(f"Invalid snapshot {snapshot}: {exc}")
    typer.echo(json.dumps(report, indent=2))


@app.command("countdown")
def countdown(
    snapshot: Path = typer.Argument(..., help="Event snapshot (.toml or .json)"),
    ticks: int | None = typer.Option(
        None, "--ticks", min=1, help="Stop after this many ticks"
    ),
) -> None:
    """Show a live countdown to the next registration boundary."""
    payload = _load(snapshot)
    try:
        config = payload.to_config()
        flags = payload.to_flags(payload.evaluation_time(), config)
    except ValueError as exc:
        _fail(f"Invalid snapshot {snapshot}: {exc}")

    done = threading.Event()
    seen = 0

    def render(result: CountdownPhase | None) -> None:
        nonlocal seen
        seen += 1
        typer.echo(result.text if result else "No countdown to show.")
        if result is None or (ticks and seen >= ticks):
            done.set()

    timer = Countdown(
        config,
        render,
        flags=flags,
        ticker=SchedulerTicker(get_settings().tick_interval_seconds),
        stop_when_ended=True,
    )
    try:
        with timer:
            done.wait()
    except KeyboardInterrupt:
        typer.echo("Countdown stopped.")


@app.command("sample-snapshot")
def sample_snapshot(
    count: int = typer.Option(1, "--count", min=1, help="Number of snapshots"),
    seed: int | None = typer.Option(None, "--seed", help="Random seed"),
) -> None:
    """Print fake event snapshots as JSON, one per line."""
    for payload in fake_snapshots(count, seed=seed):
        typer.echo(payload.model_dump_json(exclude_none=True))


@app.command("runserver")
def runserver(
    host: str | None = typer.Option(None, "--host", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", help="Port to bind"),
):
    """Start the JSON API."""
    current = get_settings()
    host = host or current.app_host
    port = port or current.app_port
    config = uvicorn.Config(
        "joinwindow.api:app",
        host=host,
        port=port,
        reload=False,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    server = uvicorn.Server(config)
    typer.echo(f"Starting joinwindow on {host}:{port}")
    server.run()


@app.command("config")
def configure(
    show: bool = typer.Option(
        False, "--show", help="Show the current effective configuration"
    ),
    tick_interval_seconds: int | None = typer.Option(
        None, "--tick-interval-seconds", min=1, help="Seconds between countdown ticks"
    ),
    countdown_max_units: int | None = typer.Option(
        None,
        "--countdown-max-units",
        min=1,
        max=4,
        help="Most significant units shown in a countdown",
    ),
    thousands_separator: str | None = typer.Option(
        None, "--thousands-separator", help="Separator for large participant counts"
    ),
    app_host: str | None = typer.Option(None, "--app-host", help="Default bind host"),
    app_port: int | None = typer.Option(None, "--app-port", help="Default bind port"),
) -> None:
    """Show or update joinwindow.toml."""
    updates = {
        key: value
        for key, value in {
            "tick_interval_seconds": tick_interval_seconds,
            "countdown_max_units": countdown_max_units,
            "thousands_separator": thousands_separator,
            "app_host": app_host,
            "app_port": app_port,
        }.items()
        if value is not None
    }

    current = load_settings()
    if updates:
        current = update_config_file(updates, path=current.config_path)
        typer.echo(f"Updated {current.config_path}")
    if show or not updates:
        typer.echo(json.dumps(settings_as_dict(current), indent=2))


if __name__ == "__main__":
    app()
