from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from vrc_group_tracker.configs.logging_config import get_logger, setup_logging
from vrc_group_tracker.configs.settings import Settings
from vrc_group_tracker.errors import InputError, RemoteApiError, TrackerError
from vrc_group_tracker.services.tracker_service import TrackerResult, run_tracker
from vrc_group_tracker.utils.cancellation import CancellationToken

log = get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Report effective group role permissions for every member of the tracked groups.",
)


def build_settings(**overrides) -> Settings:
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise InputError(f"invalid configuration: {exc}") from exc


async def _run_with_signals(settings: Settings) -> TrackerResult:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers.
            pass
    try:
        return await run_tracker(settings, token)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


@app.command()
def track(
    workspace: Annotated[Optional[Path], typer.Option("--workspace", "-w", help="Workspace directory.")] = None,
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Output sub-directory of the workspace.")] = None,
    username: Annotated[Optional[str], typer.Option("--username", "-u", help="Platform username.")] = None,
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="Platform password.")] = None,
    groups: Annotated[Optional[str], typer.Option("--groups", "-g", help="Comma-separated group ids.")] = None,
    key: Annotated[Optional[str], typer.Option("--key", "-k", help="Base32 2FA secret.")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Logging level.")] = None,
) -> None:
    """Log in, read roles and members of each group, and write data.json."""
    setup_logging("INFO")
    try:
        settings = build_settings(
            workspace=workspace,
            output=output,
            username=username,
            password=password,
            groups=groups,
            key=key,
            log_level=log_level,
        )
        setup_logging(settings.log_level)
        result = asyncio.run(_run_with_signals(settings))
    except RemoteApiError as exc:
        log.error("tracker.error type=remote_api message=%s code=%s", exc.message, exc.error_code)
        typer.echo(f"Exception when calling API: {exc.message}", err=True)
        typer.echo(f"Status Code: {exc.error_code}", err=True)
        raise typer.Exit(code=exc.exit_code)
    except TrackerError as exc:
        log.error("tracker.error type=%s message=%s", type(exc).__name__, exc.message)
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=exc.exit_code)
    except KeyboardInterrupt:
        typer.echo("error: interrupted", err=True)
        raise typer.Exit(code=130)
    except Exception as exc:
        log.exception("tracker.unhandled_error %s", str(exc))
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Done! Wrote {len(result.report)} users to {result.path}")


def console_entrypoint() -> None:
    app()
