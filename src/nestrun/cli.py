"""Command-line entry point for nestrun."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from .config import BuildPolicy, Settings, Switch, load_settings
from .errors import ConfigurationError
from .launcher import Launcher
from .logging_utils import configure_logging
from .types import ExitCode, SessionOutcome, Termination

app = typer.Typer(
    name="nestrun",
    help="Build a project and run it inside a nested X display.",
    add_completion=False,
)


def _exit_with_error(stage: str, message: str, code: int) -> NoReturn:
    typer.echo(f"nestrun: {stage}: {message}", err=True)
    raise typer.Exit(code)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "settings"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _report(outcome: SessionOutcome) -> None:
    if outcome.terminated_by is not Termination.NORMAL:
        typer.echo(f"nestrun: {outcome.stage}: {outcome.detail}", err=True)


@app.command()
def main(
    display: Optional[int] = typer.Option(None, "--display", help="Display number (default 100)."),
    geometry: Optional[str] = typer.Option(None, "--geometry", help="Screen size WIDTHxHEIGHT (default 800x600)."),
    access_control: Optional[Switch] = typer.Option(
        None, "--access-control", case_sensitive=False, help="X access control (default off)."
    ),
    host_cursor: Optional[bool] = typer.Option(
        None, "--host-cursor/--no-host-cursor", help="Show the host cursor (default on)."
    ),
    build_policy: Optional[BuildPolicy] = typer.Option(
        None, "--build-policy", help="failFast aborts on a failed build, bestEffort runs anyway."
    ),
    build_command: Optional[str] = typer.Option(None, "--build-command", help="Build command."),
    artifact: Optional[str] = typer.Option(None, "--artifact", help="Executable produced by the build."),
    session_script: Optional[str] = typer.Option(
        None, "--session-script", help="Script run inside the session; empty to run the artifact directly."
    ),
    server: Optional[str] = typer.Option(None, "--server", help="Nested display server (default Xephyr)."),
    wrapper: Optional[str] = typer.Option(None, "--wrapper", help="Session wrapper (default xinit)."),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Project directory."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the session command without running it."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level."),
) -> None:
    """Build the project, then run it inside a nested display session."""
    workspace_path = (workspace or Path.cwd()).absolute()
    if not workspace_path.is_dir():
        _exit_with_error("config", f"workspace {workspace_path} is not a directory", ExitCode.USAGE)

    try:
        settings: Settings = load_settings(
            workspace_path,
            display=display,
            geometry=geometry,
            access_control=access_control,
            host_cursor=host_cursor,
            build_policy=build_policy,
            build_command=build_command,
            artifact_path=artifact,
            session_script=session_script,
            server_binary=server,
            wrapper_binary=wrapper,
            log_level=log_level,
        )
    except ValidationError as exc:
        _exit_with_error("config", _format_validation_error(exc), ExitCode.USAGE)

    configure_logging(settings.log_level, profile=settings.log_format)

    launcher = Launcher(settings, workspace_path)
    try:
        outcome = launcher.run(dry_run=dry_run)
    except ConfigurationError as exc:
        _exit_with_error("config", str(exc), ExitCode.USAGE)

    if dry_run and launcher.session is not None:
        typer.echo(shlex.join(launcher.session.wrapper_args))
    _report(outcome)
    raise typer.Exit(int(outcome.exit_code))


if __name__ == "__main__":
    app()
