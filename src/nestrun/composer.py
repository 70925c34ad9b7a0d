"""Argument composition for the nested display server and session wrapper.

Everything here is a pure function of its inputs: no I/O, no environment
lookups, so the same inputs always yield the same argument vectors.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .errors import ConfigurationError
from .types import Geometry, SessionSpec

SESSION_DELIMITER = "--"


def display_token(display_number: int) -> str:
    if display_number < 0:
        raise ConfigurationError(f"display number must be non-negative, got {display_number}")
    return f":{display_number}"


def compose_server_args(
    display_number: int,
    geometry: Geometry,
    *,
    access_control: bool = False,
    host_cursor: bool = True,
    extra_args: Sequence[str] = (),
) -> tuple[str, ...]:
    """Build the nested server's arguments.

    With the defaults this yields ``(":100", "-ac", "-screen", "800x600",
    "-host-cursor")`` for display 100 at 800x600.
    """
    args = [display_token(display_number)]
    if not access_control:
        args.append("-ac")
    args.extend(["-screen", str(geometry)])
    if host_cursor:
        args.append("-host-cursor")
    args.extend(extra_args)
    return tuple(args)


def compose_session(
    *,
    server_path: str | Path,
    display_number: int,
    geometry: Geometry,
    access_control: bool = False,
    host_cursor: bool = True,
    wrapper: str = "xinit",
    client: Sequence[str] = (),
    extra_server_args: Sequence[str] = (),
) -> SessionSpec:
    """Build the full session: ``wrapper [client] -- server [server args]``.

    ``client`` is what the wrapper runs once the display is up (the session
    script or the artifact). An empty client leaves the choice to the
    wrapper's own defaults.
    """
    server_args = compose_server_args(
        display_number,
        geometry,
        access_control=access_control,
        host_cursor=host_cursor,
        extra_args=extra_server_args,
    )
    wrapper_args = (wrapper, *client, SESSION_DELIMITER, str(server_path), *server_args)
    return SessionSpec(display_number=display_number, server_args=server_args, wrapper_args=wrapper_args)


def session_client(
    workspace: Path,
    *,
    session_script: Path | None,
    artifact_path: Path | None,
    artifact_args: Sequence[str] = (),
) -> tuple[str, ...]:
    """Pick the wrapper's client command.

    Relative paths are anchored at ``workspace``: xinit only treats its first
    argument as a program when it starts with ``/`` or ``.``.
    """
    if session_script is not None:
        return (str(workspace / session_script),)
    if artifact_path is not None:
        return (str(workspace / artifact_path), *artifact_args)
    return ()
