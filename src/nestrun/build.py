"""Build stage: run the project's build command and report the result."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .process import forward_signals
from .types import BuildResult

COMMAND_NOT_FOUND = 127


def _split_command(command: str | Sequence[str]) -> list[str]:
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def _artifact_for(artifact_path: Path | None, success: bool) -> Path | None:
    if artifact_path is None:
        return None
    if success or artifact_path.exists():
        return artifact_path
    return None


def run_build(
    command: str | Sequence[str],
    *,
    cwd: Path,
    artifact_path: Path | None = None,
) -> BuildResult:
    """Run ``command`` in ``cwd`` and block until it finishes.

    Standard output and error are merged and captured; bytes that are not
    valid UTF-8 are replaced. A command that cannot be started counts as a
    failed build with exit code 127.
    """
    argv = _split_command(command)
    if not argv:
        return BuildResult(False, None, "empty build command", exit_code=COMMAND_NOT_FOUND)

    logger.info("building: {}", shlex.join(argv))
    with forward_signals() as relay:
        try:
            # Build command comes from the operator's own configuration.
            process = subprocess.Popen(  # noqa: S603
                argv,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            logger.error("build command could not be started: {}", exc)
            return BuildResult(
                success=False,
                artifact_path=_artifact_for(artifact_path, False),
                diagnostic_output=f"{argv[0]}: {exc.strerror or exc}",
                exit_code=COMMAND_NOT_FOUND,
                interrupted_by=relay.received,
            )
        relay.attach(process)
        output, _ = process.communicate()

    success = process.returncode == 0 and relay.received is None
    logger.debug("build exited with {}", process.returncode)
    return BuildResult(
        success=success,
        artifact_path=_artifact_for(artifact_path, success),
        diagnostic_output=output or "",
        exit_code=process.returncode,
        interrupted_by=relay.received,
    )
