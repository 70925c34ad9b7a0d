"""Run the display-session wrapper and map its termination to an outcome."""

from __future__ import annotations

import shlex
import signal
import subprocess
from collections.abc import Mapping
from pathlib import Path

from loguru import logger

from .process import forward_signals
from .types import ExitCode, SessionOutcome, SessionSpec, Termination, signal_exit_code


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


def supervise(
    spec: SessionSpec,
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> SessionOutcome:
    """Start the wrapper with inherited stdio and wait for it to exit.

    The wrapper is the only child; the nested server and the artifact are
    its own children. The wrapper's exit code is passed through unchanged
    unless it was ended by a signal.
    """
    wrapper = spec.wrapper_args[0]
    logger.info("starting session on display {}: {}", spec.display, shlex.join(spec.wrapper_args))
    with forward_signals() as relay:
        try:
            # Wrapper argv is composed from operator configuration.
            process = subprocess.Popen(  # noqa: S603
                list(spec.wrapper_args),
                env=dict(env) if env is not None else None,
                cwd=cwd,
            )
        except OSError as exc:
            detail = f"could not start session wrapper {wrapper!r}: {exc.strerror or exc}"
            logger.error(detail)
            return SessionOutcome(
                ExitCode.WRAPPER_SPAWN_FAILED, Termination.WRAPPER_SPAWN_FAILED, detail, stage="supervise"
            )
        relay.attach(process)
        returncode = process.wait()

    if returncode < 0:
        detail = f"session wrapper terminated by {_signal_name(-returncode)}"
        logger.warning(detail)
        return SessionOutcome(signal_exit_code(-returncode), Termination.SIGNAL_OR_CRASH, detail)
    if relay.received is not None:
        detail = f"session interrupted by {_signal_name(relay.received)}, wrapper exited with {returncode}"
        logger.warning(detail)
        return SessionOutcome(
            signal_exit_code(relay.received), Termination.SIGNAL_OR_CRASH, detail
        )

    logger.info("session wrapper exited with {}", returncode)
    return SessionOutcome(
        returncode, Termination.NORMAL, f"session ended with exit code {returncode}"
    )
