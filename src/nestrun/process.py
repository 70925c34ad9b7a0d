"""Signal forwarding for the launcher's foreground child."""

from __future__ import annotations

import contextlib
import signal
import subprocess
import threading
from collections.abc import Iterator
from types import FrameType

from loguru import logger

FORWARDED_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


class SignalRelay:
    """Signal handler that passes every received signal on to one child.

    The relay can be installed before the child exists; a signal received
    before ``attach`` is delivered as soon as the child is attached.
    """

    def __init__(self, process: subprocess.Popen | None = None) -> None:
        self._process = process
        self.received: int | None = None

    def attach(self, process: subprocess.Popen) -> None:
        self._process = process
        if self.received is not None:
            self._forward(self.received)

    def __call__(self, signum: int, frame: FrameType | None) -> None:
        _ = frame
        self.received = signum
        self._forward(signum)

    def _forward(self, signum: int) -> None:
        process = self._process
        if process is None or process.poll() is not None:
            return
        logger.debug("forwarding signal {} to pid {}", signal.Signals(signum).name, process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.send_signal(signum)


@contextlib.contextmanager
def forward_signals(
    process: subprocess.Popen | None = None,
    signals: tuple[signal.Signals, ...] = FORWARDED_SIGNALS,
) -> Iterator[SignalRelay]:
    """Forward ``signals`` to the relay's child until the block exits.

    Enter the block before spawning and ``attach`` the child once it exists,
    so no signal between spawn and wait escapes as ``KeyboardInterrupt``.
    """
    relay = SignalRelay(process)
    if threading.current_thread() is not threading.main_thread():
        logger.debug("not in main thread, signals will not be forwarded")
        yield relay
        return

    previous = {signum: signal.signal(signum, relay) for signum in signals}
    try:
        yield relay
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
