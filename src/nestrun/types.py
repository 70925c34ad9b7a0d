"""Shared launcher dataclasses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path

from .errors import InvalidGeometryError

_GEOMETRY_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


class ExitCode(IntEnum):
    OK = 0
    USAGE = 2
    BUILD_FAILED = 10
    BINARY_NOT_FOUND = 11
    WRAPPER_SPAWN_FAILED = 12


def signal_exit_code(signum: int) -> int:
    """Shell convention for a process ended by signal ``signum``."""
    return 128 + signum


class Termination(str, Enum):
    NORMAL = "normal"
    BUILD_FAILED = "build_failed"
    BINARY_NOT_FOUND = "binary_not_found"
    WRAPPER_SPAWN_FAILED = "wrapper_spawn_failed"
    SIGNAL_OR_CRASH = "signal_or_crash"


@dataclass(frozen=True)
class Geometry:
    """Screen size of the nested display."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidGeometryError(f"geometry must be positive, got {self.width}x{self.height}")

    @classmethod
    def parse(cls, raw: str) -> Geometry:
        match = _GEOMETRY_PATTERN.match(raw)
        if match is None:
            raise InvalidGeometryError(f"invalid geometry {raw!r}, expected WIDTHxHEIGHT")
        return cls(int(match.group(1)), int(match.group(2)))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class BuildResult:
    success: bool
    artifact_path: Path | None
    diagnostic_output: str
    exit_code: int = 0
    interrupted_by: int | None = None


@dataclass(frozen=True)
class ResolvedBinary:
    name: str
    absolute_path: Path | None

    @property
    def found(self) -> bool:
        return self.absolute_path is not None


@dataclass(frozen=True)
class SessionSpec:
    """Argument vectors for one display session.

    ``server_args`` are the nested server's own arguments (display token
    first); ``wrapper_args`` is the complete argv of the session wrapper,
    which embeds the server invocation after the ``--`` delimiter.
    """

    display_number: int
    server_args: tuple[str, ...]
    wrapper_args: tuple[str, ...]

    @property
    def display(self) -> str:
        return f":{self.display_number}"


@dataclass(frozen=True)
class SessionOutcome:
    """Terminal result of one invocation; becomes the process exit status.

    ``stage`` names the launcher stage that produced the outcome.
    """

    exit_code: int
    terminated_by: Termination
    detail: str = ""
    stage: str = "session"

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
