"""nestrun - build it, then run it on a nested display."""

from .config import BuildPolicy, Settings, load_settings
from .launcher import Launcher
from .types import BuildResult, ExitCode, ResolvedBinary, SessionOutcome, SessionSpec, Termination

__version__ = "0.1.0"

__all__ = [
    "BuildPolicy",
    "BuildResult",
    "ExitCode",
    "Launcher",
    "ResolvedBinary",
    "SessionOutcome",
    "SessionSpec",
    "Settings",
    "Termination",
    "load_settings",
]
