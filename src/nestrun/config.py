"""Configuration management for nestrun."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import Geometry

_LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"})


class BuildPolicy(str, Enum):
    """What a failed build means for the session."""

    FAIL_FAST = "failFast"
    BEST_EFFORT = "bestEffort"


class Switch(str, Enum):
    ON = "on"
    OFF = "off"


class Settings(BaseSettings):
    """Launcher settings."""

    model_config = SettingsConfigDict(
        env_prefix="NESTRUN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Display
    display: int = Field(default=100, ge=0, description="Display number of the nested server")
    geometry: str = Field(default="800x600", description="Nested screen size, WIDTHxHEIGHT")
    access_control: Switch = Field(default=Switch.OFF, description="X access control")
    host_cursor: bool = Field(default=True, description="Show the host cursor in the nested display")
    server_binary: str = Field(default="Xephyr", description="Nested display server executable")
    server_extra_args: list[str] = Field(default_factory=list, description="Extra nested server arguments")

    # Session
    wrapper_binary: str = Field(default="xinit", description="Display-session wrapper executable")
    session_script: Optional[Path] = Field(
        default=Path("xinitrc"), description="Script the wrapper runs inside the session"
    )
    artifact_path: Optional[Path] = Field(None, description="Executable produced by the build")
    artifact_args: list[str] = Field(default_factory=list, description="Arguments for the artifact")

    # Build
    build_command: str = Field(default="cargo build", description="Command that builds the artifact")
    build_policy: BuildPolicy = Field(default=BuildPolicy.FAIL_FAST, description="failFast or bestEffort")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["rich", "plain"] = Field(default="rich", description="Log format")

    @field_validator("geometry")
    @classmethod
    def _normalize_geometry(cls, value: str) -> str:
        return str(Geometry.parse(value))

    @field_validator("session_script", "artifact_path", mode="before")
    @classmethod
    def _empty_path_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def screen(self) -> Geometry:
        return Geometry.parse(self.geometry)

    @property
    def access_control_enabled(self) -> bool:
        return self.access_control is Switch.ON


def load_settings(workspace: Path, **overrides: Any) -> Settings:
    """Load settings for ``workspace``.

    Explicit ``overrides`` win over ``NESTRUN_*`` environment variables and the
    workspace ``.env`` file; ``None`` overrides are ignored.
    """
    updates = {key: value for key, value in overrides.items() if value is not None}
    return Settings(_env_file=workspace / ".env", **updates)
