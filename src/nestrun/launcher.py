"""Session orchestration: build, resolve, compose, supervise."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from .build import run_build
from .composer import compose_session, session_client
from .config import BuildPolicy, Settings
from .resolver import resolve_binary
from .supervisor import supervise
from .types import (
    BuildResult,
    ExitCode,
    ResolvedBinary,
    SessionOutcome,
    SessionSpec,
    Termination,
    signal_exit_code,
)

ARTIFACT_ENV = "NESTRUN_ARTIFACT"

Builder = Callable[..., BuildResult]
Resolver = Callable[[str], ResolvedBinary]
Supervisor = Callable[..., SessionOutcome]


class LauncherState(str, Enum):
    INIT = "init"
    BUILDING = "building"
    BUILD_FAILED = "build_failed"
    RESOLVING = "resolving"
    BINARY_NOT_FOUND = "binary_not_found"
    COMPOSING = "composing"
    SUPERVISING = "supervising"
    TERMINATED = "terminated"


_TRANSITIONS: dict[LauncherState, frozenset[LauncherState]] = {
    LauncherState.INIT: frozenset({LauncherState.BUILDING, LauncherState.RESOLVING}),
    LauncherState.BUILDING: frozenset(
        {LauncherState.BUILD_FAILED, LauncherState.RESOLVING, LauncherState.TERMINATED}
    ),
    LauncherState.RESOLVING: frozenset({LauncherState.BINARY_NOT_FOUND, LauncherState.COMPOSING}),
    LauncherState.COMPOSING: frozenset({LauncherState.SUPERVISING, LauncherState.TERMINATED}),
    LauncherState.SUPERVISING: frozenset({LauncherState.TERMINATED}),
}


class Launcher:
    """Run one build-then-session invocation.

    The stage callables default to the real implementations and can be
    replaced for tests.
    """

    def __init__(
        self,
        settings: Settings,
        workspace: Path,
        *,
        builder: Builder = run_build,
        resolver: Resolver = resolve_binary,
        supervisor: Supervisor = supervise,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings
        self.workspace = workspace.absolute()
        self._builder = builder
        self._resolver = resolver
        self._supervisor = supervisor
        self._environ = environ if environ is not None else os.environ
        self.state = LauncherState.INIT
        self.history: list[LauncherState] = [LauncherState.INIT]
        self.session: SessionSpec | None = None

    def _enter(self, state: LauncherState) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if state not in allowed:
            raise RuntimeError(f"invalid launcher transition {self.state.value} -> {state.value}")
        logger.debug("launcher: {} -> {}", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def run(self, *, dry_run: bool = False) -> SessionOutcome:
        artifact = self.settings.artifact_path
        if dry_run:
            logger.info("dry run, skipping build")
        else:
            self._enter(LauncherState.BUILDING)
            build = self._builder(
                self.settings.build_command,
                cwd=self.workspace,
                artifact_path=self._workspace_path(artifact),
            )
            stopped = self._check_build(build)
            if stopped is not None:
                return stopped
            artifact = build.artifact_path

        self._enter(LauncherState.RESOLVING)
        server = self._resolver(self.settings.server_binary)
        if not server.found:
            self._enter(LauncherState.BINARY_NOT_FOUND)
            detail = f"nested display server {server.name!r} not found on PATH"
            logger.error(detail)
            return SessionOutcome(
                ExitCode.BINARY_NOT_FOUND, Termination.BINARY_NOT_FOUND, detail, stage="resolve"
            )

        self._enter(LauncherState.COMPOSING)
        self.session = self._compose(server, artifact)
        if dry_run:
            self._enter(LauncherState.TERMINATED)
            return SessionOutcome(ExitCode.OK, Termination.NORMAL, "dry run, session not started", stage="compose")

        self._enter(LauncherState.SUPERVISING)
        outcome = self._supervisor(self.session, env=self._session_env(artifact), cwd=self.workspace)
        self._enter(LauncherState.TERMINATED)
        return outcome

    def _check_build(self, build: BuildResult) -> SessionOutcome | None:
        if build.interrupted_by is not None:
            self._enter(LauncherState.TERMINATED)
            detail = f"build interrupted by signal {build.interrupted_by}"
            logger.warning(detail)
            return SessionOutcome(
                signal_exit_code(build.interrupted_by), Termination.SIGNAL_OR_CRASH, detail, stage="build"
            )
        if build.success:
            if build.diagnostic_output:
                logger.debug("build output:\n{}", build.diagnostic_output.rstrip())
            logger.info("build succeeded")
            return None

        if build.diagnostic_output:
            logger.error("build output:\n{}", build.diagnostic_output.rstrip())
        if self.settings.build_policy is BuildPolicy.FAIL_FAST:
            self._enter(LauncherState.BUILD_FAILED)
            detail = f"build command failed with exit code {build.exit_code}"
            logger.error(detail)
            return SessionOutcome(ExitCode.BUILD_FAILED, Termination.BUILD_FAILED, detail, stage="build")

        if build.artifact_path is None:
            logger.warning("build failed (exit code {}), continuing without an artifact", build.exit_code)
        else:
            logger.warning(
                "build failed (exit code {}), continuing with existing artifact {}",
                build.exit_code,
                build.artifact_path,
            )
        return None

    def _compose(self, server: ResolvedBinary, artifact: Path | None) -> SessionSpec:
        settings = self.settings
        client = session_client(
            self.workspace,
            session_script=settings.session_script,
            artifact_path=artifact,
            artifact_args=settings.artifact_args,
        )
        return compose_session(
            server_path=str(server.absolute_path),
            display_number=settings.display,
            geometry=settings.screen,
            access_control=settings.access_control_enabled,
            host_cursor=settings.host_cursor,
            wrapper=settings.wrapper_binary,
            client=client,
            extra_server_args=settings.server_extra_args,
        )

    def _session_env(self, artifact: Path | None) -> dict[str, str]:
        env = dict(self._environ)
        if artifact is not None:
            env[ARTIFACT_ENV] = str(self._workspace_path(artifact))
        return env

    def _workspace_path(self, path: Path | None) -> Path | None:
        if path is None:
            return None
        return self.workspace / path
