from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from nestrun.config import BuildPolicy, Settings
from nestrun.launcher import ARTIFACT_ENV, Launcher, LauncherState
from nestrun.types import BuildResult, ExitCode, ResolvedBinary, SessionOutcome, SessionSpec, Termination

XEPHYR = Path("/usr/bin/Xephyr")


class _Stages:
    """Recording fakes for the build, resolve and supervise stages."""

    def __init__(
        self,
        *,
        build: BuildResult | None = None,
        server: Path | None = XEPHYR,
        outcome: SessionOutcome | None = None,
    ) -> None:
        self.build_result = build or BuildResult(True, None, "Finished dev profile")
        self.server = server
        self.outcome = outcome or SessionOutcome(0, Termination.NORMAL)
        self.calls: list[str] = []
        self.build_kwargs: dict[str, Any] = {}
        self.sessions: list[SessionSpec] = []
        self.session_env: dict[str, str] = {}

    def build(self, command: str, **kwargs: Any) -> BuildResult:
        self.calls.append("build")
        self.build_kwargs = {"command": command, **kwargs}
        return self.build_result

    def resolve(self, name: str) -> ResolvedBinary:
        self.calls.append("resolve")
        return ResolvedBinary(name, self.server)

    def supervise(self, spec: SessionSpec, *, env: dict[str, str], cwd: Path) -> SessionOutcome:
        self.calls.append("supervise")
        self.sessions.append(spec)
        self.session_env = env
        return self.outcome

    def launcher(self, settings: Settings, workspace: Path) -> Launcher:
        return Launcher(
            settings,
            workspace,
            builder=self.build,
            resolver=self.resolve,
            supervisor=self.supervise,
            environ={"HOME": "/home/dev"},
        )


def _settings(**overrides: Any) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_successful_session_runs_every_stage_in_order(tmp_path: Path) -> None:
    stages = _Stages()
    launcher = stages.launcher(_settings(), tmp_path)

    outcome = launcher.run()

    assert outcome.exit_code == 0
    assert stages.calls == ["build", "resolve", "supervise"]
    assert launcher.history == [
        LauncherState.INIT,
        LauncherState.BUILDING,
        LauncherState.RESOLVING,
        LauncherState.COMPOSING,
        LauncherState.SUPERVISING,
        LauncherState.TERMINATED,
    ]
    session = stages.sessions[0]
    assert session.server_args == (":100", "-ac", "-screen", "800x600", "-host-cursor")
    assert session.wrapper_args[:3] == ("xinit", str(tmp_path / "xinitrc"), "--")
    assert session.wrapper_args[3] == str(XEPHYR)


def test_build_command_runs_in_workspace(tmp_path: Path) -> None:
    stages = _Stages()
    stages.launcher(_settings(build_command="make app", artifact_path="bin/app"), tmp_path).run()

    assert stages.build_kwargs == {
        "command": "make app",
        "cwd": tmp_path,
        "artifact_path": tmp_path / "bin/app",
    }


def test_fail_fast_build_failure_never_starts_a_session(tmp_path: Path) -> None:
    stages = _Stages(build=BuildResult(False, None, "error: aborting", exit_code=101))
    launcher = stages.launcher(_settings(build_policy=BuildPolicy.FAIL_FAST), tmp_path)

    outcome = launcher.run()

    assert outcome.exit_code == ExitCode.BUILD_FAILED
    assert outcome.terminated_by is Termination.BUILD_FAILED
    assert "101" in outcome.detail
    assert stages.calls == ["build"]
    assert launcher.state is LauncherState.BUILD_FAILED
    assert launcher.session is None


def test_best_effort_build_failure_still_runs_existing_artifact(tmp_path: Path) -> None:
    artifact = tmp_path / "target/debug/app"
    stages = _Stages(build=BuildResult(False, artifact, "clippy failed", exit_code=1))
    launcher = stages.launcher(
        _settings(build_policy=BuildPolicy.BEST_EFFORT, session_script="", artifact_path="target/debug/app"),
        tmp_path,
    )

    outcome = launcher.run()

    assert outcome.exit_code == 0
    assert stages.calls == ["build", "resolve", "supervise"]
    assert stages.sessions[0].wrapper_args[:3] == ("xinit", str(artifact), "--")
    assert stages.session_env[ARTIFACT_ENV] == str(artifact)
    assert stages.session_env["HOME"] == "/home/dev"


def test_best_effort_without_artifact_still_starts_session(tmp_path: Path) -> None:
    stages = _Stages(build=BuildResult(False, None, "", exit_code=1))
    stages.launcher(_settings(build_policy=BuildPolicy.BEST_EFFORT), tmp_path).run()

    assert stages.calls == ["build", "resolve", "supervise"]
    assert ARTIFACT_ENV not in stages.session_env


def test_missing_server_stops_before_composing(tmp_path: Path) -> None:
    stages = _Stages(server=None)
    launcher = stages.launcher(_settings(), tmp_path)

    outcome = launcher.run()

    assert outcome.exit_code == ExitCode.BINARY_NOT_FOUND
    assert outcome.terminated_by is Termination.BINARY_NOT_FOUND
    assert "Xephyr" in outcome.detail
    assert stages.calls == ["build", "resolve"]
    assert launcher.session is None
    assert LauncherState.COMPOSING not in launcher.history


def test_wrapper_outcome_is_returned_unchanged(tmp_path: Path) -> None:
    outcome = SessionOutcome(130, Termination.SIGNAL_OR_CRASH, "interrupted")
    stages = _Stages(outcome=outcome)
    assert stages.launcher(_settings(), tmp_path).run() is outcome


def test_interrupted_build_ends_with_signal_code_under_best_effort(tmp_path: Path) -> None:
    stages = _Stages(build=BuildResult(False, None, "", exit_code=-2, interrupted_by=2))
    launcher = stages.launcher(_settings(build_policy=BuildPolicy.BEST_EFFORT), tmp_path)

    outcome = launcher.run()

    assert outcome.exit_code == 130
    assert outcome.terminated_by is Termination.SIGNAL_OR_CRASH
    assert stages.calls == ["build"]


def test_dry_run_composes_without_building_or_supervising(tmp_path: Path) -> None:
    stages = _Stages()
    launcher = stages.launcher(_settings(display=101, geometry="1024x768"), tmp_path)

    outcome = launcher.run(dry_run=True)

    assert outcome.exit_code == 0
    assert stages.calls == ["resolve"]
    assert launcher.session is not None
    assert launcher.session.server_args[:4] == (":101", "-ac", "-screen", "1024x768")


def test_launcher_runs_only_once(tmp_path: Path) -> None:
    stages = _Stages()
    launcher = stages.launcher(_settings(), tmp_path)
    launcher.run()

    with pytest.raises(RuntimeError):
        launcher.run()


def test_failure_outcomes_name_their_stage(tmp_path: Path) -> None:
    interrupted = _Stages(build=BuildResult(False, None, "", exit_code=-2, interrupted_by=2))
    failed = _Stages(build=BuildResult(False, None, "", exit_code=1))
    missing = _Stages(server=None)

    assert interrupted.launcher(_settings(), tmp_path).run().stage == "build"
    assert failed.launcher(_settings(), tmp_path).run().stage == "build"
    assert missing.launcher(_settings(), tmp_path).run().stage == "resolve"
