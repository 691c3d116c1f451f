from __future__ import annotations

import asyncio
import os
import signal
import sys
import time

import pytest
from typer.testing import CliRunner

from conftest import FakeVrcApi, make_member
from vrc_group_tracker import main
from vrc_group_tracker.domain.entities.group import Group
from vrc_group_tracker.domain.entities.permission import RolePermission as P
from vrc_group_tracker.errors import AuthenticationError, NotGroupMemberError, RemoteApiError
from vrc_group_tracker.services import tracker_service
from vrc_group_tracker.services.tracker_service import TrackerResult

runner = CliRunner()

ARGS = ["-u", "carol", "-p", "pw", "-g", "grp_1", "-k", "GEZDGNBV"]


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path, restore_logging):
    monkeypatch.chdir(tmp_path)
    for name in ("USERNAME", "PASSWORD", "GROUPS", "KEY", "WORKSPACE", "OUTPUT"):
        monkeypatch.delenv(f"TRACKER_{name}", raising=False)


def test_missing_inputs_exit_before_any_remote_call() -> None:
    result = runner.invoke(main.app, ["-g", "grp_1"])
    assert result.exit_code == 2
    assert "missing required input" in result.output


def test_success_exits_zero(monkeypatch, tmp_path) -> None:
    seen = {}

    async def fake_run(settings, token):
        seen["groups"] = settings.group_ids()
        seen["workspace"] = settings.workspace
        return TrackerResult(report={"Alice": [P.ViewAuditLog]}, path=tmp_path / "out" / "data.json")

    monkeypatch.setattr(main, "run_tracker", fake_run)
    result = runner.invoke(main.app, ARGS + ["-g", "grp_1,grp_2", "-w", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert seen["groups"] == ["grp_1", "grp_2"]
    assert seen["workspace"] == tmp_path
    assert "Done!" in result.output


@pytest.mark.parametrize(
    "error",
    [
        AuthenticationError("failed to validate 2FA"),
        NotGroupMemberError("grp_1"),
        RemoteApiError("Too Many Requests", error_code=429),
    ],
)
def test_fatal_errors_exit_non_zero(monkeypatch, error) -> None:
    async def fake_run(settings, token):
        raise error

    monkeypatch.setattr(main, "run_tracker", fake_run)
    result = runner.invoke(main.app, ARGS)

    assert result.exit_code == 2
    assert error.message in result.output


def test_remote_error_prints_status_code(monkeypatch) -> None:
    async def fake_run(settings, token):
        raise RemoteApiError("Too Many Requests", error_code=429)

    monkeypatch.setattr(main, "run_tracker", fake_run)
    result = runner.invoke(main.app, ARGS)

    assert "Status Code: 429" in result.output


def test_unexpected_error_exits_one(monkeypatch) -> None:
    async def fake_run(settings, token):
        raise RuntimeError("boom")

    monkeypatch.setattr(main, "run_tracker", fake_run)
    result = runner.invoke(main.app, ARGS)

    assert result.exit_code == 1


def test_invalid_log_level_is_input_error() -> None:
    result = runner.invoke(main.app, ARGS + ["--log-level", "verbose"])

    assert result.exit_code == 2
    assert "log level must be one of" in result.output


def test_cli_options_override_environment(monkeypatch) -> None:
    monkeypatch.setenv("TRACKER_GROUPS", "grp_env")
    monkeypatch.setenv("TRACKER_USERNAME", "env_user")

    settings = main.build_settings(groups="grp_cli", username=None, log_level="warning")

    assert settings.group_ids() == ["grp_cli"]
    assert settings.username == "env_user"
    assert settings.log_level == "WARNING"


@pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
def test_sigint_during_page_delay_exits_130(monkeypatch, tmp_path, carol) -> None:
    roster = [make_member(f"usr_{i}", f"User {i}") for i in range(249)]
    group = Group.model_validate(
        {"id": "grp_1", "name": "Big", "memberCount": 250, "myMember": {"userId": "usr_c", "roleIds": []}}
    )
    api = FakeVrcApi(groups={"grp_1": group}, rosters={"grp_1": roster}, login_user=carol)

    async def run_with_slow_pages(settings, token):
        settings = settings.model_copy(update={"members_page_delay_seconds": 5.0})
        asyncio.get_running_loop().call_later(0.2, os.kill, os.getpid(), signal.SIGINT)
        return await tracker_service.run_tracker(settings, token, api=api)

    monkeypatch.setattr(main, "run_tracker", run_with_slow_pages)
    started = time.monotonic()
    result = runner.invoke(main.app, ARGS + ["-w", str(tmp_path)])

    assert result.exit_code == 130, result.output
    assert "operation cancelled" in result.output
    assert time.monotonic() - started < 4
    assert len([c for c in api.calls if c[0] == "get_group_members"]) == 1
    assert not list(tmp_path.rglob("data.json"))
