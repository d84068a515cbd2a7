from __future__ import annotations

import json
from argparse import Namespace
from datetime import datetime, timedelta, timezone
from io import StringIO
from pathlib import Path

import pytest

from rich.console import Console

from ecsctl.cli import _dispatch, main
from ecsctl.cli.output import format_age, print_details, print_records
from ecsctl.cli.parser import create_parser, split_trailing_command
from ecsctl.cli.runtime import Runtime
from ecsctl.cli.sessions import remote_command
from ecsctl.contexts import ContextStore
from ecsctl.exceptions import ValidationError
from ecsctl.shared import ResourceKind, ResourcePage

from ecs_fakes import FakeControlPlane, make_service, make_task


def _console() -> Console:
    return Console(file=StringIO(), force_terminal=False, color_system=None, width=200)


def _runtime(tmp_path: Path, api: FakeControlPlane) -> Runtime:
    config = {
        "collector": {"page_size": None},
        "relay": {"executable": "session-manager-plugin"},
    }
    return Runtime(
        config=config,
        store=ContextStore(tmp_path / "config.yaml"),
        api_factory=lambda target: api,
    )


async def _run(runtime: Runtime, *argv: str) -> tuple[int, str]:
    console = _console()
    args = create_parser().parse_args(list(argv))
    rc = await _dispatch(console, args, runtime)
    return rc, console.file.getvalue()


@pytest.fixture()
def services_api() -> FakeControlPlane:
    web = make_service("web", status="ACTIVE", desired_count=2, running_count=2)
    return FakeControlPlane(
        pages={ResourceKind.SERVICE: {None: ResourcePage(identifiers=(web.arn,))}},
        records={ResourceKind.SERVICE: {web.arn: web, "web": web}},
    )


def test_split_trailing_command() -> None:
    assert split_trailing_command(["exec", "abc", "--", "ls", "--", "-la"]) == (
        ["exec", "abc"],
        ["ls", "--", "-la"],
    )
    assert split_trailing_command(["get", "tasks"]) == (["get", "tasks"], [])


def test_parser_exec_and_port_forward() -> None:
    parser = create_parser()

    exec_args = parser.parse_args(["exec", "abc123", "-c", "app"])
    assert (exec_args.task, exec_args.container, exec_args.command_args) == ("abc123", "app", [])

    forward = parser.parse_args(["port-forward", "abc123", "8080:80"])
    assert forward.mapping == "8080:80"
    assert forward.container is None


def test_remote_command_joins_words() -> None:
    args = Namespace(command_args=[], trailing=["ls", "-la", "/tmp dir"])
    assert remote_command(args) == "ls -la '/tmp dir'"
    assert remote_command(Namespace(command_args=[], trailing=["/bin/sh"])) == "/bin/sh"

    with pytest.raises(ValidationError):
        remote_command(Namespace(command_args=[], trailing=[]))


def test_format_age() -> None:
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)

    assert format_age(None, now) == "-"
    assert format_age(now - timedelta(minutes=30), now) == "30m"
    assert format_age(now - timedelta(hours=5), now) == "5h"
    assert format_age(now - timedelta(days=3), now) == "3d"
    assert format_age(now - timedelta(days=60), now) == "2M"
    assert format_age(now - timedelta(days=400), now) == "1y"
    assert format_age(datetime(2024, 5, 31, 23, 0), now) == "1h"


def test_print_records_empty_and_json() -> None:
    console = _console()
    print_records(console, ResourceKind.TASK, [], "table")
    assert "No tasks found" in console.file.getvalue()

    console = _console()
    print_records(console, ResourceKind.SERVICE, [make_service("web", desired_count=0)], "json")
    data = json.loads(console.file.getvalue())
    assert data[0]["name"] == "web"
    assert data[0]["desired_count"] == 0


@pytest.mark.parametrize("fmt", ["table", "json", "yaml"])
def test_task_details_hide_sidecars(fmt: str) -> None:
    task = make_task("abc123", containers=("app", "ecs-service-connect-xyz"))
    console = _console()

    print_details(console, [task], fmt)

    out = console.file.getvalue()
    assert "app" in out
    assert "ecs-service-connect-xyz" not in out
    if fmt == "json":
        assert [c["name"] for c in json.loads(out)[0]["containers"]] == ["app"]


def test_missing_capacity_provider_stays_out_of_json() -> None:
    console = _console()
    print_details(console, [make_task("abc123")], "json")

    assert "capacity_provider" not in json.loads(console.file.getvalue())[0]


@pytest.mark.asyncio
async def test_context_lifecycle(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path, FakeControlPlane())

    rc, out = await _run(runtime, "config", "current-context")
    assert rc == 1
    assert "no current context set" in out

    rc, out = await _run(runtime, "config", "set-context", "dev", "--cluster", "demo")
    assert rc == 0
    assert "Context dev set and selected" in out

    rc, out = await _run(runtime, "config", "current-context")
    assert (rc, out.strip()) == (0, "dev")

    rc, out = await _run(runtime, "config", "view", "-o", "json")
    assert json.loads(out)["current-context"] == "dev"


@pytest.mark.asyncio
async def test_get_services_renders_table(tmp_path: Path, services_api) -> None:
    runtime = _runtime(tmp_path, services_api)
    await _run(runtime, "config", "set-context", "dev", "--cluster", "demo")

    rc, out = await _run(runtime, "get", "services")

    assert rc == 0
    assert "NAME" in out and "DESIRED" in out
    assert "web" in out
    assert services_api.list_calls == [(ResourceKind.SERVICE, None, 100)]


@pytest.mark.asyncio
async def test_describe_reports_missing_names(tmp_path: Path, services_api) -> None:
    runtime = _runtime(tmp_path, services_api)
    await _run(runtime, "config", "set-context", "dev", "--cluster", "demo")

    rc, out = await _run(runtime, "describe", "services", "web", "gone")

    assert rc == 1
    assert "Name:" in out
    assert "service gone not found" in out


@pytest.mark.asyncio
async def test_validation_errors_exit_with_2(tmp_path: Path) -> None:
    api = FakeControlPlane()
    runtime = _runtime(tmp_path, api)
    await _run(runtime, "config", "set-context", "dev", "--cluster", "demo")

    rc, out = await _run(runtime, "scale", "web", "--replicas", "-1")

    assert rc == 2
    assert "replicas must be zero or greater" in out
    assert api.scaled == []


@pytest.mark.asyncio
async def test_scale_and_stop(tmp_path: Path) -> None:
    api = FakeControlPlane()
    runtime = _runtime(tmp_path, api)
    await _run(runtime, "config", "set-context", "dev", "--cluster", "demo")

    assert (await _run(runtime, "scale", "web", "--replicas", "3"))[0] == 0
    assert (await _run(runtime, "stop", "abc123", "--reason", "rollout"))[0] == 0

    assert api.scaled == [("web", 3)]
    assert api.stopped == [("abc123", "rollout")]


def test_main_requires_a_command() -> None:
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2


def test_main_rejects_trailing_command_outside_exec() -> None:
    with pytest.raises(SystemExit) as info:
        main(["get", "services", "--", "ls"])
    assert info.value.code == 2


@pytest.mark.asyncio
async def test_doctor_flags_missing_relay_and_context(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path, FakeControlPlane())
    runtime.config["relay"]["executable"] = "ecsctl-test-no-such-relay"

    rc, out = await _run(runtime, "doctor")

    assert rc == 1
    assert "i platform:" in out
    assert "✗ relay: ecsctl-test-no-such-relay not found on PATH." in out
    assert "✓ registry:" in out
    assert "✗ context: no current context set" in out
