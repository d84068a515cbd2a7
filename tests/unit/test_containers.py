import pytest

from ecsctl.exceptions import AmbiguousContainerError, NotFoundError
from ecsctl.remote.containers import fetch_task, resolve_container
from ecsctl.shared import ResourceKind

from ecs_fakes import FakeControlPlane, make_task


def test_single_user_container_is_autodetected() -> None:
    task = make_task("t1", containers=("web", "ecs-service-connect-abc"))
    assert resolve_container(task) == "web"


def test_multiple_user_containers_are_ambiguous() -> None:
    task = make_task("t1", containers=("web", "worker", "ecs-service-connect-abc"))

    with pytest.raises(AmbiguousContainerError) as info:
        resolve_container(task)

    assert info.value.candidates == ["web", "worker"]
    assert "--container" in str(info.value)


def test_only_sidecars_means_no_candidate() -> None:
    task = make_task("t1", containers=("ecs-service-connect-abc",))
    with pytest.raises(NotFoundError):
        resolve_container(task)


def test_explicit_container_must_exist() -> None:
    task = make_task("t1", containers=("web", "worker"))

    assert resolve_container(task, "worker") == "worker"
    with pytest.raises(NotFoundError, match="container db not found"):
        resolve_container(task, "db")


@pytest.mark.asyncio
async def test_fetch_task_matches_short_id_or_arn() -> None:
    task = make_task("abc")
    api = FakeControlPlane(records={ResourceKind.TASK: {"abc": task, task.arn: task}})

    assert await fetch_task(api, "abc") is task
    assert await fetch_task(api, task.arn) is task


@pytest.mark.asyncio
async def test_fetch_task_not_found() -> None:
    with pytest.raises(NotFoundError, match="task missing not found"):
        await fetch_task(FakeControlPlane(), "missing")
