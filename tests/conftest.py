import pytest

from ecs_fakes import FakeControlPlane, awslogs, make_task
from ecsctl.contexts import Target
from ecsctl.shared import ResourceKind


@pytest.fixture()
def target() -> Target:
    return Target(name="dev", cluster_id="demo", credential_profile="default", region="eu-west-1")


@pytest.fixture()
def task_api() -> FakeControlPlane:
    """Control plane with one single-container task ``abc123``."""
    task = make_task("abc123", containers=("app", "ecs-service-connect-xyz"))
    return FakeControlPlane(
        records={ResourceKind.TASK: {"abc123": task, task.arn: task}},
        log_configs=[awslogs("app"), awslogs("ecs-service-connect-xyz")],
    )
