import pytest

from ecsctl.collector import CollectorPhase, PaginatedCollector, PaginationState
from ecsctl.exceptions import RemoteAPIError
from ecsctl.shared import NodeRecord, ResourceKind, ResourcePage

from ecs_fakes import FakeControlPlane, make_service, make_task


def _task_api(pages, task_ids):
    tasks = {tid: make_task(tid) for tid in task_ids}
    return FakeControlPlane(pages={ResourceKind.TASK: pages}, records={ResourceKind.TASK: tasks})


@pytest.mark.asyncio
async def test_collects_every_page_in_listing_order() -> None:
    pages = {
        None: ResourcePage(("t1", "t2", "t3"), "c1"),
        "c1": ResourcePage(("t4", "t5"), "c2"),
        "c2": ResourcePage(("t6",), None),
    }
    api = _task_api(pages, ["t1", "t2", "t3", "t4", "t5", "t6"])

    records = await PaginatedCollector(api, ResourceKind.TASK).collect()

    assert [r.task_id for r in records] == ["t1", "t2", "t3", "t4", "t5", "t6"]
    assert [cursor for _, cursor, _ in api.list_calls] == [None, "c1", "c2"]
    assert all(size == 100 for _, _, size in api.list_calls)


@pytest.mark.asyncio
async def test_service_describe_batches_respect_limit() -> None:
    names = [f"svc-{i:02d}" for i in range(25)]
    api = FakeControlPlane(
        pages={ResourceKind.SERVICE: {None: ResourcePage(tuple(names), None)}},
        records={ResourceKind.SERVICE: {n: make_service(n) for n in names}},
    )

    records = await PaginatedCollector(api, ResourceKind.SERVICE).collect()

    assert [len(batch) for _, batch in api.describe_calls] == [10, 10, 5]
    assert [r.name for r in records] == names


@pytest.mark.asyncio
async def test_page_size_is_capped_at_list_limit() -> None:
    api = _task_api({None: ResourcePage(("t1",), None)}, ["t1"])

    await PaginatedCollector(api, ResourceKind.TASK, page_size=500).collect()

    assert api.list_calls[0][2] == 100


@pytest.mark.asyncio
async def test_vanished_identifiers_are_dropped() -> None:
    api = _task_api({None: ResourcePage(("t1", "gone", "t2"), None)}, ["t1", "t2"])

    records = await PaginatedCollector(api, ResourceKind.TASK).collect()

    assert [r.task_id for r in records] == ["t1", "t2"]


@pytest.mark.asyncio
async def test_empty_page_ends_listing_even_with_cursor() -> None:
    api = _task_api({None: ResourcePage((), "dangling")}, [])

    records = await PaginatedCollector(api, ResourceKind.TASK).collect()

    assert records == []
    assert len(api.list_calls) == 1
    assert api.describe_calls == []


@pytest.mark.asyncio
async def test_duplicate_identifiers_across_pages_keep_first_record() -> None:
    pages = {
        None: ResourcePage(("t1", "t2"), "c1"),
        "c1": ResourcePage(("t2", "t3"), None),
    }
    api = _task_api(pages, ["t1", "t2", "t3"])

    records = await PaginatedCollector(api, ResourceKind.TASK).collect()

    assert [r.task_id for r in records] == ["t1", "t2", "t3"]


@pytest.mark.asyncio
async def test_describe_selected_skips_listing_and_dedupes() -> None:
    api = FakeControlPlane(
        records={ResourceKind.SERVICE: {"web": make_service("web"), "api": make_service("api")}}
    )

    records = await PaginatedCollector(api, ResourceKind.SERVICE).describe_selected(
        ["web", "api", "web"]
    )

    assert [r.name for r in records] == ["web", "api"]
    assert api.list_calls == []
    assert api.describe_calls == [(ResourceKind.SERVICE, ["web", "api"])]


@pytest.mark.asyncio
async def test_node_records_match_by_short_id() -> None:
    node = NodeRecord(arn="arn:aws:ecs:us-east-1:1:container-instance/demo/ci-1", instance_id="ci-1")
    api = FakeControlPlane(
        pages={ResourceKind.NODE: {None: ResourcePage(("ci-1",), None)}},
        records={ResourceKind.NODE: {"ci-1": node}},
    )

    records = await PaginatedCollector(api, ResourceKind.NODE).collect()

    assert records == [node]


@pytest.mark.asyncio
async def test_failed_describe_aborts_collection() -> None:
    api = _task_api({None: ResourcePage(("t1",), None)}, ["t1"])
    api.describe_error = RemoteAPIError("DescribeTasks", RuntimeError("throttled"))

    with pytest.raises(RemoteAPIError, match="DescribeTasks failed"):
        await PaginatedCollector(api, ResourceKind.TASK).collect()


@pytest.mark.asyncio
async def test_failed_list_page_aborts_collection() -> None:
    api = _task_api({None: ResourcePage(("t1",), "c1")}, ["t1"])
    failing = RemoteAPIError("ListTasks", RuntimeError("expired token"))
    list_identifiers = api.list_identifiers

    async def list_then_fail(kind, cursor, page_size):
        if cursor == "c1":
            raise failing
        return await list_identifiers(kind, cursor, page_size)

    api.list_identifiers = list_then_fail

    with pytest.raises(RemoteAPIError, match="ListTasks failed"):
        await PaginatedCollector(api, ResourceKind.TASK).collect()

    assert api.describe_calls == [(ResourceKind.TASK, ["t1"])]


def test_pagination_state_walks_phases() -> None:
    state = PaginationState(batch_size=2)
    assert state.phase is CollectorPhase.LIST

    state.accept_page(ResourcePage(("a", "b", "c"), "next"))
    assert state.phase is CollectorPhase.DESCRIBE
    assert state.next_batch() == ["a", "b"]
    state.batch_done()
    assert state.next_batch() == ["c"]
    state.batch_done()
    assert state.phase is CollectorPhase.LIST
    assert state.cursor == "next"

    state.accept_page(ResourcePage((), None))
    assert state.phase is CollectorPhase.DONE
    assert state.pages_seen == 2


def test_pagination_state_rejects_out_of_phase_calls() -> None:
    state = PaginationState.for_identifiers(["a"], batch_size=5)
    with pytest.raises(RuntimeError):
        state.accept_page(ResourcePage(("b",), None))
    with pytest.raises(ValueError):
        PaginationState(batch_size=0)
