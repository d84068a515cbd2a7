"""Narrow interface the core uses to reach the control plane."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from ..shared import (
    ContainerLogConfig,
    DescribedResource,
    LogPage,
    ResourceKind,
    ResourcePage,
    Session,
)

__all__ = [
    "DEFAULT_STOP_REASON",
    "DESCRIBE_BATCH_LIMITS",
    "LIST_PAGE_LIMITS",
    "ControlPlaneAPI",
]

# Largest page each list call accepts.
LIST_PAGE_LIMITS: Dict[ResourceKind, int] = {
    ResourceKind.SERVICE: 100,
    ResourceKind.TASK: 100,
    ResourceKind.NODE: 100,
}

# Largest identifier batch each describe call accepts.
DESCRIBE_BATCH_LIMITS: Dict[ResourceKind, int] = {
    ResourceKind.SERVICE: 10,
    ResourceKind.TASK: 100,
    ResourceKind.NODE: 100,
}

DEFAULT_STOP_REASON = "Stopped via ecsctl"


@runtime_checkable
class ControlPlaneAPI(Protocol):
    """Control-plane capability bound to one target cluster.

    Every method is a coroutine and may raise ``RemoteAPIError``.
    """

    async def list_identifiers(
        self, kind: ResourceKind, cursor: Optional[str], page_size: int
    ) -> ResourcePage: ...

    async def describe(
        self, kind: ResourceKind, identifiers: Sequence[str]
    ) -> List[DescribedResource]: ...

    async def update_desired_count(self, service: str, count: int) -> None: ...

    async def stop(self, task: str, reason: str = DEFAULT_STOP_REASON) -> None: ...

    async def request_execution_session(
        self, task: str, container: str, command: str, interactive: bool = True
    ) -> Session: ...

    async def fetch_log_records(
        self,
        group: str,
        stream: str,
        start_time_millis: int,
        page_token: Optional[str],
    ) -> LogPage: ...

    async def describe_task_log_config(self, task: str) -> List[ContainerLogConfig]: ...
