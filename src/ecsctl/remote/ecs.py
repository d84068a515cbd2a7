"""boto3-backed control plane for Amazon ECS and CloudWatch Logs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..contexts import Target
from ..exceptions import NotFoundError, RemoteAPIError
from ..shared import (
    ContainerLogConfig,
    DescribedResource,
    LogPage,
    LogRecord,
    NodeRecord,
    ResourceKind,
    ResourcePage,
    ServiceRecord,
    Session,
    TaskRecord,
)
from .api import DEFAULT_STOP_REASON

__all__ = ["EcsControlPlane"]

logger = logging.getLogger(__name__)

# kind -> (operation, client method, response key)
_LIST_CALLS: Dict[ResourceKind, Tuple[str, str, str]] = {
    ResourceKind.SERVICE: ("ListServices", "list_services", "serviceArns"),
    ResourceKind.TASK: ("ListTasks", "list_tasks", "taskArns"),
    ResourceKind.NODE: (
        "ListContainerInstances",
        "list_container_instances",
        "containerInstanceArns",
    ),
}

# kind -> (operation, client method, request/response key, record type)
_DESCRIBE_CALLS: Dict[ResourceKind, Tuple[str, str, str, Type[Any]]] = {
    ResourceKind.SERVICE: (
        "DescribeServices",
        "describe_services",
        "services",
        ServiceRecord,
    ),
    ResourceKind.TASK: ("DescribeTasks", "describe_tasks", "tasks", TaskRecord),
    ResourceKind.NODE: (
        "DescribeContainerInstances",
        "describe_container_instances",
        "containerInstances",
        NodeRecord,
    ),
}


def _compact(**kwargs: Any) -> Dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


class EcsControlPlane:
    """``ControlPlaneAPI`` implementation bound to one ``Target``.

    boto3 is synchronous; each call runs in a worker thread so the event
    loop stays responsive to cancellation and signals.
    """

    def __init__(
        self,
        target: Target,
        *,
        session: Optional[boto3.session.Session] = None,
        ecs_client: Any = None,
        logs_client: Any = None,
    ) -> None:
        self.target = target
        try:
            if ecs_client is None or logs_client is None:
                session = session or boto3.session.Session(
                    profile_name=target.credential_profile or None,
                    region_name=target.region or None,
                )
            self._ecs = ecs_client or session.client("ecs")
            self._logs = logs_client or session.client("logs")
        except BotoCoreError as exc:
            raise RemoteAPIError("CreateClient", exc) from exc

    @property
    def cluster(self) -> str:
        return self.target.cluster_id

    # ------------------------------------------------------------------ #
    # Resources
    # ------------------------------------------------------------------ #
    async def list_identifiers(
        self, kind: ResourceKind, cursor: Optional[str], page_size: int
    ) -> ResourcePage:
        operation, method, key = _LIST_CALLS[kind]
        response = await self._invoke(
            operation,
            getattr(self._ecs, method),
            **_compact(cluster=self.cluster, maxResults=page_size, nextToken=cursor),
        )
        return ResourcePage(
            identifiers=tuple(response.get(key, ())),
            cursor=response.get("nextToken") or None,
        )

    async def describe(
        self, kind: ResourceKind, identifiers: Sequence[str]
    ) -> List[DescribedResource]:
        if not identifiers:
            return []
        operation, method, key, record_type = _DESCRIBE_CALLS[kind]
        response = await self._invoke(
            operation,
            getattr(self._ecs, method),
            cluster=self.cluster,
            **{key: list(identifiers)},
        )
        for failure in response.get("failures", ()):
            logger.debug(
                "describe_failure operation=%s arn=%s reason=%s",
                operation,
                failure.get("arn"),
                failure.get("reason"),
            )
        return [record_type.from_api(raw) for raw in response.get(key, ())]

    async def update_desired_count(self, service: str, count: int) -> None:
        await self._invoke(
            "UpdateService",
            self._ecs.update_service,
            cluster=self.cluster,
            service=service,
            desiredCount=count,
        )

    async def stop(self, task: str, reason: str = DEFAULT_STOP_REASON) -> None:
        await self._invoke(
            "StopTask", self._ecs.stop_task, cluster=self.cluster, task=task, reason=reason
        )

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #
    async def request_execution_session(
        self, task: str, container: str, command: str, interactive: bool = True
    ) -> Session:
        if not interactive:
            logger.debug("execute_command supports interactive sessions only; forcing")
        response = await self._invoke(
            "ExecuteCommand",
            self._ecs.execute_command,
            cluster=self.cluster,
            task=task,
            container=container,
            command=command,
            interactive=True,
        )
        raw = response.get("session") or {}
        return Session(
            session_id=raw.get("sessionId", ""),
            stream_url=raw.get("streamUrl", ""),
            token=raw.get("tokenValue", ""),
        )

    # ------------------------------------------------------------------ #
    # Logs
    # ------------------------------------------------------------------ #
    async def describe_task_log_config(self, task: str) -> List[ContainerLogConfig]:
        response = await self._invoke(
            "DescribeTasks", self._ecs.describe_tasks, cluster=self.cluster, tasks=[task]
        )
        tasks = response.get("tasks") or []
        if not tasks:
            raise NotFoundError(f"task {task} not found")
        definition = await self._invoke(
            "DescribeTaskDefinition",
            self._ecs.describe_task_definition,
            taskDefinition=tasks[0]["taskDefinitionArn"],
        )
        configs: List[ContainerLogConfig] = []
        for container in definition["taskDefinition"].get("containerDefinitions", ()):
            log_cfg = container.get("logConfiguration") or {}
            configs.append(
                ContainerLogConfig(
                    container=container.get("name", ""),
                    driver=log_cfg.get("logDriver"),
                    options=dict(log_cfg.get("options") or {}),
                )
            )
        return configs

    async def fetch_log_records(
        self,
        group: str,
        stream: str,
        start_time_millis: int,
        page_token: Optional[str],
    ) -> LogPage:
        response = await self._invoke(
            "GetLogEvents",
            self._logs.get_log_events,
            **_compact(
                logGroupName=group,
                logStreamName=stream,
                startTime=start_time_millis,
                startFromHead=True,
                nextToken=page_token,
            ),
        )
        next_token = response.get("nextForwardToken")
        # CloudWatch signals the end of the stream by echoing the token back.
        is_last = next_token is None or (
            page_token is not None and next_token == page_token
        )
        return LogPage(
            records=tuple(
                LogRecord(timestamp_millis=int(ev["timestamp"]), message=ev.get("message", ""))
                for ev in response.get("events", ())
            ),
            next_token=next_token,
            is_last_page=is_last,
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    async def _invoke(
        self, operation: str, fn: Callable[..., Dict[str, Any]], **kwargs: Any
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(self._call, operation, fn, kwargs)

    @staticmethod
    def _call(
        operation: str, fn: Callable[..., Dict[str, Any]], kwargs: Dict[str, Any]
    ) -> Dict[str, Any]:
        logger.debug("api_call operation=%s", operation)
        try:
            return fn(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteAPIError(operation, exc) from exc
