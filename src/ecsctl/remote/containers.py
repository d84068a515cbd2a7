"""Task lookup and container selection shared by logs and sessions."""

from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import AmbiguousContainerError, NotFoundError
from ..shared import ResourceKind, TaskRecord
from .api import ControlPlaneAPI

__all__ = ["fetch_task", "resolve_container"]

logger = logging.getLogger(__name__)


async def fetch_task(api: ControlPlaneAPI, task_id: str) -> TaskRecord:
    """Describe a single task or raise ``NotFoundError``."""
    records = await api.describe(ResourceKind.TASK, [task_id])
    for record in records:
        if task_id in record.lookup_keys():
            return record  # type: ignore[return-value]
    if records:
        return records[0]  # type: ignore[return-value]
    raise NotFoundError(f"task {task_id} not found")


def resolve_container(task: TaskRecord, requested: Optional[str] = None) -> str:
    """Return the container to attach to.

    An explicit name must exist in the task. Without one, the task must
    have exactly one non-sidecar container.
    """
    if requested:
        if requested not in {c.name for c in task.containers}:
            raise NotFoundError(f"container {requested} not found in task {task.task_id}")
        return requested

    candidates = [c.name for c in task.user_containers()]
    if not candidates:
        raise NotFoundError(f"task {task.task_id} has no eligible containers")
    if len(candidates) > 1:
        raise AmbiguousContainerError(task.task_id, candidates)
    logger.debug("container_autodetected task=%s container=%s", task.task_id, candidates[0])
    return candidates[0]
