"""One-shot workload mutations: scaling services and stopping tasks."""

from __future__ import annotations

import logging

from .exceptions import ValidationError
from .remote.api import DEFAULT_STOP_REASON, ControlPlaneAPI

__all__ = ["scale_service", "stop_task"]

logger = logging.getLogger(__name__)


async def scale_service(api: ControlPlaneAPI, service: str, count: int) -> None:
    """Set a service's desired task count."""
    if not service:
        raise ValidationError("service name cannot be empty")
    if count < 0:
        raise ValidationError(f"replicas must be zero or greater, got {count}")
    await api.update_desired_count(service, count)
    logger.info("service_scaled service=%s desired=%d", service, count)


async def stop_task(api: ControlPlaneAPI, task: str, reason: str = DEFAULT_STOP_REASON) -> None:
    if not task:
        raise ValidationError("task ID cannot be empty")
    await api.stop(task, reason or DEFAULT_STOP_REASON)
    logger.info("task_stopped task=%s", task)
