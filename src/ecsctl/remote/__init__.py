"""Control-plane interface and its ECS implementation."""

from .api import (
    DEFAULT_STOP_REASON,
    DESCRIBE_BATCH_LIMITS,
    LIST_PAGE_LIMITS,
    ControlPlaneAPI,
)
from .containers import fetch_task, resolve_container

__all__ = [
    "DEFAULT_STOP_REASON",
    "DESCRIBE_BATCH_LIMITS",
    "LIST_PAGE_LIMITS",
    "ControlPlaneAPI",
    "fetch_task",
    "resolve_container",
]
