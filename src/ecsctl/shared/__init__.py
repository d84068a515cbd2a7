"""Aggregated shared types.

Re-exports value types and resource records so callers do not depend on
the module they happen to live in.
"""

from .records import (
    SIDECAR_PREFIX,
    ContainerRecord,
    DescribedResource,
    NodeRecord,
    ServiceRecord,
    TaskRecord,
    extract_resource_id,
)
from .types import (
    AWSLOGS_DRIVER,
    ContainerLogConfig,
    LogPage,
    LogRecord,
    ResourceKind,
    ResourcePage,
    Session,
)

__all__ = [
    "AWSLOGS_DRIVER",
    "SIDECAR_PREFIX",
    "ContainerLogConfig",
    "ContainerRecord",
    "DescribedResource",
    "LogPage",
    "LogRecord",
    "NodeRecord",
    "ResourceKind",
    "ResourcePage",
    "ServiceRecord",
    "Session",
    "TaskRecord",
    "extract_resource_id",
]
