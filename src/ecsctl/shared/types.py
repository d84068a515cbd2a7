"""Value types exchanged between the core and the control-plane adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple

from ..exceptions import SessionConsumedError

__all__ = [
    "AWSLOGS_DRIVER",
    "ContainerLogConfig",
    "LogPage",
    "LogRecord",
    "ResourceKind",
    "ResourcePage",
    "Session",
]

AWSLOGS_DRIVER = "awslogs"


class ResourceKind(str, Enum):
    SERVICE = "service"
    TASK = "task"
    NODE = "node"


@dataclass(frozen=True, slots=True)
class ResourcePage:
    """One page of a paged list call."""

    identifiers: Tuple[str, ...] = ()
    cursor: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LogRecord:
    timestamp_millis: int
    message: str

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp_millis / 1000, tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class LogPage:
    records: Tuple[LogRecord, ...] = ()
    next_token: Optional[str] = None
    is_last_page: bool = False


@dataclass(frozen=True, slots=True)
class ContainerLogConfig:
    """Log routing declared for one container of a task definition."""

    container: str
    driver: Optional[str]
    options: Dict[str, str] = field(default_factory=dict)

    @property
    def group(self) -> Optional[str]:
        return self.options.get("awslogs-group")

    @property
    def stream_prefix(self) -> str:
        return self.options.get("awslogs-stream-prefix", "")

    def stream_for(self, task_id: str) -> str:
        """Return the awslogs stream name for ``task_id``."""
        return f"{self.stream_prefix}/{self.container}/{task_id}"


@dataclass(eq=False)
class Session:
    """Single-use credential bundle for one execution channel.

    The token is excluded from ``repr`` so sessions can be logged safely.
    """

    session_id: str
    stream_url: str
    token: str = field(repr=False)
    _claimed: bool = field(default=False, init=False, repr=False)

    @property
    def claimed(self) -> bool:
        return self._claimed

    def claim(self) -> "Session":
        """Mark the session as consumed by a relay process."""
        if self._claimed:
            raise SessionConsumedError(
                f"session {self.session_id} was already handed to a relay process"
            )
        self._claimed = True
        return self
