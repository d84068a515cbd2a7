"""ecsctl exception hierarchy."""

from __future__ import annotations

from typing import Iterable, List, Optional

__all__ = [
    "AmbiguousContainerError",
    "EcsctlError",
    "NoActiveContextError",
    "NotFoundError",
    "RelayNotFoundError",
    "RemoteAPIError",
    "SessionConsumedError",
    "UnsupportedLogDriverError",
    "ValidationError",
]


class EcsctlError(Exception):
    """Base class for ecsctl exceptions."""


class ValidationError(EcsctlError):
    """Raised when required input is missing or malformed."""


class NotFoundError(EcsctlError):
    """Raised when a named context or remote resource does not exist."""


class NoActiveContextError(EcsctlError):
    """Raised when no context has been selected."""

    def __init__(self, message: str = "no current context set") -> None:
        super().__init__(
            f"{message}\nCreate one with: ecsctl config set-context NAME --cluster CLUSTER"
        )


class AmbiguousContainerError(EcsctlError):
    """Raised when a task has several candidate containers and none was named."""

    def __init__(self, task_id: str, candidates: Iterable[str]) -> None:
        self.task_id = task_id
        self.candidates: List[str] = list(candidates)
        super().__init__(
            f"task {task_id} has multiple containers ({', '.join(self.candidates)}); "
            "pick one with --container"
        )


class UnsupportedLogDriverError(EcsctlError):
    """Raised when a container does not ship its logs through awslogs."""

    def __init__(self, container: str, driver: Optional[str]) -> None:
        self.container = container
        self.driver = driver
        super().__init__(
            f"awslogs driver not configured for container {container} "
            f"(driver: {driver or 'none'})"
        )


class RelayNotFoundError(EcsctlError):
    """Raised when the session relay executable is not on PATH."""

    def __init__(self, executable: str, install_hint: str) -> None:
        self.executable = executable
        self.install_hint = install_hint
        super().__init__(f"{executable} not found\n{install_hint}")


class SessionConsumedError(EcsctlError):
    """Raised when a session is handed to a second relay process."""


class RemoteAPIError(EcsctlError):
    """Raised when a control-plane call fails."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")
