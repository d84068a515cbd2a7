"""Task log tailing."""

from .stream import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SINCE,
    LogDestination,
    LogTailStream,
    StreamPhase,
    TailMode,
    resolve_log_destination,
    tail_logs,
)

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_SINCE",
    "LogDestination",
    "LogTailStream",
    "StreamPhase",
    "TailMode",
    "resolve_log_destination",
    "tail_logs",
]
