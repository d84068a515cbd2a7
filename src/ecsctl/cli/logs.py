"""``ecsctl logs``."""

from __future__ import annotations

import argparse

from rich.console import Console

from ..config import parse_duration
from ..logs import LogTailStream
from ..shared import LogRecord
from .runtime import Runtime

__all__ = ["format_record", "run_logs"]


def format_record(record: LogRecord) -> str:
    stamp = record.timestamp.replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return f"{stamp} {record.message}"


async def run_logs(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    logs_cfg = runtime.config.get("logs", {})
    since = parse_duration(args.since) if args.since else logs_cfg.get("since")
    stream = LogTailStream(
        runtime.control_plane(),
        args.task,
        container=args.container,
        since=since,
        follow=args.follow,
        poll_interval=logs_cfg.get("poll_interval", 1.0),
    )
    async with stream:
        async for record in stream:
            console.print(
                format_record(record), markup=False, highlight=False, soft_wrap=True
            )
    return 0
