"""Cluster inventory and workload commands: get, describe, scale, stop."""

from __future__ import annotations

import argparse

from rich.console import Console

from ..collector import PaginatedCollector
from ..operations import scale_service, stop_task
from ..remote.api import DEFAULT_STOP_REASON
from ..shared import ResourceKind
from .output import print_details, print_records
from .runtime import Runtime

__all__ = ["run_describe", "run_get", "run_scale", "run_stop"]

_KINDS = {
    "services": ResourceKind.SERVICE,
    "tasks": ResourceKind.TASK,
    "nodes": ResourceKind.NODE,
}


def _collector(runtime: Runtime, kind: ResourceKind) -> PaginatedCollector:
    return PaginatedCollector(
        runtime.control_plane(),
        kind,
        page_size=runtime.config.get("collector", {}).get("page_size"),
    )


async def run_get(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    kind = _KINDS[args.resource]
    records = await _collector(runtime, kind).collect()
    print_records(console, kind, records, args.output)
    return 0


async def run_describe(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    kind = _KINDS[args.resource]
    collector = _collector(runtime, kind)
    if not args.names:
        records = await collector.collect()
        print_details(console, records, args.output)
        return 0

    records = await collector.describe_selected(args.names)
    found = {key for record in records for key in record.lookup_keys()}
    missing = [name for name in args.names if name not in found]
    print_details(console, records, args.output)
    for name in missing:
        console.print(f"[red]{args.resource[:-1]} {name} not found[/red]")
    return 1 if missing else 0


async def run_scale(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    await scale_service(runtime.control_plane(), args.service, args.replicas)
    console.print(f"Service [cyan]{args.service}[/cyan] scaled to {args.replicas} tasks")
    return 0


async def run_stop(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    await stop_task(runtime.control_plane(), args.task, args.reason or DEFAULT_STOP_REASON)
    console.print(f"Task [cyan]{args.task}[/cyan] stopped")
    return 0
