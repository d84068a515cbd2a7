"""Rendering of records and contexts: tables, detail views, JSON and YAML."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml
from rich.console import Console
from rich.table import Table

from ..contexts import Target
from ..exceptions import ValidationError
from ..shared import (
    DescribedResource,
    NodeRecord,
    ResourceKind,
    ServiceRecord,
    TaskRecord,
)

__all__ = [
    "OUTPUT_FORMATS",
    "format_age",
    "print_contexts",
    "print_details",
    "print_records",
    "print_structured",
]

OUTPUT_FORMATS = ("table", "wide", "json", "yaml")

Row = Tuple[str, ...]


def format_age(since: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Compact age: ``42m``, ``5h``, ``3d``, ``2M``, ``1y``; ``-`` when unknown."""
    if since is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    seconds = max(0.0, (now - since).total_seconds())
    hours = seconds / 3600
    if seconds < 3600:
        return f"{int(seconds // 60)}m"
    if hours < 24:
        return f"{int(hours)}h"
    if hours < 30 * 24:
        return f"{int(hours // 24)}d"
    if hours < 365 * 24:
        return f"{int(hours // (24 * 30))}M"
    return f"{int(hours // (24 * 365))}y"


def _plain_table(headers: Sequence[str]) -> Table:
    table = Table(box=None, show_edge=False, pad_edge=False, header_style="bold")
    for header in headers:
        table.add_column(header, no_wrap=True)
    return table


# --------------------------------------------------------------------------- #
# Tables
# --------------------------------------------------------------------------- #
def _service_rows(records: Sequence[ServiceRecord], wide: bool) -> Tuple[Row, List[Row]]:
    headers: Row = ("NAME", "STATUS", "DESIRED", "RUNNING", "PENDING", "AGE")
    if wide:
        headers += ("TASK DEFINITION", "LAUNCH TYPE")
    rows = []
    for svc in records:
        row: Row = (
            svc.name,
            svc.status,
            str(svc.desired_count),
            str(svc.running_count),
            str(svc.pending_count),
            format_age(svc.created_at),
        )
        if wide:
            row += (svc.task_definition.rsplit("/", 1)[-1], svc.launch_type or "-")
        rows.append(row)
    return headers, rows


def _task_rows(records: Sequence[TaskRecord], wide: bool) -> Tuple[Row, List[Row]]:
    headers: Row = ("TASK ID", "STATUS", "TASK DEFINITION", "STARTED", "AGE")
    if wide:
        headers += ("CPU", "MEMORY", "LAUNCH TYPE", "CAPACITY PROVIDER")
    rows = []
    for task in records:
        row: Row = (
            task.task_id,
            task.last_status,
            task.task_definition_family,
            format_age(task.started_at),
            format_age(task.created_at),
        )
        if wide:
            row += (
                task.cpu or "-",
                task.memory or "-",
                task.launch_type or "-",
                task.capacity_provider or "-",
            )
        rows.append(row)
    return headers, rows


def _node_rows(records: Sequence[NodeRecord], wide: bool) -> Tuple[Row, List[Row]]:
    headers: Row = ("INSTANCE ID", "EC2 INSTANCE", "STATUS", "RUNNING", "PENDING", "AGE")
    if wide:
        headers += ("AGENT", "CAPACITY PROVIDER")
    rows = []
    for node in records:
        row: Row = (
            node.instance_id,
            node.ec2_instance_id or "-",
            node.status,
            str(node.running_tasks),
            str(node.pending_tasks),
            format_age(node.registered_at),
        )
        if wide:
            row += (node.agent_version or "-", node.capacity_provider or "-")
        rows.append(row)
    return headers, rows


_ROW_BUILDERS: Dict[ResourceKind, Callable[[Sequence[Any], bool], Tuple[Row, List[Row]]]] = {
    ResourceKind.SERVICE: _service_rows,
    ResourceKind.TASK: _task_rows,
    ResourceKind.NODE: _node_rows,
}

_EMPTY_MESSAGES = {
    ResourceKind.SERVICE: "No services found",
    ResourceKind.TASK: "No tasks found",
    ResourceKind.NODE: "No container instances found",
}


def print_structured(console: Console, data: Any, fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps(data, indent=2, default=str))
    elif fmt == "yaml":
        console.print(
            yaml.safe_dump(data, sort_keys=False, default_flow_style=False).rstrip(),
            markup=False,
            highlight=False,
        )
    else:
        raise ValidationError(f"unsupported output format: {fmt}")


def print_records(
    console: Console,
    kind: ResourceKind,
    records: Sequence[DescribedResource],
    fmt: str = "table",
) -> None:
    if fmt in ("json", "yaml"):
        print_structured(console, [r.to_dict() for r in records], fmt)
        return
    if fmt not in ("table", "wide"):
        raise ValidationError(f"unsupported output format: {fmt}")
    if not records:
        console.print(f"[yellow]{_EMPTY_MESSAGES[kind]}[/yellow]")
        return
    headers, rows = _ROW_BUILDERS[kind](records, fmt == "wide")
    table = _plain_table(headers)
    for row in rows:
        table.add_row(*row)
    console.print(table)


# --------------------------------------------------------------------------- #
# Detail views
# --------------------------------------------------------------------------- #
def _stamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value else "-"


def _field_grid(pairs: Sequence[Tuple[str, str]]) -> Table:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    for key, value in pairs:
        grid.add_row(f"{key}:", value or "-")
    return grid


def _print_service(console: Console, svc: ServiceRecord, max_events: int) -> None:
    console.print(
        _field_grid(
            [
                ("Name", svc.name),
                ("Status", svc.status),
                ("Task Definition", svc.task_definition),
                ("Desired Count", str(svc.desired_count)),
                ("Running Count", str(svc.running_count)),
                ("Pending Count", str(svc.pending_count)),
                ("Launch Type", svc.launch_type),
                ("Created At", _stamp(svc.created_at)),
            ]
        )
    )
    if svc.load_balancers:
        console.print("\n[bold]Load Balancers:[/bold]")
        for lb in svc.load_balancers:
            console.print(f"  - Target Group:    {lb.target_group}", markup=False)
            console.print(f"    Container Name:  {lb.container_name}", markup=False)
            console.print(f"    Container Port:  {lb.container_port}", markup=False)
    if svc.network:
        console.print("\n[bold]Network Configuration:[/bold]")
        console.print(f"  Subnets:         {', '.join(svc.network.subnets) or '-'}", markup=False)
        console.print(
            f"  Security Groups: {', '.join(svc.network.security_groups) or '-'}", markup=False
        )
        console.print(f"  Public IP:       {svc.network.assign_public_ip or '-'}", markup=False)
    if svc.events:
        console.print("\n[bold]Recent Events:[/bold]")
        for event in svc.events[:max_events]:
            console.print(f"  {_stamp(event.created_at)}: {event.message}", markup=False)


def _print_task(console: Console, task: TaskRecord) -> None:
    console.print(
        _field_grid(
            [
                ("Task ID", task.task_id),
                ("Task Definition", task.task_definition_arn),
                ("Last Status", task.last_status),
                ("Desired Status", task.desired_status),
                ("CPU", task.cpu),
                ("Memory", task.memory),
                ("Launch Type", task.launch_type),
                ("Capacity Provider", task.capacity_provider),
                ("Group", task.group),
                ("Created At", _stamp(task.created_at)),
                ("Started At", _stamp(task.started_at)),
            ]
        )
    )
    if task.stopped_at or task.stopped_reason:
        console.print(f"Stopped At:  {_stamp(task.stopped_at)}", markup=False)
        console.print(f"Stopped Reason:  {task.stopped_reason or '-'}", markup=False)
    containers = task.user_containers()
    if containers:
        console.print("\n[bold]Containers:[/bold]")
        for container in containers:
            console.print(f"  - Name:    {container.name}", markup=False)
            console.print(f"    Image:   {container.image or '-'}", markup=False)
            console.print(f"    Status:  {container.last_status or '-'}", markup=False)
            if container.health_status:
                console.print(f"    Health:  {container.health_status}", markup=False)
            if container.exit_code is not None:
                console.print(f"    Exit Code:  {container.exit_code}", markup=False)
            for binding in container.network_bindings:
                console.print(
                    f"    Port:    {binding.host_port}->{binding.container_port}/{binding.protocol}",
                    markup=False,
                )
    if task.network_interfaces:
        console.print("\n[bold]Network Interfaces:[/bold]")
        for eni in task.network_interfaces:
            console.print(f"  - ID:          {eni.attachment_id or '-'}", markup=False)
            console.print(f"    Private IP:  {eni.private_ipv4 or '-'}", markup=False)
            if eni.public_ipv4:
                console.print(f"    Public IP:   {eni.public_ipv4}", markup=False)
            console.print(f"    Subnet:      {eni.subnet_id or '-'}", markup=False)


def _detail_dict(record: DescribedResource) -> Dict[str, Any]:
    if isinstance(record, TaskRecord):
        record = replace(record, containers=record.user_containers())
    return record.to_dict()


def print_details(
    console: Console,
    records: Sequence[DescribedResource],
    fmt: str = "table",
    max_events: int = 5,
) -> None:
    if fmt in ("json", "yaml"):
        print_structured(console, [_detail_dict(r) for r in records], fmt)
        return
    for index, record in enumerate(records):
        if index:
            console.print()
        if isinstance(record, ServiceRecord):
            _print_service(console, record, max_events)
        elif isinstance(record, TaskRecord):
            _print_task(console, record)
        else:
            console.print(_field_grid([(k, str(v)) for k, v in record.to_dict().items()]))


# --------------------------------------------------------------------------- #
# Contexts
# --------------------------------------------------------------------------- #
def print_contexts(console: Console, targets: Sequence[Target], active: str) -> None:
    if not targets:
        console.print("[yellow]No contexts found[/yellow]")
        return
    table = _plain_table(("CURRENT", "NAME", "CLUSTER", "PROFILE", "REGION"))
    for target in targets:
        table.add_row(
            "*" if target.name == active else "",
            target.name,
            target.cluster_id,
            target.credential_profile,
            target.region,
        )
    console.print(table)
