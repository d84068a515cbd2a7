"""Hydrated resource records built from describe responses.

Records are frozen: one command builds them once and renders them. Each
record exposes ``identifier`` (its ARN) and ``lookup_keys()`` so callers
can match a record against either the ARN or the short name/id they asked
for.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple, Union

__all__ = [
    "SIDECAR_PREFIX",
    "ContainerRecord",
    "DescribedResource",
    "LoadBalancer",
    "NetworkConfig",
    "NetworkInterface",
    "NodeRecord",
    "PortBinding",
    "ServiceEvent",
    "ServiceRecord",
    "TaskRecord",
    "extract_resource_id",
]

SIDECAR_PREFIX = "ecs-service-connect-"


def extract_resource_id(arn: str) -> str:
    """Return the trailing id of an ARN (``.../cluster/<id>`` -> ``<id>``)."""
    return arn.rsplit("/", 1)[-1]


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _serialize(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Record:
    def to_dict(self) -> Dict[str, Any]:
        data = _serialize(self)
        return {k: v for k, v in data.items() if v not in (None, [], "")}


# --------------------------------------------------------------------------- #
# Services
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class LoadBalancer:
    target_group: str
    container_name: str
    container_port: int


@dataclass(frozen=True, slots=True)
class NetworkConfig:
    subnets: Tuple[str, ...] = ()
    security_groups: Tuple[str, ...] = ()
    assign_public_ip: str = ""


@dataclass(frozen=True, slots=True)
class ServiceEvent:
    created_at: Optional[datetime]
    message: str


@dataclass(frozen=True, slots=True)
class ServiceRecord(_Record):
    arn: str
    name: str
    status: str = ""
    task_definition: str = ""
    desired_count: int = 0
    running_count: int = 0
    pending_count: int = 0
    created_at: Optional[datetime] = None
    launch_type: str = ""
    load_balancers: Tuple[LoadBalancer, ...] = ()
    network: Optional[NetworkConfig] = None
    events: Tuple[ServiceEvent, ...] = ()

    @property
    def identifier(self) -> str:
        return self.arn

    def lookup_keys(self) -> Tuple[str, ...]:
        return (self.arn, self.name)

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "ServiceRecord":
        awsvpc = (raw.get("networkConfiguration") or {}).get("awsvpcConfiguration")
        network = None
        if awsvpc:
            network = NetworkConfig(
                subnets=tuple(awsvpc.get("subnets", ())),
                security_groups=tuple(awsvpc.get("securityGroups", ())),
                assign_public_ip=str(awsvpc.get("assignPublicIp", "")),
            )
        return cls(
            arn=raw["serviceArn"],
            name=raw.get("serviceName") or extract_resource_id(raw["serviceArn"]),
            status=raw.get("status", ""),
            task_definition=raw.get("taskDefinition", ""),
            desired_count=int(raw.get("desiredCount", 0)),
            running_count=int(raw.get("runningCount", 0)),
            pending_count=int(raw.get("pendingCount", 0)),
            created_at=raw.get("createdAt"),
            launch_type=raw.get("launchType", ""),
            load_balancers=tuple(
                LoadBalancer(
                    target_group=lb.get("targetGroupArn", ""),
                    container_name=lb.get("containerName", ""),
                    container_port=int(lb.get("containerPort", 0)),
                )
                for lb in raw.get("loadBalancers", ())
            ),
            network=network,
            events=tuple(
                ServiceEvent(created_at=ev.get("createdAt"), message=ev.get("message", ""))
                for ev in raw.get("events", ())
            ),
        )


# --------------------------------------------------------------------------- #
# Tasks
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class PortBinding:
    container_port: int
    host_port: int
    protocol: str = "tcp"


@dataclass(frozen=True, slots=True)
class ContainerRecord:
    name: str
    image: str = ""
    last_status: str = ""
    runtime_id: str = ""
    exit_code: Optional[int] = None
    health_status: str = ""
    network_bindings: Tuple[PortBinding, ...] = ()

    @property
    def is_sidecar(self) -> bool:
        return self.name.startswith(SIDECAR_PREFIX)

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "ContainerRecord":
        return cls(
            name=raw.get("name", ""),
            image=raw.get("image", ""),
            last_status=raw.get("lastStatus", ""),
            runtime_id=raw.get("runtimeId", ""),
            exit_code=raw.get("exitCode"),
            health_status=raw.get("healthStatus", ""),
            network_bindings=tuple(
                PortBinding(
                    container_port=int(b.get("containerPort", 0)),
                    host_port=int(b.get("hostPort", 0)),
                    protocol=b.get("protocol", "tcp"),
                )
                for b in raw.get("networkBindings", ())
            ),
        )


@dataclass(frozen=True, slots=True)
class NetworkInterface:
    attachment_id: str = ""
    private_ipv4: str = ""
    public_ipv4: str = ""
    subnet_id: str = ""


_ENI_DETAIL_FIELDS = {
    "networkInterfaceId": "attachment_id",
    "privateIPv4Address": "private_ipv4",
    "publicIPv4Address": "public_ipv4",
    "subnetId": "subnet_id",
}


def _network_interfaces(attachments: Any) -> Tuple[NetworkInterface, ...]:
    found = []
    for attachment in attachments or ():
        if attachment.get("type") != "ElasticNetworkInterface":
            continue
        values = {}
        for detail in attachment.get("details", ()):
            key = _ENI_DETAIL_FIELDS.get(detail.get("name", ""))
            if key:
                values[key] = detail.get("value", "")
        found.append(NetworkInterface(**values))
    return tuple(found)


@dataclass(frozen=True, slots=True)
class TaskRecord(_Record):
    arn: str
    task_id: str
    cluster_arn: str = ""
    task_definition_arn: str = ""
    last_status: str = ""
    desired_status: str = ""
    cpu: str = ""
    memory: str = ""
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    stopped_reason: str = ""
    group: str = ""
    launch_type: str = ""
    capacity_provider: str = ""
    container_instance_arn: str = ""
    containers: Tuple[ContainerRecord, ...] = ()
    network_interfaces: Tuple[NetworkInterface, ...] = ()

    @property
    def identifier(self) -> str:
        return self.arn

    @property
    def task_definition_family(self) -> str:
        return extract_resource_id(self.task_definition_arn)

    def lookup_keys(self) -> Tuple[str, ...]:
        return (self.arn, self.task_id)

    def user_containers(self) -> Tuple[ContainerRecord, ...]:
        """Containers minus platform-injected sidecars."""
        return tuple(c for c in self.containers if not c.is_sidecar)

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "TaskRecord":
        arn = raw["taskArn"]
        return cls(
            arn=arn,
            task_id=extract_resource_id(arn),
            cluster_arn=raw.get("clusterArn", ""),
            task_definition_arn=raw.get("taskDefinitionArn", ""),
            last_status=raw.get("lastStatus", ""),
            desired_status=raw.get("desiredStatus", ""),
            cpu=raw.get("cpu", ""),
            memory=raw.get("memory", ""),
            created_at=raw.get("createdAt"),
            started_at=raw.get("startedAt"),
            stopped_at=raw.get("stoppedAt"),
            stopped_reason=raw.get("stoppedReason", ""),
            group=raw.get("group", ""),
            launch_type=raw.get("launchType", ""),
            capacity_provider=raw.get("capacityProviderName", ""),
            container_instance_arn=raw.get("containerInstanceArn", ""),
            containers=tuple(
                ContainerRecord.from_api(c) for c in raw.get("containers", ())
            ),
            network_interfaces=_network_interfaces(raw.get("attachments")),
        )


# --------------------------------------------------------------------------- #
# Nodes (container instances)
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class NodeRecord(_Record):
    arn: str
    instance_id: str
    ec2_instance_id: str = ""
    status: str = ""
    status_reason: str = ""
    running_tasks: int = 0
    pending_tasks: int = 0
    agent_version: str = ""
    capacity_provider: str = ""
    registered_at: Optional[datetime] = None

    @property
    def identifier(self) -> str:
        return self.arn

    def lookup_keys(self) -> Tuple[str, ...]:
        keys = (self.arn, self.instance_id)
        return keys + ((self.ec2_instance_id,) if self.ec2_instance_id else ())

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "NodeRecord":
        arn = raw["containerInstanceArn"]
        return cls(
            arn=arn,
            instance_id=extract_resource_id(arn),
            ec2_instance_id=raw.get("ec2InstanceId", ""),
            status=raw.get("status", ""),
            status_reason=raw.get("statusReason", ""),
            running_tasks=int(raw.get("runningTasksCount", 0)),
            pending_tasks=int(raw.get("pendingTasksCount", 0)),
            agent_version=(raw.get("versionInfo") or {}).get("agentVersion", ""),
            capacity_provider=raw.get("capacityProviderName", ""),
            registered_at=raw.get("registeredAt"),
        )


DescribedResource = Union[ServiceRecord, TaskRecord, NodeRecord]
