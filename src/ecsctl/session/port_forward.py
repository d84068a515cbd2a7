"""Port mapping parsing and the in-container proxy command."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

from ..exceptions import ValidationError

__all__ = ["RELAY_TOOLS", "PortMapping", "build_forward_command", "parse_port_mapping"]

_MAPPING_RE = re.compile(r"^(\d+):(\d+)$")

# Probed in this order inside the container.
RELAY_TOOLS: Tuple[str, ...] = ("socat", "nc", "bash")


@dataclass(frozen=True, slots=True)
class PortMapping:
    local_port: int
    remote_port: int

    def __str__(self) -> str:
        return f"{self.local_port}:{self.remote_port}"


def _check_port(value: int, label: str) -> int:
    if not 1 <= value <= 65535:
        raise ValidationError(f"invalid {label} port: {value} (expected 1-65535)")
    return value


def parse_port_mapping(text: str) -> PortMapping:
    """Parse ``LOCAL_PORT:CONTAINER_PORT``."""
    match = _MAPPING_RE.match((text or "").strip())
    if not match:
        raise ValidationError(
            f"invalid port mapping format: {text}, expected LOCAL_PORT:CONTAINER_PORT"
        )
    return PortMapping(
        local_port=_check_port(int(match.group(1)), "local"),
        remote_port=_check_port(int(match.group(2)), "container"),
    )


def _relay_command(tool: str, port: int) -> str:
    if tool == "socat":
        return f"socat STDIO TCP:localhost:{port}"
    if tool == "nc":
        return f"nc localhost {port}"
    return f'bash -c "exec 3<>/dev/tcp/localhost/{port}; cat <&3 & cat >&3; wait"'


def build_forward_command(port: int) -> str:
    """Shell command that pipes the session's stdio to ``localhost:port``.

    The port is probed first so a closed port fails fast with a readable
    message instead of a silent hang.
    """
    _check_port(port, "container")
    probe = (
        f'timeout 1 bash -c "echo > /dev/tcp/localhost/{port}" 2>/dev/null || '
        f'{{ echo "Error: Port {port} is not open in the container. '
        'Make sure the service is running."; exit 1; }'
    )
    branches = []
    for index, tool in enumerate(RELAY_TOOLS):
        keyword = "if" if index == 0 else "elif"
        branches.append(
            f"{keyword} command -v {tool} >/dev/null 2>&1; then {_relay_command(tool, port)};"
        )
    fallback = (
        'else echo "Error: No suitable tool found for port forwarding."; '
        'echo "Please install socat or netcat in the container."; exit 1; fi'
    )
    return f"sh -c '{probe}; {' '.join(branches)} {fallback}'"
