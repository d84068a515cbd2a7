"""Interactive exec and port-forward sessions."""

from .bridge import BridgeResult, BridgeState, SessionBridge
from .port_forward import PortMapping, build_forward_command, parse_port_mapping
from .relay import RELAY_EXECUTABLE, RelayProcess, locate_relay, relay_arguments

__all__ = [
    "BridgeResult",
    "BridgeState",
    "PortMapping",
    "RELAY_EXECUTABLE",
    "RelayProcess",
    "SessionBridge",
    "build_forward_command",
    "locate_relay",
    "parse_port_mapping",
    "relay_arguments",
]
