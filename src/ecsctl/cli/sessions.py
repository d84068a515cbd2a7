"""``ecsctl exec`` and ``ecsctl port-forward``."""

from __future__ import annotations

import argparse
import shlex

from rich.console import Console

from ..exceptions import ValidationError
from ..session import SessionBridge, parse_port_mapping
from .runtime import Runtime

__all__ = ["run_exec", "run_port_forward"]


def remote_command(args: argparse.Namespace) -> str:
    """Join the words after ``--`` (or trailing positionals) into one command."""
    words = list(getattr(args, "command_args", None) or []) + list(
        getattr(args, "trailing", None) or []
    )
    if not words:
        raise ValidationError("you must specify at least one command for the container")
    if len(words) == 1:
        return words[0]
    return shlex.join(words)


def _bridge(console: Console, runtime: Runtime) -> SessionBridge:
    target = runtime.target()
    return SessionBridge(
        runtime.control_plane(target),
        target,
        relay_executable=runtime.relay_executable,
        console=console,
    )


async def run_exec(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    command = remote_command(args)
    result = await _bridge(console, runtime).exec(
        args.task, command, container=args.container
    )
    if result.interrupted:
        return 2
    return int(result.exit_code or 0)


async def run_port_forward(
    console: Console, args: argparse.Namespace, runtime: Runtime
) -> int:
    mapping = parse_port_mapping(args.mapping)
    result = await _bridge(console, runtime).port_forward(
        args.task, mapping, container=args.container
    )
    # Ctrl+C is the normal way to end a forward.
    if result.interrupted:
        return 0
    return int(result.exit_code or 0)
