"""Argument parser for the ecsctl CLI.

Each ``add_*`` helper registers one command (or command group) so
``create_parser()`` stays a readable table of contents.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Tuple

from ..version import __version__
from .output import OUTPUT_FORMATS

__all__ = [
    "add_config_commands",
    "add_describe_command",
    "add_doctor_command",
    "add_exec_command",
    "add_get_command",
    "add_global_args",
    "add_logs_command",
    "add_port_forward_command",
    "add_scale_command",
    "add_stop_command",
    "create_parser",
    "split_trailing_command",
]

_EPILOG = """Examples:
  ecsctl config set-context prod --cluster prod-cluster --region eu-west-1
  ecsctl get services -o wide
  ecsctl describe tasks 1234567890abcdef
  ecsctl logs 1234567890abcdef -f --since 1h
  ecsctl exec 1234567890abcdef -c app -- /bin/sh
  ecsctl port-forward 1234567890abcdef 8080:80
"""


def split_trailing_command(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split ``argv`` at the first ``--``; the tail is a remote command."""
    if "--" not in argv:
        return list(argv), []
    index = argv.index("--")
    return list(argv[:index]), list(argv[index + 1 :])


def add_global_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--version", action="version", version=f"ecsctl {__version__}")
    g = parser.add_argument_group("Global")
    g.add_argument("--debug", action="store_true", help="Verbose logging on stderr")
    g.add_argument("--quiet", action="store_true", help="Only log errors on stderr")
    g.add_argument(
        "--registry",
        type=Path,
        metavar="PATH",
        help="Context registry file (default: ~/.ecsctl/config.yaml)",
    )


def _add_output_arg(parser: argparse.ArgumentParser, choices=OUTPUT_FORMATS) -> None:
    parser.add_argument(
        "-o",
        "--output",
        choices=choices,
        default="table",
        help="Output format (default: table)",
    )


def add_config_commands(sub: argparse._SubParsersAction) -> None:
    config = sub.add_parser("config", help="Manage contexts")
    actions = config.add_subparsers(dest="config_command", metavar="ACTION")
    actions.required = True

    set_ctx = actions.add_parser("set-context", help="Create or update a context")
    set_ctx.add_argument("name")
    set_ctx.add_argument("--cluster", required=True, help="ECS cluster name or ARN")
    set_ctx.add_argument("--profile", help="AWS profile (default: default)")
    set_ctx.add_argument("--region", help="AWS region (default: us-east-1)")

    actions.add_parser("get-contexts", help="List all contexts")
    actions.add_parser("current-context", help="Show the active context")

    use = actions.add_parser("use-context", help="Switch the active context")
    use.add_argument("name")

    delete = actions.add_parser("delete-context", help="Delete a context")
    delete.add_argument("name")

    view = actions.add_parser("view", help="Show the registry")
    _add_output_arg(view, choices=("yaml", "json"))
    view.set_defaults(output="yaml")


def add_get_command(sub: argparse._SubParsersAction) -> None:
    get = sub.add_parser("get", help="List services, tasks or nodes")
    get.add_argument("resource", choices=("services", "tasks", "nodes"))
    _add_output_arg(get)


def add_describe_command(sub: argparse._SubParsersAction) -> None:
    describe = sub.add_parser("describe", help="Show details of services or tasks")
    describe.add_argument("resource", choices=("services", "tasks"))
    describe.add_argument("names", nargs="*", metavar="NAME", help="Names or IDs (default: all)")
    _add_output_arg(describe, choices=("table", "json", "yaml"))


def add_scale_command(sub: argparse._SubParsersAction) -> None:
    scale = sub.add_parser("scale", help="Set a service's desired task count")
    scale.add_argument("service")
    scale.add_argument("--replicas", type=int, required=True, help="Desired task count")


def add_stop_command(sub: argparse._SubParsersAction) -> None:
    stop = sub.add_parser("stop", help="Stop a running task")
    stop.add_argument("task")
    stop.add_argument("--reason", help="Reason recorded on the task")


def add_logs_command(sub: argparse._SubParsersAction) -> None:
    logs = sub.add_parser("logs", help="Print a task container's logs")
    logs.add_argument("task")
    logs.add_argument("-f", "--follow", action="store_true", help="Follow log output")
    logs.add_argument("--since", help="Show logs since duration, e.g. 5m or 1h (default: 10m)")
    logs.add_argument("-c", "--container", help="Container name")


def add_exec_command(sub: argparse._SubParsersAction) -> None:
    exec_ = sub.add_parser(
        "exec",
        help="Run a command in a task container",
        usage="ecsctl exec [-c CONTAINER] TASK -- COMMAND [ARGS...]",
    )
    exec_.add_argument("task")
    exec_.add_argument("command_args", nargs="*", metavar="COMMAND", help=argparse.SUPPRESS)
    exec_.add_argument("-c", "--container", help="Container name")


def add_port_forward_command(sub: argparse._SubParsersAction) -> None:
    forward = sub.add_parser("port-forward", help="Forward a local port to a task container")
    forward.add_argument("task")
    forward.add_argument("mapping", metavar="LOCAL_PORT:CONTAINER_PORT")
    forward.add_argument("-c", "--container", help="Container name")


def add_doctor_command(sub: argparse._SubParsersAction) -> None:
    sub.add_parser("doctor", help="Check the local environment")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecsctl",
        description="kubectl-style command line for Amazon ECS clusters",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_global_args(parser)
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    add_config_commands(sub)
    add_get_command(sub)
    add_describe_command(sub)
    add_scale_command(sub)
    add_stop_command(sub)
    add_logs_command(sub)
    add_exec_command(sub)
    add_port_forward_command(sub)
    add_doctor_command(sub)
    return parser
