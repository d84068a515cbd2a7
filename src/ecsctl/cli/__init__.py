"""ecsctl CLI entrypoint.

A thin shell: parse arguments, build the per-invocation runtime, and
delegate to the command modules in this package. Errors raised by the
core are printed here and mapped to exit codes: 0 success, 1 failure,
2 invalid arguments or interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Dict, Final, List, Optional

from rich.console import Console

from ..exceptions import EcsctlError, RelayNotFoundError, ValidationError
from . import contexts, doctor, logs, resources, sessions
from .parser import create_parser, split_trailing_command
from .runtime import Runtime, load_runtime

__all__: Final = ["main"]

logger = logging.getLogger(__name__)

Handler = Callable[[Console, argparse.Namespace, Runtime], Awaitable[int]]

_HANDLERS: Dict[str, Handler] = {
    "config": contexts.run_config,
    "get": resources.run_get,
    "describe": resources.run_describe,
    "scale": resources.run_scale,
    "stop": resources.run_stop,
    "logs": logs.run_logs,
    "exec": sessions.run_exec,
    "port-forward": sessions.run_port_forward,
    "doctor": doctor.run_doctor,
}


def _report(console: Console, exc: EcsctlError) -> None:
    if isinstance(exc, RelayNotFoundError):
        console.print(f"[red]Error:[/red] {exc.executable} not found")
        console.print(exc.install_hint, markup=False, highlight=False)
        return
    lines = str(exc).splitlines() or [type(exc).__name__]
    console.print(f"[red]Error:[/red] {lines[0]}", highlight=False)
    for line in lines[1:]:
        console.print(line, markup=False, highlight=False)


async def _dispatch(
    console: Console,
    args: argparse.Namespace,
    runtime: Optional[Runtime] = None,
) -> int:
    try:
        runtime = runtime or load_runtime(args)
        return await _HANDLERS[args.command](console, args, runtime)
    except ValidationError as exc:
        _report(console, exc)
        return 2
    except EcsctlError as exc:
        logger.debug("command_failed command=%s error=%s", args.command, exc)
        _report(console, exc)
        return 1
    except OSError as exc:
        console.print(f"[red]Error:[/red] {exc}", highlight=False)
        return 1
    except asyncio.CancelledError:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 2


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint."""
    parser = create_parser()
    head, trailing = split_trailing_command(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(head)
    if args.command is None:
        parser.print_help()
        sys.exit(2)
    if trailing and args.command != "exec":
        parser.error("'--' is only valid with exec")
    args.trailing = trailing

    console = Console()
    try:
        rc = asyncio.run(_dispatch(console, args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        rc = 2
    sys.exit(int(rc))


if __name__ == "__main__":
    main()
