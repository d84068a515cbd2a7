"""``ecsctl config`` subcommands."""

from __future__ import annotations

import argparse

from rich.console import Console

from ..contexts import DEFAULT_PROFILE, DEFAULT_REGION, Target
from .output import print_contexts, print_structured
from .runtime import Runtime

__all__ = ["run_config"]


def _set_context(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    target = runtime.store.set_target(
        Target(
            name=args.name,
            cluster_id=args.cluster,
            credential_profile=args.profile or DEFAULT_PROFILE,
            region=args.region or DEFAULT_REGION,
        )
    )
    console.print(f"Context [cyan]{target.name}[/cyan] set and selected")
    return 0


def _get_contexts(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    targets, active = runtime.store.list_all()
    print_contexts(console, targets, active)
    return 0


def _current_context(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    target = runtime.store.get_active()
    console.print(target.name, markup=False, highlight=False)
    return 0


def _use_context(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    runtime.store.use(args.name)
    console.print(f"Switched to context [cyan]{args.name}[/cyan]")
    return 0


def _delete_context(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    runtime.store.delete(args.name)
    console.print(f"Deleted context [cyan]{args.name}[/cyan]")
    return 0


def _view(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    print_structured(console, runtime.store.view().to_dict(), args.output)
    return 0


_ACTIONS = {
    "set-context": _set_context,
    "get-contexts": _get_contexts,
    "current-context": _current_context,
    "use-context": _use_context,
    "delete-context": _delete_context,
    "view": _view,
}


async def run_config(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    return _ACTIONS[args.config_command](console, args, runtime)
