"""Environment diagnostics (doctor) for the ecsctl CLI."""

from __future__ import annotations

import argparse
from typing import List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError
from rich.console import Console

from ..contexts import Target
from ..exceptions import EcsctlError
from ..utils.platform_utils import get_platform_info, validate_relay_setup
from .runtime import Runtime

__all__ = ["run_doctor"]

DoctorRow = Tuple[str, str, str, List[str]]


def _print_rows(console: Console, rows: List[DoctorRow]) -> int:
    ok = all(status != "✗" for status, *_ in rows)
    for status, title, message, tries in rows:
        if status in ("✓", "✗"):
            console.print(f"{status} {title}: {message}", markup=False, highlight=False)
        else:
            console.print(f"i {title}: {message}", markup=False, highlight=False)
        if status == "✗" and tries:
            console.print("Try:")
            for t in tries[:3]:
                console.print(f"  • {t}", markup=False, highlight=False)
    return 0 if ok else 1


def _check_platform(rows: List[DoctorRow]) -> None:
    info = get_platform_info()
    summary = f"{info['system']} {info['machine']}, Python {info['python_version']}"
    rows.append(("i", "platform", summary, []))


def _check_relay(executable: str, rows: List[DoctorRow]) -> None:
    ready, message = validate_relay_setup(executable)
    if ready:
        rows.append(("✓", "relay", f"{executable} {message or ''}".strip(), []))
    else:
        rows.append(
            (
                "✗",
                "relay",
                message or f"{executable} unavailable",
                [
                    "install the Session Manager plugin",
                    "set ECSCTL_RELAY to its path",
                    f"run: {executable} --version",
                ],
            )
        )


def _check_registry(runtime: Runtime, rows: List[DoctorRow]) -> Optional[Target]:
    try:
        targets, active = runtime.store.list_all()
    except EcsctlError as e:
        rows.append(("✗", "registry", str(e), ["fix or remove the file", "ecsctl config view"]))
        return None
    rows.append(("✓", "registry", f"{runtime.store.path} ({len(targets)} contexts)", []))

    try:
        target = runtime.store.get_active()
    except EcsctlError as e:
        rows.append(
            (
                "✗",
                "context",
                str(e).splitlines()[0],
                [
                    "ecsctl config set-context NAME --cluster CLUSTER",
                    "ecsctl config use-context NAME",
                ],
            )
        )
        return None
    rows.append(
        ("✓", "context", f"{target.name} ({target.cluster_id}, {target.region})", [])
    )
    return target


def _check_credentials(target: Target, rows: List[DoctorRow]) -> None:
    try:
        session = boto3.session.Session(
            profile_name=target.credential_profile, region_name=target.region
        )
        credentials = session.get_credentials()
    except BotoCoreError as e:
        rows.append(("✗", "credentials", str(e), ["aws configure list-profiles"]))
        return
    if credentials is None:
        rows.append(
            (
                "✗",
                "credentials",
                f"no credentials for profile '{target.credential_profile}'",
                [f"aws configure --profile {target.credential_profile}", "aws sso login"],
            )
        )
        return
    detail = f"profile '{target.credential_profile}' ({credentials.method})"
    rows.append(("✓", "credentials", detail, []))


async def run_doctor(console: Console, args: argparse.Namespace, runtime: Runtime) -> int:
    """Run local checks and print friendly advice.

    Returns 0 on success, 1 if any failures are detected.
    """
    rows: List[DoctorRow] = []
    _check_platform(rows)
    _check_relay(runtime.relay_executable, rows)
    target = _check_registry(runtime, rows)
    if target is not None:
        _check_credentials(target, rows)
    return _print_rows(console, rows)
