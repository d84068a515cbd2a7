"""Cross-platform helpers for ecsctl."""

from __future__ import annotations

import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Optional, Tuple

__all__ = [
    "RELAY_DOCS_URL",
    "find_executable",
    "get_config_dir",
    "get_platform_info",
    "is_wsl",
    "relay_install_hint",
    "validate_relay_setup",
]

RELAY_DOCS_URL = (
    "https://docs.aws.amazon.com/systems-manager/latest/userguide/"
    "session-manager-working-with-install-plugin.html"
)


def get_platform_info() -> Dict[str, object]:
    """Return basic identifiers for the current platform."""
    system = platform.system()
    return {
        "system": system,
        "machine": platform.machine(),
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "is_windows": system == "Windows",
        "is_macos": system == "Darwin",
        "is_linux": system == "Linux",
    }


def is_wsl() -> bool:
    """Return ``True`` when running inside Windows Subsystem for Linux."""
    if platform.system() != "Linux":
        return False

    try:
        with open("/proc/version", "r", encoding="utf-8") as handle:
            version_info = handle.read().lower()
    except OSError:
        return False

    return "microsoft" in version_info or "wsl" in version_info


def get_config_dir() -> Path:
    """Return the per-user ecsctl directory (``$ECSCTL_HOME`` or ``~/.ecsctl``)."""
    override = os.environ.get("ECSCTL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".ecsctl"


def find_executable(name: str) -> Optional[str]:
    """Resolve ``name`` on PATH (absolute paths are checked as-is)."""
    return shutil.which(name)


def relay_install_hint(system: Optional[str] = None) -> str:
    """Return installation guidance for the Session Manager plugin."""
    system = system or platform.system()
    if system == "Darwin":
        steps = "brew install --cask session-manager-plugin"
    elif system == "Windows":
        steps = "Download and run SessionManagerPluginSetup.exe"
    elif is_wsl() or system == "Linux":
        steps = "Install the .deb or .rpm package for your distribution"
    else:
        steps = "Install the plugin for your platform"
    return (
        "Please install the Session Manager plugin:\n"
        f"  {steps}\n"
        f"  {RELAY_DOCS_URL}"
    )


def validate_relay_setup(executable: str) -> Tuple[bool, Optional[str]]:
    """Check whether the relay executable runs and return (is_ready, message)."""
    path = find_executable(executable)
    if path is None:
        return False, f"{executable} not found on PATH.\n{relay_install_hint()}"
    try:
        result = subprocess.run(
            [path, "--version"], capture_output=True, text=True, timeout=10
        )
    except subprocess.TimeoutExpired:
        return False, f"{executable} --version timed out."
    except (OSError, subprocess.SubprocessError) as exc:
        return False, f"Error running {executable}: {exc}"

    if result.returncode == 0:
        return True, (result.stdout or "").strip() or None
    return False, f"{executable} exited with status {result.returncode}"
