"""Configuration management utilities for ecsctl."""

from __future__ import annotations

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import dotenv_values

from .exceptions import ValidationError
from .utils.platform_utils import get_config_dir

__all__ = [
    "deep_merge",
    "get_default_config",
    "load_config",
    "load_dotenv_config",
    "load_env_config",
    "load_yaml_config",
    "merge_config",
    "parse_duration",
]

logger = logging.getLogger(__name__)

# Environment variable -> dotted config key.
_ENV_TO_CONFIG_KEY = {
    "ECSCTL_REGISTRY": "registry_path",
    "ECSCTL_LOGS_DIR": "logs_dir",
    "ECSCTL_LOG_SINCE": "logs.since",
    "ECSCTL_POLL_INTERVAL": "logs.poll_interval",
    "ECSCTL_PAGE_SIZE": "collector.page_size",
    "ECSCTL_RELAY": "relay.executable",
    "ECSCTL_LOG_LEVEL": "logging.level",
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any) -> timedelta:
    """Parse a duration such as ``90s``, ``10m`` or ``1h30m``.

    Bare numbers are read as seconds.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value < 0:
            raise ValidationError(f"invalid duration: {value}")
        return timedelta(seconds=value)

    text = str(value or "").strip()
    if not text:
        raise ValidationError("invalid duration: empty value")
    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        return timedelta(seconds=float(text))

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValidationError(f"invalid duration: {text!r} (expected e.g. 30s, 10m, 1h30m)")
    return timedelta(seconds=total)


def merge_config(
    cli_args: Dict[str, Any],
    env_config: Dict[str, Any],
    dotenv_config: Dict[str, Any],
    file_config: Dict[str, Any],
    defaults: Dict[str, Any],
) -> Dict[str, Any]:
    """Merge configuration dictionaries honoring precedence order."""
    merged = defaults.copy()
    deep_merge(merged, file_config)
    deep_merge(merged, dotenv_config)
    deep_merge(merged, env_config)
    cli_filtered = {key: value for key, value in cli_args.items() if value is not None}
    deep_merge(merged, cli_filtered)
    return merged


def deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> None:
    """Recursively merge ``overlay`` into ``base`` in place."""
    for key, value in overlay.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            base[key] = dict(base[key])
            deep_merge(base[key], value)
        else:
            base[key] = value


def load_yaml_config(yaml_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load user settings from ``settings.yaml`` or return an empty dict."""
    path = yaml_path or get_config_dir() / "settings.yaml"
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.warning("Failed to load %s: %s", path, exc)
        return {}

    return data if isinstance(data, dict) else {}


def load_dotenv_config(dotenv_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load ``ECSCTL_*`` settings from a ``.env`` file."""
    path = dotenv_path or Path(".env")
    if not path.exists():
        return {}

    values = dotenv_values(path)
    config: Dict[str, Any] = {}
    for env_key, config_key in _ENV_TO_CONFIG_KEY.items():
        if values.get(env_key):
            _set_dotted(config, config_key, values[env_key])
    return config


def load_env_config() -> Dict[str, Any]:
    """Load supported ``ECSCTL_*`` variables from the current environment."""
    config: Dict[str, Any] = {}
    for env_key, config_key in _ENV_TO_CONFIG_KEY.items():
        if os.environ.get(env_key):
            _set_dotted(config, config_key, os.environ[env_key])
    return config


def get_default_config() -> Dict[str, Any]:
    """Return a fresh copy of ecsctl's default configuration."""
    base = get_config_dir()
    return {
        "registry_path": base / "config.yaml",
        "logs_dir": base / "logs",
        "logs": {
            "since": "10m",
            "poll_interval": 1.0,
        },
        "collector": {
            "page_size": None,
        },
        "relay": {
            "executable": "session-manager-plugin",
        },
        "logging": {
            "level": "INFO",
            "retention_days": 7,
            "redaction": {"custom_patterns": []},
        },
    }


def load_config(
    cli_args: Optional[Dict[str, Any]] = None,
    yaml_path: Optional[Path] = None,
    dotenv_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """Load configuration from defaults, files, environment, and CLI."""
    config = merge_config(
        cli_args=cli_args or {},
        env_config=load_env_config(),
        dotenv_config=load_dotenv_config(dotenv_path),
        file_config=load_yaml_config(yaml_path),
        defaults=get_default_config(),
    )
    return _normalize(config)


def _normalize(config: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce merged values to their runtime types, raising on bad input."""
    config["registry_path"] = Path(config["registry_path"]).expanduser()
    config["logs_dir"] = Path(config["logs_dir"]).expanduser()

    logs = config.setdefault("logs", {})
    logs["since"] = parse_duration(logs.get("since", "10m"))
    logs["poll_interval"] = _positive_float(logs.get("poll_interval", 1.0), "logs.poll_interval")

    collector = config.setdefault("collector", {})
    page_size = collector.get("page_size")
    if page_size is not None:
        try:
            page_size = int(page_size)
        except (TypeError, ValueError):
            raise ValidationError(f"collector.page_size must be an integer, got {page_size!r}")
        if page_size <= 0:
            raise ValidationError("collector.page_size must be positive")
        collector["page_size"] = page_size

    logging_cfg = config.setdefault("logging", {})
    level = str(logging_cfg.get("level", "INFO")).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValidationError(f"unknown logging.level: {level}")
    logging_cfg["level"] = level
    return config


def _positive_float(value: Any, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number, got {value!r}")
    if number <= 0:
        raise ValidationError(f"{key} must be positive")
    return number


def _set_dotted(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split(".")
    node = config
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value
