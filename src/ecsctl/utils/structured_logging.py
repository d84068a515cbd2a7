"""Structured logging utilities for ecsctl."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .redaction import LOG_RECORD_FIELDS, RedactingFilter, Redactor

__all__ = ["JSONFormatter", "log_file_for", "setup_structured_logging"]

_NOISY_THIRD_PARTY_LOGGERS = (
    "botocore",
    "boto3",
    "urllib3",
    "s3transfer",
)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON Lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _to_iso_millis(datetime.fromtimestamp(record.created, timezone.utc)),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in LOG_RECORD_FIELDS:
                continue
            entry[key] = _json_safe(value)

        return json.dumps(entry)


def log_file_for(logs_dir: Path, day: Optional[datetime] = None) -> Path:
    """Daily log file: ``ecsctl_YYYYMMDD.jsonl``."""
    day = day or datetime.now(timezone.utc)
    return logs_dir / f"ecsctl_{day.strftime('%Y%m%d')}.jsonl"


def setup_structured_logging(
    logs_dir: Optional[Path],
    debug: bool = False,
    quiet: bool = False,
    level: str = "INFO",
    redaction_patterns: Optional[List[str]] = None,
) -> Optional[Path]:
    """Configure JSONL file logging plus a stderr console handler.

    Returns the log file path, or ``None`` when file logging is off or the
    directory cannot be created.
    """
    redacting = RedactingFilter(Redactor(redaction_patterns))

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_determine_console_level(debug=debug, quiet=quiet))
    console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    console_handler.addFilter(redacting)
    root_logger.addHandler(console_handler)

    log_path = None
    if logs_dir is not None:
        log_path = _build_file_handler(root_logger, logs_dir, level, redacting)

    _limit_third_party_noise()
    return log_path


def _build_file_handler(
    root_logger: logging.Logger,
    logs_dir: Path,
    level: str,
    redacting: logging.Filter,
) -> Optional[Path]:
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_file_for(logs_dir)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        root_logger.warning("File logging disabled (%s): %s", logs_dir, exc)
        return None
    file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    file_handler.setFormatter(JSONFormatter())
    file_handler.addFilter(redacting)
    root_logger.addHandler(file_handler)
    return log_path


def _determine_console_level(*, debug: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if debug:
        return logging.DEBUG
    return logging.WARNING


def _limit_third_party_noise() -> None:
    for name in _NOISY_THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _to_iso_millis(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _json_safe(value: object) -> object:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value
