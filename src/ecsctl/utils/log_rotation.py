"""
Log retention for the daily ecsctl log files.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

_PREFIX = "ecsctl_"
_SUFFIX = ".jsonl"


def _file_date(path: Path) -> Optional[datetime]:
    name = path.name
    if not (name.startswith(_PREFIX) and name.endswith(_SUFFIX)):
        return None
    stamp = name[len(_PREFIX) : -len(_SUFFIX)]
    try:
        return datetime.strptime(stamp, "%Y%m%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def get_log_files_by_age(logs_dir: Path) -> List[Tuple[Path, datetime]]:
    """
    Get all daily log files sorted by age.

    Args:
        logs_dir: Base logs directory

    Returns:
        List of (file_path, day) tuples sorted oldest first
    """
    files: List[Tuple[Path, datetime]] = []
    if not logs_dir.exists():
        return files

    for log_file in logs_dir.glob(f"{_PREFIX}*{_SUFFIX}"):
        day = _file_date(log_file)
        if day is not None and log_file.is_file():
            files.append((log_file, day))

    files.sort(key=lambda item: item[1])
    return files


def cleanup_old_logs(
    logs_dir: Path, retention_days: int = 7, now: Optional[datetime] = None
) -> int:
    """
    Delete daily log files older than the retention period.

    Args:
        logs_dir: Base logs directory
        retention_days: Number of days to retain logs (default: 7)
        now: Reference time, defaults to the current UTC time

    Returns:
        Number of files removed
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=retention_days)
    removed = 0
    for log_file, day in get_log_files_by_age(logs_dir):
        if day >= cutoff:
            break
        try:
            log_file.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove log file {log_file}: {e}")
            continue
        logger.debug(f"Removed old log file: {log_file}")
        removed += 1
    return removed
