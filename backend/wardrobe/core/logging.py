"""Shared job log: every run appends to one file (data/logs.txt by default)."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from wardrobe.core.config import settings

LOG_PATH = Path(settings.log_file)
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Keep the tail of the file once it grows past the threshold
MAX_LOG_LINES = 10000
TRUNCATE_THRESHOLD = 15000


def truncate_log_file(
    log_path: Path = LOG_PATH,
    keep: int = MAX_LOG_LINES,
    threshold: int = TRUNCATE_THRESHOLD,
) -> int:
    """Cut the log down to its last `keep` lines when it exceeds `threshold`.

    Returns:
        Number of lines dropped (0 when nothing was done)
    """
    if not log_path.exists():
        return 0

    with open(log_path, "r", encoding="utf-8", errors="replace") as f:
        lines = f.readlines()
    if len(lines) <= threshold:
        return 0

    temp_path = log_path.with_name(log_path.name + ".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        f.writelines(lines[-keep:])
    temp_path.replace(log_path)
    return len(lines) - keep


_console = logging.StreamHandler()
_console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))


def attach_console(level: int = logging.INFO) -> None:
    """Echo job log records to stderr as well (wardrobe --verbose)."""
    _console.setStream(sys.stderr)
    _console.setLevel(level)
    if _console not in log.handlers:
        log.addHandler(_console)


def detach_console() -> None:
    log.removeHandler(_console)


LOG_PATH.parent.mkdir(parents=True, exist_ok=True)

try:
    _dropped = truncate_log_file()
except OSError as e:
    _dropped = 0
    print(f"LOG_ROTATION_ERROR: could not truncate {LOG_PATH}: {e}")

LOG_LEVEL = getattr(logging, settings.log_level.upper(), logging.INFO)

logging.basicConfig(
    filename=str(LOG_PATH),
    level=LOG_LEVEL,
    format=LOG_FORMAT,
    datefmt=LOG_DATEFMT,
    encoding="utf-8",
)

log = logging.getLogger("wardrobe")
log.setLevel(LOG_LEVEL)

if _dropped:
    log.info(f"LOG_ROTATION dropped={_dropped} kept={MAX_LOG_LINES}")
