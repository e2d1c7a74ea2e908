# utilities/logger.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, List, Optional

__all__ = ["setup_logger", "log_duration"]

logger = logging.getLogger(__name__)

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Log file and handlers installed by setup_logger in this process
_log_path: Optional[Path] = None
_handlers: List[logging.Handler] = []


def _log_dir_for(location: str | Path) -> Path:
    """Directory to log into for a directory, a database file or ":memory:"."""
    if str(location) == ":memory:":
        return Path.cwd()
    p = Path(location).expanduser()
    # A sqlite database is a file; log beside it rather than inside it.
    return p if (p.is_dir() or not p.suffix) else p.parent


def setup_logger(
    location: str | Path,
    *,
    level: int = logging.INFO,
    filename_prefix: str = "scenario_db",
    console: bool = False,
    rotate: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """
    Configure root logging to write a timestamped file beside the database.

    The first call installs the handlers; later calls return the same log
    file and only adjust the level, so opening several configured sessions
    does not multiply handlers. ``force`` replaces all root handlers and
    starts a new file.

    Args:
        location: Log directory, or the database path to log beside
        level: Root logger level
        filename_prefix: Start of the log file name
        console: Also log to stderr
        rotate: Use a size-rotated file
        max_bytes: Rotation size
        backup_count: Rotated files to keep

    Returns:
        Path of the log file
    """
    global _log_path

    root = logging.getLogger()
    if _log_path is not None and not force:
        root.setLevel(level)
        return _log_path

    if force:
        for h in list(root.handlers):
            root.removeHandler(h)
            if h in _handlers:
                h.close()
        _handlers.clear()

    log_dir = _log_dir_for(location)
    log_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = log_dir / f"{filename_prefix}_{ts}.log"

    root.setLevel(level)
    fmt = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    if rotate:
        fhandler = RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    else:
        fhandler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fhandler.setFormatter(fmt)
    root.addHandler(fhandler)
    _handlers.append(fhandler)

    if console:
        shandler = logging.StreamHandler()
        shandler.setFormatter(fmt)
        root.addHandler(shandler)
        _handlers.append(shandler)

    _log_path = log_path
    root.info("Logging to: %s", str(log_path))
    return log_path


@contextmanager
def log_duration(
    label: str,
    *,
    count: Optional[Callable[[], int]] = None,
    log: logging.Logger = logger,
):
    """
    Log how long the enclosed block took, and optionally how many items it
    produced. Nothing is logged if the block raises.

    Args:
        label: Operation description, e.g. "Read report.{network_id=1, ...}"
        count: Called after the block to obtain the item count
        log: Logger to write to (defaults to this module's logger)
    """
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    if count is None:
        log.info("%s took %.3fs", label, elapsed)
    else:
        log.info("%s took %.3fs (%s items)", label, elapsed, f"{count():,}")
