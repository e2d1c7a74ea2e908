# config.py
"""Configuration for database access."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

__all__ = ["DatabaseParams"]


def _env_level(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    if not isinstance(level, int):
        raise ValueError(f"{name} must be a logging level name, got {raw!r}")
    return level


@dataclass(frozen=True)
class DatabaseParams:
    """Parameters for opening the scenario database.

    Everything ``open_configured_db`` needs: where the sqlite file lives, how
    long to wait on a lock, which table-name prefix the report tables use,
    and where (if anywhere) to write the log file.
    """

    db_path: Path = Path("scenario.db")
    """Path to the sqlite database file (or ":memory:")"""

    timeout: float = 10.0
    """Seconds to wait on a locked database"""

    schema: str = ""
    """Prefix applied to report table names"""

    log_dir: Optional[Path] = None
    """Directory (or database file) to log beside; None leaves logging alone"""

    log_level: int = logging.INFO

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DatabaseParams":
        """Create params from VIA_DATABASE_* and VIA_LOG_* environment variables."""
        env = os.environ if environ is None else environ

        timeout_raw = env.get("VIA_DATABASE_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else cls.timeout
        except ValueError:
            raise ValueError(
                f"VIA_DATABASE_TIMEOUT must be a number, got {timeout_raw!r}"
            ) from None

        log_dir = env.get("VIA_LOG_DIR")

        return cls(
            db_path=Path(env.get("VIA_DATABASE_PATH") or "scenario.db"),
            timeout=timeout,
            schema=env.get("VIA_DATABASE_SCHEMA", ""),
            log_dir=Path(log_dir) if log_dir else None,
            log_level=_env_level(env, "VIA_LOG_LEVEL", logging.INFO),
        )

    @classmethod
    def from_dict(cls, d: dict) -> "DatabaseParams":
        """Create params from dictionary."""
        d = d.copy()
        if "db_path" in d:
            d["db_path"] = Path(d["db_path"])
        if d.get("log_dir") is not None:
            d["log_dir"] = Path(d["log_dir"])
        return cls(**d)

    def describe(self) -> str:
        """One-line description for log messages."""
        return (
            f"db={self.db_path} schema={self.schema or '<default>'}"
            f" timeout={self.timeout:g}s"
        )
