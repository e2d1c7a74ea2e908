"""Database schema for freeway CTM report tables."""

from __future__ import annotations

from typing import Optional

from .api import StorageSession

__all__ = [
    "REPORT_TABLE",
    "DEBUG_REPORT_TABLE",
    "report_table",
    "init_report_database",
]

REPORT_TABLE = "LINK_DATA_TOTAL"
DEBUG_REPORT_TABLE = "LINK_DATA_TOTAL_DEBUG"

_REPORT_COLUMNS = """
    NETWORK_ID INTEGER NOT NULL,
    APP_RUN_ID INTEGER NOT NULL,
    APP_TYPE_ID INTEGER NOT NULL,
    TS INTEGER NOT NULL,
    LINK_ID INTEGER NOT NULL,
    FREE_FLOW_SPEED REAL,
    CRITICAL_SPEED REAL,
    CONGESTION_WAVE_SPEED REAL,
    CAPACITY REAL,
    JAM_DENSITY REAL,
    CAPACITY_DROP REAL,
    AGG_TYPE_ID INTEGER NOT NULL,
    QTY_TYPE_ID INTEGER NOT NULL,
    IN_FLOW REAL,
    OUT_FLOW REAL,
    DENSITY REAL,
    SPEED REAL,
    QUEUE_LENGTH REAL
"""


def report_table(debug: bool, prefix: str = "") -> str:
    """Name of the table holding single-estimate (or, if debug, ensemble) rows."""
    return prefix + (DEBUG_REPORT_TABLE if debug else REPORT_TABLE)


def init_report_database(session: StorageSession, prefix: Optional[str] = None) -> None:
    """
    Initialize the report database schema.

    Creates both report tables and their lookup indexes if they don't exist.

    Args:
        session: Open storage session
        prefix: Table-name prefix; defaults to the session's prefix
    """
    if prefix is None:
        prefix = session.prefix
    standard = report_table(False, prefix)
    debug = report_table(True, prefix)

    with session.transaction(f"schema init {prefix or '<default>'}"):
        session.execute(f"CREATE TABLE IF NOT EXISTS {standard} ({_REPORT_COLUMNS})")

        # Debug table carries the ensemble member index
        session.execute(
            f"CREATE TABLE IF NOT EXISTS {debug} (CTM_ID INTEGER NOT NULL, {_REPORT_COLUMNS})"
        )

        for table in (standard, debug):
            session.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{table.lower()}_run_ts
                ON {table}(NETWORK_ID, APP_RUN_ID, TS)
            """)
