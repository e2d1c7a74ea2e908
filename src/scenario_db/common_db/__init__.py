# common_db/__init__.py
from .api import open_db, open_configured_db, RowCursor, StorageSession
from .errors import DatabaseError, NotFoundError, NotUniqueError
from .schema import (
    REPORT_TABLE,
    DEBUG_REPORT_TABLE,
    report_table,
    init_report_database,
)

__all__ = [
    "open_db",
    "open_configured_db",
    "RowCursor",
    "StorageSession",
    "DatabaseError",
    "NotFoundError",
    "NotUniqueError",
    "REPORT_TABLE",
    "DEBUG_REPORT_TABLE",
    "report_table",
    "init_report_database",
]
