"""Exception hierarchy for storage and report decoding failures."""

from __future__ import annotations

__all__ = [
    "DatabaseError",
    "NotFoundError",
    "NotUniqueError",
]


class DatabaseError(Exception):
    """Base class for every error raised by the storage layer."""


class NotFoundError(DatabaseError):
    """An identity lookup matched no rows."""


class NotUniqueError(DatabaseError):
    """An identity lookup matched more than one row."""

    def __init__(self, what: str, rows: int):
        super().__init__(f"{what} not unique: there exist {rows} rows")
        self.what = what
        self.rows = rows
