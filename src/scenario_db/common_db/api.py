# common_db/api.py
"""High-level API for the report database via the sqlite3 driver."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator, List, Sequence, Union

from ..utilities.logger import setup_logger
from .errors import DatabaseError, NotFoundError, NotUniqueError

if TYPE_CHECKING:
    from ..config import DatabaseParams

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Params = Sequence[Any]

__all__ = ["open_db", "open_configured_db", "RowCursor", "StorageSession"]


class RowCursor:
    """
    Forward-only cursor over a result set.

    Rows are ``sqlite3.Row`` objects, so column access by name is
    case-insensitive. A cursor can be iterated exactly once.
    """

    def __init__(self, cursor: sqlite3.Cursor):
        self._cursor = cursor
        self._consumed = False

    @property
    def column_names(self) -> List[str]:
        description = self._cursor.description
        if description is None:
            return []
        return [d[0] for d in description]

    def __iter__(self) -> Iterator[sqlite3.Row]:
        if self._consumed:
            raise DatabaseError("cursor has already been consumed")
        self._consumed = True
        return self._rows()

    def _rows(self) -> Iterator[sqlite3.Row]:
        try:
            for row in self._cursor:
                yield row
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed reading result set: {exc}") from exc

    def close(self) -> None:
        """Release the result set; a partially read cursor simply stops."""
        self._consumed = True
        try:
            self._cursor.close()
        except sqlite3.ProgrammingError:
            pass  # connection already closed

    def __enter__(self) -> "RowCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StorageSession:
    """
    One connection's worth of statement execution and transaction bracketing.

    Sessions are passed by reference to readers and writers so that a whole
    read or write shares the same connection and transaction.
    """

    def __init__(self, conn: sqlite3.Connection, *, prefix: str = ""):
        """
        Wrap an open sqlite3 connection.

        Args:
            conn: Connection opened in autocommit mode (isolation_level=None)
            prefix: Table-name prefix used by readers and writers on this session
        """
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self.prefix = prefix
        self._in_transaction = False

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @contextmanager
    def transaction(self, label: str = "transaction"):
        """
        Run a block between BEGIN and COMMIT, rolling back on any exception.

        A failed COMMIT is rolled back as well, so the session is always
        usable for the next transaction.

        Args:
            label: Description used in log messages
        """
        if self._in_transaction:
            raise DatabaseError(f"Nested transaction not supported: {label}")

        self._raw("BEGIN")
        self._in_transaction = True
        logger.debug("Transaction beginning on %s", label)
        try:
            yield self
            self._raw("COMMIT")
        except BaseException:
            self._in_transaction = False
            try:
                self._raw("ROLLBACK")
                logger.debug("Transaction rollback on %s", label)
            except DatabaseError as exc:
                logger.warning("Rollback failed on %s: %s", label, exc)
            raise
        else:
            self._in_transaction = False
            logger.debug("Transaction committed on %s", label)

    def query(self, sql: str, params: Params = ()) -> RowCursor:
        """Execute a parameterised SELECT and return a forward-only cursor."""
        try:
            cursor = self.conn.execute(sql, tuple(params))
        except sqlite3.Error as exc:
            raise DatabaseError(f"Query failed: {exc}") from exc
        return RowCursor(cursor)

    def query_one(self, sql: str, params: Params = (), *, what: str = "row") -> sqlite3.Row:
        """
        Execute a lookup that must match exactly one row.

        Args:
            sql: SELECT statement
            params: Positional parameters
            what: Name of the looked-up entity, for error messages

        Raises:
            NotFoundError: No row matched
            NotUniqueError: More than one row matched
        """
        with self.query(sql, params) as cursor:
            rows = list(cursor)
        if not rows:
            raise NotFoundError(f"{what} not found")
        if len(rows) > 1:
            raise NotUniqueError(what, len(rows))
        return rows[0]

    def execute(self, sql: str, params: Params = ()) -> int:
        """Execute a single INSERT/UPDATE/DELETE; returns affected rows."""
        try:
            cursor = self.conn.execute(sql, tuple(params))
        except sqlite3.Error as exc:
            raise DatabaseError(f"Statement failed: {exc}") from exc
        return cursor.rowcount

    def execute_many(self, sql: str, param_seq: Iterable[Params]) -> int:
        """Execute one statement for every parameter tuple; returns affected rows."""
        try:
            cursor = self.conn.executemany(sql, (tuple(p) for p in param_seq))
        except sqlite3.Error as exc:
            raise DatabaseError(f"Batch statement failed: {exc}") from exc
        return cursor.rowcount

    def _raw(self, sql: str) -> None:
        try:
            self.conn.execute(sql)
        except sqlite3.Error as exc:
            raise DatabaseError(f"{sql} failed: {exc}") from exc

    def close(self) -> None:
        self.conn.close()


@contextmanager
def open_db(
        path: PathLike,
        *,
        timeout: float = 10.0,
        create_if_missing: bool = True,
        prefix: str = "",
) -> Iterator[StorageSession]:
    """
    Open the report database with automatic cleanup.

    Args:
        path: Path to the sqlite file, or ":memory:"
        timeout: Seconds to wait on a locked database
        create_if_missing: Create the file (and parent directory) if absent
        prefix: Table-name prefix for the report tables
    """
    path_str = str(path)
    if path_str != ":memory:":
        p = Path(path_str)
        if not p.exists():
            if not create_if_missing:
                raise FileNotFoundError(f"Database not found: {p}")
            p.parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(path_str, timeout=timeout, isolation_level=None)
    except sqlite3.Error as exc:
        raise DatabaseError(f"Could not open {path_str}: {exc}") from exc

    session = StorageSession(conn, prefix=prefix)
    logger.debug("Opened database %s", path_str)
    try:
        yield session
    finally:
        try:
            session.close()
        except sqlite3.Error as exc:
            logger.warning("Close failed for %s: %s", path_str, exc)


@contextmanager
def open_configured_db(params: "DatabaseParams") -> Iterator[StorageSession]:
    """
    Open the database described by ``params`` (see scenario_db.config).

    When ``params.log_dir`` is set, file logging is configured there first
    (once per process). The session carries ``params.schema`` as its
    table-name prefix.
    """
    if params.log_dir is not None:
        setup_logger(params.log_dir, level=params.log_level)

    logger.info("Connecting to %s", params.describe())
    with open_db(
            params.db_path,
            timeout=params.timeout,
            prefix=params.schema,
    ) as session:
        yield session
