# ctm_report/writer.py
"""Write and delete freeway CTM report rows."""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from tqdm import tqdm

from ..common_db.api import StorageSession
from ..common_db.errors import DatabaseError
from ..common_db.schema import report_table
from ..utilities.logger import log_duration
from .codes import AggregationType, AppType
from .columns import CTM_ID, ROW_COLUMNS, ReportRow
from .encoding import encode_ensemble_report, encode_report
from .types import FreewayCTMEnsembleReport, FreewayCTMReport, Interval

logger = logging.getLogger(__name__)

__all__ = ["FreewayCTMReportWriter"]


def _insert_sql(table: str, debug: bool) -> str:
    columns = ((CTM_ID,) if debug else ()) + ROW_COLUMNS
    placeholders = ", ".join("?" * len(columns))
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def _row_params(row: ReportRow, debug: bool) -> tuple:
    if debug:
        return (row.ctm_id,) + row.values()
    return row.values()


class FreewayCTMReportWriter:
    """
    Writes FreewayCTMReports and FreewayCTMEnsembleReports.

    Report rows are never updated; to replace data, delete a time interval
    and insert again.
    """

    def __init__(
            self,
            session: StorageSession,
            *,
            prefix: Optional[str] = None,
            aggregation_type: AggregationType = AggregationType.RAW,
            app_type: AppType = AppType.ESTIMATOR,
    ):
        self.session = session
        self.prefix = session.prefix if prefix is None else prefix
        self.aggregation_type = aggregation_type
        self.app_type = app_type

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def insert(self, report: FreewayCTMReport) -> int:
        """Insert a report into LINK_DATA_TOTAL; returns rows written."""
        return self._with_transaction(
            f"insert FreewayCTMReport time={report.time}, debug=False",
            lambda: self.insert_rows(report, debug=False),
        )

    def insert_debug(self, report: FreewayCTMReport) -> int:
        """Insert a report into LINK_DATA_TOTAL_DEBUG with CTM_ID 0."""
        return self._with_transaction(
            f"insert FreewayCTMReport time={report.time}, debug=True",
            lambda: self.insert_rows(report, debug=True),
        )

    def insert_ensemble(self, report: FreewayCTMEnsembleReport) -> int:
        """Insert an ensemble report into LINK_DATA_TOTAL_DEBUG."""
        time = report.ensemble_state.time if report.ensemble_state else None
        return self._with_transaction(
            f"insert FreewayCTMEnsembleReport time={time}",
            lambda: self.insert_ensemble_rows(report),
        )

    def insert_many(
            self,
            reports: Sequence[FreewayCTMReport],
            *,
            debug: bool = False,
            progress: bool = False,
    ) -> int:
        """
        Insert several reports in one transaction.

        Args:
            reports: Reports to write
            debug: Write to the debug table
            progress: Show a progress bar

        Returns:
            Total rows written
        """
        def write_all() -> int:
            total = 0
            with tqdm(
                    total=len(reports),
                    desc="Writing reports",
                    unit="report",
                    disable=not progress,
            ) as pbar:
                for report in reports:
                    total += self.insert_rows(report, debug=debug)
                    pbar.update(1)
            return total

        return self._with_transaction(
            f"insert {len(reports)} FreewayCTMReports, debug={debug}", write_all
        )

    def insert_rows(self, report: FreewayCTMReport, debug: bool = False) -> int:
        """Same as insert()/insert_debug(), inside the caller's transaction."""
        rows = encode_report(
            report,
            debug=debug,
            aggregation_type=self.aggregation_type,
            app_type=self.app_type,
        )
        return self._write_rows(rows, debug)

    def insert_ensemble_rows(self, report: FreewayCTMEnsembleReport) -> int:
        """Same as insert_ensemble(), inside the caller's transaction."""
        rows = encode_ensemble_report(
            report,
            aggregation_type=self.aggregation_type,
            app_type=self.app_type,
        )
        return self._write_rows(rows, True)

    def _write_rows(self, rows: Iterable[ReportRow], debug: bool) -> int:
        rows = list(rows)
        if not rows:
            return 0
        sql = _insert_sql(report_table(debug, self.prefix), debug)
        return self.session.execute_many(sql, (_row_params(r, debug) for r in rows))

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(
            self,
            network_id: int,
            run_id: int,
            interval: Interval,
            debug: bool = False,
    ) -> int:
        """
        Delete report rows of one run over a closed time interval.

        With debug, rows are deleted from the debug table; this is the only
        way to delete ensemble reports.

        Returns:
            Number of rows deleted
        """
        desc = (f"report.{{network_id={network_id}, run_id={run_id}, "
                f"interval={interval}, debug={debug}}}")
        return self._with_transaction(
            f"delete {desc}",
            lambda: self.delete_rows(network_id, run_id, interval, debug),
        )

    def delete_rows(
            self,
            network_id: int,
            run_id: int,
            interval: Interval,
            debug: bool = False,
    ) -> int:
        """Same as delete(), inside the caller's transaction."""
        table = report_table(debug, self.prefix)
        return self.session.execute(
            f"DELETE FROM {table} "
            f"WHERE NETWORK_ID = ? AND APP_RUN_ID = ? AND TS BETWEEN ? AND ?",
            (network_id, run_id, interval.start_ms, interval.end_ms),
        )

    def _with_transaction(self, desc: str, work) -> int:
        written = 0
        try:
            with log_duration(desc, count=lambda: written, log=logger):
                with self.session.transaction(desc):
                    written = work()
        except DatabaseError as exc:
            logger.error("Failed to %s: %s", desc, exc)
            raise
        return written
