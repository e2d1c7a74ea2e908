# ctm_report/reader.py
"""Read freeway CTM reports and ensemble reports from the report tables."""
from __future__ import annotations

import logging
from typing import List, Optional

from ..common_db.api import StorageSession
from ..common_db.errors import DatabaseError
from ..common_db.schema import report_table
from ..utilities.logger import log_duration
from .decoding import decode_ensemble_reports, decode_reports
from .types import FreewayCTMEnsembleReport, FreewayCTMReport, Interval

logger = logging.getLogger(__name__)

__all__ = ["FreewayCTMReportReader"]


class FreewayCTMReportReader:
    """
    Reads FreewayCTMReports and FreewayCTMEnsembleReports.

    A FreewayCTMReport is normally stored in LINK_DATA_TOTAL, but can also
    be stored in LINK_DATA_TOTAL_DEBUG with a CTM_ID of 0. Ensemble reports
    are only ever stored in the debug table.
    """

    def __init__(self, session: StorageSession, *, prefix: Optional[str] = None):
        """
        Args:
            session: Storage session shared with any enclosing reader/writer
            prefix: Table-name prefix; defaults to the session's prefix
        """
        self.session = session
        self.prefix = session.prefix if prefix is None else prefix

    def read(
            self,
            network_id: int,
            run_id: int,
            interval: Interval,
            debug: bool = False,
    ) -> List[FreewayCTMReport]:
        """
        Read the reports of one run over a closed time interval.

        Args:
            network_id: ID of the network the data refers to
            run_id: ID of the run that generated the data
            interval: Time interval of the data to read
            debug: Read from the debug table (member 0 only)

        Returns:
            Reports sorted by time
        """
        desc = (f"report.{{network_id={network_id}, run_id={run_id}, "
                f"interval={interval}, debug={debug}}}")
        reports: List[FreewayCTMReport] = []

        try:
            with log_duration(f"Read {desc}", count=lambda: len(reports), log=logger):
                with self.session.transaction(f"read {desc}"):
                    reports = self.read_rows(network_id, run_id, interval, debug)
        except DatabaseError as exc:
            logger.error("Read failed on %s: %s", desc, exc)
            raise

        return reports

    def read_rows(
            self,
            network_id: int,
            run_id: int,
            interval: Interval,
            debug: bool = False,
    ) -> List[FreewayCTMReport]:
        """Same as read(), inside the caller's transaction."""
        table = report_table(debug, self.prefix)
        # TODO: restrict to AGG_TYPE_ID = RAW once other aggregations are written
        sql = (f"SELECT * FROM {table} "
               f"WHERE NETWORK_ID = ? AND APP_RUN_ID = ? AND TS BETWEEN ? AND ? "
               f"ORDER BY TS")
        params = (network_id, run_id, interval.start_ms, interval.end_ms)

        with self.session.query(sql, params) as cursor:
            return decode_reports(cursor)

    def read_ensemble(
            self,
            network_id: int,
            run_id: int,
            interval: Interval,
    ) -> List[FreewayCTMEnsembleReport]:
        """
        Read the ensemble reports of one run over a closed time interval.

        Returns:
            Ensemble reports sorted by time
        """
        desc = (f"ensemble_report.{{network_id={network_id}, run_id={run_id}, "
                f"interval={interval}}}")
        reports: List[FreewayCTMEnsembleReport] = []

        try:
            with log_duration(f"Read {desc}", count=lambda: len(reports), log=logger):
                with self.session.transaction(f"read {desc}"):
                    reports = self.read_ensemble_rows(network_id, run_id, interval)
        except DatabaseError as exc:
            logger.error("Read failed on %s: %s", desc, exc)
            raise

        return reports

    def read_ensemble_rows(
            self,
            network_id: int,
            run_id: int,
            interval: Interval,
    ) -> List[FreewayCTMEnsembleReport]:
        """Same as read_ensemble(), inside the caller's transaction."""
        table = report_table(True, self.prefix)
        sql = (f"SELECT * FROM {table} "
               f"WHERE NETWORK_ID = ? AND APP_RUN_ID = ? AND TS BETWEEN ? AND ? "
               f"ORDER BY TS, CTM_ID")
        params = (network_id, run_id, interval.start_ms, interval.end_ms)

        with self.session.query(sql, params) as cursor:
            return decode_ensemble_reports(cursor)

    def read_time_bounds(
            self,
            network_id: int,
            run_id: int,
            debug: bool = False,
    ) -> Optional[Interval]:
        """
        Earliest and latest report time stored for a run.

        Returns:
            Interval spanning the stored timestamps, or None if there are none
        """
        table = report_table(debug, self.prefix)
        row = self.session.query_one(
            f"SELECT MIN(TS) AS START_TS, MAX(TS) AS END_TS FROM {table} "
            f"WHERE NETWORK_ID = ? AND APP_RUN_ID = ?",
            (network_id, run_id),
            what=f"time bounds of run {run_id}",
        )
        if row["START_TS"] is None:
            return None
        return Interval(int(row["START_TS"]), int(row["END_TS"]))
