"""Scenario database access: freeway CTM report storage."""

from .config import DatabaseParams
from .common_db import open_db, init_report_database, StorageSession
from .ctm_report import FreewayCTMReportReader, FreewayCTMReportWriter

__all__ = [
    "DatabaseParams",
    "open_db",
    "init_report_database",
    "StorageSession",
    "FreewayCTMReportReader",
    "FreewayCTMReportWriter",
]
