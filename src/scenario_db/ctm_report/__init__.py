"""Freeway CTM report persistence: row/report pivot plus table reader and writer."""

from .codes import QuantityType, AggregationType, AppType
from .types import (
    FD,
    FreewayLinkState,
    FreewayLinkFlowState,
    FreewayCTMState,
    FreewayCTMReport,
    FreewayCTMEnsembleState,
    FreewayCTMEnsembleReport,
    Interval,
    to_millis,
)
from .columns import ReportRow
from .errors import (
    ReportDecodeError,
    EnsembleIndexError,
    EnsembleFDError,
    QuantityTypeError,
    SchemaModeError,
    ReportEncodeError,
)
from .schema_mode import detect_debug_mode
from .buckets import LinkBuckets, classify_links
from .decoding import decode_reports, decode_ensemble_reports
from .encoding import encode_report, encode_ensemble_report
from .reader import FreewayCTMReportReader
from .writer import FreewayCTMReportWriter

__all__ = [
    # Codes
    "QuantityType",
    "AggregationType",
    "AppType",

    # Data model
    "FD",
    "FreewayLinkState",
    "FreewayLinkFlowState",
    "FreewayCTMState",
    "FreewayCTMReport",
    "FreewayCTMEnsembleState",
    "FreewayCTMEnsembleReport",
    "Interval",
    "to_millis",
    "ReportRow",

    # Errors
    "ReportDecodeError",
    "EnsembleIndexError",
    "EnsembleFDError",
    "QuantityTypeError",
    "SchemaModeError",
    "ReportEncodeError",

    # Pivot engine
    "detect_debug_mode",
    "LinkBuckets",
    "classify_links",
    "decode_reports",
    "decode_ensemble_reports",
    "encode_report",
    "encode_ensemble_report",

    # Table access
    "FreewayCTMReportReader",
    "FreewayCTMReportWriter",
]
