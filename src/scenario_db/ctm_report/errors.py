"""Fatal conditions raised while decoding report rows."""

from __future__ import annotations

from ..common_db.errors import DatabaseError

__all__ = [
    "ReportDecodeError",
    "EnsembleIndexError",
    "EnsembleFDError",
    "QuantityTypeError",
    "SchemaModeError",
    "ReportEncodeError",
]


class ReportDecodeError(DatabaseError):
    """Rows could not be assembled into reports."""


class EnsembleIndexError(ReportDecodeError):
    """Ensemble member indices within a timestamp are not 0, 1, 2, ..."""


class EnsembleFDError(ReportDecodeError):
    """An ensemble row carries fundamental-diagram data."""


class QuantityTypeError(ReportDecodeError):
    """An ensemble row carries a quantity type other than mean."""


class SchemaModeError(ReportDecodeError):
    """The result set lacks a column the requested decode depends on."""


class ReportEncodeError(ValueError):
    """A report cannot be represented as report-table rows."""
