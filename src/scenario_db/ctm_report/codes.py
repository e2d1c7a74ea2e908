"""Integer discriminator codes stored on every report row."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

__all__ = ["QuantityType", "AggregationType", "AppType"]


class QuantityType(IntEnum):
    """Statistical role of a row (QTY_TYPE_ID)."""

    MEAN = 2
    STD_DEV = 4

    @classmethod
    def from_code(cls, code: Optional[int]) -> Optional["QuantityType"]:
        """Return the member for ``code``, or None if it is not recognised."""
        try:
            return cls(code)
        except ValueError:
            return None


class AggregationType(IntEnum):
    """Temporal aggregation of a row (AGG_TYPE_ID)."""

    RAW = 1


class AppType(IntEnum):
    """Application that produced a row (APP_TYPE_ID)."""

    ESTIMATOR = 1
