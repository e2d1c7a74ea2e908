"""Infer which report table a result set came from."""

from __future__ import annotations

from typing import Iterable

from .columns import CTM_ID

__all__ = ["detect_debug_mode"]


def detect_debug_mode(column_names: Iterable[str]) -> bool:
    """
    True if the columns include the ensemble member index (CTM_ID).

    Only the debug table has that column, so its presence means rows may
    belong to several ensemble members. Names are compared case-insensitively.
    """
    target = CTM_ID.casefold()
    return any(name.casefold() == target for name in column_names)
