# ctm_report/decoding.py
"""Assemble flat report rows into per-timestamp report objects."""
from __future__ import annotations

import logging
from dataclasses import replace
from itertools import chain, groupby
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

from .codes import QuantityType
from .columns import (
    CTM_ID,
    FD_COLUMNS,
    FLOW_COLUMNS,
    LINK_ID,
    LINK_STATE_COLUMNS,
    NETWORK_ID,
    QTY_TYPE_ID,
    QUEUE_LENGTH,
    RUN_ID,
    TS,
)
from .errors import (
    EnsembleFDError,
    EnsembleIndexError,
    QuantityTypeError,
    ReportDecodeError,
    SchemaModeError,
)
from .schema_mode import detect_debug_mode
from .types import (
    FD,
    FreewayCTMEnsembleReport,
    FreewayCTMEnsembleState,
    FreewayCTMReport,
    FreewayCTMState,
    FreewayLinkFlowState,
    FreewayLinkState,
)

logger = logging.getLogger(__name__)

__all__ = ["decode_reports", "decode_ensemble_reports"]

T = TypeVar("T")


class _Columns:
    """Case-insensitive access to the columns of one result set."""

    def __init__(self, column_names: Iterable[str]):
        self._names = {name.upper(): name for name in column_names}

    def required_int(self, row, col: str) -> int:
        name = self._names.get(col)
        if name is None:
            raise SchemaModeError(f"Result set has no {col} column")
        value = row[name]
        if value is None:
            raise ReportDecodeError(f"{col} is null")
        return int(value)

    def optional_float(self, row, col: str) -> Optional[float]:
        # Columns missing from an older table layout read as null
        name = self._names.get(col)
        if name is None:
            return None
        value = row[name]
        return None if value is None else float(value)


def _peek(rows: Iterable[Any]) -> Tuple[Optional[Any], Iterator[Any]]:
    """Return the first row and an iterator that still yields it."""
    it = iter(rows)
    for first in it:
        return first, chain([first], it)
    return None, it


def _column_names(source: Iterable[Any], first) -> List[str]:
    """Column names of a result set, from the cursor when it exposes them."""
    names = getattr(source, "column_names", None)
    if names is not None:
        return list(names)
    return list(first.keys())


def _merged(current: Optional[T], cls: Type[T], **values) -> T:
    """Copy of ``current`` with only the non-null ``values`` overwritten."""
    updates = {k: v for k, v in values.items() if v is not None}
    if current is None:
        return cls(**updates)
    return replace(current, **updates)


def _read_fd_values(cols: _Columns, row) -> Dict[str, Optional[float]]:
    ffs, cs, cws, cap, jd, drop = (cols.optional_float(row, c) for c in FD_COLUMNS)
    return dict(
        free_flow_speed=ffs,
        critical_speed=cs,
        congestion_wave_speed=cws,
        capacity=cap,
        jam_density=jd,
        capacity_drop=drop,
    )


def _read_ctm_state(state: FreewayCTMState, link_id: str, cols: _Columns, row) -> None:
    """Fold one row's flow, density/speed and queue length into ``state``."""
    in_flow, out_flow = (cols.optional_float(row, c) for c in FLOW_COLUMNS)
    density, speed = (cols.optional_float(row, c) for c in LINK_STATE_COLUMNS)
    queue_length = cols.optional_float(row, QUEUE_LENGTH)

    if in_flow is not None or out_flow is not None:
        if state.link_flow_state_map is None:
            state.link_flow_state_map = {}
        flows = state.link_flow_state_map
        flows[link_id] = _merged(
            flows.get(link_id), FreewayLinkFlowState, in_flow=in_flow, out_flow=out_flow
        )

    if density is not None or speed is not None:
        if state.link_state_map is None:
            state.link_state_map = {}
        links = state.link_state_map
        links[link_id] = _merged(
            links.get(link_id), FreewayLinkState, density=density, speed=speed
        )

    if queue_length is not None:
        if state.queue_length is None:
            state.queue_length = {}
        state.queue_length[link_id] = queue_length


def decode_reports(rows: Iterable[Any]) -> List[FreewayCTMReport]:
    """
    Decode single-estimate reports, one per run of rows sharing a timestamp.

    Rows are assumed grouped by timestamp; if they are also sorted, so is the
    returned list. When the rows come from the debug table (they have a
    CTM_ID column), only ensemble member 0 is read and rows of other
    members are skipped without error.

    Args:
        rows: Mapping-like rows, consumed once. A RowCursor's column_names
            decide the schema mode; otherwise the first row's keys do.

    Returns:
        List of FreewayCTMReport in row order
    """
    first, it = _peek(rows)
    if first is None:
        return []

    names = _column_names(rows, first)
    cols = _Columns(names)
    debug = detect_debug_mode(names)

    reports: List[FreewayCTMReport] = []
    skipped = 0

    for ts, group in groupby(it, key=lambda r: cols.required_int(r, TS)):
        report: Optional[FreewayCTMReport] = None

        for row in group:
            if report is None:
                report = FreewayCTMReport(
                    time=ts,
                    network_id=cols.required_int(row, NETWORK_ID),
                    run_id=cols.required_int(row, RUN_ID),
                )
                reports.append(report)

            # Single reports live at member 0; higher members are ensemble data
            if debug and cols.required_int(row, CTM_ID) > 0:
                skipped += 1
                continue

            link_id = str(cols.required_int(row, LINK_ID))

            fd_values = _read_fd_values(cols, row)
            if any(v is not None for v in fd_values.values()):
                if report.fd is None:
                    report.fd = {}
                report.fd[link_id] = _merged(report.fd.get(link_id), FD, **fd_values)

            qty = QuantityType.from_code(cols.required_int(row, QTY_TYPE_ID))
            if qty is QuantityType.MEAN:
                _read_ctm_state(report.mean, link_id, cols, row)
            elif qty is QuantityType.STD_DEV:
                _read_ctm_state(report.std_dev, link_id, cols, row)

    if skipped:
        logger.debug("Skipped %d rows of ensemble members > 0", skipped)

    return reports


def decode_ensemble_reports(rows: Iterable[Any]) -> List[FreewayCTMEnsembleReport]:
    """
    Decode ensemble reports, one per run of rows sharing a timestamp.

    Within a timestamp, rows must be ordered by member index and the indices
    must run 0, 1, 2, ... without gaps. Ensemble rows carry no fundamental
    diagram and only the mean quantity type.

    Args:
        rows: Mapping-like rows from the debug table, consumed once

    Returns:
        List of FreewayCTMEnsembleReport in row order

    Raises:
        SchemaModeError: Rows have no ensemble member index column
        EnsembleIndexError: Member indices are negative, skip, or decrease
        EnsembleFDError: A row has fundamental-diagram data
        QuantityTypeError: A row's quantity type is not mean
    """
    first, it = _peek(rows)
    if first is None:
        return []

    names = _column_names(rows, first)
    if not detect_debug_mode(names):
        raise SchemaModeError("Ensemble reports require rows with a CTM_ID column")
    cols = _Columns(names)

    reports: List[FreewayCTMEnsembleReport] = []

    for ts, group in groupby(it, key=lambda r: cols.required_int(r, TS)):
        states: List[FreewayCTMState] = []
        report: Optional[FreewayCTMEnsembleReport] = None
        prev_index = -1

        for row in group:
            if report is None:
                report = FreewayCTMEnsembleReport(
                    network_id=cols.required_int(row, NETWORK_ID),
                    run_id=cols.required_int(row, RUN_ID),
                    ensemble_state=FreewayCTMEnsembleState(time=ts, states=states),
                )
                reports.append(report)

            index = cols.required_int(row, CTM_ID)
            if index < 0:
                raise EnsembleIndexError(
                    f"Negative ensemble index at ts={ts}: got {index}"
                )
            if index == prev_index + 1:
                states.append(FreewayCTMState())
                prev_index = index
            elif index != prev_index:
                raise EnsembleIndexError(
                    f"Non-contiguous ensemble index at ts={ts}: "
                    f"got {index} after {prev_index}"
                )

            link_id = str(cols.required_int(row, LINK_ID))

            if any(v is not None for v in _read_fd_values(cols, row).values()):
                raise EnsembleFDError(
                    f"Ensemble row has FD data at ts={ts}, ctm_id={index}, link={link_id}"
                )

            qty_code = cols.required_int(row, QTY_TYPE_ID)
            if QuantityType.from_code(qty_code) is not QuantityType.MEAN:
                raise QuantityTypeError(
                    f"Ensemble row must use the mean quantity type, got {qty_code} "
                    f"at ts={ts}, ctm_id={index}, link={link_id}"
                )

            _read_ctm_state(states[index], link_id, cols, row)

    return reports
