# ctm_report/encoding.py
"""Flatten report objects into the rows written to the report tables."""
from __future__ import annotations

from typing import List, Mapping, Optional

from .buckets import classify_links, sort_link_ids
from .codes import AggregationType, AppType, QuantityType
from .columns import ReportRow
from .errors import ReportEncodeError
from .types import (
    FD,
    FreewayCTMEnsembleReport,
    FreewayCTMReport,
    FreewayCTMState,
)

__all__ = ["encode_report", "encode_ensemble_report"]


def _non_origin_row(
        base: dict,
        link_id: str,
        qty_type: QuantityType,
        state: Optional[FreewayCTMState],
        fd: Optional[Mapping[str, FD]] = None,
) -> ReportRow:
    link_state = state.link_state_map.get(link_id) if state and state.link_state_map else None
    flow_state = (
        state.link_flow_state_map.get(link_id)
        if state and state.link_flow_state_map else None
    )
    link_fd = fd.get(link_id) if fd else None

    return ReportRow(
        **base,
        link_id=int(link_id),
        qty_type=int(qty_type),
        free_flow_speed=link_fd.free_flow_speed if link_fd else None,
        critical_speed=link_fd.critical_speed if link_fd else None,
        congestion_wave_speed=link_fd.congestion_wave_speed if link_fd else None,
        capacity=link_fd.capacity if link_fd else None,
        jam_density=link_fd.jam_density if link_fd else None,
        capacity_drop=link_fd.capacity_drop if link_fd else None,
        in_flow=flow_state.in_flow if flow_state else None,
        out_flow=flow_state.out_flow if flow_state else None,
        density=link_state.density if link_state else None,
        speed=link_state.speed if link_state else None,
    )


def _origin_row(
        base: dict,
        link_id: str,
        qty_type: QuantityType,
        state: FreewayCTMState,
) -> ReportRow:
    return ReportRow(
        **base,
        link_id=int(link_id),
        qty_type=int(qty_type),
        queue_length=state.queue_length[link_id],
    )


def _rows_for(
        base: dict,
        mean: Optional[FreewayCTMState],
        std_dev: Optional[FreewayCTMState] = None,
        fd: Optional[Mapping[str, FD]] = None,
) -> List[ReportRow]:
    buckets = classify_links(mean, std_dev, fd)
    mean_qty, std_qty = QuantityType.MEAN, QuantityType.STD_DEV

    rows = [
        _non_origin_row(base, lid, mean_qty, mean, fd)
        for lid in sort_link_ids(buckets.non_origin_mean)
    ]
    # FD belongs to the mean role only
    rows += [
        _non_origin_row(base, lid, std_qty, std_dev)
        for lid in sort_link_ids(buckets.non_origin_std_dev)
    ]
    rows += [
        _origin_row(base, lid, mean_qty, mean)
        for lid in sort_link_ids(buckets.origin_mean)
    ]
    rows += [
        _origin_row(base, lid, std_qty, std_dev)
        for lid in sort_link_ids(buckets.origin_std_dev)
    ]
    return rows


def encode_report(
        report: FreewayCTMReport,
        *,
        debug: bool = False,
        aggregation_type: AggregationType = AggregationType.RAW,
        app_type: AppType = AppType.ESTIMATOR,
) -> List[ReportRow]:
    """
    Encode a single-estimate report as flat rows.

    Rows come out in four groups: non-origin mean links (carrying the FD
    for the link, if any), non-origin standard-deviation links, origin mean
    links, origin standard-deviation links. A link that has both link-state
    and queue-length data gets one row in each group it belongs to, never
    one row with mixed fields.

    Args:
        report: Report to encode; it is only read
        debug: Rows are bound for the debug table (CTM_ID = 0)
        aggregation_type: AGG_TYPE_ID written on every row
        app_type: APP_TYPE_ID written on every row

    Returns:
        List of ReportRow
    """
    base = dict(
        network_id=report.network_id,
        run_id=report.run_id,
        app_type=int(app_type),
        time=report.time,
        agg_type=int(aggregation_type),
        ctm_id=0 if debug else None,
    )
    return _rows_for(base, report.mean, report.std_dev, report.fd)


def encode_ensemble_report(
        report: FreewayCTMEnsembleReport,
        *,
        aggregation_type: AggregationType = AggregationType.RAW,
        app_type: AppType = AppType.ESTIMATOR,
) -> List[ReportRow]:
    """
    Encode an ensemble report as flat rows for the debug table.

    Each member at position p yields its non-origin rows then its origin
    rows, all with CTM_ID = p and the mean quantity type. No FD is written.

    Raises:
        ReportEncodeError: A member has no data. It would write no rows, so
            it could not be read back and would leave a gap in the member
            indices of the members after it.
    """
    ensemble = report.ensemble_state
    if ensemble is None:
        return []

    rows: List[ReportRow] = []
    for index, state in enumerate(ensemble.states):
        base = dict(
            network_id=report.network_id,
            run_id=report.run_id,
            app_type=int(app_type),
            time=ensemble.time,
            agg_type=int(aggregation_type),
            ctm_id=index,
        )
        member_rows = _rows_for(base, state)
        if not member_rows:
            raise ReportEncodeError(
                f"Ensemble member {index} at ts={ensemble.time} has no data"
            )
        rows.extend(member_rows)
    return rows
