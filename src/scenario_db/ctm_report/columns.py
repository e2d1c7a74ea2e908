"""Column names of the report tables and the flat row they hold."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

__all__ = [
    "NETWORK_ID",
    "RUN_ID",
    "APP_TYPE_ID",
    "TS",
    "LINK_ID",
    "CTM_ID",
    "AGG_TYPE_ID",
    "QTY_TYPE_ID",
    "FD_COLUMNS",
    "FLOW_COLUMNS",
    "LINK_STATE_COLUMNS",
    "QUEUE_LENGTH",
    "ROW_COLUMNS",
    "ReportRow",
]

# Identifying columns
NETWORK_ID = "NETWORK_ID"
RUN_ID = "APP_RUN_ID"
APP_TYPE_ID = "APP_TYPE_ID"
TS = "TS"
LINK_ID = "LINK_ID"
AGG_TYPE_ID = "AGG_TYPE_ID"
QTY_TYPE_ID = "QTY_TYPE_ID"

# Ensemble member index, present only in the debug table
CTM_ID = "CTM_ID"

# Optional data columns, in FD field order
FD_COLUMNS = (
    "FREE_FLOW_SPEED",
    "CRITICAL_SPEED",
    "CONGESTION_WAVE_SPEED",
    "CAPACITY",
    "JAM_DENSITY",
    "CAPACITY_DROP",
)
FLOW_COLUMNS = ("IN_FLOW", "OUT_FLOW")
LINK_STATE_COLUMNS = ("DENSITY", "SPEED")
QUEUE_LENGTH = "QUEUE_LENGTH"

# Insert order, excluding CTM_ID
ROW_COLUMNS = (
    NETWORK_ID,
    RUN_ID,
    APP_TYPE_ID,
    TS,
    LINK_ID,
    *FD_COLUMNS,
    AGG_TYPE_ID,
    QTY_TYPE_ID,
    *FLOW_COLUMNS,
    *LINK_STATE_COLUMNS,
    QUEUE_LENGTH,
)


@dataclass(frozen=True)
class ReportRow:
    """One flat row of a report table."""

    network_id: int
    run_id: int
    app_type: int
    time: int
    link_id: int
    agg_type: int
    qty_type: int
    free_flow_speed: Optional[float] = None
    critical_speed: Optional[float] = None
    congestion_wave_speed: Optional[float] = None
    capacity: Optional[float] = None
    jam_density: Optional[float] = None
    capacity_drop: Optional[float] = None
    in_flow: Optional[float] = None
    out_flow: Optional[float] = None
    density: Optional[float] = None
    speed: Optional[float] = None
    queue_length: Optional[float] = None
    ctm_id: Optional[int] = None
    """Ensemble member index; None for rows bound for the standard table"""

    def values(self) -> Tuple:
        """Values in ROW_COLUMNS order."""
        return (
            self.network_id,
            self.run_id,
            self.app_type,
            self.time,
            self.link_id,
            self.free_flow_speed,
            self.critical_speed,
            self.congestion_wave_speed,
            self.capacity,
            self.jam_density,
            self.capacity_drop,
            self.agg_type,
            self.qty_type,
            self.in_flow,
            self.out_flow,
            self.density,
            self.speed,
            self.queue_length,
        )

    def as_dict(self) -> dict:
        """Column-name keyed mapping, including CTM_ID when set."""
        d = dict(zip(ROW_COLUMNS, self.values()))
        if self.ctm_id is not None:
            d[CTM_ID] = self.ctm_id
        return d
