"""Report data model for freeway CTM state over time."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

__all__ = [
    "FD",
    "FreewayLinkState",
    "FreewayLinkFlowState",
    "FreewayCTMState",
    "FreewayCTMReport",
    "FreewayCTMEnsembleState",
    "FreewayCTMEnsembleReport",
    "Interval",
    "to_millis",
]


@dataclass(frozen=True)
class FD:
    """Fundamental diagram parameters for one link."""

    free_flow_speed: Optional[float] = None
    critical_speed: Optional[float] = None
    congestion_wave_speed: Optional[float] = None
    capacity: Optional[float] = None
    jam_density: Optional[float] = None
    capacity_drop: Optional[float] = None


@dataclass(frozen=True)
class FreewayLinkState:
    """Density and speed on a non-origin link."""

    density: Optional[float] = None
    speed: Optional[float] = None


@dataclass(frozen=True)
class FreewayLinkFlowState:
    """Flow into and out of a non-origin link."""

    in_flow: Optional[float] = None
    out_flow: Optional[float] = None


@dataclass
class FreewayCTMState:
    """
    Snapshot of the freeway for one moment and one statistical role.

    Each mapping is keyed by link id (as a string). A mapping that is None
    means no data of that kind was collected.
    """

    link_state_map: Optional[Dict[str, FreewayLinkState]] = None
    """Density/speed for non-origin links"""

    link_flow_state_map: Optional[Dict[str, FreewayLinkFlowState]] = None
    """In/out flow for non-origin links"""

    queue_length: Optional[Dict[str, float]] = None
    """Queue length for origin links"""


@dataclass
class FreewayCTMReport:
    """Mean and standard-deviation freeway state at one timestamp."""

    time: int
    """Epoch milliseconds"""

    network_id: int
    run_id: int
    mean: FreewayCTMState = field(default_factory=FreewayCTMState)
    std_dev: FreewayCTMState = field(default_factory=FreewayCTMState)

    fd: Optional[Dict[str, FD]] = None
    """Per-link fundamental diagrams (mean role only)"""


@dataclass
class FreewayCTMEnsembleState:
    """Ensemble members at one timestamp; a member's index is its position."""

    time: int
    states: List[FreewayCTMState] = field(default_factory=list)


@dataclass
class FreewayCTMEnsembleReport:
    """An ensemble state tagged with the network and run that produced it."""

    network_id: int
    run_id: int
    ensemble_state: FreewayCTMEnsembleState


def to_millis(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds; naive datetimes are UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return delta // timedelta(milliseconds=1)


@dataclass(frozen=True)
class Interval:
    """Closed interval [start_ms, end_ms] of epoch milliseconds."""

    start_ms: int
    end_ms: int

    def __post_init__(self):
        if self.start_ms > self.end_ms:
            raise ValueError(
                f"Interval start {self.start_ms} is after end {self.end_ms}"
            )

    @classmethod
    def from_datetimes(cls, start: datetime, end: datetime) -> "Interval":
        return cls(to_millis(start), to_millis(end))

    @classmethod
    def starting_at(cls, start: datetime, duration: timedelta) -> "Interval":
        """Interval covering ``duration`` from ``start``, both ends included."""
        return cls.from_datetimes(start, start + duration)

    def contains(self, ms: int) -> bool:
        return self.start_ms <= ms <= self.end_ms

    def __str__(self) -> str:
        return f"[{self.start_ms}, {self.end_ms}]"
