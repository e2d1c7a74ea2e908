"""Partition the links of a report into the row categories written for it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Set

from .types import FD, FreewayCTMState

__all__ = ["LinkBuckets", "classify_links", "sort_link_ids"]


@dataclass(frozen=True)
class LinkBuckets:
    """
    Link ids grouped by the kind of row each one needs.

    A link id can sit in several buckets: a link with both density and
    queue length data gets a non-origin row and an origin row.
    """

    non_origin_mean: Set[str] = field(default_factory=set)
    non_origin_std_dev: Set[str] = field(default_factory=set)
    origin_mean: Set[str] = field(default_factory=set)
    origin_std_dev: Set[str] = field(default_factory=set)


def _keys(mapping: Optional[Mapping]) -> Set[str]:
    return set(mapping) if mapping else set()


def _non_origin_links(state: Optional[FreewayCTMState]) -> Set[str]:
    if state is None:
        return set()
    return _keys(state.link_state_map) | _keys(state.link_flow_state_map)


def _origin_links(state: Optional[FreewayCTMState]) -> Set[str]:
    if state is None:
        return set()
    return _keys(state.queue_length)


def classify_links(
        mean: Optional[FreewayCTMState],
        std_dev: Optional[FreewayCTMState] = None,
        fd: Optional[Mapping[str, FD]] = None,
) -> LinkBuckets:
    """
    Compute the four link buckets for one report (or one ensemble member).

    Args:
        mean: Mean-role state
        std_dev: Standard-deviation state; None for ensemble members
        fd: Report-level fundamental diagrams; None for ensemble members

    Returns:
        LinkBuckets with FD-only links folded into the non-origin mean bucket
    """
    return LinkBuckets(
        non_origin_mean=_non_origin_links(mean) | _keys(fd),
        non_origin_std_dev=_non_origin_links(std_dev),
        origin_mean=_origin_links(mean),
        origin_std_dev=_origin_links(std_dev),
    )


def sort_link_ids(link_ids: Set[str]) -> List[str]:
    """Link ids in numeric order, so emitted rows are deterministic."""
    return sorted(link_ids, key=int)
