# tests/ctm_report/test_decoding.py
from __future__ import annotations

import pytest

from scenario_db.ctm_report.decoding import decode_ensemble_reports, decode_reports
from scenario_db.ctm_report.errors import (
    EnsembleFDError,
    EnsembleIndexError,
    QuantityTypeError,
    ReportDecodeError,
    SchemaModeError,
)
from scenario_db.ctm_report.types import (
    FD,
    FreewayCTMState,
    FreewayLinkFlowState,
    FreewayLinkState,
)

MEAN, STD_DEV = 2, 4

_DATA_COLUMNS = (
    "FREE_FLOW_SPEED", "CRITICAL_SPEED", "CONGESTION_WAVE_SPEED", "CAPACITY",
    "JAM_DENSITY", "CAPACITY_DROP", "IN_FLOW", "OUT_FLOW", "DENSITY", "SPEED",
    "QUEUE_LENGTH",
)


def _row(ts=1000, link=1, qty=MEAN, ctm_id=None, network=10, run=20, **data):
    """A flat row the way a result set presents it; data keys are lower-case column names."""
    row = {
        "NETWORK_ID": network,
        "APP_RUN_ID": run,
        "APP_TYPE_ID": 1,
        "TS": ts,
        "LINK_ID": link,
        "AGG_TYPE_ID": 1,
        "QTY_TYPE_ID": qty,
    }
    for col in _DATA_COLUMNS:
        row[col] = data.pop(col.lower(), None)
    assert not data, f"unknown columns {data}"
    if ctm_id is not None:
        row = {"CTM_ID": ctm_id, **row}
    return row


class _FakeCursor:
    """Row source that reports its columns, the way RowCursor does."""

    def __init__(self, column_names, rows):
        self.column_names = column_names
        self._rows = rows

    def __iter__(self):
        return iter(self._rows)


# =============================================================================
# Single-estimate decode
# =============================================================================

class TestDecodeReports:
    """Test single-estimate decoding"""

    def test_no_rows(self):
        """No rows decode to no reports"""
        assert decode_reports([]) == []
        assert decode_reports(iter([])) == []

    def test_groups_by_timestamp(self):
        """One report per run of rows with the same TS"""
        rows = [
            _row(ts=1000, link=1, density=1.0),
            _row(ts=1000, link=2, density=2.0),
            _row(ts=2000, link=1, density=3.0),
            _row(ts=3000, link=1, density=4.0),
            _row(ts=3000, link=3, density=5.0),
        ]
        reports = decode_reports(rows)

        assert [r.time for r in reports] == [1000, 2000, 3000]
        assert set(reports[0].mean.link_state_map) == {"1", "2"}
        assert reports[1].mean.link_state_map == {"1": FreewayLinkState(density=3.0)}
        assert set(reports[2].mean.link_state_map) == {"1", "3"}

    def test_network_and_run_copied_from_first_row(self):
        """Network and run ids come from the group's first row"""
        reports = decode_reports([_row(network=5, run=6, density=1.0)])
        assert reports[0].network_id == 5
        assert reports[0].run_id == 6

    def test_fd_partial_rows_merge(self):
        """Partial FD rows for a link merge into one FD"""
        rows = [
            _row(link=7, free_flow_speed=60.0),
            _row(link=7, capacity=2000.0),
        ]
        (report,) = decode_reports(rows)

        assert report.fd == {"7": FD(free_flow_speed=60.0, capacity=2000.0)}

    def test_no_fd_means_no_fd_map(self):
        """A report without FD values has no FD map"""
        (report,) = decode_reports([_row(density=1.0)])
        assert report.fd is None

    def test_mean_and_std_dev_roles(self):
        """Quantity type routes rows to mean or std dev"""
        rows = [
            _row(link=1, qty=MEAN, density=10.0, speed=50.0, in_flow=1.0, out_flow=2.0),
            _row(link=1, qty=STD_DEV, density=0.5, speed=1.5),
            _row(link=9, qty=STD_DEV, queue_length=0.25),
        ]
        (report,) = decode_reports(rows)

        assert report.mean.link_state_map == {"1": FreewayLinkState(10.0, 50.0)}
        assert report.mean.link_flow_state_map == {"1": FreewayLinkFlowState(1.0, 2.0)}
        assert report.mean.queue_length is None
        assert report.std_dev.link_state_map == {"1": FreewayLinkState(0.5, 1.5)}
        assert report.std_dev.link_flow_state_map is None
        assert report.std_dev.queue_length == {"9": 0.25}

    def test_link_state_and_flow_merge_across_rows(self):
        """Density, speed and flows for a link merge across rows"""
        rows = [
            _row(link=1, density=10.0),
            _row(link=1, speed=50.0),
            _row(link=1, in_flow=1.0),
            _row(link=1, out_flow=2.0),
        ]
        (report,) = decode_reports(rows)

        assert report.mean.link_state_map == {"1": FreewayLinkState(10.0, 50.0)}
        assert report.mean.link_flow_state_map == {"1": FreewayLinkFlowState(1.0, 2.0)}

    def test_flow_only_link_is_not_an_error(self):
        """A link with only flow data decodes"""
        (report,) = decode_reports([_row(link=4, in_flow=3.0)])

        assert report.mean.link_flow_state_map == {"4": FreewayLinkFlowState(in_flow=3.0)}
        assert report.mean.link_state_map is None

    def test_unknown_quantity_type_ignored_but_fd_kept(self):
        """Unknown quantity codes add no state but keep FD"""
        rows = [_row(link=3, qty=99, density=1.0, jam_density=200.0)]
        (report,) = decode_reports(rows)

        assert report.mean == FreewayCTMState()
        assert report.std_dev == FreewayCTMState()
        assert report.fd == {"3": FD(jam_density=200.0)}

    def test_debug_rows_skip_members_above_zero(self):
        """Debug rows of members above 0 are skipped"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=1, link=1, density=99.0),
            _row(ctm_id=2, link=2, density=98.0),
        ]
        (report,) = decode_reports(rows)

        assert report.mean.link_state_map == {"1": FreewayLinkState(density=1.0)}

    def test_missing_optional_column_reads_as_null(self):
        """A missing data column reads as null"""
        row = _row(link=1, density=1.0)
        del row["QUEUE_LENGTH"]
        (report,) = decode_reports([row])

        assert report.mean.queue_length is None
        assert report.mean.link_state_map == {"1": FreewayLinkState(density=1.0)}

    def test_lower_case_column_names(self):
        """Column lookup ignores case"""
        row = {k.lower(): v for k, v in _row(link=2, speed=12.0).items()}
        (report,) = decode_reports([row])

        assert report.mean.link_state_map == {"2": FreewayLinkState(speed=12.0)}

    def test_missing_identifying_column(self):
        """A missing identifying column is a schema error"""
        row = _row()
        del row["LINK_ID"]
        with pytest.raises(SchemaModeError, match="LINK_ID"):
            decode_reports([row])

    def test_null_identifying_value(self):
        """A null identifying value is a decode error"""
        with pytest.raises(ReportDecodeError, match="TS is null"):
            decode_reports([_row(ts=None)])

    def test_cursor_column_names_decide_mode(self):
        """A cursor's column names decide the schema mode"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=1, link=1, density=99.0),
        ]
        cursor = _FakeCursor([c for c in rows[0] if c != "CTM_ID"], rows)
        (report,) = decode_reports(cursor)

        # Without CTM_ID among the cursor columns both rows count as member 0
        assert report.mean.link_state_map == {"1": FreewayLinkState(density=99.0)}

    def test_consumes_iterator_once(self):
        """Rows are read in a single pass"""
        rows = iter([_row(ts=1, density=1.0), _row(ts=2, density=2.0)])
        reports = decode_reports(rows)

        assert len(reports) == 2
        assert next(rows, None) is None


# =============================================================================
# Ensemble decode
# =============================================================================

class TestDecodeEnsembleReports:
    """Test ensemble decoding"""

    def test_no_rows(self):
        """No rows decode to no reports"""
        assert decode_ensemble_reports([]) == []

    def test_contiguous_members(self):
        """Indices 0, 1, 2 become three members"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=1, link=1, density=2.0),
            _row(ctm_id=2, link=1, density=3.0),
        ]
        (report,) = decode_ensemble_reports(rows)

        states = report.ensemble_state.states
        assert report.ensemble_state.time == 1000
        assert report.network_id == 10
        assert report.run_id == 20
        assert [s.link_state_map["1"].density for s in states] == [1.0, 2.0, 3.0]

    def test_negative_index_is_error(self):
        """A negative first index is rejected"""
        with pytest.raises(EnsembleIndexError, match="got -1"):
            decode_ensemble_reports([_row(ctm_id=-1, density=1.0)])

    def test_negative_index_after_members_is_error(self):
        """A negative index after valid members is rejected"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=-1, link=1, density=2.0),
        ]
        with pytest.raises(EnsembleIndexError):
            decode_ensemble_reports(rows)

    def test_gap_is_error(self):
        """A skipped index is rejected"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=2, link=1, density=3.0),
        ]
        with pytest.raises(EnsembleIndexError, match="got 2 after 0"):
            decode_ensemble_reports(rows)

    def test_first_member_must_be_zero(self):
        """Members start at index 0"""
        with pytest.raises(EnsembleIndexError):
            decode_ensemble_reports([_row(ctm_id=1, density=1.0)])

    def test_decreasing_index_is_error(self):
        """A decreasing index is rejected"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=1, link=1, density=2.0),
            _row(ctm_id=0, link=2, density=3.0),
        ]
        with pytest.raises(EnsembleIndexError):
            decode_ensemble_reports(rows)

    def test_repeated_index_merges_into_same_member(self):
        """Consecutive rows with one index build one member"""
        rows = [
            _row(ctm_id=0, link=1, density=1.0),
            _row(ctm_id=0, link=2, queue_length=5.0),
            _row(ctm_id=1, link=1, density=2.0),
        ]
        (report,) = decode_ensemble_reports(rows)

        first, second = report.ensemble_state.states
        assert first.link_state_map == {"1": FreewayLinkState(density=1.0)}
        assert first.queue_length == {"2": 5.0}
        assert second.link_state_map == {"1": FreewayLinkState(density=2.0)}
        assert second.queue_length is None

    def test_index_restarts_per_timestamp(self):
        """Each timestamp starts again at member 0"""
        rows = [
            _row(ts=1000, ctm_id=0, density=1.0),
            _row(ts=1000, ctm_id=1, density=2.0),
            _row(ts=2000, ctm_id=0, density=3.0),
        ]
        reports = decode_ensemble_reports(rows)

        assert [r.ensemble_state.time for r in reports] == [1000, 2000]
        assert [len(r.ensemble_state.states) for r in reports] == [2, 1]

    def test_fd_is_error(self):
        """Ensemble rows must not carry FD"""
        rows = [_row(ctm_id=0, link=1, density=1.0, capacity_drop=0.1)]
        with pytest.raises(EnsembleFDError, match="FD"):
            decode_ensemble_reports(rows)

    @pytest.mark.parametrize("qty", [STD_DEV, 3])
    def test_non_mean_quantity_is_error(self, qty):
        """Ensemble rows must use the mean quantity type"""
        with pytest.raises(QuantityTypeError):
            decode_ensemble_reports([_row(ctm_id=0, qty=qty, density=1.0)])

    def test_requires_ensemble_index_column(self):
        """Ensemble decode needs a CTM_ID column"""
        with pytest.raises(SchemaModeError, match="CTM_ID"):
            decode_ensemble_reports([_row(density=1.0)])

    def test_errors_share_base_class(self):
        """All decode errors derive from ReportDecodeError"""
        for exc in (EnsembleIndexError, EnsembleFDError, QuantityTypeError, SchemaModeError):
            assert issubclass(exc, ReportDecodeError)
