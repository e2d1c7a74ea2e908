# tests/ctm_report/test_schema_mode.py
from scenario_db.ctm_report.schema_mode import detect_debug_mode


def test_debug_table_columns():
    assert detect_debug_mode(["CTM_ID", "NETWORK_ID", "TS", "LINK_ID"]) is True


def test_standard_table_columns():
    assert detect_debug_mode(["NETWORK_ID", "APP_RUN_ID", "TS", "LINK_ID"]) is False


def test_case_insensitive():
    assert detect_debug_mode(["network_id", "ctm_id"]) is True
    assert detect_debug_mode(["Ctm_Id"]) is True


def test_no_columns():
    assert detect_debug_mode([]) is False


def test_similar_names_do_not_match():
    assert detect_debug_mode(["CTM_ID_OLD", "XCTM_ID"]) is False
