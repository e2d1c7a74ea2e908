# tests/common_db/test_schema.py
from scenario_db.common_db import (
    DEBUG_REPORT_TABLE,
    REPORT_TABLE,
    init_report_database,
    open_db,
    report_table,
)


def _columns(session, table):
    return [row["name"] for row in session.query(f"PRAGMA table_info({table})")]


def test_report_table_names():
    assert report_table(False) == "LINK_DATA_TOTAL"
    assert report_table(True) == "LINK_DATA_TOTAL_DEBUG"
    assert report_table(True, prefix="TEST_") == "TEST_LINK_DATA_TOTAL_DEBUG"


def test_init_creates_both_tables(tmp_path):
    with open_db(tmp_path / "r.db") as session:
        init_report_database(session)

        standard = _columns(session, REPORT_TABLE)
        debug = _columns(session, DEBUG_REPORT_TABLE)

    assert "CTM_ID" not in standard
    assert debug[0] == "CTM_ID"
    assert debug[1:] == standard
    for col in ("NETWORK_ID", "APP_RUN_ID", "TS", "LINK_ID", "QTY_TYPE_ID", "QUEUE_LENGTH"):
        assert col in standard


def test_init_is_idempotent(tmp_path):
    with open_db(tmp_path / "r.db") as session:
        init_report_database(session)
        session.execute(
            f"INSERT INTO {REPORT_TABLE} (NETWORK_ID, APP_RUN_ID, APP_TYPE_ID, TS, "
            f"LINK_ID, AGG_TYPE_ID, QTY_TYPE_ID) VALUES (1, 1, 1, 0, 1, 1, 2)"
        )
        init_report_database(session)

        rows = list(session.query(f"SELECT * FROM {REPORT_TABLE}"))
        assert len(rows) == 1


def test_init_with_prefix(tmp_path):
    with open_db(tmp_path / "r.db") as session:
        init_report_database(session, prefix="X_")
        names = {
            row["name"]
            for row in session.query("SELECT name FROM sqlite_master WHERE type = 'table'")
        }

    assert names == {"X_LINK_DATA_TOTAL", "X_LINK_DATA_TOTAL_DEBUG"}
