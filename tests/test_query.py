from datetime import date

import pytest

from bollettino_aria.query import build_query, sanitize_sql, to_dataset_date

DATASET = "4dc855a1-6298-4b71-a1ae-d80693d43dcb"


def test_sanitize_strips_everything_outside_allow_list():
    assert sanitize_sql("DROP TABLE utenti; --") == "DROP TABLE utenti "
    assert sanitize_sql("3000001' OR '1'='1") == "3000001 OR 11"
    assert sanitize_sql("21/08/2025") == "21/08/2025"
    assert sanitize_sql("a_b C/9") == "a_b C/9"
    assert sanitize_sql('é%";*()-') == ""


def test_sanitize_accepts_non_strings():
    assert sanitize_sql(3000001) == "3000001"


def test_dataset_date_is_month_first():
    assert to_dataset_date("21/08/2025") == "08/21/2025"
    assert to_dataset_date(date(2025, 1, 2)) == "01/02/2025"


def test_dataset_date_sanitizes_before_parsing():
    assert to_dataset_date("21/08/2025';") == "08/21/2025"


def test_dataset_date_unparseable_is_none():
    assert to_dataset_date("not a date") is None
    assert to_dataset_date("32/13/2025") is None


def test_build_query():
    sql = build_query(DATASET, ["3000001", "3000022"], "21/08/2025", limit=500, offset=1000)
    assert sql == (
        f'SELECT * FROM "{DATASET}" '
        "WHERE station_id IN ('3000001','3000022') "
        "AND reftime LIKE '08/21/2025%' "
        "ORDER BY station_id, variable_id, reftime "
        "LIMIT 500 OFFSET 1000"
    )


def test_build_query_neutralizes_injection_in_station_codes():
    sql = build_query(DATASET, ["1'); DROP TABLE x; --"], "21/08/2025")
    assert "IN ('1 DROP TABLE x ')" in sql
    assert ";" not in sql
    assert "--" not in sql


def test_build_query_clamps_limit_and_offset():
    sql = build_query(DATASET, ["1"], "21/08/2025", limit=-5, offset=-1)
    assert sql.endswith("LIMIT 0 OFFSET 0")


def test_build_query_rejects_bad_dataset_id():
    with pytest.raises(ValueError):
        build_query('x"; DROP', ["1"], "21/08/2025")


def test_build_query_pages_share_a_stable_order():
    first = build_query(DATASET, ["1"], "21/08/2025", limit=1000, offset=0)
    second = build_query(DATASET, ["1"], "21/08/2025", limit=1000, offset=1000)
    order = "ORDER BY station_id, variable_id, reftime LIMIT"
    assert order in first
    assert order in second
