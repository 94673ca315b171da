# tests/utils/test_naming.py

"""
착즙 작업/배치/로트 이름 규칙 (app.utils.naming) 단위 테스트입니다.
"""

from datetime import date, datetime, UTC

import pytest

from app.utils import naming


def test_press_run_name():
    assert naming.press_run_name(date(2025, 9, 19), 1) == "2025/09/19-01"
    assert naming.press_run_name(datetime(2025, 9, 19, 8, tzinfo=UTC), 12) == "2025/09/19-12"


@pytest.mark.parametrize("name, expected", [
    ("Gravenstein", "GRAV"),
    ("Northern Spy", "NOSP"),
    ("Fresh Juice", "FRJU"),
    ("Rhode Island Greening", "RIGR"),
    ("Fuji", "FUJI"),
    ("", "UNKN"),
    (None, "UNKN"),
])
def test_variety_code(name, expected):
    assert naming.variety_code(name) == expected


def test_select_primary_variety():
    """
    구성비 60% 이상인 품종만 대표 품종이 됩니다.
    """
    assert naming.select_primary_variety([
        {"variety_name": "Gravenstein", "fraction": 0.6},
        {"variety_name": "Kingston Black", "fraction": 0.4},
    ]) == "Gravenstein"
    assert naming.select_primary_variety([
        {"variety_name": "Gravenstein", "fraction": 0.5},
        {"variety_name": "Kingston Black", "fraction": 0.5},
    ]) is None
    assert naming.select_primary_variety([]) is None


def test_batch_name_and_number():
    assert naming.batch_name(date(2025, 9, 20), "TK01", "Gravenstein") == "2025-09-20_TK01_GRAV_A"
    assert naming.batch_name(date(2025, 9, 20), "tk 02", None, "B") == "2025-09-20_TK02_BLEND_B"
    assert naming.batch_number(date(2025, 1, 1), 7) == "B-2025-007"


def test_lot_code():
    assert naming.lot_code("B-2025-001", date(2025, 10, 1), 3) == "B-2025-001-20251001-03"
