# tests/utils/test_units.py

"""
단위 변환 유틸리티 (app.utils.units) 단위 테스트입니다.
"""

import pytest

from app.utils import units


def test_weight_conversion():
    assert units.to_kg(100, "lb") == pytest.approx(45.3592)
    assert units.to_kg(2, units.WeightUnit.BUSHEL) == pytest.approx(36.28)
    assert units.from_kg(45.3592, "lb") == pytest.approx(100.0)
    assert units.bushels_to_kg(2) == 36.28
    assert units.kg_to_bushels(18.14) == 1.0


def test_volume_conversion():
    assert units.to_liters(10, "gal") == pytest.approx(37.8541)
    assert units.to_liters(500, "mL") == pytest.approx(0.5)
    assert units.from_liters(37.8541, units.VolumeUnit.GAL) == pytest.approx(10.0)


def test_unsupported_units():
    with pytest.raises(ValueError, match="Unsupported weight unit: stone"):
        units.to_kg(1, "stone")
    with pytest.raises(ValueError, match="Unsupported volume unit: kg"):
        units.to_liters(1, "kg")

    assert units.is_weight_unit("bushel") is True
    assert units.is_weight_unit("L") is False
    assert units.is_volume_unit("mL") is True
    assert units.is_volume_unit("kg") is False


def test_temperature_and_formatting():
    assert units.fahrenheit_to_celsius(212) == pytest.approx(100.0)
    assert units.celsius_to_fahrenheit(4) == pytest.approx(39.2)
    assert units.format_temperature(32, "F") == "32.0°F"
    assert units.format_volume(12.5) == "12.50 L"
    assert units.format_weight(3, "lb", decimals=1) == "3.0 lb"


@pytest.mark.parametrize("value, expected", [
    (1, True),
    (0.25, True),
    (0, False),
    (-3, False),
    (float("inf"), False),
    (float("nan"), False),
    ("10", False),
])
def test_is_valid_volume(value, expected):
    assert units.is_valid_volume(value) is expected
