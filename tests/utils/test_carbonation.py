# tests/utils/test_carbonation.py

"""
탄산화 계산 유틸리티 (app.utils.carbonation) 단위 테스트입니다.
"""

import pytest

from app.utils import carbonation


def test_temperature_factor_interpolation():
    assert carbonation.temperature_factor(4) == pytest.approx(0.09474)
    assert carbonation.temperature_factor(3) == pytest.approx(0.10021)
    # 표 범위를 벗어나면 끝값을 사용합니다.
    assert carbonation.temperature_factor(-5) == pytest.approx(0.11417)
    assert carbonation.temperature_factor(30) == pytest.approx(0.04959)


def test_pressure_and_volumes():
    assert carbonation.required_pressure(4, 2.5) == pytest.approx(11.69)
    assert carbonation.required_pressure(0, 1.0) == 0.0
    assert carbonation.co2_volumes(4, 12) == pytest.approx(2.53)


def test_estimate_duration_hours():
    assert carbonation.estimate_duration_hours(0, 2.5, 15) == pytest.approx(60.0)
    assert carbonation.estimate_duration_hours(2.5, 2.0, 15) == 0.0


@pytest.mark.parametrize("volumes, level", [
    (0.5, "still"),
    (1.0, "petillant"),
    (2.4, "petillant"),
    (2.5, "sparkling"),
])
def test_carbonation_level(volumes, level):
    assert carbonation.carbonation_level(volumes) == level


def test_validate_pressure():
    assert carbonation.validate_pressure(20, 30) is None
    assert carbonation.validate_pressure(-1, 30) == "Pressure cannot be negative"
    assert carbonation.validate_pressure(55, 30) == "Pressure 55 PSI exceeds absolute maximum of 50 PSI"
    assert carbonation.validate_pressure(35, 30) == "Pressure 35 PSI exceeds vessel maximum of 30 PSI"


def test_validate_temperature():
    assert carbonation.validate_temperature(4)["is_optimal"] is True
    result = carbonation.validate_temperature(15)
    assert result["is_valid"] is True
    assert result["is_optimal"] is False
    assert carbonation.validate_temperature(-6)["message"] == "Temperature too low (risk of freezing)"
    assert carbonation.validate_temperature(26)["is_valid"] is False


def test_priming_sugar():
    assert carbonation.priming_sugar_grams(2.5, 20, 0.8) == pytest.approx(136.0)
    assert carbonation.priming_sugar_grams(2.5, 20, 0.8, "dextrose") == pytest.approx(129.2)
    assert carbonation.priming_sugar_grams(2.0, 20, 2.5) == 0.0
    assert carbonation.co2_from_sugar(6.8, 0.8) == pytest.approx(2.5)


def test_carbonation_suggestions():
    """
    대체 온도는 0~20°C 범위 안에서만 제안됩니다.
    """
    suggestion = carbonation.carbonation_suggestions(2.0, 4)
    assert [alt["temperature_c"] for alt in suggestion["alternatives"]] == [2, 6]
    assert suggestion["recommended_method"] == "Headspace pressure is sufficient"
    assert suggestion["is_pressure_safe"] is True

    suggestion = carbonation.carbonation_suggestions(3.0, 20, vessel_max_pressure=15)
    assert [alt["temperature_c"] for alt in suggestion["alternatives"]] == [18]
    assert suggestion["recommended_method"] == "Carbonation stone recommended for high CO2"
    assert suggestion["carbonation_level"] == "sparkling"
    assert suggestion["is_pressure_safe"] is False
