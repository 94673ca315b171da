# app/utils/units.py

"""
생산 현장에서 사용하는 단위(무게, 부피, 온도) 변환 유틸리티입니다.

데이터베이스에는 항상 표준 단위(kg, L, °C)로 저장하고,
입력 단위와 원래 값은 별도 컬럼으로 보존합니다.
"""

import math
from enum import Enum
from typing import Union

Number = Union[int, float]

GAL_TO_L = 3.78541
ML_TO_L = 0.001
LB_TO_KG = 0.453592
BUSHEL_TO_KG = 18.14  # 사과 1 bushel 기준


class WeightUnit(str, Enum):
    KG = "kg"
    LB = "lb"
    BUSHEL = "bushel"


class VolumeUnit(str, Enum):
    L = "L"
    GAL = "gal"
    ML = "mL"


class TemperatureUnit(str, Enum):
    C = "C"
    F = "F"


_WEIGHT_TO_KG = {
    WeightUnit.KG: 1.0,
    WeightUnit.LB: LB_TO_KG,
    WeightUnit.BUSHEL: BUSHEL_TO_KG,
}

_VOLUME_TO_L = {
    VolumeUnit.L: 1.0,
    VolumeUnit.GAL: GAL_TO_L,
    VolumeUnit.ML: ML_TO_L,
}


def _weight_factor(unit: Union[str, WeightUnit]) -> float:
    try:
        return _WEIGHT_TO_KG[WeightUnit(unit)]
    except ValueError:
        raise ValueError(f"Unsupported weight unit: {unit}")


def _volume_factor(unit: Union[str, VolumeUnit]) -> float:
    try:
        return _VOLUME_TO_L[VolumeUnit(unit)]
    except ValueError:
        raise ValueError(f"Unsupported volume unit: {unit}")


def is_weight_unit(unit: str) -> bool:
    return unit in {u.value for u in WeightUnit}


def is_volume_unit(unit: str) -> bool:
    return unit in {u.value for u in VolumeUnit}


def to_kg(value: Number, unit: Union[str, WeightUnit]) -> float:
    """무게를 kg으로 변환합니다."""
    return value * _weight_factor(unit)


def from_kg(value: Number, unit: Union[str, WeightUnit]) -> float:
    return value / _weight_factor(unit)


def to_liters(value: Number, unit: Union[str, VolumeUnit]) -> float:
    """부피를 L로 변환합니다."""
    return value * _volume_factor(unit)


def from_liters(value: Number, unit: Union[str, VolumeUnit]) -> float:
    return value / _volume_factor(unit)


def bushels_to_kg(bushels: Number) -> float:
    return round(bushels * BUSHEL_TO_KG, 2)


def kg_to_bushels(kg: Number) -> float:
    return round(kg / BUSHEL_TO_KG, 2)


def fahrenheit_to_celsius(value: Number) -> float:
    return (value - 32) * 5 / 9


def celsius_to_fahrenheit(value: Number) -> float:
    return value * 9 / 5 + 32


def format_volume(value: Number, unit: Union[str, VolumeUnit] = VolumeUnit.L, decimals: int = 2) -> str:
    return f"{value:.{decimals}f} {VolumeUnit(unit).value}"


def format_weight(value: Number, unit: Union[str, WeightUnit] = WeightUnit.KG, decimals: int = 2) -> str:
    return f"{value:.{decimals}f} {WeightUnit(unit).value}"


def format_temperature(value: Number, unit: Union[str, TemperatureUnit] = TemperatureUnit.C, decimals: int = 1) -> str:
    """예: format_temperature(32, "F") -> "32.0°F" """
    return f"{value:.{decimals}f}°{TemperatureUnit(unit).value}"


def is_valid_volume(value: Number) -> bool:
    """유한한 양수인지 검사합니다."""
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def is_valid_weight(value: Number) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0
