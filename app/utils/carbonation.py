# app/utils/carbonation.py

"""
강제 탄산화(forced carbonation) 계산 유틸리티입니다.

헨리의 법칙 근사식을 사용합니다.
    CO2 volumes = (게이지 압력 PSI + 14.7) × 온도 계수
온도 계수는 측정표의 값을 선형 보간하며, 표 범위를 벗어나면 가장 가까운 끝값을 사용합니다.
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional

ATMOSPHERIC_PRESSURE_PSI = 14.7

# 온도(°C) -> PSI당 용해 CO2 계수
TEMP_FACTORS_CELSIUS: Dict[int, float] = {
    0: 0.11417,
    2: 0.10568,
    4: 0.09474,
    6: 0.08899,
    8: 0.08458,
    10: 0.08016,
    12: 0.07470,
    15: 0.06923,
    18: 0.06417,
    20: 0.05911,
    22: 0.05506,
    25: 0.04959,
}

CO2_RANGES = {
    "still": {"min": 0.0, "max": 1.0, "label": "Still"},
    "petillant": {"min": 1.0, "max": 2.5, "label": "Pétillant (lightly sparkling)"},
    "sparkling": {"min": 2.5, "max": 4.0, "label": "Sparkling"},
}

SAFETY_LIMITS = {
    "max_pressure_psi": 50.0,
    "min_temperature_c": -5.0,
    "max_temperature_c": 25.0,
    "optimal_temperature_range_c": (0.0, 10.0),
}


class SugarType(str, Enum):
    SUCROSE = "sucrose"
    DEXTROSE = "dextrose"
    HONEY = "honey"


# 설탕 종류별 g/L per CO2 volume
SUGAR_FACTORS = {
    SugarType.SUCROSE: 4.0,
    SugarType.DEXTROSE: 3.8,
    SugarType.HONEY: 3.5,
}


def temperature_factor(temperature_c: float) -> float:
    temps = sorted(TEMP_FACTORS_CELSIUS)
    if temperature_c <= temps[0]:
        return TEMP_FACTORS_CELSIUS[temps[0]]
    if temperature_c >= temps[-1]:
        return TEMP_FACTORS_CELSIUS[temps[-1]]

    for lower, upper in zip(temps, temps[1:]):
        if lower <= temperature_c <= upper:
            lower_factor = TEMP_FACTORS_CELSIUS[lower]
            upper_factor = TEMP_FACTORS_CELSIUS[upper]
            return lower_factor + (temperature_c - lower) * (upper_factor - lower_factor) / (upper - lower)
    return TEMP_FACTORS_CELSIUS[temps[-1]]


def co2_volumes(temperature_c: float, pressure_psi: float) -> float:
    """주어진 온도/게이지 압력에서 평형 CO2 volumes (소수 2자리)"""
    return round((pressure_psi + ATMOSPHERIC_PRESSURE_PSI) * temperature_factor(temperature_c), 2)


def required_pressure(temperature_c: float, target_volumes: float) -> float:
    """목표 CO2 volumes에 필요한 게이지 압력(PSI). 음수는 0으로 보정합니다."""
    gauge = target_volumes / temperature_factor(temperature_c) - ATMOSPHERIC_PRESSURE_PSI
    return round(max(0.0, gauge), 2)


def estimate_duration_hours(current_volumes: float, target_volumes: float, pressure_psi: float) -> float:
    """
    탄산화 소요 시간(시간)을 추정합니다.
    기준: 15 PSI에서 1 volume당 24시간, 압력 효과는 제곱근으로 감소합니다.
    """
    delta = target_volumes - current_volumes
    if delta <= 0:
        return 0.0
    pressure_factor = math.sqrt(15 / max(1.0, pressure_psi))
    return round(delta * 24 * pressure_factor, 1)


def carbonation_level(volumes: float) -> str:
    if volumes < CO2_RANGES["still"]["max"]:
        return "still"
    if volumes < CO2_RANGES["petillant"]["max"]:
        return "petillant"
    return "sparkling"


def is_pressure_safe(pressure_psi: float, vessel_max_pressure: float = SAFETY_LIMITS["max_pressure_psi"]) -> bool:
    return 0 <= pressure_psi <= vessel_max_pressure


def is_temperature_safe(temperature_c: float) -> bool:
    return SAFETY_LIMITS["min_temperature_c"] <= temperature_c <= SAFETY_LIMITS["max_temperature_c"]


def validate_pressure(pressure_psi: float, vessel_max_pressure: float) -> Optional[str]:
    """압력이 안전하지 않으면 오류 메시지를, 안전하면 None을 반환합니다."""
    if pressure_psi < 0:
        return "Pressure cannot be negative"
    if pressure_psi > SAFETY_LIMITS["max_pressure_psi"]:
        return f"Pressure {pressure_psi} PSI exceeds absolute maximum of {SAFETY_LIMITS['max_pressure_psi']:g} PSI"
    if pressure_psi > vessel_max_pressure:
        return f"Pressure {pressure_psi} PSI exceeds vessel maximum of {vessel_max_pressure:g} PSI"
    return None


def validate_temperature(temperature_c: float) -> Dict[str, Any]:
    if temperature_c < SAFETY_LIMITS["min_temperature_c"]:
        return {"is_valid": False, "is_optimal": False, "message": "Temperature too low (risk of freezing)"}
    if temperature_c > SAFETY_LIMITS["max_temperature_c"]:
        return {"is_valid": False, "is_optimal": False, "message": "Temperature too high (poor CO2 absorption)"}
    low, high = SAFETY_LIMITS["optimal_temperature_range_c"]
    if low <= temperature_c <= high:
        return {"is_valid": True, "is_optimal": True, "message": None}
    return {
        "is_valid": True,
        "is_optimal": False,
        "message": "Temperature is valid but not optimal (best: 0-10°C)",
    }


def priming_sugar_grams(
    target_volumes: float,
    volume_l: float,
    residual_volumes: float = 0.0,
    sugar_type: SugarType = SugarType.SUCROSE,
) -> float:
    """병내 2차 발효용 프라이밍 설탕량(g, 소수 1자리)"""
    delta = target_volumes - residual_volumes
    if delta <= 0:
        return 0.0
    return round(delta * SUGAR_FACTORS[SugarType(sugar_type)] * volume_l, 1)


def co2_from_sugar(
    sugar_grams_per_l: float,
    residual_volumes: float = 0.0,
    sugar_type: SugarType = SugarType.SUCROSE,
) -> float:
    return round(residual_volumes + sugar_grams_per_l / SUGAR_FACTORS[SugarType(sugar_type)], 2)


def carbonation_suggestions(
    target_volumes: float,
    temperature_c: float,
    current_volumes: float = 0.0,
    vessel_max_pressure: Optional[float] = None,
) -> Dict[str, Any]:
    """
    목표 CO2와 온도에 대한 작업 제안(필요 압력, 예상 시간, 안전성, 대체 온도)을 계산합니다.
    """
    pressure = required_pressure(temperature_c, target_volumes)
    max_pressure = vessel_max_pressure if vessel_max_pressure is not None else SAFETY_LIMITS["max_pressure_psi"]

    alternatives: List[Dict[str, float]] = []
    for offset in (-2, 2):
        alt_temp = temperature_c + offset
        if 0 <= alt_temp <= 20:
            alternatives.append({
                "temperature_c": alt_temp,
                "pressure_psi": required_pressure(alt_temp, target_volumes),
            })

    if target_volumes >= CO2_RANGES["sparkling"]["min"]:
        method = "Carbonation stone recommended for high CO2"
    else:
        method = "Headspace pressure is sufficient"

    return {
        "required_pressure_psi": pressure,
        "estimated_duration_hours": estimate_duration_hours(current_volumes, target_volumes, pressure),
        "expected_co2_volumes": co2_volumes(temperature_c, pressure),
        "carbonation_level": carbonation_level(target_volumes),
        "is_pressure_safe": is_pressure_safe(pressure, max_pressure),
        "temperature_check": validate_temperature(temperature_c),
        "alternatives": alternatives,
        "recommended_method": method,
    }
