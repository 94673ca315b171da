# app/utils/costing.py

"""
원가(COGS) 계산 및 배분 유틸리티입니다.

- 원가 구성요소: 사과 원가(손실률 반영), 인건비, 간접비(L당), 포장비(단위당)
- 착즙 배치 구성비 산출: 무게 기준 또는 당도(Brix) 기준
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class CogsItemType(str, Enum):
    APPLE_COST = "apple_cost"
    LABOR = "labor"
    OVERHEAD = "overhead"
    PACKAGING = "packaging"


class AllocationMode(str, Enum):
    WEIGHT = "weight"
    SUGAR = "sugar"


def _money(value: float) -> float:
    return round(value, 2)


def validate_cost_inputs(juice_volume_l: float, apple_weight_kg: float, wastage_rate: float) -> None:
    if juice_volume_l <= 0:
        raise ValueError("Juice volume must be positive")
    if apple_weight_kg <= 0:
        raise ValueError("Apple weight must be positive")
    if wastage_rate < 0 or wastage_rate > 100:
        raise ValueError("Wastage rate must be between 0 and 100 percent")


def cogs_components(
    *,
    apple_weight_kg: float,
    juice_volume_l: float,
    labor_hours: float,
    packaging_units: int,
    apple_cost_per_kg: float,
    labor_rate_per_hour: float,
    overhead_rate_per_l: float,
    packaging_cost_per_unit: float,
    wastage_rate: float = 0.0,
) -> List[Dict[str, Any]]:
    """원가 구성요소 4종을 계산합니다. 각 금액은 소수 2자리로 반올림합니다."""
    adjusted_weight = apple_weight_kg * (1 + wastage_rate / 100)
    return [
        {
            "item_type": CogsItemType.APPLE_COST,
            "amount": _money(adjusted_weight * apple_cost_per_kg),
            "description": f"Apple cost for {apple_weight_kg:g}kg (adjusted for {wastage_rate:g}% wastage)",
            "unit_cost": apple_cost_per_kg,
            "quantity": adjusted_weight,
        },
        {
            "item_type": CogsItemType.LABOR,
            "amount": _money(labor_hours * labor_rate_per_hour),
            "description": f"Labor cost for {labor_hours:g} hours",
            "unit_cost": labor_rate_per_hour,
            "quantity": labor_hours,
        },
        {
            "item_type": CogsItemType.OVERHEAD,
            "amount": _money(juice_volume_l * overhead_rate_per_l),
            "description": f"Overhead allocation for {juice_volume_l:g}L production",
            "unit_cost": overhead_rate_per_l,
            "quantity": juice_volume_l,
        },
        {
            "item_type": CogsItemType.PACKAGING,
            "amount": _money(packaging_units * packaging_cost_per_unit),
            "description": f"Packaging cost for {packaging_units} units",
            "unit_cost": packaging_cost_per_unit,
            "quantity": packaging_units,
        },
    ]


def total_cogs(components: Sequence[Dict[str, Any]]) -> float:
    return _money(sum(component["amount"] for component in components))


def cost_per_liter(total: float, final_volume_l: float) -> float:
    if total < 0:
        raise ValueError("Total COGS must be non-negative")
    if final_volume_l <= 0:
        raise ValueError("Final volume must be positive")
    return round(total / final_volume_l, 4)


def cost_per_unit(total: float, unit_count: int) -> float:
    if total < 0:
        raise ValueError("Total COGS must be non-negative")
    if unit_count <= 0:
        raise ValueError("Unit count must be positive")
    return _money(total / unit_count)


def gross_margin(selling_price: float, cost: float) -> float:
    """매출 총이익률(%). 원가가 판매가보다 크면 음수가 됩니다."""
    if selling_price <= 0:
        raise ValueError("Selling price must be positive")
    if cost < 0:
        raise ValueError("COGS cost must be non-negative")
    return _money((selling_price - cost) / selling_price * 100)


def allocate_shared_cost(shared_cost: float, volumes: Dict[int, float]) -> Dict[int, float]:
    """공통 비용을 부피 비율로 배분합니다. (키: 배치 ID)"""
    if shared_cost < 0:
        raise ValueError("Shared cost must be non-negative")
    if not volumes:
        raise ValueError("At least one batch is required for cost allocation")
    if any(volume <= 0 for volume in volumes.values()):
        raise ValueError("Batch volume must be positive")
    total_volume = sum(volumes.values())
    return {key: _money(shared_cost * volume / total_volume) for key, volume in volumes.items()}


def allocation_fractions(
    weights_kg: Sequence[float],
    brix_values: Optional[Sequence[Optional[float]]] = None,
    mode: AllocationMode = AllocationMode.WEIGHT,
) -> List[float]:
    """
    착즙 투입분(load)별 배치 구성비를 계산합니다.

    - weight: 투입 무게 비율
    - sugar: 당 함량(kg × Brix / 100) 비율. Brix가 없는 투입분이 있으면 계산할 수 없습니다.
    마지막 항목이 나머지를 가져가므로 합계는 정확히 1이 됩니다.
    """
    if not weights_kg:
        raise ValueError("At least one load is required")

    if AllocationMode(mode) == AllocationMode.SUGAR:
        if brix_values is None or any(brix is None or brix <= 0 for brix in brix_values):
            raise ValueError("Sugar allocation requires a positive brix for every load")
        basis = [kg * brix / 100 for kg, brix in zip(weights_kg, brix_values)]
    else:
        basis = list(weights_kg)

    total = sum(basis)
    if total <= 0:
        raise ValueError("Allocation basis must be positive")

    fractions = [round(value / total, 6) for value in basis[:-1]]
    fractions.append(round(1.0 - sum(fractions), 6))
    return fractions


def split_amount(amount: float, fractions: Sequence[float], decimals: int) -> List[float]:
    """
    금액/부피를 구성비대로 나눕니다. 반올림 오차는 마지막 항목에 흡수시켜 합계를 보존합니다.
    """
    parts = [round(amount * fraction, decimals) for fraction in fractions[:-1]]
    parts.append(round(amount - sum(parts), decimals))
    return parts
