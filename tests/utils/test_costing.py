# tests/utils/test_costing.py

"""
원가 계산 유틸리티 (app.utils.costing) 단위 테스트입니다.
"""

import pytest

from app.utils import costing


def test_cogs_components_with_wastage():
    """
    사과 원가에는 손실률이 반영되고, 합계는 소수 2자리로 반올림됩니다.
    """
    components = costing.cogs_components(
        apple_weight_kg=1000,
        juice_volume_l=700,
        labor_hours=4,
        packaging_units=100,
        apple_cost_per_kg=0.8,
        labor_rate_per_hour=20,
        overhead_rate_per_l=0.5,
        packaging_cost_per_unit=0.35,
        wastage_rate=5,
    )
    amounts = {c["item_type"]: c["amount"] for c in components}
    assert amounts[costing.CogsItemType.APPLE_COST] == pytest.approx(840.0)
    assert amounts[costing.CogsItemType.LABOR] == pytest.approx(80.0)
    assert amounts[costing.CogsItemType.OVERHEAD] == pytest.approx(350.0)
    assert amounts[costing.CogsItemType.PACKAGING] == pytest.approx(35.0)
    assert components[0]["quantity"] == pytest.approx(1050.0)
    assert costing.total_cogs(components) == pytest.approx(1305.0)


def test_per_liter_and_per_unit():
    assert costing.cost_per_liter(1305, 700) == pytest.approx(1.8643)
    assert costing.cost_per_unit(1305, 100) == pytest.approx(13.05)

    with pytest.raises(ValueError, match="Final volume must be positive"):
        costing.cost_per_liter(10, 0)
    with pytest.raises(ValueError, match="Unit count must be positive"):
        costing.cost_per_unit(10, 0)
    with pytest.raises(ValueError, match="Total COGS must be non-negative"):
        costing.cost_per_unit(-1, 10)


def test_validate_cost_inputs():
    costing.validate_cost_inputs(700, 1000, 5)
    with pytest.raises(ValueError, match="Juice volume must be positive"):
        costing.validate_cost_inputs(0, 1000, 0)
    with pytest.raises(ValueError, match="Wastage rate must be between 0 and 100 percent"):
        costing.validate_cost_inputs(700, 1000, 101)


def test_gross_margin():
    assert costing.gross_margin(10, 6) == pytest.approx(40.0)
    assert costing.gross_margin(10, 12) == pytest.approx(-20.0)
    with pytest.raises(ValueError):
        costing.gross_margin(0, 1)


def test_allocate_shared_cost():
    assert costing.allocate_shared_cost(100, {1: 300, 2: 100}) == {1: 75.0, 2: 25.0}
    with pytest.raises(ValueError, match="At least one batch is required"):
        costing.allocate_shared_cost(100, {})
    with pytest.raises(ValueError, match="Batch volume must be positive"):
        costing.allocate_shared_cost(100, {1: 0})


def test_allocation_fractions():
    assert costing.allocation_fractions([600, 400]) == pytest.approx([0.6, 0.4])
    assert costing.allocation_fractions(
        [600, 400], [12, 14], costing.AllocationMode.SUGAR
    ) == pytest.approx([0.5625, 0.4375])

    fractions = costing.allocation_fractions([1, 1, 1])
    assert sum(fractions) == pytest.approx(1.0, abs=1e-9)

    with pytest.raises(ValueError, match="Sugar allocation requires a positive brix"):
        costing.allocation_fractions([600, 400], [12, None], "sugar")
    with pytest.raises(ValueError, match="At least one load is required"):
        costing.allocation_fractions([])


def test_split_amount_preserves_total():
    parts = costing.split_amount(100, [0.333333, 0.333333, 0.333334], 2)
    assert parts == pytest.approx([33.33, 33.33, 33.34])
    assert sum(parts) == pytest.approx(100.0)
