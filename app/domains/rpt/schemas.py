# app/domains/rpt/schemas.py

from typing import Dict, List, Optional
from datetime import date, datetime

from sqlmodel import SQLModel

from app.utils.costing import CogsItemType


# =============================================================================
# 1. 원가 (BatchCost / CogsItem)
# =============================================================================
class CogsItemRead(SQLModel):
    id: int
    batch_id: int
    item_type: CogsItemType
    description: Optional[str] = None
    amount: float
    unit_cost: Optional[float] = None
    quantity: Optional[float] = None


class BatchCostRead(SQLModel):
    id: int
    batch_id: int
    apple_cost: float
    labor_cost: float
    overhead_cost: float
    packaging_cost: float
    total_cost: float
    volume_l: float
    units_produced: int
    cost_per_liter: Optional[float] = None
    cost_per_unit: Optional[float] = None
    calculated_at: datetime


class BatchCostDetail(BatchCostRead):
    batch_name: Optional[str] = None
    batch_number: Optional[str] = None
    items: List[CogsItemRead] = []


class CogsSummary(SQLModel):
    batch_count: int
    total_cost: float
    by_component: Dict[str, float]
    total_volume_l: float
    total_units: int
    avg_cost_per_liter: Optional[float] = None
    avg_cost_per_unit: Optional[float] = None
    batches: List[BatchCostDetail] = []


# =============================================================================
# 2. 판매 보고서
# =============================================================================
class PeriodChanges(SQLModel):
    revenue: float
    units: float
    volume: float


class PreviousPeriod(SQLModel):
    start_date: date
    end_date: date
    revenue: float
    units: int
    volume_l: float


class SalesSummary(SQLModel):
    start_date: date
    end_date: date
    total_revenue: float
    total_units: int
    total_volume_l: float
    avg_order_value: float
    transaction_count: int
    keg_count: int
    changes: PeriodChanges
    previous_period: PreviousPeriod


class ChannelSales(SQLModel):
    channel_id: Optional[int] = None
    channel_code: str
    channel_name: str
    revenue: float
    units: int
    volume_l: float
    percent_of_total: float


class SalesByChannel(SQLModel):
    channels: List[ChannelSales]
    total_revenue: float
    total_units: int
    total_volume_l: float


class TopProduct(SQLModel):
    inventory_item_id: int
    product_name: str
    lot_code: str
    package_type: str
    package_size_ml: int
    batch_name: Optional[str] = None
    revenue: float
    units: int
    avg_price: float


class SalesTrendPoint(SQLModel):
    period: date
    revenue: float
    units: int


# =============================================================================
# 3. 생산 보고서 / 대시보드
# =============================================================================
class ProductionSummary(SQLModel):
    start_date: date
    end_date: date
    press_runs: int
    apples_pressed_kg: float
    juice_produced_l: float
    avg_extraction_rate: Optional[float] = None
    batches_started: int
    batches_by_status: Dict[str, int]
    packaging_runs: int
    units_packaged: int
    volume_packaged_l: float
    packaging_loss_l: float
    avg_loss_percentage: Optional[float] = None
    kegs_filled: int
    keg_volume_l: float


class DashboardStats(SQLModel):
    active_batches: int
    total_batches: int
    packaged_batches: int
    units_in_stock: int
    low_stock_items: int
    active_vendors: int
    vessels_by_status: Dict[str, int]
    active_carbonations: int
    kegs_by_status: Dict[str, int]
