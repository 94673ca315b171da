# app/domains/inv/schemas.py

"""
'inv' 도메인 (완제품 재고 및 판매)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime, date
from sqlmodel import SQLModel, Field

from .models import TransactionType


# =============================================================================
# 1. 재고 품목 (InventoryItem) 스키마
# =============================================================================
class InventoryItemCreate(SQLModel):
    batch_id: int
    lot_code: str = Field(..., min_length=1, max_length=100)
    package_type: str = Field(..., max_length=20)
    package_size_ml: int = Field(..., gt=0)
    initial_quantity: int = Field(0, ge=0)
    expiration_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class InventoryItemUpdate(SQLModel):
    location: Optional[str] = Field(None, max_length=100)
    expiration_date: Optional[date] = None
    notes: Optional[str] = None


class InventoryItemRead(SQLModel):
    id: int
    packaging_run_id: Optional[int] = None
    batch_id: int
    lot_code: str
    package_type: str
    package_size_ml: int
    current_quantity: int
    reserved_quantity: int
    expiration_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 2. 재고 트랜잭션 스키마
# =============================================================================
class InventoryTransactionCreate(SQLModel):
    transaction_type: TransactionType
    quantity_change: int
    transaction_date: Optional[datetime] = None
    reason: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class InventoryTransactionRead(SQLModel):
    id: int
    inventory_item_id: int
    transaction_type: TransactionType
    quantity_change: int
    transaction_date: datetime
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None

    class Config:
        from_attributes = True


class TransactionResult(SQLModel):
    inventory_item: InventoryItemRead
    transaction: InventoryTransactionRead
    message: str


class ReservationRequest(SQLModel):
    quantity: int = Field(..., gt=0)


class StockLevelRead(SQLModel):
    inventory_item_id: int
    lot_code: str
    current_quantity: int
    reserved_quantity: int
    available_quantity: int
    minimum_level: int
    is_low_stock: bool


class TransactionSummaryRead(SQLModel):
    inventory_item_id: int
    total_purchases: int = 0
    total_sales: int = 0
    total_adjustments: int = 0
    total_waste: int = 0
    total_transfers: int = 0
    net_quantity_change: int = 0


class InventoryHistoryRead(SQLModel):
    item: InventoryItemRead
    transactions: List[InventoryTransactionRead]


# =============================================================================
# 3. 판매 채널 (SalesChannel) 스키마
# =============================================================================
class SalesChannelCreate(SQLModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True
    sort_order: int = 0


class SalesChannelUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class SalesChannelRead(SQLModel):
    id: int
    code: str
    name: str
    is_active: bool
    sort_order: int

    class Config:
        from_attributes = True


# =============================================================================
# 4. 출고 (InventoryDistribution) 스키마
# =============================================================================
class DistributionCreate(SQLModel):
    sales_channel_id: Optional[int] = None
    quantity: int = Field(..., gt=0)
    price_per_unit: float = Field(0.0, ge=0)
    distribution_location: Optional[str] = Field(None, max_length=200)
    distributed_at: Optional[datetime] = None
    notes: Optional[str] = None


class DistributionRead(SQLModel):
    id: int
    inventory_item_id: int
    sales_channel_id: Optional[int] = None
    transaction_id: Optional[int] = None
    quantity: int
    price_per_unit: float
    total_revenue: float
    distribution_location: Optional[str] = None
    distributed_at: datetime
    notes: Optional[str] = None
    distributed_by: Optional[int] = None

    class Config:
        from_attributes = True
