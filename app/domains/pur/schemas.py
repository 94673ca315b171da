# app/domains/pur/schemas.py

"""
'pur' 도메인 (구매 관리)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime, date
from sqlmodel import SQLModel, Field

from .models import PurchaseItemType


# =============================================================================
# 1. 구매 품목 (PurchaseItem) 스키마
# =============================================================================
class PurchaseItemCreate(SQLModel):
    item_type: PurchaseItemType
    fruit_variety_id: Optional[int] = None
    item_name: Optional[str] = Field(None, max_length=200)
    quantity: float
    unit: str = Field(..., max_length=20)
    price_per_unit: Optional[float] = Field(None, ge=0, description="단가 (무상 입고는 생략)")
    harvest_date: Optional[date] = None
    notes: Optional[str] = None


class PurchaseItemRead(SQLModel):
    id: int
    purchase_id: int
    item_type: PurchaseItemType
    fruit_variety_id: Optional[int] = None
    item_name: Optional[str] = None
    quantity: float
    unit: str
    price_per_unit: float
    total_cost: float
    quantity_kg: Optional[float] = None
    quantity_l: Optional[float] = None
    volume_allocated_l: float = 0.0
    harvest_date: Optional[date] = None
    is_depleted: bool
    depleted_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 2. 구매 (Purchase) 스키마
# =============================================================================
class PurchaseCreate(SQLModel):
    vendor_id: int
    purchase_date: date = Field(default_factory=date.today)
    invoice_number: Optional[str] = Field(None, max_length=50, description="생략하면 자동 생성")
    notes: Optional[str] = None
    items: List[PurchaseItemCreate] = Field(..., min_length=1)


class PurchaseUpdate(SQLModel):
    """구매 헤더 수정 (품목은 수정하지 않습니다)"""
    purchase_date: Optional[date] = None
    invoice_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class PurchaseRead(SQLModel):
    id: int
    vendor_id: int
    purchase_date: date
    invoice_number: Optional[str] = None
    auto_generated_invoice: bool
    total_cost: float
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PurchaseWithItemsRead(PurchaseRead):
    items: List[PurchaseItemRead] = []


class AvailableFruitRead(PurchaseItemRead):
    """착즙에 사용할 수 있는 원료 사과 (구매 정보 포함)"""
    vendor_id: int
    purchase_date: date
