# app/domains/pur/models.py

"""
'pur' 도메인 (PostgreSQL 'pur' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- purchases: 공급업체별 구매(입고) 헤더
- purchase_items: 구매 품목 (원료 사과, 주스, 첨가물, 포장재)
"""

from typing import Optional, List
from enum import Enum
from datetime import datetime, date, UTC
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class PurchaseItemType(str, Enum):
    BASEFRUIT = "basefruit"
    JUICE = "juice"
    ADDITIVE = "additive"
    PACKAGING = "packaging"


# =============================================================================
# 1. pur.purchases 테이블 모델
# =============================================================================
class PurchaseBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="구매 고유 ID")
    vendor_id: int = Field(foreign_key="ven.vendors.id", index=True, description="공급업체 ID (FK)")
    purchase_date: date = Field(default_factory=date.today, description="구매일")
    invoice_number: Optional[str] = Field(default=None, max_length=50, index=True, description="송장 번호")
    auto_generated_invoice: bool = Field(default=False, description="송장 번호 자동 생성 여부")
    total_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="총 구매 금액"
    )
    notes: Optional[str] = Field(default=None, description="비고")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )
    deleted_at: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="소프트 삭제 일시"
    )


class Purchase(PurchaseBase, table=True):
    """
    PostgreSQL의 pur.purchases 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "purchases"
    __table_args__ = {'schema': 'pur'}

    items: List["PurchaseItem"] = Relationship(back_populates="purchase")


# =============================================================================
# 2. pur.purchase_items 테이블 모델
# =============================================================================
class PurchaseItemBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="구매 품목 고유 ID")
    purchase_id: int = Field(foreign_key="pur.purchases.id", index=True, description="구매 ID (FK)")
    item_type: PurchaseItemType = Field(description="품목 유형")
    fruit_variety_id: Optional[int] = Field(
        default=None, foreign_key="ven.fruit_varieties.id", description="과일 품종 ID (원료 사과/주스)"
    )
    item_name: Optional[str] = Field(default=None, max_length=200, description="품목명 (첨가물/포장재)")
    quantity: float = Field(sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="입력 수량")
    unit: str = Field(max_length=20, description="입력 단위 (kg, lb, bushel, L, gal, mL, each ...)")
    price_per_unit: float = Field(
        sa_column=Column(Numeric(12, 4, asdecimal=False), nullable=False), description="단가"
    )
    total_cost: float = Field(
        sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="품목 금액 (수량 × 단가)"
    )
    quantity_kg: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(12, 3, asdecimal=False)), description="무게 환산값 (kg)"
    )
    quantity_l: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(12, 3, asdecimal=False)), description="부피 환산값 (L)"
    )
    volume_allocated_l: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False),
        description="탱크로 이송된 주스 부피 (L)"
    )
    harvest_date: Optional[date] = Field(default=None, description="수확일")
    is_depleted: bool = Field(default=False, description="소진 여부")
    depleted_at: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="소진 처리 일시"
    )
    notes: Optional[str] = Field(default=None, description="비고")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class PurchaseItem(PurchaseItemBase, table=True):
    """
    PostgreSQL의 pur.purchase_items 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "purchase_items"
    __table_args__ = {'schema': 'pur'}

    purchase: Optional[Purchase] = Relationship(back_populates="items")
