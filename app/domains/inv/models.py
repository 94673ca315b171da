# app/domains/inv/models.py

"""
'inv' 도메인 (PostgreSQL 'inv' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- inventory_items: 패키징 런에서 생성된 완제품 로트 재고
- inventory_transactions: 재고 수량 변동 이력
- sales_channels: 판매 채널 (tasting room, wholesale ...)
- inventory_distributions: 판매 채널별 출고(판매) 기록
"""

from typing import Optional
from enum import Enum
from datetime import datetime, date, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP, DATE


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    SALE = "sale"
    WASTE = "waste"


# =============================================================================
# 1. inv.inventory_items 테이블 모델
# =============================================================================
class InventoryItemBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="재고 품목 고유 ID")
    packaging_run_id: Optional[int] = Field(
        default=None, foreign_key="pkg.packaging_runs.id", index=True, description="패키징 런 ID (FK)"
    )
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    lot_code: str = Field(max_length=100, unique=True, index=True, description="로트 코드")
    package_type: str = Field(max_length=20, description="포장 유형 (bottle, can, keg)")
    package_size_ml: int = Field(description="포장 용량 (mL)")
    current_quantity: int = Field(default=0, description="현재 수량")
    reserved_quantity: int = Field(default=0, description="예약 수량")
    expiration_date: Optional[date] = Field(default=None, sa_column=Column(DATE), description="유통 기한")
    location: Optional[str] = Field(default=None, max_length=100, description="보관 위치")
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


class InventoryItem(InventoryItemBase, table=True):
    """
    PostgreSQL의 inv.inventory_items 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "inventory_items"
    __table_args__ = {'schema': 'inv'}


# =============================================================================
# 2. inv.inventory_transactions 테이블 모델
# =============================================================================
class InventoryTransactionBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="트랜잭션 고유 ID")
    inventory_item_id: int = Field(foreign_key="inv.inventory_items.id", index=True, description="재고 품목 ID (FK)")
    transaction_type: TransactionType = Field(description="트랜잭션 유형")
    quantity_change: int = Field(description="수량 변동 (+ 입고 / - 출고)")
    transaction_date: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="트랜잭션 일시"
    )
    reason: Optional[str] = Field(default=None, max_length=255, description="사유")
    notes: Optional[str] = Field(default=None, description="비고")
    created_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class InventoryTransaction(InventoryTransactionBase, table=True):
    __tablename__ = "inventory_transactions"
    __table_args__ = {'schema': 'inv'}


# =============================================================================
# 3. inv.sales_channels 테이블 모델
# =============================================================================
class SalesChannelBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="판매 채널 고유 ID")
    code: str = Field(max_length=50, unique=True, index=True, description="채널 코드 (예: tasting_room)")
    name: str = Field(max_length=100, description="채널명")
    is_active: bool = Field(default=True, description="사용 여부")
    sort_order: int = Field(default=0, description="표시 순서")

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


class SalesChannel(SalesChannelBase, table=True):
    __tablename__ = "sales_channels"
    __table_args__ = {'schema': 'inv'}


# =============================================================================
# 4. inv.inventory_distributions 테이블 모델
# =============================================================================
class InventoryDistributionBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="출고 고유 ID")
    inventory_item_id: int = Field(foreign_key="inv.inventory_items.id", index=True, description="재고 품목 ID (FK)")
    sales_channel_id: Optional[int] = Field(
        default=None, foreign_key="inv.sales_channels.id", index=True, description="판매 채널 ID (FK)"
    )
    transaction_id: Optional[int] = Field(
        default=None, foreign_key="inv.inventory_transactions.id", description="재고 트랜잭션 ID (FK)"
    )
    quantity: int = Field(description="출고 수량")
    price_per_unit: float = Field(
        default=0.0, sa_column=Column(Numeric(10, 2, asdecimal=False), nullable=False), description="단가"
    )
    total_revenue: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="매출액"
    )
    distribution_location: Optional[str] = Field(default=None, max_length=200, description="출고처")
    distributed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="출고 일시"
    )
    notes: Optional[str] = Field(default=None, description="비고")
    distributed_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class InventoryDistribution(InventoryDistributionBase, table=True):
    __tablename__ = "inventory_distributions"
    __table_args__ = {'schema': 'inv'}
