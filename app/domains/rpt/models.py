# app/domains/rpt/models.py

from typing import Optional
from datetime import datetime, UTC

from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.utils.costing import CogsItemType


class BatchCostBase(SQLModel):
    """
    배치 원가 요약 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    배치당 한 행이며, 재계산 시 덮어씁니다.
    """
    batch_id: int = Field(foreign_key="cel.batches.id", unique=True, index=True, description="배치 ID (FK)")
    apple_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="사과(원료) 원가"
    )
    labor_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="인건비"
    )
    overhead_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="간접비"
    )
    packaging_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="포장비"
    )
    total_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="총 원가"
    )
    volume_l: float = Field(
        default=0.0, sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="원가 기준 부피 (L)"
    )
    units_produced: int = Field(default=0, description="포장 수량")
    cost_per_liter: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 4, asdecimal=False)), description="L당 원가"
    )
    cost_per_unit: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 2, asdecimal=False)), description="단위당 원가"
    )
    calculated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="계산 일시"
    )


class BatchCost(BatchCostBase, table=True):
    """
    rpt.batch_costs 테이블 모델을 정의하는 클래스입니다.
    """
    __tablename__ = "batch_costs"
    __table_args__ = {"schema": "rpt", "comment": "배치 원가"}

    id: Optional[int] = Field(default=None, primary_key=True)


class CogsItemBase(SQLModel):
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    item_type: CogsItemType = Field(description="원가 구성요소 유형")
    description: Optional[str] = Field(default=None, max_length=255, description="설명")
    amount: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="금액"
    )
    unit_cost: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 4, asdecimal=False)), description="단가"
    )
    quantity: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(12, 3, asdecimal=False)), description="수량"
    )


class CogsItem(CogsItemBase, table=True):
    """
    rpt.cogs_items 테이블 모델을 정의하는 클래스입니다. (배치별 원가 구성요소)
    """
    __tablename__ = "cogs_items"
    __table_args__ = {"schema": "rpt", "comment": "원가 구성요소"}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
