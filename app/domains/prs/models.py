# app/domains/prs/models.py

"""
'prs' 도메인 (PostgreSQL 'prs' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- press_runs: 착즙 작업 (하루 단위 착즙 세션)
- press_run_loads: 착즙 작업에 투입된 원료 사과 투입분
"""

from typing import Optional, List
from enum import Enum
from datetime import datetime, UTC
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class PressRunStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppleCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


# =============================================================================
# 1. prs.press_runs 테이블 모델
# =============================================================================
class PressRunBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="착즙 작업 고유 ID")
    name: str = Field(max_length=50, index=True, description="착즙 작업명 (yyyy/mm/dd-##)")
    vendor_id: Optional[int] = Field(default=None, foreign_key="ven.vendors.id", description="대표 공급업체 ID (FK)")
    status: PressRunStatus = Field(default=PressRunStatus.IN_PROGRESS, description="작업 상태")
    start_time: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True)),
        description="착즙 시작 일시"
    )
    end_time: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="착즙 완료 일시"
    )
    total_apple_weight_kg: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="투입 사과 총 무게 (kg)"
    )
    total_juice_volume_l: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(12, 3, asdecimal=False)), description="착즙량 합계 (L)"
    )
    extraction_rate: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(8, 4, asdecimal=False)), description="착즙률 (L/kg)"
    )
    labor_hours: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(8, 2, asdecimal=False)), description="작업 시간"
    )
    labor_cost_per_hour: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(8, 2, asdecimal=False)), description="시간당 인건비"
    )
    total_labor_cost: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(12, 2, asdecimal=False)), description="총 인건비"
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


class PressRun(PressRunBase, table=True):
    """
    PostgreSQL의 prs.press_runs 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "press_runs"
    __table_args__ = {'schema': 'prs'}

    loads: List["PressRunLoad"] = Relationship(
        back_populates="press_run",
        sa_relationship_kwargs={"order_by": "PressRunLoad.load_sequence"},
    )


# =============================================================================
# 2. prs.press_run_loads 테이블 모델
# =============================================================================
class PressRunLoadBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="투입분 고유 ID")
    press_run_id: int = Field(foreign_key="prs.press_runs.id", index=True, description="착즙 작업 ID (FK)")
    purchase_item_id: int = Field(foreign_key="pur.purchase_items.id", index=True, description="원료 구매 품목 ID (FK)")
    fruit_variety_id: Optional[int] = Field(
        default=None, foreign_key="ven.fruit_varieties.id", description="과일 품종 ID (FK)"
    )
    load_sequence: int = Field(default=1, description="투입 순서")
    apple_weight_kg: float = Field(
        sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="투입 무게 (kg 환산)"
    )
    original_weight: float = Field(
        sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="입력 무게"
    )
    original_weight_unit: str = Field(default="kg", max_length=10, description="입력 무게 단위")
    brix: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 2, asdecimal=False)), description="당도 (°Brix)"
    )
    apple_condition: Optional[AppleCondition] = Field(default=None, description="사과 상태")
    juice_volume_l: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(12, 3, asdecimal=False)), description="투입분 착즙량 (L)"
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


class PressRunLoad(PressRunLoadBase, table=True):
    """
    PostgreSQL의 prs.press_run_loads 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "press_run_loads"
    __table_args__ = {'schema': 'prs'}

    press_run: Optional[PressRun] = Relationship(back_populates="loads")
