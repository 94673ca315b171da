# app/domains/carb/models.py

"""
'carb' 도메인 (PostgreSQL 'carb' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- carbonation_operations: 배치 강제 탄산화 / 병내 2차 발효 작업 기록
"""

from typing import Optional
from enum import Enum
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class CarbonationProcess(str, Enum):
    HEADSPACE = "headspace"
    INLINE = "inline"
    STONE = "stone"
    BOTTLE_CONDITIONING = "bottle_conditioning"


class QualityCheck(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NEEDS_ADJUSTMENT = "needs_adjustment"
    IN_PROGRESS = "in_progress"


# =============================================================================
# 1. carb.carbonation_operations 테이블 모델
# =============================================================================
class CarbonationOperationBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="탄산화 작업 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    vessel_id: Optional[int] = Field(
        default=None, foreign_key="cel.vessels.id", index=True, description="탱크 ID (FK, 병내 발효는 NULL)"
    )
    process: CarbonationProcess = Field(default=CarbonationProcess.HEADSPACE, description="탄산화 방식")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="시작 일시"
    )
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="완료 일시"
    )
    duration_hours: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(6, 1, asdecimal=False)), description="소요 시간"
    )
    starting_volume_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="시작 부피 (L)"
    )
    starting_co2_volumes: float = Field(
        default=0.0, sa_column=Column(Numeric(4, 2, asdecimal=False), nullable=False), description="시작 CO2 volumes"
    )
    target_co2_volumes: float = Field(
        sa_column=Column(Numeric(4, 2, asdecimal=False), nullable=False), description="목표 CO2 volumes"
    )
    temperature_c: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 1, asdecimal=False)), description="시작 온도 (°C)"
    )
    pressure_psi: float = Field(
        sa_column=Column(Numeric(5, 1, asdecimal=False), nullable=False), description="적용 압력 (PSI)"
    )
    suggested_pressure_psi: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 1, asdecimal=False)), description="계산된 권장 압력 (PSI)"
    )
    gas_type: str = Field(default="CO2", max_length=50, description="가스 종류")
    priming_sugar_g: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 2, asdecimal=False)), description="프라이밍 설탕량 (g)"
    )
    priming_sugar_type: Optional[str] = Field(default=None, max_length=20, description="프라이밍 설탕 종류")

    final_co2_volumes: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="최종 CO2 volumes"
    )
    final_pressure_psi: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 1, asdecimal=False)), description="최종 압력 (PSI)"
    )
    final_temperature_c: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 1, asdecimal=False)), description="최종 온도 (°C)"
    )
    final_volume_l: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 3, asdecimal=False)), description="최종 부피 (L)"
    )
    quality_check: QualityCheck = Field(default=QualityCheck.IN_PROGRESS, description="품질 판정")
    quality_notes: Optional[str] = Field(default=None, description="품질 메모")
    notes: Optional[str] = Field(default=None, description="비고")

    performed_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="시작 작업자 ID (FK)")
    completed_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="완료 작업자 ID (FK)")

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


class CarbonationOperation(CarbonationOperationBase, table=True):
    """
    PostgreSQL의 carb.carbonation_operations 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "carbonation_operations"
    __table_args__ = {'schema': 'carb'}
