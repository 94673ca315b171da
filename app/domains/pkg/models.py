# app/domains/pkg/models.py

"""
'pkg' 도메인 (PostgreSQL 'pkg' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- packaging_runs: 탱크에서 병/캔/케그로 포장한 작업 기록 (손실량, QA 포함)
- package_sizes: 포장 용량 카탈로그
- kegs: 케그 자산
- keg_fills: 케그 충전 ~ 출고 ~ 회수 기록
"""

from typing import Optional
from enum import Enum
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class PackageType(str, Enum):
    BOTTLE = "bottle"
    CAN = "can"
    KEG = "keg"


class PackagingStatus(str, Enum):
    COMPLETED = "completed"
    VOIDED = "voided"


class FillCheck(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NOT_TESTED = "not_tested"


class KegType(str, Enum):
    CORNELIUS_5L = "cornelius_5L"
    CORNELIUS_9L = "cornelius_9L"
    SANKE_20L = "sanke_20L"
    SANKE_30L = "sanke_30L"
    SANKE_50L = "sanke_50L"
    OTHER = "other"


class KegStatus(str, Enum):
    AVAILABLE = "available"
    FILLED = "filled"
    DISTRIBUTED = "distributed"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class KegCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_REPAIR = "needs_repair"
    RETIRED = "retired"


class KegFillStatus(str, Enum):
    FILLED = "filled"
    DISTRIBUTED = "distributed"
    RETURNED = "returned"
    VOIDED = "voided"


# 삭제를 막는 충전 상태
ACTIVE_FILL_STATUSES = (KegFillStatus.FILLED, KegFillStatus.DISTRIBUTED)


# =============================================================================
# 1. pkg.packaging_runs 테이블 모델
# =============================================================================
class PackagingRunBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="패키징 런 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    vessel_id: Optional[int] = Field(default=None, foreign_key="cel.vessels.id", index=True, description="탱크 ID (FK)")
    packaged_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="포장 일시"
    )
    package_type: PackageType = Field(description="포장 유형")
    package_size_ml: int = Field(description="포장 용량 (mL)")
    units_produced: int = Field(description="생산 수량")
    volume_taken_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="탱크에서 뽑은 양 (L)"
    )
    loss_l: float = Field(
        default=0.0, sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="손실량 (L)"
    )
    loss_percentage: float = Field(
        default=0.0, sa_column=Column(Numeric(5, 2, asdecimal=False), nullable=False), description="손실률 (%)"
    )
    run_sequence: int = Field(default=1, description="배치별 패키징 순번")
    lot_code: Optional[str] = Field(default=None, max_length=100, index=True, description="로트 코드")

    abv_at_packaging: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="포장 시 알코올 도수 (%)"
    )
    carbonation_level: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="포장 시 CO2 볼륨"
    )
    fill_check: FillCheck = Field(default=FillCheck.NOT_TESTED, description="충전량 검사 결과")
    fill_variance_ml: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(8, 2, asdecimal=False)), description="충전 편차 (mL)"
    )
    test_method: Optional[str] = Field(default=None, max_length=100, description="검사 방법")
    test_date: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="검사 일시"
    )
    qa_notes: Optional[str] = Field(default=None, description="QA 비고")
    notes: Optional[str] = Field(default=None, description="비고")

    status: PackagingStatus = Field(default=PackagingStatus.COMPLETED, description="상태")
    inventory_item_id: Optional[int] = Field(default=None, description="생성된 재고 품목 ID")
    performed_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")

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


class PackagingRun(PackagingRunBase, table=True):
    """
    PostgreSQL의 pkg.packaging_runs 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "packaging_runs"
    __table_args__ = {'schema': 'pkg'}


# =============================================================================
# 2. pkg.package_sizes 테이블 모델
# =============================================================================
class PackageSizeBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="포장 용량 고유 ID")
    size_ml: int = Field(unique=True, description="용량 (mL)")
    size_oz: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(6, 2, asdecimal=False)), description="용량 (fl oz)"
    )
    display_name: str = Field(max_length=100, description="표시명 (예: 500mL Bottle)")
    package_type: PackageType = Field(description="포장 유형")
    sort_order: int = Field(default=0, description="표시 순서")
    is_active: bool = Field(default=True, description="사용 여부")


class PackageSize(PackageSizeBase, table=True):
    __tablename__ = "package_sizes"
    __table_args__ = {'schema': 'pkg'}


# =============================================================================
# 3. pkg.kegs 테이블 모델
# =============================================================================
class KegBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="케그 고유 ID")
    keg_number: str = Field(max_length=50, unique=True, index=True, description="케그 번호")
    keg_type: KegType = Field(default=KegType.SANKE_20L, description="케그 유형")
    capacity_l: float = Field(
        sa_column=Column(Numeric(8, 2, asdecimal=False), nullable=False), description="용량 (L)"
    )
    status: KegStatus = Field(default=KegStatus.AVAILABLE, index=True, description="케그 상태")
    condition: KegCondition = Field(default=KegCondition.GOOD, description="케그 컨디션")
    location: Optional[str] = Field(default=None, max_length=200, description="현재 위치")
    purchase_date: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="구매 일자"
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


class Keg(KegBase, table=True):
    __tablename__ = "kegs"
    __table_args__ = {'schema': 'pkg'}


# =============================================================================
# 4. pkg.keg_fills 테이블 모델
# =============================================================================
class KegFillBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="케그 충전 고유 ID")
    keg_id: int = Field(foreign_key="pkg.kegs.id", index=True, description="케그 ID (FK)")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    filled_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="충전 일시"
    )
    volume_l: float = Field(
        sa_column=Column(Numeric(8, 2, asdecimal=False), nullable=False), description="충전량 (L)"
    )
    status: KegFillStatus = Field(default=KegFillStatus.FILLED, index=True, description="충전 상태")
    distributed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="출고 일시"
    )
    distributed_to: Optional[str] = Field(default=None, max_length=200, description="출고처")
    returned_at: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="회수 일시"
    )
    notes: Optional[str] = Field(default=None, description="비고")
    filled_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")

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


class KegFill(KegFillBase, table=True):
    __tablename__ = "keg_fills"
    __table_args__ = {'schema': 'pkg'}
