# app/domains/cel/models.py

"""
'cel' 도메인 (PostgreSQL 'cel' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

셀러(양조장) 작업의 중심 데이터를 다룹니다.
- vessels: 발효/숙성 탱크
- batches: 탱크 안의 사이더 배치
- batch_compositions, batch_measurements, batch_additives: 배치 구성/측정/첨가 기록
- batch_transfers, batch_racking_operations, batch_filter_operations, batch_merge_history: 이동/가공 이력
"""

from typing import Optional, Dict, Any
from enum import Enum
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON, Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class VesselType(str, Enum):
    FERMENTER = "fermenter"
    CONDITIONING_TANK = "conditioning_tank"
    BRIGHT_TANK = "bright_tank"
    STORAGE = "storage"


class VesselMaterial(str, Enum):
    STAINLESS_STEEL = "stainless_steel"
    PLASTIC = "plastic"


class VesselStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    EMPTY = "empty"
    FERMENTING = "fermenting"
    STORING = "storing"
    AGING = "aging"


class BatchStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    AGING = "aging"
    PACKAGED = "packaged"
    COMPLETED = "completed"
    BLENDED = "blended"
    DISCARDED = "discarded"


# 탱크 안에 "현재 들어 있는" 배치로 보는 상태
CURRENT_BATCH_STATUSES = (BatchStatus.ACTIVE, BatchStatus.AGING)


class FilterType(str, Enum):
    COARSE = "coarse"
    FINE = "fine"
    STERILE = "sterile"


class CompositionSourceType(str, Enum):
    PRESS_RUN = "press_run"
    JUICE_PURCHASE = "juice_purchase"


class MergeSourceType(str, Enum):
    PRESS_RUN = "press_run"
    BATCH_TRANSFER = "batch_transfer"
    JUICE_PURCHASE = "juice_purchase"


# =============================================================================
# 1. cel.vessels 테이블 모델
# =============================================================================
class VesselBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="탱크 고유 ID")
    name: str = Field(max_length=100, index=True, description="탱크명 (예: TK03)")
    vessel_type: VesselType = Field(default=VesselType.FERMENTER, description="탱크 유형")
    capacity_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="용량 (L)"
    )
    capacity_unit: str = Field(default="L", max_length=10, description="용량 입력 단위")
    material: Optional[VesselMaterial] = Field(default=None, description="재질")
    jacketed: bool = Field(default=False, description="냉각 자켓 여부")
    is_pressure_vessel: bool = Field(default=False, description="압력 용기 여부 (탄산화 가능)")
    max_pressure_psi: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(6, 2, asdecimal=False)), description="최대 허용 압력 (PSI)"
    )
    status: VesselStatus = Field(default=VesselStatus.AVAILABLE, description="탱크 상태")
    location: Optional[str] = Field(default=None, max_length=100, description="설치 위치")
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


class Vessel(VesselBase, table=True):
    """
    PostgreSQL의 cel.vessels 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "vessels"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 2. cel.batches 테이블 모델
# =============================================================================
class BatchBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="배치 고유 ID")
    name: str = Field(max_length=200, index=True, description="배치명 (날짜_탱크_품종_순번)")
    custom_name: Optional[str] = Field(default=None, max_length=200, description="사용자 지정 이름")
    batch_number: str = Field(max_length=50, unique=True, index=True, description="배치 번호 (B-YYYY-NNN)")
    vessel_id: Optional[int] = Field(default=None, foreign_key="cel.vessels.id", index=True, description="현재 탱크 ID (FK)")
    initial_volume_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="최초 부피 (L)"
    )
    current_volume_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="현재 부피 (L)"
    )
    status: BatchStatus = Field(default=BatchStatus.ACTIVE, index=True, description="배치 상태")
    start_date: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True)),
        description="배치 시작 일시"
    )
    end_date: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="배치 종료 일시"
    )
    origin_press_run_id: Optional[int] = Field(
        default=None, foreign_key="prs.press_runs.id", description="원 착즙 작업 ID (FK)"
    )
    origin_purchase_item_id: Optional[int] = Field(
        default=None, foreign_key="pur.purchase_items.id", description="원 주스 구매 품목 ID (FK)"
    )
    parent_batch_id: Optional[int] = Field(
        default=None, foreign_key="cel.batches.id", description="분할 원본 배치 ID (FK)"
    )
    original_gravity: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 4, asdecimal=False)), description="초기 비중 (OG)"
    )
    final_gravity: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 4, asdecimal=False)), description="최종 비중 (FG)"
    )
    estimated_abv: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="예상 알코올 도수 (%)"
    )
    actual_abv: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="실제 알코올 도수 (%)"
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


class Batch(BatchBase, table=True):
    """
    PostgreSQL의 cel.batches 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "batches"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 3. cel.batch_compositions 테이블 모델
# =============================================================================
class BatchCompositionBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="구성 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    source_type: CompositionSourceType = Field(default=CompositionSourceType.PRESS_RUN, description="원료 출처")
    purchase_item_id: Optional[int] = Field(
        default=None, foreign_key="pur.purchase_items.id", description="원료 구매 품목 ID (FK)"
    )
    vendor_id: Optional[int] = Field(default=None, foreign_key="ven.vendors.id", description="공급업체 ID (FK)")
    fruit_variety_id: Optional[int] = Field(
        default=None, foreign_key="ven.fruit_varieties.id", description="과일 품종 ID (FK)"
    )
    input_weight_kg: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="투입 무게 (kg)"
    )
    juice_volume_l: float = Field(
        sa_column=Column(Numeric(12, 3, asdecimal=False), nullable=False), description="배분된 주스 부피 (L)"
    )
    fraction_of_batch: float = Field(
        sa_column=Column(Numeric(8, 6, asdecimal=False), nullable=False), description="배치 내 구성비 (0~1)"
    )
    material_cost: float = Field(
        default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False), description="원료비"
    )
    avg_brix: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 2, asdecimal=False)), description="평균 당도"
    )

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class BatchComposition(BatchCompositionBase, table=True):
    __tablename__ = "batch_compositions"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 4. cel.batch_measurements 테이블 모델
# =============================================================================
class BatchMeasurementBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="측정 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    measurement_date: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="측정 일시"
    )
    specific_gravity: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(5, 4, asdecimal=False)), description="비중"
    )
    abv: Optional[float] = Field(default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="알코올 도수 (%)")
    ph: Optional[float] = Field(default=None, sa_column=Column(Numeric(3, 2, asdecimal=False)), description="pH")
    total_acidity: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 2, asdecimal=False)), description="총산 (g/L)"
    )
    temperature_c: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(4, 1, asdecimal=False)), description="온도 (°C)"
    )
    volume_l: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 3, asdecimal=False)), description="측정 시점 부피 (L)"
    )
    notes: Optional[str] = Field(default=None, description="비고")
    taken_by: Optional[str] = Field(default=None, max_length=100, description="측정자")

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


class BatchMeasurement(BatchMeasurementBase, table=True):
    __tablename__ = "batch_measurements"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 5. cel.batch_additives 테이블 모델
# =============================================================================
class BatchAdditiveBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="첨가 기록 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    vessel_id: Optional[int] = Field(default=None, foreign_key="cel.vessels.id", description="탱크 ID (FK)")
    additive_type: str = Field(max_length=50, description="첨가물 유형 (yeast, nutrient, sulfite ...)")
    additive_name: str = Field(max_length=200, description="첨가물명")
    amount: float = Field(sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="첨가량")
    unit: str = Field(max_length=20, description="단위")
    added_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="첨가 일시"
    )
    added_by: Optional[str] = Field(default=None, max_length=100, description="작업자")
    notes: Optional[str] = Field(default=None, description="비고")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class BatchAdditive(BatchAdditiveBase, table=True):
    __tablename__ = "batch_additives"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 6. cel.batch_transfers 테이블 모델
# =============================================================================
class BatchTransferBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="이송 고유 ID")
    source_batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="원 배치 ID (FK)")
    source_vessel_id: int = Field(foreign_key="cel.vessels.id", index=True, description="원 탱크 ID (FK)")
    destination_batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="도착 배치 ID (FK)")
    destination_vessel_id: int = Field(foreign_key="cel.vessels.id", index=True, description="도착 탱크 ID (FK)")
    remaining_batch_id: Optional[int] = Field(
        default=None, foreign_key="cel.batches.id", description="원 탱크에 남은 배치 ID (부분 이송)"
    )
    volume_transferred_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="이송 부피 (L)"
    )
    loss_l: float = Field(
        default=0.0, sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="손실 (L)"
    )
    total_volume_processed_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="처리 부피 (이송 + 손실)"
    )
    remaining_volume_l: Optional[float] = Field(
        default=None, sa_column=Column(Numeric(10, 3, asdecimal=False)), description="원 탱크 잔량 (L)"
    )
    notes: Optional[str] = Field(default=None, description="비고 (블렌드 시 'BLEND: ...')")
    transferred_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="이송 일시"
    )
    transferred_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class BatchTransfer(BatchTransferBase, table=True):
    __tablename__ = "batch_transfers"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 7. cel.batch_racking_operations 테이블 모델
# =============================================================================
class BatchRackingOperationBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="랙킹 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    source_vessel_id: int = Field(foreign_key="cel.vessels.id", description="원 탱크 ID (FK)")
    destination_vessel_id: int = Field(foreign_key="cel.vessels.id", description="도착 탱크 ID (FK)")
    volume_before_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="랙킹 전 부피 (L)"
    )
    volume_after_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="랙킹 후 부피 (L)"
    )
    volume_loss_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="손실 (L)"
    )
    racked_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="랙킹 일시"
    )
    racked_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")
    notes: Optional[str] = Field(default=None, description="비고")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class BatchRackingOperation(BatchRackingOperationBase, table=True):
    __tablename__ = "batch_racking_operations"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 8. cel.batch_filter_operations 테이블 모델
# =============================================================================
class BatchFilterOperationBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="여과 고유 ID")
    batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="배치 ID (FK)")
    vessel_id: int = Field(foreign_key="cel.vessels.id", description="탱크 ID (FK)")
    filter_type: FilterType = Field(description="여과 유형")
    volume_before_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="여과 전 부피 (L)"
    )
    volume_after_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="여과 후 부피 (L)"
    )
    volume_loss_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="손실 (L)"
    )
    filtered_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="여과 일시"
    )
    filtered_by: Optional[str] = Field(default=None, max_length=100, description="작업자")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class BatchFilterOperation(BatchFilterOperationBase, table=True):
    __tablename__ = "batch_filter_operations"
    __table_args__ = {'schema': 'cel'}


# =============================================================================
# 9. cel.batch_merge_history 테이블 모델
# =============================================================================
class BatchMergeHistoryBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="병합 이력 고유 ID")
    target_batch_id: int = Field(foreign_key="cel.batches.id", index=True, description="병합 대상 배치 ID (FK)")
    source_type: MergeSourceType = Field(description="병합 원료 출처")
    source_batch_id: Optional[int] = Field(default=None, foreign_key="cel.batches.id", description="원 배치 ID (FK)")
    source_press_run_id: Optional[int] = Field(
        default=None, foreign_key="prs.press_runs.id", description="원 착즙 작업 ID (FK)"
    )
    source_purchase_item_id: Optional[int] = Field(
        default=None, foreign_key="pur.purchase_items.id", description="원 주스 구매 품목 ID (FK)"
    )
    volume_added_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="추가 부피 (L)"
    )
    target_volume_before_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="병합 전 부피 (L)"
    )
    target_volume_after_l: float = Field(
        sa_column=Column(Numeric(10, 3, asdecimal=False), nullable=False), description="병합 후 부피 (L)"
    )
    composition_snapshot: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON), description="병합 시점 구성 스냅샷"
    )
    notes: Optional[str] = Field(default=None, description="비고")
    merged_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="병합 일시"
    )
    merged_by: Optional[int] = Field(default=None, foreign_key="usr.users.id", description="작업자 ID (FK)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


class BatchMergeHistory(BatchMergeHistoryBase, table=True):
    __tablename__ = "batch_merge_history"
    __table_args__ = {'schema': 'cel'}
