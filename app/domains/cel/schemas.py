# app/domains/cel/schemas.py

"""
'cel' 도메인 (탱크 및 배치 관리)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.utils.units import VolumeUnit
from .models import (
    VesselType,
    VesselMaterial,
    VesselStatus,
    BatchStatus,
    FilterType,
    CompositionSourceType,
    MergeSourceType,
)


# =============================================================================
# 1. 탱크 (Vessel) 스키마
# =============================================================================
class VesselCreate(SQLModel):
    name: str = Field(..., min_length=1, max_length=100)
    vessel_type: VesselType = VesselType.FERMENTER
    capacity: float = Field(..., gt=0, description="용량 (capacity_unit 기준)")
    capacity_unit: VolumeUnit = VolumeUnit.L
    material: Optional[VesselMaterial] = None
    jacketed: bool = False
    is_pressure_vessel: bool = False
    max_pressure_psi: Optional[float] = Field(None, gt=0)
    location: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class VesselUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    vessel_type: Optional[VesselType] = None
    capacity: Optional[float] = Field(None, gt=0)
    capacity_unit: Optional[VolumeUnit] = None
    material: Optional[VesselMaterial] = None
    jacketed: Optional[bool] = None
    is_pressure_vessel: Optional[bool] = None
    max_pressure_psi: Optional[float] = Field(None, gt=0)
    location: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class VesselStatusUpdate(SQLModel):
    status: VesselStatus


class VesselRead(SQLModel):
    id: int
    name: str
    vessel_type: VesselType
    capacity_l: float
    capacity_unit: str
    material: Optional[VesselMaterial] = None
    jacketed: bool
    is_pressure_vessel: bool
    max_pressure_psi: Optional[float] = None
    status: VesselStatus
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VesselLiquidRead(SQLModel):
    """탱크별 현재 액체 현황"""
    vessel_id: int
    vessel_name: str
    vessel_status: VesselStatus
    capacity_l: float
    location: Optional[str] = None
    batch_id: Optional[int] = None
    batch_name: Optional[str] = None
    batch_number: Optional[str] = None
    batch_status: Optional[BatchStatus] = None
    current_volume_l: float = 0.0
    fill_percentage: float = 0.0


class LiquidMapRead(SQLModel):
    vessels: List[VesselLiquidRead]
    cellar_liquid_l: float


# =============================================================================
# 2. 배치 (Batch) 스키마
# =============================================================================
class BatchUpdate(SQLModel):
    custom_name: Optional[str] = Field(None, max_length=200)
    status: Optional[BatchStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    original_gravity: Optional[float] = Field(None, ge=0.99, le=1.2)
    final_gravity: Optional[float] = Field(None, ge=0.99, le=1.2)
    estimated_abv: Optional[float] = Field(None, ge=0, le=20)
    actual_abv: Optional[float] = Field(None, ge=0, le=20)
    notes: Optional[str] = None


class BatchRead(SQLModel):
    id: int
    name: str
    custom_name: Optional[str] = None
    batch_number: str
    vessel_id: Optional[int] = None
    initial_volume_l: float
    current_volume_l: float
    status: BatchStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    origin_press_run_id: Optional[int] = None
    origin_purchase_item_id: Optional[int] = None
    parent_batch_id: Optional[int] = None
    original_gravity: Optional[float] = None
    final_gravity: Optional[float] = None
    estimated_abv: Optional[float] = None
    actual_abv: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 3. 배치 구성 (BatchComposition) 스키마
# =============================================================================
class BatchCompositionRead(SQLModel):
    id: int
    batch_id: int
    source_type: CompositionSourceType
    purchase_item_id: Optional[int] = None
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    fruit_variety_id: Optional[int] = None
    variety_name: Optional[str] = None
    input_weight_kg: float
    juice_volume_l: float
    fraction_of_batch: float
    percentage: float
    material_cost: float
    avg_brix: Optional[float] = None


class BatchCompositionSummary(SQLModel):
    batch_id: int
    total_juice_volume_l: float
    total_material_cost: float
    items: List[BatchCompositionRead]


# =============================================================================
# 4. 배치 측정 (BatchMeasurement) 스키마
# =============================================================================
class BatchMeasurementCreate(SQLModel):
    measurement_date: Optional[datetime] = None
    specific_gravity: Optional[float] = Field(None, ge=0.99, le=1.2)
    abv: Optional[float] = Field(None, ge=0, le=20)
    ph: Optional[float] = Field(None, ge=2, le=5)
    total_acidity: Optional[float] = Field(None, ge=0, le=20)
    temperature_c: Optional[float] = Field(None, ge=0, le=40)
    volume_l: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None
    taken_by: Optional[str] = Field(None, max_length=100)


class BatchMeasurementUpdate(BatchMeasurementCreate):
    pass


class BatchMeasurementRead(SQLModel):
    id: int
    batch_id: int
    measurement_date: datetime
    specific_gravity: Optional[float] = None
    abv: Optional[float] = None
    ph: Optional[float] = None
    total_acidity: Optional[float] = None
    temperature_c: Optional[float] = None
    volume_l: Optional[float] = None
    notes: Optional[str] = None
    taken_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 5. 배치 첨가물 (BatchAdditive) 스키마
# =============================================================================
class BatchAdditiveCreate(SQLModel):
    additive_type: str = Field(..., min_length=1, max_length=50)
    additive_name: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    added_at: Optional[datetime] = None
    added_by: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class BatchAdditiveRead(SQLModel):
    id: int
    batch_id: int
    vessel_id: Optional[int] = None
    additive_type: str
    additive_name: str
    amount: float
    unit: str
    added_at: datetime
    added_by: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


# =============================================================================
# 6. 탱크 간 이송 (Transfer) 스키마
# =============================================================================
class VesselTransferCreate(SQLModel):
    from_vessel_id: int
    to_vessel_id: int
    volume_l: float = Field(..., gt=0)
    loss_l: float = Field(0.0, ge=0)
    notes: Optional[str] = None


class BatchTransferRead(SQLModel):
    id: int
    source_batch_id: int
    source_vessel_id: int
    destination_batch_id: int
    destination_vessel_id: int
    remaining_batch_id: Optional[int] = None
    volume_transferred_l: float
    loss_l: float
    total_volume_processed_l: float
    remaining_volume_l: Optional[float] = None
    notes: Optional[str] = None
    transferred_at: datetime
    transferred_by: Optional[int] = None

    class Config:
        from_attributes = True


class VesselTransferResult(SQLModel):
    message: str
    is_blend: bool
    transferred_batch: BatchRead
    remaining_batch: Optional[BatchRead] = None
    transfer: BatchTransferRead


# =============================================================================
# 7. 랙킹 / 여과 스키마
# =============================================================================
class BatchRackCreate(SQLModel):
    destination_vessel_id: int
    volume_after_l: float = Field(..., gt=0, description="랙킹 후 도착 부피 (L)")
    volume_to_rack_l: Optional[float] = Field(None, gt=0, description="부분 랙킹 시 옮길 부피 (L)")
    racked_at: Optional[datetime] = None
    notes: Optional[str] = None


class BatchRackingOperationRead(SQLModel):
    id: int
    batch_id: int
    source_vessel_id: int
    destination_vessel_id: int
    volume_before_l: float
    volume_after_l: float
    volume_loss_l: float
    racked_at: datetime
    racked_by: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class BatchRackResult(SQLModel):
    message: str
    batch: BatchRead
    child_batch: Optional[BatchRead] = None
    racking_operation: BatchRackingOperationRead
    merged: bool
    is_partial: bool


class BatchFilterCreate(SQLModel):
    vessel_id: int
    filter_type: FilterType
    volume_before_l: float = Field(..., gt=0)
    volume_after_l: float = Field(..., gt=0)
    filtered_at: Optional[datetime] = None
    filtered_by: Optional[str] = Field(None, max_length=100)


class BatchFilterOperationRead(SQLModel):
    id: int
    batch_id: int
    vessel_id: int
    filter_type: FilterType
    volume_before_l: float
    volume_after_l: float
    volume_loss_l: float
    filtered_at: datetime
    filtered_by: Optional[str] = None

    class Config:
        from_attributes = True


# =============================================================================
# 8. 병합 이력 / 작업 이력 스키마
# =============================================================================
class BatchMergeHistoryRead(SQLModel):
    id: int
    target_batch_id: int
    source_type: MergeSourceType
    source_batch_id: Optional[int] = None
    source_press_run_id: Optional[int] = None
    source_purchase_item_id: Optional[int] = None
    volume_added_l: float
    target_volume_before_l: float
    target_volume_after_l: float
    composition_snapshot: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    merged_at: datetime
    merged_by: Optional[int] = None

    class Config:
        from_attributes = True


class BatchActivityRead(SQLModel):
    """배치 작업 이력 한 건 (측정/첨가/랙킹/여과/이송/병합)"""
    activity_type: str
    occurred_at: datetime
    description: str
    details: Dict[str, Any] = {}


# =============================================================================
# 9. 주스 구매 → 탱크 이송 스키마
# =============================================================================
class JuiceTransferCreate(SQLModel):
    purchase_item_id: int
    vessel_id: int
    volume_l: Optional[float] = Field(None, gt=0, description="생략하면 남은 주스 전량")
    transfer_date: Optional[datetime] = None
    notes: Optional[str] = None


class JuiceTransferResult(SQLModel):
    message: str
    is_new_batch: bool
    batch: BatchRead
