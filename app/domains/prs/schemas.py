# app/domains/prs/schemas.py

"""
'prs' 도메인 (착즙 작업)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.utils.costing import AllocationMode
from app.domains.cel.schemas import BatchRead
from .models import PressRunStatus, AppleCondition


# =============================================================================
# 1. 착즙 투입분 (PressRunLoad) 스키마
# =============================================================================
class PressRunLoadCreate(SQLModel):
    purchase_item_id: int
    original_weight: float = Field(..., description="투입 무게 (입력 단위 기준)")
    original_weight_unit: str = Field("kg", max_length=10, description="kg, lb, bushel")
    brix: Optional[float] = Field(None, ge=0, le=40)
    apple_condition: Optional[AppleCondition] = None
    notes: Optional[str] = None


class PressRunLoadUpdate(SQLModel):
    original_weight: Optional[float] = None
    original_weight_unit: Optional[str] = Field(None, max_length=10)
    brix: Optional[float] = Field(None, ge=0, le=40)
    apple_condition: Optional[AppleCondition] = None
    notes: Optional[str] = None


class PressRunLoadRead(SQLModel):
    id: int
    press_run_id: int
    purchase_item_id: int
    fruit_variety_id: Optional[int] = None
    load_sequence: int
    apple_weight_kg: float
    original_weight: float
    original_weight_unit: str
    brix: Optional[float] = None
    apple_condition: Optional[AppleCondition] = None
    juice_volume_l: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 2. 착즙 작업 (PressRun) 스키마
# =============================================================================
class PressRunCreate(SQLModel):
    vendor_id: Optional[int] = None
    start_time: Optional[datetime] = None
    labor_cost_per_hour: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class PressRunUpdate(SQLModel):
    vendor_id: Optional[int] = None
    labor_hours: Optional[float] = Field(None, ge=0)
    labor_cost_per_hour: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class PressRunRead(SQLModel):
    id: int
    name: str
    vendor_id: Optional[int] = None
    status: PressRunStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_apple_weight_kg: float
    total_juice_volume_l: Optional[float] = None
    extraction_rate: Optional[float] = None
    labor_hours: Optional[float] = None
    labor_cost_per_hour: Optional[float] = None
    total_labor_cost: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PressRunWithLoadsRead(PressRunRead):
    loads: List[PressRunLoadRead] = []


# =============================================================================
# 3. 착즙 완료 (Finish) 스키마
# =============================================================================
class VesselAssignment(SQLModel):
    """착즙된 주스를 담을 탱크와 부피"""
    vessel_id: int
    volume_l: float = Field(..., gt=0)


class LoadJuiceVolume(SQLModel):
    load_id: int
    juice_volume_l: float = Field(..., ge=0)


class PressRunFinish(SQLModel):
    total_juice_volume_l: float = Field(..., gt=0)
    assignments: List[VesselAssignment] = Field(..., min_length=1)
    allocation_mode: AllocationMode = AllocationMode.WEIGHT
    load_juice: Optional[List[LoadJuiceVolume]] = Field(
        None, description="투입분별 착즙량. 생략하면 구성비대로 배분합니다."
    )
    labor_hours: Optional[float] = Field(None, ge=0)
    labor_cost_per_hour: Optional[float] = Field(None, ge=0)
    end_time: Optional[datetime] = None
    notes: Optional[str] = None


class PressRunFinishResult(SQLModel):
    press_run: PressRunRead
    batches: List[BatchRead]
    message: str
