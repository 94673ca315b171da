# app/domains/pkg/schemas.py

"""
'pkg' 도메인 (패키징 및 케그)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.utils.units import VolumeUnit
from .models import (
    PackageType, PackagingStatus, FillCheck, KegType, KegStatus, KegCondition, KegFillStatus,
)


# =============================================================================
# 1. 패키징 런 (PackagingRun) 스키마
# =============================================================================
class PackagingRunCreate(SQLModel):
    """탱크에서 바로 포장하는 요청"""
    vessel_id: int
    batch_id: int
    package_size_ml: int = Field(..., gt=0, description="포장 용량 (mL)")
    units_produced: int = Field(..., gt=0)
    volume_taken: float = Field(..., gt=0, description="탱크에서 뽑은 양")
    volume_unit: VolumeUnit = VolumeUnit.L
    packaged_at: Optional[datetime] = None
    abv_at_packaging: Optional[float] = Field(None, ge=0, le=20)
    carbonation_level: Optional[float] = Field(None, ge=0, le=5)
    location: Optional[str] = Field(None, max_length=100, description="재고 보관 위치")
    notes: Optional[str] = None


class PackagingQAUpdate(SQLModel):
    fill_check: Optional[FillCheck] = None
    fill_variance_ml: Optional[float] = None
    abv_at_packaging: Optional[float] = Field(None, ge=0, le=20)
    carbonation_level: Optional[float] = Field(None, ge=0, le=5)
    test_method: Optional[str] = Field(None, max_length=100)
    test_date: Optional[datetime] = None
    qa_notes: Optional[str] = None


class PackagingRunRead(SQLModel):
    id: int
    batch_id: int
    vessel_id: Optional[int] = None
    packaged_at: datetime
    package_type: PackageType
    package_size_ml: int
    units_produced: int
    volume_taken_l: float
    loss_l: float
    loss_percentage: float
    run_sequence: int
    lot_code: Optional[str] = None
    abv_at_packaging: Optional[float] = None
    carbonation_level: Optional[float] = None
    fill_check: FillCheck
    fill_variance_ml: Optional[float] = None
    test_method: Optional[str] = None
    test_date: Optional[datetime] = None
    qa_notes: Optional[str] = None
    notes: Optional[str] = None
    status: PackagingStatus
    inventory_item_id: Optional[int] = None
    performed_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PackagingRunListItem(PackagingRunRead):
    batch_name: Optional[str] = None
    batch_number: Optional[str] = None
    vessel_name: Optional[str] = None


class PackagingResult(SQLModel):
    packaging_run: PackagingRunRead
    inventory_item_id: int
    lot_code: str
    remaining_volume_l: float
    vessel_emptied: bool
    message: str


# =============================================================================
# 2. 포장 용량 (PackageSize) 스키마
# =============================================================================
class PackageSizeCreate(SQLModel):
    size_ml: int = Field(..., gt=0)
    size_oz: Optional[float] = Field(None, gt=0)
    display_name: str = Field(..., min_length=1, max_length=100)
    package_type: PackageType
    sort_order: int = 0
    is_active: bool = True


class PackageSizeRead(SQLModel):
    id: int
    size_ml: int
    size_oz: Optional[float] = None
    display_name: str
    package_type: PackageType
    sort_order: int
    is_active: bool

    class Config:
        from_attributes = True


# =============================================================================
# 3. 케그 (Keg) 스키마
# =============================================================================
class KegCreate(SQLModel):
    keg_number: str = Field(..., min_length=1, max_length=50)
    keg_type: KegType = KegType.SANKE_20L
    capacity_l: float = Field(..., gt=0, le=200)
    condition: KegCondition = KegCondition.GOOD
    location: Optional[str] = Field(None, max_length=200)
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = None


class KegUpdate(SQLModel):
    keg_type: Optional[KegType] = None
    capacity_l: Optional[float] = Field(None, gt=0, le=200)
    status: Optional[KegStatus] = None
    condition: Optional[KegCondition] = None
    location: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None


class KegRead(SQLModel):
    id: int
    keg_number: str
    keg_type: KegType
    capacity_l: float
    status: KegStatus
    condition: KegCondition
    location: Optional[str] = None
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 4. 케그 충전 (KegFill) 스키마
# =============================================================================
class KegFillRequest(SQLModel):
    batch_id: int
    keg_ids: List[int] = Field(..., min_length=1)
    volume_per_keg_l: float = Field(..., gt=0)
    loss_l: float = Field(0.0, ge=0, description="충전 중 손실량 (L)")
    filled_at: Optional[datetime] = None
    notes: Optional[str] = None


class KegDistributeRequest(SQLModel):
    distributed_to: str = Field(..., min_length=1, max_length=200)
    distributed_at: Optional[datetime] = None
    notes: Optional[str] = None


class KegReturnRequest(SQLModel):
    returned_at: Optional[datetime] = None
    notes: Optional[str] = None


class KegFillRead(SQLModel):
    id: int
    keg_id: int
    batch_id: int
    filled_at: datetime
    volume_l: float
    status: KegFillStatus
    distributed_at: Optional[datetime] = None
    distributed_to: Optional[str] = None
    returned_at: Optional[datetime] = None
    notes: Optional[str] = None
    filled_by: Optional[int] = None

    class Config:
        from_attributes = True


class KegFillResult(SQLModel):
    fills: List[KegFillRead]
    total_volume_l: float
    remaining_batch_volume_l: float
    message: str


class KegActionResult(SQLModel):
    keg: KegRead
    fill: Optional[KegFillRead] = None
    message: str
