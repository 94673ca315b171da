# app/domains/ven/schemas.py

"""
'ven' 도메인 (공급업체 및 과일 품종 관리)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
응답 스키마는 다른 도메인과의 일관성을 위해 '...Read' 패턴을 사용합니다.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field

from .models import FruitType, CiderCategory, Intensity, HarvestWindow


# =============================================================================
# 1. 공급업체 (Vendor) 스키마
# =============================================================================
class VendorBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_info: Optional[Dict[str, Any]] = None
    is_active: bool = True


class VendorCreate(VendorBase):
    pass


class VendorUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_info: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class VendorRead(VendorBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:  # Pydantic이 ORM 객체의 속성에서 데이터를 가져와 스키마를 구성
        from_attributes = True


# =============================================================================
# 2. 과일 품종 (FruitVariety) 스키마
# =============================================================================
class FruitVarietyBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=100)
    fruit_type: FruitType = FruitType.APPLE
    cider_category: Optional[CiderCategory] = None
    tannin: Optional[Intensity] = None
    acid: Optional[Intensity] = None
    harvest_window: Optional[HarvestWindow] = None
    variety_notes: Optional[str] = None


class FruitVarietyCreate(FruitVarietyBase):
    pass


class FruitVarietyUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    fruit_type: Optional[FruitType] = None
    cider_category: Optional[CiderCategory] = None
    tannin: Optional[Intensity] = None
    acid: Optional[Intensity] = None
    harvest_window: Optional[HarvestWindow] = None
    variety_notes: Optional[str] = None


class FruitVarietyRead(FruitVarietyBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# 3. 공급업체-품종 연결 (VendorVariety) 스키마
# =============================================================================
class VendorVarietyCreate(SQLModel):
    variety_id: int
    notes: Optional[str] = None


class VendorVarietyRead(SQLModel):
    vendor_id: int
    variety_id: int
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class VendorWithVarietiesRead(VendorRead):
    """공급업체 상세 조회 (공급 품종 목록 포함)"""
    varieties: List[FruitVarietyRead] = []
