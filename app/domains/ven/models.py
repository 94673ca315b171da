# app/domains/ven/models.py

"""
'ven' 도메인 (PostgreSQL 'ven' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

이 모듈은 'ven' 스키마에 속하는 모든 테이블 (vendors, fruit_varieties,
vendor_varieties)에 대한 SQLModel 클래스를 포함합니다.
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime, UTC
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class FruitType(str, Enum):
    APPLE = "apple"
    PEAR = "pear"
    PLUM = "plum"


class CiderCategory(str, Enum):
    SWEET = "sweet"
    BITTERSWEET = "bittersweet"
    SHARP = "sharp"
    BITTERSHARP = "bittersharp"


class Intensity(str, Enum):
    HIGH = "high"
    MEDIUM_HIGH = "medium-high"
    MEDIUM = "medium"
    LOW_MEDIUM = "low-medium"
    LOW = "low"


class HarvestWindow(str, Enum):
    LATE = "Late"
    MID_LATE = "Mid-Late"
    MID = "Mid"
    EARLY_MID = "Early-Mid"
    EARLY = "Early"


# =============================================================================
# 1. ven.vendor_varieties (다대다 관계를 위한 연결 테이블 모델)
# =============================================================================
class VendorVariety(SQLModel, table=True):
    """
    Vendor와 FruitVariety의 다대다 관계를 위한 연결(link) 테이블 모델입니다.
    복합 PK이므로 같은 (업체, 품종) 쌍은 한 번만 저장됩니다.
    """
    __tablename__ = "vendor_varieties"
    __table_args__ = {'schema': 'ven'}

    vendor_id: int = Field(
        default=None,
        foreign_key="ven.vendors.id",
        primary_key=True,
        description="공급업체 ID (FK, 복합 PK)"
    )
    variety_id: int = Field(
        default=None,
        foreign_key="ven.fruit_varieties.id",
        primary_key=True,
        description="품종 ID (FK, 복합 PK)"
    )
    notes: Optional[str] = Field(default=None, description="비고 (예: 연간 공급 가능량)")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


# =============================================================================
# 2. ven.vendors 테이블 모델
# =============================================================================
class VendorBase(SQLModel):
    """
    ven.vendors 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="공급업체 고유 ID")
    name: str = Field(max_length=200, index=True, description="공급업체(과수원)명")
    contact_info: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON), description="연락처 정보 (phone, email, address)"
    )
    is_active: bool = Field(default=True, description="거래 활성 여부")

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


class Vendor(VendorBase, table=True):
    """
    PostgreSQL의 ven.vendors 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "vendors"
    __table_args__ = {'schema': 'ven'}

    varieties: List["FruitVariety"] = Relationship(back_populates="vendors", link_model=VendorVariety)


# =============================================================================
# 3. ven.fruit_varieties 테이블 모델
# =============================================================================
class FruitVarietyBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="품종 고유 ID")
    name: str = Field(max_length=100, index=True, description="품종명 (예: Gravenstein)")
    fruit_type: FruitType = Field(default=FruitType.APPLE, description="과일 종류")
    cider_category: Optional[CiderCategory] = Field(default=None, description="사이더 분류 (Long Ashton)")
    tannin: Optional[Intensity] = Field(default=None, description="탄닌 강도")
    acid: Optional[Intensity] = Field(default=None, description="산도 강도")
    harvest_window: Optional[HarvestWindow] = Field(default=None, description="수확 시기")
    variety_notes: Optional[str] = Field(default=None, description="품종 특성 메모")

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


class FruitVariety(FruitVarietyBase, table=True):
    """
    PostgreSQL의 ven.fruit_varieties 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    품종명 중복은 삭제되지 않은 레코드 사이에서만 검사합니다 (crud에서 처리).
    """
    __tablename__ = "fruit_varieties"
    __table_args__ = {'schema': 'ven'}

    vendors: List["Vendor"] = Relationship(back_populates="varieties", link_model=VendorVariety)
