# app/domains/carb/schemas.py

"""
'carb' 도메인 (탄산화)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.utils.carbonation import SugarType
from app.utils.units import VolumeUnit
from .models import CarbonationProcess, QualityCheck


# =============================================================================
# 1. 탄산화 작업 (CarbonationOperation) 스키마
# =============================================================================
class CarbonationStart(SQLModel):
    batch_id: int
    vessel_id: Optional[int] = None
    process: CarbonationProcess = CarbonationProcess.HEADSPACE
    started_at: Optional[datetime] = None
    target_co2_volumes: float = Field(..., ge=0, le=5)
    starting_co2_volumes: float = Field(0.0, ge=0, le=5)
    temperature_c: Optional[float] = Field(None, description="시작 온도 (°C)")
    pressure_psi: float = Field(..., ge=0, le=50)
    starting_volume: float = Field(..., gt=0)
    starting_volume_unit: VolumeUnit = VolumeUnit.L
    gas_type: str = Field("CO2", max_length=50)
    priming_sugar_g: Optional[float] = Field(None, gt=0)
    priming_sugar_type: Optional[SugarType] = None
    notes: Optional[str] = None


class CarbonationComplete(SQLModel):
    final_co2_volumes: float = Field(..., ge=0, le=5)
    final_pressure_psi: float = Field(..., ge=0, le=50)
    final_temperature_c: float = Field(..., ge=-5, le=25)
    final_volume: float = Field(..., gt=0)
    final_volume_unit: VolumeUnit = VolumeUnit.L
    quality_check: QualityCheck
    quality_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None


class CarbonationRead(SQLModel):
    id: int
    batch_id: int
    vessel_id: Optional[int] = None
    process: CarbonationProcess
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_hours: Optional[float] = None
    starting_volume_l: float
    starting_co2_volumes: float
    target_co2_volumes: float
    temperature_c: Optional[float] = None
    pressure_psi: float
    suggested_pressure_psi: Optional[float] = None
    gas_type: str
    priming_sugar_g: Optional[float] = None
    priming_sugar_type: Optional[str] = None
    final_co2_volumes: Optional[float] = None
    final_pressure_psi: Optional[float] = None
    final_temperature_c: Optional[float] = None
    final_volume_l: Optional[float] = None
    quality_check: QualityCheck
    quality_notes: Optional[str] = None
    notes: Optional[str] = None
    performed_by: Optional[int] = None
    completed_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CarbonationResult(SQLModel):
    carbonation: CarbonationRead
    carbonation_level: str
    target_met: Optional[bool] = None


class CarbonationListItem(CarbonationRead):
    batch_name: Optional[str] = None
    vessel_name: Optional[str] = None
    carbonation_level: str
    is_complete: bool


# =============================================================================
# 2. 계산기 스키마
# =============================================================================
class CarbonationSuggestionRequest(SQLModel):
    target_co2_volumes: float = Field(..., ge=0, le=5)
    temperature_c: float = Field(..., ge=-5, le=25)
    current_co2_volumes: float = Field(0.0, ge=0, le=5)
    vessel_id: Optional[int] = None


class CarbonationSuggestion(SQLModel):
    required_pressure_psi: float
    estimated_duration_hours: float
    expected_co2_volumes: float
    carbonation_level: str
    is_pressure_safe: bool
    vessel_max_pressure_psi: float
    temperature_check: Dict[str, Any]
    alternatives: List[Dict[str, float]] = []
    recommended_method: str


class PrimingSugarRequest(SQLModel):
    target_co2_volumes: float = Field(..., ge=0, le=5)
    volume: float = Field(..., gt=0)
    volume_unit: VolumeUnit = VolumeUnit.L
    residual_co2_volumes: float = Field(0.0, ge=0, le=5)
    sugar_type: SugarType = SugarType.SUCROSE


class PrimingSugarResult(SQLModel):
    sugar_type: SugarType
    volume_l: float
    sugar_grams: float
    grams_per_liter: float
    expected_co2_volumes: float
