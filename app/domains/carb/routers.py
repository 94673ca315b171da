# app/domains/carb/routers.py

"""
'carb' 도메인 (탄산화)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as carb_crud
from . import schemas as carb_schemas

router = APIRouter(
    tags=["Carbonation (탄산화)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 탄산화 작업 API
# =============================================================================
@router.post(
    "/carbonations",
    response_model=carb_schemas.CarbonationResult,
    status_code=status.HTTP_201_CREATED,
    summary="탄산화 작업 시작",
)
async def start_carbonation(
    carbonation_in: carb_schemas.CarbonationStart,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    배치의 탄산화 작업을 시작합니다.
    - **pressure_psi**: 탱크 최대 압력(미지정 시 30 PSI) 이하
    - **temperature_c**: -5 ~ 25 °C
    """
    return await carb_crud.carbonation_operation.start(db, obj_in=carbonation_in, changed_by=current_user.id)


@router.get("/carbonations", response_model=List[carb_schemas.CarbonationListItem], summary="탄산화 작업 목록")
async def read_carbonations(
    batch_id: Optional[int] = Query(None),
    vessel_id: Optional[int] = Query(None),
    active_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await carb_crud.carbonation_operation.get_carbonations(
        db, batch_id=batch_id, vessel_id=vessel_id, active_only=active_only, limit=limit
    )


@router.get("/carbonations/active", response_model=List[carb_schemas.CarbonationListItem], summary="진행 중인 탄산화 작업")
async def read_active_carbonations(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await carb_crud.carbonation_operation.get_carbonations(db, active_only=True, limit=100)


@router.post(
    "/carbonations/{carbonation_id}/complete",
    response_model=carb_schemas.CarbonationResult,
    summary="탄산화 작업 완료",
)
async def complete_carbonation(
    carbonation_id: int,
    complete_in: carb_schemas.CarbonationComplete,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await carb_crud.carbonation_operation.complete(
        db, carbonation_id=carbonation_id, obj_in=complete_in, changed_by=current_user.id
    )


# =============================================================================
# 2. 계산기 API
# =============================================================================
@router.post("/calculator/suggestions", response_model=carb_schemas.CarbonationSuggestion, summary="탄산화 조건 제안")
async def calculate_suggestions(
    request_in: carb_schemas.CarbonationSuggestionRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """목표 CO2와 온도에서 필요한 압력, 예상 소요 시간, 대체 온도를 계산합니다."""
    return await carb_crud.carbonation_operation.get_suggestions(db, obj_in=request_in)


@router.post("/calculator/priming-sugar", response_model=carb_schemas.PrimingSugarResult, summary="프라이밍 설탕량 계산")
async def calculate_priming_sugar(
    request_in: carb_schemas.PrimingSugarRequest,
    current_user: User = Depends(deps.get_current_active_user),
):
    return carb_crud.calculate_priming_sugar(request_in)
