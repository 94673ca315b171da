# app/domains/rpt/routers.py

from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr import models as usr_models
from . import crud, schemas

router = APIRouter(
    tags=["Reports & Costing (보고서 및 원가)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 원가 (COGS)
# =============================================================================
@router.post("/batch-costs/{batch_id}/calculate", response_model=schemas.BatchCostRead)
async def calculate_batch_cost(
    batch_id: int,
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    배치 원가를 즉시 다시 계산합니다.
    """
    return await crud.calculate_batch_cost(session, batch_id=batch_id)


@router.get("/batch-costs/{batch_id}", response_model=schemas.BatchCostDetail)
async def read_batch_cost(
    batch_id: int,
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await crud.get_batch_cost(session, batch_id=batch_id)


@router.get("/cogs-summary", response_model=schemas.CogsSummary)
async def read_cogs_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    batch_ids: Optional[List[int]] = Query(None),
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await crud.get_cogs_summary(session, start_date=start_date, end_date=end_date, batch_ids=batch_ids)


# =============================================================================
# 2. 판매 보고서
# =============================================================================
@router.get("/sales/summary", response_model=schemas.SalesSummary)
async def read_sales_summary(
    start_date: date,
    end_date: date,
    channel_ids: Optional[List[int]] = Query(None),
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    기간 판매 요약. 직전 동일 길이 기간 대비 증감률(%)을 함께 반환합니다.
    """
    return await crud.get_sales_summary(session, start_date=start_date, end_date=end_date, channel_ids=channel_ids)


@router.get("/sales/by-channel", response_model=schemas.SalesByChannel)
async def read_sales_by_channel(
    start_date: date,
    end_date: date,
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await crud.get_sales_by_channel(session, start_date=start_date, end_date=end_date)


@router.get("/sales/top-products", response_model=List[schemas.TopProduct])
async def read_top_products(
    start_date: date,
    end_date: date,
    limit: int = Query(10, ge=1, le=50),
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await crud.get_top_products(session, start_date=start_date, end_date=end_date, limit=limit)


@router.get("/sales/trends", response_model=List[schemas.SalesTrendPoint])
async def read_sales_trends(
    start_date: date,
    end_date: date,
    group_by: str = Query("day", pattern="^(day|week|month)$"),
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await crud.get_sales_trends(session, start_date=start_date, end_date=end_date, group_by=group_by)


# =============================================================================
# 3. 생산 보고서 / 대시보드
# =============================================================================
@router.get("/production/summary", response_model=schemas.ProductionSummary)
async def read_production_summary(
    start_date: date,
    end_date: date,
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await crud.get_production_summary(session, start_date=start_date, end_date=end_date)


@router.get("/dashboard", response_model=schemas.DashboardStats)
async def read_dashboard_stats(
    session: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    메인 대시보드 집계 (진행 중 배치, 재고, 탱크/케그 상태 ...)
    """
    return await crud.get_dashboard_stats(session)
