# app/domains/prs/routers.py

"""
'prs' 도메인 (착즙 작업)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, status, HTTPException, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as prs_crud
from . import models as prs_models
from . import schemas as prs_schemas

router = APIRouter(
    tags=["Press Runs (착즙 작업)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 착즙 작업 (PressRun) API
# =============================================================================
@router.post(
    "/press-runs",
    response_model=prs_schemas.PressRunRead,
    status_code=status.HTTP_201_CREATED,
    summary="착즙 작업 시작",
)
async def create_press_run(
    press_run_in: prs_schemas.PressRunCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await prs_crud.press_run.create(db, obj_in=press_run_in, changed_by=current_user.id)


@router.get("/press-runs", response_model=List[prs_schemas.PressRunRead], summary="착즙 작업 목록 조회")
async def read_press_runs(
    run_status: Optional[prs_models.PressRunStatus] = Query(None, alias="status"),
    vendor_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await prs_crud.press_run.get_press_runs(
        db, run_status=run_status, vendor_id=vendor_id, skip=skip, limit=limit
    )


@router.get("/press-runs/{press_run_id}", response_model=prs_schemas.PressRunWithLoadsRead, summary="착즙 작업 상세 조회")
async def read_press_run(
    press_run_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_run = await prs_crud.press_run.get_with_loads(db, press_run_id=press_run_id)
    if not db_run:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Press run not found")
    return db_run


@router.put("/press-runs/{press_run_id}", response_model=prs_schemas.PressRunRead, summary="착즙 작업 수정")
async def update_press_run(
    press_run_id: int,
    press_run_in: prs_schemas.PressRunUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_run = await prs_crud.press_run.get_or_404(db, press_run_id)
    return await prs_crud.press_run.update(db, db_obj=db_run, obj_in=press_run_in, changed_by=current_user.id)


@router.post(
    "/press-runs/{press_run_id}/finish",
    response_model=prs_schemas.PressRunFinishResult,
    summary="착즙 작업 완료 및 배치 생성",
)
async def finish_press_run(
    press_run_id: int,
    finish_in: prs_schemas.PressRunFinish,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    착즙 작업을 완료합니다.
    - **assignments**: 주스를 담을 탱크와 부피 목록 (탱크마다 배치 1개 생성)
    - **allocation_mode**: weight(무게 기준) 또는 sugar(당도 기준) 구성비
    """
    return await prs_crud.press_run.finish(
        db, press_run_id=press_run_id, obj_in=finish_in, changed_by=current_user.id
    )


@router.post("/press-runs/{press_run_id}/cancel", response_model=prs_schemas.PressRunRead, summary="착즙 작업 취소")
async def cancel_press_run(
    press_run_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await prs_crud.press_run.cancel(db, id=press_run_id, changed_by=current_user.id)


@router.delete("/press-runs/{press_run_id}", status_code=status.HTTP_204_NO_CONTENT, summary="착즙 작업 삭제 (관리자)")
async def delete_press_run(
    press_run_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    await prs_crud.press_run.remove(db, id=press_run_id, changed_by=current_user.id)
    return None


# =============================================================================
# 2. 투입분 (PressRunLoad) API
# =============================================================================
@router.post(
    "/press-runs/{press_run_id}/loads",
    response_model=prs_schemas.PressRunLoadRead,
    status_code=status.HTTP_201_CREATED,
    summary="투입분 추가",
)
async def create_press_run_load(
    press_run_id: int,
    load_in: prs_schemas.PressRunLoadCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    진행 중인 착즙 작업에 원료 사과 투입분을 추가합니다.
    - **original_weight_unit**: kg, lb, bushel (kg으로 환산되어 저장)
    """
    return await prs_crud.press_run.add_load(
        db, press_run_id=press_run_id, obj_in=load_in, changed_by=current_user.id
    )


@router.put(
    "/press-runs/{press_run_id}/loads/{load_id}",
    response_model=prs_schemas.PressRunLoadRead,
    summary="투입분 수정",
)
async def update_press_run_load(
    press_run_id: int,
    load_id: int,
    load_in: prs_schemas.PressRunLoadUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await prs_crud.press_run.update_load(
        db, press_run_id=press_run_id, load_id=load_id, obj_in=load_in, changed_by=current_user.id
    )


@router.delete(
    "/press-runs/{press_run_id}/loads/{load_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="투입분 삭제",
)
async def delete_press_run_load(
    press_run_id: int,
    load_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await prs_crud.press_run.delete_load(db, press_run_id=press_run_id, load_id=load_id, changed_by=current_user.id)
    return None
