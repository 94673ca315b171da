# app/domains/pkg/routers.py

"""
'pkg' 도메인 (패키징 및 케그)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, status, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User
from app.domains.rpt import tasks as rpt_tasks

from . import crud as pkg_crud
from . import models as pkg_models
from . import schemas as pkg_schemas

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Packaging & Kegs (패키징 및 케그)"],
    responses={404: {"description": "Not found"}},
)


async def _queue_cost_recalculation(request: Request, db: AsyncSession, batch_id: int) -> None:
    """ARQ 풀이 있으면 원가 재계산을 큐에 넣고, 없으면 즉시 실행합니다."""
    arq_pool = deps.get_arq_pool(request)
    if arq_pool is not None:
        await arq_pool.enqueue_job(rpt_tasks.recalculate_batch_cost_task.__name__, batch_id)
        logger.info(f"ARQ Job enqueued: recalculate_batch_cost_task for batch {batch_id}")
    else:
        await rpt_tasks.recalculate_batch_cost_task({"db": db}, batch_id)


# =============================================================================
# 1. 패키징 런 API
# =============================================================================
@router.post(
    "/runs",
    response_model=pkg_schemas.PackagingResult,
    status_code=status.HTTP_201_CREATED,
    summary="탱크에서 포장",
)
async def create_packaging_run(
    request: Request,
    run_in: pkg_schemas.PackagingRunCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    탱크의 배치를 포장하고 재고 로트를 생성합니다.
    - **package_size_ml**: 500 이하 병, 1000 이하 캔, 그 이상 케그
    - 남은 부피가 임계값 미만이면 탱크는 cleaning, 배치는 packaged 상태가 됩니다.
    """
    result = await pkg_crud.packaging_run.create_from_cellar(db, obj_in=run_in, changed_by=current_user.id)
    await _queue_cost_recalculation(request, db, run_in.batch_id)
    return result


@router.get("/runs", response_model=List[pkg_schemas.PackagingRunListItem], summary="패키징 런 목록 조회")
async def read_packaging_runs(
    batch_id: Optional[int] = Query(None),
    package_type: Optional[pkg_models.PackageType] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.packaging_run.get_runs(
        db, batch_id=batch_id, package_type=package_type, skip=skip, limit=limit
    )


@router.get("/runs/{run_id}", response_model=pkg_schemas.PackagingRunRead, summary="패키징 런 조회")
async def read_packaging_run(
    run_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.packaging_run.get_or_404(db, run_id)


@router.put("/runs/{run_id}/qa", response_model=pkg_schemas.PackagingRunRead, summary="패키징 QA 정보 수정")
async def update_packaging_qa(
    run_id: int,
    qa_in: pkg_schemas.PackagingQAUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_run = await pkg_crud.packaging_run.get_or_404(db, run_id)
    return await pkg_crud.packaging_run.update_qa(db, db_obj=db_run, obj_in=qa_in, changed_by=current_user.id)


# =============================================================================
# 2. 포장 용량 카탈로그 API
# =============================================================================
@router.get("/package-sizes", response_model=List[pkg_schemas.PackageSizeRead], summary="포장 용량 목록")
async def read_package_sizes(
    package_type: Optional[pkg_models.PackageType] = Query(None),
    active_only: bool = Query(True),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.package_size.get_sizes(db, package_type=package_type, active_only=active_only)


@router.post(
    "/package-sizes",
    response_model=pkg_schemas.PackageSizeRead,
    status_code=status.HTTP_201_CREATED,
    summary="포장 용량 등록 (관리자 전용)",
)
async def create_package_size(
    size_in: pkg_schemas.PackageSizeCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    return await pkg_crud.package_size.create(db, obj_in=size_in, changed_by=current_user.id)


# =============================================================================
# 3. 케그 API
# =============================================================================
@router.post("/kegs", response_model=pkg_schemas.KegRead, status_code=status.HTTP_201_CREATED, summary="케그 등록")
async def create_keg(
    keg_in: pkg_schemas.KegCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg.create(db, obj_in=keg_in, changed_by=current_user.id)


@router.get("/kegs", response_model=List[pkg_schemas.KegRead], summary="케그 목록 조회")
async def read_kegs(
    keg_status: Optional[pkg_models.KegStatus] = Query(None, alias="status"),
    keg_type: Optional[pkg_models.KegType] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg.get_kegs(db, keg_status=keg_status, keg_type=keg_type, skip=skip, limit=limit)


@router.get("/kegs/{keg_id}", response_model=pkg_schemas.KegRead, summary="케그 조회")
async def read_keg(
    keg_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg.get_or_404(db, keg_id)


@router.put("/kegs/{keg_id}", response_model=pkg_schemas.KegRead, summary="케그 수정")
async def update_keg(
    keg_id: int,
    keg_in: pkg_schemas.KegUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_keg = await pkg_crud.keg.get_or_404(db, keg_id)
    return await pkg_crud.keg.update(db, db_obj=db_keg, obj_in=keg_in, changed_by=current_user.id)


@router.delete("/kegs/{keg_id}", status_code=status.HTTP_204_NO_CONTENT, summary="케그 삭제 (관리자 전용)")
async def delete_keg(
    keg_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    """활성 충전(filled/distributed)이 있으면 삭제할 수 없습니다."""
    await pkg_crud.keg.remove(db, id=keg_id, changed_by=current_user.id)
    return None


@router.post("/kegs/{keg_id}/clean", response_model=pkg_schemas.KegActionResult, summary="케그 세척 완료")
async def clean_keg(
    keg_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg.clean(db, keg_id=keg_id, changed_by=current_user.id)


@router.get("/kegs/{keg_id}/fills", response_model=List[pkg_schemas.KegFillRead], summary="케그 충전 이력")
async def read_keg_fill_history(
    keg_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await pkg_crud.keg.get_or_404(db, keg_id)
    return await pkg_crud.keg.get_fills(db, keg_id=keg_id)


# =============================================================================
# 4. 케그 충전 API
# =============================================================================
@router.post(
    "/keg-fills",
    response_model=pkg_schemas.KegFillResult,
    status_code=status.HTTP_201_CREATED,
    summary="배치에서 케그 충전",
)
async def fill_kegs(
    fill_in: pkg_schemas.KegFillRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg_fill.fill_kegs(db, obj_in=fill_in, changed_by=current_user.id)


@router.get("/keg-fills", response_model=List[pkg_schemas.KegFillRead], summary="케그 충전 목록")
async def read_keg_fills(
    batch_id: Optional[int] = Query(None),
    fill_status: Optional[pkg_models.KegFillStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg_fill.get_fills(db, batch_id=batch_id, fill_status=fill_status, skip=skip, limit=limit)


@router.post("/keg-fills/{fill_id}/distribute", response_model=pkg_schemas.KegActionResult, summary="케그 출고")
async def distribute_keg(
    fill_id: int,
    distribute_in: pkg_schemas.KegDistributeRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg_fill.distribute(db, fill_id=fill_id, obj_in=distribute_in, changed_by=current_user.id)


@router.post("/keg-fills/{fill_id}/return", response_model=pkg_schemas.KegActionResult, summary="케그 회수")
async def return_keg(
    fill_id: int,
    return_in: pkg_schemas.KegReturnRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg_fill.return_keg(db, fill_id=fill_id, obj_in=return_in, changed_by=current_user.id)


@router.post("/keg-fills/{fill_id}/void", response_model=pkg_schemas.KegActionResult, summary="케그 충전 취소")
async def void_keg_fill(
    fill_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pkg_crud.keg_fill.void(db, fill_id=fill_id, changed_by=current_user.id)
