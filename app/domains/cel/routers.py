# app/domains/cel/routers.py

"""
'cel' 도메인 (탱크 및 배치 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, status, HTTPException, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as cel_crud
from . import models as cel_models
from . import schemas as cel_schemas

router = APIRouter(
    tags=["Cellar Management (셀러 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 탱크 (Vessel) API
# =============================================================================
@router.post(
    "/vessels",
    response_model=cel_schemas.VesselRead,
    status_code=status.HTTP_201_CREATED,
    summary="새 탱크 등록",
)
async def create_vessel(
    vessel_in: cel_schemas.VesselCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    새 탱크를 등록합니다. 용량은 capacity_unit 기준으로 입력하며 L로 변환되어 저장됩니다.
    """
    return await cel_crud.vessel.create(db, obj_in=vessel_in, changed_by=current_user.id)


@router.get("/vessels", response_model=List[cel_schemas.VesselRead], summary="탱크 목록 조회")
async def read_vessels(
    vessel_status: Optional[cel_models.VesselStatus] = Query(None, alias="status"),
    vessel_type: Optional[cel_models.VesselType] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.vessel.get_vessels(
        db, vessel_status=vessel_status, vessel_type=vessel_type, skip=skip, limit=limit
    )


@router.get("/vessels/liquid-map", response_model=cel_schemas.LiquidMapRead, summary="셀러 액체 현황")
async def read_liquid_map(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """모든 탱크의 현재 배치, 부피, 충전율(%)을 조회합니다."""
    return await cel_crud.vessel.get_liquid_map(db)


@router.post("/vessels/transfer", response_model=cel_schemas.VesselTransferResult, summary="탱크 간 이송")
async def transfer_between_vessels(
    transfer_in: cel_schemas.VesselTransferCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    원 탱크의 배치를 도착 탱크로 옮깁니다.
    - 도착 탱크에 배치가 있으면 블렌드(병합)합니다.
    - 원 탱크에 잔량이 남으면 'Remaining' 배치가 생성됩니다.
    """
    return await cel_crud.vessel.transfer(db, obj_in=transfer_in, changed_by=current_user.id)


@router.get("/vessels/transfers", response_model=List[cel_schemas.BatchTransferRead], summary="이송 이력 조회")
async def read_transfer_history(
    vessel_id: Optional[int] = Query(None),
    batch_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.vessel.get_transfer_history(
        db, vessel_id=vessel_id, batch_id=batch_id, skip=skip, limit=limit
    )


@router.post("/vessels/juice-transfer", response_model=cel_schemas.JuiceTransferResult, summary="구매 주스 탱크 이송")
async def transfer_juice_to_vessel(
    juice_in: cel_schemas.JuiceTransferCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.transfer_juice_to_tank(db, obj_in=juice_in, changed_by=current_user.id)


@router.get("/vessels/{vessel_id}", response_model=cel_schemas.VesselRead, summary="특정 탱크 조회")
async def read_vessel(
    vessel_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_vessel = await cel_crud.vessel.get(db, vessel_id)
    if not db_vessel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
    return db_vessel


@router.get("/vessels/{vessel_id}/batch", response_model=Optional[cel_schemas.BatchRead], summary="탱크의 현재 배치")
async def read_vessel_current_batch(
    vessel_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    if not await cel_crud.vessel.get(db, vessel_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
    return await cel_crud.vessel.get_current_batch(db, vessel_id=vessel_id)


@router.put("/vessels/{vessel_id}", response_model=cel_schemas.VesselRead, summary="탱크 정보 수정")
async def update_vessel(
    vessel_id: int,
    vessel_in: cel_schemas.VesselUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_vessel = await cel_crud.vessel.get(db, vessel_id)
    if not db_vessel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
    return await cel_crud.vessel.update(db, db_obj=db_vessel, obj_in=vessel_in, changed_by=current_user.id)


@router.put("/vessels/{vessel_id}/status", response_model=cel_schemas.VesselRead, summary="탱크 상태 변경")
async def update_vessel_status(
    vessel_id: int,
    status_in: cel_schemas.VesselStatusUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_vessel = await cel_crud.vessel.get(db, vessel_id)
    if not db_vessel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
    return await cel_crud.vessel.set_status(
        db, db_obj=db_vessel, new_status=status_in.status, changed_by=current_user.id
    )


@router.post("/vessels/{vessel_id}/clean", response_model=cel_schemas.VesselRead, summary="탱크 세척 완료")
async def clean_vessel(
    vessel_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_vessel = await cel_crud.vessel.get(db, vessel_id)
    if not db_vessel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
    return await cel_crud.vessel.clean(db, db_obj=db_vessel, changed_by=current_user.id)


@router.delete("/vessels/{vessel_id}", status_code=status.HTTP_204_NO_CONTENT, summary="탱크 삭제 (관리자)")
async def delete_vessel(
    vessel_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    """배치가 들어 있는 탱크는 삭제할 수 없습니다."""
    await cel_crud.vessel.remove(db, id=vessel_id, changed_by=current_user.id)
    return None


# =============================================================================
# 2. 배치 (Batch) API
# =============================================================================
@router.get("/batches", response_model=List[cel_schemas.BatchRead], summary="배치 목록 조회")
async def read_batches(
    batch_status: Optional[cel_models.BatchStatus] = Query(None, alias="status"),
    vessel_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.get_batches(
        db, batch_status=batch_status, vessel_id=vessel_id, skip=skip, limit=limit
    )


@router.get("/batches/{batch_id}", response_model=cel_schemas.BatchRead, summary="특정 배치 조회")
async def read_batch(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.get_or_404(db, batch_id)


@router.put("/batches/{batch_id}", response_model=cel_schemas.BatchRead, summary="배치 정보 수정")
async def update_batch(
    batch_id: int,
    batch_in: cel_schemas.BatchUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_batch = await cel_crud.batch.get_or_404(db, batch_id)
    return await cel_crud.batch.update(db, db_obj=db_batch, obj_in=batch_in, changed_by=current_user.id)


@router.delete("/batches/{batch_id}", status_code=status.HTTP_204_NO_CONTENT, summary="배치 삭제 (관리자)")
async def delete_batch(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    await cel_crud.batch.remove(db, id=batch_id, changed_by=current_user.id)
    return None


@router.get(
    "/batches/{batch_id}/composition",
    response_model=cel_schemas.BatchCompositionSummary,
    summary="배치 구성 조회",
)
async def read_batch_composition(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """배치를 구성하는 원료별 주스 부피, 구성비(%), 원료비를 조회합니다."""
    return await cel_crud.batch.get_composition(db, batch_id=batch_id)


# --- 측정 ---
@router.post(
    "/batches/{batch_id}/measurements",
    response_model=cel_schemas.BatchMeasurementRead,
    status_code=status.HTTP_201_CREATED,
    summary="배치 측정값 기록",
)
async def create_batch_measurement(
    batch_id: int,
    measurement_in: cel_schemas.BatchMeasurementCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.add_measurement(db, batch_id=batch_id, obj_in=measurement_in)


@router.get(
    "/batches/{batch_id}/measurements",
    response_model=List[cel_schemas.BatchMeasurementRead],
    summary="배치 측정값 목록",
)
async def read_batch_measurements(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.get_measurements(db, batch_id=batch_id)


@router.put(
    "/measurements/{measurement_id}",
    response_model=cel_schemas.BatchMeasurementRead,
    summary="배치 측정값 수정",
)
async def update_batch_measurement(
    measurement_id: int,
    measurement_in: cel_schemas.BatchMeasurementUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.update_measurement(db, measurement_id=measurement_id, obj_in=measurement_in)


# --- 첨가물 ---
@router.post(
    "/batches/{batch_id}/additives",
    response_model=cel_schemas.BatchAdditiveRead,
    status_code=status.HTTP_201_CREATED,
    summary="배치 첨가물 기록",
)
async def create_batch_additive(
    batch_id: int,
    additive_in: cel_schemas.BatchAdditiveCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.add_additive(db, batch_id=batch_id, obj_in=additive_in)


@router.get(
    "/batches/{batch_id}/additives",
    response_model=List[cel_schemas.BatchAdditiveRead],
    summary="배치 첨가물 목록",
)
async def read_batch_additives(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.get_additives(db, batch_id=batch_id)


# --- 랙킹 / 여과 ---
@router.post("/batches/{batch_id}/rack", response_model=cel_schemas.BatchRackResult, summary="배치 랙킹")
async def rack_batch(
    batch_id: int,
    rack_in: cel_schemas.BatchRackCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    배치를 랙킹합니다.
    - **volume_to_rack_l**: 현재 부피보다 작으면 부분 랙킹 (도착 탱크에 새 배치 생성)
    - **destination_vessel_id**: 현재 탱크와 같으면 침전물 제거만 기록
    """
    return await cel_crud.batch.rack(db, batch_id=batch_id, obj_in=rack_in, changed_by=current_user.id)


@router.post(
    "/batches/{batch_id}/filter",
    response_model=cel_schemas.BatchFilterOperationRead,
    status_code=status.HTTP_201_CREATED,
    summary="배치 여과",
)
async def filter_batch(
    batch_id: int,
    filter_in: cel_schemas.BatchFilterCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.filter(db, batch_id=batch_id, obj_in=filter_in)


# --- 이력 ---
@router.get(
    "/batches/{batch_id}/merge-history",
    response_model=List[cel_schemas.BatchMergeHistoryRead],
    summary="배치 병합 이력",
)
async def read_batch_merge_history(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.get_merge_history(db, batch_id=batch_id)


@router.get(
    "/batches/{batch_id}/activity",
    response_model=List[cel_schemas.BatchActivityRead],
    summary="배치 작업 이력",
)
async def read_batch_activity(
    batch_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await cel_crud.batch.get_activity_history(db, batch_id=batch_id)
