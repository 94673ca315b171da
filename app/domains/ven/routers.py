# app/domains/ven/routers.py

"""
'ven' 도메인 (공급업체 및 과일 품종 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, status, HTTPException, Query
from sqlmodel.ext.asyncio.session import AsyncSession

# 핵심 의존성 (데이터베이스 세션, 사용자 인증 등)
from app.core import dependencies as deps

from app.domains.usr.models import User

from . import crud as ven_crud
from . import schemas as ven_schemas

# APIRouter 인스턴스 생성
router = APIRouter(
    tags=["Vendor Management (공급업체 관리)"],  # Swagger UI에 표시될 태그
    responses={404: {"description": "Not found"}},  # 이 라우터의 공통 응답 정의
)


# =============================================================================
# 1. 공급업체 (Vendor) API
# =============================================================================
@router.post(
    "/vendors",
    response_model=ven_schemas.VendorRead,
    status_code=status.HTTP_201_CREATED,
    summary="새 공급업체 생성",
)
async def create_vendor(
    vendor_in: ven_schemas.VendorCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    새로운 공급업체(과수원)를 등록합니다.
    - **name**: 업체명 (필수)
    - **contact_info**: 연락처 정보 (phone, email, address)
    """
    return await ven_crud.vendor.create(db, obj_in=vendor_in, changed_by=current_user.id)


@router.get("/vendors", response_model=List[ven_schemas.VendorRead], summary="공급업체 목록 조회")
async def read_vendors(
    search: Optional[str] = Query(None, description="업체명 검색어"),
    include_inactive: bool = Query(False, description="거래 중지 업체 포함 여부"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await ven_crud.vendor.get_vendors(
        db, search=search, include_inactive=include_inactive, skip=skip, limit=limit
    )


@router.get("/vendors/{vendor_id}", response_model=ven_schemas.VendorWithVarietiesRead, summary="특정 공급업체 조회")
async def read_vendor(
    vendor_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_vendor = await ven_crud.vendor.get_with_varieties(db, vendor_id=vendor_id)
    if not db_vendor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return db_vendor


@router.put("/vendors/{vendor_id}", response_model=ven_schemas.VendorRead, summary="공급업체 정보 수정")
async def update_vendor(
    vendor_id: int,
    vendor_in: ven_schemas.VendorUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_vendor = await ven_crud.vendor.get(db, vendor_id)
    if not db_vendor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return await ven_crud.vendor.update(db, db_obj=db_vendor, obj_in=vendor_in, changed_by=current_user.id)


@router.delete("/vendors/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT, summary="공급업체 삭제")
async def delete_vendor(
    vendor_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    """
    공급업체를 소프트 삭제합니다. 과거 구매 이력은 유지됩니다. (관리자 권한 필요)
    """
    deleted = await ven_crud.vendor.delete(db, id=vendor_id, changed_by=current_user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return None


@router.post("/vendors/{vendor_id}/restore", response_model=ven_schemas.VendorRead, summary="삭제된 공급업체 복원")
async def restore_vendor(
    vendor_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    restored = await ven_crud.vendor.restore(db, id=vendor_id, changed_by=current_user.id)
    if not restored:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return restored


# =============================================================================
# 2. 공급업체-품종 연결 (VendorVariety) API
# =============================================================================
@router.post(
    "/vendors/{vendor_id}/varieties",
    response_model=ven_schemas.VendorVarietyRead,
    status_code=status.HTTP_201_CREATED,
    summary="공급업체에 품종 연결",
)
async def attach_vendor_variety(
    vendor_id: int,
    link_in: ven_schemas.VendorVarietyCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await ven_crud.vendor_variety.attach(db, vendor_id=vendor_id, obj_in=link_in)


@router.get(
    "/vendors/{vendor_id}/varieties",
    response_model=List[ven_schemas.FruitVarietyRead],
    summary="공급업체의 품종 목록 조회",
)
async def read_vendor_varieties(
    vendor_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    if not await ven_crud.vendor.get(db, vendor_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
    return await ven_crud.vendor_variety.get_varieties_for_vendor(db, vendor_id=vendor_id)


@router.delete(
    "/vendors/{vendor_id}/varieties/{variety_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="공급업체-품종 연결 해제",
)
async def detach_vendor_variety(
    vendor_id: int,
    variety_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await ven_crud.vendor_variety.detach(db, vendor_id=vendor_id, variety_id=variety_id)
    return None


# =============================================================================
# 3. 과일 품종 (FruitVariety) API
# =============================================================================
@router.post(
    "/varieties",
    response_model=ven_schemas.FruitVarietyRead,
    status_code=status.HTTP_201_CREATED,
    summary="새 과일 품종 생성",
)
async def create_fruit_variety(
    variety_in: ven_schemas.FruitVarietyCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    새로운 과일 품종을 등록합니다. 같은 이름의 품종이 있으면 409를 반환합니다.
    """
    return await ven_crud.fruit_variety.create(db, obj_in=variety_in, changed_by=current_user.id)


@router.get("/varieties", response_model=List[ven_schemas.FruitVarietyRead], summary="과일 품종 목록 조회")
async def read_fruit_varieties(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await ven_crud.fruit_variety.get_multi(db, skip=skip, limit=limit)


@router.get("/varieties/{variety_id}", response_model=ven_schemas.FruitVarietyRead, summary="특정 과일 품종 조회")
async def read_fruit_variety(
    variety_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_variety = await ven_crud.fruit_variety.get(db, variety_id)
    if not db_variety:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fruit variety not found")
    return db_variety


@router.get(
    "/varieties/{variety_id}/vendors",
    response_model=List[ven_schemas.VendorRead],
    summary="품종을 공급하는 공급업체 목록 조회",
)
async def read_variety_vendors(
    variety_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    if not await ven_crud.fruit_variety.get(db, variety_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fruit variety not found")
    return await ven_crud.vendor_variety.get_vendors_for_variety(db, variety_id=variety_id)


@router.put("/varieties/{variety_id}", response_model=ven_schemas.FruitVarietyRead, summary="과일 품종 수정")
async def update_fruit_variety(
    variety_id: int,
    variety_in: ven_schemas.FruitVarietyUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_variety = await ven_crud.fruit_variety.get(db, variety_id)
    if not db_variety:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fruit variety not found")
    return await ven_crud.fruit_variety.update(db, db_obj=db_variety, obj_in=variety_in, changed_by=current_user.id)


@router.delete("/varieties/{variety_id}", status_code=status.HTTP_204_NO_CONTENT, summary="과일 품종 삭제")
async def delete_fruit_variety(
    variety_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    deleted = await ven_crud.fruit_variety.delete(db, id=variety_id, changed_by=current_user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fruit variety not found")
    return None
