# app/domains/pur/routers.py

"""
'pur' 도메인 (구매 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, status, HTTPException, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as pur_crud
from . import models as pur_models
from . import schemas as pur_schemas

router = APIRouter(
    tags=["Purchasing (구매 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 구매 (Purchase) API
# =============================================================================
@router.post(
    "/purchases",
    response_model=pur_schemas.PurchaseWithItemsRead,
    status_code=status.HTTP_201_CREATED,
    summary="구매 등록 (품목 포함)",
)
async def create_purchase(
    purchase_in: pur_schemas.PurchaseCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    공급업체로부터의 구매를 품목과 함께 등록합니다.
    - 원료 사과(basefruit)는 무게 단위와 품종이 필요합니다.
    - 주스(juice)는 부피 단위가 필요합니다.
    - 송장 번호를 생략하면 `INV-YYYYMMDD-<업체ID>-<순번>` 형식으로 자동 생성됩니다.
    """
    return await pur_crud.purchase.create_with_items(db, obj_in=purchase_in, changed_by=current_user.id)


@router.get("/purchases", response_model=List[pur_schemas.PurchaseRead], summary="구매 목록 조회")
async def read_purchases(
    vendor_id: Optional[int] = Query(None, description="공급업체 ID"),
    item_type: Optional[pur_models.PurchaseItemType] = Query(None, description="품목 유형"),
    start_date: Optional[date] = Query(None, description="구매일 시작 (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="구매일 종료 (YYYY-MM-DD)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pur_crud.purchase.get_purchases(
        db,
        vendor_id=vendor_id,
        item_type=item_type,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/purchases/available-fruit",
    response_model=List[pur_schemas.AvailableFruitRead],
    summary="착즙 가능한 원료 사과 목록",
)
async def read_available_basefruit(
    vendor_id: Optional[int] = None,
    fruit_variety_id: Optional[int] = None,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pur_crud.purchase_item.get_available_basefruit(
        db, vendor_id=vendor_id, fruit_variety_id=fruit_variety_id
    )


@router.get("/purchases/{purchase_id}", response_model=pur_schemas.PurchaseWithItemsRead, summary="구매 상세 조회")
async def read_purchase(
    purchase_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_purchase = await pur_crud.purchase.get_with_items(db, purchase_id=purchase_id)
    if not db_purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
    return db_purchase


@router.put("/purchases/{purchase_id}", response_model=pur_schemas.PurchaseRead, summary="구매 헤더 수정")
async def update_purchase(
    purchase_id: int,
    purchase_in: pur_schemas.PurchaseUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_purchase = await pur_crud.purchase.get(db, purchase_id)
    if not db_purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
    if purchase_in.invoice_number is not None:
        db_purchase.auto_generated_invoice = False
    return await pur_crud.purchase.update(db, db_obj=db_purchase, obj_in=purchase_in, changed_by=current_user.id)


@router.delete("/purchases/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT, summary="구매 삭제")
async def delete_purchase(
    purchase_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    """
    구매를 소프트 삭제합니다. 착즙에 사용된 품목이 있으면 삭제할 수 없습니다. (관리자 권한 필요)
    """
    await pur_crud.purchase.remove(db, id=purchase_id, changed_by=current_user.id)
    return None


# =============================================================================
# 2. 구매 품목 (PurchaseItem) API
# =============================================================================
@router.post(
    "/purchase-items/{item_id}/deplete",
    response_model=pur_schemas.PurchaseItemRead,
    summary="구매 품목 소진 처리",
)
async def deplete_purchase_item(
    item_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pur_crud.purchase_item.set_depleted(db, item_id=item_id, depleted=True, changed_by=current_user.id)


@router.post(
    "/purchase-items/{item_id}/undeplete",
    response_model=pur_schemas.PurchaseItemRead,
    summary="구매 품목 소진 취소",
)
async def undeplete_purchase_item(
    item_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await pur_crud.purchase_item.set_depleted(db, item_id=item_id, depleted=False, changed_by=current_user.id)
