# app/domains/inv/routers.py

"""
'inv' 도메인 (완제품 재고 및 판매)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional
from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.usr.models import User

from . import crud as inv_crud
from . import models as inv_models
from . import schemas as inv_schemas

router = APIRouter(
    tags=["Inventory & Sales (재고 및 판매)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 재고 품목 (InventoryItem) 관리 엔드포인트
# =============================================================================
@router.post(
    "/items",
    response_model=inv_schemas.InventoryItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="재고 품목 생성",
)
async def create_inventory_item(
    item_in: inv_schemas.InventoryItemCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.create(db, obj_in=item_in, changed_by=current_user.id)


@router.get("/items", response_model=List[inv_schemas.InventoryItemRead], summary="재고 품목 목록 조회")
async def read_inventory_items(
    batch_id: Optional[int] = Query(None),
    package_type: Optional[str] = Query(None),
    in_stock_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.get_items(
        db, batch_id=batch_id, package_type=package_type, in_stock_only=in_stock_only, skip=skip, limit=limit
    )


@router.get("/items/low-stock", response_model=List[inv_schemas.InventoryItemRead], summary="재고 부족 품목 조회")
async def read_low_stock_items(
    threshold: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.get_low_stock(db, threshold=threshold)


@router.get("/items/{item_id}", response_model=inv_schemas.InventoryItemRead, summary="재고 품목 조회")
async def read_inventory_item(
    item_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.get_or_404(db, item_id)


@router.put("/items/{item_id}", response_model=inv_schemas.InventoryItemRead, summary="재고 품목 수정")
async def update_inventory_item(
    item_id: int,
    item_in: inv_schemas.InventoryItemUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    db_item = await inv_crud.inventory_item.get_or_404(db, item_id)
    return await inv_crud.inventory_item.update(db, db_obj=db_item, obj_in=item_in, changed_by=current_user.id)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT, summary="재고 품목 삭제 (관리자 전용)")
async def delete_inventory_item(
    item_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    await inv_crud.inventory_item.remove(db, id=item_id, changed_by=current_user.id)
    return None


# =============================================================================
# 2. 재고 변동 / 예약 엔드포인트
# =============================================================================
@router.post(
    "/items/{item_id}/transactions",
    response_model=inv_schemas.TransactionResult,
    status_code=status.HTTP_201_CREATED,
    summary="재고 트랜잭션 기록",
)
async def create_inventory_transaction(
    item_id: int,
    transaction_in: inv_schemas.InventoryTransactionCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    재고 수량 변동을 기록합니다.
    - **purchase**: 양수
    - **sale / waste**: 음수
    - **adjustment / transfer**: 부호 제한 없음 (0 제외)
    """
    return await inv_crud.inventory_item.record_transaction(
        db, item_id=item_id, obj_in=transaction_in, changed_by=current_user.id
    )


@router.get(
    "/items/{item_id}/transactions",
    response_model=List[inv_schemas.InventoryTransactionRead],
    summary="재고 트랜잭션 목록 조회",
)
async def read_inventory_transactions(
    item_id: int,
    transaction_type: Optional[inv_models.TransactionType] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    await inv_crud.inventory_item.get_or_404(db, item_id)
    return await inv_crud.inventory_item.get_transactions(
        db, item_id=item_id, transaction_type=transaction_type, limit=limit
    )


@router.get(
    "/items/{item_id}/transactions/summary",
    response_model=inv_schemas.TransactionSummaryRead,
    summary="유형별 트랜잭션 합계",
)
async def read_transaction_summary(
    item_id: int,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.get_transaction_summary(
        db, item_id=item_id, start_date=start_date, end_date=end_date
    )


@router.get("/items/{item_id}/history", response_model=inv_schemas.InventoryHistoryRead, summary="재고 이력 조회")
async def read_inventory_history(
    item_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.get_history(db, item_id=item_id)


@router.get("/items/{item_id}/stock-level", response_model=inv_schemas.StockLevelRead, summary="재고 수준 점검")
async def read_stock_level(
    item_id: int,
    minimum_level: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.check_stock_level(db, item_id=item_id, minimum_level=minimum_level)


@router.post("/items/{item_id}/reserve", response_model=inv_schemas.InventoryItemRead, summary="재고 예약")
async def reserve_inventory(
    item_id: int,
    reservation_in: inv_schemas.ReservationRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.reserve(
        db, item_id=item_id, quantity=reservation_in.quantity, changed_by=current_user.id
    )


@router.post("/items/{item_id}/release", response_model=inv_schemas.InventoryItemRead, summary="재고 예약 해제")
async def release_inventory(
    item_id: int,
    reservation_in: inv_schemas.ReservationRequest,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.inventory_item.release(
        db, item_id=item_id, quantity=reservation_in.quantity, changed_by=current_user.id
    )


# =============================================================================
# 3. 판매 채널 (SalesChannel) 엔드포인트
# =============================================================================
@router.post(
    "/sales-channels",
    response_model=inv_schemas.SalesChannelRead,
    status_code=status.HTTP_201_CREATED,
    summary="판매 채널 생성 (관리자 전용)",
)
async def create_sales_channel(
    channel_in: inv_schemas.SalesChannelCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    return await inv_crud.sales_channel.create(db, obj_in=channel_in, changed_by=current_user.id)


@router.get("/sales-channels", response_model=List[inv_schemas.SalesChannelRead], summary="판매 채널 목록 조회")
async def read_sales_channels(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.sales_channel.get_channels(db, active_only=active_only)


@router.put(
    "/sales-channels/{channel_id}",
    response_model=inv_schemas.SalesChannelRead,
    summary="판매 채널 수정 (관리자 전용)",
)
async def update_sales_channel(
    channel_id: int,
    channel_in: inv_schemas.SalesChannelUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    db_channel = await inv_crud.sales_channel.get(db, channel_id)
    if not db_channel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sales channel not found")
    return await inv_crud.sales_channel.update(db, db_obj=db_channel, obj_in=channel_in, changed_by=current_user.id)


@router.delete(
    "/sales-channels/{channel_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="판매 채널 삭제 (관리자 전용)",
)
async def delete_sales_channel(
    channel_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_admin_user),
):
    deleted = await inv_crud.sales_channel.delete(db, id=channel_id, changed_by=current_user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sales channel not found")
    return None


# =============================================================================
# 4. 출고 (InventoryDistribution) 엔드포인트
# =============================================================================
@router.post(
    "/items/{item_id}/distributions",
    response_model=inv_schemas.DistributionRead,
    status_code=status.HTTP_201_CREATED,
    summary="재고 출고 (판매)",
)
async def create_distribution(
    item_id: int,
    distribution_in: inv_schemas.DistributionCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.distribution.distribute(
        db, item_id=item_id, obj_in=distribution_in, changed_by=current_user.id
    )


@router.get("/distributions", response_model=List[inv_schemas.DistributionRead], summary="출고 목록 조회")
async def read_distributions(
    item_id: Optional[int] = Query(None),
    sales_channel_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    return await inv_crud.distribution.get_distributions(
        db,
        item_id=item_id,
        sales_channel_id=sales_channel_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
