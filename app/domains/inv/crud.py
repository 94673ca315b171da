# app/domains/inv/crud.py

"""
'inv' 도메인 (PostgreSQL 'inv' 스키마)의 CRUD 및 재고 변동 로직을 담당하는 모듈입니다.

- 재고 수량은 항상 트랜잭션(inventory_transactions) 한 건과 함께 변경됩니다.
- 현재 수량은 0 미만, 예약 수량 미만으로 내려갈 수 없습니다.
"""

import logging
from typing import List, Optional, Dict, Any
from datetime import date, datetime, timedelta

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.domains.shared.services import record_audit
from app.domains.cel import models as cel_models
from app.utils.dates import utc_now
from . import models as inv_models
from . import schemas as inv_schemas

logger = logging.getLogger(__name__)

# 부호가 정해진 트랜잭션 유형
_POSITIVE_TYPES = {inv_models.TransactionType.PURCHASE}
_NEGATIVE_TYPES = {inv_models.TransactionType.SALE, inv_models.TransactionType.WASTE}


def _check_quantity_change(db_item: inv_models.InventoryItem, quantity_change: int) -> int:
    """변동 후 수량을 검사하고 반환합니다."""
    new_quantity = db_item.current_quantity + quantity_change
    if new_quantity < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient inventory. Current: {db_item.current_quantity}, Requested change: {quantity_change}",
        )
    if new_quantity < db_item.reserved_quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot reduce inventory below reserved level. "
                f"Reserved: {db_item.reserved_quantity}, New level would be: {new_quantity}"
            ),
        )
    return new_quantity


# =============================================================================
# 1. inv.inventory_items 테이블 CRUD
# =============================================================================
class CRUDInventoryItem(CRUDBase[inv_models.InventoryItem, inv_schemas.InventoryItemCreate, inv_schemas.InventoryItemUpdate]):
    def __init__(self):
        super().__init__(inv_models.InventoryItem)

    async def get_or_404(self, db: AsyncSession, item_id: int) -> inv_models.InventoryItem:
        db_item = await self.get(db, item_id)
        if not db_item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
        return db_item

    async def get_by_lot_code(self, db: AsyncSession, *, lot_code: str) -> Optional[inv_models.InventoryItem]:
        return await self.get_by_attribute(db, attribute="lot_code", value=lot_code, include_deleted=True)

    async def get_items(
        self,
        db: AsyncSession,
        *,
        batch_id: Optional[int] = None,
        package_type: Optional[str] = None,
        in_stock_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[inv_models.InventoryItem]:
        statement = select(self.model).where(*self._not_deleted())
        if batch_id is not None:
            statement = statement.where(self.model.batch_id == batch_id)
        if package_type:
            statement = statement.where(self.model.package_type == package_type)
        if in_stock_only:
            statement = statement.where(self.model.current_quantity > 0)
        statement = statement.order_by(self.model.created_at.desc(), self.model.id.desc()).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()

    async def add_item(
        self,
        db: AsyncSession,
        *,
        batch_id: int,
        lot_code: str,
        package_type: str,
        package_size_ml: int,
        quantity: int,
        packaging_run_id: Optional[int] = None,
        expiration_date: Optional[date] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> inv_models.InventoryItem:
        """
        재고 품목을 세션에 추가합니다. (커밋은 호출자가 담당)
        최초 수량이 있으면 'purchase' 트랜잭션을 함께 추가합니다.
        """
        db_item = inv_models.InventoryItem(
            packaging_run_id=packaging_run_id,
            batch_id=batch_id,
            lot_code=lot_code,
            package_type=package_type,
            package_size_ml=package_size_ml,
            current_quantity=quantity,
            reserved_quantity=0,
            expiration_date=expiration_date,
            location=location,
            notes=notes,
        )
        db.add(db_item)
        await db.flush()
        if quantity > 0:
            db.add(inv_models.InventoryTransaction(
                inventory_item_id=db_item.id,
                transaction_type=inv_models.TransactionType.PURCHASE,
                quantity_change=quantity,
                transaction_date=utc_now(),
                reason="Initial stock",
                created_by=created_by,
            ))
            await db.flush()
        return db_item

    async def create(
        self, db: AsyncSession, *, obj_in: inv_schemas.InventoryItemCreate, changed_by: Optional[int] = None
    ) -> inv_models.InventoryItem:
        if await self.get_by_lot_code(db, lot_code=obj_in.lot_code):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Inventory item with lot code '{obj_in.lot_code}' already exists",
            )
        db_batch = await db.get(cel_models.Batch, obj_in.batch_id)
        if not db_batch or db_batch.deleted_at is not None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")

        expiration = obj_in.expiration_date or (
            date.today() + timedelta(days=settings.INVENTORY_SHELF_LIFE_DAYS)
        )
        db_item = await self.add_item(
            db,
            batch_id=obj_in.batch_id,
            lot_code=obj_in.lot_code,
            package_type=obj_in.package_type,
            package_size_ml=obj_in.package_size_ml,
            quantity=obj_in.initial_quantity,
            expiration_date=expiration,
            location=obj_in.location,
            notes=obj_in.notes,
            created_by=changed_by,
        )
        record_audit(db, table_name="inventory_items", record_id=db_item.id, operation="INSERT",
                     new_data=db_item, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_item)
        return db_item

    async def remove(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> inv_models.InventoryItem:
        db_item = await self.get_or_404(db, id)
        if db_item.reserved_quantity > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete inventory item with reserved stock. Release reservations first.",
            )
        return await self.delete(db, id=id, changed_by=changed_by)

    # -------------------------------------------------------------------------
    # 재고 변동
    # -------------------------------------------------------------------------
    async def record_transaction(
        self,
        db: AsyncSession,
        *,
        item_id: int,
        obj_in: inv_schemas.InventoryTransactionCreate,
        changed_by: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        재고 트랜잭션을 기록하고 현재 수량을 변경합니다.
        - purchase는 양수, sale/waste는 음수만 허용합니다.
        """
        db_item = await self.get_or_404(db, item_id)
        if obj_in.quantity_change == 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity change cannot be zero")
        if obj_in.transaction_type in _POSITIVE_TYPES and obj_in.quantity_change < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Quantity change for {obj_in.transaction_type.value} must be positive",
            )
        if obj_in.transaction_type in _NEGATIVE_TYPES and obj_in.quantity_change > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Quantity change for {obj_in.transaction_type.value} must be negative",
            )

        old_quantity = db_item.current_quantity
        db_item.current_quantity = _check_quantity_change(db_item, obj_in.quantity_change)
        db_txn = inv_models.InventoryTransaction(
            inventory_item_id=db_item.id,
            transaction_type=obj_in.transaction_type,
            quantity_change=obj_in.quantity_change,
            transaction_date=obj_in.transaction_date or utc_now(),
            reason=obj_in.reason,
            notes=obj_in.notes,
            created_by=changed_by,
        )
        db.add(db_item)
        db.add(db_txn)
        record_audit(db, table_name="inventory_items", record_id=db_item.id, operation="UPDATE",
                     old_data={"current_quantity": old_quantity},
                     new_data={"current_quantity": db_item.current_quantity},
                     changed_by=changed_by, reason=f"{obj_in.transaction_type.value} transaction")
        await db.commit()
        await db.refresh(db_item)
        await db.refresh(db_txn)
        return {
            "inventory_item": db_item,
            "transaction": db_txn,
            "message": f"Inventory updated: {old_quantity} -> {db_item.current_quantity}",
        }

    async def reserve(
        self, db: AsyncSession, *, item_id: int, quantity: int, changed_by: Optional[int] = None
    ) -> inv_models.InventoryItem:
        db_item = await self.get_or_404(db, item_id)
        available = db_item.current_quantity - db_item.reserved_quantity
        if quantity > available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient available inventory to reserve. Available: {available}, Requested: {quantity}",
            )
        old_reserved = db_item.reserved_quantity
        db_item.reserved_quantity += quantity
        db.add(db_item)
        record_audit(db, table_name="inventory_items", record_id=db_item.id, operation="UPDATE",
                     old_data={"reserved_quantity": old_reserved},
                     new_data={"reserved_quantity": db_item.reserved_quantity},
                     changed_by=changed_by, reason="reserve")
        await db.commit()
        await db.refresh(db_item)
        return db_item

    async def release(
        self, db: AsyncSession, *, item_id: int, quantity: int, changed_by: Optional[int] = None
    ) -> inv_models.InventoryItem:
        db_item = await self.get_or_404(db, item_id)
        if quantity > db_item.reserved_quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot release more than reserved. Reserved: {db_item.reserved_quantity}, Requested: {quantity}",
            )
        old_reserved = db_item.reserved_quantity
        db_item.reserved_quantity -= quantity
        db.add(db_item)
        record_audit(db, table_name="inventory_items", record_id=db_item.id, operation="UPDATE",
                     old_data={"reserved_quantity": old_reserved},
                     new_data={"reserved_quantity": db_item.reserved_quantity},
                     changed_by=changed_by, reason="release")
        await db.commit()
        await db.refresh(db_item)
        return db_item

    # -------------------------------------------------------------------------
    # 재고 조회
    # -------------------------------------------------------------------------
    async def check_stock_level(
        self, db: AsyncSession, *, item_id: int, minimum_level: Optional[int] = None
    ) -> Dict[str, Any]:
        db_item = await self.get_or_404(db, item_id)
        threshold = settings.LOW_STOCK_THRESHOLD if minimum_level is None else minimum_level
        available = db_item.current_quantity - db_item.reserved_quantity
        return {
            "inventory_item_id": db_item.id,
            "lot_code": db_item.lot_code,
            "current_quantity": db_item.current_quantity,
            "reserved_quantity": db_item.reserved_quantity,
            "available_quantity": available,
            "minimum_level": threshold,
            "is_low_stock": available <= threshold,
        }

    async def get_low_stock(self, db: AsyncSession, *, threshold: Optional[int] = None) -> List[inv_models.InventoryItem]:
        """가용 수량(현재 - 예약)이 기준 이하인 재고 품목 목록"""
        limit_level = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        statement = (
            select(self.model)
            .where(
                *self._not_deleted(),
                (self.model.current_quantity - self.model.reserved_quantity) <= limit_level,
            )
            .order_by(self.model.current_quantity)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_transactions(
        self,
        db: AsyncSession,
        *,
        item_id: int,
        transaction_type: Optional[inv_models.TransactionType] = None,
        limit: int = 100,
    ) -> List[inv_models.InventoryTransaction]:
        statement = select(inv_models.InventoryTransaction).where(
            inv_models.InventoryTransaction.inventory_item_id == item_id
        )
        if transaction_type is not None:
            statement = statement.where(inv_models.InventoryTransaction.transaction_type == transaction_type)
        statement = statement.order_by(
            inv_models.InventoryTransaction.transaction_date.desc(), inv_models.InventoryTransaction.id.desc()
        ).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_history(self, db: AsyncSession, *, item_id: int) -> Dict[str, Any]:
        db_item = await self.get_or_404(db, item_id)
        transactions = await self.get_transactions(db, item_id=item_id, limit=1000)
        return {"item": db_item, "transactions": transactions}

    async def get_transaction_summary(
        self,
        db: AsyncSession,
        *,
        item_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """유형별 수량 변동 합계 (판매는 절대값)"""
        await self.get_or_404(db, item_id)
        txn = inv_models.InventoryTransaction
        statement = (
            select(txn.transaction_type, func.coalesce(func.sum(txn.quantity_change), 0))
            .where(txn.inventory_item_id == item_id)
            .group_by(txn.transaction_type)
        )
        if start_date is not None:
            statement = statement.where(txn.transaction_date >= start_date)
        if end_date is not None:
            statement = statement.where(txn.transaction_date <= end_date)

        totals = {inv_models.TransactionType(t): int(total) for t, total in (await db.execute(statement)).all()}
        T = inv_models.TransactionType
        return {
            "inventory_item_id": item_id,
            "total_purchases": totals.get(T.PURCHASE, 0),
            "total_sales": abs(totals.get(T.SALE, 0)),
            "total_adjustments": totals.get(T.ADJUSTMENT, 0),
            "total_waste": abs(totals.get(T.WASTE, 0)),
            "total_transfers": totals.get(T.TRANSFER, 0),
            "net_quantity_change": sum(totals.values()),
        }


# =============================================================================
# 2. inv.sales_channels 테이블 CRUD
# =============================================================================
class CRUDSalesChannel(CRUDBase[inv_models.SalesChannel, inv_schemas.SalesChannelCreate, inv_schemas.SalesChannelUpdate]):
    def __init__(self):
        super().__init__(inv_models.SalesChannel)

    async def get_channels(self, db: AsyncSession, *, active_only: bool = False) -> List[inv_models.SalesChannel]:
        statement = select(self.model)
        if active_only:
            statement = statement.where(self.model.is_active.is_(True))
        statement = statement.order_by(self.model.sort_order, self.model.name)
        result = await db.execute(statement)
        return result.scalars().all()

    async def create(
        self, db: AsyncSession, *, obj_in: inv_schemas.SalesChannelCreate, changed_by: Optional[int] = None
    ) -> inv_models.SalesChannel:
        if await self.get_by_attribute(db, attribute="code", value=obj_in.code):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Sales channel '{obj_in.code}' already exists",
            )
        return await super().create(db, obj_in=obj_in, changed_by=changed_by)


# =============================================================================
# 3. inv.inventory_distributions 테이블 CRUD
# =============================================================================
class CRUDDistribution(CRUDBase[inv_models.InventoryDistribution, inv_schemas.DistributionCreate, inv_schemas.DistributionCreate]):
    def __init__(self):
        super().__init__(inv_models.InventoryDistribution)

    async def distribute(
        self,
        db: AsyncSession,
        *,
        item_id: int,
        obj_in: inv_schemas.DistributionCreate,
        changed_by: Optional[int] = None,
    ) -> inv_models.InventoryDistribution:
        """
        재고를 판매 채널로 출고(판매)합니다.
        현재 수량을 줄이고 'sale' 트랜잭션을 함께 기록합니다.
        """
        db_item = await inventory_item.get_or_404(db, item_id)
        if obj_in.sales_channel_id is not None:
            db_channel = await sales_channel.get(db, obj_in.sales_channel_id)
            if not db_channel:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sales channel not found")
            if not db_channel.is_active:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sales channel is not active")

        old_quantity = db_item.current_quantity
        db_item.current_quantity = _check_quantity_change(db_item, -obj_in.quantity)
        distributed_at = obj_in.distributed_at or utc_now()

        db_txn = inv_models.InventoryTransaction(
            inventory_item_id=db_item.id,
            transaction_type=inv_models.TransactionType.SALE,
            quantity_change=-obj_in.quantity,
            transaction_date=distributed_at,
            reason="Distribution",
            notes=obj_in.notes,
            created_by=changed_by,
        )
        db.add(db_item)
        db.add(db_txn)
        await db.flush()

        db_obj = inv_models.InventoryDistribution(
            inventory_item_id=db_item.id,
            sales_channel_id=obj_in.sales_channel_id,
            transaction_id=db_txn.id,
            quantity=obj_in.quantity,
            price_per_unit=obj_in.price_per_unit,
            total_revenue=round(obj_in.quantity * obj_in.price_per_unit, 2),
            distribution_location=obj_in.distribution_location,
            distributed_at=distributed_at,
            notes=obj_in.notes,
            distributed_by=changed_by,
        )
        db.add(db_obj)
        await db.flush()
        record_audit(db, table_name="inventory_items", record_id=db_item.id, operation="UPDATE",
                     old_data={"current_quantity": old_quantity},
                     new_data={"current_quantity": db_item.current_quantity},
                     changed_by=changed_by, reason="Distribution")
        record_audit(db, table_name="inventory_distributions", record_id=db_obj.id, operation="INSERT",
                     new_data=db_obj, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        logger.info(f"Distributed {obj_in.quantity} units of {db_item.lot_code}")
        return db_obj

    async def get_distributions(
        self,
        db: AsyncSession,
        *,
        item_id: Optional[int] = None,
        sales_channel_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[inv_models.InventoryDistribution]:
        return await self.get_filtered(
            db,
            filters={"inventory_item_id": item_id, "sales_channel_id": sales_channel_id},
            date_range_field="distributed_at",
            start_date=start_date,
            end_date=end_date,
            order_by_field="distributed_at",
            skip=skip,
            limit=limit,
        )


#  각 CRUD 클래스의 인스턴스 생성
inventory_item = CRUDInventoryItem()
sales_channel = CRUDSalesChannel()
distribution = CRUDDistribution()
