# app/domains/pur/crud.py

"""
'pur' 도메인 (PostgreSQL 'pur' 스키마)의 CRUD 작업을 담당하는 모듈입니다.

구매 등록 시 공급업체/수량/단위 규칙을 검사하고, 입력 단위를 표준 단위(kg, L)로
환산하여 함께 저장합니다.
"""

import logging
from typing import List, Optional, Dict, Any
from datetime import date, datetime, UTC

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from app.core.crud_base import CRUDBase
from app.domains.shared.services import record_audit
from app.domains.ven import crud as ven_crud
from app.domains.prs import models as prs_models
from app.utils import units
from . import models as pur_models
from . import schemas as pur_schemas

logger = logging.getLogger(__name__)


def _line_total(quantity: float, price_per_unit: Optional[float]) -> float:
    if not price_per_unit:
        return 0.0
    return round(quantity * price_per_unit, 2)


# =============================================================================
# 1. pur.purchases 테이블 CRUD
# =============================================================================
class CRUDPurchase(CRUDBase[pur_models.Purchase, pur_schemas.PurchaseCreate, pur_schemas.PurchaseUpdate]):
    def __init__(self):
        super().__init__(pur_models.Purchase)

    async def get_with_items(self, db: AsyncSession, *, purchase_id: int) -> Optional[pur_models.Purchase]:
        statement = (
            select(self.model)
            .where(self.model.id == purchase_id, *self._not_deleted())
            .options(selectinload(self.model.items))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def get_purchases(
        self,
        db: AsyncSession,
        *,
        vendor_id: Optional[int] = None,
        item_type: Optional[pur_models.PurchaseItemType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[pur_models.Purchase]:
        """
        구매 목록을 구매일 최신순으로 조회합니다.
        item_type이 주어지면 해당 유형의 품목을 포함한 구매만 반환합니다.
        """
        statement = select(self.model).where(*self._not_deleted())
        if vendor_id is not None:
            statement = statement.where(self.model.vendor_id == vendor_id)
        if start_date is not None:
            statement = statement.where(self.model.purchase_date >= start_date)
        if end_date is not None:
            statement = statement.where(self.model.purchase_date <= end_date)
        if item_type is not None:
            item_subquery = select(pur_models.PurchaseItem.purchase_id).where(
                pur_models.PurchaseItem.item_type == item_type
            )
            statement = statement.where(self.model.id.in_(item_subquery))
        statement = statement.order_by(self.model.purchase_date.desc(), self.model.id.desc()).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()

    async def _next_invoice_number(self, db: AsyncSession, *, vendor_id: int, purchase_date: date) -> str:
        """
        자동 송장 번호: INV-YYYYMMDD-<공급업체ID>-<NNN>
        같은 업체/같은 날짜의 자동 생성 번호 중 가장 큰 순번 + 1을 사용합니다.
        """
        prefix = f"INV-{purchase_date:%Y%m%d}-{vendor_id}-"
        statement = select(self.model.invoice_number).where(
            self.model.vendor_id == vendor_id,
            self.model.auto_generated_invoice == True,  # noqa: E712
            self.model.invoice_number.like(f"{prefix}%"),
        )
        result = await db.execute(statement)
        sequence = 0
        for invoice_number in result.scalars().all():
            tail = invoice_number.rsplit("-", 1)[-1]
            if tail.isdigit():
                sequence = max(sequence, int(tail))
        return f"{prefix}{sequence + 1:03d}"

    def _build_item(self, item_in: pur_schemas.PurchaseItemCreate) -> Dict[str, Any]:
        """품목 입력을 검사하고 표준 단위 환산값을 계산합니다."""
        if item_in.quantity is None or item_in.quantity <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity must be greater than 0")

        quantity_kg = None
        quantity_l = None
        if units.is_weight_unit(item_in.unit):
            quantity_kg = round(units.to_kg(item_in.quantity, item_in.unit), 3)
        elif units.is_volume_unit(item_in.unit):
            quantity_l = round(units.to_liters(item_in.quantity, item_in.unit), 3)

        if item_in.item_type == pur_models.PurchaseItemType.BASEFRUIT:
            if quantity_kg is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Base fruit must use a weight unit (kg, lb, bushel), got '{item_in.unit}'",
                )
            if item_in.fruit_variety_id is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Base fruit requires a fruit variety")
        elif item_in.item_type == pur_models.PurchaseItemType.JUICE and quantity_l is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Juice must use a volume unit (L, gal, mL), got '{item_in.unit}'",
            )

        return {
            **item_in.model_dump(exclude={"price_per_unit"}),
            "price_per_unit": item_in.price_per_unit or 0.0,
            "total_cost": _line_total(item_in.quantity, item_in.price_per_unit),
            "quantity_kg": quantity_kg,
            "quantity_l": quantity_l,
        }

    async def create_with_items(
        self, db: AsyncSession, *, obj_in: pur_schemas.PurchaseCreate, changed_by: Optional[int] = None
    ) -> pur_models.Purchase:
        """
        구매와 품목을 한 트랜잭션으로 등록합니다.
        모든 검사를 통과한 뒤에만 세션에 추가합니다.
        """
        db_vendor = await ven_crud.vendor.get(db, obj_in.vendor_id)
        if not db_vendor:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
        if not db_vendor.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Vendor is not active")

        item_rows = [self._build_item(item_in) for item_in in obj_in.items]
        for row in item_rows:
            if row["fruit_variety_id"] is not None and not await ven_crud.fruit_variety.get(db, row["fruit_variety_id"]):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fruit variety not found")

        invoice_number = obj_in.invoice_number.strip() if obj_in.invoice_number else None
        auto_generated = False
        if not invoice_number:
            invoice_number = await self._next_invoice_number(
                db, vendor_id=obj_in.vendor_id, purchase_date=obj_in.purchase_date
            )
            auto_generated = True

        db_purchase = pur_models.Purchase(
            vendor_id=obj_in.vendor_id,
            purchase_date=obj_in.purchase_date,
            invoice_number=invoice_number,
            auto_generated_invoice=auto_generated,
            total_cost=round(sum(row["total_cost"] for row in item_rows), 2),
            notes=obj_in.notes,
        )
        db.add(db_purchase)
        await db.flush()

        for row in item_rows:
            db.add(pur_models.PurchaseItem(purchase_id=db_purchase.id, **row))

        record_audit(db, table_name="purchases", record_id=db_purchase.id, operation="INSERT",
                     new_data=db_purchase, changed_by=changed_by, reason=f"Purchase created with {len(item_rows)} items")
        await db.commit()
        logger.info(f"Purchase {db_purchase.id} created ({invoice_number}, {len(item_rows)} items)")
        return await self.get_with_items(db, purchase_id=db_purchase.id)

    async def remove(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> pur_models.Purchase:
        """
        구매를 소프트 삭제합니다. 품목이 착즙 투입분(press load)에 사용된 경우 삭제할 수 없습니다.
        """
        db_purchase = await self.get(db, id)
        if not db_purchase:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")

        statement = (
            select(func.count(prs_models.PressRunLoad.id))
            .join(pur_models.PurchaseItem, pur_models.PurchaseItem.id == prs_models.PressRunLoad.purchase_item_id)
            .where(pur_models.PurchaseItem.purchase_id == id)
        )
        used_count = (await db.execute(statement)).scalar_one()
        if used_count:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete purchase: items are used in press runs",
            )
        return await self.delete(db, id=id, changed_by=changed_by)


purchase = CRUDPurchase()


# =============================================================================
# 2. pur.purchase_items 테이블 CRUD
# =============================================================================
class CRUDPurchaseItem(CRUDBase[pur_models.PurchaseItem, pur_schemas.PurchaseItemCreate, pur_schemas.PurchaseItemCreate]):
    def __init__(self):
        super().__init__(pur_models.PurchaseItem)

    async def get_active(self, db: AsyncSession, *, item_id: int) -> Optional[pur_models.PurchaseItem]:
        """삭제되지 않은 구매에 속한 품목을 조회합니다."""
        statement = (
            select(self.model)
            .join(pur_models.Purchase, pur_models.Purchase.id == self.model.purchase_id)
            .where(self.model.id == item_id, pur_models.Purchase.deleted_at.is_(None))
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def set_depleted(
        self, db: AsyncSession, *, item_id: int, depleted: bool, changed_by: Optional[int] = None
    ) -> pur_models.PurchaseItem:
        db_item = await self.get_active(db, item_id=item_id)
        if not db_item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase item not found")

        old_data = {"is_depleted": db_item.is_depleted}
        db_item.is_depleted = depleted
        db_item.depleted_at = datetime.now(UTC) if depleted else None
        db.add(db_item)
        record_audit(db, table_name="purchase_items", record_id=db_item.id, operation="UPDATE",
                     old_data=old_data, new_data={"is_depleted": depleted}, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_item)
        return db_item

    async def get_available_basefruit(
        self, db: AsyncSession, *, vendor_id: Optional[int] = None, fruit_variety_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        착즙에 사용할 수 있는 원료 사과 목록 (소진되지 않았고 삭제되지 않은 구매의 품목).
        """
        statement = (
            select(self.model, pur_models.Purchase.vendor_id, pur_models.Purchase.purchase_date)
            .join(pur_models.Purchase, pur_models.Purchase.id == self.model.purchase_id)
            .where(
                self.model.item_type == pur_models.PurchaseItemType.BASEFRUIT,
                self.model.is_depleted == False,  # noqa: E712
                pur_models.Purchase.deleted_at.is_(None),
            )
        )
        if vendor_id is not None:
            statement = statement.where(pur_models.Purchase.vendor_id == vendor_id)
        if fruit_variety_id is not None:
            statement = statement.where(self.model.fruit_variety_id == fruit_variety_id)
        statement = statement.order_by(pur_models.Purchase.purchase_date.desc(), self.model.id)

        result = await db.execute(statement)
        return [
            {**item.model_dump(), "vendor_id": vendor_id_, "purchase_date": purchase_date}
            for item, vendor_id_, purchase_date in result.all()
        ]


purchase_item = CRUDPurchaseItem()
