# app/domains/ven/crud.py

"""
'ven' 도메인 (PostgreSQL 'ven' 스키마)의 CRUD(Create, Read, Update, Delete)
작업을 담당하는 모듈입니다.

이 모듈은 'ven' 스키마의 테이블들 (vendors, fruit_varieties, vendor_varieties)에
대한 데이터베이스 상호작용 로직을 캡슐화합니다.
"""

from typing import List, Optional

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from app.core.crud_base import CRUDBase
from app.domains.ven import models as ven_models
from app.domains.ven import schemas as ven_schemas


# =============================================================================
# 1. ven.vendors 테이블 CRUD
# =============================================================================
class CRUDVendor(CRUDBase[ven_models.Vendor, ven_schemas.VendorCreate, ven_schemas.VendorUpdate]):
    def __init__(self):
        super().__init__(ven_models.Vendor)

    async def get_vendors(
        self,
        db: AsyncSession,
        *,
        search: Optional[str] = None,
        include_inactive: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ven_models.Vendor]:
        """
        공급업체 목록을 조회합니다.
        - search: 업체명 부분 일치 (대소문자 무시)
        - include_inactive: False이면 거래 중지 업체를 제외
        """
        statement = select(self.model).where(*self._not_deleted())
        if search:
            statement = statement.where(func.lower(self.model.name).contains(search.lower()))
        if not include_inactive:
            statement = statement.where(self.model.is_active == True)  # noqa: E712
        statement = statement.order_by(self.model.name).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_with_varieties(self, db: AsyncSession, *, vendor_id: int) -> Optional[ven_models.Vendor]:
        """공급 품종 목록을 함께 로드하여 공급업체를 조회합니다."""
        statement = (
            select(self.model)
            .where(self.model.id == vendor_id, *self._not_deleted())
            .options(selectinload(self.model.varieties))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().first()


# CRUD 인스턴스 생성
vendor = CRUDVendor()


# =============================================================================
# 2. ven.fruit_varieties 테이블 CRUD
# =============================================================================
class CRUDFruitVariety(CRUDBase[ven_models.FruitVariety, ven_schemas.FruitVarietyCreate, ven_schemas.FruitVarietyUpdate]):
    def __init__(self):
        super().__init__(ven_models.FruitVariety)

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[ven_models.FruitVariety]:
        """삭제되지 않은 품종 중 이름이 같은 품종을 조회합니다. (대소문자 무시)"""
        statement = select(self.model).where(
            func.lower(self.model.name) == name.strip().lower(),
            *self._not_deleted(),
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def create(
        self, db: AsyncSession, *, obj_in: ven_schemas.FruitVarietyCreate, changed_by: Optional[int] = None
    ) -> ven_models.FruitVariety:
        if await self.get_by_name(db, name=obj_in.name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Fruit variety '{obj_in.name}' already exists",
            )
        return await super().create(db, obj_in=obj_in, changed_by=changed_by)

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ven_models.FruitVariety,
        obj_in: ven_schemas.FruitVarietyUpdate,
        changed_by: Optional[int] = None,
    ) -> ven_models.FruitVariety:
        if obj_in.name is not None:
            existing = await self.get_by_name(db, name=obj_in.name)
            if existing and existing.id != db_obj.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Fruit variety '{obj_in.name}' already exists",
                )
        return await super().update(db, db_obj=db_obj, obj_in=obj_in, changed_by=changed_by)


fruit_variety = CRUDFruitVariety()


# =============================================================================
# 3. ven.vendor_varieties 테이블 CRUD (연결 테이블)
# =============================================================================
class CRUDVendorVariety:
    """
    공급업체-품종 연결 테이블 CRUD. 복합 PK를 사용하므로 CRUDBase를 상속하지 않습니다.
    """
    model = ven_models.VendorVariety

    async def get_link(self, db: AsyncSession, *, vendor_id: int, variety_id: int) -> Optional[ven_models.VendorVariety]:
        """공급업체 ID와 품종 ID로 연결 정보를 조회합니다."""
        statement = select(self.model).where(
            self.model.vendor_id == vendor_id,
            self.model.variety_id == variety_id,
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def attach(
        self, db: AsyncSession, *, vendor_id: int, obj_in: ven_schemas.VendorVarietyCreate
    ) -> ven_models.VendorVariety:
        """
        공급업체에 품종을 연결합니다. 이미 연결되어 있으면 기존 연결을 그대로 반환합니다.
        """
        if not await vendor.get(db, vendor_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
        if not await fruit_variety.get(db, obj_in.variety_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fruit variety not found")

        existing = await self.get_link(db, vendor_id=vendor_id, variety_id=obj_in.variety_id)
        if existing:
            return existing

        db_obj = self.model(vendor_id=vendor_id, variety_id=obj_in.variety_id, notes=obj_in.notes)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def detach(self, db: AsyncSession, *, vendor_id: int, variety_id: int) -> ven_models.VendorVariety:
        db_obj = await self.get_link(db, vendor_id=vendor_id, variety_id=variety_id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor variety link not found")
        await db.delete(db_obj)
        await db.commit()
        return db_obj

    async def get_varieties_for_vendor(self, db: AsyncSession, *, vendor_id: int) -> List[ven_models.FruitVariety]:
        """특정 공급업체가 공급하는 품종 목록을 조회합니다."""
        statement = (
            select(ven_models.FruitVariety)
            .join(self.model, self.model.variety_id == ven_models.FruitVariety.id)
            .where(self.model.vendor_id == vendor_id, ven_models.FruitVariety.deleted_at.is_(None))
            .order_by(ven_models.FruitVariety.name)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_vendors_for_variety(self, db: AsyncSession, *, variety_id: int) -> List[ven_models.Vendor]:
        """특정 품종을 공급하는 공급업체 목록을 조회합니다."""
        statement = (
            select(ven_models.Vendor)
            .join(self.model, self.model.vendor_id == ven_models.Vendor.id)
            .where(self.model.variety_id == variety_id, ven_models.Vendor.deleted_at.is_(None))
            .order_by(ven_models.Vendor.name)
        )
        result = await db.execute(statement)
        return result.scalars().all()


vendor_variety = CRUDVendorVariety()
