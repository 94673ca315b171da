# app/domains/pkg/crud.py

"""
'pkg' 도메인 (PostgreSQL 'pkg' 스키마)의 CRUD 및 패키징/케그 업무 로직을 담당하는 모듈입니다.

- 탱크에서 포장: 손실량 계산, 재고 품목(로트) 생성, 잔량 임계값 이하 시 탱크 비움
- 케그 수명주기: available -> filled -> distributed -> (returned) cleaning -> available
"""

import logging
from typing import List, Optional, Dict, Any
from datetime import timedelta

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.domains.shared.services import record_audit
from app.domains.cel import crud as cel_crud
from app.domains.cel import models as cel_models
from app.domains.inv import crud as inv_crud
from app.utils import naming, units
from app.utils.dates import utc_now
from . import models as pkg_models
from . import schemas as pkg_schemas

logger = logging.getLogger(__name__)

# 부동소수 비교 허용 오차 (L)
VOLUME_EPSILON = 0.001

# 포장 가능한 탱크 상태
PACKAGEABLE_VESSEL_STATUSES = (
    cel_models.VesselStatus.IN_USE,
    cel_models.VesselStatus.FERMENTING,
    cel_models.VesselStatus.AGING,
    cel_models.VesselStatus.STORING,
)


def package_type_for_size(size_ml: int) -> pkg_models.PackageType:
    """500mL 이하 병, 1000mL 이하 캔, 그 이상은 케그"""
    if size_ml <= 500:
        return pkg_models.PackageType.BOTTLE
    if size_ml <= 1000:
        return pkg_models.PackageType.CAN
    return pkg_models.PackageType.KEG


def _empty_if_residual(db_batch: cel_models.Batch, db_vessel: Optional[cel_models.Vessel], packaged_at) -> bool:
    """잔량이 임계값보다 작으면 배치를 packaged로, 탱크를 cleaning으로 전환합니다."""
    if db_batch.current_volume_l >= settings.RESIDUAL_VOLUME_THRESHOLD_L:
        return False
    db_batch.current_volume_l = 0.0
    db_batch.status = cel_models.BatchStatus.PACKAGED
    db_batch.end_date = packaged_at
    if db_vessel is not None:
        db_vessel.status = cel_models.VesselStatus.CLEANING
    return True


# =============================================================================
# 1. pkg.packaging_runs 테이블 CRUD
# =============================================================================
class CRUDPackagingRun(CRUDBase[pkg_models.PackagingRun, pkg_schemas.PackagingRunCreate, pkg_schemas.PackagingQAUpdate]):
    def __init__(self):
        super().__init__(pkg_models.PackagingRun)

    async def get_or_404(self, db: AsyncSession, run_id: int) -> pkg_models.PackagingRun:
        db_run = await self.get(db, run_id)
        if not db_run:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Packaging run not found")
        return db_run

    async def count_completed_runs(self, db: AsyncSession, *, batch_id: int) -> int:
        statement = select(func.count(self.model.id)).where(
            self.model.batch_id == batch_id,
            self.model.status == pkg_models.PackagingStatus.COMPLETED,
            *self._not_deleted(),
        )
        return (await db.execute(statement)).scalar_one()

    async def get_runs(
        self,
        db: AsyncSession,
        *,
        batch_id: Optional[int] = None,
        package_type: Optional[pkg_models.PackageType] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        statement = (
            select(self.model, cel_models.Batch.name, cel_models.Batch.batch_number, cel_models.Vessel.name)
            .outerjoin(cel_models.Batch, cel_models.Batch.id == self.model.batch_id)
            .outerjoin(cel_models.Vessel, cel_models.Vessel.id == self.model.vessel_id)
            .where(*self._not_deleted())
        )
        if batch_id is not None:
            statement = statement.where(self.model.batch_id == batch_id)
        if package_type is not None:
            statement = statement.where(self.model.package_type == package_type)
        statement = statement.order_by(self.model.packaged_at.desc(), self.model.id.desc()).offset(skip).limit(limit)

        rows = (await db.execute(statement)).all()
        return [
            {**run.model_dump(), "batch_name": batch_name, "batch_number": batch_number, "vessel_name": vessel_name}
            for run, batch_name, batch_number, vessel_name in rows
        ]

    async def create_from_cellar(
        self, db: AsyncSession, *, obj_in: pkg_schemas.PackagingRunCreate, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        탱크의 배치를 병/캔/케그로 포장합니다.

        1. 탱크 상태와 배치 위치, 부피를 검사합니다.
        2. 손실량 = 뽑은 양 - (수량 x 용량)
        3. 로트 코드 '<배치번호>-YYYYMMDD-NN' 으로 재고 품목을 생성합니다.
        4. 남은 부피가 임계값보다 작으면 탱크를 비웁니다.
        """
        db_vessel = await cel_crud.vessel.get(db, obj_in.vessel_id)
        if not db_vessel:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
        if db_vessel.status not in PACKAGEABLE_VESSEL_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Vessel must be in use or fermenting to package from. Current status: {db_vessel.status.value}",
            )

        db_batch = await cel_crud.batch.get(db, obj_in.batch_id)
        if (
            not db_batch
            or db_batch.vessel_id != db_vessel.id
            or db_batch.status not in cel_models.CURRENT_BATCH_STATUSES
        ):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found in specified vessel")

        volume_taken = round(units.to_liters(obj_in.volume_taken, obj_in.volume_unit), 3)
        if volume_taken > db_batch.current_volume_l + VOLUME_EPSILON:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient volume in vessel. Available: {float(db_batch.current_volume_l)}L, Requested: {volume_taken}L",
            )

        packaged_volume = round(obj_in.units_produced * obj_in.package_size_ml / 1000, 3)
        if packaged_volume > volume_taken + VOLUME_EPSILON:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Packaged volume {packaged_volume}L exceeds volume taken {volume_taken}L",
            )

        loss_l = round(max(0.0, volume_taken - packaged_volume), 3)
        loss_pct = round(loss_l / volume_taken * 100, 2) if volume_taken else 0.0
        packaged_at = obj_in.packaged_at or utc_now()
        run_sequence = await self.count_completed_runs(db, batch_id=db_batch.id) + 1
        lot_code = naming.lot_code(db_batch.batch_number, packaged_at, run_sequence)
        if await inv_crud.inventory_item.get_by_lot_code(db, lot_code=lot_code):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Inventory item with lot code '{lot_code}' already exists",
            )
        package_type = package_type_for_size(obj_in.package_size_ml)

        # --- 검사 완료: 이후부터 변경 ---
        db_run = pkg_models.PackagingRun(
            batch_id=db_batch.id,
            vessel_id=db_vessel.id,
            packaged_at=packaged_at,
            package_type=package_type,
            package_size_ml=obj_in.package_size_ml,
            units_produced=obj_in.units_produced,
            volume_taken_l=volume_taken,
            loss_l=loss_l,
            loss_percentage=loss_pct,
            run_sequence=run_sequence,
            lot_code=lot_code,
            abv_at_packaging=obj_in.abv_at_packaging,
            carbonation_level=obj_in.carbonation_level,
            notes=obj_in.notes,
            performed_by=changed_by,
        )
        db.add(db_run)
        await db.flush()

        db_item = await inv_crud.inventory_item.add_item(
            db,
            batch_id=db_batch.id,
            lot_code=lot_code,
            package_type=package_type.value,
            package_size_ml=obj_in.package_size_ml,
            quantity=obj_in.units_produced,
            packaging_run_id=db_run.id,
            expiration_date=(packaged_at + timedelta(days=settings.INVENTORY_SHELF_LIFE_DAYS)).date(),
            location=obj_in.location,
            created_by=changed_by,
        )
        db_run.inventory_item_id = db_item.id
        db.add(db_run)

        old_volume = db_batch.current_volume_l
        db_batch.current_volume_l = round(max(0.0, old_volume - volume_taken), 3)
        emptied = _empty_if_residual(db_batch, db_vessel, packaged_at)
        remaining = db_batch.current_volume_l
        db.add(db_batch)
        db.add(db_vessel)

        record_audit(db, table_name="packaging_runs", record_id=db_run.id, operation="INSERT",
                     new_data=db_run, changed_by=changed_by)
        record_audit(db, table_name="batches", record_id=db_batch.id, operation="UPDATE",
                     old_data={"current_volume_l": old_volume},
                     new_data={"current_volume_l": remaining, "status": db_batch.status},
                     changed_by=changed_by, reason=f"Packaged {lot_code}")
        await db.commit()
        await db.refresh(db_run)

        logger.info(
            f"Packaged {obj_in.units_produced} x {obj_in.package_size_ml}mL from {db_batch.batch_number} "
            f"(lot {lot_code}, loss {loss_l}L)"
        )
        message = f"Packaged {obj_in.units_produced} units as lot {lot_code}"
        if emptied:
            message += f". Vessel {db_vessel.name} emptied and set to cleaning"
        return {
            "packaging_run": db_run,
            "inventory_item_id": db_item.id,
            "lot_code": lot_code,
            "remaining_volume_l": remaining,
            "vessel_emptied": emptied,
            "message": message,
        }

    async def update_qa(
        self,
        db: AsyncSession,
        *,
        db_obj: pkg_models.PackagingRun,
        obj_in: pkg_schemas.PackagingQAUpdate,
        changed_by: Optional[int] = None,
    ) -> pkg_models.PackagingRun:
        """QA 필드를 수정합니다. 감사 로그에는 실제로 바뀐 필드만 기록합니다."""
        update_data = obj_in.model_dump(exclude_unset=True)
        changed = {key: value for key, value in update_data.items() if getattr(db_obj, key) != value}
        if not changed:
            return db_obj
        old_data = {key: getattr(db_obj, key) for key in changed}
        for key, value in changed.items():
            setattr(db_obj, key, value)
        db.add(db_obj)
        record_audit(db, table_name="packaging_runs", record_id=db_obj.id, operation="UPDATE",
                     old_data=old_data, new_data=changed, changed_by=changed_by, reason="QA update")
        await db.commit()
        await db.refresh(db_obj)
        return db_obj


# =============================================================================
# 2. pkg.package_sizes 테이블 CRUD
# =============================================================================
class CRUDPackageSize(CRUDBase[pkg_models.PackageSize, pkg_schemas.PackageSizeCreate, pkg_schemas.PackageSizeCreate]):
    def __init__(self):
        super().__init__(pkg_models.PackageSize)

    async def get_sizes(
        self, db: AsyncSession, *, package_type: Optional[pkg_models.PackageType] = None, active_only: bool = True
    ) -> List[pkg_models.PackageSize]:
        statement = select(self.model)
        if package_type is not None:
            statement = statement.where(self.model.package_type == package_type)
        if active_only:
            statement = statement.where(self.model.is_active.is_(True))
        statement = statement.order_by(self.model.sort_order, self.model.size_ml)
        result = await db.execute(statement)
        return result.scalars().all()

    async def create(
        self, db: AsyncSession, *, obj_in: pkg_schemas.PackageSizeCreate, changed_by: Optional[int] = None
    ) -> pkg_models.PackageSize:
        if await self.get_by_attribute(db, attribute="size_ml", value=obj_in.size_ml):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Package size {obj_in.size_ml}mL already exists",
            )
        return await super().create(db, obj_in=obj_in, changed_by=changed_by)


# =============================================================================
# 3. pkg.kegs 테이블 CRUD
# =============================================================================
class CRUDKeg(CRUDBase[pkg_models.Keg, pkg_schemas.KegCreate, pkg_schemas.KegUpdate]):
    def __init__(self):
        super().__init__(pkg_models.Keg)

    async def get_or_404(self, db: AsyncSession, keg_id: int) -> pkg_models.Keg:
        db_keg = await self.get(db, keg_id)
        if not db_keg:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Keg not found")
        return db_keg

    async def get_kegs(
        self,
        db: AsyncSession,
        *,
        keg_status: Optional[pkg_models.KegStatus] = None,
        keg_type: Optional[pkg_models.KegType] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[pkg_models.Keg]:
        statement = select(self.model).where(*self._not_deleted())
        if keg_status is not None:
            statement = statement.where(self.model.status == keg_status)
        if keg_type is not None:
            statement = statement.where(self.model.keg_type == keg_type)
        statement = statement.order_by(self.model.keg_number).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()

    async def create(
        self, db: AsyncSession, *, obj_in: pkg_schemas.KegCreate, changed_by: Optional[int] = None
    ) -> pkg_models.Keg:
        if await self.get_by_attribute(db, attribute="keg_number", value=obj_in.keg_number, include_deleted=True):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A keg with this number already exists")
        return await super().create(db, obj_in=obj_in, changed_by=changed_by)

    async def remove(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> pkg_models.Keg:
        """활성 충전이 없으면 retired로 바꾸고 소프트 삭제합니다."""
        db_keg = await self.get_or_404(db, id)
        statement = select(func.count(pkg_models.KegFill.id)).where(
            pkg_models.KegFill.keg_id == db_keg.id,
            pkg_models.KegFill.status.in_(pkg_models.ACTIVE_FILL_STATUSES),
        )
        if (await db.execute(statement)).scalar_one() > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete keg with active fills. Return or void fills first.",
            )
        record_audit(db, table_name="kegs", record_id=db_keg.id, operation="DELETE",
                     old_data=db_keg, changed_by=changed_by)
        db_keg.status = pkg_models.KegStatus.RETIRED
        db_keg.deleted_at = utc_now()
        db.add(db_keg)
        await db.commit()
        await db.refresh(db_keg)
        return db_keg

    async def clean(self, db: AsyncSession, *, keg_id: int, changed_by: Optional[int] = None) -> Dict[str, Any]:
        db_keg = await self.get_or_404(db, keg_id)
        if db_keg.status != pkg_models.KegStatus.CLEANING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only kegs with cleaning status can be cleaned",
            )
        db_keg.status = pkg_models.KegStatus.AVAILABLE
        db.add(db_keg)
        record_audit(db, table_name="kegs", record_id=db_keg.id, operation="UPDATE",
                     old_data={"status": pkg_models.KegStatus.CLEANING},
                     new_data={"status": pkg_models.KegStatus.AVAILABLE},
                     changed_by=changed_by, reason="Keg cleaned")
        await db.commit()
        await db.refresh(db_keg)
        return {"keg": db_keg, "fill": None, "message": f"Keg {db_keg.keg_number} is now available"}

    async def get_fills(self, db: AsyncSession, *, keg_id: int) -> List[pkg_models.KegFill]:
        statement = (
            select(pkg_models.KegFill)
            .where(pkg_models.KegFill.keg_id == keg_id)
            .order_by(pkg_models.KegFill.filled_at.desc(), pkg_models.KegFill.id.desc())
        )
        result = await db.execute(statement)
        return result.scalars().all()


# =============================================================================
# 4. pkg.keg_fills 테이블 CRUD
# =============================================================================
class CRUDKegFill(CRUDBase[pkg_models.KegFill, pkg_schemas.KegFillRequest, pkg_schemas.KegFillRequest]):
    def __init__(self):
        super().__init__(pkg_models.KegFill)

    async def get_or_404(self, db: AsyncSession, fill_id: int) -> pkg_models.KegFill:
        db_fill = await self.get(db, fill_id)
        if not db_fill:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Keg fill not found")
        return db_fill

    async def get_fills(
        self,
        db: AsyncSession,
        *,
        batch_id: Optional[int] = None,
        fill_status: Optional[pkg_models.KegFillStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[pkg_models.KegFill]:
        return await self.get_filtered(
            db,
            filters={"batch_id": batch_id, "status": fill_status},
            order_by_field="filled_at",
            skip=skip,
            limit=limit,
        )

    async def fill_kegs(
        self, db: AsyncSession, *, obj_in: pkg_schemas.KegFillRequest, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        배치에서 여러 케그를 한 번에 충전합니다.
        - 모든 케그가 available 이어야 합니다.
        - 배치 부피 >= 총 충전량 + 손실량
        """
        db_batch = await cel_crud.batch.get(db, obj_in.batch_id)
        if not db_batch:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
        if db_batch.status not in cel_models.CURRENT_BATCH_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Batch is not available for filling. Current status: {db_batch.status.value}",
            )

        keg_ids = list(dict.fromkeys(obj_in.keg_ids))
        statement = select(pkg_models.Keg).where(
            pkg_models.Keg.id.in_(keg_ids), pkg_models.Keg.deleted_at.is_(None)
        )
        kegs = (await db.execute(statement)).scalars().all()
        if len(kegs) != len(keg_ids):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="One or more kegs not found")

        unavailable = [k.keg_number for k in kegs if k.status != pkg_models.KegStatus.AVAILABLE]
        if unavailable:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Kegs not available: {', '.join(sorted(unavailable))}",
            )
        too_small = [k.keg_number for k in kegs if obj_in.volume_per_keg_l > k.capacity_l + VOLUME_EPSILON]
        if too_small:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Volume per keg exceeds capacity of: {', '.join(sorted(too_small))}",
            )

        total_volume = round(obj_in.volume_per_keg_l * len(kegs), 3)
        required = round(total_volume + obj_in.loss_l, 3)
        if db_batch.current_volume_l + VOLUME_EPSILON < required:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient batch volume. Available: {float(db_batch.current_volume_l)}L, Required: {required}L",
            )

        # --- 검사 완료: 이후부터 변경 ---
        filled_at = obj_in.filled_at or utc_now()
        fills = []
        for db_keg in kegs:
            db_fill = pkg_models.KegFill(
                keg_id=db_keg.id,
                batch_id=db_batch.id,
                filled_at=filled_at,
                volume_l=obj_in.volume_per_keg_l,
                notes=obj_in.notes,
                filled_by=changed_by,
            )
            db_keg.status = pkg_models.KegStatus.FILLED
            db.add(db_keg)
            db.add(db_fill)
            fills.append(db_fill)
        await db.flush()

        old_volume = db_batch.current_volume_l
        db_batch.current_volume_l = round(max(0.0, old_volume - required), 3)
        db_vessel = await cel_crud.vessel.get(db, db_batch.vessel_id) if db_batch.vessel_id else None
        _empty_if_residual(db_batch, db_vessel, filled_at)
        db.add(db_batch)
        if db_vessel is not None:
            db.add(db_vessel)

        for db_fill in fills:
            record_audit(db, table_name="keg_fills", record_id=db_fill.id, operation="INSERT",
                         new_data=db_fill, changed_by=changed_by)
        record_audit(db, table_name="batches", record_id=db_batch.id, operation="UPDATE",
                     old_data={"current_volume_l": old_volume},
                     new_data={"current_volume_l": db_batch.current_volume_l},
                     changed_by=changed_by, reason=f"Filled {len(fills)} kegs")
        await db.commit()
        for db_fill in fills:
            await db.refresh(db_fill)

        logger.info(f"Filled {len(fills)} kegs ({total_volume}L) from batch {db_batch.batch_number}")
        return {
            "fills": fills,
            "total_volume_l": total_volume,
            "remaining_batch_volume_l": db_batch.current_volume_l,
            "message": f"Filled {len(fills)} kegs from {db_batch.name}",
        }

    async def _transition(
        self,
        db: AsyncSession,
        *,
        db_fill: pkg_models.KegFill,
        fill_status: pkg_models.KegFillStatus,
        keg_status: pkg_models.KegStatus,
        changed_by: Optional[int],
        reason: str,
        location: Optional[str] = None,
    ) -> Dict[str, Any]:
        db_keg = await keg.get(db, db_fill.keg_id, include_deleted=True)
        old_data = {"fill_status": db_fill.status, "keg_status": db_keg.status}
        db_fill.status = fill_status
        db_keg.status = keg_status
        if location is not None:
            db_keg.location = location
        db.add(db_fill)
        db.add(db_keg)
        record_audit(db, table_name="keg_fills", record_id=db_fill.id, operation="UPDATE",
                     old_data=old_data, new_data={"fill_status": fill_status, "keg_status": keg_status},
                     changed_by=changed_by, reason=reason)
        await db.commit()
        await db.refresh(db_fill)
        await db.refresh(db_keg)
        return {"keg": db_keg, "fill": db_fill, "message": f"Keg {db_keg.keg_number} {reason.lower()}"}

    async def distribute(
        self, db: AsyncSession, *, fill_id: int, obj_in: pkg_schemas.KegDistributeRequest, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        db_fill = await self.get_or_404(db, fill_id)
        if db_fill.status != pkg_models.KegFillStatus.FILLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only filled kegs can be distributed")
        db_fill.distributed_at = obj_in.distributed_at or utc_now()
        db_fill.distributed_to = obj_in.distributed_to
        if obj_in.notes:
            db_fill.notes = f"{db_fill.notes}\n{obj_in.notes}" if db_fill.notes else obj_in.notes
        return await self._transition(
            db, db_fill=db_fill,
            fill_status=pkg_models.KegFillStatus.DISTRIBUTED, keg_status=pkg_models.KegStatus.DISTRIBUTED,
            changed_by=changed_by, reason="Distributed", location=obj_in.distributed_to,
        )

    async def return_keg(
        self, db: AsyncSession, *, fill_id: int, obj_in: pkg_schemas.KegReturnRequest, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """회수된 케그는 세척 대기(cleaning) 상태가 됩니다."""
        db_fill = await self.get_or_404(db, fill_id)
        if db_fill.status != pkg_models.KegFillStatus.DISTRIBUTED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only distributed kegs can be returned")
        db_fill.returned_at = obj_in.returned_at or utc_now()
        if obj_in.notes:
            db_fill.notes = f"{db_fill.notes}\n{obj_in.notes}" if db_fill.notes else obj_in.notes
        return await self._transition(
            db, db_fill=db_fill,
            fill_status=pkg_models.KegFillStatus.RETURNED, keg_status=pkg_models.KegStatus.CLEANING,
            changed_by=changed_by, reason="Returned",
        )

    async def void(self, db: AsyncSession, *, fill_id: int, changed_by: Optional[int] = None) -> Dict[str, Any]:
        db_fill = await self.get_or_404(db, fill_id)
        if db_fill.status not in pkg_models.ACTIVE_FILL_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only active keg fills can be voided")
        return await self._transition(
            db, db_fill=db_fill,
            fill_status=pkg_models.KegFillStatus.VOIDED, keg_status=pkg_models.KegStatus.AVAILABLE,
            changed_by=changed_by, reason="Voided",
        )


#  각 CRUD 클래스의 인스턴스 생성
packaging_run = CRUDPackagingRun()
package_size = CRUDPackageSize()
keg = CRUDKeg()
keg_fill = CRUDKegFill()
