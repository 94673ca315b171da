# app/domains/cel/crud.py

"""
'cel' 도메인 (PostgreSQL 'cel' 스키마)의 CRUD 및 셀러 작업 로직을 담당하는 모듈입니다.

- 탱크(vessels) 관리, 탱크 간 이송(transfer), 액체 현황(liquid map)
- 배치(batches) 관리, 측정/첨가, 랙킹(racking), 여과(filter), 주스 구매분 탱크 이송

여러 테이블을 변경하는 작업은 모든 검사를 먼저 수행한 뒤 한 번만 커밋합니다.
"""

import logging
from typing import List, Optional, Dict, Any, Set
from datetime import datetime

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, or_

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.domains.shared.services import record_audit
from app.domains.pur import crud as pur_crud
from app.domains.pur import models as pur_models
from app.domains.ven import models as ven_models
from app.utils import naming, units
from app.utils.dates import ensure_utc, utc_now
from . import models as cel_models
from . import schemas as cel_schemas

logger = logging.getLogger(__name__)

# 부동소수 비교 허용 오차 (L)
VOLUME_EPSILON = 0.001


# =============================================================================
# 1. cel.vessels 테이블 CRUD
# =============================================================================
class CRUDVessel(CRUDBase[cel_models.Vessel, cel_schemas.VesselCreate, cel_schemas.VesselUpdate]):
    def __init__(self):
        super().__init__(cel_models.Vessel)

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[cel_models.Vessel]:
        return await self.get_by_attribute(db, attribute="name", value=name.strip())

    async def get_current_batch(self, db: AsyncSession, *, vessel_id: int) -> Optional[cel_models.Batch]:
        """탱크에 현재 들어 있는 배치 (active/aging, 삭제되지 않음)"""
        statement = (
            select(cel_models.Batch)
            .where(
                cel_models.Batch.vessel_id == vessel_id,
                cel_models.Batch.status.in_(cel_models.CURRENT_BATCH_STATUSES),
                cel_models.Batch.deleted_at.is_(None),
            )
            .order_by(cel_models.Batch.id.desc())
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def get_vessels(
        self,
        db: AsyncSession,
        *,
        vessel_status: Optional[cel_models.VesselStatus] = None,
        vessel_type: Optional[cel_models.VesselType] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[cel_models.Vessel]:
        return await self.get_filtered(
            db,
            filters={"status": vessel_status, "vessel_type": vessel_type},
            order_by_field="name",
            order_desc=False,
            skip=skip,
            limit=limit,
        )

    async def create(
        self, db: AsyncSession, *, obj_in: cel_schemas.VesselCreate, changed_by: Optional[int] = None
    ) -> cel_models.Vessel:
        if await self.get_by_name(db, name=obj_in.name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Vessel '{obj_in.name}' already exists")

        vessel_data = obj_in.model_dump(exclude={"capacity", "capacity_unit"})
        db_obj = cel_models.Vessel(
            **vessel_data,
            capacity_l=round(units.to_liters(obj_in.capacity, obj_in.capacity_unit), 3),
            capacity_unit=units.VolumeUnit(obj_in.capacity_unit).value,
        )
        db.add(db_obj)
        await db.flush()
        record_audit(db, table_name="vessels", record_id=db_obj.id, operation="INSERT",
                     new_data=db_obj, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: cel_models.Vessel,
        obj_in: cel_schemas.VesselUpdate,
        changed_by: Optional[int] = None,
    ) -> cel_models.Vessel:
        update_data = obj_in.model_dump(exclude_unset=True)

        if update_data.get("name") and update_data["name"] != db_obj.name:
            existing = await self.get_by_name(db, name=update_data["name"])
            if existing and existing.id != db_obj.id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Vessel '{update_data['name']}' already exists")

        capacity = update_data.pop("capacity", None)
        capacity_unit = update_data.pop("capacity_unit", None) or db_obj.capacity_unit
        if capacity is not None:
            capacity_l = round(units.to_liters(capacity, capacity_unit), 3)
            current_batch = await self.get_current_batch(db, vessel_id=db_obj.id)
            if current_batch and current_batch.current_volume_l > capacity_l + VOLUME_EPSILON:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Capacity {capacity_l}L is less than current batch volume {float(current_batch.current_volume_l)}L",
                )
            update_data["capacity_l"] = capacity_l
            update_data["capacity_unit"] = units.VolumeUnit(capacity_unit).value

        old_data = {key: getattr(db_obj, key) for key in update_data}
        for key, value in update_data.items():
            setattr(db_obj, key, value)
        db.add(db_obj)
        if update_data:
            record_audit(db, table_name="vessels", record_id=db_obj.id, operation="UPDATE",
                         old_data=old_data, new_data=update_data, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def remove(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> cel_models.Vessel:
        db_vessel = await self.get(db, id)
        if not db_vessel:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
        if await self.get_current_batch(db, vessel_id=id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete vessel that contains a batch",
            )
        return await self.delete(db, id=id, changed_by=changed_by)

    async def set_status(
        self,
        db: AsyncSession,
        *,
        db_obj: cel_models.Vessel,
        new_status: cel_models.VesselStatus,
        changed_by: Optional[int] = None,
    ) -> cel_models.Vessel:
        old_status = db_obj.status
        db_obj.status = new_status
        db.add(db_obj)
        record_audit(db, table_name="vessels", record_id=db_obj.id, operation="UPDATE",
                     old_data={"status": old_status}, new_data={"status": new_status}, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def clean(self, db: AsyncSession, *, db_obj: cel_models.Vessel, changed_by: Optional[int] = None) -> cel_models.Vessel:
        """세척이 끝난 탱크를 사용 가능(available) 상태로 되돌립니다."""
        if await self.get_current_batch(db, vessel_id=db_obj.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot clean a vessel that contains a batch")
        return await self.set_status(db, db_obj=db_obj, new_status=cel_models.VesselStatus.AVAILABLE, changed_by=changed_by)

    async def get_liquid_map(self, db: AsyncSession) -> Dict[str, Any]:
        """모든 탱크의 현재 배치와 충전율을 조회합니다."""
        vessels = (await db.execute(
            select(self.model).where(*self._not_deleted()).order_by(self.model.name)
        )).scalars().all()

        batches = (await db.execute(
            select(cel_models.Batch).where(
                cel_models.Batch.vessel_id.in_([v.id for v in vessels]),
                cel_models.Batch.status.in_(cel_models.CURRENT_BATCH_STATUSES),
                cel_models.Batch.deleted_at.is_(None),
            )
        )).scalars().all() if vessels else []
        batch_by_vessel = {batch.vessel_id: batch for batch in batches}

        rows = []
        cellar_liquid = 0.0
        for vessel in vessels:
            batch = batch_by_vessel.get(vessel.id)
            volume = batch.current_volume_l if batch else 0.0
            cellar_liquid += volume
            rows.append({
                "vessel_id": vessel.id,
                "vessel_name": vessel.name,
                "vessel_status": vessel.status,
                "capacity_l": vessel.capacity_l,
                "location": vessel.location,
                "batch_id": batch.id if batch else None,
                "batch_name": batch.name if batch else None,
                "batch_number": batch.batch_number if batch else None,
                "batch_status": batch.status if batch else None,
                "current_volume_l": volume,
                "fill_percentage": round(volume / vessel.capacity_l * 100, 1) if vessel.capacity_l else 0.0,
            })
        return {"vessels": rows, "cellar_liquid_l": round(cellar_liquid, 3)}

    async def transfer(
        self, db: AsyncSession, *, obj_in: cel_schemas.VesselTransferCreate, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        탱크 간 액체 이송.

        - 도착 탱크는 available 또는 fermenting 상태여야 하며 기존 + 이송 부피를 담을 수 있어야 합니다.
        - 잔량이 임계값(RESIDUAL_VOLUME_THRESHOLD_L)보다 작으면 손실로 처리하고 전량 이송으로 간주합니다.
        - 잔량이 남으면 원 탱크에 '<배치명> - Remaining' 배치를 새로 만듭니다.
        - 도착 탱크에 배치가 있으면 블렌드(병합)합니다.
        """
        if obj_in.from_vessel_id == obj_in.to_vessel_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Source and destination vessels must be different")

        source_vessel = await self.get(db, obj_in.from_vessel_id)
        if not source_vessel:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Source vessel not found")
        dest_vessel = await self.get(db, obj_in.to_vessel_id)
        if not dest_vessel:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination vessel not found")

        if dest_vessel.status not in (cel_models.VesselStatus.AVAILABLE, cel_models.VesselStatus.FERMENTING):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Destination vessel is {dest_vessel.status.value} and cannot receive liquid",
            )

        dest_batch = await self.get_current_batch(db, vessel_id=dest_vessel.id)
        dest_current = float(dest_batch.current_volume_l) if dest_batch else 0.0
        if dest_current + obj_in.volume_l > dest_vessel.capacity_l + VOLUME_EPSILON:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    f"Transfer volume ({obj_in.volume_l}L) plus existing volume ({dest_current}L) "
                    f"exceeds destination vessel capacity ({float(dest_vessel.capacity_l)}L)"
                ),
            )

        source_batch = await self.get_current_batch(db, vessel_id=source_vessel.id)
        if not source_batch:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active batch found in source vessel")

        current_volume = float(source_batch.current_volume_l)
        processed = obj_in.volume_l + obj_in.loss_l
        if processed > current_volume + VOLUME_EPSILON:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Transfer volume plus loss ({processed}L) exceeds current batch volume ({current_volume}L)",
            )

        loss = obj_in.loss_l
        remaining = round(max(0.0, current_volume - processed), 3)
        if 0 < remaining < settings.RESIDUAL_VOLUME_THRESHOLD_L:
            loss = round(loss + remaining, 3)
            remaining = 0.0
        processed = round(obj_in.volume_l + loss, 3)

        # --- 검사 완료: 이후부터 변경 ---
        remaining_batch = None
        if remaining > 0:
            remaining_batch = cel_models.Batch(
                name=f"{source_batch.name} - Remaining",
                custom_name=f"{source_batch.custom_name} - Remaining" if source_batch.custom_name else None,
                batch_number=await batch.unique_batch_number(db, base=f"{source_batch.batch_number}-R"),
                vessel_id=source_vessel.id,
                initial_volume_l=remaining,
                current_volume_l=remaining,
                status=source_batch.status,
                origin_press_run_id=source_batch.origin_press_run_id,
                origin_purchase_item_id=source_batch.origin_purchase_item_id,
                parent_batch_id=source_batch.id,
                original_gravity=source_batch.original_gravity,
                final_gravity=source_batch.final_gravity,
                estimated_abv=source_batch.estimated_abv,
                actual_abv=source_batch.actual_abv,
            )
            db.add(remaining_batch)
        else:
            source_vessel.status = cel_models.VesselStatus.CLEANING
            db.add(source_vessel)

        is_blend = dest_batch is not None
        if is_blend:
            new_volume = round(dest_current + obj_in.volume_l, 3)
            blend_note = (
                f"Blended {obj_in.volume_l}L from batch {source_batch.name} into existing batch "
                f"{dest_batch.name}. Total volume: {new_volume}L"
            )
            db.add(cel_models.BatchMergeHistory(
                target_batch_id=dest_batch.id,
                source_type=cel_models.MergeSourceType.BATCH_TRANSFER,
                source_batch_id=source_batch.id,
                source_press_run_id=source_batch.origin_press_run_id,
                volume_added_l=obj_in.volume_l,
                target_volume_before_l=dest_current,
                target_volume_after_l=new_volume,
                composition_snapshot={"source_batch_number": source_batch.batch_number,
                                      "source_batch_name": source_batch.name},
                notes=obj_in.notes,
                merged_by=changed_by,
            ))
            dest_batch.current_volume_l = new_volume
            db.add(dest_batch)

            source_batch.status = cel_models.BatchStatus.BLENDED
            source_batch.deleted_at = utc_now()
            source_batch.end_date = utc_now()
            db.add(source_batch)
            transferred_batch = dest_batch
            notes = f"BLEND: {blend_note}" + (f" | {obj_in.notes}" if obj_in.notes else "")
        else:
            source_batch.vessel_id = dest_vessel.id
            source_batch.current_volume_l = obj_in.volume_l
            db.add(source_batch)
            dest_vessel.status = cel_models.VesselStatus.FERMENTING
            db.add(dest_vessel)
            transferred_batch = source_batch
            notes = obj_in.notes

        await db.flush()
        transfer_record = cel_models.BatchTransfer(
            source_batch_id=source_batch.id,
            source_vessel_id=source_vessel.id,
            destination_batch_id=transferred_batch.id,
            destination_vessel_id=dest_vessel.id,
            remaining_batch_id=remaining_batch.id if remaining_batch else None,
            volume_transferred_l=obj_in.volume_l,
            loss_l=loss,
            total_volume_processed_l=processed,
            remaining_volume_l=remaining if remaining > 0 else None,
            notes=notes,
            transferred_by=changed_by,
        )
        db.add(transfer_record)
        await db.flush()
        record_audit(db, table_name="batch_transfers", record_id=transfer_record.id, operation="INSERT",
                     new_data=transfer_record, changed_by=changed_by)
        await db.commit()

        for obj in (transferred_batch, transfer_record, remaining_batch):
            if obj is not None:
                await db.refresh(obj)

        if is_blend:
            message = f"Successfully blended {obj_in.volume_l}L from {source_vessel.name} into {dest_vessel.name}"
        else:
            message = f"Successfully transferred {obj_in.volume_l}L from {source_vessel.name} to {dest_vessel.name}"
        if remaining_batch:
            message += f", remaining batch created with {remaining}L"
        logger.info(message)

        return {
            "message": message,
            "is_blend": is_blend,
            "transferred_batch": transferred_batch,
            "remaining_batch": remaining_batch,
            "transfer": transfer_record,
        }

    async def get_transfer_history(
        self,
        db: AsyncSession,
        *,
        vessel_id: Optional[int] = None,
        batch_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[cel_models.BatchTransfer]:
        model = cel_models.BatchTransfer
        statement = select(model)
        if vessel_id is not None:
            statement = statement.where(or_(model.source_vessel_id == vessel_id, model.destination_vessel_id == vessel_id))
        if batch_id is not None:
            statement = statement.where(or_(
                model.source_batch_id == batch_id,
                model.destination_batch_id == batch_id,
                model.remaining_batch_id == batch_id,
            ))
        statement = statement.order_by(model.transferred_at.desc(), model.id.desc()).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()


vessel = CRUDVessel()


# =============================================================================
# 2. cel.batches 테이블 CRUD
# =============================================================================
class CRUDBatch(CRUDBase[cel_models.Batch, cel_schemas.BatchUpdate, cel_schemas.BatchUpdate]):
    def __init__(self):
        super().__init__(cel_models.Batch)

    async def get_or_404(self, db: AsyncSession, batch_id: int) -> cel_models.Batch:
        db_batch = await self.get(db, batch_id)
        if not db_batch:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
        return db_batch

    async def get_batches(
        self,
        db: AsyncSession,
        *,
        batch_status: Optional[cel_models.BatchStatus] = None,
        vessel_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[cel_models.Batch]:
        return await self.get_filtered(
            db,
            filters={"status": batch_status, "vessel_id": vessel_id},
            order_by_field="start_date",
            skip=skip,
            limit=limit,
        )

    async def next_batch_sequence(self, db: AsyncSession, *, year_date: datetime) -> int:
        """해당 연도의 다음 배치 일련번호 (B-YYYY-NNN의 NNN)"""
        prefix = f"B-{year_date:%Y}-"
        result = await db.execute(
            select(self.model.batch_number).where(self.model.batch_number.like(f"{prefix}%"))
        )
        sequence = 0
        for number in result.scalars().all():
            tail = number[len(prefix):]
            if tail.isdigit():
                sequence = max(sequence, int(tail))
        return sequence + 1

    async def unique_batch_number(self, db: AsyncSession, *, base: str, reserved: Optional[Set[str]] = None) -> str:
        """base가 이미 사용 중이면 -2, -3 ... 을 붙여 고유한 배치 번호를 만듭니다."""
        reserved = reserved or set()
        result = await db.execute(
            select(self.model.batch_number).where(
                or_(self.model.batch_number == base, self.model.batch_number.like(f"{base}-%"))
            )
        )
        taken = set(result.scalars().all()) | reserved
        if base not in taken:
            return base
        suffix = 2
        while f"{base}-{suffix}" in taken:
            suffix += 1
        return f"{base}-{suffix}"

    async def remove(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> cel_models.Batch:
        """
        배치를 소프트 삭제합니다. 탱크에 들어 있던 배치라면 탱크는 세척(cleaning) 상태가 됩니다.
        """
        db_batch = await self.get_or_404(db, id)
        if db_batch.vessel_id is not None and db_batch.status in cel_models.CURRENT_BATCH_STATUSES:
            db_vessel = await vessel.get(db, db_batch.vessel_id)
            if db_vessel:
                db_vessel.status = cel_models.VesselStatus.CLEANING
                db.add(db_vessel)
        return await self.delete(db, id=id, changed_by=changed_by)

    # -------------------------------------------------------------------------
    # 배치 구성
    # -------------------------------------------------------------------------
    async def get_composition(self, db: AsyncSession, *, batch_id: int) -> Dict[str, Any]:
        await self.get_or_404(db, batch_id)
        statement = (
            select(cel_models.BatchComposition, ven_models.Vendor.name, ven_models.FruitVariety.name)
            .outerjoin(ven_models.Vendor, ven_models.Vendor.id == cel_models.BatchComposition.vendor_id)
            .outerjoin(ven_models.FruitVariety, ven_models.FruitVariety.id == cel_models.BatchComposition.fruit_variety_id)
            .where(cel_models.BatchComposition.batch_id == batch_id)
            .order_by(cel_models.BatchComposition.fraction_of_batch.desc())
        )
        rows = (await db.execute(statement)).all()
        items = [
            {
                **composition.model_dump(),
                "vendor_name": vendor_name,
                "variety_name": variety_name,
                "percentage": round(composition.fraction_of_batch * 100, 2),
            }
            for composition, vendor_name, variety_name in rows
        ]
        return {
            "batch_id": batch_id,
            "total_juice_volume_l": round(sum(item["juice_volume_l"] for item in items), 3),
            "total_material_cost": round(sum(item["material_cost"] for item in items), 2),
            "items": items,
        }

    # -------------------------------------------------------------------------
    # 측정 / 첨가물
    # -------------------------------------------------------------------------
    async def add_measurement(
        self, db: AsyncSession, *, batch_id: int, obj_in: cel_schemas.BatchMeasurementCreate
    ) -> cel_models.BatchMeasurement:
        await self.get_or_404(db, batch_id)
        data = obj_in.model_dump(exclude_unset=True, exclude={"measurement_date"})
        db_obj = cel_models.BatchMeasurement(
            batch_id=batch_id,
            measurement_date=obj_in.measurement_date or utc_now(),
            **data,
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update_measurement(
        self, db: AsyncSession, *, measurement_id: int, obj_in: cel_schemas.BatchMeasurementUpdate
    ) -> cel_models.BatchMeasurement:
        db_obj = await db.get(cel_models.BatchMeasurement, measurement_id, populate_existing=True)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Measurement not found")
        for key, value in obj_in.model_dump(exclude_unset=True).items():
            setattr(db_obj, key, value)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get_measurements(self, db: AsyncSession, *, batch_id: int) -> List[cel_models.BatchMeasurement]:
        await self.get_or_404(db, batch_id)
        statement = (
            select(cel_models.BatchMeasurement)
            .where(cel_models.BatchMeasurement.batch_id == batch_id)
            .order_by(cel_models.BatchMeasurement.measurement_date.desc())
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def add_additive(
        self, db: AsyncSession, *, batch_id: int, obj_in: cel_schemas.BatchAdditiveCreate
    ) -> cel_models.BatchAdditive:
        db_batch = await self.get_or_404(db, batch_id)
        data = obj_in.model_dump(exclude_unset=True, exclude={"added_at"})
        db_obj = cel_models.BatchAdditive(
            batch_id=batch_id,
            vessel_id=db_batch.vessel_id,
            added_at=obj_in.added_at or utc_now(),
            **data,
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get_additives(self, db: AsyncSession, *, batch_id: int) -> List[cel_models.BatchAdditive]:
        await self.get_or_404(db, batch_id)
        statement = (
            select(cel_models.BatchAdditive)
            .where(cel_models.BatchAdditive.batch_id == batch_id)
            .order_by(cel_models.BatchAdditive.added_at.desc())
        )
        result = await db.execute(statement)
        return result.scalars().all()

    # -------------------------------------------------------------------------
    # 랙킹 (Racking)
    # -------------------------------------------------------------------------
    async def rack(
        self, db: AsyncSession, *, batch_id: int, obj_in: cel_schemas.BatchRackCreate, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        배치를 다른 탱크(또는 같은 탱크)로 랙킹합니다.

        - 부분 랙킹: 옮긴 부피로 도착 탱크에 자식 배치를 만들고 원 배치는 남은 부피로 유지
        - 자기 자신으로 랙킹: 침전물 제거로 부피만 갱신하고 aging 상태로 전환
        - 도착 탱크에 배치가 있으면 병합하고 원 배치는 completed 처리
        - 그 외에는 배치를 도착 탱크로 이동하고 aging 상태로 전환
        """
        db_batch = await self.get_or_404(db, batch_id)
        if db_batch.vessel_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Batch must be assigned to a vessel before racking")

        dest_vessel = await vessel.get(db, obj_in.destination_vessel_id)
        if not dest_vessel:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination vessel not found")

        source_vessel_id = db_batch.vessel_id
        is_self = source_vessel_id == dest_vessel.id
        dest_batch = None
        if not is_self:
            dest_batch = await vessel.get_current_batch(db, vessel_id=dest_vessel.id)
            if dest_vessel.status in (cel_models.VesselStatus.CLEANING, cel_models.VesselStatus.MAINTENANCE):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Destination vessel is {dest_vessel.status.value} and cannot receive liquid",
                )

        volume_before = float(db_batch.current_volume_l)
        volume_after = obj_in.volume_after_l
        is_partial = obj_in.volume_to_rack_l is not None and obj_in.volume_to_rack_l < volume_before - VOLUME_EPSILON

        if is_partial:
            if is_self:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Partial racking to the same vessel is not supported. Use full racking to record volume loss.",
                )
            if dest_batch is not None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Partial racking requires an empty destination vessel",
                )
            volume_racked = obj_in.volume_to_rack_l
            if volume_after > volume_racked + VOLUME_EPSILON:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Volume after racking ({volume_after}L) cannot be greater than volume to rack ({volume_racked}L)",
                )
            volume_loss = round(volume_racked - volume_after, 3)
            volume_remaining = round(volume_before - volume_racked, 3)
        else:
            if obj_in.volume_to_rack_l is not None and obj_in.volume_to_rack_l > volume_before + VOLUME_EPSILON:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Volume to rack ({obj_in.volume_to_rack_l}L) cannot be greater than current volume ({volume_before}L)",
                )
            if volume_after > volume_before + VOLUME_EPSILON:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Volume after racking ({volume_after}L) cannot be greater than current volume ({volume_before}L)",
                )
            volume_racked = volume_before
            volume_loss = round(volume_before - volume_after, 3)
            volume_remaining = 0.0

        if not is_self:
            dest_current = float(dest_batch.current_volume_l) if dest_batch else 0.0
            if dest_current + volume_after > dest_vessel.capacity_l + VOLUME_EPSILON:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Racked volume ({volume_after}L) exceeds destination vessel capacity ({float(dest_vessel.capacity_l)}L)",
                )

        # --- 검사 완료: 이후부터 변경 ---
        racked_at = obj_in.racked_at or utc_now()
        racking = cel_models.BatchRackingOperation(
            batch_id=db_batch.id,
            source_vessel_id=source_vessel_id,
            destination_vessel_id=dest_vessel.id,
            volume_before_l=volume_before,
            volume_after_l=volume_after,
            volume_loss_l=volume_loss,
            racked_at=racked_at,
            racked_by=changed_by,
            notes=obj_in.notes,
        )
        db.add(racking)

        child_batch = None
        result_batch = db_batch
        if is_partial:
            date_str = f"{racked_at:%Y-%m-%d}"
            child_batch = cel_models.Batch(
                name=f"{db_batch.name} - Racked {date_str}",
                custom_name=f"{db_batch.custom_name} - Racked {date_str}" if db_batch.custom_name else None,
                batch_number=await self.unique_batch_number(db, base=f"{db_batch.batch_number}-R{racked_at:%Y%m%d}"),
                vessel_id=dest_vessel.id,
                initial_volume_l=volume_after,
                current_volume_l=volume_after,
                status=cel_models.BatchStatus.AGING,
                start_date=racked_at,
                origin_press_run_id=db_batch.origin_press_run_id,
                origin_purchase_item_id=db_batch.origin_purchase_item_id,
                parent_batch_id=db_batch.id,
                original_gravity=db_batch.original_gravity,
                final_gravity=db_batch.final_gravity,
                estimated_abv=db_batch.estimated_abv,
                actual_abv=db_batch.actual_abv,
            )
            db.add(child_batch)
            db_batch.current_volume_l = volume_remaining
            db.add(db_batch)
            await db.flush()
            db.add(cel_models.BatchTransfer(
                source_batch_id=db_batch.id,
                source_vessel_id=source_vessel_id,
                destination_batch_id=child_batch.id,
                destination_vessel_id=dest_vessel.id,
                volume_transferred_l=volume_after,
                loss_l=volume_loss,
                total_volume_processed_l=volume_racked,
                remaining_volume_l=volume_remaining,
                notes=f"Partial rack: {volume_after:.1f}L transferred, {volume_remaining:.1f}L remaining in source",
                transferred_at=racked_at,
                transferred_by=changed_by,
            ))
            message = (
                f"Partial rack complete: {volume_after:.1f}L transferred to {dest_vessel.name}, "
                f"{volume_remaining:.1f}L remaining in source vessel"
            )
        elif is_self:
            db_batch.current_volume_l = volume_after
            db_batch.status = cel_models.BatchStatus.AGING
            db.add(db_batch)
            message = f"Batch racked to itself in {dest_vessel.name}. Sediment removed, volume loss recorded."
        elif dest_batch is not None:
            merged_volume = round(dest_batch.current_volume_l + volume_after, 3)
            db.add(cel_models.BatchMergeHistory(
                target_batch_id=dest_batch.id,
                source_type=cel_models.MergeSourceType.BATCH_TRANSFER,
                source_batch_id=db_batch.id,
                volume_added_l=volume_after,
                target_volume_before_l=dest_batch.current_volume_l,
                target_volume_after_l=merged_volume,
                notes="Racking merge operation",
                merged_at=racked_at,
                merged_by=changed_by,
            ))
            db.add(cel_models.BatchTransfer(
                source_batch_id=db_batch.id,
                source_vessel_id=source_vessel_id,
                destination_batch_id=dest_batch.id,
                destination_vessel_id=dest_vessel.id,
                volume_transferred_l=volume_after,
                loss_l=volume_loss,
                total_volume_processed_l=volume_before,
                notes="Racking merge operation",
                transferred_at=racked_at,
                transferred_by=changed_by,
            ))
            dest_batch.current_volume_l = merged_volume
            db.add(dest_batch)

            db_batch.vessel_id = None
            db_batch.status = cel_models.BatchStatus.COMPLETED
            db_batch.current_volume_l = 0.0
            db_batch.end_date = racked_at
            db.add(db_batch)
            result_batch = dest_batch
            message = f"Batch racked and merged into {dest_batch.custom_name or dest_batch.name} in {dest_vessel.name}"
        else:
            db_batch.vessel_id = dest_vessel.id
            db_batch.current_volume_l = volume_after
            db_batch.status = cel_models.BatchStatus.AGING
            db.add(db_batch)
            message = f"Batch racked to {dest_vessel.name}"

        if not is_self and not is_partial:
            source_vessel = await vessel.get(db, source_vessel_id)
            if source_vessel:
                source_vessel.status = cel_models.VesselStatus.CLEANING
                db.add(source_vessel)
        if not is_self and dest_batch is None:
            dest_vessel.status = cel_models.VesselStatus.IN_USE
            db.add(dest_vessel)

        await db.flush()
        record_audit(db, table_name="batch_racking_operations", record_id=racking.id, operation="INSERT",
                     new_data=racking, changed_by=changed_by, reason=message)
        await db.commit()

        for obj in (result_batch, db_batch, racking, child_batch):
            if obj is not None:
                await db.refresh(obj)
        logger.info(message)

        return {
            "message": message,
            "batch": result_batch,
            "child_batch": child_batch,
            "racking_operation": racking,
            "merged": dest_batch is not None,
            "is_partial": is_partial,
        }

    # -------------------------------------------------------------------------
    # 여과 (Filter)
    # -------------------------------------------------------------------------
    async def filter(
        self, db: AsyncSession, *, batch_id: int, obj_in: cel_schemas.BatchFilterCreate
    ) -> cel_models.BatchFilterOperation:
        db_batch = await self.get_or_404(db, batch_id)
        if db_batch.vessel_id != obj_in.vessel_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Batch is not in the specified vessel")
        if obj_in.volume_after_l >= obj_in.volume_before_l:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Volume after filtering must be less than volume before",
            )

        operation = cel_models.BatchFilterOperation(
            batch_id=batch_id,
            vessel_id=obj_in.vessel_id,
            filter_type=obj_in.filter_type,
            volume_before_l=obj_in.volume_before_l,
            volume_after_l=obj_in.volume_after_l,
            volume_loss_l=round(obj_in.volume_before_l - obj_in.volume_after_l, 3),
            filtered_at=obj_in.filtered_at or utc_now(),
            filtered_by=obj_in.filtered_by,
        )
        db.add(operation)
        db_batch.current_volume_l = obj_in.volume_after_l
        db.add(db_batch)
        await db.commit()
        await db.refresh(operation)
        return operation

    # -------------------------------------------------------------------------
    # 이력 조회
    # -------------------------------------------------------------------------
    async def get_merge_history(self, db: AsyncSession, *, batch_id: int) -> List[cel_models.BatchMergeHistory]:
        await self.get_or_404(db, batch_id)
        statement = (
            select(cel_models.BatchMergeHistory)
            .where(cel_models.BatchMergeHistory.target_batch_id == batch_id)
            .order_by(cel_models.BatchMergeHistory.merged_at.desc())
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_activity_history(self, db: AsyncSession, *, batch_id: int) -> List[Dict[str, Any]]:
        """
        측정, 첨가물, 랙킹, 여과, 이송, 병합 기록을 최신순으로 합친 작업 이력.
        """
        db_batch = await self.get_or_404(db, batch_id)
        activities: List[Dict[str, Any]] = [{
            "activity_type": "creation",
            "occurred_at": db_batch.start_date or db_batch.created_at,
            "description": f"Batch {db_batch.name} started with {float(db_batch.initial_volume_l)}L",
            "details": {"batch_number": db_batch.batch_number},
        }]

        for m in await self.get_measurements(db, batch_id=batch_id):
            activities.append({
                "activity_type": "measurement",
                "occurred_at": m.measurement_date,
                "description": "Measurement recorded",
                "details": {"specific_gravity": m.specific_gravity, "abv": m.abv, "ph": m.ph,
                            "temperature_c": m.temperature_c},
            })

        for a in await self.get_additives(db, batch_id=batch_id):
            activities.append({
                "activity_type": "additive",
                "occurred_at": a.added_at,
                "description": f"Added {a.amount:g} {a.unit} of {a.additive_name}",
                "details": {"additive_type": a.additive_type},
            })

        rackings = (await db.execute(
            select(cel_models.BatchRackingOperation).where(cel_models.BatchRackingOperation.batch_id == batch_id)
        )).scalars().all()
        for r in rackings:
            activities.append({
                "activity_type": "racking",
                "occurred_at": r.racked_at,
                "description": f"Racked with {r.volume_loss_l:g}L loss",
                "details": {"source_vessel_id": r.source_vessel_id, "destination_vessel_id": r.destination_vessel_id,
                            "volume_after_l": r.volume_after_l},
            })

        filters = (await db.execute(
            select(cel_models.BatchFilterOperation).where(cel_models.BatchFilterOperation.batch_id == batch_id)
        )).scalars().all()
        for f in filters:
            activities.append({
                "activity_type": "filter",
                "occurred_at": f.filtered_at,
                "description": f"Filtered with {f.filter_type.value} filter",
                "details": {"volume_loss_l": f.volume_loss_l},
            })

        for t in await vessel.get_transfer_history(db, batch_id=batch_id, limit=1000):
            activities.append({
                "activity_type": "transfer",
                "occurred_at": t.transferred_at,
                "description": f"Transferred {t.volume_transferred_l:g}L",
                "details": {"source_vessel_id": t.source_vessel_id, "destination_vessel_id": t.destination_vessel_id,
                            "loss_l": t.loss_l, "notes": t.notes},
            })

        for h in await self.get_merge_history(db, batch_id=batch_id):
            activities.append({
                "activity_type": "merge",
                "occurred_at": h.merged_at,
                "description": f"Merged {h.volume_added_l:g}L ({h.source_type.value})",
                "details": {"volume_before_l": h.target_volume_before_l, "volume_after_l": h.target_volume_after_l},
            })

        activities.sort(key=lambda item: ensure_utc(item["occurred_at"]), reverse=True)
        return activities

    # -------------------------------------------------------------------------
    # 주스 구매분 → 탱크
    # -------------------------------------------------------------------------
    async def transfer_juice_to_tank(
        self, db: AsyncSession, *, obj_in: cel_schemas.JuiceTransferCreate, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        구매한 주스를 탱크로 옮깁니다. 탱크가 비어 있으면 새 배치를 만들고,
        배치가 있으면 병합 이력을 남기고 부피를 더합니다.
        """
        item = await pur_crud.purchase_item.get_active(db, item_id=obj_in.purchase_item_id)
        if not item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase item not found")
        if item.item_type != pur_models.PurchaseItemType.JUICE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Purchase item is not juice")
        if item.is_depleted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Purchase item is depleted")

        total_l = item.quantity_l or 0.0
        available = round(total_l - (item.volume_allocated_l or 0.0), 3)
        volume = obj_in.volume_l if obj_in.volume_l is not None else available
        if volume <= 0 or volume > available + VOLUME_EPSILON:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient juice available. Available: {available:.2f}L, Requested: {volume:.2f}L",
            )

        db_vessel = await vessel.get(db, obj_in.vessel_id)
        if not db_vessel:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
        existing = await vessel.get_current_batch(db, vessel_id=db_vessel.id)
        if existing is None and db_vessel.status != cel_models.VesselStatus.AVAILABLE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Vessel is {db_vessel.status.value} and cannot receive liquid",
            )
        current = float(existing.current_volume_l) if existing else 0.0
        if current + volume > db_vessel.capacity_l + VOLUME_EPSILON:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Juice volume ({volume}L) plus existing volume ({current}L) exceeds vessel capacity ({float(db_vessel.capacity_l)}L)",
            )

        db_purchase = await pur_crud.purchase.get(db, item.purchase_id)
        material_cost = round(item.total_cost * volume / total_l, 2) if total_l else 0.0
        variety_name = None
        if item.fruit_variety_id:
            variety = await db.get(ven_models.FruitVariety, item.fruit_variety_id)
            variety_name = variety.name if variety else None
        transfer_date = obj_in.transfer_date or utc_now()

        # --- 검사 완료: 이후부터 변경 ---
        is_new_batch = existing is None
        if is_new_batch:
            sequence = await self.next_batch_sequence(db, year_date=transfer_date)
            target = cel_models.Batch(
                name=naming.batch_name(transfer_date, db_vessel.name, variety_name or item.item_name),
                batch_number=await self.unique_batch_number(db, base=naming.batch_number(transfer_date, sequence)),
                vessel_id=db_vessel.id,
                initial_volume_l=volume,
                current_volume_l=volume,
                status=cel_models.BatchStatus.ACTIVE,
                start_date=transfer_date,
                origin_purchase_item_id=item.id,
                notes=obj_in.notes,
            )
            db.add(target)
            await db.flush()
            fraction = 1.0
            db_vessel.status = cel_models.VesselStatus.FERMENTING
            db.add(db_vessel)
        else:
            target = existing
            new_volume = round(current + volume, 3)
            fraction = round(volume / new_volume, 6)
            # 기존 구성비를 새 부피 기준으로 축소
            compositions = (await db.execute(
                select(cel_models.BatchComposition).where(cel_models.BatchComposition.batch_id == target.id)
            )).scalars().all()
            for composition in compositions:
                composition.fraction_of_batch = round(composition.fraction_of_batch * current / new_volume, 6)
                db.add(composition)
            db.add(cel_models.BatchMergeHistory(
                target_batch_id=target.id,
                source_type=cel_models.MergeSourceType.JUICE_PURCHASE,
                source_purchase_item_id=item.id,
                volume_added_l=volume,
                target_volume_before_l=current,
                target_volume_after_l=new_volume,
                notes=obj_in.notes,
                merged_at=transfer_date,
                merged_by=changed_by,
            ))
            target.current_volume_l = new_volume
            db.add(target)

        db.add(cel_models.BatchComposition(
            batch_id=target.id,
            source_type=cel_models.CompositionSourceType.JUICE_PURCHASE,
            purchase_item_id=item.id,
            vendor_id=db_purchase.vendor_id if db_purchase else None,
            fruit_variety_id=item.fruit_variety_id,
            input_weight_kg=0.0,
            juice_volume_l=volume,
            fraction_of_batch=fraction,
            material_cost=material_cost,
        ))

        item.volume_allocated_l = round((item.volume_allocated_l or 0.0) + volume, 3)
        if item.volume_allocated_l >= total_l - VOLUME_EPSILON:
            item.is_depleted = True
            item.depleted_at = utc_now()
        db.add(item)

        record_audit(db, table_name="batches", record_id=target.id,
                     operation="INSERT" if is_new_batch else "UPDATE",
                     new_data={"current_volume_l": target.current_volume_l, "purchase_item_id": item.id},
                     changed_by=changed_by, reason="Juice transferred to tank")
        await db.commit()
        await db.refresh(target)

        if is_new_batch:
            message = f"New batch created in {db_vessel.name} with {volume:.1f}L of juice"
        else:
            message = f"Added {volume:.1f}L of juice to existing batch in {db_vessel.name}"
        logger.info(message)
        return {"message": message, "is_new_batch": is_new_batch, "batch": target}


batch = CRUDBatch()
