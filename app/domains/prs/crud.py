# app/domains/prs/crud.py

"""
'prs' 도메인 (PostgreSQL 'prs' 스키마)의 CRUD 및 착즙 작업 로직을 담당하는 모듈입니다.

- 착즙 작업 생성/조회/취소/삭제
- 투입분(load) 추가/수정/삭제 (진행 중인 작업만)
- 착즙 완료: 탱크별 배치 생성, 구성비/원료비 배분, 착즙률 및 인건비 계산
"""

import logging
from typing import List, Optional, Dict, Any

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.domains.shared.services import record_audit
from app.domains.cel import crud as cel_crud
from app.domains.cel import models as cel_models
from app.domains.pur import crud as pur_crud
from app.domains.pur import models as pur_models
from app.domains.ven import crud as ven_crud
from app.domains.ven import models as ven_models
from app.utils import costing, naming, units
from app.utils.dates import day_bounds, ensure_utc, utc_now
from . import models as prs_models
from . import schemas as prs_schemas

logger = logging.getLogger(__name__)

VOLUME_TOLERANCE_L = 0.001


def _ensure_in_progress(db_run: prs_models.PressRun) -> None:
    if db_run.status != prs_models.PressRunStatus.IN_PROGRESS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Press run is not in progress")


def _weight_in_kg(weight: float, unit: str) -> float:
    if weight is None or weight <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Load weight must be positive")
    if not units.is_weight_unit(unit):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid weight unit: {unit}")
    return round(units.to_kg(weight, unit), 3)


# =============================================================================
# 1. prs.press_runs 테이블 CRUD
# =============================================================================
class CRUDPressRun(CRUDBase[prs_models.PressRun, prs_schemas.PressRunCreate, prs_schemas.PressRunUpdate]):
    def __init__(self):
        super().__init__(prs_models.PressRun)

    async def get_with_loads(self, db: AsyncSession, *, press_run_id: int) -> Optional[prs_models.PressRun]:
        statement = (
            select(self.model)
            .where(self.model.id == press_run_id, *self._not_deleted())
            .options(selectinload(self.model.loads))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def get_or_404(self, db: AsyncSession, press_run_id: int) -> prs_models.PressRun:
        db_run = await self.get(db, press_run_id)
        if not db_run:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Press run not found")
        return db_run

    async def get_press_runs(
        self,
        db: AsyncSession,
        *,
        run_status: Optional[prs_models.PressRunStatus] = None,
        vendor_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[prs_models.PressRun]:
        return await self.get_filtered(
            db,
            filters={"status": run_status, "vendor_id": vendor_id},
            order_by_field="start_time",
            skip=skip,
            limit=limit,
        )

    async def create(
        self, db: AsyncSession, *, obj_in: prs_schemas.PressRunCreate, changed_by: Optional[int] = None
    ) -> prs_models.PressRun:
        """
        착즙 작업을 시작합니다. 이름은 시작 날짜의 순번을 붙여 'yyyy/mm/dd-##' 형식으로 만듭니다.
        """
        if obj_in.vendor_id is not None and not await ven_crud.vendor.get(db, obj_in.vendor_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")

        start_time = ensure_utc(obj_in.start_time) or utc_now()
        day_start, day_end = day_bounds(start_time.date())
        count_result = await db.execute(
            select(func.count(self.model.id)).where(
                self.model.start_time >= day_start, self.model.start_time < day_end
            )
        )
        sequence = (count_result.scalar_one() or 0) + 1

        db_obj = prs_models.PressRun(
            name=naming.press_run_name(start_time, sequence),
            vendor_id=obj_in.vendor_id,
            status=prs_models.PressRunStatus.IN_PROGRESS,
            start_time=start_time,
            labor_cost_per_hour=obj_in.labor_cost_per_hour,
            notes=obj_in.notes,
        )
        db.add(db_obj)
        await db.flush()
        record_audit(db, table_name="press_runs", record_id=db_obj.id, operation="INSERT",
                     new_data=db_obj, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: prs_models.PressRun,
        obj_in: prs_schemas.PressRunUpdate,
        changed_by: Optional[int] = None,
    ) -> prs_models.PressRun:
        update_data = obj_in.model_dump(exclude_unset=True)
        if update_data.get("vendor_id") is not None and not await ven_crud.vendor.get(db, update_data["vendor_id"]):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")

        old_data = {key: getattr(db_obj, key) for key in update_data}
        for key, value in update_data.items():
            setattr(db_obj, key, value)
        if db_obj.labor_hours is not None and db_obj.labor_cost_per_hour is not None:
            db_obj.total_labor_cost = round(db_obj.labor_hours * db_obj.labor_cost_per_hour, 2)
        db.add(db_obj)
        if update_data:
            record_audit(db, table_name="press_runs", record_id=db_obj.id, operation="UPDATE",
                         old_data=old_data, new_data=update_data, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def cancel(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> prs_models.PressRun:
        db_run = await self.get_or_404(db, id)
        if db_run.status == prs_models.PressRunStatus.COMPLETED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot cancel a completed press run")
        if db_run.status == prs_models.PressRunStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Press run is already cancelled")

        old_status = db_run.status
        db_run.status = prs_models.PressRunStatus.CANCELLED
        db_run.end_time = utc_now()
        db.add(db_run)
        record_audit(db, table_name="press_runs", record_id=db_run.id, operation="UPDATE",
                     old_data={"status": old_status}, new_data={"status": db_run.status},
                     changed_by=changed_by, reason="Press run cancelled")
        await db.commit()
        await db.refresh(db_run)
        logger.info(f"Press run {db_run.name} cancelled")
        return db_run

    async def remove(self, db: AsyncSession, *, id: int, changed_by: Optional[int] = None) -> prs_models.PressRun:
        await self.get_or_404(db, id)
        return await self.delete(db, id=id, changed_by=changed_by)

    # -------------------------------------------------------------------------
    # 투입분 (Load)
    # -------------------------------------------------------------------------
    async def _get_basefruit_item(self, db: AsyncSession, item_id: int) -> pur_models.PurchaseItem:
        item = await pur_crud.purchase_item.get_active(db, item_id=item_id)
        if not item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase item not found")
        if item.item_type != pur_models.PurchaseItemType.BASEFRUIT:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Purchase item is not basefruit")
        if item.is_depleted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Purchase item is depleted")
        return item

    async def _get_load(self, db: AsyncSession, press_run_id: int, load_id: int) -> prs_models.PressRunLoad:
        db_load = await db.get(prs_models.PressRunLoad, load_id, populate_existing=True)
        if not db_load or db_load.press_run_id != press_run_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Press run load not found")
        return db_load

    async def _loads_total_kg(self, db: AsyncSession, press_run_id: int) -> float:
        result = await db.execute(
            select(func.coalesce(func.sum(prs_models.PressRunLoad.apple_weight_kg), 0))
            .where(prs_models.PressRunLoad.press_run_id == press_run_id)
        )
        return round(float(result.scalar_one() or 0), 3)

    async def add_load(
        self,
        db: AsyncSession,
        *,
        press_run_id: int,
        obj_in: prs_schemas.PressRunLoadCreate,
        changed_by: Optional[int] = None,
    ) -> prs_models.PressRunLoad:
        db_run = await self.get_or_404(db, press_run_id)
        _ensure_in_progress(db_run)
        item = await self._get_basefruit_item(db, obj_in.purchase_item_id)
        weight_kg = _weight_in_kg(obj_in.original_weight, obj_in.original_weight_unit)

        seq_result = await db.execute(
            select(func.max(prs_models.PressRunLoad.load_sequence))
            .where(prs_models.PressRunLoad.press_run_id == press_run_id)
        )
        next_sequence = (seq_result.scalar_one_or_none() or 0) + 1

        if db_run.vendor_id is None:
            db_purchase = await pur_crud.purchase.get(db, item.purchase_id)
            if db_purchase:
                db_run.vendor_id = db_purchase.vendor_id

        db_load = prs_models.PressRunLoad(
            press_run_id=press_run_id,
            purchase_item_id=item.id,
            fruit_variety_id=item.fruit_variety_id,
            load_sequence=next_sequence,
            apple_weight_kg=weight_kg,
            original_weight=obj_in.original_weight,
            original_weight_unit=obj_in.original_weight_unit,
            brix=obj_in.brix,
            apple_condition=obj_in.apple_condition,
            notes=obj_in.notes,
        )
        db.add(db_load)
        db_run.total_apple_weight_kg = round((db_run.total_apple_weight_kg or 0.0) + weight_kg, 3)
        db.add(db_run)
        await db.flush()
        record_audit(db, table_name="press_run_loads", record_id=db_load.id, operation="INSERT",
                     new_data=db_load, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_load)
        return db_load

    async def update_load(
        self,
        db: AsyncSession,
        *,
        press_run_id: int,
        load_id: int,
        obj_in: prs_schemas.PressRunLoadUpdate,
        changed_by: Optional[int] = None,
    ) -> prs_models.PressRunLoad:
        db_run = await self.get_or_404(db, press_run_id)
        _ensure_in_progress(db_run)
        db_load = await self._get_load(db, press_run_id, load_id)

        update_data = obj_in.model_dump(exclude_unset=True)
        if "original_weight" in update_data or "original_weight_unit" in update_data:
            weight = update_data.get("original_weight", db_load.original_weight)
            unit = update_data.get("original_weight_unit") or db_load.original_weight_unit
            update_data["apple_weight_kg"] = _weight_in_kg(weight, unit)

        old_data = {key: getattr(db_load, key) for key in update_data}
        for key, value in update_data.items():
            setattr(db_load, key, value)
        db.add(db_load)
        await db.flush()

        db_run.total_apple_weight_kg = await self._loads_total_kg(db, press_run_id)
        db.add(db_run)
        record_audit(db, table_name="press_run_loads", record_id=db_load.id, operation="UPDATE",
                     old_data=old_data, new_data=update_data, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_load)
        return db_load

    async def delete_load(
        self, db: AsyncSession, *, press_run_id: int, load_id: int, changed_by: Optional[int] = None
    ) -> None:
        db_run = await self.get_or_404(db, press_run_id)
        _ensure_in_progress(db_run)
        db_load = await self._get_load(db, press_run_id, load_id)

        record_audit(db, table_name="press_run_loads", record_id=db_load.id, operation="DELETE",
                     old_data=db_load, changed_by=changed_by)
        await db.delete(db_load)
        await db.flush()
        db_run.total_apple_weight_kg = await self._loads_total_kg(db, press_run_id)
        db.add(db_run)
        await db.commit()

    # -------------------------------------------------------------------------
    # 착즙 완료 (Finish)
    # -------------------------------------------------------------------------
    async def finish(
        self,
        db: AsyncSession,
        *,
        press_run_id: int,
        obj_in: prs_schemas.PressRunFinish,
        changed_by: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        착즙 작업을 완료하고 지정된 탱크마다 배치를 하나씩 생성합니다.

        1. 작업 상태, 투입분, 탱크 배정(존재/available/용량/중복/합계) 검사
        2. 투입분별 구성비(무게 또는 당도 기준) 및 원료비 계산
        3. 배치별 주스 부피/원료비를 구성비대로 배분 (반올림 오차는 마지막 항목이 흡수)
        4. 착즙률, 인건비, 상태(completed) 갱신 후 한 번에 커밋
        """
        db_run = await self.get_with_loads(db, press_run_id=press_run_id)
        if not db_run:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Press run not found")

        existing = await db.execute(
            select(func.count(cel_models.Batch.id)).where(cel_models.Batch.origin_press_run_id == press_run_id)
        )
        if existing.scalar_one():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Press run has already been finished and batches were created",
            )
        _ensure_in_progress(db_run)

        loads = list(db_run.loads)
        if not loads:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Press run has no loads")

        # --- 탱크 배정 검사 ---
        vessels: List[cel_models.Vessel] = []
        seen_vessels = set()
        for assignment in obj_in.assignments:
            if assignment.vessel_id in seen_vessels:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Vessel {assignment.vessel_id} is assigned more than once",
                )
            seen_vessels.add(assignment.vessel_id)
            db_vessel = await cel_crud.vessel.get(db, assignment.vessel_id)
            if not db_vessel:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vessel {assignment.vessel_id} not found")
            if db_vessel.status != cel_models.VesselStatus.AVAILABLE:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Vessel {db_vessel.name} is not available (status: {db_vessel.status.value})",
                )
            if assignment.volume_l > db_vessel.capacity_l + VOLUME_TOLERANCE_L:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Assigned volume ({assignment.volume_l}L) exceeds capacity of {db_vessel.name} ({float(db_vessel.capacity_l)}L)",
                )
            vessels.append(db_vessel)

        total_juice = obj_in.total_juice_volume_l
        total_assigned = round(sum(a.volume_l for a in obj_in.assignments), 3)
        if total_assigned > total_juice + VOLUME_TOLERANCE_L:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Total assigned volume ({total_assigned}L) exceeds total juice volume ({total_juice}L)",
            )

        # --- 구성비 ---
        try:
            fractions = costing.allocation_fractions(
                [load.apple_weight_kg for load in loads],
                [load.brix for load in loads],
                mode=obj_in.allocation_mode,
            )
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        if obj_in.load_juice:
            juice_by_load = {entry.load_id: entry.juice_volume_l for entry in obj_in.load_juice}
            unknown = set(juice_by_load) - {load.id for load in loads}
            if unknown:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Loads {sorted(unknown)} do not belong to this press run",
                )
        else:
            juice_by_load = dict(zip([load.id for load in loads], costing.split_amount(total_juice, fractions, 3)))

        # 투입분별 원료비, 공급업체, 품종명
        load_info: List[Dict[str, Any]] = []
        for load in loads:
            item = await db.get(pur_models.PurchaseItem, load.purchase_item_id)
            db_purchase = await db.get(pur_models.Purchase, item.purchase_id) if item else None
            variety = await db.get(ven_models.FruitVariety, load.fruit_variety_id) if load.fruit_variety_id else None
            cost = 0.0
            if item and item.quantity_kg:
                cost = round(item.total_cost / item.quantity_kg * load.apple_weight_kg, 2)
            load_info.append({
                "vendor_id": db_purchase.vendor_id if db_purchase else db_run.vendor_id,
                "variety_name": variety.name if variety else None,
                "material_cost": cost,
            })
        total_material = round(sum(info["material_cost"] for info in load_info), 2)
        if total_material > 0:
            cost_fractions = [info["material_cost"] / total_material for info in load_info]
        else:
            cost_fractions = list(fractions)

        variety_fractions: Dict[str, float] = {}
        for info, fraction in zip(load_info, fractions):
            if info["variety_name"]:
                variety_fractions[info["variety_name"]] = variety_fractions.get(info["variety_name"], 0.0) + fraction
        primary_variety = naming.select_primary_variety(
            [{"variety_name": name, "fraction": fraction} for name, fraction in variety_fractions.items()]
        )

        end_time = ensure_utc(obj_in.end_time) or utc_now()
        sequence = await cel_crud.batch.next_batch_sequence(db, year_date=end_time)
        reserved_numbers = set()

        # --- 검사 완료: 이후부터 변경 ---
        for load in loads:
            load.juice_volume_l = juice_by_load.get(load.id, load.juice_volume_l)
            db.add(load)

        created_batches: List[cel_models.Batch] = []
        for index, (assignment, db_vessel) in enumerate(zip(obj_in.assignments, vessels)):
            number = await cel_crud.batch.unique_batch_number(
                db, base=naming.batch_number(end_time, sequence + index), reserved=reserved_numbers
            )
            reserved_numbers.add(number)
            db_batch = cel_models.Batch(
                name=naming.batch_name(end_time, db_vessel.name, primary_variety, chr(ord("A") + index)),
                batch_number=number,
                vessel_id=db_vessel.id,
                initial_volume_l=assignment.volume_l,
                current_volume_l=assignment.volume_l,
                status=cel_models.BatchStatus.ACTIVE,
                start_date=end_time,
                origin_press_run_id=db_run.id,
            )
            db.add(db_batch)
            await db.flush()

            volumes = costing.split_amount(assignment.volume_l, fractions, 3)
            batch_material = total_material * assignment.volume_l / total_juice
            costs = costing.split_amount(batch_material, cost_fractions, 2)
            for load, info, fraction, volume, cost in zip(loads, load_info, fractions, volumes, costs):
                db.add(cel_models.BatchComposition(
                    batch_id=db_batch.id,
                    source_type=cel_models.CompositionSourceType.PRESS_RUN,
                    purchase_item_id=load.purchase_item_id,
                    vendor_id=info["vendor_id"],
                    fruit_variety_id=load.fruit_variety_id,
                    input_weight_kg=round(load.apple_weight_kg * assignment.volume_l / total_juice, 3),
                    juice_volume_l=volume,
                    fraction_of_batch=fraction,
                    material_cost=cost,
                    avg_brix=load.brix,
                ))

            db_vessel.status = cel_models.VesselStatus.FERMENTING
            db.add(db_vessel)
            created_batches.append(db_batch)

        labor_rate = obj_in.labor_cost_per_hour
        if labor_rate is None:
            labor_rate = db_run.labor_cost_per_hour if db_run.labor_cost_per_hour is not None else settings.DEFAULT_LABOR_RATE
        labor_hours = obj_in.labor_hours if obj_in.labor_hours is not None else db_run.labor_hours

        db_run.total_juice_volume_l = total_juice
        db_run.extraction_rate = round(total_juice / db_run.total_apple_weight_kg, 4) if db_run.total_apple_weight_kg else None
        db_run.labor_hours = labor_hours
        db_run.labor_cost_per_hour = labor_rate
        db_run.total_labor_cost = round(labor_hours * labor_rate, 2) if labor_hours is not None else None
        db_run.status = prs_models.PressRunStatus.COMPLETED
        db_run.end_time = end_time
        if obj_in.notes:
            db_run.notes = f"{db_run.notes}\n{obj_in.notes}" if db_run.notes else obj_in.notes
        db.add(db_run)

        message = (
            f"Press run {db_run.name} completed: {total_juice}L juice from {float(db_run.total_apple_weight_kg)}kg, "
            f"{len(created_batches)} batch(es) created"
        )
        record_audit(db, table_name="press_runs", record_id=db_run.id, operation="UPDATE",
                     new_data={"status": db_run.status, "total_juice_volume_l": total_juice,
                               "batch_ids": [b.id for b in created_batches]},
                     changed_by=changed_by, reason=message)
        await db.commit()

        await db.refresh(db_run)
        for db_batch in created_batches:
            await db.refresh(db_batch)
        logger.info(message)
        return {"press_run": db_run, "batches": created_batches, "message": message}


press_run = CRUDPressRun()
