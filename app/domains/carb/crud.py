# app/domains/carb/crud.py

"""
'carb' 도메인 (PostgreSQL 'carb' 스키마)의 CRUD 및 탄산화 계산 로직을 담당하는 모듈입니다.
"""

import logging
from typing import List, Optional, Dict, Any

from fastapi import HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.domains.shared.services import record_audit
from app.domains.cel import crud as cel_crud
from app.domains.cel import models as cel_models
from app.utils import carbonation, units
from app.utils.dates import hours_between, utc_now
from . import models as carb_models
from . import schemas as carb_schemas

logger = logging.getLogger(__name__)

# 최종 CO2가 목표에서 이 범위 안이면 목표 달성으로 봅니다.
TARGET_TOLERANCE_VOLUMES = 0.3


def vessel_max_pressure(db_vessel: Optional[cel_models.Vessel]) -> float:
    if db_vessel is not None and db_vessel.max_pressure_psi:
        return db_vessel.max_pressure_psi
    return settings.DEFAULT_VESSEL_MAX_PRESSURE_PSI


class CRUDCarbonation(CRUDBase[carb_models.CarbonationOperation, carb_schemas.CarbonationStart, carb_schemas.CarbonationComplete]):
    def __init__(self):
        super().__init__(carb_models.CarbonationOperation)

    async def get_active_for_batch(self, db: AsyncSession, *, batch_id: int) -> Optional[carb_models.CarbonationOperation]:
        statement = select(self.model).where(
            self.model.batch_id == batch_id,
            self.model.completed_at.is_(None),
            *self._not_deleted(),
        )
        result = await db.execute(statement)
        return result.scalars().first()

    async def start(
        self, db: AsyncSession, *, obj_in: carb_schemas.CarbonationStart, changed_by: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        탄산화 작업을 시작합니다.
        - 배치는 탱크에 들어 있어야 합니다. (병내 2차 발효 제외)
        - 적용 압력은 탱크 최대 압력 이하, 온도는 안전 범위 안이어야 합니다.
        - 배치당 진행 중인 작업은 하나만 허용합니다. (409)
        """
        if obj_in.temperature_c is not None:
            temp_check = carbonation.validate_temperature(obj_in.temperature_c)
            if not temp_check["is_valid"]:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=temp_check["message"])

        db_batch = await cel_crud.batch.get_or_404(db, obj_in.batch_id)

        db_vessel = None
        is_bottle = obj_in.process == carb_models.CarbonationProcess.BOTTLE_CONDITIONING
        if not is_bottle:
            vessel_id = obj_in.vessel_id or db_batch.vessel_id
            if vessel_id is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Batch must be in a vessel for forced carbonation",
                )
            db_vessel = await cel_crud.vessel.get(db, vessel_id)
            if not db_vessel:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
            if db_batch.vessel_id != db_vessel.id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Batch is not in the specified vessel")

            max_pressure = vessel_max_pressure(db_vessel)
            if not carbonation.is_pressure_safe(obj_in.pressure_psi, max_pressure):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Pressure {obj_in.pressure_psi} PSI exceeds safe limit for this vessel (max: {max_pressure:g} PSI)",
                )

        if await self.get_active_for_batch(db, batch_id=db_batch.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Batch already has an active carbonation operation",
            )

        suggested = None
        if obj_in.temperature_c is not None:
            suggested = carbonation.required_pressure(obj_in.temperature_c, obj_in.target_co2_volumes)

        db_obj = carb_models.CarbonationOperation(
            batch_id=db_batch.id,
            vessel_id=db_vessel.id if db_vessel else None,
            process=obj_in.process,
            started_at=obj_in.started_at or utc_now(),
            starting_volume_l=round(units.to_liters(obj_in.starting_volume, obj_in.starting_volume_unit), 3),
            starting_co2_volumes=obj_in.starting_co2_volumes,
            target_co2_volumes=obj_in.target_co2_volumes,
            temperature_c=obj_in.temperature_c,
            pressure_psi=obj_in.pressure_psi,
            suggested_pressure_psi=suggested,
            gas_type=obj_in.gas_type,
            priming_sugar_g=obj_in.priming_sugar_g,
            priming_sugar_type=obj_in.priming_sugar_type.value if obj_in.priming_sugar_type else None,
            notes=obj_in.notes,
            performed_by=changed_by,
        )
        db.add(db_obj)
        await db.flush()
        record_audit(db, table_name="carbonation_operations", record_id=db_obj.id, operation="INSERT",
                     new_data=db_obj, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        logger.info(f"Carbonation started for batch {db_batch.batch_number} at {obj_in.pressure_psi} PSI")
        return {
            "carbonation": db_obj,
            "carbonation_level": carbonation.carbonation_level(obj_in.target_co2_volumes),
        }

    async def complete(
        self,
        db: AsyncSession,
        *,
        carbonation_id: int,
        obj_in: carb_schemas.CarbonationComplete,
        changed_by: Optional[int] = None,
    ) -> Dict[str, Any]:
        db_obj = await self.get(db, carbonation_id)
        if not db_obj:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Carbonation operation not found")
        if db_obj.completed_at is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Carbonation operation already completed")

        completed_at = obj_in.completed_at or utc_now()
        db_obj.completed_at = completed_at
        db_obj.duration_hours = round(hours_between(db_obj.started_at, completed_at), 1)
        db_obj.final_co2_volumes = obj_in.final_co2_volumes
        db_obj.final_pressure_psi = obj_in.final_pressure_psi
        db_obj.final_temperature_c = obj_in.final_temperature_c
        db_obj.final_volume_l = round(units.to_liters(obj_in.final_volume, obj_in.final_volume_unit), 3)
        db_obj.quality_check = obj_in.quality_check
        db_obj.quality_notes = obj_in.quality_notes
        if obj_in.notes:
            db_obj.notes = f"{db_obj.notes}\n{obj_in.notes}" if db_obj.notes else obj_in.notes
        db_obj.completed_by = changed_by
        db.add(db_obj)
        record_audit(db, table_name="carbonation_operations", record_id=db_obj.id, operation="UPDATE",
                     new_data={"completed_at": completed_at, "final_co2_volumes": obj_in.final_co2_volumes,
                               "quality_check": obj_in.quality_check},
                     changed_by=changed_by, reason="Carbonation completed")
        await db.commit()
        await db.refresh(db_obj)

        target_met = abs(obj_in.final_co2_volumes - db_obj.target_co2_volumes) < TARGET_TOLERANCE_VOLUMES
        return {
            "carbonation": db_obj,
            "carbonation_level": carbonation.carbonation_level(obj_in.final_co2_volumes),
            "target_met": target_met,
        }

    async def get_carbonations(
        self,
        db: AsyncSession,
        *,
        batch_id: Optional[int] = None,
        vessel_id: Optional[int] = None,
        active_only: bool = False,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        statement = (
            select(self.model, cel_models.Batch.name, cel_models.Vessel.name)
            .outerjoin(cel_models.Batch, cel_models.Batch.id == self.model.batch_id)
            .outerjoin(cel_models.Vessel, cel_models.Vessel.id == self.model.vessel_id)
            .where(*self._not_deleted())
        )
        if batch_id is not None:
            statement = statement.where(self.model.batch_id == batch_id)
        if vessel_id is not None:
            statement = statement.where(self.model.vessel_id == vessel_id)
        if active_only:
            statement = statement.where(self.model.completed_at.is_(None))
        statement = statement.order_by(self.model.started_at.desc()).limit(limit)

        rows = (await db.execute(statement)).all()
        return [
            {
                **op.model_dump(),
                "batch_name": batch_name,
                "vessel_name": vessel_name,
                "carbonation_level": carbonation.carbonation_level(op.target_co2_volumes),
                "is_complete": op.completed_at is not None,
            }
            for op, batch_name, vessel_name in rows
        ]

    async def get_suggestions(
        self, db: AsyncSession, *, obj_in: carb_schemas.CarbonationSuggestionRequest
    ) -> Dict[str, Any]:
        db_vessel = None
        if obj_in.vessel_id is not None:
            db_vessel = await cel_crud.vessel.get(db, obj_in.vessel_id)
            if not db_vessel:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vessel not found")
        max_pressure = vessel_max_pressure(db_vessel)
        suggestion = carbonation.carbonation_suggestions(
            obj_in.target_co2_volumes,
            obj_in.temperature_c,
            current_volumes=obj_in.current_co2_volumes,
            vessel_max_pressure=max_pressure,
        )
        return {**suggestion, "vessel_max_pressure_psi": max_pressure}


carbonation_operation = CRUDCarbonation()


def calculate_priming_sugar(obj_in: carb_schemas.PrimingSugarRequest) -> Dict[str, Any]:
    """병내 2차 발효용 프라이밍 설탕량을 계산합니다."""
    volume_l = round(units.to_liters(obj_in.volume, obj_in.volume_unit), 3)
    grams = carbonation.priming_sugar_grams(
        obj_in.target_co2_volumes, volume_l, obj_in.residual_co2_volumes, obj_in.sugar_type
    )
    grams_per_l = round(grams / volume_l, 2) if volume_l else 0.0
    return {
        "sugar_type": obj_in.sugar_type,
        "volume_l": volume_l,
        "sugar_grams": grams,
        "grams_per_liter": grams_per_l,
        "expected_co2_volumes": carbonation.co2_from_sugar(grams_per_l, obj_in.residual_co2_volumes, obj_in.sugar_type),
    }
