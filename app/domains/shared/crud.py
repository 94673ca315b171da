# app/domains/shared/crud.py

"""
'shared' 도메인 (감사 로그)과 관련된 CRUD 로직을 담당하는 모듈입니다.
감사 로그는 변경 불가 데이터이므로 조회·통계·보존기간 정리만 제공합니다.
"""
import logging
from datetime import datetime, timedelta, UTC
from typing import List, Optional

from sqlalchemy import delete, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

from app.core.crud_base import CRUDBase
from . import models as shared_models
from . import schemas as shared_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. 감사 로그 (AuditLog) CRUD
# =============================================================================
class CRUDAuditLog(CRUDBase[shared_models.AuditLog, BaseModel, BaseModel]):
    def __init__(self):
        super().__init__(model=shared_models.AuditLog)

    async def get_logs(
        self,
        db: AsyncSession,
        *,
        table_name: Optional[str] = None,
        record_id: Optional[int] = None,
        operation: Optional[shared_models.AuditOperation] = None,
        changed_by: Optional[int] = None,
        start_date=None,
        end_date=None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[shared_models.AuditLog]:
        return await self.get_filtered(
            db,
            filters={
                "table_name": table_name,
                "record_id": record_id,
                "operation": operation,
                "changed_by": changed_by,
            },
            date_range_field="changed_at",
            start_date=start_date,
            end_date=end_date,
            order_by_field="changed_at",
            skip=skip,
            limit=limit,
        )

    async def get_record_history(
        self, db: AsyncSession, *, table_name: str, record_id: int
    ) -> List[shared_models.AuditLog]:
        """특정 레코드의 변경 이력을 시간순으로 조회합니다."""
        statement = (
            select(self.model)
            .where(self.model.table_name == table_name, self.model.record_id == record_id)
            .order_by(self.model.changed_at, self.model.id)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_stats(self, db: AsyncSession) -> shared_schemas.AuditLogStats:
        total = (await db.execute(select(func.count(self.model.id)))).scalar_one()

        by_table_rows = await db.execute(
            select(self.model.table_name, func.count(self.model.id))
            .group_by(self.model.table_name)
            .order_by(func.count(self.model.id).desc())
        )
        by_operation_rows = await db.execute(
            select(self.model.operation, func.count(self.model.id)).group_by(self.model.operation)
        )
        return shared_schemas.AuditLogStats(
            total=total,
            by_table=[shared_schemas.AuditStatCount(key=name, count=count) for name, count in by_table_rows.all()],
            by_operation=[
                shared_schemas.AuditStatCount(key=getattr(op, "value", op), count=count)
                for op, count in by_operation_rows.all()
            ],
        )

    async def cleanup(self, db: AsyncSession, *, older_than_days: int) -> shared_schemas.AuditCleanupResult:
        """보존 기간이 지난 감사 로그를 삭제합니다."""
        cutoff = datetime.now(UTC) - timedelta(days=older_than_days)
        result = await db.execute(delete(self.model).where(self.model.changed_at < cutoff))
        await db.commit()
        logger.info("Audit log cleanup: %s rows older than %s removed", result.rowcount, cutoff)
        return shared_schemas.AuditCleanupResult(deleted_count=result.rowcount or 0, cutoff=cutoff)


audit_log = CRUDAuditLog()
