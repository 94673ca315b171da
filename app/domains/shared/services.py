# app/domains/shared/services.py

"""
모든 도메인이 공유하는 감사 로그 기록 서비스입니다.

감사 로그는 호출한 쪽의 세션에 추가만 하며 커밋하지 않습니다.
따라서 업무 데이터의 변경과 감사 로그는 항상 같은 트랜잭션으로 커밋/롤백됩니다.
"""

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from . import models as shared_models

# 감사 데이터에서 제외할 자동 관리 컬럼
_EXCLUDED_FIELDS = {"created_at", "updated_at"}


def _to_audit_data(data: Any) -> Optional[Dict[str, Any]]:
    if data is None:
        return None
    if isinstance(data, SQLModel):
        return jsonable_encoder(data, exclude=_EXCLUDED_FIELDS)
    return jsonable_encoder({k: v for k, v in dict(data).items() if k not in _EXCLUDED_FIELDS})


def record_audit(
    db: AsyncSession,
    *,
    table_name: str,
    record_id: Optional[int],
    operation: str,
    old_data: Any = None,
    new_data: Any = None,
    changed_by: Optional[int] = None,
    reason: Optional[str] = None,
) -> shared_models.AuditLog:
    """
    감사 로그 한 건을 현재 세션에 추가합니다. (커밋은 호출자가 담당)
    """
    entry = shared_models.AuditLog(
        table_name=table_name,
        record_id=record_id,
        operation=shared_models.AuditOperation(operation),
        old_data=_to_audit_data(old_data),
        new_data=_to_audit_data(new_data),
        changed_by=changed_by,
        reason=reason,
    )
    db.add(entry)
    return entry
