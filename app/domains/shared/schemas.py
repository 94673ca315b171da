# app/domains/shared/schemas.py

"""
'shared' 도메인 (감사 로그)의 Pydantic 스키마를 정의하는 모듈입니다.
"""
from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel
from sqlmodel import SQLModel

from .models import AuditOperation


# =============================================================================
# 1. shared.audit_logs 테이블 스키마
# =============================================================================
class AuditLogRead(SQLModel):
    id: int
    table_name: str
    record_id: Optional[int] = None
    operation: AuditOperation
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    changed_by: Optional[int] = None
    reason: Optional[str] = None
    changed_at: datetime

    class Config:
        from_attributes = True


class AuditStatCount(BaseModel):
    key: str
    count: int


class AuditLogStats(BaseModel):
    """테이블/작업 유형별 감사 로그 통계"""
    total: int
    by_table: List[AuditStatCount]
    by_operation: List[AuditStatCount]


class AuditCleanupResult(BaseModel):
    deleted_count: int
    cutoff: datetime
