# app/domains/shared/routers.py

"""
'shared' 도메인 (감사 로그)의 API 엔드포인트를 정의하는 모듈입니다.
감사 로그 조회와 정리는 관리자만 사용할 수 있습니다.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core import dependencies as deps
from app.domains.usr import models as usr_models

from . import crud as shared_crud
from . import models as shared_models
from . import schemas as shared_schemas


router = APIRouter(
    tags=["Shared (감사 로그)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. shared.audit_logs 엔드포인트
# =============================================================================
@router.get("/audit-logs", response_model=List[shared_schemas.AuditLogRead])
async def read_audit_logs(
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    operation: Optional[shared_models.AuditOperation] = None,
    changed_by: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    """
    감사 로그를 필터 조건으로 조회합니다. (관리자 권한 필요)
    """
    return await shared_crud.audit_log.get_logs(
        db,
        table_name=table_name,
        record_id=record_id,
        operation=operation,
        changed_by=changed_by,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.get("/audit-logs/stats", response_model=shared_schemas.AuditLogStats)
async def read_audit_log_stats(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return await shared_crud.audit_log.get_stats(db)


@router.get("/audit-logs/users/{user_id}", response_model=List[shared_schemas.AuditLogRead])
async def read_user_activity(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    """특정 사용자가 수행한 변경 이력을 최신순으로 조회합니다."""
    return await shared_crud.audit_log.get_logs(db, changed_by=user_id, skip=skip, limit=limit)


@router.get("/audit-logs/{table_name}/{record_id}", response_model=List[shared_schemas.AuditLogRead])
async def read_record_history(
    table_name: str,
    record_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    """특정 레코드의 변경 이력을 시간순으로 조회합니다."""
    return await shared_crud.audit_log.get_record_history(db, table_name=table_name, record_id=record_id)


@router.delete("/audit-logs/cleanup", response_model=shared_schemas.AuditCleanupResult)
async def cleanup_audit_logs(
    older_than_days: int = Query(settings.AUDIT_RETENTION_DAYS, ge=1),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    """보존 기간이 지난 감사 로그를 즉시 삭제합니다."""
    return await shared_crud.audit_log.cleanup(db, older_than_days=older_than_days)
