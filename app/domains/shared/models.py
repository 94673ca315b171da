# app/domains/shared/models.py

"""
'shared' 도메인 (PostgreSQL 'shared' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

감사 로그(audit_logs)는 다른 모든 도메인의 데이터 변경 이력을 보관하며,
변경 전/후 데이터를 JSON으로 저장합니다.
"""

from typing import Optional, Dict, Any
from enum import Enum
from datetime import datetime, UTC

from sqlalchemy import JSON, Index
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
from sqlmodel import Field, SQLModel, Column


class AuditOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# =============================================================================
# 1. shared.audit_logs 테이블 모델
# =============================================================================
class AuditLogBase(SQLModel):
    """
    shared.audit_logs 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="감사 로그 고유 ID")
    table_name: str = Field(max_length=100, index=True, description="변경된 테이블명 (예: batches)")
    record_id: Optional[int] = Field(default=None, index=True, description="변경된 레코드 ID")
    operation: AuditOperation = Field(description="변경 유형 (INSERT/UPDATE/DELETE)")
    old_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON), description="변경 전 데이터")
    new_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON), description="변경 후 데이터")
    changed_by: Optional[int] = Field(default=None, index=True, description="변경한 사용자 ID")
    reason: Optional[str] = Field(default=None, description="변경 사유")

    changed_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="변경 일시"
    )


class AuditLog(AuditLogBase, table=True):
    """
    PostgreSQL의 shared.audit_logs 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_table_record", "table_name", "record_id"),
        {'schema': 'shared'},
    )
