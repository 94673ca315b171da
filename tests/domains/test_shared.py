# tests/domains/test_shared.py

"""
'shared' 도메인 (감사 로그) API 및 태스크에 대한 통합 테스트입니다.
"""

import logging
from datetime import datetime, timedelta, UTC

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.shared import models as shared_models
from app.domains.shared.tasks import cleanup_audit_logs_task
from app.domains.usr import models as usr_models
from app.domains.ven import crud as ven_crud


@pytest.mark.asyncio
async def test_audit_logs_admin_only(authorized_client: AsyncClient, client: AsyncClient):
    """작업자는 403, 비인증 사용자는 401을 받는지 테스트합니다."""
    response = await authorized_client.get("/api/v1/shared/audit-logs")
    assert response.status_code == 403

    response = await client.get("/api/v1/shared/audit-logs")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_audit_trail_for_vendor_changes(admin_client: AsyncClient, test_admin_user: usr_models.User):
    """
    생성 -> 수정 -> 삭제 순서의 변경 이력이 레코드 이력 API로 조회되는지 테스트합니다.
    """
    print("\n--- Running test_audit_trail_for_vendor_changes ---")
    vendor = (await admin_client.post("/api/v1/ven/vendors", json={"name": "Audit Orchard"})).json()
    await admin_client.put(f"/api/v1/ven/vendors/{vendor['id']}", json={"name": "Audit Orchard 2"})
    await admin_client.delete(f"/api/v1/ven/vendors/{vendor['id']}")

    response = await admin_client.get(f"/api/v1/shared/audit-logs/vendors/{vendor['id']}")
    assert response.status_code == 200
    history = response.json()
    print(f"History: {history}")
    assert [log["operation"] for log in history] == ["INSERT", "UPDATE", "DELETE"]
    assert history[1]["old_data"] == {"name": "Audit Orchard"}
    assert history[1]["new_data"] == {"name": "Audit Orchard 2"}
    assert all(log["changed_by"] == test_admin_user.id for log in history)

    response = await admin_client.get(
        "/api/v1/shared/audit-logs", params={"table_name": "vendors", "operation": "UPDATE"}
    )
    assert len(response.json()) == 1

    response = await admin_client.get(f"/api/v1/shared/audit-logs/users/{test_admin_user.id}")
    assert len(response.json()) == 3
    print("test_audit_trail_for_vendor_changes passed.")


@pytest.mark.asyncio
async def test_audit_log_stats(admin_client: AsyncClient):
    await admin_client.post("/api/v1/ven/vendors", json={"name": "Stats Orchard A"})
    await admin_client.post("/api/v1/ven/vendors", json={"name": "Stats Orchard B"})

    response = await admin_client.get("/api/v1/shared/audit-logs/stats")
    assert response.status_code == 200
    stats = response.json()
    assert stats["total"] == 2
    assert stats["by_table"] == [{"key": "vendors", "count": 2}]
    assert stats["by_operation"] == [{"key": "INSERT", "count": 2}]


@pytest.mark.asyncio
async def test_cleanup_removes_only_expired_logs(admin_client: AsyncClient, db_session: AsyncSession):
    """
    보존 기간보다 오래된 로그만 삭제되는지 테스트합니다.
    """
    db_session.add_all([
        shared_models.AuditLog(
            table_name="batches", record_id=1, operation=shared_models.AuditOperation.UPDATE,
            changed_at=datetime.now(UTC) - timedelta(days=400),
        ),
        shared_models.AuditLog(
            table_name="batches", record_id=1, operation=shared_models.AuditOperation.UPDATE,
            changed_at=datetime.now(UTC) - timedelta(days=10),
        ),
    ])
    await db_session.commit()

    response = await admin_client.delete("/api/v1/shared/audit-logs/cleanup", params={"older_than_days": 365})
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 1

    response = await admin_client.get("/api/v1/shared/audit-logs/batches/1")
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_cleanup_task_with_injected_session(db_session: AsyncSession):
    """ARQ 태스크가 ctx의 세션으로 정리 작업을 수행하는지 테스트합니다."""
    db_session.add(shared_models.AuditLog(
        table_name="kegs", record_id=7, operation=shared_models.AuditOperation.DELETE,
        changed_at=datetime.now(UTC) - timedelta(days=1000),
    ))
    await db_session.commit()

    result = await cleanup_audit_logs_task({"db": db_session})
    assert result == {"status": "success", "deleted_count": 1}


@pytest.mark.asyncio
async def test_unknown_filter_attribute_is_logged(db_session: AsyncSession, test_vendor, caplog):
    """모델에 없는 필터 속성은 무시되고 경고 로그가 남는지 테스트합니다."""
    with caplog.at_level(logging.WARNING, logger="app.core.crud_base"):
        vendors = await ven_crud.vendor.get_filtered(db_session, filters={"no_such_column": "x"})

    assert [v.id for v in vendors] == [test_vendor.id]
    assert "Model Vendor has no attribute 'no_such_column'" in caplog.text
