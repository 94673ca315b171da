# tests/domains/test_ven.py

"""
'ven' 도메인 (공급업체 및 과일 품종 관리) 관련 API 엔드포인트에 대한 통합 테스트를 정의하는 모듈입니다.

- 공급업체: 생성, 목록 검색, 수정, 소프트 삭제/복원
- 과일 품종: 생성, 중복 이름 검사(대소문자 무시)
- 공급업체-품종 연결: 연결, 조회, 해제
"""

import pytest
from httpx import AsyncClient
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.ven import models as ven_models
from app.domains.shared import models as shared_models


# --- 공급업체 관리 엔드포인트 테스트 ---

@pytest.mark.asyncio
async def test_create_vendor_success(authorized_client: AsyncClient, db_session: AsyncSession):
    """
    작업자 권한으로 공급업체를 생성하고, 감사 로그가 함께 기록되는지 테스트합니다.
    """
    print("\n--- Running test_create_vendor_success ---")
    vendor_data = {"name": "Apple Hill Farm", "contact_info": {"phone": "555-0100"}}
    response = await authorized_client.post("/api/v1/ven/vendors", json=vendor_data)
    print(f"Response: {response.status_code} {response.json()}")

    assert response.status_code == 201
    created = response.json()
    assert created["name"] == "Apple Hill Farm"
    assert created["contact_info"]["phone"] == "555-0100"
    assert created["is_active"] is True

    logs = (await db_session.execute(
        select(shared_models.AuditLog).where(
            shared_models.AuditLog.table_name == "vendors",
            shared_models.AuditLog.record_id == created["id"],
        )
    )).scalars().all()
    assert len(logs) == 1
    assert logs[0].operation == "INSERT"
    print("test_create_vendor_success passed.")


@pytest.mark.asyncio
async def test_create_vendor_unauthenticated(client: AsyncClient):
    """비인증 사용자는 401을 받는지 테스트합니다."""
    response = await client.post("/api/v1/ven/vendors", json={"name": "No Auth"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_read_vendors_search_and_inactive_filter(authorized_client: AsyncClient, db_session: AsyncSession):
    """
    이름 검색과 거래 중지 업체 제외 필터가 동작하는지 테스트합니다.
    """
    db_session.add_all([
        ven_models.Vendor(name="North Orchard"),
        ven_models.Vendor(name="South Orchard", is_active=False),
        ven_models.Vendor(name="Cider Barn"),
    ])
    await db_session.commit()

    response = await authorized_client.get("/api/v1/ven/vendors", params={"search": "orchard"})
    assert response.status_code == 200
    names = [v["name"] for v in response.json()]
    assert names == ["North Orchard"]

    response = await authorized_client.get(
        "/api/v1/ven/vendors", params={"search": "orchard", "include_inactive": True}
    )
    names = [v["name"] for v in response.json()]
    assert names == ["North Orchard", "South Orchard"]


@pytest.mark.asyncio
async def test_update_vendor(authorized_client: AsyncClient, test_vendor: ven_models.Vendor):
    """공급업체 정보를 수정하는지 테스트합니다."""
    response = await authorized_client.put(
        f"/api/v1/ven/vendors/{test_vendor.id}", json={"name": "Hillside Orchard Co.", "is_active": False}
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Hillside Orchard Co."
    assert response.json()["is_active"] is False


@pytest.mark.asyncio
async def test_read_vendor_not_found(authorized_client: AsyncClient):
    response = await authorized_client.get("/api/v1/ven/vendors/99999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Vendor not found"


@pytest.mark.asyncio
async def test_delete_vendor_requires_admin(authorized_client: AsyncClient, test_vendor: ven_models.Vendor):
    """작업자는 공급업체를 삭제할 수 없는지 테스트합니다."""
    response = await authorized_client.delete(f"/api/v1/ven/vendors/{test_vendor.id}")
    assert response.status_code == 403
    assert response.json()["detail"] == "Not enough permissions. Admin role required."


@pytest.mark.asyncio
async def test_soft_delete_and_restore_vendor(admin_client: AsyncClient, test_vendor: ven_models.Vendor):
    """
    관리자가 공급업체를 소프트 삭제하면 조회되지 않고, 복원하면 다시 조회되는지 테스트합니다.
    """
    print("\n--- Running test_soft_delete_and_restore_vendor ---")
    response = await admin_client.delete(f"/api/v1/ven/vendors/{test_vendor.id}")
    assert response.status_code == 204

    response = await admin_client.get(f"/api/v1/ven/vendors/{test_vendor.id}")
    assert response.status_code == 404

    response = await admin_client.post(f"/api/v1/ven/vendors/{test_vendor.id}/restore")
    assert response.status_code == 200
    assert response.json()["id"] == test_vendor.id

    response = await admin_client.get(f"/api/v1/ven/vendors/{test_vendor.id}")
    assert response.status_code == 200
    print("test_soft_delete_and_restore_vendor passed.")


# --- 과일 품종 엔드포인트 테스트 ---

@pytest.mark.asyncio
async def test_create_fruit_variety_duplicate_name(authorized_client: AsyncClient):
    """
    같은 이름(대소문자 무시)의 품종을 다시 등록하면 409를 반환하는지 테스트합니다.
    """
    response = await authorized_client.post(
        "/api/v1/ven/varieties",
        json={"name": "Gravenstein", "cider_category": "sharp", "tannin": "low", "acid": "high"},
    )
    assert response.status_code == 201
    assert response.json()["fruit_type"] == "apple"

    response = await authorized_client.post("/api/v1/ven/varieties", json={"name": "gravenstein"})
    assert response.status_code == 409
    assert response.json()["detail"] == "Fruit variety 'gravenstein' already exists"


@pytest.mark.asyncio
async def test_vendor_variety_link_lifecycle(authorized_client: AsyncClient, test_vendor: ven_models.Vendor):
    """
    공급업체에 품종을 연결/조회/해제하는 흐름을 테스트합니다.
    """
    variety = (await authorized_client.post("/api/v1/ven/varieties", json={"name": "Kingston Black"})).json()

    response = await authorized_client.post(
        f"/api/v1/ven/vendors/{test_vendor.id}/varieties", json={"variety_id": variety["id"], "notes": "2t/yr"}
    )
    assert response.status_code == 201
    assert response.json()["variety_id"] == variety["id"]

    # 같은 연결을 다시 요청하면 기존 연결을 반환합니다.
    response = await authorized_client.post(
        f"/api/v1/ven/vendors/{test_vendor.id}/varieties", json={"variety_id": variety["id"]}
    )
    assert response.status_code == 201
    assert response.json()["notes"] == "2t/yr"

    response = await authorized_client.get(f"/api/v1/ven/vendors/{test_vendor.id}/varieties")
    assert [v["name"] for v in response.json()] == ["Kingston Black"]

    response = await authorized_client.get(f"/api/v1/ven/varieties/{variety['id']}/vendors")
    assert [v["id"] for v in response.json()] == [test_vendor.id]

    response = await authorized_client.delete(f"/api/v1/ven/vendors/{test_vendor.id}/varieties/{variety['id']}")
    assert response.status_code == 204

    response = await authorized_client.delete(f"/api/v1/ven/vendors/{test_vendor.id}/varieties/{variety['id']}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Vendor variety link not found"


@pytest.mark.asyncio
async def test_attach_unknown_variety(authorized_client: AsyncClient, test_vendor: ven_models.Vendor):
    response = await authorized_client.post(
        f"/api/v1/ven/vendors/{test_vendor.id}/varieties", json={"variety_id": 99999}
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Fruit variety not found"
