# tests/domains/test_pur.py

"""
'pur' 도메인 (원료 구매) API에 대한 통합 테스트입니다.

- 구매 등록: 단위 검사, 표준 단위 환산, 자동 송장 번호
- 구매 목록/상세, 헤더 수정, 삭제 제한
- 품목 소진 처리와 착즙 가능 원료 목록
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.ven import models as ven_models


@pytest.fixture
def purchase_payload(test_vendor: ven_models.Vendor):
    def _payload(variety_id: int, **overrides):
        data = {
            "vendor_id": test_vendor.id,
            "purchase_date": "2025-09-19",
            "items": [
                {"item_type": "basefruit", "fruit_variety_id": variety_id, "quantity": 1000,
                 "unit": "kg", "price_per_unit": 0.8},
                {"item_type": "juice", "item_name": "Fresh pressed juice", "quantity": 10,
                 "unit": "gal", "price_per_unit": 5},
            ],
        }
        data.update(overrides)
        return data
    return _payload


@pytest.fixture
async def test_variety(db_session: AsyncSession) -> ven_models.FruitVariety:
    variety = ven_models.FruitVariety(name="Gravenstein")
    db_session.add(variety)
    await db_session.commit()
    await db_session.refresh(variety)
    return variety


@pytest.mark.asyncio
async def test_create_purchase_with_items(authorized_client: AsyncClient, purchase_payload, test_variety, test_vendor):
    """
    구매 등록 시 합계, 표준 단위 환산, 자동 송장 번호가 계산되는지 테스트합니다.
    """
    print("\n--- Running test_create_purchase_with_items ---")
    response = await authorized_client.post("/api/v1/pur/purchases", json=purchase_payload(test_variety.id))
    print(f"Response: {response.status_code} {response.json()}")

    assert response.status_code == 201
    purchase = response.json()
    assert purchase["invoice_number"] == f"INV-20250919-{test_vendor.id}-001"
    assert purchase["auto_generated_invoice"] is True
    assert purchase["total_cost"] == pytest.approx(850.0)

    fruit, juice = sorted(purchase["items"], key=lambda item: item["item_type"])
    assert fruit["quantity_kg"] == pytest.approx(1000.0)
    assert fruit["total_cost"] == pytest.approx(800.0)
    assert juice["quantity_l"] == pytest.approx(37.854, abs=0.01)
    assert juice["is_depleted"] is False

    # 같은 날짜/업체의 두 번째 구매는 다음 순번을 받습니다.
    response = await authorized_client.post("/api/v1/pur/purchases", json=purchase_payload(test_variety.id))
    assert response.json()["invoice_number"] == f"INV-20250919-{test_vendor.id}-002"
    print("test_create_purchase_with_items passed.")


@pytest.mark.asyncio
async def test_create_purchase_explicit_invoice(authorized_client: AsyncClient, purchase_payload, test_variety):
    response = await authorized_client.post(
        "/api/v1/pur/purchases", json=purchase_payload(test_variety.id, invoice_number="HO-2025-17")
    )
    assert response.status_code == 201
    assert response.json()["invoice_number"] == "HO-2025-17"
    assert response.json()["auto_generated_invoice"] is False


@pytest.mark.asyncio
async def test_basefruit_requires_weight_unit(authorized_client: AsyncClient, test_vendor, test_variety):
    data = {
        "vendor_id": test_vendor.id,
        "items": [{"item_type": "basefruit", "fruit_variety_id": test_variety.id, "quantity": 100, "unit": "L"}],
    }
    response = await authorized_client.post("/api/v1/pur/purchases", json=data)
    assert response.status_code == 400
    assert response.json()["detail"] == "Base fruit must use a weight unit (kg, lb, bushel), got 'L'"


@pytest.mark.asyncio
async def test_purchase_rejects_zero_quantity(authorized_client: AsyncClient, test_vendor):
    data = {
        "vendor_id": test_vendor.id,
        "items": [{"item_type": "additive", "item_name": "Yeast", "quantity": 0, "unit": "g"}],
    }
    response = await authorized_client.post("/api/v1/pur/purchases", json=data)
    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity must be greater than 0"


@pytest.mark.asyncio
async def test_purchase_from_inactive_vendor(authorized_client: AsyncClient, db_session: AsyncSession, test_variety):
    vendor = ven_models.Vendor(name="Closed Orchard", is_active=False)
    db_session.add(vendor)
    await db_session.commit()
    await db_session.refresh(vendor)

    data = {
        "vendor_id": vendor.id,
        "items": [{"item_type": "basefruit", "fruit_variety_id": test_variety.id, "quantity": 10, "unit": "kg"}],
    }
    response = await authorized_client.post("/api/v1/pur/purchases", json=data)
    assert response.status_code == 400
    assert response.json()["detail"] == "Vendor is not active"


@pytest.mark.asyncio
async def test_list_purchases_filtered_by_item_type(authorized_client: AsyncClient, test_vendor, test_variety):
    await authorized_client.post("/api/v1/pur/purchases", json={
        "vendor_id": test_vendor.id, "purchase_date": "2025-09-01",
        "items": [{"item_type": "additive", "item_name": "Pectic enzyme", "quantity": 1, "unit": "kg"}],
    })
    await authorized_client.post("/api/v1/pur/purchases", json={
        "vendor_id": test_vendor.id, "purchase_date": "2025-09-02",
        "items": [{"item_type": "basefruit", "fruit_variety_id": test_variety.id, "quantity": 50, "unit": "lb"}],
    })

    response = await authorized_client.get("/api/v1/pur/purchases", params={"item_type": "basefruit"})
    assert response.status_code == 200
    assert [p["purchase_date"] for p in response.json()] == ["2025-09-02"]

    response = await authorized_client.get(
        "/api/v1/pur/purchases", params={"start_date": "2025-09-01", "end_date": "2025-09-01"}
    )
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_update_purchase_invoice_clears_auto_flag(authorized_client: AsyncClient, purchase_payload, test_variety):
    purchase = (await authorized_client.post("/api/v1/pur/purchases", json=purchase_payload(test_variety.id))).json()
    response = await authorized_client.put(
        f"/api/v1/pur/purchases/{purchase['id']}", json={"invoice_number": "MANUAL-1"}
    )
    assert response.status_code == 200
    assert response.json()["invoice_number"] == "MANUAL-1"
    assert response.json()["auto_generated_invoice"] is False


@pytest.mark.asyncio
async def test_deplete_and_available_fruit(authorized_client: AsyncClient, purchase_payload, test_variety):
    """
    소진 처리된 원료는 착즙 가능 목록에서 빠지고, 취소하면 다시 나타나는지 테스트합니다.
    """
    purchase = (await authorized_client.post("/api/v1/pur/purchases", json=purchase_payload(test_variety.id))).json()
    fruit = next(item for item in purchase["items"] if item["item_type"] == "basefruit")

    response = await authorized_client.get("/api/v1/pur/purchases/available-fruit")
    assert [item["id"] for item in response.json()] == [fruit["id"]]
    assert response.json()[0]["purchase_date"] == "2025-09-19"

    response = await authorized_client.post(f"/api/v1/pur/purchase-items/{fruit['id']}/deplete")
    assert response.status_code == 200
    assert response.json()["is_depleted"] is True
    assert response.json()["depleted_at"] is not None

    response = await authorized_client.get("/api/v1/pur/purchases/available-fruit")
    assert response.json() == []

    response = await authorized_client.post(f"/api/v1/pur/purchase-items/{fruit['id']}/undeplete")
    assert response.json()["is_depleted"] is False
    assert response.json()["depleted_at"] is None


@pytest.mark.asyncio
async def test_delete_purchase_admin(admin_client: AsyncClient, authorized_client: AsyncClient,
                                     purchase_payload, test_variety):
    purchase = (await authorized_client.post("/api/v1/pur/purchases", json=purchase_payload(test_variety.id))).json()

    response = await authorized_client.delete(f"/api/v1/pur/purchases/{purchase['id']}")
    assert response.status_code == 403

    response = await admin_client.delete(f"/api/v1/pur/purchases/{purchase['id']}")
    assert response.status_code == 204

    response = await admin_client.get(f"/api/v1/pur/purchases/{purchase['id']}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Purchase not found"
