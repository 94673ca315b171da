# tests/domains/test_inv.py

"""
'inv' 도메인 (재고 및 판매) API에 대한 통합 테스트입니다.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.cel import models as cel_models
from app.domains.inv import tasks as inv_tasks


@pytest.fixture
async def packaged_batch(db_session: AsyncSession) -> cel_models.Batch:
    batch = cel_models.Batch(
        name="2025-09-20_TK01_GRAV_A", batch_number="B-2025-001", initial_volume_l=800.0,
        current_volume_l=0.0, status=cel_models.BatchStatus.PACKAGED,
    )
    db_session.add(batch)
    await db_session.commit()
    await db_session.refresh(batch)
    return batch


@pytest.fixture
async def stock_item(authorized_client: AsyncClient, packaged_batch) -> dict:
    response = await authorized_client.post("/api/v1/inv/items", json={
        "batch_id": packaged_batch.id, "lot_code": "B-2025-001-20251005-01",
        "package_type": "bottle", "package_size_ml": 500, "initial_quantity": 48,
        "expiration_date": "2026-10-05",
    })
    assert response.status_code == 201
    return response.json()


async def _txn(client: AsyncClient, item_id: int, transaction_type: str, quantity_change: int):
    return await client.post(f"/api/v1/inv/items/{item_id}/transactions", json={
        "transaction_type": transaction_type, "quantity_change": quantity_change,
    })


# =============================================================================
# 1. 재고 품목
# =============================================================================
@pytest.mark.asyncio
async def test_create_inventory_item(authorized_client: AsyncClient, packaged_batch, stock_item):
    """
    재고 품목 생성 시 최초 수량에 대한 'purchase' 트랜잭션이 함께 기록되는지 테스트합니다.
    """
    print("\n--- Running test_create_inventory_item ---")
    assert stock_item["current_quantity"] == 48
    assert stock_item["reserved_quantity"] == 0

    response = await authorized_client.get(f"/api/v1/inv/items/{stock_item['id']}/transactions")
    transactions = response.json()
    assert len(transactions) == 1
    assert transactions[0]["transaction_type"] == "purchase"
    assert transactions[0]["quantity_change"] == 48

    response = await authorized_client.post("/api/v1/inv/items", json={
        "batch_id": packaged_batch.id, "lot_code": "B-2025-001-20251005-01",
        "package_type": "bottle", "package_size_ml": 500,
    })
    assert response.status_code == 409
    assert response.json()["detail"] == "Inventory item with lot code 'B-2025-001-20251005-01' already exists"

    response = await authorized_client.post("/api/v1/inv/items", json={
        "batch_id": 99999, "lot_code": "ORPHAN-1", "package_type": "can", "package_size_ml": 355,
    })
    assert response.status_code == 404
    assert response.json()["detail"] == "Batch not found"
    print("test_create_inventory_item passed.")


@pytest.mark.asyncio
async def test_list_and_update_items(authorized_client: AsyncClient, packaged_batch, stock_item):
    await authorized_client.post("/api/v1/inv/items", json={
        "batch_id": packaged_batch.id, "lot_code": "B-2025-001-20251006-01",
        "package_type": "can", "package_size_ml": 355, "initial_quantity": 0,
    })

    response = await authorized_client.get("/api/v1/inv/items", params={"package_type": "bottle"})
    assert [item["lot_code"] for item in response.json()] == ["B-2025-001-20251005-01"]

    response = await authorized_client.get("/api/v1/inv/items", params={"in_stock_only": True})
    assert [item["id"] for item in response.json()] == [stock_item["id"]]

    response = await authorized_client.put(f"/api/v1/inv/items/{stock_item['id']}", json={"location": "Cold room B"})
    assert response.status_code == 200
    assert response.json()["location"] == "Cold room B"


# =============================================================================
# 2. 재고 변동 / 예약
# =============================================================================
@pytest.mark.asyncio
async def test_transaction_sign_rules(authorized_client: AsyncClient, stock_item):
    item_id = stock_item["id"]

    response = await _txn(authorized_client, item_id, "sale", 5)
    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity change for sale must be negative"

    response = await _txn(authorized_client, item_id, "purchase", -1)
    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity change for purchase must be positive"

    response = await _txn(authorized_client, item_id, "adjustment", 0)
    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity change cannot be zero"

    response = await _txn(authorized_client, item_id, "adjustment", -50)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient inventory. Current: 48, Requested change: -50"

    response = await _txn(authorized_client, item_id, "sale", -8)
    assert response.status_code == 201
    assert response.json()["message"] == "Inventory updated: 48 -> 40"
    assert response.json()["inventory_item"]["current_quantity"] == 40


@pytest.mark.asyncio
async def test_reservations_protect_stock(admin_client: AsyncClient, stock_item):
    """
    예약 수량 아래로는 재고를 줄일 수 없고, 예약이 남아 있으면 삭제할 수 없는지 테스트합니다.
    """
    item_id = stock_item["id"]

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/reserve", json={"quantity": 30})
    assert response.status_code == 200
    assert response.json()["reserved_quantity"] == 30

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/reserve", json={"quantity": 20})
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient available inventory to reserve. Available: 18, Requested: 20"

    response = await _txn(admin_client, item_id, "waste", -20)
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Cannot reduce inventory below reserved level. Reserved: 30, New level would be: 28"
    )

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/release", json={"quantity": 40})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot release more than reserved. Reserved: 30, Requested: 40"

    response = await admin_client.delete(f"/api/v1/inv/items/{item_id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete inventory item with reserved stock. Release reservations first."

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/release", json={"quantity": 30})
    assert response.json()["reserved_quantity"] == 0

    response = await admin_client.delete(f"/api/v1/inv/items/{item_id}")
    assert response.status_code == 204
    response = await admin_client.get(f"/api/v1/inv/items/{item_id}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Inventory item not found"


@pytest.mark.asyncio
async def test_stock_level_and_low_stock(authorized_client: AsyncClient, db_session: AsyncSession, stock_item):
    item_id = stock_item["id"]
    await authorized_client.post(f"/api/v1/inv/items/{item_id}/reserve", json={"quantity": 30})

    response = await authorized_client.get(f"/api/v1/inv/items/{item_id}/stock-level")
    level = response.json()
    assert level["available_quantity"] == 18
    assert level["minimum_level"] == 24
    assert level["is_low_stock"] is True

    response = await authorized_client.get(f"/api/v1/inv/items/{item_id}/stock-level", params={"minimum_level": 10})
    assert response.json()["is_low_stock"] is False

    response = await authorized_client.get("/api/v1/inv/items/low-stock")
    assert [item["id"] for item in response.json()] == [item_id]

    result = await inv_tasks.scan_low_stock_task({"db": db_session})
    assert result["low_stock_count"] == 1
    assert result["lot_codes"] == ["B-2025-001-20251005-01"]


@pytest.mark.asyncio
async def test_transaction_summary_and_history(authorized_client: AsyncClient, stock_item):
    item_id = stock_item["id"]
    await _txn(authorized_client, item_id, "sale", -10)
    await _txn(authorized_client, item_id, "waste", -2)
    await _txn(authorized_client, item_id, "adjustment", 1)

    response = await authorized_client.get(f"/api/v1/inv/items/{item_id}/transactions/summary")
    assert response.status_code == 200
    summary = response.json()
    assert summary["total_purchases"] == 48
    assert summary["total_sales"] == 10
    assert summary["total_waste"] == 2
    assert summary["total_adjustments"] == 1
    assert summary["net_quantity_change"] == 37

    response = await authorized_client.get(f"/api/v1/inv/items/{item_id}/history")
    history = response.json()
    assert history["item"]["current_quantity"] == 37
    assert len(history["transactions"]) == 4

    response = await authorized_client.get(
        f"/api/v1/inv/items/{item_id}/transactions", params={"transaction_type": "sale"}
    )
    assert [t["quantity_change"] for t in response.json()] == [-10]


# =============================================================================
# 3. 판매 채널 / 출고
# =============================================================================
@pytest.mark.asyncio
async def test_sales_channels_admin_only(admin_client: AsyncClient, authorized_client: AsyncClient):
    payload = {"code": "taproom", "name": "Taproom"}

    response = await authorized_client.post("/api/v1/inv/sales-channels", json=payload)
    assert response.status_code == 403

    response = await admin_client.post("/api/v1/inv/sales-channels", json=payload)
    assert response.status_code == 201
    channel = response.json()

    response = await admin_client.post("/api/v1/inv/sales-channels", json=payload)
    assert response.status_code == 409
    assert response.json()["detail"] == "Sales channel 'taproom' already exists"

    response = await admin_client.put(f"/api/v1/inv/sales-channels/{channel['id']}", json={"is_active": False})
    assert response.json()["is_active"] is False

    response = await authorized_client.get("/api/v1/inv/sales-channels", params={"active_only": True})
    assert response.json() == []


@pytest.mark.asyncio
async def test_distribute_inventory(admin_client: AsyncClient, stock_item):
    """
    출고 시 재고가 줄고, 'sale' 트랜잭션과 매출이 함께 기록되는지 테스트합니다.
    """
    print("\n--- Running test_distribute_inventory ---")
    item_id = stock_item["id"]
    taproom = (await admin_client.post("/api/v1/inv/sales-channels", json={"code": "taproom", "name": "Taproom"})).json()
    closed = (await admin_client.post(
        "/api/v1/inv/sales-channels", json={"code": "market", "name": "Farmers market", "is_active": False}
    )).json()

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/distributions", json={
        "sales_channel_id": closed["id"], "quantity": 3, "price_per_unit": 4.5,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Sales channel is not active"

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/distributions", json={
        "sales_channel_id": taproom["id"], "quantity": 3, "price_per_unit": 4.5,
        "distributed_at": "2025-10-10T17:00:00Z",
    })
    print(f"Response: {response.status_code} {response.json()}")
    assert response.status_code == 201
    distribution = response.json()
    assert distribution["total_revenue"] == pytest.approx(13.5)
    assert distribution["transaction_id"] is not None

    item = (await admin_client.get(f"/api/v1/inv/items/{item_id}")).json()
    assert item["current_quantity"] == 45

    response = await admin_client.post(f"/api/v1/inv/items/{item_id}/distributions", json={"quantity": 100})
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient inventory. Current: 45, Requested change: -100"

    response = await admin_client.get("/api/v1/inv/distributions", params={
        "sales_channel_id": taproom["id"], "start_date": "2025-10-10", "end_date": "2025-10-10",
    })
    assert [d["id"] for d in response.json()] == [distribution["id"]]
    print("test_distribute_inventory passed.")
