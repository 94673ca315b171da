# tests/domains/test_cel.py

"""
'cel' 도메인 (셀러: 탱크, 배치) API에 대한 통합 테스트입니다.

- 탱크 등록/삭제 제약, 액체 현황
- 탱크 간 이송: 전량/부분/블렌드, 잔량 임계값 처리
- 배치 랙킹(전량/자기 자신/부분), 여과, 측정/첨가물, 작업 이력
- 구매 주스의 탱크 이송
"""

from datetime import datetime, UTC

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.cel import models as cel_models
from app.domains.ven import models as ven_models


@pytest.fixture
async def active_batch(db_session: AsyncSession, test_vessel: cel_models.Vessel) -> cel_models.Batch:
    """TK01(1000L)에 800L가 들어 있는 발효 중 배치"""
    batch = cel_models.Batch(
        name="2025-09-20_TK01_GRAV_A",
        batch_number="B-2025-001",
        vessel_id=test_vessel.id,
        initial_volume_l=800.0,
        current_volume_l=800.0,
        status=cel_models.BatchStatus.ACTIVE,
        start_date=datetime(2025, 9, 20, 15, 0, tzinfo=UTC),
    )
    test_vessel.status = cel_models.VesselStatus.FERMENTING
    db_session.add_all([batch, test_vessel])
    await db_session.commit()
    await db_session.refresh(batch)
    return batch


@pytest.fixture
async def empty_vessel(db_session: AsyncSession) -> cel_models.Vessel:
    vessel = cel_models.Vessel(name="TK02", capacity_l=1000.0)
    db_session.add(vessel)
    await db_session.commit()
    await db_session.refresh(vessel)
    return vessel


# --- 탱크 ---

@pytest.mark.asyncio
async def test_create_vessel_converts_capacity(authorized_client: AsyncClient):
    response = await authorized_client.post(
        "/api/v1/cel/vessels", json={"name": "BRITE-1", "vessel_type": "bright_tank", "capacity": 100, "capacity_unit": "gal"}
    )
    assert response.status_code == 201
    vessel = response.json()
    assert vessel["capacity_l"] == pytest.approx(378.541)
    assert vessel["capacity_unit"] == "gal"
    assert vessel["status"] == "available"

    response = await authorized_client.post("/api/v1/cel/vessels", json={"name": "BRITE-1", "capacity": 50})
    assert response.status_code == 409
    assert response.json()["detail"] == "Vessel 'BRITE-1' already exists"


@pytest.mark.asyncio
async def test_liquid_map(authorized_client: AsyncClient, active_batch, empty_vessel):
    response = await authorized_client.get("/api/v1/cel/vessels/liquid-map")
    assert response.status_code == 200
    liquid_map = response.json()
    assert liquid_map["cellar_liquid_l"] == pytest.approx(800.0)

    tk01, tk02 = liquid_map["vessels"]
    assert tk01["batch_number"] == "B-2025-001"
    assert tk01["fill_percentage"] == pytest.approx(80.0)
    assert tk02["batch_id"] is None
    assert tk02["current_volume_l"] == 0


@pytest.mark.asyncio
async def test_vessel_with_batch_cannot_be_deleted(admin_client: AsyncClient, active_batch, test_vessel):
    response = await admin_client.delete(f"/api/v1/cel/vessels/{test_vessel.id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete vessel that contains a batch"

    response = await admin_client.get(f"/api/v1/cel/vessels/{test_vessel.id}/batch")
    assert response.json()["id"] == active_batch.id


# --- 탱크 간 이송 ---

@pytest.mark.asyncio
async def test_full_transfer_absorbs_small_residual(authorized_client: AsyncClient, active_batch,
                                                   test_vessel, empty_vessel):
    """
    잔량이 임계값(1L)보다 작으면 손실로 처리되고 원 탱크는 세척 상태가 되는지 테스트합니다.
    """
    print("\n--- Running test_full_transfer_absorbs_small_residual ---")
    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": empty_vessel.id, "volume_l": 799.5,
    })
    print(f"Response: {response.status_code} {response.json()}")
    assert response.status_code == 200
    result = response.json()
    assert result["message"] == "Successfully transferred 799.5L from TK01 to TK02"
    assert result["is_blend"] is False
    assert result["remaining_batch"] is None
    assert result["transferred_batch"]["id"] == active_batch.id
    assert result["transferred_batch"]["vessel_id"] == empty_vessel.id
    assert result["transfer"]["loss_l"] == pytest.approx(0.5)
    assert result["transfer"]["total_volume_processed_l"] == pytest.approx(800.0)

    source = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    dest = (await authorized_client.get(f"/api/v1/cel/vessels/{empty_vessel.id}")).json()
    assert source["status"] == "cleaning"
    assert dest["status"] == "fermenting"
    print("test_full_transfer_absorbs_small_residual passed.")


@pytest.mark.asyncio
async def test_partial_transfer_creates_remaining_batch(authorized_client: AsyncClient, active_batch,
                                                        test_vessel, empty_vessel):
    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": empty_vessel.id, "volume_l": 500, "loss_l": 2,
    })
    assert response.status_code == 200
    result = response.json()
    remaining = result["remaining_batch"]
    assert remaining["name"] == "2025-09-20_TK01_GRAV_A - Remaining"
    assert remaining["batch_number"] == "B-2025-001-R"
    assert remaining["current_volume_l"] == pytest.approx(298.0)
    assert remaining["vessel_id"] == test_vessel.id
    assert remaining["parent_batch_id"] == active_batch.id
    assert result["message"].endswith(", remaining batch created with 298.0L")

    moved = result["transferred_batch"]
    assert moved["id"] == active_batch.id
    assert moved["vessel_id"] == empty_vessel.id
    assert moved["current_volume_l"] == pytest.approx(500.0)

    source = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    dest = (await authorized_client.get(f"/api/v1/cel/vessels/{empty_vessel.id}")).json()
    assert source["status"] == "fermenting"
    assert dest["status"] == "fermenting"

    response = await authorized_client.get("/api/v1/cel/vessels/transfers", params={"vessel_id": test_vessel.id})
    assert len(response.json()) == 1
    assert response.json()[0]["remaining_batch_id"] == remaining["id"]


@pytest.mark.asyncio
async def test_partial_transfer_into_occupied_vessel(authorized_client: AsyncClient, db_session: AsyncSession,
                                                    active_batch, test_vessel, empty_vessel):
    """부분 이송이 도착 탱크의 배치와 병합되고, 원 탱크에는 남은 배치가 생기는지 테스트합니다."""
    target = cel_models.Batch(
        name="2025-09-21_TK02_BLEND_A", batch_number="B-2025-002", vessel_id=empty_vessel.id,
        initial_volume_l=200.0, current_volume_l=200.0, status=cel_models.BatchStatus.ACTIVE,
    )
    empty_vessel.status = cel_models.VesselStatus.FERMENTING
    db_session.add_all([target, empty_vessel])
    await db_session.commit()
    await db_session.refresh(target)

    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": empty_vessel.id, "volume_l": 300, "loss_l": 1,
    })
    assert response.status_code == 200
    result = response.json()
    assert result["is_blend"] is True
    assert result["transferred_batch"]["id"] == target.id
    assert result["transferred_batch"]["current_volume_l"] == pytest.approx(500.0)

    remaining = result["remaining_batch"]
    assert remaining["batch_number"] == "B-2025-001-R"
    assert remaining["vessel_id"] == test_vessel.id
    assert remaining["current_volume_l"] == pytest.approx(499.0)
    assert remaining["parent_batch_id"] == active_batch.id

    source = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    assert source["status"] == "fermenting"
    current = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}/batch")).json()
    assert current["id"] == remaining["id"]

    response = await authorized_client.get(f"/api/v1/cel/batches/{active_batch.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_transfer_into_occupied_vessel_blends(authorized_client: AsyncClient, db_session: AsyncSession,
                                                    active_batch, test_vessel, empty_vessel):
    """도착 탱크에 배치가 있으면 병합(블렌드)되고 병합 이력이 남는지 테스트합니다."""
    target = cel_models.Batch(
        name="2025-09-21_TK02_BLEND_A", batch_number="B-2025-002", vessel_id=empty_vessel.id,
        initial_volume_l=200.0, current_volume_l=200.0, status=cel_models.BatchStatus.ACTIVE,
    )
    empty_vessel.status = cel_models.VesselStatus.FERMENTING
    db_session.add_all([target, empty_vessel])
    await db_session.commit()
    await db_session.refresh(target)

    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": empty_vessel.id, "volume_l": 800,
    })
    assert response.status_code == 200
    result = response.json()
    assert result["is_blend"] is True
    assert result["transferred_batch"]["id"] == target.id
    assert result["transferred_batch"]["current_volume_l"] == pytest.approx(1000.0)
    assert result["transfer"]["notes"].startswith("BLEND: Blended 800.0L from batch 2025-09-20_TK01_GRAV_A")

    response = await authorized_client.get(f"/api/v1/cel/batches/{active_batch.id}")
    assert response.status_code == 404

    history = (await authorized_client.get(f"/api/v1/cel/batches/{target.id}/merge-history")).json()
    assert len(history) == 1
    assert history[0]["source_type"] == "batch_transfer"
    assert history[0]["target_volume_before_l"] == pytest.approx(200.0)


@pytest.mark.asyncio
async def test_transfer_validation(authorized_client: AsyncClient, db_session: AsyncSession,
                                   active_batch, test_vessel):
    small = cel_models.Vessel(name="KEG-TANK", capacity_l=100.0)
    db_session.add(small)
    await db_session.commit()
    await db_session.refresh(small)

    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": test_vessel.id, "volume_l": 10,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Source and destination vessels must be different"

    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": small.id, "volume_l": 150,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Transfer volume (150.0L) plus existing volume (0.0L) exceeds destination vessel capacity (100.0L)"
    )

    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": small.id, "to_vessel_id": test_vessel.id, "volume_l": 10,
    })
    assert response.status_code == 404
    assert response.json()["detail"] == "No active batch found in source vessel"


@pytest.mark.asyncio
async def test_rejected_transfer_leaves_no_changes(authorized_client: AsyncClient, active_batch,
                                                   test_vessel, empty_vessel):
    """거부된 이송 요청 후 배치, 탱크 상태, 이송 이력이 그대로인지 테스트합니다."""
    response = await authorized_client.post("/api/v1/cel/vessels/transfer", json={
        "from_vessel_id": test_vessel.id, "to_vessel_id": empty_vessel.id, "volume_l": 800, "loss_l": 5,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Transfer volume plus loss (805.0L) exceeds current batch volume (800.0L)"
    )

    batch = (await authorized_client.get(f"/api/v1/cel/batches/{active_batch.id}")).json()
    assert batch["current_volume_l"] == pytest.approx(800.0)
    assert batch["vessel_id"] == test_vessel.id

    source = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    dest = (await authorized_client.get(f"/api/v1/cel/vessels/{empty_vessel.id}")).json()
    assert source["status"] == "fermenting"
    assert dest["status"] == "available"

    response = await authorized_client.get("/api/v1/cel/vessels/transfers")
    assert response.json() == []


# --- 배치 랙킹 / 여과 ---

@pytest.mark.asyncio
async def test_rack_to_empty_vessel(authorized_client: AsyncClient, active_batch, test_vessel, empty_vessel):
    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/rack", json={
        "destination_vessel_id": empty_vessel.id, "volume_after_l": 780,
    })
    assert response.status_code == 200
    result = response.json()
    assert result["message"] == "Batch racked to TK02"
    assert result["merged"] is False
    assert result["is_partial"] is False
    assert result["batch"]["vessel_id"] == empty_vessel.id
    assert result["batch"]["status"] == "aging"
    assert result["racking_operation"]["volume_loss_l"] == pytest.approx(20.0)

    source = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    dest = (await authorized_client.get(f"/api/v1/cel/vessels/{empty_vessel.id}")).json()
    assert source["status"] == "cleaning"
    assert dest["status"] == "in_use"


@pytest.mark.asyncio
async def test_rack_to_self_records_loss(authorized_client: AsyncClient, active_batch, test_vessel):
    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/rack", json={
        "destination_vessel_id": test_vessel.id, "volume_after_l": 790,
    })
    assert response.status_code == 200
    result = response.json()
    assert result["message"] == "Batch racked to itself in TK01. Sediment removed, volume loss recorded."
    assert result["batch"]["current_volume_l"] == pytest.approx(790.0)
    assert result["batch"]["status"] == "aging"

    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/rack", json={
        "destination_vessel_id": test_vessel.id, "volume_after_l": 900,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Volume after racking (900.0L) cannot be greater than current volume (790.0L)"
    )


@pytest.mark.asyncio
async def test_partial_rack_creates_child_batch(authorized_client: AsyncClient, active_batch, empty_vessel):
    """
    부분 랙킹 시 도착 탱크에 자식 배치가 생기고 원 배치에는 남은 부피가 유지되는지 테스트합니다.
    """
    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/rack", json={
        "destination_vessel_id": empty_vessel.id,
        "volume_to_rack_l": 300,
        "volume_after_l": 290,
        "racked_at": "2025-10-01T10:00:00Z",
    })
    assert response.status_code == 200
    result = response.json()
    assert result["is_partial"] is True
    assert result["message"] == (
        "Partial rack complete: 290.0L transferred to TK02, 500.0L remaining in source vessel"
    )
    child = result["child_batch"]
    assert child["name"] == "2025-09-20_TK01_GRAV_A - Racked 2025-10-01"
    assert child["batch_number"] == "B-2025-001-R20251001"
    assert child["current_volume_l"] == pytest.approx(290.0)
    assert child["parent_batch_id"] == active_batch.id
    assert result["batch"]["current_volume_l"] == pytest.approx(500.0)


@pytest.mark.asyncio
async def test_filter_batch(authorized_client: AsyncClient, active_batch, test_vessel, empty_vessel):
    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/filter", json={
        "vessel_id": empty_vessel.id, "filter_type": "fine", "volume_before_l": 800, "volume_after_l": 795,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Batch is not in the specified vessel"

    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/filter", json={
        "vessel_id": test_vessel.id, "filter_type": "fine", "volume_before_l": 800, "volume_after_l": 795,
    })
    assert response.status_code == 201
    assert response.json()["volume_loss_l"] == pytest.approx(5.0)

    batch = (await authorized_client.get(f"/api/v1/cel/batches/{active_batch.id}")).json()
    assert batch["current_volume_l"] == pytest.approx(795.0)


# --- 측정 / 첨가물 / 이력 ---

@pytest.mark.asyncio
async def test_measurements_additives_and_activity(authorized_client: AsyncClient, active_batch):
    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/measurements", json={
        "measurement_date": "2025-09-22T09:00:00Z", "specific_gravity": 1.050, "ph": 3.4,
    })
    assert response.status_code == 201
    measurement = response.json()

    response = await authorized_client.put(
        f"/api/v1/cel/measurements/{measurement['id']}", json={"specific_gravity": 1.048}
    )
    assert response.status_code == 200
    assert response.json()["specific_gravity"] == pytest.approx(1.048)

    response = await authorized_client.post(f"/api/v1/cel/batches/{active_batch.id}/additives", json={
        "additive_type": "yeast", "additive_name": "EC-1118", "amount": 50, "unit": "g",
        "added_at": "2025-09-21T09:00:00Z",
    })
    assert response.status_code == 201
    assert response.json()["vessel_id"] == active_batch.vessel_id

    response = await authorized_client.get(f"/api/v1/cel/batches/{active_batch.id}/activity")
    assert response.status_code == 200
    activity = response.json()
    assert [a["activity_type"] for a in activity] == ["measurement", "additive", "creation"]
    assert activity[1]["description"] == "Added 50 g of EC-1118"


@pytest.mark.asyncio
async def test_delete_batch_marks_vessel_cleaning(admin_client: AsyncClient, active_batch, test_vessel):
    response = await admin_client.delete(f"/api/v1/cel/batches/{active_batch.id}")
    assert response.status_code == 204

    vessel = (await admin_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    assert vessel["status"] == "cleaning"

    response = await admin_client.post(f"/api/v1/cel/vessels/{test_vessel.id}/clean")
    assert response.status_code == 200
    assert response.json()["status"] == "available"


# --- 구매 주스 탱크 이송 ---

@pytest.mark.asyncio
async def test_juice_transfer_creates_batch(authorized_client: AsyncClient, test_vendor: ven_models.Vendor,
                                            empty_vessel):
    """
    구매한 주스 전량을 빈 탱크로 옮기면 새 배치가 생기고 품목이 소진 처리되는지 테스트합니다.
    """
    purchase = (await authorized_client.post("/api/v1/pur/purchases", json={
        "vendor_id": test_vendor.id,
        "items": [{"item_type": "juice", "item_name": "Fresh Juice", "quantity": 100, "unit": "L",
                   "price_per_unit": 2.0}],
    })).json()
    item = purchase["items"][0]

    response = await authorized_client.post("/api/v1/cel/vessels/juice-transfer", json={
        "purchase_item_id": item["id"], "vessel_id": empty_vessel.id, "transfer_date": "2025-10-01T09:00:00Z",
    })
    assert response.status_code == 200
    result = response.json()
    assert result["is_new_batch"] is True
    assert result["message"] == "New batch created in TK02 with 100.0L of juice"
    assert result["batch"]["name"] == "2025-10-01_TK02_FRJU_A"
    assert result["batch"]["batch_number"] == "B-2025-001"
    assert result["batch"]["origin_purchase_item_id"] == item["id"]

    composition = (await authorized_client.get(f"/api/v1/cel/batches/{result['batch']['id']}/composition")).json()
    assert composition["total_material_cost"] == pytest.approx(200.0)
    assert composition["items"][0]["source_type"] == "juice_purchase"

    detail = (await authorized_client.get(f"/api/v1/pur/purchases/{purchase['id']}")).json()
    assert detail["items"][0]["is_depleted"] is True

    response = await authorized_client.post("/api/v1/cel/vessels/juice-transfer", json={
        "purchase_item_id": item["id"], "vessel_id": empty_vessel.id,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Purchase item is depleted"
