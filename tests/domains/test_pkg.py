# tests/domains/test_pkg.py

"""
'pkg' 도메인 (패키징 및 케그) API에 대한 통합 테스트입니다.

- 탱크에서 포장: 손실량, 로트 코드, 재고 품목 생성, 잔량 임계값 처리
- 포장 용량 카탈로그
- 케그 수명주기: 충전 -> 출고 -> 회수 -> 세척
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.cel import models as cel_models


@pytest.fixture
async def cellar_batch(db_session: AsyncSession, test_vessel: cel_models.Vessel) -> cel_models.Batch:
    test_vessel.status = cel_models.VesselStatus.FERMENTING
    batch = cel_models.Batch(
        name="2025-09-20_TK01_GRAV_A", batch_number="B-2025-001", vessel_id=test_vessel.id,
        initial_volume_l=800.0, current_volume_l=800.0, status=cel_models.BatchStatus.ACTIVE,
    )
    db_session.add(test_vessel)
    db_session.add(batch)
    await db_session.commit()
    await db_session.refresh(batch)
    return batch


def _run_payload(batch: cel_models.Batch, **overrides) -> dict:
    data = {
        "vessel_id": batch.vessel_id,
        "batch_id": batch.id,
        "package_size_ml": 500,
        "units_produced": 100,
        "volume_taken": 52,
        "packaged_at": "2025-10-05T10:00:00Z",
    }
    data.update(overrides)
    return data


async def _create_kegs(client: AsyncClient, *numbers: str) -> list:
    kegs = []
    for number in numbers:
        response = await client.post("/api/v1/pkg/kegs", json={"keg_number": number, "capacity_l": 19.5})
        assert response.status_code == 201
        kegs.append(response.json())
    return kegs


# =============================================================================
# 1. 탱크에서 포장
# =============================================================================
@pytest.mark.asyncio
async def test_package_from_vessel(authorized_client: AsyncClient, cellar_batch):
    """
    포장 시 손실량과 로트 코드가 계산되고, 재고 품목과 원가가 생성되는지 테스트합니다.
    """
    print("\n--- Running test_package_from_vessel ---")
    response = await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(cellar_batch))
    print(f"Response: {response.status_code} {response.json()}")
    assert response.status_code == 201
    result = response.json()
    run = result["packaging_run"]
    assert run["package_type"] == "bottle"
    assert run["loss_l"] == pytest.approx(2.0)
    assert run["loss_percentage"] == pytest.approx(3.85)
    assert run["run_sequence"] == 1
    assert result["lot_code"] == "B-2025-001-20251005-01"
    assert result["remaining_volume_l"] == pytest.approx(748.0)
    assert result["vessel_emptied"] is False
    assert result["message"] == "Packaged 100 units as lot B-2025-001-20251005-01"

    response = await authorized_client.get(f"/api/v1/inv/items/{result['inventory_item_id']}")
    item = response.json()
    assert item["lot_code"] == "B-2025-001-20251005-01"
    assert item["current_quantity"] == 100
    assert item["packaging_run_id"] == run["id"]
    assert item["expiration_date"] == "2026-10-05"

    # 원가 재계산이 즉시 실행됩니다. (ARQ 풀 없음)
    response = await authorized_client.get(f"/api/v1/rpt/batch-costs/{cellar_batch.id}")
    assert response.status_code == 200
    cost = response.json()
    assert cost["units_produced"] == 100
    assert cost["packaging_cost"] == pytest.approx(35.0)
    assert cost["overhead_cost"] == pytest.approx(400.0)
    assert cost["total_cost"] == pytest.approx(435.0)

    # 같은 날 두 번째 포장은 다음 순번의 로트 코드를 받습니다.
    response = await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(cellar_batch, units_produced=50,
                                                                                   volume_taken=26))
    assert response.status_code == 201
    assert response.json()["lot_code"] == "B-2025-001-20251005-02"
    assert response.json()["remaining_volume_l"] == pytest.approx(722.0)

    response = await authorized_client.get("/api/v1/pkg/runs", params={"batch_id": cellar_batch.id})
    runs = response.json()
    assert [r["run_sequence"] for r in runs] == [2, 1]
    assert runs[0]["batch_number"] == "B-2025-001"
    assert runs[0]["vessel_name"] == "TK01"
    print("test_package_from_vessel passed.")


@pytest.mark.asyncio
async def test_package_empties_vessel_below_residual(authorized_client: AsyncClient, cellar_batch, test_vessel):
    response = await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(
        cellar_batch, package_size_ml=750, units_produced=1066, volume_taken=799.6,
    ))
    assert response.status_code == 201
    result = response.json()
    assert result["packaging_run"]["package_type"] == "can"
    assert result["vessel_emptied"] is True
    assert result["remaining_volume_l"] == 0.0
    assert result["message"].endswith(". Vessel TK01 emptied and set to cleaning")

    vessel = (await authorized_client.get(f"/api/v1/cel/vessels/{test_vessel.id}")).json()
    assert vessel["status"] == "cleaning"
    batch = (await authorized_client.get(f"/api/v1/cel/batches/{cellar_batch.id}")).json()
    assert batch["status"] == "packaged"


@pytest.mark.asyncio
async def test_package_validation(authorized_client: AsyncClient, db_session: AsyncSession,
                                  cellar_batch, test_vessel):
    response = await authorized_client.post(
        "/api/v1/pkg/runs", json=_run_payload(cellar_batch, volume_taken=900, units_produced=10)
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient volume in vessel. Available: 800.0L, Requested: 900.0L"

    response = await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(cellar_batch, units_produced=200))
    assert response.status_code == 400
    assert response.json()["detail"] == "Packaged volume 100.0L exceeds volume taken 52.0L"

    test_vessel.status = cel_models.VesselStatus.AVAILABLE
    db_session.add(test_vessel)
    await db_session.commit()
    response = await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(cellar_batch))
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Vessel must be in use or fermenting to package from. Current status: available"
    )

    # 거부된 요청은 아무것도 남기지 않음
    response = await authorized_client.get("/api/v1/pkg/runs")
    assert response.json() == []
    response = await authorized_client.get("/api/v1/inv/items")
    assert response.json() == []

    batch = (await authorized_client.get(f"/api/v1/cel/batches/{cellar_batch.id}")).json()
    assert batch["current_volume_l"] == pytest.approx(800.0)
    assert batch["status"] == "active"


@pytest.mark.asyncio
async def test_package_batch_not_in_vessel(authorized_client: AsyncClient, db_session: AsyncSession, cellar_batch):
    other = cel_models.Vessel(name="TK02", capacity_l=1000.0, status=cel_models.VesselStatus.IN_USE)
    db_session.add(other)
    await db_session.commit()
    await db_session.refresh(other)

    response = await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(cellar_batch, vessel_id=other.id))
    assert response.status_code == 404
    assert response.json()["detail"] == "Batch not found in specified vessel"


@pytest.mark.asyncio
async def test_update_packaging_qa(authorized_client: AsyncClient, cellar_batch):
    run = (await authorized_client.post("/api/v1/pkg/runs", json=_run_payload(cellar_batch))).json()["packaging_run"]
    assert run["fill_check"] == "not_tested"

    response = await authorized_client.put(f"/api/v1/pkg/runs/{run['id']}/qa", json={
        "fill_check": "pass", "fill_variance_ml": 1.5, "qa_notes": "Fill heights consistent",
    })
    assert response.status_code == 200
    assert response.json()["fill_check"] == "pass"
    assert response.json()["fill_variance_ml"] == pytest.approx(1.5)

    response = await authorized_client.put("/api/v1/pkg/runs/99999/qa", json={"fill_check": "fail"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Packaging run not found"


# =============================================================================
# 2. 포장 용량 카탈로그
# =============================================================================
@pytest.mark.asyncio
async def test_package_sizes_admin_only(admin_client: AsyncClient, authorized_client: AsyncClient):
    payload = {"size_ml": 355, "size_oz": 12, "display_name": "12oz can", "package_type": "can"}

    response = await authorized_client.post("/api/v1/pkg/package-sizes", json=payload)
    assert response.status_code == 403

    response = await admin_client.post("/api/v1/pkg/package-sizes", json=payload)
    assert response.status_code == 201

    response = await admin_client.post("/api/v1/pkg/package-sizes", json=payload)
    assert response.status_code == 409
    assert response.json()["detail"] == "Package size 355mL already exists"

    response = await authorized_client.get("/api/v1/pkg/package-sizes", params={"package_type": "can"})
    assert [size["display_name"] for size in response.json()] == ["12oz can"]


# =============================================================================
# 3. 케그
# =============================================================================
@pytest.mark.asyncio
async def test_keg_lifecycle(authorized_client: AsyncClient, cellar_batch):
    """
    케그 충전 -> 출고 -> 회수 -> 세척 흐름에 따라 케그 상태가 바뀌는지 테스트합니다.
    """
    print("\n--- Running test_keg_lifecycle ---")
    keg_a, keg_b = await _create_kegs(authorized_client, "K-001", "K-002")
    assert keg_a["status"] == "available"

    response = await authorized_client.post("/api/v1/pkg/keg-fills", json={
        "batch_id": cellar_batch.id, "keg_ids": [keg_a["id"], keg_b["id"]],
        "volume_per_keg_l": 19.5, "loss_l": 1.0, "filled_at": "2025-10-06T09:00:00Z",
    })
    print(f"Response: {response.status_code} {response.json()}")
    assert response.status_code == 201
    result = response.json()
    assert len(result["fills"]) == 2
    assert result["total_volume_l"] == pytest.approx(39.0)
    assert result["remaining_batch_volume_l"] == pytest.approx(760.0)
    assert result["message"] == "Filled 2 kegs from 2025-09-20_TK01_GRAV_A"
    fill_a = next(f for f in result["fills"] if f["keg_id"] == keg_a["id"])
    fill_b = next(f for f in result["fills"] if f["keg_id"] == keg_b["id"])

    keg = (await authorized_client.get(f"/api/v1/pkg/kegs/{keg_a['id']}")).json()
    assert keg["status"] == "filled"

    response = await authorized_client.post(f"/api/v1/pkg/keg-fills/{fill_a['id']}/distribute", json={
        "distributed_to": "Taproom North",
    })
    assert response.status_code == 200
    assert response.json()["message"] == "Keg K-001 distributed"
    assert response.json()["keg"]["status"] == "distributed"
    assert response.json()["keg"]["location"] == "Taproom North"

    response = await authorized_client.post(f"/api/v1/pkg/keg-fills/{fill_a['id']}/return", json={})
    assert response.status_code == 200
    assert response.json()["message"] == "Keg K-001 returned"
    assert response.json()["keg"]["status"] == "cleaning"
    assert response.json()["fill"]["status"] == "returned"

    response = await authorized_client.post(f"/api/v1/pkg/kegs/{keg_a['id']}/clean")
    assert response.status_code == 200
    assert response.json()["message"] == "Keg K-001 is now available"
    assert response.json()["keg"]["status"] == "available"

    response = await authorized_client.post(f"/api/v1/pkg/keg-fills/{fill_b['id']}/void")
    assert response.status_code == 200
    assert response.json()["message"] == "Keg K-002 voided"
    assert response.json()["keg"]["status"] == "available"

    history = (await authorized_client.get(f"/api/v1/pkg/kegs/{keg_a['id']}/fills")).json()
    assert [h["status"] for h in history] == ["returned"]
    print("test_keg_lifecycle passed.")


@pytest.mark.asyncio
async def test_keg_fill_validation(authorized_client: AsyncClient, cellar_batch):
    keg_a, keg_b = await _create_kegs(authorized_client, "K-010", "K-011")

    response = await authorized_client.post("/api/v1/pkg/kegs", json={"keg_number": "K-010", "capacity_l": 19.5})
    assert response.status_code == 409
    assert response.json()["detail"] == "A keg with this number already exists"

    response = await authorized_client.post("/api/v1/pkg/keg-fills", json={
        "batch_id": cellar_batch.id, "keg_ids": [keg_a["id"]], "volume_per_keg_l": 30,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Volume per keg exceeds capacity of: K-010"

    response = await authorized_client.post("/api/v1/pkg/keg-fills", json={
        "batch_id": cellar_batch.id, "keg_ids": [keg_a["id"], 99999], "volume_per_keg_l": 19,
    })
    assert response.status_code == 404
    assert response.json()["detail"] == "One or more kegs not found"

    response = await authorized_client.post("/api/v1/pkg/keg-fills", json={
        "batch_id": cellar_batch.id, "keg_ids": [keg_a["id"]], "volume_per_keg_l": 19,
    })
    assert response.status_code == 201
    fill = response.json()["fills"][0]

    response = await authorized_client.post("/api/v1/pkg/keg-fills", json={
        "batch_id": cellar_batch.id, "keg_ids": [keg_a["id"], keg_b["id"]], "volume_per_keg_l": 19,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Kegs not available: K-010"

    response = await authorized_client.post(f"/api/v1/pkg/keg-fills/{fill['id']}/return", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "Only distributed kegs can be returned"

    response = await authorized_client.post(f"/api/v1/pkg/kegs/{keg_b['id']}/clean")
    assert response.status_code == 400
    assert response.json()["detail"] == "Only kegs with cleaning status can be cleaned"


@pytest.mark.asyncio
async def test_delete_keg_with_active_fill(admin_client: AsyncClient, cellar_batch):
    keg_a, keg_b = await _create_kegs(admin_client, "K-020", "K-021")
    await admin_client.post("/api/v1/pkg/keg-fills", json={
        "batch_id": cellar_batch.id, "keg_ids": [keg_a["id"]], "volume_per_keg_l": 19,
    })

    response = await admin_client.delete(f"/api/v1/pkg/kegs/{keg_a['id']}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete keg with active fills. Return or void fills first."

    response = await admin_client.delete(f"/api/v1/pkg/kegs/{keg_b['id']}")
    assert response.status_code == 204

    response = await admin_client.get(f"/api/v1/pkg/kegs/{keg_b['id']}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Keg not found"

    kegs = (await admin_client.get("/api/v1/pkg/kegs")).json()
    assert [k["keg_number"] for k in kegs] == ["K-020"]
